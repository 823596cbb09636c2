"""Document Scan & Understanding Pipeline.

Locates a document in a photographed image, rectifies its perspective with
OpenCV, runs Tesseract OCR, and turns the recognized text into labeled
sections plus a document-type guess.
"""

__version__ = "1.0.0"

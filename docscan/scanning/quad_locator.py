"""Document boundary detection for photographed pages.

Finds the largest four-corner polygon in an edge map of the image.
The image is downscaled first so detection time stays bounded on large
phone photos.
"""

import cv2
import numpy as np

from docscan.utils.config import ScanConfig
from docscan.utils.logger import get_logger

from .geometry import Quadrilateral, quad_from_array

logger = get_logger(__name__)


def compute_scale(width: int, height: int, max_dimension: int = 1400) -> float:
    """Return the downscale factor that fits the image within ``max_dimension``.

    Never upscales, so the result is at most 1.0.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        max_dimension: Cap applied to both width and height.

    Returns:
        Scale factor in ``(0, 1]``.
    """
    return min(max_dimension / width, max_dimension / height, 1.0)


def resize_for_detection(
    image: np.ndarray, max_dimension: int = 1400
) -> tuple[np.ndarray, float]:
    """Downscale an image with area interpolation for boundary detection.

    Args:
        image: Input image (BGR, RGB or grayscale).
        max_dimension: Largest allowed width or height.

    Returns:
        Tuple of (resized_image, scale). The input is returned as-is
        when no downscaling is needed.
    """
    h, w = image.shape[:2]
    scale = compute_scale(w, h, max_dimension)
    if scale >= 1.0:
        return image, 1.0

    size = (max(1, round(w * scale)), max(1, round(h * scale)))
    resized = cv2.resize(image, size, interpolation=cv2.INTER_AREA)
    logger.debug("Resized %dx%d -> %dx%d for detection", w, h, size[0], size[1])
    return resized, scale


def detect_edges(
    image: np.ndarray,
    blur_kernel: int = 5,
    canny_low: int = 75,
    canny_high: int = 200,
) -> np.ndarray:
    """Produce a Canny edge map from a blurred grayscale copy of the image.

    Args:
        image: Input image (3- or 4-channel color, or grayscale).
        blur_kernel: Gaussian kernel size (odd).
        canny_low: Lower hysteresis threshold.
        canny_high: Upper hysteresis threshold.

    Returns:
        Single-channel edge map.
    """
    if image.ndim == 3 and image.shape[2] == 4:
        gray = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    elif image.ndim == 3:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    else:
        gray = image
    blurred = cv2.GaussianBlur(gray, (blur_kernel, blur_kernel), 0)
    edges = cv2.Canny(blurred, canny_low, canny_high)
    del gray, blurred
    return edges


def find_quadrilateral(
    edges: np.ndarray, epsilon_ratio: float = 0.02
) -> Quadrilateral | None:
    """Select the largest four-vertex contour approximation in an edge map.

    Each contour is approximated to a closed polygon with a tolerance of
    ``epsilon_ratio`` times its perimeter. Only approximations with exactly
    four vertices are candidates, and the first one with the strictly
    greatest area wins.

    Args:
        edges: Single-channel edge map.
        epsilon_ratio: Approximation tolerance as a fraction of perimeter.

    Returns:
        The winning quadrilateral, or ``None`` if no contour qualifies.
    """
    contours, _ = cv2.findContours(edges, cv2.RETR_LIST, cv2.CHAIN_APPROX_SIMPLE)

    best: np.ndarray | None = None
    best_area = 0.0
    for contour in contours:
        perimeter = cv2.arcLength(contour, True)
        approx = cv2.approxPolyDP(contour, epsilon_ratio * perimeter, True)
        if len(approx) != 4:
            continue
        area = cv2.contourArea(approx)
        if area > best_area:
            best_area = area
            best = approx

    logger.debug("Examined %d contours, best quad area %.1f", len(contours), best_area)
    del contours
    if best is None:
        return None
    return quad_from_array(best)


def locate_document(
    image: np.ndarray, config: ScanConfig | None = None
) -> tuple[Quadrilateral | None, np.ndarray]:
    """Find the document boundary in an image.

    Args:
        image: Decoded input image.
        config: Detection parameters. Defaults to :class:`ScanConfig`.

    Returns:
        Tuple of (quad, detection_image). Quad coordinates are expressed
        in ``detection_image`` space, which is the possibly downscaled copy.
    """
    config = config or ScanConfig()
    resized, _ = resize_for_detection(image, config.max_dimension)
    edges = detect_edges(
        resized,
        blur_kernel=config.blur_kernel,
        canny_low=config.canny_low,
        canny_high=config.canny_high,
    )
    quad = find_quadrilateral(edges, config.epsilon_ratio)
    del edges
    return quad, resized

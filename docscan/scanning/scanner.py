"""Scan orchestration: boundary detection followed by rectification.

Automatic scans produce one of two outcomes. ``FOUND`` carries the
rectified page, ``NOT_FOUND`` passes the original image through so OCR can
still run and the caller can offer manual cropping. A manual crop from
user-supplied corners ends in ``MANUAL``.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

import cv2
import numpy as np

from docscan.errors import InvalidCropError, InvalidImageError
from docscan.utils.config import ScanConfig
from docscan.utils.logger import get_logger

from .geometry import OrderedCorners, Point
from .quad_locator import locate_document
from .rectifier import order_corners, rectify

logger = get_logger(__name__)


class ScanOutcome(StrEnum):
    """Terminal states of a scan."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    MANUAL = "manual"


@dataclass
class ScanResult:
    """Result of scanning one image."""

    image: np.ndarray
    outcome: ScanOutcome
    corners: OrderedCorners | None = None

    @property
    def found(self) -> bool:
        return self.outcome is ScanOutcome.FOUND


def validate_image(image: object) -> np.ndarray:
    """Check that ``image`` is a non-empty 2D or 3D 8-bit pixel array.

    Raises:
        InvalidImageError: If the image is missing, has zero size, or is
            not ``uint8``.
    """
    if not isinstance(image, np.ndarray):
        raise InvalidImageError(f"Expected a numpy array, got {type(image).__name__}")
    if image.ndim not in (2, 3) or image.shape[0] == 0 or image.shape[1] == 0:
        raise InvalidImageError(f"Image has invalid shape {image.shape}")
    if image.dtype != np.uint8:
        raise InvalidImageError(f"Unsupported pixel type {image.dtype}, expected uint8")
    return image


def is_ready() -> bool:
    """Report whether the OpenCV backend can run the scan primitives."""
    try:
        cv2.Canny(np.zeros((4, 4), dtype=np.uint8), 75, 200)
    except cv2.error as exc:
        logger.warning("OpenCV backend not ready: %s", exc)
        return False
    return True


class DocumentScanner:
    """Locates and rectifies the document in a photographed page.

    Args:
        config: Detection parameters.
    """

    def __init__(self, config: ScanConfig | None = None) -> None:
        self.config = config or ScanConfig()

    def scan(self, image: np.ndarray) -> ScanResult:
        """Detect the page boundary and rectify it.

        Vision-primitive failures are treated like a missing boundary.

        Args:
            image: Decoded input image.

        Returns:
            ``FOUND`` with the rectified page, or ``NOT_FOUND`` with the
            original image.

        Raises:
            InvalidImageError: If the input is not a usable image.
        """
        image = validate_image(image)
        try:
            quad, detection_image = locate_document(image, self.config)
        except cv2.error as exc:
            logger.warning("Boundary detection failed: %s", exc)
            return ScanResult(image=image, outcome=ScanOutcome.NOT_FOUND)

        if quad is None:
            del detection_image
            logger.info("No document boundary found, using original image")
            return ScanResult(image=image, outcome=ScanOutcome.NOT_FOUND)

        corners = order_corners(quad)
        try:
            warped = rectify(detection_image, corners)
        except cv2.error as exc:
            logger.warning("Perspective warp failed: %s", exc)
            return ScanResult(image=image, outcome=ScanOutcome.NOT_FOUND)
        finally:
            del detection_image

        logger.info(
            "Document boundary found, rectified to %dx%d",
            warped.shape[1],
            warped.shape[0],
        )
        return ScanResult(image=warped, outcome=ScanOutcome.FOUND, corners=corners)

    def crop(self, image: np.ndarray, points: Sequence[Point]) -> ScanResult:
        """Rectify a region the user marked by hand, skipping detection.

        Args:
            image: Decoded input image.
            points: Four corners in ``image`` pixel coordinates, any order.

        Returns:
            ``MANUAL`` with the rectified region at full resolution.

        Raises:
            InvalidImageError: If the input is not a usable image.
            InvalidCropError: If the corners are malformed, outside the
                image, or enclose no area.
        """
        image = validate_image(image)
        if len(points) != 4:
            raise InvalidCropError(f"Expected 4 crop corners, got {len(points)}")

        height, width = image.shape[:2]
        for p in points:
            if not (0 <= p.x <= width and 0 <= p.y <= height):
                raise InvalidCropError(
                    f"Crop corner ({p.x:g}, {p.y:g}) lies outside the {width}x{height} image"
                )

        corners = order_corners(points)
        if cv2.contourArea(corners.as_array()) <= 0:
            raise InvalidCropError("Crop corners enclose no area")

        warped = rectify(image, corners)
        logger.info("Manual crop rectified to %dx%d", warped.shape[1], warped.shape[0])
        return ScanResult(image=warped, outcome=ScanOutcome.MANUAL, corners=corners)

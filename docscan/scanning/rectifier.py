"""Perspective rectification of a located document quadrilateral.

Assigns corner roles to an unordered quad, sizes the output so no
content is cropped, and warps the quad onto an upright rectangle.
"""

from collections.abc import Sequence

import cv2
import numpy as np

from docscan.utils.logger import get_logger

from .geometry import OrderedCorners, Point

logger = get_logger(__name__)


def order_corners(points: Sequence[Point]) -> OrderedCorners:
    """Assign top-left, top-right, bottom-right and bottom-left roles.

    The top-left corner has the smallest ``x + y`` and the bottom-right the
    largest. The top-right corner has the smallest ``y - x`` and the
    bottom-left the largest. On ties the earliest point wins. Works for
    any convex, non-self-intersecting quad roughly aligned with the axes.

    Args:
        points: Exactly four points in any order.

    Returns:
        Corners with fixed roles.

    Raises:
        ValueError: If ``points`` does not contain exactly four points.
    """
    if len(points) != 4:
        raise ValueError(f"Expected 4 corner points, got {len(points)}")

    sums = [p.x + p.y for p in points]
    diffs = [p.y - p.x for p in points]
    return OrderedCorners(
        top_left=points[sums.index(min(sums))],
        top_right=points[diffs.index(min(diffs))],
        bottom_right=points[sums.index(max(sums))],
        bottom_left=points[diffs.index(max(diffs))],
    )


def target_size(corners: OrderedCorners) -> tuple[int, int]:
    """Compute the rectified output size for a set of ordered corners.

    Uses the longer of each pair of opposing edges so mild perspective
    skew does not crop content.

    Args:
        corners: Ordered document corners.

    Returns:
        Tuple of (width, height) in pixels, each at least 1.
    """
    width = max(
        corners.bottom_right.distance_to(corners.bottom_left),
        corners.top_right.distance_to(corners.top_left),
    )
    height = max(
        corners.top_right.distance_to(corners.bottom_right),
        corners.top_left.distance_to(corners.bottom_left),
    )
    return max(1, round(width)), max(1, round(height))


def perspective_matrix(corners: OrderedCorners, width: int, height: int) -> np.ndarray:
    """Compute the homography mapping the corners onto a ``width x height`` rectangle.

    Args:
        corners: Ordered source corners.
        width: Output width in pixels.
        height: Output height in pixels.

    Returns:
        3x3 projective transform matrix.
    """
    dst = np.array(
        [[0, 0], [width - 1, 0], [width - 1, height - 1], [0, height - 1]],
        dtype=np.float32,
    )
    return cv2.getPerspectiveTransform(corners.as_array(), dst)


def rectify(image: np.ndarray, corners: OrderedCorners) -> np.ndarray:
    """Warp the quadrilateral region of an image onto an upright rectangle.

    Args:
        image: Source image the corners are expressed in.
        corners: Ordered document corners.

    Returns:
        Rectified image of the size given by :func:`target_size`. Areas
        outside the source are filled with black.
    """
    width, height = target_size(corners)
    matrix = perspective_matrix(corners, width, height)
    warped = cv2.warpPerspective(
        image,
        matrix,
        (width, height),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=0,
    )
    logger.debug("Rectified document to %dx%d", width, height)
    return warped

"""Geometric value types shared by the quad locator and the rectifier."""

import math
import re
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Point:
    """A pixel coordinate in some image's coordinate space."""

    x: float
    y: float

    def distance_to(self, other: "Point") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


# Exactly four points, in whatever order the contour approximation produced.
Quadrilateral = tuple[Point, Point, Point, Point]


@dataclass(frozen=True)
class OrderedCorners:
    """A quadrilateral with fixed corner roles."""

    top_left: Point
    top_right: Point
    bottom_right: Point
    bottom_left: Point

    def as_points(self) -> Quadrilateral:
        return (self.top_left, self.top_right, self.bottom_right, self.bottom_left)

    def as_array(self) -> np.ndarray:
        """Return the corners as a ``float32`` (4, 2) array in TL, TR, BR, BL order."""
        return np.array([[p.x, p.y] for p in self.as_points()], dtype=np.float32)


def quad_from_array(points: np.ndarray) -> Quadrilateral:
    """Build a quadrilateral from an OpenCV (4, 1, 2) or (4, 2) point array.

    Raises:
        ValueError: If the array does not hold exactly four points.
    """
    flat = np.asarray(points).reshape(-1, 2)
    if flat.shape[0] != 4:
        raise ValueError(f"Expected 4 points, got {flat.shape[0]}")
    return tuple(Point(float(x), float(y)) for x, y in flat)  # type: ignore[return-value]


def parse_corners(text: str) -> Quadrilateral:
    """Parse ``"x1,y1,x2,y2,x3,y3,x4,y4"`` into four points, in any order.

    Whitespace and ``;`` are accepted as separators as well.

    Raises:
        ValueError: If the text does not hold exactly eight numbers.
    """
    tokens = [t for t in re.split(r"[\s,;]+", text.strip()) if t]
    if len(tokens) != 8:
        raise ValueError(f"Expected 8 coordinates, got {len(tokens)}")
    try:
        values = [float(t) for t in tokens]
    except ValueError as exc:
        raise ValueError(f"Invalid coordinate in {text!r}") from exc
    return quad_from_array(np.array(values).reshape(4, 2))

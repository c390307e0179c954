"""2-D geometry primitives for toolpath planning.

Provides:
    - ``Point``: immutable XY location with translation and tolerance equality
    - ``Area``: axis-aligned rectangle (left/top/right/bottom)
    - ``offset_line``: perpendicular shift of a segment (kerf compensation)
    - ``polar_offset``: end point from a start, an angle and a length

All coordinates are in millimetres.  Table ("display") coordinates use a
top-left origin with +Y pointing down; conversion to machine coordinates
lives on the configuration profile, not here.

Points are frozen, so "clone" and "transfer values" from the editor's
mutable point type reduce to plain assignment.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

POINT_TOLERANCE_MM = 1e-4
"""Two locations closer than this on both axes are the same location."""


@dataclass(frozen=True, slots=True)
class Point:
    """XY location in millimetres."""

    x: float = 0.0
    y: float = 0.0

    def translate(self, dx: float, dy: float) -> Point:
        return Point(self.x + dx, self.y + dy)

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def coincides(self, other: Point | None, tol: float = POINT_TOLERANCE_MM) -> bool:
        """Return ``True`` if *other* is the same location within *tol*."""
        if other is None:
            return False
        return abs(self.x - other.x) <= tol and abs(self.y - other.y) <= tol

    def distance_to(self, other: Point) -> float:
        return math.hypot(other.x - self.x, other.y - self.y)


@dataclass(frozen=True, slots=True)
class Area:
    """Axis-aligned rectangle in table coordinates (+Y down)."""

    left: float = 0.0
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def center(self) -> Point:
        return Point(self.left + self.width / 2.0, self.top + self.height / 2.0)

    @classmethod
    def from_size(cls, left: float, top: float, width: float, height: float) -> Area:
        return cls(left=left, top=top, right=left + width, bottom=top + height)

    def contains(self, point: Point, tol: float = POINT_TOLERANCE_MM) -> bool:
        return (
            self.left - tol <= point.x <= self.right + tol
            and self.top - tol <= point.y <= self.bottom + tol
        )


def offset_line(
    start: Point,
    end: Point,
    distance: float,
) -> tuple[Point, Point]:
    """Shift the segment *start*-*end* sideways by *distance*.

    Positive *distance* moves the segment to the **left** of its direction
    of travel as seen on the table (top-left origin, +Y down); negative
    moves it to the right.  A zero-length segment is returned unchanged.

    Parameters
    ----------
    start, end : Point
        Segment end points in table millimetres.
    distance : float
        Signed perpendicular offset in millimetres.

    Returns
    -------
    tuple[Point, Point]
        The shifted ``(start, end)``.
    """
    dx = end.x - start.x
    dy = end.y - start.y
    length = math.hypot(dx, dy)
    if length == 0.0 or distance == 0.0:
        return start, end
    # With +Y down, the left-hand normal of (dx, dy) is (dy, -dx).
    nx = dy / length * distance
    ny = -dx / length * distance
    return start.translate(nx, ny), end.translate(nx, ny)


def polar_offset(start: Point, angle_rad: float, length: float) -> Point:
    """Point *length* mm away from *start* along *angle_rad*.

    Angles are measured counter-clockwise from +X as seen on the table,
    so with +Y down a positive angle moves upward on screen.
    """
    return Point(
        start.x + math.cos(angle_rad) * length,
        start.y - math.sin(angle_rad) * length,
    )

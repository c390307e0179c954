"""
Geometry primitives.

Immutable points and rectangles in millimetres, plus the small amount of
vector math the track builder needs (kerf offsets, polar end points).
"""

from shoptools.geometry.primitives import (
    POINT_TOLERANCE_MM,
    Area,
    Point,
    offset_line,
    polar_offset,
)

__all__ = ["POINT_TOLERANCE_MM", "Area", "Point", "offset_line", "polar_offset"]

"""
Track building.

Turns a configured workpiece into tool-grouped layers of Plot, Plunge
and Transit segments in machine millimetres, ready for G-code rendering.
"""

from shoptools.track.builder import (
    DEFAULT_FEED_RATE,
    FALLBACK_DEPTH_PER_PASS_MM,
    TrackBuilder,
    resolve_feed_rate,
)
from shoptools.track.segments import (
    SkippedOperation,
    TrackLayer,
    TrackPlan,
    TrackSegment,
    TrackSegmentType,
)

__all__ = [
    "DEFAULT_FEED_RATE",
    "FALLBACK_DEPTH_PER_PASS_MM",
    "SkippedOperation",
    "TrackBuilder",
    "TrackLayer",
    "TrackPlan",
    "TrackSegment",
    "TrackSegmentType",
    "resolve_feed_rate",
]

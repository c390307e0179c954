"""Track segments and layers -- the vocabulary between layout and G-code.

Every motion primitive is an immutable, slotted dataclass in
**millimetres** and **machine** coordinates.  Depths are measured down
from the top of the material; the G-code renderer turns them into
absolute Z through the profile's table-relative Z function.

Grouping
--------
A *TrackLayer* is one pass of one tool: an ordered list of segments cut
at (at most) the layer's depth.  A *TrackPlan* is the ordered list of
layers for a whole workpiece plus the operations that could not be
tooled.  Plans are rebuilt on every render.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from shoptools.geometry.primitives import Point
from shoptools.tooling.tools import TrackTool

# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------


class TrackSegmentType(Enum):
    NONE = "None"
    PLOT = "Plot"
    PLUNGE = "Plunge"
    TRANSIT = "Transit"


@dataclass(frozen=True, slots=True)
class TrackSegment:
    """One motion primitive.

    Parameters
    ----------
    segment_type : TrackSegmentType
        Plot (feed move at depth), Plunge (drill and retract) or
        Transit (rapid move, retracted).
    start_offset, end_offset : Point
        Machine XY in mm.  A Plunge has ``start_offset == end_offset``.
    depth : float
        Depth cut by this segment, mm below the top of material.
    target_depth : float
        Final depth the source operation asks for; later passes cut
        deeper until ``depth == target_depth``.
    feed_rate : float
        Feed for cutting moves, per minute.
    cut_index, operation_index : int | None
        Source operation: ``workpiece.cuts[cut_index].operations[operation_index]``.
        ``None`` for connecting transits the builder inserts.
    """

    segment_type: TrackSegmentType
    start_offset: Point
    end_offset: Point
    depth: float = 0.0
    target_depth: float = 0.0
    feed_rate: float = 0.0
    cut_index: int | None = None
    operation_index: int | None = None

    def __post_init__(self) -> None:
        if self.depth < 0 or self.target_depth < 0:
            raise ValueError(
                f"Segment depths must be >= 0, got depth={self.depth} "
                f"target_depth={self.target_depth}"
            )


# ---------------------------------------------------------------------------
# Layers and plans
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TrackLayer:
    """Ordered segments sharing one tool; one depth pass."""

    tool: TrackTool
    segments: tuple[TrackSegment, ...]
    depth: float = 0.0


@dataclass(frozen=True, slots=True)
class SkippedOperation:
    """An operation that produced no segments because no tool resolved."""

    cut_index: int
    operation_index: int
    operation_name: str
    tool_name: str
    reason: str


@dataclass(frozen=True, slots=True)
class TrackPlan:
    """Everything the renderer needs for one workpiece."""

    layers: tuple[TrackLayer, ...] = ()
    skipped: tuple[SkippedOperation, ...] = ()
    feed_rate: float = 0.0

    @property
    def segment_count(self) -> int:
        return sum(len(layer.segments) for layer in self.layers)

    def tool_names(self) -> list[str]:
        """Distinct tool names in encounter order."""
        names: list[str] = []
        for layer in self.layers:
            if layer.tool.tool_name not in names:
                names.append(layer.tool.tool_name)
        return names

"""Track builder: ordered cuts to tool-grouped layers of segments.

Pipeline
--------
1. **Layout** -- every operation of every cut is resolved in template
   order, starting from the router location.  Each operation's end point
   is the next one's relative reference, including operations that are
   later skipped.
2. **Sequencing** -- consecutive cuts whose templates are not
   tool-sequence-strict form one *run* in which operations are clustered
   by tool in first-occurrence order (A, B, A, C becomes A, A, B, C),
   order preserved within each cluster.  When the run contains the tool
   the previous work ended on, that tool's cluster goes first.  A strict
   cut keeps its literal order and only splits where the tool changes.
3. **Passes** -- each cluster is cut in passes no deeper than the tool's
   ``max_depth_per_pass``.  The first pass runs forward and also drills
   every plunge at full depth; each later pass retraces the plots still
   short of their target depth in reverse order, one pass deeper.  One
   pass is one :class:`TrackLayer`.

Connecting transits are inserted wherever the tool is not already at
the start of the next cutting move.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from shoptools.geometry.primitives import Point
from shoptools.patterns.enums import OperationAction
from shoptools.patterns.operations import PatternOperation
from shoptools.patterns.workpiece import (
    WorkpieceInfo,
    resolve_depth,
    resolve_operation_geometry,
)
from shoptools.tooling.tools import TrackTool, TrackToolSet
from shoptools.track.segments import (
    SkippedOperation,
    TrackLayer,
    TrackPlan,
    TrackSegment,
    TrackSegmentType,
)

if TYPE_CHECKING:
    from shoptools.configs.loader import ConfigProfile

logger = logging.getLogger(__name__)

DEFAULT_FEED_RATE = 100.0
"""Feed used when no material in the profile has a usable feed rate."""

FALLBACK_DEPTH_PER_PASS_MM = 1.5875
"""Pass depth for tools whose diameter is unknown (1/16in)."""

_DEPTH_TOLERANCE_MM = 1e-6


# ---------------------------------------------------------------------------
# Feed rate
# ---------------------------------------------------------------------------


def resolve_feed_rate(profile: ConfigProfile, material_name: str) -> float:
    """Feed rate for *material_name*.

    The first material matching case-insensitively wins.  With no match,
    the slowest configured feed rate is used; with none configured,
    :data:`DEFAULT_FEED_RATE`.
    """
    material = profile.find_material(material_name or "")
    if material is not None:
        rate = profile.to_millimeters(material.feed_rate)
        if rate > 0:
            return rate
        logger.warning(
            "Material %r has no usable feed rate %r", material.name, material.feed_rate,
        )

    rates = [
        rate for rate in (
            profile.to_millimeters(m.feed_rate) for m in profile.material_types
        )
        if rate > 0
    ]
    if rates:
        slowest = min(rates)
        logger.warning(
            "Material %r not found; using slowest configured feed rate %.3f",
            material_name, slowest,
        )
        return slowest
    logger.warning(
        "No material feed rates configured; using default %.1f", DEFAULT_FEED_RATE,
    )
    return DEFAULT_FEED_RATE


# ---------------------------------------------------------------------------
# Internal records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _Placed:
    """An operation after layout, ready to become segments."""

    cut_index: int
    operation_index: int
    action: OperationAction
    tool: TrackTool
    start: Point
    end: Point
    target_depth: float


@dataclass(slots=True)
class _Cluster:
    tool: TrackTool
    items: list[_Placed]


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class TrackBuilder:
    """Converts a configured workpiece into a :class:`TrackPlan`.

    Parameters
    ----------
    profile : ConfigProfile
        Read-only for the lifetime of the builder.
    """

    def __init__(self, profile: ConfigProfile) -> None:
        self._profile = profile

    def build(self, workpiece: WorkpieceInfo) -> TrackPlan:
        """Lay out, sequence and layer every cut of *workpiece*.

        Operations whose tool cannot be resolved are reported in
        ``TrackPlan.skipped`` and produce no segments.
        """
        if not workpiece.cuts:
            return TrackPlan()

        feed_rate = resolve_feed_rate(self._profile, workpiece.material_type_name)
        tools = TrackToolSet.initialize(
            self._profile,
            (op for cut in workpiece.cuts for op in cut.operations),
        )
        origin = self._profile.from_machine(workpiece.router_location)

        placed, skipped = self._layout(workpiece, tools, origin)
        clusters = self._sequence(workpiece, placed)

        layers: list[TrackLayer] = []
        location = origin
        for cluster in clusters:
            cluster_layers, location = self._passes(cluster, location, feed_rate)
            layers.extend(cluster_layers)

        for item in skipped:
            logger.warning(
                "Skipped cut %d operation %d (%s): %s",
                item.cut_index, item.operation_index,
                item.operation_name or "unnamed", item.reason,
            )
        plan = TrackPlan(layers=tuple(layers), skipped=tuple(skipped),
                         feed_rate=feed_rate)
        logger.info(
            "Built %d layers, %d segments for %d tools (%d skipped)",
            len(plan.layers), plan.segment_count, len(plan.tool_names()),
            len(plan.skipped),
        )
        return plan

    # -- Layout -------------------------------------------------------------

    def _layout(
        self,
        workpiece: WorkpieceInfo,
        tools: TrackToolSet,
        origin: Point,
    ) -> tuple[list[_Placed], list[SkippedOperation]]:
        placed: list[_Placed] = []
        skipped: list[SkippedOperation] = []
        location = origin

        for ci, cut in enumerate(workpiece.cuts):
            if cut.start_location is not None:
                location = cut.start_location
            cut_tool: TrackTool | None = None
            for oi, op in enumerate(cut.operations):
                tool = self._tool_for(op, tools, cut_tool)
                geometry = resolve_operation_geometry(
                    op, workpiece, self._profile, location,
                    kerf_clearance=tool.kerf_clearance if tool else 0.0,
                )
                location = geometry.end

                if op.action is OperationAction.NONE:
                    continue
                if tool is None:
                    skipped.append(SkippedOperation(
                        cut_index=ci,
                        operation_index=oi,
                        operation_name=op.operation_name,
                        tool_name=op.tool,
                        reason=(
                            f"unknown tool {op.tool!r}" if op.tool.strip()
                            else "no default tool configured"
                        ),
                    ))
                    continue
                if op.action is not OperationAction.TRANSIT:
                    cut_tool = tool

                depth = 0.0
                if op.action is not OperationAction.TRANSIT:
                    depth = resolve_depth(op, workpiece, self._profile)
                    if depth <= 0:
                        logger.debug(
                            "Cut %d operation %d has no depth; ignored", ci, oi,
                        )
                        continue
                if (op.action is OperationAction.PLOT
                        and geometry.start.coincides(geometry.end)):
                    logger.debug("Cut %d operation %d has zero length", ci, oi)
                    continue

                placed.append(_Placed(
                    cut_index=ci,
                    operation_index=oi,
                    action=op.action,
                    tool=tool,
                    start=geometry.start,
                    end=geometry.end,
                    target_depth=depth,
                ))
        return placed, skipped

    @staticmethod
    def _tool_for(
        op: PatternOperation,
        tools: TrackToolSet,
        cut_tool: TrackTool | None,
    ) -> TrackTool | None:
        # A transit with no tool of its own stays with the tool cutting
        # the rest of its cut.
        if (op.action is OperationAction.TRANSIT and not op.tool.strip()
                and cut_tool is not None):
            return cut_tool
        return tools.select(op.tool)

    # -- Sequencing ---------------------------------------------------------

    def _sequence(
        self,
        workpiece: WorkpieceInfo,
        placed: list[_Placed],
    ) -> list[_Cluster]:
        by_cut: dict[int, list[_Placed]] = {}
        for item in placed:
            by_cut.setdefault(item.cut_index, []).append(item)

        clusters: list[_Cluster] = []
        run: list[_Placed] = []

        def flush_run() -> None:
            if run:
                last = clusters[-1].tool if clusters else None
                _append(clusters, _cluster_by_tool(run, last))
                run.clear()

        for ci, cut in enumerate(workpiece.cuts):
            items = by_cut.get(ci, [])
            if cut.tool_sequence_strict:
                flush_run()
                _append(clusters, _split_on_tool_change(items))
            else:
                run.extend(items)
        flush_run()
        return clusters

    # -- Passes -------------------------------------------------------------

    def _passes(
        self,
        cluster: _Cluster,
        location: Point,
        feed_rate: float,
    ) -> tuple[list[TrackLayer], Point]:
        tool = cluster.tool
        step = tool.max_depth_per_pass
        if step <= 0:
            step = FALLBACK_DEPTH_PER_PASS_MM

        to_machine = self._profile.to_machine
        layers: list[TrackLayer] = []
        segments: list[TrackSegment] = []

        def transit(start: Point, end: Point) -> None:
            if not start.coincides(end):
                segments.append(TrackSegment(
                    segment_type=TrackSegmentType.TRANSIT,
                    start_offset=to_machine(start),
                    end_offset=to_machine(end),
                    feed_rate=feed_rate,
                ))

        # First pass: template order, plunges at full depth.
        plots: list[tuple[_Placed, Point, Point]] = []
        for item in cluster.items:
            if item.action is OperationAction.TRANSIT:
                transit(location, item.end)
                location = item.end
                continue
            transit(location, item.start)
            if item.action is OperationAction.PLUNGE:
                segments.append(TrackSegment(
                    segment_type=TrackSegmentType.PLUNGE,
                    start_offset=to_machine(item.start),
                    end_offset=to_machine(item.start),
                    depth=item.target_depth,
                    target_depth=item.target_depth,
                    feed_rate=feed_rate,
                    cut_index=item.cut_index,
                    operation_index=item.operation_index,
                ))
                location = item.start
            else:
                segments.append(self._plot(item, item.start, item.end,
                                           min(step, item.target_depth), feed_rate))
                plots.append((item, item.start, item.end))
                location = item.end
        if segments:
            layers.append(_layer(tool, segments))

        # Later passes: retrace unfinished plots in reverse, one step deeper.
        cut_depth = step
        while True:
            remaining = [
                p for p in plots if p[0].target_depth > cut_depth + _DEPTH_TOLERANCE_MM
            ]
            if not remaining:
                break
            cut_depth += step
            segments = []
            reversed_plots: list[tuple[_Placed, Point, Point]] = []
            for item, start, end in reversed(remaining):
                transit(location, end)
                segments.append(self._plot(item, end, start,
                                           min(cut_depth, item.target_depth),
                                           feed_rate))
                reversed_plots.append((item, end, start))
                location = start
            layers.append(_layer(tool, segments))
            plots = reversed_plots

        logger.debug(
            "Tool %s: %d operations in %d passes",
            tool.tool_name, len(cluster.items), len(layers),
        )
        return layers, location

    def _plot(
        self,
        item: _Placed,
        start: Point,
        end: Point,
        depth: float,
        feed_rate: float,
    ) -> TrackSegment:
        return TrackSegment(
            segment_type=TrackSegmentType.PLOT,
            start_offset=self._profile.to_machine(start),
            end_offset=self._profile.to_machine(end),
            depth=depth,
            target_depth=item.target_depth,
            feed_rate=feed_rate,
            cut_index=item.cut_index,
            operation_index=item.operation_index,
        )


# ---------------------------------------------------------------------------
# Clustering helpers
# ---------------------------------------------------------------------------


def _layer(tool: TrackTool, segments: list[TrackSegment]) -> TrackLayer:
    """Layer whose depth is the deepest cut any of its segments makes."""
    return TrackLayer(
        tool=tool,
        segments=tuple(segments),
        depth=max(s.depth for s in segments),
    )


def _same_tool(a: TrackTool | None, b: TrackTool | None) -> bool:
    return (
        a is not None and b is not None
        and a.tool_name.lower() == b.tool_name.lower()
    )


def _cluster_by_tool(
    items: list[_Placed],
    previous_tool: TrackTool | None,
) -> list[_Cluster]:
    """Group *items* by tool in first-occurrence order, stable within
    each group; the group for *previous_tool* moves to the front."""
    clusters: list[_Cluster] = []
    for item in items:
        cluster = next((c for c in clusters if _same_tool(c.tool, item.tool)), None)
        if cluster is None:
            cluster = _Cluster(tool=item.tool, items=[])
            clusters.append(cluster)
        cluster.items.append(item)
    for index, cluster in enumerate(clusters):
        if index and _same_tool(cluster.tool, previous_tool):
            clusters.insert(0, clusters.pop(index))
            break
    return clusters


def _split_on_tool_change(items: list[_Placed]) -> list[_Cluster]:
    clusters: list[_Cluster] = []
    for item in items:
        if clusters and _same_tool(clusters[-1].tool, item.tool):
            clusters[-1].items.append(item)
        else:
            clusters.append(_Cluster(tool=item.tool, items=[item]))
    return clusters


def _append(clusters: list[_Cluster], new: list[_Cluster]) -> None:
    """Extend *clusters*, merging across the boundary when the tool
    does not change."""
    for cluster in new:
        if clusters and _same_tool(clusters[-1].tool, cluster.tool):
            clusters[-1].items.extend(cluster.items)
        else:
            clusters.append(cluster)

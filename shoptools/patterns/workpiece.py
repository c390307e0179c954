"""Workpiece placement and operation layout.

A :class:`WorkpieceInfo` carries what the user typed (length, width,
thickness, offsets from a table reference) and, after
:func:`configure_from_user_values`, the resolved millimetre geometry the
track builder works against.

Layout happens in *display* coordinates (top-left table origin, +Y down).
Offsets are interpreted against the workpiece area through the
``OffsetLeftRight`` / ``OffsetTopBottom`` references:

==================  ===================================================
Left / Top          from the near edge
Right / Bottom      from the far edge, less the subject size
Center              subject centred on the area centre
LeftEdgeToCenter    subject's near edge on the area centre
RightEdgeToCenter   subject's far edge on the area centre
Relative / None     from the current tool location
Absolute            machine coordinate
==================  ===================================================

Positive offsets move toward machine +X / +Y, so they are negated when
the table travels left or up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from shoptools.geometry.primitives import Area, Point, offset_line, polar_offset
from shoptools.measurement.parser import alt_value, measurement_string, parse_angle
from shoptools.patterns.enums import (
    DirectionLeftRight,
    DirectionUpDown,
    OffsetLeftRight,
    OffsetTopBottom,
    OperationAction,
)
from shoptools.patterns.operations import CutProfile, PatternOperation

if TYPE_CHECKING:
    from shoptools.configs.loader import ConfigProfile

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Workpiece
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class WorkpieceInfo:
    """Workpiece placement, material and ordered cuts.

    ``user_*`` fields are measurement strings.  ``area``,
    ``workspace_area``, ``thickness``, ``router_location`` and the
    ``alt_*`` display strings are derived by
    :func:`configure_from_user_values`; ``router_location`` is in
    machine coordinates.
    """

    user_length: str = ""
    user_width: str = ""
    user_depth: str = ""
    user_offset_x: str = ""
    user_offset_x_origin: OffsetLeftRight = OffsetLeftRight.NONE
    user_offset_y: str = ""
    user_offset_y_origin: OffsetTopBottom = OffsetTopBottom.NONE
    user_router_location_x: str = ""
    user_router_location_y: str = ""
    material_type_name: str = ""
    cuts: tuple[CutProfile, ...] = ()

    area: Area = Area()
    workspace_area: Area = Area()
    thickness: float = 0.0
    router_location: Point = Point()
    alt_length: str = ""
    alt_width: str = ""
    alt_depth: str = ""
    alt_offset_x: str = ""
    alt_offset_y: str = ""
    alt_router_location_x: str = ""
    alt_router_location_y: str = ""

    def with_cuts(self, cuts: tuple[CutProfile, ...] | list[CutProfile]) -> WorkpieceInfo:
        return replace(self, cuts=tuple(cuts))


def _alt(text: str, profile: ConfigProfile) -> str:
    return alt_value(measurement_string(text, profile.base_unit), text)


def configure_from_user_values(
    workpiece: WorkpieceInfo,
    profile: ConfigProfile,
) -> WorkpieceInfo:
    """Resolve the user-entered fields of *workpiece* into geometry.

    Parameters
    ----------
    workpiece : WorkpieceInfo
        Workpiece with ``user_*`` fields set.
    profile : ConfigProfile
        Supplies table size, units and travel directions.

    Returns
    -------
    WorkpieceInfo
        A new workpiece; *workpiece* is not modified.
    """
    workspace = profile.workspace_area()
    width = profile.to_millimeters(workpiece.user_length)
    height = profile.to_millimeters(workpiece.user_width)

    left = translate_offset_x(
        workspace,
        profile.to_millimeters(workpiece.user_offset_x),
        workpiece.user_offset_x_origin,
        profile,
        subject_width=width,
    )
    top = translate_offset_y(
        workspace,
        profile.to_millimeters(workpiece.user_offset_y),
        workpiece.user_offset_y_origin,
        profile,
        subject_height=height,
    )

    result = replace(
        workpiece,
        workspace_area=workspace,
        area=Area.from_size(left, top, width, height),
        thickness=profile.to_millimeters(workpiece.user_depth),
        router_location=Point(
            profile.to_millimeters(workpiece.user_router_location_x),
            profile.to_millimeters(workpiece.user_router_location_y),
        ),
        alt_length=_alt(workpiece.user_length, profile),
        alt_width=_alt(workpiece.user_width, profile),
        alt_depth=_alt(workpiece.user_depth, profile),
        alt_offset_x=_alt(workpiece.user_offset_x, profile),
        alt_offset_y=_alt(workpiece.user_offset_y, profile),
        alt_router_location_x=_alt(workpiece.user_router_location_x, profile),
        alt_router_location_y=_alt(workpiece.user_router_location_y, profile),
    )
    logger.debug(
        "Workpiece area %.3f,%.3f %.3fx%.3f mm, thickness %.3f mm",
        left, top, width, height, result.thickness,
    )
    return result


# ---------------------------------------------------------------------------
# Offset translation
# ---------------------------------------------------------------------------


def _direction_x(offset: float, profile: ConfigProfile) -> float:
    return -offset if profile.travel_x is DirectionLeftRight.LEFT else offset


def _direction_y(offset: float, profile: ConfigProfile) -> float:
    return -offset if profile.travel_y is DirectionUpDown.UP else offset


def translate_offset_x(
    area: Area,
    offset: float,
    origin: OffsetLeftRight,
    profile: ConfigProfile,
    subject_width: float = 0.0,
    relative: float | None = None,
) -> float:
    """Display X of an *offset* measured from *origin* within *area*.

    Parameters
    ----------
    area : Area
        Reference rectangle in display millimetres.
    offset : float
        Signed offset in millimetres.
    origin : OffsetLeftRight
        Reference the offset is measured from.
    profile : ConfigProfile
        Supplies travel direction and the machine transform.
    subject_width : float
        Width of the object being placed (0 for a point).
    relative : float | None
        Current display X for ``Relative``/``None``; the area's left
        edge when omitted.
    """
    shifted = _direction_x(offset, profile)
    if origin is OffsetLeftRight.ABSOLUTE:
        return profile.from_machine(Point(offset, 0.0)).x
    if origin is OffsetLeftRight.LEFT:
        return area.left + shifted
    if origin is OffsetLeftRight.RIGHT:
        return area.right - subject_width + shifted
    if origin is OffsetLeftRight.CENTER:
        return area.center.x + shifted - subject_width / 2.0
    if origin is OffsetLeftRight.LEFT_EDGE_TO_CENTER:
        return area.center.x + shifted
    if origin is OffsetLeftRight.RIGHT_EDGE_TO_CENTER:
        return area.center.x + shifted - subject_width
    base = area.left if relative is None else relative
    return base + shifted


def translate_offset_y(
    area: Area,
    offset: float,
    origin: OffsetTopBottom,
    profile: ConfigProfile,
    subject_height: float = 0.0,
    relative: float | None = None,
) -> float:
    """Display Y counterpart of :func:`translate_offset_x`."""
    shifted = _direction_y(offset, profile)
    if origin is OffsetTopBottom.ABSOLUTE:
        return profile.from_machine(Point(0.0, offset)).y
    if origin is OffsetTopBottom.TOP:
        return area.top + shifted
    if origin is OffsetTopBottom.BOTTOM:
        return area.bottom - subject_height + shifted
    if origin is OffsetTopBottom.CENTER:
        return area.center.y + shifted - subject_height / 2.0
    if origin is OffsetTopBottom.TOP_EDGE_TO_CENTER:
        return area.center.y + shifted
    if origin is OffsetTopBottom.BOTTOM_EDGE_TO_CENTER:
        return area.center.y + shifted - subject_height
    base = area.top if relative is None else relative
    return base + shifted


# ---------------------------------------------------------------------------
# Operation layout
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OperationGeometry:
    """Resolved start and end of one operation, display millimetres."""

    start: Point
    end: Point


def resolve_depth(
    operation: PatternOperation,
    workpiece: WorkpieceInfo,
    profile: ConfigProfile,
) -> float:
    """Target cutting depth in mm; empty means through the workpiece."""
    if not operation.depth.strip():
        return workpiece.thickness
    return profile.to_millimeters(operation.depth)


def _resolve_point(
    x_text: str,
    x_origin: OffsetLeftRight,
    y_text: str,
    y_origin: OffsetTopBottom,
    area: Area,
    profile: ConfigProfile,
    location: Point,
) -> Point:
    if x_text or x_origin is not OffsetLeftRight.NONE:
        x = translate_offset_x(
            area, profile.to_millimeters(x_text), x_origin, profile,
            relative=location.x,
        )
    else:
        x = location.x
    if y_text or y_origin is not OffsetTopBottom.NONE:
        y = translate_offset_y(
            area, profile.to_millimeters(y_text), y_origin, profile,
            relative=location.y,
        )
    else:
        y = location.y
    return Point(x, y)


def _has_offset(x_text: str, x_origin: OffsetLeftRight,
                y_text: str, y_origin: OffsetTopBottom) -> bool:
    return bool(
        x_text or y_text
        or x_origin is not OffsetLeftRight.NONE
        or y_origin is not OffsetTopBottom.NONE
    )


def _offset_point(op: PatternOperation, area: Area, profile: ConfigProfile,
                  location: Point) -> Point:
    return _resolve_point(
        op.offset_x, op.offset_x_origin, op.offset_y, op.offset_y_origin,
        area, profile, location,
    )


def _end_point(op: PatternOperation, area: Area, profile: ConfigProfile,
               start: Point) -> Point:
    if _has_offset(op.end_offset_x, op.end_offset_x_origin,
                   op.end_offset_y, op.end_offset_y_origin):
        return _resolve_point(
            op.end_offset_x, op.end_offset_x_origin,
            op.end_offset_y, op.end_offset_y_origin,
            area, profile, start,
        )
    if op.length.strip():
        return polar_offset(
            start, parse_angle(op.angle), profile.to_millimeters(op.length),
        )
    return start


def resolve_operation_geometry(
    operation: PatternOperation,
    workpiece: WorkpieceInfo,
    profile: ConfigProfile,
    location: Point,
    kerf_clearance: float = 0.0,
) -> OperationGeometry:
    """Lay out *operation* starting from the current tool *location*.

    Parameters
    ----------
    operation : PatternOperation
        Operation to resolve.
    workpiece : WorkpieceInfo
        Configured workpiece; offsets are measured against its ``area``.
    profile : ConfigProfile
        Units, travel directions, machine transform.
    location : Point
        Current tool location, display millimetres.
    kerf_clearance : float
        Sideways shift applied to Plot operations whose ``kerf`` is
        Left or Right.

    Returns
    -------
    OperationGeometry
        Where the operation starts and where it leaves the tool.  The
        end point becomes the next operation's relative reference.
    """
    area = workpiece.area
    action = operation.action

    if action is OperationAction.PLOT:
        op = operation
        if _has_offset(op.start_offset_x, op.start_offset_x_origin,
                       op.start_offset_y, op.start_offset_y_origin):
            start = _resolve_point(
                op.start_offset_x, op.start_offset_x_origin,
                op.start_offset_y, op.start_offset_y_origin,
                area, profile, location,
            )
        elif _has_offset(op.offset_x, op.offset_x_origin,
                         op.offset_y, op.offset_y_origin):
            start = _offset_point(op, area, profile, location)
        else:
            start = location
        end = _end_point(op, area, profile, start)
        if op.kerf is DirectionLeftRight.LEFT:
            start, end = offset_line(start, end, kerf_clearance)
        elif op.kerf is DirectionLeftRight.RIGHT:
            start, end = offset_line(start, end, -kerf_clearance)
        return OperationGeometry(start=start, end=end)

    if action is OperationAction.PLUNGE:
        point = _offset_point(operation, area, profile, location)
        return OperationGeometry(start=point, end=point)

    if action is OperationAction.TRANSIT:
        return OperationGeometry(
            start=location,
            end=_end_point(operation, area, profile, location),
        )

    return OperationGeometry(start=location, end=location)

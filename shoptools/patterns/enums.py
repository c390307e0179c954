"""Enumerations shared by the pattern model and the configuration profile.

Enum *values* are the spellings used in configuration and job documents
(``"LeftEdgeToCenter"``, ``"BottomLeft"``); :func:`parse_enum` accepts
them case-insensitively, with or without underscores, spaces or dashes,
and also accepts the Python member name.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TypeVar

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


# ---------------------------------------------------------------------------
# Operation vocabulary
# ---------------------------------------------------------------------------


class OperationAction(Enum):
    """What a pattern operation does to the workpiece."""

    NONE = "None"
    PLOT = "Plot"
    PLUNGE = "Plunge"
    TRANSIT = "Transit"


class PropertyDataType(Enum):
    """Value type of an entry in the operation-action-property catalog."""

    ANGLE_STRING = "AngleString"
    MEASUREMENT_STRING = "MeasurementString"
    STRING = "String"
    DIRECTION_LEFT_RIGHT = "DirectionLeftRightEnum"
    OFFSET_LEFT_RIGHT = "OffsetLeftRightEnum"
    OFFSET_TOP_BOTTOM = "OffsetTopBottomEnum"
    TOOL_NAME = "ToolName"
    PLOT_ACTION = "PlotActionEnum"


# ---------------------------------------------------------------------------
# Directions and origins
# ---------------------------------------------------------------------------


class DirectionLeftRight(Enum):
    NONE = "None"
    CENTER = "Center"
    LEFT = "Left"
    RIGHT = "Right"


class DirectionUpDown(Enum):
    NONE = "None"
    UP = "Up"
    DOWN = "Down"


class OffsetLeftRight(Enum):
    """Horizontal reference an X offset is measured from."""

    NONE = "None"
    LEFT = "Left"
    CENTER = "Center"
    LEFT_EDGE_TO_CENTER = "LeftEdgeToCenter"
    RIGHT_EDGE_TO_CENTER = "RightEdgeToCenter"
    RIGHT = "Right"
    RELATIVE = "Relative"
    ABSOLUTE = "Absolute"


class OffsetTopBottom(Enum):
    """Vertical reference a Y offset is measured from."""

    NONE = "None"
    TOP = "Top"
    CENTER = "Center"
    TOP_EDGE_TO_CENTER = "TopEdgeToCenter"
    BOTTOM_EDGE_TO_CENTER = "BottomEdgeToCenter"
    BOTTOM = "Bottom"
    RELATIVE = "Relative"
    ABSOLUTE = "Absolute"


class OriginLocation(Enum):
    NONE = "None"
    BOTTOM = "Bottom"
    BOTTOM_LEFT = "BottomLeft"
    BOTTOM_RIGHT = "BottomRight"
    CENTER = "Center"
    LEFT = "Left"
    RIGHT = "Right"
    TOP = "Top"
    TOP_LEFT = "TopLeft"
    TOP_RIGHT = "TopRight"


class TemplateOrientation(Enum):
    NONE = "None"
    EDGE = "Edge"
    RELATIVE = "Relative"
    WORKPIECE = "Workpiece"
    WORKSPACE = "Workspace"


class DisplayUnits(Enum):
    METRIC = "Metric"
    US = "US"


class ZPosition(Enum):
    """Named Z heights resolved by the table-relative Z function."""

    FULLY_EXTENDED = "FullyExtended"
    FULLY_RETRACTED = "FullyRetracted"
    TOP_OF_MATERIAL = "TopOfMaterial"


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _fold(text: str) -> str:
    return "".join(ch for ch in text.lower() if ch not in " _-")


def parse_enum(cls: type[E], value: object, default: E | None = None) -> E | None:
    """Resolve *value* to a member of *cls*.

    Parameters
    ----------
    cls : type[Enum]
        Target enumeration.
    value : object
        A member of *cls*, or text naming one by value or member name.
    default : Enum | None
        Returned when *value* is empty or unrecognised.

    Returns
    -------
    Enum | None
        The matching member, or *default*.
    """
    if isinstance(value, cls):
        return value
    if value is None:
        return default
    key = _fold(str(value))
    if not key:
        return default
    for member in cls:
        if _fold(member.value) == key or _fold(member.name) == key:
            return member
    logger.debug("%r is not a %s member", value, cls.__name__)
    return default

"""Operation-action-property catalog and the property dispatch table.

The catalog names every editable operation parameter, its value type,
and the actions it applies to.  Reading and writing a parameter by its
catalog name goes through :data:`PROPERTY_ACCESSORS`, a table built once
at import that maps the catalog spelling (``"EndOffsetXOrigin"``) to the
dataclass field (``end_offset_x_origin``) and the enum type, if any, the
text value must parse into.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from shoptools.patterns.enums import (
    DirectionLeftRight,
    OffsetLeftRight,
    OffsetTopBottom,
    OperationAction,
    PropertyDataType,
    parse_enum,
)
from shoptools.patterns.operations import PatternOperation

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Catalog entries
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OperationActionProperty:
    """One entry of the operation-action-property catalog.

    Parameters
    ----------
    property_name : str
        Catalog spelling, e.g. ``"StartOffsetX"``.
    data_type : PropertyDataType
        How working values are converted when written back.
    include_actions : frozenset[OperationAction]
        Actions the property applies to.  Empty means every action not
        listed in *exclude_actions*.
    exclude_actions : frozenset[OperationAction]
        Actions the property never applies to.
    internal : bool
        Internal properties are never offered as variables.
    """

    property_name: str
    data_type: PropertyDataType = PropertyDataType.STRING
    include_actions: frozenset[OperationAction] = frozenset()
    exclude_actions: frozenset[OperationAction] = frozenset()
    internal: bool = False
    sort_index: int = 0

    def applies_to(self, action: OperationAction) -> bool:
        if action in self.exclude_actions:
            return False
        return not self.include_actions or action in self.include_actions


# ---------------------------------------------------------------------------
# Dispatch table
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PropertyAccessor:
    """Field name and optional enum type behind a catalog property."""

    field_name: str
    enum_type: type[Enum] | None = None


PROPERTY_ACCESSORS: dict[str, PropertyAccessor] = {
    "Action": PropertyAccessor("action", OperationAction),
    "Angle": PropertyAccessor("angle"),
    "Depth": PropertyAccessor("depth"),
    "EndOffsetX": PropertyAccessor("end_offset_x"),
    "EndOffsetXOrigin": PropertyAccessor("end_offset_x_origin", OffsetLeftRight),
    "EndOffsetY": PropertyAccessor("end_offset_y"),
    "EndOffsetYOrigin": PropertyAccessor("end_offset_y_origin", OffsetTopBottom),
    "Kerf": PropertyAccessor("kerf", DirectionLeftRight),
    "Length": PropertyAccessor("length"),
    "OffsetX": PropertyAccessor("offset_x"),
    "OffsetXOrigin": PropertyAccessor("offset_x_origin", OffsetLeftRight),
    "OffsetY": PropertyAccessor("offset_y"),
    "OffsetYOrigin": PropertyAccessor("offset_y_origin", OffsetTopBottom),
    "OperationId": PropertyAccessor("operation_id"),
    "OperationName": PropertyAccessor("operation_name"),
    "StartOffsetX": PropertyAccessor("start_offset_x"),
    "StartOffsetXOrigin": PropertyAccessor(
        "start_offset_x_origin", OffsetLeftRight,
    ),
    "StartOffsetY": PropertyAccessor("start_offset_y"),
    "StartOffsetYOrigin": PropertyAccessor(
        "start_offset_y_origin", OffsetTopBottom,
    ),
    "Tool": PropertyAccessor("tool"),
}

_ACCESSORS_FOLDED: dict[str, PropertyAccessor] = {
    name.lower(): accessor for name, accessor in PROPERTY_ACCESSORS.items()
}


def find_accessor(property_name: str) -> PropertyAccessor | None:
    """Case-insensitive lookup in :data:`PROPERTY_ACCESSORS`."""
    return _ACCESSORS_FOLDED.get(property_name.strip().lower())


def get_property(operation: PatternOperation, property_name: str) -> str:
    """Text value of *property_name* on *operation*.

    Enum-valued properties render as their document spelling.  Unknown
    property names read as ``""``.
    """
    accessor = find_accessor(property_name)
    if accessor is None:
        logger.debug("Unknown operation property %r", property_name)
        return ""
    value = getattr(operation, accessor.field_name)
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def set_property(
    operation: PatternOperation,
    property_name: str,
    value: object,
) -> PatternOperation:
    """Return a copy of *operation* with *property_name* set to *value*.

    Text destined for an enum field is parsed case-insensitively; text
    that names no member leaves the operation unchanged, as does an
    unknown property name.
    """
    accessor = find_accessor(property_name)
    if accessor is None:
        logger.debug("Unknown operation property %r; not set", property_name)
        return operation
    if accessor.enum_type is not None:
        member = parse_enum(accessor.enum_type, value)
        if member is None:
            logger.debug(
                "%r is not a valid %s; %s unchanged",
                value, accessor.enum_type.__name__, property_name,
            )
            return operation
        return operation.with_values(**{accessor.field_name: member})
    text = "" if value is None else str(value)
    return operation.with_values(**{accessor.field_name: text})


# ---------------------------------------------------------------------------
# Catalog helpers
# ---------------------------------------------------------------------------


def find_property(
    catalog: tuple[OperationActionProperty, ...] | list[OperationActionProperty],
    property_name: str,
) -> OperationActionProperty | None:
    key = property_name.strip().lower()
    for entry in catalog:
        if entry.property_name.lower() == key:
            return entry
    return None


def properties_for(
    catalog: tuple[OperationActionProperty, ...] | list[OperationActionProperty],
    action: OperationAction,
) -> list[OperationActionProperty]:
    """Catalog entries applicable to *action*, in ``sort_index`` order."""
    matches = [entry for entry in catalog if entry.applies_to(action)]
    return sorted(matches, key=lambda entry: entry.sort_index)


def default_catalog() -> tuple[OperationActionProperty, ...]:
    """Catalog used when a profile does not define its own."""
    plot = OperationAction.PLOT
    plunge = OperationAction.PLUNGE
    transit = OperationAction.TRANSIT
    measure = PropertyDataType.MEASUREMENT_STRING
    entries = [
        ("Action", PropertyDataType.PLOT_ACTION, (), True),
        ("OperationId", PropertyDataType.STRING, (), True),
        ("OperationName", PropertyDataType.STRING, (), True),
        ("Tool", PropertyDataType.TOOL_NAME, (plot, plunge), False),
        ("OffsetX", measure, (plot, plunge), False),
        ("OffsetXOrigin", PropertyDataType.OFFSET_LEFT_RIGHT, (plot, plunge), False),
        ("OffsetY", measure, (plot, plunge), False),
        ("OffsetYOrigin", PropertyDataType.OFFSET_TOP_BOTTOM, (plot, plunge), False),
        ("StartOffsetX", measure, (plot,), False),
        ("StartOffsetXOrigin", PropertyDataType.OFFSET_LEFT_RIGHT, (plot,), False),
        ("StartOffsetY", measure, (plot,), False),
        ("StartOffsetYOrigin", PropertyDataType.OFFSET_TOP_BOTTOM, (plot,), False),
        ("EndOffsetX", measure, (plot, transit), False),
        ("EndOffsetXOrigin", PropertyDataType.OFFSET_LEFT_RIGHT, (plot, transit), False),
        ("EndOffsetY", measure, (plot, transit), False),
        ("EndOffsetYOrigin", PropertyDataType.OFFSET_TOP_BOTTOM, (plot, transit), False),
        ("Angle", PropertyDataType.ANGLE_STRING, (plot, transit), False),
        ("Length", measure, (plot, transit), False),
        ("Kerf", PropertyDataType.DIRECTION_LEFT_RIGHT, (plot,), False),
        ("Depth", measure, (plot, plunge), False),
    ]
    return tuple(
        OperationActionProperty(
            property_name=name,
            data_type=data_type,
            include_actions=frozenset(actions),
            internal=internal,
            sort_index=index,
        )
        for index, (name, data_type, actions, internal) in enumerate(entries)
    )

"""
Pattern / operation model.

Defines pattern operations, templates and placed cut profiles as
immutable dataclasses, the operation-action-property catalog with its
dispatch table, editable operation variables, and the workpiece layout
that resolves operation offsets into table coordinates.

All resolved coordinates are in millimetres, display-relative.
"""

from shoptools.patterns.catalog import (
    OperationActionProperty,
    default_catalog,
    get_property,
    properties_for,
    set_property,
)
from shoptools.patterns.enums import (
    DirectionLeftRight,
    DirectionUpDown,
    DisplayUnits,
    OffsetLeftRight,
    OffsetTopBottom,
    OperationAction,
    OriginLocation,
    PropertyDataType,
    TemplateOrientation,
    ZPosition,
    parse_enum,
)
from shoptools.patterns.operations import CutProfile, PatternOperation, PatternTemplate
from shoptools.patterns.variables import (
    OperationVariable,
    apply_variables,
    collect_variables,
)
from shoptools.patterns.workpiece import (
    OperationGeometry,
    WorkpieceInfo,
    configure_from_user_values,
    resolve_depth,
    resolve_operation_geometry,
    translate_offset_x,
    translate_offset_y,
)

__all__ = [
    "CutProfile",
    "DirectionLeftRight",
    "DirectionUpDown",
    "DisplayUnits",
    "OffsetLeftRight",
    "OffsetTopBottom",
    "OperationAction",
    "OperationActionProperty",
    "OperationGeometry",
    "OperationVariable",
    "OriginLocation",
    "PatternOperation",
    "PatternTemplate",
    "PropertyDataType",
    "TemplateOrientation",
    "WorkpieceInfo",
    "ZPosition",
    "apply_variables",
    "collect_variables",
    "configure_from_user_values",
    "default_catalog",
    "get_property",
    "parse_enum",
    "properties_for",
    "resolve_depth",
    "resolve_operation_geometry",
    "set_property",
    "translate_offset_x",
    "translate_offset_y",
]

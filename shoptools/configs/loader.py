"""Configuration profile loader.

Loads and validates ``profile.yaml`` into typed, frozen dataclasses:
table geometry and axis conventions, material feed rates, the
operation-action-property catalog, tool-type definitions, user tools and
pattern templates.  JSON documents load as well (JSON is a YAML subset).

Lengths stay as the **measurement strings** the user configured
(``"48in"``, ``"1220mm"``) and are converted with :meth:`ConfigProfile.to_millimeters`,
which applies the profile's display units to unit-less numbers.

Coordinates
-----------
*Display* coordinates have their origin at the top-left corner of the
table with +X right and +Y down.  *Machine* coordinates follow the
configured ``xy_origin`` and ``travel_x`` / ``travel_y``.
:meth:`ConfigProfile.to_machine` and :meth:`ConfigProfile.from_machine`
convert between them.

Usage::

    from shoptools.configs.loader import load_config
    profile = load_config()                       # default path
    profile = load_config("/shop/router.yaml")    # explicit path
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from shoptools.geometry.primitives import Area, Point
from shoptools.measurement.parser import measure_millimeters
from shoptools.patterns.catalog import (
    PROPERTY_ACCESSORS,
    OperationActionProperty,
    default_catalog,
    find_accessor,
    set_property,
)
from shoptools.patterns.enums import (
    DirectionLeftRight,
    DirectionUpDown,
    DisplayUnits,
    OperationAction,
    OriginLocation,
    PropertyDataType,
    TemplateOrientation,
    ZPosition,
    parse_enum,
)
from shoptools.patterns.operations import PatternOperation, PatternTemplate
from shoptools.utils.fs import load_yaml

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Dataclasses -- mirror the YAML structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MaterialType:
    """Workpiece material and the feed rate it is cut at.

    ``feed_rate`` is a measurement string per minute (``"1500"``,
    ``"60in"``); unit-less values use the profile's base unit.
    """

    name: str
    feed_rate: str = ""


@dataclass(frozen=True)
class UserTool:
    """A tool defined by the user.  ``properties`` holds measurement
    strings keyed by published property name (``Diameter``, ...)."""

    tool_name: str
    tool_type: str = ""
    tool_id: str = ""
    properties: dict[str, str] = field(default_factory=dict)

    @property
    def diameter(self) -> str:
        for key, value in self.properties.items():
            if key.lower() == "diameter":
                return value
        return ""


@dataclass(frozen=True)
class ToolTypeDefinition:
    """Static description of a tool type and the properties it publishes."""

    tool_type: str
    supported: bool = True
    published_properties: tuple[str, ...] = ()


@dataclass(frozen=True)
class ConfigProfile:
    """Complete profile loaded from ``profile.yaml``.

    Immutable for the duration of a render; passed explicitly into the
    track builder and the G-code renderer.
    """

    display_units: DisplayUnits = DisplayUnits.METRIC
    x_dimension: str = ""
    y_dimension: str = ""
    depth: str = ""
    travel_x: DirectionLeftRight = DirectionLeftRight.RIGHT
    travel_y: DirectionUpDown = DirectionUpDown.DOWN
    travel_z: DirectionUpDown = DirectionUpDown.UP
    xy_origin: OriginLocation = OriginLocation.TOP_LEFT
    z_origin: OriginLocation = OriginLocation.BOTTOM
    general_cutting_tool: str = ""
    material_types: tuple[MaterialType, ...] = ()
    operation_action_properties: tuple[OperationActionProperty, ...] = ()
    tool_type_definitions: tuple[ToolTypeDefinition, ...] = ()
    user_tools: tuple[UserTool, ...] = ()
    pattern_templates: tuple[PatternTemplate, ...] = ()

    # -- Units --------------------------------------------------------------

    @property
    def base_unit(self) -> str:
        """``"mm"`` for metric profiles, ``"in"`` for US profiles."""
        return "in" if self.display_units is DisplayUnits.US else "mm"

    def to_millimeters(self, text: str | None) -> float:
        """Parse *text* with the profile's base unit as default."""
        return measure_millimeters(text, self.base_unit)

    @property
    def table_width(self) -> float:
        return self.to_millimeters(self.x_dimension)

    @property
    def table_height(self) -> float:
        return self.to_millimeters(self.y_dimension)

    def workspace_area(self) -> Area:
        """Full table in display coordinates."""
        return Area.from_size(0.0, 0.0, self.table_width, self.table_height)

    # -- Lookups ------------------------------------------------------------

    def find_user_tool(self, name: str) -> UserTool | None:
        key = name.strip().lower()
        if not key:
            return None
        for tool in self.user_tools:
            if tool.tool_name.lower() == key:
                return tool
        return None

    def find_material(self, name: str) -> MaterialType | None:
        """First material whose name matches *name* case-insensitively."""
        key = name.strip().lower()
        if not key:
            return None
        for material in self.material_types:
            if material.name.lower() == key:
                return material
        return None

    def find_template(self, name: str) -> PatternTemplate | None:
        key = name.strip().lower()
        for template in self.pattern_templates:
            if template.template_name.lower() == key:
                return template
        return None

    # -- Coordinates --------------------------------------------------------

    def _axis_scale(self) -> tuple[float, float]:
        sx = -1.0 if self.travel_x is DirectionLeftRight.LEFT else 1.0
        sy = -1.0 if self.travel_y is DirectionUpDown.UP else 1.0
        return sx, sy

    def _origin_translation(self) -> tuple[float, float]:
        """Display position of the machine origin."""
        width = self.table_width
        height = self.table_height
        origin = self.xy_origin
        if origin in (OriginLocation.LEFT, OriginLocation.TOP_LEFT,
                      OriginLocation.BOTTOM_LEFT, OriginLocation.NONE):
            tx = 0.0
        elif origin in (OriginLocation.RIGHT, OriginLocation.TOP_RIGHT,
                        OriginLocation.BOTTOM_RIGHT):
            tx = width
        else:
            tx = width / 2.0
        if origin in (OriginLocation.TOP, OriginLocation.TOP_LEFT,
                      OriginLocation.TOP_RIGHT, OriginLocation.NONE):
            ty = 0.0
        elif origin in (OriginLocation.BOTTOM, OriginLocation.BOTTOM_LEFT,
                        OriginLocation.BOTTOM_RIGHT):
            ty = height
        else:
            ty = height / 2.0
        return tx, ty

    def from_machine(self, point: Point) -> Point:
        """Convert a machine coordinate to display coordinates."""
        sx, sy = self._axis_scale()
        tx, ty = self._origin_translation()
        return Point(point.x * sx + tx, point.y * sy + ty)

    def to_machine(self, point: Point) -> Point:
        """Convert a display coordinate to machine coordinates."""
        sx, sy = self._axis_scale()
        tx, ty = self._origin_translation()
        return Point((point.x - tx) * sx, (point.y - ty) * sy)

    def z_position(
        self,
        kind: ZPosition,
        thickness: float,
        depth_offset: float = 0.0,
    ) -> float:
        """Absolute machine Z for a named height.

        Parameters
        ----------
        kind : ZPosition
            Fully extended, fully retracted, or top of material.
        thickness : float
            Workpiece thickness in mm.
        depth_offset : float
            Distance below *kind* in mm; ``TOP_OF_MATERIAL`` with the
            cutting depth gives the plunge target.

        Returns
        -------
        float
            Z coordinate.  0.0 when the table's Z reach is not configured.
        """
        reach = self.to_millimeters(self.depth)
        if reach == 0.0:
            return 0.0

        origin = self.z_origin
        down = self.travel_z is DirectionUpDown.DOWN
        if origin in (OriginLocation.BOTTOM, OriginLocation.BOTTOM_LEFT,
                      OriginLocation.BOTTOM_RIGHT):
            extended, retracted = 0.0, (-reach if down else reach)
            top = -thickness if down else thickness
        elif origin in (OriginLocation.TOP, OriginLocation.TOP_LEFT,
                        OriginLocation.TOP_RIGHT):
            extended, retracted = (reach if down else -reach), 0.0
            top = reach - thickness if down else -reach + thickness
        else:
            extent = reach / 2.0
            extended = extent if down else -extent
            retracted = -extent if down else extent
            top = extent - thickness if down else -extent + thickness

        if kind is ZPosition.FULLY_EXTENDED:
            result = extended
        elif kind is ZPosition.FULLY_RETRACTED:
            result = retracted
        else:
            result = top
        # Z grows toward the table when travel is down.
        return result + depth_offset if down else result - depth_offset


# ---------------------------------------------------------------------------
# Internal parsing helpers
# ---------------------------------------------------------------------------


def _enum(cls, raw: Any, default, what: str):
    if raw is None or raw == "":
        return default
    member = parse_enum(cls, raw)
    if member is None:
        raise ConfigError(f"Invalid {what}: {raw!r}")
    return member


def _text(raw: Any) -> str:
    return "" if raw is None else str(raw)


def _parse_material(data: dict[str, Any]) -> MaterialType:
    return MaterialType(
        name=str(data["name"]),
        feed_rate=_text(data.get("feed_rate", "")),
    )


def _parse_user_tool(data: dict[str, Any]) -> UserTool:
    properties = data.get("properties") or {}
    if not isinstance(properties, dict):
        raise ConfigError(
            f"Tool {data.get('tool_name')!r} properties must be a mapping, "
            f"got {type(properties).__name__}"
        )
    return UserTool(
        tool_name=str(data["tool_name"]),
        tool_type=_text(data.get("tool_type", "")),
        tool_id=_text(data.get("tool_id", "")),
        properties={str(k): _text(v) for k, v in properties.items()},
    )


def _parse_tool_type(data: dict[str, Any]) -> ToolTypeDefinition:
    return ToolTypeDefinition(
        tool_type=str(data["tool_type"]),
        supported=bool(data.get("supported", True)),
        published_properties=tuple(
            str(x) for x in data.get("published_properties", ())
        ),
    )


def _parse_actions(raw: Any, what: str) -> frozenset[OperationAction]:
    actions = set()
    for item in raw or ():
        if not item:
            continue
        actions.add(_enum(OperationAction, item, None, what))
    return frozenset(actions)


def _parse_action_property(
    index: int, data: dict[str, Any],
) -> OperationActionProperty:
    name = str(data["property_name"])
    if find_accessor(name) is None:
        raise ConfigError(f"Unknown operation property {name!r}")
    return OperationActionProperty(
        property_name=name,
        data_type=_enum(
            PropertyDataType, data.get("data_type"), PropertyDataType.STRING,
            f"data_type for {name}",
        ),
        include_actions=_parse_actions(
            data.get("include_actions"), f"include action for {name}",
        ),
        exclude_actions=_parse_actions(
            data.get("exclude_actions"), f"exclude action for {name}",
        ),
        internal=bool(data.get("internal", False)),
        sort_index=int(data.get("sort_index", index)),
    )


def parse_operation(data: dict[str, Any]) -> PatternOperation:
    """Build a :class:`PatternOperation` from a raw mapping.

    Keys may be dataclass field names (``end_offset_x``) or catalog
    property names (``EndOffsetX``).  ``hidden_variables`` is a list of
    catalog property names.

    Raises
    ------
    ConfigError
        On an unknown key or an action that names no operation action.
    """
    operation = PatternOperation()
    for key, raw in data.items():
        if key == "hidden_variables":
            operation = operation.with_values(
                hidden_variables=frozenset(str(x) for x in raw or ()),
            )
            continue
        if key in _FIELD_TO_PROPERTY:
            property_name = _FIELD_TO_PROPERTY[key]
        elif find_accessor(key) is not None:
            property_name = key
        else:
            raise ConfigError(f"Unknown operation key {key!r}")
        updated = set_property(operation, property_name, raw)
        if updated is operation and _text(raw):
            raise ConfigError(f"Invalid value {raw!r} for operation {key!r}")
        operation = updated
    return operation


_FIELD_TO_PROPERTY: dict[str, str] = {
    accessor.field_name: name for name, accessor in PROPERTY_ACCESSORS.items()
}


def _parse_template(data: dict[str, Any]) -> PatternTemplate:
    name = str(data["template_name"])
    operations = tuple(
        parse_operation(item) for item in data.get("operations") or ()
    )
    return PatternTemplate(
        template_name=name,
        pattern_template_id=_text(data.get("pattern_template_id", "")),
        operations=operations,
        shared_variables=tuple(str(x) for x in data.get("shared_variables", ())),
        tool_sequence_strict=bool(data.get("tool_sequence_strict", False)),
        orientation=_enum(
            TemplateOrientation, data.get("orientation"),
            TemplateOrientation.NONE, f"orientation for template {name}",
        ),
        pattern_length=_text(data.get("pattern_length", "")),
        pattern_width=_text(data.get("pattern_width", "")),
        remarks=tuple(str(x) for x in data.get("remarks", ())),
    )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _check_unique(names: list[str], what: str) -> None:
    seen: set[str] = set()
    for name in names:
        key = name.lower()
        if key in seen:
            raise ConfigError(f"Duplicate {what} name: {name!r}")
        seen.add(key)


def _validate_config(cfg: ConfigProfile) -> None:
    """Validate cross-field consistency.

    Raises
    ------
    ConfigError
        On any invalid combination.
    """
    if cfg.table_width <= 0 or cfg.table_height <= 0:
        raise ConfigError(
            f"Table dimensions must be positive, got "
            f"x={cfg.x_dimension!r} y={cfg.y_dimension!r}"
        )
    if cfg.to_millimeters(cfg.depth) < 0:
        raise ConfigError(f"Table depth must not be negative: {cfg.depth!r}")

    _check_unique([t.tool_name for t in cfg.user_tools], "tool")
    _check_unique([t.template_name for t in cfg.pattern_templates], "template")

    if cfg.general_cutting_tool and cfg.find_user_tool(
        cfg.general_cutting_tool,
    ) is None:
        logger.warning(
            "General cutting tool %r is not a defined user tool; "
            "operations without a tool will be skipped",
            cfg.general_cutting_tool,
        )

    types = {t.tool_type.lower(): t for t in cfg.tool_type_definitions}
    for tool in cfg.user_tools:
        definition = types.get(tool.tool_type.lower())
        if types and definition is None:
            logger.warning(
                "Tool %r has unknown tool type %r", tool.tool_name, tool.tool_type,
            )
        elif definition is not None:
            if not definition.supported:
                logger.warning(
                    "Tool %r uses unsupported tool type %r",
                    tool.tool_name, definition.tool_type,
                )
            published = {p.lower() for p in definition.published_properties}
            if published:
                extra = [k for k in tool.properties if k.lower() not in published]
                if extra:
                    logger.warning(
                        "Tool %r sets properties not published by %r: %s",
                        tool.tool_name, definition.tool_type, ", ".join(extra),
                    )
        if cfg.to_millimeters(tool.diameter) <= 0:
            logger.warning("Tool %r has no usable diameter", tool.tool_name)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(path: str | Path | None = None) -> ConfigProfile:
    """Load and validate a configuration profile.

    Parameters
    ----------
    path : str | Path | None
        Path to a YAML or JSON profile.  ``None`` loads the default
        ``profile.yaml`` shipped alongside this module.

    Returns
    -------
    ConfigProfile
        Fully validated, frozen profile.

    Raises
    ------
    ConfigError
        If the file is malformed or any field is missing or fails
        validation.
    FileNotFoundError
        If *path* does not exist.
    """
    if path is None:
        path = Path(__file__).parent / "profile.yaml"
    else:
        path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading configuration from %s", path)

    try:
        data: dict[str, Any] = load_yaml(path)
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed configuration file {path}: {e}") from e
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")
    if not isinstance(data, dict):
        raise ConfigError(
            f"Configuration file {path} must hold a mapping, "
            f"got {type(data).__name__}"
        )

    try:
        # -- table ----------------------------------------------------------
        table = data["table"]
        display_units = _enum(
            DisplayUnits, data.get("display_units"), DisplayUnits.METRIC,
            "display_units",
        )

        # -- catalog --------------------------------------------------------
        raw_catalog = data.get("operation_action_properties")
        if raw_catalog:
            catalog = tuple(
                _parse_action_property(i, item)
                for i, item in enumerate(raw_catalog)
            )
        else:
            catalog = default_catalog()

        config = ConfigProfile(
            display_units=display_units,
            x_dimension=_text(table["x_dimension"]),
            y_dimension=_text(table["y_dimension"]),
            depth=_text(table.get("depth", "")),
            travel_x=_enum(
                DirectionLeftRight, table.get("travel_x"),
                DirectionLeftRight.RIGHT, "travel_x",
            ),
            travel_y=_enum(
                DirectionUpDown, table.get("travel_y"),
                DirectionUpDown.DOWN, "travel_y",
            ),
            travel_z=_enum(
                DirectionUpDown, table.get("travel_z"),
                DirectionUpDown.UP, "travel_z",
            ),
            xy_origin=_enum(
                OriginLocation, table.get("xy_origin"),
                OriginLocation.TOP_LEFT, "xy_origin",
            ),
            z_origin=_enum(
                OriginLocation, table.get("z_origin"),
                OriginLocation.BOTTOM, "z_origin",
            ),
            general_cutting_tool=_text(data.get("general_cutting_tool", "")),
            material_types=tuple(
                _parse_material(m) for m in data.get("material_types") or ()
            ),
            operation_action_properties=catalog,
            tool_type_definitions=tuple(
                _parse_tool_type(t) for t in data.get("tool_type_definitions") or ()
            ),
            user_tools=tuple(
                _parse_user_tool(t) for t in data.get("user_tools") or ()
            ),
            pattern_templates=tuple(
                _parse_template(t) for t in data.get("pattern_templates") or ()
            ),
        )

        _validate_config(config)
        logger.info(
            "Configuration loaded: %d tools, %d materials, %d templates",
            len(config.user_tools),
            len(config.material_types),
            len(config.pattern_templates),
        )
        return config

    except KeyError as exc:
        raise ConfigError(
            f"Missing required configuration key: {exc}"
        ) from exc
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigError(
            f"Invalid configuration value: {exc}"
        ) from exc

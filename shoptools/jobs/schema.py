"""Job document schema and loading.

A job document (``job.v1``) names the workpiece, its material and the
ordered list of cuts to make, each cut being a pattern template from the
configuration profile plus a start position and variable values::

    schema: job.v1
    material: Oak
    workpiece:
      length: 600
      width: 300
      thickness: 19
      offset_x: 0
      offset_x_origin: left
      offset_y: 0
      offset_y_origin: top
    cuts:
      - template: Shelf Pin Holes
        start_x: 37
        start_y: 50
        variables:
          Depth: 10

Measurements are measurement strings in the profile's base unit unless
they carry their own unit (``"3/4in"``); bare numbers are accepted.
Cut start positions are measured from the workpiece's top-left corner.

Validation uses pydantic so a malformed document fails fast with the
offending key in the message.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from shoptools.geometry.primitives import Point
from shoptools.patterns.enums import OffsetLeftRight, OffsetTopBottom, parse_enum
from shoptools.patterns.operations import CutProfile
from shoptools.patterns.variables import apply_variables, collect_variables
from shoptools.patterns.workpiece import WorkpieceInfo, configure_from_user_values
from shoptools.utils import fs

if TYPE_CHECKING:
    from shoptools.configs.loader import ConfigProfile

logger = logging.getLogger(__name__)


class JobError(Exception):
    """Raised when a job document is invalid or cannot be applied."""

    pass


def _measurement(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, bool):
        raise ValueError(f"Expected a measurement, got {v!r}")
    if isinstance(v, (int, float)):
        return repr(v) if isinstance(v, float) else str(v)
    if isinstance(v, str):
        return v.strip()
    raise ValueError(f"Expected a measurement string or number, got {type(v).__name__}")


# ============================================================================
# JOB SCHEMA V1
# ============================================================================

class WorkpieceSpec(BaseModel):
    """Workpiece size and placement on the table."""
    length: str = Field(..., description="Size along X")
    width: str = Field(..., description="Size along Y")
    thickness: str = Field(..., description="Material thickness")
    offset_x: str = Field("0", description="X offset of the workpiece")
    offset_x_origin: str = Field("left", description="Reference for offset_x")
    offset_y: str = Field("0", description="Y offset of the workpiece")
    offset_y_origin: str = Field("top", description="Reference for offset_y")
    router_x: str = Field("0", description="Router start X, machine coordinates")
    router_y: str = Field("0", description="Router start Y, machine coordinates")

    @field_validator(
        'length', 'width', 'thickness', 'offset_x', 'offset_y', 'router_x', 'router_y',
        mode='before',
    )
    @classmethod
    def coerce_measurement(cls, v: Any) -> str:
        return _measurement(v)

    @field_validator('offset_x_origin')
    @classmethod
    def validate_x_origin(cls, v: str) -> str:
        if parse_enum(OffsetLeftRight, v) is None:
            allowed = ", ".join(m.value for m in OffsetLeftRight)
            raise ValueError(f"offset_x_origin must be one of {allowed}, got '{v}'")
        return v

    @field_validator('offset_y_origin')
    @classmethod
    def validate_y_origin(cls, v: str) -> str:
        if parse_enum(OffsetTopBottom, v) is None:
            allowed = ", ".join(m.value for m in OffsetTopBottom)
            raise ValueError(f"offset_y_origin must be one of {allowed}, got '{v}'")
        return v


class JobCut(BaseModel):
    """One placed pattern template."""
    template: str = Field(..., description="Pattern template name")
    start_x: Optional[str] = Field(None, description="Start X from the workpiece's left edge")
    start_y: Optional[str] = Field(None, description="Start Y from the workpiece's top edge")
    variables: Dict[str, str] = Field(default_factory=dict,
                                      description="Variable values by name")

    @field_validator('template')
    @classmethod
    def validate_template(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Cut template name must be non-empty")
        return v.strip()

    @field_validator('start_x', 'start_y', mode='before')
    @classmethod
    def coerce_start(cls, v: Any) -> Optional[str]:
        return None if v is None else _measurement(v)

    @field_validator('variables', mode='before')
    @classmethod
    def coerce_variables(cls, v: Any) -> Dict[str, str]:
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError(f"variables must be a mapping, got {type(v).__name__}")
        return {str(k): _measurement(val) for k, val in v.items()}


class JobV1(BaseModel):
    """Job schema v1 (one workpiece and its cuts)."""
    model_config = ConfigDict(populate_by_name=True)

    schema_version: str = Field("job.v1", alias="schema", description="Schema version")
    material: str = Field("", description="Material type name")
    workpiece: WorkpieceSpec
    cuts: List[JobCut] = Field(default_factory=list, description="Ordered cuts")

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "job.v1":
            raise ValueError(f"Expected schema 'job.v1', got '{v}'")
        return v


# ============================================================================
# PUBLIC API
# ============================================================================

def validate_job(data: Dict[str, Any]) -> JobV1:
    """Validate a parsed job document.

    Raises
    ------
    JobError
        If validation fails.
    """
    if not isinstance(data, dict):
        raise JobError(f"Job document must be a mapping, got {type(data).__name__}")
    try:
        return JobV1(**data)
    except ValidationError as e:
        raise JobError(f"Job validation failed: {e}") from e


def _cut_from_entry(
    entry: JobCut,
    index: int,
    workpiece: WorkpieceInfo,
    profile: "ConfigProfile",
) -> CutProfile:
    template = profile.find_template(entry.template)
    if template is None:
        known = ", ".join(t.template_name for t in profile.pattern_templates)
        raise JobError(
            f"Cut {index}: unknown pattern template '{entry.template}' (known: {known})"
        )

    start: Optional[Point] = None
    if entry.start_x is not None or entry.start_y is not None:
        start = Point(
            workpiece.area.left + profile.to_millimeters(entry.start_x),
            workpiece.area.top + profile.to_millimeters(entry.start_y),
        )
    cut = CutProfile.from_template(template, start_location=start)
    if not entry.variables:
        return cut

    catalog = profile.operation_action_properties
    variables = collect_variables(cut.operations, catalog, cut.shared_variables)
    for name, value in entry.variables.items():
        key = name.strip().lower()
        matches = [v for v in variables if v.display_name.lower() == key]
        if not matches:
            matches = [v for v in variables if v.base_name.lower() == key]
        if not matches:
            known = ", ".join(v.display_name for v in variables)
            raise JobError(
                f"Cut {index} ({template.template_name}): unknown variable "
                f"'{name}' (known: {known})"
            )
        for variable in matches:
            variable.working_value = value
    return cut.with_operations(apply_variables(variables, cut.operations, catalog))


def build_workpiece(job: JobV1, profile: "ConfigProfile") -> WorkpieceInfo:
    """Materialize a validated job into a configured :class:`WorkpieceInfo`."""
    dims = job.workpiece
    workpiece = configure_from_user_values(
        WorkpieceInfo(
            user_length=dims.length,
            user_width=dims.width,
            user_depth=dims.thickness,
            user_offset_x=dims.offset_x,
            user_offset_x_origin=parse_enum(OffsetLeftRight, dims.offset_x_origin),
            user_offset_y=dims.offset_y,
            user_offset_y_origin=parse_enum(OffsetTopBottom, dims.offset_y_origin),
            user_router_location_x=dims.router_x,
            user_router_location_y=dims.router_y,
            material_type_name=job.material,
        ),
        profile,
    )
    cuts = [
        _cut_from_entry(cut, index, workpiece, profile)
        for index, cut in enumerate(job.cuts)
    ]
    logger.info(
        "Job: %d cuts on %s x %s x %s workpiece (%s)",
        len(cuts), dims.length, dims.width, dims.thickness,
        job.material or "no material",
    )
    return workpiece.with_cuts(cuts)


def load_job(path: Union[str, Path], profile: "ConfigProfile") -> WorkpieceInfo:
    """Load, validate and materialize a job document.

    Parameters
    ----------
    path : Union[str, Path]
        Path to a job.v1 YAML (or JSON) file
    profile : ConfigProfile
        Supplies the pattern templates, catalog and units

    Returns
    -------
    WorkpieceInfo
        Configured workpiece with one cut per job entry

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    JobError
        If the file is malformed, fails validation, or a cut names an
        unknown template or variable
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Job file not found: {path}")
    try:
        data = fs.load_yaml(path)
    except yaml.YAMLError as e:
        raise JobError(f"Malformed job file {path}: {e}") from e
    try:
        job = validate_job(data)
    except JobError as e:
        raise JobError(f"{path}: {e}") from e
    return build_workpiece(job, profile)

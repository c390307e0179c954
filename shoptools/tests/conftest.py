"""Shared fixtures: the bundled profile and small workpiece builders."""

from __future__ import annotations

from typing import Callable

import pytest

from shoptools.configs.loader import ConfigProfile, load_config
from shoptools.patterns.enums import OffsetLeftRight, OffsetTopBottom, OperationAction
from shoptools.patterns.operations import CutProfile, PatternOperation
from shoptools.patterns.workpiece import WorkpieceInfo, configure_from_user_values

QUARTER = "1/4in Straight"
EIGHTH = "1/8in Straight"
DRILL = "5mm Drill"


@pytest.fixture()
def profile() -> ConfigProfile:
    """Default profile: 1220x610 mm table, top-left origin, Z up from the bed."""
    return load_config()


def plot_op(
    x0: float, y0: float, x1: float, y1: float,
    tool: str = "", depth: str = "3", name: str = "",
) -> PatternOperation:
    """Plot between two points measured from the workpiece's top-left corner."""
    return PatternOperation(
        action=OperationAction.PLOT,
        operation_name=name,
        tool=tool,
        depth=depth,
        start_offset_x=str(x0),
        start_offset_x_origin=OffsetLeftRight.LEFT,
        start_offset_y=str(y0),
        start_offset_y_origin=OffsetTopBottom.TOP,
        end_offset_x=str(x1),
        end_offset_x_origin=OffsetLeftRight.LEFT,
        end_offset_y=str(y1),
        end_offset_y_origin=OffsetTopBottom.TOP,
    )


def plunge_op(x: float, y: float, tool: str = DRILL, depth: str = "12") -> PatternOperation:
    return PatternOperation(
        action=OperationAction.PLUNGE,
        tool=tool,
        depth=depth,
        offset_x=str(x),
        offset_x_origin=OffsetLeftRight.LEFT,
        offset_y=str(y),
        offset_y_origin=OffsetTopBottom.TOP,
    )


def cut(*operations: PatternOperation, strict: bool = False) -> CutProfile:
    return CutProfile(
        template_name="Test",
        operations=tuple(operations),
        tool_sequence_strict=strict,
    )


@pytest.fixture()
def make_workpiece(profile: ConfigProfile) -> Callable[..., WorkpieceInfo]:
    """Factory: 600x300x19 mm workpiece at the table corner, Oak."""

    def _make(
        *cuts: CutProfile,
        material: str = "Oak",
        thickness: str = "19",
        config: ConfigProfile | None = None,
    ) -> WorkpieceInfo:
        workpiece = WorkpieceInfo(
            user_length="600",
            user_width="300",
            user_depth=thickness,
            user_offset_x="0",
            user_offset_x_origin=OffsetLeftRight.LEFT,
            user_offset_y="0",
            user_offset_y_origin=OffsetTopBottom.TOP,
            user_router_location_x="0",
            user_router_location_y="0",
            material_type_name=material,
        )
        configured = configure_from_user_values(workpiece, config or profile)
        return configured.with_cuts(cuts)

    return _make

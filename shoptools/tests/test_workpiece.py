"""Tests for workpiece configuration and operation layout."""

from __future__ import annotations

from dataclasses import replace
from typing import Callable

import pytest

from conftest import plot_op
from shoptools.configs.loader import ConfigProfile
from shoptools.geometry.primitives import Area, Point
from shoptools.patterns.enums import (
    DirectionLeftRight,
    DirectionUpDown,
    OffsetLeftRight,
    OffsetTopBottom,
    OperationAction,
)
from shoptools.patterns.operations import PatternOperation
from shoptools.patterns.workpiece import (
    WorkpieceInfo,
    configure_from_user_values,
    resolve_depth,
    resolve_operation_geometry,
    translate_offset_x,
    translate_offset_y,
)

AREA = Area.from_size(100, 50, 400, 200)


# ---------------------------------------------------------------------------
# Offset translation
# ---------------------------------------------------------------------------


class TestTranslateOffset:
    @pytest.mark.parametrize("origin,expected", [
        (OffsetLeftRight.LEFT, 110.0),
        (OffsetLeftRight.RIGHT, 500.0 - 40.0 + 10.0),
        (OffsetLeftRight.CENTER, 300.0 + 10.0 - 20.0),
        (OffsetLeftRight.LEFT_EDGE_TO_CENTER, 310.0),
        (OffsetLeftRight.RIGHT_EDGE_TO_CENTER, 300.0 + 10.0 - 40.0),
        (OffsetLeftRight.RELATIVE, 110.0),
        (OffsetLeftRight.ABSOLUTE, 10.0),
    ])
    def test_x_origins(
        self, profile: ConfigProfile, origin: OffsetLeftRight, expected: float,
    ) -> None:
        x = translate_offset_x(AREA, 10.0, origin, profile, subject_width=40.0)
        assert x == pytest.approx(expected)

    def test_relative_uses_location(self, profile: ConfigProfile) -> None:
        x = translate_offset_x(AREA, 10.0, OffsetLeftRight.RELATIVE, profile, relative=250.0)
        assert x == pytest.approx(260.0)

    def test_y_bottom(self, profile: ConfigProfile) -> None:
        y = translate_offset_y(AREA, 5.0, OffsetTopBottom.BOTTOM, profile, subject_height=20.0)
        assert y == pytest.approx(250.0 - 20.0 + 5.0)

    def test_travel_left_negates(self, profile: ConfigProfile) -> None:
        cfg = replace(profile, travel_x=DirectionLeftRight.LEFT)
        assert translate_offset_x(AREA, 10.0, OffsetLeftRight.LEFT, cfg) == pytest.approx(90.0)

    def test_travel_up_negates(self, profile: ConfigProfile) -> None:
        cfg = replace(profile, travel_y=DirectionUpDown.UP)
        assert translate_offset_y(AREA, 10.0, OffsetTopBottom.TOP, cfg) == pytest.approx(40.0)


# ---------------------------------------------------------------------------
# Workpiece configuration
# ---------------------------------------------------------------------------


class TestConfigure:
    def test_corner_placement(self, make_workpiece: Callable[..., WorkpieceInfo]) -> None:
        wp = make_workpiece()
        assert wp.area == Area(0.0, 0.0, 600.0, 300.0)
        assert wp.thickness == pytest.approx(19.0)
        assert wp.workspace_area.right == pytest.approx(1220.0)

    def test_right_and_center_origins(self, profile: ConfigProfile) -> None:
        wp = configure_from_user_values(
            WorkpieceInfo(
                user_length="600", user_width="300", user_depth="3/4in",
                user_offset_x="0", user_offset_x_origin=OffsetLeftRight.RIGHT,
                user_offset_y="0", user_offset_y_origin=OffsetTopBottom.CENTER,
            ),
            profile,
        )
        assert wp.area.left == pytest.approx(620.0)
        assert wp.area.top == pytest.approx(155.0)
        assert wp.thickness == pytest.approx(19.05)

    def test_alt_strings(self, profile: ConfigProfile) -> None:
        wp = configure_from_user_values(
            WorkpieceInfo(user_length="2ft", user_width="600mm", user_depth="3/4in"),
            profile,
        )
        assert wp.alt_length == "(609.6mm)"
        assert wp.alt_width == ""
        assert wp.alt_depth == "(19.05mm)"

    def test_input_not_modified(self, profile: ConfigProfile) -> None:
        raw = WorkpieceInfo(user_length="600", user_width="300", user_depth="19")
        configure_from_user_values(raw, profile)
        assert raw.thickness == 0.0


# ---------------------------------------------------------------------------
# Operation geometry
# ---------------------------------------------------------------------------


class TestOperationGeometry:
    def test_plot_start_and_end(
        self, profile: ConfigProfile, make_workpiece: Callable[..., WorkpieceInfo],
    ) -> None:
        geom = resolve_operation_geometry(plot_op(10, 20, 110, 20), make_workpiece(),
                                          profile, Point())
        assert geom.start == Point(10, 20)
        assert geom.end == Point(110, 20)

    def test_plot_from_location_by_angle(
        self, profile: ConfigProfile, make_workpiece: Callable[..., WorkpieceInfo],
    ) -> None:
        op = PatternOperation(action=OperationAction.PLOT, angle="90", length="50")
        geom = resolve_operation_geometry(op, make_workpiece(), profile, Point(10, 100))
        assert geom.start == Point(10, 100)
        assert geom.end.x == pytest.approx(10.0)
        assert geom.end.y == pytest.approx(50.0)

    @pytest.mark.parametrize("kerf,dy", [
        (DirectionLeftRight.LEFT, -3.0),
        (DirectionLeftRight.RIGHT, 3.0),
        (DirectionLeftRight.CENTER, 0.0),
    ])
    def test_kerf_shift(
        self,
        profile: ConfigProfile,
        make_workpiece: Callable[..., WorkpieceInfo],
        kerf: DirectionLeftRight,
        dy: float,
    ) -> None:
        op = plot_op(0, 100, 200, 100).with_values(kerf=kerf)
        geom = resolve_operation_geometry(op, make_workpiece(), profile, Point(),
                                          kerf_clearance=3.0)
        assert geom.start.y == pytest.approx(100.0 + dy)
        assert geom.end.y == pytest.approx(100.0 + dy)

    def test_plunge_relative_offset(
        self, profile: ConfigProfile, make_workpiece: Callable[..., WorkpieceInfo],
    ) -> None:
        op = PatternOperation(
            action=OperationAction.PLUNGE,
            offset_x="37", offset_x_origin=OffsetLeftRight.LEFT,
            offset_y="32", offset_y_origin=OffsetTopBottom.RELATIVE,
        )
        geom = resolve_operation_geometry(op, make_workpiece(), profile, Point(37, 50))
        assert geom.start == geom.end == Point(37, 82)

    def test_transit_relative_end(
        self, profile: ConfigProfile, make_workpiece: Callable[..., WorkpieceInfo],
    ) -> None:
        op = PatternOperation(
            action=OperationAction.TRANSIT,
            end_offset_x="20", end_offset_x_origin=OffsetLeftRight.RELATIVE,
        )
        geom = resolve_operation_geometry(op, make_workpiece(), profile, Point(5, 5))
        assert geom.start == Point(5, 5)
        assert geom.end == Point(25, 5)

    def test_depth_defaults_to_thickness(
        self, profile: ConfigProfile, make_workpiece: Callable[..., WorkpieceInfo],
    ) -> None:
        wp = make_workpiece()
        assert resolve_depth(PatternOperation(), wp, profile) == pytest.approx(19.0)
        assert resolve_depth(PatternOperation(depth="1/4in"), wp, profile) == \
            pytest.approx(6.35)

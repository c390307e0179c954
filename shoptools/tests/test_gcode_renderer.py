"""Tests for the G-code renderer.

Validates the retract/plunge state machine, per-tool file partitioning,
filename templating and the empty-input contract.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Callable

import pytest

from conftest import DRILL, EIGHTH, QUARTER, cut, plot_op, plunge_op
from shoptools.configs.loader import ConfigProfile
from shoptools.gcode.renderer import (
    GCodeError,
    GCodeRenderer,
    default_filename_base,
    normalize_extension,
    safe_tool_name,
)
from shoptools.geometry.primitives import Point
from shoptools.patterns.operations import CutProfile
from shoptools.patterns.workpiece import WorkpieceInfo
from shoptools.tooling.tools import TrackTool
from shoptools.track.segments import TrackLayer, TrackPlan, TrackSegment, TrackSegmentType

MakeWorkpiece = Callable[..., WorkpieceInfo]


@pytest.fixture()
def renderer(profile: ConfigProfile) -> GCodeRenderer:
    return GCodeRenderer(profile)


def _lines(text: str) -> list[str]:
    return text.strip().splitlines()


def _plunges(text: str) -> list[str]:
    return [line for line in _lines(text) if line.startswith("G01 Z")]


# ---------------------------------------------------------------------------
# Program structure
# ---------------------------------------------------------------------------


class TestProgram:
    def test_empty_workpiece(self, renderer: GCodeRenderer, make_workpiece: MakeWorkpiece) -> None:
        assert renderer.render(make_workpiece()) == []
        assert renderer.render_files(make_workpiece(), "Job1") == []

    def test_full_program(self, renderer: GCodeRenderer, make_workpiece: MakeWorkpiece) -> None:
        wp = make_workpiece(cut(
            plot_op(10, 10, 100, 10, depth="3"),
            plot_op(100, 10, 100, 50, depth="3"),
        ))
        (text,) = renderer.render(wp, "Job1")
        assert _lines(text) == [
            "G21;",
            "G90;",
            "G00 Z100;",
            "(Generated by ShopTools.)",
            "(All units mm.)",
            "(All measurements absolute by default.)",
            "(File: Job1-01of01-1-4in Straight.gcode)",
            "(Material: Oak, feed 1000)",
            "(Surface Z: 19)",
            "(Attach tool: 1/4in Straight)",
            "(Pass depth: 3)",
            "G00 X10 Y10;",
            "G00 Z19;",
            "G01 Z16 F1000;",
            "G01 X100 Y10 F1000;",
            "G01 X100 Y50 F1000;",
            "(End of program)",
            "G00 Z100;",
        ]


# ---------------------------------------------------------------------------
# Retract / plunge state machine
# ---------------------------------------------------------------------------


class TestStateMachine:
    def test_same_depth_plots_plunge_once(
        self, renderer: GCodeRenderer, make_workpiece: MakeWorkpiece,
    ) -> None:
        wp = make_workpiece(cut(
            plot_op(10, 10, 100, 10, depth="3"),
            plot_op(100, 10, 100, 50, depth="3"),
        ))
        (text,) = renderer.render(wp)
        assert len(_plunges(text)) == 1

    def test_depth_change_replunges_without_retract(
        self, renderer: GCodeRenderer, make_workpiece: MakeWorkpiece,
    ) -> None:
        wp = make_workpiece(cut(plot_op(10, 10, 100, 10, tool=EIGHTH, depth="3")))
        (text,) = renderer.render(wp)
        lines = _lines(text)
        assert len(_plunges(text)) == 2
        assert lines[-1] == "G00 Z100;"
        # Only the header and footer retract: the second pass starts where
        # the first ended.
        assert lines.count("G00 Z100;") == 2
        assert "G01 X10 Y10 F1000;" in lines

    def test_transit_retracts_first(
        self, renderer: GCodeRenderer, make_workpiece: MakeWorkpiece,
    ) -> None:
        wp = make_workpiece(cut(
            plot_op(10, 10, 100, 10, depth="3"),
            plot_op(10, 50, 100, 50, depth="3"),
        ))
        lines = _lines(renderer.render(wp)[0])
        hop = lines.index("G00 X10 Y50;")
        assert lines[hop - 1] == "G00 Z100;"
        assert lines[hop + 1] == "G00 Z19;"
        assert lines[hop + 2] == "G01 Z16 F1000;"

    def test_pass_depth_comment_matches_final_cut(
        self, renderer: GCodeRenderer, make_workpiece: MakeWorkpiece,
    ) -> None:
        wp = make_workpiece(cut(plot_op(10, 10, 100, 10, depth="10")))
        lines = _lines(renderer.render(wp)[0])
        passes = [line for line in lines if line.startswith("(Pass depth:")]
        assert passes == [
            "(Pass depth: 3.175)",
            "(Pass depth: 6.35)",
            "(Pass depth: 9.525)",
            "(Pass depth: 10)",
        ]
        final = lines.index("(Pass depth: 10)")
        assert lines[final + 1] == "G01 Z9 F1000;"

    def test_plunge_segment(self, renderer: GCodeRenderer, make_workpiece: MakeWorkpiece) -> None:
        wp = make_workpiece(cut(plunge_op(37, 50, depth="12")))
        lines = _lines(renderer.render(wp)[0])
        start = lines.index("G00 X37 Y50;")
        assert lines[start + 1:start + 4] == ["G00 Z19;", "G01 Z7 F1000;", "G00 Z100;"]

    def test_relative_holes_from_template(
        self,
        profile: ConfigProfile,
        renderer: GCodeRenderer,
        make_workpiece: MakeWorkpiece,
    ) -> None:
        holes = CutProfile.from_template(profile.find_template("Shelf Pin Holes"))
        lines = _lines(renderer.render(make_workpiece(holes))[0])
        assert "G00 X37 Y50;" in lines
        assert "G00 X37 Y82;" in lines
        assert lines.count("G01 Z7 F1000;") == 2

    def test_missing_segment_type(self, renderer: GCodeRenderer, make_workpiece: MakeWorkpiece) -> None:
        tool = TrackTool("Bit", 6.0, 3.0, 3.0, is_default=True)
        plan = TrackPlan(layers=(
            TrackLayer(tool, (TrackSegment(TrackSegmentType.NONE, Point(), Point()),)),
        ))
        with pytest.raises(GCodeError):
            renderer.render_plan(plan, make_workpiece(), "Job1")


# ---------------------------------------------------------------------------
# File partitioning and names
# ---------------------------------------------------------------------------


class TestPartitioning:
    def test_alternating_tools_two_files(
        self, renderer: GCodeRenderer, make_workpiece: MakeWorkpiece,
    ) -> None:
        wp = make_workpiece(cut(
            plot_op(10, 10, 100, 10, tool=QUARTER, depth="1"),
            plot_op(10, 20, 100, 20, tool=EIGHTH, depth="1"),
            plot_op(10, 30, 100, 30, tool=QUARTER, depth="1"),
            plot_op(10, 40, 100, 40, tool=EIGHTH, depth="1"),
        ))
        texts = renderer.render(wp, "Job1")
        assert len(texts) == 2
        for text in texts:
            lines = _lines(text)
            assert lines[:2] == ["G21;", "G90;"]
            assert lines[-1] == "G00 Z100;"

    def test_strict_alternating_tools_one_file_per_change(
        self, renderer: GCodeRenderer, make_workpiece: MakeWorkpiece,
    ) -> None:
        wp = make_workpiece(cut(
            plot_op(10, 10, 100, 10, tool=QUARTER, depth="1"),
            plot_op(10, 20, 100, 20, tool=EIGHTH, depth="1"),
            plot_op(10, 30, 100, 30, tool=QUARTER, depth="1"),
            strict=True,
        ))
        files = renderer.render_files(wp, "Job1")
        assert [f.tool_name for f in files] == [QUARTER, EIGHTH, QUARTER]

    def test_filename_template(self, renderer: GCodeRenderer, make_workpiece: MakeWorkpiece) -> None:
        wp = make_workpiece(cut(
            plot_op(10, 10, 100, 10, depth="1"),
            plot_op(10, 20, 100, 20, tool=EIGHTH, depth="1"),
            plunge_op(50, 50),
        ))
        files = renderer.render_files(wp, "Job1")
        assert [f.filename for f in files] == [
            "Job1-01of03-1-4in Straight.gcode",
            "Job1-02of03-1-8in Straight.gcode",
            f"Job1-03of03-{DRILL}.gcode",
        ]
        for item in files:
            assert f"(File: {item.filename})" in item.content

    def test_custom_extension(self, renderer: GCodeRenderer, make_workpiece: MakeWorkpiece) -> None:
        wp = make_workpiece(cut(plot_op(10, 10, 100, 10, depth="1")))
        (item,) = renderer.render_files(wp, "Job1", "nc")
        assert item.filename == "Job1-01of01-1-4in Straight.nc"

    def test_default_base_name(self, renderer: GCodeRenderer, make_workpiece: MakeWorkpiece) -> None:
        wp = make_workpiece(cut(plot_op(10, 10, 100, 10, depth="1")))
        (item,) = renderer.render_files(wp)
        assert re.fullmatch(r"ShopTools-\d{14}-01of01-1-4in Straight\.gcode", item.filename)

    def test_skipped_operations_logged(
        self,
        renderer: GCodeRenderer,
        make_workpiece: MakeWorkpiece,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        wp = make_workpiece(cut(
            plot_op(10, 10, 100, 10, depth="1"),
            plot_op(10, 20, 100, 20, tool="Laser", depth="1"),
        ))
        with caplog.at_level(logging.WARNING):
            files = renderer.render_files(wp, "Job1")
        assert len(files) == 1
        assert "Not rendered" in caplog.text


class TestNameHelpers:
    def test_default_filename_base(self) -> None:
        assert default_filename_base(datetime(2026, 1, 2, 15, 4, 5)) == "ShopTools-20260102150405"

    @pytest.mark.parametrize("raw,ext", [
        (None, ".gcode"), ("", ".gcode"), ("nc", ".nc"), (".tap", ".tap"),
    ])
    def test_normalize_extension(self, raw: str | None, ext: str) -> None:
        assert normalize_extension(raw) == ext

    def test_safe_tool_name(self) -> None:
        assert safe_tool_name('3/8" V:Bit') == "3-8- V-Bit"

"""Tests for the per-render tool set."""

from __future__ import annotations

import logging
from dataclasses import replace

import pytest

from conftest import DRILL, EIGHTH, QUARTER
from shoptools.configs.loader import ConfigProfile
from shoptools.patterns.enums import OperationAction
from shoptools.patterns.operations import PatternOperation
from shoptools.tooling.tools import TrackToolSet


class TestInitialize:
    def test_default_tool_only(self, profile: ConfigProfile) -> None:
        tools = TrackToolSet.initialize(profile, [PatternOperation(action=OperationAction.PLOT)])
        assert len(tools) == 1
        tool = tools[0]
        assert tool.tool_name == QUARTER
        assert tool.is_default is True
        assert tool.diameter == pytest.approx(6.35)
        assert tool.kerf_clearance == pytest.approx(3.175)
        assert tool.max_depth_per_pass == pytest.approx(3.175)

    def test_referenced_tools_in_first_reference_order(self, profile: ConfigProfile) -> None:
        ops = [
            PatternOperation(action=OperationAction.PLUNGE, tool=DRILL),
            PatternOperation(action=OperationAction.PLOT, tool=EIGHTH.upper()),
            PatternOperation(action=OperationAction.PLOT, tool=DRILL),
            PatternOperation(action=OperationAction.PLOT, tool=QUARTER),
        ]
        tools = TrackToolSet.initialize(profile, ops)
        assert [t.tool_name for t in tools] == [QUARTER, DRILL, EIGHTH]
        assert [t.is_default for t in tools] == [True, False, False]

    def test_unknown_tool_warned_once(
        self, profile: ConfigProfile, caplog: pytest.LogCaptureFixture,
    ) -> None:
        ops = [PatternOperation(action=OperationAction.PLOT, tool="Laser")] * 3
        with caplog.at_level(logging.WARNING):
            tools = TrackToolSet.initialize(profile, ops)
        assert len(tools) == 1
        assert caplog.text.count("Laser") == 1

    def test_no_general_tool(self, profile: ConfigProfile) -> None:
        cfg = replace(profile, general_cutting_tool="")
        tools = TrackToolSet.initialize(cfg, [PatternOperation(action=OperationAction.PLOT)])
        assert len(tools) == 0
        assert tools.default_tool is None


class TestSelect:
    def test_empty_name_selects_default(self, profile: ConfigProfile) -> None:
        tools = TrackToolSet.initialize(profile, [])
        assert tools.select("").tool_name == QUARTER
        assert tools.select(None).is_default

    def test_case_insensitive(self, profile: ConfigProfile) -> None:
        tools = TrackToolSet.initialize(profile, [PatternOperation(tool=DRILL)])
        assert tools.select("5MM drill").tool_name == DRILL

    def test_unknown_is_none(self, profile: ConfigProfile) -> None:
        tools = TrackToolSet.initialize(profile, [])
        assert tools.select("Laser") is None

    def test_no_default_is_none(self, profile: ConfigProfile) -> None:
        tools = TrackToolSet.initialize(replace(profile, general_cutting_tool=""), [])
        assert tools.select("") is None

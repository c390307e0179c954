"""Tests for filesystem helpers and logging setup."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from shoptools.gcode.renderer import GCodeFile
from shoptools.utils import fs
from shoptools.utils.logging_config import (
    ContextFormatter,
    pop_context,
    push_context,
    setup_logging,
    shutdown,
)


class TestFs:
    def test_atomic_write_text(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "a.gcode"
        fs.atomic_write_text(target, "G21;\n")
        assert target.read_text(encoding="utf-8") == "G21;\n"
        assert not list(target.parent.glob("*.tmp"))

    def test_load_yaml_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            fs.load_yaml(tmp_path / "none.yaml")

    def test_load_json_document(self, tmp_path: Path) -> None:
        path = tmp_path / "job.json"
        path.write_text(json.dumps({"schema": "job.v1"}), encoding="utf-8")
        assert fs.load_yaml(path) == {"schema": "job.v1"}

    def test_write_gcode_files(self, tmp_path: Path) -> None:
        files = [GCodeFile("a.gcode", "A", "G21;\n"), GCodeFile("b.gcode", "B", "G90;\n")]
        written = fs.write_gcode_files(files, tmp_path / "out")
        assert [p.name for p in written] == ["a.gcode", "b.gcode"]
        assert written[1].read_text(encoding="utf-8") == "G90;\n"


class TestLogging:
    def _record(self, msg: str) -> logging.LogRecord:
        return logging.LogRecord("shoptools.test", logging.INFO, __file__, 1, msg, None, None)

    def test_human_format_includes_context(self) -> None:
        push_context(job="cabinet.yaml")
        try:
            line = ContextFormatter("human", use_color=False).format(self._record("Rendered"))
        finally:
            pop_context(["job"])
        assert "job=cabinet.yaml" in line
        assert line.endswith("| Rendered")

    def test_json_format(self) -> None:
        payload = json.loads(ContextFormatter("json").format(self._record("hello")))
        assert payload["lvl"] == "INFO"
        assert payload["msg"] == "hello"

    def test_setup_and_shutdown(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "run.log"
        handlers = setup_logging("DEBUG", str(log_file), json=True, to_stderr=False)
        try:
            assert len(handlers) == 1
            logging.getLogger("shoptools.test").info("written")
        finally:
            shutdown()
        assert handlers[0] not in logging.getLogger().handlers
        assert json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])["msg"] == "written"

    def test_unknown_level(self) -> None:
        with pytest.raises(ValueError):
            setup_logging("LOUD", to_stderr=False)

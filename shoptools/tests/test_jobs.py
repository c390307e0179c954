"""Tests for job documents and the render_job command line."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from shoptools.configs.loader import ConfigProfile
from shoptools.geometry.primitives import Point
from shoptools.jobs.schema import JobError, load_job, validate_job
from shoptools.patterns.enums import OffsetLeftRight
from shoptools.scripts.render_job import main

JOB = {
    "schema": "job.v1",
    "material": "Oak",
    "workpiece": {
        "length": 600,
        "width": 300,
        "thickness": 19,
        "offset_x": 100,
        "offset_x_origin": "left",
        "offset_y": 0,
        "offset_y_origin": "top",
    },
    "cuts": [
        {
            "template": "Shelf Pin Holes",
            "start_x": 0,
            "start_y": 0,
            "variables": {"Depth": 10, "Upper Hole Offset X": "40mm"},
        },
    ],
}


def _write(tmp_path: Path, data: dict, name: str = "job.yaml") -> Path:
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------


class TestValidateJob:
    def test_numbers_become_measurements(self) -> None:
        job = validate_job(JOB)
        assert job.workpiece.length == "600"
        assert job.cuts[0].start_x == "0"
        assert job.cuts[0].variables["Depth"] == "10"

    def test_float_measurement(self) -> None:
        data = {**JOB, "workpiece": {**JOB["workpiece"], "thickness": 19.5}}
        assert validate_job(data).workpiece.thickness == "19.5"

    def test_wrong_schema(self) -> None:
        with pytest.raises(JobError, match="job.v1"):
            validate_job({**JOB, "schema": "job.v2"})

    def test_bad_origin(self) -> None:
        data = {**JOB, "workpiece": {**JOB["workpiece"], "offset_x_origin": "sideways"}}
        with pytest.raises(JobError, match="offset_x_origin"):
            validate_job(data)

    def test_missing_workpiece(self) -> None:
        with pytest.raises(JobError, match="workpiece"):
            validate_job({"schema": "job.v1"})

    def test_not_a_mapping(self) -> None:
        with pytest.raises(JobError):
            validate_job(["cuts"])  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestLoadJob:
    def test_materializes_workpiece(self, tmp_path: Path, profile: ConfigProfile) -> None:
        wp = load_job(_write(tmp_path, JOB), profile)
        assert wp.area.left == pytest.approx(100.0)
        assert wp.thickness == pytest.approx(19.0)
        assert wp.user_offset_x_origin is OffsetLeftRight.LEFT
        assert wp.material_type_name == "Oak"

        (cut,) = wp.cuts
        assert cut.template_name == "Shelf Pin Holes"
        assert cut.start_location == Point(100, 0)
        assert [op.depth for op in cut.operations] == ["10", "10"]
        assert cut.operations[0].offset_x == "40mm"
        assert cut.operations[1].offset_x == "37mm"

    def test_template_operations_untouched(self, tmp_path: Path, profile: ConfigProfile) -> None:
        load_job(_write(tmp_path, JOB), profile)
        template = profile.find_template("Shelf Pin Holes")
        assert template.operations[0].depth == "12mm"

    def test_unknown_template(self, tmp_path: Path, profile: ConfigProfile) -> None:
        data = {**JOB, "cuts": [{"template": "Dovetail"}]}
        with pytest.raises(JobError, match="Dovetail"):
            load_job(_write(tmp_path, data), profile)

    def test_unknown_variable(self, tmp_path: Path, profile: ConfigProfile) -> None:
        data = {**JOB, "cuts": [{"template": "Rip Cut", "variables": {"Colour": "red"}}]}
        with pytest.raises(JobError, match="Colour"):
            load_job(_write(tmp_path, data), profile)

    def test_missing_file(self, tmp_path: Path, profile: ConfigProfile) -> None:
        with pytest.raises(FileNotFoundError):
            load_job(tmp_path / "missing.yaml", profile)

    def test_no_cuts(self, tmp_path: Path, profile: ConfigProfile) -> None:
        data = {k: v for k, v in JOB.items() if k != "cuts"}
        assert load_job(_write(tmp_path, data), profile).cuts == ()

    def test_malformed_yaml(self, tmp_path: Path, profile: ConfigProfile) -> None:
        path = tmp_path / "job.yaml"
        path.write_text("cuts: [unclosed\n", encoding="utf-8")
        with pytest.raises(JobError, match="Malformed job file"):
            load_job(path, profile)


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------


class TestRenderJobCli:
    def test_dry_run_prints(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        job = _write(tmp_path, JOB)
        main(["--job", str(job), "--base", "Job1", "--dry-run", "--log-level", "WARNING"])
        out = capsys.readouterr().out
        assert "--- Job1-01of01-5mm Drill.gcode ---" in out
        assert "G21;" in out
        assert not list(tmp_path.glob("*.gcode"))

    def test_writes_files(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        job = _write(tmp_path, JOB)
        out_dir = tmp_path / "out"
        main(["--job", str(job), "--output", str(out_dir), "--base", "Job1",
              "--ext", "nc", "--log-level", "WARNING"])
        target = out_dir / "Job1-01of01-5mm Drill.nc"
        assert target.exists()
        text = target.read_text(encoding="utf-8")
        assert text.startswith("G21;\nG90;\n")
        assert "G01 Z9 F1000;" in text
        assert str(target) in capsys.readouterr().out

    def test_no_cuts(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        data = {k: v for k, v in JOB.items() if k != "cuts"}
        main(["--job", str(_write(tmp_path, data)), "--output", str(tmp_path),
              "--log-level", "WARNING"])
        assert "no cuts" in capsys.readouterr().out
        assert not list(tmp_path.glob("*.gcode"))

    def test_missing_job_exits(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["--job", str(tmp_path / "missing.yaml"), "--log-level", "WARNING"])
        assert exc.value.code == 1
        assert "Error" in capsys.readouterr().err

    def test_bad_config_exits(self, tmp_path: Path) -> None:
        config = _write(tmp_path, {"display_units": "metric"}, "profile.yaml")
        with pytest.raises(SystemExit):
            main(["--config", str(config), "--job", str(_write(tmp_path, JOB)),
                  "--log-level", "WARNING"])

    def test_malformed_job_exits(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        job = tmp_path / "job.yaml"
        job.write_text("schema: job.v1\nworkpiece: {length: 600\n", encoding="utf-8")
        with pytest.raises(SystemExit) as exc:
            main(["--job", str(job), "--dry-run", "--log-level", "WARNING"])
        assert exc.value.code == 1
        err = capsys.readouterr().err
        assert "Error: Malformed job file" in err

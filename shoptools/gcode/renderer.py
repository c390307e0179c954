"""G-code renderer -- track plans to per-tool G-code programs.

Every output file is a complete program for one tool: the tool is
attached before the file runs and never changes inside it.  A new file
starts whenever the layer tool differs from the previous layer's tool.

Coordinates come from the track builder already in machine millimetres.
Z heights are resolved here through
:meth:`ConfigProfile.z_position`, so cutting depths stay measured from
the top of the material.

Retract state machine (per file, starts retracted):

* **Plot** -- descend to the material surface when retracted, re-plunge
  when retracted or when the depth differs from the previous plot, then
  feed to the end point.
* **Plunge** -- rapid to the point, descend to the surface, feed down to
  depth, retract.
* **Transit** -- retract if needed, rapid to the end point.

Numbers use the ``0.###`` pattern (up to three decimals, no trailing
zeros).  Commands end with ``;``; comments are parenthesised.

Filenames follow ``{base}-{index:02d}of{count:02d}-{tool}{extension}``.
Index and count are only known once every file is rendered, so content
is produced with placeholders and substituted in a second pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from io import StringIO
from typing import TYPE_CHECKING

from shoptools.geometry.primitives import Point
from shoptools.measurement.units import format_decimal
from shoptools.patterns.enums import ZPosition
from shoptools.patterns.workpiece import WorkpieceInfo
from shoptools.track.builder import TrackBuilder
from shoptools.track.segments import TrackLayer, TrackPlan, TrackSegment, TrackSegmentType

if TYPE_CHECKING:
    from shoptools.configs.loader import ConfigProfile

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".gcode"
GENERATOR_NAME = "ShopTools"

_INDEX = "\x00INDEX\x00"
_COUNT = "\x00COUNT\x00"
_UNSAFE_FILENAME_CHARS = '\\/:*?"<>|'


class GCodeError(Exception):
    """Raised when a track plan cannot be expressed as G-code."""

    pass


@dataclass(frozen=True, slots=True)
class GCodeFile:
    """One rendered program and the name it should be written under."""

    filename: str
    tool_name: str
    content: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _n(value: float) -> str:
    return format_decimal(value)


def _f(feed: float) -> str:
    """G-code ``F`` parameter."""
    return f"F{_n(feed)}"


def _xy(point: Point) -> str:
    return f"X{_n(point.x)} Y{_n(point.y)}"


def default_filename_base(now: datetime | None = None) -> str:
    """``ShopTools-<yyyyMMddHHmmss>`` for *now* (local time by default)."""
    stamp = (now or datetime.now()).strftime("%Y%m%d%H%M%S")
    return f"{GENERATOR_NAME}-{stamp}"


def normalize_extension(extension: str | None) -> str:
    """Extension with a leading dot; :data:`DEFAULT_EXTENSION` when empty."""
    ext = (extension or "").strip()
    if not ext:
        return DEFAULT_EXTENSION
    return ext if ext.startswith(".") else f".{ext}"


def safe_tool_name(name: str) -> str:
    """*name* with characters that are invalid in filenames replaced by ``-``."""
    cleaned = "".join("-" if c in _UNSAFE_FILENAME_CHARS else c for c in name)
    return cleaned.strip() or "Tool"


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------


class GCodeRenderer:
    """Render a configured workpiece into per-tool G-code programs.

    Parameters
    ----------
    profile : ConfigProfile
        Loaded configuration; supplies the Z function, units and the
        material feed table.

    Notes
    -----
    The renderer keeps per-file motion state only while a file is being
    written; separate calls share nothing.
    """

    def __init__(self, profile: ConfigProfile) -> None:
        self._profile = profile
        self._retracted: bool = True
        self._location: Point | None = None
        self._last_plot_depth: float | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render(
        self,
        workpiece: WorkpieceInfo,
        filename_base: str | None = None,
        extension: str | None = None,
    ) -> list[str]:
        """Program text for each output file, in tool-encounter order.

        Returns an empty list when the workpiece has no cuts.
        """
        return [f.content for f in self.render_files(workpiece, filename_base, extension)]

    def render_files(
        self,
        workpiece: WorkpieceInfo,
        filename_base: str | None = None,
        extension: str | None = None,
    ) -> list[GCodeFile]:
        """Build the track plan for *workpiece* and render it.

        Parameters
        ----------
        workpiece : WorkpieceInfo
            Configured workpiece (see ``configure_from_user_values``).
        filename_base : str | None
            Filename prefix; ``ShopTools-<timestamp>`` when omitted.
        extension : str | None
            Filename extension; ``.gcode`` when omitted.

        Returns
        -------
        list[GCodeFile]
            One file per contiguous run of layers sharing a tool.
        """
        if not workpiece.cuts:
            logger.info("Workpiece has no cuts; nothing to render")
            return []
        plan = TrackBuilder(self._profile).build(workpiece)
        return self.render_plan(plan, workpiece, filename_base, extension)

    def render_plan(
        self,
        plan: TrackPlan,
        workpiece: WorkpieceInfo,
        filename_base: str | None = None,
        extension: str | None = None,
    ) -> list[GCodeFile]:
        """Render an already built *plan*.

        Raises
        ------
        GCodeError
            If a segment has no motion type.
        """
        base = (filename_base or "").strip() or default_filename_base()
        ext = normalize_extension(extension)

        groups: list[list[TrackLayer]] = []
        for layer in plan.layers:
            if groups and groups[-1][0].tool.tool_name == layer.tool.tool_name:
                groups[-1].append(layer)
            else:
                groups.append([layer])

        drafts: list[tuple[str, str]] = []
        for layers in groups:
            tool_name = layers[0].tool.tool_name
            name = f"{base}-{_INDEX}of{_COUNT}-{safe_tool_name(tool_name)}{ext}"
            drafts.append((tool_name, self._render_file(name, layers, workpiece, plan)))

        count = len(drafts)
        files: list[GCodeFile] = []
        for index, (tool_name, draft) in enumerate(drafts, start=1):
            content = draft.replace(_INDEX, f"{index:02d}").replace(_COUNT, f"{count:02d}")
            filename = (
                f"{base}-{index:02d}of{count:02d}-{safe_tool_name(tool_name)}{ext}"
            )
            files.append(GCodeFile(filename=filename, tool_name=tool_name,
                                   content=content))

        for item in plan.skipped:
            logger.warning(
                "Not rendered: cut %d operation %d (%s), %s",
                item.cut_index, item.operation_index,
                item.operation_name or "unnamed", item.reason,
            )
        logger.info("Rendered %d G-code files (%s)", count, base)
        return files

    # ------------------------------------------------------------------
    # Internal: per-file rendering
    # ------------------------------------------------------------------

    def _reset_state(self) -> None:
        self._retracted = True
        self._location = None
        self._last_plot_depth = None

    def _z(self, kind: ZPosition, thickness: float, depth: float = 0.0) -> float:
        return self._profile.z_position(kind, thickness, depth)

    def _render_file(
        self,
        filename: str,
        layers: list[TrackLayer],
        workpiece: WorkpieceInfo,
        plan: TrackPlan,
    ) -> str:
        buf = StringIO()
        self._reset_state()
        thickness = workpiece.thickness
        tool_name = layers[0].tool.tool_name

        self._write_header(buf, filename, tool_name, workpiece, plan)
        for layer in layers:
            buf.write(f"(Pass depth: {_n(layer.depth)})\n")
            for segment in layer.segments:
                self._render_segment(segment, thickness, buf)
        self._write_footer(buf, thickness)
        logger.debug(
            "Rendered %s: %d layers, %d segments",
            tool_name, len(layers), sum(len(layer.segments) for layer in layers),
        )
        return buf.getvalue()

    def _render_segment(
        self,
        segment: TrackSegment,
        thickness: float,
        buf: StringIO,
    ) -> None:
        kind = segment.segment_type
        if kind is TrackSegmentType.PLOT:
            self._gen_plot(segment, thickness, buf)
        elif kind is TrackSegmentType.PLUNGE:
            self._gen_plunge(segment, thickness, buf)
        elif kind is TrackSegmentType.TRANSIT:
            self._gen_transit(segment, thickness, buf)
        else:
            raise GCodeError(f"Segment has no motion type: {segment!r}")

    # ------------------------------------------------------------------
    # Individual generators
    # ------------------------------------------------------------------

    def _retract(self, thickness: float, buf: StringIO) -> None:
        z = self._z(ZPosition.FULLY_RETRACTED, thickness)
        buf.write(f"G00 Z{_n(z)};\n")
        self._retracted = True
        self._last_plot_depth = None

    def _rapid_to(self, point: Point, buf: StringIO) -> None:
        if not point.coincides(self._location):
            buf.write(f"G00 {_xy(point)};\n")
            self._location = point

    def _gen_plot(self, seg: TrackSegment, thickness: float, buf: StringIO) -> None:
        if self._retracted:
            self._rapid_to(seg.start_offset, buf)
            top = self._z(ZPosition.TOP_OF_MATERIAL, thickness)
            buf.write(f"G00 Z{_n(top)};\n")
        if self._retracted or self._last_plot_depth is None or (
            abs(seg.depth - self._last_plot_depth) > 1e-9
        ):
            z = self._z(ZPosition.TOP_OF_MATERIAL, thickness, seg.depth)
            buf.write(f"G01 Z{_n(z)} {_f(seg.feed_rate)};\n")
        buf.write(f"G01 {_xy(seg.end_offset)} {_f(seg.feed_rate)};\n")
        self._retracted = False
        self._location = seg.end_offset
        self._last_plot_depth = seg.depth

    def _gen_plunge(self, seg: TrackSegment, thickness: float, buf: StringIO) -> None:
        if not self._retracted:
            self._retract(thickness, buf)
        self._rapid_to(seg.start_offset, buf)
        top = self._z(ZPosition.TOP_OF_MATERIAL, thickness)
        bottom = self._z(ZPosition.TOP_OF_MATERIAL, thickness, seg.depth)
        buf.write(f"G00 Z{_n(top)};\n")
        buf.write(f"G01 Z{_n(bottom)} {_f(seg.feed_rate)};\n")
        self._retract(thickness, buf)

    def _gen_transit(self, seg: TrackSegment, thickness: float, buf: StringIO) -> None:
        if seg.end_offset.coincides(self._location):
            return
        if not self._retracted:
            self._retract(thickness, buf)
        self._rapid_to(seg.end_offset, buf)

    # ------------------------------------------------------------------
    # Header / footer
    # ------------------------------------------------------------------

    def _write_header(
        self,
        buf: StringIO,
        filename: str,
        tool_name: str,
        workpiece: WorkpieceInfo,
        plan: TrackPlan,
    ) -> None:
        thickness = workpiece.thickness
        material = workpiece.material_type_name.strip() or "(unspecified)"
        buf.write("G21;\n")
        buf.write("G90;\n")
        buf.write(f"G00 Z{_n(self._z(ZPosition.FULLY_RETRACTED, thickness))};\n")
        buf.write(f"(Generated by {GENERATOR_NAME}.)\n")
        buf.write("(All units mm.)\n")
        buf.write("(All measurements absolute by default.)\n")
        buf.write(f"(File: {filename})\n")
        buf.write(f"(Material: {material}, feed {_n(plan.feed_rate)})\n")
        buf.write(
            f"(Surface Z: {_n(self._z(ZPosition.TOP_OF_MATERIAL, thickness))})\n"
        )
        buf.write(f"(Attach tool: {tool_name})\n")

    def _write_footer(self, buf: StringIO, thickness: float) -> None:
        buf.write("(End of program)\n")
        z = self._z(ZPosition.FULLY_RETRACTED, thickness)
        buf.write(f"G00 Z{_n(z)};\n")
        self._retracted = True

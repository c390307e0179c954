"""Working tool set for one render.

A :class:`TrackTool` is the toolpath engine's view of a user tool: the
diameter in millimetres and the two quantities derived from it,
kerf clearance and maximum depth per pass, both half the diameter.

:meth:`TrackToolSet.initialize` starts from the profile's general
cutting tool (the *default* tool, chosen by operations that name no
tool) and appends every other tool the operations reference, in
first-reference order.  Names are matched case-insensitively.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from shoptools.patterns.operations import PatternOperation

if TYPE_CHECKING:
    from shoptools.configs.loader import ConfigProfile, UserTool

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TrackTool:
    """Tool as used by the track builder.

    Parameters
    ----------
    tool_name : str
        User tool name, as configured.
    diameter : float
        Cutting diameter, mm.
    kerf_clearance : float
        Sideways offset that puts the cutting edge on the line, mm.
    max_depth_per_pass : float
        Deepest cut taken in one pass, mm.
    is_default : bool
        ``True`` for the configured general cutting tool.
    """

    tool_name: str
    diameter: float
    kerf_clearance: float
    max_depth_per_pass: float
    is_default: bool = False

    @classmethod
    def from_user_tool(
        cls,
        tool: UserTool,
        profile: ConfigProfile,
        is_default: bool = False,
    ) -> TrackTool:
        diameter = profile.to_millimeters(tool.diameter)
        return cls(
            tool_name=tool.tool_name,
            diameter=diameter,
            kerf_clearance=diameter / 2.0,
            max_depth_per_pass=diameter / 2.0,
            is_default=is_default,
        )


class TrackToolSet:
    """Ordered, name-unique collection of :class:`TrackTool`."""

    def __init__(self, tools: Iterable[TrackTool] = ()) -> None:
        self._tools: list[TrackTool] = list(tools)

    def __iter__(self):
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __getitem__(self, index: int) -> TrackTool:
        return self._tools[index]

    @property
    def default_tool(self) -> TrackTool | None:
        return next((t for t in self._tools if t.is_default), None)

    def _find(self, name: str) -> TrackTool | None:
        key = name.lower()
        return next((t for t in self._tools if t.tool_name.lower() == key), None)

    @classmethod
    def initialize(
        cls,
        profile: ConfigProfile,
        operations: Iterable[PatternOperation],
    ) -> TrackToolSet:
        """Build the tool set a job needs.

        Parameters
        ----------
        profile : ConfigProfile
            Supplies the general cutting tool and the user tools.
        operations : Iterable[PatternOperation]
            Every operation of the job, in order.

        Returns
        -------
        TrackToolSet
            The default tool first (when configured and defined), then
            each distinct explicitly referenced tool.  References to
            undefined tools are logged and left out.
        """
        result = cls()
        general = profile.general_cutting_tool.strip()
        if general:
            tool = profile.find_user_tool(general)
            if tool is not None:
                result._tools.append(
                    TrackTool.from_user_tool(tool, profile, is_default=True),
                )
            else:
                logger.warning("General cutting tool %r is not defined", general)

        missing: set[str] = set()
        for operation in operations:
            name = operation.tool.strip()
            if not name or result._find(name) is not None:
                continue
            tool = profile.find_user_tool(name)
            if tool is None:
                if name.lower() not in missing:
                    missing.add(name.lower())
                    logger.warning("Operation references unknown tool %r", name)
                continue
            result._tools.append(TrackTool.from_user_tool(tool, profile))

        logger.debug(
            "Tool set: %s", ", ".join(t.tool_name for t in result) or "(empty)",
        )
        return result

    def select(self, name: str | None) -> TrackTool | None:
        """Tool called *name*, or the default tool when *name* is empty.

        Returns ``None`` when nothing matches; callers treat that as an
        unresolvable tool for the operation at hand.
        """
        if name and name.strip():
            return self._find(name.strip())
        return self.default_tool

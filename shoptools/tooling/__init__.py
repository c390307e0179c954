"""Tool resolution: user tools to the per-render TrackTool set."""

from shoptools.tooling.tools import TrackTool, TrackToolSet

__all__ = ["TrackTool", "TrackToolSet"]

"""
G-code rendering module.

Converts track plans to per-tool G-code programs with table-relative Z
heights and batch filename templating.
"""

from shoptools.gcode.renderer import GCodeError, GCodeFile, GCodeRenderer

__all__ = ["GCodeError", "GCodeFile", "GCodeRenderer"]

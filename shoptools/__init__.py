"""
ShopTools Package.

Toolpath synthesis for a CNC router: parametrized pattern templates are
placed on a workpiece, laid out in table coordinates, grouped into
per-tool depth passes and rendered as G-code files.

Subpackages:
    measurement: Measurement-string parsing and unit conversion
    geometry: Points, areas and line offsets
    configs: Configuration profile loading and validation
    patterns: Operations, templates, property catalog, variables, workpiece layout
    tooling: Per-render tool set
    track: Layer and segment building
    gcode: G-code rendering from track plans
    jobs: Job document validation
    utils: Logging setup and filesystem helpers
"""

__version__ = "0.1.0"

__all__ = [
    "measurement",
    "geometry",
    "configs",
    "patterns",
    "tooling",
    "track",
    "gcode",
    "jobs",
    "utils",
]

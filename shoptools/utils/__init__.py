"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Atomic I/O and YAML loading (fs)
    - Unified logging for entry points (logging_config)

No module in utils/ may import from upper layers (patterns, track, gcode, ...)
at runtime.

Convenience imports:
    from shoptools.utils import fs
    from shoptools.utils.logging_config import setup_logging, push_context
"""

from . import fs
from . import logging_config

__all__ = ["fs", "logging_config"]

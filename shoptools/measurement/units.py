"""Unit conversion service for linear measurements.

Every linear quantity inside the toolpath engine is stored in
**millimetres**.  Conversion to and from user-facing units happens only
at the parsing boundary (``shoptools.measurement.parser``) and when
display strings are produced.

Unit names are matched case-insensitively.  The foot and inch marks
(``'`` and ``"``) are accepted as aliases of ``ft`` and ``in``.

Unknown units are **not** an error: :func:`convert` returns ``None`` and
the caller decides how to degrade (the measurement parser treats the
segment as a zero contribution).
"""

from __future__ import annotations

import logging
import math

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Unit table
# ---------------------------------------------------------------------------

MM_PER_UNIT: dict[str, float] = {
    "mm": 1.0,
    "cm": 10.0,
    "m": 1000.0,
    "in": 25.4,
    "ft": 304.8,
    "yd": 914.4,
}
"""Millimetres per one canonical unit."""

_ALIASES: dict[str, str] = {
    "millimeter": "mm",
    "millimeters": "mm",
    "millimetre": "mm",
    "millimetres": "mm",
    "centimeter": "cm",
    "centimeters": "cm",
    "centimetre": "cm",
    "centimetres": "cm",
    "meter": "m",
    "meters": "m",
    "metre": "m",
    "metres": "m",
    "inch": "in",
    "inches": "in",
    '"': "in",
    "foot": "ft",
    "feet": "ft",
    "'": "ft",
    "yard": "yd",
    "yards": "yd",
}


def normalize_unit(unit: str) -> str:
    """Return the canonical spelling of *unit*.

    Unknown units are returned lower-cased and stripped so that callers
    can still report them.
    """
    text = unit.strip().lower()
    return _ALIASES.get(text, text)


def is_known_unit(unit: str) -> bool:
    return normalize_unit(unit) in MM_PER_UNIT


def convert(value: float, from_unit: str, to_unit: str) -> float | None:
    """Convert *value* between two linear units.

    Parameters
    ----------
    value : float
        Quantity expressed in *from_unit*.
    from_unit, to_unit : str
        Unit names or aliases (``"in"``, ``"feet"``, ``"'"``, ...).

    Returns
    -------
    float | None
        Converted value, or ``None`` if either unit is unknown.
    """
    source = normalize_unit(from_unit)
    target = normalize_unit(to_unit)
    if source not in MM_PER_UNIT or target not in MM_PER_UNIT:
        logger.debug(
            "Cannot convert %r -> %r: unknown unit", from_unit, to_unit,
        )
        return None
    if source == target:
        return value
    return value * MM_PER_UNIT[source] / MM_PER_UNIT[target]


def to_millimeters(value: float, unit: str) -> float | None:
    """Shorthand for ``convert(value, unit, "mm")``."""
    return convert(value, unit, "mm")


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def format_decimal(value: float, places: int = 3) -> str:
    """Format *value* with up to *places* decimals, trimming zeros.

    Mirrors the ``0.###`` number pattern used throughout the G-code
    output and the measurement display strings::

        >>> format_decimal(12.5)
        '12.5'
        >>> format_decimal(3.17500001)
        '3.175'
        >>> format_decimal(-0.0001)
        '0'
    """
    if not math.isfinite(value):
        return "0"
    text = f"{value:.{places}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text

"""Free-form measurement parsing.

Users type lengths the way they would say them at the bench::

    "2ft 6in"      -> 762 mm
    "2' 6\""       -> 762 mm
    "1 3/8"        -> 1.375 in   (default unit "in")
    "12.5in 3/8"   -> 12.875 in

A measurement *string* decomposes into an ordered list of
:class:`Measurement` pairs which are then summed in a target unit.

Best-effort accumulation
------------------------
Parsing never raises.  A segment that cannot be understood (no numeric
part, malformed fraction, unknown unit) contributes **zero** to the sum
and parsing continues with the next segment.  A CAM session should not
be blocked by a typo in one field; the degradation is logged instead.

Segments only ever add up.  There is no arithmetic: ``*`` reads as an
unknown unit (``"2*3in"`` is 3 in), and a fraction is recognised only
when the slash touches both numbers (``"1 / 2"`` is 1 + 2, not 0.5).
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass

from shoptools.measurement.units import convert, format_decimal, normalize_unit

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

# Numeric/non-numeric alternation.  Both groups are optional so the
# scanner also yields whitespace-only and trailing empty matches; those
# carry no numeric component and are skipped.
_MEASUREMENT_RE = re.compile(
    r"""
    (?P<numeric>
        [-+]?\d+(?:\.\d+)?[ \t]+\d+(?:\.\d+)?/\d+(?:\.\d+)?   # mixed: 1 3/8
      | [-+]?\d+(?:\.\d+)?/\d+(?:\.\d+)?                      # fraction: 3/8
      | [-+]?(?:\d+(?:\.\d*)?|\.\d+)                           # whole or decimal
    )?
    \s*
    (?P<unit>[^\s\d.+\-/]*)
    """,
    re.VERBOSE,
)

_ANGLE_RE = re.compile(
    r"(?P<angle>[-+]?(?:\d+(?:\.\d*)?|\.\d+))\s*(?P<unit>[a-zA-Z°]*)"
)

# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Measurement:
    """One numeric/unit pair of a measurement string.

    Parameters
    ----------
    value : str
        Numeric text, possibly fractional (``"3/8"``, ``"1 3/8"``).
    unit : str
        Canonical unit name (``"mm"``, ``"in"``, ``"ft"``, ...).
    """

    value: str
    unit: str


# ---------------------------------------------------------------------------
# Numeric helpers
# ---------------------------------------------------------------------------


def _to_float(text: str) -> float:
    """Parse *text* as a float, returning 0.0 when it is not numeric."""
    try:
        return float(text)
    except ValueError:
        logger.debug("Non-numeric measurement component %r counted as 0", text)
        return 0.0


def parse_fractional(value: str) -> float:
    """Evaluate ``whole[ numerator/denominator]`` notation.

    Pure integers, decimals, pure fractions and mixed numbers are all
    accepted.  A zero denominator drops the fractional term; a
    non-numeric numerator or denominator makes the fractional term
    contribute zero while the whole part is kept.

    Examples
    --------
    >>> parse_fractional("3/8")
    0.375
    >>> parse_fractional("1 3/8")
    1.375
    >>> parse_fractional("1 3/0")
    1.0
    """
    text = value.strip()
    if not text:
        return 0.0

    whole_text, _, fraction_text = text.partition(" ")
    if "/" in whole_text and not fraction_text:
        whole_text, fraction_text = "", whole_text

    whole = _to_float(whole_text) if whole_text else 0.0
    fraction = 0.0
    fraction_text = fraction_text.strip()
    if fraction_text:
        numerator_text, _, denominator_text = fraction_text.partition("/")
        numerator = _to_float(numerator_text)
        denominator = _to_float(denominator_text)
        if denominator != 0.0:
            fraction = numerator / denominator

    if whole_text.startswith("-"):
        return whole - fraction
    return whole + fraction


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_measurements(text: str | None, default_unit: str) -> list[Measurement]:
    """Split a measurement string into ordered numeric/unit pairs.

    Parameters
    ----------
    text : str | None
        Free-form measurement text.
    default_unit : str
        Unit applied to numeric tokens that have no unit of their own.

    Returns
    -------
    list[Measurement]
        Pairs in the order they appear.  Tokens without a numeric
        component are dropped.
    """
    result: list[Measurement] = []
    if not text:
        return result

    for match in _MEASUREMENT_RE.finditer(text):
        numeric = match.group("numeric")
        if not numeric or not numeric.strip():
            continue
        unit = match.group("unit") or default_unit
        result.append(
            Measurement(value=" ".join(numeric.split()), unit=normalize_unit(unit))
        )
    return result


def _sum_as(measurements: list[Measurement], target_unit: str) -> float:
    total = 0.0
    for item in measurements:
        number = parse_fractional(item.value)
        converted = convert(number, item.unit, target_unit)
        if converted is None:
            logger.warning(
                "Measurement %s%s has an unknown unit; counted as 0",
                item.value, item.unit,
            )
            continue
        total += converted
    return total


def sum_as_millimeters(measurements: list[Measurement]) -> float:
    """Total of *measurements* in millimetres (0 for an empty list)."""
    return _sum_as(measurements, "mm")


def sum_as_inches(measurements: list[Measurement]) -> float:
    """Total of *measurements* in inches (0 for an empty list)."""
    return _sum_as(measurements, "in")


def measure_millimeters(text: str | None, default_unit: str) -> float:
    """Parse and sum *text* in millimetres."""
    return sum_as_millimeters(parse_measurements(text, default_unit))


def measure_inches(text: str | None, default_unit: str) -> float:
    """Parse and sum *text* in inches."""
    return sum_as_inches(parse_measurements(text, default_unit))


def measurement_string(text: str | None, unit: str) -> str:
    """Normalized display string of *text* in *unit* (``"12.7mm"``).

    Returns an empty string for empty input or an unsupported unit.
    """
    if not text:
        return ""
    canonical = normalize_unit(unit)
    if canonical == "in":
        return f"{format_decimal(measure_inches(text, canonical))}in"
    if canonical == "mm":
        return f"{format_decimal(measure_millimeters(text, canonical))}mm"
    return ""


def alt_value(
    measurement: str,
    normal_value: str = "",
    use_parenthesis: bool = True,
) -> str:
    """Alternate display text shown beside a user-entered value.

    The alternate text is omitted when it reads the same as what the
    user typed (ignoring spaces).
    """
    if not measurement:
        return ""
    if measurement in (" ", "..."):
        return "..."
    if measurement.replace(" ", "") == normal_value.replace(" ", ""):
        return ""
    if use_parenthesis and not (
        measurement.startswith("(") and measurement.endswith(")")
    ):
        return f"({measurement})"
    return measurement


def parse_angle(text: str | None) -> float:
    """Parse an angle string into radians.

    Plain numbers and the ``deg``/``degrees``/``°`` suffixes are degrees;
    ``rad``/``radians`` are taken as-is.  Unparseable input is 0.
    """
    if not text:
        return 0.0
    match = _ANGLE_RE.search(text)
    if match is None:
        return 0.0
    angle = _to_float(match.group("angle"))
    unit = match.group("unit").lower()
    if unit in ("rad", "radians"):
        return angle
    return math.radians(angle)

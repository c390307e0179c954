"""
Measurement parsing and unit conversion.

Turns free-form length text ("2ft 6in", "1 3/8") into millimetres or
inches.  Parsing is best-effort and never raises.
"""

from shoptools.measurement.parser import (
    Measurement,
    alt_value,
    measure_inches,
    measure_millimeters,
    measurement_string,
    parse_angle,
    parse_fractional,
    parse_measurements,
    sum_as_inches,
    sum_as_millimeters,
)
from shoptools.measurement.units import convert, format_decimal, normalize_unit

__all__ = [
    "Measurement",
    "alt_value",
    "convert",
    "format_decimal",
    "measure_inches",
    "measure_millimeters",
    "measurement_string",
    "normalize_unit",
    "parse_angle",
    "parse_fractional",
    "parse_measurements",
    "sum_as_inches",
    "sum_as_millimeters",
]

"""Editable operation variables.

A template exposes its operation parameters as named variables so that
a user (or a job document) can fill in lengths, offsets and tool names
without editing operations one by one.

- A **per-operation** variable is named ``"<OperationName> <Property>"``
  (e.g. ``"Edge End Offset X"``) and covers every operation that shares
  that operation name.
- A **shared** variable is named after the property alone and covers
  every operation in the template the property applies to.

Variables hold operation *indices* into the template's operation tuple,
not operation objects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from shoptools.patterns.catalog import (
    OperationActionProperty,
    find_property,
    get_property,
    properties_for,
    set_property,
)
from shoptools.patterns.enums import PropertyDataType
from shoptools.patterns.operations import PatternOperation

logger = logging.getLogger(__name__)

Catalog = tuple[OperationActionProperty, ...] | list[OperationActionProperty]


@dataclass
class OperationVariable:
    """One user-editable value bound to one or more operations."""

    base_name: str
    display_name: str
    operation_name: str = ""
    value: str = ""
    working_value: str = ""
    operation_indices: list[int] = field(default_factory=list)

    def set_value(self, value: str) -> None:
        """Set the value and reset the working value to it."""
        self.value = value
        self.working_value = value


def expand_camel_case(value: str) -> str:
    """``"startOffsetX"`` -> ``"Start Offset X"``."""
    chars: list[str] = []
    for index, ch in enumerate(value):
        if index == 0:
            chars.append(ch.upper())
        elif ch.isupper():
            chars.append(" ")
            chars.append(ch)
        else:
            chars.append(ch)
    return "".join(chars)


def _bind(
    variable: OperationVariable, index: int, text: str,
) -> None:
    if index not in variable.operation_indices:
        variable.operation_indices.append(index)
    if not variable.value and text:
        variable.set_value(text)


def collect_variables(
    operations: tuple[PatternOperation, ...] | list[PatternOperation],
    catalog: Catalog,
    shared_variables: tuple[str, ...] | list[str] = (),
) -> list[OperationVariable]:
    """Build the variable list for an ordered set of operations.

    Parameters
    ----------
    operations : sequence of PatternOperation
        Operations of one template or cut, in order.
    catalog : sequence of OperationActionProperty
        Property catalog from the configuration profile.
    shared_variables : sequence of str
        Property names edited once for all operations.

    Returns
    -------
    list[OperationVariable]
        Variables in first-encounter order.  A variable's initial value
        is the first non-empty value found among its operations.
    """
    shared = {name.lower() for name in shared_variables}
    result: list[OperationVariable] = []

    for index, operation in enumerate(operations):
        hidden = {name.lower() for name in operation.hidden_variables}
        for prop in properties_for(catalog, operation.action):
            if prop.internal:
                continue
            key = prop.property_name.lower()
            text = get_property(operation, prop.property_name)
            if key in shared:
                variable = next(
                    (v for v in result if v.base_name.lower() == key
                     and not v.operation_name),
                    None,
                )
                if variable is None:
                    variable = OperationVariable(
                        base_name=prop.property_name,
                        display_name=expand_camel_case(prop.property_name),
                    )
                    result.append(variable)
                _bind(variable, index, text)
            elif key not in hidden:
                variable = next(
                    (v for v in result if v.base_name.lower() == key
                     and v.operation_name == operation.operation_name),
                    None,
                )
                if variable is None:
                    prefix = (
                        f"{operation.operation_name} "
                        if operation.operation_name else ""
                    )
                    variable = OperationVariable(
                        base_name=prop.property_name,
                        display_name=prefix + expand_camel_case(prop.property_name),
                        operation_name=operation.operation_name,
                    )
                    result.append(variable)
                _bind(variable, index, text)

    logger.debug(
        "Collected %d variables from %d operations", len(result), len(operations),
    )
    return result


def apply_variables(
    variables: list[OperationVariable],
    operations: tuple[PatternOperation, ...] | list[PatternOperation],
    catalog: Catalog,
) -> tuple[PatternOperation, ...]:
    """Write each variable's working value into its operations.

    Returns a new operation tuple; *operations* is not modified.
    Variables whose base name is not in the catalog are ignored.
    Enum-typed values that do not parse leave the property unchanged.
    """
    result = list(operations)
    for variable in variables:
        prop = find_property(catalog, variable.base_name)
        if prop is None:
            logger.debug("Variable %r has no catalog entry", variable.display_name)
            continue
        if prop.data_type is PropertyDataType.PLOT_ACTION:
            continue
        for index in variable.operation_indices:
            if 0 <= index < len(result):
                result[index] = set_property(
                    result[index], prop.property_name, variable.working_value,
                )
    return tuple(result)

"""Pattern operations -- the vocabulary between pattern templates and tracks.

Every operation is an immutable, slotted dataclass.  Geometric
parameters are kept as the **measurement strings** the user typed
(``"3/8in"``, ``"12.5mm"``); they are resolved to millimetres only when a
cut is laid out against a workpiece (``shoptools.patterns.workpiece``).

Which parameters an action reads
--------------------------------
========  ==============================================================
Plot      ``start_offset_*`` (or ``offset_*``, or the current location),
          then ``end_offset_*`` or ``angle`` + ``length``; ``kerf``;
          ``depth``
Plunge    ``offset_*``; ``depth``
Transit   ``end_offset_*`` or ``angle`` + ``length``
========  ==============================================================

An empty ``depth`` cuts through the full workpiece thickness.  An empty
``tool`` selects the configured general cutting tool.

Grouping
--------
A *PatternTemplate* is a reusable ordered list of operations.  A
*CutProfile* is a template bound to a workpiece; the toolpath builder
consumes an ordered list of cut profiles.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from shoptools.geometry.primitives import Point
from shoptools.patterns.enums import (
    DirectionLeftRight,
    OffsetLeftRight,
    OffsetTopBottom,
    OperationAction,
    TemplateOrientation,
)

# ---------------------------------------------------------------------------
# Operation
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PatternOperation:
    """One atomic cutting or moving action.

    Parameters
    ----------
    action : OperationAction
        Plot, Plunge, Transit or None.
    operation_name : str
        Optional grouping key shared by related operations; also the
        prefix of per-operation variable names.
    tool : str
        Tool name reference.  Empty selects the default tool.
    hidden_variables : frozenset[str]
        Catalog property names not offered as editable variables.
    """

    action: OperationAction = OperationAction.NONE
    operation_id: str = ""
    operation_name: str = ""
    tool: str = ""
    hidden_variables: frozenset[str] = frozenset()
    depth: str = ""
    offset_x: str = ""
    offset_x_origin: OffsetLeftRight = OffsetLeftRight.NONE
    offset_y: str = ""
    offset_y_origin: OffsetTopBottom = OffsetTopBottom.NONE
    start_offset_x: str = ""
    start_offset_x_origin: OffsetLeftRight = OffsetLeftRight.NONE
    start_offset_y: str = ""
    start_offset_y_origin: OffsetTopBottom = OffsetTopBottom.NONE
    end_offset_x: str = ""
    end_offset_x_origin: OffsetLeftRight = OffsetLeftRight.NONE
    end_offset_y: str = ""
    end_offset_y_origin: OffsetTopBottom = OffsetTopBottom.NONE
    kerf: DirectionLeftRight = DirectionLeftRight.NONE
    angle: str = ""
    length: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.action, OperationAction):
            raise ValueError(
                f"action must be an OperationAction, got {self.action!r}"
            )
        if not isinstance(self.hidden_variables, frozenset):
            object.__setattr__(
                self, "hidden_variables", frozenset(self.hidden_variables),
            )

    def with_values(self, **changes: object) -> PatternOperation:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


# ---------------------------------------------------------------------------
# Templates and cuts
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PatternTemplate:
    """Reusable, parametrised definition of one or more operations.

    Parameters
    ----------
    template_name : str
        Unique display name; job documents reference templates by it.
    operations : tuple[PatternOperation, ...]
        Operations in cutting order.
    shared_variables : tuple[str, ...]
        Catalog property names edited once for the whole template.
    tool_sequence_strict : bool
        ``True`` keeps the literal operation order even when it causes
        extra tool changes.
    """

    template_name: str
    pattern_template_id: str = ""
    operations: tuple[PatternOperation, ...] = ()
    shared_variables: tuple[str, ...] = ()
    tool_sequence_strict: bool = False
    orientation: TemplateOrientation = TemplateOrientation.NONE
    pattern_length: str = ""
    pattern_width: str = ""
    remarks: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CutProfile:
    """A pattern template placed on a workpiece.

    ``start_location`` is in table display millimetres (top-left origin,
    +Y down).  When set, relative offsets of the cut's first operation
    are measured from it instead of from wherever the previous cut ended.
    """

    template_name: str
    operations: tuple[PatternOperation, ...] = ()
    start_location: Point | None = None
    end_location: Point | None = None
    shared_variables: tuple[str, ...] = ()
    tool_sequence_strict: bool = False
    orientation: TemplateOrientation = TemplateOrientation.NONE
    pattern_length: str = ""
    pattern_width: str = ""
    remarks: tuple[str, ...] = field(default=())

    @classmethod
    def from_template(
        cls,
        template: PatternTemplate,
        start_location: Point | None = None,
    ) -> CutProfile:
        """Instantiate *template* at *start_location*.

        Operations are immutable, so the copy shares them; later
        variable edits produce new operation objects.
        """
        return cls(
            template_name=template.template_name,
            operations=tuple(template.operations),
            start_location=start_location,
            shared_variables=tuple(template.shared_variables),
            tool_sequence_strict=template.tool_sequence_strict,
            orientation=template.orientation,
            pattern_length=template.pattern_length,
            pattern_width=template.pattern_width,
            remarks=tuple(template.remarks),
        )

    def with_operations(
        self, operations: tuple[PatternOperation, ...] | list[PatternOperation],
    ) -> CutProfile:
        return replace(self, operations=tuple(operations))

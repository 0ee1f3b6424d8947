"""Row diffs produced by the reconcilers."""

from dataclasses import dataclass, field
from typing import Any, Generic, Iterator, TypeVar

from leasewatch.models.enums import InstructionKind

RowT = TypeVar("RowT")


@dataclass(frozen=True)
class RowInstruction:
    """A single add/update/remove instruction for the rendering collaborator."""

    kind: InstructionKind
    row_id: str
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass
class Diff(Generic[RowT]):
    """
    Ordered add/update/remove triple.

    No row identity appears in more than one list.
    """

    added: list[RowT] = field(default_factory=list)
    updated: list[RowT] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.added or self.updated or self.removed)

    def instructions(self) -> Iterator[RowInstruction]:
        """Yield instructions in add, update, remove order."""
        for row in self.added:
            yield RowInstruction(InstructionKind.ADD, row.row_id, row.fields())
        for row in self.updated:
            yield RowInstruction(InstructionKind.UPDATE, row.row_id, row.fields())
        for row_id in self.removed:
            yield RowInstruction(InstructionKind.REMOVE, row_id)

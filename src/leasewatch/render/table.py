"""In-memory table projection of reconciled rows."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from leasewatch.render.labels import format_since, format_until
from leasewatch.utils.time import utc_now

logger = logging.getLogger(__name__)


class Renderer(Protocol):
    """Rendering collaborator fed by the reconciliation engine."""

    def add(self, row_id: str, fields: dict[str, Any]) -> None: ...

    def update(self, row_id: str, fields: dict[str, Any]) -> None: ...

    def remove(self, row_id: str) -> None: ...

    def refresh_relative_labels(self, now: Optional[datetime] = None) -> None: ...

    def clear(self) -> None: ...


class LabelKind(str, Enum):
    """How a cell turns its stored value into text."""

    TEXT = "text"
    SINCE = "since"
    UNTIL = "until"


@dataclass(frozen=True)
class Column:
    name: str
    kind: LabelKind = LabelKind.TEXT


@dataclass
class Cell:
    """A rendered cell; relative labels are recomputed from the stored instant."""

    column: Column
    value: Any = None
    text: str = ""

    def render(self, now: datetime) -> None:
        if self.column.kind is LabelKind.SINCE:
            self.text = format_since(self.value, now)
        elif self.column.kind is LabelKind.UNTIL:
            self.text = format_until(self.value, now)
        elif self.value is None:
            self.text = ""
        elif isinstance(self.value, datetime):
            self.text = self.value.isoformat()
        else:
            self.text = str(self.value)


@dataclass
class TableRow:
    row_id: str
    cells: list[Cell]
    fields: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.row_id,
            "cells": {cell.column.name: cell.text for cell in self.cells},
        }


LEASE_COLUMNS: tuple[Column, ...] = (
    Column("program"),
    Column("user"),
    Column("computer"),
    Column("pid"),
    Column("status"),
    Column("started", LabelKind.SINCE),
    Column("remaining", LabelKind.UNTIL),
)

POLICY_COLUMNS: tuple[Column, ...] = (
    Column("program"),
    Column("consumed"),
    Column("available"),
    Column("total"),
)


def lease_sort_key(row: TableRow) -> tuple:
    """Order by status (active, released, queued, other), then program, then id."""
    return (row.fields.get("order", 3), str(row.fields.get("program") or ""), row.row_id)


def policy_sort_key(row: TableRow) -> tuple:
    return (str(row.fields.get("program") or ""), str(row.fields.get("resource") or ""))


class TableView:
    """
    Mirrors add/update/remove instructions as an ordered table.

    Holds no authoritative state; it can be cleared and rebuilt from the
    reconcilers at any time.
    """

    def __init__(
        self,
        name: str,
        columns: tuple[Column, ...],
        sort_key: Optional[Callable[[TableRow], Any]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.name = name
        self.columns = columns
        self._sort_key = sort_key
        self._clock = clock
        self._rows: dict[str, TableRow] = {}

    def _build(self, row_id: str, fields: dict[str, Any]) -> TableRow:
        now = self._clock()
        cells = []
        for column in self.columns:
            cell = Cell(column, fields.get(column.name))
            cell.render(now)
            cells.append(cell)
        return TableRow(row_id, cells, dict(fields))

    def add(self, row_id: str, fields: dict[str, Any]) -> None:
        if row_id in self._rows:
            logger.warning(f"{self.name}: add for existing row {row_id}, replacing")
        self._rows[row_id] = self._build(row_id, fields)

    def update(self, row_id: str, fields: dict[str, Any]) -> None:
        if row_id not in self._rows:
            logger.debug(f"{self.name}: update for unknown row {row_id} ignored")
            return
        self._rows[row_id] = self._build(row_id, fields)

    def remove(self, row_id: str) -> None:
        self._rows.pop(row_id, None)

    def refresh_relative_labels(self, now: Optional[datetime] = None) -> None:
        now = now or self._clock()
        for row in self._rows.values():
            for cell in row.cells:
                if cell.column.kind is not LabelKind.TEXT:
                    cell.render(now)

    def clear(self) -> None:
        self._rows.clear()

    def get(self, row_id: str) -> Optional[TableRow]:
        return self._rows.get(row_id)

    def __contains__(self, row_id: object) -> bool:
        return row_id in self._rows

    def __len__(self) -> int:
        return len(self._rows)

    def rows(self) -> list[TableRow]:
        rows = list(self._rows.values())
        if self._sort_key is not None:
            rows.sort(key=self._sort_key)
        return rows

    def snapshot(self) -> list[dict[str, Any]]:
        return [row.to_dict() for row in self.rows()]


def lease_table(clock: Callable[[], datetime] = utc_now) -> TableView:
    return TableView("leases", LEASE_COLUMNS, lease_sort_key, clock)


def policy_table(clock: Callable[[], datetime] = utc_now) -> TableView:
    return TableView("policies", POLICY_COLUMNS, policy_sort_key, clock)

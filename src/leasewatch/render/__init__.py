"""Rendering projection of the reconciled view."""

from leasewatch.render.labels import format_duration, format_since, format_until
from leasewatch.render.table import (
    LEASE_COLUMNS,
    POLICY_COLUMNS,
    Column,
    LabelKind,
    Renderer,
    TableRow,
    TableView,
    lease_table,
    policy_table,
)

__all__ = [
    "Column",
    "LEASE_COLUMNS",
    "LabelKind",
    "POLICY_COLUMNS",
    "Renderer",
    "TableRow",
    "TableView",
    "format_duration",
    "format_since",
    "format_until",
    "lease_table",
    "policy_table",
]

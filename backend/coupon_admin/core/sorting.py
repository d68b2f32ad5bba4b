"""Shared sorting utilities for repository queries."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy import asc, desc
from sqlalchemy.sql.elements import ColumnElement, UnaryExpression


def build_order_by(
    sort_columns: Mapping[str, ColumnElement[Any]],
    sort: str | None,
    direction: str | None,
    default_field: str,
    default_direction: str = "desc",
) -> UnaryExpression[Any]:
    """Build a single ORDER BY clause from a whitelisted sort key.

    Args:
        sort_columns: Public sort key to column mapping. Only these keys
            may be sorted on.
        sort: Requested sort key. Unknown keys fall back to default_field.
        direction: "asc" or "desc". Anything else falls back to
            default_direction.
        default_field: Sort key used when sort is missing or unknown.
        default_direction: Default sort direction ("asc" or "desc").

    Returns:
        The ordering clause.
    """
    field = sort if sort in sort_columns else default_field
    if direction not in ("asc", "desc"):
        direction = default_direction

    column = sort_columns[field]
    order_func = asc if direction == "asc" else desc
    return order_func(column)

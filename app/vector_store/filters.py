"""
Translate metadata filters into SQLAlchemy where-clauses.

A filter maps a column name to either a bare value (equality) or a mapping of
operators, e.g. ``{"content": {"equals": "default"}}`` or
``{"id": {"gte": 10, "not_in": [12, 13]}}``. Several entries are AND-ed.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from typing import Any, Callable, Dict, List

from sqlalchemy import Column, Table
from sqlalchemy.sql.elements import ColumnElement

from app.errors import InvalidFilterError


def _sequence(operator: str, value: Any) -> List[Any]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Collection):
        raise InvalidFilterError(f"Operator '{operator}' expects a list of values")
    return list(value)


def _flag(operator: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise InvalidFilterError(f"Operator '{operator}' expects true or false")
    return value


OPERATORS: Dict[str, Callable[[Column, Any], ColumnElement]] = {
    "equals": lambda col, value: col.is_(None) if value is None else col == value,
    "not": lambda col, value: col.is_not(None) if value is None else col != value,
    "in": lambda col, value: col.in_(_sequence("in", value)),
    "not_in": lambda col, value: col.not_in(_sequence("not_in", value)),
    "lt": lambda col, value: col < value,
    "lte": lambda col, value: col <= value,
    "gt": lambda col, value: col > value,
    "gte": lambda col, value: col >= value,
    "like": lambda col, value: col.like(value),
    "is_null": lambda col, value: col.is_(None) if _flag("is_null", value) else col.is_not(None),
    "is_not_null": lambda col, value: col.is_not(None) if _flag("is_not_null", value) else col.is_(None),
}


def build_filter_clauses(
    table: Table,
    filter: Mapping[str, Any] | None,
    excluded_columns: Collection[str] = (),
) -> List[ColumnElement]:
    if not filter:
        return []
    if not isinstance(filter, Mapping):
        raise InvalidFilterError("Filter must be an object mapping column names to conditions")

    clauses: List[ColumnElement] = []
    for column_name, condition in filter.items():
        if column_name in excluded_columns or column_name not in table.c:
            raise InvalidFilterError(f"Cannot filter on column '{column_name}'")
        column = table.c[column_name]

        if not isinstance(condition, Mapping):
            clauses.append(OPERATORS["equals"](column, condition))
            continue
        if not condition:
            raise InvalidFilterError(f"Empty condition for column '{column_name}'")

        for operator, value in condition.items():
            build = OPERATORS.get(operator)
            if build is None:
                raise InvalidFilterError(f"Unknown filter operator '{operator}'")
            clauses.append(build(column, value))
    return clauses


__all__ = ["OPERATORS", "build_filter_clauses"]

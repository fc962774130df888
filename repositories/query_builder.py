"""
repositories/query_builder.py
-----------------------------
Builds WHERE and ORDER BY clauses for the filtered listing queries.

Caller-supplied values only ever travel as bound parameters (%s).
ORDER BY cannot be parameterized, so the sort column and direction
are checked against a per-entity allow-list and replaced by the
default ordering when they don't match.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

EQUALS = "equals"
SEARCH = "search"
IN_LIST = "in_list"

_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class FilterField:
    """
    One optional filter of a listing query.

    Attributes:
        key: Name of the filter in the caller's mapping (e.g. 'department_id').
        columns: Column expression(s) the filter applies to. SEARCH uses all of
            them, the other kinds use the first.
        kind: EQUALS, SEARCH or IN_LIST.
    """
    key: str
    columns: tuple[str, ...]
    kind: str = EQUALS


@dataclass(frozen=True)
class SortSpec:
    """Allowed sort columns and the fallback ordering for one entity."""
    allowed: tuple[str, ...]
    default_column: str
    default_direction: str
    prefix: str = ""

    def default_clause(self) -> str:
        return f"ORDER BY {self.prefix}{self.default_column} {self.default_direction.upper()}"


def _is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def split_list(value: str) -> list[str]:
    """Split a comma-separated filter value, trimming items and dropping empty ones."""
    return [item.strip() for item in value.split(",") if item.strip()]


def build_where(
    filters: Mapping[str, Any], fields: Sequence[FilterField]
) -> tuple[str, list]:
    """
    Turn the present filters into a WHERE clause.

    Fields are applied in declaration order so the clause and its
    parameters are deterministic for the same input.

    Returns:
        (clause, params) where clause is '' if no filter is present,
        otherwise 'WHERE ... AND ...'.
    """
    conditions: list[str] = []
    params: list = []

    for field in fields:
        value = filters.get(field.key)
        if _is_absent(value):
            continue

        if field.kind == EQUALS:
            conditions.append(f"{field.columns[0]} = %s")
            params.append(value)

        elif field.kind == SEARCH:
            term = f"%{str(value).strip().lower()}%"
            conditions.append(
                "(" + " OR ".join(f"LOWER({col}) LIKE %s" for col in field.columns) + ")"
            )
            params.extend([term] * len(field.columns))

        elif field.kind == IN_LIST:
            items = split_list(value) if isinstance(value, str) else [v for v in value if not _is_absent(v)]
            if not items:
                continue
            placeholders = ", ".join(["%s"] * len(items))
            conditions.append(f"{field.columns[0]} IN ({placeholders})")
            params.extend(items)

        else:
            raise ValueError(f"Unknown filter kind: {field.kind}")

    if not conditions:
        return "", params
    return "WHERE " + " AND ".join(conditions), params


def build_order_by(sort_by: Optional[str], sort_spec: SortSpec) -> str:
    """
    Resolve a 'column:direction' specifier into an ORDER BY clause.

    Anything other than an allowed column followed by asc/desc
    (case-insensitive) yields the default ordering.
    """
    if not isinstance(sort_by, str) or ":" not in sort_by:
        return sort_spec.default_clause()

    column, _, direction = sort_by.partition(":")
    column = column.strip()
    direction = direction.strip().lower()
    if column not in sort_spec.allowed or direction not in _DIRECTIONS:
        return sort_spec.default_clause()

    return f"ORDER BY {sort_spec.prefix}{column} {direction.upper()}"


def build_query(
    base_sql: str,
    filters: Mapping[str, Any],
    fields: Sequence[FilterField],
    sort_spec: SortSpec,
    sort_by: Optional[str] = None,
) -> tuple[str, list]:
    """Append the WHERE and ORDER BY clauses to a SELECT statement."""
    where, params = build_where(filters, fields)
    parts = [base_sql.rstrip()]
    if where:
        parts.append(where)
    parts.append(build_order_by(sort_by, sort_spec))
    return "\n".join(parts) + ";", params

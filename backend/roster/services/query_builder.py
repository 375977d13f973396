"""Builds the parameterized WHERE/ORDER BY for employee listing."""

from __future__ import annotations

from dataclasses import dataclass

from roster.models.employee import FilterCriteria

# FilterCriteria field → employees column. Order fixes clause and parameter order.
_FILTER_COLUMNS: list[tuple[str, str]] = [
    ("name", "name"),
    ("email", "email"),
    ("department", "department"),
    ("position", "position"),
]

_CONTAINS_CLAUSE = "LOWER({column}) LIKE LOWER({{param}})"

DEFAULT_ORDER = "created_at DESC, id DESC"


@dataclass(frozen=True)
class FilterQuery:
    """Clause templates paired 1:1 with their bound values.

    Templates carry a ``{param}`` slot; placeholder names are only assigned in
    ``render`` so a clause can never point at the wrong parameter.
    """

    clauses: tuple[str, ...] = ()
    params: tuple[str, ...] = ()
    order_by: str = DEFAULT_ORDER

    def render(self) -> tuple[str, dict[str, str]]:
        binds: dict[str, str] = {}
        predicates: list[str] = []
        for index, (clause, value) in enumerate(zip(self.clauses, self.params), start=1):
            name = f"p{index}"
            predicates.append(clause.format(param=f":{name}"))
            binds[name] = value

        sql = f"ORDER BY {self.order_by}"
        if predicates:
            sql = f"WHERE {' AND '.join(predicates)} {sql}"
        return sql, binds


class QueryBuilder:
    def build(self, criteria: FilterCriteria) -> FilterQuery:
        clauses: list[str] = []
        params: list[str] = []
        for field, column in _FILTER_COLUMNS:
            value = getattr(criteria, field)
            if not value:
                continue
            clauses.append(_CONTAINS_CLAUSE.format(column=column))
            params.append(f"%{value}%")
        return FilterQuery(clauses=tuple(clauses), params=tuple(params))


query_builder = QueryBuilder()

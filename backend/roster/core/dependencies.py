from __future__ import annotations

from fastapi import Query

from roster.models.employee import FilterCriteria


async def get_filter_criteria(
    name: str | None = Query(None),
    email: str | None = Query(None),
    department: str | None = Query(None),
    position: str | None = Query(None),
) -> FilterCriteria:
    return FilterCriteria(name=name, email=email, department=department, position=position)

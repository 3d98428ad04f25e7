"""
List-endpoint helpers shared by users, handles, topics and tweets.

Query string conventions:
- `filter`   JSON object, e.g. filter={"search":"tw","camp":1}
- `related`  JSON array of relation names, e.g. related=["topics"]
             (a plain comma separated list is accepted too)
- `page`, `pageSize`  1-indexed pagination, both default when absent
- `sort`, `sortOrder` field from a per-resource allow-list, asc|desc

Sort columns are always looked up in an allow-list mapping, never taken
from the request.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Literal, TypeVar

from fastapi import HTTPException, status
from pydantic import BaseModel, ValidationError

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 500

SortOrder = Literal["asc", "desc"]

FilterT = TypeVar("FilterT", bound=BaseModel)


def _bad_request(field: str, reason: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=f'invalid "{field}": {reason}',
    )


def parse_json_param(raw: str | None, *, field: str) -> Any:
    if raw is None or not raw.strip():
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise _bad_request(field, "must be valid JSON") from exc


def parse_filter(raw: str | None, model: type[FilterT]) -> FilterT:
    value = parse_json_param(raw, field="filter")
    if value is None:
        return model()
    if not isinstance(value, dict):
        raise _bad_request("filter", "must be an object")
    try:
        return model.model_validate(value)
    except ValidationError as exc:
        first = exc.errors()[0]
        loc = ".".join(str(part) for part in first.get("loc", ()))
        raise _bad_request("filter", f"{loc} {first.get('msg', 'is invalid')}".strip()) from exc


def parse_related(raw: str | None, allowed: frozenset[str]) -> list[str]:
    """
    Parse the `related` expansion list and check every name against `allowed`.

    Order is preserved and duplicates are dropped.
    """
    if raw is None or not raw.strip():
        return []

    text = raw.strip()
    if text.startswith("["):
        value = parse_json_param(text, field="related")
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise _bad_request("related", "must be an array of relation names")
        names = [item.strip() for item in value]
    else:
        names = [item.strip() for item in text.split(",")]

    related: list[str] = []
    for name in names:
        if not name:
            continue
        if name not in allowed:
            choices = ", ".join(sorted(allowed))
            raise _bad_request("related", f'unknown relation "{name}" (allowed: {choices})')
        if name not in related:
            related.append(name)
    return related


@dataclass(frozen=True)
class Listing:
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    sort: str = "name"
    sort_order: SortOrder = "asc"

    @property
    def limit(self) -> int:
        return max(1, min(self.page_size, MAX_PAGE_SIZE))

    @property
    def offset(self) -> int:
        return (max(self.page, 1) - 1) * self.limit


def order_by_clause(
    sort: str,
    sort_order: str,
    *,
    columns: dict[str, str],
    tiebreak: str = "id",
) -> str:
    column = columns.get(sort)
    if column is None:
        raise _bad_request("sort", f'unknown sort field "{sort}"')
    direction = "DESC" if sort_order == "desc" else "ASC"
    return f"ORDER BY {column} {direction} NULLS LAST, {tiebreak} ASC"

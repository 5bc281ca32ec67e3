"""Sort scopes: request parameters to ORDER BY clauses.

``resolve_sort`` is the pure part. It validates the requested sort against
the allowed fields and falls back to the default sort. ``SortScope`` and
``SortScopes`` read the value from query parameters and apply the result
to a SQLAlchemy query::

    sorting = SortScopes().has_sort_scope(by=["id", "title"], default="id")

    @router.get("/projects")
    def index(request: Request, db: Session = Depends(get_db)):
        query = sorting.apply(db.query(Project), Project, request.query_params)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from sqlalchemy import asc, desc as desc_
from sqlalchemy.orm import Query

from resourcekit.core.config import settings
from resourcekit.schemas.sorting import SortDirection, SortSpec
from resourcekit.services.params_parser import parse_boolean
from resourcekit.services.query_params import nested_param

logger = logging.getLogger(__name__)

DefaultSort = Union[None, str, Mapping[str, Any]]


def sort_direction(value: Any) -> SortDirection:
    # Only the exact "desc" literal sorts descending, anything else is ascending.
    return SortDirection.DESC if value == SortDirection.DESC.value else SortDirection.ASC


def _allowed_fields(allowed: Union[None, str, Iterable[str]]) -> Tuple[str, ...]:
    if allowed is None:
        return ()
    if isinstance(allowed, str):
        return (allowed,)
    return tuple(allowed)


def _default_sort(default: DefaultSort, desc: bool) -> SortSpec:
    if default is None:
        return {}
    if isinstance(default, Mapping):
        return dict(default)
    return {default: SortDirection.DESC if desc else SortDirection.ASC}


def resolve_sort(
    value: Any,
    allowed: Union[None, str, Iterable[str]] = (),
    default: DefaultSort = None,
    desc: bool = False,
) -> SortSpec:
    """Resolves requested sort value to field -> direction mapping.

    ``value`` is either a field name or a mapping of field names to
    directions. Fields not present in ``allowed`` are dropped, the order of
    ``value`` is kept. When nothing usable is left ``default`` is used: a
    mapping is returned as is, a field name is sorted descending if ``desc``
    is set. Empty dict means no ordering.
    """
    fields = _allowed_fields(allowed)
    if isinstance(value, Mapping):
        spec = {key: sort_direction(direction) for key, direction in value.items() if key in fields}
        if spec:
            return spec
    elif isinstance(value, str) and value in fields:
        return {value: SortDirection.DESC if desc else SortDirection.ASC}
    return _default_sort(default, desc)


def apply_sort(query: Query, model, spec: Mapping[str, Any]) -> Query:
    for field, direction in spec.items():
        column = getattr(model, field, None)
        if column is None:
            logger.debug("sort_field_skipped model=%s field=%s", getattr(model, "__name__", model), field)
            continue
        if sort_direction(direction) is SortDirection.DESC:
            query = query.order_by(desc_(column))
        else:
            query = query.order_by(asc(column))
    return query


@dataclass(frozen=True)
class SortScope:
    by: Tuple[str, ...]
    default: DefaultSort = None

    def __post_init__(self):
        object.__setattr__(self, "by", _allowed_fields(self.by))

    def resolve(
        self,
        params: Mapping[str, Any],
        *,
        sort_param: Optional[str] = None,
        desc_param: Optional[str] = None,
    ) -> SortSpec:
        value = nested_param(params, sort_param or settings.SORT_PARAM)
        desc = bool(parse_boolean(params.get(desc_param or settings.SORT_DESC_PARAM)))
        return resolve_sort(value, self.by, self.default, desc)


class SortScopes:
    """Sort scopes of one endpoint, applied in declaration order."""

    def __init__(self, *scopes: SortScope):
        self.scopes: List[SortScope] = list(scopes)

    def has_sort_scope(self, by: Union[str, Iterable[str]], default: DefaultSort = None) -> "SortScopes":
        self.scopes.append(SortScope(by=by, default=default))
        return self

    def resolve(self, params: Mapping[str, Any]) -> List[SortSpec]:
        return [scope.resolve(params) for scope in self.scopes]

    def apply(self, query: Query, model, params: Mapping[str, Any]) -> Query:
        for spec in self.resolve(params):
            query = apply_sort(query, model, spec)
        return query

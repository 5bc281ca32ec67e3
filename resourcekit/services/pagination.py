from __future__ import annotations

from typing import Any, Mapping, Optional

from sqlalchemy.orm import Query

from resourcekit.core.config import settings
from resourcekit.schemas.pagination import Page
from resourcekit.services.params_parser import INT64_MAX, ParseError, parse_int


def page_from_params(
    params: Mapping[str, Any],
    *,
    default_per: Optional[int] = None,
    max_per: Optional[int] = None,
) -> Page:
    """Builds offset/limit from ``page`` and ``per`` query parameters.

    Pages are 1-based. ``per`` is clamped to ``[1, max_per]``.
    """
    page = parse_int(params.get(settings.PAGE_PARAM)) or 1
    per = parse_int(params.get(settings.PER_PAGE_PARAM)) or default_per or settings.DEFAULT_PER_PAGE
    per = min(max(per, 1), max_per or settings.MAX_PER_PAGE)
    page = max(page, 1)
    offset = (page - 1) * per
    if offset > INT64_MAX:
        raise ParseError("page out of range", params.get(settings.PAGE_PARAM))
    return Page(limit=per, offset=offset)


def paginate(query: Query, page: Page) -> Query:
    return query.offset(page.offset).limit(page.limit)

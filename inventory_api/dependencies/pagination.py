from typing import Literal

from fastapi import Query

from inventory_api.core.config import settings
from inventory_api.store.base import PageParams


def page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    sort_order: Literal["asc", "desc"] = Query("desc"),
) -> PageParams:
    return PageParams(page=page, limit=limit, sort_order=sort_order)

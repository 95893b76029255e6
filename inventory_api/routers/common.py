import re
from typing import TypeVar

from fastapi import HTTPException

from inventory_api.core.result import Result

T = TypeVar("T")


def unwrap_result(result: Result[T]) -> T:
    """Turn a failed service result into the matching HTTP error."""
    if not result.ok:
        raise HTTPException(status_code=result.error.status_code, detail=result.error.detail())
    return result.value


def search_filter(search: str, *fields: str) -> dict:
    """Case-insensitive substring match over several string fields."""
    pattern = re.escape(search)
    return {"$or": [{field: {"$regex": pattern, "$options": "i"}} for field in fields]}

"""Page selection for list endpoints."""

import math
from dataclasses import dataclass
from typing import Any

from fastapi import Query
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


@dataclass
class PaginationParams:
    page: int = 1
    page_size: int = 25

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def get_pagination(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(25, ge=1, le=100, description="Rows per page"),
) -> PaginationParams:
    return PaginationParams(page=page, page_size=page_size)


async def paginate(
    db: AsyncSession,
    query: Select,
    pagination: PaginationParams,
) -> tuple[list[Any], dict]:
    """Run ``query`` for one page and return its rows with the ``meta`` block.

    ``query`` must already carry its ordering.
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total_count = await db.scalar(count_query) or 0
    result = await db.execute(query.offset(pagination.offset).limit(pagination.page_size))
    rows = list(result.scalars().unique().all())

    meta = {
        "page": pagination.page,
        "page_size": pagination.page_size,
        "total_count": total_count,
        "total_pages": math.ceil(total_count / pagination.page_size) if total_count else 0,
    }
    return rows, meta

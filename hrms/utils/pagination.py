"""페이지네이션 유틸리티 모듈.

Pagination utility module for SQLAlchemy async queries.
List endpoints return ``{total, totalPages, currentPage}`` alongside items.
"""

import math
from typing import Any, Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


async def paginate(
    db: AsyncSession,
    query: Select[Any],
    page: int = 1,
    limit: int = 20,
) -> tuple[Sequence[Any], int]:
    """SQLAlchemy 쿼리에 대한 페이지네이션을 수행합니다.

    Execute a paginated query, returning items and total count.

    Args:
        db: 비동기 DB 세션 (Async database session)
        query: SQLAlchemy Select 쿼리 (Base query to paginate)
        page: 페이지 번호, 1부터 시작 (Page number, 1-indexed)
        limit: 페이지당 항목 수 (Items per page)

    Returns:
        tuple[Sequence[Any], int]: (항목 목록, 전체 개수) (Items and total count)
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total: int = (await db.execute(count_query)).scalar() or 0

    offset: int = (page - 1) * limit
    result = await db.execute(query.offset(offset).limit(limit))
    items: Sequence[Any] = result.scalars().all()

    return items, total


def page_meta(total: int, page: int, limit: int) -> dict[str, int]:
    """목록 응답 메타데이터 (List envelope metadata)."""
    return {
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
        "currentPage": page,
    }

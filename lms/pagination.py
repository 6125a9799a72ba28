from typing import Optional

from fastapi import Query

from .config import settings


def _to_int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def get_pagination(page=None, limit=None, default_limit=None, max_limit=None):
    default_limit = default_limit or settings.default_page_size
    max_limit = max_limit or settings.max_page_size
    page = max(1, _to_int(page, 1))
    limit = max(1, _to_int(limit, default_limit))
    limit = min(limit, max_limit)
    return page, limit, (page - 1) * limit


class Pagination:
    """依赖项：从查询参数解析分页，非法数字回落到默认值"""

    def __init__(self, page: Optional[str] = Query(None), limit: Optional[str] = Query(None)):
        self.page, self.limit, self.offset = get_pagination(page, limit)

    def apply(self, query):
        total = query.order_by(None).count()
        items = query.offset(self.offset).limit(self.limit).all()
        return {"total": total, "page": self.page, "limit": self.limit, "data": items}

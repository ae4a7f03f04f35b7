import math
from dataclasses import dataclass

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from shared import config


@dataclass
class Page:
    items: list
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    def meta(self) -> dict:
        first = (self.page - 1) * self.per_page + 1 if self.items else None
        last = first + len(self.items) - 1 if self.items else None
        return {
            "current_page": self.page,
            "last_page": self.last_page,
            "per_page": self.per_page,
            "total": self.total,
            "from": first,
            "to": last,
            "has_more_pages": self.page < self.last_page,
        }


def clamp_per_page(per_page: int | None) -> int:
    if not per_page or per_page < 1:
        return config.DEFAULT_PER_PAGE
    return min(per_page, config.MAX_PER_PAGE)


def paginate(session: Session, stmt: Select, page: int = 1, per_page: int | None = None) -> Page:
    """Run ``stmt`` for one page of ORM rows, counting the full result first."""
    page = max(1, page or 1)
    per_page = clamp_per_page(per_page)

    total = session.scalar(select(func.count()).select_from(stmt.order_by(None).subquery()))
    items = session.scalars(stmt.limit(per_page).offset((page - 1) * per_page)).all()
    return Page(items=list(items), total=total or 0, page=page, per_page=per_page)

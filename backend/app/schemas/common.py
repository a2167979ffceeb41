from __future__ import annotations

from pydantic import BaseModel


class PaginationOut(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int
    has_next: bool
    has_previous: bool

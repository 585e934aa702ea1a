from pydantic import BaseModel


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


def build_pagination(page: int, limit: int, total: int) -> PaginationMeta:
    total_pages = (total + limit - 1) // limit if limit else 0
    return PaginationMeta(page=page, limit=limit, total=total, total_pages=total_pages)

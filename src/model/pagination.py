import math
from typing import Any

from pydantic import BaseModel

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class Pagination(BaseModel):
    page: int = 1
    limit: int = DEFAULT_LIMIT
    total_rows: int = 0
    total_pages: int = 0
    rows: list[Any] = []

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def with_rows(self, rows: list[Any], total_rows: int) -> "Pagination":
        return self.model_copy(
            update={
                "rows": rows,
                "total_rows": total_rows,
                "total_pages": math.ceil(total_rows / self.limit) if self.limit else 0,
            }
        )

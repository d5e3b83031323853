from pydantic import BaseModel, Field


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int = Field(serialization_alias="totalPages")

"""
PQL statement models: the caller's filter and the paginated pages derived from it.
"""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict


class Statement(BaseModel):
    """Filter statement: a PQL query plus optional bind values."""
    query: str
    values: Optional[list[dict[str, Any]]] = None

    def has_pagination(self) -> bool:
        query = self.query.lower()
        return "limit" in query or "offset" in query


class Page(BaseModel):
    """One bounded sub-query of a Statement. Immutable once planned."""
    model_config = ConfigDict(frozen=True)

    query: str
    values: Optional[list[dict[str, Any]]] = None
    limit: int
    offset: int

    def to_statement(self) -> Statement:
        return Statement(
            query=f"{self.query} LIMIT {self.limit} OFFSET {self.offset}",
            values=self.values,
        )


class ImportPlan(BaseModel):
    pages: list[Page]
    total_results: int

from typing import Optional

from pydantic import BaseModel, Field


class SemanticSearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    limit: int = Field(5, ge=1, le=100)


class SemanticSearchHit(BaseModel):
    violation_id: str
    description: str
    severity: str
    similarity: str  # percentage, e.g. "87.3%"
    url: str
    domain: str
    title: Optional[str] = None

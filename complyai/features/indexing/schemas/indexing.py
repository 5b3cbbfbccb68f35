from pydantic import BaseModel, Field


class IndexRequest(BaseModel):
    domain: str = Field(..., min_length=1, description="Domain or URL to crawl and index")

    class Config:
        json_schema_extra = {"example": {"domain": "example.com"}}


class ScanRequest(BaseModel):
    url: str = Field(..., min_length=1)

    class Config:
        json_schema_extra = {"example": {"url": "https://example.com/contact"}}


class IndexResult(BaseModel):
    domain: str
    pages_indexed: int
    compliance_score: float

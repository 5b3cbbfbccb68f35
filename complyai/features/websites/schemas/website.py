from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class WebsiteOut(BaseModel):
    id: str
    domain: str
    compliance_score: float
    last_scanned: Optional[datetime] = None

    class Config:
        from_attributes = True


class PageOut(BaseModel):
    id: str
    website_id: str
    url: str
    title: Optional[str] = None
    risk_score: float
    last_scanned: Optional[datetime] = None

    class Config:
        from_attributes = True


class ViolationOut(BaseModel):
    id: str
    page_id: str
    violation_id: str
    description: str
    severity: str
    html: Optional[str] = None
    suggestion: Optional[str] = None
    has_embedding: bool = False

    class Config:
        from_attributes = True


class PageReport(BaseModel):
    """Everything stored for one page URL."""
    website: WebsiteOut
    page: PageOut
    violations: List[ViolationOut]
    violation_count: int

    class Config:
        json_schema_extra = {
            "example": {
                "website": {"id": "0192...", "domain": "example.com", "compliance_score": 72.5},
                "page": {"id": "0192...", "website_id": "0192...", "url": "https://example.com",
                         "title": "Example Domain", "risk_score": 55},
                "violations": [{"id": "0192...", "page_id": "0192...", "violation_id": "image-alt",
                                "description": "Ensures <img> elements have alternate text",
                                "severity": "critical", "has_embedding": True}],
                "violation_count": 1,
            }
        }

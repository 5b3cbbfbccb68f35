import enum

from sqlalchemy import Column, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from complyai.platform.db.base import BaseModel

HTML_SNIPPET_MAX_LENGTH = 500


class ViolationSeverity(enum.Enum):
    """Severity after mapping the axe impact"""
    critical = "critical"
    high = "high"
    medium = "medium"
    low = "low"
    unknown = "unknown"


class Violation(BaseModel):
    """
    A single accessibility rule failure on a page.

    violation_id is the axe rule name (e.g. "image-alt") and repeats across
    pages. embedding holds the int8-quantized vector as a JSON list, or NULL
    when embedding generation failed.
    """
    __tablename__ = "violations"

    page_id = Column(String, ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True)

    violation_id = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    severity = Column(String(16), nullable=False, default=ViolationSeverity.unknown.value)
    html = Column(String(HTML_SNIPPET_MAX_LENGTH), nullable=True)
    suggestion = Column(Text, nullable=True)
    embedding = Column(Text, nullable=True)

    page = relationship("Page", back_populates="violations")

    __table_args__ = (
        Index("idx_violations_type", "violation_id"),
        Index("idx_violations_severity", "severity"),
    )

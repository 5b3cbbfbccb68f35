from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, Float, ForeignKey, String
from sqlalchemy.orm import relationship

from complyai.platform.db.base import BaseModel


class Page(BaseModel):
    """
    A crawled page and the full enhanced scan result for it.

    risk_score is 0-100, higher is worse.
    """
    __tablename__ = "pages"

    website_id = Column(
        String, ForeignKey("websites.id", ondelete="CASCADE"), nullable=False, index=True
    )

    url = Column(String(2048), unique=True, nullable=False, index=True)
    title = Column(String(512), nullable=True)
    risk_score = Column(Float, default=0.0, nullable=False)

    # Enhanced scan result as returned by ScanOrchestrator.scan_and_enhance
    scan_data = Column(JSON, nullable=True)

    last_scanned = Column(DateTime, default=datetime.utcnow, nullable=False)

    website = relationship("Website", back_populates="pages")
    violations = relationship(
        "Violation",
        back_populates="page",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="select",
    )

    __table_args__ = (
        CheckConstraint("risk_score >= 0 AND risk_score <= 100", name="ck_pages_risk_score_range"),
    )

from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, Float, String
from sqlalchemy.orm import relationship

from complyai.platform.db.base import BaseModel


class Website(BaseModel):
    """
    One audited domain.

    compliance_score is 0-100, higher is better, and is recomputed from the
    mean page risk score at the end of every indexing run.
    """
    __tablename__ = "websites"

    domain = Column(String(255), unique=True, nullable=False, index=True)
    compliance_score = Column(Float, default=100.0, nullable=False)
    last_scanned = Column(DateTime, default=datetime.utcnow, nullable=False)

    pages = relationship(
        "Page",
        back_populates="website",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="select",
    )

    __table_args__ = (
        CheckConstraint(
            "compliance_score >= 0 AND compliance_score <= 100",
            name="ck_websites_compliance_score_range",
        ),
    )

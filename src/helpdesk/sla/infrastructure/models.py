"""
SLA Infrastructure Models
==========================

SQLAlchemy ORM models for the SLA module.

These are the database representations of our domain entities.
They belong in the infrastructure layer, not the domain layer.
"""

from sqlalchemy import CheckConstraint, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from helpdesk.infrastructure.database import Base


class SLATierModel(Base):
    """
    Database model for SLATier entity.

    Maps to the 'sla_tiers' table.
    """
    __tablename__ = "sla_tiers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)

    # Budgets in hours
    response_time_hours: Mapped[float] = mapped_column(Float, nullable=False)
    resolution_time_hours: Mapped[float] = mapped_column(Float, nullable=False)

    __table_args__ = (
        CheckConstraint("response_time_hours >= 0", name="ck_sla_tiers_response_non_negative"),
        CheckConstraint("resolution_time_hours >= response_time_hours", name="ck_sla_tiers_resolution_after_response"),
    )

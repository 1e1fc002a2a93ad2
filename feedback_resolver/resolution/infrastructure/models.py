"""
Resolution Infrastructure Models
=================================

SQLAlchemy ORM models for the resolution module.
"""

from datetime import datetime

from sqlalchemy import String, DateTime, Integer, Text, Boolean, func
from sqlalchemy.orm import Mapped, mapped_column

from feedback_resolver.infrastructure.database import Base


class ComplaintModel(Base):
    """
    Database model for ComplaintRecord entity.

    Rows are written once per processed complaint and never updated.
    """
    __tablename__ = "complaints"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    customer_email: Mapped[str] = mapped_column(String(320), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)

    # Classification and decision
    sentiment: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    normalized_key: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    answer_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    answered: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now()
    )


class SolutionModel(Base):
    """
    Database model for SolutionRecord entity.

    Curated replies, seeded out of band.
    """
    __tablename__ = "solutions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    normalized_key: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    solution_text: Mapped[str] = mapped_column(Text, nullable=False)

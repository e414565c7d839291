from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Text, Boolean, ForeignKey, DateTime, func
from .authz import Base


class MatchaSku(Base):
    __tablename__ = 'matcha_skus'
    GRADE_CEREMONIAL = 'ceremonial'
    GRADE_PREMIUM = 'premium'
    GRADE_CULINARY = 'culinary'
    GRADE_FOOD = 'food_grade'
    ALL_GRADES = (GRADE_CEREMONIAL, GRADE_PREMIUM, GRADE_CULINARY, GRADE_FOOD)
    VERSIONED_FIELDS = (
        'supplier_id', 'name', 'grade', 'quality_tier', 'is_seasonal',
        'harvest_season', 'description', 'is_active',
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    supplier_id: Mapped[int] = mapped_column(ForeignKey('suppliers.id'), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    grade: Mapped[str] = mapped_column(String(32), nullable=False)
    quality_tier: Mapped[int] = mapped_column(Integer, default=3)  # 1-5, 5 highest
    is_seasonal: Mapped[bool] = mapped_column(Boolean, default=False)
    harvest_season: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    updated_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

__all__ = ["MatchaSku"]

from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Text, Boolean, ForeignKey, Numeric, DateTime, func
from .authz import Base


class DemandForecast(Base):
    __tablename__ = 'demand_forecasts'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[Optional[int]] = mapped_column(ForeignKey('clients.id'), nullable=True, index=True)
    sku_id: Mapped[Optional[int]] = mapped_column(ForeignKey('matcha_skus.id'), nullable=True, index=True)
    forecast_month: Mapped[str] = mapped_column(String(7), nullable=False, index=True)  # YYYY-MM
    projected_demand_kg: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    actual_demand_kg: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 3), nullable=True)
    confidence_level: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)  # 0-100
    ai_generated: Mapped[bool] = mapped_column(Boolean, default=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

__all__ = ["DemandForecast"]

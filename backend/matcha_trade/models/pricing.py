from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Boolean, ForeignKey, Numeric, DateTime, Index, func, text
from .authz import Base


class Pricing(Base):
    """Cost-to-margin snapshot for one SKU. Exactly one row per SKU is current."""
    __tablename__ = 'pricing'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sku_id: Mapped[int] = mapped_column(ForeignKey('matcha_skus.id'), nullable=False, index=True)
    cost_price_jpy: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)  # per kg
    exchange_rate: Mapped[Decimal] = mapped_column(Numeric(10, 4), nullable=False)  # JPY per 1 SGD
    shipping_fee_per_kg: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal('15.00'))  # SGD
    import_tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4), default=Decimal('0.09'))
    landed_cost_sgd: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    selling_price_per_kg: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)  # SGD
    effective_from: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    effective_to: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    is_current_price: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    updated_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index(
            'uq_pricing_current_per_sku', 'sku_id', unique=True,
            sqlite_where=text('is_current_price = 1'),
            postgresql_where=text('is_current_price'),
        ),
    )


class ExchangeRate(Base):
    __tablename__ = 'exchange_rates'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    from_currency: Mapped[str] = mapped_column(String(3), nullable=False, default='JPY')
    to_currency: Mapped[str] = mapped_column(String(3), nullable=False, default='SGD')
    rate: Mapped[Decimal] = mapped_column(Numeric(12, 6), nullable=False)
    source: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

__all__ = ["Pricing", "ExchangeRate"]

from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, Text, Boolean, ForeignKey, Numeric, DateTime, func
from .authz import Base


class ClientProductRelation(Base):
    """Negotiated per-client economics for one SKU."""
    __tablename__ = 'client_product_relations'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[int] = mapped_column(ForeignKey('clients.id'), nullable=False, index=True)
    sku_id: Mapped[int] = mapped_column(ForeignKey('matcha_skus.id'), nullable=False, index=True)
    cost_price_jpy: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    exchange_rate: Mapped[Decimal] = mapped_column(Numeric(12, 6), nullable=False)  # SGD per 1 JPY
    shipping_fee_per_kg: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal('15.00'))
    import_tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4), nullable=False, default=Decimal('0.09'))
    selling_price_per_kg: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    discount_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal('0'))
    monthly_volume_kg: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=Decimal('0'))
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

__all__ = ["ClientProductRelation"]

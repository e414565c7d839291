from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Text, ForeignKey, Numeric, DateTime, func
from .authz import Base


class ClientOrder(Base):
    __tablename__ = 'client_orders'
    STATUS_PENDING = 'pending'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_DELIVERED = 'delivered'
    STATUS_CANCELLED = 'cancelled'
    ALL_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_DELIVERED, STATUS_CANCELLED)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[int] = mapped_column(ForeignKey('clients.id'), nullable=False, index=True)
    sku_id: Mapped[int] = mapped_column(ForeignKey('matcha_skus.id'), nullable=False, index=True)
    quantity_kg: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    unit_price_sgd: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_price_sgd: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    profit_sgd: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    order_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    delivery_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=STATUS_PENDING, index=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

__all__ = ["ClientOrder"]

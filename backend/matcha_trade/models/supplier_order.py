from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, ForeignKey, Numeric, DateTime, func
from .authz import Base


class SupplierOrder(Base):
    __tablename__ = 'supplier_orders'
    STATUS_DRAFT = 'draft'
    STATUS_SUBMITTED = 'submitted'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_SHIPPED = 'shipped'
    STATUS_ARRIVED = 'arrived'
    STATUS_CANCELLED = 'cancelled'
    ALL_STATUSES = (STATUS_DRAFT, STATUS_SUBMITTED, STATUS_CONFIRMED, STATUS_SHIPPED, STATUS_ARRIVED, STATUS_CANCELLED)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    supplier_id: Mapped[int] = mapped_column(ForeignKey('suppliers.id'), nullable=False, index=True)
    order_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    expected_arrival_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    actual_arrival_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    total_cost_jpy: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    total_cost_sgd: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    exchange_rate_used: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 4), nullable=True)  # JPY per SGD
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=STATUS_DRAFT, index=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship('SupplierOrderItem', back_populates='order', cascade='all, delete-orphan', order_by='SupplierOrderItem.id')


class SupplierOrderItem(Base):
    __tablename__ = 'supplier_order_items'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    supplier_order_id: Mapped[int] = mapped_column(ForeignKey('supplier_orders.id', ondelete='CASCADE'), nullable=False, index=True)
    sku_id: Mapped[int] = mapped_column(ForeignKey('matcha_skus.id'), nullable=False)
    quantity_kg: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    unit_price_jpy: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_price_jpy: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    order = relationship('SupplierOrder', back_populates='items')

__all__ = ["SupplierOrder", "SupplierOrderItem"]

from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Text, ForeignKey, Numeric, DateTime, CheckConstraint, func
from .authz import Base


class Inventory(Base):
    __tablename__ = 'inventory'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sku_id: Mapped[int] = mapped_column(ForeignKey('matcha_skus.id'), nullable=False, unique=True, index=True)
    total_stock_kg: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=Decimal('0'))
    allocated_stock_kg: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=Decimal('0'))
    low_stock_threshold_kg: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=Decimal('5'))
    last_order_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_arrival_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    next_expected_arrival: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint('allocated_stock_kg >= 0', name='ck_inventory_allocated_non_negative'),
        CheckConstraint('allocated_stock_kg <= total_stock_kg', name='ck_inventory_allocated_within_total'),
    )

    @property
    def available_stock_kg(self) -> Decimal:
        return Decimal(self.total_stock_kg or 0) - Decimal(self.allocated_stock_kg or 0)


class InventoryTransaction(Base):
    __tablename__ = 'inventory_transactions'
    TYPE_PURCHASE = 'purchase'
    TYPE_SALE = 'sale'
    TYPE_ADJUSTMENT = 'adjustment'
    TYPE_ALLOCATION = 'allocation'
    TYPE_DEALLOCATION = 'deallocation'
    ALL_TYPES = (TYPE_PURCHASE, TYPE_SALE, TYPE_ADJUSTMENT, TYPE_ALLOCATION, TYPE_DEALLOCATION)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    inventory_id: Mapped[int] = mapped_column(ForeignKey('inventory.id'), nullable=False, index=True)
    sku_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    transaction_type: Mapped[str] = mapped_column(String(32), nullable=False)
    quantity_kg: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    reference_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)  # client_order, supplier_order, manual
    reference_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

__all__ = ["Inventory", "InventoryTransaction"]

from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Text, Boolean, Numeric, DateTime, func
from .authz import Base


class Client(Base):
    __tablename__ = 'clients'
    VERSIONED_FIELDS = (
        'name', 'business_type', 'contact_name', 'contact_email', 'contact_phone',
        'address', 'special_discount', 'payment_terms', 'notes', 'is_active',
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    business_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)  # cafe, restaurant, retailer
    contact_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    special_discount: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal('0'))  # percent
    payment_terms: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)  # NET30, COD
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    updated_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

__all__ = ["Client"]

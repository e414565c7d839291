from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Text, Boolean, DateTime, func
from .authz import Base


class Notification(Base):
    __tablename__ = 'notifications'
    TYPE_LOW_STOCK = 'low_stock'
    TYPE_PRICE_CHANGE = 'price_change'
    TYPE_PROFITABILITY = 'profitability_alert'
    TYPE_ORDER_REMINDER = 'order_reminder'
    TYPE_SYSTEM = 'system'
    ALL_TYPES = (TYPE_LOW_STOCK, TYPE_PRICE_CHANGE, TYPE_PROFITABILITY, TYPE_ORDER_REMINDER, TYPE_SYSTEM)
    SEVERITY_INFO = 'info'
    SEVERITY_WARNING = 'warning'
    SEVERITY_CRITICAL = 'critical'
    ALL_SEVERITIES = (SEVERITY_INFO, SEVERITY_WARNING, SEVERITY_CRITICAL)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    # NULL user_id means broadcast to every user
    user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[str] = mapped_column(String(16), nullable=False, default=SEVERITY_INFO)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    entity_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    entity_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

__all__ = ["Notification"]

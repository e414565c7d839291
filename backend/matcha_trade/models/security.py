from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, Boolean, ForeignKey, DateTime, func
from .authz import Base


class SecurityState(Base):
    """Per-user session flags: panic lock, inactivity expiry and simulation mode."""
    __tablename__ = 'security_states'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False)
    panic_mode: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    session_expired: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    simulation_mode: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_activity_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

__all__ = ["SecurityState"]

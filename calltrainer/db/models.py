# calltrainer/db/models.py
from __future__ import annotations
from datetime import datetime

from sqlalchemy import String, Text, TIMESTAMP, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass

class ClientSetting(Base):
    """Durable key-value entry owned by the training client (e.g. 'clinicConfig')."""
    __tablename__ = "client_settings"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(Text)  # JSON document
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )

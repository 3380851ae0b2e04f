from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, DateTime, Uuid, func
from banfoo.db import Base, utcnow

STATE_KEYS = ("freeze", "naturalDisaster", "worldPeace", "disasterAid", "thief")

class GlobalState(Base):
    """One row per key, overwritten in place. Writers bump time_updated and event_id."""
    __tablename__ = "global_state"

    key: Mapped[str] = mapped_column(String(32), primary_key=True)
    value: Mapped[str] = mapped_column(Text(), nullable=False, default="false")  # "true"|"false" or JSON
    event_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    time_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

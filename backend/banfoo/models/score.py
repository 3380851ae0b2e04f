from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey, Uuid, func
from banfoo.db import Base, utcnow

class ScoreEntry(Base):
    """
    Append-only gold ledger. A team's gold is Σ(score) over its rows.
    Sign convention:
      - question / worldPeace / manual bonus  => positive
      - naturalDisaster / donation / manual fine => negative
      - thief => negative for the victim, positive for the thief
    Admin events never edit history; they insert compensating rows tagged
    with the event_id of the state write that caused them.
    """
    __tablename__ = "score_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id: Mapped[int] = mapped_column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), index=True, nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    remarks: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    source: Mapped[str] = mapped_column(String(24), nullable=False, default="manual")  # manual|question|naturalDisaster|worldPeace|donation|thief
    event_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, index=True, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True, nullable=False
    )

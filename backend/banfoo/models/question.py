from __future__ import annotations
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, DateTime, func
from banfoo.db import Base, JSONType, utcnow

class Question(Base):
    __tablename__ = "questions"
    # the number printed after the prefix on the QR code
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    qn: Mapped[dict] = mapped_column(JSONType, nullable=False)  # tagged payload, see schemas.question.Qn
    type: Mapped[str] = mapped_column(String(16), nullable=False, default="reward")  # reward|noreward|empty|temptation|virtue
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

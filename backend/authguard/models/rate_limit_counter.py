"""
Fixed-window request counters for rate limiting.

One row per (subject_key, endpoint). Rows are only ever written through the
conditional upsert in authguard.stores.sql.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from authguard.db.base import Base


class RateLimitCounter(Base):
    """Request count for one caller on one endpoint within the current window."""

    __tablename__ = "rate_limit_counters"

    subject_key: Mapped[str] = mapped_column(String(255), primary_key=True)
    endpoint: Mapped[str] = mapped_column(String(64), primary_key=True)
    request_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    window_start: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<RateLimitCounter {self.endpoint}:{self.subject_key} count={self.request_count}>"

"""
Consecutive authentication failures per account.

Drives the challenge gate. Missing rows count as zero failures.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from authguard.db.base import Base


class AccountFailure(Base):
    """Failed authentication counter for one account identifier."""

    __tablename__ = "account_failures"

    account: Mapped[str] = mapped_column(String(255), primary_key=True)
    failed_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<AccountFailure {self.account} failed={self.failed_attempts}>"

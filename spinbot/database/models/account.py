# spinbot/database/models/account.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from spinbot.database.base import Base

DAILY_SPINS = 3


class Account(Base):
    """
    One row per Telegram identity.

    spins_left / last_spin_at / balance are written only through
    AccountStore.apply_spin_update (guarded by `version`) and
    AccountStore.reset_all.
    """
    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("spins_left >= 0", name="ck_accounts_spins_left_non_negative"),
        CheckConstraint("balance >= 0", name="ck_accounts_balance_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    telegram_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)

    spins_left: Mapped[int] = mapped_column(Integer, default=DAILY_SPINS, nullable=False)
    balance: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    # naive UTC; NULL until the first spin or global reset
    last_spin_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        server_default=func.now(),
        onupdate=func.now(),
    )

    rewards: Mapped[list["RewardEntry"]] = relationship(
        back_populates="account",
        order_by="RewardEntry.id",
        cascade="all, delete-orphan",
    )

    @property
    def reward_labels(self) -> list[str]:
        return [r.label for r in self.rewards]


class RewardEntry(Base):
    """Append-only reward history. Only rewards with a positive value are recorded."""
    __tablename__ = "reward_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id", ondelete="CASCADE"), index=True)

    label: Mapped[str] = mapped_column(String(64))
    value: Mapped[float] = mapped_column(Float)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())

    account: Mapped["Account"] = relationship(back_populates="rewards")

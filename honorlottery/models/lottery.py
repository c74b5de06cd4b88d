"""Database models for the prize lottery: configuration, draws and liabilities."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship, validates

from ..access import normalize_account, require_principal
from ..db.utils import dt_iso
from .base import Base
from .column_types import ID_TYPE, TokenAmount

if TYPE_CHECKING:
    from ..lottery.config import PrizeConfig
    from .honor import HonorCollection


class Lottery(Base):
    """A prize pool whose draws are weighted by Honor holdings."""

    def __init__(
        self,
        *,
        internal_name: str,
        owner: str,
        custody_account: str,
        keeper: Optional[str] = None,
        draw_count: int = 0,
        total_unclaimed_rewards: int = 0,
        created_at: Optional[datetime] = None,
    ) -> None:
        """Create a new :class:`Lottery`.

        Parameters
        ----------
        internal_name : str
            Unique machine friendly identifier.
        owner : str
            Administrator principal that may change the configuration.
        custody_account : str
            Account whose token balance funds the prize pool.
        keeper : str, optional
            Principal allowed to open draws. When ``None`` anyone may open one.
        draw_count : int, optional
            Number of draws completed so far. Defaults to ``0``.
        total_unclaimed_rewards : int, optional
            Sum of outstanding liabilities. Defaults to ``0``.
        created_at : datetime, optional
            Explicit creation timestamp.
        """

        self.internal_name = internal_name
        self.owner = owner
        self.custody_account = custody_account
        self.keeper = keeper
        self.draw_count = draw_count
        self.total_unclaimed_rewards = total_unclaimed_rewards
        if created_at is not None:
            self.created_at = created_at

    __tablename__ = "lotteries"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    internal_name: Mapped[str] = mapped_column(
        String(100), nullable=False, unique=True, index=True
    )
    owner: Mapped[str] = mapped_column(String(255), nullable=False)
    keeper: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    custody_account: Mapped[str] = mapped_column(String(255), nullable=False)
    draw_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_unclaimed_rewards: Mapped[int] = mapped_column(
        TokenAmount, nullable=False, default=0
    )
    """Running sum of every ``UnclaimedReward.amount`` of this lottery."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    honor_collections: Mapped[list["HonorCollection"]] = relationship(
        back_populates="lottery"
    )
    config_versions: Mapped[list["PrizeConfigVersion"]] = relationship(
        back_populates="lottery",
        cascade="all, delete-orphan",
        order_by="PrizeConfigVersion.version",
    )
    draws: Mapped[list["PrizeDraw"]] = relationship(
        back_populates="lottery", cascade="all, delete-orphan"
    )
    unclaimed_rewards: Mapped[list["UnclaimedReward"]] = relationship(
        back_populates="lottery", cascade="all, delete-orphan"
    )

    @validates("owner", "custody_account")
    def _normalize_principal(self, _key: str, value: str) -> str:
        return normalize_account(value)

    @validates("keeper")
    def _normalize_keeper(self, _key: str, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return normalize_account(value)

    def __repr__(self) -> str:
        return (
            f"<Lottery(id={self.id}, internal_name='{self.internal_name}', "
            f"draw_count={self.draw_count}, "
            f"total_unclaimed_rewards={self.total_unclaimed_rewards})>"
        )

    @classmethod
    def get_by_internal_name(
        cls, session: Session, internal_name: str
    ) -> Optional["Lottery"]:
        """Return the lottery matching ``internal_name`` if it exists."""

        return session.scalar(select(cls).where(cls.internal_name == internal_name))

    def latest_config_version(
        self, session: Session
    ) -> Optional["PrizeConfigVersion"]:
        """Return the most recently stored configuration version, if any."""

        stmt = (
            select(PrizeConfigVersion)
            .where(PrizeConfigVersion.lottery_id == self.id)
            .order_by(PrizeConfigVersion.version.desc())
        )
        return session.scalars(stmt).first()

    def update_keeper(
        self, session: Session, caller: str, keeper: Optional[str]
    ) -> None:
        """Rotate the keeper principal. ``None`` lets any caller open draws."""

        require_principal(caller, self.owner, "update the keeper")
        self.keeper = keeper
        session.flush()


class PrizeConfigVersion(Base):
    """Immutable snapshot of a lottery's prize configuration.

    Every configuration change appends a new row; the highest ``version`` is
    the configuration in force.
    """

    __tablename__ = "prize_config_versions"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    lottery_id: Mapped[int] = mapped_column(
        ForeignKey("lotteries.id", ondelete="CASCADE"), nullable=False, index=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    weights: Mapped[list[int]] = mapped_column(JSON, nullable=False)
    """Selection weight per tier, index 0 being tier 1."""

    winner_counts: Mapped[list[int]] = mapped_column(JSON, nullable=False)
    prize_amounts: Mapped[list[int]] = mapped_column(JSON, nullable=False)
    participation_threshold: Mapped[int] = mapped_column(Integer, nullable=False)
    total_prize_threshold: Mapped[int] = mapped_column(TokenAmount, nullable=False)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        default=lambda: datetime.now(timezone.utc),
    )

    lottery: Mapped["Lottery"] = relationship(back_populates="config_versions")

    __table_args__ = (
        UniqueConstraint("lottery_id", "version", name="uq_prize_config_version"),
    )

    def to_config(self) -> "PrizeConfig":
        """Rebuild the :class:`~honorlottery.lottery.config.PrizeConfig` value."""
        from ..lottery.config import PrizeConfig, PrizeTier

        return PrizeConfig(
            weights=tuple(self.weights),
            prize_tiers=tuple(
                PrizeTier(winner_count=count, prize_amount=amount)
                for count, amount in zip(self.winner_counts, self.prize_amounts)
            ),
            participation_threshold=self.participation_threshold,
            total_prize_threshold=self.total_prize_threshold,
        )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<PrizeConfigVersion(lottery_id={self.lottery_id}, "
            f"version={self.version})>"
        )


class UnclaimedReward(Base):
    """Prize amount won by an account and not yet paid out."""

    __tablename__ = "unclaimed_rewards"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    lottery_id: Mapped[int] = mapped_column(
        ForeignKey("lotteries.id", ondelete="CASCADE"), nullable=False
    )
    account: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[int] = mapped_column(TokenAmount, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    lottery: Mapped["Lottery"] = relationship(back_populates="unclaimed_rewards")

    __table_args__ = (
        UniqueConstraint("lottery_id", "account", name="uq_unclaimed_reward_account"),
    )

    @validates("account")
    def _normalize_account(self, _key: str, value: str) -> str:
        return normalize_account(value)


class PrizeDraw(Base):
    """Record of one completed draw."""

    __tablename__ = "prize_draws"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    lottery_id: Mapped[int] = mapped_column(
        ForeignKey("lotteries.id", ondelete="CASCADE"), nullable=False, index=True
    )
    round: Mapped[int] = mapped_column(Integer, nullable=False)
    """1-based draw counter within the lottery."""

    config_version_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("prize_config_versions.id", ondelete="SET NULL"), nullable=True
    )
    seed_hex: Mapped[str] = mapped_column(String(255), nullable=False)
    """Entropy the winners were derived from; replaying it reproduces them."""

    opened_by: Mapped[str] = mapped_column(String(255), nullable=False)
    participants: Mapped[dict[str, int]] = mapped_column(JSON, nullable=False)
    """Eligible accounts and their held counts when the draw was opened."""

    total_awarded: Mapped[int] = mapped_column(TokenAmount, nullable=False)
    drawn_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    lottery: Mapped["Lottery"] = relationship(back_populates="draws")
    config_version: Mapped[Optional["PrizeConfigVersion"]] = relationship()
    wins: Mapped[list["PrizeWin"]] = relationship(
        back_populates="draw",
        cascade="all, delete-orphan",
        order_by="PrizeWin.slot",
    )

    __table_args__ = (UniqueConstraint("lottery_id", "round", name="uq_prize_draw_round"),)

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<PrizeDraw(lottery_id={self.lottery_id}, round={self.round}, "
            f"total_awarded={self.total_awarded})>"
        )


class PrizeWin(Base):
    """One winning slot of a draw."""

    __tablename__ = "prize_wins"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    draw_id: Mapped[int] = mapped_column(
        ForeignKey("prize_draws.id", ondelete="CASCADE"), nullable=False
    )
    lottery_id: Mapped[int] = mapped_column(
        ForeignKey("lotteries.id", ondelete="CASCADE"), nullable=False
    )
    account: Mapped[str] = mapped_column(String(255), nullable=False)
    slot: Mapped[int] = mapped_column(Integer, nullable=False)
    """Position of the slot across all tiers, starting at 0."""

    tier_index: Mapped[int] = mapped_column(Integer, nullable=False)
    """Index into the prize tier table, starting at 0."""

    prize_amount: Mapped[int] = mapped_column(TokenAmount, nullable=False)

    draw: Mapped["PrizeDraw"] = relationship(back_populates="wins")

    __table_args__ = (
        UniqueConstraint("draw_id", "slot", name="uq_prize_win_slot"),
        Index("ix_prize_wins_account", "lottery_id", "account"),
    )

    @validates("account")
    def _normalize_account(self, _key: str, value: str) -> str:
        return normalize_account(value)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable view of the win."""
        draw = self.draw
        return {
            "round": draw.round if draw is not None else None,
            "account": self.account,
            "slot": self.slot,
            "tier_index": self.tier_index,
            "prize_amount": str(self.prize_amount),
            "drawn_at": dt_iso(draw.drawn_at) if draw is not None else None,
        }


class RewardClaim(Base):
    """Payout of an account's unclaimed rewards."""

    __tablename__ = "reward_claims"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    lottery_id: Mapped[int] = mapped_column(
        ForeignKey("lotteries.id", ondelete="CASCADE"), nullable=False, index=True
    )
    account: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    amount: Mapped[int] = mapped_column(TokenAmount, nullable=False)
    claimed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    @validates("account")
    def _normalize_account(self, _key: str, value: str) -> str:
        return normalize_account(value)


__all__ = [
    "Lottery",
    "PrizeConfigVersion",
    "UnclaimedReward",
    "PrizeDraw",
    "PrizeWin",
    "RewardClaim",
]

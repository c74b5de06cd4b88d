"""Database models for Honor tier units and the entitlements that unlock them."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable, Optional

from sqlalchemy import (
    CheckConstraint,
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
from ..errors import AlreadySet, InvalidLevel, LengthMismatch
from .base import Base
from .column_types import ID_TYPE

if TYPE_CHECKING:
    from .lottery import Lottery

logger = logging.getLogger(__name__)

MIN_LEVEL = 1
MAX_LEVEL = 9


def validate_level(level: int) -> int:
    """Return ``level`` if it is an integer tier in ``1..9``.

    Raises
    ------
    InvalidLevel
        If ``level`` is not an integer or lies outside the tier range.
    """

    if isinstance(level, bool) or not isinstance(level, int):
        raise InvalidLevel(f"level must be an integer, got {level!r}")
    if not MIN_LEVEL <= level <= MAX_LEVEL:
        raise InvalidLevel(
            f"level must be between {MIN_LEVEL} and {MAX_LEVEL}, got {level}"
        )
    return level


class HonorCollection(Base):
    """A tiered Honor issuance whose holders take part in a lottery."""

    def __init__(
        self,
        internal_name: str,
        owner: str,
        lottery: Optional["Lottery"] = None,
        minted_count: int = 0,
        created_at: Optional[datetime] = None,
    ):
        """Create a new :class:`HonorCollection`.

        Parameters
        ----------
        internal_name : str
            Unique machine friendly name of the collection.
        owner : str
            Administrator principal allowed to grant entitlements.
        lottery : Lottery, optional
            Lottery whose draws read this collection's holders.
        minted_count : int, optional
            Number of units already minted. Defaults to ``0``.
        created_at : datetime, optional
            Explicit creation timestamp.
        """

        self.internal_name = internal_name
        self.owner = owner
        if lottery is not None:
            self.lottery = lottery
        self.minted_count = minted_count
        self.created_at = created_at or datetime.now(timezone.utc)

    __tablename__ = "honor_collections"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    internal_name: Mapped[str] = mapped_column(
        String(100), nullable=False, unique=True, index=True
    )
    owner: Mapped[str] = mapped_column(String(255), nullable=False)
    lottery_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("lotteries.id", ondelete="SET NULL"), nullable=True, index=True
    )
    minted_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    lottery: Mapped[Optional["Lottery"]] = relationship(
        back_populates="honor_collections"
    )
    entitlements: Mapped[list["HonorEntitlement"]] = relationship(
        back_populates="collection", cascade="all, delete-orphan"
    )
    tokens: Mapped[list["HonorToken"]] = relationship(
        back_populates="collection", cascade="all, delete-orphan"
    )

    @validates("owner")
    def _normalize_owner(self, _key: str, value: str) -> str:
        return normalize_account(value)

    def __repr__(self) -> str:
        return (
            f"<HonorCollection(id={self.id}, internal_name='{self.internal_name}', "
            f"owner='{self.owner}', minted_count={self.minted_count})>"
        )

    @classmethod
    def get_by_internal_name(
        cls, session: Session, internal_name: str
    ) -> Optional["HonorCollection"]:
        """Return the collection matching ``internal_name`` if it exists."""

        return session.scalar(select(cls).where(cls.internal_name == internal_name))

    def _require_persisted(self) -> None:
        if self.id is None:
            raise ValueError("Honor collection must be persisted before use")

    def _entitlement_row(
        self, session: Session, account: str
    ) -> Optional["HonorEntitlement"]:
        return session.scalar(
            select(HonorEntitlement).where(
                HonorEntitlement.collection_id == self.id,
                HonorEntitlement.account == normalize_account(account),
            )
        )

    # --- entitlement ledger ---
    def set_entitlements(
        self,
        session: Session,
        caller: str,
        accounts: Iterable[str],
        levels: Iterable[int],
    ) -> list["HonorEntitlement"]:
        """Grant (or raise) the maximum unlocked level of several accounts.

        Every pair is validated before anything is written, so a rejected batch
        leaves all entitlements untouched.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        caller : str
            Principal issuing the update; must be the collection owner.
        accounts : Iterable[str]
            Accounts to update.
        levels : Iterable[int]
            New maximum level for the account at the same position.

        Returns
        -------
        list[HonorEntitlement]
            The created or updated rows, in first-seen account order.

        Raises
        ------
        Unauthorized
            If ``caller`` is not the owner.
        LengthMismatch
            If ``accounts`` and ``levels`` differ in length.
        InvalidLevel
            If any level lies outside ``1..9``.
        AlreadySet
            If any level does not exceed the level already recorded for the
            account (including earlier pairs of the same batch).
        """
        require_principal(caller, self.owner, "set Honor entitlements")
        self._require_persisted()

        accounts = [normalize_account(account) for account in accounts]
        levels = list(levels)
        if len(accounts) != len(levels):
            raise LengthMismatch(
                f"{len(accounts)} accounts supplied for {len(levels)} levels"
            )
        if not accounts:
            return []

        existing = {
            row.account: row
            for row in session.scalars(
                select(HonorEntitlement).where(
                    HonorEntitlement.collection_id == self.id,
                    HonorEntitlement.account.in_(sorted(set(accounts))),
                )
            )
        }

        planned: dict[str, int] = {}
        for account, level in zip(accounts, levels):
            validate_level(level)
            if account in planned:
                current = planned[account]
            else:
                row = existing.get(account)
                current = row.max_level if row is not None else 0
            if level <= current:
                raise AlreadySet(
                    f"{account} already has level {current}; cannot set {level}"
                )
            planned[account] = level

        rows: list[HonorEntitlement] = []
        for account, level in planned.items():
            row = existing.get(account)
            if row is None:
                row = HonorEntitlement(collection_id=self.id, account=account)
                session.add(row)
            row.max_level = level
            rows.append(row)
        session.flush()
        logger.info(
            "Set %d Honor entitlement(s) on collection %s", len(rows), self.internal_name
        )
        return rows

    def set_entitlement(
        self, session: Session, caller: str, account: str, level: int
    ) -> "HonorEntitlement":
        """Grant (or raise) a single account's maximum level.

        See :meth:`set_entitlements` for the validation rules.
        """
        return self.set_entitlements(session, caller, [account], [level])[0]

    def entitlement(self, session: Session, account: str) -> int:
        """Return the maximum level recorded for ``account`` (``0`` when unset)."""
        row = self._entitlement_row(session, account)
        return row.max_level if row is not None else 0

    # --- issuance ---
    def owned_count(self, session: Session, account: str) -> int:
        """Return the number of Honor units held by ``account``."""

        stmt = select(func.count()).where(
            HonorToken.collection_id == self.id,
            HonorToken.owner == normalize_account(account),
        )
        return session.scalar(stmt) or 0

    def holders(self, session: Session) -> dict[str, int]:
        """Return ``{account: owned_count}`` for every account holding a unit."""

        stmt = (
            select(HonorToken.owner, func.count())
            .where(HonorToken.collection_id == self.id)
            .group_by(HonorToken.owner)
            .order_by(HonorToken.owner)
        )
        return {owner: count for owner, count in session.execute(stmt)}

    def realize(self, session: Session, account: str) -> list["HonorToken"]:
        """Mint the units ``account`` is entitled to but does not yet hold.

        One unit is minted per level between the account's current holding and
        its recorded maximum level, so afterwards the held count equals the
        maximum level. Calling again without a raised entitlement mints
        nothing.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        account : str
            The calling account; units are always minted to the caller.

        Returns
        -------
        list[HonorToken]
            Newly minted units, possibly empty.
        """
        self._require_persisted()
        account = normalize_account(account)

        entitlement = self._entitlement_row(session, account)
        if entitlement is None:
            return []
        owned = self.owned_count(session, account)
        if entitlement.max_level <= owned:
            return []

        minted: list[HonorToken] = []
        for level in range(owned + 1, entitlement.max_level + 1):
            self.minted_count += 1
            token = HonorToken(
                collection_id=self.id,
                token_id=self.minted_count,
                owner=account,
                level=level,
            )
            session.add(token)
            minted.append(token)
        entitlement.realized_level = entitlement.max_level
        entitlement.realized_at = datetime.now(timezone.utc)
        session.flush()

        logger.info(
            "Minted %d Honor unit(s) to %s on collection %s",
            len(minted),
            account,
            self.internal_name,
        )
        return minted

    def set_lottery(
        self, session: Session, caller: str, lottery: Optional["Lottery"]
    ) -> None:
        """Attach the collection to ``lottery`` (or detach it with ``None``)."""
        require_principal(caller, self.owner, "link the Honor collection")
        if lottery is not None and lottery.id is None:
            raise ValueError("Lottery must be persisted before linking")
        self.lottery = lottery
        session.flush()


class HonorEntitlement(Base):
    """Highest Honor level an account may realize within a collection."""

    __tablename__ = "honor_entitlements"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    collection_id: Mapped[int] = mapped_column(
        ForeignKey("honor_collections.id", ondelete="CASCADE"), nullable=False
    )
    account: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    max_level: Mapped[int] = mapped_column(Integer, nullable=False)
    realized_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    realized_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    collection: Mapped["HonorCollection"] = relationship(back_populates="entitlements")

    __table_args__ = (
        UniqueConstraint("collection_id", "account", name="uq_entitlement_account"),
        CheckConstraint(
            f"max_level BETWEEN {MIN_LEVEL} AND {MAX_LEVEL}", name="max_level_range"
        ),
    )

    @validates("account")
    def _normalize_account(self, _key: str, value: str) -> str:
        return normalize_account(value)

    @property
    def pending_levels(self) -> int:
        """Number of units that :meth:`HonorCollection.realize` would mint."""
        return max(self.max_level - (self.realized_level or 0), 0)

    def __repr__(self) -> str:
        return (
            f"<HonorEntitlement(account='{self.account}', max_level={self.max_level}, "
            f"realized_level={self.realized_level})>"
        )


class HonorToken(Base):
    """A single minted Honor unit."""

    __tablename__ = "honor_tokens"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    collection_id: Mapped[int] = mapped_column(
        ForeignKey("honor_collections.id", ondelete="CASCADE"), nullable=False
    )
    token_id: Mapped[int] = mapped_column(Integer, nullable=False)
    """Sequential identifier within the collection, starting at 1."""

    owner: Mapped[str] = mapped_column(String(255), nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    """Tier step this unit was minted for."""

    minted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    collection: Mapped["HonorCollection"] = relationship(back_populates="tokens")

    __table_args__ = (
        UniqueConstraint("collection_id", "token_id", name="uq_honor_token_id"),
        Index("ix_honor_tokens_owner", "collection_id", "owner"),
    )

    @validates("owner")
    def _normalize_owner(self, _key: str, value: str) -> str:
        return normalize_account(value)

    def __repr__(self) -> str:
        return (
            f"<HonorToken(token_id={self.token_id}, owner='{self.owner}', "
            f"level={self.level})>"
        )


__all__ = [
    "MIN_LEVEL",
    "MAX_LEVEL",
    "validate_level",
    "HonorCollection",
    "HonorEntitlement",
    "HonorToken",
]

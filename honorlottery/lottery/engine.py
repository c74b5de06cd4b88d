"""Draw and claim engine of the Honor prize lottery."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..access import normalize_account, require_principal
from ..errors import (
    DrawInProgress,
    InsufficientCustodialBalance,
    InsufficientPool,
    NoEligibleParticipants,
)
from ..models import Lottery, PrizeDraw, PrizeWin, RewardClaim, UnclaimedReward
from .collaborators import EntropySource, TokenLedger
from .config import PrizeConfig
from .selection import select_winners
from .store import PrizeConfigStore

logger = logging.getLogger(__name__)


class DrawState(enum.Enum):
    """Draw state of a single :class:`LotteryEngine` instance."""

    IDLE = "idle"
    DRAWING = "drawing"


@dataclass(frozen=True)
class PoolSnapshot:
    """Custodial balance split into distributable pool and owed liabilities."""

    custodial_balance: int
    total_unclaimed_rewards: int

    @property
    def pool_size(self) -> int:
        return self.custodial_balance - self.total_unclaimed_rewards


@dataclass
class DrawOutcome:
    """Value object describing a completed draw.

    Attributes
    ----------
    draw : PrizeDraw
        The persisted draw record.
    wins : list[PrizeWin]
        One entry per winner slot, in slot order.
    config : PrizeConfig
        Configuration the draw ran under.
    credited : dict[str, int]
        Amount credited to each winning account by this draw.
    """

    draw: PrizeDraw
    wins: list[PrizeWin]
    config: PrizeConfig
    credited: dict[str, int] = field(default_factory=dict)

    @property
    def total_awarded(self) -> int:
        return sum(self.credited.values())


class LotteryEngine:
    """Engine that opens draws, credits winners and pays out claims."""

    def __init__(
        self,
        session: Session,
        lottery: Lottery,
        token: TokenLedger,
        *,
        config_store: Optional[PrizeConfigStore] = None,
    ) -> None:
        """Create a lottery engine bound to a SQLAlchemy session.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session used for lookups and persistence.
        lottery : Lottery
            Persisted lottery the engine operates on.
        token : TokenLedger
            Token held in custody by the lottery. Its balance is read on every
            pool computation and never cached.
        config_store : Optional[PrizeConfigStore], default: None
            Store supplying the configuration in force. Typically omitted, in
            which case one bound to ``session`` and ``lottery`` is created.
        """

        if lottery.id is None:
            raise ValueError("Lottery must be persisted before running draws")
        self._session = session
        self._lottery = lottery
        self._token = token
        self.config_store = config_store or PrizeConfigStore(session, lottery)
        self._state = DrawState.IDLE

    @property
    def state(self) -> DrawState:
        return self._state

    # --- read accessors ---
    def prize_config(self) -> PrizeConfig:
        return self.config_store.current()

    def custodial_balance(self) -> int:
        return int(self._token.balance_of(self._lottery.custody_account))

    def total_unclaimed_rewards(self) -> int:
        return self._lottery.total_unclaimed_rewards or 0

    def current_pool_size(self) -> int:
        """Return the custodial balance not already owed to past winners."""
        return self.custodial_balance() - self.total_unclaimed_rewards()

    def pool_snapshot(self) -> PoolSnapshot:
        return PoolSnapshot(
            custodial_balance=self.custodial_balance(),
            total_unclaimed_rewards=self.total_unclaimed_rewards(),
        )

    def unclaimed_rewards(self, account: str) -> int:
        row = self._reward_row(normalize_account(account))
        return row.amount if row is not None else 0

    def win_history(self, account: str) -> list[PrizeWin]:
        """Return every slot ``account`` has won, oldest draw first."""
        stmt = (
            select(PrizeWin)
            .join(PrizeDraw, PrizeDraw.id == PrizeWin.draw_id)
            .where(
                PrizeWin.lottery_id == self._lottery.id,
                PrizeWin.account == normalize_account(account),
            )
            .order_by(PrizeDraw.round.asc(), PrizeWin.slot.asc())
        )
        return list(self._session.scalars(stmt).all())

    def eligible_holdings(self, config: PrizeConfig) -> dict[str, int]:
        """Return the held-unit count of every account that can be drawn.

        Holdings are summed across all Honor collections linked to the lottery.
        """
        holdings: dict[str, int] = {}
        for collection in self._lottery.honor_collections:
            for account, count in collection.holders(self._session).items():
                holdings[account] = holdings.get(account, 0) + count
        return {
            account: count
            for account, count in holdings.items()
            if config.is_eligible(count)
        }

    # --- draw ---
    def open_prize(self, caller: str, entropy: EntropySource) -> DrawOutcome:
        """Run one draw and credit the winners.

        Parameters
        ----------
        caller : str
            Principal opening the draw; must be the keeper when one is set.
        entropy : EntropySource
            Source queried exactly once for the draw seed.

        Returns
        -------
        DrawOutcome
            The persisted draw together with its wins and credited amounts.

        Notes
        -----
        The draw performs the following steps:

        1. Check the caller against the keeper.
        2. Check the pool covers the prize tiers.
        3. Collect eligible holders.
        4. Select one winner per slot from the seed (with replacement).
        5. Credit each winner's unclaimed rewards and record the draw.

        Every check runs before anything is written, so a failed draw leaves
        no trace. The custodial balance is not touched; the pool shrinks
        because the liabilities grow.

        Raises
        ------
        DrawInProgress
            If called while this engine is already drawing. The state lives on
            the engine instance, so this only guards re-entry through the same
            engine (e.g. from the entropy callback). Separate engines, such as
            the one built per call by :func:`honorlottery.workflows.open_prize`,
            do not share it; concurrent draws of one lottery from different
            transactions collide on the unique ``(lottery_id, round)`` of
            :class:`~honorlottery.models.PrizeDraw` instead.
        Unauthorized
            If a keeper is configured and ``caller`` is someone else.
        InsufficientPool
            If the pool is below the total prize threshold (or below what the
            stored tiers would distribute).
        NoEligibleParticipants
            If no holder meets the participation threshold with a positive
            weight.
        """
        if self._state is DrawState.DRAWING:
            raise DrawInProgress("a draw is already in progress")
        if self._lottery.keeper is not None:
            require_principal(caller, self._lottery.keeper, "open a prize draw")

        config_version = self.config_store.current_version()
        config = config_version.to_config() if config_version is not None else PrizeConfig()

        required = max(config.total_prize_threshold, config.tier_total)
        pool_size = self.current_pool_size()
        if pool_size < required:
            raise InsufficientPool(
                f"pool holds {pool_size} but {required} is required to draw"
            )

        holdings = self.eligible_holdings(config)
        if not holdings:
            raise NoEligibleParticipants(
                f"no holder of lottery {self._lottery.internal_name} is eligible"
            )

        self._state = DrawState.DRAWING
        try:
            seed = entropy.current_seed()
            slot_tiers = config.slot_tiers()
            winners = select_winners(seed, config.weights, holdings, len(slot_tiers))
            outcome = self._record_draw(
                caller=caller,
                config=config,
                config_version_id=config_version.id if config_version else None,
                seed=seed,
                holdings=holdings,
                slot_tiers=slot_tiers,
                winners=winners,
            )
        finally:
            self._state = DrawState.IDLE

        logger.info(
            "Lottery %s draw #%d awarded %s to %d account(s)",
            self._lottery.internal_name,
            outcome.draw.round,
            outcome.total_awarded,
            len(outcome.credited),
        )
        return outcome

    def replay_winners(self, draw: PrizeDraw) -> list[str]:
        """Recompute the winners of ``draw`` from its recorded seed and inputs."""
        version = draw.config_version
        config = version.to_config() if version is not None else PrizeConfig()
        return select_winners(
            bytes.fromhex(draw.seed_hex),
            config.weights,
            dict(draw.participants),
            config.slot_count,
        )

    def _record_draw(
        self,
        *,
        caller: str,
        config: PrizeConfig,
        config_version_id: Optional[int],
        seed: bytes,
        holdings: dict[str, int],
        slot_tiers: list[int],
        winners: list[str],
    ) -> DrawOutcome:
        lottery = self._lottery
        lottery.draw_count += 1
        draw = PrizeDraw(
            lottery_id=lottery.id,
            round=lottery.draw_count,
            config_version_id=config_version_id,
            seed_hex=bytes(seed).hex(),
            opened_by=normalize_account(caller),
            participants=dict(sorted(holdings.items())),
            total_awarded=0,
        )
        self._session.add(draw)

        credited: dict[str, int] = {}
        wins: list[PrizeWin] = []
        for slot, (tier_index, account) in enumerate(zip(slot_tiers, winners)):
            amount = config.prize_tiers[tier_index].prize_amount
            win = PrizeWin(
                lottery_id=lottery.id,
                account=account,
                slot=slot,
                tier_index=tier_index,
                prize_amount=amount,
            )
            draw.wins.append(win)
            wins.append(win)
            credited[account] = credited.get(account, 0) + amount

        for account, amount in credited.items():
            self._credit(account, amount)
        draw.total_awarded = sum(credited.values())

        self._session.flush()
        return DrawOutcome(draw=draw, wins=wins, config=config, credited=credited)

    def _credit(self, account: str, amount: int) -> None:
        row = self._reward_row(account)
        if row is None:
            row = UnclaimedReward(lottery_id=self._lottery.id, account=account, amount=0)
            self._session.add(row)
        row.amount += amount
        self._lottery.total_unclaimed_rewards += amount

    # --- claim ---
    def claim(self, account: str) -> int:
        """Pay ``account`` everything it has won and not yet claimed.

        The liability is zeroed and flushed before the token transfer is
        requested. If the transfer fails the exception propagates and the
        caller's transaction must be rolled back.

        Returns
        -------
        int
            Amount paid out; ``0`` when nothing was owed.

        Raises
        ------
        InsufficientCustodialBalance
            If the custodial balance cannot cover the payout.
        """
        account = normalize_account(account)
        row = self._reward_row(account)
        amount = row.amount if row is not None else 0
        if row is None or amount == 0:
            logger.debug("Nothing to claim for %s", account)
            return 0

        balance = self.custodial_balance()
        if balance < amount:
            raise InsufficientCustodialBalance(
                f"custodial balance {balance} cannot cover claim of {amount}"
            )

        row.amount = 0
        self._lottery.total_unclaimed_rewards -= amount
        self._session.add(
            RewardClaim(lottery_id=self._lottery.id, account=account, amount=amount)
        )
        self._session.flush()

        self._token.transfer(account, amount)
        logger.info(
            "Paid %s to %s from lottery %s", amount, account, self._lottery.internal_name
        )
        return amount

    def _reward_row(self, account: str) -> Optional[UnclaimedReward]:
        return self._session.scalar(
            select(UnclaimedReward).where(
                UnclaimedReward.lottery_id == self._lottery.id,
                UnclaimedReward.account == account,
            )
        )


__all__ = [
    "DrawState",
    "PoolSnapshot",
    "DrawOutcome",
    "LotteryEngine",
]

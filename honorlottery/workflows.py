from typing import TYPE_CHECKING, Optional, Sequence

from sqlalchemy.orm import Session

from .lottery.collaborators import EntropySource, SystemEntropySource, TokenLedger
from .lottery.config import PrizeConfig
from .lottery.engine import DrawOutcome, LotteryEngine, PoolSnapshot
from .lottery.store import PrizeConfigStore
from .models import HonorCollection, Lottery

if TYPE_CHECKING:
    from .models import HonorToken


def create_lottery(
    session: Session,
    *,
    internal_name: str,
    owner: str,
    custody_account: str,
    keeper: Optional[str] = None,
) -> Lottery:
    """Persist a new :class:`Lottery` and return it with its ``id`` populated.

    Raises
    ------
    ValueError
        If a lottery named ``internal_name`` already exists.
    """
    if Lottery.get_by_internal_name(session, internal_name) is not None:
        raise ValueError(f"Lottery '{internal_name}' already exists")

    lottery = Lottery(
        internal_name=internal_name,
        owner=owner,
        custody_account=custody_account,
        keeper=keeper,
    )
    session.add(lottery)
    session.flush()
    return lottery


def create_honor_collection(
    session: Session,
    *,
    internal_name: str,
    owner: str,
    lottery: Optional[Lottery] = None,
) -> HonorCollection:
    """Persist a new :class:`HonorCollection`, optionally linked to ``lottery``."""
    if HonorCollection.get_by_internal_name(session, internal_name) is not None:
        raise ValueError(f"Honor collection '{internal_name}' already exists")

    collection = HonorCollection(internal_name=internal_name, owner=owner)
    session.add(collection)
    session.flush()
    if lottery is not None:
        collection.set_lottery(session, owner, lottery)
    return collection


def mint_honor(
    session: Session, collection: HonorCollection, account: str
) -> list["HonorToken"]:
    """Realize ``account``'s pending Honor entitlement.

    This function essentially wraps :meth:`HonorCollection.realize`; it never
    fails merely because nothing is pending.
    """
    tokens = collection.realize(session, account)
    session.flush()
    return tokens


def configure_prizes(
    session: Session,
    lottery: Lottery,
    caller: str,
    *,
    weights: Optional[Sequence[int]] = None,
    participation_threshold: Optional[int] = None,
    total_prize_threshold: Optional[int] = None,
    winner_counts: Optional[Sequence[int]] = None,
    prize_amounts: Optional[Sequence[int]] = None,
) -> PrizeConfig:
    """Apply several configuration updates in a consistent order.

    Thresholds are applied before the prize tiers so that new tiers are
    validated against the new total prize threshold. Omitted settings keep
    their current value. Tiers require both ``winner_counts`` and
    ``prize_amounts``.

    Returns
    -------
    PrizeConfig
        The configuration in force after all updates.
    """
    if (winner_counts is None) != (prize_amounts is None):
        raise ValueError("winner_counts and prize_amounts must be supplied together")

    store = PrizeConfigStore(session, lottery)
    if weights is not None:
        store.update_weights(caller, weights)
    if participation_threshold is not None:
        store.update_participation_threshold(caller, participation_threshold)
    if total_prize_threshold is not None:
        store.update_total_prize_threshold(caller, total_prize_threshold)
    if winner_counts is not None and prize_amounts is not None:
        store.update_prize_tiers(caller, winner_counts, prize_amounts)
    return store.current()


def open_prize(
    session: Session,
    lottery: Lottery,
    caller: str,
    *,
    token: TokenLedger,
    entropy: Optional[EntropySource] = None,
) -> DrawOutcome:
    """Run a draw for ``lottery`` on behalf of ``caller`` (normally the keeper).

    A fresh :class:`LotteryEngine` is built per call, so its ``DrawInProgress``
    guard does not span calls.

    Parameters
    ----------
    session : Session
        Active session used for persistence and queries.
    lottery : Lottery
        Lottery to draw.
    caller : str
        Principal opening the draw.
    token : TokenLedger
        Token held in custody, used to size the pool.
    entropy : Optional[EntropySource], default: None
        Seed supplier. Defaults to :class:`SystemEntropySource`.

    Returns
    -------
    DrawOutcome
        The recorded draw, its wins and the amounts credited.
    """
    engine = LotteryEngine(session, lottery, token)
    outcome = engine.open_prize(caller, entropy or SystemEntropySource())
    session.flush()
    return outcome


def claim_rewards(
    session: Session, lottery: Lottery, account: str, *, token: TokenLedger
) -> int:
    """Pay out ``account``'s unclaimed rewards and return the amount paid."""
    engine = LotteryEngine(session, lottery, token)
    return engine.claim(account)


def pool_snapshot(
    session: Session, lottery: Lottery, *, token: TokenLedger
) -> PoolSnapshot:
    """Return the current custodial balance, liabilities and pool size."""
    return LotteryEngine(session, lottery, token).pool_snapshot()

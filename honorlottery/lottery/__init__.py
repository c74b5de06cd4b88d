"""Prize configuration, weighted selection and the draw/claim engine."""

from .collaborators import (
    EntropySource,
    FixedEntropySource,
    SystemEntropySource,
    TokenLedger,
)
from .config import PrizeConfig, PrizeTier
from .engine import DrawOutcome, DrawState, LotteryEngine, PoolSnapshot
from .selection import select_winners
from .store import PrizeConfigStore

__all__ = [
    "DrawOutcome",
    "DrawState",
    "EntropySource",
    "FixedEntropySource",
    "LotteryEngine",
    "PoolSnapshot",
    "PrizeConfig",
    "PrizeConfigStore",
    "PrizeTier",
    "SystemEntropySource",
    "TokenLedger",
    "select_winners",
]

from .base import Base

# import models so metadata.create_all() can discover mappers
from .honor import HonorCollection, HonorEntitlement, HonorToken  # noqa: F401
from .lottery import (  # noqa: F401
    Lottery,
    PrizeConfigVersion,
    UnclaimedReward,
    PrizeDraw,
    PrizeWin,
    RewardClaim,
)

__all__ = [
    "Base",
    "HonorCollection",
    "HonorEntitlement",
    "HonorToken",
    "Lottery",
    "PrizeConfigVersion",
    "UnclaimedReward",
    "PrizeDraw",
    "PrizeWin",
    "RewardClaim",
]

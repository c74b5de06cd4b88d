"""Named failures raised by the Honor issuer and the lottery engine.

Every error is raised before any row is written, so the surrounding
transaction can simply be rolled back (or committed unchanged) by the caller.
"""

from __future__ import annotations


class LotteryError(Exception):
    """Base class for all domain failures of this package."""


class Unauthorized(LotteryError, PermissionError):
    """The calling principal lacks the role required by the operation."""


class InvalidLevel(LotteryError, ValueError):
    """An entitlement level outside ``1..9`` was supplied."""


class AlreadySet(LotteryError, ValueError):
    """The account already holds an entitlement at or above the requested level."""


class LengthMismatch(LotteryError, ValueError):
    """Parallel input sequences differ in length (or are empty where forbidden)."""


class WeightsNotIncreasing(LotteryError, ValueError):
    """The weight table decreases somewhere along the tier axis."""


class InvalidWeight(LotteryError, ValueError):
    """A weight is negative or not an integer."""


class InvalidPrizeTier(LotteryError, ValueError):
    """A prize tier has a non-positive winner count or prize amount."""


class SumMismatch(LotteryError, ValueError):
    """Prize tiers do not add up to the total prize threshold."""


class InvalidThreshold(LotteryError, ValueError):
    """A threshold is negative or not an integer."""


class InsufficientPool(LotteryError):
    """The distributable pool is below the total prize threshold."""


class InsufficientCustodialBalance(LotteryError):
    """The custodial balance cannot cover a pending payout."""


class NoEligibleParticipants(LotteryError):
    """No holder meets the participation threshold with a positive weight."""


class DrawInProgress(LotteryError, RuntimeError):
    """A draw was opened while another one on the same engine is running."""


__all__ = [
    "LotteryError",
    "Unauthorized",
    "InvalidLevel",
    "AlreadySet",
    "LengthMismatch",
    "WeightsNotIncreasing",
    "InvalidWeight",
    "InvalidPrizeTier",
    "SumMismatch",
    "InvalidThreshold",
    "InsufficientPool",
    "InsufficientCustodialBalance",
    "NoEligibleParticipants",
    "DrawInProgress",
]

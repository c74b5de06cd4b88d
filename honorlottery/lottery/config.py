"""Immutable prize configuration values and their validation rules."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Sequence

from ..errors import (
    InvalidPrizeTier,
    InvalidThreshold,
    InvalidWeight,
    LengthMismatch,
    SumMismatch,
    WeightsNotIncreasing,
)
from ..models.honor import MAX_LEVEL
from .selection import weight_for_count

WEIGHT_COUNT = MAX_LEVEL


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class PrizeTier:
    """Number of winners drawn for a tier and the amount each one receives."""

    winner_count: int
    prize_amount: int

    @property
    def total(self) -> int:
        return self.winner_count * self.prize_amount


@dataclass(frozen=True)
class PrizeConfig:
    """Configuration in force for a draw.

    Attributes
    ----------
    weights : tuple[int, ...]
        Selection weight for each Honor tier; ``weights[0]`` applies to tier 1.
    prize_tiers : tuple[PrizeTier, ...]
        Prize tiers in payout order.
    participation_threshold : int
        Minimum number of Honor units an account must hold to be drawn.
    total_prize_threshold : int
        Pool size required to open a draw, which is also the amount a
        consistent tier table distributes per draw.
    """

    weights: tuple[int, ...] = (0,) * WEIGHT_COUNT
    prize_tiers: tuple[PrizeTier, ...] = ()
    participation_threshold: int = 0
    total_prize_threshold: int = 0

    @property
    def slot_count(self) -> int:
        return sum(tier.winner_count for tier in self.prize_tiers)

    @property
    def tier_total(self) -> int:
        return sum(tier.total for tier in self.prize_tiers)

    def slot_tiers(self) -> list[int]:
        """Return the prize tier index of every winner slot, in draw order."""
        slots: list[int] = []
        for index, tier in enumerate(self.prize_tiers):
            slots.extend([index] * tier.winner_count)
        return slots

    def weight_for(self, owned_count: int) -> int:
        """Return the selection weight of a holder of ``owned_count`` units."""
        return weight_for_count(self.weights, owned_count)

    def is_eligible(self, owned_count: int) -> bool:
        """Return whether a holder can be drawn under this configuration."""
        return (
            owned_count >= max(self.participation_threshold, 1)
            and self.weight_for(owned_count) > 0
        )

    def with_weights(self, weights: Iterable[int]) -> "PrizeConfig":
        return replace(self, weights=validate_weights(weights))

    def with_prize_tiers(
        self, winner_counts: Iterable[int], prize_amounts: Iterable[int]
    ) -> "PrizeConfig":
        tiers = validate_prize_tiers(
            winner_counts, prize_amounts, self.total_prize_threshold
        )
        return replace(self, prize_tiers=tiers)

    def with_participation_threshold(self, value: int) -> "PrizeConfig":
        return replace(
            self, participation_threshold=validate_threshold(value, "participation")
        )

    def with_total_prize_threshold(self, value: int) -> "PrizeConfig":
        # Stored tiers are not revalidated against the new total.
        return replace(
            self, total_prize_threshold=validate_threshold(value, "total prize")
        )


def validate_weights(weights: Iterable[int]) -> tuple[int, ...]:
    """Return ``weights`` as a tuple after checking length, sign and order.

    Raises
    ------
    LengthMismatch
        Unless exactly nine weights are supplied.
    InvalidWeight
        If a weight is negative or not an integer.
    WeightsNotIncreasing
        If any weight is smaller than the one before it.
    """

    values = tuple(weights)
    if len(values) != WEIGHT_COUNT:
        raise LengthMismatch(
            f"expected {WEIGHT_COUNT} weights, got {len(values)}"
        )
    for value in values:
        if not _is_int(value) or value < 0:
            raise InvalidWeight(f"weights must be non-negative integers, got {value!r}")
    for index in range(1, len(values)):
        if values[index] < values[index - 1]:
            raise WeightsNotIncreasing(
                f"weight of tier {index + 1} ({values[index]}) is below "
                f"tier {index} ({values[index - 1]})"
            )
    return values


def validate_prize_tiers(
    winner_counts: Iterable[int],
    prize_amounts: Iterable[int],
    total_prize_threshold: int,
) -> tuple[PrizeTier, ...]:
    """Build prize tiers and check they distribute exactly ``total_prize_threshold``.

    Raises
    ------
    LengthMismatch
        If the sequences are empty or differ in length.
    InvalidPrizeTier
        If a winner count or prize amount is not a positive integer.
    SumMismatch
        If ``Σ winner_count × prize_amount != total_prize_threshold``.
    """

    counts: Sequence[int] = list(winner_counts)
    amounts: Sequence[int] = list(prize_amounts)
    if not counts or len(counts) != len(amounts):
        raise LengthMismatch(
            f"{len(counts)} winner counts supplied for {len(amounts)} prize amounts"
        )

    tiers: list[PrizeTier] = []
    for count, amount in zip(counts, amounts):
        if not _is_int(count) or count <= 0:
            raise InvalidPrizeTier(f"winner count must be positive, got {count!r}")
        if not _is_int(amount) or amount <= 0:
            raise InvalidPrizeTier(f"prize amount must be positive, got {amount!r}")
        tiers.append(PrizeTier(winner_count=count, prize_amount=amount))

    total = sum(tier.total for tier in tiers)
    if total != total_prize_threshold:
        raise SumMismatch(
            f"prize tiers distribute {total} but the total prize threshold "
            f"is {total_prize_threshold}"
        )
    return tuple(tiers)


def validate_threshold(value: int, name: str) -> int:
    if not _is_int(value) or value < 0:
        raise InvalidThreshold(
            f"{name} threshold must be a non-negative integer, got {value!r}"
        )
    return value


__all__ = [
    "WEIGHT_COUNT",
    "PrizeTier",
    "PrizeConfig",
    "validate_weights",
    "validate_prize_tiers",
    "validate_threshold",
]

"""Deterministic weighted winner selection.

Nothing in this module touches the database or an entropy source: given the
same seed, weight table and holdings, :func:`select_winners` always returns
the same winners, which is what makes a recorded draw auditable.
"""

from __future__ import annotations

import hashlib
from bisect import bisect_right
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from ..errors import NoEligibleParticipants


@dataclass(frozen=True)
class WeightedRange:
    account: str
    weight: int
    start: int
    end: int  # exclusive


def tier_for_count(owned_count: int, tier_count: int) -> int:
    """Map a held-unit count onto a tier in ``1..tier_count`` (``0`` when none held)."""
    if owned_count <= 0:
        return 0
    return min(owned_count, tier_count)


def weight_for_count(weights: Sequence[int], owned_count: int) -> int:
    tier = tier_for_count(owned_count, len(weights))
    if tier == 0:
        return 0
    return weights[tier - 1]


def build_ranges(
    weighted: Iterable[tuple[str, int]],
) -> tuple[list[WeightedRange], int]:
    """Lay weighted accounts end to end; zero-weight accounts get no range."""
    ranges: list[WeightedRange] = []
    cursor = 0
    for account, weight in weighted:
        if weight <= 0:
            continue
        ranges.append(WeightedRange(account, weight, cursor, cursor + weight))
        cursor += weight
    return ranges, cursor


def slot_ticket(seed: bytes, slot: int, total_weight: int) -> int:
    """Derive the ticket of ``slot`` as ``sha256(seed || slot) mod total_weight``."""
    payload = seed + slot.to_bytes(8, "big")
    digest = hashlib.sha256(payload).digest()
    return int.from_bytes(digest, "big") % total_weight


def find_winner(ranges: Sequence[WeightedRange], ticket: int) -> WeightedRange:
    ends = [r.end for r in ranges]
    idx = bisect_right(ends, ticket)
    if idx >= len(ranges):
        raise RuntimeError("Ticket out of range (unexpected).")
    return ranges[idx]


def select_winners(
    seed: bytes,
    weights: Sequence[int],
    holdings: Mapping[str, int],
    slot_count: int,
) -> list[str]:
    """Draw ``slot_count`` winners, with replacement, proportionally to weight.

    Parameters
    ----------
    seed : bytes
        Entropy captured for the draw.
    weights : Sequence[int]
        Weight per tier; an account's tier is its held count capped at
        ``len(weights)``.
    holdings : Mapping[str, int]
        Eligible accounts and the number of units each holds.
    slot_count : int
        Total number of winner slots across all prize tiers.

    Returns
    -------
    list[str]
        The winning account of each slot, in slot order. The same account
        may appear several times.

    Raises
    ------
    NoEligibleParticipants
        If slots must be filled but no account carries a positive weight.
    """

    if not isinstance(seed, (bytes, bytearray)):
        raise TypeError("seed must be bytes")
    if slot_count < 0:
        raise ValueError("slot_count must be non-negative")

    # Sorting makes the result independent of the mapping's iteration order.
    weighted = [
        (account, weight_for_count(weights, holdings[account]))
        for account in sorted(holdings)
    ]
    ranges, total_weight = build_ranges(weighted)
    if slot_count == 0:
        return []
    if total_weight == 0:
        raise NoEligibleParticipants("no account carries a positive selection weight")

    seed = bytes(seed)
    return [
        find_winner(ranges, slot_ticket(seed, slot, total_weight)).account
        for slot in range(slot_count)
    ]


__all__ = [
    "WeightedRange",
    "tier_for_count",
    "weight_for_count",
    "build_ranges",
    "slot_ticket",
    "find_winner",
    "select_winners",
]

from __future__ import annotations

import unittest

from honorlottery.errors import NoEligibleParticipants
from honorlottery.lottery.selection import (
    build_ranges,
    find_winner,
    select_winners,
    slot_ticket,
    tier_for_count,
    weight_for_count,
)

WEIGHTS = (1, 2, 3, 4, 5, 6, 7, 8, 9)


class TierMappingTests(unittest.TestCase):
    def test_tier_is_capped_at_table_length(self) -> None:
        self.assertEqual(tier_for_count(0, 9), 0)
        self.assertEqual(tier_for_count(1, 9), 1)
        self.assertEqual(tier_for_count(8, 9), 8)
        self.assertEqual(tier_for_count(42, 9), 9)

    def test_weight_for_count(self) -> None:
        self.assertEqual(weight_for_count(WEIGHTS, 0), 0)
        self.assertEqual(weight_for_count(WEIGHTS, 3), 3)
        self.assertEqual(weight_for_count(WEIGHTS, 12), 9)


class RangeTests(unittest.TestCase):
    def test_zero_weight_accounts_get_no_range(self) -> None:
        ranges, total = build_ranges([("a", 1), ("b", 0), ("c", 2)])
        self.assertEqual(total, 3)
        self.assertEqual([r.account for r in ranges], ["a", "c"])
        self.assertEqual((ranges[1].start, ranges[1].end), (1, 3))

    def test_find_winner_boundaries(self) -> None:
        ranges, _ = build_ranges([("a", 1), ("b", 2)])
        self.assertEqual(find_winner(ranges, 0).account, "a")
        self.assertEqual(find_winner(ranges, 1).account, "b")
        self.assertEqual(find_winner(ranges, 2).account, "b")
        with self.assertRaises(RuntimeError):
            find_winner(ranges, 3)

    def test_slot_ticket_stays_in_range(self) -> None:
        for slot in range(50):
            self.assertIn(slot_ticket(b"seed", slot, 7), range(7))


class SelectWinnersTests(unittest.TestCase):
    def test_same_inputs_give_same_winners(self) -> None:
        holdings = {"alice": 8, "bob": 3, "carol": 1}
        first = select_winners(b"\x01" * 32, WEIGHTS, holdings, 25)
        second = select_winners(b"\x01" * 32, WEIGHTS, dict(reversed(holdings.items())), 25)
        self.assertEqual(first, second)
        self.assertEqual(len(first), 25)
        self.assertTrue(set(first).issubset(holdings))

    def test_single_account_wins_every_slot(self) -> None:
        winners = select_winners(b"seed", WEIGHTS, {"alice": 8}, 10)
        self.assertEqual(winners, ["alice"] * 10)

    def test_zero_weight_account_is_never_drawn(self) -> None:
        weights = (0, 0, 0, 0, 0, 0, 0, 5, 5)
        winners = select_winners(b"seed", weights, {"alice": 8, "bob": 2}, 40)
        self.assertEqual(set(winners), {"alice"})

    def test_heavier_weight_wins_more_often(self) -> None:
        weights = (1, 1, 1, 1, 1, 1, 1, 1, 99)
        winners = select_winners(b"seed", weights, {"heavy": 9, "light": 1}, 400)
        self.assertGreater(winners.count("heavy"), winners.count("light"))

    def test_no_slots_returns_empty(self) -> None:
        self.assertEqual(select_winners(b"seed", WEIGHTS, {}, 0), [])

    def test_no_weight_raises(self) -> None:
        with self.assertRaises(NoEligibleParticipants):
            select_winners(b"seed", WEIGHTS, {}, 1)
        with self.assertRaises(NoEligibleParticipants):
            select_winners(b"seed", (0,) * 9, {"alice": 8}, 1)

    def test_seed_must_be_bytes(self) -> None:
        with self.assertRaises(TypeError):
            select_winners("seed", WEIGHTS, {"alice": 1}, 1)  # type: ignore[arg-type]


if __name__ == "__main__":
    unittest.main()

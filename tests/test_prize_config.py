from __future__ import annotations

import unittest

from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from honorlottery.errors import (
    InvalidPrizeTier,
    InvalidThreshold,
    InvalidWeight,
    LengthMismatch,
    SumMismatch,
    Unauthorized,
    WeightsNotIncreasing,
)
from honorlottery.lottery import PrizeConfig, PrizeConfigStore, PrizeTier
from honorlottery.lottery.config import validate_prize_tiers, validate_weights
from honorlottery.models import Base, PrizeConfigVersion
from honorlottery.workflows import configure_prizes, create_lottery


class PrizeConfigValueTests(unittest.TestCase):
    def test_default_configuration(self) -> None:
        config = PrizeConfig()
        self.assertEqual(config.weights, (0,) * 9)
        self.assertEqual(config.prize_tiers, ())
        self.assertEqual(config.slot_count, 0)
        self.assertEqual(config.total_prize_threshold, 0)

    def test_weights_accept_non_decreasing_table(self) -> None:
        self.assertEqual(
            validate_weights([1, 2, 3, 4, 5, 6, 7, 8, 9]), (1, 2, 3, 4, 5, 6, 7, 8, 9)
        )
        self.assertEqual(validate_weights([2] * 9), (2,) * 9)

    def test_weights_reject_decrease(self) -> None:
        with self.assertRaises(WeightsNotIncreasing):
            validate_weights([1, 0, 1, 0, 1, 0, 1, 0, 1])

    def test_weights_reject_wrong_length(self) -> None:
        with self.assertRaises(LengthMismatch):
            validate_weights([])
        with self.assertRaises(LengthMismatch):
            validate_weights(range(10))

    def test_weights_reject_negative(self) -> None:
        with self.assertRaises(InvalidWeight):
            validate_weights([-1, 0, 0, 0, 0, 0, 0, 0, 0])

    def test_prize_tiers_must_match_total(self) -> None:
        tiers = validate_prize_tiers([1, 2, 3, 4], [4, 3, 2, 1], 20)
        self.assertEqual(tiers[0], PrizeTier(winner_count=1, prize_amount=4))
        self.assertEqual(tiers[3], PrizeTier(winner_count=4, prize_amount=1))
        with self.assertRaises(SumMismatch):
            validate_prize_tiers([1, 2, 3, 4], [4, 3, 2, 1], 0)

    def test_prize_tiers_reject_length_mismatch(self) -> None:
        with self.assertRaises(LengthMismatch):
            validate_prize_tiers([], [1, 2, 3, 4], 20)
        with self.assertRaises(LengthMismatch):
            validate_prize_tiers([1, 2, 3, 4], [], 20)
        with self.assertRaises(LengthMismatch):
            validate_prize_tiers([], [], 0)

    def test_prize_tiers_reject_non_positive_entries(self) -> None:
        with self.assertRaises(InvalidPrizeTier):
            validate_prize_tiers([0, 1], [5, 5], 5)
        with self.assertRaises(InvalidPrizeTier):
            validate_prize_tiers([1, 1], [5, 0], 5)

    def test_slot_tiers_and_eligibility(self) -> None:
        config = (
            PrizeConfig()
            .with_weights([0, 1, 2, 3, 4, 5, 6, 7, 8])
            .with_total_prize_threshold(11)
            .with_prize_tiers([4, 3, 2, 1], [1, 1, 1, 2])
            .with_participation_threshold(2)
        )
        self.assertEqual(config.slot_count, 10)
        self.assertEqual(config.slot_tiers(), [0, 0, 0, 0, 1, 1, 1, 2, 2, 3])
        self.assertEqual(config.tier_total, 11)
        self.assertFalse(config.is_eligible(0))
        self.assertFalse(config.is_eligible(1))
        self.assertTrue(config.is_eligible(2))
        self.assertEqual(config.weight_for(20), 8)

    def test_threshold_change_keeps_existing_tiers(self) -> None:
        config = PrizeConfig().with_total_prize_threshold(20)
        config = config.with_prize_tiers([1, 2, 3, 4], [4, 3, 2, 1])
        updated = config.with_total_prize_threshold(5)
        self.assertEqual(updated.prize_tiers, config.prize_tiers)
        self.assertEqual(updated.total_prize_threshold, 5)

    def test_thresholds_reject_negative(self) -> None:
        with self.assertRaises(InvalidThreshold):
            PrizeConfig().with_total_prize_threshold(-1)
        with self.assertRaises(InvalidThreshold):
            PrizeConfig().with_participation_threshold(-1)


class PrizeConfigStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )

    def tearDown(self) -> None:
        self.engine.dispose()

    def _lottery(self, session):
        return create_lottery(
            session,
            internal_name="weekly",
            owner="deployer",
            custody_account="lottery-custody",
            keeper="keeper",
        )

    def test_non_owner_cannot_update(self) -> None:
        with self.Session.begin() as session:
            store = PrizeConfigStore(session, self._lottery(session))
            with self.assertRaises(Unauthorized):
                store.update_weights("alice", [])
            with self.assertRaises(Unauthorized):
                store.update_prize_tiers("alice", [1], [1])
            with self.assertRaises(Unauthorized):
                store.update_participation_threshold("alice", 1)
            with self.assertRaises(Unauthorized):
                store.update_total_prize_threshold("alice", 1)
            self.assertIsNone(store.current_version())

    def test_updates_append_versions(self) -> None:
        with self.Session.begin() as session:
            lottery = self._lottery(session)
            store = PrizeConfigStore(session, lottery)
            self.assertEqual(store.current(), PrizeConfig())

            store.update_weights("deployer", [1, 2, 3, 4, 5, 6, 7, 8, 9])
            store.update_total_prize_threshold("deployer", 20)
            store.update_prize_tiers("deployer", [1, 2, 3, 4], [4, 3, 2, 1])

            version = store.current_version()
            assert version is not None
            self.assertEqual(version.version, 3)
            self.assertEqual(version.created_by, "deployer")

            config = store.current()
            self.assertEqual(config.weights, (1, 2, 3, 4, 5, 6, 7, 8, 9))
            self.assertEqual(config.total_prize_threshold, 20)
            self.assertEqual(
                [(t.winner_count, t.prize_amount) for t in config.prize_tiers],
                [(1, 4), (2, 3), (3, 2), (4, 1)],
            )

            count = session.scalar(
                select(func.count()).where(PrizeConfigVersion.lottery_id == lottery.id)
            )
            self.assertEqual(count, 3)

    def test_rejected_update_stores_nothing(self) -> None:
        with self.Session.begin() as session:
            store = PrizeConfigStore(session, self._lottery(session))
            with self.assertRaises(SumMismatch):
                store.update_prize_tiers("deployer", [1, 2, 3, 4], [4, 3, 2, 1])
            with self.assertRaises(WeightsNotIncreasing):
                store.update_weights("deployer", [1, 0, 1, 0, 1, 0, 1, 0, 1])
            self.assertIsNone(store.current_version())

    def test_configure_prizes_applies_thresholds_before_tiers(self) -> None:
        with self.Session.begin() as session:
            lottery = self._lottery(session)
            config = configure_prizes(
                session,
                lottery,
                "deployer",
                weights=[1, 2, 3, 4, 5, 6, 7, 8, 9],
                participation_threshold=1,
                total_prize_threshold=11,
                winner_counts=[4, 3, 2, 1],
                prize_amounts=[1, 1, 1, 2],
            )
            self.assertEqual(config.total_prize_threshold, 11)
            self.assertEqual(config.slot_count, 10)
            self.assertEqual(config.participation_threshold, 1)

            with self.assertRaises(ValueError):
                configure_prizes(session, lottery, "deployer", winner_counts=[1])


if __name__ == "__main__":
    unittest.main()

from __future__ import annotations

import unittest

from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from honorlottery.errors import AlreadySet, InvalidLevel, LengthMismatch, Unauthorized
from honorlottery.models import Base, HonorCollection, HonorEntitlement, HonorToken
from honorlottery.workflows import create_honor_collection, create_lottery, mint_honor


class HonorTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )

    def tearDown(self) -> None:
        self.engine.dispose()

    def _collection(self, session) -> HonorCollection:
        return create_honor_collection(
            session, internal_name="honor", owner="deployer"
        )


class EntitlementLedgerTests(HonorTestCase):
    def test_non_owner_is_rejected(self) -> None:
        with self.Session.begin() as session:
            collection = self._collection(session)
            with self.assertRaises(Unauthorized):
                collection.set_entitlements(session, "alice", [], [])
            with self.assertRaises(Unauthorized):
                collection.set_entitlement(session, "alice", "alice", 1)
            self.assertEqual(collection.entitlement(session, "alice"), 0)

    def test_length_mismatch(self) -> None:
        with self.Session.begin() as session:
            collection = self._collection(session)
            with self.assertRaises(LengthMismatch):
                collection.set_entitlements(session, "deployer", [], [1])

    def test_invalid_levels(self) -> None:
        with self.Session.begin() as session:
            collection = self._collection(session)
            for level in (0, 10, -1):
                with self.assertRaises(InvalidLevel):
                    collection.set_entitlement(session, "deployer", "alice", level)
                with self.assertRaises(InvalidLevel):
                    collection.set_entitlements(session, "deployer", ["alice"], [level])
            self.assertEqual(collection.entitlement(session, "alice"), 0)

    def test_level_cannot_be_set_twice(self) -> None:
        with self.Session.begin() as session:
            collection = self._collection(session)
            collection.set_entitlements(session, "deployer", ["alice"], [1])
            with self.assertRaises(AlreadySet):
                collection.set_entitlements(session, "deployer", ["alice"], [1])
            with self.assertRaises(AlreadySet):
                collection.set_entitlement(session, "deployer", "alice", 1)

    def test_level_can_be_raised(self) -> None:
        with self.Session.begin() as session:
            collection = self._collection(session)
            collection.set_entitlement(session, "deployer", "alice", 1)
            self.assertEqual(collection.entitlement(session, "alice"), 1)
            collection.set_entitlement(session, "deployer", "alice", 9)
            self.assertEqual(collection.entitlement(session, "alice"), 9)
            with self.assertRaises(AlreadySet):
                collection.set_entitlement(session, "deployer", "alice", 5)

    def test_batch_is_all_or_nothing(self) -> None:
        with self.Session.begin() as session:
            collection = self._collection(session)
            with self.assertRaises(InvalidLevel):
                collection.set_entitlements(session, "deployer", ["alice"], [0])
            with self.assertRaises(InvalidLevel):
                collection.set_entitlements(
                    session, "deployer", ["alice", "bob"], [3, 10]
                )
            with self.assertRaises(AlreadySet):
                collection.set_entitlements(
                    session, "deployer", ["alice", "alice"], [3, 3]
                )
            self.assertEqual(collection.entitlement(session, "alice"), 0)
            self.assertEqual(collection.entitlement(session, "bob"), 0)
            self.assertEqual(session.scalars(select(HonorEntitlement)).all(), [])

    def test_batch_sets_every_pair(self) -> None:
        with self.Session.begin() as session:
            collection = self._collection(session)
            rows = collection.set_entitlements(
                session, "deployer", ["alice", "Bob ", "carol"], [2, 5, 9]
            )
            self.assertEqual([row.account for row in rows], ["alice", "Bob", "carol"])
            self.assertEqual(collection.entitlement(session, " Bob"), 5)
            self.assertEqual(collection.entitlement(session, "bob"), 0)
            self.assertEqual(collection.entitlement(session, "carol"), 9)


class HonorIssuerTests(HonorTestCase):
    def test_realize_mints_the_delta(self) -> None:
        with self.Session.begin() as session:
            collection = self._collection(session)
            collection.set_entitlement(session, "deployer", "alice", 4)
            self.assertEqual(collection.owned_count(session, "alice"), 0)

            minted = mint_honor(session, collection, "alice")
            self.assertEqual([t.level for t in minted], [1, 2, 3, 4])
            self.assertEqual(collection.owned_count(session, "alice"), 4)

            collection.set_entitlement(session, "deployer", "alice", 8)
            minted = mint_honor(session, collection, "alice")
            self.assertEqual([t.level for t in minted], [5, 6, 7, 8])
            self.assertEqual(collection.owned_count(session, "alice"), 8)

            entitlement = collection.set_entitlement(session, "deployer", "alice", 9)
            self.assertEqual(entitlement.pending_levels, 1)

    def test_realize_without_change_is_a_no_op(self) -> None:
        with self.Session.begin() as session:
            collection = self._collection(session)
            self.assertEqual(mint_honor(session, collection, "alice"), [])

            collection.set_entitlement(session, "deployer", "alice", 3)
            mint_honor(session, collection, "alice")
            self.assertEqual(mint_honor(session, collection, "alice"), [])
            self.assertEqual(collection.owned_count(session, "alice"), 3)

    def test_token_ids_are_sequential_and_holders_reported(self) -> None:
        with self.Session.begin() as session:
            collection = self._collection(session)
            collection.set_entitlements(session, "deployer", ["alice", "bob"], [2, 3])
            mint_honor(session, collection, "alice")
            mint_honor(session, collection, "bob")

            token_ids = session.scalars(
                select(HonorToken.token_id).order_by(HonorToken.token_id)
            ).all()
            self.assertEqual(list(token_ids), [1, 2, 3, 4, 5])
            self.assertEqual(collection.minted_count, 5)
            self.assertEqual(collection.holders(session), {"alice": 2, "bob": 3})

    def test_owned_count_never_decreases(self) -> None:
        with self.Session.begin() as session:
            collection = self._collection(session)
            seen: list[int] = []
            for level in (1, 3, 4, 9):
                collection.set_entitlement(session, "deployer", "alice", level)
                mint_honor(session, collection, "alice")
                mint_honor(session, collection, "alice")
                seen.append(collection.owned_count(session, "alice"))
            self.assertEqual(seen, [1, 3, 4, 9])

    def test_only_owner_links_lottery(self) -> None:
        with self.Session.begin() as session:
            collection = self._collection(session)
            lottery = create_lottery(
                session,
                internal_name="weekly",
                owner="deployer",
                custody_account="lottery-custody",
            )
            with self.assertRaises(Unauthorized):
                collection.set_lottery(session, "alice", lottery)
            collection.set_lottery(session, "deployer", lottery)
            self.assertEqual(collection.lottery_id, lottery.id)
            self.assertIn(collection, lottery.honor_collections)
            collection.set_lottery(session, "deployer", None)
            self.assertIsNone(collection.lottery_id)

    def test_duplicate_collection_name_rejected(self) -> None:
        with self.Session.begin() as session:
            self._collection(session)
            with self.assertRaises(ValueError):
                self._collection(session)


if __name__ == "__main__":
    unittest.main()

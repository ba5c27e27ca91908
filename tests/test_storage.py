import sqlite3
from datetime import datetime, timezone

import pytest

from crowdfund.allocator import IdAllocator
from crowdfund.codec import get_codec
from crowdfund.errors import NotEnoughFunds, SizeExceeded, StorageFault
from crowdfund.models import U64_MAX
from crowdfund.stable import CAMPAIGNS_REGION, ID_COUNTER_REGION, StableDatabase, decode_key, encode_key
from crowdfund.store import CampaignStore


def entity(campaign_id, title="t", raised=0):
    return {
        "id": campaign_id,
        "title": title,
        "description": "d",
        "goal_amount": 100,
        "raised_amount": raised,
        "created_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
        "updated_at": None,
        "creator": "c",
    }


@pytest.fixture
def db(db_path):
    return StableDatabase(db_path)


@pytest.fixture
def store(db):
    return CampaignStore(db, get_codec(), 1024)


class TestStable:
    def test_keys_sort_numerically(self):
        values = [0, 1, 255, 256, 2**63 - 1, 2**63, U64_MAX]
        encoded = [encode_key(v) for v in values]
        assert encoded == sorted(encoded)
        assert [decode_key(e) for e in encoded] == values
        assert all(len(e) == 8 for e in encoded)

    def test_region_mismatch_is_refused(self, db_path, db):
        db.claim(ID_COUNTER_REGION)
        conn = sqlite3.connect(db_path)
        conn.execute("UPDATE stable_regions SET version = 99 WHERE region_id = ?", (ID_COUNTER_REGION.region_id,))
        conn.commit()
        conn.close()

        with pytest.raises(StorageFault):
            StableDatabase(db_path).claim(ID_COUNTER_REGION)

    def test_claim_is_stable(self, db):
        assert db.claim(CAMPAIGNS_REGION) == db.claim(CAMPAIGNS_REGION) == "campaigns_v1"


class TestCampaignStore:
    def test_insert_get_remove(self, store):
        assert store.get(1) is None
        assert store.insert(1, entity(1)) is None
        assert store.get(1) == entity(1)

        previous = store.insert(1, entity(1, title="second"))
        assert previous["title"] == "t"
        assert store.get(1)["title"] == "second"

        assert store.remove(1)["title"] == "second"
        assert store.remove(1) is None
        assert 1 not in store

    def test_get_returns_copy(self, store):
        store.insert(1, entity(1))
        copy = store.get(1)
        copy["title"] = "changed"
        assert store.get(1)["title"] == "t"

    def test_ordered_by_id_across_full_range(self, store):
        for cid in [U64_MAX, 3, 2**63, 1]:
            store.insert(cid, entity(cid))
        assert store.ids() == [1, 3, 2**63, U64_MAX]
        items, total = store.list(offset=1, limit=2)
        assert total == 4
        assert [i["id"] for i in items] == [3, 2**63]
        assert len(store) == 4

    def test_oversized_value_is_refused(self, db):
        small = CampaignStore(db, get_codec(), 64)
        with pytest.raises(SizeExceeded):
            small.insert(1, entity(1))
        assert small.get(1) is None

    def test_out_of_range_ids(self, store):
        assert store.get(-1) is None
        assert store.get(U64_MAX + 1) is None
        assert store.remove(U64_MAX + 1) is None
        with pytest.raises(ValueError):
            store.insert(-1, entity(-1))

    def test_mutate_applies_atomically(self, store):
        store.insert(1, entity(1))

        def bump(current):
            current["raised_amount"] += 10
            return current

        assert store.mutate(1, bump)["raised_amount"] == 10
        assert store.get(1)["raised_amount"] == 10
        assert store.mutate(2, bump) is None

    def test_mutate_failure_writes_nothing(self, store):
        store.insert(1, entity(1, raised=5))

        def reject(current):
            current["raised_amount"] = 999
            raise NotEnoughFunds("no")

        with pytest.raises(NotEnoughFunds):
            store.mutate(1, reject)
        assert store.get(1)["raised_amount"] == 5

    def test_records_survive_reopen(self, db_path, store):
        store.insert(7, entity(7, title="durable"))
        reopened = CampaignStore(StableDatabase(db_path), get_codec(), 1024)
        assert reopened.get(7)["title"] == "durable"


class TestIdAllocator:
    def test_starts_at_one(self, db):
        allocator = IdAllocator(db)
        assert allocator.current() == 0
        assert [allocator.next_id() for _ in range(3)] == [1, 2, 3]
        assert allocator.current() == 3

    def test_counter_survives_restart(self, db_path, db):
        allocator = IdAllocator(db)
        allocator.next_id()
        allocator.next_id()

        restarted = IdAllocator(StableDatabase(db_path))
        assert restarted.next_id() == 3

    def test_counter_is_eight_bytes(self, db_path, db):
        IdAllocator(db).next_id()
        conn = sqlite3.connect(db_path)
        (value,) = conn.execute(f"SELECT value FROM {ID_COUNTER_REGION.table}").fetchone()
        conn.close()
        assert bytes(value) == (1).to_bytes(8, "big")

    def test_exhausted_counter_is_fatal(self, db_path, db):
        allocator = IdAllocator(db)
        conn = sqlite3.connect(db_path)
        conn.execute(f"UPDATE {ID_COUNTER_REGION.table} SET value = ?", (encode_key(U64_MAX),))
        conn.commit()
        conn.close()

        with pytest.raises(StorageFault):
            allocator.next_id()
        assert allocator.current() == U64_MAX

    def test_unwritable_storage_is_fatal(self, db_path, db):
        allocator = IdAllocator(db)
        conn = sqlite3.connect(db_path)
        conn.execute(f"DROP TABLE {ID_COUNTER_REGION.table}")
        conn.commit()
        conn.close()

        with pytest.raises(StorageFault):
            allocator.next_id()

from __future__ import annotations

import logging
import sqlite3
from threading import RLock
from typing import Callable, List, Optional, Tuple

from .codec import Codec
from .errors import SizeExceeded
from .models import U64_MAX, CampaignEntity
from .stable import CAMPAIGNS_REGION, StableDatabase, decode_key, encode_key

logger = logging.getLogger(__name__)

Mutation = Callable[[CampaignEntity], CampaignEntity]


def _in_range(campaign_id: int) -> bool:
    return 0 <= campaign_id <= U64_MAX


# PUBLIC_INTERFACE
class CampaignStore:
    """
    Durable ordered map from an unsigned 64-bit id to an encoded campaign.

    Keys are stored big-endian so the table's primary key order is the
    numeric id order. Values are bounded to ``max_value_bytes``. Callers only
    ever receive copies; every change goes through insert, remove or mutate,
    each of which holds the store lock for its whole duration.
    """

    def __init__(self, db: StableDatabase, codec: Codec, max_value_bytes: int) -> None:
        self._db = db
        self._codec = codec
        self._max_value_bytes = max_value_bytes
        self._lock = RLock()
        self._table = db.claim(CAMPAIGNS_REGION)
        with self._db.connect() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self._table} (
                    key BLOB PRIMARY KEY,
                    value BLOB NOT NULL
                ) WITHOUT ROWID
                """
            )

    @property
    def max_value_bytes(self) -> int:
        return self._max_value_bytes

    def _encode(self, entity: CampaignEntity) -> bytes:
        data = self._codec.encode(entity)
        if len(data) > self._max_value_bytes:
            raise SizeExceeded(f"Campaign data exceeds the max size of {self._max_value_bytes}")
        return data

    def _load(self, conn: sqlite3.Connection, key: bytes) -> Optional[CampaignEntity]:
        row = conn.execute(f"SELECT value FROM {self._table} WHERE key = ?", (key,)).fetchone()
        return self._codec.decode(bytes(row["value"])) if row else None

    def _store(self, conn: sqlite3.Connection, key: bytes, data: bytes) -> None:
        conn.execute(
            f"INSERT OR REPLACE INTO {self._table} (key, value) VALUES (?, ?)",
            (key, sqlite3.Binary(data)),
        )

    def get(self, campaign_id: int) -> Optional[CampaignEntity]:
        """Return a copy of the record stored at ``campaign_id``, or None."""
        if not _in_range(campaign_id):
            return None
        with self._lock, self._db.connect() as conn:
            return self._load(conn, encode_key(campaign_id))

    def insert(self, campaign_id: int, entity: CampaignEntity) -> Optional[CampaignEntity]:
        """Insert or overwrite the record at ``campaign_id``; return the previous record if any."""
        if not _in_range(campaign_id):
            raise ValueError(f"Campaign id {campaign_id} is outside the unsigned 64-bit range")
        data = self._encode(entity)
        key = encode_key(campaign_id)
        with self._lock, self._db.connect(immediate=True) as conn:
            previous = self._load(conn, key)
            self._store(conn, key, data)
            return previous

    def remove(self, campaign_id: int) -> Optional[CampaignEntity]:
        """Delete the record at ``campaign_id`` and return it, or None if absent."""
        if not _in_range(campaign_id):
            return None
        key = encode_key(campaign_id)
        with self._lock, self._db.connect(immediate=True) as conn:
            previous = self._load(conn, key)
            if previous is not None:
                conn.execute(f"DELETE FROM {self._table} WHERE key = ?", (key,))
            return previous

    def mutate(self, campaign_id: int, fn: Mutation) -> Optional[CampaignEntity]:
        """
        Atomically read, transform and write back one record.

        ``fn`` receives a copy of the current record and returns the record to
        persist. If ``fn`` raises, or the result does not fit the byte bound,
        nothing is written and the exception propagates. Returns None when
        ``campaign_id`` is absent (``fn`` is not called).
        """
        if not _in_range(campaign_id):
            return None
        key = encode_key(campaign_id)
        with self._lock, self._db.connect(immediate=True) as conn:
            current = self._load(conn, key)
            if current is None:
                return None
            updated = fn(current)
            self._store(conn, key, self._encode(updated))
            return dict(updated)  # type: ignore[return-value]

    def list(self, offset: int = 0, limit: int = 50) -> Tuple[List[CampaignEntity], int]:
        """Return a page of records in ascending id order and the total record count."""
        with self._lock, self._db.connect() as conn:
            count_row = conn.execute(f"SELECT COUNT(*) AS cnt FROM {self._table}").fetchone()
            total = int(count_row["cnt"]) if count_row else 0
            rows = conn.execute(
                f"SELECT value FROM {self._table} ORDER BY key ASC LIMIT ? OFFSET ?",
                (max(limit, 0), max(offset, 0)),
            ).fetchall()
            return [self._codec.decode(bytes(r["value"])) for r in rows], total

    def ids(self) -> List[int]:
        """Return every stored id in ascending order."""
        with self._lock, self._db.connect() as conn:
            rows = conn.execute(f"SELECT key FROM {self._table} ORDER BY key ASC").fetchall()
            return [decode_key(bytes(r["key"])) for r in rows]

    def __len__(self) -> int:
        return self.list(limit=0)[1]

    def __contains__(self, campaign_id: object) -> bool:
        return isinstance(campaign_id, int) and self.get(campaign_id) is not None

from __future__ import annotations

import logging
from threading import RLock

from .errors import StorageFault
from .models import U64_MAX
from .stable import ID_COUNTER_REGION, StableDatabase, decode_key, encode_key

logger = logging.getLogger(__name__)

_COUNTER_SLOT = 0


# PUBLIC_INTERFACE
class IdAllocator:
    """
    Persisted monotonic id counter.

    The counter starts at 0; each call to next_id persists ``current + 1`` and
    returns it, so the first id handed out is 1. Ids are never reused.
    """

    def __init__(self, db: StableDatabase) -> None:
        self._db = db
        self._lock = RLock()
        self._table = db.claim(ID_COUNTER_REGION)
        with self._db.connect(immediate=True) as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self._table} (
                    slot INTEGER PRIMARY KEY CHECK (slot = {_COUNTER_SLOT}),
                    value BLOB NOT NULL
                )
                """
            )
            conn.execute(
                f"INSERT OR IGNORE INTO {self._table} (slot, value) VALUES (?, ?)",
                (_COUNTER_SLOT, encode_key(0)),
            )

    def current(self) -> int:
        """Return the last id handed out, 0 if none has been."""
        with self._lock, self._db.connect() as conn:
            row = conn.execute(
                f"SELECT value FROM {self._table} WHERE slot = ?", (_COUNTER_SLOT,)
            ).fetchone()
            return decode_key(bytes(row["value"])) if row else 0

    def next_id(self) -> int:
        """
        Persist and return the next id.

        Raises:
            StorageFault if the counter cannot be read or persisted, or the
            unsigned 64-bit range is exhausted.
        """
        with self._lock:
            try:
                with self._db.connect(immediate=True) as conn:
                    row = conn.execute(
                        f"SELECT value FROM {self._table} WHERE slot = ?", (_COUNTER_SLOT,)
                    ).fetchone()
                    if row is None:
                        raise StorageFault("Id counter region is empty")
                    current = decode_key(bytes(row["value"]))
                    if current >= U64_MAX:
                        raise StorageFault("Id counter exhausted the unsigned 64-bit range")
                    new_value = current + 1
                    conn.execute(
                        f"UPDATE {self._table} SET value = ? WHERE slot = ?",
                        (encode_key(new_value), _COUNTER_SLOT),
                    )
            except StorageFault:
                logger.critical("Cannot increment id counter", exc_info=True)
                raise
            return new_value

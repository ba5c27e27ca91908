"""
Durable region registry on top of a single sqlite file.

Every durable structure (the id counter, the campaign map) claims a fixed,
versioned region. The registry row is written the first time a region is
claimed and checked on every later start, so a file written by an
incompatible layout is refused instead of being silently reinterpreted.
"""
from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generator

from .errors import StorageFault

logger = logging.getLogger(__name__)

KEY_BYTES = 8


@dataclass(frozen=True)
class Region:
    region_id: int
    name: str
    version: int

    @property
    def table(self) -> str:
        return f"{self.name}_v{self.version}"


ID_COUNTER_REGION = Region(region_id=0, name="id_counter", version=1)
CAMPAIGNS_REGION = Region(region_id=1, name="campaigns", version=1)


def encode_key(value: int) -> bytes:
    """Encode an unsigned 64-bit integer so that byte order matches numeric order."""
    return value.to_bytes(KEY_BYTES, "big", signed=False)


def decode_key(data: bytes) -> int:
    return int.from_bytes(data, "big", signed=False)


# PUBLIC_INTERFACE
class StableDatabase:
    """
    Owner of the sqlite file backing all durable regions.

    Connections are opened per unit of work and committed when the unit
    completes without error; any sqlite failure is surfaced as StorageFault.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_registry()
        logger.info(f"Opened durable storage at {db_path}")

    @property
    def path(self) -> str:
        return self._db_path

    @contextmanager
    def connect(self, immediate: bool = False) -> Generator[sqlite3.Connection, None, None]:
        """
        Yield a connection for one unit of work.

        With ``immediate=True`` the write lock is taken up front so that a
        read followed by a write cannot interleave with another writer.
        """
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as e:
            raise StorageFault(f"Cannot open durable storage at {self._db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            if immediate:
                conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            raise StorageFault(f"Durable storage failure: {e}") from e
        finally:
            conn.close()

    def _init_registry(self) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS stable_regions (
                    region_id INTEGER PRIMARY KEY,
                    name TEXT NOT NULL,
                    version INTEGER NOT NULL
                )
                """
            )

    def claim(self, region: Region) -> str:
        """
        Register ``region`` (or verify an existing registration) and return
        the table name that holds its data.
        """
        with self.connect(immediate=True) as conn:
            row = conn.execute(
                "SELECT name, version FROM stable_regions WHERE region_id = ?",
                (region.region_id,),
            ).fetchone()
            if row is None:
                conn.execute(
                    "INSERT INTO stable_regions (region_id, name, version) VALUES (?, ?, ?)",
                    (region.region_id, region.name, region.version),
                )
            elif row["name"] != region.name or int(row["version"]) != region.version:
                raise StorageFault(
                    f"Region {region.region_id} is registered as "
                    f"{row['name']} v{row['version']}, expected {region.name} v{region.version}"
                )
        return region.table

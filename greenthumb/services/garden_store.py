"""
Garden Store - durable storage for saved plants

One sqlite file, one table (`plants`), primary key `id`. Every call opens
its own connection and transaction in a worker thread, so callers on the
event loop always await and never block.
"""
import json
import asyncio
import logging
import sqlite3
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Iterator, List

from pydantic import ValidationError as ContractViolation

from greenthumb.config import GARDEN_DB_PATH, GARDEN_SCHEMA_VERSION
from greenthumb.exceptions import StorageReadError, StorageUnavailable, StorageWriteError
from greenthumb.models import SavedPlant

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS plants (
    id TEXT PRIMARY KEY,
    record TEXT NOT NULL,
    date_added INTEGER NOT NULL
);
"""


class GardenStore:
    """sqlite-backed key-value store of SavedPlant records."""

    def __init__(self, db_path: Path | str = GARDEN_DB_PATH) -> None:
        self.db_path = Path(db_path)
        self._ready = False

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        # `with connection` commits on success and rolls back on error
        with closing(sqlite3.connect(str(self.db_path))) as connection:
            with connection:
                yield connection

    # ------------------------------------------------------------------ init
    async def init(self) -> None:
        """Open or create the database; safe to call repeatedly."""
        await asyncio.to_thread(self._init_sync)

    def _init_sync(self) -> None:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with self._connect() as connection:
                version = connection.execute("PRAGMA user_version").fetchone()[0]
                if version > GARDEN_SCHEMA_VERSION:
                    raise StorageUnavailable(
                        f"Garden database {self.db_path} has schema version {version}; "
                        f"only version {GARDEN_SCHEMA_VERSION} is supported"
                    )
                connection.executescript(_SCHEMA)
                if version < GARDEN_SCHEMA_VERSION:
                    connection.execute(f"PRAGMA user_version = {GARDEN_SCHEMA_VERSION}")
        except (sqlite3.Error, OSError) as e:
            raise StorageUnavailable(f"Unable to open garden database {self.db_path}: {e}") from e
        if not self._ready:
            logger.info(f"✓ Garden store ready at {self.db_path}")
        self._ready = True

    def _ensure_ready(self) -> None:
        if not self._ready:
            self._init_sync()

    # ------------------------------------------------------------------ read
    async def list_all(self) -> List[SavedPlant]:
        """Every readable saved plant, in no particular order.

        A corrupt row is logged and skipped.
        """
        return await asyncio.to_thread(self._list_all_sync)

    def _list_all_sync(self) -> List[SavedPlant]:
        self._ensure_ready()
        try:
            with self._connect() as connection:
                rows = connection.execute("SELECT id, record FROM plants").fetchall()
        except sqlite3.Error as e:
            raise StorageReadError(f"Failed to read saved plants: {e}") from e

        plants = []
        for plant_id, record in rows:
            try:
                plants.append(SavedPlant.model_validate(json.loads(record)))
            except (json.JSONDecodeError, ContractViolation) as e:
                logger.warning(f"Skipping corrupt saved plant {plant_id}: {e}")
        return plants

    # ----------------------------------------------------------------- write
    async def put(self, plant: SavedPlant) -> None:
        """Insert or replace the record with the same id."""
        await asyncio.to_thread(self._put_sync, plant)

    def _put_sync(self, plant: SavedPlant) -> None:
        self._ensure_ready()
        try:
            with self._connect() as connection:
                connection.execute(
                    "INSERT OR REPLACE INTO plants (id, record, date_added) VALUES (?, ?, ?)",
                    (plant.id, json.dumps(plant.to_record()), plant.date_added),
                )
        except sqlite3.Error as e:
            raise StorageWriteError(f"Failed to save plant {plant.id}: {e}") from e
        logger.info(f"✓ Saved plant {plant.id} ({plant.name})")

    async def delete(self, plant_id: str) -> None:
        """Remove a record; a missing id is not an error."""
        await asyncio.to_thread(self._delete_sync, plant_id)

    def _delete_sync(self, plant_id: str) -> None:
        self._ensure_ready()
        try:
            with self._connect() as connection:
                deleted = connection.execute("DELETE FROM plants WHERE id = ?", (plant_id,)).rowcount
        except sqlite3.Error as e:
            raise StorageWriteError(f"Failed to delete plant {plant_id}: {e}") from e
        if deleted:
            logger.info(f"✓ Deleted plant {plant_id}")
        else:
            logger.info(f"Plant {plant_id} was not in the garden, nothing to delete")

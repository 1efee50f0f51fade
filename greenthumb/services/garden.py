"""
Garden - in-memory mirror of the garden store

Write-through: the mirror changes only after the store confirms a write,
so it never shows a plant as saved (or removed) when it is not.
"""
import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from greenthumb.config import GARDEN_LOAD_ERROR_MESSAGE, REMOVE_ERROR_MESSAGE, SAVE_ERROR_MESSAGE
from greenthumb.exceptions import StorageError
from greenthumb.models import PlantInfo, SavedPlant
from greenthumb.services.chat_session import now_ms
from greenthumb.services.garden_store import GardenStore
from greenthumb.utils.image import to_data_uri, to_jpeg_bytes

logger = logging.getLogger(__name__)


def newest_first(plants: Iterable[SavedPlant]) -> List[SavedPlant]:
    return sorted(plants, key=lambda plant: plant.date_added, reverse=True)


class Garden:
    def __init__(self, store: GardenStore):
        self.store = store
        self.plants: List[SavedPlant] = []
        self.is_loading = False
        self.error: Optional[str] = None
        self._last_id = 0
        # One lock per (name, scientific name); overlapping saves of a plant run one at a time
        self._save_locks: Dict[Tuple[str, str], asyncio.Lock] = {}

    async def load(self) -> bool:
        """Open the store and refresh the mirror, newest first."""
        self.is_loading = True
        try:
            await self.store.init()
            plants = await self.store.list_all()
        except StorageError as e:
            logger.error(f"Failed to load garden from database: {e}", exc_info=True)
            self.error = GARDEN_LOAD_ERROR_MESSAGE
            return False
        finally:
            self.is_loading = False

        self.plants = newest_first(plants)
        self.error = None
        logger.info(f"✓ Loaded {len(self.plants)} plants from the garden")
        return True

    # ---------------------------------------------------------------- queries
    def find(self, plant: PlantInfo) -> Optional[SavedPlant]:
        """Exact (name, scientific name) match; no fuzzy matching."""
        for saved in self.plants:
            if saved.name == plant.name and saved.scientific_name == plant.scientific_name:
                return saved
        return None

    def contains(self, plant: PlantInfo) -> bool:
        return self.find(plant) is not None

    def search(self, query: str) -> List[SavedPlant]:
        """Case-insensitive substring filter on common or scientific name."""
        needle = (query or "").strip().lower()
        if not needle:
            return list(self.plants)
        return [
            plant for plant in self.plants
            if needle in plant.name.lower() or needle in plant.scientific_name.lower()
        ]

    # -------------------------------------------------------------- mutations
    def _next_id(self, timestamp: int) -> str:
        # Millisecond clock, nudged forward so ids stay unique within the process
        candidate = max(timestamp, self._last_id + 1)
        self._last_id = candidate
        return str(candidate)

    async def save(self, plant: PlantInfo, image_bytes: bytes) -> Optional[SavedPlant]:
        key = (plant.name, plant.scientific_name)
        lock = self._save_locks.setdefault(key, asyncio.Lock())
        async with lock:
            return await self._save(plant, image_bytes)

    async def _save(self, plant: PlantInfo, image_bytes: bytes) -> Optional[SavedPlant]:
        existing = self.find(plant)
        if existing is not None:
            logger.info(f"{plant.name} is already in the garden (id {existing.id})")
            return existing

        try:
            image_url = to_data_uri(to_jpeg_bytes(image_bytes))
        except ValueError as e:
            logger.error(f"Cannot store image for {plant.name}: {e}")
            self.error = SAVE_ERROR_MESSAGE
            return None

        timestamp = now_ms()
        saved = SavedPlant(
            id=self._next_id(timestamp),
            plant=plant,
            image_url=image_url,
            date_added=timestamp,
        )
        try:
            await self.store.put(saved)
        except StorageError as e:
            logger.error(f"Failed to save plant to database: {e}", exc_info=True)
            self.error = SAVE_ERROR_MESSAGE
            return None

        self.plants = newest_first([saved, *self.plants])
        self.error = None
        return saved

    async def remove(self, plant_id: str) -> bool:
        try:
            await self.store.delete(plant_id)
        except StorageError as e:
            logger.error(f"Failed to delete plant from database: {e}", exc_info=True)
            self.error = REMOVE_ERROR_MESSAGE
            return False

        self.plants = [plant for plant in self.plants if plant.id != plant_id]
        self.error = None
        return True

import threading
import uuid
from typing import Dict, List, Optional

from pantry_app.modules.inventory.schemas import InventoryLocationDto


class InventoryService:
    """In-memory location store used by the inventory screens until they move onto the pantry tables."""

    def __init__(self, seed: bool = True):
        self._locations: Dict[str, InventoryLocationDto] = {}
        self._lock = threading.Lock()
        if seed:
            for dto in (
                InventoryLocationDto(id="loc1", main_location="Home", sub_location="Pantry", name="Pantry",
                                     slug="pantry", description="Home pantry"),
                InventoryLocationDto(id="loc2", main_location="Home", sub_location="Food Storage",
                                     name="Food Storage", slug="food-storage", description="Long term"),
            ):
                self._locations[dto.id] = dto

    def get_locations(self) -> List[InventoryLocationDto]:
        with self._lock:
            return sorted(self._locations.values(), key=lambda x: x.name)

    def get_location(self, location_id: str) -> Optional[InventoryLocationDto]:
        with self._lock:
            return self._locations.get(location_id)

    def save_location(self, dto: InventoryLocationDto) -> InventoryLocationDto:
        if not dto.id or not dto.id.strip():
            dto = dto.model_copy(update={"id": str(uuid.uuid4())})
        with self._lock:
            self._locations[dto.id] = dto
        return dto

    def delete_location(self, location_id: str) -> None:
        with self._lock:
            self._locations.pop(location_id, None)


_inventory_service = InventoryService()


def get_inventory_service() -> InventoryService:
    return _inventory_service

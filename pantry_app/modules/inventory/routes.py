from fastapi import APIRouter, Depends, HTTPException
from typing import List

from pantry_app.core.dependencies import require_principal, verify_csrf
from pantry_app.modules.inventory.schemas import InventoryLocationDto
from pantry_app.modules.inventory.service import InventoryService, get_inventory_service

router = APIRouter(
    prefix="/inventory/locations",
    tags=["inventory"],
    dependencies=[Depends(require_principal)],
)


@router.get("", response_model=List[InventoryLocationDto])
async def list_locations(service: InventoryService = Depends(get_inventory_service)):
    return service.get_locations()


@router.get("/{location_id}", response_model=InventoryLocationDto)
async def get_location(location_id: str, service: InventoryService = Depends(get_inventory_service)):
    location = service.get_location(location_id)
    if location is None:
        raise HTTPException(status_code=404, detail="Location not found")
    return location


@router.post("", response_model=InventoryLocationDto, status_code=201, dependencies=[Depends(verify_csrf)])
async def create_location(dto: InventoryLocationDto, service: InventoryService = Depends(get_inventory_service)):
    return service.save_location(dto.model_copy(update={"id": ""}))


@router.put("/{location_id}", response_model=InventoryLocationDto, dependencies=[Depends(verify_csrf)])
async def save_location(
    location_id: str,
    dto: InventoryLocationDto,
    service: InventoryService = Depends(get_inventory_service)
):
    return service.save_location(dto.model_copy(update={"id": location_id}))


@router.delete("/{location_id}", status_code=204, dependencies=[Depends(verify_csrf)])
async def delete_location(location_id: str, service: InventoryService = Depends(get_inventory_service)):
    service.delete_location(location_id)
    return None

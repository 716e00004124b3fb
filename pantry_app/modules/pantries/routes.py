from fastapi import APIRouter, Depends
from supabase import Client
from typing import List, Optional

from pantry_app.core.dependencies import get_household_context, get_session_client, verify_csrf
from pantry_app.modules.households.schemas import HouseholdContext
from pantry_app.modules.pantries.schemas import (
    InventoryDisplayItem, InventoryEditLocationRow, InventoryItemCreate, InventoryItemUpdate,
    LocationForm, Pantry, SidebarPantrySection
)
from pantry_app.modules.pantries.service import PantryService

router = APIRouter(prefix="/pantries", tags=["pantries"])


def get_pantry_service(supabase: Client = Depends(get_session_client)) -> PantryService:
    return PantryService(supabase)


@router.get("", response_model=List[Pantry])
async def list_pantries(
    context: HouseholdContext = Depends(get_household_context),
    service: PantryService = Depends(get_pantry_service)
):
    """Pantries of the household; a default one is created if there is none"""
    service.ensure_default_pantry(context.group)
    return service.list_pantries(context.group_id)


@router.get("/sidebar", response_model=List[SidebarPantrySection])
async def sidebar(
    context: HouseholdContext = Depends(get_household_context),
    service: PantryService = Depends(get_pantry_service)
):
    return service.sidebar(context.group_id)


@router.get("/locations", response_model=List[InventoryEditLocationRow])
async def list_locations(
    context: HouseholdContext = Depends(get_household_context),
    service: PantryService = Depends(get_pantry_service)
):
    return service.list_locations(context.group_id)


@router.post("/locations", response_model=InventoryEditLocationRow, status_code=201, dependencies=[Depends(verify_csrf)])
async def create_location(
    form: LocationForm,
    context: HouseholdContext = Depends(get_household_context),
    service: PantryService = Depends(get_pantry_service)
):
    return service.create_location(context.group, context.user_id, form)


@router.put("/locations/{location_id}", response_model=InventoryEditLocationRow, dependencies=[Depends(verify_csrf)])
async def update_location(
    location_id: str,
    form: LocationForm,
    context: HouseholdContext = Depends(get_household_context),
    service: PantryService = Depends(get_pantry_service)
):
    return service.update_location(context.group_id, location_id, form)


@router.delete("/locations/{location_id}", status_code=204, dependencies=[Depends(verify_csrf)])
async def delete_location(
    location_id: str,
    context: HouseholdContext = Depends(get_household_context),
    service: PantryService = Depends(get_pantry_service)
):
    service.delete_location(context.group_id, location_id)
    return None


@router.get("/items", response_model=List[InventoryDisplayItem])
async def list_items(
    location_id: Optional[str] = None,
    context: HouseholdContext = Depends(get_household_context),
    service: PantryService = Depends(get_pantry_service)
):
    """Inventory of the household, optionally for a single location"""
    return service.list_items(context.group_id, location_id)


@router.post("/items", response_model=InventoryDisplayItem, status_code=201, dependencies=[Depends(verify_csrf)])
async def add_item(
    form: InventoryItemCreate,
    context: HouseholdContext = Depends(get_household_context),
    service: PantryService = Depends(get_pantry_service)
):
    return service.add_item(context.group, context.user_id, form)


@router.put("/items/{inventory_id}", response_model=InventoryDisplayItem, dependencies=[Depends(verify_csrf)])
async def update_item(
    inventory_id: str,
    form: InventoryItemUpdate,
    context: HouseholdContext = Depends(get_household_context),
    service: PantryService = Depends(get_pantry_service)
):
    return service.update_item(context.group_id, inventory_id, form)


@router.delete("/items/{inventory_id}", status_code=204, dependencies=[Depends(verify_csrf)])
async def delete_item(
    inventory_id: str,
    context: HouseholdContext = Depends(get_household_context),
    service: PantryService = Depends(get_pantry_service)
):
    service.delete_item(context.group_id, inventory_id)
    return None

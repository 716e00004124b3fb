from fastapi import APIRouter, Depends, HTTPException
from supabase import Client
from typing import List

from pantry_app.core.dependencies import get_household_context, get_session_client, verify_csrf
from pantry_app.modules.households.schemas import HouseholdContext
from pantry_app.modules.shopping_lists.schemas import (
    ItemCatalogRow, ListRow, ShoppingItemCreate, ShoppingItemUpdate,
    ShoppingListItemView, ShoppingListResponse
)
from pantry_app.modules.shopping_lists.service import ShoppingListService

router = APIRouter(prefix="/shopping-list", tags=["shopping-list"])


def get_shopping_list_service(supabase: Client = Depends(get_session_client)) -> ShoppingListService:
    return ShoppingListService(supabase)


def _current_list(context: HouseholdContext, service: ShoppingListService) -> ListRow:
    shopping_list = service.get_or_create_shopping_list(context.group_id, context.user_id)
    if shopping_list is None:
        raise HTTPException(status_code=500, detail="Failed to load shopping list")
    return shopping_list


@router.get("", response_model=ShoppingListResponse)
async def get_shopping_list(
    context: HouseholdContext = Depends(get_household_context),
    service: ShoppingListService = Depends(get_shopping_list_service)
):
    """The household's shopping list with its items"""
    shopping_list = _current_list(context, service)
    items = service.get_items(shopping_list.list_id)
    catalog = service.get_catalog_map() if any(i.item_id for i in items) else {}
    return ShoppingListResponse(shopping_list=shopping_list, items=service.build_view(items, catalog))


@router.get("/catalog", response_model=List[ItemCatalogRow])
async def list_catalog(
    context: HouseholdContext = Depends(get_household_context),
    service: ShoppingListService = Depends(get_shopping_list_service)
):
    """Catalog items that can be added to the list"""
    return sorted(service.get_catalog_map().values(), key=lambda c: c.name.lower())


@router.post("/items", response_model=ShoppingListItemView, status_code=201, dependencies=[Depends(verify_csrf)])
async def add_item(
    item: ShoppingItemCreate,
    context: HouseholdContext = Depends(get_household_context),
    service: ShoppingListService = Depends(get_shopping_list_service)
):
    """Add a free-text or catalog item"""
    shopping_list = _current_list(context, service)
    catalog = {}
    if item.item_id:
        catalog = service.get_catalog_map()
        if item.item_id not in catalog:
            raise HTTPException(status_code=404, detail="Catalog item not found")
        row = service.add_catalog(shopping_list.list_id, context.user_id, item.item_id, item.quantity, item.unit)
    else:
        row = service.add_custom(shopping_list.list_id, context.user_id, item.custom_name, item.quantity, item.unit)
    return service.build_view([row], catalog)[0]


@router.post("/items/{list_item_id}/toggle", response_model=ShoppingListItemView, dependencies=[Depends(verify_csrf)])
async def toggle_item(
    list_item_id: str,
    context: HouseholdContext = Depends(get_household_context),
    service: ShoppingListService = Depends(get_shopping_list_service)
):
    """Flip the checked state of an item"""
    shopping_list = _current_list(context, service)
    row = service.get_item(shopping_list.list_id, list_item_id)
    updated = service.toggle_checked(row)
    catalog = service.get_catalog_map() if updated.item_id else {}
    return service.build_view([updated], catalog)[0]


@router.put("/items/{list_item_id}", response_model=ShoppingListItemView, dependencies=[Depends(verify_csrf)])
async def update_item(
    list_item_id: str,
    item: ShoppingItemUpdate,
    context: HouseholdContext = Depends(get_household_context),
    service: ShoppingListService = Depends(get_shopping_list_service)
):
    """Change quantity and unit of an item"""
    shopping_list = _current_list(context, service)
    row = service.get_item(shopping_list.list_id, list_item_id)
    updated = service.update_qty_unit(row, item.quantity, item.unit)
    catalog = service.get_catalog_map() if updated.item_id else {}
    return service.build_view([updated], catalog)[0]


@router.delete("/items/{list_item_id}", status_code=204, dependencies=[Depends(verify_csrf)])
async def delete_item(
    list_item_id: str,
    context: HouseholdContext = Depends(get_household_context),
    service: ShoppingListService = Depends(get_shopping_list_service)
):
    """Remove an item from the list"""
    shopping_list = _current_list(context, service)
    row = service.get_item(shopping_list.list_id, list_item_id)
    service.delete(row)
    return None

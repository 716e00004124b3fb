import logging
from supabase import Client
from fastapi import HTTPException
from typing import Dict, List, Optional

from pantry_app.modules.shopping_lists.schemas import (
    ItemCatalogRow, ListItemRow, ListRow, ShoppingListItemView
)

logger = logging.getLogger(__name__)

SHOPPING_LIST_TYPE = "shopping"
DEFAULT_LIST_NAME = "Weekly Shopping"


def normalize_quantity(quantity: Optional[float]) -> float:
    if quantity is None or quantity <= 0:
        return 1
    return quantity


def normalize_unit(unit: Optional[str]) -> Optional[str]:
    if unit is None or not unit.strip():
        return None
    return unit.strip()


class ShoppingListService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_user_group_id(self, user_id: str) -> Optional[str]:
        """First household the user is a member of"""
        result = self.supabase.table("group_members")\
            .select("group_id")\
            .eq("user_id", user_id)\
            .execute()
        if not result.data:
            return None
        return result.data[0]["group_id"]

    def get_or_create_shopping_list(self, group_id: str, user_id: str) -> Optional[ListRow]:
        """The household's shopping list, created on first use"""
        try:
            result = self.supabase.table("lists")\
                .select("*")\
                .eq("group_id", group_id)\
                .execute()
            for row in result.data or []:
                if (row.get("list_type") or "").lower() == SHOPPING_LIST_TYPE:
                    return ListRow(**row)

            inserted = self.supabase.table("lists").insert({
                "group_id": group_id,
                "name": DEFAULT_LIST_NAME,
                "list_type": SHOPPING_LIST_TYPE,
                "created_by_user": user_id
            }).execute()
            if not inserted.data:
                return None
            logger.info(f"Created shopping list for household {group_id}")
            return ListRow(**inserted.data[0])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_items(self, list_id: str) -> List[ListItemRow]:
        """Items on the list: unchecked first, then by name"""
        try:
            result = self.supabase.table("list_items")\
                .select("*")\
                .eq("list_id", list_id)\
                .execute()
            items = [ListItemRow(**row) for row in result.data or []]
            items.sort(key=lambda i: (i.is_checked, i.custom_name or ""))
            return items
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_catalog_map(self) -> Dict[str, ItemCatalogRow]:
        try:
            result = self.supabase.table("item_catalog").select("*").execute()
            return {row["item_id"]: ItemCatalogRow(**row) for row in result.data or []}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_item(self, list_id: str, list_item_id: str) -> ListItemRow:
        """A single row, only if it sits on the given list"""
        try:
            result = self.supabase.table("list_items")\
                .select("*")\
                .eq("list_item_id", list_item_id)\
                .eq("list_id", list_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="List item not found")
        return ListItemRow(**result.data[0])

    def _insert(self, row: dict) -> ListItemRow:
        try:
            result = self.supabase.table("list_items").insert(row).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add list item")
            return ListItemRow(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def add_custom(self, list_id: str, user_id: str, name: str, quantity: float, unit: Optional[str]) -> ListItemRow:
        name = (name or "").strip()
        if not name:
            raise HTTPException(status_code=422, detail="Item name is required")
        return self._insert({
            "list_id": list_id,
            "custom_name": name,
            "item_id": None,
            "quantity": normalize_quantity(quantity),
            "unit": normalize_unit(unit),
            "is_checked": False,
            "added_by_user": user_id
        })

    def add_catalog(self, list_id: str, user_id: str, item_id: str, quantity: float, unit: Optional[str]) -> ListItemRow:
        return self._insert({
            "list_id": list_id,
            "item_id": item_id,
            "custom_name": None,
            "quantity": normalize_quantity(quantity),
            "unit": normalize_unit(unit),
            "is_checked": False,
            "added_by_user": user_id
        })

    def _update(self, row: ListItemRow, changes: dict) -> ListItemRow:
        try:
            result = self.supabase.table("list_items")\
                .update(changes)\
                .eq("list_item_id", row.list_item_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="List item not found")
            return ListItemRow(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def toggle_checked(self, row: ListItemRow) -> ListItemRow:
        return self._update(row, {"is_checked": not row.is_checked})

    def update_qty_unit(self, row: ListItemRow, quantity: float, unit: Optional[str]) -> ListItemRow:
        return self._update(row, {
            "quantity": normalize_quantity(quantity),
            "unit": normalize_unit(unit)
        })

    def delete(self, row: ListItemRow) -> bool:
        try:
            result = self.supabase.table("list_items")\
                .delete()\
                .eq("list_item_id", row.list_item_id)\
                .execute()
            return len(result.data or []) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def build_view(self, items: List[ListItemRow], catalog: Dict[str, ItemCatalogRow]) -> List[ShoppingListItemView]:
        """Attach a display name from the catalog to each row"""
        views = []
        for item in items:
            entry = catalog.get(item.item_id) if item.item_id else None
            views.append(ShoppingListItemView(
                **item.model_dump(),
                display_name=item.custom_name or (entry.name if entry else "") or "Unknown item",
                brand=entry.brand if entry else None,
            ))
        return views

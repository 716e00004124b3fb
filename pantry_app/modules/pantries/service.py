import logging
from datetime import datetime, timezone
from decimal import Decimal
from supabase import Client
from fastapi import HTTPException
from typing import Dict, List, Optional, Tuple

from pantry_app.core.events import data_changes, DataScopes
from pantry_app.core.text import slugify
from pantry_app.modules.households.schemas import Group
from pantry_app.modules.pantries.schemas import (
    InventoryDisplayItem, InventoryEditLocationRow, InventoryItem, InventoryItemCreate,
    InventoryItemUpdate, LocationForm, Pantry, PantryLocation, SidebarLocationLink,
    SidebarPantrySection
)

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
UNNAMED_ITEM = "Unnamed item"


def format_amount(quantity: float, unit: Optional[str]) -> str:
    """2.50, "kg" -> "2.5 kg"."""
    number = format(Decimal(str(quantity)).normalize(), "f")
    if unit and unit.strip():
        return f"{number} {unit.strip()}"
    return number


class PantryService:
    """
    Pantries, their storage locations and the inventory kept in them.

    Every lookup is scoped by household: a location or item id that belongs to
    another household is reported as not found.
    """

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_pantries(self, group_id: str) -> List[Pantry]:
        try:
            result = self.supabase.table("pantries")\
                .select("*")\
                .eq("group_id", group_id)\
                .order("created_at")\
                .execute()
            return [Pantry(**row) for row in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def ensure_default_pantry(self, group: Group) -> Pantry:
        pantries = self.list_pantries(group.group_id)
        if pantries:
            return pantries[0]
        try:
            result = self.supabase.table("pantries").insert({
                "group_id": group.group_id,
                "name": f"{group.name or 'Household'} Pantry"
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create pantry")
            logger.info(f"Created default pantry for household {group.group_id}")
            return Pantry(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _locations_for(self, pantries: List[Pantry]) -> List[PantryLocation]:
        if not pantries:
            return []
        try:
            result = self.supabase.table("pantry_locations")\
                .select("*")\
                .in_("pantry_id", [p.pantry_id for p in pantries])\
                .execute()
            return [PantryLocation(**row) for row in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _get_location(self, group_id: str, location_id: str) -> Tuple[PantryLocation, Pantry]:
        pantries = {p.pantry_id: p for p in self.list_pantries(group_id)}
        try:
            result = self.supabase.table("pantry_locations")\
                .select("*")\
                .eq("location_id", location_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data or result.data[0]["pantry_id"] not in pantries:
            raise HTTPException(status_code=404, detail="Location not found")
        location = PantryLocation(**result.data[0])
        return location, pantries[location.pantry_id]

    def list_locations(self, group_id: str) -> List[InventoryEditLocationRow]:
        """Locations of every pantry of the household, ordered by pantry then location name"""
        pantries = self.list_pantries(group_id)
        names = {p.pantry_id: p.name or "" for p in pantries}
        rows = [
            InventoryEditLocationRow(
                location_id=location.location_id,
                pantry_id=location.pantry_id,
                pantry_name=names.get(location.pantry_id, ""),
                location_name=location.name or "",
                notes=location.notes,
            )
            for location in self._locations_for(pantries)
        ]
        rows.sort(key=lambda r: (r.pantry_name.lower(), r.location_name.lower()))
        return rows

    def create_location(self, group: Group, user_id: str, form: LocationForm) -> InventoryEditLocationRow:
        pantry = self.ensure_default_pantry(group)
        try:
            result = self.supabase.table("pantry_locations").insert({
                "pantry_id": pantry.pantry_id,
                "name": form.sub_location,
                "notes": (form.description or "").strip() or None,
                "created_by_user": user_id
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create location")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        location = PantryLocation(**result.data[0])
        data_changes.notify_changed(DataScopes.LOCATIONS)
        return InventoryEditLocationRow(
            location_id=location.location_id,
            pantry_id=pantry.pantry_id,
            pantry_name=pantry.name or "",
            location_name=location.name or "",
            notes=location.notes,
        )

    def update_location(self, group_id: str, location_id: str, form: LocationForm) -> InventoryEditLocationRow:
        _, pantry = self._get_location(group_id, location_id)
        try:
            result = self.supabase.table("pantry_locations")\
                .update({
                    "name": form.sub_location,
                    "notes": (form.description or "").strip() or None
                })\
                .eq("location_id", location_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Location not found")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        location = PantryLocation(**result.data[0])
        data_changes.notify_changed(DataScopes.LOCATIONS)
        return InventoryEditLocationRow(
            location_id=location.location_id,
            pantry_id=pantry.pantry_id,
            pantry_name=pantry.name or "",
            location_name=location.name or "",
            notes=location.notes,
        )

    def delete_location(self, group_id: str, location_id: str) -> bool:
        self._get_location(group_id, location_id)
        try:
            result = self.supabase.table("pantry_locations")\
                .delete()\
                .eq("location_id", location_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        data_changes.notify_changed(DataScopes.LOCATIONS)
        return len(result.data or []) > 0

    def sidebar(self, group_id: str) -> List[SidebarPantrySection]:
        """Navigation tree: one section per pantry with links to its locations"""
        pantries = self.list_pantries(group_id)
        by_pantry: Dict[str, List[PantryLocation]] = {p.pantry_id: [] for p in pantries}
        for location in self._locations_for(pantries):
            by_pantry.setdefault(location.pantry_id, []).append(location)

        sections = []
        for pantry in pantries:
            locations = sorted(by_pantry[pantry.pantry_id], key=lambda l: (l.name or "").lower())
            sections.append(SidebarPantrySection(
                pantry_name=pantry.name or "",
                locations=[
                    SidebarLocationLink(
                        location_id=l.location_id,
                        name=l.name or "",
                        slug=slugify(l.name),
                        notes=l.notes,
                    )
                    for l in locations
                ],
            ))
        return sections

    def _catalog_and_categories(self, item_ids: List[str]) -> Tuple[Dict[str, dict], Dict[str, str]]:
        if not item_ids:
            return {}, {}
        try:
            catalog_result = self.supabase.table("item_catalog")\
                .select("*")\
                .in_("item_id", item_ids)\
                .execute()
            catalog = {row["item_id"]: row for row in catalog_result.data or []}
            category_ids = list({row["category_id"] for row in catalog.values() if row.get("category_id")})
            categories = {}
            if category_ids:
                category_result = self.supabase.table("item_categories")\
                    .select("category_id, name")\
                    .in_("category_id", category_ids)\
                    .execute()
                categories = {row["category_id"]: row.get("name") or "" for row in category_result.data or []}
            return catalog, categories
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _display(self, items: List[InventoryItem]) -> List[InventoryDisplayItem]:
        catalog, categories = self._catalog_and_categories(
            list({i.item_id for i in items if i.item_id})
        )
        display = []
        for item in items:
            entry = catalog.get(item.item_id) if item.item_id else None
            name = (item.custom_name or "").strip() or (entry.get("name") if entry else "") or UNNAMED_ITEM
            category = UNCATEGORIZED
            if entry and entry.get("category_id") and categories.get(entry["category_id"]):
                category = categories[entry["category_id"]]
            description_parts = []
            if item.notes and item.notes.strip():
                description_parts.append(item.notes.strip())
            if item.expires_on:
                description_parts.append(f"Expires {item.expires_on.isoformat()}")
            display.append(InventoryDisplayItem(
                id=item.inventory_id,
                name=name,
                amount=format_amount(item.quantity, item.unit),
                category=category,
                description="; ".join(description_parts),
                location_id=item.location_id,
            ))
        display.sort(key=lambda d: d.name.lower())
        return display

    def list_items(self, group_id: str, location_id: Optional[str] = None) -> List[InventoryDisplayItem]:
        """Inventory of the household, optionally narrowed to one location"""
        if location_id:
            self._get_location(group_id, location_id)
        pantries = self.list_pantries(group_id)
        if not pantries:
            return []
        try:
            query = self.supabase.table("inventory_items")\
                .select("*")\
                .in_("pantry_id", [p.pantry_id for p in pantries])
            if location_id:
                query = query.eq("location_id", location_id)
            result = query.execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return self._display([InventoryItem(**row) for row in result.data or []])

    def _get_item(self, group_id: str, inventory_id: str) -> InventoryItem:
        pantry_ids = {p.pantry_id for p in self.list_pantries(group_id)}
        try:
            result = self.supabase.table("inventory_items")\
                .select("*")\
                .eq("inventory_id", inventory_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data or result.data[0]["pantry_id"] not in pantry_ids:
            raise HTTPException(status_code=404, detail="Inventory item not found")
        return InventoryItem(**result.data[0])

    def add_item(self, group: Group, user_id: str, form: InventoryItemCreate) -> InventoryDisplayItem:
        if form.location_id:
            _, pantry = self._get_location(group.group_id, form.location_id)
        else:
            pantry = self.ensure_default_pantry(group)
        now = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table("inventory_items").insert({
                "pantry_id": pantry.pantry_id,
                "location_id": form.location_id,
                "item_id": form.item_id,
                "custom_name": (form.custom_name or "").strip() or None,
                "quantity": form.quantity,
                "unit": form.unit.strip(),
                "expires_on": form.expires_on.isoformat() if form.expires_on else None,
                "notes": (form.notes or "").strip() or None,
                "created_by_user": user_id,
                "created_at": now,
                "updated_at": now
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add inventory item")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return self._display([InventoryItem(**result.data[0])])[0]

    def update_item(self, group_id: str, inventory_id: str, form: InventoryItemUpdate) -> InventoryDisplayItem:
        item = self._get_item(group_id, inventory_id)
        changes = {
            "quantity": form.quantity,
            "unit": form.unit.strip(),
            "expires_on": form.expires_on.isoformat() if form.expires_on else None,
            "notes": (form.notes or "").strip() or None,
            "updated_at": datetime.now(timezone.utc).isoformat()
        }
        if form.location_id and form.location_id != item.location_id:
            _, pantry = self._get_location(group_id, form.location_id)
            changes["location_id"] = form.location_id
            changes["pantry_id"] = pantry.pantry_id
        try:
            result = self.supabase.table("inventory_items")\
                .update(changes)\
                .eq("inventory_id", inventory_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Inventory item not found")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return self._display([InventoryItem(**result.data[0])])[0]

    def delete_item(self, group_id: str, inventory_id: str) -> bool:
        self._get_item(group_id, inventory_id)
        try:
            result = self.supabase.table("inventory_items")\
                .delete()\
                .eq("inventory_id", inventory_id)\
                .execute()
            return len(result.data or []) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

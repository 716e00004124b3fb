from supabase import Client
from fastapi import HTTPException
from typing import List, Optional

from pantry_app.core.events import data_changes, DataScopes
from pantry_app.modules.categories.schemas import ItemCategory


class CategoryService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_categories(self, group_id: str) -> List[ItemCategory]:
        """Categories of the household, by name"""
        try:
            result = self.supabase.table("item_categories")\
                .select("*")\
                .eq("group_id", group_id)\
                .execute()
            categories = [ItemCategory(**row) for row in result.data or []]
            categories.sort(key=lambda c: (c.name or "").lower())
            return categories
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_category(self, group_id: str, category_id: str) -> ItemCategory:
        try:
            result = self.supabase.table("item_categories")\
                .select("*")\
                .eq("category_id", category_id)\
                .eq("group_id", group_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Category not found")
        return ItemCategory(**result.data[0])

    def _ensure_unique(self, group_id: str, name: str, exclude_id: Optional[str] = None) -> None:
        for category in self.list_categories(group_id):
            if category.category_id != exclude_id and (category.name or "").lower() == name.lower():
                raise HTTPException(status_code=400, detail="Category already exists")

    def create_category(self, group_id: str, user_id: str, name: str) -> ItemCategory:
        name = name.strip()
        self._ensure_unique(group_id, name)
        try:
            result = self.supabase.table("item_categories").insert({
                "group_id": group_id,
                "name": name,
                "created_by_user": user_id
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create category")
            data_changes.notify_changed(DataScopes.CATEGORIES)
            return ItemCategory(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def rename_category(self, group_id: str, category_id: str, name: str) -> ItemCategory:
        name = name.strip()
        self.get_category(group_id, category_id)
        self._ensure_unique(group_id, name, exclude_id=category_id)
        try:
            result = self.supabase.table("item_categories")\
                .update({"name": name})\
                .eq("category_id", category_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Category not found")
            data_changes.notify_changed(DataScopes.CATEGORIES)
            return ItemCategory(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_category(self, group_id: str, category_id: str) -> bool:
        self.get_category(group_id, category_id)
        try:
            result = self.supabase.table("item_categories")\
                .delete()\
                .eq("category_id", category_id)\
                .execute()
            data_changes.notify_changed(DataScopes.CATEGORIES)
            return len(result.data or []) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

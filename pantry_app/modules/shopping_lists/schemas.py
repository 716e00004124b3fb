from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime


class ListRow(BaseModel):
    list_id: str
    group_id: str
    name: Optional[str] = "Shopping List"
    list_type: Optional[str] = "shopping"
    created_by_user: Optional[str] = None
    created_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ListItemRow(BaseModel):
    list_item_id: str
    list_id: str
    item_id: Optional[str] = None
    custom_name: Optional[str] = None
    quantity: float = 1
    unit: Optional[str] = None
    is_checked: bool = False
    added_by_user: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ItemCatalogRow(BaseModel):
    item_id: str
    name: str = ""
    brand: Optional[str] = None
    description: Optional[str] = None
    default_unit: Optional[str] = None
    barcode: Optional[str] = None
    category_id: Optional[str] = None

    class Config:
        from_attributes = True


class ShoppingItemCreate(BaseModel):
    """Either a free-text item (custom_name) or a catalog item (item_id)."""
    custom_name: Optional[str] = Field(default=None, max_length=200)
    item_id: Optional[str] = None
    quantity: float = 1
    unit: Optional[str] = Field(default=None, max_length=50)

    @model_validator(mode="after")
    def one_source(self):
        has_name = bool(self.custom_name and self.custom_name.strip())
        if has_name == bool(self.item_id):
            raise ValueError("Provide either custom_name or item_id.")
        return self


class ShoppingItemUpdate(BaseModel):
    quantity: float = 1
    unit: Optional[str] = Field(default=None, max_length=50)


class ShoppingListItemView(ListItemRow):
    display_name: str = ""
    brand: Optional[str] = None


class ShoppingListResponse(BaseModel):
    shopping_list: ListRow
    items: List[ShoppingListItemView]

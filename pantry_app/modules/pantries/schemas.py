from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import date, datetime


class Pantry(BaseModel):
    pantry_id: str
    group_id: str
    name: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PantryLocation(BaseModel):
    location_id: str
    pantry_id: str
    name: Optional[str] = None
    notes: Optional[str] = None
    created_by_user: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InventoryItem(BaseModel):
    inventory_id: str
    pantry_id: str
    location_id: Optional[str] = None
    item_id: Optional[str] = None
    custom_name: Optional[str] = None
    quantity: float = 0
    unit: str = ""
    expires_on: Optional[date] = None
    notes: Optional[str] = None
    created_by_user: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LocationForm(BaseModel):
    sub_location: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)

    @field_validator("sub_location")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Location name is required.")
        return value


class InventoryEditLocationRow(BaseModel):
    location_id: str
    pantry_id: str
    pantry_name: str
    location_name: str
    notes: Optional[str] = None


class SidebarLocationLink(BaseModel):
    location_id: str
    name: str
    slug: str
    notes: Optional[str] = None


class SidebarPantrySection(BaseModel):
    pantry_name: str
    locations: List[SidebarLocationLink]


class InventoryDisplayItem(BaseModel):
    id: str
    name: str
    amount: str
    category: str
    description: str
    location_id: Optional[str] = None


def _required_unit(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Unit is required.")
    return value


class InventoryItemCreate(BaseModel):
    location_id: Optional[str] = None
    item_id: Optional[str] = None
    custom_name: Optional[str] = Field(default=None, max_length=200)
    quantity: float = Field(ge=0)
    unit: str = Field(min_length=1, max_length=50)
    expires_on: Optional[date] = None
    notes: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def one_source(self):
        has_name = bool(self.custom_name and self.custom_name.strip())
        if has_name == bool(self.item_id):
            raise ValueError("Provide either custom_name or item_id.")
        return self

    @field_validator("unit")
    @classmethod
    def strip_unit(cls, value: str) -> str:
        return _required_unit(value)


class InventoryItemUpdate(BaseModel):
    location_id: Optional[str] = None
    quantity: float = Field(ge=0)
    unit: str = Field(min_length=1, max_length=50)
    expires_on: Optional[date] = None
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("unit")
    @classmethod
    def strip_unit(cls, value: str) -> str:
        return _required_unit(value)

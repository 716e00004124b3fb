from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime


class ItemCategory(BaseModel):
    category_id: str
    group_id: str
    name: Optional[str] = None
    created_by_user: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CategoryForm(BaseModel):
    name: str = Field(min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Category name is required.")
        return value

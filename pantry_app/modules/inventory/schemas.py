import uuid
from pydantic import BaseModel, Field
from typing import Optional


class InventoryLocationDto(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    # main category that this location belongs to
    main_location: str = Field(min_length=1, max_length=100)
    sub_location: Optional[str] = Field(default=None, max_length=100)
    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)

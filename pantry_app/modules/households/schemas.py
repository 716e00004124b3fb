from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

from pantry_app.modules.users.schemas import AppUser


class Group(BaseModel):
    group_id: str
    name: Optional[str] = None
    created_by_user: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GroupMember(BaseModel):
    group_id: str
    user_id: str
    role: Optional[str] = "member"
    joined_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class HouseholdUpdate(BaseModel):
    household_name: str = Field(min_length=1, max_length=150)

    @field_validator("household_name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Household name is required.")
        return value


class HouseholdJoin(BaseModel):
    household_id: str


class HouseholdMemberResponse(BaseModel):
    user_id: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    joined_at: Optional[datetime] = None


class HouseholdResponse(BaseModel):
    group_id: str
    name: Optional[str] = None
    created_by_user: str
    created_at: Optional[datetime] = None
    role: Optional[str] = None
    members: Optional[List[HouseholdMemberResponse]] = None


class HouseholdContext(BaseModel):
    """Resolved identity for a request: the profile row and its household."""
    user: AppUser
    group: Group
    role: Optional[str] = None

    @property
    def user_id(self) -> str:
        return self.user.user_id

    @property
    def group_id(self) -> str:
        return self.group.group_id

from fastapi import APIRouter, Depends
from supabase import Client

from pantry_app.core.dependencies import (
    check_household_owner, get_household_context, get_session_client, verify_csrf
)
from pantry_app.database.supabase_client import get_service_supabase
from pantry_app.modules.households.schemas import (
    HouseholdContext, HouseholdJoin, HouseholdMemberResponse, HouseholdResponse, HouseholdUpdate
)
from pantry_app.modules.households.service import HouseholdService
from typing import List, Optional

router = APIRouter(prefix="/households", tags=["households"])


def get_household_service(supabase: Client = Depends(get_session_client)) -> HouseholdService:
    return HouseholdService(supabase)


def get_joining_household_service(
    supabase: Client = Depends(get_session_client),
    admin: Optional[Client] = Depends(get_service_supabase)
) -> HouseholdService:
    return HouseholdService(supabase, admin=admin)


@router.get("/current", response_model=HouseholdResponse)
async def get_current_household(
    context: HouseholdContext = Depends(get_household_context),
    service: HouseholdService = Depends(get_household_service)
):
    """Household of the signed-in user (provisioned on first use)"""
    return service.get_household(context, include_members=True)


@router.put("/current", response_model=HouseholdResponse, dependencies=[Depends(verify_csrf)])
async def rename_household(
    household: HouseholdUpdate,
    context: HouseholdContext = Depends(get_household_context),
    service: HouseholdService = Depends(get_household_service)
):
    """Rename the household"""
    group = service.rename(context.group_id, household.household_name)
    return service.get_household(context.model_copy(update={"group": group}))


@router.get("/current/members", response_model=List[HouseholdMemberResponse])
async def list_members(
    context: HouseholdContext = Depends(get_household_context),
    service: HouseholdService = Depends(get_household_service)
):
    """List members of the household"""
    return service.list_members(context.group_id)


@router.delete("/current/members/{user_id}", status_code=204, dependencies=[Depends(verify_csrf)])
async def remove_member(
    user_id: str,
    context: HouseholdContext = Depends(check_household_owner),
    service: HouseholdService = Depends(get_household_service)
):
    """Remove a member (household owner only)"""
    service.remove_member(context, user_id)
    return None


@router.post("/current/leave", status_code=200, dependencies=[Depends(verify_csrf)])
async def leave_household(
    context: HouseholdContext = Depends(get_household_context),
    service: HouseholdService = Depends(get_household_service)
):
    """Leave the household; a new one is created on the next request"""
    service.leave(context)
    return {"message": "Left household", "group_id": context.group_id}


@router.post("/join", response_model=HouseholdResponse, dependencies=[Depends(verify_csrf)])
async def join_household(
    join: HouseholdJoin,
    context: HouseholdContext = Depends(get_household_context),
    service: HouseholdService = Depends(get_joining_household_service)
):
    """Join another household by its id"""
    group = service.join(context.user_id, join.household_id)
    return service.get_household(context.model_copy(update={"group": group, "role": "member"}))

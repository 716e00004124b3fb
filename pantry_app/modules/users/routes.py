from dataclasses import replace
from fastapi import APIRouter, Depends, Request
from supabase import Client

from pantry_app.core.dependencies import get_household_context, get_session_client, verify_csrf
from pantry_app.modules.auth.session import read_principal, write_principal
from pantry_app.modules.households.schemas import HouseholdContext
from pantry_app.modules.users.schemas import AppUser, PasswordUpdate, ProfileUpdate
from pantry_app.modules.users.service import UserService

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(supabase: Client = Depends(get_session_client)) -> UserService:
    return UserService(supabase)


@router.get("/me", response_model=AppUser)
async def get_profile(context: HouseholdContext = Depends(get_household_context)):
    """Profile of the signed-in user"""
    return context.user


@router.put("/me", response_model=AppUser, dependencies=[Depends(verify_csrf)])
async def update_profile(
    request: Request,
    profile: ProfileUpdate,
    context: HouseholdContext = Depends(get_household_context),
    service: UserService = Depends(get_user_service)
):
    """Update display name and email"""
    updated = service.update_profile(context.user, profile)
    principal = read_principal(request)
    if updated.email and updated.email != principal.email:
        # later requests provision from the cookie email claim
        write_principal(request, replace(principal, email=updated.email))
    return updated


@router.put("/me/password", status_code=200, dependencies=[Depends(verify_csrf)])
async def update_password(
    password: PasswordUpdate,
    context: HouseholdContext = Depends(get_household_context),
    service: UserService = Depends(get_user_service)
):
    """Change the password of the signed-in user"""
    service.update_password(password)
    return {"message": "Password updated"}

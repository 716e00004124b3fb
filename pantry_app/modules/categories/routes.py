from fastapi import APIRouter, Depends
from supabase import Client
from typing import List

from pantry_app.core.dependencies import get_household_context, get_session_client, verify_csrf
from pantry_app.modules.categories.schemas import CategoryForm, ItemCategory
from pantry_app.modules.categories.service import CategoryService
from pantry_app.modules.households.schemas import HouseholdContext

router = APIRouter(prefix="/categories", tags=["categories"])


def get_category_service(supabase: Client = Depends(get_session_client)) -> CategoryService:
    return CategoryService(supabase)


@router.get("", response_model=List[ItemCategory])
async def list_categories(
    context: HouseholdContext = Depends(get_household_context),
    service: CategoryService = Depends(get_category_service)
):
    return service.list_categories(context.group_id)


@router.post("", response_model=ItemCategory, status_code=201, dependencies=[Depends(verify_csrf)])
async def create_category(
    form: CategoryForm,
    context: HouseholdContext = Depends(get_household_context),
    service: CategoryService = Depends(get_category_service)
):
    return service.create_category(context.group_id, context.user_id, form.name)


@router.put("/{category_id}", response_model=ItemCategory, dependencies=[Depends(verify_csrf)])
async def rename_category(
    category_id: str,
    form: CategoryForm,
    context: HouseholdContext = Depends(get_household_context),
    service: CategoryService = Depends(get_category_service)
):
    return service.rename_category(context.group_id, category_id, form.name)


@router.delete("/{category_id}", status_code=204, dependencies=[Depends(verify_csrf)])
async def delete_category(
    category_id: str,
    context: HouseholdContext = Depends(get_household_context),
    service: CategoryService = Depends(get_category_service)
):
    service.delete_category(context.group_id, category_id)
    return None

import logging
from datetime import datetime, timezone
from supabase import Client
from fastapi import HTTPException
from typing import List, Optional, Tuple

from pantry_app.core.events import data_changes, DataScopes
from pantry_app.core.text import mask_email, resolve_display_name
from pantry_app.modules.auth.schemas import AuthPrincipal
from pantry_app.modules.households.schemas import (
    Group, GroupMember, HouseholdContext, HouseholdMemberResponse, HouseholdResponse
)
from pantry_app.modules.users.schemas import AppUser
from pantry_app.modules.users.service import ProvisioningError, UserContextService, parse_user_id

logger = logging.getLogger(__name__)

OWNER_ROLE = "owner"
MEMBER_ROLE = "member"


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class HouseholdContextService(UserContextService):
    """Makes sure the signed-in user has a profile row and belongs to a household."""

    def _insert_user(self, user_id: str, email: str, display_name: str) -> AppUser:
        row = {
            "user_id": user_id,
            "email": email,
            "display_name": display_name,
            "created_at": _utcnow(),
        }
        try:
            result = self.supabase.table("users").insert(row).execute()
            if result.data:
                return AppUser(**result.data[0])
            return AppUser(**row)
        except Exception as e:
            # Auth trigger may have inserted the profile concurrently; reload once before failing.
            logger.warning(f"Profile insert failed for {user_id}, re-reading once: {e}")
            user = self._get_user(user_id)
            if user is None:
                raise
            return user

    def _create_household(self, user_id: str, display_name: str) -> Group:
        result = self.supabase.table("groups").insert({
            "name": f"{display_name}'s Household",
            "created_by_user": user_id,
            "created_at": _utcnow(),
        }).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to create household")
        group = Group(**result.data[0])

        self.supabase.table("group_members").insert({
            "group_id": group.group_id,
            "user_id": user_id,
            "role": OWNER_ROLE,
            "joined_at": _utcnow(),
        }).execute()
        logger.info(f"Created household {group.group_id} for user {user_id}")
        data_changes.notify_changed(DataScopes.HOUSEHOLD)
        return group

    def ensure_for_claims(
        self,
        user_id_claim: Optional[str],
        email_claim: Optional[str],
        preferred_display_name: Optional[str] = None
    ) -> Tuple[AppUser, Group]:
        """
        Idempotently provision the profile row and a household for the claims.

        Safe to call on every request: an existing profile is only written when
        its email or display name drifted, and an existing membership is reused.
        """
        user_id = self._resolve_user_id(user_id_claim)
        user = self._get_user(user_id)
        resolved_email = self._resolve_email(email_claim, user)
        resolved_display_name = resolve_display_name(
            preferred_display_name, user.display_name if user else None, resolved_email
        )

        if user is None:
            logger.info(f"Provisioning profile for {mask_email(resolved_email)}")
            user = self._insert_user(user_id, resolved_email, resolved_display_name)
        elif (user.email or "").lower() != resolved_email.lower() or user.display_name != resolved_display_name:
            self.supabase.table("users")\
                .update({"email": resolved_email, "display_name": resolved_display_name})\
                .eq("user_id", user.user_id)\
                .execute()
            user.email = resolved_email
            user.display_name = resolved_display_name
            data_changes.notify_changed(DataScopes.PROFILE)

        group = None
        membership = self._get_membership(user_id)
        if membership is not None:
            group = self._get_group(membership.group_id)

        if group is None:
            group = self._create_household(user_id, resolved_display_name)

        return user, group

    def ensure_for_principal(
        self,
        principal: AuthPrincipal,
        preferred_display_name: Optional[str] = None
    ) -> Tuple[AppUser, Group]:
        return self.ensure_for_claims(principal.user_id, principal.email, preferred_display_name)

    def ensure_context(self, principal: AuthPrincipal) -> HouseholdContext:
        user, group = self.ensure_for_principal(principal)
        membership = self.supabase.table("group_members")\
            .select("role")\
            .eq("group_id", group.group_id)\
            .eq("user_id", user.user_id)\
            .limit(1)\
            .execute()
        role = membership.data[0].get("role") if membership.data else None
        return HouseholdContext(user=user, group=group, role=role)


class HouseholdService:
    def __init__(self, supabase: Client, admin: Optional[Client] = None):
        self.supabase = supabase
        # Lookups of households the user is not yet a member of are hidden by RLS
        self.admin = admin or supabase

    def get_household(self, context: HouseholdContext, include_members: bool = False) -> HouseholdResponse:
        members = self.list_members(context.group_id) if include_members else None
        return HouseholdResponse(
            group_id=context.group.group_id,
            name=context.group.name,
            created_by_user=context.group.created_by_user,
            created_at=context.group.created_at,
            role=context.role,
            members=members,
        )

    def rename(self, group_id: str, name: str) -> Group:
        """Rename the household"""
        try:
            result = self.supabase.table("groups")\
                .update({"name": name.strip()})\
                .eq("group_id", group_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Household not found")

            data_changes.notify_changed(DataScopes.HOUSEHOLD)
            return Group(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_members(self, group_id: str) -> List[HouseholdMemberResponse]:
        """List members of the household with their profile names"""
        try:
            members_result = self.supabase.table("group_members")\
                .select("*")\
                .eq("group_id", group_id)\
                .execute()
            memberships = [GroupMember(**m) for m in (members_result.data or [])]
            if not memberships:
                return []

            users_result = self.supabase.table("users")\
                .select("*")\
                .in_("user_id", [m.user_id for m in memberships])\
                .execute()
            users = {u["user_id"]: AppUser(**u) for u in (users_result.data or [])}

            members = []
            for membership in memberships:
                user = users.get(membership.user_id)
                members.append(HouseholdMemberResponse(
                    user_id=membership.user_id,
                    display_name=user.display_name if user else None,
                    email=user.email if user else None,
                    role=membership.role,
                    joined_at=membership.joined_at,
                ))
            members.sort(key=lambda m: (m.role != OWNER_ROLE, (m.display_name or "").lower()))
            return members
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def join(self, user_id: str, household_id: str) -> Group:
        """Move the user into another household. A user belongs to one household at a time."""
        try:
            group_result = self.admin.table("groups")\
                .select("*")\
                .eq("group_id", household_id)\
                .limit(1)\
                .execute()
            if not group_result.data:
                raise HTTPException(status_code=404, detail="Household not found")
            group = Group(**group_result.data[0])

            existing = self.supabase.table("group_members")\
                .select("group_id")\
                .eq("user_id", user_id)\
                .execute()
            if any(m["group_id"] == group.group_id for m in (existing.data or [])):
                raise HTTPException(status_code=400, detail="Already a member of this household")

            self.supabase.table("group_members")\
                .delete()\
                .eq("user_id", user_id)\
                .execute()

            self.admin.table("group_members").insert({
                "group_id": group.group_id,
                "user_id": user_id,
                "role": MEMBER_ROLE,
                "joined_at": _utcnow(),
            }).execute()

            logger.info(f"User {user_id} joined household {group.group_id}")
            data_changes.notify_changed(DataScopes.HOUSEHOLD)
            return group
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def remove_member(self, context: HouseholdContext, user_id: str) -> bool:
        """Remove another member; only the household owner may do this"""
        if context.role != OWNER_ROLE:
            raise HTTPException(status_code=403, detail="Only the household owner can remove members")
        try:
            user_id = parse_user_id(user_id)
        except ProvisioningError:
            raise HTTPException(status_code=404, detail="Member not found")
        if user_id == parse_user_id(context.user_id):
            raise HTTPException(status_code=400, detail="Use leave to remove yourself from the household")
        try:
            result = self.supabase.table("group_members")\
                .delete()\
                .eq("group_id", context.group_id)\
                .eq("user_id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Member not found")

            data_changes.notify_changed(DataScopes.HOUSEHOLD)
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def leave(self, context: HouseholdContext) -> bool:
        """Drop the membership. A new household is provisioned on the next request."""
        try:
            result = self.supabase.table("group_members")\
                .delete()\
                .eq("group_id", context.group_id)\
                .eq("user_id", context.user_id)\
                .execute()
            data_changes.notify_changed(DataScopes.HOUSEHOLD)
            return len(result.data or []) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

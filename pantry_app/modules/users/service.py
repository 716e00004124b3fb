import logging
import uuid
from supabase import Client
from fastapi import HTTPException
from typing import Optional, Tuple

from pantry_app.core.events import data_changes, DataScopes
from pantry_app.core.text import first_non_empty, normalize_display_name, resolve_display_name
from pantry_app.modules.auth.schemas import AuthPrincipal
from pantry_app.modules.auth.service import AuthService
from pantry_app.modules.auth.session import SupabaseAuthState
from pantry_app.modules.households.schemas import Group, GroupMember
from pantry_app.modules.users.schemas import AppUser, ProfileUpdate, PasswordUpdate

logger = logging.getLogger(__name__)


class ProvisioningError(RuntimeError):
    """The request's identity is not usable for loading or provisioning a profile."""


def parse_user_id(value: Optional[str]) -> str:
    try:
        return str(uuid.UUID(str(value).strip()))
    except (ValueError, AttributeError, TypeError):
        raise ProvisioningError("Authenticated user id claim is missing or invalid.")


class UserContextService:
    """
    Read-only view of the signed-in user: profile row plus household, if any.

    `principal` is the cookie principal of the current request. Its tokens are
    used to hydrate the SDK session before any row is read, so row-level
    security sees the right user.
    """

    def __init__(self, supabase: Client, principal: Optional[AuthPrincipal] = None):
        self.supabase = supabase
        self.principal = principal or AuthPrincipal.anonymous()
        self.auth_state = SupabaseAuthState(supabase)

    def _resolve_user_id(self, user_id_claim: Optional[str]) -> str:
        hydrate_as = AuthPrincipal(
            user_id=user_id_claim,
            email=self.principal.email,
            access_token=self.principal.access_token,
            refresh_token=self.principal.refresh_token,
        )
        self.auth_state.ensure_session(hydrate_as)
        return parse_user_id(self.auth_state.effective_user_id(hydrate_as))

    def _resolve_email(self, email_claim: Optional[str], user: Optional[AppUser]) -> str:
        resolved = first_non_empty(
            email_claim,
            self.auth_state.current_email(),
            user.email if user else None,
        )
        if not resolved:
            raise ProvisioningError("Authenticated email claim is missing.")
        return resolved

    def _get_user(self, user_id: str) -> Optional[AppUser]:
        result = self.supabase.table("users")\
            .select("*")\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            return None
        return AppUser(**result.data[0])

    def _get_membership(self, user_id: str) -> Optional[GroupMember]:
        result = self.supabase.table("group_members")\
            .select("*")\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            return None
        return GroupMember(**result.data[0])

    def _get_group(self, group_id: str) -> Optional[Group]:
        result = self.supabase.table("groups")\
            .select("*")\
            .eq("group_id", group_id)\
            .limit(1)\
            .execute()
        if not result.data:
            return None
        return Group(**result.data[0])

    def get_for_claims(
        self,
        user_id_claim: Optional[str],
        email_claim: Optional[str],
        preferred_display_name: Optional[str] = None
    ) -> Tuple[AppUser, Optional[Group]]:
        """Profile and household for the claims. Never writes; a missing profile comes back unsaved."""
        user_id = self._resolve_user_id(user_id_claim)
        user = self._get_user(user_id)
        resolved_email = self._resolve_email(email_claim, user)
        resolved_display_name = resolve_display_name(
            preferred_display_name, user.display_name if user else None, resolved_email
        )

        if user is None:
            user = AppUser(user_id=user_id, email=resolved_email, display_name=resolved_display_name)
        else:
            if not (user.email or "").strip():
                user.email = resolved_email
            if not (user.display_name or "").strip():
                user.display_name = resolved_display_name

        group = None
        membership = self._get_membership(user_id)
        if membership is not None:
            group = self._get_group(membership.group_id)

        return user, group

    def get_for_principal(self, principal: AuthPrincipal, preferred_display_name: Optional[str] = None):
        return self.get_for_claims(principal.user_id, principal.email, preferred_display_name)


class UserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def update_profile(self, user: AppUser, profile: ProfileUpdate) -> AppUser:
        """Update display name and email; an email change is also sent to Supabase Auth."""
        display_name = normalize_display_name(profile.display_name)
        if not display_name:
            raise HTTPException(status_code=422, detail="Display name is required.")
        email = str(profile.email).strip()

        try:
            if (user.email or "").lower() != email.lower():
                AuthService(self.supabase).update_email(email)

            result = self.supabase.table("users")\
                .update({"email": email, "display_name": display_name})\
                .eq("user_id", user.user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")

            data_changes.notify_changed(DataScopes.PROFILE)
            return AppUser(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_password(self, password: PasswordUpdate) -> None:
        AuthService(self.supabase).update_password(password.new_password)

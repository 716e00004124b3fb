"""
Core dependencies for route protection and household resolution
"""

import logging
import secrets
from fastapi import Depends, HTTPException, Request, status
from supabase import Client

from pantry_app.database.supabase_client import get_supabase
from pantry_app.modules.auth.schemas import AuthPrincipal
from pantry_app.modules.auth.session import SupabaseAuthState, read_principal, write_principal
from pantry_app.modules.households.schemas import HouseholdContext
from pantry_app.modules.households.service import HouseholdContextService, OWNER_ROLE
from pantry_app.modules.users.service import ProvisioningError

logger = logging.getLogger(__name__)

CSRF_SESSION_KEY = "csrf_token"
CSRF_HEADER = "X-CSRF-Token"
CSRF_FORM_FIELD = "csrf_token"


def get_principal(request: Request) -> AuthPrincipal:
    """Cookie principal of the request; anonymous when not signed in."""
    return read_principal(request)


def require_principal(principal: AuthPrincipal = Depends(get_principal)) -> AuthPrincipal:
    if not principal.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )
    return principal


def get_session_client(
    request: Request,
    principal: AuthPrincipal = Depends(require_principal),
    supabase: Client = Depends(get_supabase)
) -> Client:
    """Per-request SDK client signed in as the cookie principal."""
    refreshed = SupabaseAuthState(supabase).ensure_session(principal)
    if refreshed is not None and refreshed.is_complete:
        write_principal(request, AuthPrincipal(
            user_id=principal.user_id,
            email=principal.email or refreshed.email,
            access_token=refreshed.access_token,
            refresh_token=refreshed.refresh_token,
        ))
    return supabase


def get_household_context(
    principal: AuthPrincipal = Depends(require_principal),
    supabase: Client = Depends(get_session_client)
) -> HouseholdContext:
    """Profile + household of the signed-in user, provisioning both on first use."""
    try:
        return HouseholdContextService(supabase, principal).ensure_context(principal)
    except ProvisioningError as e:
        logger.warning(f"Household provisioning rejected the principal: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))


def check_household_owner(context: HouseholdContext = Depends(get_household_context)) -> HouseholdContext:
    if context.role != OWNER_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You must be the household owner to perform this action"
        )
    return context


def issue_csrf_token(request: Request) -> str:
    token = request.session.get(CSRF_SESSION_KEY)
    if not token:
        token = secrets.token_urlsafe(32)
        request.session[CSRF_SESSION_KEY] = token
    return token


async def verify_csrf(request: Request) -> None:
    """Accept the token from the X-CSRF-Token header or a csrf_token form field."""
    expected = request.session.get(CSRF_SESSION_KEY)
    supplied = request.headers.get(CSRF_HEADER)
    if not supplied:
        content_type = request.headers.get("content-type", "")
        if content_type.startswith("application/x-www-form-urlencoded") or content_type.startswith("multipart/form-data"):
            form = await request.form()
            supplied = form.get(CSRF_FORM_FIELD)
    if not expected or not supplied or not secrets.compare_digest(str(expected), str(supplied)):
        logger.warning(f"{request.method} {request.url.path} failed CSRF validation")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid request.")

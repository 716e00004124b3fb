import logging
from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import RedirectResponse
from supabase import Client

from pantry_app.config import settings
from pantry_app.core.dependencies import (
    get_household_context, get_principal, get_session_client, issue_csrf_token,
    require_principal, verify_csrf, CSRF_SESSION_KEY
)
from pantry_app.core.rate_limit import limiter
from pantry_app.core.text import mask_email, normalize_display_name, sanitize_return_url
from pantry_app.database.supabase_client import get_supabase
from pantry_app.modules.auth.schemas import (
    AuthPrincipal, AuthStateResponse, CsrfTokenResponse, MeResponse, SessionTokens
)
from pantry_app.modules.auth.service import AuthService, login_error_code
from pantry_app.modules.auth.session import (
    SupabaseAuthState, claims_from_access_token, clear_principal, write_principal
)
from pantry_app.modules.households.schemas import HouseholdContext
from pantry_app.modules.households.service import HouseholdContextService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 6


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


def _sign_in_cookie(request: Request, tokens: SessionTokens, fallback_email: str) -> AuthPrincipal:
    user_id = tokens.user_id or claims_from_access_token(tokens.access_token).get("sub")
    principal = AuthPrincipal(
        user_id=user_id,
        email=tokens.email or fallback_email,
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
    )
    write_principal(request, principal)
    # New identity, new CSRF token
    request.session.pop(CSRF_SESSION_KEY, None)
    return principal


def _provision(supabase: Client, principal: AuthPrincipal, preferred_display_name: str = None) -> None:
    try:
        HouseholdContextService(supabase, principal).ensure_for_principal(principal, preferred_display_name)
    except Exception as e:
        logger.warning(f"Provisioning after sign-in failed for {mask_email(principal.email)}: {e}")


@router.get("/csrf", response_model=CsrfTokenResponse)
async def csrf_token(request: Request):
    """Token to echo back in the csrf_token form field or X-CSRF-Token header"""
    return CsrfTokenResponse(csrf_token=issue_csrf_token(request))


@router.post("/login")
@limiter.limit(settings.login_rate_limit)
async def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    return_url: str = Form(""),
    _csrf: None = Depends(verify_csrf),
    supabase: Client = Depends(get_supabase),
    service: AuthService = Depends(get_auth_service)
):
    """Sign in with email/password and store the Supabase tokens in the session cookie"""
    target = sanitize_return_url(return_url)
    logger.info(f"Login POST received for {mask_email(email)}. ReturnUrl={target}")

    if not email.strip() or not password.strip():
        return _redirect(f"{settings.login_path}?error=missing")

    try:
        tokens = service.sign_in(email, password)
    except Exception as e:
        logger.warning(f"Supabase sign-in failed: {e}")
        return _redirect(f"{settings.login_path}?error={login_error_code(e)}")

    if not tokens.is_complete:
        return _redirect(f"{settings.login_path}?error=confirm")

    principal = _sign_in_cookie(request, tokens, email)
    if not principal.is_authenticated:
        logger.warning("Sign-in returned tokens without a user id")
        clear_principal(request)
        return _redirect(f"{settings.login_path}?error=unknown")

    _provision(supabase, principal)
    logger.info("Cookie sign-in completed")
    return _redirect(target)


@router.post("/signup")
@limiter.limit(settings.login_rate_limit)
async def signup(
    request: Request,
    first_name: str = Form(""),
    last_name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
    _csrf: None = Depends(verify_csrf),
    supabase: Client = Depends(get_supabase),
    service: AuthService = Depends(get_auth_service)
):
    """Register a new account; signs straight in when Supabase does not require email confirmation"""
    if not email.strip() or not password:
        return _redirect(f"{settings.signup_path}?error=missing")
    if len(password) < MIN_PASSWORD_LENGTH:
        return _redirect(f"{settings.signup_path}?error=weak")
    if password != confirm_password:
        return _redirect(f"{settings.signup_path}?error=mismatch")

    display_name = normalize_display_name(f"{first_name} {last_name}")
    try:
        tokens = service.sign_up(email.strip(), password, display_name or None)
    except HTTPException as e:
        logger.warning(f"Supabase sign-up failed: {e.detail}")
        return _redirect(f"{settings.signup_path}?error=unknown")
    except Exception as e:
        logger.warning(f"Supabase sign-up failed: {e}")
        message = str(e).lower()
        error = "exists" if "already registered" in message or "already exists" in message else "unknown"
        return _redirect(f"{settings.signup_path}?error={error}")

    if not tokens.is_complete:
        return _redirect(f"{settings.login_path}?registered=confirm")

    principal = _sign_in_cookie(request, tokens, email.strip())
    _provision(supabase, principal, display_name or None)
    return _redirect("/")


@router.post("/logout")
async def logout(
    request: Request,
    _csrf: None = Depends(verify_csrf),
    principal: AuthPrincipal = Depends(get_principal),
    supabase: Client = Depends(get_supabase),
    service: AuthService = Depends(get_auth_service)
):
    """Revoke the Supabase session (best effort) and drop the cookie principal"""
    logger.info("Logout POST received")
    if principal.is_authenticated:
        SupabaseAuthState(supabase).ensure_session(principal)
        service.sign_out()
    clear_principal(request)
    request.session.pop(CSRF_SESSION_KEY, None)
    return _redirect(settings.login_path)


@router.get("/me", response_model=MeResponse)
async def me(
    principal: AuthPrincipal = Depends(require_principal),
    supabase: Client = Depends(get_session_client),
    context: HouseholdContext = Depends(get_household_context)
):
    """Current authentication state with the provisioned profile and household"""
    state = SupabaseAuthState(supabase).get_authentication_state()
    if not state.is_authenticated:
        state = principal
    return MeResponse(
        auth=AuthStateResponse(
            is_authenticated=state.is_authenticated,
            user_id=state.user_id,
            email=state.email,
            authentication_type=state.authentication_type,
        ),
        profile=context.user.model_dump(mode="json"),
        household={**context.group.model_dump(mode="json"), "role": context.role},
    )

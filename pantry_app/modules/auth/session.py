"""
Reconciliation between the cookie principal and the Supabase SDK session.

The browser only holds a signed session cookie with the user's claims and the
Supabase access/refresh tokens. Every request builds a fresh SDK client, so the
SDK starts without a session; it is hydrated lazily from the cookie tokens the
first time a dependency needs to talk to the database as the user.
"""

import logging
from typing import Optional, Dict, Any

import jwt
from fastapi import Request
from supabase import Client

from pantry_app.modules.auth.schemas import AuthPrincipal, SessionTokens

logger = logging.getLogger(__name__)

PRINCIPAL_SESSION_KEY = "principal"


def claims_from_access_token(access_token: Optional[str]) -> Dict[str, Any]:
    """Read sub/email from a Supabase access token without verifying it."""
    if not access_token or not access_token.strip():
        return {}
    try:
        payload = jwt.decode(access_token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        logger.warning(f"Could not decode access token claims: {e}")
        return {}
    claims = {}
    if payload.get("sub"):
        claims["sub"] = str(payload["sub"])
    if payload.get("email"):
        claims["email"] = str(payload["email"])
    return claims


def read_principal(request: Request) -> AuthPrincipal:
    claims = request.session.get(PRINCIPAL_SESSION_KEY)
    if not isinstance(claims, dict):
        return AuthPrincipal.anonymous()
    principal = AuthPrincipal.from_claims(claims)
    if not principal.user_id and principal.access_token:
        # Older cookies may lack the id claim; the token itself still carries it
        token_claims = claims_from_access_token(principal.access_token)
        if token_claims.get("sub"):
            principal = AuthPrincipal(
                user_id=token_claims["sub"],
                email=principal.email or token_claims.get("email"),
                access_token=principal.access_token,
                refresh_token=principal.refresh_token,
                authentication_type=principal.authentication_type,
            )
    if not principal.is_authenticated:
        return AuthPrincipal.anonymous()
    return principal


def write_principal(request: Request, principal: AuthPrincipal) -> None:
    request.session[PRINCIPAL_SESSION_KEY] = principal.to_claims()


def clear_principal(request: Request) -> None:
    request.session.pop(PRINCIPAL_SESSION_KEY, None)


class SupabaseAuthState:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _current_session(self):
        try:
            return self.supabase.auth.get_session()
        except Exception as e:
            logger.warning(f"Reading SDK session failed: {e}")
            return None

    def current_user_id(self) -> Optional[str]:
        session = self._current_session()
        if session is not None and session.user is not None:
            return session.user.id
        return None

    def current_email(self) -> Optional[str]:
        session = self._current_session()
        if session is not None and session.user is not None:
            return session.user.email
        return None

    def ensure_session(self, principal: AuthPrincipal) -> Optional[SessionTokens]:
        """
        Hydrate the SDK session from the principal's tokens unless it already holds
        a session for the same user.

        Returns the SDK's tokens when they differ from the principal's (the SDK
        refreshed an expired access token), otherwise None. Failures are logged
        and swallowed: callers fall back to the claims they already have.
        """
        session_user_id = self.current_user_id()
        if session_user_id and (
            not principal.user_id or session_user_id.lower() == principal.user_id.lower()
        ):
            return None

        if not principal.access_token or not principal.refresh_token:
            return None

        try:
            self.supabase.auth.set_session(principal.access_token, principal.refresh_token)
        except Exception as e:
            logger.warning(f"Hydrating SDK session from cookie failed: {e}")
            return None

        session = self._current_session()
        if session is None:
            return None
        if session.access_token == principal.access_token and session.refresh_token == principal.refresh_token:
            return None
        logger.info("SDK issued refreshed tokens while hydrating the session")
        return SessionTokens(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            user_id=session.user.id if session.user else principal.user_id,
            email=session.user.email if session.user else principal.email,
        )

    def get_authentication_state(self) -> AuthPrincipal:
        session = self._current_session()
        if session is None or session.user is None:
            return AuthPrincipal.anonymous()
        return AuthPrincipal(
            user_id=session.user.id,
            email=session.user.email or "",
            authentication_type="supabase",
        )

    def effective_user_id(self, principal: AuthPrincipal) -> Optional[str]:
        if principal.user_id and principal.user_id.strip():
            return principal.user_id
        sdk_user_id = self.current_user_id()
        if sdk_user_id:
            return sdk_user_id
        return claims_from_access_token(principal.access_token).get("sub")

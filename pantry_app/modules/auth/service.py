import logging
from supabase import Client
from fastapi import HTTPException
from typing import Optional, Any

from pantry_app.core.text import mask_email
from pantry_app.modules.auth.schemas import SessionTokens

logger = logging.getLogger(__name__)

_CONFIRM_CODES = {"email_not_confirmed"}
_INVALID_CODES = {
    "invalid_credentials",
    "email_address_invalid",
    "validation_failed",
    "user_not_found",
}
_RATE_CODES = {"over_request_rate_limit", "over_email_send_rate_limit"}


def extract_session_tokens(result: Any, current_session: Any) -> SessionTokens:
    """Pull tokens out of whatever the SDK handed back, preferring its live session."""
    session = current_session
    if session is None and result is not None and hasattr(result, "access_token"):
        session = result
    if session is None and result is not None:
        session = getattr(result, "session", None)
    if session is None:
        return SessionTokens()
    user = getattr(session, "user", None)
    return SessionTokens(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        user_id=user.id if user else None,
        email=user.email if user else None,
    )


def login_error_code(exc: Exception) -> str:
    """Map an SDK auth failure to the short code used in the login redirect."""
    code = (getattr(exc, "code", None) or "").lower()
    message = str(exc).lower()
    if code in _CONFIRM_CODES or "not confirmed" in message:
        return "confirm"
    if code in _RATE_CODES or "too many" in message or "rate limit" in message:
        return "rate"
    if code in _INVALID_CODES or "invalid" in message or "password" in message:
        return "invalid"
    return "unknown"


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _current_session(self):
        try:
            return self.supabase.auth.get_session()
        except Exception:
            return None

    def sign_in(self, email: str, password: str) -> SessionTokens:
        """Password sign-in. SDK errors propagate so the caller can map them."""
        result = self.supabase.auth.sign_in_with_password({
            "email": email,
            "password": password
        })
        logger.info(f"Supabase sign-in response type {type(result).__name__}")
        tokens = extract_session_tokens(result, self._current_session())
        logger.info(
            f"Supabase sign-in tokens: accessLen={len(tokens.access_token or '')} "
            f"refreshLen={len(tokens.refresh_token or '')}"
        )
        return tokens

    def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> SessionTokens:
        """Register with Supabase Auth. Tokens are empty when email confirmation is pending."""
        user_metadata = {}
        if display_name:
            user_metadata["display_name"] = display_name
        result = self.supabase.auth.sign_up({
            "email": email,
            "password": password,
            "options": {
                "data": user_metadata
            }
        })
        if not getattr(result, "user", None):
            raise HTTPException(status_code=400, detail="Failed to register user")
        logger.info(f"Registered {mask_email(email)}")
        tokens = extract_session_tokens(result, self._current_session())
        if tokens.user_id is None:
            tokens = SessionTokens(user_id=result.user.id, email=result.user.email or email)
        return tokens

    def sign_out(self) -> bool:
        try:
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Supabase sign-out failed: {e}")
            return False

    def update_password(self, new_password: str) -> None:
        try:
            self.supabase.auth.update_user({"password": new_password})
        except Exception as e:
            raise HTTPException(status_code=400, detail=f"Password update failed: {e}")

    def update_email(self, email: str) -> None:
        try:
            self.supabase.auth.update_user({"email": email})
        except Exception as e:
            raise HTTPException(status_code=400, detail=f"Email update failed: {e}")

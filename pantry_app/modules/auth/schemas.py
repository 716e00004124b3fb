from dataclasses import dataclass
from pydantic import BaseModel
from typing import Optional, Dict, Any


@dataclass(frozen=True)
class SessionTokens:
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    user_id: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.access_token and self.access_token.strip()
                    and self.refresh_token and self.refresh_token.strip())


@dataclass(frozen=True)
class AuthPrincipal:
    """Identity carried by the session cookie (or rebuilt from the SDK session)."""
    user_id: Optional[str] = None
    email: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    authentication_type: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id and self.user_id.strip())

    @classmethod
    def anonymous(cls) -> "AuthPrincipal":
        return cls()

    def to_claims(self) -> Dict[str, Any]:
        return {
            "sub": self.user_id or "",
            "email": self.email or "",
            "access_token": self.access_token or "",
            "refresh_token": self.refresh_token or "",
        }

    @classmethod
    def from_claims(cls, claims: Dict[str, Any], authentication_type: str = "cookie") -> "AuthPrincipal":
        return cls(
            user_id=claims.get("sub") or None,
            email=claims.get("email") or None,
            access_token=claims.get("access_token") or None,
            refresh_token=claims.get("refresh_token") or None,
            authentication_type=authentication_type,
        )


class AuthStateResponse(BaseModel):
    is_authenticated: bool
    user_id: Optional[str] = None
    email: Optional[str] = None
    authentication_type: Optional[str] = None


class CsrfTokenResponse(BaseModel):
    csrf_token: str


class MeResponse(BaseModel):
    auth: AuthStateResponse
    profile: Dict[str, Any]
    household: Dict[str, Any]

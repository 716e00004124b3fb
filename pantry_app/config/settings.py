from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = Field(
        default="",
        validation_alias=AliasChoices("supabase_key", "supabase_anon_key"),
    )
    supabase_service_role_key: Optional[str] = None

    # Session cookie (signed, carries the auth principal)
    session_secret: str = "dev-session-secret"
    session_cookie_name: str = "pantry_session"
    session_max_age: int = 14 * 24 * 60 * 60
    https_only: bool = False

    # App
    app_name: str = "household-pantry"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format
    login_rate_limit: str = "10/minute"
    rate_limit_enabled: bool = True

    # Browser redirect targets for the form endpoints
    login_path: str = "/login"
    signup_path: str = "/signup"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()

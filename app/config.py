# app/config.py
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    SUPABASE_URL: str
    SUPABASE_JWKS_URL: str
    SUPABASE_ANON_KEY: str
    SUPABASE_SERVICE_ROLE_KEY: str
    SUPABASE_JWT_SECRET: Optional[str] = None
    ALLOWED_ORIGINS: str = "http://localhost:3000"
    INVOICES_PATH: str = "/dashboard/invoices"  # list view, revalidated after every mutation
    DASHBOARD_PATH: str = "/dashboard"
    LOGIN_PATH: str = "/login"
    SESSION_COOKIE: str = "sb-access-token"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

settings = Settings()

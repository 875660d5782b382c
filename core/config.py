from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "Interior Ops RBAC API"
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # -------------------------------------------------
    # Dashboard Domains
    # -------------------------------------------------
    DASHBOARD_DOMAINS: List[str] = [
        "http://localhost:3000",
        "https://app.appleinterior.in",
    ]

    # -------------------------------------------------
    # CORS (auto-built below)
    # -------------------------------------------------
    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Supabase (Primary DB & Auth)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None

    # Roles are scoped to a single organization
    ORG_SLUG: str = "apple-interior"

    # -------------------------------------------------
    # RBAC
    # -------------------------------------------------
    PERMISSIONS_CACHE_TTL: int = Field(
        300,
        description="Seconds a user's effective permission set stays cached (default: 5 minutes)",
    )

    # Used by core.rbac_client when talking to a deployed API
    RBAC_API_BASE_URL: str = "http://localhost:8000"
    RBAC_API_TIMEOUT: float = Field(10.0, description="Request timeout in seconds")

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    # Real environment variables only, no .env file
    model_config = SettingsConfigDict(case_sensitive=True)


# Instantiate settings
settings = Settings()

# -------------------------------------------------
# Build CORS list dynamically after loading settings
# -------------------------------------------------
cors_origins = [d.rstrip("/") for d in settings.DASHBOARD_DOMAINS]
settings.BACKEND_CORS_ORIGINS = sorted(set(cors_origins))

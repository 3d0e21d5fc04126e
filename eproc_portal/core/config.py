# Settings management (reads env vars/secrets)
# eproc_portal/core/config.py

import json
import logging
import os
from functools import lru_cache
from typing import Annotated, List, Optional, Union

from pydantic import (
    AnyHttpUrl,
    Field,
    SecretStr,
    field_validator,
)
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

# Least-privileged role handed out when neither the token claim nor the
# profile row names one. Must never be "admin".
DEFAULT_ROLE = "supplier"


def _split_csv(v: Union[str, List[str]]) -> Union[str, List[str]]:
    if isinstance(v, str):
        if v.strip().startswith("["):
            return json.loads(v)
        return [i.strip() for i in v.split(",") if i.strip()]
    return v


class Settings(BaseSettings):
    """
    Application configuration settings loaded from environment variables or .env file.
    """
    # --- Project Info ---
    PROJECT_NAME: str = Field("E-Procurement Portal", validation_alias="PROJECT_NAME")
    VERSION: str = Field("0.1.0", validation_alias="APP_VERSION")
    API_PREFIX: str = Field("/api", validation_alias="API_PREFIX")
    SITE_URL: str = Field("http://localhost:8000", validation_alias="SITE_URL")

    # --- Logging ---
    LOG_LEVEL: str = Field("INFO", validation_alias="LOG_LEVEL")

    # --- Authentication (Supabase) ---
    SUPABASE_URL: AnyHttpUrl = Field(..., validation_alias="SUPABASE_URL")
    SUPABASE_ANON_KEY: SecretStr = Field(..., validation_alias="SUPABASE_ANON_KEY")
    SUPABASE_SERVICE_ROLE_KEY: Optional[SecretStr] = Field(None, validation_alias="SUPABASE_SERVICE_ROLE_KEY")
    SUPABASE_JWT_SECRET: SecretStr = Field(..., validation_alias="SUPABASE_JWT_SECRET")
    JWT_ALGORITHM: str = Field("HS256", validation_alias="JWT_ALGORITHM")
    JWT_AUDIENCE: str = Field("authenticated", validation_alias="JWT_AUDIENCE")

    # --- Session cookie ---
    SESSION_COOKIE_NAME: str = Field("sb-auth-token", validation_alias="SESSION_COOKIE_NAME")
    SESSION_COOKIE_SECURE: bool = Field(True, validation_alias="SESSION_COOKIE_SECURE")
    SESSION_COOKIE_MAX_AGE: int = Field(
        default=60 * 60 * 24 * 400,  # matches the browser cap on cookie lifetime
        validation_alias="SESSION_COOKIE_MAX_AGE",
    )

    # --- Authorization policy ---
    DEFAULT_ROLE: str = Field(
        DEFAULT_ROLE,
        validation_alias="DEFAULT_ROLE",
        description="Role assigned when no claim and no profile role exist. Audited: never 'admin'.",
    )
    LOGIN_PATH: str = Field("/login", validation_alias="LOGIN_PATH")
    DASHBOARD_PATH: str = Field("/dashboard", validation_alias="DASHBOARD_PATH")
    REDIRECT_PARAM: str = Field("redirect", validation_alias="REDIRECT_PARAM")
    PUBLIC_ROUTES: Annotated[List[str], NoDecode] = Field(
        default=["/login", "/signup", "/signup/wizard", "/reset-password", "/forgot-password"],
        validation_alias="PUBLIC_ROUTES",
    )
    ADMIN_ROUTES: Annotated[List[str], NoDecode] = Field(default=["/admin"], validation_alias="ADMIN_ROUTES")
    SUPPLIER_ROUTES: Annotated[List[str], NoDecode] = Field(default=["/supplier"], validation_alias="SUPPLIER_ROUTES")
    # Paths the page redirect layer never touches; API routes enforce auth themselves.
    AUTH_EXEMPT_PREFIXES: Annotated[List[str], NoDecode] = Field(
        default=["/api", "/docs", "/redoc", "/openapi.json", "/favicon.ico", "/static"],
        validation_alias="AUTH_EXEMPT_PREFIXES",
    )

    # --- Storage (Supabase Storage) ---
    STORAGE_BUCKET: str = Field("documents", validation_alias="STORAGE_BUCKET")
    STORAGE_MAX_FILE_SIZE: int = Field(
        default=20 * 1024 * 1024,  # 20MB
        validation_alias="STORAGE_MAX_FILE_SIZE",
    )
    STORAGE_SIGNED_URL_EXPIRY: int = Field(
        default=600,  # 10 minutes
        validation_alias="STORAGE_SIGNED_URL_EXPIRY",
        description="Lifetime of signed retrieval URLs in seconds",
    )

    # --- Procurement ---
    APPROVAL_TOKEN_TTL_DAYS: int = Field(
        default=7,
        validation_alias="APPROVAL_TOKEN_TTL_DAYS",
        description="Days an approval link stays valid",
    )

    # --- CORS ---
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default=["http://localhost:3000"],
        validation_alias="BACKEND_CORS_ORIGINS",
    )

    @field_validator(
        "BACKEND_CORS_ORIGINS",
        "PUBLIC_ROUTES",
        "ADMIN_ROUTES",
        "SUPPLIER_ROUTES",
        "AUTH_EXEMPT_PREFIXES",
        mode="before",
    )
    @classmethod
    def assemble_lists(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        return _split_csv(v)

    @field_validator("DEFAULT_ROLE")
    @classmethod
    def check_default_role(cls, v: str) -> str:
        # Fail open only to the least-privileged role.
        if v != "supplier":
            raise ValueError("DEFAULT_ROLE must be 'supplier'.")
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Returns the application settings instance."""
    logger.info("Attempting to load application settings...")
    try:
        settings_instance = Settings()
        logger.info(f"Settings loaded successfully for Project: {settings_instance.PROJECT_NAME}")
        logger.info(f"Log Level: {settings_instance.LOG_LEVEL}")
        logger.info(f"Supabase URL: {settings_instance.SUPABASE_URL}")
        logger.info(f"Default role: {settings_instance.DEFAULT_ROLE}")
        logger.info(f"CORS Origins: {settings_instance.BACKEND_CORS_ORIGINS}")
        return settings_instance
    except Exception as e:
        logger.critical(f"CRITICAL ERROR: Failed to load application settings: {e}", exc_info=True)
        raise RuntimeError(f"Could not load settings: {e}")


settings: Settings = get_settings()

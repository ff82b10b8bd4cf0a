"""
Core configuration for the shop account service.

Environment variables (examples):
- APP_NAME / APP_VERSION / LOG_LEVEL
- MYSQL_HOST / MYSQL_PORT / MYSQL_USER / MYSQL_PASSWORD / MYSQL_DB (or MYSQL_ASYNC_URL)
- JWT_SECRET_KEY / JWT_ALGORITHM / ACCESS_TOKEN_EXPIRE_MINUTES
- CORS_ORIGINS (comma separated, "*" allowed)
- PHONE_PATTERN / PASSWORD_MIN_LENGTH / BCRYPT_ROUNDS
- QUICK_LOGIN_DEFAULT_PASSWORD / QUICK_LOGIN_NICK_PREFIX
- NOTIFY_URL / NOTIFY_TIMEOUT_SECONDS (set this in every deployment: quick login notifies the
  admin API at this URL; empty disables the notification and logs a warning)
- IO_TIMEOUT_SECONDS
"""
from __future__ import annotations

import os
from typing import List, Optional
from urllib.parse import quote_plus

from dotenv import load_dotenv

# Auto-load .env if present
load_dotenv(dotenv_path=".env", override=False)


class Settings:
    """Settings loader backed by environment variables."""

    def __init__(self) -> None:
        # App
        self.APP_NAME: str = os.getenv("APP_NAME", "Shop-Account-Service")
        self.APP_VERSION: str = os.getenv("APP_VERSION", "0.1.0")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

        # MySQL (async)
        self.MYSQL_HOST: str = os.getenv("MYSQL_HOST", "mysql")
        self.MYSQL_PORT: int = int(os.getenv("MYSQL_PORT", "3306"))
        self.MYSQL_USER: str = os.getenv("MYSQL_USER", "app_user")
        self.MYSQL_PASSWORD: str = os.getenv("MYSQL_PASSWORD", "app_password")
        self.MYSQL_DB: str = os.getenv("MYSQL_DB", "shop")
        self.MYSQL_ASYNC_URL: str = os.getenv("MYSQL_ASYNC_URL") or self._build_mysql_url()

        # JWT
        # Missing key is reported when a token is signed, not at import time.
        self.JWT_SECRET_KEY: Optional[str] = os.getenv("JWT_SECRET_KEY") or None
        self.JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
        self.ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1500"))

        # CORS
        cors_origins_env = os.getenv("CORS_ORIGINS", "*")
        self.CORS_ORIGINS: List[str] = (
            ["*"]
            if cors_origins_env.strip() == "*"
            else [origin.strip() for origin in cors_origins_env.split(",") if origin.strip()]
        )

        # -----------------------------------------------------------------------
        # Credentials
        # -----------------------------------------------------------------------
        self.PHONE_PATTERN: str = os.getenv("PHONE_PATTERN", r"^\+?[0-9]{3,20}$")
        self.PASSWORD_MIN_LENGTH: int = int(os.getenv("PASSWORD_MIN_LENGTH", "6"))
        self.BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

        # -----------------------------------------------------------------------
        # Quick login
        # -----------------------------------------------------------------------
        # Placeholder password for accounts created by quick login.
        self.QUICK_LOGIN_DEFAULT_PASSWORD: str = os.getenv("QUICK_LOGIN_DEFAULT_PASSWORD", "123456")
        self.QUICK_LOGIN_NICK_PREFIX: str = os.getenv("QUICK_LOGIN_NICK_PREFIX", "用户")

        # -----------------------------------------------------------------------
        # Outbound admin notification (best effort)
        # -----------------------------------------------------------------------
        self.NOTIFY_URL: str = os.getenv("NOTIFY_URL", "")
        self.NOTIFY_TIMEOUT_SECONDS: float = float(os.getenv("NOTIFY_TIMEOUT_SECONDS", "3"))

        # Deadline applied to every store / hasher call inside the flows
        self.IO_TIMEOUT_SECONDS: float = float(os.getenv("IO_TIMEOUT_SECONDS", "5"))

    def _build_mysql_url(self) -> str:
        encoded_password = quote_plus(self.MYSQL_PASSWORD)
        return (
            f"mysql+asyncmy://{self.MYSQL_USER}:{encoded_password}"
            f"@{self.MYSQL_HOST}:{self.MYSQL_PORT}/{self.MYSQL_DB}"
        )


settings = Settings()

# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

_TRUTHY = {"1", "true", "yes", "y"}


class ConfigError(RuntimeError):
    """Raised at startup when required configuration is missing."""


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class Settings:
    secret_key: str
    mongodb_uri: Optional[str] = None
    mongodb_db: str = "chefai"
    signup_db: str = "chefai_signups"
    mongodb_timeout_ms: int = 5000
    users_path: Path = Path("users.json")
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    environment: str = "development"
    cookie_secure: bool = False

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        """Read the process environment once.

        The signing secret has no default: starting without one is an error
        rather than a silently insecure deployment.
        """
        secret = (os.getenv("CHEFAI_SECRET_KEY") or os.getenv("JWT_SECRET") or "").strip()
        if not secret:
            raise ConfigError("CHEFAI_SECRET_KEY (or JWT_SECRET) is not set")

        environment = os.getenv("CHEFAI_ENV", "development").strip().lower() or "development"
        users_path = Path(os.getenv("CHEFAI_USERS_PATH", "users.json"))
        if not users_path.is_absolute():
            users_path = Path.cwd() / users_path

        return cls(
            secret_key=secret,
            mongodb_uri=(os.getenv("MONGODB_URI") or "").strip() or None,
            mongodb_db=os.getenv("CHEFAI_MONGODB_DB", "chefai"),
            signup_db=os.getenv("CHEFAI_SIGNUP_DB", "chefai_signups"),
            mongodb_timeout_ms=int(os.getenv("CHEFAI_MONGODB_TIMEOUT_MS", "5000")),
            users_path=users_path,
            openai_api_key=(os.getenv("OPENAI_API_KEY") or "").strip() or None,
            openai_base_url=os.getenv("CHEFAI_OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/"),
            openai_model=os.getenv("CHEFAI_OPENAI_MODEL", "gpt-4o-mini"),
            environment=environment,
            cookie_secure=_env_flag("CHEFAI_COOKIE_SECURE", environment == "production"),
        )

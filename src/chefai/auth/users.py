# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict

DEFAULT_AVATAR = "👤"
MIN_PASSWORD_LENGTH = 6

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class UserRecord:
    id: str
    name: str
    email: str
    password_hash: str
    avatar: str = DEFAULT_AVATAR
    created_at: str = ""

    def public(self) -> Dict[str, str]:
        """User as returned to clients. Never includes the hash."""
        return {"id": self.id, "name": self.name, "email": self.email, "avatar": self.avatar}


@dataclass(frozen=True)
class NewUser:
    name: str
    email: str
    password_hash: str
    avatar: str = DEFAULT_AVATAR


def normalize_email(email: Any) -> str:
    return str(email or "").strip().lower()


def normalize_name(name: Any) -> str:
    return str(name or "").strip()


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email or ""))

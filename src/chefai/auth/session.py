# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from itsdangerous import BadSignature, URLSafeTimedSerializer

from chefai.config import Settings

COOKIE_NAME = "auth-token"
SESSION_MAX_AGE_SECONDS = 7 * 24 * 60 * 60  # 7 days
SESSION_SALT = "chefai.session.v1"


def _serializer(secret: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key=secret, salt=SESSION_SALT)


@dataclass(frozen=True)
class SessionData:
    user_id: str
    email: str


def sign_session(user_id: str, email: str, secret: str) -> str:
    return _serializer(secret).dumps({"uid": user_id, "email": email})


def verify_session(
    token: str,
    secret: str,
    *,
    max_age: int = SESSION_MAX_AGE_SECONDS,
) -> Optional[SessionData]:
    """Decode a session token.

    Tampered, malformed and expired tokens all come back as None so callers
    cannot tell the cases apart.
    """
    if not token:
        return None
    try:
        data = _serializer(secret).loads(token, max_age=max_age)
    except BadSignature:
        # SignatureExpired and BadTimeSignature are both BadSignature.
        return None
    if not isinstance(data, dict):
        return None
    uid = str(data.get("uid") or "").strip()
    email = str(data.get("email") or "").strip()
    if not uid:
        return None
    return SessionData(user_id=uid, email=email)


def cookie_settings(settings: Settings) -> dict:
    return {"httponly": True, "samesite": "lax", "secure": settings.cookie_secure}

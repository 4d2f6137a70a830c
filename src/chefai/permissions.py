# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from typing import Optional
from urllib.parse import urlencode, urlsplit

from fastapi import Request
from fastapi.responses import RedirectResponse

from chefai.auth.session import COOKIE_NAME, SessionData, cookie_settings, verify_session

PROTECTED_PREFIXES = ("/profile", "/settings", "/chat", "/dashboard")
AUTH_ONLY_PREFIXES = ("/login", "/register")
UNGUARDED_PREFIXES = ("/api", "/static", "/favicon.ico")

LOGIN_PATH = "/login"
HOME_PATH = "/dashboard"


def _matches(path: str, prefixes) -> bool:
    return any(path.startswith(p) for p in prefixes)


def is_guarded(path: str) -> bool:
    return not _matches(path, UNGUARDED_PREFIXES)


def classify_path(path: str) -> str:
    """Return "protected", "auth-only" or "public"."""
    if _matches(path, PROTECTED_PREFIXES):
        return "protected"
    if _matches(path, AUTH_ONLY_PREFIXES):
        return "auth-only"
    return "public"


def session_from_request(request: Request) -> Optional[SessionData]:
    token = request.cookies.get(COOKIE_NAME, "")
    return verify_session(token, request.app.state.settings.secret_key)


def login_redirect_url(path: str) -> str:
    return f"{LOGIN_PATH}?{urlencode({'redirect': path})}"


def safe_redirect_path(value: str, default: str = HOME_PATH) -> str:
    """Return ``value`` if it is a path on this site, else ``default``.

    Browsers read a backslash as a slash and drop tabs and newlines, so
    either can turn a path into a protocol-relative URL.
    """
    if not value or not value.startswith("/") or value.startswith("//"):
        return default
    if "\\" in value or any(ord(c) < 32 or ord(c) == 127 for c in value):
        return default
    parts = urlsplit(value)
    if parts.scheme or parts.netloc:
        return default
    return value


async def route_guard(request: Request, call_next):
    """Gate page navigations on the session cookie.

    Only the token signature is checked here; no credential store is hit.
    """
    path = request.url.path
    if not is_guarded(path):
        return await call_next(request)

    token = request.cookies.get(COOKIE_NAME, "")
    session = session_from_request(request) if token else None
    request.state.session = session
    stale_cookie = bool(token) and session is None

    kind = classify_path(path)
    if kind == "protected" and session is None:
        resp = RedirectResponse(url=login_redirect_url(path))
    elif kind == "auth-only" and session is not None:
        resp = RedirectResponse(url=HOME_PATH)
    else:
        resp = await call_next(request)

    if stale_cookie:
        resp.delete_cookie(COOKIE_NAME, **cookie_settings(request.app.state.settings))
    return resp

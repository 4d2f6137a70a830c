# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from chefai.auth.session import COOKIE_NAME, SESSION_MAX_AGE_SECONDS, cookie_settings
from chefai.config import Settings
from chefai.infra.mongo import MongoConnection
from chefai.infra.signup_repo import SignupAuditStore, SignupContext
from chefai.infra.user_store import CredentialStore, JsonFileUserStore, MongoUserStore
from chefai.permissions import route_guard, safe_redirect_path
from chefai.services.auth_service import AuthError, AuthResult, AuthService
from chefai.services.recipe_service import RecipeRequestError, RecipeService, parse_recipe_request

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

INVALID_PAYLOAD = "Invalid request payload."

PAGES = {
    "/dashboard": "Dashboard",
    "/profile": "Profile",
    "/settings": "Settings",
    "/chat": "Chat",
}


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _payload(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise AuthError(INVALID_PAYLOAD)
    return payload


def _signup_context(request: Request) -> SignupContext:
    ip = request.headers.get("x-forwarded-for") or request.headers.get("x-real-ip") or "unknown"
    return SignupContext(
        ip_address=ip.split(",")[0].strip() or "unknown",
        user_agent=request.headers.get("user-agent") or "unknown",
    )


def _auth_response(result: AuthResult, body: dict, settings: Settings, status_code: int = 200) -> JSONResponse:
    resp = JSONResponse({"user": result.user.public(), "token": result.token, **body}, status_code=status_code)
    resp.set_cookie(COOKIE_NAME, result.token, max_age=SESSION_MAX_AGE_SECONDS, **cookie_settings(settings))
    return resp


def create_app(
    settings: Optional[Settings] = None,
    *,
    mongo: Optional[MongoConnection] = None,
    primary: Optional[CredentialStore] = None,
    fallback: Optional[CredentialStore] = None,
    signups: Optional[SignupAuditStore] = None,
    recipes: Optional[RecipeService] = None,
) -> FastAPI:
    """Composition root. Missing configuration fails here, before serving."""
    settings = settings or Settings.from_env()
    mongo = mongo or MongoConnection(settings.mongodb_uri, timeout_ms=settings.mongodb_timeout_ms)
    if signups is None and mongo.configured:
        signups = SignupAuditStore(mongo, settings.signup_db)
    auth = AuthService(
        secret_key=settings.secret_key,
        primary=primary or MongoUserStore(mongo, settings.mongodb_db),
        fallback=fallback or JsonFileUserStore(settings.users_path),
        signups=signups,
    )
    recipes = recipes or RecipeService(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        model=settings.openai_model,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        mongo.close()
        recipes.close()

    app = FastAPI(title="ChefAI", lifespan=lifespan)
    app.state.settings = settings
    app.state.auth = auth
    app.state.recipes = recipes
    app.state.mongo = mongo

    app.middleware("http")(route_guard)

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(request: Request, exc: RequestValidationError):
        return _error(INVALID_PAYLOAD, 400)

    def _render(request: Request, template_name: str, ctx: Optional[dict] = None):
        base_ctx = {"session": getattr(request.state, "session", None)}
        return templates.TemplateResponse(request, template_name, {**base_ctx, **(ctx or {})})

    # ------------------ Auth API ------------------

    @app.post("/api/auth/register")
    def register(request: Request, payload: Any = Body(default=None)):
        try:
            data = _payload(payload)
            result = auth.register(
                data.get("name"),
                data.get("email"),
                data.get("password"),
                ctx=_signup_context(request),
            )
        except AuthError as e:
            return _error(e.message, e.status_code)
        except Exception:
            logger.exception("Registration error")
            return _error("Internal server error", 500)

        if result.used_fallback:
            message = "Registration successful (using fallback storage)"
        elif result.signup_recorded:
            message = "Registration successful - Data stored in both main and signup databases"
        else:
            message = "Registration successful"
        return _auth_response(
            result,
            {"message": message, "signupRecorded": result.signup_recorded},
            settings,
            status_code=201,
        )

    @app.post("/api/auth/login")
    def login(payload: Any = Body(default=None)):
        try:
            data = _payload(payload)
            result = auth.login(data.get("email"), data.get("password"))
        except AuthError as e:
            return _error(e.message, e.status_code)
        except Exception:
            logger.exception("Login error")
            return _error("Internal server error. Please try again.", 500)

        message = "Login successful" + (" (using fallback storage)" if result.used_fallback else "")
        return _auth_response(result, {"message": message}, settings)

    @app.post("/api/auth/logout")
    def logout():
        resp = JSONResponse({"message": "Logout successful"})
        resp.set_cookie(COOKIE_NAME, "", max_age=0, **cookie_settings(settings))
        return resp

    @app.get("/api/auth/validate")
    def validate(request: Request):
        try:
            user = auth.validate(request.cookies.get(COOKIE_NAME))
        except AuthError as e:
            return _error(e.message, e.status_code)
        except Exception:
            logger.exception("Token validation error")
            return _error("Invalid token", 401)
        return JSONResponse({"user": user.public(), "valid": True})

    # ------------------ Recipes API ------------------

    @app.post("/api/recipes")
    def generate_recipe(payload: Any = Body(default=None)):
        try:
            req = parse_recipe_request(payload)
        except RecipeRequestError as e:
            return _error(str(e), 400)
        return JSONResponse(recipes.generate(req))

    # ------------------ Pages ------------------

    @app.get("/", response_class=HTMLResponse)
    def index(request: Request):
        return _render(request, "index.html")

    @app.get("/login", response_class=HTMLResponse)
    def login_page(request: Request, redirect: str = "/dashboard"):
        return _render(request, "login.html", {"redirect": safe_redirect_path(redirect)})

    @app.get("/register", response_class=HTMLResponse)
    def register_page(request: Request):
        return _render(request, "register.html")

    def _page_route(title: str):
        def _page(request: Request):
            return _render(request, "page.html", {"title": title})

        return _page

    for path, title in PAGES.items():
        app.add_api_route(path, _page_route(title), methods=["GET"], response_class=HTMLResponse)

    return app

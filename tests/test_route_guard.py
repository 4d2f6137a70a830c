import pytest

from chefai.auth.session import COOKIE_NAME
from chefai.permissions import classify_path, is_guarded, login_redirect_url, safe_redirect_path

from conftest import register


@pytest.mark.parametrize(
    "path,kind",
    [
        ("/dashboard", "protected"),
        ("/profile", "protected"),
        ("/settings/notifications", "protected"),
        ("/chat", "protected"),
        ("/login", "auth-only"),
        ("/register", "auth-only"),
        ("/", "public"),
        ("/recipes", "public"),
    ],
)
def test_classify_path(path, kind):
    assert classify_path(path) == kind


def test_api_and_assets_are_not_guarded():
    assert not is_guarded("/api/auth/validate")
    assert not is_guarded("/static/app.css")
    assert not is_guarded("/favicon.ico")
    assert is_guarded("/dashboard")


def test_login_redirect_keeps_destination():
    assert login_redirect_url("/chat") == "/login?redirect=%2Fchat"


@pytest.mark.parametrize("path", ["/dashboard", "/profile", "/settings", "/chat"])
def test_protected_pages_redirect_anonymous_users(client, path):
    r = client.get(path, follow_redirects=False)
    assert r.status_code == 307
    assert r.headers["location"] == login_redirect_url(path)


def test_protected_page_after_login(client):
    register(client)
    r = client.get("/dashboard", follow_redirects=False)
    assert r.status_code == 200
    assert "ana@example.com" in r.text


@pytest.mark.parametrize("path", ["/login", "/register"])
def test_auth_pages_redirect_signed_in_users(client, path):
    register(client)
    r = client.get(path, follow_redirects=False)
    assert r.status_code == 307
    assert r.headers["location"] == "/dashboard"


@pytest.mark.parametrize("path", ["/", "/login", "/register"])
def test_public_and_auth_pages_for_anonymous_users(client, path):
    r = client.get(path, follow_redirects=False)
    assert r.status_code == 200
    assert "set-cookie" not in r.headers


def test_invalid_cookie_is_cleared_and_request_continues(client):
    client.cookies.set(COOKIE_NAME, "forged.token.value")
    r = client.get("/", follow_redirects=False)
    assert r.status_code == 200
    cookie = r.headers["set-cookie"].lower()
    assert cookie.startswith(f"{COOKIE_NAME}=")
    assert "max-age=0" in cookie


def test_invalid_cookie_on_protected_page(client):
    client.cookies.set(COOKIE_NAME, "forged.token.value")
    r = client.get("/profile", follow_redirects=False)
    assert r.status_code == 307
    assert r.headers["location"] == login_redirect_url("/profile")
    assert "max-age=0" in r.headers["set-cookie"].lower()


def test_invalid_cookie_may_still_open_login(client):
    client.cookies.set(COOKIE_NAME, "forged.token.value")
    r = client.get("/login", follow_redirects=False)
    assert r.status_code == 200


def test_api_requests_bypass_the_guard(client):
    client.cookies.set(COOKIE_NAME, "forged.token.value")
    r = client.get("/api/auth/validate", follow_redirects=False)
    assert r.status_code == 401
    assert "set-cookie" not in r.headers


@pytest.mark.parametrize(
    "value,expected",
    [
        ("/chat", "/chat"),
        ("/profile?tab=1", "/profile?tab=1"),
        ("", "/dashboard"),
        ("chat", "/dashboard"),
        ("//evil.example", "/dashboard"),
        ("/\\evil.example", "/dashboard"),
        ("/\t/evil.example", "/dashboard"),
        ("https://evil.example/x", "/dashboard"),
    ],
)
def test_safe_redirect_path(value, expected):
    assert safe_redirect_path(value) == expected


@pytest.mark.parametrize("target", ["//evil.example", "/\\evil.example", "/\t/evil.example"])
def test_login_page_ignores_offsite_redirects(client, target):
    r = client.get("/login", params={"redirect": target})
    assert "evil.example" not in r.text
    r = client.get("/login", params={"redirect": "/chat"})
    assert '"/chat"' in r.text

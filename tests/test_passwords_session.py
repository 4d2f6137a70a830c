import pytest
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError
from itsdangerous import URLSafeTimedSerializer

from chefai.auth.passwords import hash_password, needs_rehash, verify_password
from chefai.auth.session import SESSION_SALT, sign_session, verify_session


def test_hash_and_verify():
    h = hash_password("secret1")
    assert h != "secret1"
    assert h.startswith("$argon2")
    assert verify_password(h, "secret1")
    assert not verify_password(h, "secret2")


def test_hashes_are_salted():
    assert hash_password("secret1") != hash_password("secret1")


def test_empty_inputs():
    with pytest.raises(ValueError):
        hash_password("")
    assert not verify_password("", "secret1")
    assert not verify_password(hash_password("secret1"), "")


def test_weaker_hashes_need_rehash():
    assert not needs_rehash(hash_password("secret1"))
    weak = PasswordHasher(time_cost=1, memory_cost=8192, parallelism=1).hash("secret1")
    assert verify_password(weak, "secret1")
    assert needs_rehash(weak)


def test_malformed_hash_is_an_error_not_a_mismatch():
    with pytest.raises(InvalidHashError):
        verify_password("not-a-hash", "secret1")


def test_session_roundtrip():
    token = sign_session("u1", "ana@example.com", "s3cret")
    data = verify_session(token, "s3cret")
    assert data is not None
    assert data.user_id == "u1"
    assert data.email == "ana@example.com"


@pytest.mark.parametrize(
    "mutate",
    [
        lambda t: ("A" if t[0] != "A" else "B") + t[1:],
        lambda t: "x" + t,
        lambda t: "garbage",
        lambda t: "",
    ],
)
def test_bad_tokens_are_rejected(mutate):
    token = sign_session("u1", "ana@example.com", "s3cret")
    assert verify_session(mutate(token), "s3cret") is None


def test_wrong_secret_is_rejected():
    token = sign_session("u1", "ana@example.com", "s3cret")
    assert verify_session(token, "other") is None


def test_expired_token_is_rejected():
    token = sign_session("u1", "ana@example.com", "s3cret")
    assert verify_session(token, "s3cret", max_age=-1) is None


def test_token_without_user_id_is_rejected():
    token = URLSafeTimedSerializer("s3cret", salt=SESSION_SALT).dumps({"email": "a@b.co"})
    assert verify_session(token, "s3cret") is None

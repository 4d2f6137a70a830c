#!/usr/bin/env python3
"""Seed an account into the fallback users file.

The account only exists in the file store; it is not copied to MongoDB.
"""
from __future__ import annotations

import os
from getpass import getpass
from pathlib import Path

from chefai.auth.passwords import hash_password
from chefai.auth.users import MIN_PASSWORD_LENGTH, NewUser, is_valid_email, normalize_email, normalize_name
from chefai.infra.errors import DuplicateEmail
from chefai.infra.user_store import JsonFileUserStore

USERS_PATH = Path(os.getenv("CHEFAI_USERS_PATH", "users.json")).resolve()


def main() -> None:
    store = JsonFileUserStore(USERS_PATH)

    name = normalize_name(input("Name: "))
    email = normalize_email(input("Email: "))
    if not name or not is_valid_email(email):
        raise SystemExit("Name and a valid email are required")

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")
    if len(pw1) < MIN_PASSWORD_LENGTH:
        raise SystemExit(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    try:
        user = store.create(NewUser(name=name, email=email, password_hash=hash_password(pw1)))
    except DuplicateEmail:
        raise SystemExit(f"{email} already exists in {USERS_PATH}")
    print(f"OK {user.id} -> {USERS_PATH}")


if __name__ == "__main__":
    main()

# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""argon2id password hashing with a pinned work factor."""

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError

TIME_COST = 3
MEMORY_COST_KIB = 64 * 1024
PARALLELISM = 4

_HASHER = PasswordHasher(time_cost=TIME_COST, memory_cost=MEMORY_COST_KIB, parallelism=PARALLELISM)


def hash_password(plain: str) -> str:
    if not plain:
        raise ValueError("Empty password")
    return _HASHER.hash(plain)


def verify_password(hash_value: str, plain: str) -> bool:
    """False on a mismatch. A malformed stored hash raises InvalidHashError."""
    if not hash_value or not plain:
        return False
    try:
        return _HASHER.verify(hash_value, plain)
    except VerifyMismatchError:
        return False


def needs_rehash(hash_value: str) -> bool:
    """True when the hash was made with parameters other than the pinned ones."""
    return _HASHER.check_needs_rehash(hash_value)

# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations


class StoreError(RuntimeError):
    """A storage backend failed to read or write."""


class StoreUnavailable(StoreError):
    """The backend could not be reached at all."""


class DuplicateEmail(ValueError):
    """A user with this email already exists in the store."""

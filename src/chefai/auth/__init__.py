# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication helpers.

This package provides:
- Password hashing/verification (argon2)
- User records, input normalisation and the public user view
- Signed session tokens carried in the auth cookie (itsdangerous)
"""

# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""ChefAI backend: accounts, sessions and recipe generation."""

__version__ = "0.1.0"

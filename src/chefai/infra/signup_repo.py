# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict

from pymongo.errors import PyMongoError

from chefai.auth.users import UserRecord
from chefai.infra.errors import StoreError
from chefai.infra.mongo import MongoConnection


@dataclass(frozen=True)
class SignupContext:
    ip_address: str = "unknown"
    user_agent: str = "unknown"
    source: str = "web_app"


class SignupAuditStore:
    """Write-only registration log in its own database.

    Nothing reads these records back; they are not part of authentication.
    """

    def __init__(self, connection: MongoConnection, db_name: str = "chefai_signups", collection: str = "signups") -> None:
        self._connection = connection
        self._db_name = db_name
        self._collection_name = collection

    def record(self, user: UserRecord, ctx: SignupContext) -> str:
        now = datetime.now(timezone.utc)
        doc: Dict[str, Any] = {
            "userId": user.id,
            "name": user.name,
            "email": user.email,
            "password": user.password_hash,
            "avatar": user.avatar,
            "registrationDate": now,
            "ipAddress": ctx.ip_address,
            "userAgent": ctx.user_agent,
            "registrationSource": ctx.source,
            "isEmailVerified": False,
            "lastLoginDate": None,
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            coll = self._connection.database(self._db_name)[self._collection_name]
            res = coll.insert_one(doc)
        except PyMongoError as exc:
            raise StoreError(str(exc)) from exc
        return str(res.inserted_id)

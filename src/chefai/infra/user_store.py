# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Credential stores.

Two interchangeable backends share one contract: MongoDB (primary) and a
JSON file (fallback). They are never synchronised with each other.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from bson import ObjectId
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from chefai.auth.users import DEFAULT_AVATAR, NewUser, UserRecord, normalize_email
from chefai.infra.errors import DuplicateEmail, StoreError, StoreUnavailable
from chefai.infra.mongo import MongoConnection

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    name: str

    def find_by_email(self, email: str) -> Optional[UserRecord]: ...

    def find_by_id(self, user_id: str) -> Optional[UserRecord]: ...

    def create(self, user: NewUser) -> UserRecord: ...


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _record_from_doc(doc: Dict[str, Any]) -> UserRecord:
    return UserRecord(
        id=str(doc.get("_id") or ""),
        name=str(doc.get("name") or ""),
        email=str(doc.get("email") or ""),
        password_hash=str(doc.get("password") or ""),
        avatar=str(doc.get("avatar") or DEFAULT_AVATAR),
        created_at=str(doc.get("createdAt") or ""),
    )


# ------------------ MongoDB ------------------


class MongoUserStore:
    name = "mongodb"

    def __init__(self, connection: MongoConnection, db_name: str = "chefai", collection: str = "users") -> None:
        self._connection = connection
        self._db_name = db_name
        self._collection_name = collection
        self._indexed = False

    def _users(self) -> Collection:
        try:
            coll = self._connection.database(self._db_name)[self._collection_name]
            if not self._indexed:
                coll.create_index("email", unique=True)
                self._indexed = True
            return coll
        except PyMongoError as exc:
            raise StoreUnavailable(str(exc)) from exc

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        coll = self._users()
        try:
            doc = coll.find_one({"email": normalize_email(email)})
        except PyMongoError as exc:
            raise StoreError(str(exc)) from exc
        return _record_from_doc(doc) if doc else None

    def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        # Reach the database first so an outage still switches stores.
        coll = self._users()
        # Ids minted by the file store are not ObjectIds and cannot exist here.
        if not ObjectId.is_valid(user_id):
            return None
        try:
            doc = coll.find_one({"_id": ObjectId(user_id)})
        except PyMongoError as exc:
            raise StoreError(str(exc)) from exc
        return _record_from_doc(doc) if doc else None

    def create(self, user: NewUser) -> UserRecord:
        coll = self._users()
        doc = {
            "name": user.name,
            "email": normalize_email(user.email),
            "password": user.password_hash,
            "avatar": user.avatar or DEFAULT_AVATAR,
            "createdAt": _now_iso(),
        }
        try:
            res = coll.insert_one(doc)
        except DuplicateKeyError as exc:
            raise DuplicateEmail(doc["email"]) from exc
        except PyMongoError as exc:
            raise StoreError(str(exc)) from exc
        doc["_id"] = res.inserted_id
        return _record_from_doc(doc)


# ------------------ JSON file ------------------


class JsonFileUserStore:
    """Users kept as a JSON list in a single file.

    Every mutation rewrites the whole file. Writers inside this process are
    serialised; separate processes sharing the file are not.
    """

    name = "file"

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _ensure_file(self) -> None:
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._write([])

    def _read(self) -> List[Dict[str, Any]]:
        try:
            self._ensure_file()
            raw = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except (OSError, ValueError) as exc:
            logger.error("Error reading users file %s: %s", self.path, exc)
            raise StoreError(f"Cannot read {self.path}: {exc}") from exc
        if not isinstance(raw, list):
            raise StoreError(f"{self.path} does not contain a JSON list")
        return [u for u in raw if isinstance(u, dict)]

    def _write(self, users: List[Dict[str, Any]]) -> None:
        tmp = None
        try:
            fd, tmp = tempfile.mkstemp(prefix=".users-", suffix=".json", dir=str(self.path.parent))
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(users, fh, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path)
            tmp = None
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Error saving users file %s: %s", self.path, exc)
            raise StoreError(f"Cannot write {self.path}: {exc}") from exc
        finally:
            if tmp is not None and os.path.exists(tmp):
                os.unlink(tmp)

    def list_users(self) -> List[UserRecord]:
        with self._lock:
            return [_record_from_doc(u) for u in self._read()]

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        target = normalize_email(email)
        for u in self.list_users():
            if u.email.lower() == target:
                return u
        return None

    def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        for u in self.list_users():
            if u.id == user_id:
                return u
        return None

    def create(self, user: NewUser) -> UserRecord:
        email = normalize_email(user.email)
        with self._lock:
            users = self._read()
            if any(normalize_email(u.get("email")) == email for u in users):
                raise DuplicateEmail(email)
            doc = {
                "_id": uuid.uuid4().hex,
                "name": user.name,
                "email": email,
                "password": user.password_hash,
                "avatar": user.avatar or DEFAULT_AVATAR,
                "createdAt": _now_iso(),
            }
            users.append(doc)
            self._write(users)
        return _record_from_doc(doc)

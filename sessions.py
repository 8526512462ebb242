"""
Name-based login and server-side sessions.

There is no password: login trusts the submitted name. The cookie holds
only an opaque token; the user id lives in the session collection.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from database import serialize, to_obj_id, utc_now
from errors import PersistenceFailure
from logging_config import get_logger
from schemas import User, UserRole

logger = get_logger(__name__)

USER_COLLECTION = "user"
SESSION_COLLECTION = "session"


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class SessionGateway:

    def __init__(self, db: Database, max_age: timedelta = timedelta(days=7)):
        self.users = db[USER_COLLECTION]
        self.sessions = db[SESSION_COLLECTION]
        self.max_age = max_age

    def ensure_indexes(self) -> None:
        try:
            self.users.create_index("name", unique=True)
            self.sessions.create_index("token", unique=True)
            self.sessions.create_index("expiresAt", expireAfterSeconds=0)
        except PyMongoError as e:
            logger.warning(f"Could not create session indexes: {e}")

    def login(self, name: str) -> str:
        """Return the id of the user with exactly this name, creating it on first login"""
        if not name or not name.strip():
            raise ValueError("Please enter your name")
        try:
            doc = self.users.find_one({"name": name})
            if doc is None:
                user = User(name=name, role=UserRole.INSPECTOR)
                record = user.model_dump(by_alias=True, mode="json", exclude={"id"})
                record["createdAt"] = utc_now()
                try:
                    user_id = str(self.users.insert_one(record).inserted_id)
                    logger.info(f"Created inspector {name!r}", extra={"user_id": user_id})
                    return user_id
                except DuplicateKeyError:
                    doc = self.users.find_one({"name": name})
            return str(doc["_id"])
        except PyMongoError as e:
            logger.error(f"Login failed for {name!r}: {e}")
            raise PersistenceFailure("Login failed. Please try again.", operation="login") from e

    def open_session(self, user_id: str) -> str:
        token = secrets.token_urlsafe(32)
        now = utc_now()
        try:
            self.sessions.insert_one({
                "token": token,
                "userId": user_id,
                "createdAt": now,
                "expiresAt": now + self.max_age,
            })
        except PyMongoError as e:
            raise PersistenceFailure("Login failed. Please try again.", operation="session") from e
        return token

    def current_user_id(self, token: Optional[str]) -> Optional[str]:
        """User id for a live session token, None when anonymous"""
        if not token:
            return None
        try:
            doc = self.sessions.find_one({"token": token})
        except PyMongoError as e:
            raise PersistenceFailure("Failed to read session", operation="session") from e
        if doc is None:
            return None
        if _aware(doc["expiresAt"]) <= utc_now():
            return None
        return doc["userId"]

    def get_user(self, user_id: str) -> Optional[User]:
        obj_id = to_obj_id(user_id)
        if obj_id is None:
            return None
        try:
            doc = self.users.find_one({"_id": obj_id})
        except PyMongoError as e:
            raise PersistenceFailure("Failed to load user", operation="user") from e
        return User.model_validate(serialize(doc)) if doc else None

    def current_user(self, token: Optional[str]) -> Optional[User]:
        user_id = self.current_user_id(token)
        return self.get_user(user_id) if user_id else None

    def close_session(self, token: Optional[str]) -> None:
        if not token:
            return
        try:
            self.sessions.delete_one({"token": token})
        except PyMongoError as e:
            raise PersistenceFailure("Failed to end session", operation="session") from e

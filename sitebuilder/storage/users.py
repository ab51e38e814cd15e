"""User accounts persisted as one JSON object keyed by email."""
from pathlib import Path
from typing import Optional

import structlog
from pydantic import BaseModel

from sitebuilder.core.exceptions import ConflictError

from .json_store import JsonDocumentStore

logger = structlog.get_logger(__name__)


class User(BaseModel):
    id: int
    email: str
    password: str  # bcrypt hash


class UserStore:
    """Append-only user accounts."""

    def __init__(self, path: Path):
        self.document = JsonDocumentStore(path, "users")

    def get(self, email: str) -> Optional[User]:
        record = self.document.load().get(email)
        return User.model_validate(record) if record else None

    def add(self, email: str, password_hash: str) -> User:
        """
        Create a user.

        Ids are sequential: one more than the number of existing users.

        Raises:
            ConflictError: If the email is already registered
        """
        with self.document.transaction() as users:
            if email in users:
                raise ConflictError("User already exists")
            user = User(id=len(users) + 1, email=email, password=password_hash)
            users[email] = user.model_dump()

        logger.info("user_created", user_id=user.id)
        return user

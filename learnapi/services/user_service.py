"""
Account use cases: registration, profile updates and level progression.
"""

from __future__ import annotations

from typing import Any, Mapping

import structlog
from sqlalchemy.exc import IntegrityError

from learnapi.core.errors import NotFoundError, ValidationError
from learnapi.core.security import hash_password
from learnapi.core.utils import isoformat
from learnapi.db.models import User
from learnapi.domain.leveling import apply_points
from learnapi.domain.validators import is_valid_email, is_valid_name, normalize_email
from learnapi.repositories.sql_repository import SQLRepository

logger = structlog.get_logger(__name__)

PASSWORD_MIN_LENGTH = 8


def user_to_dict(entity: User) -> dict:
    return {
        "id": entity.id,
        "email": entity.email,
        "firstName": entity.first_name or "",
        "lastName": entity.last_name or "",
        "points": int(entity.points or 0),
        "level": int(entity.level or 1),
        "createdAt": isoformat(entity.created_at),
        "updatedAt": isoformat(entity.updated_at),
    }


class UserService:
    """Handles registration, profile edits and points updates."""

    def __init__(self) -> None:
        self.repository = SQLRepository()

    # -------------------------------------- helpers --------------------------------------
    def _checked_email(self, value: Any) -> str:
        email = normalize_email(value) if isinstance(value, str) else ""
        if not is_valid_email(email):
            raise ValidationError(code="E0206")
        if self.repository.email_exists(email):
            raise ValidationError(code="E0201")
        return email

    def _checked_name(self, value: Any) -> str:
        if not is_valid_name(value):
            raise ValidationError(code="E0211")
        return value.strip()

    # -------------------------------------- use cases --------------------------------------
    def get_user(self, user_id: str) -> User:
        entity = self.repository.get_user(user_id)
        if entity is None:
            raise NotFoundError(f"No user found with id: {user_id}")
        return entity

    def list_users(self) -> list[User]:
        return self.repository.list_users()

    def register_user(self, email: Any, password: Any, first_name: Any = None, last_name: Any = None) -> User:
        checked_email = self._checked_email(email)
        first = self._checked_name(first_name) if first_name else ""
        last = self._checked_name(last_name) if last_name else ""
        if not isinstance(password, str) or len(password) < PASSWORD_MIN_LENGTH:
            raise ValidationError(f"Password must have at least {PASSWORD_MIN_LENGTH} characters.")
        try:
            entity = self.repository.create_user(checked_email, hash_password(password), first, last)
        except IntegrityError:
            raise ValidationError(code="E0201") from None
        logger.info("user.registered", user_id=entity.id)
        return entity

    def update_user(self, user_id: str, changes: Mapping[str, Any]) -> User:
        """Apply a partial update.

        Only keys present in ``changes`` are touched. Every value is checked
        before anything is written, and all changed columns (points and level
        included) go out in a single UPDATE.
        """
        entity = self.get_user(user_id)
        values: dict[str, Any] = {}
        if "email" in changes:
            values["email"] = self._checked_email(changes["email"])
        for key in ("first_name", "last_name"):
            if key in changes:
                values[key] = self._checked_name(changes[key])
        if "points" in changes:
            # absolute total, not an increment
            progress = apply_points(user_to_dict(entity), changes["points"])
            values["points"] = progress["points"]
            values["level"] = progress["level"]
        try:
            found = self.repository.update_user_fields(user_id, values)
        except IntegrityError:
            raise ValidationError(code="E0201") from None
        if not found:
            raise NotFoundError(f"No user found with id: {user_id}")
        if "level" in values and values["level"] != entity.level:
            logger.info("user.level_changed", user_id=user_id, old_level=entity.level, new_level=values["level"])
        logger.info("user.updated", user_id=user_id, fields=sorted(values))
        return self.get_user(user_id)

    def delete_user(self, user_id: str) -> bool:
        deleted = self.repository.delete_user(user_id)
        if deleted:
            logger.info("user.deleted", user_id=user_id)
        else:
            logger.info("user.delete_noop", user_id=user_id)
        return deleted

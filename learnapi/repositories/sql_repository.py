"""High-level data access helpers backed by SQLAlchemy."""
from __future__ import annotations

import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional

from sqlalchemy import select, update, delete
from sqlalchemy.orm import Session

from learnapi.db.models import User, Section, Exercise
from learnapi.db.session import get_session, transaction


def new_id() -> str:
    return uuid.uuid4().hex


@contextmanager
def _unit(session: Session | None) -> Iterator[Session]:
    """Reuse the caller's session, or open (and commit) a private one."""
    if session is not None:
        yield session
        return
    with transaction() as own:
        yield own


class SQLRepository:
    """CRUD helpers wrapping the SQLAlchemy session.

    Methods that accept ``session`` take part in the caller's transaction
    when one is given; otherwise they commit on their own.
    """

    # -------------------------- users --------------------------
    def get_user(self, user_id: str) -> Optional[User]:
        with get_session() as session:
            return session.get(User, user_id)

    def email_exists(self, email: str) -> bool:
        value = (email or "").strip()
        if not value:
            return False
        with get_session() as session:
            stmt = select(User.id).where(User.email == value).limit(1)
            return session.execute(stmt).first() is not None

    def list_users(self) -> list[User]:
        with get_session() as session:
            return list(session.execute(select(User).order_by(User.created_at)).scalars().all())

    def create_user(self, email: str, password_hash: str, first_name: str = "", last_name: str = "") -> User:
        now = datetime.now(timezone.utc)
        entity = User(
            id=new_id(),
            email=email,
            first_name=first_name,
            last_name=last_name,
            password_hash=password_hash,
            points=0,
            level=1,
            created_at=now,
            updated_at=now,
        )
        with transaction() as session:
            session.add(entity)
        return entity

    def update_user_fields(self, user_id: str, values: dict, *, session: Session | None = None) -> bool:
        if not values:
            return self.get_user(user_id) is not None
        with _unit(session) as s:
            stmt = (
                update(User)
                .where(User.id == user_id)
                .values(**values, updated_at=datetime.now(timezone.utc))
            )
            return s.execute(stmt).rowcount > 0

    def delete_user(self, user_id: str) -> bool:
        with transaction() as session:
            return session.execute(delete(User).where(User.id == user_id)).rowcount > 0

    # -------------------------- sections --------------------------
    def create_section(self, title: str, description: str = "") -> Section:
        now = datetime.now(timezone.utc)
        entity = Section(
            id=new_id(),
            title=title,
            description=description,
            components=[],
            version=0,
            created_at=now,
            updated_at=now,
        )
        with transaction() as session:
            session.add(entity)
        return entity

    def get_section(self, section_id: str, *, session: Session | None = None) -> Optional[Section]:
        if session is not None:
            return session.get(Section, section_id, populate_existing=True)
        with get_session() as own:
            return own.get(Section, section_id)

    def list_sections(self) -> list[Section]:
        with get_session() as session:
            return list(session.execute(select(Section).order_by(Section.created_at)).scalars().all())

    def swap_components(
        self,
        section_id: str,
        expected_version: int,
        components: list[dict],
        *,
        session: Session | None = None,
    ) -> bool:
        """Replace ``components`` only if the row still carries ``expected_version``.

        Returns False when another writer got there first.
        """
        with _unit(session) as s:
            stmt = (
                update(Section)
                .where(Section.id == section_id, Section.version == expected_version)
                .values(
                    components=components,
                    version=expected_version + 1,
                    updated_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )
            return s.execute(stmt).rowcount == 1

    def delete_section(self, section_id: str, *, session: Session | None = None) -> bool:
        with _unit(session) as s:
            return s.execute(delete(Section).where(Section.id == section_id)).rowcount > 0

    # -------------------------- exercises --------------------------
    def get_exercise(self, exercise_id: str, *, session: Session | None = None) -> Optional[Exercise]:
        if session is not None:
            return session.get(Exercise, exercise_id)
        with get_session() as own:
            return own.get(Exercise, exercise_id)

    def list_exercises(self) -> list[Exercise]:
        with get_session() as session:
            return list(session.execute(select(Exercise).order_by(Exercise.date_created)).scalars().all())

    def list_exercises_by_section(self, section_id: str, *, session: Session | None = None) -> list[Exercise]:
        stmt = select(Exercise).where(Exercise.parent_section == section_id).order_by(Exercise.date_created)
        if session is not None:
            return list(session.execute(stmt).scalars().all())
        with get_session() as own:
            return list(own.execute(stmt).scalars().all())

    def insert_exercise(
        self,
        section_id: str,
        *,
        title: str,
        question: str,
        answers: list,
        exercise_id: str | None = None,
        session: Session | None = None,
    ) -> Exercise:
        now = datetime.now(timezone.utc)
        entity = Exercise(
            id=exercise_id or new_id(),
            title=title,
            question=question,
            answers=list(answers or []),
            parent_section=section_id,
            date_created=now,
            date_updated=now,
        )
        with _unit(session) as s:
            s.add(entity)
            s.flush()
        return entity

    def update_exercise_content(self, exercise_id: str, values: dict) -> Optional[Exercise]:
        with transaction() as session:
            stmt = (
                update(Exercise)
                .where(Exercise.id == exercise_id)
                .values(**values, date_updated=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )
            if session.execute(stmt).rowcount == 0:
                return None
        return self.get_exercise(exercise_id)

    def delete_exercise(self, exercise_id: str, *, session: Session | None = None) -> bool:
        with _unit(session) as s:
            return s.execute(delete(Exercise).where(Exercise.id == exercise_id)).rowcount > 0

    def delete_exercises_by_section(self, section_id: str, *, session: Session | None = None) -> int:
        with _unit(session) as s:
            return s.execute(delete(Exercise).where(Exercise.parent_section == section_id)).rowcount

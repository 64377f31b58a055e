"""
Exercise lifecycle bound to a Section's component list.

Creating an exercise appends it to its section, deleting one removes it.
Both sides are written in a single transaction, and the section row is
updated with a version check so concurrent writers cannot exceed
MAX_COMPONENTS or lose each other's entries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

import structlog

from learnapi.core.config import get_settings
from learnapi.core.errors import (
    CapacityError,
    ConcurrentUpdateError,
    ConsistencyWarning,
    NotFoundError,
    ValidationError,
)
from learnapi.core.utils import isoformat
from learnapi.db.models import Exercise, Section
from learnapi.db.session import transaction
from learnapi.domain.components import (
    COMP_TYPE_EXERCISE,
    append_component,
    component_ids,
    has_capacity,
    remove_component,
)
from learnapi.repositories.sql_repository import SQLRepository, new_id

logger = structlog.get_logger(__name__)

CONTENT_FIELDS = ("title", "question", "answers")


class _StaleSection(Exception):
    """The section row changed between read and conditional write."""


@dataclass
class DetachResult:
    exercise_id: str
    deleted: bool
    warning: Optional[ConsistencyWarning] = None

    @property
    def status(self) -> str:
        return "deleted" if self.deleted else "absent"


def exercise_to_dict(entity: Exercise) -> dict:
    return {
        "id": entity.id,
        "title": entity.title or "",
        "question": entity.question or "",
        "answers": list(entity.answers or []),
        "parentSection": entity.parent_section,
        "dateCreated": isoformat(entity.date_created),
        "dateUpdated": isoformat(entity.date_updated),
    }


def _clean_content(fields: Mapping[str, Any]) -> dict:
    """Keep only content fields and check their types."""
    values: dict[str, Any] = {}
    for key in CONTENT_FIELDS:
        if key not in fields:
            continue
        value = fields[key]
        if key == "answers":
            if value is None:
                value = []
            if not isinstance(value, (list, tuple)):
                raise ValidationError("answers must be a list")
            values[key] = list(value)
        else:
            if value is None:
                value = ""
            if not isinstance(value, str):
                raise ValidationError(f"{key} must be a string")
            values[key] = value
    return values


class ExerciseService:
    """Keeps Section.components and Exercise rows consistent."""

    def __init__(self, cas_retries: int | None = None) -> None:
        self.repository = SQLRepository()
        self.cas_retries = cas_retries or get_settings().cas_retries

    # -------------------------------------- lookups --------------------------------------
    def get_exercise(self, exercise_id: str) -> Exercise:
        entity = self.repository.get_exercise(exercise_id)
        if entity is None:
            raise NotFoundError(f"No exercise found with id: {exercise_id}")
        return entity

    def list_exercises(self) -> list[Exercise]:
        return self.repository.list_exercises()

    def list_exercises_for_section(self, section_id: str) -> list[Exercise]:
        """Exercises whose parent is ``section_id``, in the section's display order."""
        exercises = self.repository.list_exercises_by_section(section_id)
        section = self.repository.get_section(section_id)
        if section is None:
            return exercises
        order = {comp_id: index for index, comp_id in enumerate(component_ids(section.components, COMP_TYPE_EXERCISE))}
        return sorted(exercises, key=lambda ex: order.get(ex.id, len(order)))

    # -------------------------------------- mutations --------------------------------------
    def attach_exercise(self, section_id: str, draft: Mapping[str, Any]) -> tuple[Exercise, Section]:
        """Create an exercise under ``section_id`` and append it to the section's components.

        Raises NotFoundError when the section does not exist and CapacityError
        when it is full; in both cases nothing is written.
        """
        content = _clean_content(draft)
        for attempt in range(1, self.cas_retries + 1):
            try:
                with transaction() as session:
                    section = self.repository.get_section(section_id, session=session)
                    if section is None:
                        raise NotFoundError(f"No section found with id: {section_id}")
                    if not has_capacity(section.components):
                        logger.info(
                            "exercise.attach_rejected",
                            section_id=section_id,
                            components=len(section.components or []),
                        )
                        raise CapacityError()
                    # exercise row first: an interrupted attach leaves an orphan, never a dangling ref
                    exercise = self.repository.insert_exercise(
                        section_id,
                        exercise_id=new_id(),
                        title=content.get("title", ""),
                        question=content.get("question", ""),
                        answers=content.get("answers", []),
                        session=session,
                    )
                    components = append_component(section.components, exercise.id, COMP_TYPE_EXERCISE)
                    if not self.repository.swap_components(section_id, section.version, components, session=session):
                        raise _StaleSection(section_id)
            except _StaleSection:
                logger.warning("exercise.attach_conflict", section_id=section_id, attempt=attempt)
                continue
            updated = self.repository.get_section(section_id)
            logger.info(
                "exercise.attached",
                exercise_id=exercise.id,
                section_id=section_id,
                components=len(updated.components or []) if updated else None,
            )
            return exercise, updated
        raise ConcurrentUpdateError(f"Section {section_id} kept changing while attaching an exercise")

    def detach_exercise(self, exercise_id: str) -> DetachResult:
        """Remove the exercise from its section's components, then delete it.

        Deleting an absent exercise is a no-op. A missing parent section does
        not block the delete; it is reported as a warning on the result.
        """
        for attempt in range(1, self.cas_retries + 1):
            warning: Optional[ConsistencyWarning] = None
            try:
                with transaction() as session:
                    exercise = self.repository.get_exercise(exercise_id, session=session)
                    if exercise is None:
                        logger.info("exercise.detach_noop", exercise_id=exercise_id)
                        return DetachResult(exercise_id, deleted=False)
                    section_id = exercise.parent_section
                    section = self.repository.get_section(section_id, session=session)
                    if section is None:
                        warning = ConsistencyWarning.missing_parent(exercise_id, section_id)
                        logger.warning("exercise.detach_inconsistent", exercise_id=exercise_id, section_id=section_id)
                    else:
                        remaining = remove_component(section.components, exercise_id)
                        if len(remaining) == len(section.components or []):
                            logger.warning("exercise.detach_unlisted", exercise_id=exercise_id, section_id=section_id)
                        elif not self.repository.swap_components(
                            section_id, section.version, remaining, session=session
                        ):
                            raise _StaleSection(section_id)
                    self.repository.delete_exercise(exercise_id, session=session)
            except _StaleSection:
                logger.warning("exercise.detach_conflict", exercise_id=exercise_id, attempt=attempt)
                continue
            logger.info("exercise.detached", exercise_id=exercise_id, section_id=section_id)
            return DetachResult(exercise_id, deleted=True, warning=warning)
        raise ConcurrentUpdateError(f"Section kept changing while detaching exercise {exercise_id}")

    def update_exercise(self, exercise_id: str, fields: Mapping[str, Any]) -> Exercise:
        """Update title/question/answers in place; anything else is ignored."""
        values = _clean_content(fields)
        entity = self.repository.update_exercise_content(exercise_id, values)
        if entity is None:
            raise NotFoundError(f"No exercise found with id: {exercise_id}")
        logger.info("exercise.updated", exercise_id=exercise_id, fields=sorted(values))
        return entity

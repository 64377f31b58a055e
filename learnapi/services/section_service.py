"""Section use cases: CRUD, cascading delete and component reconciliation."""

from __future__ import annotations

from dataclasses import asdict, dataclass

import structlog

from learnapi.core.errors import NotFoundError, ValidationError
from learnapi.core.utils import isoformat
from learnapi.db.models import Section
from learnapi.db.session import transaction
from learnapi.domain.components import (
    COMP_TYPE_EXERCISE,
    MAX_COMPONENTS,
    append_component,
    component_ref,
)
from learnapi.repositories.sql_repository import SQLRepository

logger = structlog.get_logger(__name__)


@dataclass
class ReconcileReport:
    sections_checked: int = 0
    dangling_removed: int = 0
    relinked: int = 0
    overflow_deleted: int = 0
    orphans_deleted: int = 0
    conflicts: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def section_to_dict(entity: Section) -> dict:
    return {
        "id": entity.id,
        "title": entity.title or "",
        "description": entity.description or "",
        "components": [dict(entry) for entry in entity.components or []],
        "createdAt": isoformat(entity.created_at),
        "updatedAt": isoformat(entity.updated_at),
    }


class SectionService:
    def __init__(self) -> None:
        self.repository = SQLRepository()

    def create_section(self, title: str | None, description: str | None = None) -> Section:
        if title is not None and not isinstance(title, str):
            raise ValidationError("title must be a string")
        title_value = (title or "").strip()
        if not title_value:
            raise ValidationError("title is required")
        if description is not None and not isinstance(description, str):
            raise ValidationError("description must be a string")
        entity = self.repository.create_section(title_value, (description or "").strip())
        logger.info("section.created", section_id=entity.id)
        return entity

    def get_section(self, section_id: str) -> Section:
        entity = self.repository.get_section(section_id)
        if entity is None:
            raise NotFoundError(f"No section found with id: {section_id}")
        return entity

    def list_sections(self) -> list[Section]:
        return self.repository.list_sections()

    def delete_section(self, section_id: str) -> bool:
        """Delete a section together with every exercise that points at it.

        Returns False when the section did not exist.
        """
        with transaction() as session:
            removed = self.repository.delete_exercises_by_section(section_id, session=session)
            deleted = self.repository.delete_section(section_id, session=session)
        if deleted:
            logger.info("section.deleted", section_id=section_id, exercises_removed=removed)
        elif removed:
            logger.warning("section.orphans_removed", section_id=section_id, exercises_removed=removed)
        return deleted

    def reconcile(self) -> ReconcileReport:
        """Repair drift between Section.components and Exercise rows.

        Dangling component refs are dropped, exercises missing from their
        section's list are appended while there is room (the rest are
        deleted), and exercises whose section is gone are deleted.
        """
        report = ReconcileReport()
        section_ids = set()
        for section in self.repository.list_sections():
            section_ids.add(section.id)
            report.sections_checked += 1
            with transaction() as session:
                current = self.repository.get_section(section.id, session=session)
                if current is None:
                    continue
                exercises = self.repository.list_exercises_by_section(current.id, session=session)
                existing = {ex.id for ex in exercises}
                kept: list[dict] = []
                seen: set[str] = set()
                for entry in current.components or []:
                    comp_id = entry.get("compId")
                    comp_type = entry.get("compType")
                    if comp_id in seen:
                        report.dangling_removed += 1
                        continue
                    if comp_type == COMP_TYPE_EXERCISE and comp_id not in existing:
                        report.dangling_removed += 1
                        continue
                    seen.add(comp_id)
                    kept.append(component_ref(comp_id, comp_type))
                overflow = []
                for exercise in exercises:
                    if exercise.id in seen:
                        continue
                    if len(kept) < MAX_COMPONENTS:
                        kept = append_component(kept, exercise.id, COMP_TYPE_EXERCISE)
                        seen.add(exercise.id)
                        report.relinked += 1
                    else:
                        overflow.append(exercise.id)
                if kept != list(current.components or []):
                    if not self.repository.swap_components(current.id, current.version, kept, session=session):
                        report.conflicts += 1
                        logger.warning("reconcile.conflict", section_id=current.id)
                        session.rollback()
                        continue
                for exercise_id in overflow:
                    self.repository.delete_exercise(exercise_id, session=session)
                    report.overflow_deleted += 1
        for exercise in self.repository.list_exercises():
            if exercise.parent_section not in section_ids and self.repository.get_section(exercise.parent_section) is None:
                self.repository.delete_exercise(exercise.id)
                report.orphans_deleted += 1
        logger.info("reconcile.finished", **report.to_dict())
        return report

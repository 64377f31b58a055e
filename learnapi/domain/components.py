"""Helpers for a Section's ordered component list.

Components are plain dicts ``{"compId": str, "compType": str}``. Functions
here never mutate their input; they return new lists so the result can be
written back with a single conditional update.
"""
from __future__ import annotations

from typing import Iterable, Mapping

from learnapi.core.errors import CapacityError

MAX_COMPONENTS = 10
COMP_TYPE_EXERCISE = "exercise"


def component_ref(comp_id: str, comp_type: str = COMP_TYPE_EXERCISE) -> dict:
    return {"compId": comp_id, "compType": comp_type}


def has_capacity(components: Iterable[Mapping] | None) -> bool:
    return len(list(components or [])) < MAX_COMPONENTS


def contains(components: Iterable[Mapping] | None, comp_id: str) -> bool:
    return any(entry.get("compId") == comp_id for entry in components or [])


def component_ids(components: Iterable[Mapping] | None, comp_type: str | None = None) -> list[str]:
    return [
        entry.get("compId")
        for entry in components or []
        if comp_type is None or entry.get("compType") == comp_type
    ]


def append_component(
    components: Iterable[Mapping] | None,
    comp_id: str,
    comp_type: str = COMP_TYPE_EXERCISE,
) -> list[dict]:
    """Return the list with ``comp_id`` appended at the end.

    Raises CapacityError when the list already holds MAX_COMPONENTS entries.
    Appending an id that is already present returns the list unchanged.
    """
    current = [dict(entry) for entry in components or []]
    if contains(current, comp_id):
        return current
    if len(current) >= MAX_COMPONENTS:
        raise CapacityError()
    current.append(component_ref(comp_id, comp_type))
    return current


def remove_component(components: Iterable[Mapping] | None, comp_id: str) -> list[dict]:
    """Return the list without any entry whose compId matches, order preserved."""
    return [dict(entry) for entry in components or [] if entry.get("compId") != comp_id]

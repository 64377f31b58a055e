from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from learnapi.core.errors import CapacityError, ConcurrentUpdateError, NotFoundError, ValidationError
from learnapi.domain.components import MAX_COMPONENTS, component_ids
from learnapi.repositories.sql_repository import SQLRepository
from learnapi.services.exercise_service import ExerciseService


def _draft(n: int = 1) -> dict:
    return {"title": f"Exercise {n}", "question": f"What is {n} + {n}?", "answers": [str(2 * n), "0"]}


@pytest.fixture()
def section(db_env):
    return SQLRepository().create_section("Arithmetic")


def test_attach_appends_reference_once(section):
    svc = ExerciseService()
    exercise, updated = svc.attach_exercise(section.id, _draft())

    assert exercise.parent_section == section.id
    assert exercise.date_created is not None
    assert exercise.date_created == exercise.date_updated
    assert component_ids(updated.components).count(exercise.id) == 1
    assert updated.components[-1] == {"compId": exercise.id, "compType": "exercise"}
    assert svc.get_exercise(exercise.id).title == "Exercise 1"


def test_attach_preserves_call_order(section):
    svc = ExerciseService()
    ids = [svc.attach_exercise(section.id, _draft(n))[0].id for n in range(5)]

    stored = SQLRepository().get_section(section.id)
    assert component_ids(stored.components) == ids
    assert [ex.id for ex in svc.list_exercises_for_section(section.id)] == ids


def test_attach_rejects_eleventh_exercise(section):
    svc = ExerciseService()
    for n in range(MAX_COMPONENTS):
        svc.attach_exercise(section.id, _draft(n))

    with pytest.raises(CapacityError) as excinfo:
        svc.attach_exercise(section.id, _draft(99))
    assert excinfo.value.code == "E1101"

    repo = SQLRepository()
    assert len(repo.get_section(section.id).components) == MAX_COMPONENTS
    assert len(repo.list_exercises_by_section(section.id)) == MAX_COMPONENTS


def test_attach_to_missing_section(db_env):
    with pytest.raises(NotFoundError):
        ExerciseService().attach_exercise("missing", _draft())
    assert SQLRepository().list_exercises() == []


def test_attach_rejects_bad_answers(section):
    with pytest.raises(ValidationError):
        ExerciseService().attach_exercise(section.id, {"title": "x", "answers": "not-a-list"})
    assert SQLRepository().list_exercises() == []


def test_attach_retries_after_lost_race(section, monkeypatch):
    svc = ExerciseService(cas_retries=3)
    original = svc.repository.swap_components
    calls = {"n": 0}

    def flaky(*args, **kwargs):
        calls["n"] += 1
        if calls["n"] == 1:
            return False
        return original(*args, **kwargs)

    monkeypatch.setattr(svc.repository, "swap_components", flaky)
    exercise, updated = svc.attach_exercise(section.id, _draft())

    assert calls["n"] == 2
    assert component_ids(updated.components) == [exercise.id]
    # the exercise inserted by the losing attempt was rolled back
    assert [ex.id for ex in SQLRepository().list_exercises()] == [exercise.id]


def test_attach_gives_up_when_section_keeps_changing(section, monkeypatch):
    svc = ExerciseService(cas_retries=2)
    monkeypatch.setattr(svc.repository, "swap_components", lambda *a, **kw: False)

    with pytest.raises(ConcurrentUpdateError):
        svc.attach_exercise(section.id, _draft())
    assert SQLRepository().list_exercises() == []


def test_retry_sees_section_filled_by_another_writer(section, monkeypatch):
    svc = ExerciseService(cas_retries=3)
    other = ExerciseService()
    for n in range(MAX_COMPONENTS - 1):
        other.attach_exercise(section.id, _draft(n))

    original_swap = svc.repository.swap_components
    original_get = svc.repository.get_section
    calls = {"swap": 0, "get": 0}

    def losing_swap(*args, **kwargs):
        calls["swap"] += 1
        if calls["swap"] == 1:
            return False
        return original_swap(*args, **kwargs)

    def get_after_other_writer(section_id, *, session=None):
        if session is not None:
            calls["get"] += 1
            if calls["get"] == 2:
                # the competing attach lands between our two attempts
                other.attach_exercise(section_id, _draft(MAX_COMPONENTS))
        return original_get(section_id, session=session)

    monkeypatch.setattr(svc.repository, "swap_components", losing_swap)
    monkeypatch.setattr(svc.repository, "get_section", get_after_other_writer)

    with pytest.raises(CapacityError):
        svc.attach_exercise(section.id, _draft(99))

    assert calls == {"swap": 1, "get": 2}
    repo = SQLRepository()
    stored = repo.get_section(section.id)
    assert len(stored.components) == MAX_COMPONENTS
    assert sorted(component_ids(stored.components)) == sorted(
        ex.id for ex in repo.list_exercises_by_section(section.id)
    )


def test_concurrent_attaches_never_exceed_capacity(section):
    workers = 2 * MAX_COMPONENTS
    barrier = threading.Barrier(workers)
    svc = ExerciseService(cas_retries=workers)

    def attach(n: int) -> str:
        barrier.wait()
        try:
            svc.attach_exercise(section.id, _draft(n))
        except CapacityError:
            return "full"
        return "attached"

    with ThreadPoolExecutor(max_workers=workers) as pool:
        outcomes = list(pool.map(attach, range(workers)))

    assert outcomes.count("attached") == MAX_COMPONENTS
    assert outcomes.count("full") == MAX_COMPONENTS
    repo = SQLRepository()
    stored = repo.get_section(section.id)
    exercises = repo.list_exercises_by_section(section.id)
    assert len(stored.components) == MAX_COMPONENTS
    assert len(exercises) == MAX_COMPONENTS
    assert sorted(component_ids(stored.components)) == sorted(ex.id for ex in exercises)


def test_detach_removes_reference_and_record(section):
    svc = ExerciseService()
    first, _ = svc.attach_exercise(section.id, _draft(1))
    second, _ = svc.attach_exercise(section.id, _draft(2))

    result = svc.detach_exercise(first.id)

    assert result.deleted and result.status == "deleted"
    assert result.warning is None
    stored = SQLRepository().get_section(section.id)
    assert component_ids(stored.components) == [second.id]
    with pytest.raises(NotFoundError):
        svc.get_exercise(first.id)


def test_detach_twice_is_a_noop(section):
    svc = ExerciseService()
    exercise, _ = svc.attach_exercise(section.id, _draft())

    assert svc.detach_exercise(exercise.id).deleted
    again = svc.detach_exercise(exercise.id)
    assert not again.deleted
    assert again.status == "absent"
    assert again.warning is None


def test_detach_with_missing_parent_warns_and_deletes(section):
    svc = ExerciseService()
    repo = SQLRepository()
    exercise, _ = svc.attach_exercise(section.id, _draft())
    repo.delete_section(section.id)

    result = svc.detach_exercise(exercise.id)

    assert result.deleted
    assert result.warning is not None
    assert result.warning.code == "E1104"
    assert result.warning.section_id == section.id
    assert repo.get_exercise(exercise.id) is None


def test_detach_frees_capacity(section):
    svc = ExerciseService()
    ids = [svc.attach_exercise(section.id, _draft(n))[0].id for n in range(MAX_COMPONENTS)]
    svc.detach_exercise(ids[3])

    extra, updated = svc.attach_exercise(section.id, _draft(42))
    assert component_ids(updated.components) == ids[:3] + ids[4:] + [extra.id]


def test_update_changes_content_only(section):
    svc = ExerciseService()
    exercise, before = svc.attach_exercise(section.id, _draft())

    updated = svc.update_exercise(
        exercise.id,
        {"title": "Renamed", "answers": ["a", "b", "c"], "parentSection": "elsewhere", "parent_section": "elsewhere"},
    )

    assert updated.title == "Renamed"
    assert updated.question == exercise.question
    assert updated.answers == ["a", "b", "c"]
    assert updated.parent_section == section.id
    # SQLite hands datetimes back without tzinfo; both sides are UTC
    assert updated.date_updated.replace(tzinfo=None) >= exercise.date_updated.replace(tzinfo=None)
    assert SQLRepository().get_section(section.id).components == before.components


def test_update_missing_exercise(db_env):
    with pytest.raises(NotFoundError):
        ExerciseService().update_exercise("missing", {"title": "x"})

from __future__ import annotations

from fastapi import APIRouter, Response

from learnapi.services.exercise_service import ExerciseService, exercise_to_dict

router = APIRouter(prefix="/api/exercises", tags=["exercises"])
service = ExerciseService()


@router.get("")
def list_exercises():
    return [exercise_to_dict(entity) for entity in service.list_exercises()]


@router.get("/section/{section_id}")
def list_section_exercises(section_id: str):
    return [exercise_to_dict(entity) for entity in service.list_exercises_for_section(section_id)]


@router.get("/{exercise_id}")
def get_exercise(exercise_id: str):
    return exercise_to_dict(service.get_exercise(exercise_id))


@router.put("/{section_id}", status_code=201)
def create_exercise(section_id: str, payload: dict):
    exercise, _section = service.attach_exercise(section_id, payload)
    return exercise_to_dict(exercise)


@router.patch("/{exercise_id}")
def update_exercise(exercise_id: str, payload: dict):
    return exercise_to_dict(service.update_exercise(exercise_id, payload))


@router.delete("/{exercise_id}")
def delete_exercise(exercise_id: str):
    result = service.detach_exercise(exercise_id)
    if not result.deleted:
        return Response(status_code=204)
    body = {"ok": True, "message": "Exercise deleted"}
    if result.warning:
        body["warning"] = result.warning.to_dict()
    return body

from __future__ import annotations

from fastapi import APIRouter, Response

from learnapi.services.user_service import UserService, user_to_dict

router = APIRouter(prefix="/api/users", tags=["users"])
service = UserService()

# request keys -> service keys
_UPDATABLE_FIELDS = {
    "email": "email",
    "firstName": "first_name",
    "lastName": "last_name",
    "points": "points",
}


@router.post("", status_code=201)
def register_user(payload: dict):
    entity = service.register_user(
        payload.get("email"),
        payload.get("password"),
        payload.get("firstName"),
        payload.get("lastName"),
    )
    return user_to_dict(entity)


@router.get("")
def list_users():
    return [user_to_dict(entity) for entity in service.list_users()]


@router.get("/{user_id}")
def get_user(user_id: str):
    return user_to_dict(service.get_user(user_id))


@router.patch("/{user_id}")
def update_user(user_id: str, payload: dict):
    changes = {target: payload[source] for source, target in _UPDATABLE_FIELDS.items() if source in payload}
    return user_to_dict(service.update_user(user_id, changes))


@router.delete("/delete/{user_id}")
def delete_user(user_id: str):
    if not service.delete_user(user_id):
        return Response(status_code=204)
    return {"ok": True, "message": "User deleted"}

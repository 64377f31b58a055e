from __future__ import annotations

from fastapi import APIRouter, Response

from learnapi.services.section_service import SectionService, section_to_dict

router = APIRouter(prefix="/api/sections", tags=["sections"])
service = SectionService()


@router.post("", status_code=201)
def create_section(payload: dict):
    entity = service.create_section(payload.get("title"), payload.get("description"))
    return section_to_dict(entity)


@router.get("")
def list_sections():
    return [section_to_dict(entity) for entity in service.list_sections()]


@router.get("/{section_id}")
def get_section(section_id: str):
    return section_to_dict(service.get_section(section_id))


@router.delete("/{section_id}")
def delete_section(section_id: str):
    if not service.delete_section(section_id):
        return Response(status_code=204)
    return {"ok": True, "message": "Section deleted"}

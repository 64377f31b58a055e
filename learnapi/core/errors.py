"""
Error catalogue and typed service exceptions.

Services raise ServiceError subclasses; the HTTP layer renders them as
{"error": {"code": ..., "message": ...}} with the carried status code.
"""

from __future__ import annotations

from dataclasses import dataclass

ERROR_CODES: dict[str, str] = {
    "E0201": "Email is already registered.",
    "E0206": "Email format is invalid.",
    "E0211": "Name contains invalid characters.",
    "E0601": "Points must be a positive number.",
    "E0602": "Points must be a number.",
    "E0603": "Points exceed the maximum supported total.",
    "E1101": "Section has reached the maximum number of components.",
    "E1104": "Exercise parent section could not be resolved.",
}


def error_payload(code: str, message: str | None = None) -> dict:
    return {"code": code, "message": message or ERROR_CODES.get(code, code)}


class ServiceError(Exception):
    status_code = 400

    def __init__(self, message: str | None = None, code: str = "invalid", status_code: int | None = None):
        self.code = code
        self.message = message or ERROR_CODES.get(code, code)
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": error_payload(self.code, self.message)}


class ValidationError(ServiceError):
    """Bad input shape or range. Raised before any write."""


class InvalidType(ValidationError):
    def __init__(self, message: str | None = None):
        super().__init__(message, code="E0602")


class NonPositiveValue(ValidationError):
    def __init__(self, message: str | None = None):
        super().__init__(message, code="E0601")


class PointsOutOfRange(ValidationError):
    def __init__(self, message: str | None = None):
        super().__init__(message, code="E0603")


class CapacityError(ServiceError):
    """Raised when a Section cannot take another component."""

    def __init__(self, message: str | None = None):
        super().__init__(message, code="E1101")


class NotFoundError(ServiceError):
    status_code = 404

    def __init__(self, message: str | None = None):
        super().__init__(message or "Not found.", code="not_found")


class ConcurrentUpdateError(ServiceError):
    status_code = 409

    def __init__(self, message: str | None = None):
        super().__init__(message or "Resource was modified concurrently, try again.", code="conflict")


@dataclass(frozen=True)
class ConsistencyWarning:
    """Referential drift detected during a mutation that did not block it."""

    code: str
    message: str
    exercise_id: str
    section_id: str | None = None

    @classmethod
    def missing_parent(cls, exercise_id: str, section_id: str | None) -> "ConsistencyWarning":
        return cls("E1104", ERROR_CODES["E1104"], exercise_id, section_id)

    def to_dict(self) -> dict:
        payload = error_payload(self.code, self.message)
        payload["exercise_id"] = self.exercise_id
        payload["section_id"] = self.section_id
        return payload

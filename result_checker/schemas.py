"""Pydantic models for API input/output.

Write payloads only check presence of their required fields; any other
fields are kept as-is and stored verbatim.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from result_checker.errors import InvalidDataError


def _present(value: Any) -> Any:
    # null, false, 0, NaN and "" count as missing; {} and [] do not
    if value is None or (isinstance(value, (str, int, float)) and not value):
        raise ValueError("required field is empty")
    if isinstance(value, float) and math.isnan(value):
        raise ValueError("required field is empty")
    return value


# ═══════════════ WRITE PAYLOADS ═══════════════

class _Payload(BaseModel):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    invalid_message: ClassVar[str] = "Invalid data"

    @classmethod
    def from_body(cls, body: Any):
        """Validate a decoded JSON body, raising InvalidDataError on failure."""
        if not isinstance(body, dict):
            raise InvalidDataError(cls.invalid_message)
        try:
            return cls.model_validate(body)
        except ValidationError as e:
            raise InvalidDataError(cls.invalid_message) from e

    def to_document(self) -> dict[str, Any]:
        return self.model_dump()


class StudentPayload(_Payload):
    invalid_message: ClassVar[str] = "Invalid student data"

    id: str
    name: str

    @field_validator("id", "name", mode="before")
    @classmethod
    def check_required(cls, value: Any) -> Any:
        return _present(value)


class ResultPayload(_Payload):
    invalid_message: ClassVar[str] = "Invalid result data"

    id: str
    subjects: Any

    @field_validator("id", "subjects", mode="before")
    @classmethod
    def check_required(cls, value: Any) -> Any:
        return _present(value)


# ═══════════════ RESPONSES ═══════════════

class CreatedResponse(BaseModel):
    message: str
    id: str


class ErrorResponse(BaseModel):
    error: str


class HealthServices(BaseModel):
    mongodb: str = "connected"
    redis: str = "connected"


class HealthResponse(BaseModel):
    status: Literal["healthy"] = "healthy"
    timestamp: str
    services: HealthServices = HealthServices()


class UnhealthyResponse(BaseModel):
    status: Literal["unhealthy"] = "unhealthy"
    timestamp: str
    error: str


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-01-01T00:00:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

"""Shared service error definitions."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class ServiceError(Exception):
    code: str
    message: str
    status_code: int = 400

    def __str__(self) -> str:  # noqa: D401 override
        return f"{self.code}: {self.message}"


class InvalidIdentifier(ServiceError):
    """Payee identifier is empty after sanitizing or too long to encode."""


class InvalidAmount(ServiceError):
    """Transaction amount is negative or not a finite decimal."""


class InvalidPayload(ServiceError):
    """Submitted payload is not well-formed TLV."""


def err_invalid_identifier(message: str | None = None) -> InvalidIdentifier:
    return InvalidIdentifier(code="ERR_INVALID_IDENTIFIER", message=message or "Invalid payee identifier", status_code=422)


def err_invalid_amount(message: str | None = None) -> InvalidAmount:
    return InvalidAmount(code="ERR_INVALID_AMOUNT", message=message or "Invalid transaction amount", status_code=422)


def err_bad_payload(message: str | None = None) -> InvalidPayload:
    return InvalidPayload(code="ERR_BAD_PAYLOAD", message=message or "Invalid request payload", status_code=400)

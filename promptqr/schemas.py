"""Pydantic schemas for API contracts."""
from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from .config import settings
from .promptpay_encoder import DEFAULT_PHONE_COUNTRY_CODE


class IdentifierKindEnum(str, Enum):
    MOBILE = "MOBILE"
    NATIONAL_ID = "NATIONAL_ID"
    EWALLET = "EWALLET"
    BANK_ACCOUNT = "BANK_ACCOUNT"


class GeneratePayloadRequest(BaseModel):
    identifier: str = Field(min_length=1, max_length=settings.max_identifier_length, description="Mobile number, national/tax ID, e-wallet ID or bank account")
    amount: Decimal | None = Field(default=None, description="Transaction amount in THB; omit or 0 for a static QR")
    phone_country_code: int = Field(default=DEFAULT_PHONE_COUNTRY_CODE, ge=1, le=999)


class GeneratePayloadResponse(BaseModel):
    payload: str
    crc: str
    identifier_kind: IdentifierKindEnum
    point_of_initiation: str


class VerifyPayloadRequest(BaseModel):
    payload: str = Field(min_length=1, max_length=512)


class VerifyPayloadResponse(BaseModel):
    valid: bool
    expected_crc: str | None
    actual_crc: str | None
    fields: dict[str, str]
    merchant_account: dict[str, str]

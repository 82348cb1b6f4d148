"""PromptPay payload generation service."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from ..monitoring import record_payload_generated
from ..promptpay_encoder import (
    DEFAULT_PHONE_COUNTRY_CODE,
    EncodedPayload,
    PaymentRequest,
    build_payload,
    normalize_amount,
)

logger = logging.getLogger("promptqr.services")


@dataclass(slots=True)
class GenerateResult:
    encoded: EncodedPayload
    amount: Decimal | None


class PayloadGenerator:
    def __init__(self, default_phone_country_code: int = DEFAULT_PHONE_COUNTRY_CODE):
        self.default_phone_country_code = default_phone_country_code

    def create_payload(
        self,
        *,
        identifier: str,
        amount: Decimal | int | float | str | None = None,
        phone_country_code: int | None = None,
    ) -> GenerateResult:
        normalized = normalize_amount(amount)
        request = PaymentRequest(
            identifier=identifier,
            amount=normalized,
            phone_country_code=phone_country_code or self.default_phone_country_code,
        )
        encoded = build_payload(request)
        record_payload_generated(encoded.kind.value, encoded.initiation.value)
        logger.info(
            "payload generated",
            extra={"identifier_kind": encoded.kind.value, "initiation": encoded.initiation.value, "crc": encoded.crc},
        )
        return GenerateResult(encoded=encoded, amount=normalized)

"""Scanned payload verification service."""
from __future__ import annotations

import logging

from ..monitoring import record_payload_verified
from ..promptpay_encoder import PayloadVerification, verify_payload

logger = logging.getLogger("promptqr.services")


class PayloadVerifier:
    def verify(self, payload: str) -> PayloadVerification:
        result = verify_payload(payload.strip())
        record_payload_verified(result.valid)
        if not result.valid:
            logger.warning(
                "payload checksum mismatch",
                extra={"expected_crc": result.expected_crc, "actual_crc": result.actual_crc},
            )
        return result

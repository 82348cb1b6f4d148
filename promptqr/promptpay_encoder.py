"""PromptPay (Thai QR) merchant-presented payload encoder."""
from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Final

from .crc import crc16_ccitt
from .services.errors import err_bad_payload, err_invalid_amount, err_invalid_identifier
from .tlv import TLVError, TLVItem, encode_field, parse_tlv

logger = logging.getLogger("promptqr.encoder")

APPLICATION_ID: Final = "A000000677010111"
COUNTRY_CODE: Final = "TH"
CURRENCY_CODE: Final = 764
DEFAULT_PHONE_COUNTRY_CODE: Final = 66

CRC_PLACEHOLDER: Final = "6304"
MOBILE_WIDTH: Final = 13
NATIONAL_ID_WIDTH: Final = 13
EWALLET_WIDTH: Final = 15

_NON_DIGITS = re.compile(r"[^0-9]+")
_CENTS = Decimal("0.01")


class IdentifierKind(str, enum.Enum):
    MOBILE = "MOBILE"
    NATIONAL_ID = "NATIONAL_ID"
    EWALLET = "EWALLET"
    BANK_ACCOUNT = "BANK_ACCOUNT"


class InitiationMethod(str, enum.Enum):
    STATIC = "11"
    DYNAMIC = "12"


@dataclass(frozen=True)
class PaymentRequest:
    identifier: str
    amount: Decimal | None = None
    phone_country_code: int = DEFAULT_PHONE_COUNTRY_CODE
    country_code: str = field(default=COUNTRY_CODE, init=False)
    currency_code: int = field(default=CURRENCY_CODE, init=False)
    application_id: str = field(default=APPLICATION_ID, init=False)


@dataclass(frozen=True)
class MobileNumber:
    country_code: str
    subscriber: str


@dataclass(frozen=True)
class ClassifiedIdentifier:
    kind: IdentifierKind
    digits: str
    mobile: MobileNumber | None = None


@dataclass(frozen=True)
class EncodedPayload:
    payload: str
    crc: str
    kind: IdentifierKind
    initiation: InitiationMethod


@dataclass(frozen=True)
class PayloadVerification:
    valid: bool
    expected_crc: str | None
    actual_crc: str | None
    fields: dict[str, str]
    merchant_account: dict[str, str]


def sanitize_identifier(identifier: str) -> str:
    """Strip every non-digit character from a payee identifier."""

    return _NON_DIGITS.sub("", identifier.strip())


def parse_mobile(digits: str) -> MobileNumber | None:
    """Split ``digits`` into calling code and subscriber number.

    Accepted shape: up to two leading digits 1-9 (calling code), an optional
    filler ``0``, then 9 or 10 subscriber digits. Longer calling codes are
    tried first, and the filler zero is consumed before it is skipped.
    """

    leading = 0
    while leading < min(2, len(digits)) and digits[leading] in "123456789":
        leading += 1

    for prefix_len in range(leading, -1, -1):
        rest = digits[prefix_len:]
        candidates = (rest[1:], rest) if rest.startswith("0") else (rest,)
        for subscriber in candidates:
            if len(subscriber) in (9, 10):
                return MobileNumber(country_code=digits[:prefix_len], subscriber=subscriber)
    return None


def classify_identifier(identifier: str) -> ClassifiedIdentifier:
    """Sanitize ``identifier`` and decide which PromptPay sub-field carries it."""

    digits = sanitize_identifier(identifier)
    if not digits:
        raise err_invalid_identifier("Identifier contains no digits")

    mobile = parse_mobile(digits)
    if mobile is not None:
        return ClassifiedIdentifier(kind=IdentifierKind.MOBILE, digits=digits, mobile=mobile)
    if len(digits) <= 13:
        return ClassifiedIdentifier(kind=IdentifierKind.NATIONAL_ID, digits=digits)
    if len(digits) <= 15:
        return ClassifiedIdentifier(kind=IdentifierKind.EWALLET, digits=digits)
    return ClassifiedIdentifier(kind=IdentifierKind.BANK_ACCOUNT, digits=digits)


def normalize_amount(amount: Decimal | int | float | str | None) -> Decimal | None:
    """Coerce ``amount`` into a finite, non-negative ``Decimal``."""

    if amount is None:
        return None
    if isinstance(amount, bool):
        raise err_invalid_amount("Amount must be a number")
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except InvalidOperation as exc:
        raise err_invalid_amount(f"Amount {amount!r} is not a decimal number") from exc
    if not value.is_finite():
        raise err_invalid_amount("Amount must be finite")
    if value < 0:
        raise err_invalid_amount("Amount must not be negative")
    return value


def format_amount(amount: Decimal) -> str:
    """Render with exactly two decimals, ``.`` separator and no grouping."""

    return f"{amount.quantize(_CENTS, rounding=ROUND_HALF_UP):f}"


def _identifier_field(classified: ClassifiedIdentifier, phone_country_code: int) -> str:
    if classified.kind is IdentifierKind.MOBILE:
        mobile = classified.mobile
        calling_code = mobile.country_code or str(phone_country_code)
        # Width applies to the concatenated number, not to each part.
        return encode_field("01", f"{calling_code}{mobile.subscriber}", MOBILE_WIDTH)
    if classified.kind is IdentifierKind.NATIONAL_ID:
        return encode_field("02", classified.digits, NATIONAL_ID_WIDTH)
    if classified.kind is IdentifierKind.EWALLET:
        return encode_field("02", classified.digits, EWALLET_WIDTH)
    return encode_field("04", classified.digits)


def build_payload(request: PaymentRequest) -> EncodedPayload:
    """Assemble the full EMV payload for ``request`` and append its CRC."""

    amount = normalize_amount(request.amount)
    if request.phone_country_code < 0:
        raise err_invalid_identifier("Phone country code must not be negative")
    classified = classify_identifier(request.identifier)
    dynamic = amount is not None and amount > 0
    initiation = InitiationMethod.DYNAMIC if dynamic else InitiationMethod.STATIC

    try:
        merchant_account = encode_field("00", request.application_id) + _identifier_field(
            classified, request.phone_country_code
        )
        parts = [
            encode_field("00", "1", 2),
            encode_field("01", initiation.value),
            encode_field("29", merchant_account),
            encode_field("58", request.country_code),
            encode_field("53", str(request.currency_code)),
        ]
    except TLVError as exc:
        raise err_invalid_identifier(str(exc)) from exc
    if dynamic:
        try:
            parts.append(encode_field("54", format_amount(amount)))
        except (TLVError, InvalidOperation) as exc:
            raise err_invalid_amount(f"Amount cannot be encoded: {exc}") from exc

    crc_input = "".join(parts) + CRC_PLACEHOLDER
    crc = crc16_ccitt(crc_input)
    logger.debug(
        "promptpay payload built",
        extra={"identifier_kind": classified.kind.value, "initiation": initiation.value},
    )
    return EncodedPayload(payload=f"{crc_input}{crc}", crc=crc, kind=classified.kind, initiation=initiation)


def generate_payload(
    identifier: str,
    amount: Decimal | int | float | str | None = None,
    phone_country_code: int = DEFAULT_PHONE_COUNTRY_CODE,
) -> str:
    """Return the PromptPay payload string for ``identifier`` and optional ``amount``."""

    request = PaymentRequest(
        identifier=identifier,
        amount=normalize_amount(amount),
        phone_country_code=phone_country_code,
    )
    return build_payload(request).payload


def verify_payload(payload: str) -> PayloadVerification:
    """Parse ``payload`` and check its trailing CRC against the preceding characters."""

    if not payload.isascii():
        raise err_bad_payload("Payload must be ASCII")
    try:
        items = list(parse_tlv(payload))
    except TLVError as exc:
        raise err_bad_payload(str(exc)) from exc

    fields = {item.tag: item.value for item in items}
    merchant_account: dict[str, str] = {}
    if "29" in fields:
        try:
            merchant_account = {item.tag: item.value for item in parse_tlv(fields["29"])}
        except TLVError as exc:
            raise err_bad_payload(f"Merchant account information: {exc}") from exc

    last = items[-1] if items else None
    if last is None or last.tag != "63" or len(last.value) != 4:
        return PayloadVerification(
            valid=False,
            expected_crc=None,
            actual_crc=None,
            fields=fields,
            merchant_account=merchant_account,
        )

    expected = crc16_ccitt(payload[:-4])
    actual = last.value.upper()
    return PayloadVerification(
        valid=expected == actual,
        expected_crc=expected,
        actual_crc=last.value,
        fields=fields,
        merchant_account=merchant_account,
    )

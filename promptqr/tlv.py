"""Utility helpers to build and parse EMV-style TLV payloads."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

MAX_VALUE_LENGTH = 99


class TLVError(ValueError):
    """Raised when a TLV field cannot be encoded or parsed."""


class TLVLengthError(TLVError):
    """Raised when a TLV value does not fit the 2-digit length marker."""


@dataclass(frozen=True)
class TLVItem:
    tag: str
    value: str

    def serialize(self) -> str:
        if len(self.tag) != 2:
            raise TLVError(f"Tag must be 2 characters, got {self.tag!r}")
        if len(self.value) > MAX_VALUE_LENGTH:
            raise TLVLengthError(f"Tag {self.tag} value is {len(self.value)} characters, maximum is {MAX_VALUE_LENGTH}")
        length = f"{len(self.value):02d}"
        return f"{self.tag}{length}{self.value}"


def pad_numeric(raw_data: str | int, width: int) -> str:
    """Render ``raw_data`` as a non-negative integer zero-padded to ``width`` digits."""

    try:
        number = int(str(raw_data).strip())
    except ValueError as exc:
        raise TLVError(f"Fixed-width data must be numeric, got {raw_data!r}") from exc
    if number < 0:
        raise TLVError("Fixed-width data must be non-negative")
    return f"{number:0{width}d}"


def encode_field(tag: str, raw_data: str | int, fixed_width: int | None = None) -> str:
    """Format one TLV field, optionally zero-padding numeric data to ``fixed_width``."""

    value = pad_numeric(raw_data, fixed_width) if fixed_width else str(raw_data)
    return TLVItem(tag=tag, value=value).serialize()


def build_tlv(items: Iterable[TLVItem]) -> str:
    """Serialize iterable of TLV items into EMV string."""

    return "".join(item.serialize() for item in items)


def parse_tlv(payload: str) -> Iterator[TLVItem]:
    """Parse TLV payload string into TLV items."""

    idx = 0
    total = len(payload)
    while idx + 4 <= total:
        tag = payload[idx : idx + 2]
        length_text = payload[idx + 2 : idx + 4]
        if not length_text.isdigit():
            raise TLVError(f"Invalid length {length_text!r} for tag {tag}")
        value_start = idx + 4
        value_end = value_start + int(length_text)
        if value_end > total:
            raise TLVError("Invalid TLV length exceeds payload")
        yield TLVItem(tag=tag, value=payload[value_start:value_end])
        idx = value_end
    if idx != total:
        raise TLVError("Dangling TLV data detected")

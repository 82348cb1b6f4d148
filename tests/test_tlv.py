import pytest

from promptqr.tlv import TLVError, TLVItem, TLVLengthError, build_tlv, encode_field, parse_tlv


def test_encode_field_plain_value():
    assert encode_field("58", "TH") == "5802TH"
    assert encode_field("54", "100.00") == "5406100.00"


def test_encode_field_fixed_width_pads_numeric():
    assert encode_field("00", "1", 2) == "000201"
    assert encode_field("02", "123", 13) == "02130000000000123"
    assert encode_field("01", 66812345678, 13) == "01130066812345678"


def test_fixed_width_never_truncates():
    assert encode_field("02", "123456", 4) == "0206123456"


def test_fixed_width_rejects_non_numeric():
    with pytest.raises(TLVError):
        encode_field("02", "12a4", 13)
    with pytest.raises(TLVError):
        encode_field("02", "-5", 13)


def test_length_limit():
    assert encode_field("04", "9" * 99).startswith("0499")
    with pytest.raises(TLVLengthError):
        encode_field("04", "9" * 100)


def test_parse_round_trip_of_nested_field():
    inner = build_tlv([TLVItem("00", "A000000677010111"), TLVItem("01", "0066812345678")])
    payload = encode_field("00", "01") + encode_field("29", inner)
    items = list(parse_tlv(payload))
    assert items == [TLVItem("00", "01"), TLVItem("29", inner)]
    assert [item.tag for item in parse_tlv(items[1].value)] == ["00", "01"]


@pytest.mark.parametrize("payload", ["0005abc", "00ZZab", "000201X"])
def test_parse_rejects_malformed(payload):
    with pytest.raises(TLVError):
        list(parse_tlv(payload))

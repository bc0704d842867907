"""Tests for KNX DPT codec decode behavior."""

from __future__ import annotations

import math
import sys

import pytest

from knxbridge.dpt.codec import (
    _REGISTRY,
    MID_SCALE,
    DPTCodec,
    decode_bit,
    decode_color_channel,
    decode_dim,
    decode_float16,
    decode_mode,
    decode_scene_number,
    decode_unsigned_scaled,
    get_dpt_info,
    ldexp,
)

SMALLEST_SUBNORMAL = 5e-324


# ---------------------------------------------------------------------------
# DPT 5.001 — scaled byte / dimmer
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("decoder", [decode_unsigned_scaled, decode_dim])
def test_scaled_byte_boundaries(decoder):
    assert decoder(bytes([0])) == 0.0
    assert decoder(bytes([128])) == 128 / 255
    assert decoder(bytes([255])) == 1.0


def test_scaled_byte_covers_full_range_monotonically():
    values = [decode_unsigned_scaled(bytes([b])) for b in range(256)]
    assert values == [b / 255 for b in range(256)]
    assert values == sorted(values)


@pytest.mark.parametrize("decoder", [decode_unsigned_scaled, decode_dim])
def test_scaled_byte_empty_payload_defaults(decoder):
    assert decoder(b"") == MID_SCALE == 128 / 255
    assert decoder(b"", 0) == 0
    assert decoder(b"", 0.25) == 0.25
    assert decoder(None) == MID_SCALE


def test_scaled_byte_ignores_trailing_bytes():
    assert decode_unsigned_scaled(bytes([51, 0xFF, 0x00])) == 51 / 255


# ---------------------------------------------------------------------------
# DPT 1.x — bit
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "payload,expected",
    [
        (b"\x00", False),
        (b"\x01", True),
        (b"\x02", False),
        (b"\x03", True),
        (b"\xff", True),
    ],
)
def test_bit_reads_least_significant_bit(payload: bytes, expected: bool):
    assert decode_bit(payload) is expected


def test_bit_empty_payload_defaults():
    assert decode_bit(b"") is True
    assert decode_bit(b"", 0) is False
    assert decode_bit(b"", 1) is True
    assert decode_bit(None) is True


# ---------------------------------------------------------------------------
# Raw byte passthrough — colour channel, scene, HVAC mode
# ---------------------------------------------------------------------------


def test_color_channel_passthrough():
    assert decode_color_channel(bytes([0])) == 0
    assert decode_color_channel(bytes([128])) == 128
    assert decode_color_channel(bytes([255])) == 255


def test_color_channel_empty_payload_defaults():
    assert decode_color_channel(b"") == 0
    assert decode_color_channel(b"", 100) == 100
    assert decode_color_channel(b"", 0) == 0


def test_scene_number_passthrough():
    assert decode_scene_number(bytes([0])) == 0
    assert decode_scene_number(bytes([5])) == 5
    assert decode_scene_number(bytes([200])) == 200
    assert decode_scene_number(b"") == 0


@pytest.mark.parametrize("mode", [0, 1, 2, 3, 4])
def test_hvac_mode_passthrough(mode: int):
    assert decode_mode(bytes([mode])) == mode


def test_hvac_mode_empty_payload_defaults():
    assert decode_mode(b"") == 0
    assert decode_mode(b"", 1) == 1


def test_decoders_accept_byte_sequences():
    assert decode_mode([3]) == 3
    assert decode_mode(bytearray([2])) == 2
    assert decode_color_channel(memoryview(b"\x40")) == 64
    assert decode_float16([0x0C, 0xE2]) == pytest.approx(25.0)


# ---------------------------------------------------------------------------
# DPT 9.x — 2-byte float
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "payload,expected",
    [
        (bytes([0x0C, 0xE2]), 25.0),
        (bytes([0x87, 0xC4]), -0.6),
        (bytes([0x00, 0x00]), 0.0),
        (bytes([0x0C, 0x1A]), 21.0),
        (bytes([0x0C, 0x4C]), 22.0),
        (bytes([0x00, 0x01]), 0.01),
        (bytes([0x87, 0xFF]), -0.01),
        (bytes([0x80, 0x00]), -20.48),
        (bytes([0x07, 0xFF]), 20.47),
    ],
)
def test_float16_known_values(payload: bytes, expected: float):
    assert decode_float16(payload) == pytest.approx(expected, abs=1e-9)


def test_float16_largest_exponent():
    # SEEEEMMM = 0 1111 111, mantissa 0x7FF → 0.01 * 2047 * 2^15
    assert decode_float16(bytes([0x7F, 0xFF])) == pytest.approx(670760.96)
    # Most negative: mantissa -2048, exponent 15
    assert decode_float16(bytes([0xF8, 0x00])) == pytest.approx(-671088.64)


@pytest.mark.parametrize("payload", [b"", bytes([0x0C]), None])
def test_float16_short_payload_is_absent(payload):
    assert decode_float16(payload) is None


def test_float16_does_not_modify_payload():
    payload = bytearray([0x87, 0xC4])
    decode_float16(payload)
    assert payload == bytearray([0x87, 0xC4])


def test_decoders_are_deterministic():
    payload = bytes([0x0C, 0xE2])
    assert {decode_float16(payload) for _ in range(10)} == {decode_float16(payload)}
    assert {decode_unsigned_scaled(payload) for _ in range(10)} == {12 / 255}


# ---------------------------------------------------------------------------
# ldexp
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "mantissa,exponent,expected",
    [
        (1, 0, 1),
        (1, 1, 2),
        (1, 2, 4),
        (2, 3, 16),
        (-1, 2, -4),
        (3, -1, 1.5),
        (0.25, 10, 256),
        (0, 5000, 0),
    ],
)
def test_ldexp_values(mantissa, exponent, expected):
    assert ldexp(mantissa, exponent) == expected


def test_ldexp_overflow_saturates():
    result = ldexp(1, 1024)
    assert result > 0
    assert result == sys.float_info.max
    assert ldexp(-1, 1024) == -sys.float_info.max
    assert ldexp(1.5, 10**6) == sys.float_info.max


def test_ldexp_underflow_degrades_to_zero():
    result = ldexp(1, -1075)
    assert 0.0 <= result < SMALLEST_SUBNORMAL
    assert ldexp(1, -1074) == SMALLEST_SUBNORMAL
    assert ldexp(-1, -10**6) == 0.0


def test_ldexp_split_exponents_stay_exact():
    # Exponents beyond the double range cancel out against the mantissa
    assert ldexp(2.0**-100, 1100) == 2.0**1000
    assert ldexp(2.0**100, -1100) == 2.0**-1000


def test_ldexp_non_finite_exponent():
    assert math.isnan(ldexp(1, float("nan")))
    assert ldexp(1, float("inf")) == sys.float_info.max
    assert ldexp(-2.5, float("inf")) == -sys.float_info.max

    neg = ldexp(-1, float("-inf"))
    assert neg == 0.0
    assert math.copysign(1.0, neg) == -1.0
    assert ldexp(3, float("-inf")) == 0.0
    assert ldexp(0.0, float("inf")) == 0.0


@pytest.mark.parametrize(
    "mantissa,exponent,expected",
    [
        (1, 0.5, math.sqrt(2)),
        (1, 2.5, 4 * math.sqrt(2)),
        (1, 2.7, 2**2.7),
        (3, -0.5, 3 / math.sqrt(2)),
        (-1, 1.0, -2.0),
    ],
)
def test_ldexp_fractional_exponent(mantissa, exponent, expected):
    assert ldexp(mantissa, exponent) == pytest.approx(expected)


def test_ldexp_fractional_exponent_near_limits():
    assert ldexp(sys.float_info.max, -0.5) == pytest.approx(sys.float_info.max / math.sqrt(2))
    assert ldexp(1, 1023.5) == sys.float_info.max


# ---------------------------------------------------------------------------
# Registry dispatch
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "dpt_id,payload,expected",
    [
        ("1.001", b"\x01", True),
        ("5.001", b"\xff", 1.0),
        ("5", b"\x80", 128),
        ("9.001", b"\x0c\xe2", 25.0),
        ("DPT9.1", b"\x0c\xe2", 25.0),
        ("9.005", b"\x0c\xe2", 25.0),
        ("17.001", b"\x05", 5),
        ("20.102", b"\x03", 3),
        ("DPST-20-102", b"\x01", 1),
    ],
)
def test_decode_by_dpt_id(dpt_id: str, payload: bytes, expected):
    decoded = DPTCodec.decode(dpt_id, payload)
    if isinstance(expected, float):
        assert decoded == pytest.approx(expected)
    else:
        assert decoded == expected


def test_decode_none_payload_returns_default():
    """Decoding with None payload should return a safe default (not crash)."""
    assert DPTCodec.decode("1.001", None) is True
    assert DPTCodec.decode("9.001", None) is None


def test_unknown_dpt_id_raises():
    with pytest.raises(ValueError):
        DPTCodec.decode("99.999", b"\x00")
    with pytest.raises(ValueError):
        DPTCodec.decode("not-a-dpt", b"\x00")


def test_dpt_registry_entries_have_decoders():
    for dpt_id, entry in _REGISTRY.items():
        decoder, info = entry
        assert callable(decoder)
        assert info is not None


def test_dpt_info_lookup():
    info = get_dpt_info("DPT9.1")
    assert info["id"] == "9.001"
    assert info["unit"] == "°C"
    assert info["encoding_size"] == 2
    assert get_dpt_info("14.056") is None
    assert DPTCodec.is_supported("20.102")
    assert not DPTCodec.is_supported("14.056")


def test_list_dpts_covers_registry():
    ids = [entry["id"] for entry in DPTCodec.list_dpts()]
    assert "9.001" in ids
    assert "20.102" in ids
    assert len(ids) == len(_REGISTRY)

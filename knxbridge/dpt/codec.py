"""KNX Datapoint Type (DPT) codec — decode direction for thermostat, dimmer and scene values.

Each DPT defines how raw bytes on the KNX bus represent real-world values.
This module turns telegram payloads into the normalized values the
platform's capabilities expect, plus a small registry with metadata
(unit, range, description) for dispatch by DPT id.

Decoders never raise on payload contents. A payload shorter than the DPT
width resolves to the decoder's default, except DPT 9 which returns None
so that a missing temperature is never mistaken for 0 °C.

Usage:
    from knxbridge.dpt import decode, decode_float16, get_dpt_info

    decode_float16(b'\\x0c\\xe2')         # → 25.0
    decode("DPT9.1", b'\\x0c\\xe2')       # → 25.0
    info = get_dpt_info("9.001")          # → {"name": "Temperature", "unit": "°C", ...}
"""

import math
import sys
from typing import Any, Callable, Optional

from .tags import parse_type_tag

# Fallback for scaled 8-bit values when the caller gives no default
MID_SCALE = 128 / 255

# IEEE-754 double limits used by ldexp
_MAX_EXP = 1023
_MIN_SUBNORMAL_EXP = -1074


class DPTInfo:
    """Metadata for a DPT."""

    __slots__ = ("id", "name", "unit", "min_val", "max_val", "encoding_size")

    def __init__(
        self,
        id: str,
        name: str,
        unit: str = "",
        min_val: Any = None,
        max_val: Any = None,
        encoding_size: int = 1,
    ):
        self.id = id
        self.name = name
        self.unit = unit
        self.min_val = min_val
        self.max_val = max_val
        self.encoding_size = encoding_size

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "unit": self.unit,
            "min": self.min_val,
            "max": self.max_val,
            "encoding_size": self.encoding_size,
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _first_byte(data) -> Optional[int]:
    """Return byte 0 of a payload, or None when there is nothing to read."""
    if data is None or len(data) == 0:
        return None
    return data[0] & 0xFF


def ldexp(mantissa: float, exponent: float) -> float:
    """Return mantissa × 2^exponent without raising on extreme exponents.

    The scale factor is applied in steps whose powers of two stay inside
    the double range, so 2^1024 is never formed and 2^-1075 never collapses
    to zero before the mantissa is applied. Overflow saturates to
    ±sys.float_info.max; underflow passes through the subnormal range
    down to a signed zero.

    Non-integral exponents are split into floor and fraction; the fraction
    is applied last as 2^frac, so ldexp(1, 0.5) == sqrt(2). A NaN exponent
    gives NaN, +inf saturates like overflow and -inf gives a signed zero.
    """
    mantissa = float(mantissa)
    frac = 0.0
    if not isinstance(exponent, int):
        exponent = float(exponent)
        if math.isnan(exponent):
            return math.nan
        if mantissa == 0.0 or not math.isfinite(mantissa):
            return mantissa
        if math.isinf(exponent):
            limit = sys.float_info.max if exponent > 0 else 0.0
            return math.copysign(limit, mantissa)
        whole = math.floor(exponent)
        frac = exponent - whole
        exponent = whole
    if mantissa == 0.0 or not math.isfinite(mantissa):
        return mantissa

    result = mantissa
    while exponent > _MAX_EXP:
        result *= 2.0**_MAX_EXP
        exponent -= _MAX_EXP
        if math.isinf(result):
            break
    while exponent < _MIN_SUBNORMAL_EXP:
        result *= 2.0**_MIN_SUBNORMAL_EXP
        exponent -= _MIN_SUBNORMAL_EXP
        if result == 0.0:
            break

    if math.isfinite(result) and result != 0.0:
        result *= 2.0**exponent
        if frac:
            result *= 2.0**frac

    if math.isinf(result):
        return math.copysign(sys.float_info.max, mantissa)
    return result


# ---------------------------------------------------------------------------
# Decode functions
# ---------------------------------------------------------------------------


def decode_bit(data, default: Optional[int] = None) -> bool:
    """DPT 1.x — Boolean from the least significant bit of byte 0."""
    b = _first_byte(data)
    if b is None:
        return bool(1 if default is None else default)
    return bool(b & 0x01)


def decode_unsigned_scaled(data, default: Optional[float] = None) -> float:
    """DPT 5.001 — Unsigned 8-bit scaled to a 0–1 fraction.

    With no default an empty payload reads as mid-scale (128/255). An
    explicit default is returned as given, so ``default=0`` yields 0.
    """
    b = _first_byte(data)
    if b is None:
        return MID_SCALE if default is None else default
    return b / 255


def decode_dim(data, default: Optional[float] = None) -> float:
    """DPT 5.001 — Dimmer level, same wire format as decode_unsigned_scaled."""
    return decode_unsigned_scaled(data, default)


def decode_color_channel(data, default: Optional[int] = None) -> int:
    """DPT 5.x — Raw colour channel 0–255."""
    b = _first_byte(data)
    if b is None:
        return 0 if default is None else default
    return b


def decode_scene_number(data) -> int:
    """DPT 17.x — Scene number, 0 when the payload is empty."""
    b = _first_byte(data)
    return 0 if b is None else b


def decode_mode(data, default: Optional[int] = None) -> int:
    """DPT 20.102 — HVAC mode (0 Auto, 1 Comfort, 2 Standby, 3 Economy, 4 Protection)."""
    b = _first_byte(data)
    if b is None:
        return 0 if default is None else default
    return b


def decode_float16(data) -> Optional[float]:
    """DPT 9.x — 2-byte float.

    Format: SEEEEMMM MMMMMMMM
      S = sign, set when the 11-bit mantissa is negative
      E = exponent (4-bit unsigned)
      M = mantissa (11-bit, two's complement)
      Value = 0.01 * M * 2^E

    Returns None for payloads shorter than two bytes.
    """
    if data is None or len(data) < 2:
        return None

    high, low = data[0] & 0xFF, data[1] & 0xFF
    sign = (high >> 7) & 0x01
    exponent = (high >> 3) & 0x0F
    mantissa = ((high & 0x07) << 8) | low

    if sign:
        # Two's complement over the 11-bit field
        mantissa -= 2048

    return ldexp(0.01 * mantissa, exponent)


# ---------------------------------------------------------------------------
# DPT Registry
# ---------------------------------------------------------------------------

# (decoder, DPTInfo)
_REGISTRY: dict[str, tuple[Callable, DPTInfo]] = {}


def _register(dpt_id: str, decoder: Callable, info: DPTInfo):
    _REGISTRY[dpt_id] = (decoder, info)
    # Also register the main type (e.g., "1" for "1.001")
    main_type = dpt_id.split(".")[0]
    if main_type not in _REGISTRY:
        _REGISTRY[main_type] = (decoder, info)


# DPT 1.x — Boolean
_register("1", decode_bit, DPTInfo("1", "Boolean", "", False, True, 1))
_register("1.001", decode_bit, DPTInfo("1.001", "Switch", "", False, True, 1))
_register("1.002", decode_bit, DPTInfo("1.002", "Boolean", "", False, True, 1))
_register("1.003", decode_bit, DPTInfo("1.003", "Enable", "", False, True, 1))

# DPT 5.x — Unsigned 8-bit
_register("5", decode_color_channel, DPTInfo("5", "Unsigned 8-bit", "", 0, 255, 1))
_register(
    "5.001",
    decode_unsigned_scaled,
    DPTInfo("5.001", "Scaling", "", 0.0, 1.0, 1),
)
_register(
    "5.004",
    decode_color_channel,
    DPTInfo("5.004", "Percent (0–255)", "%", 0, 255, 1),
)
_register(
    "5.010",
    decode_color_channel,
    DPTInfo("5.010", "Counter Pulses", "pulses", 0, 255, 1),
)

# DPT 9.x — 2-byte float
_register(
    "9",
    decode_float16,
    DPTInfo("9", "2-byte Float", "", -671088.64, 670760.96, 2),
)
_register(
    "9.001",
    decode_float16,
    DPTInfo("9.001", "Temperature", "°C", -273, 670760, 2),
)
_register(
    "9.002",
    decode_float16,
    DPTInfo("9.002", "Temperature Diff", "K", -670760, 670760, 2),
)
_register(
    "9.007", decode_float16, DPTInfo("9.007", "Humidity", "%", 0, 670760, 2)
)

# DPT 17.x — Scene Number
_register("17", decode_scene_number, DPTInfo("17", "Scene Number", "", 0, 255, 1))
_register(
    "17.001",
    decode_scene_number,
    DPTInfo("17.001", "Scene Number", "", 0, 255, 1),
)

# DPT 20.x — HVAC Mode
_register("20", decode_mode, DPTInfo("20", "HVAC Mode", "", 0, 255, 1))
_register("20.102", decode_mode, DPTInfo("20.102", "HVAC Mode", "", 0, 4, 1))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _lookup(dpt_id: str) -> Optional[tuple[Callable, DPTInfo]]:
    try:
        key = parse_type_tag(dpt_id)
    except ValueError:
        return None
    entry = _REGISTRY.get(key)
    if not entry:
        # Try main type fallback
        entry = _REGISTRY.get(key.split(".")[0])
    return entry


class DPTCodec:
    """Central access point for DPT decoding."""

    @staticmethod
    def decode(dpt_id: str, data) -> Any:
        """Decode KNX bytes to a Python value for the given DPT id or type tag."""
        entry = _lookup(dpt_id)
        if not entry:
            raise ValueError(f"Unknown DPT: {dpt_id}")
        return entry[0](data)

    @staticmethod
    def get_info(dpt_id: str) -> Optional[DPTInfo]:
        """Get metadata for a DPT."""
        entry = _lookup(dpt_id)
        return entry[1] if entry else None

    @staticmethod
    def list_dpts() -> list[dict]:
        """List all registered DPTs with metadata."""
        return [info.to_dict() for _, (_, info) in sorted(_REGISTRY.items())]

    @staticmethod
    def is_supported(dpt_id: str) -> bool:
        """Check if a DPT is supported."""
        return _lookup(dpt_id) is not None


# Module-level convenience functions
def decode(dpt_id: str, data) -> Any:
    return DPTCodec.decode(dpt_id, data)


def get_dpt_info(dpt_id: str) -> Optional[dict]:
    info = DPTCodec.get_info(dpt_id)
    return info.to_dict() if info else None

"""KNX Datapoint Type codec package."""

from .codec import (
    DPTCodec,
    decode,
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
from .tags import format_type_tag, parse_type_tag

__all__ = [
    "DPTCodec",
    "decode",
    "decode_bit",
    "decode_color_channel",
    "decode_dim",
    "decode_float16",
    "decode_mode",
    "decode_scene_number",
    "decode_unsigned_scaled",
    "format_type_tag",
    "get_dpt_info",
    "ldexp",
    "parse_type_tag",
]

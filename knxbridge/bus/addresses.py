"""KNX group address helpers.

Group addresses are configured in three-level notation "main/middle/sub"
and packed on the bus as 5.3.8 bits.
"""

import re

_GA_RE = re.compile(r"^\s*(\d+)/(\d+)/(\d+)\s*$")


def parse_group_address(text: str) -> int:
    """Parse "1/1/0" → 0x0900 (main/middle/sub as 5.3.8 bits)."""
    match = _GA_RE.match(text) if isinstance(text, str) else None
    if not match:
        raise ValueError(f"Invalid group address: {text!r}")
    main, middle, sub = (int(part) for part in match.groups())
    if main > 31 or middle > 7 or sub > 255:
        raise ValueError(f"Group address out of range: {text!r}")
    return (main << 11) | (middle << 8) | sub


def format_group_address(addr: int) -> str:
    """Format 0x0900 → "1/1/0"."""
    return f"{(addr >> 11) & 0x1F}/{(addr >> 8) & 0x07}/{addr & 0xFF}"


def is_group_address(text: str) -> bool:
    """Check whether text is a valid three-level group address."""
    try:
        parse_group_address(text)
    except ValueError:
        return False
    return True

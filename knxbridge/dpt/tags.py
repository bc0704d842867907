"""DPT type tag helpers.

The bus-write primitive names types the way ETS-derived libraries do
("DPT9.1", "DPST-9-1"), while configuration and the codec registry use
the dotted form with a zero-padded subtype ("9.001").
"""

from __future__ import annotations

import re

_TAG_RE = re.compile(
    r"^\s*(?:DPST-|DPT-?)?(?P<main>\d{1,3})(?:[.\-](?P<sub>\d{1,5}))?\s*$",
    re.IGNORECASE,
)


def parse_type_tag(tag: str) -> str:
    """Normalise a type tag to registry form.

    "DPT9.1" → "9.001", "DPST-20-102" → "20.102", "DPT5" → "5".
    Raises ValueError if the text is not a DPT tag.
    """
    if not isinstance(tag, str):
        raise ValueError(f"Invalid DPT tag: {tag!r}")
    match = _TAG_RE.match(tag)
    if not match:
        raise ValueError(f"Invalid DPT tag: {tag!r}")
    main = int(match.group("main"))
    sub = match.group("sub")
    if sub is None:
        return str(main)
    return f"{main}.{int(sub):03d}"


def format_type_tag(dpt_id: str) -> str:
    """Format a registry id as a bus type tag: "9.001" → "DPT9.1"."""
    normalised = parse_type_tag(dpt_id)
    if "." not in normalised:
        return f"DPT{normalised}"
    main, sub = normalised.split(".")
    return f"DPT{main}.{int(sub)}"

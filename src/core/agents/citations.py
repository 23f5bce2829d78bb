# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Inline citation references.

Answers cite sources inline with:

    [[ref:id=<ID>|name=<NAME>|loc=<TYPE>:<VALUE>]]

The loc part is optional. Names cannot contain "|" or "]" and location
values cannot contain "]"; build_reference() replaces or removes them.
"""

import re
from dataclasses import dataclass
from typing import Optional

from src.core.agents.sources import LocationType, SourceLocation

REFERENCE_PATTERN = re.compile(
    r"\[\[ref:id=([^|]+)\|name=([^|\]]+)(?:\|loc=([^:\]]+):([^\]]+))?\]\]"
)


@dataclass(frozen=True)
class ParsedReference:
    """An inline reference read back from text."""

    id: str
    name: str
    location: Optional[SourceLocation] = None


def build_reference(id: str, name: str, location: Optional[SourceLocation] = None) -> str:
    """Build an inline reference.

    Args:
        id: Source id.
        name: Source name. "|" and "]" are replaced with spaces.
        location: Optional position; "]" is removed from its value.

    Returns:
        The reference string.
    """
    escaped_name = re.sub(r"[|\]]", " ", name)
    reference = f"[[ref:id={id}|name={escaped_name}"
    if location is not None:
        value = str(location.value).replace("]", "")
        reference += f"|loc={location.type.value}:{value}"
    return reference + "]]"


def _from_match(match: re.Match[str]) -> Optional[ParsedReference]:
    ref_id, name, loc_type, loc_value = match.groups()
    if not ref_id or not name:
        return None

    location = None
    if loc_type and loc_value:
        try:
            location = SourceLocation(type=LocationType(loc_type), value=loc_value)
        except ValueError:
            location = None
    return ParsedReference(id=ref_id, name=name, location=location)


def parse_reference(text: str) -> Optional[ParsedReference]:
    """Parse the first inline reference in text.

    Returns:
        The parsed reference, or None if text contains none. A location of
        an unknown type is dropped.
    """
    match = REFERENCE_PATTERN.search(text)
    if match is None:
        return None
    return _from_match(match)


def find_references(text: str) -> list[ParsedReference]:
    """Find every inline reference in text, in order of appearance."""
    references = []
    for match in REFERENCE_PATTERN.finditer(text):
        parsed = _from_match(match)
        if parsed is not None:
            references.append(parsed)
    return references

"""Eircode grammar and the county service area.

An Eircode is a three character routing key followed by a four character
unique identifier, e.g. ``D02 X285``. Only the counties listed in
``COUNTY_ROUTING_PREFIXES`` are served; each accepts routing keys starting
with the listed letters.
"""

from __future__ import annotations

import enum
import re

EIRCODE_PATTERN = re.compile(
    r"^(?:D6W|[AC-FHKNPRTV-Y][0-9]{2})\s?[0-9AC-FHKNPRTV-Y]{4}$",
    re.IGNORECASE,
)


class County(str, enum.Enum):
    DUBLIN = "Dublin"
    WICKLOW = "Wicklow"
    KILDARE = "Kildare"


COUNTY_ROUTING_PREFIXES: dict[County, tuple[str, ...]] = {
    County.DUBLIN: ("D", "A", "K"),
    County.WICKLOW: ("A",),
    County.KILDARE: ("W", "R"),
}


def normalize_eircode(value: str) -> str:
    """Upper-case with all whitespace removed: ``d02x285`` → ``D02X285``."""
    return re.sub(r"\s+", "", value).upper()


def is_valid_eircode(value: str) -> bool:
    return bool(EIRCODE_PATTERN.match(value.strip()))


def format_eircode(value: str) -> str:
    """Canonical display form ``XXX XXXX``. Raises ``ValueError`` if malformed."""
    if not is_valid_eircode(value):
        raise ValueError(f"Invalid Eircode: {value!r}")
    compact = normalize_eircode(value)
    return f"{compact[:3]} {compact[3:]}"


def routing_key(value: str) -> str:
    return normalize_eircode(value)[:3]


def parse_county(value: str) -> County | None:
    for county in County:
        if county.value.lower() == value.strip().lower():
            return county
    return None


def county_mismatch(eircode: str, county: str) -> str | None:
    """Return an error message when ``eircode`` cannot belong to ``county``."""
    parsed = parse_county(county)
    if parsed is None:
        return "County not in service area"
    prefixes = COUNTY_ROUTING_PREFIXES[parsed]
    if normalize_eircode(eircode)[:1] in prefixes:
        return None
    return (
        f"This Eircode doesn't match {parsed.value}. "
        f"{parsed.value} Eircodes start with: {', '.join(prefixes)}"
    )

# =============================================================================
# RideSignal - Identity Similarity Utilities
# =============================================================================
"""
String and identity comparisons used by the multi-account engine.

Every function returns a score in [0, 100] (or a bool for exact matches) and
treats missing values as "no evidence" rather than raising.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Optional

import phonenumbers

from ridesignal.models.telemetry import Address


DEFAULT_PHONE_REGION = "PH"

_WHITESPACE = re.compile(r"\s+")


def levenshtein_distance(s1: str, s2: str) -> int:
    """
    Calculate Levenshtein distance between two strings

    Args:
        s1: First string
        s2: Second string

    Returns:
        Edit distance
    """
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def string_similarity(s1: str, s2: str) -> float:
    """Edit-distance ratio scaled to [0, 100]. Two empty strings are identical."""
    max_length = max(len(s1), len(s2))
    if max_length == 0:
        return 100.0
    distance = levenshtein_distance(s1, s2)
    return (max_length - distance) / max_length * 100.0


def normalize_text(value: Optional[str]) -> str:
    """Case-fold and collapse whitespace."""
    if not value:
        return ""
    return _WHITESPACE.sub(" ", value).strip().casefold()


def name_similarity(name1: Optional[str], name2: Optional[str]) -> Optional[float]:
    """Case-insensitive edit similarity; None when either name is missing."""
    n1, n2 = normalize_text(name1), normalize_text(name2)
    if not n1 or not n2:
        return None
    return string_similarity(n1, n2)


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Canonicalize a phone number to E.164, reading local numbers as Philippine.

    `+63 917 123 4567`, `+63 0917 123 4567`, `639171234567`, `09171234567`
    and `9171234567` all become `+639171234567`. Unparseable input yields
    None.
    """
    if not phone:
        return None

    try:
        parsed = phonenumbers.parse(phone, DEFAULT_PHONE_REGION)
    except phonenumbers.NumberParseException:
        return None
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def phones_match(phone1: Optional[str], phone2: Optional[str]) -> Optional[bool]:
    """Exact match after normalization; None when either side is missing."""
    p1, p2 = normalize_phone(phone1), normalize_phone(phone2)
    if p1 is None or p2 is None:
        return None
    return p1 == p2


def _split_email(email: str) -> Optional[tuple[str, str]]:
    local, sep, domain = email.strip().lower().rpartition("@")
    if not sep or not local or not domain:
        return None
    return local, domain


def email_similarity(email1: Optional[str], email2: Optional[str]) -> Optional[float]:
    """
    Domain-gated local-part similarity.

    Different domains score 0; otherwise the local parts are compared by
    edit distance. Malformed addresses score 0, missing ones return None.
    """
    if not email1 or not email2:
        return None

    parts1, parts2 = _split_email(email1), _split_email(email2)
    if parts1 is None or parts2 is None:
        return 0.0

    local1, domain1 = parts1
    local2, domain2 = parts2
    if domain1 != domain2:
        return 0.0

    return string_similarity(local1, local2)


def address_similarity(addr1: Optional[Address], addr2: Optional[Address]) -> Optional[float]:
    """
    Mean per-field similarity over fields both addresses carry.

    Street names are compared fuzzily; barangay and city must match exactly
    (after case and whitespace normalization).
    """
    if addr1 is None or addr2 is None:
        return None

    scores: list[float] = []

    street1, street2 = normalize_text(addr1.street), normalize_text(addr2.street)
    if street1 and street2:
        scores.append(string_similarity(street1, street2))

    for field_name in ("barangay", "city"):
        v1 = normalize_text(getattr(addr1, field_name))
        v2 = normalize_text(getattr(addr2, field_name))
        if v1 and v2:
            scores.append(100.0 if v1 == v2 else 0.0)

    if not scores:
        return None
    return sum(scores) / len(scores)


def set_overlap(items1: Optional[Iterable[str]], items2: Optional[Iterable[str]]) -> Optional[float]:
    """Shared items over the larger set, in [0, 1]; None when either is missing."""
    if items1 is None or items2 is None:
        return None
    s1, s2 = set(items1), set(items2)
    largest = max(len(s1), len(s2))
    if largest == 0:
        return None
    return len(s1 & s2) / largest


def last_name(full_name: Optional[str]) -> Optional[str]:
    normalized = normalize_text(full_name)
    if not normalized:
        return None
    return normalized.split(" ")[-1]

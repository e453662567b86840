"""Shared enums and typed dicts for suggestions and API payloads."""

from enum import Enum
from typing import NotRequired, TypedDict


class FailurePolicy(Enum):
    """What to report for a candidate whose DNS probe failed."""

    OMIT = "omit"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class ResolverKind(Enum):
    DOH = "doh"
    SYSTEM = "system"


class SuggestionDict(TypedDict):
    domain: str
    host: str
    tld: str
    left: str
    available: bool


class DomainHacksResponse(TypedDict):
    query: str
    matches: list[SuggestionDict]
    hasMatches: bool
    message: NotRequired[str]


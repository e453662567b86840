"""Domain hack matcher - split a query where a known TLD completes the word."""

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass

import dns.asyncresolver
import dns.exception
import httpx

from domain_hacks.config import Settings
from domain_hacks.dns_checker import (
    DomainResult,
    DomainStatus,
    Probe,
    build_system_resolver,
    check_domains,
    doh_probe,
    system_probe,
)
from domain_hacks.tld_catalog import TldCatalog, load_tld_catalog
from domain_hacks.types import FailurePolicy, ResolverKind, SuggestionDict

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class Candidate:
    tld: str
    left: str
    domain: str


@dataclass(frozen=True)
class DomainHackSuggestion:
    domain: str
    host: str
    tld: str
    left: str
    available: bool

    def to_dict(self) -> SuggestionDict:
        return SuggestionDict(**asdict(self))


def normalize_query(query: str) -> str:
    """Trim, lowercase and drop every whitespace character."""
    return _WHITESPACE.sub("", query.strip().lower())


def generate_candidates(query: str, catalog: Sequence[str]) -> list[Candidate]:
    """Find catalog TLDs that end the query, in catalog order.

    For example, with "ck" in the catalog, "kostick" yields "kosti.ck".
    A query equal to the TLD leaves no label and is skipped. Dots at the
    split point are separators, so "hello.io" against "io" or ".io" both
    give left="hello" and domain="hello.io".
    """
    sanitized = normalize_query(query)
    if not sanitized:
        return []

    candidates = []
    for tld in catalog:
        if not sanitized.endswith(tld):
            continue
        left = sanitized[: len(sanitized) - len(tld)].rstrip(".")
        label = tld.lstrip(".")
        if not left or not label:
            continue
        candidates.append(Candidate(tld=tld, left=left, domain=f"{left}.{label}"))
    return candidates


def _to_suggestion(
    candidate: Candidate,
    result: DomainResult,
    policy: FailurePolicy,
) -> DomainHackSuggestion | None:
    if result.status is DomainStatus.UNKNOWN:
        if policy is FailurePolicy.OMIT:
            return None
        available = policy is FailurePolicy.AVAILABLE
    else:
        available = result.status is DomainStatus.AVAILABLE

    return DomainHackSuggestion(
        domain=candidate.domain,
        host=candidate.domain,
        tld=candidate.tld,
        left=candidate.left,
        available=available,
    )


async def _resolve(
    candidates: list[Candidate],
    probe: Probe,
    settings: Settings,
    on_result: Callable[[DomainResult], None] | None,
) -> list[DomainHackSuggestion]:
    results = await check_domains(
        [c.domain for c in candidates],
        probe,
        concurrency=settings.concurrency,
        on_result=on_result,
    )

    return _collect(candidates, results, settings)


def _collect(
    candidates: list[Candidate],
    results: list[DomainResult],
    settings: Settings,
) -> list[DomainHackSuggestion]:
    suggestions = []
    for candidate, result in zip(candidates, results, strict=True):
        suggestion = _to_suggestion(candidate, result, settings.failure_policy)
        if suggestion is None:
            logger.info("Dropping %s: availability unknown", candidate.domain)
            continue
        suggestions.append(suggestion)
    return suggestions


def _system_resolver(settings: Settings) -> dns.asyncresolver.Resolver | None:
    """Build the system resolver, or None when the host has no resolver configuration."""
    try:
        return build_system_resolver(settings.dns_timeout)
    except dns.exception.DNSException as err:
        logger.warning("System resolver unavailable: %r", err)
        return None


async def find_domain_hacks(
    query: str,
    catalog: Sequence[str],
    *,
    client: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
    on_result: Callable[[DomainResult], None] | None = None,
    resolver: dns.asyncresolver.Resolver | None = None,
) -> list[DomainHackSuggestion]:
    """Suggest domain hacks for ``query`` and check each one's NS records.

    All lookups run concurrently; the result keeps catalog order (longest TLD
    first) no matter which lookup finishes first. A lookup that fails is
    handled by ``settings.failure_policy`` and never affects the others.

    Args:
        query: Raw user text.
        catalog: TLDs, already sorted longest first.
        client: Shared HTTP client for DoH lookups. A short-lived one is
            opened when omitted.
        settings: Resolver, timeout and policy settings. Defaults apply when omitted.
        on_result: Optional callback invoked after each lookup completes.
        resolver: System resolver to reuse when ``settings.resolver`` is
            SYSTEM. Built from the host configuration when omitted; if that
            fails, every candidate is treated as a failed lookup.

    Returns:
        One suggestion per matching TLD with a non-empty leftover label.
    """
    settings = settings or Settings()
    candidates = generate_candidates(query, catalog)
    if not candidates:
        return []

    logger.debug("Checking %d candidates for %r", len(candidates), query)

    if settings.resolver is ResolverKind.SYSTEM:
        resolver = resolver or _system_resolver(settings)
        if resolver is None:
            results = [DomainResult(domain=c.domain, status=DomainStatus.UNKNOWN) for c in candidates]
            if on_result is not None:
                for result in results:
                    on_result(result)
            return _collect(candidates, results, settings)
        return await _resolve(candidates, system_probe(resolver), settings, on_result)

    if client is not None:
        probe = doh_probe(
            client,
            doh_url=settings.doh_url,
            timeout=settings.dns_timeout,
            retries=settings.dns_retries,
        )
        return await _resolve(candidates, probe, settings, on_result)

    async with httpx.AsyncClient() as own_client:
        probe = doh_probe(
            own_client,
            doh_url=settings.doh_url,
            timeout=settings.dns_timeout,
            retries=settings.dns_retries,
        )
        return await _resolve(candidates, probe, settings, on_result)


class DomainHackMatcher:
    """Holds a catalog and settings for the lifetime of a process."""

    def __init__(
        self,
        catalog: TldCatalog,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.catalog = catalog
        self.settings = settings or Settings()
        self.client = client
        self._resolver: dns.asyncresolver.Resolver | None = None

    @property
    def resolver(self) -> dns.asyncresolver.Resolver | None:
        """System resolver, built on first use and reused afterwards."""
        if self._resolver is None and self.settings.resolver is ResolverKind.SYSTEM:
            self._resolver = _system_resolver(self.settings)
        return self._resolver

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.AsyncClient | None = None) -> "DomainHackMatcher":
        """Load the catalog named by ``settings``. Raises CatalogError on a bad file."""
        return cls(load_tld_catalog(settings.tld_list_path), settings, client)

    async def find(
        self,
        query: str,
        on_result: Callable[[DomainResult], None] | None = None,
    ) -> list[DomainHackSuggestion]:
        return await find_domain_hacks(
            query,
            self.catalog,
            client=self.client,
            settings=self.settings,
            on_result=on_result,
            resolver=self.resolver,
        )

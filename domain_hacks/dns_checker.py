"""Async NS-record probes over DNS-over-HTTPS or the system resolver."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

import dns.asyncresolver
import dns.exception
import dns.rcode
import dns.resolver
import httpx

logger = logging.getLogger(__name__)


class DomainStatus(Enum):
    REGISTERED = "registered"
    AVAILABLE = "possibly available"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class DomainResult:
    domain: str
    status: DomainStatus


type Probe = Callable[[str], Awaitable[DomainResult]]

DEFAULT_DOH_URL = "https://cloudflare-dns.com/dns-query"
DOH_HEADERS = {"accept": "application/dns-json"}
DEFAULT_CONCURRENCY = 50
DNS_TIMEOUT = 5.0


def _rcode_name(status: object) -> str:
    if isinstance(status, int) and 0 <= status <= 4095:
        return dns.rcode.to_text(status)
    return repr(status)


def classify_doh_answer(payload: object) -> DomainStatus:
    """Classify a DoH JSON payload.

    An absent or empty ``Answer`` array means no NS records were found, which
    we take as a hint the name is free. Anything that is not a JSON object
    with a list (or missing) ``Answer`` is reported as unknown.
    """
    if not isinstance(payload, dict):
        return DomainStatus.UNKNOWN
    answer = payload.get("Answer")
    if answer is None:
        return DomainStatus.AVAILABLE
    if not isinstance(answer, list):
        return DomainStatus.UNKNOWN
    return DomainStatus.REGISTERED if answer else DomainStatus.AVAILABLE


async def check_domain(
    domain: str,
    client: httpx.AsyncClient,
    *,
    doh_url: str = DEFAULT_DOH_URL,
    timeout: float = DNS_TIMEOUT,
    retries: int = 0,
) -> DomainResult:
    """Look up NS records for ``domain`` through a DoH JSON endpoint.

    Each attempt runs under its own ``timeout``. Transport failures and
    timeouts are retried up to ``retries`` more times; an HTTP error status
    or an unparseable body is not. Failures never raise, including a request
    httpx refuses to build (e.g. an over-long name); they come back as
    DomainStatus.UNKNOWN.
    """
    attempts = retries + 1
    last_error: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            async with asyncio.timeout(timeout):
                response = await client.get(
                    doh_url,
                    params={"name": domain, "type": "NS"},
                    headers=DOH_HEADERS,
                    timeout=timeout,
                )
            response.raise_for_status()
            payload = response.json()
        except (TimeoutError, httpx.TransportError) as err:
            logger.debug("DNS lookup for %s failed (attempt %d/%d): %r", domain, attempt, attempts, err)
            last_error = err
            continue
        except httpx.HTTPStatusError as err:
            logger.warning("DNS lookup for %s returned HTTP %d", domain, err.response.status_code)
            return DomainResult(domain=domain, status=DomainStatus.UNKNOWN)
        except ValueError as err:
            logger.warning("DNS lookup for %s returned a non-JSON body: %s", domain, err)
            return DomainResult(domain=domain, status=DomainStatus.UNKNOWN)
        except httpx.HTTPError as err:
            logger.warning("DNS lookup for %s failed: %r", domain, err)
            return DomainResult(domain=domain, status=DomainStatus.UNKNOWN)
        except Exception as err:
            logger.warning("DNS lookup for %s could not be sent: %r", domain, err)
            return DomainResult(domain=domain, status=DomainStatus.UNKNOWN)

        status = classify_doh_answer(payload)
        if status is DomainStatus.UNKNOWN:
            logger.warning("DNS lookup for %s returned an unexpected payload: %.200r", domain, payload)
        else:
            logger.debug(
                "DNS lookup for %s: rcode=%s -> %s",
                domain,
                _rcode_name(payload.get("Status")),
                status.value,
            )
        return DomainResult(domain=domain, status=status)

    logger.warning("DNS lookup for %s gave up after %d attempt(s): %r", domain, attempts, last_error)
    return DomainResult(domain=domain, status=DomainStatus.UNKNOWN)


def build_system_resolver(timeout: float = DNS_TIMEOUT) -> dns.asyncresolver.Resolver:
    resolver = dns.asyncresolver.Resolver()
    resolver.timeout = timeout
    resolver.lifetime = timeout
    return resolver


async def check_domain_system(domain: str, resolver: dns.asyncresolver.Resolver) -> DomainResult:
    """Look up NS records for ``domain`` through the system resolver.

    NXDOMAIN and an empty answer are "possibly available", any NS record is
    "registered", and timeouts, server failures or any other error are "unknown".
    """
    try:
        await resolver.resolve(domain, "NS")
    except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
        return DomainResult(domain=domain, status=DomainStatus.AVAILABLE)
    except (dns.exception.Timeout, dns.resolver.LifetimeTimeout) as err:
        logger.warning("DNS lookup for %s timed out: %s", domain, err)
        return DomainResult(domain=domain, status=DomainStatus.UNKNOWN)
    except dns.exception.DNSException as err:
        logger.warning("DNS lookup for %s failed: %r", domain, err)
        return DomainResult(domain=domain, status=DomainStatus.UNKNOWN)
    except Exception as err:
        logger.warning("DNS lookup for %s failed unexpectedly: %r", domain, err)
        return DomainResult(domain=domain, status=DomainStatus.UNKNOWN)
    return DomainResult(domain=domain, status=DomainStatus.REGISTERED)


def doh_probe(
    client: httpx.AsyncClient,
    *,
    doh_url: str = DEFAULT_DOH_URL,
    timeout: float = DNS_TIMEOUT,
    retries: int = 0,
) -> Probe:
    async def _probe(domain: str) -> DomainResult:
        return await check_domain(domain, client, doh_url=doh_url, timeout=timeout, retries=retries)

    return _probe


def system_probe(resolver: dns.asyncresolver.Resolver) -> Probe:
    async def _probe(domain: str) -> DomainResult:
        return await check_domain_system(domain, resolver)

    return _probe


async def check_domains(
    domains: list[str],
    probe: Probe,
    concurrency: int = DEFAULT_CONCURRENCY,
    on_result: Callable[[DomainResult], None] | None = None,
) -> list[DomainResult]:
    """Check multiple domains concurrently with a configurable concurrency limit.

    Args:
        domains: Domain names to check (e.g. ["exa.mple", "hello.io"]).
        probe: Coroutine function that checks one domain.
        concurrency: Maximum number of concurrent DNS lookups.
        on_result: Optional callback invoked after each domain is checked.

    Returns:
        A list of DomainResult objects in the same order as ``domains``.
    """
    semaphore = asyncio.Semaphore(concurrency)

    async def _check_with_limit(domain: str) -> DomainResult:
        async with semaphore:
            result = await probe(domain)
            if on_result is not None:
                on_result(result)
            return result

    tasks = [asyncio.create_task(_check_with_limit(d)) for d in domains]
    results = await asyncio.gather(*tasks)
    return list(results)

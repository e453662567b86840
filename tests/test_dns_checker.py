"""Tests for the DoH and system-resolver NS probes."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import dns.asyncresolver
import dns.exception
import dns.resolver
import httpx
import pytest
import respx

from domain_hacks.dns_checker import (
    DEFAULT_CONCURRENCY,
    DomainResult,
    DomainStatus,
    check_domain,
    check_domain_system,
    check_domains,
    classify_doh_answer,
)

from .conftest import DOH_URL

NS_ANSWER = {
    "Status": 0,
    "Answer": [{"name": "example.com.", "type": 2, "TTL": 172800, "data": "a.iana-servers.net."}],
}


# --- classify_doh_answer ---


def test_classify_missing_answer_is_available():
    assert classify_doh_answer({"Status": 3}) == DomainStatus.AVAILABLE


def test_classify_empty_answer_is_available():
    assert classify_doh_answer({"Status": 0, "Answer": []}) == DomainStatus.AVAILABLE


def test_classify_ns_records_are_registered():
    assert classify_doh_answer(NS_ANSWER) == DomainStatus.REGISTERED


@pytest.mark.parametrize("payload", [[], "nope", None, {"Answer": "x"}])
def test_classify_malformed_payload_is_unknown(payload):
    assert classify_doh_answer(payload) == DomainStatus.UNKNOWN


# --- check_domain (DoH) ---


@pytest.mark.asyncio
async def test_check_domain_sends_doh_json_query():
    with respx.mock:
        route = respx.get(DOH_URL).mock(return_value=httpx.Response(200, json=NS_ANSWER))
        async with httpx.AsyncClient() as client:
            result = await check_domain("example.com", client, doh_url=DOH_URL)

    assert result == DomainResult("example.com", DomainStatus.REGISTERED)
    request = route.calls.last.request
    assert request.url.params["name"] == "example.com"
    assert request.url.params["type"] == "NS"
    assert request.headers["accept"] == "application/dns-json"


@pytest.mark.asyncio
async def test_check_domain_nxdomain_is_available():
    with respx.mock:
        respx.get(DOH_URL).mock(return_value=httpx.Response(200, json={"Status": 3}))
        async with httpx.AsyncClient() as client:
            result = await check_domain("kosti.ck", client, doh_url=DOH_URL)

    assert result.status == DomainStatus.AVAILABLE


@pytest.mark.asyncio
async def test_check_domain_connect_error_is_unknown():
    with respx.mock:
        respx.get(DOH_URL).mock(side_effect=httpx.ConnectError("boom"))
        async with httpx.AsyncClient() as client:
            result = await check_domain("down.io", client, doh_url=DOH_URL)

    assert result.status == DomainStatus.UNKNOWN


@pytest.mark.asyncio
async def test_check_domain_http_error_status_is_unknown():
    with respx.mock:
        respx.get(DOH_URL).mock(return_value=httpx.Response(502))
        async with httpx.AsyncClient() as client:
            result = await check_domain("bad.io", client, doh_url=DOH_URL)

    assert result.status == DomainStatus.UNKNOWN


@pytest.mark.asyncio
async def test_check_domain_non_json_body_is_unknown():
    with respx.mock:
        respx.get(DOH_URL).mock(return_value=httpx.Response(200, text="<html>oops</html>"))
        async with httpx.AsyncClient() as client:
            result = await check_domain("html.io", client, doh_url=DOH_URL)

    assert result.status == DomainStatus.UNKNOWN


@pytest.mark.asyncio
async def test_check_domain_retries_transport_errors():
    with respx.mock:
        route = respx.get(DOH_URL).mock(
            side_effect=[httpx.ReadTimeout("slow"), httpx.Response(200, json=NS_ANSWER)]
        )
        async with httpx.AsyncClient() as client:
            result = await check_domain("flaky.io", client, doh_url=DOH_URL, retries=1)

    assert result.status == DomainStatus.REGISTERED
    assert route.call_count == 2


@pytest.mark.asyncio
async def test_check_domain_does_not_retry_bad_status():
    with respx.mock:
        route = respx.get(DOH_URL).mock(return_value=httpx.Response(500))
        async with httpx.AsyncClient() as client:
            result = await check_domain("broken.io", client, doh_url=DOH_URL, retries=3)

    assert result.status == DomainStatus.UNKNOWN
    assert route.call_count == 1


@pytest.mark.asyncio
async def test_check_domain_times_out_independently():
    """A hung lookup is cut off by its own timeout."""

    async def hang(*args, **kwargs):
        await asyncio.sleep(10)

    client = MagicMock()
    client.get = AsyncMock(side_effect=hang)

    result = await check_domain("hung.io", client, doh_url=DOH_URL, timeout=0.05)
    assert result.status == DomainStatus.UNKNOWN


@pytest.mark.asyncio
async def test_check_domain_unbuildable_request_is_unknown():
    client = MagicMock()
    client.get = AsyncMock(side_effect=httpx.InvalidURL("URL too long"))

    result = await check_domain("a" * 70000 + ".ck", client, doh_url=DOH_URL, retries=2)

    assert result.status == DomainStatus.UNKNOWN
    client.get.assert_awaited_once()


# --- check_domain_system (dnspython) ---


@pytest.fixture
def resolver():
    """Create a mock async resolver."""
    r = MagicMock(spec=dns.asyncresolver.Resolver)
    r.resolve = AsyncMock()
    return r


@pytest.mark.asyncio
async def test_system_registered_domain_ns_records(resolver):
    resolver.resolve.return_value = MagicMock()
    result = await check_domain_system("example.com", resolver)
    assert result.status == DomainStatus.REGISTERED
    resolver.resolve.assert_awaited_once_with("example.com", "NS")


@pytest.mark.asyncio
async def test_system_nxdomain_is_available(resolver):
    resolver.resolve.side_effect = dns.resolver.NXDOMAIN()
    result = await check_domain_system("available-test.xyz", resolver)
    assert result.status == DomainStatus.AVAILABLE


@pytest.mark.asyncio
async def test_system_no_answer_is_available(resolver):
    resolver.resolve.side_effect = dns.resolver.NoAnswer()
    result = await check_domain_system("empty.xyz", resolver)
    assert result.status == DomainStatus.AVAILABLE


@pytest.mark.asyncio
async def test_system_timeout_returns_unknown(resolver):
    resolver.resolve.side_effect = dns.exception.Timeout()
    result = await check_domain_system("slow.example", resolver)
    assert result.status == DomainStatus.UNKNOWN


@pytest.mark.asyncio
async def test_system_no_nameservers_returns_unknown(resolver):
    resolver.resolve.side_effect = dns.resolver.NoNameservers()
    result = await check_domain_system("servfail.example", resolver)
    assert result.status == DomainStatus.UNKNOWN


@pytest.mark.asyncio
async def test_system_unexpected_error_returns_unknown(resolver):
    resolver.resolve.side_effect = RuntimeError("resolver exploded")
    result = await check_domain_system("weird.example", resolver)
    assert result.status == DomainStatus.UNKNOWN


# --- check_domains ---


@pytest.mark.asyncio
async def test_check_domains_preserves_input_order():
    """Results come back in input order even when later lookups finish first."""
    delays = {"a.io": 0.05, "b.io": 0.0, "c.io": 0.02}

    async def probe(domain):
        await asyncio.sleep(delays[domain])
        return DomainResult(domain, DomainStatus.AVAILABLE)

    results = await check_domains(["a.io", "b.io", "c.io"], probe)
    assert [r.domain for r in results] == ["a.io", "b.io", "c.io"]


@pytest.mark.asyncio
async def test_check_domains_respects_concurrency():
    max_concurrent = 0
    current_concurrent = 0

    async def probe(domain):
        nonlocal max_concurrent, current_concurrent
        current_concurrent += 1
        max_concurrent = max(max_concurrent, current_concurrent)
        await asyncio.sleep(0.01)
        current_concurrent -= 1
        return DomainResult(domain, DomainStatus.REGISTERED)

    domains = [f"test{i}.io" for i in range(20)]
    results = await check_domains(domains, probe, concurrency=5)
    assert len(results) == 20
    assert max_concurrent <= 5


@pytest.mark.asyncio
async def test_check_domains_invokes_callback():
    seen = []

    async def probe(domain):
        return DomainResult(domain, DomainStatus.REGISTERED)

    await check_domains(["a.io", "b.io"], probe, on_result=seen.append)
    assert sorted(r.domain for r in seen) == ["a.io", "b.io"]


@pytest.mark.asyncio
async def test_check_domains_empty_list():
    async def probe(domain):
        raise AssertionError("should not be called")

    assert await check_domains([], probe) == []


def test_default_concurrency():
    assert DEFAULT_CONCURRENCY == 50


def test_domain_status_values():
    assert DomainStatus.REGISTERED.value == "registered"
    assert DomainStatus.AVAILABLE.value == "possibly available"
    assert DomainStatus.UNKNOWN.value == "unknown"

import io
import json

import pytest
from rich.console import Console

from domain_hacks.config import Settings

DOH_URL = "https://doh.test/dns-query"


def _capture_console() -> tuple[Console, io.StringIO]:
    """Create a Console that writes to a StringIO for test capturing."""
    buf = io.StringIO()
    return Console(file=buf, force_terminal=True, width=120), buf


@pytest.fixture
def capture_console():
    return _capture_console()


@pytest.fixture
def settings():
    return Settings(doh_url=DOH_URL, dns_timeout=1.0)


@pytest.fixture
def tld_file(tmp_path):
    path = tmp_path / "tld-list.json"
    path.write_text(json.dumps(["IO", "co", "ck", "ch", "uk", "co.uk", "sh"]))
    return path


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "PORT",
        "HOST",
        "DOMAIN_HACKS_TLD_LIST",
        "DOMAIN_HACKS_DOH_URL",
        "DOMAIN_HACKS_DNS_TIMEOUT",
        "DOMAIN_HACKS_DNS_RETRIES",
        "DOMAIN_HACKS_CONCURRENCY",
        "DOMAIN_HACKS_ON_ERROR",
        "DOMAIN_HACKS_RESOLVER",
        "DOMAIN_HACKS_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

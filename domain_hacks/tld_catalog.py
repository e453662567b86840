"""Load the TLD catalog and refresh it from the IANA list."""

import json
import logging
from collections.abc import Iterable, Iterator, Sequence
from pathlib import Path

import httpx

from domain_hacks.errors import CatalogError

logger = logging.getLogger(__name__)

DEFAULT_TLD_LIST_PATH = Path(__file__).parent / "data" / "tld-list.json"
IANA_TLD_URL = "https://data.iana.org/TLD/tlds-alpha-by-domain.txt"


def sort_tlds(tlds: Iterable[str]) -> tuple[str, ...]:
    """Lowercase and order TLDs longest first, alphabetically within a length.

    Longest first matters when one TLD is a suffix of another ("co.uk" and
    "uk"): the longer split must come out ahead of the shorter one.
    """
    return tuple(sorted((t.lower() for t in tlds), key=lambda t: (-len(t), t)))


class TldCatalog(Sequence[str]):
    """Read-only, pre-sorted sequence of known TLDs."""

    __slots__ = ("_tlds",)

    def __init__(self, tlds: Iterable[str]):
        self._tlds = sort_tlds(tlds)

    def __getitem__(self, index):
        return self._tlds[index]

    def __len__(self) -> int:
        return len(self._tlds)

    def __iter__(self) -> Iterator[str]:
        return iter(self._tlds)

    def __contains__(self, tld: object) -> bool:
        return isinstance(tld, str) and tld.lower() in self._tlds

    def __repr__(self) -> str:
        return f"TldCatalog({len(self._tlds)} tlds)"


def _parse_tld_json(text: str, source: Path) -> list[str]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as err:
        raise CatalogError(f"TLD list {source} is not valid JSON: {err}") from err

    if not isinstance(data, list):
        raise CatalogError(f"TLD list {source} must be a JSON array, got {type(data).__name__}")

    for i, entry in enumerate(data):
        if not isinstance(entry, str):
            raise CatalogError(f"TLD list {source} entry {i} is not a string: {entry!r}")
    return data


def load_tld_catalog(path: Path | str = DEFAULT_TLD_LIST_PATH) -> TldCatalog:
    """Read a JSON array of TLD strings into a sorted catalog.

    Raises:
        CatalogError: If the file is missing, unreadable, or not an array of strings.
    """
    source = Path(path)
    try:
        text = source.read_text(encoding="utf-8")
    except OSError as err:
        raise CatalogError(f"Cannot read TLD list {source}: {err}") from err

    catalog = TldCatalog(_parse_tld_json(text, source))
    logger.info("Loaded %d TLDs from %s", len(catalog), source)
    return catalog


def _parse_tld_text(text: str) -> list[str]:
    """Parse the IANA TLD list text, skipping comments and blank lines.

    Returns lowercase TLD strings (including IDN/punycode like xn--...)
    """
    tlds: list[str] = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        tlds.append(line.lower())
    return tlds


def download_tld_list(path: Path | str = DEFAULT_TLD_LIST_PATH) -> list[str]:
    """Fetch the IANA TLD list and write it to ``path`` as a sorted JSON array.

    Returns:
        The TLDs written, in catalog order.
    """
    response = httpx.get(IANA_TLD_URL, follow_redirects=True, timeout=30)
    response.raise_for_status()

    tlds = list(sort_tlds(_parse_tld_text(response.text)))
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(tlds, indent=2) + "\n", encoding="utf-8")
    logger.info("Wrote %d TLDs to %s", len(tlds), target)
    return tlds

"""Export domain hack suggestions to JSON, JSONL or CSV files."""

import csv
import json
from datetime import UTC, datetime
from pathlib import Path

from domain_hacks.matcher import DomainHackSuggestion

FIELD_DOMAIN = "domain"
FIELD_HOST = "host"
FIELD_TLD = "tld"
FIELD_LEFT = "left"
FIELD_AVAILABLE = "available"
FIELD_TIMESTAMP = "timestamp"
EXPORT_FIELDS = (
    FIELD_DOMAIN,
    FIELD_HOST,
    FIELD_TLD,
    FIELD_LEFT,
    FIELD_AVAILABLE,
    FIELD_TIMESTAMP,
)

SUPPORTED_EXTENSIONS = (".json", ".jsonl", ".csv")


def export_suggestions(suggestions: list[DomainHackSuggestion], output_path: str) -> None:
    """Export suggestions to a file. Format is auto-detected from extension.

    Raises:
        ValueError: If the file extension is not .json, .jsonl, or .csv.
    """
    path = Path(output_path)
    ext = path.suffix.lower()

    if ext == ".json":
        _export_json(suggestions, path)
    elif ext == ".jsonl":
        _export_jsonl(suggestions, path)
    elif ext == ".csv":
        _export_csv(suggestions, path)
    else:
        raise ValueError(f"Unsupported file format '{ext}'. Use .json, .jsonl, or .csv.")


def _build_row(suggestion: DomainHackSuggestion, timestamp: str) -> dict:
    row: dict = dict(suggestion.to_dict())
    row[FIELD_TIMESTAMP] = timestamp
    return row


def _rows(suggestions: list[DomainHackSuggestion]) -> list[dict]:
    timestamp = datetime.now(UTC).isoformat()
    return [_build_row(s, timestamp) for s in suggestions]


def _export_json(suggestions: list[DomainHackSuggestion], path: Path) -> None:
    path.write_text(json.dumps(_rows(suggestions), indent=2) + "\n")


def _export_jsonl(suggestions: list[DomainHackSuggestion], path: Path) -> None:
    """Export suggestions as JSON Lines."""
    lines = [json.dumps(row) for row in _rows(suggestions)]
    path.write_text("\n".join(lines) + "\n" if lines else "")


def _export_csv(suggestions: list[DomainHackSuggestion], path: Path) -> None:
    with path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(EXPORT_FIELDS))
        writer.writeheader()
        for row in _rows(suggestions):
            writer.writerow(row)

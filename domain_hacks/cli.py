"""Domain Hacks CLI - suggest domains where the TLD finishes the word."""

import argparse
import asyncio
import math
import sys
from pathlib import Path

import httpx
import uvicorn
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeRemainingColumn
from rich.table import Table
from rich.text import Text

from domain_hacks.api import create_app
from domain_hacks.config import Settings
from domain_hacks.dns_checker import DomainResult
from domain_hacks.errors import DomainHacksError
from domain_hacks.exporter import SUPPORTED_EXTENSIONS, export_suggestions
from domain_hacks.log import configure_logging
from domain_hacks.matcher import DomainHackMatcher, DomainHackSuggestion, generate_candidates
from domain_hacks.tld_catalog import download_tld_list
from domain_hacks.types import FailurePolicy

console = Console()

AVAILABLE_LABEL = "available"
REGISTERED_LABEL = "registered"
STATUS_STYLES = {
    AVAILABLE_LABEL: "bold green",
    REGISTERED_LABEL: "red",
}


def _create_progress(label: str, *, output_console: Console) -> Progress:
    """Create a standardized progress bar for long-running checks."""
    return Progress(
        TextColumn(f"[bold blue]{label}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=output_console,
        transient=True,
    )


def display_suggestions(
    suggestions: list[DomainHackSuggestion],
    output_console: Console | None = None,
) -> None:
    """Display suggestions to the terminal using rich, in catalog order.

    Args:
        suggestions: Matcher output, longest TLD first.
        output_console: Optional Console for output (used in testing).
    """
    out = output_console or console

    available = sum(1 for s in suggestions if s.available)
    registered = len(suggestions) - available

    table = Table(title="Domain Hacks", show_lines=False)
    table.add_column("Domain", style="bold")
    table.add_column("TLD")
    table.add_column("Left")
    table.add_column("Status")

    for s in suggestions:
        label = AVAILABLE_LABEL if s.available else REGISTERED_LABEL
        status_text = Text(label, style=STATUS_STYLES[label])
        domain_text = Text(s.domain, style="bold green" if s.available else "")
        table.add_row(domain_text, s.tld, s.left, status_text)

    out.print(table)

    summary = Text()
    summary.append(f"Total: {len(suggestions)}", style="bold")
    summary.append(" | ")
    summary.append(f"Available: {available}", style="bold green")
    summary.append(" | ")
    summary.append(f"Registered: {registered}", style="red")
    out.print(summary)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Find domain hacks for a word and check whether they look available."
    )
    parser.add_argument("query", nargs="*", help="Word or phrase to split (e.g. kostick)")
    parser.add_argument("--tld-list", metavar="PATH", help="JSON array of TLDs to match against")
    parser.add_argument("--timeout", type=float, help="Per-lookup DNS timeout in seconds")
    parser.add_argument("--concurrency", type=int, help="Max concurrent DNS lookups (default: 50)")
    parser.add_argument(
        "--on-error",
        choices=[p.value for p in FailurePolicy],
        help="How to report a candidate whose lookup failed (default: omit)",
    )
    parser.add_argument(
        "--output",
        metavar="FILE",
        help="Export suggestions to a file (supports .json, .jsonl, and .csv)",
    )
    parser.add_argument(
        "--update-tlds",
        action="store_true",
        help="Download the IANA TLD list into the catalog file and exit",
    )
    parser.add_argument("--serve", action="store_true", help="Run the JSON HTTP API")
    parser.add_argument("--host", help="Bind address for --serve (default: $HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Port for --serve (default: $PORT or 8080)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _serve(settings: Settings) -> None:
    app = create_app(settings)
    console.print(f"Serving on http://{settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()
    if args.concurrency is not None and args.concurrency < 1:
        parser.error("--concurrency must be at least 1")
    if args.timeout is not None and (not math.isfinite(args.timeout) or args.timeout <= 0):
        parser.error("--timeout must be a positive finite number")
    if args.output and Path(args.output).suffix.lower() not in SUPPORTED_EXTENSIONS:
        parser.error(f"--output must end in one of: {', '.join(SUPPORTED_EXTENSIONS)}")

    try:
        settings = Settings.from_env().with_overrides(
            tld_list_path=Path(args.tld_list) if args.tld_list else None,
            dns_timeout=args.timeout,
            concurrency=args.concurrency,
            failure_policy=FailurePolicy(args.on_error) if args.on_error else None,
            host=args.host,
            port=args.port,
            log_level="DEBUG" if args.verbose else None,
        )
        configure_logging(settings.log_level)

        if args.update_tlds:
            try:
                tlds = download_tld_list(settings.tld_list_path)
            except httpx.HTTPError as err:
                console.print(f"[red]Error: could not download the TLD list: {escape(str(err))}[/red]")
                sys.exit(1)
            console.print(f"Saved {len(tlds):,} TLDs to {settings.tld_list_path}")
            return

        if args.serve:
            _serve(settings)
            return

        query = " ".join(args.query)
        if not query.strip():
            parser.error("a search term is required (or use --serve / --update-tlds)")

        matcher = DomainHackMatcher.from_settings(settings)
    except DomainHacksError as err:
        console.print(f"[red]Error: {escape(str(err))}[/red]")
        sys.exit(1)

    total = len(generate_candidates(query, matcher.catalog))
    if total == 0:
        console.print("No domain hacks found for that search.")
        return

    console.print(f"Loaded {len(matcher.catalog):,} TLDs, checking {total} candidate(s)")

    with _create_progress("Checking domains", output_console=console) as progress:
        task = progress.add_task("dns", total=total)

        def on_result(result: DomainResult) -> None:
            progress.advance(task)

        suggestions = asyncio.run(matcher.find(query, on_result=on_result))

    display_suggestions(suggestions)

    if args.output:
        try:
            export_suggestions(suggestions, args.output)
        except OSError as err:
            console.print(f"[red]Error: could not write {escape(args.output)}: {escape(str(err))}[/red]")
            sys.exit(1)
        console.print(f"Results exported to {args.output}")


if __name__ == "__main__":
    main()

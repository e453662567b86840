"""JSON HTTP endpoint in front of the domain hack matcher."""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from domain_hacks.config import Settings
from domain_hacks.matcher import DomainHackMatcher, DomainHackSuggestion
from domain_hacks.types import DomainHacksResponse

logger = logging.getLogger(__name__)

EMPTY_QUERY_MESSAGE = "Enter a search term to find domain hacks."
NO_MATCHES_MESSAGE = "No domain hacks found for that search."


def build_response(query: str, matches: list[DomainHackSuggestion]) -> DomainHacksResponse:
    """Shape the JSON body; ``message`` is only present when there are no matches."""
    body = DomainHacksResponse(
        query=query,
        matches=[m.to_dict() for m in matches],
        hasMatches=bool(matches),
    )
    if not matches:
        body["message"] = NO_MATCHES_MESSAGE if query.strip() else EMPTY_QUERY_MESSAGE
    return body


def create_app(settings: Settings | None = None, matcher: DomainHackMatcher | None = None) -> FastAPI:
    """Build the app. The catalog is loaded here, so a bad TLD file fails fast.

    Raises:
        CatalogError: If the configured TLD list cannot be loaded.
    """
    settings = settings or Settings.from_env()
    matcher = matcher or DomainHackMatcher.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if matcher.client is not None:
            yield
        else:
            async with httpx.AsyncClient() as client:
                matcher.client = client
                try:
                    yield
                finally:
                    matcher.client = None

    app = FastAPI(title="Domain Hacks API", lifespan=lifespan)
    app.state.matcher = matcher

    @app.get("/health")
    async def health():
        return {"status": "ok", "tlds": len(matcher.catalog)}

    @app.get("/api/domain-hacks")
    async def domain_hacks(query: str = ""):
        trimmed = query.strip()
        if not trimmed:
            return build_response(query, [])

        matches = await matcher.find(trimmed)
        logger.info("Query %r: %d suggestion(s)", trimmed, len(matches))
        return build_response(query, matches)

    return app

"""Firecrawl search backend — web search with markdown scraping via httpx."""

from __future__ import annotations

import logging

import httpx

from fathom.backends.base import raise_for_provider_status, timeout_error
from fathom.config import Settings, settings as default_settings
from fathom.errors import UnknownProviderError
from fathom.models.source import SourceDocument

logger = logging.getLogger(__name__)

SCRAPE_OPTIONS = {
    "formats": ["markdown"],
    "onlyMainContent": True,
}


class FirecrawlSearch:
    """Search backend using Firecrawl's /v1/search endpoint."""

    name: str = "Firecrawl"

    def __init__(
        self,
        api_key: str | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.api_key = api_key or self.settings.firecrawl_api_key
        self.url = f"{self.settings.firecrawl_api_url.rstrip('/')}/v1/search"
        self._transport = transport

    async def search(self, query: str, limit: int) -> list[SourceDocument]:
        """Search the web and return scraped documents that have a URL."""
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.search_timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.url,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "query": query,
                        "limit": limit,
                        "scrapeOptions": SCRAPE_OPTIONS,
                    },
                )
        except httpx.TimeoutException as exc:
            raise timeout_error(exc, self.name) from exc
        except httpx.HTTPError as exc:
            raise UnknownProviderError(f"{self.name}: {exc}", provider=self.name) from exc

        raise_for_provider_status(response, self.name)
        data = response.json()
        if data.get("success") is False:
            raise UnknownProviderError(
                f"{self.name}: {data.get('error', 'search failed')}", provider=self.name
            )

        items = data.get("data") or []
        documents = [doc for doc in map(self._parse_item, items) if doc is not None]
        logger.info("Firecrawl returned %d results (%d usable)", len(items), len(documents))
        return documents

    def _parse_item(self, item: dict) -> SourceDocument | None:
        """Map one Firecrawl result to a SourceDocument; None when it has no URL."""
        url = item.get("url")
        if not url:
            return None
        metadata = item.get("metadata") or {}
        return SourceDocument(
            url=url,
            title=item.get("title") or url,
            description=item.get("description") or metadata.get("description"),
            content=item.get("content"),
            markdown=item.get("markdown"),
            published_date=item.get("publishedDate"),
            author=item.get("author"),
            image=metadata.get("ogImage") or metadata.get("image"),
            favicon=metadata.get("favicon"),
            site_name=metadata.get("siteName"),
        )

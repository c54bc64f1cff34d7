"""Upstream web research: HTML search engines with ordered fallback."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional
from urllib.parse import parse_qs, urlparse

import httpx
from bs4 import BeautifulSoup

from core import SearchResult


logger = logging.getLogger(__name__)

DUCKDUCKGO_URL = "https://html.duckduckgo.com/html/"
BRAVE_URL = "https://search.brave.com/search"

_BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

QUERY_TEMPLATES = (
    "{industry} emerging trends {year}",
    "{industry} underserved markets startups",
    "{industry} problems pain points reddit",
    "{industry} startup opportunities gaps",
)


def build_research_queries(industry: str, year: int) -> List[str]:
    return [template.format(industry=industry, year=year) for template in QUERY_TEMPLATES]


def _unwrap_duckduckgo_link(href: str) -> str:
    """DuckDuckGo wraps targets as //duckduckgo.com/l/?uddg=<url>."""
    value = str(href or "").strip()
    if "uddg=" not in value:
        return value
    if value.startswith("//"):
        value = "https:" + value
    target = parse_qs(urlparse(value).query).get("uddg")
    return target[0] if target else value


def parse_duckduckgo(html: str, *, limit: int = 10) -> List[SearchResult]:
    soup = BeautifulSoup(html, "html.parser")
    results: List[SearchResult] = []
    for node in soup.select(".result"):
        title_node = node.select_one(".result__a")
        if title_node is None:
            continue
        snippet_node = node.select_one(".result__snippet")
        results.append(
            SearchResult(
                title=title_node.get_text(" ", strip=True),
                link=_unwrap_duckduckgo_link(title_node.get("href", "")),
                snippet=snippet_node.get_text(" ", strip=True) if snippet_node else "",
            )
        )
        if len(results) >= limit:
            break
    return results


def parse_brave(html: str, *, limit: int = 10) -> List[SearchResult]:
    soup = BeautifulSoup(html, "html.parser")
    results: List[SearchResult] = []
    for node in soup.select('[data-type="web"]'):
        link_node = node.select_one("a[href]")
        href = str(link_node.get("href", "")) if link_node else ""
        if not href.startswith("http"):
            continue
        snippet_node = node.select_one(".snippet-description")
        results.append(
            SearchResult(
                title=link_node.get_text(" ", strip=True),
                link=href,
                snippet=snippet_node.get_text(" ", strip=True) if snippet_node else "",
            )
        )
        if len(results) >= limit:
            break
    return results


class WebSearchClient:
    """
    Query HTML search engines in order; the first engine with results wins.

    Failures are logged and never raised: no results means the generator
    falls back to background knowledge.
    """

    def __init__(
        self,
        *,
        timeout: float = 15.0,
        max_results: int = 10,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.timeout = timeout
        self.max_results = max_results
        self._client = client

    @classmethod
    def from_settings(cls) -> "WebSearchClient":
        from config import get_research_settings

        settings = get_research_settings()
        return cls(timeout=settings.request_timeout, max_results=settings.max_results_per_query)

    async def _get(self, url: str, params: dict) -> str:
        if self._client is not None:
            response = await self._client.get(url, params=params, headers=_BROWSER_HEADERS)
        else:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout), follow_redirects=True) as client:
                response = await client.get(url, params=params, headers=_BROWSER_HEADERS)
        response.raise_for_status()
        return str(response.text or "")

    async def search_duckduckgo(self, query: str) -> List[SearchResult]:
        html = await self._get(DUCKDUCKGO_URL, {"q": query})
        return parse_duckduckgo(html, limit=self.max_results)

    async def search_brave(self, query: str) -> List[SearchResult]:
        html = await self._get(BRAVE_URL, {"q": query, "source": "web"})
        return parse_brave(html, limit=self.max_results)

    async def search(self, query: str) -> List[SearchResult]:
        for engine in (self.search_duckduckgo, self.search_brave):
            try:
                results = await engine(query)
            except httpx.HTTPError as exc:
                logger.info(f"{engine.__name__} failed for {query!r}: {exc}; trying next engine")
                continue
            if results:
                return results

        logger.info(f"All search engines returned nothing for {query!r}; proceeding without web data")
        return []


async def gather_research(
    queries: Iterable[str],
    *,
    client: Optional[WebSearchClient] = None,
    limit: int = 20,
) -> List[SearchResult]:
    """Run every query in parallel and flatten the hits (order-independent)."""
    searcher = client or WebSearchClient.from_settings()
    batches = await asyncio.gather(*(searcher.search(q) for q in queries))
    flat = [item for batch in batches for item in batch]
    return flat[:limit]

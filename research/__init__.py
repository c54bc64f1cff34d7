"""Upstream web research collaborator."""

from .web_search import (
    QUERY_TEMPLATES,
    WebSearchClient,
    build_research_queries,
    gather_research,
    parse_brave,
    parse_duckduckgo,
)

__all__ = [
    "QUERY_TEMPLATES",
    "WebSearchClient",
    "build_research_queries",
    "gather_research",
    "parse_brave",
    "parse_duckduckgo",
]

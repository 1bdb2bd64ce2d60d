"""
Searching the wiki: endpoint search, direct URL probing and query variations.
"""

import logging
import re
from typing import List, Optional
from urllib.parse import quote, urljoin, urlparse

import requests
from bs4 import BeautifulSoup

from .content_extraction import DEFAULT_MAX_CONTENT_LENGTH, clean_text, fetch_page, request_headers
from .logger import get_logger, log_event
from .models import PageContent, SearchResponse, SearchResult
from .profiles import SiteProfile

logger = get_logger(__name__)

SNIPPET_LENGTH = 200
PROBE_TIMEOUT = 5.0
SNIPPET_CONTAINERS = ["p", "div", "li"]

class WikiSearch:
    """
    Finds candidate pages on one wiki.

    ``search`` runs a cascade: the site's search endpoint, then probing known
    canonical URLs, then resubmitting variations of the query. A stage runs
    only when every earlier stage returned nothing.
    """

    def __init__(self, site: SiteProfile, session: Optional[requests.Session] = None,
                 timeout: float = 10.0, max_results: int = 5,
                 max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH,
                 log: Optional[logging.Logger] = None):
        self.site = site
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_results = max_results
        self.max_content_length = max_content_length
        self.logger = log or logger

    def search(self, query: str) -> SearchResponse:
        """
        Search the wiki, trying each strategy in turn.

        Args:
            query: Free-text query

        Returns:
            SearchResponse with at most max_results unique results
        """
        log_event(self.logger, logging.INFO, "search_stage", f"Searching: {query}",
                  stage="endpoint", query=query)
        response = self.search_via_endpoint(query)
        self._log_stage_result("endpoint", query, response)

        if not response.results:
            log_event(self.logger, logging.INFO, "search_stage", "Trying direct URLs",
                      stage="direct_urls", query=query)
            response = self.search_via_direct_urls(query)
            self._log_stage_result("direct_urls", query, response)

        if not response.results:
            log_event(self.logger, logging.INFO, "search_stage", "Trying query variations",
                      stage="variations", query=query)
            response = self.search_with_variations(query)
            self._log_stage_result("variations", query, response)

        return response

    def search_via_endpoint(self, query: str) -> SearchResponse:
        """Query the site's own search endpoint and parse the result page."""
        url = self.search_url(query)
        try:
            response = self.session.get(url, headers=request_headers(self.site), timeout=self.timeout)
            response.raise_for_status()
            return self.parse_search_results(response.text)
        except Exception as e:
            log_event(self.logger, logging.WARNING, "search_failed", f"Search endpoint failed: {e}",
                      stage="endpoint", query=query, error=str(e))
            return SearchResponse()

    def search_via_direct_urls(self, query: str) -> SearchResponse:
        """Probe the canonical URLs whose keywords occur in the query."""
        lower_query = query.lower()
        results = []

        for mapping in self.site.direct_urls:
            if not any(keyword in lower_query for keyword in mapping.keywords):
                continue
            try:
                response = self.session.head(mapping.url, headers=request_headers(self.site),
                                             timeout=PROBE_TIMEOUT, allow_redirects=True)
            except requests.RequestException as e:
                log_event(self.logger, logging.WARNING, "probe_failed", f"Could not verify {mapping.url}",
                          url=mapping.url, error=str(e))
                continue

            if response.ok and not any(r.url == mapping.url for r in results):
                results.append(SearchResult(
                    title=mapping.keywords[0],
                    url=mapping.url,
                    snippet=f"Direct link found for {mapping.keywords[0]}",
                ))

        return self._truncate(results)

    def search_with_variations(self, query: str) -> SearchResponse:
        """Resubmit syntactic variations of the query to the endpoint."""
        tried = {query}
        for variation in query_variations(query):
            if variation in tried:
                continue
            tried.add(variation)

            response = self.search_via_endpoint(variation)
            if response.results:
                return response

        return SearchResponse()

    def parse_search_results(self, html: str) -> SearchResponse:
        """
        Extract result links from a search page.

        Selectors are tried in profile order; the first one that yields a
        link to this site supplies all of the results.
        """
        soup = BeautifulSoup(html, "html.parser")
        results: List[SearchResult] = []

        for selector in self.site.result_selectors:
            for link in soup.select(selector):
                href = link.get("href")
                text = clean_text(link.get_text(" "))
                if not href or not text:
                    continue

                url = urljoin(self.site.base_url + "/", href.strip())
                if urlparse(url).netloc.lower() != self.site.host:
                    continue
                if any(r.url == url for r in results):
                    continue

                results.append(SearchResult(title=text, url=url, snippet=_snippet_for(link)))

            if results:
                break

        log_event(self.logger, logging.DEBUG, "search_results_parsed",
                  f"Parsed {len(results)} search results", count=len(results))
        return self._truncate(results)

    def fetch_results(self, results: List[SearchResult]) -> List[PageContent]:
        """
        Fetch every result page in order, skipping pages that fail.
        """
        pages = []
        for result in results:
            page = self.fetch(result.url)
            if page:
                pages.append(page)
        return pages

    def fetch(self, url: str) -> Optional[PageContent]:
        return fetch_page(url, self.site, session=self.session, timeout=self.timeout,
                          max_length=self.max_content_length, log=self.logger)

    def search_url(self, query: str) -> str:
        encoded = quote(query, safe="-_.!~*'()")
        endpoint = self.site.search_endpoint
        if "{query}" in endpoint:
            return endpoint.replace("{query}", encoded)
        return endpoint + encoded

    def _truncate(self, results: List[SearchResult]) -> SearchResponse:
        return SearchResponse(results=results[:self.max_results], total_results=len(results))

    def _log_stage_result(self, stage: str, query: str, response: SearchResponse) -> None:
        log_event(self.logger, logging.INFO, "search_stage_result",
                  f"Stage {stage} found {len(response.results)} results",
                  stage=stage, query=query, count=len(response.results),
                  total_results=response.total_results)

def query_variations(query: str) -> List[str]:
    """
    Syntactic variations of a query, in the order they are tried.
    """
    return [
        re.sub(r"\s+", "+", query),
        "-".join(query.split(" ")),
        query.lower(),
        re.sub(r"[^\w\s]", "", query).strip(),
    ]

def _snippet_for(link) -> str:
    container = link.find_parent(SNIPPET_CONTAINERS)
    if container is None:
        return ""
    text = clean_text(container.get_text(" "))
    if len(text) > SNIPPET_LENGTH:
        return text[:SNIPPET_LENGTH] + "..."
    return text

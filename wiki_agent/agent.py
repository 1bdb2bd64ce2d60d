"""
Main WikiAgent class that answers questions from a wiki.
"""

import logging
from typing import Any, Optional

import anthropic
import requests

from .content_extraction import DEFAULT_MAX_CONTENT_LENGTH
from .logger import get_logger, log_event
from .models import COMPLEX_ANALYSIS, ResultEnvelope
from .multi_hop import expand_multi_hop
from .output import build_envelope, error_envelope, not_found_envelope
from .profiles import DEFAULT_SITE, SiteProfile, load_site_profile
from .query_analysis import DEFAULT_MODEL, analyze_query
from .search import WikiSearch
from .summarization import generate_answer

logger = get_logger(__name__)

class WikiAgent:
    def __init__(self, anthropic_api_key: Optional[str] = None, site: Optional[SiteProfile] = None,
                 base_url: Optional[str] = None, search_endpoint: Optional[str] = None,
                 max_results: int = 5, timeout: float = 10.0,
                 max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH,
                 model: str = DEFAULT_MODEL, anthropic_client: Any = None,
                 session: Optional[requests.Session] = None,
                 log: Optional[logging.Logger] = None):
        """
        Initialize the agent with its site profile and API credentials.

        Args:
            anthropic_api_key: API key for the Anthropic Claude API
            site: Site profile (the default wiki's bundled profile when None)
            base_url: Override for the profile's base origin
            search_endpoint: Override for the profile's search endpoint
            max_results: Maximum number of search results per search
            timeout: Per-request timeout in seconds
            max_content_length: Ceiling for extracted page content
            model: Claude model used for analysis and answers
            anthropic_client: Pre-built client, used instead of anthropic_api_key
            session: requests session shared by all HTTP calls
            log: Logger for pipeline events
        """
        site = site or load_site_profile(DEFAULT_SITE)
        self.site = site.with_overrides(base_url=base_url, search_endpoint=search_endpoint)
        self.model = model
        self.logger = log or logger

        if anthropic_client is None and anthropic_api_key:
            anthropic_client = anthropic.Anthropic(api_key=anthropic_api_key)
        self.anthropic_client = anthropic_client

        self.search_engine = WikiSearch(
            self.site,
            session=session,
            timeout=timeout,
            max_results=max_results,
            max_content_length=max_content_length,
            log=self.logger,
        )

        self.logger.debug(
            "Wiki Agent configuration",
            extra={"extra_fields": {
                "site": self.site.domain,
                "search_endpoint": self.site.search_endpoint,
                "max_results": max_results,
                "timeout": timeout,
                "model": model,
                "llm_enabled": self.anthropic_client is not None,
            }},
        )

    def process_query(self, query: str) -> ResultEnvelope:
        """
        Answer one question.

        Never raises: any unexpected failure is returned as an error envelope
        with found=False.

        Args:
            query: Natural-language question

        Returns:
            ResultEnvelope
        """
        log_event(self.logger, logging.INFO, "query_received", f"Processing query: {query}", query=query)

        try:
            processed = analyze_query(self.anthropic_client, query, self.site,
                                      model=self.model, log=self.logger)
            log_event(self.logger, logging.INFO, "query_analyzed", "Query analysis complete",
                      query=query, complexity=processed.complexity, entities=processed.entities,
                      source=processed.source)

            search_response = self.search_engine.search(query)
            documents = self.search_engine.fetch_results(search_response.results)
            log_event(self.logger, logging.INFO, "pages_fetched", f"Fetched {len(documents)} wiki pages",
                      requested=len(search_response.results), fetched=len(documents))

            if not documents:
                return not_found_envelope(query, self.site)

            if processed.complexity == COMPLEX_ANALYSIS:
                documents = documents + expand_multi_hop(processed, documents, self.search_engine,
                                                         log=self.logger)

            answer = generate_answer(self.anthropic_client, processed, documents, self.site,
                                     model=self.model, log=self.logger)
            return build_envelope(query, documents, answer)

        except Exception as e:
            self.logger.exception(
                "Error processing query",
                extra={"extra_fields": {"event": "query_failed", "query": query, "error": str(e)}},
            )
            return error_envelope(query, e)

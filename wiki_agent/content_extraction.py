"""
Functions for extracting content from wiki pages.
"""

import logging
from typing import Dict, List, Optional

import requests
from bs4 import BeautifulSoup

from .logger import get_logger, log_event
from .models import PageContent
from .profiles import SiteProfile

logger = get_logger(__name__)

DEFAULT_MAX_CONTENT_LENGTH = 8000
MIN_CONTENT_LENGTH = 100

NON_CONTENT_SELECTOR = "script, style, nav, footer, .sidebar"
CHROME_SELECTOR = "header, nav, footer, .navigation, .menu"
HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]

def request_headers(site: SiteProfile) -> Dict[str, str]:
    """Headers sent with every request to the content site."""
    return {
        "User-Agent": site.user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    }

def clean_text(text: str) -> str:
    """Collapse all runs of whitespace into single spaces."""
    return " ".join(text.split())

def fetch_page(url: str, site: SiteProfile, session: Optional[requests.Session] = None,
               timeout: float = 10.0, max_length: int = DEFAULT_MAX_CONTENT_LENGTH,
               log: Optional[logging.Logger] = None) -> Optional[PageContent]:
    """
    Fetch a wiki page and extract its content.

    Args:
        url: Page URL
        site: Profile of the site the page belongs to
        session: requests session to use (module-level requests when None)
        timeout: Request timeout in seconds
        max_length: Ceiling for the extracted main content
        log: Logger for fetch events

    Returns:
        PageContent, or None if the page could not be fetched
    """
    log = log or logger
    http = session or requests
    log_event(log, logging.INFO, "page_fetch", f"Fetching: {url}", url=url)

    try:
        response = http.get(url, headers=request_headers(site), timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        log_event(log, logging.WARNING, "fetch_failed", f"Failed to fetch {url}: {e}",
                  url=url, error=str(e))
        return None

    try:
        return parse_page(url, response.text, site, max_length)
    except Exception as e:
        log_event(log, logging.WARNING, "fetch_failed", f"Could not parse {url}: {e}",
                  url=url, error=str(e))
        return None

def parse_page(url: str, html: str, site: SiteProfile,
               max_length: int = DEFAULT_MAX_CONTENT_LENGTH) -> PageContent:
    """
    Derive title, main content and sections from a page's HTML.
    """
    soup = BeautifulSoup(html, "html.parser")

    for element in soup.select(NON_CONTENT_SELECTOR):
        element.decompose()

    title = extract_title(soup)
    # Before the content pick, whose body fallback strips header elements
    sections = extract_sections(soup)
    content = extract_main_content(soup, site.content_selectors)

    return PageContent(url=url, title=title, content=content[:max_length], sections=sections)

def extract_title(soup: BeautifulSoup) -> str:
    heading = soup.find("h1")
    if heading:
        title = clean_text(heading.get_text(" "))
        if title:
            return title

    if soup.title:
        # "Gunung Agung - Ambisius Wiki" -> "Gunung Agung"
        title = clean_text(soup.title.get_text()).split(" - ")[0].strip()
        if title:
            return title

    return "Untitled"

def extract_main_content(soup: BeautifulSoup, selectors: List[str]) -> str:
    """
    Pick the content container whose text is longest, falling back to the
    whole body when no container holds a meaningful amount of text.

    Note: the fallback removes header and menu elements from ``soup``.
    """
    best = ""
    for selector in selectors:
        text = clean_text(" ".join(el.get_text(" ") for el in soup.select(selector)))
        if len(text) > len(best):
            best = text

    if len(best) < MIN_CONTENT_LENGTH:
        for element in soup.select(CHROME_SELECTOR):
            element.decompose()
        body = soup.body or soup
        best = clean_text(body.get_text(" "))

    return best

def extract_sections(soup: BeautifulSoup) -> Dict[str, str]:
    """
    Map each heading to the text of the siblings that follow it, up to the
    next heading of the same or a higher level.
    """
    sections = {}
    for heading in soup.find_all(HEADING_TAGS):
        heading_text = clean_text(heading.get_text(" "))
        if not heading_text:
            continue

        level = int(heading.name[1])
        parts = []
        for sibling in heading.find_next_siblings():
            if sibling.name in HEADING_TAGS and int(sibling.name[1]) <= level:
                break
            parts.append(sibling.get_text(" "))

        text = clean_text(" ".join(parts))
        if text:
            sections[heading_text] = text

    return sections

"""
Wiki Agent - answers questions from a wiki using layered search, page extraction and Claude.
"""

from .models import PageContent, ProcessedQuery, ResultEnvelope, SearchResponse, SearchResult
from .profiles import SiteProfile, load_site_profile
from .agent import WikiAgent

__all__ = [
    'WikiAgent',
    'SiteProfile',
    'load_site_profile',
    'SearchResult',
    'SearchResponse',
    'PageContent',
    'ProcessedQuery',
    'ResultEnvelope',
]

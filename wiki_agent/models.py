"""
Data models for the Wiki Agent.
"""

from types import MappingProxyType
from typing import List, Mapping, Tuple
from dataclasses import dataclass, field, asdict

SIMPLE = "simple"
COMPARISON = "comparison"
REPORT = "report"
COMPLEX_ANALYSIS = "complex_analysis"

COMPLEXITIES = (SIMPLE, COMPARISON, REPORT, COMPLEX_ANALYSIS)

@dataclass
class SearchResult:
    """
    A candidate page found on the wiki.
    """
    title: str    # Visible link text (or the matched keyword for direct links)
    url: str      # Absolute URL, unique within one search call
    snippet: str  # Short preview of the text around the link

@dataclass
class SearchResponse:
    """
    Results of one search call, capped to the configured maximum.
    """
    results: List[SearchResult] = field(default_factory=list)
    total_results: int = 0  # Number of results found before truncation

@dataclass(frozen=True)
class PageContent:
    """
    Extracted content of a single wiki page.
    """
    url: str
    title: str
    content: str                                               # Main text, cut to the caller's ceiling
    sections: Mapping[str, str] = field(default_factory=dict)  # Heading text -> text under that heading

    def __post_init__(self):
        object.__setattr__(self, "sections", MappingProxyType(dict(self.sections)))

@dataclass(frozen=True)
class ProcessedQuery:
    """
    Classification of a user query.
    """
    original_query: str
    intent: str
    entities: Tuple[str, ...]
    complexity: str                 # One of COMPLEXITIES
    requires_multiple_pages: bool
    source: str = "heuristic"       # "model" when Claude produced the analysis

    def __post_init__(self):
        object.__setattr__(self, "entities", tuple(self.entities))

@dataclass
class ResultEnvelope:
    """
    Final answer returned to the caller.
    """
    query: str
    found: bool
    sources: List[str]
    answer: str
    format: str = "markdown"
    timestamp: str = ""

    def to_dict(self):
        """
        Convert envelope to the dictionary shape shared with callers.
        """
        return asdict(self)

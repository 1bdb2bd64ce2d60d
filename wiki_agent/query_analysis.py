"""
Functions for analyzing user queries.
"""

import re
import json
import logging
from typing import Any, List, Optional

from .logger import get_logger, log_event
from .models import COMPLEXITIES, SIMPLE, ProcessedQuery
from .profiles import SiteProfile

logger = get_logger(__name__)

DEFAULT_MODEL = "claude-3-5-haiku-20241022"

REQUIRED_FIELDS = ("intent", "entities", "complexity", "requiresMultiplePages")

def analyze_query(anthropic_client: Any, query: str, site: SiteProfile,
                  model: str = DEFAULT_MODEL,
                  log: Optional[logging.Logger] = None) -> ProcessedQuery:
    """
    Use Claude to work out intent, entities and complexity of a query.
    Falls back to keyword heuristics whenever Claude is unavailable or its
    answer cannot be used, so this never raises.

    Args:
        anthropic_client: Anthropic API client (may be None)
        query: Raw user query
        site: Profile of the wiki being queried
        model: Claude model name
        log: Logger for classification events

    Returns:
        ProcessedQuery
    """
    log = log or logger

    if anthropic_client is not None:
        try:
            analysis = _analyze_with_model(anthropic_client, query, site, model)
            if analysis is not None:
                return analysis
            reason = "unusable model response"
        except Exception as e:
            reason = str(e)
    else:
        reason = "no model client"

    log_event(log, logging.WARNING, "classification_fallback",
              "Failed to analyze query with Claude, using fallback", query=query, reason=reason)
    return fallback_query_analysis(query, site)

def _analyze_with_model(anthropic_client: Any, query: str, site: SiteProfile,
                        model: str) -> Optional[ProcessedQuery]:
    prompt = f"""
    Analyze this query, asked against {site.name}, and extract key information.
    The query may be written in Indonesian or English.

    QUERY: "{query}"

    Provide your analysis in this exact JSON format:
    {{
      "originalQuery": {json.dumps(query, ensure_ascii=False)},
      "intent": "description of what the user wants",
      "entities": ["list", "of", "key", "entities", "mentioned"],
      "complexity": "simple|comparison|report|complex_analysis",
      "requiresMultiplePages": true
    }}

    Guidelines:
    - "simple": asking for basic information about one thing
    - "comparison": comparing multiple things
    - "report": requesting a detailed report or history
    - "complex_analysis": multi-step analysis requiring inference (like finding a province, then reporting on that province)
    - requiresMultiplePages: true if the answer needs information from several wiki pages

    ONLY INCLUDE THE JSON IN YOUR RESPONSE, NO OTHER TEXT.
    """

    response = anthropic_client.messages.create(
        model=model,
        max_tokens=500,
        temperature=0.0,
        system="You analyze search queries and answer with JSON only.",
        messages=[
            {"role": "user", "content": prompt}
        ]
    )

    result = response.content[0].text.strip()

    candidate = extract_json_object(result)
    if candidate is None:
        return None

    try:
        data = json.loads(candidate)
    except ValueError:
        return None

    if not _is_valid_analysis(data):
        return None

    return ProcessedQuery(
        original_query=query,
        intent=data["intent"],
        entities=_unique(data["entities"]),
        complexity=data["complexity"],
        requires_multiple_pages=data["requiresMultiplePages"],
        source="model",
    )

def _is_valid_analysis(data: Any) -> bool:
    if not isinstance(data, dict):
        return False
    if any(key not in data for key in REQUIRED_FIELDS):
        return False
    return (
        isinstance(data["intent"], str)
        and isinstance(data["entities"], list)
        and all(isinstance(e, str) for e in data["entities"])
        and data["complexity"] in COMPLEXITIES
        and isinstance(data["requiresMultiplePages"], bool)
    )

def extract_json_object(text: str) -> Optional[str]:
    """
    Return the first balanced ``{...}`` substring of text, or None.
    Braces inside JSON string literals are ignored.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            char = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        # Unbalanced from this brace on; try the next opening brace
        start = text.find("{", start + 1)
    return None

def fallback_query_analysis(query: str, site: SiteProfile) -> ProcessedQuery:
    """
    Classify a query with the site's keyword rules.

    The result depends only on the lower-cased query and the profile.
    """
    lower_query = query.lower()

    complexity = SIMPLE
    for rule in site.complexity_rules:
        if any(all(_contains_marker(lower_query, m) for m in group) for group in rule.markers):
            complexity = rule.complexity
            break

    entities = [entity for entity in site.entities if entity in lower_query]

    return ProcessedQuery(
        original_query=query,
        intent=f"User wants information about: {', '.join(entities) or 'general query'}",
        entities=entities,
        complexity=complexity,
        requires_multiple_pages=complexity != SIMPLE,
        source="heuristic",
    )

def _contains_marker(lower_query: str, marker: str) -> bool:
    # Whole words only, so "and" does not fire inside "island"
    return re.search(r"\b" + re.escape(marker.lower()) + r"\b", lower_query) is not None

def _unique(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))

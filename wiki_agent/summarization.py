"""
Functions for composing answers from retrieved wiki pages.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from .logger import get_logger, log_event
from .models import COMPARISON, COMPLEX_ANALYSIS, REPORT, SIMPLE, PageContent, ProcessedQuery
from .profiles import SiteProfile
from .query_analysis import DEFAULT_MODEL

logger = get_logger(__name__)

CONTEXT_CONTENT_LENGTH = 3000
FALLBACK_CONTENT_LENGTH = 800

def build_context(documents: List[PageContent]) -> List[Dict[str, str]]:
    """
    Reduce documents to the excerpt handed to Claude.
    """
    return [
        {"url": doc.url, "title": doc.title, "content": doc.content[:CONTEXT_CONTENT_LENGTH]}
        for doc in documents
    ]

def generate_answer(anthropic_client: Any, query: ProcessedQuery, documents: List[PageContent],
                    site: SiteProfile, model: str = DEFAULT_MODEL,
                    log: Optional[logging.Logger] = None) -> str:
    """
    Use Claude to write the answer, with a prompt shaped by the query's complexity.

    Args:
        anthropic_client: Anthropic API client (may be None)
        query: Classified query
        documents: Retrieved pages, in retrieval order
        site: Profile of the wiki the pages came from
        model: Claude model name
        log: Logger for synthesis events

    Returns:
        Markdown answer; the local fallback text if Claude fails
    """
    log = log or logger
    context = build_context(documents)
    builder = PROMPT_BUILDERS.get(query.complexity, _simple_prompt)
    prompt = builder(query, context, site)

    if anthropic_client is None:
        log_event(log, logging.WARNING, "synthesis_fallback", "No Claude client, using fallback answer",
                  reason="no model client")
        return fallback_answer(query, context, site)

    try:
        response = anthropic_client.messages.create(
            model=model,
            max_tokens=4000,
            temperature=0.1,
            system=f"You are a helpful assistant answering questions from {site.name}. "
                   "Only use the sources you are given.",
            messages=[
                {"role": "user", "content": prompt}
            ]
        )
        answer = response.content[0].text
        if not answer or not answer.strip():
            raise ValueError("empty response")
        return answer
    except Exception as e:
        log_event(log, logging.WARNING, "synthesis_fallback", f"Error generating answer: {e}",
                  reason=str(e))
        return fallback_answer(query, context, site)

def _format_sources(context: List[Dict[str, str]]) -> str:
    return "\n".join(
        f"""
    ---
    SOURCE: {c['url']}
    TITLE: {c['title']}
    CONTENT: {c['content']}
    ---"""
        for c in context
    )

def _simple_prompt(query: ProcessedQuery, context: List[Dict[str, str]], site: SiteProfile) -> str:
    return f"""
    You are an assistant that answers questions using {site.name}.
    Give an accurate, informative answer to the question below, in the language of the question.

    QUESTION: {query.original_query}

    AVAILABLE SOURCES:
    {_format_sources(context)}

    Instructions:
    1. Answer the question directly
    2. Use clean markdown
    3. Include specific location details if the question is about a location
    4. If the information is not in the sources, say so clearly
    5. End with the list of sources used

    FORMAT:
    # [Answer title]

    [Detailed answer]

    ## Sources
    - [list of sources]
    """

def _comparison_prompt(query: ProcessedQuery, context: List[Dict[str, str]], site: SiteProfile) -> str:
    return f"""
    Write a detailed, structured comparison for the question below, in the language of the question.

    QUESTION: {query.original_query}

    SOURCES:
    {_format_sources(context)}

    Instructions:
    1. Present the comparison as a markdown table
    2. Explain the main differences in paragraphs after the table
    3. Focus on the most relevant aspects (location, elevation, history, characteristics)
    4. If information about one side is incomplete or missing, say so clearly

    FORMAT:
    # Comparison of [Topic A] and [Topic B]

    ## Comparison Table
    | Aspect | [Topic A] | [Topic B] |
    |--------|-----------|-----------|

    ## Main Differences
    [Explanation]

    ## Sources
    - [list of sources]
    """

def _report_prompt(query: ProcessedQuery, context: List[Dict[str, str]], site: SiteProfile) -> str:
    entities = ", ".join(query.entities) or "the requested topics"
    return f"""
    Write a comprehensive report for the request below, in the language of the request.

    REQUEST: {query.original_query}
    TOPICS MENTIONED: {entities}

    AVAILABLE DATA:
    {_format_sources(context)}

    Instructions:
    1. Structure the report with clear headings, one section per topic
    2. Focus on the aspect the request asks for (e.g. history)
    3. REQUIRED: for every topic with no information in the data, add a section that states
       clearly that the information is not available in {site.name}
    4. Use a formal report style
    5. State explicitly which topics were found and which were not

    FORMAT:
    # Report: [Topics]

    ## Executive Summary
    [Short summary, naming the topics found and not found]

    ## [Topic found]
    [Details]

    ## [Topic not found]
    **INFORMATION NOT AVAILABLE:** Information about [topic] was not found in {site.name}.

    ## Conclusion

    ## References
    - [list of sources]
    """

def _complex_analysis_prompt(query: ProcessedQuery, context: List[Dict[str, str]], site: SiteProfile) -> str:
    return f"""
    Answer the question below, which needs multi-step inference, in the language of the question.

    QUESTION: {query.original_query}

    SOURCES:
    {_format_sources(context)}

    Instructions:
    1. Step 1: identify the location or province from the sources
    2. Step 2: use the page about that province to answer the actual request
    3. Step 3: show the reasoning clearly
    4. If a step cannot be completed from the sources, explain which one

    FORMAT:
    # [Answer title]

    ## Location Analysis
    According to [source], [subject] is located in [province].

    ## [Requested information about the province]

    ## Conclusion

    ## Method
    1. [Steps taken]

    ## References
    - [list of sources]
    """

PROMPT_BUILDERS: Dict[str, Callable[[ProcessedQuery, List[Dict[str, str]], SiteProfile], str]] = {
    SIMPLE: _simple_prompt,
    COMPARISON: _comparison_prompt,
    REPORT: _report_prompt,
    COMPLEX_ANALYSIS: _complex_analysis_prompt,
}

def fallback_answer(query: ProcessedQuery, context: List[Dict[str, str]], site: SiteProfile) -> str:
    """
    Build an answer without Claude from the retrieved excerpts.
    """
    output = [f"# Answer to: {query.original_query}", ""]

    if context:
        output.append(f"Based on a search of {site.name}, this is the information found:")
        for c in context:
            output.append(f"\n## {c['title']}")
            output.append(f"{c['content'][:FALLBACK_CONTENT_LENGTH]}...")
            output.append(f"\n**Source:** {c['url']}")
    else:
        output.append(f"**Sorry, the requested information was not found in {site.name}.**")

    for entity in missing_entities(query, context, site):
        output.append(f"\n## {entity.title()}")
        output.append(f"**Information not available:** information about {entity.title()} "
                      f"was not found in {site.name}.")

    output.append("\n## References")
    if context:
        output.extend(f"- [{c['title']}]({c['url']})" for c in context)
    else:
        output.append("- No sources found")

    return "\n".join(output)

def missing_entities(query: ProcessedQuery, context: List[Dict[str, str]], site: SiteProfile) -> List[str]:
    """
    Query entities that none of the retrieved excerpts mention.

    An entity also counts as covered when a shorter entity contained in it is
    (so "mount agung" is covered by a page that only says "Agung"). Among the
    missing ones, only the longest form is reported.
    """
    if not context:
        return []

    generic = {g.lower() for g in site.generic_entities}
    entities = [e.lower() for e in query.entities if e.lower() not in generic]
    haystacks = [
        " ".join([c["title"], c["url"].replace("-", " ").replace("/", " "), c["content"]]).lower()
        for c in context
    ]

    directly_covered = {e for e in entities if any(e in h for h in haystacks)}
    covered = {
        e for e in entities
        if e in directly_covered or any(other != e and other in e for other in directly_covered)
    }
    missing = [e for e in entities if e not in covered]

    return [e for e in missing if not any(other != e and e in other for other in missing)]

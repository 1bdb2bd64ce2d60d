"""
Functions for building, formatting and saving result envelopes.
"""

import os
import re
import json
from typing import List
from datetime import datetime, timezone

from .models import PageContent, ResultEnvelope
from .profiles import SiteProfile

def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()

def build_envelope(query: str, documents: List[PageContent], answer: str) -> ResultEnvelope:
    """
    Package an answer with the documents it was built from.
    """
    return ResultEnvelope(
        query=query,
        found=len(documents) > 0,
        sources=[doc.url for doc in documents],
        answer=answer,
        format="markdown",
        timestamp=_timestamp(),
    )

def not_found_envelope(query: str, site: SiteProfile) -> ResultEnvelope:
    answer = f"""# Information Not Found

Sorry, no information about "{query}" was found in {site.name}.

## Possible Causes
- The topic is not yet available on the wiki
- The search terms need adjusting
- The information may be listed under a different name

## Suggestions
- Try different keywords
- Check spelling and punctuation
- Use more general terms"""
    return ResultEnvelope(query=query, found=False, sources=[], answer=answer,
                          format="markdown", timestamp=_timestamp())

def error_envelope(query: str, error: Exception) -> ResultEnvelope:
    answer = f"""# Error Processing Request

An error occurred while processing "{query}".

**Error:** {error}

## Troubleshooting
1. Check your internet connection
2. Make sure the wiki is reachable
3. Try again in a few moments"""
    return ResultEnvelope(query=query, found=False, sources=[], answer=answer,
                          format="markdown", timestamp=_timestamp())

def format_envelope(envelope: ResultEnvelope) -> str:
    """
    Render an envelope as a human-readable report for the terminal.
    """
    output = [
        "RESULTS",
        "=" * 50,
        f"Query: {envelope.query}",
        f"Found: {envelope.found}",
        f"Sources: {len(envelope.sources)}",
    ]

    if envelope.sources:
        output.append("\nSources Used:")
        for i, source in enumerate(envelope.sources):
            output.append(f"   {i+1}. {source}")

    output.append("\nResponse:")
    output.append("-" * 50)
    output.append(envelope.answer)
    output.append("-" * 50)
    output.append(f"\nGenerated at: {envelope.timestamp}")

    return "\n".join(output)

def save_envelope(envelope: ResultEnvelope, output_dir: str, index: int = 1) -> List[str]:
    """
    Save an envelope as Markdown and JSON files and return their paths.

    Args:
        envelope: Envelope to save
        output_dir: Directory to save files in
        index: Position of the query in a batch, used in the file names

    Returns:
        List of saved file paths
    """
    os.makedirs(output_dir, exist_ok=True)

    slug = re.sub(r"[^a-z0-9]+", "_", envelope.query.lower()).strip("_")[:50] or "query"
    base = os.path.join(output_dir, f"{index:02d}_{slug}")

    md_path = base + ".md"
    with open(md_path, "w", encoding="utf-8") as f:
        f.write(f"QUERY: {envelope.query}\n")
        f.write(f"FOUND: {envelope.found}\n")
        f.write(f"GENERATED: {envelope.timestamp}\n")
        if envelope.sources:
            f.write("\nSOURCES:\n")
            for source in envelope.sources:
                f.write(f"- {source}\n")
        f.write("\n" + "="*80 + "\n\n")
        f.write(envelope.answer)

    json_path = base + ".json"
    with open(json_path, "w", encoding="utf-8") as f:
        json.dump(envelope.to_dict(), f, indent=2, ensure_ascii=False)

    return [md_path, json_path]

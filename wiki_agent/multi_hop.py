"""
Second retrieval round for questions that chain two facts, such as
"the history of the province where Mount Agung is located".
"""

import logging
from typing import List, Optional, Tuple

from .logger import get_logger, log_event
from .models import PageContent, ProcessedQuery
from .profiles import Region, Relation, SiteProfile
from .search import WikiSearch

logger = get_logger(__name__)

def expand_multi_hop(query: ProcessedQuery, documents: List[PageContent], search: WikiSearch,
                     log: Optional[logging.Logger] = None) -> List[PageContent]:
    """
    Look for a relation fact (e.g. the province a mountain lies in) in the
    documents retrieved so far, and retrieve the pages about that fact.

    Args:
        query: Classified query
        documents: Documents from the first retrieval round
        search: Search engine used for the second round
        log: Logger for multi-hop events

    Returns:
        Documents to append, excluding URLs already present. Empty when
        nothing in the first round qualifies.
    """
    log = log or logger
    lower_query = query.original_query.lower()
    seen = {doc.url for doc in documents}
    additions: List[PageContent] = []

    for relation in search.site.relations:
        if not any(marker.lower() in lower_query for marker in relation.markers):
            continue

        found = find_relation_fact(query, documents, relation, search.site)
        if found is None:
            continue
        subject_doc, region = found

        log_event(log, logging.INFO, "multi_hop_triggered",
                  f"Found {region.name} mentioned in {subject_doc.url}, searching for it",
                  relation=relation.name, region=region.name, subject_url=subject_doc.url)

        second_round = search.search(region.query)
        pages = search.fetch_results(second_round.results)

        direct = search.fetch(region.url)
        if direct:
            pages.append(direct)

        for page in pages:
            if page.url not in seen:
                seen.add(page.url)
                additions.append(page)

    log_event(log, logging.INFO, "multi_hop_result",
              f"Multi-hop round added {len(additions)} documents", count=len(additions))
    return additions

def find_relation_fact(query: ProcessedQuery, documents: List[PageContent], relation: Relation,
                       site: SiteProfile) -> Optional[Tuple[PageContent, Region]]:
    """
    Find the first document about one of the query's subjects and the region
    it mentions first.

    Subjects are the query entities plus the site vocabulary found in the
    query, so "agung" qualifies a page titled "Gunung Agung" even when the
    model phrased the entity as "Mount Agung".

    Returns:
        (subject document, region) or None
    """
    region_aliases = {alias.lower() for region in relation.regions for alias in region.aliases}
    generic = {g.lower() for g in site.generic_entities} | {m.lower() for m in relation.markers}
    lower_query = query.original_query.lower()
    candidates = [e.lower() for e in query.entities]
    candidates += [e.lower() for e in site.entities if e.lower() in lower_query]
    subjects = [
        e for e in dict.fromkeys(candidates)
        if e not in generic and e not in region_aliases
    ]

    for doc in documents:
        if not _is_about(doc, subjects):
            continue
        region = _first_region_mentioned(doc.content.lower(), relation.regions)
        if region:
            return doc, region

    return None

def _is_about(doc: PageContent, subjects: List[str]) -> bool:
    url = doc.url.lower()
    title = doc.title.lower()
    return any(s.replace(" ", "-") in url or s in title for s in subjects)

def _first_region_mentioned(text: str, regions: List[Region]) -> Optional[Region]:
    best = None
    best_pos = len(text) + 1
    for region in regions:
        for alias in region.aliases:
            pos = text.find(alias.lower())
            if pos != -1 and pos < best_pos:
                best, best_pos = region, pos
    return best

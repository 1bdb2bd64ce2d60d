"""
Site profiles: the per-domain data table that drives search, extraction,
classification and multi-hop retrieval.
"""

import os
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field, replace
from urllib.parse import urlparse

import yaml

PROFILE_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "profiles")

DEFAULT_SITE = "wiki.ambisius.com"

DEFAULT_CONTENT_SELECTORS = [
    "main .content",
    ".main-content",
    ".article-content",
    "#content",
    "article",
    ".post-content",
    ".entry-content",
    "main",
    ".content",
]

@dataclass
class DirectUrl:
    keywords: List[str]  # First keyword doubles as the result title
    url: str

@dataclass
class ComplexityRule:
    complexity: str
    markers: List[List[str]]  # Any group matches when all of its words occur

@dataclass
class Region:
    name: str
    aliases: List[str]
    query: str  # Region-qualified search query for the second round
    url: str    # Canonical page for the region

@dataclass
class Relation:
    name: str
    markers: List[str]
    regions: List[Region] = field(default_factory=list)

@dataclass
class SiteProfile:
    """
    Everything the pipeline knows about one content site.
    """
    domain: str
    name: str
    base_url: str
    search_endpoint: str
    user_agent: str = "Wiki-Agent/1.0"
    result_selectors: List[str] = field(default_factory=lambda: ["a"])
    content_selectors: List[str] = field(default_factory=lambda: list(DEFAULT_CONTENT_SELECTORS))
    direct_urls: List[DirectUrl] = field(default_factory=list)
    entities: List[str] = field(default_factory=list)
    generic_entities: List[str] = field(default_factory=list)
    complexity_rules: List[ComplexityRule] = field(default_factory=list)
    relations: List[Relation] = field(default_factory=list)

    @property
    def host(self) -> str:
        return urlparse(self.base_url).netloc.lower()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SiteProfile":
        data = dict(data)
        data["direct_urls"] = [DirectUrl(**d) for d in data.get("direct_urls") or []]
        data["complexity_rules"] = [ComplexityRule(**r) for r in data.get("complexity_rules") or []]
        data["relations"] = [
            Relation(
                name=r["name"],
                markers=r.get("markers", []),
                regions=[Region(**g) for g in r.get("regions") or []],
            )
            for r in data.get("relations") or []
        ]
        return cls(**data)

    def with_overrides(self, base_url: Optional[str] = None,
                       search_endpoint: Optional[str] = None) -> "SiteProfile":
        """
        Return a copy pointing at a different origin or search endpoint.

        Moving the origin also moves every profile URL under the old origin
        (search endpoint, direct URLs, region pages), so probes and fetches
        stay on the same host as the search.
        """
        data = dict(self.__dict__)
        if base_url:
            old_base, new_base = self.base_url.rstrip("/"), base_url.rstrip("/")
            data["base_url"] = new_base
            data["search_endpoint"] = _rebase(self.search_endpoint, old_base, new_base)
            data["direct_urls"] = [replace(d, url=_rebase(d.url, old_base, new_base))
                                   for d in self.direct_urls]
            data["relations"] = [
                replace(r, regions=[replace(g, url=_rebase(g.url, old_base, new_base)) for g in r.regions])
                for r in self.relations
            ]
        if search_endpoint:
            data["search_endpoint"] = search_endpoint
        return SiteProfile(**data)

def _rebase(url: str, old_base: str, new_base: str) -> str:
    if url == old_base or url.startswith(old_base + "/"):
        return new_base + url[len(old_base):]
    return url

def load_site_profile(domain: str = DEFAULT_SITE, profile_dir: Optional[str] = None) -> SiteProfile:
    """
    Load the profile for a domain from ``<profile_dir>/<domain>.yaml``.

    Args:
        domain: Site domain, e.g. "wiki.ambisius.com"
        profile_dir: Directory holding profile files (defaults to the bundled ones)

    Returns:
        SiteProfile

    Raises:
        ValueError: If no profile exists for the domain or the file is malformed
    """
    path = os.path.join(profile_dir or PROFILE_DIR, f"{domain}.yaml")
    if not os.path.exists(path):
        raise ValueError(f"No site profile for {domain!r} (looked in {path})")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Error parsing site profile {path}: {e}")

    if not isinstance(data, dict):
        raise ValueError(f"Site profile {path} must be a mapping")

    try:
        return SiteProfile.from_dict(data)
    except (KeyError, TypeError) as e:
        raise ValueError(f"Invalid site profile {path}: {e}")

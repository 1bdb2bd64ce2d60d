from types import SimpleNamespace
from unittest.mock import MagicMock
from urllib.parse import unquote

import pytest
import requests

from wiki_agent.profiles import load_site_profile

BASE = "https://wiki.ambisius.com"
AGUNG_URL = f"{BASE}/gunung/gunung-agung"
TAMBORA_URL = f"{BASE}/gunung/gunung-tambora"
BALI_URL = f"{BASE}/provinsi/bali"

EMPTY_SEARCH_PAGE = """
<html><head><title>Search - Ambisius Wiki</title></head>
<body><div class="search"><p>No results found.</p></div></body></html>
"""

AGUNG_PAGE = """
<html>
<head><title>Gunung Agung - Ambisius Wiki</title><script>var tracking = 1;</script></head>
<body>
<nav><a href="/">Home</a> <a href="/gunung">Mountains</a></nav>
<main><div class="content">
<h1>Gunung Agung</h1>
<p>Mount Agung (Gunung Agung) is an active stratovolcano located in the province of Bali,
Indonesia. At 3,031 metres it is the highest point on the island.</p>
<h2>Location</h2>
<p>The mountain stands in Karangasem Regency in the east of Bali.</p>
<h2>History</h2>
<p>The eruption of 1963 was one of the largest of the twentieth century.</p>
</div></main>
<footer>Copyright Ambisius Wiki</footer>
</body>
</html>
"""

TAMBORA_PAGE = """
<html>
<head><title>Gunung Tambora - Ambisius Wiki</title></head>
<body>
<main><div class="content">
<h1>Gunung Tambora</h1>
<p>Mount Tambora (Gunung Tambora) is a stratovolcano on the island of Sumbawa in West Nusa
Tenggara, Indonesia. Its 1815 eruption was the largest in recorded history.</p>
<h2>History</h2>
<p>The 1815 eruption caused the Year Without a Summer in 1816.</p>
</div></main>
</body>
</html>
"""

BALI_PAGE = """
<html>
<head><title>Provinsi Bali - Ambisius Wiki</title></head>
<body>
<main><div class="content">
<h1>Provinsi Bali</h1>
<p>Bali is a province of Indonesia east of Java. Its capital is Denpasar and it is known for its
Hindu culture, temples and terraced rice fields.</p>
<h2>History</h2>
<p>Bali became a province in 1958 after the dissolution of Lesser Sunda.</p>
</div></main>
</body>
</html>
"""


def search_page(*links):
    """A search result page listing (href, text) links."""
    items = "\n".join(f'<li><a href="{href}">{text}</a> Article about {text}.</li>' for href, text in links)
    return f"""
<html><body>
<nav><a href="/">Home</a></nav>
<ul class="results">
{items}
</ul>
</body></html>
"""


class FakeResponse:
    def __init__(self, url, status_code=200, text=""):
        self.url = url
        self.status_code = status_code
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error for url: {self.url}", response=self)


class FakeWiki:
    """
    In-memory stand-in for a requests session talking to the wiki.

    pages maps URL -> HTML; searches maps the decoded search query -> HTML.
    URLs in failing raise a timeout.
    """

    def __init__(self, pages=None, searches=None, failing=(), search_status=200,
                 endpoint=f"{BASE}/find/"):
        self.pages = dict(pages or {})
        self.searches = dict(searches or {})
        self.failing = set(failing)
        self.search_status = search_status
        self.endpoint = endpoint
        self.requests = []

    def get(self, url, headers=None, timeout=None):
        self.requests.append(("GET", url))
        if url in self.failing:
            raise requests.Timeout(f"Timed out: {url}")
        if url.startswith(self.endpoint):
            query = unquote(url[len(self.endpoint):])
            return FakeResponse(url, self.search_status, self.searches.get(query, EMPTY_SEARCH_PAGE))
        if url in self.pages:
            return FakeResponse(url, 200, self.pages[url])
        return FakeResponse(url, 404, "Not Found")

    def head(self, url, headers=None, timeout=None, allow_redirects=False):
        self.requests.append(("HEAD", url))
        if url in self.failing:
            raise requests.Timeout(f"Timed out: {url}")
        return FakeResponse(url, 200 if url in self.pages else 404)

    def urls(self, method):
        return [url for m, url in self.requests if m == method]


def make_claude(classification=None, answer="Generated answer", answer_error=None):
    """
    MagicMock Anthropic client. Classification calls (JSON system prompt)
    return ``classification`` or raise when it is None; answer calls return
    ``answer`` or raise ``answer_error``.
    """
    client = MagicMock()

    def create(**kwargs):
        if "JSON" in kwargs["system"]:
            if classification is None:
                raise RuntimeError("model unavailable")
            text = classification
        else:
            if answer_error is not None:
                raise answer_error
            text = answer
        return SimpleNamespace(content=[SimpleNamespace(text=text)])

    client.messages.create.side_effect = create
    return client


@pytest.fixture
def site():
    return load_site_profile("wiki.ambisius.com")


@pytest.fixture
def wiki():
    return FakeWiki(pages={AGUNG_URL: AGUNG_PAGE, TAMBORA_URL: TAMBORA_PAGE, BALI_URL: BALI_PAGE})

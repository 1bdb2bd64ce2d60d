import json
from datetime import datetime

from conftest import AGUNG_PAGE, AGUNG_URL, BALI_PAGE, BALI_URL
from wiki_agent.content_extraction import parse_page
from wiki_agent.output import build_envelope, error_envelope, format_envelope, not_found_envelope, save_envelope


def test_build_envelope_keeps_retrieval_order(site):
    documents = [parse_page(BALI_URL, BALI_PAGE, site), parse_page(AGUNG_URL, AGUNG_PAGE, site)]
    envelope = build_envelope("q", documents, "answer")

    assert envelope.found is True
    assert envelope.sources == [BALI_URL, AGUNG_URL]
    assert envelope.format == "markdown"
    assert datetime.fromisoformat(envelope.timestamp).tzinfo is not None


def test_build_envelope_without_documents_is_not_found():
    envelope = build_envelope("q", [], "answer")
    assert envelope.found is False
    assert envelope.sources == []


def test_not_found_and_error_envelopes(site):
    not_found = not_found_envelope("Where is Mount Sahari located", site)
    assert not_found.found is False
    assert 'no information about "Where is Mount Sahari located" was found in Ambisius Wiki' in not_found.answer

    error = error_envelope("q", RuntimeError("boom"))
    assert error.found is False
    assert error.sources == []
    assert "**Error:** boom" in error.answer


def test_to_dict_shape():
    envelope = build_envelope("q", [], "a")
    assert set(envelope.to_dict()) == {"query", "found", "sources", "answer", "format", "timestamp"}


def test_format_envelope_lists_sources(site):
    envelope = build_envelope("q", [parse_page(AGUNG_URL, AGUNG_PAGE, site)], "The answer")
    text = format_envelope(envelope)
    assert f"1. {AGUNG_URL}" in text
    assert "The answer" in text
    assert "Found: True" in text


def test_save_envelope_writes_markdown_and_json(tmp_path, site):
    envelope = build_envelope("Where is Mount Agung located?", [parse_page(AGUNG_URL, AGUNG_PAGE, site)], "Bali.")

    md_path, json_path = save_envelope(envelope, str(tmp_path / "out"), index=3)

    assert md_path.endswith("03_where_is_mount_agung_located.md")
    with open(md_path, encoding="utf-8") as f:
        assert f"- {AGUNG_URL}" in f.read()
    with open(json_path, encoding="utf-8") as f:
        assert json.load(f) == envelope.to_dict()

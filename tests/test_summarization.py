from conftest import AGUNG_PAGE, AGUNG_URL, TAMBORA_PAGE, TAMBORA_URL, make_claude
from wiki_agent.content_extraction import parse_page
from wiki_agent.query_analysis import fallback_query_analysis
from wiki_agent.summarization import (
    CONTEXT_CONTENT_LENGTH,
    build_context,
    fallback_answer,
    generate_answer,
    missing_entities,
)


def _prompt(client):
    return client.messages.create.call_args.kwargs["messages"][0]["content"]


def test_prompt_shape_follows_complexity(site):
    documents = [parse_page(AGUNG_URL, AGUNG_PAGE, site), parse_page(TAMBORA_URL, TAMBORA_PAGE, site)]
    cases = {
        "Where is Mount Agung located": "Include specific location details",
        "Perbedaan gunung agung dan gunung tambora": "Comparison Table",
        "Ceritakan sejarah gunung agung": "INFORMATION NOT AVAILABLE",
        "Tell me about the province where Mount Agung is located": "Location Analysis",
    }
    for text, marker in cases.items():
        client = make_claude()
        answer = generate_answer(client, fallback_query_analysis(text, site), documents, site)
        assert answer == "Generated answer"
        prompt = _prompt(client)
        assert marker in prompt
        assert text in prompt
        assert AGUNG_URL in prompt and TAMBORA_URL in prompt


def test_context_is_cut_per_document(site):
    doc = parse_page(AGUNG_URL, AGUNG_PAGE, site)
    long_doc = doc.__class__(url=doc.url, title=doc.title, content="y" * 5000)
    assert len(build_context([long_doc])[0]["content"]) == CONTEXT_CONTENT_LENGTH


def test_synthesis_failure_uses_fallback(site):
    documents = [parse_page(AGUNG_URL, AGUNG_PAGE, site)]
    query = fallback_query_analysis("Where is Mount Agung located", site)

    answer = generate_answer(make_claude(answer_error=TimeoutError("timed out")), query, documents, site)

    assert "# Answer to: Where is Mount Agung located" in answer
    assert "## Gunung Agung" in answer
    assert f"**Source:** {AGUNG_URL}" in answer
    assert f"- [Gunung Agung]({AGUNG_URL})" in answer


def test_empty_model_answer_uses_fallback(site):
    documents = [parse_page(AGUNG_URL, AGUNG_PAGE, site)]
    query = fallback_query_analysis("Where is Mount Agung located", site)
    answer = generate_answer(make_claude(answer="   "), query, documents, site)
    assert answer.startswith("# Answer to:")


def test_missing_client_uses_fallback(site):
    query = fallback_query_analysis("Where is Mount Agung located", site)
    answer = generate_answer(None, query, [parse_page(AGUNG_URL, AGUNG_PAGE, site)], site)
    assert "## Gunung Agung" in answer


def test_fallback_without_documents_says_not_found(site):
    query = fallback_query_analysis("Where is Mount Sahari located", site)
    answer = fallback_answer(query, [], site)
    assert "not found in Ambisius Wiki" in answer
    assert "Information not available" not in answer


def test_fallback_truncates_document_content(site):
    query = fallback_query_analysis("gunung agung", site)
    answer = fallback_answer(query, [{"url": AGUNG_URL, "title": "Gunung Agung", "content": "z" * 2000}], site)
    assert "z" * 800 + "..." in answer
    assert "z" * 801 not in answer


def test_missing_entities_reports_only_uncovered_subjects(site):
    query = fallback_query_analysis("Report on the history of Mount Agung, Mount Tambora and Mount Sahari", site)
    context = build_context([parse_page(AGUNG_URL, AGUNG_PAGE, site), parse_page(TAMBORA_URL, TAMBORA_PAGE, site)])
    assert missing_entities(query, context, site) == ["mount sahari"]


def test_shorter_covered_entity_covers_longer_form(site):
    query = fallback_query_analysis("history of mount agung", site)
    context = [{"url": AGUNG_URL, "title": "Agung", "content": "A volcano on Bali."}]
    assert missing_entities(query, context, site) == []

"""
Tests for the AI mirror document builder and date helpers
"""

from datetime import datetime, timezone

import pytest

from bifurcate.core.base import ExtractedMetadata, ExtractionResult
from bifurcate.processors.mirror import (
    build_mirror_document,
    build_structured_content,
    mirror_intent,
    mirror_page_type,
    strip_markdown,
)
from bifurcate.utils.dates import isoformat_utc, parse_date


MARKDOWN = (
    "Intro sentence one. Intro two!\n\n"
    "## Features\nFast setup. Easy config.\n\n"
    "## Empty\n\n"
    "## Pricing\nFree tier available."
)


def make_result(markdown=MARKDOWN, **metadata):
    return ExtractionResult(
        title="Widgets",
        url="https://www.example.com/pricing?plan=pro",
        canonical="https://www.example.com/pricing?plan=pro",
        markdown=markdown,
        metadata=ExtractedMetadata(**metadata)
    )


def test_document_shape():
    document = build_mirror_document(make_result(author="Ada", content_type="product", language="fr"))

    assert document['type'] == "ai-mirror-page"
    assert document['source_url'] == "https://www.example.com/pricing?plan=pro"
    assert document['mirror_url'] == "https://ai.example.com/pricing?plan=pro"
    assert document['canonical'] == "https://www.example.com/pricing?plan=pro"
    assert document['page_type'] == "product"
    assert document['intent'] == "transactional"
    assert document['language'] == "fr"
    assert document['entities'] == {
        'people': ["Ada"],
        'organizations': [],
        'technologies': [],
        'locations': [],
    }
    assert document['actions_available'] == []


def test_summary_uses_first_four_sentences():
    document = build_mirror_document(make_result())
    assert document['summary'] == "Intro sentence one. Intro two! Features Fast setup. Easy config."


def test_structured_content_sections():
    document = build_mirror_document(make_result())
    assert document['structured_content'] == [
        {'section': "Features", 'facts': ["Fast setup.", "Easy config."]},
        {'section': "Pricing", 'facts': ["Free tier available."]},
    ]


def test_structured_content_fallback_to_overview():
    sections = build_structured_content("Just one line without headings.", ["Just one line without headings."])
    assert sections == [{'section': "Overview", 'facts': ["Just one line without headings."]}]


def test_structured_content_caps_facts():
    markdown = "## Many\n" + " ".join(f"Fact {i}." for i in range(8))
    sections = build_structured_content(markdown, [])
    assert len(sections[0]['facts']) == 5


def test_key_topics_prefer_metadata_then_headings():
    assert build_mirror_document(make_result(primary_topics=["a", "b"]))['key_topics'] == ["a", "b"]
    assert build_mirror_document(make_result())['key_topics'] == ["Features", "Empty", "Pricing"]


def test_defaults_without_metadata():
    document = build_mirror_document(make_result())

    assert document['page_type'] == "other"
    assert document['intent'] == "informational"
    assert document['language'] == "en"
    assert document['entities']['people'] == []


@pytest.mark.parametrize("content_type,page_type,intent", [
    ("homepage", "home", "navigational"),
    ("article", "blog", "informational"),
    ("docs", "documentation", "informational"),
    ("category", "service", "informational"),
    (None, "other", "informational"),
])
def test_page_type_and_intent_maps(content_type, page_type, intent):
    assert mirror_page_type(content_type) == page_type
    assert mirror_intent(content_type) == intent


def test_last_updated_prefers_updated_date():
    document = build_mirror_document(make_result(updated="2024-03-05T10:00:00Z", published="2020-01-01"))
    assert document['last_updated'] == "2024-03-05T10:00:00.000Z"


def test_last_updated_falls_back_to_published():
    document = build_mirror_document(make_result(published="Tue, 05 Mar 2024 10:00:00 GMT"))
    assert document['last_updated'] == "2024-03-05T10:00:00.000Z"


def test_last_updated_unparsable_is_now():
    document = build_mirror_document(make_result(updated="sometime soon"))
    assert document['last_updated'].endswith("Z")
    assert len(document['last_updated']) == len("2024-03-05T10:00:00.000Z")


def test_strip_markdown():
    text = strip_markdown("## Title\n\nUse `pip` and [docs](https://x.y).\n\n```\ncode\n```")
    assert text == "Title Use pip and docs."


def test_isoformat_utc():
    assert isoformat_utc(datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)) == "2024-01-02T03:04:05.678Z"
    assert isoformat_utc(datetime(2024, 1, 2)) == "2024-01-02T00:00:00.000Z"


def test_parse_date():
    assert parse_date("2024-03-05") == datetime(2024, 3, 5)
    assert parse_date("2024-03-05T10:00:00Z") == datetime(2024, 3, 5, 10, tzinfo=timezone.utc)
    assert parse_date("Tue, 05 Mar 2024 10:00:00 GMT") == datetime(2024, 3, 5, 10, tzinfo=timezone.utc)
    assert parse_date("not a date") is None
    assert parse_date("") is None
    assert parse_date(None) is None

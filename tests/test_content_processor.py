"""
Tests for the Content Processor component

Tests main-content isolation, HTML to markdown conversion, single-page
extraction and the MDF and front-matter document formats.
"""

import pytest
from unittest.mock import patch, MagicMock, AsyncMock

from readability.readability import Unparseable

from bifurcate.core.base import (
    ExtractedMetadata,
    ExtractionResult,
    FetchResult,
    InvalidUrlError,
)
from bifurcate.processors.content import (
    ContentProcessor,
    FALLBACK_CONTENT,
    INVALID_URL_MESSAGE,
)


# Setup logging for tests
@pytest.fixture(scope="module", autouse=True)
def setup_logging():
    """Set up console-only logging for tests"""
    from bifurcate.core.logging import setup_logging
    setup_logging(level="INFO", log_file=None)
    yield


@pytest.fixture
def content_processor():
    """Create a content processor instance for testing"""
    return ContentProcessor({})


@pytest.fixture
def article_html():
    """A document with navigation chrome around one article"""
    paragraph = (
        "Widgets are small, reliable components that teams use every day to build larger systems, "
        "and this guide explains how to choose, configure, and maintain them over time. "
    )
    return f"""
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <title>Guide to Widgets | Example</title>
        <link rel="canonical" href="https://Example.com/guide/widgets/?ref=nav">
        <meta name="author" content="Ada Lovelace">
    </head>
    <body>
        <nav><a href="/">Home</a> <a href="/blog">Blog</a></nav>
        <article>
            <h1>Guide to Widgets</h1>
            <p>{paragraph * 3}</p>
            <p>{paragraph * 2}</p>
            <p>{paragraph * 2}</p>
        </article>
        <footer>Copyright Example</footer>
    </body>
    </html>
    """


@pytest.fixture
def sample_result():
    return ExtractionResult(
        title='Say "hi"',
        url="https://example.com/a",
        canonical="https://example.com/a",
        markdown="Intro paragraph here.\n\n## Details\n\nMore text.",
        metadata=ExtractedMetadata(
            author="Ada",
            published="2024-01-02",
            language="en",
            content_type="article",
            primary_topics=["widgets", "tools"],
            entities=["Example Co"],
        ),
        last_modified="Tue, 05 Mar 2024 10:00:00 GMT"
    )


@pytest.mark.asyncio
async def test_initialization_initializes_fetcher():
    fetcher = MagicMock()
    fetcher.is_initialized.return_value = False
    fetcher.initialize = AsyncMock()
    processor = ContentProcessor({}, fetcher=fetcher)

    assert not processor.is_initialized()
    await processor.initialize()

    assert processor.is_initialized()
    fetcher.initialize.assert_awaited_once()
    await processor.cleanup()
    assert not processor.is_initialized()


def test_to_markdown_headings_lists_and_emphasis(content_processor):
    markdown = content_processor.to_markdown(
        "<h2>Setup</h2><p>Install it with <strong>care</strong>.</p><ul><li>One</li><li>Two</li></ul>"
    )

    assert "## Setup" in markdown
    assert "**care**" in markdown
    assert "- One" in markdown
    assert "- Two" in markdown


def test_to_markdown_fenced_code_with_language(content_processor):
    markdown = content_processor.to_markdown(
        '<p>Example:</p><pre><code class="language-python">print("hi")\n</code></pre>'
    )
    assert '```python\nprint("hi")\n```' in markdown


def test_to_markdown_drops_scripts(content_processor):
    markdown = content_processor.to_markdown("<p>Visible text</p><script>alert(1)</script><style>p{}</style>")
    assert "Visible text" in markdown
    assert "alert" not in markdown
    assert "p{}" not in markdown


def test_to_markdown_keeps_tables(content_processor):
    markdown = content_processor.to_markdown(
        "<table><tr><th>Header 1</th></tr><tr><td>Cell 1</td></tr></table>"
    )
    assert "<table" in markdown
    assert "Cell 1" in markdown


def test_to_markdown_collapses_blank_lines(content_processor):
    markdown = content_processor.to_markdown("<p>One</p><br><br><br><br><p>Two</p>")
    assert "\n\n\n" not in markdown
    assert markdown == markdown.strip()


def test_to_markdown_empty(content_processor):
    assert content_processor.to_markdown("") == ""
    assert content_processor.to_markdown("   ") == ""


def test_extract_article(content_processor, article_html):
    result = content_processor.extract(article_html, "https://example.com/guide/widgets")

    assert result.canonical == "https://example.com/guide/widgets/?ref=nav"
    assert result.url == "https://example.com/guide/widgets"
    assert result.title == "Guide to Widgets | Example"
    assert "choose, configure, and maintain" in result.markdown
    assert result.metadata.author == "Ada Lovelace"
    assert result.metadata.language == "en"
    assert result.metadata.content_type == "article"


def test_extract_without_content_uses_fallback(content_processor):
    html = "<html><head><title>Oops</title></head><body></body></html>"

    result = content_processor.extract(html, "https://example.com/broken")

    assert result.markdown == FALLBACK_CONTENT
    assert result.title == "Oops"
    assert result.canonical == "https://example.com/broken"


def test_main_element_fallback(content_processor):
    html = "<html><body><nav>Menu</nav><main><h2>Main Title</h2><p>Main body.</p></main></body></html>"

    with patch('bifurcate.processors.content.Document', side_effect=Unparseable("bad markup")):
        fragment, title, article_detected = content_processor.isolate_main_content(html)

    assert "Main body." in fragment
    assert "Menu" not in fragment
    assert title is None
    assert article_detected is False


def test_untitled_when_no_title(content_processor):
    with patch('bifurcate.processors.content.Document', side_effect=Unparseable("bad markup")):
        result = content_processor.extract("<html><body><main><p>Body text.</p></main></body></html>",
                                           "https://example.com/x")
    assert result.title == "Untitled"
    assert "Body text." in result.markdown
    assert result.metadata.content_type == ""


@pytest.mark.asyncio
async def test_extract_structured_content_fetches_normalized_url(content_processor, article_html):
    fetcher = MagicMock()
    fetcher.fetch_document = AsyncMock(return_value=FetchResult(
        html=article_html,
        final_url="https://example.com/guide/widgets",
        last_modified="Tue, 05 Mar 2024 10:00:00 GMT"
    ))
    content_processor.fetcher = fetcher

    result = await content_processor.extract_structured_content("example.com/guide/widgets?x=1#frag")

    fetcher.fetch_document.assert_awaited_once_with("https://example.com/guide/widgets?x=1")
    assert result.last_modified == "Tue, 05 Mar 2024 10:00:00 GMT"


@pytest.mark.asyncio
async def test_extract_structured_content_invalid_url(content_processor):
    content_processor.fetcher = MagicMock()

    with pytest.raises(InvalidUrlError) as excinfo:
        await content_processor.extract_structured_content("ftp://example.com/file")

    assert str(excinfo.value) == INVALID_URL_MESSAGE
    assert excinfo.value.status == 400


@pytest.mark.asyncio
async def test_extract_structured_content_requires_fetcher(content_processor):
    with pytest.raises(RuntimeError):
        await content_processor.extract_structured_content("https://example.com/")


def test_format_as_mdf(content_processor, sample_result):
    document = content_processor.format_as_mdf(sample_result)

    assert document.startswith(
        '# Say "hi"\n\n## URL\nhttps://example.com/a\n\n## Canonical\nhttps://example.com/a\n\n## Content\n'
    )
    assert "## Metadata\n- Author: Ada\n- Published Date: 2024-01-02\n- Updated Date: \n- Language: en" in document
    assert "## Schema Hints\n- Content Type: article\n- Primary Topics: widgets, tools" in document
    assert document.endswith("- Entities Mentioned: Example Co\n")
    assert "\n\n\n" not in document


def test_format_as_front_matter(content_processor, sample_result):
    document = content_processor.format_as_front_matter(sample_result)

    assert document.startswith(
        '---\ntitle: "Say \\"hi\\""\nlastmod: Tue, 05 Mar 2024 10:00:00 GMT\n'
        'source: https://example.com/a\n---\n\n# Say "hi"\n\n'
    )
    assert "Intro paragraph here." in document
    assert document.endswith("\n")


def test_front_matter_omits_missing_lastmod(content_processor, sample_result):
    sample_result.last_modified = None
    document = content_processor.format_as_front_matter(sample_result)
    assert "lastmod:" not in document

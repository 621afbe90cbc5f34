"""
Link and Metadata Extraction

Pulls the canonical link, crawlable anchors, page classification and
best-effort metadata out of a fetched HTML document.
"""

import re
from typing import List, Optional, Sequence
from urllib.parse import urljoin, urldefrag, urlsplit

from bs4 import BeautifulSoup

from bifurcate.core.base import ExtractedMetadata, InvalidUrlError, PageExtraction
from bifurcate.core.logging import get_logger
from bifurcate.processors.classifier import classify_page
from bifurcate.utils.url import normalize_url, url_path


AUTHOR_SELECTORS = [
    ('name', 'author'),
    ('property', 'article:author'),
    ('name', 'byline'),
]
PUBLISHED_SELECTORS = [
    ('property', 'article:published_time'),
    ('name', 'pubdate'),
    ('name', 'date'),
]
UPDATED_SELECTORS = [
    ('property', 'article:modified_time'),
    ('name', 'lastmod'),
    ('name', 'updated'),
]
CONTENT_TYPE_SELECTORS = [
    ('property', 'og:type'),
    ('name', 'medium'),
]
SITE_NAME_SELECTORS = [('property', 'og:site_name')]
PUBLISHER_SELECTORS = [
    ('name', 'publisher'),
    ('property', 'article:publisher'),
]

SKIPPED_LINK_PREFIXES = ('mailto:', 'tel:', 'javascript:')

_WHITESPACE = re.compile(r'\s+')
_LIST_SEPARATORS = re.compile(r'[,;]|\n')


def sanitize_line(value: str) -> str:
    """Collapse internal whitespace and trim"""
    return _WHITESPACE.sub(' ', value or '').strip()


def dedupe(values: Sequence[Optional[str]]) -> List[str]:
    """Case-insensitive dedupe on trimmed values, first casing and order kept"""
    ordered: List[str] = []
    seen = set()
    for raw in values:
        normalized = (raw or '').strip()
        if not normalized:
            continue
        key = normalized.lower()
        if key in seen:
            continue
        seen.add(key)
        ordered.append(normalized)
    return ordered


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or '', 'html.parser')


def get_meta_content(soup: BeautifulSoup, selectors: Sequence[tuple]) -> Optional[str]:
    """First non-empty meta value among ordered (attribute, value) selectors"""
    for attribute, value in selectors:
        node = soup.find('meta', attrs={attribute: value})
        if node is None:
            continue
        content = node.get('content')
        if content is None:
            content = node.get('value')
        if content is None:
            content = node.get_text()
        if content and content.strip():
            return sanitize_line(content)
    return None


def collect_canonical(soup: BeautifulSoup, document_url: str) -> Optional[str]:
    """Resolve <link rel="canonical"> against the document URL, fragment removed"""
    node = soup.find('link', rel='canonical')
    href = (node.get('href') or '').strip() if node else ''
    if not href:
        return None

    try:
        resolved, _ = urldefrag(urljoin(document_url, href))
        parts = urlsplit(resolved)
        if parts.scheme not in ('http', 'https') or not parts.hostname:
            return None
    except ValueError:
        return None
    return resolved


def extract_links(soup: BeautifulSoup) -> List[str]:
    """Raw hrefs of crawlable anchors, in document order"""
    links = []
    for anchor in soup.find_all('a', href=True):
        href = anchor['href'].strip()
        if not href or href.startswith('#'):
            continue
        if href.lower().startswith(SKIPPED_LINK_PREFIXES):
            continue
        links.append(href)
    return links


def extract_list_content(value: str) -> List[str]:
    items = (sanitize_line(item) for item in _LIST_SEPARATORS.split(value or ''))
    return [item for item in items if item]


def collect_metadata(soup: BeautifulSoup, canonical: Optional[str] = None,
                     article_detected: bool = False) -> ExtractedMetadata:
    """
    Collect author, dates, language, content type, topics and entities.

    Args:
        soup: Parsed document
        canonical: Canonical URL to carry on the metadata
        article_detected: Whether main-content detection found an article,
            used as the content type when no Open Graph type is declared

    Returns:
        ExtractedMetadata with deduplicated topic and entity lists
    """
    author = get_meta_content(soup, AUTHOR_SELECTORS)
    published = get_meta_content(soup, PUBLISHED_SELECTORS)
    updated = get_meta_content(soup, UPDATED_SELECTORS)

    html_node = soup.find('html')
    language = (html_node.get('lang') or '').strip() if html_node else ''

    content_type = get_meta_content(soup, CONTENT_TYPE_SELECTORS) \
        or ('article' if article_detected else '')

    keywords_node = soup.find('meta', attrs={'name': 'keywords'})
    keywords = extract_list_content(keywords_node.get('content') or '') if keywords_node else []
    tags = [
        node.get('content').strip()
        for node in soup.find_all('meta', attrs={'property': 'article:tag'})
        if node.get('content') and node.get('content').strip()
    ]

    entities = dedupe([
        get_meta_content(soup, SITE_NAME_SELECTORS),
        get_meta_content(soup, PUBLISHER_SELECTORS),
        author,
    ])

    return ExtractedMetadata(
        canonical=canonical,
        author=author,
        published=published,
        updated=updated,
        language=language,
        content_type=content_type,
        primary_topics=dedupe(keywords + tags),
        entities=entities
    )


def classification_path(url: str) -> str:
    try:
        return url_path(normalize_url(url))
    except InvalidUrlError:
        return urlsplit(url).path or '/'


class LinkMetadataExtractor:
    """Extracts what the crawl frontier needs from one fetched document"""

    def __init__(self):
        self.logger = get_logger(__name__)

    def extract(self, html: str, document_url: str,
                soup: Optional[BeautifulSoup] = None) -> PageExtraction:
        """
        Extract canonical, links, page type and metadata.

        The page type is derived from the crawl-normalized canonical when a
        canonical is declared, otherwise from the document URL, so it matches
        the URL the page is recorded under.
        """
        soup = soup if soup is not None else parse_html(html)
        canonical = collect_canonical(soup, document_url)
        links = extract_links(soup)
        path = classification_path(canonical or document_url)

        page_type = classify_page(path, soup)
        metadata = collect_metadata(soup, canonical=canonical)

        self.logger.debug(f"Extracted {len(links)} links from {document_url} ({page_type.value})")

        return PageExtraction(
            canonical=canonical,
            links=links,
            page_type=page_type,
            metadata=metadata
        )

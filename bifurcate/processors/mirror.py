"""
AI Mirror Builder

Turns a single-page extraction into the AI-mirror JSON document: a short
summary, sectioned facts, key topics and the mirror address.
"""

import re
from typing import Any, Dict, List, Optional

from bifurcate.core.base import ExtractionResult
from bifurcate.utils.dates import isoformat_utc, parse_date
from bifurcate.utils.url import build_mirror_url


SUMMARY_SENTENCES = 4
MAX_FACTS = 5
MAX_TOPICS = 10

# Content type -> mirror page type
MIRROR_PAGE_TYPES = {
    'homepage': 'home',
    'product': 'product',
    'docs': 'documentation',
    'article': 'blog',
    'category': 'service',
}

MIRROR_INTENTS = {
    'product': 'transactional',
    'homepage': 'navigational',
}

_CODE_FENCE = re.compile(r'```[\s\S]*?```')
_INLINE_CODE = re.compile(r'`([^`]+)`')
_LINK = re.compile(r'\[([^\]]+)\]\([^)]+\)')
_MARKUP_CHARS = re.compile(r'[*_~#>-]')
_WHITESPACE = re.compile(r'\s+')
_SENTENCE_END = re.compile(r'(?<=[.!?])\s+')
_SECTION_START = re.compile(r'\n(?=##\s)')
_HEADING_MARKS = re.compile(r'^#+\s*')
_LINE_BREAKS = re.compile(r'\n+')


def strip_markdown(source: str) -> str:
    """Reduce markdown to plain prose on a single line"""
    text = _CODE_FENCE.sub(' ', source or '')
    text = _INLINE_CODE.sub(r'\1', text)
    text = _LINK.sub(r'\1', text)
    text = _MARKUP_CHARS.sub(' ', text)
    return _WHITESPACE.sub(' ', text).strip()


def split_sentences(text: str) -> List[str]:
    return [sentence.strip() for sentence in _SENTENCE_END.split(text or '') if sentence.strip()]


def build_summary(sentences: List[str]) -> str:
    return ' '.join(sentences[:SUMMARY_SENTENCES])


def build_structured_content(markdown: str, fallback_sentences: List[str]) -> List[Dict[str, Any]]:
    """
    Split markdown on '##' headings into sections of at most five facts.

    Sections without sentences are dropped; if none remain the result is a
    single Overview section built from the fallback sentences.
    """
    structured = []
    for index, block in enumerate(_SECTION_START.split(markdown or '')):
        trimmed = block.strip()
        if not trimmed:
            continue
        lines = _LINE_BREAKS.split(trimmed)
        title = _HEADING_MARKS.sub('', lines[0]).strip()
        if not title:
            title = "Overview" if index == 0 else "Section"
        facts = split_sentences(strip_markdown(' '.join(lines[1:])))[:MAX_FACTS]
        if facts:
            structured.append({'section': title, 'facts': facts})

    if structured:
        return structured

    return [{'section': "Overview", 'facts': fallback_sentences[:MAX_FACTS]}]


def build_key_topics(result: ExtractionResult) -> List[str]:
    if result.metadata.primary_topics:
        return result.metadata.primary_topics[:MAX_TOPICS]
    headings = [
        _HEADING_MARKS.sub('', line).strip()
        for line in (result.markdown or '').split('\n')
        if line.startswith('##')
    ]
    return [heading for heading in headings if heading][:MAX_TOPICS]


def build_entities(result: ExtractionResult) -> Dict[str, List[str]]:
    return {
        'people': [result.metadata.author] if result.metadata.author else [],
        'organizations': [],
        'technologies': [],
        'locations': [],
    }


def mirror_page_type(content_type: Optional[str]) -> str:
    return MIRROR_PAGE_TYPES.get(content_type or '', 'other')


def mirror_intent(content_type: Optional[str]) -> str:
    return MIRROR_INTENTS.get(content_type or '', 'informational')


def infer_last_updated(result: ExtractionResult) -> str:
    """Updated or published date as ISO-8601; now when neither parses"""
    candidate = parse_date(result.metadata.updated or result.metadata.published)
    return isoformat_utc(candidate)


def build_mirror_document(result: ExtractionResult) -> Dict[str, Any]:
    """
    Build the AI-mirror JSON document for one extraction.

    Args:
        result: Single-page extraction

    Returns:
        Dict with type, source_url, mirror_url, page_type, intent, language,
        summary, key_topics, entities, structured_content,
        actions_available, last_updated and canonical
    """
    canonical = result.canonical or result.url
    sentences = split_sentences(strip_markdown(result.markdown))
    content_type = result.metadata.content_type

    return {
        'type': 'ai-mirror-page',
        'source_url': result.url,
        'mirror_url': build_mirror_url(canonical, include_query=True),
        'page_type': mirror_page_type(content_type),
        'intent': mirror_intent(content_type),
        'language': result.metadata.language or 'en',
        'summary': build_summary(sentences),
        'key_topics': build_key_topics(result),
        'entities': build_entities(result),
        'structured_content': build_structured_content(result.markdown, sentences),
        'actions_available': [],
        'last_updated': infer_last_updated(result),
        'canonical': canonical,
    }

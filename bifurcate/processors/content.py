"""
Content Processor Implementation

Handles main-content detection, HTML to markdown conversion and the two
single-page document formats (MDF text and front-matter markdown).
"""

import re
from typing import Dict, Any, List, Optional, Tuple

import html2text
from bs4 import BeautifulSoup
from readability import Document
from readability.readability import Unparseable

from bifurcate.core.base import (
    BaseComponent,
    ExtractionResult,
    FetcherInterface,
    InvalidUrlError,
)
from bifurcate.core.logging import get_logger
from bifurcate.processors.extractor import collect_canonical, collect_metadata, sanitize_line
from bifurcate.processors.sanitizer import MarkdownSanitizer
from bifurcate.utils.url import normalize_url, NormalizeMode


FALLBACK_CONTENT = "*No extractable content: site returned an error page or unsupported markup.*"
INVALID_URL_MESSAGE = "Unable to parse the provided URL. Use a valid http(s) address."

_CODE_TOKEN = "BIFURCATECODEBLOCK{index}END"
_CODE_TOKEN_PATTERN = re.compile(r'BIFURCATECODEBLOCK(\d+)END')
_EXCESS_NEWLINES = re.compile(r'\n{3,}')
_NO_TITLE = "[no-title]"


class ContentProcessor(BaseComponent):
    """
    Converts fetched HTML into extraction results and formats them.
    """

    def __init__(self, config: Dict[str, Any], fetcher: Optional[FetcherInterface] = None,
                 sanitizer: Optional[MarkdownSanitizer] = None):
        super().__init__(config)
        self.logger = get_logger(__name__)
        self.fetcher = fetcher
        self.sanitizer = sanitizer or MarkdownSanitizer()

        # Configure HTML to Markdown converter
        self.html2text_config = {
            'unicode_snob': True,
            'body_width': 0,  # No wrapping
            'ul_item_mark': '-',
            'bypass_tables': True,  # Tables stay as HTML
            'ignore_images': False,
            'ignore_emphasis': False,
            'escape_snob': False,
            'reference_links': False,
            'mark_code': False,
        }

        self.h2t = html2text.HTML2Text()
        for key, value in self.html2text_config.items():
            if hasattr(self.h2t, key):
                setattr(self.h2t, key, value)

    async def initialize(self) -> None:
        """Initialize the component"""
        if self.fetcher and not self.fetcher.is_initialized():
            await self.fetcher.initialize()
        self._initialized = True

    async def cleanup(self) -> None:
        """Clean up resources"""
        self._initialized = False

    def isolate_main_content(self, html: str) -> Tuple[str, Optional[str], bool]:
        """
        Find the primary content of a full HTML document.

        Readability picks the article subtree first; a <main> element is the
        fallback.

        Args:
            html: Full HTML document

        Returns:
            Tuple of (content HTML or "", readability title, article detected)
        """
        title = None
        if html and html.strip():
            try:
                document = Document(html)
                summary = document.summary(html_partial=True)
                candidate_title = (document.title() or '').strip()
                if candidate_title and candidate_title != _NO_TITLE:
                    title = candidate_title
                if BeautifulSoup(summary, 'html.parser').get_text(strip=True):
                    return summary, title, True
            except (Unparseable, ValueError) as e:
                self.logger.debug(f"Readability could not parse document: {e}")

        soup = BeautifulSoup(html or '', 'html.parser')
        main = soup.find('main')
        if main is not None:
            return main.decode_contents(), title, False
        return "", title, False

    def to_markdown(self, fragment_html: str) -> str:
        """
        Convert an HTML fragment to markdown

        Args:
            fragment_html: HTML content

        Returns:
            Markdown with ATX headings, '-' bullets, fenced code and HTML tables
        """
        if not fragment_html or not fragment_html.strip():
            return ""

        soup = BeautifulSoup(fragment_html, 'html.parser')

        for element in soup(["script", "style", "iframe", "noscript"]):
            element.decompose()

        code_blocks = self._extract_code_blocks(soup)
        markdown = self.h2t.handle(str(soup))
        markdown = _CODE_TOKEN_PATTERN.sub(
            lambda m: code_blocks[int(m.group(1))], markdown
        )

        return self._post_process_markdown(markdown)

    def _extract_code_blocks(self, soup: BeautifulSoup) -> List[str]:
        """
        Swap <pre> elements for placeholder paragraphs.

        Returns the fenced blocks, indexed by placeholder number.
        """
        blocks = []
        for index, pre in enumerate(soup.find_all('pre')):
            language = self._code_language(pre)
            code = pre.get_text().strip('\n')
            blocks.append(f"```{language}\n{code}\n```")

            placeholder = soup.new_tag('p')
            placeholder.string = _CODE_TOKEN.format(index=index)
            pre.replace_with(placeholder)
        return blocks

    def _code_language(self, pre) -> str:
        candidates = [pre]
        code = pre.find('code')
        if code is not None:
            candidates.insert(0, code)
        for element in candidates:
            for css_class in element.get('class') or []:
                if css_class.startswith('language-'):
                    return css_class[len('language-'):]
        return ''

    def _post_process_markdown(self, markdown: str) -> str:
        """
        Trim line ends, collapse blank-line runs and trim the whole text
        """
        markdown = '\n'.join(line.rstrip() for line in markdown.split('\n'))
        markdown = _EXCESS_NEWLINES.sub('\n\n', markdown)
        return markdown.strip()

    def extract(self, html: str, final_url: str,
                last_modified: Optional[str] = None) -> ExtractionResult:
        """
        Build an extraction result from a fetched document.

        Args:
            html: Decoded document HTML
            final_url: URL after redirects
            last_modified: Upstream Last-Modified header, if any

        Returns:
            ExtractionResult; markdown falls back to FALLBACK_CONTENT
        """
        soup = BeautifulSoup(html or '', 'html.parser')

        canonical = collect_canonical(soup, final_url)
        if canonical:
            try:
                canonical = normalize_url(canonical, mode=NormalizeMode.CONSERVATIVE)
            except InvalidUrlError:
                canonical = None
        canonical = canonical or final_url

        fragment, article_title, article_detected = self.isolate_main_content(html)
        markdown = self.to_markdown(fragment)

        metadata = collect_metadata(soup, canonical=canonical, article_detected=article_detected)

        page_title = soup.title.get_text() if soup.title else ''
        title = sanitize_line(article_title or page_title) or "Untitled"

        return ExtractionResult(
            title=title,
            url=final_url,
            canonical=canonical,
            markdown=markdown or FALLBACK_CONTENT,
            metadata=metadata,
            last_modified=last_modified
        )

    async def extract_structured_content(self, url: str) -> ExtractionResult:
        """
        Fetch and extract a single page.

        Raises:
            InvalidUrlError: If the URL cannot be parsed
            UpstreamUnavailableError: If the origin is unreachable or errors
            UnsupportedContentError: If the response is not usable HTML
        """
        if self.fetcher is None:
            raise RuntimeError("ContentProcessor has no fetcher configured")

        try:
            target = normalize_url(url, mode=NormalizeMode.CONSERVATIVE)
        except InvalidUrlError:
            raise InvalidUrlError(INVALID_URL_MESSAGE)

        self.logger.info(f"Extracting {target}")
        page = await self.fetcher.fetch_document(target)
        return self.extract(page.html, page.final_url, page.last_modified)

    def format_as_mdf(self, result: ExtractionResult) -> str:
        """
        Render the MDF text document.

        Section headings and their order are fixed; downstream parsers split
        on '##'.
        """
        metadata = result.metadata
        lines = [
            f"# {result.title}",
            "",
            "## URL",
            result.url,
            "",
            "## Canonical",
            result.canonical,
            "",
            "## Content",
            result.markdown,
            "",
            "## Metadata",
            f"- Author: {metadata.author or ''}",
            f"- Published Date: {metadata.published or ''}",
            f"- Updated Date: {metadata.updated or ''}",
            f"- Language: {metadata.language or ''}",
            "",
            "## Schema Hints",
            f"- Content Type: {metadata.content_type or ''}",
            f"- Primary Topics: {', '.join(metadata.primary_topics)}",
            f"- Entities Mentioned: {', '.join(metadata.entities)}",
        ]

        return _EXCESS_NEWLINES.sub('\n\n', '\n'.join(lines)).strip() + '\n'

    def format_as_front_matter(self, result: ExtractionResult) -> str:
        """Render markdown with title/lastmod/source front matter and a sanitized body"""
        escaped_title = result.title.replace('"', '\\"')
        header = ["---", f'title: "{escaped_title}"']
        if result.last_modified:
            header.append(f"lastmod: {result.last_modified}")
        header.append(f"source: {result.url}")
        header.append("---")

        body = self.sanitizer.sanitize(result.markdown)
        return '\n'.join(header) + f"\n\n# {result.title}\n\n{body}\n"

"""
Mirror Orchestrator Implementation

Coordinates the fetchers, crawl scheduler, content processor, feed
assemblers and storage for the crawl, extract, mirror and analyze flows.
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, Any, Optional
from urllib.parse import urlsplit

from bifurcate.core.base import (
    BaseComponent,
    CrawlResult,
    FetcherInterface,
    InvalidInputError,
    InvalidUrlError,
    OutputFormat,
    StorageError,
    StorageManagerInterface,
)
from bifurcate.core.frontier import CrawlScheduler, clamp_depth
from bifurcate.core.logging import get_logger, logging_manager
from bifurcate.core.robots import load_robots
from bifurcate.feeds.assemblers import assemble_crawl, resolve_format
from bifurcate.processors.analyzer import StructureAnalysis, analyze_markdown_structure
from bifurcate.processors.content import ContentProcessor, INVALID_URL_MESSAGE
from bifurcate.processors.mirror import build_mirror_document
from bifurcate.processors.sanitizer import MarkdownSanitizer
from bifurcate.utils.dates import isoformat_utc
from bifurcate.utils.url import normalize_url, site_domain, NormalizeMode


EXTRACT_FORMATS = ('mdf', 'markdown')


@dataclass
class CrawlRequest:
    """A validated crawl invocation"""
    url: str
    max_depth: int = 3
    format: OutputFormat = OutputFormat.JSON
    save: bool = True

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]]) -> 'CrawlRequest':
        """
        Validate a raw request body.

        Raises:
            InvalidInputError: If no root URL is given
        """
        payload = payload if isinstance(payload, dict) else {}
        url = payload.get('url')
        url = url.strip() if isinstance(url, str) else ''
        if not url:
            raise InvalidInputError("Provide a root URL to crawl.")

        fmt = payload.get('format')
        return cls(
            url=url,
            max_depth=clamp_depth(payload.get('maxDepth')),
            format=resolve_format(fmt.lower() if isinstance(fmt, str) else None),
            save=bool(payload.get('save', True))
        )


class MirrorOrchestrator(BaseComponent):
    """
    Entry point for every operation the CLI exposes.

    Storage is optional; when registered it is called once after a crawl
    finishes and its failures never fail the crawl.
    """

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.logger = get_logger(__name__)
        self.crawl_fetcher: Optional[FetcherInterface] = None
        self.extract_fetcher: Optional[FetcherInterface] = None
        self.content_processor: Optional[ContentProcessor] = None
        self.sanitizer: Optional[MarkdownSanitizer] = None
        self.storage_manager: Optional[StorageManagerInterface] = None
        self.last_session_id: Optional[str] = None
        self.last_crawl_stats: Dict[str, Any] = {}

    def register_component(self, name: str, component: Any) -> None:
        """Register a component under a known attribute name"""
        if not hasattr(self, name):
            raise ValueError(f"Unknown component: {name}")
        setattr(self, name, component)

    def _components(self):
        return [
            self.crawl_fetcher,
            self.extract_fetcher,
            self.content_processor,
            self.storage_manager,
        ]

    async def initialize(self) -> None:
        """Initialize all registered components"""
        for component in self._components():
            if component and not component.is_initialized():
                await component.initialize()
        self._initialized = True
        self.logger.debug("Mirror orchestrator initialized")

    async def cleanup(self) -> None:
        """Clean up all registered components"""
        for component in self._components():
            if component:
                await component.cleanup()
        self._initialized = False
        self.logger.debug("Mirror orchestrator cleaned up")

    async def crawl(self, request: CrawlRequest,
                    cancel_event: Optional[asyncio.Event] = None) -> CrawlResult:
        """
        Crawl a site and assemble its feeds.

        Args:
            request: Validated crawl request
            cancel_event: Optional event that stops the crawl between pages

        Returns:
            CrawlResult, possibly with no pages

        Raises:
            InvalidUrlError: If the root URL cannot be normalized
        """
        if not self._initialized:
            await self.initialize()

        root = normalize_url(request.url)
        parts = urlsplit(root)
        origin = f"{parts.scheme}://{parts.netloc}"
        logging_manager.log_crawl_start(root, request.max_depth)

        robots = await load_robots(self.crawl_fetcher, origin)
        scheduler = CrawlScheduler(self.crawl_fetcher, robots)
        pages = await scheduler.run(root, request.max_depth, cancel_event)

        generated_at = isoformat_utc()
        result = assemble_crawl(site_domain(root), pages, generated_at)

        self.last_crawl_stats = dict(scheduler.stats, generated_at=generated_at)
        logging_manager.generate_summary_report(self.last_crawl_stats)

        self.last_session_id = None
        if request.save and self.storage_manager:
            try:
                self.last_session_id = await self.storage_manager.save_crawl(result, root)
            except StorageError as e:
                logging_manager.log_error(e, {'root_url': root, 'operation': 'save_crawl'})

        return result

    async def extract_document(self, url: str, fmt: str = 'mdf') -> str:
        """
        Extract one page as MDF text or front-matter markdown.

        Raises:
            InvalidInputError: For an empty URL or an unknown format
        """
        if not url or not url.strip():
            raise InvalidInputError("Provide a valid URL in the request body.")
        if fmt not in EXTRACT_FORMATS:
            raise InvalidInputError(f"Unsupported extraction format: {fmt}")

        if not self._initialized:
            await self.initialize()

        result = await self.content_processor.extract_structured_content(url.strip())
        if fmt == 'markdown':
            return self.content_processor.format_as_front_matter(result)
        return self.content_processor.format_as_mdf(result)

    async def mirror(self, url: str, force_refresh: bool = False,
                     session_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Build the AI-mirror JSON for one page.

        A stored document for the same URL is returned with cached=True
        unless force_refresh is set.
        """
        if not url or not url.strip():
            raise InvalidInputError("Provide a source URL to transform.")

        try:
            lookup_url = normalize_url(url.strip(), mode=NormalizeMode.CONSERVATIVE)
        except InvalidUrlError:
            raise InvalidUrlError(INVALID_URL_MESSAGE)

        if not self._initialized:
            await self.initialize()

        if self.storage_manager and not force_refresh:
            try:
                cached = await self.storage_manager.get_ai_mirror_by_url(lookup_url)
            except StorageError as e:
                logging_manager.log_warning(f"AI mirror cache lookup failed: {e}", {'url': lookup_url})
                cached = None
            if cached:
                self.logger.info(f"Serving cached AI mirror for {lookup_url}")
                return dict(cached, cached=True)

        result = await self.content_processor.extract_structured_content(url.strip())
        document = build_mirror_document(result)

        if self.storage_manager:
            stored = dict(
                document,
                source_url=document['canonical'],
                markdown=result.markdown,
                metadata={
                    'author': result.metadata.author,
                    'published': result.metadata.published,
                    'updated': result.metadata.updated,
                }
            )
            try:
                await self.storage_manager.save_ai_mirror(stored, session_id)
            except StorageError as e:
                logging_manager.log_error(e, {'url': lookup_url, 'operation': 'save_ai_mirror'})

        return document

    def analyze(self, markdown: str) -> StructureAnalysis:
        return analyze_markdown_structure(markdown)

    def sanitize(self, markdown: str) -> str:
        sanitizer = self.sanitizer or MarkdownSanitizer()
        return sanitizer.sanitize(markdown)

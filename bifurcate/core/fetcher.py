"""
Page Fetcher for the Bifurcate crawler

Fetches HTML documents over a shared aiohttp session with a browser
User-Agent, following redirects with caching disabled. The two call sites
use two byte budgets: 2 MiB for crawl fetches and 3 MiB for single-page
extraction.
"""

import asyncio
from typing import Dict, Any, Optional

import aiohttp

from bifurcate.core.base import (
    FetcherInterface, FetchResult, BifurcateError,
    UpstreamUnavailableError, UnsupportedContentError
)
from bifurcate.core.config import DEFAULT_USER_AGENT
from bifurcate.core.logging import get_logger


CRAWL_MAX_BYTES = 2 * 1024 * 1024
EXTRACT_MAX_BYTES = 3 * 1024 * 1024


class Fetcher(FetcherInterface):
    """
    HTML fetcher with classified failures.

    `fetch_document` raises; `fetch` turns every fetch failure into None
    so the crawl can skip the page.
    """

    def __init__(self, config: Dict[str, Any], max_document_bytes: int = CRAWL_MAX_BYTES):
        super().__init__(config)
        self.logger = get_logger(__name__)

        self.user_agent = config.get('user_agent', DEFAULT_USER_AGENT)
        self.accept = config.get('accept', "text/html,application/xhtml+xml")
        self.timeout = float(config.get('timeout', 20.0))
        self.connection_limit = int(config.get('connection_limit', 10))
        self.max_document_bytes = max_document_bytes

        self.session: Optional[aiohttp.ClientSession] = None

        self.stats = {
            'requests': 0,
            'succeeded': 0,
            'failed': 0,
            'bytes': 0
        }

    async def initialize(self) -> None:
        """Open the HTTP session"""
        if self._initialized:
            return

        timeout = aiohttp.ClientTimeout(total=self.timeout)
        connector = aiohttp.TCPConnector(limit=self.connection_limit)

        self.session = aiohttp.ClientSession(
            timeout=timeout,
            connector=connector,
            headers={
                'User-Agent': self.user_agent,
                'Accept': self.accept,
                'Cache-Control': 'no-cache',
                'Pragma': 'no-cache'
            }
        )

        self._initialized = True
        self.logger.debug(f"Fetcher initialized (limit {self.max_document_bytes} bytes, timeout {self.timeout}s)")

    async def cleanup(self) -> None:
        """Close the HTTP session"""
        if self.session:
            await self.session.close()
            self.session = None
        self._initialized = False

    async def fetch_document(self, url: str) -> FetchResult:
        """
        Fetch an HTML document.

        Args:
            url: Absolute URL to fetch

        Returns:
            FetchResult with the decoded HTML and the post-redirect URL

        Raises:
            UpstreamUnavailableError: Network failure, timeout or non-2xx status
                (status 400 for upstream 4xx)
            UnsupportedContentError: Non-HTML, empty or oversize body
        """
        if not self.session:
            await self.initialize()

        self.stats['requests'] += 1
        limit_mb = self.max_document_bytes // (1024 * 1024)

        try:
            async with self.session.get(url, allow_redirects=True) as response:
                if not 200 <= response.status < 300:
                    status = 502 if response.status >= 500 else 400
                    raise UpstreamUnavailableError(
                        f"Source responded with status {response.status}.", status
                    )

                content_type = response.headers.get('Content-Type', '') or ''
                if 'text/html' not in content_type.lower():
                    raise UnsupportedContentError("Source did not return HTML content.")

                declared_length = response.headers.get('Content-Length')
                if declared_length and declared_length.isdigit() \
                        and int(declared_length) > self.max_document_bytes:
                    raise UnsupportedContentError(
                        f"HTML payload exceeds the {limit_mb} MB safety limit."
                    )

                body = await self._read_capped(response)
                final_url = str(response.url) if response.url else url
                last_modified = response.headers.get('Last-Modified')
                status_code = response.status

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.stats['failed'] += 1
            self.logger.debug(f"Unable to reach {url}: {e}")
            raise UpstreamUnavailableError("Unable to reach source URL.")
        except BifurcateError:
            self.stats['failed'] += 1
            raise

        if not body:
            self.stats['failed'] += 1
            raise UnsupportedContentError("Fetched document was empty.")

        if len(body) > self.max_document_bytes:
            self.stats['failed'] += 1
            raise UnsupportedContentError(f"HTML payload exceeds the {limit_mb} MB safety limit.")

        self.stats['succeeded'] += 1
        self.stats['bytes'] += len(body)

        return FetchResult(
            html=body.decode('utf-8', errors='replace'),
            final_url=final_url,
            status=status_code,
            content_type=content_type,
            last_modified=last_modified
        )

    async def _read_capped(self, response: aiohttp.ClientResponse) -> bytes:
        """Read at most one byte past the ceiling so oversize bodies are never buffered"""
        limit = self.max_document_bytes + 1
        body = bytearray()
        while len(body) < limit:
            chunk = await response.content.read(limit - len(body))
            if not chunk:
                break
            body.extend(chunk)
        return bytes(body)

    async def fetch(self, url: str) -> Optional[FetchResult]:
        """Fetch for the crawl frontier; failures mean 'skip this page'"""
        try:
            return await self.fetch_document(url)
        except BifurcateError as e:
            self.logger.debug(f"Skipping {url}: {e}")
            return None

    async def fetch_text(self, url: str) -> Optional[str]:
        """Fetch a 2xx text body of any content type, or None"""
        if not self.session:
            await self.initialize()

        try:
            async with self.session.get(url, allow_redirects=True) as response:
                if not 200 <= response.status < 300:
                    return None
                body = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.debug(f"Text fetch failed for {url}: {e}")
            return None

        return body.decode('utf-8', errors='replace')

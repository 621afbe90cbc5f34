"""
Crawl Frontier and Scheduler

Breadth-first, single-host crawl bounded by depth and a hard page budget.
All state lives in a Frontier created per run, so concurrent crawls never
share visited or recorded sets.
"""

import asyncio
import time
from collections import deque, Counter
from typing import Deque, Dict, Any, List, Optional, Set

from bifurcate.core.base import (
    FetcherInterface, PageRecord, QueueItem, InvalidUrlError
)
from bifurcate.core.logging import get_logger
from bifurcate.core.robots import RobotsChecker
from bifurcate.processors.extractor import LinkMetadataExtractor, parse_html
from bifurcate.utils.url import (
    normalize_url, is_same_host, is_blocked_path, parse_link,
    url_path, site_domain, build_mirror_url
)


MAX_DEPTH = 4
DEFAULT_DEPTH = 3
MAX_PAGES = 120


def clamp_depth(value: Any, default: int = DEFAULT_DEPTH) -> int:
    """
    Clamp a requested depth into [1, MAX_DEPTH].

    None means the default; values that are not numbers clamp to 1.
    """
    if value is None:
        value = default
    try:
        depth = float(value)
    except (TypeError, ValueError):
        return 1
    if depth != depth:  # NaN
        return 1
    return int(min(max(depth, 1), MAX_DEPTH))


class Frontier:
    """Queue plus visited/recorded sets for a single crawl"""

    def __init__(self):
        self.queue: Deque[QueueItem] = deque()
        self.visited: Set[str] = set()
        self.recorded: Set[str] = set()
        self.pages: List[PageRecord] = []

    def push(self, url: str, depth: int) -> None:
        self.queue.append(QueueItem(url=url, depth=depth))

    def pop(self) -> QueueItem:
        return self.queue.popleft()

    def has_pending(self) -> bool:
        return bool(self.queue)

    def mark_visited(self, url: str) -> bool:
        """Add to the visited set; False if the URL was already there"""
        if url in self.visited:
            return False
        self.visited.add(url)
        return True

    def record(self, page: PageRecord) -> bool:
        """Record a page once per canonical URL"""
        if page.url in self.recorded:
            return False
        self.pages.append(page)
        self.recorded.add(page.url)
        return True


class CrawlScheduler:
    """
    Runs the crawl loop: dequeue, filter, fetch, record, discover links.

    Per-page failures only shrink the result; the run raises only when the
    root URL itself cannot be normalized.
    """

    def __init__(self, fetcher: FetcherInterface, robots: RobotsChecker,
                 extractor: Optional[LinkMetadataExtractor] = None,
                 max_pages: int = MAX_PAGES):
        self.fetcher = fetcher
        self.robots = robots
        self.extractor = extractor or LinkMetadataExtractor()
        self.max_pages = max_pages
        self.logger = get_logger(__name__)
        self.fetch_log: List[str] = []
        self.stats: Dict[str, Any] = {}

    def _allowed(self, root_url: str, url: str) -> bool:
        """Host, robots and denylist gate shared by dequeue and discovery"""
        return (is_same_host(root_url, url)
                and self.robots.allows(url_path(url))
                and not is_blocked_path(url))

    async def run(self, root_url: str, depth_limit: int = DEFAULT_DEPTH,
                  cancel_event: Optional[asyncio.Event] = None) -> List[PageRecord]:
        """
        Crawl from a root URL.

        Args:
            root_url: Crawl root; normalized in crawl mode
            depth_limit: Maximum link depth, clamped to [1, 4]
            cancel_event: Optional event checked between dequeues

        Returns:
            Page records in discovery order, at most max_pages of them

        Raises:
            InvalidUrlError: If the root URL cannot be normalized
        """
        root = normalize_url(root_url)
        depth_limit = clamp_depth(depth_limit)
        domain = site_domain(root)
        frontier = Frontier()
        frontier.push(root, 0)

        self.fetch_log = []
        started = time.time()
        skipped = 0

        while frontier.has_pending() and len(frontier.pages) < self.max_pages:
            if cancel_event is not None and cancel_event.is_set():
                self.logger.info(f"Crawl of {root} cancelled with {len(frontier.pages)} pages recorded")
                break

            current = frontier.pop()
            try:
                current_url = normalize_url(current.url)
            except InvalidUrlError:
                skipped += 1
                continue

            if not frontier.mark_visited(current_url):
                continue

            if not self._allowed(root, current_url):
                self.logger.debug(f"Filtered {current_url}")
                skipped += 1
                continue

            self.fetch_log.append(current_url)
            page = await self.fetcher.fetch(current_url)
            if page is None:
                skipped += 1
                continue

            soup = parse_html(page.html)
            extraction = self.extractor.extract(page.html, page.final_url, soup=soup)

            try:
                canonical_url = normalize_url(extraction.canonical or page.final_url)
            except InvalidUrlError:
                skipped += 1
                continue

            if not self._allowed(root, canonical_url):
                self.logger.debug(f"Canonical {canonical_url} of {current_url} filtered")
                skipped += 1
                continue

            if canonical_url not in frontier.recorded:
                frontier.record(PageRecord(
                    url=canonical_url,
                    mirror_url=build_mirror_url(canonical_url, domain),
                    page_type=extraction.page_type,
                    priority=extraction.page_type.priority
                ))

            if current.depth < depth_limit:
                for href in extraction.links:
                    link = parse_link(href, canonical_url)
                    if not link.ok:
                        continue
                    if not self._allowed(root, link.url):
                        continue
                    if link.url in frontier.visited:
                        continue
                    frontier.push(link.url, current.depth + 1)

        self.stats = {
            'site': domain,
            'duration': time.time() - started,
            'visited': len(frontier.visited),
            'fetched': len(self.fetch_log),
            'recorded': len(frontier.pages),
            'skipped': skipped,
            'page_types': dict(Counter(page.page_type.value for page in frontier.pages)),
        }
        self.logger.info(
            f"Crawl of {root} finished: {len(frontier.pages)} pages, "
            f"{len(frontier.visited)} visited, {skipped} skipped"
        )

        return frontier.pages

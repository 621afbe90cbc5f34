"""
Robots policy evaluator

Only the wildcard user-agent group is honoured. A missing or unreadable
robots.txt yields a permissive checker.
"""

import re
from typing import List, Optional, TYPE_CHECKING

from bifurcate.core.logging import get_logger

if TYPE_CHECKING:
    from bifurcate.core.base import FetcherInterface


logger = get_logger(__name__)


def _matches_rule(path: str, rule: str) -> bool:
    if not rule:
        return False
    normalized = rule if rule.startswith('/') else f"/{rule}"
    if normalized == '/':
        return True
    if '*' in normalized:
        pattern = '.*'.join(re.escape(segment) for segment in normalized.split('*'))
        return re.match(pattern, path) is not None
    return path.startswith(normalized)


class RobotsChecker:
    """Allow/Disallow rules collected from the `User-agent: *` group"""

    def __init__(self, allow: Optional[List[str]] = None,
                 disallow: Optional[List[str]] = None):
        self.allow = list(allow or [])
        self.disallow = list(disallow or [])

    def allows(self, path: str) -> bool:
        """Allow rules win; with no Disallow rules everything is allowed"""
        path = path or '/'
        if any(_matches_rule(path, rule) for rule in self.allow):
            return True
        if not self.disallow:
            return True
        return not any(_matches_rule(path, rule) for rule in self.disallow)

    def __repr__(self) -> str:
        return f"RobotsChecker(allow={self.allow!r}, disallow={self.disallow!r})"


def permissive_robots() -> RobotsChecker:
    return RobotsChecker()


def parse_robots(contents: str) -> RobotsChecker:
    """
    Parse robots.txt text.

    A `User-agent` line switches the active group on only for the literal
    `*`; records under any other agent are ignored.
    """
    allow: List[str] = []
    disallow: List[str] = []
    applies = False

    for raw in contents.splitlines():
        line = raw.strip()
        if not line or line.startswith('#'):
            continue

        directive, _, value = line.partition(':')
        key = directive.strip().lower()
        val = value.strip()

        if key == 'user-agent':
            applies = val == '*'
            continue

        if not applies:
            continue

        if key == 'disallow' and val:
            disallow.append(val)
        elif key == 'allow' and val:
            allow.append(val)

    return RobotsChecker(allow, disallow)


async def load_robots(fetcher: 'FetcherInterface', origin: str) -> RobotsChecker:
    """
    Fetch and parse {origin}/robots.txt

    Args:
        fetcher: Initialized fetcher used for the request
        origin: Scheme and host of the crawl root

    Returns:
        Parsed checker, or a permissive one when robots.txt is unavailable
    """
    robots_url = f"{origin.rstrip('/')}/robots.txt"
    text = await fetcher.fetch_text(robots_url)
    if text is None:
        logger.debug(f"No robots.txt at {robots_url}, crawling permissively")
        return permissive_robots()

    checker = parse_robots(text)
    logger.debug(f"Loaded robots.txt from {robots_url}: {checker!r}")
    return checker

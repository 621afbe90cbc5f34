"""
URL Utilities for the Bifurcate crawler

Provides URL normalization in two modes (crawl traversal and conservative
extraction), host comparison, the blocked-path denylist and mirror URL
construction.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Pattern
from urllib.parse import urlsplit, urlunsplit, urljoin, quote

from bifurcate.core.base import InvalidUrlError


class NormalizeMode(Enum):
    """Normalization strength"""
    CRAWL = "crawl"
    CONSERVATIVE = "conservative"


STATIC_EXTENSIONS = (
    '.jpg', '.jpeg', '.png', '.gif', '.svg', '.webp', '.ico',
    '.css', '.js', '.pdf', '.zip',
    '.mp4', '.mp3',
    '.woff', '.woff2', '.ttf', '.otf',
)

BLOCKED_SEGMENTS: List[Pattern] = [
    re.compile(r'/(login|logout|signin|signup|register|auth)\b', re.IGNORECASE),
    re.compile(r'/(admin|dashboard)\b', re.IGNORECASE),
    re.compile(r'/(account|profile)\b', re.IGNORECASE),
    re.compile(r'/(cart|checkout)\b', re.IGNORECASE),
    re.compile(r'/(search|filter|track|query)', re.IGNORECASE),
]

_HTTP_SCHEME = re.compile(r'^https?://', re.IGNORECASE)
_OTHER_SCHEME = re.compile(r'^[a-z][a-z0-9+.\-]*://', re.IGNORECASE)

# Characters left untouched when percent-encoding a path. '%' is included so
# already-encoded paths are not encoded twice.
_PATH_SAFE = "/%:@!$&'()*+,;=-._~"


@dataclass(frozen=True)
class ParsedLink:
    """Outcome of resolving a discovered href; exactly one field is set"""
    url: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.url is not None


def _remove_dot_segments(path: str) -> str:
    segments = path.split('/')
    output: List[str] = []
    for segment in segments:
        if segment == '..':
            if len(output) > 1:
                output.pop()
        elif segment != '.':
            output.append(segment)
    if segments[-1] in ('.', '..'):
        output.append('')
    return '/'.join(output)


def normalize_url(value: str, base: Optional[str] = None,
                  mode: NormalizeMode = NormalizeMode.CRAWL) -> str:
    """
    Normalize a URL to its canonical https form.

    Args:
        value: Absolute URL, bare host ("example.com/x") or a reference
            relative to base
        base: Base URL used to resolve references without a scheme
        mode: CRAWL drops the query and trailing slash; CONSERVATIVE keeps both

    Returns:
        Normalized URL string

    Raises:
        InvalidUrlError: If the input cannot be read as an absolute http(s) URL
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidUrlError(f"Unable to normalize URL: {value!r}")

    raw = value.strip()
    if _HTTP_SCHEME.match(raw):
        target = raw
    elif base:
        target = urljoin(base, raw)
    elif _OTHER_SCHEME.match(raw):
        raise InvalidUrlError(f"Unable to normalize URL: {raw}")
    else:
        target = f"https://{raw}"

    try:
        parts = urlsplit(target)
        port = parts.port
    except ValueError:
        raise InvalidUrlError(f"Unable to normalize URL: {raw}")

    scheme = parts.scheme.lower()
    host = (parts.hostname or '').lower()
    if scheme not in ('http', 'https') or not host:
        raise InvalidUrlError(f"Unable to normalize URL: {raw}")

    if ':' in host:
        host = f"[{host}]"

    # Default ports disappear once the scheme is forced to https
    if port == 443 or (port == 80 and scheme == 'http'):
        port = None

    userinfo = ''
    if '@' in parts.netloc:
        userinfo = parts.netloc.rpartition('@')[0] + '@'

    netloc = f"{userinfo}{host}:{port}" if port is not None else f"{userinfo}{host}"

    path = quote(_remove_dot_segments(parts.path or '/'), safe=_PATH_SAFE)
    if not path.startswith('/'):
        path = '/' + path

    if mode is NormalizeMode.CRAWL:
        query = ''
        if path != '/':
            path = path.rstrip('/') or '/'
    else:
        query = parts.query

    return urlunsplit(('https', netloc, path, query, ''))


def host_key(host: str) -> str:
    """Lowercase host with a single leading 'www.' removed"""
    host = (host or '').lower()
    if host.startswith('www.'):
        return host[4:]
    return host


def is_same_host(left: str, right: str) -> bool:
    """True when two URLs share a host key"""
    return host_key(urlsplit(left).hostname or '') == host_key(urlsplit(right).hostname or '')


def site_domain(url: str) -> str:
    """Bare site domain used for the feed header and mirror hosts"""
    return host_key(urlsplit(url).hostname or '')


def url_path(url: str) -> str:
    return urlsplit(url).path or '/'


def is_blocked_path(url: str) -> bool:
    """Check a URL's path against the static-asset and private-area denylists"""
    path = url_path(url).lower()
    if path.endswith(STATIC_EXTENSIONS):
        return True
    return any(pattern.search(path) for pattern in BLOCKED_SEGMENTS)


def parse_link(href: str, base: str) -> ParsedLink:
    """Resolve a discovered href in crawl mode without raising"""
    try:
        return ParsedLink(url=normalize_url(href, base, NormalizeMode.CRAWL))
    except InvalidUrlError as e:
        return ParsedLink(error=str(e))


def build_mirror_url(url: str, domain: Optional[str] = None,
                     include_query: bool = False) -> str:
    """
    Build the AI mirror address for a page: https://ai.<domain><path>

    The domain defaults to the page's own host without 'www.'.
    """
    parts = urlsplit(url)
    domain = domain or host_key(parts.hostname or '')
    path = parts.path or '/'
    query = f"?{parts.query}" if include_query and parts.query else ''
    return f"https://ai.{domain}{path}{query}"

"""
Base Classes and Interfaces for the Bifurcate crawler

Defines the shared data model (page types, queue items, page records,
extraction results), the abstract component interfaces, and the error
taxonomy used across the crawl and extraction pipelines.
"""

from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field
from enum import Enum


class PageType(Enum):
    """Closed set of page classifications produced by the extractor"""
    HOMEPAGE = "homepage"
    ARTICLE = "article"
    PRODUCT = "product"
    DOCS = "docs"
    CATEGORY = "category"

    @property
    def priority(self) -> float:
        return PRIORITY_BY_TYPE[self]

    @property
    def intent(self) -> str:
        return INTENT_BY_TYPE[self]


# Fixed sitemap priorities, one entry per PageType member
PRIORITY_BY_TYPE: Dict[PageType, float] = {
    PageType.HOMEPAGE: 1.0,
    PageType.PRODUCT: 0.8,
    PageType.DOCS: 0.8,
    PageType.ARTICLE: 0.6,
    PageType.CATEGORY: 0.5,
}

INTENT_BY_TYPE: Dict[PageType, str] = {
    PageType.HOMEPAGE: "overview",
    PageType.PRODUCT: "transactional",
    PageType.CATEGORY: "navigational",
    PageType.DOCS: "informational",
    PageType.ARTICLE: "informational",
}


class OutputFormat(Enum):
    """Serialisation formats for a crawl result"""
    JSON = "json"
    XML = "xml"
    MARKDOWN = "md"


@dataclass(frozen=True)
class QueueItem:
    """A frontier entry; consumed exactly once by the scheduler"""
    url: str
    depth: int = 0


@dataclass(frozen=True)
class PageRecord:
    """One crawled page, keyed by its canonical URL"""
    url: str
    mirror_url: str
    page_type: PageType
    priority: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'url': self.url,
            'ai_url': self.mirror_url,
            'type': self.page_type.value,
            'priority': self.priority,
        }


@dataclass
class FetchResult:
    """A successfully fetched HTML document"""
    html: str
    final_url: str
    status: int = 200
    content_type: str = ""
    last_modified: Optional[str] = None


@dataclass
class ExtractedMetadata:
    """Best-effort page metadata collected from meta tags"""
    canonical: Optional[str] = None
    author: Optional[str] = None
    published: Optional[str] = None
    updated: Optional[str] = None
    language: Optional[str] = None
    content_type: Optional[str] = None
    primary_topics: List[str] = field(default_factory=list)
    entities: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'canonical': self.canonical,
            'author': self.author,
            'published': self.published,
            'updated': self.updated,
            'language': self.language,
            'contentType': self.content_type,
            'primaryTopics': list(self.primary_topics),
            'entities': list(self.entities),
        }


@dataclass
class PageExtraction:
    """Links, canonical and classification extracted from one document"""
    canonical: Optional[str]
    links: List[str]
    page_type: PageType
    metadata: ExtractedMetadata


@dataclass
class ExtractionResult:
    """Result of a single-page content extraction"""
    title: str
    url: str
    canonical: str
    markdown: str
    metadata: ExtractedMetadata
    last_modified: Optional[str] = None


@dataclass
class CrawlResult:
    """Everything a crawl produces, ready for serialisation"""
    site: str
    generated_at: str
    pages: List[PageRecord]
    xml: str
    markdown: str
    markdown_entries: List[Dict[str, str]]


class BaseComponent(ABC):
    """Base class for all components with an explicit lifecycle"""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self._initialized = False

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the component"""
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Clean up resources"""
        pass

    def is_initialized(self) -> bool:
        """Check if component is initialized"""
        return self._initialized


class FetcherInterface(BaseComponent):
    """Interface for the HTML page fetcher"""

    @abstractmethod
    async def fetch_document(self, url: str) -> FetchResult:
        """Fetch an HTML document, raising a classified error on failure"""
        pass

    @abstractmethod
    async def fetch(self, url: str) -> Optional[FetchResult]:
        """Fetch an HTML document, returning None when it should be skipped"""
        pass

    @abstractmethod
    async def fetch_text(self, url: str) -> Optional[str]:
        """Fetch any 2xx text body (used for robots.txt)"""
        pass


class StorageManagerInterface(BaseComponent):
    """Interface for the crawl/feed document store"""

    @abstractmethod
    async def save_crawl(self, result: CrawlResult, root_url: str,
                         session_id: Optional[str] = None) -> str:
        """Persist a finished crawl, returning its session id"""
        pass

    @abstractmethod
    async def get_crawl_history(self) -> List[Dict[str, Any]]:
        """List stored crawl sessions, newest first"""
        pass

    @abstractmethod
    async def get_pages_by_session(self, session_id: str) -> List[Dict[str, Any]]:
        """Get the page documents of one crawl session"""
        pass

    @abstractmethod
    async def get_feed_by_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        """Get the feed document (xml/json) of one crawl session"""
        pass

    @abstractmethod
    async def delete_crawl_session(self, session_id: str) -> bool:
        """Delete a crawl session with its pages and feed"""
        pass

    @abstractmethod
    async def save_ai_mirror(self, document: Dict[str, Any],
                             session_id: Optional[str] = None) -> str:
        """Persist an AI-mirror document"""
        pass

    @abstractmethod
    async def get_ai_mirror_by_url(self, url: str) -> Optional[Dict[str, Any]]:
        """Look up a stored AI-mirror document by source URL"""
        pass


class BifurcateError(Exception):
    """Base exception for crawler errors"""
    status = 500

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        if status is not None:
            self.status = status


class ConfigurationError(BifurcateError):
    """Configuration-related errors"""
    pass


class InvalidInputError(BifurcateError):
    """Missing or malformed caller input"""
    status = 400


class InvalidUrlError(InvalidInputError):
    """Input could not be parsed as an absolute http(s) URL"""
    pass


class UpstreamUnavailableError(BifurcateError):
    """Origin unreachable, timed out, or answered with a non-2xx status"""
    status = 502


class UnsupportedContentError(BifurcateError):
    """Non-HTML, empty or oversize response body"""
    status = 400


class StorageError(BifurcateError):
    """Storage-related errors"""
    pass

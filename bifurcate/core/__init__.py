"""
Core components for the Bifurcate crawler

This package contains the core components including:
- Base classes, data model and error hierarchy
- Configuration management
- Logging system

The fetcher, robots evaluator, crawl frontier and orchestrator live in their
own modules (bifurcate.core.fetcher, .robots, .frontier, .orchestrator) and
are imported from there.
"""

from bifurcate.core.base import (
    PageType,
    OutputFormat,
    QueueItem,
    PageRecord,
    FetchResult,
    ExtractedMetadata,
    PageExtraction,
    ExtractionResult,
    CrawlResult,
    BaseComponent,
    FetcherInterface,
    StorageManagerInterface,
    BifurcateError,
    ConfigurationError,
    InvalidInputError,
    InvalidUrlError,
    UpstreamUnavailableError,
    UnsupportedContentError,
    StorageError
)

from bifurcate.core.config import (
    ConfigManager,
    FetchConfig,
    CrawlConfig,
    StorageConfig,
    LoggingConfig,
    SanitizerConfig
)

from bifurcate.core.logging import (
    LoggingManager,
    get_logger,
    setup_logging
)

__all__ = [
    # Data model
    'PageType',
    'OutputFormat',
    'QueueItem',
    'PageRecord',
    'FetchResult',
    'ExtractedMetadata',
    'PageExtraction',
    'ExtractionResult',
    'CrawlResult',

    # Interfaces
    'BaseComponent',
    'FetcherInterface',
    'StorageManagerInterface',

    # Errors
    'BifurcateError',
    'ConfigurationError',
    'InvalidInputError',
    'InvalidUrlError',
    'UpstreamUnavailableError',
    'UnsupportedContentError',
    'StorageError',

    # Configuration
    'ConfigManager',
    'FetchConfig',
    'CrawlConfig',
    'StorageConfig',
    'LoggingConfig',
    'SanitizerConfig',

    # Logging
    'LoggingManager',
    'get_logger',
    'setup_logging'
]

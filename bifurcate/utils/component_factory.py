"""
Component Factory for the Bifurcate crawler

This module provides functions to create and register components with the orchestrator.
"""

from typing import Dict, Any

from bifurcate.core.fetcher import Fetcher, CRAWL_MAX_BYTES, EXTRACT_MAX_BYTES
from bifurcate.core.logging import get_logger
from bifurcate.core.orchestrator import MirrorOrchestrator
from bifurcate.processors.content import ContentProcessor
from bifurcate.processors.sanitizer import MarkdownSanitizer, SanitizerPolicy
from bifurcate.storage.feed_storage import FileFeedStorage


def create_and_register_components(orchestrator: MirrorOrchestrator, config: Dict[str, Any]) -> None:
    """
    Create and register all components with the orchestrator.

    Args:
        orchestrator: The orchestrator to register components with
        config: Component configuration (see ConfigManager.as_component_config)
    """
    logger = get_logger(__name__)
    fetch_config = config.get('fetch', {})

    # Two fetchers, one per byte budget
    crawl_fetcher = Fetcher(fetch_config, max_document_bytes=CRAWL_MAX_BYTES)
    orchestrator.register_component("crawl_fetcher", crawl_fetcher)

    extract_fetcher = Fetcher(fetch_config, max_document_bytes=EXTRACT_MAX_BYTES)
    orchestrator.register_component("extract_fetcher", extract_fetcher)

    sanitizer = MarkdownSanitizer(SanitizerPolicy.from_config(config.get('sanitizer')))
    orchestrator.register_component("sanitizer", sanitizer)

    content_processor = ContentProcessor(config, fetcher=extract_fetcher, sanitizer=sanitizer)
    orchestrator.register_component("content_processor", content_processor)

    storage_config = config.get('storage', {})
    if storage_config.get('enabled', True):
        storage_manager = FileFeedStorage(storage_config)
        orchestrator.register_component("storage_manager", storage_manager)
    else:
        logger.debug("Feed storage disabled by configuration")


def create_orchestrator(config: Dict[str, Any]) -> MirrorOrchestrator:
    """Build an orchestrator with every component registered"""
    orchestrator = MirrorOrchestrator(config)
    create_and_register_components(orchestrator, config)
    return orchestrator

"""
Storage components for the Bifurcate crawler

This package contains the file-backed store for crawl sessions, feeds and
AI-mirror documents.
"""

from .feed_storage import FileFeedStorage

__all__ = ['FileFeedStorage']

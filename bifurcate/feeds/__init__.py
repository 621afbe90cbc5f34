"""
Feed assemblers for crawl results
"""

from bifurcate.feeds.assemblers import (
    build_sitemap_xml,
    build_markdown_summary,
    build_markdown_entries,
    build_json_payload,
    assemble_crawl,
    render_crawl,
)

__all__ = [
    'build_sitemap_xml',
    'build_markdown_summary',
    'build_markdown_entries',
    'build_json_payload',
    'assemble_crawl',
    'render_crawl',
]

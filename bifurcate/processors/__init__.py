"""
Content processing components for the Bifurcate crawler

This package contains components for processing content including:
- Page classification
- Link and metadata extraction
- HTML to markdown conversion
- Markdown sanitation
- Structure analysis
- AI-mirror document building
"""

from bifurcate.processors.classifier import PageClassifier, classify_page
from bifurcate.processors.extractor import LinkMetadataExtractor
from bifurcate.processors.content import ContentProcessor
from bifurcate.processors.sanitizer import MarkdownSanitizer, SanitizerPolicy
from bifurcate.processors.analyzer import analyze_markdown_structure, StructureAnalysis
from bifurcate.processors.mirror import build_mirror_document

__all__ = [
    'PageClassifier',
    'classify_page',
    'LinkMetadataExtractor',
    'ContentProcessor',
    'MarkdownSanitizer',
    'SanitizerPolicy',
    'analyze_markdown_structure',
    'StructureAnalysis',
    'build_mirror_document'
]

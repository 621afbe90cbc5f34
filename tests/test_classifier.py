"""
Tests for page classification
"""

import pytest
from bs4 import BeautifulSoup

from bifurcate.core.base import PageType
from bifurcate.processors.classifier import (
    ClassificationRule,
    PageClassifier,
    classify_page,
    intent_for_type,
    priority_for_type,
)


def soup_with(meta: str) -> BeautifulSoup:
    return BeautifulSoup(f"<html><head>{meta}</head><body></body></html>", 'html.parser')


@pytest.mark.parametrize("path,expected", [
    ("/", PageType.HOMEPAGE),
    ("/pricing", PageType.PRODUCT),
    ("/products/widget", PageType.PRODUCT),
    ("/blog/launch", PageType.ARTICLE),
    ("/News/today", PageType.ARTICLE),
    ("/docs/start", PageType.DOCS),
    ("/guides/setup", PageType.DOCS),
    ("/category/shoes", PageType.CATEGORY),
    ("/about", PageType.CATEGORY),
])
def test_path_rules(path, expected):
    assert classify_page(path) is expected


def test_og_article_beats_default():
    soup = soup_with('<meta property="og:type" content="article">')
    assert classify_page("/about", soup) is PageType.ARTICLE


def test_root_path_wins_over_markup():
    soup = soup_with('<meta property="og:type" content="product">')
    assert classify_page("/", soup) is PageType.HOMEPAGE


def test_published_time_beats_docs_path():
    soup = soup_with('<meta property="article:published_time" content="2024-01-01">')
    assert classify_page("/docs/changelog", soup) is PageType.ARTICLE


def test_product_markup_beats_blog_path():
    soup = soup_with('<meta property="og:type" content="Product">')
    assert classify_page("/blog/review", soup) is PageType.PRODUCT


def test_custom_rule_table():
    classifier = PageClassifier(
        rules=[ClassificationRule('careers', PageType.DOCS, lambda s: s.path.startswith('/careers'))],
        default=PageType.ARTICLE
    )
    assert classifier.classify("/careers/engineer") is PageType.DOCS
    assert classifier.classify("/") is PageType.ARTICLE


def test_priorities_and_intents():
    assert priority_for_type(PageType.HOMEPAGE) == 1.0
    assert priority_for_type(PageType.PRODUCT) == 0.8
    assert priority_for_type(PageType.DOCS) == 0.8
    assert priority_for_type(PageType.ARTICLE) == 0.6
    assert priority_for_type(PageType.CATEGORY) == 0.5
    assert intent_for_type(PageType.HOMEPAGE) == "overview"
    assert intent_for_type(PageType.PRODUCT) == "transactional"
    assert intent_for_type(PageType.CATEGORY) == "navigational"
    assert intent_for_type(PageType.DOCS) == "informational"

"""
Page Classification for the Bifurcate crawler

Assigns each crawled page one PageType using an ordered rule table over the
URL path and Open Graph markup. The first matching rule wins; pages that
match nothing are categories.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional

from bs4 import BeautifulSoup

from bifurcate.core.base import PageType


@dataclass
class PageSignals:
    """Inputs the classification rules look at"""
    path: str
    og_type: str = ""
    has_published_time: bool = False

    @classmethod
    def from_document(cls, path: str, soup: Optional[BeautifulSoup]) -> 'PageSignals':
        og_type = ""
        has_published_time = False
        if soup is not None:
            og_node = soup.find('meta', attrs={'property': 'og:type'})
            if og_node and og_node.get('content'):
                og_type = og_node['content'].strip().lower()
            has_published_time = soup.find(
                'meta', attrs={'property': 'article:published_time'}
            ) is not None
        return cls(path=(path or '/').lower(), og_type=og_type,
                   has_published_time=has_published_time)


@dataclass
class ClassificationRule:
    """One row of the classification table"""
    name: str
    page_type: PageType
    matches: Callable[[PageSignals], bool]


def _path_contains(*fragments: str) -> Callable[[PageSignals], bool]:
    pattern = re.compile('|'.join(re.escape(fragment) for fragment in fragments))
    return lambda signals: pattern.search(signals.path) is not None


CLASSIFICATION_RULES: List[ClassificationRule] = [
    ClassificationRule('root path', PageType.HOMEPAGE,
                       lambda s: s.path == '/'),
    ClassificationRule('product markup or path', PageType.PRODUCT,
                       lambda s: s.og_type == 'product' or _path_contains('/product', '/pricing')(s)),
    ClassificationRule('article markup', PageType.ARTICLE,
                       lambda s: s.og_type == 'article' or s.has_published_time),
    ClassificationRule('editorial path', PageType.ARTICLE,
                       _path_contains('/blog', '/news')),
    ClassificationRule('docs path', PageType.DOCS,
                       _path_contains('/docs', '/documentation', '/guide')),
    ClassificationRule('listing path', PageType.CATEGORY,
                       _path_contains('/category', '/collections', '/topics')),
]

DEFAULT_PAGE_TYPE = PageType.CATEGORY


class PageClassifier:
    """Evaluates the rule table in order"""

    def __init__(self, rules: Optional[List[ClassificationRule]] = None,
                 default: PageType = DEFAULT_PAGE_TYPE):
        self.rules = rules if rules is not None else CLASSIFICATION_RULES
        self.default = default

    def classify(self, path: str, soup: Optional[BeautifulSoup] = None) -> PageType:
        signals = PageSignals.from_document(path, soup)
        for rule in self.rules:
            if rule.matches(signals):
                return rule.page_type
        return self.default


_default_classifier = PageClassifier()


def classify_page(path: str, soup: Optional[BeautifulSoup] = None) -> PageType:
    """Classify a page by its canonical path and parsed document"""
    return _default_classifier.classify(path, soup)


def priority_for_type(page_type: PageType) -> float:
    return page_type.priority


def intent_for_type(page_type: PageType) -> str:
    return page_type.intent

"""
Bifurcate

A bounded site crawler and AI-mirror feed builder. It crawls a single host
breadth-first under robots.txt, classifies and prioritises the pages it
finds, and turns page HTML into structured markdown for AI consumers.

Features:
- URL canonicalisation with crawl and conservative modes
- robots.txt enforcement and a private-path denylist
- Depth- and page-budget-bounded crawl frontier
- Sitemap XML, markdown coverage and per-page scaffold feeds
- Readability-based extraction to MDF or front-matter markdown
- Markdown sanitation and an AI-readability structure score
- Configurable via YAML/JSON and environment variables
"""

__version__ = "0.1.0"

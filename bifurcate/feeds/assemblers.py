"""
Feed Assemblers

Serialises a finished crawl into the sitemap XML, the markdown coverage
summary, per-page mirror scaffolds and the JSON payload.
"""

import json
from typing import Any, Dict, List, Tuple, Union

from bifurcate.core.base import CrawlResult, OutputFormat, PageRecord, PageType


SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"
GENERATOR_NAME = "Traffic Bifurcate crawler"

CONTENT_TYPES = {
    OutputFormat.JSON: "application/json",
    OutputFormat.XML: "application/xml; charset=utf-8",
    OutputFormat.MARKDOWN: "text/markdown; charset=utf-8",
}


def escape_xml(value: str) -> str:
    return (value.replace('&', '&amp;')
                 .replace('<', '&lt;')
                 .replace('>', '&gt;')
                 .replace('"', '&quot;')
                 .replace("'", '&apos;'))


def format_priority(priority: float) -> str:
    return f"{priority:.2f}"


def format_markdown_link(value: str) -> str:
    label = value.replace('|', '\\|')
    return f"[{label}]({value})"


def format_page_heading(page: PageRecord) -> str:
    if page.page_type is PageType.HOMEPAGE:
        return "Homepage"
    return ' '.join(chunk[:1].upper() + chunk[1:] for chunk in page.page_type.value.split('-'))


def build_sitemap_xml(site: str, pages: List[PageRecord], generated_at: str) -> str:
    """
    Render a sitemaps.org urlset.

    Every entry's lastmod is the crawl time; an empty crawl renders a
    placeholder comment instead of <url> elements.
    """
    entries = []
    for page in pages:
        entries.append('\n'.join([
            "  <url>",
            f"    <loc>{escape_xml(page.url)}</loc>",
            f"    <lastmod>{escape_xml(generated_at)}</lastmod>",
            f"    <priority>{format_priority(page.priority)}</priority>",
            "  </url>",
        ]))

    body = '\n'.join(entries) or "  <!-- No crawlable pages found -->"

    return '\n'.join([
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<urlset xmlns="{SITEMAP_NAMESPACE}"',
        '        xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"',
        f'        xsi:schemaLocation="{SITEMAP_NAMESPACE} {SITEMAP_NAMESPACE}/sitemap.xsd">',
        f"  <!--  created with {GENERATOR_NAME} for {escape_xml(site)} at {escape_xml(generated_at)}  -->",
        body,
        "</urlset>",
    ])


def build_markdown_summary(site: str, pages: List[PageRecord], generated_at: str) -> str:
    """Coverage table of human and mirror URLs"""
    header = f"# AI Mirror Coverage for {site}\n\nGenerated {generated_at}"

    if not pages:
        return f"{header}\n\n_No crawlable pages found._\n"

    table = [
        "| # | Human URL | AI Mirror URL | Type | Priority |",
        "| --- | --- | --- | --- | --- |",
    ]
    for index, page in enumerate(pages, start=1):
        table.append(
            f"| {index} | {format_markdown_link(page.url)} | {format_markdown_link(page.mirror_url)} "
            f"| {page.page_type.value} | {format_priority(page.priority)} |"
        )

    return f"{header}\n\n" + '\n'.join(table) + '\n'


def build_markdown_entries(pages: List[PageRecord]) -> List[Dict[str, str]]:
    """One scaffold document per page, to be filled with AI-specific copy"""
    entries = []
    for index, page in enumerate(pages, start=1):
        lines = [
            "---",
            "type: ai-mirror-page",
            f"source_url: {page.url}",
            f"canonical: {page.url}",
            f"page_type: {page.page_type.value}",
            f"intent: {page.page_type.intent}",
            "language: en",
            f"priority: {format_priority(page.priority)}",
            "---",
            "",
            f"# Page {index}: {format_page_heading(page)}",
            "",
            "## Human URL",
            page.url,
            "",
            "## AI Mirror URL",
            page.mirror_url,
            "",
            "## Summary",
            "_Replace this section with the AI-specific copy for this route._",
            "",
            "## Key Sections",
            "- Heading 1",
            "- Heading 2",
            "- Call to Action",
            "",
            "## Notes",
            "- Describe the AI intent and guardrails for this mirror page.",
        ]
        entries.append({'url': page.url, 'markdown': '\n'.join(lines)})
    return entries


def assemble_crawl(site: str, pages: List[PageRecord], generated_at: str) -> CrawlResult:
    """Run every assembler over a finished crawl"""
    return CrawlResult(
        site=site,
        generated_at=generated_at,
        pages=list(pages),
        xml=build_sitemap_xml(site, pages, generated_at),
        markdown=build_markdown_summary(site, pages, generated_at),
        markdown_entries=build_markdown_entries(pages)
    )


def build_json_payload(result: CrawlResult) -> Dict[str, Any]:
    return {
        'site': result.site,
        'generated_at': result.generated_at,
        'pages': [page.to_dict() for page in result.pages],
        'xml': result.xml,
        'markdown': result.markdown,
        'markdownEntries': result.markdown_entries,
    }


def resolve_format(fmt: Union[str, OutputFormat, None]) -> OutputFormat:
    """Unknown or missing formats fall back to JSON"""
    if isinstance(fmt, OutputFormat):
        return fmt
    try:
        return OutputFormat((fmt or 'json').lower())
    except ValueError:
        return OutputFormat.JSON


def render_crawl(result: CrawlResult, fmt: Union[str, OutputFormat, None] = OutputFormat.JSON) -> Tuple[str, str]:
    """
    Serialise a crawl result.

    Returns:
        Tuple of (body, content type)
    """
    output_format = resolve_format(fmt)
    if output_format is OutputFormat.XML:
        body = result.xml
    elif output_format is OutputFormat.MARKDOWN:
        body = result.markdown
    else:
        body = json.dumps(build_json_payload(result), indent=2, ensure_ascii=False)
    return body, CONTENT_TYPES[output_format]

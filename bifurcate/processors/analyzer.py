"""
Structure Analyzer

Scores a markdown document for AI consumption: which MDF sections it has,
content metrics, its heading outline, validation warnings, an overall
health grade and a separate AI-readability score. Pure and deterministic.
"""

import re
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional


@dataclass
class HeadingInfo:
    level: int
    text: str
    line: int


@dataclass
class MDFSections:
    has_title: bool
    has_url: bool
    has_content: bool
    has_metadata: bool
    has_frontmatter: bool


@dataclass
class ContentMetrics:
    word_count: int
    paragraph_count: int
    heading_count: int
    list_count: int
    code_block_count: int
    link_count: int


@dataclass
class ValidationWarning:
    severity: str  # error | warning | info
    message: str
    section: Optional[str] = None


@dataclass
class HealthScore:
    score: int
    grade: str
    color: str
    description: str


@dataclass
class AIReadability:
    score: int
    issues: List[str] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)


@dataclass
class StructureAnalysis:
    sections: MDFSections
    metrics: ContentMetrics
    headings: List[HeadingInfo]
    warnings: List[ValidationWarning]
    health: HealthScore
    ai_readability: AIReadability

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


_FRONTMATTER = re.compile(r'^---[\s\S]*?---')
_TITLE = re.compile(r'^#\s+.+', re.MULTILINE)
_URL_SECTION = re.compile(r'##\s*url', re.IGNORECASE)
_SOURCE_LINE = re.compile(r'source:\s*https?://', re.IGNORECASE)
_CONTENT_SECTION = re.compile(r'##\s*content', re.IGNORECASE)
_METADATA_SECTION = re.compile(r'##\s*metadata', re.IGNORECASE)
_METADATA_MARKERS = re.compile(r'author:|published|updated|language:', re.IGNORECASE)

_WORD = re.compile(r'\b\w+\b')
_PARAGRAPH_SPLIT = re.compile(r'\n\n+')
_HEADING_LINE = re.compile(r'^#{1,6}\s+.+$', re.MULTILINE)
_HEADING_PARTS = re.compile(r'^(#{1,6})\s+(.+)$')
_LIST_ITEM = re.compile(r'^\s*[-*+]\s+.+$', re.MULTILINE)
_CODE_BLOCK = re.compile(r'```[\s\S]*?```')
_LINK = re.compile(r'\[.+?\]\(.+?\)')
_UI_NOISE = re.compile(r'skip to content|accept cookies|gdpr|subscribe now', re.IGNORECASE)

# (minimum score, grade, color, description), highest first
GRADES = [
    (85, "Excellent", "emerald", "Perfect for AI consumption - well-structured with rich content"),
    (70, "Good", "blue", "Good structure - AI can easily extract information"),
    (50, "Fair", "amber", "Acceptable but could be improved for better AI understanding"),
    (0, "Poor", "red", "Needs improvement - AI may struggle to extract meaningful information"),
]


def extract_sections(markdown: str) -> MDFSections:
    non_empty_lines = [line for line in markdown.split('\n') if line.strip()]
    return MDFSections(
        has_frontmatter=bool(_FRONTMATTER.search(markdown)),
        has_title=bool(_TITLE.search(markdown)),
        has_url=bool(_URL_SECTION.search(markdown) or _SOURCE_LINE.search(markdown)),
        has_content=bool(_CONTENT_SECTION.search(markdown)) or len(non_empty_lines) > 5,
        has_metadata=bool(_METADATA_SECTION.search(markdown) or _METADATA_MARKERS.search(markdown)),
    )


def calculate_metrics(markdown: str) -> ContentMetrics:
    paragraphs = [
        block for block in _PARAGRAPH_SPLIT.split(markdown)
        if block.strip() and not block.strip().startswith(('#', '-'))
    ]
    return ContentMetrics(
        word_count=len(_WORD.findall(markdown)),
        paragraph_count=len(paragraphs),
        heading_count=len(_HEADING_LINE.findall(markdown)),
        list_count=len(_LIST_ITEM.findall(markdown)),
        code_block_count=len(_CODE_BLOCK.findall(markdown)),
        link_count=len(_LINK.findall(markdown)),
    )


def extract_headings(markdown: str) -> List[HeadingInfo]:
    headings = []
    for index, line in enumerate(markdown.split('\n'), start=1):
        match = _HEADING_PARTS.match(line)
        if match:
            headings.append(HeadingInfo(
                level=len(match.group(1)),
                text=match.group(2).strip(),
                line=index
            ))
    return headings


def validate_structure(markdown: str, sections: MDFSections,
                       metrics: ContentMetrics) -> List[ValidationWarning]:
    """Fixed-severity checks, in a stable order"""
    warnings = []

    if not sections.has_title:
        warnings.append(ValidationWarning("error", "Missing main title (H1 heading)", "Title"))

    if not sections.has_content and metrics.paragraph_count < 3:
        warnings.append(ValidationWarning("error", "Insufficient content - AI needs more context", "Content"))

    if not sections.has_url and not sections.has_frontmatter:
        warnings.append(ValidationWarning("warning", "Missing source URL - AI can't verify origin", "URL"))

    if not sections.has_metadata:
        warnings.append(ValidationWarning(
            "info", "Consider adding metadata (author, date, language) for better AI context", "Metadata"
        ))

    if metrics.word_count < 50:
        warnings.append(ValidationWarning(
            "warning", "Low word count - may not provide enough information for AI", "Content"
        ))

    if metrics.heading_count == 0:
        warnings.append(ValidationWarning(
            "warning", "No headings found - structure helps AI understand hierarchy", "Structure"
        ))

    if any(len(_WORD.findall(block)) > 200 for block in _PARAGRAPH_SPLIT.split(markdown)):
        warnings.append(ValidationWarning(
            "info", "Some paragraphs are very long - consider breaking them up for better AI parsing", "Content"
        ))

    return warnings


def calculate_health_score(sections: MDFSections, metrics: ContentMetrics,
                           warnings: List[ValidationWarning]) -> HealthScore:
    score = 0

    # Section completeness (40 points)
    score += 10 if sections.has_title else 0
    score += 10 if sections.has_frontmatter else 0
    score += 10 if sections.has_url else 0
    score += 5 if sections.has_content else 0
    score += 5 if sections.has_metadata else 0

    # Content richness (40 points)
    score += 10 if metrics.word_count > 100 else 0
    score += 5 if metrics.word_count > 300 else 0
    score += 10 if metrics.heading_count > 0 else 0
    score += 5 if metrics.heading_count > 3 else 0
    score += 5 if metrics.paragraph_count > 2 else 0
    score += 5 if metrics.list_count > 0 else 0

    # Warning penalties (20 points)
    errors = sum(1 for w in warnings if w.severity == "error")
    warning_count = sum(1 for w in warnings if w.severity == "warning")
    score += max(0, 20 - errors * 10 - warning_count * 3)

    for threshold, grade, color, description in GRADES:
        if score >= threshold:
            return HealthScore(score=score, grade=grade, color=color, description=description)
    raise AssertionError("grade table must end with a zero threshold")


def analyze_ai_readability(markdown: str, sections: MDFSections,
                           metrics: ContentMetrics) -> AIReadability:
    issues: List[str] = []
    strengths: List[str] = []
    score = 100

    if sections.has_frontmatter:
        strengths.append("Has frontmatter with structured metadata")
    else:
        issues.append("Missing frontmatter - AI prefers structured metadata")
        score -= 10

    if metrics.heading_count >= 3:
        strengths.append("Good heading structure for hierarchical understanding")
    elif metrics.heading_count == 0:
        issues.append("No headings - AI can't understand content hierarchy")
        score -= 15

    if metrics.list_count > 0:
        strengths.append("Contains lists for structured information")

    if metrics.word_count >= 100:
        strengths.append("Sufficient content length for context")
    else:
        issues.append("Content too short - AI needs more context")
        score -= 10

    if "```" in markdown:
        strengths.append("Properly formatted code blocks")

    if _LINK.search(markdown):
        strengths.append("Contains properly formatted links")

    if _UI_NOISE.search(markdown):
        issues.append("Contains UI noise that should be removed")
        score -= 5

    return AIReadability(score=max(0, min(100, score)), issues=issues, strengths=strengths)


def analyze_markdown_structure(markdown: str) -> StructureAnalysis:
    """
    Analyze markdown structure for AI consumption.

    Args:
        markdown: Any markdown text, possibly empty

    Returns:
        StructureAnalysis with both scores clamped to [0, 100]
    """
    markdown = markdown or ""
    sections = extract_sections(markdown)
    metrics = calculate_metrics(markdown)
    headings = extract_headings(markdown)
    warnings = validate_structure(markdown, sections, metrics)
    health = calculate_health_score(sections, metrics, warnings)
    ai_readability = analyze_ai_readability(markdown, sections, metrics)

    return StructureAnalysis(
        sections=sections,
        metrics=metrics,
        headings=headings,
        warnings=warnings,
        health=health,
        ai_readability=ai_readability
    )


def format_report(analysis: StructureAnalysis) -> str:
    """Plain-text report for terminal output"""
    sections = analysis.sections
    metrics = analysis.metrics

    def mark(flag: bool) -> str:
        return "yes" if flag else "no"

    lines = [
        f"Health: {analysis.health.score}/100 ({analysis.health.grade})",
        f"  {analysis.health.description}",
        f"AI readability: {analysis.ai_readability.score}/100",
        "",
        "Sections:",
        f"  title: {mark(sections.has_title)}",
        f"  frontmatter: {mark(sections.has_frontmatter)}",
        f"  url: {mark(sections.has_url)}",
        f"  content: {mark(sections.has_content)}",
        f"  metadata: {mark(sections.has_metadata)}",
        "",
        "Metrics:",
        f"  words: {metrics.word_count}",
        f"  paragraphs: {metrics.paragraph_count}",
        f"  headings: {metrics.heading_count}",
        f"  list items: {metrics.list_count}",
        f"  code blocks: {metrics.code_block_count}",
        f"  links: {metrics.link_count}",
    ]

    if analysis.headings:
        lines.extend(["", "Outline:"])
        for heading in analysis.headings:
            indent = "  " * heading.level
            lines.append(f"{indent}{heading.text} (line {heading.line})")

    if analysis.warnings:
        lines.extend(["", "Warnings:"])
        for warning in analysis.warnings:
            lines.append(f"  [{warning.severity}] {warning.message}")

    for title, entries in (("Strengths:", analysis.ai_readability.strengths),
                           ("Issues:", analysis.ai_readability.issues)):
        if entries:
            lines.extend(["", title])
            lines.extend(f"  - {entry}" for entry in entries)

    return "\n".join(lines)

"""
Markdown Structuring Pipeline

Order-dependent text passes that strip UI noise from converted markdown and
repair its structure (section headings, paragraph breaks) for AI readers.
Every pattern is data in a SanitizerPolicy so the heuristics can be tuned
without touching the passes.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Pattern, Tuple

from bifurcate.core.logging import get_logger


DEFAULT_NOISE_PHRASES = [
    "Please Wait",
    "Why not use this time to clean your screen",
    "Rome wasn't built in a day",
    "Look at the pink disk closely",
    "Don't rush it",
    "We'd let you in now",
    "Drag and drop",
]

DEFAULT_REMOVAL_PATTERNS = [
    re.compile(r'-{20,}'),
    re.compile(r'explore more\s*-', re.IGNORECASE),
]

DEFAULT_SECTION_LABELS = [
    "What You'll Do",
    "Requirements",
    "Benefits",
    "Location",
    "Key Responsibility",
    "What You'll Be Doing",
    "Skills & Personal Qualities",
    "Job Description",
    "Notes",
]

# Standalone line of 4-70 characters: capital first, never a digit or dash,
# letters, digits, blanks and a small punctuation set only
DEFAULT_TITLE_LINE = re.compile(
    r'^(?![-\d])([A-Z][a-zA-Z0-9 \t&/\\()\-.,]{3,69})$', re.MULTILINE
)

DEFAULT_PARAGRAPH_BREAKS = [
    (re.compile(r'([a-z0-9])\n([A-Z])'), r'\1\n\n\2'),
    (re.compile(r'([.!?])\s*\n\s*([A-Z])'), r'\1\n\n\2'),
]

_FENCED_BLOCK = re.compile(r'(```.*?```)', re.DOTALL)
_EXCESS_NEWLINES = re.compile(r'\n{3,}')


@dataclass
class SanitizerPolicy:
    """Data tables driving the sanitizer passes"""
    noise_phrases: List[str] = field(default_factory=lambda: list(DEFAULT_NOISE_PHRASES))
    removal_patterns: List[Pattern] = field(default_factory=lambda: list(DEFAULT_REMOVAL_PATTERNS))
    section_labels: List[str] = field(default_factory=lambda: list(DEFAULT_SECTION_LABELS))
    promote_title_lines: bool = True
    title_line_pattern: Pattern = DEFAULT_TITLE_LINE
    paragraph_breaks: List[Tuple[Pattern, str]] = field(
        default_factory=lambda: list(DEFAULT_PARAGRAPH_BREAKS)
    )

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> 'SanitizerPolicy':
        """Build a policy from the `sanitizer` config section"""
        config = config or {}
        policy = cls()
        policy.noise_phrases.extend(config.get('extra_noise_phrases') or [])
        policy.section_labels.extend(config.get('extra_section_labels') or [])
        policy.promote_title_lines = bool(config.get('promote_title_lines', True))
        return policy

    def noise_line_patterns(self) -> List[Pattern]:
        return [
            re.compile(rf'^.*{re.escape(phrase)}.*(?:\n|$)', re.IGNORECASE | re.MULTILINE)
            for phrase in self.noise_phrases if phrase
        ]

    def section_item_pattern(self) -> Pattern:
        # html2text escapes a leading "1." as "1\."
        labels = '|'.join(re.escape(label) for label in self.section_labels)
        return re.compile(rf'^[ \t]*-[ \t]*(\d+)\\?\.\s+({labels})', re.MULTILINE)


class MarkdownSanitizer:
    """
    Runs the structuring passes in order:

    1. drop lines containing a noise phrase
    2. drop runs of 20+ dashes
    3. drop "explore more -" footer fragments
    4. promote numbered section-label list items to ### headings
    5. promote short standalone title-case lines to ### headings
    6. insert paragraph breaks before capitalised lines
    7. collapse 3+ newlines to 2 and trim

    Passes 4-6 leave fenced code blocks untouched. Pass 5 is a heuristic and
    will also promote short capitalised sentences without punctuation.
    """

    def __init__(self, policy: Optional[SanitizerPolicy] = None):
        self.policy = policy or SanitizerPolicy()
        self.logger = get_logger(__name__)
        self._noise_patterns = self.policy.noise_line_patterns()
        self._section_pattern = self.policy.section_item_pattern()

    def sanitize(self, text: str) -> str:
        """Clean and structure raw markdown"""
        if not text:
            return ""

        clean = text.replace('\r\n', '\n')

        clean = self._remove_noise(clean)

        clean = self._outside_code(clean, self._promote_section_items)
        if self.policy.promote_title_lines:
            clean = self._outside_code(clean, self._promote_title_lines)
        clean = self._outside_code(clean, self._repair_paragraphs)

        clean = _EXCESS_NEWLINES.sub('\n\n', clean)
        return clean.strip()

    def _remove_noise(self, text: str) -> str:
        # A removal can splice a new match together, so repeat until stable
        previous = None
        while text != previous:
            previous = text
            for pattern in self._noise_patterns:
                text = pattern.sub('', text)
            for pattern in self.policy.removal_patterns:
                text = pattern.sub('', text)
        return text

    def _outside_code(self, text: str, transform: Callable[[str], str]) -> str:
        parts = _FENCED_BLOCK.split(text)
        # Odd indexes are the captured fenced blocks
        return ''.join(
            part if index % 2 else transform(part)
            for index, part in enumerate(parts)
        )

    def _promote_section_items(self, text: str) -> str:
        return self._section_pattern.sub(lambda m: f"### {m.group(1)}. {m.group(2)}", text)

    def _promote_title_lines(self, text: str) -> str:
        return self.policy.title_line_pattern.sub(r'### \1', text)

    def _repair_paragraphs(self, text: str) -> str:
        for pattern, replacement in self.policy.paragraph_breaks:
            text = pattern.sub(replacement, text)
        return text


def sanitize_markdown(text: str, policy: Optional[SanitizerPolicy] = None) -> str:
    """Sanitize with the default (or a given) policy"""
    return MarkdownSanitizer(policy).sanitize(text)

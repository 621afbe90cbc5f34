"""
Tests for the markdown structuring pipeline
"""

from bifurcate.processors.sanitizer import (
    MarkdownSanitizer,
    SanitizerPolicy,
    sanitize_markdown,
)


def test_empty_input():
    assert sanitize_markdown("") == ""
    assert sanitize_markdown(None) == ""


def test_noise_lines_removed_everywhere():
    text = "Intro text: welcome!\nPlease wait while we load\nBody text: here!\nplease WAIT again"
    clean = sanitize_markdown(text)

    assert "wait" not in clean.lower()
    assert "Intro text: welcome!" in clean
    assert "Body text: here!" in clean


def test_dash_runs_and_explore_more_removed():
    text = "Intro: start!\n" + "-" * 30 + "\nbody: text!\nExplore More - and more: yes!"
    clean = sanitize_markdown(text)

    assert "-" * 20 not in clean
    assert "explore more" not in clean.lower()
    assert "and more: yes!" in clean


def test_numbered_section_labels_promoted():
    text = "Intro: the role!\n\n- 1. Requirements\n- 2\\. Benefits\n- 3. Lunch"
    clean = sanitize_markdown(text)

    assert "### 1. Requirements" in clean
    assert "### 2. Benefits" in clean
    assert "- 3. Lunch" in clean


def test_title_lines_promoted_and_paragraphs_split():
    clean = sanitize_markdown("Our Services\nWe build things: fast!")
    assert clean == "### Our Services\n\nWe build things: fast!"


def test_title_promotion_can_be_disabled():
    policy = SanitizerPolicy(promote_title_lines=False)
    clean = MarkdownSanitizer(policy).sanitize("Our Services\nWe build things: fast!")
    assert "###" not in clean
    assert clean == "Our Services\n\nWe build things: fast!"


def test_lines_starting_with_digit_or_dash_not_promoted():
    clean = sanitize_markdown("2024 Annual Report\n- Item one")
    assert "### 2024" not in clean
    assert "### -" not in clean


def test_sentence_breaks_inserted():
    clean = sanitize_markdown("first sentence: ok.\nSecond sentence: fine!")
    assert clean == "first sentence: ok.\n\nSecond sentence: fine!"


def test_fenced_code_untouched():
    text = "Intro: see below!\n\n```\nShort Title\nnext line\nAnother Line\n```"
    clean = sanitize_markdown(text)

    assert "```\nShort Title\nnext line\nAnother Line\n```" in clean


def test_blank_line_runs_collapsed():
    assert sanitize_markdown("alpha:\n\n\n\n\nbeta:") == "alpha:\n\nbeta:"


def test_policy_from_config_extends_tables():
    policy = SanitizerPolicy.from_config({
        'extra_noise_phrases': ['Sign up today'],
        'extra_section_labels': ['Perks'],
        'promote_title_lines': False,
    })
    sanitizer = MarkdownSanitizer(policy)

    clean = sanitizer.sanitize("Body: text!\nSign up today for updates\n- 4. Perks")

    assert "Sign up" not in clean
    assert "### 4. Perks" in clean
    assert "Please Wait" in policy.noise_phrases


def test_policy_from_empty_config_uses_defaults():
    policy = SanitizerPolicy.from_config(None)
    assert policy.promote_title_lines is True
    assert "Requirements" in policy.section_labels


def test_cleanup_passes_are_fixed_points():
    policy = SanitizerPolicy(promote_title_lines=False, section_labels=[], paragraph_breaks=[])
    sanitizer = MarkdownSanitizer(policy)
    text = "intro: one\nPlease wait\n" + "-" * 25 + "\n\n\n\nexplore more - tail: two"

    once = sanitizer.sanitize(text)
    assert sanitizer.sanitize(once) == once


def test_removals_repeat_until_nothing_matches():
    once = sanitize_markdown("explore moreexplore more --x")

    assert once == "x"
    assert sanitize_markdown(once) == once

"""Tests for the marker-based completion reply parser."""

import random
from unittest.mock import patch

from medvault.interpretation.parser import (
    DEFAULT_ACTION,
    DEFAULT_WARNING,
    GENERIC_ACTION,
    GENERIC_WARNING,
    PROCESSED_NOTICE,
    Section,
    SectionKind,
    parse_interpretation,
    split_items,
    tokenize,
)

FULL_REPLY = """📘 Explanation:
Your prescription is for amoxicillin, an antibiotic used to treat infections.

💡 What to Do:
1. Take one 500mg capsule every 8 hours
2) Finish the whole course
- Drink plenty of water
• Avoid alcohol

⚠️ When to See a Doctor:
* Rash or swelling
. Fever after 3 days
"""


class TestTokenize:
    def test_splits_on_markers(self) -> None:
        sections = tokenize("📘 a 💡 b ⚠ c")
        assert sections == [
            Section(SectionKind.EXPLANATION, "a"),
            Section(SectionKind.ACTIONS, "b"),
            Section(SectionKind.WARNINGS, "c"),
        ]

    def test_drops_text_before_first_marker(self) -> None:
        assert tokenize("Sure! Here you go.\n📘 body") == [Section(SectionKind.EXPLANATION, "body")]

    def test_variation_selector_is_not_part_of_body(self) -> None:
        assert tokenize("⚠️ careful") == [Section(SectionKind.WARNINGS, "careful")]

    def test_strips_label_on_marker_line(self) -> None:
        assert tokenize("💡 **What to Do:** rest")[0].body == "rest"

    def test_colon_on_later_line_is_kept(self) -> None:
        body = tokenize("📘 Overview\nRatio: 3.2")[0].body
        assert body == "Overview\nRatio: 3.2"


class TestSplitItems:
    def test_strips_enumeration_tokens(self) -> None:
        assert split_items("1. one\n2) two\n- three\n• four\n* five\n. six") == [
            "one",
            "two",
            "three",
            "four",
            "five",
            "six",
        ]

    def test_discards_empty_lines(self) -> None:
        assert split_items("\n- one\n\n   \n- two\n") == ["one", "two"]

    def test_keeps_leading_quantities(self) -> None:
        assert split_items("2 tablets twice daily") == ["2 tablets twice daily"]

    def test_strips_markdown_emphasis(self) -> None:
        assert split_items("- **Rest well**") == ["Rest well"]


class TestParseInterpretation:
    def test_full_reply(self) -> None:
        result = parse_interpretation(FULL_REPLY)
        assert result.explanation == (
            "Your prescription is for amoxicillin, an antibiotic used to treat infections."
        )
        assert result.recommended_actions == [
            "Take one 500mg capsule every 8 hours",
            "Finish the whole course",
            "Drink plenty of water",
            "Avoid alcohol",
        ]
        assert result.attention_indicators == ["Rash or swelling", "Fever after 3 days"]
        assert result.degraded is False

    def test_reversed_order(self) -> None:
        result = parse_interpretation("⚠️ - w1\n💡 - a1\n📘 Explanation: text")
        assert result.explanation == "text"
        assert result.recommended_actions == ["a1"]
        assert result.attention_indicators == ["w1"]

    def test_only_explanation_marker(self) -> None:
        result = parse_interpretation("📘 Explanation: just this")
        assert result.explanation == "just this"
        assert result.recommended_actions == []
        assert result.attention_indicators == []

    def test_only_actions_marker_gets_notice(self) -> None:
        result = parse_interpretation("💡 What to Do:\n- rest")
        assert result.explanation == PROCESSED_NOTICE
        assert result.recommended_actions == ["rest"]

    def test_repeated_section_keeps_last(self) -> None:
        result = parse_interpretation("💡 - first\n📘 e\n💡 - second")
        assert result.recommended_actions == ["second"]


class TestFallbacks:
    def test_no_markers_uses_trimmed_text(self) -> None:
        raw = "  The results look normal.\nNothing to worry about.  \n"
        result = parse_interpretation(raw)
        assert result.explanation == raw.strip()
        assert result.recommended_actions == [GENERIC_ACTION]
        assert result.attention_indicators == [GENERIC_WARNING]
        assert result.degraded is True

    def test_empty_string(self) -> None:
        result = parse_interpretation("")
        assert result.explanation == PROCESSED_NOTICE
        assert result.recommended_actions == [DEFAULT_ACTION]
        assert result.attention_indicators == [DEFAULT_WARNING]
        assert result.degraded is True

    def test_whitespace_only(self) -> None:
        assert parse_interpretation(" \n\t ").explanation == PROCESSED_NOTICE

    def test_internal_failure_returns_default(self) -> None:
        with patch(
            "medvault.interpretation.parser.tokenize",
            side_effect=RuntimeError("boom"),
        ):
            result = parse_interpretation("📘 text")
        assert result.explanation == PROCESSED_NOTICE
        assert result.recommended_actions == [DEFAULT_ACTION]
        assert result.attention_indicators == [DEFAULT_WARNING]


class TestTotality:
    def test_large_input(self) -> None:
        raw = ("📘 " + "a" * 17000) + ("💡 " + "- b\n" * 4250) + ("⚠️ " + "c" * 17000)
        assert len(raw) >= 50000
        result = parse_interpretation(raw)
        assert result.explanation
        assert len(result.recommended_actions) == 4250

    def test_markers_only(self) -> None:
        result = parse_interpretation("📘💡⚠️")
        assert result.explanation == PROCESSED_NOTICE
        assert result.recommended_actions == []
        assert result.attention_indicators == []

    def test_random_inputs_never_raise(self) -> None:
        rng = random.Random(7)
        alphabet = ["📘", "💡", "⚠", "️", ":", "\n", " ", "-", "1.", "*", "x", "é"]
        for _ in range(300):
            raw = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 80)))
            result = parse_interpretation(raw)
            assert result.explanation.strip()
            assert isinstance(result.recommended_actions, list)
            assert isinstance(result.attention_indicators, list)

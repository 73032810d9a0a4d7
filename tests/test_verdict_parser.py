"""Tests for the marker-based verdict grammar."""

from __future__ import annotations

import pytest

from colloquy.engine.judges import MarkerVerdictParser, Verdict


@pytest.fixture
def parser() -> MarkerVerdictParser:
    return MarkerVerdictParser()


def test_scores_marker_alone_is_not_a_verdict(parser: MarkerVerdictParser) -> None:
    text = "【置信度评分】\n- A: 0.9"

    assert parser.is_verdict(text) is False
    assert parser.parse(text) is None


def test_scores_and_conclusion_markers_make_a_verdict(parser: MarkerVerdictParser) -> None:
    text = "【置信度评分】\n- A: 0.9\n【最终结论】done."

    assert parser.is_verdict(text) is True
    assert parser.parse(text) == Verdict(conclusion="done.", confidence_scores={"A": 0.9})


def test_conclusion_marker_alone_is_not_a_verdict(parser: MarkerVerdictParser) -> None:
    text = "We are not ready. [FINAL CONCLUSION] will follow once the data is in."

    assert parser.is_verdict(text) is False


def test_passing_mention_of_final_verdict_is_ignored(parser: MarkerVerdictParser) -> None:
    text = (
        "Before I give the final verdict, guests should report confidence levels "
        "on each hypothesis."
    )

    assert parser.is_verdict(text) is False


def test_parses_chinese_verdict_block(parser: MarkerVerdictParser) -> None:
    text = "综合分析如下...【置信度评分】\n- H1: 0.75\n- H2: 0.40\n【最终结论】\nDone."

    verdict = parser.parse(text)

    assert verdict is not None
    assert verdict.confidence_scores == {"H1": 0.75, "H2": 0.40}
    assert verdict.conclusion == "Done."


def test_parses_english_verdict_block(parser: MarkerVerdictParser) -> None:
    text = (
        "Synthesis of the round.\n\n"
        "[CONFIDENCE SCORES]\n"
        "- LFP dominates stationary storage: 0.82\n"
        "- Sodium-ion reaches 10% share: 0.35\n"
        "[FINAL CONCLUSION]\n"
        "LFP remains the default chemistry through 2030."
    )

    verdict = parser.parse(text)

    assert verdict is not None
    assert verdict.confidence_scores == {
        "LFP dominates stationary storage": 0.82,
        "Sodium-ion reaches 10% share": 0.35,
    }
    assert verdict.conclusion == "LFP remains the default chemistry through 2030."


def test_scores_out_of_range_are_dropped(parser: MarkerVerdictParser) -> None:
    text = "Confidence Scores:\n- A: 0.6\n- B: 7.5\n- C: 1.0\n\n[FINAL VERDICT]\nA wins."

    assert parser.extract_scores(text) == {"A": 0.6, "C": 1.0}


def test_bold_labels_and_fullwidth_colon(parser: MarkerVerdictParser) -> None:
    text = "置信度评分：\n* **市场份额假设**：0.7\n• 技术路线：**0.55**\n\n【最终裁决】维持原判"

    assert parser.extract_scores(text) == {"市场份额假设": 0.7, "技术路线": 0.55}
    assert parser.extract_conclusion(text) == "维持原判"


def test_scores_section_stops_at_heading(parser: MarkerVerdictParser) -> None:
    text = "[CONFIDENCE SCORES]\n- A: 0.5\n## Notes\n- B: 0.9\n[FINAL CONCLUSION]\nok"

    assert parser.extract_scores(text) == {"A": 0.5}


def test_heading_style_conclusion(parser: MarkerVerdictParser) -> None:
    text = "【置信度评分】\n- A: 0.8\n\n### **Final Verdict**\nShip it."

    assert parser.is_verdict(text) is True
    assert parser.extract_conclusion(text) == "Ship it."


def test_conclusion_markers_follow_priority_order(parser: MarkerVerdictParser) -> None:
    text = "[FINAL VERDICT] early\n【最终结论】preferred"

    assert parser.extract_conclusion(text) == "preferred"


def test_verdict_without_valid_scores_defaults_to_empty_mapping(
    parser: MarkerVerdictParser,
) -> None:
    text = "[CONFIDENCE SCORES]\n- A: high\n[FINAL CONCLUSION]\nGo ahead."

    verdict = parser.parse(text)

    assert verdict == Verdict(conclusion="Go ahead.", confidence_scores={})


def test_formatted_scores_reparse_to_same_mapping(parser: MarkerVerdictParser) -> None:
    scores = {"H1": 0.75, "H2": 0.4, "Edge case": 0.0, "Certain": 1.0}
    text = f"[CONFIDENCE SCORES]\n{parser.format_scores(scores)}\n[FINAL CONCLUSION]\nx"

    first = parser.parse(text)
    assert first is not None
    again = parser.parse(
        f"[CONFIDENCE SCORES]\n{parser.format_scores(first.confidence_scores)}\n[FINAL CONCLUSION]\nx"
    )

    assert first.confidence_scores == scores
    assert again is not None
    assert again.confidence_scores == scores


def test_score_followed_by_sentence_punctuation(parser: MarkerVerdictParser) -> None:
    text = "【置信度评分】\n- H1: 0.75.\n- H2: 0.4;\n【最终结论】\nDone."

    verdict = parser.parse(text)

    assert verdict is not None
    assert verdict.confidence_scores == {"H1": 0.75, "H2": 0.4}


def test_blank_line_after_scores_marker(parser: MarkerVerdictParser) -> None:
    text = "[CONFIDENCE SCORES]\n\n- H1: 0.75\n- H2: 0.2\n[FINAL CONCLUSION]\nDone."

    assert parser.extract_scores(text) == {"H1": 0.75, "H2": 0.2}


def test_heading_style_scores_marker_completes_verdict(parser: MarkerVerdictParser) -> None:
    text = "## Confidence Scores\n- H1: 0.75\n## Final Conclusion\nDone."

    assert parser.has_scores_marker(text) is True
    assert parser.is_verdict(text) is True
    assert parser.parse(text) == Verdict(conclusion="Done.", confidence_scores={"H1": 0.75})


def test_scores_without_colon_or_heading_are_not_a_marker(
    parser: MarkerVerdictParser,
) -> None:
    text = "I will list confidence scores next.\n- H1: 0.75\n[FINAL CONCLUSION]\nLater."

    assert parser.has_scores_marker(text) is False
    assert parser.extract_scores(text) is None

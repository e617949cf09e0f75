"""Field extraction for inline and structured notes."""

from datetime import date

import pytest

from repeat_effort.models import Notation, RepeatUnit
from repeat_effort.vault.block import MalformedStructuredList, locate_block, parse_block, serialize_block

TODAY = date(2024, 2, 3)

INLINE_NOTE = "\n".join(
    [
        "# Gym",
        "",
        "goal:: 2024-01-01",
        "repeat:: 1 month",
        "tags:: #output #project",
        "",
        "Body text.",
        "",
    ]
)

STRUCTURED_NOTE = "\n".join(
    [
        "---",
        "title: Gym",
        "goal: 2024-01-01",
        "repeat: 2 weeks",
        "tags:",
        "  - output",
        "  - project",
        "---",
        "Body",
        "",
    ]
)


def _span_text(text, span):
    return text[span.start : span.end]


def test_inline_fields(record_for):
    record = record_for(INLINE_NOTE, TODAY)

    assert record.notation is Notation.INLINE
    assert record.is_valid
    assert record.goal.value == date(2024, 1, 1)
    assert not record.goal.defaulted
    assert _span_text(INLINE_NOTE, record.goal.span) == "goal:: 2024-01-01"
    assert record.repeat.amount == 1
    assert record.repeat.unit is RepeatUnit.MONTH
    assert _span_text(INLINE_NOTE, record.repeat.span) == "repeat:: 1 month"
    assert record.tags.names == ["output", "project"]
    assert [_span_text(INLINE_NOTE, t.span) for t in record.tags.tokens] == ["#output", "#project"]


def test_inline_repeat_stops_before_tag(record_for):
    text = "goal:: 2024-01-01\nrepeat:: 2 Weeks #chore\ntags:: #effort\n"
    record = record_for(text, TODAY)

    assert record.repeat.amount == 2
    assert record.repeat.unit is RepeatUnit.WEEK
    assert record.repeat.spelling == "weeks"
    assert _span_text(text, record.repeat.span) == "repeat:: 2 Weeks"


@pytest.mark.parametrize(
    "declared, amount, unit",
    [
        ("3", 3, RepeatUnit.DAY),
        ("abc fortnights", 1, RepeatUnit.DAY),
        ("-2 days", 1, RepeatUnit.DAY),
        ("0 MONTHS", 1, RepeatUnit.MONTH),
        ("2x week", 2, RepeatUnit.WEEK),
    ],
)
def test_inline_repeat_defaults(record_for, declared, amount, unit):
    record = record_for(f"goal:: 2024-01-01\nrepeat:: {declared}\ntags:: #effort\n", TODAY)

    assert record.repeat.amount == amount
    assert record.repeat.unit is unit


def test_unparseable_goal_is_today_but_still_present(record_for):
    record = record_for("goal:: someday\nrepeat:: 1 day\ntags:: #effort\n", TODAY)

    assert record.is_valid
    assert record.goal.defaulted
    assert record.goal.value == TODAY
    assert record.goal.raw == "someday"


@pytest.mark.parametrize(
    "goal, formats, expected",
    [
        ("2024-03-09", "strict", date(2024, 3, 9)),
        ("2024-03-9", "strict", TODAY),
        ("2024-03-9", "lenient", date(2024, 3, 9)),
        ("2024-3-9", "lenient", date(2024, 3, 9)),
        ("2024-3-19", "lenient", TODAY),
        ("2024-02-30", "lenient", TODAY),
    ],
)
def test_goal_formats(record_for, goal, formats, expected):
    record = record_for(f"goal:: {goal}\nrepeat:: 1 day\ntags:: #effort\n", TODAY, goal_formats=formats)
    assert record.goal.value == expected


def test_missing_fields_make_record_invalid(record_for):
    record = record_for("goal:: 2024-01-01\nrepeat:: 1 day\n", TODAY)

    assert not record.is_valid
    assert record.missing == ["tags"]


def test_note_without_fields(record_for):
    record = record_for("# Just a note\n\nNothing to see.\n", TODAY)

    assert not record.is_valid
    assert record.missing == ["goal", "repeat", "tags"]


def test_only_first_goal_is_used(record_for):
    text = "goal:: 2024-01-01\nrepeat:: 1 day\ntags:: #effort\nPrevious goal:: 2023-01-01\n"
    record = record_for(text, TODAY)

    assert record.goal.value == date(2024, 1, 1)


def test_empty_tags_line_is_present(record_for):
    record = record_for("goal:: 2024-01-01\nrepeat:: 1 day\ntags::\nmore\n", TODAY)

    assert record.is_valid
    assert record.tags.names == []


def test_structured_fields(record_for):
    record = record_for(STRUCTURED_NOTE, TODAY)

    assert record.notation is Notation.STRUCTURED
    assert record.is_valid
    assert record.goal.value == date(2024, 1, 1)
    assert record.repeat.amount == 2
    assert record.repeat.unit is RepeatUnit.WEEK
    assert record.tags.names == ["output", "project"]
    assert record.goal.span.whole_block
    assert record.block.fields["title"] == "Gym"


def test_structured_flow_tags(record_for):
    text = "---\ngoal: '2024-01-01'\nrepeat: 1 day\ntags: [project, \"#output\"]\n---\n"
    record = record_for(text, TODAY)

    assert record.goal.value == date(2024, 1, 1)
    assert record.tags.names == ["project", "output"]


def test_block_without_fields_falls_back_to_inline(record_for):
    text = "---\ntitle: Gym\n---\ngoal:: 2024-01-01\nrepeat:: 1 day\ntags:: #effort\n"
    record = record_for(text, TODAY)

    assert record.notation is Notation.INLINE
    assert record.is_valid


def test_list_item_without_key_is_fatal(record_for):
    with pytest.raises(MalformedStructuredList) as exc:
        record_for("---\n  - stray\ngoal: 2024-01-01\n---\nBody\n", TODAY)
    assert exc.value.line == 1


def test_list_item_under_scalar_is_fatal():
    with pytest.raises(MalformedStructuredList, match="scalar key 'goal'"):
        parse_block("goal: 2024-01-01\n  - item\n")


def test_parse_block_shapes():
    fields = parse_block("title: \"Gym: legs\"\naliases:\ntags:\n  - a\n  - b\n\n# comment\n")

    assert fields == {"title": '"Gym: legs"', "aliases": [], "tags": ["a", "b"]}


def test_serialize_block():
    assert serialize_block({"title": "Gym", "aliases": [], "tags": ["a", "b"]}) == (
        "title: Gym\naliases:\ntags:\n  - a\n  - b\n"
    )


def test_locate_block_spans_body_only():
    text = "---\ngoal: 2024-01-01\n---\nBody\n"
    span = locate_block(text)

    assert text[span.start : span.end] == "goal: 2024-01-01\n"


def test_locate_block_requires_closing_delimiter():
    assert locate_block("---\ngoal: 2024-01-01\n") is None
    assert locate_block("Body\n---\nmore\n---\n") is None


def test_front_matter_tags_with_inline_fields(record_for):
    text = "---\ntags:\n  - gym\n---\ngoal:: 2024-01-01\nrepeat:: 1 month\ntags:: #output\n"
    record = record_for(text, TODAY)

    assert record.notation is Notation.INLINE
    assert record.is_valid
    assert record.goal.value == date(2024, 1, 1)
    assert record.tags.names == ["output"]


def test_block_scalar_lines_are_not_list_items(record_for):
    text = "---\nsummary: |\n  - first step\n  - second step\n---\nJust a note\n"
    record = record_for(text, TODAY)

    assert record.notation is Notation.INLINE
    assert not record.is_valid
    assert parse_block("summary: |\n  - first step\n  - second step\nnext: 1\n") == {
        "summary": "|\n  - first step\n  - second step",
        "next": "1",
    }


@pytest.mark.parametrize(
    "text",
    [
        "---\n- one\n- two\n---\nText\n",
        "---\ntags: gym\n  - stray\n---\ngoal:: 2024-01-01\nrepeat:: 1 day\ntags:: #effort\n",
    ],
)
def test_malformed_list_outside_effort_block_is_ignored(record_for, text):
    record = record_for(text, TODAY)

    assert record.notation is Notation.INLINE
    assert record.block is None


def test_serialize_block_line_ending():
    assert serialize_block({"summary": "|\n  text", "tags": ["a"]}, "\r\n") == (
        "summary: |\r\n  text\r\ntags:\r\n  - a\r\n"
    )


def test_inline_goal_value_must_be_on_marker_line(record_for):
    record = record_for("goal::\n2024-01-01\nrepeat:: 1 day\ntags:: #effort\n", TODAY)

    assert record.goal is None
    assert record.missing == ["goal"]

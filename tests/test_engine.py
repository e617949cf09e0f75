"""Skip/advance decisions and tag normalization."""

from datetime import date

import pytest

from repeat_effort.engine import SKIP_WINDOW_DAYS, decide, normalize_tags, should_skip


def _note(goal: str, repeat: str = "1 month", tags: str = "#project") -> str:
    return f"goal:: {goal}\nrepeat:: {repeat}\ntags:: {tags}\n"


def test_due_note_within_window_is_advanced(record_for):
    """Goal 2024-01-01 + 1 month, checked 2024-02-03: next goal is 2 days back."""
    decision = decide(record_for(_note("2024-01-01"), date(2024, 2, 3)))

    assert decision.reached
    assert not decision.skip
    assert decision.next_goal == date(2024, 2, 1)
    assert decision.days_until_next == 2


def test_due_note_with_distant_next_goal_is_skipped(record_for):
    decision = decide(record_for(_note("2024-01-01"), date(2024, 1, 15)))

    assert decision.skip
    assert decision.next_goal == date(2024, 2, 1)
    assert decision.tags == ["project"]


def test_future_goal_beyond_window_is_skipped(record_for):
    decision = decide(record_for(_note("2024-03-01", "1 day"), date(2024, 2, 1)))

    assert not decision.reached
    assert decision.skip
    assert decision.next_goal == date(2024, 3, 1)


def test_future_goal_inside_window_is_tagged_but_not_advanced(record_for):
    decision = decide(record_for(_note("2024-02-03", tags="#output"), date(2024, 2, 1)))

    assert not decision.reached
    assert not decision.skip
    assert decision.next_goal == date(2024, 2, 3)
    assert decision.tags == ["effort"]


def test_goal_reached_today_advances(record_for):
    decision = decide(record_for(_note("2024-02-01", "1 day"), date(2024, 2, 1)))

    assert decision.reached
    assert not decision.skip
    assert decision.next_goal == date(2024, 2, 2)


def test_long_overdue_note_advances_one_interval(record_for):
    """Today is past the advanced candidate, so the window does not apply."""
    decision = decide(record_for(_note("2023-01-01"), date(2024, 2, 3)))

    assert not decision.skip
    assert decision.next_goal == date(2023, 2, 1)


def test_overdue_note_with_far_candidate_is_skipped(record_for):
    # Jan 30 + 1 month rolls over to Mar 1 in a leap year
    decision = decide(record_for(_note("2024-01-30"), date(2024, 2, 1)))

    assert decision.reached
    assert decision.next_goal == date(2024, 3, 1)
    assert decision.skip


def test_window_is_configurable(record_for):
    decision = decide(record_for(_note("2024-01-01"), date(2024, 1, 15)), window=30)
    assert not decision.skip


@pytest.mark.parametrize(
    "days_until, reached, current_before_candidate, expected",
    [
        (SKIP_WINDOW_DAYS, False, True, False),
        (SKIP_WINDOW_DAYS + 1, False, True, True),
        (SKIP_WINDOW_DAYS + 1, True, True, True),
        (SKIP_WINDOW_DAYS + 1, True, False, False),
    ],
)
def test_should_skip_boundaries(days_until, reached, current_before_candidate, expected):
    current = date(2024, 6, 10)
    offset = days_until if current_before_candidate else -days_until
    candidate = date.fromordinal(current.toordinal() + offset)
    assert should_skip(current, reached, candidate) is expected


def test_decide_requires_valid_record(record_for):
    record = record_for("goal:: 2024-01-01\n", date(2024, 2, 1))
    with pytest.raises(ValueError, match="repeat, tags"):
        decide(record)


@pytest.mark.parametrize(
    "names, expected",
    [
        (["output", "project"], ["effort", "project"]),
        (["project"], ["effort", "project"]),
        ([], ["effort"]),
        (["effort", "project"], ["effort", "project"]),
        (["effort", "output"], ["effort"]),
        (["Output", "x", "output"], ["effort", "x"]),
    ],
)
def test_normalize_tags(names, expected):
    result = normalize_tags(names)
    assert result == expected
    assert not ({"effort", "output"} <= {n.lower() for n in result})


def test_normalize_tags_appends_when_not_prepending():
    assert normalize_tags(["project"], prepend=False) == ["project", "effort"]


def test_normalize_tags_custom_names():
    assert normalize_tags(["done"], active_tag="active", output_tag="done") == ["active"]

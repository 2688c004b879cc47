"""
Unit tests for bulk match scheduling.
"""

from datetime import date

from powerplay.modules.matches.bulk import (
    day_of_week, week_of_month, matches_weekly_option, build_generated_match,
    generate_match_dates, group_matches_by_pattern
)
from powerplay.core.timezone import kst_to_utc


def test_day_of_week_starts_on_sunday():
    assert day_of_week(date(2026, 3, 1)) == 0  # Sunday
    assert day_of_week(date(2026, 3, 7)) == 6  # Saturday


def test_week_of_month_is_monday_based():
    # 2026-03-01 is a Sunday: it closes week 1, Monday the 2nd opens week 2
    assert week_of_month(date(2026, 3, 1)) == 1
    assert week_of_month(date(2026, 3, 2)) == 2
    assert week_of_month(date(2026, 3, 9)) == 3


def test_weekly_options():
    second_week = date(2026, 3, 4)
    assert week_of_month(second_week) == 2
    assert matches_weekly_option(second_week, "every")
    assert matches_weekly_option(second_week, "week24")
    assert not matches_weekly_option(second_week, "week13")
    assert matches_weekly_option(second_week, "custom", [2, 5])
    assert not matches_weekly_option(second_week, "custom", [])


def test_generate_every_wednesday():
    pattern = {"days_of_week": [3], "hour": "22", "minute": "0", "weekly_option": "every", "entry_points": 20000}
    generated = generate_match_dates(2026, 3, pattern)
    assert [m["date"] for m in generated] == ["2026-03-04", "2026-03-11", "2026-03-18", "2026-03-25"]
    assert generated[0]["start_time"] == "2026-03-04T22:00"
    assert generated[0]["max_skaters"] == 20
    assert generated[0]["max_goalies"] == 2


def test_selected_dates_mode_ignores_other_months():
    pattern = {"selected_dates": ["2026-03-20", "2026-04-01", "2026-03-05"], "hour": "7", "minute": "30"}
    generated = generate_match_dates(2026, 3, pattern)
    assert [m["start_time"] for m in generated] == ["2026-03-05T07:30", "2026-03-20T07:30"]


def test_no_days_means_no_matches():
    assert generate_match_dates(2026, 3, {"days_of_week": []}) == []


def test_team_match_defaults():
    generated = build_generated_match(date(2026, 3, 4), {
        "match_type": "team_match", "entry_points": 30000, "rental_fee": 5000,
        "rental_available": True, "max_skaters": 30, "hour": "21", "minute": "00"
    })
    assert generated["entry_points"] == 0
    assert generated["rental_fee"] == 0
    assert generated["rental_available"] is False
    assert generated["max_skaters"] == 1
    assert generated["max_goalies"] == 0


def test_training_uses_guest_limit():
    generated = build_generated_match(date(2026, 3, 4), {"match_type": "training", "max_guests": 12})
    assert generated["max_skaters"] == 12
    assert generated["max_goalies"] == 0
    unlimited = build_generated_match(date(2026, 3, 4), {"match_type": "training"})
    assert unlimited["max_skaters"] == 999


def _stored(day, hour=22, **fields):
    row = {
        "rink_id": "rink-1", "match_type": "open_hockey", "entry_points": 20000, "rental_fee": 0,
        "rental_available": False, "bank_account": None, "max_skaters": 20, "max_goalies": 2,
        "max_guests": None, "goalie_free": False,
        "start_time": kst_to_utc(f"{day}T{hour:02d}:00").isoformat(),
    }
    row.update(fields)
    return row


def test_group_every_week_pattern():
    matches = [_stored(d) for d in ("2026-02-04", "2026-02-11", "2026-02-18", "2026-02-25")]
    patterns = group_matches_by_pattern(matches)
    assert len(patterns) == 1
    assert patterns[0]["days_of_week"] == [3]
    assert patterns[0]["hour"] == "22"
    assert patterns[0]["weekly_option"] == "every"


def test_group_alternate_weeks_pattern():
    # 2026-02 starts on a Sunday: the 4th is in week 2 and the 18th in week 4
    matches = [_stored("2026-02-04"), _stored("2026-02-18")]
    patterns = group_matches_by_pattern(matches)
    assert patterns[0]["weekly_option"] == "week24"


def test_group_splits_on_different_settings():
    matches = [_stored("2026-02-04"), _stored("2026-02-05", entry_points=10000)]
    assert len(group_matches_by_pattern(matches)) == 2

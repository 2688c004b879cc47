"""
Bulk match scheduling.

A schedule pattern expands into the match dates of one month, either from an
explicit list of calendar dates or from days of week filtered by week of month.
Days of week use 0 = Sunday .. 6 = Saturday. Weeks of month are Monday-based:
week 1 is the Monday-to-Sunday week that contains the 1st.
"""

import calendar
import math
from datetime import date
from typing import Dict, List, Optional

from powerplay.core.timezone import KST, parse_timestamp

WEEKLY_OPTIONS = ("every", "week13", "week24", "custom")
# Share of the every-week occurrence count below which a group is treated as a partial schedule
EVERY_WEEK_THRESHOLD = 0.7


def day_of_week(day: date) -> int:
    """0 = Sunday"""
    return (day.weekday() + 1) % 7


def week_of_month(day: date) -> int:
    first_weekday = date(day.year, day.month, 1).weekday()  # Monday = 0
    return math.ceil((day.day + first_weekday) / 7)


def matches_weekly_option(day: date, weekly_option: str, custom_weeks: Optional[List[int]] = None) -> bool:
    if weekly_option == "every":
        return True
    week = week_of_month(day)
    if weekly_option == "week13":
        return week in (1, 3)
    if weekly_option == "week24":
        return week in (2, 4)
    if weekly_option == "custom":
        return bool(custom_weeks) and week in custom_weeks
    return True


def build_generated_match(day: date, pattern: dict) -> dict:
    """Fill match fields from the pattern, with fixed values per match type"""
    match_type = pattern.get("match_type") or "open_hockey"
    is_team_match = match_type == "team_match"
    is_training = match_type == "training"

    max_guests = pattern.get("max_guests") if is_training else None
    if is_team_match:
        max_skaters = 1
    elif is_training:
        max_skaters = max_guests if max_guests is not None else 999
    else:
        max_skaters = pattern.get("max_skaters") if pattern.get("max_skaters") is not None else 20

    if is_team_match or is_training:
        max_goalies = 0
    else:
        max_goalies = pattern.get("max_goalies") if pattern.get("max_goalies") is not None else 2

    hour = str(pattern.get("hour", "0")).zfill(2)
    minute = str(pattern.get("minute", "0")).zfill(2)
    return {
        "date": day.isoformat(),
        "day_of_week": day_of_week(day),
        "start_time": f"{day.isoformat()}T{hour}:{minute}",
        "pattern_id": pattern.get("id"),
        "rink_id": pattern.get("rink_id"),
        "club_id": pattern.get("club_id"),
        "match_type": match_type,
        "entry_points": 0 if is_team_match else (pattern.get("entry_points") or 0),
        "bank_account": None if is_team_match else pattern.get("bank_account"),
        "max_skaters": max_skaters,
        "max_goalies": max_goalies,
        "max_guests": max_guests,
        "goalie_free": False if (is_team_match or is_training) else bool(pattern.get("goalie_free")),
        "rental_available": False if is_team_match else bool(pattern.get("rental_available")),
        "rental_fee": 0 if is_team_match else (pattern.get("rental_fee") or 0),
        "description": pattern.get("description"),
    }


def generate_match_dates(year: int, month: int, pattern: dict) -> List[dict]:
    """Expand a schedule pattern into the matches of one month (KST wall clock)"""
    prefix = f"{year}-{month:02d}"
    selected = pattern.get("selected_dates") or []
    if selected:
        days = sorted(d for d in selected if d.startswith(prefix))
        return [build_generated_match(date.fromisoformat(d), pattern) for d in days]

    days_of_week = pattern.get("days_of_week") or []
    if not days_of_week:
        return []

    results = []
    for day_number in range(1, calendar.monthrange(year, month)[1] + 1):
        day = date(year, month, day_number)
        if day_of_week(day) not in days_of_week:
            continue
        if not matches_weekly_option(day, pattern.get("weekly_option") or "every", pattern.get("custom_weeks")):
            continue
        results.append(build_generated_match(day, pattern))
    return results


def _signature(match: dict, hour: str, minute: str) -> str:
    return "|".join([
        str(match.get("rink_id") or ""),
        str(match.get("match_type") or ""),
        hour,
        minute,
        str(match.get("entry_points")),
        str(match.get("rental_fee")),
        str(match.get("rental_available")),
        match.get("bank_account") or "",
        str(match.get("max_skaters")),
        str(match.get("max_goalies")),
        "" if match.get("max_guests") is None else str(match.get("max_guests")),
        str(match.get("goalie_free")),
    ])


def group_matches_by_pattern(matches: List[dict]) -> List[dict]:
    """Rebuild schedule patterns from last month's matches (same rink, type, time and settings)"""
    groups: Dict[str, dict] = {}
    for match in matches:
        local = parse_timestamp(match["start_time"]).astimezone(KST)
        hour = f"{local.hour:02d}"
        minute = f"{local.minute:02d}"
        key = _signature(match, hour, minute)
        group = groups.setdefault(key, {"matches": [], "dates": [], "hour": hour, "minute": minute})
        group["matches"].append(match)
        group["dates"].append(local.date())

    patterns = []
    for index, group in enumerate(groups.values(), start=1):
        sample = group["matches"][0]
        dates = group["dates"]
        days_of_week = sorted({day_of_week(d) for d in dates})
        unique_weeks = sorted({week_of_month(d) for d in dates})

        weekly_option = "every"
        custom_weeks = None
        days_in_month = calendar.monthrange(dates[0].year, dates[0].month)[1]
        expected_every_week = len(days_of_week) * (days_in_month // 7)
        if len(group["matches"]) < expected_every_week * EVERY_WEEK_THRESHOLD:
            if len(unique_weeks) <= 2 and all(w in (1, 3) for w in unique_weeks):
                weekly_option = "week13"
            elif len(unique_weeks) <= 2 and all(w in (2, 4) for w in unique_weeks):
                weekly_option = "week24"
            else:
                weekly_option = "custom"
                custom_weeks = unique_weeks

        patterns.append({
            "id": f"prev-{index}",
            "rink_id": sample.get("rink_id"),
            "club_id": sample.get("club_id"),
            "days_of_week": days_of_week,
            "hour": group["hour"],
            "minute": group["minute"],
            "weekly_option": weekly_option,
            "custom_weeks": custom_weeks,
            "match_type": sample.get("match_type"),
            "entry_points": sample.get("entry_points"),
            "bank_account": sample.get("bank_account"),
            "max_skaters": sample.get("max_skaters"),
            "max_goalies": sample.get("max_goalies"),
            "max_guests": sample.get("max_guests"),
            "goalie_free": sample.get("goalie_free"),
            "rental_available": sample.get("rental_available"),
            "rental_fee": sample.get("rental_fee"),
            "description": sample.get("description"),
        })
    return patterns

"""
Refund policy evaluation.
"""

from datetime import datetime
from typing import Optional, Union

from powerplay.core.timezone import parse_timestamp, utcnow


def _rule_hours(rule: dict) -> float:
    # camelCase keys come from rows written by the old web app
    return float(rule.get("hours_before_match", rule.get("hoursBeforeMatch", 0)))


def _rule_percent(rule: dict) -> int:
    return int(rule.get("refund_percent", rule.get("refundPercent", 0)))


def refund_percent(start_time: Union[str, datetime], policy: Optional[dict], now: Optional[datetime] = None) -> int:
    """
    Percent of the paid amount returned when a player cancels.

    Rules are checked from the longest notice down; the first rule whose
    hours_before_match is covered by the time left wins. No policy (or no
    rules) means a full refund; when no rule matches nothing is refunded.
    """
    rules = (policy or {}).get("rules") or []
    if not rules:
        return 100
    now = now or utcnow()
    hours_left = (parse_timestamp(start_time) - now).total_seconds() / 3600
    for rule in sorted(rules, key=_rule_hours, reverse=True):
        if hours_left >= _rule_hours(rule):
            return _rule_percent(rule)
    return 0


def refund_amount(paid: int, percent: int) -> int:
    """floor(paid * percent / 100)"""
    return (paid * percent) // 100

"""
Unit tests for refund percentage evaluation.
"""

from datetime import datetime, timedelta, timezone

import pytest

from powerplay.modules.points.policy import refund_percent, refund_amount

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
POLICY = {"rules": [
    {"hours_before_match": 0, "refund_percent": 0},
    {"hours_before_match": 48, "refund_percent": 100},
    {"hours_before_match": 24, "refund_percent": 50},
]}


def start_in(hours):
    return (NOW + timedelta(hours=hours)).isoformat()


def test_no_policy_is_full_refund():
    assert refund_percent(start_in(1), None, NOW) == 100
    assert refund_percent(start_in(1), {"rules": []}, NOW) == 100


@pytest.mark.parametrize("hours, expected", [(72, 100), (48, 100), (30, 50), (24, 50), (5, 0)])
def test_longest_notice_rule_wins(hours, expected):
    assert refund_percent(start_in(hours), POLICY, NOW) == expected


def test_no_matching_rule_refunds_nothing():
    policy = {"rules": [{"hours_before_match": 24, "refund_percent": 100}]}
    assert refund_percent(start_in(3), policy, NOW) == 0


def test_camel_case_rules_are_read():
    policy = {"rules": [{"hoursBeforeMatch": 12, "refundPercent": 70}]}
    assert refund_percent(start_in(13), policy, NOW) == 70


def test_refund_amount_rounds_down():
    assert refund_amount(15000, 50) == 7500
    assert refund_amount(999, 33) == 329
    assert refund_amount(10000, 0) == 0

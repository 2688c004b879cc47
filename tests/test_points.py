"""
Tests for point charges, confirmation with auto-settlement and admin adjustments.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException

from powerplay.modules.points.schemas import ChargeRequestCreate, RefundRule, BankAccount
from powerplay.modules.points.service import PointService
from powerplay.modules.superuser.service import SuperuserService
from tests.conftest import make_profile, auth_headers


@pytest.fixture
def points(db):
    return PointService(db)


@pytest.fixture
def superuser(db):
    make_profile(db, "boss", role="superuser")
    return SuperuserService(db)


def seed_pending(db, user_id, start, entry=10000, rental=0, rental_opt_in=False, status="open"):
    match = db.seed("matches", {"start_time": start.isoformat(), "entry_points": entry, "rental_fee": rental,
                                "goalie_free": False, "status": status})[0]
    return db.seed("participants", {"match_id": match["id"], "user_id": user_id, "position": "FW",
                                    "status": "pending_payment", "payment_status": False,
                                    "rental_opt_in": rental_opt_in})[0]


class TestChargeRequests:
    def test_minimum_amount(self, db, points):
        make_profile(db, "kim")
        with pytest.raises(HTTPException) as exc:
            points.request_charge("kim", ChargeRequestCreate(amount=999, depositor_name="Kim"))
        assert exc.value.detail == "Minimum charge amount is 1,000 points"

    def test_depositor_required(self, db, points):
        with pytest.raises(HTTPException) as exc:
            points.request_charge("kim", ChargeRequestCreate(amount=5000, depositor_name="  "))
        assert exc.value.detail == "Depositor name is required"

    def test_one_pending_request(self, db, points):
        points.request_charge("kim", ChargeRequestCreate(amount=5000, depositor_name="Kim"))
        with pytest.raises(HTTPException) as exc:
            points.request_charge("kim", ChargeRequestCreate(amount=5000, depositor_name="Kim"))
        assert exc.value.detail == "You already have a pending charge request"

    def test_cancel_own_pending_only(self, db, points):
        request = points.request_charge("kim", ChargeRequestCreate(amount=5000, depositor_name="Kim"))
        with pytest.raises(HTTPException) as exc:
            points.cancel_charge_request("lee", request.id)
        assert exc.value.status_code == 404
        assert points.cancel_charge_request("kim", request.id) is True
        assert db.row("point_charge_requests", id=request.id)["status"] == "canceled"

    def test_history_is_paginated(self, db, points):
        make_profile(db, "kim", points=0)
        for _ in range(3):
            points.adjust_balance("kim", 1000, "charge", "tx_charge")
        page = points.history("kim", limit=2, offset=0)
        assert page.total == 3
        assert len(page.transactions) == 2
        assert page.transactions[0].balance_after == 3000


class TestConfirmCharge:
    def test_credit_and_ledger(self, db, points, superuser):
        make_profile(db, "kim", points=2000)
        request = points.request_charge("kim", ChargeRequestCreate(amount=10000, depositor_name="Kim"))

        result = superuser.confirm_charge(request.id, "boss")

        assert result["new_balance"] == 12000
        assert result["settled_participant_ids"] == []
        stored = db.row("point_charge_requests", id=request.id)
        assert stored["status"] == "confirmed"
        assert stored["confirmed_by"] == "boss"
        tx = db.row("point_transactions", type="charge")
        assert tx["amount"] == 10000
        assert tx["balance_after"] == 12000
        assert result["notifications"][0]["body_key"] == "push_charge_confirmed_body"

    def test_processed_request_cannot_be_confirmed_twice(self, db, points, superuser):
        make_profile(db, "kim")
        request = points.request_charge("kim", ChargeRequestCreate(amount=10000, depositor_name="Kim"))
        superuser.confirm_charge(request.id, "boss")
        with pytest.raises(HTTPException) as exc:
            superuser.confirm_charge(request.id, "boss")
        assert exc.value.detail == "Charge request not found or already processed"
        assert db.row("profiles", id="kim")["points"] == 10000

    def test_balance_restored_when_status_update_fails(self, db, points, superuser, monkeypatch):
        make_profile(db, "kim", points=500)
        request = points.request_charge("kim", ChargeRequestCreate(amount=10000, depositor_name="Kim"))
        real_table = db.table

        def table(name):
            query = real_table(name)
            if name == "point_charge_requests":
                def update(payload):
                    raise Exception("write failed")
                query.update = update
            return query
        monkeypatch.setattr(db, "table", table)

        with pytest.raises(HTTPException) as exc:
            superuser.confirm_charge(request.id, "boss")
        assert exc.value.status_code == 500
        assert db.row("profiles", id="kim")["points"] == 500
        assert db.rows("point_transactions") == []

    def test_auto_settles_oldest_pending_that_fit(self, db, points, superuser):
        make_profile(db, "kim", points=0)
        soon = datetime.now(timezone.utc) + timedelta(days=1)
        first = seed_pending(db, "kim", soon, entry=10000)
        too_big = seed_pending(db, "kim", soon, entry=20000)
        small = seed_pending(db, "kim", soon, entry=3000, rental=1000, rental_opt_in=True)
        started = seed_pending(db, "kim", datetime.now(timezone.utc) - timedelta(hours=1), entry=1000)
        canceled = seed_pending(db, "kim", soon, entry=1000, status="canceled")
        request = points.request_charge("kim", ChargeRequestCreate(amount=15000, depositor_name="Kim"))

        result = superuser.confirm_charge(request.id, "boss")

        assert result["settled_participant_ids"] == [first["id"], small["id"]]
        assert result["new_balance"] == 1000
        assert db.row("profiles", id="kim")["points"] == 1000
        assert db.row("participants", id=first["id"])["status"] == "confirmed"
        assert db.row("participants", id=small["id"])["payment_status"] is True
        for untouched in (too_big, started, canceled):
            assert db.row("participants", id=untouched["id"])["status"] == "pending_payment"
        settlements = db.rows("point_transactions", type="use")
        assert [tx["amount"] for tx in settlements] == [-10000, -4000]
        assert settlements[0]["description"] == "경기 참가비 자동 결제"
        notice = result["notifications"][0]
        assert notice["body_key"] == "push_charge_settled_body"
        assert notice["params"]["count"] == 2

    def test_seat_marked_paid_by_organizer_is_not_charged_again(self, db, points, superuser):
        make_profile(db, "kim", points=0)
        paid = seed_pending(db, "kim", datetime.now(timezone.utc) + timedelta(days=1), entry=15000)
        db.row("participants", id=paid["id"])["payment_status"] = True
        request = points.request_charge("kim", ChargeRequestCreate(amount=20000, depositor_name="Kim"))

        result = superuser.confirm_charge(request.id, "boss")

        assert result["settled_participant_ids"] == []
        assert result["new_balance"] == 20000
        assert db.rows("point_transactions", type="use") == []

    def test_reject_keeps_balance(self, db, points, superuser):
        make_profile(db, "kim", points=100)
        request = points.request_charge("kim", ChargeRequestCreate(amount=10000, depositor_name="Kim"))
        result = superuser.reject_charge(request.id, "boss", "No transfer found")
        stored = db.row("point_charge_requests", id=request.id)
        assert stored["status"] == "rejected"
        assert stored["reject_reason"] == "No transfer found"
        assert db.row("profiles", id="kim")["points"] == 100
        assert result["notifications"][0]["params"]["reason"] == "No transfer found"


class TestSettingsAndUsers:
    def test_refund_policy_sorted_and_validated(self, db, superuser):
        with pytest.raises(HTTPException) as exc:
            superuser.update_refund_policy([RefundRule(hours_before_match=10, refund_percent=120)])
        assert exc.value.detail == "Invalid refund rule values"

        superuser.update_refund_policy([
            RefundRule(hours_before_match=24, refund_percent=50),
            RefundRule(hours_before_match=72, refund_percent=100),
        ])
        stored = db.row("platform_settings", key="refund_policy")["value"]
        assert [r["hours_before_match"] for r in stored["rules"]] == [72, 24]

        superuser.update_refund_policy([RefundRule(hours_before_match=1, refund_percent=10)])
        assert len(db.rows("platform_settings", key="refund_policy")) == 1
        assert PointService(db).refund_policy()["rules"][0]["refund_percent"] == 10

    def test_bank_account_upsert(self, db, superuser):
        superuser.update_bank_account(BankAccount(bank="KB", account="123-45", holder="Power Play"))
        assert PointService(db).bank_account()["bank"] == "KB"

    def test_admin_adjustment_records_difference(self, db, superuser):
        make_profile(db, "kim", points=5000, preferred_lang="en")
        assert superuser.update_user_points("kim", 3000) == 3000
        tx = db.row("point_transactions", user_id="kim")
        assert tx["type"] == "admin_adjustment"
        assert tx["amount"] == -2000
        assert tx["description"] == "Admin point adjustment"

    def test_manual_payment_confirmation_moves_no_points(self, db, superuser):
        make_profile(db, "kim", points=0)
        pending = seed_pending(db, "kim", datetime.now(timezone.utc) + timedelta(days=1))
        superuser.confirm_participant_payment(pending["id"])
        assert db.row("participants", id=pending["id"])["status"] == "confirmed"
        assert db.rows("point_transactions") == []
        with pytest.raises(HTTPException):
            superuser.cancel_pending_participant(pending["id"])

    def test_admins_with_match_counts(self, db, superuser):
        make_profile(db, "org", role="admin")
        make_profile(db, "kim")
        db.seed("matches", {"created_by": "org", "start_time": "2026-03-01T10:00:00+00:00"},
                {"created_by": "org", "start_time": "2026-03-02T10:00:00+00:00"})
        admins = {a["id"]: a["match_count"] for a in superuser.list_admins()}
        assert admins == {"org": 2, "boss": 0}


def test_points_endpoints_need_superuser(client, db):
    make_profile(db, "kim")
    response = client.get("/api/v1/superuser/charge-requests/pending", headers=auth_headers("kim"))
    assert response.status_code == 403


def test_charge_request_endpoint(client, db):
    make_profile(db, "kim", full_name="김철수")
    response = client.post("/api/v1/points/charge-requests", json={"amount": 20000, "depositor_name": "김철수"},
                           headers=auth_headers("kim"))
    assert response.status_code == 201
    assert response.json()["status"] == "pending"
    audit = db.row("audit_logs", action_type="POINT_CHARGE_REQUEST")
    assert "20,000" in audit["description"]

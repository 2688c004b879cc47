"""
Tests for joining, leaving and administering matches against the in-memory Supabase fake.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException

from powerplay.modules.matches.schemas import MatchCreate, MatchUpdate, RegularResponseCreate
from powerplay.modules.matches.service import MatchService
from tests.conftest import make_profile, auth_headers

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def seed_match(db, start=None, **fields):
    rink = db.seed("rinks", {"name_ko": "목동 아이스링크", "name_en": "Mokdong Ice Rink",
                             "address": "서울특별시 양천구 안양천로 939"})[0]
    row = {
        "rink_id": rink["id"],
        "club_id": None,
        "start_time": (start or NOW + timedelta(days=3)).isoformat(),
        "entry_points": 15000,
        "rental_fee": 5000,
        "rental_available": True,
        "goalie_free": False,
        "max_skaters": 10,
        "max_goalies": 2,
        "match_type": "open_hockey",
        "status": "open",
        "created_by": "organizer",
    }
    row.update(fields)
    return db.seed("matches", row)[0]


@pytest.fixture
def service(db):
    make_profile(db, "organizer", role="admin")
    return MatchService(db)


class TestJoinMatch:
    def test_balance_covers_entry(self, db, service):
        player = make_profile(db, "kim", points=20000)
        match = seed_match(db)

        result = service.join_match(match["id"], player, "FW", now=NOW)

        assert result["status"] == "confirmed"
        assert result["payment_status"] is True
        assert result["cost"] == 15000
        assert db.row("profiles", id="kim")["points"] == 5000
        tx = db.row("point_transactions", user_id="kim")
        assert tx["type"] == "use"
        assert tx["amount"] == -15000
        assert tx["description"] == "경기 참가"
        assert db.row("participants", id=result["participant_id"])["status"] == "confirmed"

    def test_creator_is_notified(self, db, service):
        player = make_profile(db, "kim", points=20000)
        match = seed_match(db)
        result = service.join_match(match["id"], player, "DF", now=NOW)
        assert [n["user_id"] for n in result["notifications"]] == ["organizer"]
        assert result["notifications"][0]["params"]["position"] == "DF"

    def test_rental_fee_added_when_opted_in(self, db, service):
        player = make_profile(db, "kim", points=20000)
        match = seed_match(db)
        result = service.join_match(match["id"], player, "FW", rental_opt_in=True, now=NOW)
        assert result["cost"] == 20000
        assert db.row("profiles", id="kim")["points"] == 0

    def test_insufficient_balance_is_pending_payment(self, db, service):
        player = make_profile(db, "kim", points=1000)
        match = seed_match(db)

        result = service.join_match(match["id"], player, "FW", now=NOW)

        assert result["status"] == "pending_payment"
        assert result["payment_status"] is False
        assert db.row("profiles", id="kim")["points"] == 1000
        assert db.rows("point_transactions") == []

    def test_free_goalie_is_confirmed_without_charge(self, db, service):
        player = make_profile(db, "lee", points=0, position="G")
        match = seed_match(db, goalie_free=True)
        result = service.join_match(match["id"], player, "G", now=NOW)
        assert result["status"] == "confirmed"
        assert result["cost"] == 0
        assert db.rows("point_transactions") == []

    def test_full_skater_pool_puts_player_on_waitlist(self, db, service):
        match = seed_match(db, max_skaters=1)
        db.seed("participants", {"match_id": match["id"], "user_id": "other", "position": "DF",
                                 "status": "confirmed", "payment_status": True})
        player = make_profile(db, "kim", points=50000)

        result = service.join_match(match["id"], player, "FW", now=NOW)

        assert result["status"] == "waiting"
        assert db.row("profiles", id="kim")["points"] == 50000

    def test_already_joined(self, db, service):
        player = make_profile(db, "kim", points=50000)
        match = seed_match(db)
        service.join_match(match["id"], player, "FW", now=NOW)
        with pytest.raises(HTTPException) as exc:
            service.join_match(match["id"], player, "FW", now=NOW)
        assert exc.value.status_code == 400
        assert exc.value.detail == "Already joined this match"

    def test_canceled_row_is_reused(self, db, service):
        player = make_profile(db, "kim", points=50000)
        match = seed_match(db)
        old = db.seed("participants", {"match_id": match["id"], "user_id": "kim", "position": "DF",
                                       "status": "canceled", "payment_status": False})[0]

        result = service.join_match(match["id"], player, "FW", now=NOW)

        assert result["participant_id"] == old["id"]
        assert len(db.rows("participants", user_id="kim")) == 1
        assert db.row("participants", id=old["id"])["position"] == "FW"

    @pytest.mark.parametrize("fields, detail", [
        ({"status": "closed"}, "Match is not open"),
        ({"start": NOW - timedelta(hours=1)}, "Match already started"),
        ({"rental_available": False}, "Equipment rental is not available for this match"),
    ])
    def test_rule_violations(self, db, service, fields, detail):
        player = make_profile(db, "kim", points=50000)
        match = seed_match(db, **fields)
        with pytest.raises(HTTPException) as exc:
            service.join_match(match["id"], player, "FW", rental_opt_in=True, now=NOW)
        assert exc.value.status_code == 400
        assert exc.value.detail == detail

    def test_missing_match(self, db, service):
        player = make_profile(db, "kim")
        with pytest.raises(HTTPException) as exc:
            service.join_match("nope", player, "FW", now=NOW)
        assert exc.value.status_code == 404

    def test_regular_match_guests_wait_for_open_time(self, db, service):
        club = db.seed("clubs", {"name": "Seoul Owls", "created_by": "organizer"})[0]
        match = seed_match(db, match_type="regular", club_id=club["id"], guest_open_hours_before=24,
                           start=NOW + timedelta(hours=30))
        guest = make_profile(db, "guest", points=50000)

        with pytest.raises(HTTPException) as exc:
            service.join_match(match["id"], guest, "FW", now=NOW)
        assert exc.value.detail["code"] == "GUEST_NOT_YET_OPEN"
        assert exc.value.detail["error"] == "guest_not_yet_open"

        later = NOW + timedelta(hours=7)
        assert service.join_match(match["id"], guest, "FW", now=later)["status"] == "confirmed"

    def test_regular_match_members_join_any_time(self, db, service):
        club = db.seed("clubs", {"name": "Seoul Owls", "created_by": "organizer"})[0]
        match = seed_match(db, match_type="regular", club_id=club["id"], start=NOW + timedelta(days=10))
        member = make_profile(db, "member", points=50000)
        db.seed("club_memberships", {"club_id": club["id"], "user_id": "member", "role": "member",
                                     "status": "approved"})
        assert service.join_match(match["id"], member, "DF", now=NOW)["status"] == "confirmed"


class TestCancelJoin:
    def test_missing_participation(self, db, service):
        player = make_profile(db, "kim")
        match = seed_match(db)
        with pytest.raises(HTTPException) as exc:
            service.cancel_join(match["id"], player, now=NOW)
        assert exc.value.status_code == 404
        assert exc.value.detail == "Participation not found"

    def test_full_refund_without_policy(self, db, service):
        player = make_profile(db, "kim", points=20000)
        match = seed_match(db)
        service.join_match(match["id"], player, "FW", now=NOW)

        result = service.cancel_join(match["id"], player, now=NOW)

        assert result["refund_amount"] == 15000
        assert result["refund_percent"] == 100
        assert db.row("profiles", id="kim")["points"] == 20000
        assert db.rows("participants", user_id="kim") == []
        refund = db.row("point_transactions", type="refund")
        assert refund["description"] == "경기 취소 환불 (100%)"

    def test_policy_percent_and_recipient_language(self, db, service):
        db.seed("platform_settings", {"key": "refund_policy", "value": {"rules": [
            {"hours_before_match": 48, "refund_percent": 100},
            {"hours_before_match": 24, "refund_percent": 50},
        ]}})
        player = make_profile(db, "kim", points=15000, preferred_lang="en")
        match = seed_match(db, start=NOW + timedelta(hours=30))
        service.join_match(match["id"], player, "FW", now=NOW)

        result = service.cancel_join(match["id"], player, now=NOW)

        assert result["refund_amount"] == 7500
        assert db.row("profiles", id="kim")["points"] == 7500
        assert db.row("point_transactions", type="refund")["description"] == "Match cancellation refund (50%)"

    def test_unpaid_seat_gets_no_refund(self, db, service):
        player = make_profile(db, "kim", points=0)
        match = seed_match(db)
        service.join_match(match["id"], player, "FW", now=NOW)
        result = service.cancel_join(match["id"], player, now=NOW)
        assert result["refund_amount"] == 0
        assert db.rows("point_transactions") == []

    def test_oldest_waiter_in_same_pool_is_promoted(self, db, service):
        match = seed_match(db, max_skaters=1, max_goalies=1)
        leaver = make_profile(db, "kim", points=15000)
        service.join_match(match["id"], leaver, "FW", now=NOW)
        goalie = make_profile(db, "goalie", points=50000, position="G")
        first = make_profile(db, "first", points=50000)
        second = make_profile(db, "second", points=50000)
        db.seed("participants", {"match_id": match["id"], "user_id": "goalie", "position": "G",
                                 "status": "waiting", "payment_status": False})
        waiting = service.join_match(match["id"], first, "DF", now=NOW)
        service.join_match(match["id"], second, "FW", now=NOW)
        assert waiting["status"] == "waiting"

        result = service.cancel_join(match["id"], leaver, now=NOW)

        assert result["promoted_participant_id"] == waiting["participant_id"]
        assert db.row("participants", user_id="first")["status"] == "confirmed"
        assert db.row("participants", user_id="second")["status"] == "waiting"
        assert db.row("participants", user_id="goalie")["status"] == "waiting"
        assert db.row("profiles", id="first")["points"] == 35000
        assert db.row("point_transactions", user_id="first")["description"] == "대기 승격 경기 참가"
        notice = result["notifications"][0]
        assert notice["user_id"] == "first"
        assert notice["body_key"] == "push_waitlist_promoted_body"

    def test_promoted_waiter_without_points_owes_payment(self, db, service):
        match = seed_match(db, max_skaters=1)
        leaver = make_profile(db, "kim", points=15000)
        service.join_match(match["id"], leaver, "FW", now=NOW)
        broke = make_profile(db, "broke", points=0)
        service.join_match(match["id"], broke, "FW", now=NOW)

        result = service.cancel_join(match["id"], leaver, now=NOW)

        assert db.row("participants", user_id="broke")["status"] == "pending_payment"
        assert result["notifications"][0]["body_key"] == "push_waitlist_pending_body"

    def test_failed_delete_keeps_balance_and_retry_refunds_once(self, db, service, monkeypatch):
        player = make_profile(db, "kim", points=20000)
        match = seed_match(db)
        service.join_match(match["id"], player, "FW", now=NOW)
        real_table = db.table

        def table(name):
            query = real_table(name)
            if name == "participants":
                def delete():
                    raise Exception("delete failed")
                query.delete = delete
            return query
        monkeypatch.setattr(db, "table", table)

        with pytest.raises(HTTPException) as exc:
            service.cancel_join(match["id"], player, now=NOW)
        assert exc.value.status_code == 500
        assert db.row("profiles", id="kim")["points"] == 5000
        assert db.row("participants", user_id="kim")["status"] == "confirmed"

        monkeypatch.setattr(db, "table", real_table)
        service.cancel_join(match["id"], player, now=NOW)
        assert db.row("profiles", id="kim")["points"] == 20000
        assert len(db.rows("point_transactions", type="refund")) == 1

    def test_no_promotion_into_pool_shrunk_below_roster(self, db, service):
        match = seed_match(db, max_skaters=2)
        for user_id in ("kim", "lee", "park"):
            service.join_match(match["id"], make_profile(db, user_id, points=15000), "FW", now=NOW)
        assert db.row("participants", user_id="park")["status"] == "waiting"
        db.row("matches", id=match["id"])["max_skaters"] = 1

        result = service.cancel_join(match["id"], db.row("profiles", id="kim"), now=NOW)

        assert result["promoted_participant_id"] is None
        assert db.row("participants", user_id="park")["status"] == "waiting"
        assert db.row("profiles", id="park")["points"] == 15000

    def test_leaving_waitlist_promotes_nobody(self, db, service):
        match = seed_match(db, max_skaters=1)
        holder = make_profile(db, "holder", points=15000)
        service.join_match(match["id"], holder, "FW", now=NOW)
        first = make_profile(db, "first", points=15000)
        second = make_profile(db, "second", points=15000)
        service.join_match(match["id"], first, "FW", now=NOW)
        service.join_match(match["id"], second, "FW", now=NOW)

        result = service.cancel_join(match["id"], first, now=NOW)

        assert result["promoted_participant_id"] is None
        assert db.row("participants", user_id="second")["status"] == "waiting"


def test_my_matches_cancels_started_unpaid_rows(db, service):
    player = make_profile(db, "kim", points=0)
    past = seed_match(db, start=NOW - timedelta(hours=2))
    future = seed_match(db)
    stale = db.seed("participants", {"match_id": past["id"], "user_id": "kim", "position": "FW",
                                     "status": "pending_payment", "payment_status": False})[0]
    db.seed("participants", {"match_id": future["id"], "user_id": "kim", "position": "FW",
                             "status": "pending_payment", "payment_status": False})

    result = service.my_matches(player["id"], now=NOW)

    assert [r["match"]["id"] for r in result] == [future["id"]]
    assert result[0]["match"]["rink"]["name_en"] == "Mokdong Ice Rink"
    assert db.row("participants", id=stale["id"])["status"] == "canceled"


def test_list_matches_reports_remaining_seats(db, service):
    match = seed_match(db, start=datetime.now(timezone.utc) + timedelta(days=2), max_skaters=3)
    seed_match(db, start=datetime.now(timezone.utc) - timedelta(days=2))
    db.seed("participants",
            {"match_id": match["id"], "user_id": "a", "position": "FW", "status": "confirmed"},
            {"match_id": match["id"], "user_id": "b", "position": "DF", "status": "pending_payment"},
            {"match_id": match["id"], "user_id": "c", "position": "G", "status": "waiting"})

    matches = service.list_matches()

    assert [m["id"] for m in matches] == [match["id"]]
    assert matches[0]["remaining"] == {"fw": 1, "df": 1, "g": 2}
    assert matches[0]["rink"]["name_ko"] == "목동 아이스링크"


def test_list_matches_region_filter(db, service):
    seed_match(db, start=datetime.now(timezone.utc) + timedelta(days=1))
    assert len(service.list_matches(region="서울특별시 양천구")) == 1
    assert service.list_matches(region="경기도 과천시") == []


class TestAdmin:
    def test_create_match_converts_kst(self, db, service):
        organizer = db.row("profiles", id="organizer")
        rink = db.seed("rinks", {"name_ko": "링크", "name_en": "Rink"})[0]
        match = service.create_match(
            MatchCreate(rink_id=rink["id"], start_time="2026-03-04T22:00", entry_points=10000),
            organizer
        )
        assert match["start_time"].startswith("2026-03-04T13:00:00")
        assert match["match_type"] == "open_hockey"
        assert match["created_by"] == "organizer"
        assert match["notifications"] == []

    def test_regular_match_needs_club_and_pushes_members(self, db, service):
        organizer = db.row("profiles", id="organizer")
        with pytest.raises(HTTPException):
            service.create_match(MatchCreate(start_time="2026-03-04T22:00", match_type="regular"), organizer)

        club = db.seed("clubs", {"name": "Seoul Owls", "created_by": "organizer"})[0]
        db.seed("club_memberships",
                {"club_id": club["id"], "user_id": "organizer", "role": "admin", "status": "approved"},
                {"club_id": club["id"], "user_id": "m1", "role": "member", "status": "approved"},
                {"club_id": club["id"], "user_id": "m2", "role": "member", "status": "pending"})
        match = service.create_match(
            MatchCreate(start_time="2026-03-04T22:00", match_type="regular", club_id=club["id"]), organizer
        )
        assert [n["user_id"] for n in match["notifications"]] == ["m1"]
        assert match["notifications"][0]["params"]["club"] == "Seoul Owls"

    def test_only_creator_or_superuser_updates(self, db, service):
        match = seed_match(db)
        stranger = make_profile(db, "stranger", role="admin")
        with pytest.raises(HTTPException) as exc:
            service.update_match(match["id"], MatchUpdate(entry_points=1), stranger)
        assert exc.value.status_code == 403

        boss = make_profile(db, "boss", role="superuser")
        updated = service.update_match(match["id"], MatchUpdate(entry_points=1), boss)
        assert updated["entry_points"] == 1

    def test_admin_cancel_refunds_entry_and_rental(self, db, service):
        organizer = db.row("profiles", id="organizer")
        match = seed_match(db)
        paid = make_profile(db, "paid", points=20000)
        unpaid = make_profile(db, "unpaid", points=0)
        service.join_match(match["id"], paid, "FW", rental_opt_in=True, now=NOW)
        service.join_match(match["id"], unpaid, "FW", now=NOW)
        assert db.row("profiles", id="paid")["points"] == 0

        result = service.cancel_match_by_admin(match["id"], organizer)

        assert result["refunded_count"] == 1
        assert result["refunded_total"] == 20000
        assert db.row("profiles", id="paid")["points"] == 20000
        assert db.row("profiles", id="unpaid")["points"] == 0
        assert {p["status"] for p in db.rows("participants", match_id=match["id"])} == {"canceled"}
        assert db.row("matches", id=match["id"])["status"] == "canceled"
        assert {n["user_id"] for n in result["notifications"]} == {"paid", "unpaid"}

    def test_status_cancel_goes_through_admin_cancel(self, db, service):
        organizer = db.row("profiles", id="organizer")
        match = seed_match(db)
        paid = make_profile(db, "paid", points=15000)
        service.join_match(match["id"], paid, "DF", now=NOW)

        updated = service.update_match(match["id"], MatchUpdate(status="canceled"), organizer)

        assert updated["status"] == "canceled"
        assert db.row("profiles", id="paid")["points"] == 15000
        assert updated["notifications"][0]["title_key"] == "push_match_canceled_title"

    def test_delete_removes_participants(self, db, service):
        organizer = db.row("profiles", id="organizer")
        match = seed_match(db)
        db.seed("participants", {"match_id": match["id"], "user_id": "a", "position": "FW", "status": "confirmed"})
        assert service.delete_match(match["id"], organizer) is True
        assert db.rows("participants") == []
        assert db.rows("matches") == []


class TestRegularResponses:
    def test_members_only(self, db, service):
        club = db.seed("clubs", {"name": "Owls", "created_by": "organizer"})[0]
        match = seed_match(db, match_type="regular", club_id=club["id"])
        outsider = make_profile(db, "outsider")
        with pytest.raises(HTTPException) as exc:
            service.respond(match["id"], outsider, RegularResponseCreate(response="attending"))
        assert exc.value.status_code == 403
        assert exc.value.detail == "Not a club member"

    def test_not_regular(self, db, service):
        match = seed_match(db)
        player = make_profile(db, "kim")
        with pytest.raises(HTTPException) as exc:
            service.respond(match["id"], player, RegularResponseCreate(response="attending"))
        assert exc.value.detail == "Not a regular match"

    def test_upsert_and_position_cleared_when_absent(self, db, service):
        club = db.seed("clubs", {"name": "Owls", "created_by": "organizer"})[0]
        match = seed_match(db, match_type="regular", club_id=club["id"])
        member = make_profile(db, "member", position="DF")
        db.seed("club_memberships", {"club_id": club["id"], "user_id": "member", "status": "approved"})

        first = service.respond(match["id"], member, RegularResponseCreate(response="attending"))
        assert first["position"] == "DF"
        second = service.respond(match["id"], member, RegularResponseCreate(response="not_attending", position="FW"))
        assert second["position"] is None
        assert len(db.rows("regular_match_responses")) == 1
        assert service.my_response(match["id"], "member")["response"] == "not_attending"


def test_join_endpoint_requires_onboarding(client, db):
    make_profile(db, "organizer", role="admin")
    make_profile(db, "newbie", onboarding_completed=False)
    match = seed_match(db, start=datetime.now(timezone.utc) + timedelta(days=1))
    response = client.post(f"/api/v1/matches/{match['id']}/join", json={"position": "FW"},
                           headers=auth_headers("newbie"))
    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "ONBOARDING_REQUIRED"
    assert response.json()["detail"]["redirect"] == "/ko/onboarding"


def test_join_endpoint_audits_and_logs_push(client, db):
    make_profile(db, "organizer", role="admin")
    make_profile(db, "kim", points=20000)
    match = seed_match(db, start=datetime.now(timezone.utc) + timedelta(days=1))

    response = client.post(f"/api/v1/matches/{match['id']}/join", json={"position": "FW"},
                           headers=auth_headers("kim"))

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "confirmed"
    assert body["points"] == 5000
    assert "notifications" not in body
    assert db.row("audit_logs", action_type="MATCH_JOIN") is not None
    # VAPID is not configured in tests: the push attempt is logged as failed
    assert db.row("notification_logs", user_id="organizer")["status"] == "failed"


def test_create_endpoint_requires_admin(client, db):
    make_profile(db, "kim")
    response = client.post("/api/v1/matches", json={"start_time": "2026-03-04T22:00"},
                           headers=auth_headers("kim"))
    assert response.status_code == 403

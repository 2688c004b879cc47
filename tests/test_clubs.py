"""
Tests for clubs: creation, membership applications, reviews, notices and logos.
"""

import pytest
from fastapi import HTTPException

from powerplay.modules.clubs.schemas import ClubCreate, ClubUpdate, NoticeCreate
from powerplay.modules.clubs.service import ClubService
from tests.conftest import make_profile, auth_headers


@pytest.fixture
def clubs(db):
    return ClubService(db)


@pytest.fixture
def club(db, clubs):
    make_profile(db, "org", role="admin")
    return clubs.create_club(ClubCreate(name="  Seoul Wolves ", kakao_open_chat_url="  "), "org")


class TestCreateClub:
    def test_creator_is_approved_admin(self, db, club):
        assert club.name == "Seoul Wolves"
        assert club.member_count == 1
        assert club.kakao_open_chat_url is None
        membership = db.row("club_memberships", club_id=club.id)
        assert membership["user_id"] == "org"
        assert membership["role"] == "admin"
        assert membership["status"] == "approved"

    def test_blank_name_rejected(self, clubs):
        with pytest.raises(HTTPException) as exc:
            clubs.create_club(ClubCreate(name="   "), "org")
        assert exc.value.detail == "Club name is required"

    def test_update_partial(self, clubs, club):
        updated = clubs.update_club(club.id, ClubUpdate(description="Sunday games"))
        assert updated.description == "Sunday games"
        assert updated.name == "Seoul Wolves"

    def test_list_counts_approved_members_only(self, db, clubs, club):
        clubs.join_club(club.id, "kim")
        listed = clubs.list_clubs()
        assert [c.member_count for c in listed] == [1]


class TestMembership:
    def test_apply_then_duplicate(self, clubs, club):
        membership = clubs.join_club(club.id, "kim", "  hello ")
        assert membership.status == "pending"
        assert membership.role == "member"
        assert membership.intro_message == "hello"
        with pytest.raises(HTTPException) as exc:
            clubs.join_club(club.id, "kim")
        assert exc.value.detail == "already_pending"

    def test_member_cannot_apply_again(self, clubs, club):
        with pytest.raises(HTTPException) as exc:
            clubs.join_club(club.id, "org")
        assert exc.value.detail == "already_member"

    def test_unknown_club(self, clubs):
        with pytest.raises(HTTPException) as exc:
            clubs.join_club("missing", "kim")
        assert exc.value.status_code == 404

    def test_rejected_applicant_can_reapply(self, db, clubs, club):
        membership = clubs.join_club(club.id, "kim")
        clubs.reject_member(membership.id, db.row("profiles", id="org"))
        assert clubs.membership_status(club.id, "kim") == "rejected"

        again = clubs.join_club(club.id, "kim", "second try")
        assert again.id == membership.id
        assert again.status == "pending"
        assert len(db.rows("club_memberships", user_id="kim")) == 1

    def test_review_permissions(self, db, clubs, club):
        membership = clubs.join_club(club.id, "kim")
        outsider = make_profile(db, "lee")
        with pytest.raises(HTTPException) as exc:
            clubs.approve_member(membership.id, outsider)
        assert exc.value.status_code == 403

        platform_admin = make_profile(db, "ops", role="admin")
        approved = clubs.approve_member(membership.id, platform_admin)
        assert approved.status == "approved"
        assert [m.club["name"] for m in clubs.my_clubs("kim")] == ["Seoul Wolves"]

    def test_pending_members_embed_user(self, db, clubs, club):
        make_profile(db, "kim", full_name="김철수", position="DF")
        clubs.join_club(club.id, "kim")
        pending = clubs.pending_members(club.id)
        assert pending[0].user["full_name"] == "김철수"

    def test_leave(self, clubs, club):
        clubs.join_club(club.id, "kim")
        assert clubs.leave_club(club.id, "kim") is True
        assert clubs.membership_status(club.id, "kim") is None
        assert clubs.leave_club(club.id, "kim") is False


class TestNoticesAndLogo:
    def test_notice_title_required(self, clubs, club):
        with pytest.raises(HTTPException):
            clubs.create_notice(club.id, "org", NoticeCreate(title=" "))

    def test_notices_newest_first(self, clubs, club):
        clubs.create_notice(club.id, "org", NoticeCreate(title="First"))
        clubs.create_notice(club.id, "org", NoticeCreate(title="Second", content="Bring jerseys"))
        notices = clubs.list_notices(club.id)
        assert [n.title for n in notices] == ["Second", "First"]
        assert notices[0].author["full_name"] == "Org"

    def test_logo_upload(self, db, clubs, club):
        updated = clubs.upload_logo(club.id, b"\x89PNG", "image/png")
        bucket, path, content, options = db.storage.uploads[0]
        assert bucket == "club-logos"
        assert path.startswith(f"{club.id}/") and path.endswith(".png")
        assert updated.logo_url == f"https://storage.test/club-logos/{path}"

    def test_logo_rejects_other_types(self, clubs, club):
        with pytest.raises(HTTPException) as exc:
            clubs.upload_logo(club.id, b"%PDF", "application/pdf")
        assert exc.value.detail == "Unsupported image type"


def test_create_club_requires_admin(client, db):
    make_profile(db, "kim")
    response = client.post("/api/v1/clubs", json={"name": "Tigers"}, headers=auth_headers("kim"))
    assert response.status_code == 403


def test_join_notifies_club_admins(client, db, clubs, club):
    make_profile(db, "kim")
    response = client.post(f"/api/v1/clubs/{club.id}/join", json={"intro_message": "hi"},
                           headers=auth_headers("kim"))
    assert response.status_code == 201
    log = db.row("notification_logs", user_id="org")
    assert log["status"] == "failed"
    assert "Seoul Wolves" in log["body"]


def test_only_club_admin_can_edit(client, db, club):
    make_profile(db, "kim")
    response = client.patch(f"/api/v1/clubs/{club.id}", json={"name": "Mine"}, headers=auth_headers("kim"))
    assert response.status_code == 403
    response = client.patch(f"/api/v1/clubs/{club.id}", json={"name": "Wolves"}, headers=auth_headers("org"))
    assert response.json()["name"] == "Wolves"

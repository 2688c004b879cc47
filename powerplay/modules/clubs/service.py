import logging
import uuid
from collections import Counter
from supabase import Client
from powerplay.config import settings
from powerplay.core.dependencies import check_club_admin
from powerplay.modules.clubs.models import LOGO_CONTENT_TYPES, MAX_LOGO_BYTES
from powerplay.modules.clubs.schemas import (
    ClubCreate, ClubUpdate, ClubResponse, MembershipResponse,
    NoticeCreate, NoticeResponse
)
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class ClubService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _member_counts(self, club_ids: Optional[List[str]] = None) -> Counter:
        query = self.supabase.table("club_memberships")\
            .select("club_id")\
            .eq("status", "approved")
        if club_ids is not None:
            query = query.in_("club_id", club_ids)
        result = query.execute()
        return Counter(m["club_id"] for m in result.data or [])

    def _get_club_row(self, club_id: str) -> dict:
        result = self.supabase.table("clubs")\
            .select("*")\
            .eq("id", club_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Club not found")
        return result.data[0]

    def list_clubs(self) -> List[ClubResponse]:
        """All clubs by name with approved member counts"""
        try:
            result = self.supabase.table("clubs")\
                .select("*")\
                .order("name")\
                .execute()
            counts = self._member_counts()
            return [ClubResponse(**club, member_count=counts.get(club["id"], 0)) for club in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_club(self, club_id: str) -> ClubResponse:
        try:
            club = self._get_club_row(club_id)
            counts = self._member_counts([club_id])
            return ClubResponse(**club, member_count=counts.get(club_id, 0))
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_club(self, club_data: ClubCreate, user_id: str) -> ClubResponse:
        """Create a club; the creator joins as an approved club admin"""
        name = (club_data.name or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail="Club name is required")
        try:
            result = self.supabase.table("clubs").insert({
                "name": name,
                "description": club_data.description,
                "contact": club_data.contact,
                "kakao_open_chat_url": (club_data.kakao_open_chat_url or "").strip() or None,
                "created_by": user_id
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create club")
            club = result.data[0]

            self.supabase.table("club_memberships").insert({
                "club_id": club["id"],
                "user_id": user_id,
                "role": "admin",
                "status": "approved"
            }).execute()

            return ClubResponse(**club, member_count=1)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_club(self, club_id: str, club_data: ClubUpdate) -> ClubResponse:
        update_data = club_data.model_dump(exclude_unset=True)
        if "name" in update_data:
            update_data["name"] = (update_data["name"] or "").strip()
            if not update_data["name"]:
                raise HTTPException(status_code=400, detail="Club name is required")
        if "kakao_open_chat_url" in update_data:
            update_data["kakao_open_chat_url"] = (update_data["kakao_open_chat_url"] or "").strip() or None
        if not update_data:
            return self.get_club(club_id)
        try:
            result = self.supabase.table("clubs")\
                .update(update_data)\
                .eq("id", club_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Club not found")
            return self.get_club(club_id)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def upload_logo(self, club_id: str, content: bytes, content_type: Optional[str]) -> ClubResponse:
        """Store the logo in the club-logos bucket and point logo_url at its public URL"""
        extension = LOGO_CONTENT_TYPES.get(content_type or "")
        if not extension:
            raise HTTPException(status_code=400, detail="Unsupported image type")
        if len(content) > MAX_LOGO_BYTES:
            raise HTTPException(status_code=400, detail="Image too large")
        self._get_club_row(club_id)
        path = f"{club_id}/{uuid.uuid4().hex}.{extension}"
        try:
            bucket = self.supabase.storage.from_(settings.club_logo_bucket)
            bucket.upload(path, content, {"content-type": content_type, "upsert": "true"})
            public_url = bucket.get_public_url(path)
        except Exception as e:
            logger.error(f"Logo upload failed for club {club_id}: {e}")
            raise HTTPException(status_code=500, detail=f"Logo upload failed: {e}")
        self.supabase.table("clubs")\
            .update({"logo_url": public_url})\
            .eq("id", club_id)\
            .execute()
        return self.get_club(club_id)

    def _get_membership(self, club_id: str, user_id: str) -> Optional[dict]:
        result = self.supabase.table("club_memberships")\
            .select("*")\
            .eq("club_id", club_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def join_club(self, club_id: str, user_id: str, intro_message: Optional[str] = None) -> MembershipResponse:
        """Apply for membership. A rejected applicant may apply again."""
        self._get_club_row(club_id)
        existing = self._get_membership(club_id, user_id)
        intro = (intro_message or "").strip() or None
        try:
            if existing:
                if existing["status"] == "approved":
                    raise HTTPException(status_code=400, detail="already_member")
                if existing["status"] == "pending":
                    raise HTTPException(status_code=400, detail="already_pending")
                result = self.supabase.table("club_memberships")\
                    .update({"status": "pending", "intro_message": intro})\
                    .eq("id", existing["id"])\
                    .execute()
            else:
                result = self.supabase.table("club_memberships").insert({
                    "club_id": club_id,
                    "user_id": user_id,
                    "role": "member",
                    "status": "pending",
                    "intro_message": intro
                }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to join club")
            return MembershipResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _review_member(self, membership_id: str, profile: dict, new_status: str) -> MembershipResponse:
        result = self.supabase.table("club_memberships")\
            .select("*, club:clubs!club_id(id, name)")\
            .eq("id", membership_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Membership not found")
        membership = result.data[0]
        check_club_admin(membership["club_id"], profile, self.supabase, allow_platform_admin=True)
        try:
            self.supabase.table("club_memberships")\
                .update({"status": new_status})\
                .eq("id", membership_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        membership["status"] = new_status
        return MembershipResponse(**membership)

    def approve_member(self, membership_id: str, profile: dict) -> MembershipResponse:
        return self._review_member(membership_id, profile, "approved")

    def reject_member(self, membership_id: str, profile: dict) -> MembershipResponse:
        return self._review_member(membership_id, profile, "rejected")

    def leave_club(self, club_id: str, user_id: str) -> bool:
        try:
            result = self.supabase.table("club_memberships")\
                .delete()\
                .eq("club_id", club_id)\
                .eq("user_id", user_id)\
                .execute()
            return len(result.data or []) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def my_clubs(self, user_id: str) -> List[MembershipResponse]:
        """Approved memberships with club data"""
        try:
            result = self.supabase.table("club_memberships")\
                .select("*, club:clubs!club_id(id, name, logo_url, kakao_open_chat_url)")\
                .eq("user_id", user_id)\
                .eq("status", "approved")\
                .execute()
            return [MembershipResponse(**m) for m in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def pending_members(self, club_id: str) -> List[MembershipResponse]:
        """Pending applications, oldest first"""
        try:
            result = self.supabase.table("club_memberships")\
                .select("*, user:profiles!user_id(id, full_name, email, position)")\
                .eq("club_id", club_id)\
                .eq("status", "pending")\
                .order("created_at")\
                .execute()
            return [MembershipResponse(**m) for m in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_members(self, club_id: str) -> List[MembershipResponse]:
        try:
            result = self.supabase.table("club_memberships")\
                .select("*, user:profiles!user_id(id, full_name, position)")\
                .eq("club_id", club_id)\
                .eq("status", "approved")\
                .order("created_at")\
                .execute()
            return [MembershipResponse(**m) for m in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def membership_status(self, club_id: str, user_id: str) -> Optional[str]:
        membership = self._get_membership(club_id, user_id)
        return membership["status"] if membership else None

    def create_notice(self, club_id: str, author_id: str, notice_data: NoticeCreate) -> NoticeResponse:
        title = notice_data.title.strip()
        if not title:
            raise HTTPException(status_code=400, detail="Title is required")
        try:
            result = self.supabase.table("club_notices").insert({
                "club_id": club_id,
                "author_id": author_id,
                "title": title,
                "content": notice_data.content
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create notice")
            return NoticeResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_notices(self, club_id: str, limit: int = 20) -> List[NoticeResponse]:
        try:
            result = self.supabase.table("club_notices")\
                .select("*, author:profiles!author_id(id, full_name)")\
                .eq("club_id", club_id)\
                .order("created_at", desc=True)\
                .limit(limit)\
                .execute()
            return [NoticeResponse(**n) for n in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

import logging
from supabase import Client
from powerplay.core.timezone import utcnow
from powerplay.modules.profiles.schemas import ProfileUpdate, OnboardingRequest, ProfileResponse, ChatCandidate
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _update(self, user_id: str, update_data: dict) -> ProfileResponse:
        try:
            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Profile not found")
            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_profile(self, user_id: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Only supplied fields change; onboarding_completed is left alone unless given"""
        update_data = profile_data.model_dump(exclude_unset=True, mode="json")
        if "full_name" in update_data and update_data["full_name"] is not None:
            update_data["full_name"] = update_data["full_name"].strip()
        if not update_data:
            raise HTTPException(status_code=400, detail="Nothing to update")
        return self._update(user_id, update_data)

    def complete_onboarding(self, user_id: str, data: OnboardingRequest) -> ProfileResponse:
        full_name = data.full_name.strip()
        if not full_name:
            raise HTTPException(status_code=400, detail="Name is required")
        return self._update(user_id, {
            "full_name": full_name,
            "position": data.position,
            "preferred_lang": data.preferred_lang,
            "birth_date": data.birth_date.isoformat() if data.birth_date else None,
            "onboarding_completed": True
        })

    def apply_for_admin(self, profile: dict) -> ProfileResponse:
        """Promote to admin; superusers keep their role"""
        if profile.get("role") == "superuser":
            return ProfileResponse(**profile)
        return self._update(profile["id"], {"role": "admin"})

    def delete_account(self, user_id: str) -> bool:
        """Soft delete: the row stays, deleted_at blocks every authenticated route"""
        self._update(user_id, {"deleted_at": utcnow().isoformat()})
        logger.info(f"Account {user_id} soft-deleted")
        return True

    def list_chat_candidates(self, user_id: str, query: Optional[str] = None, limit: int = 50) -> List[ChatCandidate]:
        try:
            request = self.supabase.table("profiles")\
                .select("id, full_name, position, primary_club_id")\
                .neq("id", user_id)\
                .is_("deleted_at", "null")
            if query:
                request = request.ilike("full_name", f"%{query.strip()}%")
            result = request.order("full_name").limit(limit).execute()
            return [ChatCandidate(**row) for row in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

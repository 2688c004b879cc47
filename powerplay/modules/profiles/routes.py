from fastapi import APIRouter, BackgroundTasks, Depends
from powerplay.core.dependencies import get_current_profile, get_current_token, get_auth_service
from powerplay.database.supabase_client import get_service_supabase
from powerplay.locales import t
from powerplay.modules.audit.service import AuditService
from powerplay.modules.auth.service import AuthService
from powerplay.modules.profiles.schemas import ProfileUpdate, OnboardingRequest, ProfileResponse, ChatCandidate
from powerplay.modules.profiles.service import ProfileService
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/profiles", tags=["profiles"])


def get_profile_service(supabase: Client = Depends(get_service_supabase)) -> ProfileService:
    return ProfileService(supabase)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(profile: Dict = Depends(get_current_profile)):
    """Get the current user's profile"""
    return ProfileResponse(**profile)


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    profile_data: ProfileUpdate,
    profile: Dict = Depends(get_current_profile),
    service: ProfileService = Depends(get_profile_service)
):
    """Update the current user's profile"""
    return service.update_profile(profile["id"], profile_data)


@router.post("/me/onboarding", response_model=ProfileResponse)
async def complete_onboarding(
    data: OnboardingRequest,
    profile: Dict = Depends(get_current_profile),
    service: ProfileService = Depends(get_profile_service)
):
    """Finish the mandatory profile step (name and position)"""
    return service.complete_onboarding(profile["id"], data)


@router.post("/me/admin-application", response_model=ProfileResponse)
async def apply_for_admin(
    background_tasks: BackgroundTasks,
    profile: Dict = Depends(get_current_profile),
    service: ProfileService = Depends(get_profile_service)
):
    """Become a match organizer"""
    updated = service.apply_for_admin(profile)
    background_tasks.add_task(
        AuditService(service.supabase).log_and_notify,
        profile["id"],
        "OTHER",
        t("audit_admin_apply", name=profile.get("full_name") or profile.get("email")),
        {"previous_role": profile.get("role")}
    )
    return updated


@router.delete("/me", status_code=200)
async def delete_account(
    token: str = Depends(get_current_token),
    profile: Dict = Depends(get_current_profile),
    service: ProfileService = Depends(get_profile_service),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Soft-delete the account and sign out"""
    service.delete_account(profile["id"])
    auth_service.logout(token)
    return {"message": "Account deleted"}


@router.get("/chat-candidates", response_model=List[ChatCandidate])
async def list_chat_candidates(
    q: Optional[str] = None,
    profile: Dict = Depends(get_current_profile),
    service: ProfileService = Depends(get_profile_service)
):
    """Users that can be picked as chat partners"""
    return service.list_chat_candidates(profile["id"], q)

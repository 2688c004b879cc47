"""
Core dependencies for route protection, role checks and the onboarding guard
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from powerplay.config import settings
from powerplay.config.roles_config import has_role, can
from powerplay.database.supabase_client import get_supabase, get_service_supabase
from powerplay.modules.auth.service import AuthService
from supabase import Client
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return credentials.credentials


def get_current_user_id(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(token)


def load_profile(user_id: str, supabase: Client) -> Optional[Dict[str, Any]]:
    result = supabase.table("profiles")\
        .select("*")\
        .eq("id", user_id)\
        .limit(1)\
        .execute()
    return result.data[0] if result.data else None


def get_current_profile(
    user_data: dict = Depends(get_current_user_id),
    supabase: Client = Depends(get_service_supabase)
) -> Dict[str, Any]:
    """Profile row of the authenticated user. Soft-deleted accounts are rejected."""
    profile = load_profile(user_data["id"], supabase)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    if profile.get("deleted_at"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account deleted")
    return profile


def is_super_user(profile: dict) -> bool:
    return profile.get("role") == "superuser"


def is_admin(profile: dict) -> bool:
    """admin or superuser"""
    return has_role(profile.get("role"), "admin")


def require_role(required_role: str):
    """Factory function to create role check dependency"""
    def check_role(profile: Dict = Depends(get_current_profile)) -> dict:
        if not has_role(profile.get("role"), required_role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Unauthorized"
            )
        return profile
    return check_role


def require_capability(capability: str):
    """Factory function to create capability check dependency (see roles_config.CAPABILITIES)"""
    def check_capability(profile: Dict = Depends(get_current_profile)) -> dict:
        if not can(profile.get("role"), capability):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {capability}"
            )
        return profile
    return check_capability


def get_request_locale(request: Request) -> str:
    """Locale resolved by LocaleMiddleware, default locale otherwise."""
    return getattr(request.state, "locale", None) or settings.default_locale


def require_onboarded(
    request: Request,
    profile: Dict = Depends(get_current_profile)
) -> dict:
    """Participation features need a completed profile."""
    if not profile.get("onboarding_completed"):
        locale = get_request_locale(request)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "Onboarding required",
                "code": "ONBOARDING_REQUIRED",
                "redirect": f"/{locale}/onboarding"
            }
        )
    return profile


def is_club_member(club_id: str, user_id: str, supabase: Client) -> bool:
    """True if user has an approved membership in the club"""
    result = supabase.table("club_memberships")\
        .select("id")\
        .eq("club_id", club_id)\
        .eq("user_id", user_id)\
        .eq("status", "approved")\
        .limit(1)\
        .execute()
    return bool(result.data)


def is_club_admin(club_id: str, profile: dict, supabase: Client, allow_platform_admin: bool = False) -> bool:
    """Superuser, club creator or approved club admin member. Platform admins count when allow_platform_admin."""
    if is_super_user(profile):
        return True
    if allow_platform_admin and is_admin(profile):
        return True
    club_result = supabase.table("clubs")\
        .select("created_by")\
        .eq("id", club_id)\
        .limit(1)\
        .execute()
    if not club_result.data:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Club not found")
    if club_result.data[0].get("created_by") == profile["id"]:
        return True
    member_result = supabase.table("club_memberships")\
        .select("id")\
        .eq("club_id", club_id)\
        .eq("user_id", profile["id"])\
        .eq("role", "admin")\
        .eq("status", "approved")\
        .limit(1)\
        .execute()
    return bool(member_result.data)


def check_club_admin(club_id: str, profile: dict, supabase: Client, allow_platform_admin: bool = False) -> dict:
    """Raise 403 unless the caller administers the club"""
    if is_club_admin(club_id, profile, supabase, allow_platform_admin):
        return profile
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized")

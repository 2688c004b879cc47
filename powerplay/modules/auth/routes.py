from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from powerplay.config.roles_config import get_capabilities, get_capability_matrix
from powerplay.core.dependencies import (
    get_auth_service, get_current_token, get_current_user_id, load_profile
)
from powerplay.database.supabase_client import get_service_supabase
from powerplay.locales import t
from powerplay.modules.audit.service import AuditService
from powerplay.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    OAuthUrlResponse, MeResponse
)
from powerplay.modules.auth.service import AuthService
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    background_tasks: BackgroundTasks,
    service: AuthService = Depends(get_auth_service),
    db: Client = Depends(get_service_supabase)
):
    """Register a new user"""
    response = service.register(register_data)
    background_tasks.add_task(
        AuditService(db).log_and_notify,
        response.user_id,
        "USER_SIGNUP",
        t("audit_user_signup", email=response.email),
        {"email": response.email, "full_name": register_data.full_name}
    )
    return response


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/oauth/{provider}", response_model=OAuthUrlResponse)
async def oauth_url(
    provider: str,
    origin: Optional[str] = None,
    service: AuthService = Depends(get_auth_service)
):
    """Redirect URL for Google or Kakao sign-in"""
    return service.oauth_url(provider, origin)


@router.get("/me", response_model=MeResponse)
async def get_current_user(
    current_user: Dict = Depends(get_current_user_id),
    db: Client = Depends(get_service_supabase)
):
    """Get current authenticated user, profile and role capabilities (for frontend UI)."""
    profile = load_profile(current_user["id"], db)
    if profile and profile.get("deleted_at"):
        raise HTTPException(status_code=403, detail="Account deleted")
    role = profile.get("role") if profile else None
    return MeResponse(
        id=current_user["id"],
        email=current_user.get("email"),
        user_metadata=current_user.get("user_metadata") or {},
        profile=profile,
        capabilities=get_capabilities(role) if profile else []
    )


@router.get("/roles")
async def role_matrix():
    """Roles and the capabilities each one unlocks"""
    return get_capability_matrix()

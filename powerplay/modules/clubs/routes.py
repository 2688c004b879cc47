from fastapi import APIRouter, BackgroundTasks, Depends, File, UploadFile
from powerplay.core.dependencies import (
    get_current_profile, require_capability, require_onboarded, check_club_admin
)
from powerplay.database.supabase_client import get_service_supabase
from powerplay.locales import t
from powerplay.modules.audit.service import AuditService
from powerplay.modules.clubs.schemas import (
    ClubCreate, ClubUpdate, ClubResponse, JoinClubRequest, MembershipResponse,
    MembershipStatusResponse, NoticeCreate, NoticeResponse
)
from powerplay.modules.clubs.service import ClubService
from powerplay.modules.push.service import PushService
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/clubs", tags=["clubs"])


def get_club_service(supabase: Client = Depends(get_service_supabase)) -> ClubService:
    return ClubService(supabase)


@router.get("", response_model=List[ClubResponse])
async def list_clubs(service: ClubService = Depends(get_club_service)):
    """List clubs by name with member counts"""
    return service.list_clubs()


@router.post("", response_model=ClubResponse, status_code=201)
async def create_club(
    club_data: ClubCreate,
    background_tasks: BackgroundTasks,
    profile: Dict = Depends(require_capability("clubs:create")),
    service: ClubService = Depends(get_club_service)
):
    """Create a club (requires admin role)"""
    club = service.create_club(club_data, profile["id"])
    background_tasks.add_task(
        AuditService(service.supabase).log_and_notify,
        profile["id"],
        "CLUB_CREATE",
        t("audit_club_create", club=club.name),
        {"club_id": club.id, "name": club.name}
    )
    return club


@router.get("/mine", response_model=List[MembershipResponse])
async def my_clubs(
    profile: Dict = Depends(get_current_profile),
    service: ClubService = Depends(get_club_service)
):
    """Approved memberships of the current user"""
    return service.my_clubs(profile["id"])


@router.post("/memberships/{membership_id}/approve", response_model=MembershipResponse)
async def approve_member(
    membership_id: str,
    background_tasks: BackgroundTasks,
    profile: Dict = Depends(get_current_profile),
    service: ClubService = Depends(get_club_service)
):
    """Approve a pending application (club creator, club admin or platform admin)"""
    membership = service.approve_member(membership_id, profile)
    club_name = (membership.club or {}).get("name", "")
    background_tasks.add_task(
        PushService(service.supabase).notify,
        membership.user_id,
        "push_club_approved_title",
        "push_club_approved_body",
        f"/clubs/{membership.club_id}",
        club=club_name
    )
    return membership


@router.post("/memberships/{membership_id}/reject", response_model=MembershipResponse)
async def reject_member(
    membership_id: str,
    background_tasks: BackgroundTasks,
    profile: Dict = Depends(get_current_profile),
    service: ClubService = Depends(get_club_service)
):
    """Reject a pending application"""
    membership = service.reject_member(membership_id, profile)
    club_name = (membership.club or {}).get("name", "")
    background_tasks.add_task(
        PushService(service.supabase).notify,
        membership.user_id,
        "push_club_rejected_title",
        "push_club_rejected_body",
        f"/clubs/{membership.club_id}",
        club=club_name
    )
    return membership


@router.get("/{club_id}", response_model=ClubResponse)
async def get_club(
    club_id: str,
    service: ClubService = Depends(get_club_service)
):
    """Get club by ID"""
    return service.get_club(club_id)


@router.patch("/{club_id}", response_model=ClubResponse)
async def update_club(
    club_id: str,
    club_data: ClubUpdate,
    profile: Dict = Depends(get_current_profile),
    service: ClubService = Depends(get_club_service)
):
    """Update club (club admin, creator or superuser)"""
    check_club_admin(club_id, profile, service.supabase)
    return service.update_club(club_id, club_data)


@router.post("/{club_id}/logo", response_model=ClubResponse)
async def upload_logo(
    club_id: str,
    file: UploadFile = File(...),
    profile: Dict = Depends(get_current_profile),
    service: ClubService = Depends(get_club_service)
):
    """Upload the club logo image"""
    check_club_admin(club_id, profile, service.supabase)
    content = await file.read()
    return service.upload_logo(club_id, content, file.content_type)


@router.post("/{club_id}/join", response_model=MembershipResponse, status_code=201)
async def join_club(
    club_id: str,
    background_tasks: BackgroundTasks,
    join_data: Optional[JoinClubRequest] = None,
    profile: Dict = Depends(require_onboarded),
    service: ClubService = Depends(get_club_service)
):
    """Apply for membership; club admins are notified"""
    membership = service.join_club(club_id, profile["id"], join_data.intro_message if join_data else None)
    club = service.get_club(club_id)
    push = PushService(service.supabase)
    background_tasks.add_task(
        push.notify_users,
        push.club_admin_ids(club_id),
        "push_club_join_request_title",
        "push_club_join_request_body",
        f"/admin/clubs/{club_id}",
        name=profile.get("full_name") or "",
        club=club.name
    )
    return membership


@router.delete("/{club_id}/membership", status_code=204)
async def leave_club(
    club_id: str,
    profile: Dict = Depends(get_current_profile),
    service: ClubService = Depends(get_club_service)
):
    """Leave the club"""
    service.leave_club(club_id, profile["id"])
    return None


@router.get("/{club_id}/membership", response_model=MembershipStatusResponse)
async def membership_status(
    club_id: str,
    profile: Dict = Depends(get_current_profile),
    service: ClubService = Depends(get_club_service)
):
    """approved, pending, rejected or null"""
    return MembershipStatusResponse(status=service.membership_status(club_id, profile["id"]))


@router.get("/{club_id}/members", response_model=List[MembershipResponse])
async def list_members(
    club_id: str,
    service: ClubService = Depends(get_club_service)
):
    """Approved members of the club"""
    return service.list_members(club_id)


@router.get("/{club_id}/pending-members", response_model=List[MembershipResponse])
async def pending_members(
    club_id: str,
    profile: Dict = Depends(get_current_profile),
    service: ClubService = Depends(get_club_service)
):
    """Pending applications (club admins and platform admins)"""
    check_club_admin(club_id, profile, service.supabase, allow_platform_admin=True)
    return service.pending_members(club_id)


@router.get("/{club_id}/notices", response_model=List[NoticeResponse])
async def list_notices(
    club_id: str,
    service: ClubService = Depends(get_club_service)
):
    """Latest club notices"""
    return service.list_notices(club_id)


@router.post("/{club_id}/notices", response_model=NoticeResponse, status_code=201)
async def create_notice(
    club_id: str,
    notice_data: NoticeCreate,
    background_tasks: BackgroundTasks,
    profile: Dict = Depends(get_current_profile),
    service: ClubService = Depends(get_club_service)
):
    """Post a notice; approved members are notified"""
    check_club_admin(club_id, profile, service.supabase)
    notice = service.create_notice(club_id, profile["id"], notice_data)
    club = service.get_club(club_id)
    push = PushService(service.supabase)
    background_tasks.add_task(
        push.notify_users,
        [u for u in push.club_member_ids(club_id) if u != profile["id"]],
        "push_club_notice_title",
        "push_club_notice_body",
        f"/clubs/{club_id}",
        club=club.name,
        title=notice.title
    )
    return notice

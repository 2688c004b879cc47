from datetime import date
from fastapi import APIRouter, BackgroundTasks, Depends
from powerplay.core.dependencies import get_current_profile, require_capability, require_onboarded
from powerplay.database.supabase_client import get_service_supabase
from powerplay.locales import t
from powerplay.modules.audit.service import AuditService
from powerplay.modules.matches.bulk import generate_match_dates
from powerplay.modules.matches.schemas import (
    MatchCreate, MatchUpdate, MatchResponse, JoinMatchRequest, JoinMatchResponse, CancelJoinResponse,
    MyMatchResponse, RegularResponseCreate, PaymentStatusUpdate, AdminCancelResponse,
    BulkGenerateRequest, GeneratedMatch, BulkCreateRequest, BulkCreateResponse, SchedulePattern
)
from powerplay.modules.matches.service import MatchService, match_label
from powerplay.modules.push.service import PushService
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/matches", tags=["matches"])


def get_match_service(supabase: Client = Depends(get_service_supabase)) -> MatchService:
    return MatchService(supabase)


@router.get("", response_model=List[MatchResponse])
async def list_matches(
    rink_id: Optional[str] = None,
    region: Optional[str] = None,
    club_id: Optional[str] = None,
    match_type: Optional[str] = None,
    on_date: Optional[date] = None,
    service: MatchService = Depends(get_match_service)
):
    """Upcoming matches (from today KST) with remaining seats per position"""
    return service.list_matches(rink_id, region, club_id, match_type, on_date)


@router.get("/mine", response_model=List[MyMatchResponse])
async def my_matches(
    profile: Dict = Depends(get_current_profile),
    service: MatchService = Depends(get_match_service)
):
    """Current user's active participations"""
    return service.my_matches(profile["id"])


@router.get("/admin", response_model=List[MatchResponse])
async def admin_matches(
    year: Optional[int] = None,
    month: Optional[int] = None,
    profile: Dict = Depends(require_capability("matches:manage")),
    service: MatchService = Depends(get_match_service)
):
    """Matches created by the caller (all matches for superusers)"""
    return service.admin_matches(profile, year, month)


@router.post("", response_model=MatchResponse, status_code=201)
async def create_match(
    match_data: MatchCreate,
    background_tasks: BackgroundTasks,
    profile: Dict = Depends(require_capability("matches:create")),
    service: MatchService = Depends(get_match_service)
):
    """Create a match; start_time is KST wall clock"""
    match = service.create_match(match_data, profile)
    background_tasks.add_task(
        AuditService(service.supabase).log_and_notify,
        profile["id"],
        "MATCH_CREATE",
        t("audit_match_create", **match_label(match)),
        {"match_id": match["id"], "match_type": match.get("match_type")}
    )
    background_tasks.add_task(PushService(service.supabase).dispatch, match["notifications"])
    return match


@router.post("/bulk/generate", response_model=List[GeneratedMatch])
async def generate_bulk_matches(
    request: BulkGenerateRequest,
    profile: Dict = Depends(require_capability("matches:create"))
):
    """Preview the matches a set of schedule patterns produces for one month"""
    generated = []
    for pattern in request.patterns:
        generated.extend(generate_match_dates(request.year, request.month, pattern.model_dump()))
    return sorted(generated, key=lambda m: m["start_time"])


@router.post("/bulk", response_model=BulkCreateResponse, status_code=201)
async def create_bulk_matches(
    request: BulkCreateRequest,
    profile: Dict = Depends(require_capability("matches:create")),
    service: MatchService = Depends(get_match_service)
):
    """Insert previewed matches"""
    match_ids = service.create_bulk_matches(request.matches, profile)
    return BulkCreateResponse(created=len(match_ids), match_ids=match_ids)


@router.get("/bulk/previous-patterns", response_model=List[SchedulePattern])
async def previous_month_patterns(
    year: int,
    month: int,
    profile: Dict = Depends(require_capability("matches:create")),
    service: MatchService = Depends(get_match_service)
):
    """Schedule patterns rebuilt from the month before year/month"""
    return service.previous_month_patterns(year, month, profile)


@router.patch("/participants/{participant_id}/payment")
async def update_payment_status(
    participant_id: str,
    payment_data: PaymentStatusUpdate,
    profile: Dict = Depends(require_capability("matches:manage")),
    service: MatchService = Depends(get_match_service)
):
    """Mark a participant as paid or unpaid"""
    return service.update_payment_status(participant_id, payment_data.payment_status, profile)


@router.get("/{match_id}", response_model=MatchResponse)
async def get_match(
    match_id: str,
    service: MatchService = Depends(get_match_service)
):
    return service.get_match(match_id)


@router.patch("/{match_id}", response_model=MatchResponse)
async def update_match(
    match_id: str,
    match_data: MatchUpdate,
    background_tasks: BackgroundTasks,
    profile: Dict = Depends(require_capability("matches:manage")),
    service: MatchService = Depends(get_match_service)
):
    """Update a match (creator or superuser). Setting status=canceled refunds everyone."""
    match = service.update_match(match_id, match_data, profile)
    background_tasks.add_task(PushService(service.supabase).dispatch, match["notifications"])
    return match


@router.delete("/{match_id}", status_code=204)
async def delete_match(
    match_id: str,
    profile: Dict = Depends(require_capability("matches:manage")),
    service: MatchService = Depends(get_match_service)
):
    service.delete_match(match_id, profile)
    return None


@router.post("/{match_id}/cancel", response_model=AdminCancelResponse)
async def cancel_match(
    match_id: str,
    background_tasks: BackgroundTasks,
    profile: Dict = Depends(require_capability("matches:manage")),
    service: MatchService = Depends(get_match_service)
):
    """Cancel a match and refund paid participants in full"""
    result = service.cancel_match_by_admin(match_id, profile)
    background_tasks.add_task(PushService(service.supabase).dispatch, result["notifications"])
    return result


@router.post("/{match_id}/join", response_model=JoinMatchResponse)
async def join_match(
    match_id: str,
    join_data: JoinMatchRequest,
    background_tasks: BackgroundTasks,
    profile: Dict = Depends(require_onboarded),
    service: MatchService = Depends(get_match_service)
):
    """Join a match; full pools put the caller on the waitlist"""
    result = service.join_match(match_id, profile, join_data.position, join_data.rental_opt_in)
    background_tasks.add_task(
        AuditService(service.supabase).log_and_notify,
        profile["id"],
        "MATCH_JOIN",
        t("audit_match_join",
          name=profile.get("full_name") or profile.get("email"),
          status=result["status"],
          **match_label(result["match"])),
        {"match_id": match_id, "position": join_data.position, "status": result["status"]}
    )
    background_tasks.add_task(PushService(service.supabase).dispatch, result["notifications"])
    return result


@router.delete("/{match_id}/join", response_model=CancelJoinResponse)
async def cancel_join(
    match_id: str,
    background_tasks: BackgroundTasks,
    profile: Dict = Depends(require_onboarded),
    service: MatchService = Depends(get_match_service)
):
    """Leave a match; refund follows the platform refund policy"""
    result = service.cancel_join(match_id, profile)
    background_tasks.add_task(
        AuditService(service.supabase).log_and_notify,
        profile["id"],
        "MATCH_CANCEL",
        t("audit_match_cancel",
          name=profile.get("full_name") or profile.get("email"),
          refund=f"{result['refund_amount']:,}",
          **match_label(result["match"])),
        {"match_id": match_id, "refund_amount": result["refund_amount"]}
    )
    background_tasks.add_task(PushService(service.supabase).dispatch, result["notifications"])
    return result


@router.post("/{match_id}/responses")
async def respond(
    match_id: str,
    response_data: RegularResponseCreate,
    profile: Dict = Depends(get_current_profile),
    service: MatchService = Depends(get_match_service)
):
    """Attendance answer for a regular club match"""
    return service.respond(match_id, profile, response_data)


@router.get("/{match_id}/responses", response_model=List[Dict])
async def list_responses(
    match_id: str,
    profile: Dict = Depends(get_current_profile),
    service: MatchService = Depends(get_match_service)
):
    return service.list_responses(match_id)


@router.get("/{match_id}/responses/me", response_model=Optional[Dict])
async def my_response(
    match_id: str,
    profile: Dict = Depends(get_current_profile),
    service: MatchService = Depends(get_match_service)
):
    return service.my_response(match_id, profile["id"])

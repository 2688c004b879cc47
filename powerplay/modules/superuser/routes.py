from fastapi import APIRouter, BackgroundTasks, Depends
from powerplay.core.dependencies import require_capability, require_role
from powerplay.database.supabase_client import get_service_supabase
from powerplay.modules.push.schemas import SendResult
from powerplay.modules.push.service import PushService
from powerplay.modules.superuser.schemas import (
    BankAccountUpdate, RefundPolicyUpdate, ChargeReject, ConfirmChargeResponse, UserPointsUpdate,
    RoleUpdate, UserSummary, AdminSummary, AdminDetail, TestNotificationRequest
)
from powerplay.modules.superuser.service import SuperuserService
from powerplay.modules.points.schemas import ChargeRequestResponse
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/superuser", tags=["superuser"])


def get_superuser_service(supabase: Client = Depends(get_service_supabase)) -> SuperuserService:
    return SuperuserService(supabase)


# ==================== Platform settings ====================

@router.put("/settings/bank-account", response_model=Dict)
async def update_bank_account(
    account: BankAccountUpdate,
    profile: Dict = Depends(require_capability("settings:update")),
    service: SuperuserService = Depends(get_superuser_service)
):
    return service.update_bank_account(account)


@router.put("/settings/refund-policy", response_model=Dict)
async def update_refund_policy(
    policy: RefundPolicyUpdate,
    profile: Dict = Depends(require_capability("settings:update")),
    service: SuperuserService = Depends(get_superuser_service)
):
    """Replace the refund rules (stored sorted, longest notice first)"""
    return service.update_refund_policy(policy.rules)


# ==================== Charge review ====================

@router.get("/charge-requests/pending", response_model=List[ChargeRequestResponse])
async def pending_charge_requests(
    profile: Dict = Depends(require_capability("points:review")),
    service: SuperuserService = Depends(get_superuser_service)
):
    return service.pending_charge_requests()


@router.get("/charge-requests", response_model=List[ChargeRequestResponse])
async def all_charge_requests(
    status: Optional[str] = None,
    profile: Dict = Depends(require_capability("points:review")),
    service: SuperuserService = Depends(get_superuser_service)
):
    """Latest 50 charge requests"""
    return service.all_charge_requests(status)


@router.post("/charge-requests/{request_id}/confirm", response_model=ConfirmChargeResponse)
async def confirm_charge(
    request_id: str,
    background_tasks: BackgroundTasks,
    profile: Dict = Depends(require_capability("points:review")),
    service: SuperuserService = Depends(get_superuser_service)
):
    """Credit the transfer, then settle the user's unpaid matches"""
    result = service.confirm_charge(request_id, profile["id"])
    background_tasks.add_task(PushService(service.supabase).dispatch, result["notifications"])
    return result


@router.post("/charge-requests/{request_id}/reject")
async def reject_charge(
    request_id: str,
    reject_data: ChargeReject,
    background_tasks: BackgroundTasks,
    profile: Dict = Depends(require_capability("points:review")),
    service: SuperuserService = Depends(get_superuser_service)
):
    result = service.reject_charge(request_id, profile["id"], reject_data.reason)
    background_tasks.add_task(PushService(service.supabase).dispatch, result["notifications"])
    return {"success": True}


# ==================== Pending participants ====================

@router.get("/participants/pending", response_model=List[Dict])
async def pending_participants(
    profile: Dict = Depends(require_capability("points:review")),
    service: SuperuserService = Depends(get_superuser_service)
):
    return service.pending_participants()


@router.post("/participants/{participant_id}/confirm")
async def confirm_participant_payment(
    participant_id: str,
    profile: Dict = Depends(require_capability("points:review")),
    service: SuperuserService = Depends(get_superuser_service)
):
    """Bank transfer received directly: confirm without moving points"""
    service.confirm_participant_payment(participant_id)
    return {"success": True}


@router.post("/participants/{participant_id}/cancel")
async def cancel_pending_participant(
    participant_id: str,
    profile: Dict = Depends(require_capability("points:review")),
    service: SuperuserService = Depends(get_superuser_service)
):
    service.cancel_pending_participant(participant_id)
    return {"success": True}


# ==================== Users ====================

@router.get("/users/points", response_model=List[UserSummary])
async def list_user_points(
    search: Optional[str] = None,
    profile: Dict = Depends(require_capability("points:adjust")),
    service: SuperuserService = Depends(get_superuser_service)
):
    return service.list_user_points(search)


@router.get("/users/{user_id}/transactions", response_model=List[Dict])
async def user_transactions(
    user_id: str,
    profile: Dict = Depends(require_capability("points:adjust")),
    service: SuperuserService = Depends(get_superuser_service)
):
    return service.user_transactions(user_id)


@router.put("/users/{user_id}/points")
async def update_user_points(
    user_id: str,
    points_data: UserPointsUpdate,
    profile: Dict = Depends(require_capability("points:adjust")),
    service: SuperuserService = Depends(get_superuser_service)
):
    """Set a balance; the difference is recorded as an admin_adjustment"""
    return {"points": service.update_user_points(user_id, points_data.points, points_data.reason)}


@router.get("/users", response_model=List[UserSummary])
async def list_users(
    role: Optional[str] = None,
    profile: Dict = Depends(require_capability("users:manage")),
    service: SuperuserService = Depends(get_superuser_service)
):
    return service.list_users(role)


@router.put("/users/{user_id}/role", response_model=UserSummary)
async def set_role(
    user_id: str,
    role_data: RoleUpdate,
    profile: Dict = Depends(require_capability("users:manage")),
    service: SuperuserService = Depends(get_superuser_service)
):
    return service.set_role(user_id, role_data.role)


# ==================== Admins ====================

@router.get("/admins", response_model=List[AdminSummary])
async def list_admins(
    profile: Dict = Depends(require_role("superuser")),
    service: SuperuserService = Depends(get_superuser_service)
):
    """Admins and superusers with the number of matches they created"""
    return service.list_admins()


@router.get("/admins/{user_id}", response_model=AdminDetail)
async def admin_detail(
    user_id: str,
    profile: Dict = Depends(require_role("superuser")),
    service: SuperuserService = Depends(get_superuser_service)
):
    return service.admin_detail(user_id)


# ==================== Logs & push ====================

@router.get("/audit-logs", response_model=List[Dict])
async def audit_logs(
    limit: int = 100,
    action: Optional[str] = None,
    profile: Dict = Depends(require_capability("audit:read")),
    service: SuperuserService = Depends(get_superuser_service)
):
    return service.audit_logs(limit, action)


@router.get("/notification-logs", response_model=List[Dict])
async def notification_logs(
    limit: int = 50,
    profile: Dict = Depends(require_capability("audit:read")),
    service: SuperuserService = Depends(get_superuser_service)
):
    return service.notification_logs(limit)


@router.get("/push-subscribers", response_model=List[Dict])
async def push_subscribers(
    profile: Dict = Depends(require_capability("push:test")),
    service: SuperuserService = Depends(get_superuser_service)
):
    return service.push_subscribers()


@router.post("/push/test", response_model=SendResult)
async def send_test_notification(
    request: TestNotificationRequest,
    profile: Dict = Depends(require_capability("push:test")),
    service: SuperuserService = Depends(get_superuser_service)
):
    """Send a push to one user right away and report the delivery result"""
    return service.send_test_notification(request.user_id, request.title, request.body)

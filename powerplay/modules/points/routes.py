from fastapi import APIRouter, BackgroundTasks, Depends
from powerplay.core.dependencies import get_current_profile, require_onboarded
from powerplay.database.supabase_client import get_service_supabase
from powerplay.locales import t
from powerplay.modules.audit.service import AuditService
from powerplay.modules.points.schemas import (
    ChargeRequestCreate, ChargeRequestResponse, PointHistoryResponse, BalanceResponse
)
from powerplay.modules.points.service import PointService
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/points", tags=["points"])


def get_point_service(supabase: Client = Depends(get_service_supabase)) -> PointService:
    return PointService(supabase)


@router.get("/balance", response_model=BalanceResponse)
async def get_balance(
    profile: Dict = Depends(get_current_profile),
    service: PointService = Depends(get_point_service)
):
    """Current point balance"""
    return BalanceResponse(points=service.get_balance(profile["id"]))


@router.get("/history", response_model=PointHistoryResponse)
async def history(
    limit: int = 20,
    offset: int = 0,
    profile: Dict = Depends(get_current_profile),
    service: PointService = Depends(get_point_service)
):
    """Point transactions, newest first"""
    return service.history(profile["id"], limit, offset)


@router.post("/charge-requests", response_model=ChargeRequestResponse, status_code=201)
async def request_charge(
    charge_data: ChargeRequestCreate,
    background_tasks: BackgroundTasks,
    profile: Dict = Depends(require_onboarded),
    service: PointService = Depends(get_point_service)
):
    """Ask a superuser to credit a bank transfer"""
    charge_request = service.request_charge(profile["id"], charge_data)
    background_tasks.add_task(
        AuditService(service.supabase).log_and_notify,
        profile["id"],
        "POINT_CHARGE_REQUEST",
        t("audit_point_charge_request",
          name=profile.get("full_name") or profile.get("email"),
          amount=f"{charge_request.amount:,}",
          depositor=charge_request.depositor_name),
        {"request_id": charge_request.id, "amount": charge_request.amount}
    )
    return charge_request


@router.get("/charge-requests", response_model=List[ChargeRequestResponse])
async def my_charge_requests(
    profile: Dict = Depends(get_current_profile),
    service: PointService = Depends(get_point_service)
):
    """Latest 10 charge requests of the current user"""
    return service.my_charge_requests(profile["id"])


@router.post("/charge-requests/{request_id}/cancel", status_code=200)
async def cancel_charge_request(
    request_id: str,
    profile: Dict = Depends(get_current_profile),
    service: PointService = Depends(get_point_service)
):
    """Withdraw a pending charge request"""
    service.cancel_charge_request(profile["id"], request_id)
    return {"success": True}


@router.get("/bank-account", response_model=Optional[Dict])
async def bank_account(service: PointService = Depends(get_point_service)):
    """Bank account for transfers"""
    return service.bank_account()


@router.get("/refund-policy", response_model=Optional[Dict])
async def refund_policy(service: PointService = Depends(get_point_service)):
    """Cancellation refund rules"""
    return service.refund_policy()

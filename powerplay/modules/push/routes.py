from fastapi import APIRouter, BackgroundTasks, Depends
from powerplay.config import settings
from powerplay.core.dependencies import get_current_profile
from powerplay.database.supabase_client import get_service_supabase
from powerplay.locales import t
from powerplay.modules.audit.service import AuditService
from powerplay.modules.push.schemas import SubscriptionCreate, SubscriptionStatus, VapidKeyResponse
from powerplay.modules.push.service import PushService
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/push", tags=["push"])


def get_push_service(supabase: Client = Depends(get_service_supabase)) -> PushService:
    return PushService(supabase)


@router.get("/vapid-public-key", response_model=VapidKeyResponse)
async def vapid_public_key():
    """Public VAPID key for PushManager.subscribe in the browser"""
    return VapidKeyResponse(public_key=settings.vapid_public_key)


@router.post("/subscriptions", status_code=201)
async def save_subscription(
    subscription: SubscriptionCreate,
    background_tasks: BackgroundTasks,
    profile: Dict = Depends(get_current_profile),
    service: PushService = Depends(get_push_service)
):
    """Register (or refresh) the browser subscription of the current user"""
    service.save_subscription(profile["id"], subscription)
    background_tasks.add_task(
        AuditService(service.supabase).log_and_notify,
        profile["id"],
        "PUSH_SUBSCRIBE",
        t("audit_push_subscribe", name=profile.get("full_name") or profile.get("email")),
        {"endpoint": subscription.endpoint[:60]},
        True
    )
    return {"success": True}


@router.get("/status", response_model=SubscriptionStatus)
async def subscription_status(
    profile: Dict = Depends(get_current_profile),
    service: PushService = Depends(get_push_service)
):
    """Device count and last subscription time"""
    return service.subscription_status(profile["id"])

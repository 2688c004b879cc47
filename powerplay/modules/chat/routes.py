import asyncio
import logging
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, WebSocket, WebSocketDisconnect
from powerplay.core.dependencies import get_current_profile, require_onboarded, load_profile
from powerplay.database.supabase_client import get_supabase, get_service_supabase
from powerplay.locales import t
from powerplay.modules.audit.service import AuditService
from powerplay.modules.auth.service import AuthService
from powerplay.modules.chat.realtime import get_chat_manager, CONNECTION_TIMEOUT_SECONDS
from powerplay.modules.chat.schemas import (
    RoomCreate, RoomResponse, RoomSummary, MessageCreate, MessageResponse, UnreadCountResponse
)
from powerplay.modules.chat.service import ChatService
from powerplay.modules.push.service import PushService
from supabase import Client
from typing import List, Dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


def get_chat_service(supabase: Client = Depends(get_service_supabase)) -> ChatService:
    return ChatService(supabase)


@router.post("/rooms", response_model=RoomResponse)
async def get_or_create_room(
    room_data: RoomCreate,
    background_tasks: BackgroundTasks,
    profile: Dict = Depends(require_onboarded),
    service: ChatService = Depends(get_chat_service)
):
    """Open (or reuse) the 1:1 room with another user"""
    room, created = service.get_or_create_room(profile["id"], room_data.target_user_id, room_data.match_id)
    if created:
        p1_name, p2_name = service.participant_names(room)
        background_tasks.add_task(
            AuditService(service.supabase).log_and_notify,
            profile["id"],
            "CHAT_CREATE",
            t("audit_chat_create", p1=p1_name, p2=p2_name),
            {"room_id": room.id, "p1": room.participant_1, "p2": room.participant_2},
            True
        )
    return room


@router.get("/rooms", response_model=List[RoomSummary])
async def list_rooms(
    profile: Dict = Depends(get_current_profile),
    service: ChatService = Depends(get_chat_service)
):
    return service.list_rooms(profile["id"])


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    profile: Dict = Depends(get_current_profile),
    service: ChatService = Depends(get_chat_service)
):
    return UnreadCountResponse(count=service.unread_count(profile["id"]))


@router.get("/rooms/{room_id}/messages", response_model=List[MessageResponse])
async def get_messages(
    room_id: str,
    profile: Dict = Depends(get_current_profile),
    service: ChatService = Depends(get_chat_service)
):
    return service.get_messages(room_id, profile["id"])


@router.post("/rooms/{room_id}/messages", response_model=MessageResponse, status_code=201)
async def send_message(
    room_id: str,
    message_data: MessageCreate,
    background_tasks: BackgroundTasks,
    profile: Dict = Depends(require_onboarded),
    service: ChatService = Depends(get_chat_service)
):
    """Store the message, fan it out to open sockets and push the receiver"""
    message, push = service.send_message(room_id, profile, message_data.content)
    await get_chat_manager().broadcast_message(
        [profile["id"], push["user_id"]], message.model_dump(mode="json")
    )
    background_tasks.add_task(
        PushService(service.supabase).send_notification,
        push["user_id"], push["title"], push["body"], push["url"]
    )
    return message


@router.post("/rooms/{room_id}/read")
async def mark_read(
    room_id: str,
    profile: Dict = Depends(get_current_profile),
    service: ChatService = Depends(get_chat_service)
):
    service.mark_read(room_id, profile["id"])
    return {"success": True}


@router.websocket("/ws")
async def chat_socket(websocket: WebSocket):
    """Realtime chat feed. Requires ?token=<access token>; answers "ping" with "pong"."""
    await websocket.accept()
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=1008, reason="Missing authentication token")
        return
    try:
        user = AuthService(get_supabase()).get_current_user(token)
    except HTTPException:
        await websocket.close(code=1008, reason="Invalid authentication token")
        return

    user_id = user["id"]
    profile = load_profile(user_id, get_service_supabase())
    if not profile or profile.get("deleted_at"):
        await websocket.close(code=1008, reason="Account not available")
        return

    manager = get_chat_manager()
    await manager.connect(user_id, websocket)
    try:
        while True:
            try:
                data = await asyncio.wait_for(websocket.receive_text(), timeout=CONNECTION_TIMEOUT_SECONDS)
            except asyncio.TimeoutError:
                logger.info(f"Chat socket timeout for user {user_id}, closing connection")
                await websocket.close(code=1000, reason="Connection timeout")
                break
            await manager.update_activity(websocket)
            if data == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        logger.info(f"Chat socket closed by user {user_id}")
    except Exception as e:
        logger.error(f"Chat socket error for user {user_id}: {e}")
    finally:
        await manager.disconnect(user_id, websocket)

import logging
from supabase import Client
from powerplay.core.timezone import utcnow
from powerplay.locales import t
from powerplay.modules.chat.models import PROFILE_FIELDS
from powerplay.modules.chat.schemas import RoomResponse, RoomSummary, MessageResponse
from typing import List, Optional, Tuple
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def ordered_pair(user_a: str, user_b: str) -> Tuple[str, str]:
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


class ChatService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _get_room(self, room_id: str, user_id: str) -> dict:
        """Room row; only its two participants may use it"""
        result = self.supabase.table("chat_rooms")\
            .select("*")\
            .eq("id", room_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Chat room not found")
        room = result.data[0]
        if user_id not in (room["participant_1"], room["participant_2"]):
            raise HTTPException(status_code=403, detail="Unauthorized")
        return room

    def get_or_create_room(self, user_id: str, target_user_id: str,
                           match_id: Optional[str] = None) -> Tuple[RoomResponse, bool]:
        """Returns (room, created)"""
        if user_id == target_user_id:
            raise HTTPException(status_code=400, detail="Cannot chat with yourself")
        p1, p2 = ordered_pair(user_id, target_user_id)
        existing = self.supabase.table("chat_rooms")\
            .select("*")\
            .eq("participant_1", p1)\
            .eq("participant_2", p2)\
            .limit(1)\
            .execute()
        if existing.data:
            return RoomResponse(**existing.data[0]), False

        try:
            result = self.supabase.table("chat_rooms").insert({
                "participant_1": p1,
                "participant_2": p2,
                "match_id": match_id,
                "updated_at": utcnow().isoformat()
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create chat room")
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating chat room: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        logger.info(f"Chat room {result.data[0]['id']} created")
        return RoomResponse(**result.data[0]), True

    def participant_names(self, room: RoomResponse) -> Tuple[str, str]:
        names = {}
        result = self.supabase.table("profiles")\
            .select("id, full_name")\
            .in_("id", [room.participant_1, room.participant_2])\
            .execute()
        for row in result.data or []:
            names[row["id"]] = row.get("full_name")
        return (names.get(room.participant_1) or room.participant_1,
                names.get(room.participant_2) or room.participant_2)

    def list_rooms(self, user_id: str) -> List[RoomSummary]:
        try:
            result = self.supabase.table("chat_rooms")\
                .select(
                    f"id, updated_at, participant_1, participant_2, match_id, "
                    f"p1:profiles!participant_1({PROFILE_FIELDS}), "
                    f"p2:profiles!participant_2({PROFILE_FIELDS}), "
                    "match:matches!match_id(id, start_time, rink:rinks!rink_id(name_ko, name_en))"
                )\
                .or_(f"participant_1.eq.{user_id},participant_2.eq.{user_id}")\
                .order("updated_at", desc=True)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching chat rooms: {e}")
            return []

        rooms = []
        for room in result.data or []:
            unread = self.supabase.table("chat_messages")\
                .select("id", count="exact")\
                .eq("room_id", room["id"])\
                .neq("sender_id", user_id)\
                .eq("is_read", False)\
                .execute()
            latest = self.supabase.table("chat_messages")\
                .select("content, created_at")\
                .eq("room_id", room["id"])\
                .order("created_at", desc=True)\
                .limit(1)\
                .execute()
            last = latest.data[0] if latest.data else {}
            other = room.get("p2") if room["participant_1"] == user_id else room.get("p1")
            rooms.append(RoomSummary(
                id=room["id"],
                updated_at=room.get("updated_at"),
                other_participant=other,
                unread_count=unread.count or 0,
                last_message=last.get("content"),
                last_message_at=last.get("created_at") or room.get("updated_at"),
                match=room.get("match")
            ))
        return rooms

    def get_messages(self, room_id: str, user_id: str) -> List[MessageResponse]:
        self._get_room(room_id, user_id)
        result = self.supabase.table("chat_messages")\
            .select("*")\
            .eq("room_id", room_id)\
            .order("created_at")\
            .execute()
        return [MessageResponse(**m) for m in result.data or []]

    def send_message(self, room_id: str, profile: dict, content: str) -> Tuple[MessageResponse, dict]:
        """Returns the stored message and the push for the receiver"""
        text = (content or "").strip()
        if not text:
            raise HTTPException(status_code=400, detail="Message cannot be empty")
        room = self._get_room(room_id, profile["id"])
        receiver_id = room["participant_2"] if room["participant_1"] == profile["id"] else room["participant_1"]
        try:
            result = self.supabase.table("chat_messages").insert({
                "room_id": room_id,
                "sender_id": profile["id"],
                "content": text,
                "is_read": False
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to send message")
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error sending message: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        self.supabase.table("chat_rooms")\
            .update({"updated_at": utcnow().isoformat()})\
            .eq("id", room_id)\
            .execute()
        push = {
            "user_id": receiver_id,
            "title": profile.get("full_name") or t("default_user_name", profile.get("preferred_lang") or "ko"),
            "body": text,
            "url": f"/chat/{room_id}"
        }
        return MessageResponse(**result.data[0]), push

    def mark_read(self, room_id: str, user_id: str) -> bool:
        self._get_room(room_id, user_id)
        try:
            self.supabase.table("chat_messages")\
                .update({"is_read": True})\
                .eq("room_id", room_id)\
                .neq("sender_id", user_id)\
                .eq("is_read", False)\
                .execute()
        except Exception as e:
            logger.error(f"Error marking messages as read: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        return True

    def unread_count(self, user_id: str) -> int:
        try:
            result = self.supabase.rpc("get_unread_chat_count", {"target_user_id": user_id}).execute()
        except Exception as e:
            logger.error(f"Error fetching unread chat count: {e}")
            return 0
        return result.data or 0

from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class RoomCreate(BaseModel):
    target_user_id: str
    match_id: Optional[str] = None


class RoomResponse(BaseModel):
    id: str
    participant_1: Optional[str] = None
    participant_2: Optional[str] = None
    match_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RoomSummary(BaseModel):
    id: str
    updated_at: Optional[datetime] = None
    other_participant: Optional[dict] = None
    unread_count: int = 0
    last_message: Optional[str] = None
    last_message_at: Optional[datetime] = None
    match: Optional[dict] = None


class MessageCreate(BaseModel):
    content: str


class MessageResponse(BaseModel):
    id: str
    room_id: str
    sender_id: str
    content: str
    is_read: bool = False
    created_at: Optional[datetime] = None


class UnreadCountResponse(BaseModel):
    count: int

from pydantic import BaseModel
from typing import Optional, Literal
from datetime import datetime


class ClubCreate(BaseModel):
    name: str
    description: Optional[str] = None
    contact: Optional[str] = None
    kakao_open_chat_url: Optional[str] = None


class ClubUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    contact: Optional[str] = None
    kakao_open_chat_url: Optional[str] = None


class ClubResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    logo_url: Optional[str] = None
    contact: Optional[str] = None
    kakao_open_chat_url: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    member_count: int = 0


class JoinClubRequest(BaseModel):
    intro_message: Optional[str] = None


class MembershipResponse(BaseModel):
    id: str
    club_id: str
    user_id: str
    role: str
    status: str
    intro_message: Optional[str] = None
    created_at: Optional[datetime] = None
    club: Optional[dict] = None
    user: Optional[dict] = None


class MembershipStatusResponse(BaseModel):
    status: Optional[Literal["approved", "pending", "rejected"]] = None


class NoticeCreate(BaseModel):
    title: str
    content: Optional[str] = None


class NoticeResponse(BaseModel):
    id: str
    club_id: str
    author_id: Optional[str] = None
    title: str
    content: Optional[str] = None
    created_at: Optional[datetime] = None
    author: Optional[dict] = None

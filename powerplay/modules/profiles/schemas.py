from pydantic import BaseModel
from typing import Optional, Literal
from datetime import date, datetime

Position = Literal["FW", "DF", "G"]
Language = Literal["ko", "en"]


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    position: Optional[Position] = None
    preferred_lang: Optional[Language] = None
    birth_date: Optional[date] = None
    primary_club_id: Optional[str] = None
    onboarding_completed: Optional[bool] = None


class OnboardingRequest(BaseModel):
    full_name: str
    position: Position
    preferred_lang: Language = "ko"
    birth_date: Optional[date] = None


class ProfileResponse(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str = "user"
    position: Optional[str] = None
    preferred_lang: Optional[str] = "ko"
    onboarding_completed: bool = False
    points: int = 0
    birth_date: Optional[date] = None
    primary_club_id: Optional[str] = None
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ChatCandidate(BaseModel):
    id: str
    full_name: Optional[str] = None
    position: Optional[str] = None
    primary_club_id: Optional[str] = None

from pydantic import BaseModel
from typing import Optional, List, Literal
from datetime import datetime
from powerplay.modules.points.schemas import BankAccount, RefundRule

Role = Literal["user", "admin", "superuser"]


class BankAccountUpdate(BankAccount):
    pass


class RefundPolicyUpdate(BaseModel):
    rules: List[RefundRule]


class ChargeReject(BaseModel):
    reason: Optional[str] = None


class ConfirmChargeResponse(BaseModel):
    success: bool = True
    new_balance: int
    settled_participant_ids: List[str] = []


class UserPointsUpdate(BaseModel):
    points: int
    reason: Optional[str] = None


class RoleUpdate(BaseModel):
    role: Role


class UserSummary(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Optional[str] = "user"
    points: Optional[int] = 0
    position: Optional[str] = None
    phone: Optional[str] = None
    preferred_lang: Optional[str] = None
    onboarding_completed: Optional[bool] = None
    created_at: Optional[datetime] = None


class AdminSummary(UserSummary):
    match_count: int = 0


class AdminDetail(BaseModel):
    admin: UserSummary
    matches: List[dict]


class TestNotificationRequest(BaseModel):
    user_id: str
    title: Optional[str] = None
    body: Optional[str] = None

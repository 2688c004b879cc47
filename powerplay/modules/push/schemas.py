from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class SubscriptionKeys(BaseModel):
    p256dh: str
    auth: str


class SubscriptionCreate(BaseModel):
    endpoint: str
    keys: SubscriptionKeys


class SubscriptionStatus(BaseModel):
    count: int
    last_subscribed: Optional[datetime] = None


class SendResult(BaseModel):
    success: bool
    sent: int = 0
    error: Optional[str] = None


class VapidKeyResponse(BaseModel):
    public_key: Optional[str] = None

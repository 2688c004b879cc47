from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class ChargeRequestCreate(BaseModel):
    amount: int
    depositor_name: str


class ChargeRequestResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    amount: int
    depositor_name: Optional[str] = None
    status: str
    reject_reason: Optional[str] = None
    confirmed_by: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[dict] = None


class TransactionResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    type: str
    amount: int
    balance_after: int
    description: Optional[str] = None
    reference_id: Optional[str] = None
    created_at: Optional[datetime] = None


class PointHistoryResponse(BaseModel):
    transactions: List[TransactionResponse]
    total: int


class BalanceResponse(BaseModel):
    points: int


class BankAccount(BaseModel):
    bank: str
    account: str
    holder: str


class RefundRule(BaseModel):
    hours_before_match: float
    refund_percent: int


class RefundPolicy(BaseModel):
    rules: List[RefundRule] = []

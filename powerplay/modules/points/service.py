import logging
from supabase import Client
from powerplay.config import settings
from powerplay.locales import t, DEFAULT_LOCALE
from powerplay.modules.points.schemas import (
    ChargeRequestCreate, ChargeRequestResponse, TransactionResponse, PointHistoryResponse
)
from typing import List, Optional, Tuple
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class PointService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    # ==================== Balance ====================

    def get_points(self, user_id: str) -> Tuple[int, str]:
        """(balance, preferred_lang) of a user"""
        result = self.supabase.table("profiles")\
            .select("points, preferred_lang")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="User profile not found")
        row = result.data[0]
        return row.get("points") or 0, row.get("preferred_lang") or DEFAULT_LOCALE

    def get_balance(self, user_id: str) -> int:
        return self.get_points(user_id)[0]

    def set_points(self, user_id: str, points: int):
        try:
            self.supabase.table("profiles")\
                .update({"points": points})\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating points for {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to update points")

    def record_transaction(self, user_id: str, tx_type: str, amount: int, balance_after: int,
                           description: str, reference_id: Optional[str] = None) -> bool:
        """Ledger rows are informational: a failed insert is logged, not raised"""
        try:
            self.supabase.table("point_transactions").insert({
                "user_id": user_id,
                "type": tx_type,
                "amount": amount,
                "balance_after": balance_after,
                "description": description,
                "reference_id": reference_id
            }).execute()
            return True
        except Exception as e:
            logger.error(f"Error creating {tx_type} transaction for {user_id}: {e}")
            return False

    def adjust_balance(self, user_id: str, delta: int, tx_type: str, description_key: str,
                       reference_id: Optional[str] = None, **kwargs) -> int:
        """Read-modify-write of the balance plus a ledger row. Returns the new balance."""
        points, lang = self.get_points(user_id)
        new_balance = points + delta
        self.set_points(user_id, new_balance)
        self.record_transaction(
            user_id, tx_type, delta, new_balance,
            t(description_key, lang, **kwargs), reference_id
        )
        return new_balance

    def history(self, user_id: str, limit: int = 20, offset: int = 0) -> PointHistoryResponse:
        try:
            result = self.supabase.table("point_transactions")\
                .select("*", count="exact")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching point history: {e}")
            return PointHistoryResponse(transactions=[], total=0)
        return PointHistoryResponse(
            transactions=[TransactionResponse(**tx) for tx in result.data or []],
            total=result.count or 0
        )

    # ==================== Charge requests ====================

    def request_charge(self, user_id: str, charge_data: ChargeRequestCreate) -> ChargeRequestResponse:
        if charge_data.amount < settings.min_charge_amount:
            raise HTTPException(
                status_code=400,
                detail=f"Minimum charge amount is {settings.min_charge_amount:,} points"
            )
        depositor = charge_data.depositor_name.strip()
        if not depositor:
            raise HTTPException(status_code=400, detail="Depositor name is required")
        existing = self.supabase.table("point_charge_requests")\
            .select("id")\
            .eq("user_id", user_id)\
            .eq("status", "pending")\
            .limit(1)\
            .execute()
        if existing.data:
            raise HTTPException(status_code=400, detail="You already have a pending charge request")
        try:
            result = self.supabase.table("point_charge_requests").insert({
                "user_id": user_id,
                "amount": charge_data.amount,
                "depositor_name": depositor,
                "status": "pending"
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create charge request")
            return ChargeRequestResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating charge request: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def cancel_charge_request(self, user_id: str, request_id: str) -> bool:
        """Only the owner's pending requests can be canceled"""
        try:
            result = self.supabase.table("point_charge_requests")\
                .update({"status": "canceled"})\
                .eq("id", request_id)\
                .eq("user_id", user_id)\
                .eq("status", "pending")\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Charge request not found or already processed")
        return True

    def my_charge_requests(self, user_id: str) -> List[ChargeRequestResponse]:
        result = self.supabase.table("point_charge_requests")\
            .select("*")\
            .eq("user_id", user_id)\
            .order("created_at", desc=True)\
            .limit(10)\
            .execute()
        return [ChargeRequestResponse(**r) for r in result.data or []]

    # ==================== Platform settings (public read) ====================

    def get_setting(self, key: str) -> Optional[dict]:
        try:
            result = self.supabase.table("platform_settings")\
                .select("value")\
                .eq("key", key)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching platform setting {key}: {e}")
            return None
        return result.data[0]["value"] if result.data else None

    def bank_account(self) -> Optional[dict]:
        return self.get_setting("bank_account")

    def refund_policy(self) -> Optional[dict]:
        return self.get_setting("refund_policy")

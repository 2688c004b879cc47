import logging
from datetime import datetime
from supabase import Client
from powerplay.core.timezone import utcnow, parse_timestamp
from powerplay.locales import t
from powerplay.modules.audit.service import AuditService
from powerplay.modules.matches.models import USER_EMBED
from powerplay.modules.matches.pricing import participation_cost
from powerplay.modules.points.schemas import RefundRule, BankAccount
from powerplay.modules.points.service import PointService
from powerplay.modules.push.service import PushService
from powerplay.modules.push.schemas import SendResult
from typing import List, Optional, Dict, Any
from fastapi import HTTPException

logger = logging.getLogger(__name__)

CHARGE_EMBED = "user:profiles!user_id(id, full_name, email, points)"


class SuperuserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.points = PointService(supabase)

    # ==================== Platform settings ====================

    def _save_setting(self, key: str, value: dict) -> dict:
        """Update the row; insert it when it does not exist yet"""
        row = {"value": value, "updated_at": utcnow().isoformat()}
        try:
            result = self.supabase.table("platform_settings")\
                .update(row)\
                .eq("key", key)\
                .execute()
            if not result.data:
                self.supabase.table("platform_settings")\
                    .insert({"key": key, **row})\
                    .execute()
        except Exception as e:
            logger.error(f"Error saving platform setting {key}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        logger.info(f"Platform setting {key} updated")
        return value

    def update_bank_account(self, account: BankAccount) -> dict:
        return self._save_setting("bank_account", account.model_dump())

    def update_refund_policy(self, rules: List[RefundRule]) -> dict:
        for rule in rules:
            if rule.hours_before_match < 0 or not 0 <= rule.refund_percent <= 100:
                raise HTTPException(status_code=400, detail="Invalid refund rule values")
        ordered = sorted(rules, key=lambda r: r.hours_before_match, reverse=True)
        return self._save_setting("refund_policy", {"rules": [r.model_dump() for r in ordered]})

    # ==================== Charge review ====================

    def pending_charge_requests(self) -> List[dict]:
        result = self.supabase.table("point_charge_requests")\
            .select(f"*, {CHARGE_EMBED}")\
            .eq("status", "pending")\
            .order("created_at")\
            .execute()
        return result.data or []

    def all_charge_requests(self, status: Optional[str] = None) -> List[dict]:
        query = self.supabase.table("point_charge_requests")\
            .select(f"*, {CHARGE_EMBED}")
        if status:
            query = query.eq("status", status)
        result = query.order("created_at", desc=True).limit(50).execute()
        return result.data or []

    def _pending_request(self, request_id: str) -> dict:
        result = self.supabase.table("point_charge_requests")\
            .select("*")\
            .eq("id", request_id)\
            .eq("status", "pending")\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Charge request not found or already processed")
        return result.data[0]

    def auto_settle(self, user_id: str, balance: int, lang: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Pay unpaid pending_payment participations oldest first while the balance covers them.
        Canceled or already started matches are skipped. Returns the balance left and settled ids.
        """
        now = now or utcnow()
        result = self.supabase.table("participants")\
            .select("id, position, rental_opt_in, created_at, "
                    "match:matches!match_id(id, start_time, status, entry_points, rental_fee, goalie_free)")\
            .eq("user_id", user_id)\
            .eq("status", "pending_payment")\
            .eq("payment_status", False)\
            .order("created_at")\
            .execute()

        settled = []
        for participant in result.data or []:
            match = participant.get("match")
            if not match or match.get("status") == "canceled":
                continue
            if parse_timestamp(match["start_time"]) <= now:
                continue
            cost = participation_cost(match, participant["position"], bool(participant.get("rental_opt_in")))
            if cost > balance:
                continue
            balance -= cost
            self.points.set_points(user_id, balance)
            self.points.record_transaction(
                user_id, "use", -cost, balance, t("tx_auto_settlement", lang), participant["id"]
            )
            self.supabase.table("participants")\
                .update({"status": "confirmed", "payment_status": True})\
                .eq("id", participant["id"])\
                .execute()
            settled.append(participant["id"])

        if settled:
            logger.info(f"Auto-settled {len(settled)} pending participations for {user_id}")
        return {"balance": balance, "settled": settled}

    def confirm_charge(self, request_id: str, reviewer_id: str) -> Dict[str, Any]:
        request = self._pending_request(request_id)
        user_id = request["user_id"]
        amount = request["amount"]
        points, lang = self.points.get_points(user_id)
        new_balance = points + amount
        self.points.set_points(user_id, new_balance)

        try:
            result = self.supabase.table("point_charge_requests")\
                .update({
                    "status": "confirmed",
                    "confirmed_by": reviewer_id,
                    "confirmed_at": utcnow().isoformat()
                })\
                .eq("id", request_id)\
                .eq("status", "pending")\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Charge request not found or already processed")
        except Exception as e:
            logger.error(f"Confirming charge {request_id} failed, restoring balance: {e}")
            self.points.set_points(user_id, points)
            if isinstance(e, HTTPException):
                raise
            raise HTTPException(status_code=500, detail=str(e))

        self.points.record_transaction(user_id, "charge", amount, new_balance, t("tx_charge", lang), request_id)
        logger.info(f"Charge {request_id} confirmed: +{amount} for {user_id}")

        settlement = self.auto_settle(user_id, new_balance, lang)
        if settlement["settled"]:
            body_key = "push_charge_settled_body"
        else:
            body_key = "push_charge_confirmed_body"
        notification = {
            "user_id": user_id,
            "title_key": "push_charge_confirmed_title",
            "body_key": body_key,
            "url": "/mypage",
            "params": {
                "amount": f"{amount:,}",
                "balance": f"{settlement['balance']:,}",
                "count": len(settlement["settled"])
            }
        }
        return {
            "success": True,
            "new_balance": settlement["balance"],
            "settled_participant_ids": settlement["settled"],
            "notifications": [notification]
        }

    def reject_charge(self, request_id: str, reviewer_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
        request = self._pending_request(request_id)
        try:
            self.supabase.table("point_charge_requests")\
                .update({
                    "status": "rejected",
                    "reject_reason": reason,
                    "confirmed_by": reviewer_id,
                    "confirmed_at": utcnow().isoformat()
                })\
                .eq("id", request_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        logger.info(f"Charge {request_id} rejected")
        return {
            "success": True,
            "notifications": [{
                "user_id": request["user_id"],
                "title_key": "push_charge_rejected_title",
                "body_key": "push_charge_rejected_body",
                "url": "/mypage",
                "params": {"amount": f"{request['amount']:,}", "reason": reason or ""}
            }]
        }

    # ==================== Pending participants ====================

    def pending_participants(self) -> List[dict]:
        result = self.supabase.table("participants")\
            .select(f"*, {USER_EMBED}, "
                    "match:matches!match_id(id, start_time, entry_points, rental_fee, goalie_free, "
                    "rink:rinks!rink_id(name_ko, name_en))")\
            .eq("status", "pending_payment")\
            .order("created_at")\
            .execute()
        return result.data or []

    def _pending_participant(self, participant_id: str) -> dict:
        result = self.supabase.table("participants")\
            .select("*")\
            .eq("id", participant_id)\
            .eq("status", "pending_payment")\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Pending participant not found")
        return result.data[0]

    def confirm_participant_payment(self, participant_id: str) -> bool:
        """Bank transfer received outside the point system: no balance movement"""
        self._pending_participant(participant_id)
        self.supabase.table("participants")\
            .update({"status": "confirmed", "payment_status": True})\
            .eq("id", participant_id)\
            .execute()
        return True

    def cancel_pending_participant(self, participant_id: str) -> bool:
        self._pending_participant(participant_id)
        self.supabase.table("participants")\
            .update({"status": "canceled"})\
            .eq("id", participant_id)\
            .execute()
        return True

    # ==================== Users ====================

    def list_user_points(self, search: Optional[str] = None) -> List[dict]:
        query = self.supabase.table("profiles")\
            .select("id, email, full_name, role, points, position, created_at")\
            .is_("deleted_at", "null")
        if search:
            query = query.or_(f"full_name.ilike.%{search}%,email.ilike.%{search}%")
        return query.order("full_name").execute().data or []

    def user_transactions(self, user_id: str, limit: int = 50) -> List[dict]:
        result = self.supabase.table("point_transactions")\
            .select("*")\
            .eq("user_id", user_id)\
            .order("created_at", desc=True)\
            .limit(limit)\
            .execute()
        return result.data or []

    def update_user_points(self, user_id: str, new_balance: int, reason: Optional[str] = None) -> int:
        if new_balance < 0:
            raise HTTPException(status_code=400, detail="Points cannot be negative")
        points, lang = self.points.get_points(user_id)
        difference = new_balance - points
        self.points.set_points(user_id, new_balance)
        if difference:
            description = reason.strip() if reason and reason.strip() else t("tx_admin_adjustment", lang)
            self.points.record_transaction(user_id, "admin_adjustment", difference, new_balance, description)
        logger.info(f"Points of {user_id} set to {new_balance} ({difference:+d})")
        return new_balance

    def list_users(self, role: Optional[str] = None) -> List[dict]:
        query = self.supabase.table("profiles")\
            .select("*")\
            .is_("deleted_at", "null")
        if role:
            query = query.eq("role", role)
        return query.order("created_at", desc=True).execute().data or []

    def set_role(self, user_id: str, role: str) -> dict:
        try:
            result = self.supabase.table("profiles")\
                .update({"role": role})\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="User not found")
        logger.info(f"Role of {user_id} set to {role}")
        return result.data[0]

    # ==================== Admins ====================

    def list_admins(self) -> List[dict]:
        admins = self.supabase.table("profiles")\
            .select("*")\
            .in_("role", ["admin", "superuser"])\
            .is_("deleted_at", "null")\
            .order("full_name")\
            .execute().data or []
        if not admins:
            return []
        matches = self.supabase.table("matches")\
            .select("created_by")\
            .in_("created_by", [a["id"] for a in admins])\
            .execute().data or []
        counts: Dict[str, int] = {}
        for match in matches:
            counts[match["created_by"]] = counts.get(match["created_by"], 0) + 1
        for admin in admins:
            admin["match_count"] = counts.get(admin["id"], 0)
        return admins

    def admin_detail(self, user_id: str) -> dict:
        result = self.supabase.table("profiles")\
            .select("*")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="User not found")
        matches = self.supabase.table("matches")\
            .select("*, rink:rinks!rink_id(name_ko, name_en)")\
            .eq("created_by", user_id)\
            .order("start_time", desc=True)\
            .execute().data or []
        return {"admin": result.data[0], "matches": matches}

    # ==================== Logs & push ====================

    def audit_logs(self, limit: int = 100, action: Optional[str] = None) -> List[dict]:
        return AuditService(self.supabase).list_logs(limit, action)

    def notification_logs(self, limit: int = 50) -> List[dict]:
        result = self.supabase.table("notification_logs")\
            .select("*, user:profiles!user_id(full_name, email)")\
            .order("created_at", desc=True)\
            .limit(limit)\
            .execute()
        return result.data or []

    def push_subscribers(self) -> List[dict]:
        """One entry per user with device count and latest subscription"""
        result = self.supabase.table("push_subscriptions")\
            .select("user_id, created_at, user:profiles!user_id(full_name, email)")\
            .order("created_at", desc=True)\
            .execute()
        subscribers: Dict[str, dict] = {}
        for row in result.data or []:
            entry = subscribers.setdefault(row["user_id"], {
                "user_id": row["user_id"],
                "user": row.get("user"),
                "devices": 0,
                "last_subscribed": row.get("created_at")
            })
            entry["devices"] += 1
        return list(subscribers.values())

    def send_test_notification(self, user_id: str, title: Optional[str] = None,
                               body: Optional[str] = None) -> SendResult:
        push = PushService(self.supabase)
        if title or body:
            lang = push.user_lang(user_id)
            return push.send_notification(
                user_id, title or t("push_test_title", lang), body or t("push_test_body", lang), "/"
            )
        return push.notify(user_id, "push_test_title", "push_test_body", "/")

import json
import logging
import time
from supabase import Client
from pywebpush import webpush, WebPushException
from fastapi import HTTPException
from powerplay.config import settings
from powerplay.locales import t, DEFAULT_LOCALE, LOCALES
from powerplay.modules.push.schemas import SubscriptionCreate, SubscriptionStatus, SendResult
from typing import List, Optional, Tuple, Iterable

logger = logging.getLogger(__name__)

MAX_RETRIES = 1
RETRY_DELAY_SEC = 0.5
RATE_LIMIT_RETRY_DELAY_SEC = 2.0
# Retrying these won't help: expired endpoint or VAPID auth problem
NO_RETRY_STATUS = {401, 403, 404, 410}
EXPIRED_STATUS = {404, 410}


class PushService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def save_subscription(self, user_id: str, subscription: SubscriptionCreate) -> bool:
        """Upsert on (endpoint, user_id) so one browser can serve several accounts"""
        try:
            self.supabase.table("push_subscriptions").upsert({
                "user_id": user_id,
                "endpoint": subscription.endpoint,
                "p256dh": subscription.keys.p256dh,
                "auth": subscription.keys.auth
            }, on_conflict="endpoint,user_id").execute()
            return True
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def subscription_status(self, user_id: str) -> SubscriptionStatus:
        try:
            result = self.supabase.table("push_subscriptions")\
                .select("created_at")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .execute()
        except Exception as e:
            logger.warning(f"Subscription status lookup failed for {user_id}: {e}")
            return SubscriptionStatus(count=0)
        rows = result.data or []
        return SubscriptionStatus(
            count=len(rows),
            last_subscribed=rows[0]["created_at"] if rows else None
        )

    def _log(self, user_id: str, title: str, body: str, url: str, status: str,
             devices_sent: int = 0, error_message: Optional[str] = None):
        try:
            self.supabase.table("notification_logs").insert({
                "user_id": user_id,
                "title": title,
                "body": body,
                "url": url,
                "status": status,
                "devices_sent": devices_sent,
                "error_message": error_message
            }).execute()
        except Exception as e:
            logger.error(f"Failed to log notification for {user_id}: {e}")

    def _deliver(self, subscription: dict, payload: str) -> Tuple[bool, Optional[int], Optional[str]]:
        """Send to one device with a single retry on temporary errors. Returns (ok, status_code, error)."""
        subscription_info = {
            "endpoint": subscription["endpoint"],
            "keys": {"p256dh": subscription["p256dh"], "auth": subscription["auth"]}
        }
        attempt = 0
        while True:
            status_code = None
            try:
                webpush(
                    subscription_info=subscription_info,
                    data=payload,
                    vapid_private_key=settings.vapid_private_key,
                    vapid_claims={"sub": settings.vapid_subject}
                )
                return True, None, None
            except WebPushException as e:
                response = getattr(e, "response", None)
                status_code = getattr(response, "status_code", None)
                error = f"[{status_code or '?'}] {e}"
            except Exception as e:
                error = f"[?] {e}"
            if status_code in NO_RETRY_STATUS or attempt >= MAX_RETRIES:
                logger.warning(f"Push delivery failed for {subscription['endpoint'][:60]}...: {error}")
                return False, status_code, error
            attempt += 1
            time.sleep(RATE_LIMIT_RETRY_DELAY_SEC if status_code == 429 else RETRY_DELAY_SEC)
            logger.info(f"Retrying push delivery (attempt {attempt + 1})")

    def send_notification(self, user_id: str, title: str, body: str, url: str = "/") -> SendResult:
        """Push to every device of a user; the outcome is written to notification_logs"""
        if not settings.vapid_configured:
            self._log(user_id, title, body, url, "failed", 0, "VAPID not configured")
            return SendResult(success=False, error="VAPID not configured")

        try:
            result = self.supabase.table("push_subscriptions")\
                .select("*")\
                .eq("user_id", user_id)\
                .execute()
            subscriptions = result.data or []
        except Exception as e:
            logger.error(f"Failed to load subscriptions for {user_id}: {e}")
            subscriptions = []

        if not subscriptions:
            logger.info(f"No subscriptions found for user {user_id}")
            self._log(user_id, title, body, url, "no_subscription", 0)
            return SendResult(success=False, error="No subscriptions")

        payload = json.dumps({"title": title, "body": body, "url": url})
        sent = 0
        errors: List[str] = []
        for subscription in subscriptions:
            ok, status_code, error = self._deliver(subscription, payload)
            if ok:
                sent += 1
                continue
            errors.append(error)
            if status_code in EXPIRED_STATUS:
                try:
                    self.supabase.table("push_subscriptions")\
                        .delete()\
                        .eq("id", subscription["id"])\
                        .execute()
                    logger.info(f"Removed expired subscription {subscription['id']}")
                except Exception as e:
                    logger.error(f"Failed to remove subscription {subscription['id']}: {e}")

        logger.info(f"Push sent to {sent}/{len(subscriptions)} devices for user {user_id}")
        self._log(
            user_id, title, body, url,
            "sent" if sent > 0 else "failed",
            sent,
            "; ".join(errors) if errors else None
        )
        return SendResult(success=sent > 0, sent=sent)

    def send_to_users(self, user_ids: Iterable[str], title: str, body: str, url: str = "/") -> int:
        """Returns the number of users reached on at least one device"""
        reached = 0
        for user_id in dict.fromkeys(user_ids):
            try:
                if self.send_notification(user_id, title, body, url).success:
                    reached += 1
            except Exception as e:
                logger.error(f"Push to user {user_id} failed: {e}")
        return reached

    def send_to_superusers(self, title: str, body: str, url: str = "/admin") -> int:
        result = self.supabase.table("profiles")\
            .select("id")\
            .eq("role", "superuser")\
            .execute()
        return self.send_to_users([p["id"] for p in result.data or []], title, body, url)

    def send_to_club_admins(self, club_id: str, title: str, body: str, url: str = "/") -> int:
        return self.send_to_users(self.club_admin_ids(club_id), title, body, url)

    def send_to_club_members(self, club_id: str, title: str, body: str, url: str = "/",
                             exclude_user_id: Optional[str] = None) -> int:
        user_ids = [u for u in self.club_member_ids(club_id) if u != exclude_user_id]
        return self.send_to_users(user_ids, title, body, url)

    def user_lang(self, user_id: str) -> str:
        try:
            result = self.supabase.table("profiles")\
                .select("preferred_lang")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.warning(f"Could not load preferred_lang for {user_id}: {e}")
            return DEFAULT_LOCALE
        if result.data and result.data[0].get("preferred_lang") in LOCALES:
            return result.data[0]["preferred_lang"]
        return DEFAULT_LOCALE

    def notify(self, user_id: str, title_key: str, body_key: str, url: str = "/", **kwargs) -> SendResult:
        """Translate title/body into the recipient's language, then send"""
        lang = self.user_lang(user_id)
        return self.send_notification(user_id, t(title_key, lang, **kwargs), t(body_key, lang, **kwargs), url)

    def notify_users(self, user_ids: Iterable[str], title_key: str, body_key: str, url: str = "/", **kwargs) -> int:
        reached = 0
        for user_id in dict.fromkeys(user_ids):
            try:
                if self.notify(user_id, title_key, body_key, url, **kwargs).success:
                    reached += 1
            except Exception as e:
                logger.error(f"Push to user {user_id} failed: {e}")
        return reached

    def club_admin_ids(self, club_id: str) -> List[str]:
        """Club creator plus approved members with the admin role"""
        user_ids = []
        club_result = self.supabase.table("clubs")\
            .select("created_by")\
            .eq("id", club_id)\
            .limit(1)\
            .execute()
        if club_result.data and club_result.data[0].get("created_by"):
            user_ids.append(club_result.data[0]["created_by"])
        members_result = self.supabase.table("club_memberships")\
            .select("user_id")\
            .eq("club_id", club_id)\
            .eq("role", "admin")\
            .eq("status", "approved")\
            .execute()
        user_ids.extend(m["user_id"] for m in members_result.data or [])
        return list(dict.fromkeys(user_ids))

    def club_member_ids(self, club_id: str) -> List[str]:
        result = self.supabase.table("club_memberships")\
            .select("user_id")\
            .eq("club_id", club_id)\
            .eq("status", "approved")\
            .execute()
        return [m["user_id"] for m in result.data or []]

    def dispatch(self, notifications: List[dict]) -> int:
        """Send queued notifications: [{"user_id", "title_key", "body_key", "url", "params"}]"""
        reached = 0
        for item in notifications:
            try:
                result = self.notify(
                    item["user_id"], item["title_key"], item["body_key"],
                    item.get("url", "/"), **item.get("params", {})
                )
                if result.success:
                    reached += 1
            except Exception as e:
                logger.error(f"Push to user {item.get('user_id')} failed: {e}")
        return reached

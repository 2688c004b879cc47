import logging
from supabase import Client
from powerplay.locales import t
from powerplay.modules.audit.models import AUDIT_ACTIONS
from powerplay.modules.push.service import PushService
from typing import Any, Dict, Optional, List

logger = logging.getLogger(__name__)

AUDIT_URL = "/admin/audit-logs"


class AuditService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def log_and_notify(
        self,
        user_id: str,
        action: str,
        description: str,
        metadata: Optional[Dict[str, Any]] = None,
        skip_push: bool = False
    ) -> bool:
        """Write an audit row and ping superusers. Scheduled as a background task: never raises."""
        if action not in AUDIT_ACTIONS:
            logger.warning(f"Unknown audit action {action}, stored as OTHER")
            action = "OTHER"
        try:
            self.supabase.table("audit_logs").insert({
                "user_id": user_id,
                "action_type": action,
                "description": description,
                "metadata": metadata or {}
            }).execute()
            logger.info(f"Audit logged: {action} - {description}")
        except Exception as e:
            logger.error(f"Audit log failed ({action}): {e}")
            return False

        if not skip_push:
            try:
                PushService(self.supabase).send_to_superusers(
                    t("audit_title", action=action),
                    description,
                    AUDIT_URL
                )
            except Exception as e:
                logger.error(f"Audit push to superusers failed ({action}): {e}")
        return True

    def list_logs(self, limit: int = 100, action: Optional[str] = None) -> List[dict]:
        query = self.supabase.table("audit_logs")\
            .select("*, user:profiles!user_id(full_name, email)")
        if action:
            query = query.eq("action_type", action)
        result = query.order("created_at", desc=True).limit(limit).execute()
        return result.data or []

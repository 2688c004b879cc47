import logging
from datetime import datetime, timedelta, timezone, date
from supabase import Client
from powerplay.config import settings
from powerplay.core.dependencies import is_club_member, is_super_user
from powerplay.core.timezone import (
    utcnow, parse_timestamp, kst_to_utc, today_start_utc, month_range_utc, format_kst, KST
)
from powerplay.modules.matches.bulk import group_matches_by_pattern
from powerplay.modules.matches.models import RINK_EMBED, CLUB_EMBED, USER_EMBED
from powerplay.modules.matches.pricing import (
    pool_positions, holds_seat, occupied_counts, remaining_seats, is_position_full, participation_cost
)
from powerplay.modules.matches.schemas import (
    MatchCreate, MatchUpdate, GeneratedMatch, RegularResponseCreate
)
from powerplay.modules.points.policy import refund_percent, refund_amount
from powerplay.modules.points.service import PointService
from powerplay.modules.rinks.regions import extract_region
from typing import List, Optional, Dict, Any
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def match_label(match: dict) -> Dict[str, str]:
    """date/rink parameters for notification texts"""
    rink = match.get("rink") or {}
    return {
        "date": format_kst(match["start_time"]),
        "rink": rink.get("name_ko") or rink.get("name_en") or ""
    }


def _notification(user_id: str, title_key: str, body_key: str, url: str, **params) -> dict:
    return {"user_id": user_id, "title_key": title_key, "body_key": body_key, "url": url, "params": params}


class MatchService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.points = PointService(supabase)

    # ==================== Reads ====================

    def _get_match_row(self, match_id: str) -> dict:
        result = self.supabase.table("matches")\
            .select(f"*, {RINK_EMBED}, {CLUB_EMBED}")\
            .eq("id", match_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Match not found")
        return result.data[0]

    def _participants_for(self, match_ids: List[str]) -> Dict[str, List[dict]]:
        grouped: Dict[str, List[dict]] = {match_id: [] for match_id in match_ids}
        if not match_ids:
            return grouped
        result = self.supabase.table("participants")\
            .select("match_id, position, status")\
            .in_("match_id", match_ids)\
            .execute()
        for participant in result.data or []:
            grouped.setdefault(participant["match_id"], []).append(participant)
        return grouped

    def _with_counts(self, match: dict, participants: List[dict]) -> dict:
        match["participants_count"] = occupied_counts(participants)
        match["remaining"] = remaining_seats(match, participants)
        return match

    def list_matches(
        self,
        rink_id: Optional[str] = None,
        region: Optional[str] = None,
        club_id: Optional[str] = None,
        match_type: Optional[str] = None,
        on_date: Optional[date] = None,
        now: Optional[datetime] = None
    ) -> List[dict]:
        """Matches from today 00:00 KST onwards with seat counts, one participants query for all"""
        try:
            query = self.supabase.table("matches")\
                .select(f"*, {RINK_EMBED}, {CLUB_EMBED}")
            if on_date:
                day_start = datetime(on_date.year, on_date.month, on_date.day, tzinfo=KST)
                query = query.gte("start_time", day_start.astimezone(timezone.utc).isoformat())\
                    .lt("start_time", (day_start + timedelta(days=1)).astimezone(timezone.utc).isoformat())
            else:
                query = query.gte("start_time", today_start_utc(now).isoformat())
            if rink_id:
                query = query.eq("rink_id", rink_id)
            if club_id:
                query = query.eq("club_id", club_id)
            if match_type:
                query = query.eq("match_type", match_type)
            result = query.order("start_time").execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        matches = result.data or []
        if region:
            matches = [m for m in matches if extract_region((m.get("rink") or {}).get("address")) == region]
        grouped = self._participants_for([m["id"] for m in matches])
        return [self._with_counts(m, grouped.get(m["id"], [])) for m in matches]

    def get_match(self, match_id: str) -> dict:
        """Match with participants (and their profiles) in registration order"""
        match = self._get_match_row(match_id)
        result = self.supabase.table("participants")\
            .select(f"*, {USER_EMBED}")\
            .eq("match_id", match_id)\
            .order("created_at")\
            .execute()
        participants = result.data or []
        match["participants"] = participants
        return self._with_counts(match, participants)

    # ==================== Join / cancel ====================

    def _charge_seat(self, match: dict, participant_id: str, user_id: str, position: str,
                     rental_opt_in: bool, description_key: str) -> Dict[str, Any]:
        """
        Pay for a seat that is already held by participant_id.
        Free seats and affordable ones are confirmed; otherwise pending_payment.
        """
        cost = participation_cost(match, position, rental_opt_in)
        if cost == 0:
            return {"status": "confirmed", "payment_status": True, "cost": 0, "points": None}
        balance, _ = self.points.get_points(user_id)
        if balance < cost:
            return {"status": "pending_payment", "payment_status": False, "cost": cost, "points": balance}
        new_balance = self.points.adjust_balance(
            user_id, -cost, "use", description_key, reference_id=participant_id
        )
        return {"status": "confirmed", "payment_status": True, "cost": cost, "points": new_balance}

    def join_match(self, match_id: str, profile: dict, position: str, rental_opt_in: bool = False,
                   now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or utcnow()
        user_id = profile["id"]

        existing_result = self.supabase.table("participants")\
            .select("id, status")\
            .eq("match_id", match_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        existing = existing_result.data[0] if existing_result.data else None
        if existing and existing["status"] != "canceled":
            raise HTTPException(status_code=400, detail="Already joined this match")

        match = self._get_match_row(match_id)
        start_time = parse_timestamp(match["start_time"])
        if match.get("status") != "open":
            raise HTTPException(status_code=400, detail="Match is not open")
        if start_time <= now:
            raise HTTPException(status_code=400, detail="Match already started")
        if rental_opt_in and not match.get("rental_available"):
            raise HTTPException(status_code=400, detail="Equipment rental is not available for this match")

        if match.get("match_type") == "regular" and match.get("club_id") \
                and not is_club_member(match["club_id"], user_id, self.supabase):
            hours = match.get("guest_open_hours_before")
            if hours is None:
                hours = settings.default_guest_open_hours
            open_at = start_time - timedelta(hours=hours)
            if now < open_at:
                raise HTTPException(status_code=400, detail={
                    "error": "guest_not_yet_open",
                    "code": "GUEST_NOT_YET_OPEN",
                    "open_at": open_at.isoformat()
                })

        participants = self.supabase.table("participants")\
            .select("position, status")\
            .eq("match_id", match_id)\
            .neq("user_id", user_id)\
            .execute().data or []
        waiting = is_position_full(match, position, participants)
        cost = participation_cost(match, position, rental_opt_in)

        row = {
            "match_id": match_id,
            "user_id": user_id,
            "position": position,
            "rental_opt_in": rental_opt_in,
            "status": "waiting" if waiting else ("confirmed" if cost == 0 else "pending_payment"),
            "payment_status": not waiting and cost == 0,
            "team_color": None
        }
        try:
            if existing:
                row["created_at"] = now.isoformat()
                result = self.supabase.table("participants")\
                    .update(row)\
                    .eq("id", existing["id"])\
                    .execute()
            else:
                result = self.supabase.table("participants").insert(row).execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to join match")
        participant_id = result.data[0]["id"]

        outcome = {"status": row["status"], "payment_status": row["payment_status"], "cost": cost, "points": None}
        if not waiting and cost > 0:
            try:
                outcome = self._charge_seat(match, participant_id, user_id, position, rental_opt_in, "tx_match_join")
            except HTTPException as e:
                logger.error(f"Payment for participant {participant_id} failed, left pending: {e.detail}")
            if outcome["status"] == "confirmed":
                self.supabase.table("participants")\
                    .update({"status": "confirmed", "payment_status": True})\
                    .eq("id", participant_id)\
                    .execute()

        logger.info(f"User {user_id} joined match {match_id} as {position}: {outcome['status']}")
        label = match_label(match)
        notifications = []
        if match.get("created_by") and match["created_by"] != user_id:
            notifications.append(_notification(
                match["created_by"], "push_match_join_title", "push_match_join_body",
                f"/match/{match_id}",
                name=profile.get("full_name") or "", position=position, status=outcome["status"], **label
            ))
        return {
            "participant_id": participant_id,
            "status": outcome["status"],
            "payment_status": outcome["payment_status"],
            "cost": outcome["cost"],
            "points": outcome["points"],
            "match": match,
            "notifications": notifications
        }

    def _promote_waiter(self, match: dict, position: str) -> Optional[Dict[str, Any]]:
        """Give the freed seat to the oldest waiting participant of the same pool"""
        participants = self._participants_for([match["id"]])[match["id"]]
        if is_position_full(match, position, participants):
            return None
        result = self.supabase.table("participants")\
            .select("*")\
            .eq("match_id", match["id"])\
            .eq("status", "waiting")\
            .in_("position", list(pool_positions(position)))\
            .order("created_at")\
            .limit(1)\
            .execute()
        if not result.data:
            return None
        waiter = result.data[0]
        outcome = self._charge_seat(
            match, waiter["id"], waiter["user_id"], waiter["position"],
            bool(waiter.get("rental_opt_in")), "tx_waitlist_promotion"
        )
        self.supabase.table("participants")\
            .update({"status": outcome["status"], "payment_status": outcome["payment_status"]})\
            .eq("id", waiter["id"])\
            .execute()
        logger.info(f"Promoted waiting participant {waiter['id']} in match {match['id']}: {outcome['status']}")
        return {"participant_id": waiter["id"], "user_id": waiter["user_id"], **outcome}

    def cancel_join(self, match_id: str, profile: dict, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or utcnow()
        user_id = profile["id"]
        result = self.supabase.table("participants")\
            .select("*")\
            .eq("match_id", match_id)\
            .eq("user_id", user_id)\
            .neq("status", "canceled")\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Participation not found")
        participant = result.data[0]
        match = self._get_match_row(match_id)

        # The refund is only written once the seat row is gone
        try:
            self.supabase.table("participants")\
                .delete()\
                .eq("id", participant["id"])\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        refund = 0
        percent = None
        if participant["status"] == "confirmed" and participant.get("payment_status"):
            paid = participation_cost(match, participant["position"], bool(participant.get("rental_opt_in")))
            percent = refund_percent(match["start_time"], self.points.refund_policy(), now)
            refund = refund_amount(paid, percent)
            if refund > 0:
                self.points.adjust_balance(
                    user_id, refund, "refund", "tx_refund",
                    reference_id=participant["id"], percent=percent
                )

        promoted = None
        if holds_seat(participant) and match.get("status") == "open" \
                and parse_timestamp(match["start_time"]) > now:
            promoted = self._promote_waiter(match, participant["position"])

        label = match_label(match)
        notifications = []
        if promoted:
            body_key = "push_waitlist_promoted_body" if promoted["status"] == "confirmed" \
                else "push_waitlist_pending_body"
            notifications.append(_notification(
                promoted["user_id"], "push_waitlist_promoted_title", body_key,
                f"/match/{match_id}", **label
            ))
        logger.info(f"User {user_id} canceled match {match_id}, refund {refund}")
        return {
            "success": True,
            "refund_amount": refund,
            "refund_percent": percent,
            "promoted_participant_id": promoted["participant_id"] if promoted else None,
            "match": match,
            "notifications": notifications
        }

    def my_matches(self, user_id: str, now: Optional[datetime] = None) -> List[dict]:
        """Active participations, newest first. Unpaid seats of started matches are canceled on read."""
        now = now or utcnow()
        result = self.supabase.table("participants")\
            .select(
                "id, position, status, payment_status, rental_opt_in, team_color, created_at, "
                "match:matches!match_id(id, start_time, entry_points, rental_fee, status, match_type, "
                "rink:rinks!rink_id(name_ko, name_en))"
            )\
            .eq("user_id", user_id)\
            .neq("status", "canceled")\
            .order("created_at", desc=True)\
            .execute()

        valid = []
        expired_ids = []
        for row in result.data or []:
            match = row.pop("match", None)
            if row["status"] == "pending_payment" and match and match.get("start_time") \
                    and parse_timestamp(match["start_time"]) < now:
                expired_ids.append(row["id"])
                continue
            valid.append({"participation": row, "match": match})

        if expired_ids:
            self.supabase.table("participants")\
                .update({"status": "canceled"})\
                .in_("id", expired_ids)\
                .execute()
            logger.info(f"Lazy expiration: canceled {len(expired_ids)} expired pending applications")
        return valid

    # ==================== Regular match responses ====================

    def respond(self, match_id: str, profile: dict, data: RegularResponseCreate) -> dict:
        result = self.supabase.table("matches")\
            .select("id, match_type, club_id")\
            .eq("id", match_id)\
            .limit(1)\
            .execute()
        match = result.data[0] if result.data else None
        if not match or match.get("match_type") != "regular":
            raise HTTPException(status_code=400, detail="Not a regular match")
        if not match.get("club_id") or not is_club_member(match["club_id"], profile["id"], self.supabase):
            raise HTTPException(status_code=403, detail="Not a club member")

        position = None
        if data.response == "attending":
            position = data.position or profile.get("position")
        row = {
            "match_id": match_id,
            "user_id": profile["id"],
            "response": data.response,
            "position": position,
            "updated_at": utcnow().isoformat()
        }
        try:
            upserted = self.supabase.table("regular_match_responses")\
                .upsert(row, on_conflict="match_id,user_id")\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return upserted.data[0] if upserted.data else row

    def list_responses(self, match_id: str) -> List[dict]:
        try:
            result = self.supabase.table("regular_match_responses")\
                .select("*, user:profiles!user_id(id, full_name, position)")\
                .eq("match_id", match_id)\
                .order("updated_at")\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching regular match responses: {e}")
            return []
        return result.data or []

    def my_response(self, match_id: str, user_id: str) -> Optional[dict]:
        result = self.supabase.table("regular_match_responses")\
            .select("*")\
            .eq("match_id", match_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    # ==================== Admin ====================

    def _check_owner(self, match: dict, profile: dict):
        if is_super_user(profile) or match.get("created_by") == profile["id"]:
            return
        raise HTTPException(status_code=403, detail="Unauthorized")

    def create_match(self, match_data: MatchCreate, profile: dict) -> Dict[str, Any]:
        if match_data.match_type == "regular" and not match_data.club_id:
            raise HTTPException(status_code=400, detail="Club is required for regular matches")
        row = match_data.model_dump()
        row.update({
            "start_time": kst_to_utc(match_data.start_time).isoformat(),
            "status": "open",
            "created_by": profile["id"]
        })
        try:
            result = self.supabase.table("matches").insert(row).execute()
        except Exception as e:
            logger.error(f"Error creating match: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to create match")
        match = self._get_match_row(result.data[0]["id"])

        notifications = []
        if match.get("match_type") == "regular" and match.get("club_id"):
            club_name = (match.get("club") or {}).get("name", "")
            members = self.supabase.table("club_memberships")\
                .select("user_id")\
                .eq("club_id", match["club_id"])\
                .eq("status", "approved")\
                .execute().data or []
            label = match_label(match)
            for member in members:
                if member["user_id"] == profile["id"]:
                    continue
                notifications.append(_notification(
                    member["user_id"], "push_regular_match_title", "push_regular_match_body",
                    f"/match/{match['id']}", club=club_name, **label
                ))
        match["notifications"] = notifications
        return match

    def update_match(self, match_id: str, match_data: MatchUpdate, profile: dict) -> Dict[str, Any]:
        match = self._get_match_row(match_id)
        self._check_owner(match, profile)
        update_data = match_data.model_dump(exclude_unset=True)
        new_status = update_data.pop("status", None)
        if "start_time" in update_data and update_data["start_time"]:
            update_data["start_time"] = kst_to_utc(update_data["start_time"]).isoformat()

        notifications = []
        if new_status == "canceled" and match.get("status") != "canceled":
            canceled = self.cancel_match_by_admin(match_id, profile)
            notifications = canceled["notifications"]
        elif new_status:
            update_data["status"] = new_status

        if update_data:
            try:
                self.supabase.table("matches")\
                    .update(update_data)\
                    .eq("id", match_id)\
                    .execute()
            except Exception as e:
                raise HTTPException(status_code=500, detail=str(e))
        updated = self._get_match_row(match_id)
        updated["notifications"] = notifications
        return updated

    def delete_match(self, match_id: str, profile: dict) -> bool:
        match = self._get_match_row(match_id)
        self._check_owner(match, profile)
        try:
            self.supabase.table("regular_match_responses")\
                .delete()\
                .eq("match_id", match_id)\
                .execute()
            self.supabase.table("participants")\
                .delete()\
                .eq("match_id", match_id)\
                .execute()
            result = self.supabase.table("matches")\
                .delete()\
                .eq("id", match_id)\
                .execute()
            return len(result.data or []) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def admin_matches(self, profile: dict, year: Optional[int] = None, month: Optional[int] = None) -> List[dict]:
        """Own matches (all for superusers) with participants, optionally limited to one KST month"""
        query = self.supabase.table("matches")\
            .select(f"*, {RINK_EMBED}, {CLUB_EMBED}")
        if not is_super_user(profile):
            query = query.eq("created_by", profile["id"])
        if year and month:
            start, end = month_range_utc(year, month)
            query = query.gte("start_time", start.isoformat()).lt("start_time", end.isoformat())
        try:
            matches = query.order("start_time").execute().data or []
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not matches:
            return []
        participants = self.supabase.table("participants")\
            .select(f"*, {USER_EMBED}")\
            .in_("match_id", [m["id"] for m in matches])\
            .order("created_at")\
            .execute().data or []
        grouped: Dict[str, List[dict]] = {}
        for participant in participants:
            grouped.setdefault(participant["match_id"], []).append(participant)
        for match in matches:
            match["participants"] = grouped.get(match["id"], [])
            self._with_counts(match, match["participants"])
        return matches

    def update_payment_status(self, participant_id: str, payment_status: bool, profile: dict) -> dict:
        result = self.supabase.table("participants")\
            .select("*")\
            .eq("id", participant_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Participant not found")
        participant = result.data[0]
        match = self._get_match_row(participant["match_id"])
        self._check_owner(match, profile)
        try:
            updated = self.supabase.table("participants")\
                .update({"payment_status": payment_status})\
                .eq("id", participant_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return updated.data[0] if updated.data else {**participant, "payment_status": payment_status}

    def cancel_match_by_admin(self, match_id: str, profile: dict) -> Dict[str, Any]:
        """Cancel the match: paid participants get entry and rental back in full"""
        match = self._get_match_row(match_id)
        self._check_owner(match, profile)
        participants = self.supabase.table("participants")\
            .select("*")\
            .eq("match_id", match_id)\
            .neq("status", "canceled")\
            .execute().data or []

        refunds: Dict[str, int] = {}
        for participant in participants:
            if not participant.get("payment_status"):
                continue
            amount = participation_cost(match, participant["position"], bool(participant.get("rental_opt_in")))
            if amount <= 0:
                continue
            try:
                self.points.adjust_balance(
                    participant["user_id"], amount, "refund", "tx_admin_cancel_refund",
                    reference_id=participant["id"]
                )
                refunds[participant["user_id"]] = refunds.get(participant["user_id"], 0) + amount
            except HTTPException as e:
                logger.error(f"Refund failed for participant {participant['id']}: {e.detail}")

        if participants:
            self.supabase.table("participants")\
                .update({"status": "canceled"})\
                .in_("id", [p["id"] for p in participants])\
                .execute()
        self.supabase.table("matches")\
            .update({"status": "canceled"})\
            .eq("id", match_id)\
            .execute()
        logger.info(f"Match {match_id} canceled by {profile['id']}: {len(refunds)} refunds")

        label = match_label(match)
        notifications = [
            _notification(
                user_id, "push_match_canceled_title", "push_match_canceled_body",
                f"/match/{match_id}", refund=f"{refunds.get(user_id, 0):,}", **label
            )
            for user_id in dict.fromkeys(p["user_id"] for p in participants)
        ]
        return {
            "success": True,
            "refunded_count": len(refunds),
            "refunded_total": sum(refunds.values()),
            "canceled_participants": len(participants),
            "notifications": notifications
        }

    # ==================== Bulk ====================

    def create_bulk_matches(self, generated: List[GeneratedMatch], profile: dict) -> List[str]:
        if not generated:
            raise HTTPException(status_code=400, detail="No matches to create")
        rows = []
        for item in generated:
            if item.match_type == "regular" and not item.club_id:
                raise HTTPException(status_code=400, detail="Club is required for regular matches")
            rows.append({
                "rink_id": item.rink_id,
                "club_id": item.club_id,
                "start_time": kst_to_utc(item.start_time).isoformat(),
                "match_type": item.match_type,
                "entry_points": item.entry_points,
                "bank_account": item.bank_account,
                "max_skaters": item.max_skaters,
                "max_goalies": item.max_goalies,
                "max_guests": item.max_guests,
                "goalie_free": item.goalie_free,
                "rental_available": item.rental_available,
                "rental_fee": item.rental_fee,
                "description": item.description,
                "status": "open",
                "created_by": profile["id"]
            })
        try:
            result = self.supabase.table("matches").insert(rows).execute()
        except Exception as e:
            logger.error(f"Bulk match creation failed: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        ids = [row["id"] for row in result.data or []]
        logger.info(f"Bulk created {len(ids)} matches for {profile['id']}")
        return ids

    def previous_month_patterns(self, year: int, month: int, profile: dict) -> List[dict]:
        """Patterns of the month before year/month, from the caller's own matches"""
        prev_year, prev_month = (year - 1, 12) if month == 1 else (year, month - 1)
        start, end = month_range_utc(prev_year, prev_month)
        query = self.supabase.table("matches")\
            .select("*")\
            .gte("start_time", start.isoformat())\
            .lt("start_time", end.isoformat())\
            .neq("status", "canceled")
        if not is_super_user(profile):
            query = query.eq("created_by", profile["id"])
        matches = query.order("start_time").execute().data or []
        return group_matches_by_pattern(matches)

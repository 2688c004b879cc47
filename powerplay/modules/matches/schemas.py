from pydantic import BaseModel
from typing import Optional, List, Literal, Dict
from datetime import datetime

Position = Literal["FW", "DF", "G"]
MatchType = Literal["open_hockey", "regular", "training", "team_match"]
MatchStatus = Literal["open", "closed", "canceled"]
WeeklyOption = Literal["every", "week13", "week24", "custom"]


class MatchCreate(BaseModel):
    rink_id: Optional[str] = None
    club_id: Optional[str] = None
    start_time: str  # KST wall clock, e.g. "2026-03-04T22:00"
    entry_points: int = 0
    rental_fee: int = 0
    rental_available: bool = False
    goalie_free: bool = False
    max_skaters: int = 20
    max_goalies: int = 2
    max_guests: Optional[int] = None
    match_type: MatchType = "open_hockey"
    guest_open_hours_before: Optional[int] = None
    description: Optional[str] = None
    bank_account: Optional[str] = None


class MatchUpdate(BaseModel):
    rink_id: Optional[str] = None
    club_id: Optional[str] = None
    start_time: Optional[str] = None
    entry_points: Optional[int] = None
    rental_fee: Optional[int] = None
    rental_available: Optional[bool] = None
    goalie_free: Optional[bool] = None
    max_skaters: Optional[int] = None
    max_goalies: Optional[int] = None
    max_guests: Optional[int] = None
    match_type: Optional[MatchType] = None
    guest_open_hours_before: Optional[int] = None
    status: Optional[MatchStatus] = None
    description: Optional[str] = None
    bank_account: Optional[str] = None


class MatchResponse(BaseModel):
    id: str
    rink_id: Optional[str] = None
    club_id: Optional[str] = None
    start_time: datetime
    entry_points: int = 0
    rental_fee: int = 0
    rental_available: bool = False
    goalie_free: bool = False
    max_skaters: int = 0
    max_goalies: int = 0
    max_guests: Optional[int] = None
    match_type: str = "open_hockey"
    guest_open_hours_before: Optional[int] = None
    status: str = "open"
    description: Optional[str] = None
    bank_account: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    rink: Optional[dict] = None
    club: Optional[dict] = None
    participants_count: Dict[str, int] = {}
    remaining: Dict[str, int] = {}
    participants: Optional[List[dict]] = None


class JoinMatchRequest(BaseModel):
    position: Position
    rental_opt_in: bool = False


class JoinMatchResponse(BaseModel):
    participant_id: str
    status: str
    payment_status: bool
    cost: int
    points: Optional[int] = None


class CancelJoinResponse(BaseModel):
    success: bool = True
    refund_amount: int = 0
    refund_percent: Optional[int] = None
    promoted_participant_id: Optional[str] = None


class MyMatchResponse(BaseModel):
    participation: dict
    match: Optional[dict] = None


class RegularResponseCreate(BaseModel):
    response: Literal["attending", "not_attending"]
    position: Optional[Position] = None


class PaymentStatusUpdate(BaseModel):
    payment_status: bool


class AdminCancelResponse(BaseModel):
    success: bool = True
    refunded_count: int = 0
    refunded_total: int = 0
    canceled_participants: int = 0


class SchedulePattern(BaseModel):
    id: Optional[str] = None
    rink_id: Optional[str] = None
    club_id: Optional[str] = None
    days_of_week: List[int] = []  # 0 = Sunday
    hour: str = "22"
    minute: str = "00"
    weekly_option: WeeklyOption = "every"
    custom_weeks: Optional[List[int]] = None
    selected_dates: Optional[List[str]] = None  # ["2026-03-04", ...]
    match_type: MatchType = "open_hockey"
    entry_points: Optional[int] = None
    bank_account: Optional[str] = None
    max_skaters: Optional[int] = None
    max_goalies: Optional[int] = None
    max_guests: Optional[int] = None
    goalie_free: Optional[bool] = None
    rental_available: Optional[bool] = None
    rental_fee: Optional[int] = None
    description: Optional[str] = None


class BulkGenerateRequest(BaseModel):
    year: int
    month: int
    patterns: List[SchedulePattern]


class GeneratedMatch(BaseModel):
    date: str
    day_of_week: int
    start_time: str  # KST wall clock
    pattern_id: Optional[str] = None
    rink_id: Optional[str] = None
    club_id: Optional[str] = None
    match_type: MatchType = "open_hockey"
    entry_points: int = 0
    bank_account: Optional[str] = None
    max_skaters: int = 20
    max_goalies: int = 2
    max_guests: Optional[int] = None
    goalie_free: bool = False
    rental_available: bool = False
    rental_fee: int = 0
    description: Optional[str] = None


class BulkCreateRequest(BaseModel):
    matches: List[GeneratedMatch]


class BulkCreateResponse(BaseModel):
    created: int
    match_ids: List[str]

"""
Roster capacity and entry cost rules.

Forwards and defense share the skater pool (max_skaters); goalies have
their own pool (max_goalies). A seat is held by every participant that is
neither canceled nor waiting, so pending_payment rows count as taken.
"""

from typing import Dict, Iterable, Tuple

SKATER_POSITIONS = ("FW", "DF")
GOALIE_POSITIONS = ("G",)
POSITIONS = SKATER_POSITIONS + GOALIE_POSITIONS
SEAT_FREE_STATUSES = ("canceled", "waiting")


def pool_positions(position: str) -> Tuple[str, ...]:
    """Positions that compete for the same seats as `position`"""
    return GOALIE_POSITIONS if position in GOALIE_POSITIONS else SKATER_POSITIONS


def holds_seat(participant: dict) -> bool:
    return participant.get("status") not in SEAT_FREE_STATUSES


def occupied_counts(participants: Iterable[dict]) -> Dict[str, int]:
    counts = {"fw": 0, "df": 0, "g": 0}
    for participant in participants:
        key = (participant.get("position") or "").lower()
        if key in counts and holds_seat(participant):
            counts[key] += 1
    return counts


def remaining_seats(match: dict, participants: Iterable[dict]) -> Dict[str, int]:
    """Seats left per position; fw and df both report the shared skater pool"""
    counts = occupied_counts(participants)
    skaters_left = max(0, (match.get("max_skaters") or 0) - counts["fw"] - counts["df"])
    goalies_left = max(0, (match.get("max_goalies") or 0) - counts["g"])
    return {"fw": skaters_left, "df": skaters_left, "g": goalies_left}


def is_position_full(match: dict, position: str, participants: Iterable[dict]) -> bool:
    return remaining_seats(match, participants)[position.lower()] <= 0


def participation_cost(match: dict, position: str, rental_opt_in: bool = False) -> int:
    """Entry points (free for goalies on goalie_free matches) plus the rental fee when opted in"""
    if position in GOALIE_POSITIONS and match.get("goalie_free"):
        entry = 0
    else:
        entry = match.get("entry_points") or 0
    rental = (match.get("rental_fee") or 0) if rental_opt_in else 0
    return entry + rental

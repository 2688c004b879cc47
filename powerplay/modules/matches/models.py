# Supabase tables: matches, participants, regular_match_responses
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

matches:
- id: uuid (primary key)
- rink_id: uuid (foreign key to rinks.id, nullable)
- club_id: uuid (foreign key to clubs.id, nullable) - required for regular matches
- start_time: timestamptz (not null) - stored in UTC, entered in KST
- entry_points: integer (default: 0)
- rental_fee: integer (default: 0)
- rental_available: boolean (default: false)
- goalie_free: boolean (default: false) - goalies pay no entry points
- max_skaters: integer (default: 20) - shared by FW and DF
- max_goalies: integer (default: 2)
- max_guests: integer (nullable) - training sessions only
- match_type: text (default: 'open_hockey') - values: open_hockey, regular, training, team_match
- guest_open_hours_before: integer (nullable) - regular matches: non-members may join from
  start_time minus this many hours (default settings.default_guest_open_hours)
- status: text (default: 'open') - values: open, closed, canceled
- description: text (nullable)
- bank_account: text (nullable)
- created_by: uuid (foreign key to profiles.id)
- created_at: timestamp (default: now())

participants:
- id: uuid (primary key)
- match_id: uuid (foreign key to matches.id, not null)
- user_id: uuid (foreign key to profiles.id, not null)
- position: text (not null) - values: FW, DF, G
- status: text (not null) - values: applied, confirmed, waiting, canceled, pending_payment
- payment_status: boolean (default: false)
- rental_opt_in: boolean (default: false)
- team_color: text (nullable) - values: Black, White
- created_at: timestamp (default: now()) - waitlist order
- unique constraint on (match_id, user_id); a canceled row is reused on re-join

regular_match_responses:
- match_id: uuid (foreign key to matches.id)
- user_id: uuid (foreign key to profiles.id)
- response: text - values: attending, not_attending
- position: text (nullable) - null when not attending
- updated_at: timestamp
- unique constraint on (match_id, user_id)
"""

MATCH_TYPES = ("open_hockey", "regular", "training", "team_match")
MATCH_STATUSES = ("open", "closed", "canceled")
PARTICIPANT_STATUSES = ("applied", "confirmed", "waiting", "canceled", "pending_payment")

RINK_EMBED = "rink:rinks!rink_id(id, name_ko, name_en, address, map_url, lat, lng, rink_type)"
CLUB_EMBED = "club:clubs!club_id(id, name, logo_url, kakao_open_chat_url)"
USER_EMBED = "user:profiles!user_id(id, full_name, email, position)"

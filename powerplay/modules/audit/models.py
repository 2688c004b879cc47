# Supabase table: audit_logs
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

audit_logs:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id)
- action_type: text (not null) - values: see AUDIT_ACTIONS
- description: text - human readable, also used as the push body
- metadata: jsonb (default: {})
- created_at: timestamp (default: now())
"""

AUDIT_ACTIONS = (
    "USER_SIGNUP",
    "CLUB_CREATE",
    "MATCH_CREATE",
    "MATCH_JOIN",
    "MATCH_CANCEL",
    "POINT_CHARGE_REQUEST",
    "PUSH_SUBSCRIBE",
    "CHAT_CREATE",
    "OTHER",
)

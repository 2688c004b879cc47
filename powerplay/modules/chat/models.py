# Supabase tables: chat_rooms, chat_messages
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

chat_rooms:
- id: uuid (primary key)
- participant_1: uuid (foreign key to profiles.id) - lexicographically smaller user id
- participant_2: uuid (foreign key to profiles.id)
- match_id: uuid (foreign key to matches.id, nullable) - match the conversation started from
- created_at: timestamp (default: now())
- updated_at: timestamp - bumped on every message, rooms are listed by it
- unique constraint on (participant_1, participant_2)

chat_messages:
- id: uuid (primary key)
- room_id: uuid (foreign key to chat_rooms.id)
- sender_id: uuid (foreign key to profiles.id)
- content: text (not null)
- is_read: boolean (default: false)
- created_at: timestamp (default: now())

RPC:
- get_unread_chat_count(target_user_id uuid) -> integer
"""

PROFILE_FIELDS = "id, full_name, primary_club_id"

# Supabase tables: clubs, club_memberships, club_notices
# Storage bucket: club-logos (settings.club_logo_bucket), public read
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

clubs:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- logo_url: text (nullable) - public URL in the club-logos bucket
- contact: text (nullable)
- kakao_open_chat_url: text (nullable)
- created_by: uuid (foreign key to profiles.id)
- created_at: timestamp (default: now())

club_memberships:
- id: uuid (primary key)
- club_id: uuid (foreign key to clubs.id, not null)
- user_id: uuid (foreign key to profiles.id, not null)
- role: text (not null, default: 'member') - values: member, admin
- status: text (not null, default: 'pending') - values: pending, approved, rejected
- intro_message: text (nullable) - shown to club admins when reviewing
- created_at: timestamp (default: now())
- unique constraint on (club_id, user_id)

club_notices:
- id: uuid (primary key)
- club_id: uuid (foreign key to clubs.id, not null)
- author_id: uuid (foreign key to profiles.id)
- title: text (not null)
- content: text
- created_at: timestamp (default: now())
"""

LOGO_CONTENT_TYPES = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}
MAX_LOGO_BYTES = 2 * 1024 * 1024

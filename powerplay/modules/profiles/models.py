# Supabase table: profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, = auth.users.id; row created by sign-up trigger)
- email: text
- full_name: text (nullable)
- role: text (not null, default: 'user') - values: user, admin, superuser
- position: text (nullable) - values: FW, DF, G
- preferred_lang: text (default: 'ko') - values: ko, en
- onboarding_completed: boolean (default: false)
- points: integer (not null, default: 0) - point balance
- birth_date: date (nullable)
- primary_club_id: uuid (foreign key to clubs.id, nullable)
- deleted_at: timestamp (nullable) - soft delete marker
- created_at: timestamp (default: now())
"""

POSITIONS = ("FW", "DF", "G")
LANGUAGES = ("ko", "en")

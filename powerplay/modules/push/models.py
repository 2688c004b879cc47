# Supabase tables: push_subscriptions, notification_logs
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

push_subscriptions:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null)
- endpoint: text (not null) - push service URL of the browser
- p256dh: text (not null)
- auth: text (not null)
- created_at: timestamp (default: now())
- unique constraint on (endpoint, user_id) - one browser may serve several accounts

notification_logs:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id)
- title: text
- body: text
- url: text
- status: text - values: sent, failed, no_subscription
- devices_sent: integer (default: 0)
- error_message: text (nullable) - '; ' joined per-device errors
- created_at: timestamp (default: now())
"""

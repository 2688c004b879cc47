# Supabase tables: point_charge_requests, point_transactions, platform_settings
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

point_charge_requests:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null)
- amount: integer (not null) - at least settings.min_charge_amount
- depositor_name: text - name on the bank transfer
- status: text (default: 'pending') - values: pending, confirmed, rejected, canceled
- reject_reason: text (nullable)
- confirmed_by: uuid (foreign key to profiles.id, nullable) - superuser who reviewed
- confirmed_at: timestamp (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

point_transactions:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null)
- type: text (not null) - values: charge, use, refund, admin_adjustment
- amount: integer (not null) - signed, negative for use
- balance_after: integer (not null)
- description: text (nullable) - written in the user's preferred language
- reference_id: uuid (nullable) - charge request or participant id
- created_at: timestamp (default: now())

platform_settings:
- key: text (primary key) - values: bank_account, refund_policy
- value: jsonb
    bank_account:  {"bank": "...", "account": "...", "holder": "..."}
    refund_policy: {"rules": [{"hours_before_match": 24, "refund_percent": 100}, ...]}
                   rules stored sorted by hours_before_match descending
- updated_by: uuid (nullable)
- updated_at: timestamp
"""

TRANSACTION_TYPES = ("charge", "use", "refund", "admin_adjustment")
CHARGE_STATUSES = ("pending", "confirmed", "rejected", "canceled")

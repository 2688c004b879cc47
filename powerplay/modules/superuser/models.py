# Supabase tables: platform_settings (plus the points, matches and push tables it moderates)
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

platform_settings:
- key: text (primary key) - values: bank_account, refund_policy
- value: jsonb
  - bank_account: {"bank": "...", "account": "...", "holder": "..."}
  - refund_policy: {"rules": [{"hours_before_match": 24, "refund_percent": 100}, ...]}
    rules are stored sorted by hours_before_match, descending
- updated_at: timestamp
"""

SETTING_KEYS = ("bank_account", "refund_policy")

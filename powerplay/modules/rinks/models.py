# Supabase table: rinks
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

rinks:
- id: uuid (primary key)
- name_ko: text (not null)
- name_en: text (not null)
- address: text (nullable) - Korean road address, first two tokens form the region
- map_url: text (nullable)
- lat: double precision (nullable)
- lng: double precision (nullable)
- rink_type: text (default: 'FULL') - values: FULL, MINI
"""

RINK_TYPES = ("FULL", "MINI")

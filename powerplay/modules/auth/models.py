# Supabase Auth: auth.users is managed by Supabase
# The profiles row (id = auth user id) is created by a database trigger on sign-up,
# see powerplay/modules/profiles/models.py

"""
user_metadata written on sign-up:
- full_name: text (optional)

OAuth providers: google (offline access, consent prompt), kakao
Redirect target after email confirmation / OAuth: {site_url}/ko/auth/callback
"""

OAUTH_PROVIDERS = ("google", "kakao")

"""
Shared pytest configuration.

Every test gets a fresh in-memory Supabase fake. Tokens look like "token-<user id>"
and resolve to that user without calling Supabase Auth.
"""

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from powerplay.config import settings
from powerplay.database.supabase_client import get_supabase, get_service_supabase
from powerplay.main import app
from powerplay.modules.auth.service import AuthService, clear_auth_cache
from powerplay.modules.chat import routes as chat_routes
from tests.fake_supabase import FakeSupabase

TOKEN_PREFIX = "token-"


def auth_headers(user_id):
    return {"Authorization": f"Bearer {TOKEN_PREFIX}{user_id}"}


def make_profile(db, user_id, **fields):
    row = {
        "id": user_id,
        "email": f"{user_id}@example.com",
        "full_name": user_id.title(),
        "role": "user",
        "position": "FW",
        "preferred_lang": "ko",
        "onboarding_completed": True,
        "points": 0,
        "deleted_at": None,
    }
    row.update(fields)
    return db.seed("profiles", row)[0]


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture(autouse=True)
def no_push_credentials(monkeypatch):
    """Push sends are logged as failed instead of reaching the network."""
    monkeypatch.setattr(settings, "vapid_public_key", None)
    monkeypatch.setattr(settings, "vapid_private_key", None)


@pytest.fixture
def fake_auth(monkeypatch):
    def fake_get_current_user(self, token):
        if not token.startswith(TOKEN_PREFIX):
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        user_id = token[len(TOKEN_PREFIX):]
        return {"id": user_id, "email": f"{user_id}@example.com", "user_metadata": {}}

    monkeypatch.setattr(AuthService, "get_current_user", fake_get_current_user)
    clear_auth_cache()


@pytest.fixture
def client(db, fake_auth, monkeypatch):
    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_service_supabase] = lambda: db
    monkeypatch.setattr(chat_routes, "get_supabase", lambda: db)
    monkeypatch.setattr(chat_routes, "get_service_supabase", lambda: db)
    yield TestClient(app)
    app.dependency_overrides.clear()

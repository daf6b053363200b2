"""Shared pytest fixtures and configuration

Outbound HTTP goes through httpx.MockTransport and Supabase is replaced by an
in-memory fake of its query builder, so no test touches the network.
"""

import os
import uuid
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from cryptography.fernet import Fernet

TEST_ENCRYPTION_KEY = Fernet.generate_key().decode()

# Settings are read at import time by main/app modules
os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-role-key")
os.environ.setdefault("ENCRYPTION_KEY", TEST_ENCRYPTION_KEY)

from config import Settings  # noqa: E402
from app.oauth.engine import OAuthFlowEngine  # noqa: E402
from app.services.credential_store import CredentialStore, PublicationStore  # noqa: E402
from app.services.token_manager import TokenLifecycleManager  # noqa: E402


# ==================== Fake Supabase ====================


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Enough of the postgrest builder for the code under test"""

    def __init__(self, db, table, op, payload=None, on_conflict=None):
        self.db = db
        self.table_name = table
        self.op = op
        self.payload = payload
        self.on_conflict = on_conflict
        self.filters = []
        self._limit = None

    def select(self, *columns):
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def lte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) <= value)
        return self

    def limit(self, n):
        self._limit = n
        return self

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        if (self.table_name, self.op) in self.db.fail_on:
            raise RuntimeError(f"{self.op} on {self.table_name} failed")

        rows = self.db.tables.setdefault(self.table_name, [])

        if self.op == "select":
            found = [dict(r) for r in rows if self._matches(r)]
            return FakeResponse(found[: self._limit] if self._limit else found)

        if self.op == "insert":
            row = {"id": str(uuid.uuid4()), **self.payload}
            rows.append(row)
            return FakeResponse([dict(row)])

        if self.op == "upsert":
            keys = [k.strip() for k in self.on_conflict.split(",")]
            for existing in rows:
                if all(existing.get(k) == self.payload.get(k) for k in keys):
                    existing.update(self.payload)
                    return FakeResponse([dict(existing)])
            row = {"id": str(uuid.uuid4()), **self.payload}
            rows.append(row)
            return FakeResponse([dict(row)])

        if self.op == "update":
            matched = [r for r in rows if self._matches(r)]
            for r in matched:
                r.update(self.payload)
            return FakeResponse([dict(r) for r in matched])

        if self.op == "delete":
            matched = [r for r in rows if self._matches(r)]
            self.db.tables[self.table_name] = [r for r in rows if not self._matches(r)]
            return FakeResponse(matched)

        raise AssertionError(f"unsupported op {self.op}")


class FakeTable:
    def __init__(self, db, name):
        self.db = db
        self.name = name

    def select(self, *columns):
        return FakeQuery(self.db, self.name, "select")

    def insert(self, payload):
        return FakeQuery(self.db, self.name, "insert", payload)

    def upsert(self, payload, on_conflict=""):
        return FakeQuery(self.db, self.name, "upsert", payload, on_conflict)

    def update(self, payload):
        return FakeQuery(self.db, self.name, "update", payload)

    def delete(self):
        return FakeQuery(self.db, self.name, "delete")


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.fail_on = set()

    def table(self, name):
        return FakeTable(self, name)

    def rows(self, name):
        return self.tables.get(name, [])


# ==================== Mock HTTP ====================


class MockRoutes:
    """Route table for httpx.MockTransport; records every request"""

    def __init__(self):
        self.routes = []
        self.calls = []

    def add(self, method, url, status=200, json=None, handler=None, exc=None, headers=None):
        self.routes.append((method.upper(), url, status, json, handler, exc, headers))

    async def _handle(self, request):
        self.calls.append(request)
        for method, url, status, body, handler, exc, headers in self.routes:
            if request.method == method and str(request.url).startswith(url):
                if exc is not None:
                    raise exc
                if handler is not None:
                    response = handler(request)
                    if not isinstance(response, httpx.Response):
                        response = await response
                    return response
                return httpx.Response(status, json=body, headers=headers)
        return httpx.Response(404, json={"error": {"message": f"no route for {request.method} {request.url}"}})

    def client(self):
        return httpx.AsyncClient(transport=httpx.MockTransport(self._handle))

    def calls_to(self, url, method=None):
        return [
            c for c in self.calls
            if str(c.url).startswith(url) and (method is None or c.method == method.upper())
        ]


# ==================== Fixtures ====================


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-role-key",
        encryption_key=TEST_ENCRYPTION_KEY,
        twitter_client_id="tw-client",
        twitter_client_secret="tw-secret",
        linkedin_client_id="li-client",
        linkedin_client_secret="li-secret",
        instagram_client_id="ig-client",
        instagram_client_secret="ig-secret",
        facebook_client_id="fb-client",
        facebook_client_secret="fb-secret",
        tiktok_client_id="",
        tiktok_client_secret="",
        app_origin="https://app.example.com",
    )


@pytest.fixture
def cipher():
    return Fernet(TEST_ENCRYPTION_KEY.encode())


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def routes():
    return MockRoutes()


@pytest.fixture
def http_client(routes):
    return routes.client()


@pytest.fixture
def store(supabase, cipher):
    return CredentialStore(supabase, cipher)


@pytest.fixture
def publications(supabase):
    return PublicationStore(supabase)


@pytest.fixture
def engine(settings, http_client):
    return OAuthFlowEngine(settings, http_client)


@pytest.fixture
def token_manager(store, engine):
    return TokenLifecycleManager(store, engine)


@pytest.fixture
def make_account(supabase, cipher):
    """Factory fixture inserting an encrypted social_accounts row, returns its id"""

    def _create(
        platform="twitter",
        user_id="user-1",
        access_token="access-1",
        refresh_token="refresh-1",
        expires_at=None,
        platform_user_id="platform-user-1",
    ):
        account_id = str(uuid.uuid4())
        supabase.tables.setdefault("social_accounts", []).append({
            "id": account_id,
            "user_id": user_id,
            "platform": platform,
            "platform_user_id": platform_user_id,
            "account_name": "Test Account",
            "account_handle": "@test",
            "access_token_encrypted": cipher.encrypt(access_token.encode()).decode(),
            "refresh_token_encrypted": cipher.encrypt(refresh_token.encode()).decode() if refresh_token else None,
            "token_expires_at": expires_at.isoformat() if expires_at else None,
            "is_connected": True,
        })
        return account_id

    return _create


@pytest.fixture
def in_two_hours():
    return datetime.now(timezone.utc) + timedelta(hours=2)


@pytest.fixture
def an_hour_ago():
    return datetime.now(timezone.utc) - timedelta(hours=1)

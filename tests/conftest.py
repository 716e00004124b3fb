from __future__ import annotations

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import jwt
import pytest
from starlette.testclient import TestClient

from pantry_app.core.rate_limit import limiter
from pantry_app.database.supabase_client import get_service_supabase, get_supabase

PRIMARY_KEYS = {
    "users": "user_id",
    "groups": "group_id",
    "lists": "list_id",
    "list_items": "list_item_id",
    "item_catalog": "item_id",
    "item_categories": "category_id",
    "pantries": "pantry_id",
    "pantry_locations": "location_id",
    "inventory_items": "inventory_id",
}

TOKEN_SECRET = "test-secret-for-fake-gotrue"


def make_token(user_id: str, email: str, **extra: Any) -> str:
    payload = {"sub": user_id, "email": email, "role": "authenticated", **extra}
    return jwt.encode(payload, TOKEN_SECRET, algorithm="HS256")


class FakeAuthError(Exception):
    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class FakeBackend:
    """Shared state behind every fake client: tables plus the auth user directory."""

    def __init__(self):
        self.tables: Dict[str, List[dict]] = {}
        self.accounts: Dict[str, dict] = {}
        self.insert_failures: Dict[str, Callable[[], None]] = {}
        self.refresh_on_set_session: Dict[str, str] = {}
        self.reject_set_session = False
        self.set_session_calls: List[tuple] = []
        self.signed_out: List[str] = []
        self.user_updates: List[dict] = []
        self.sign_in_error: Optional[FakeAuthError] = None
        self.require_confirmation = False

    def register(self, email: str, password: str, confirmed: bool = True) -> str:
        user_id = str(uuid.uuid4())
        self.accounts[email.lower()] = {
            "id": user_id,
            "email": email,
            "password": password,
            "confirmed": confirmed,
        }
        return user_id

    def rows(self, table: str) -> List[dict]:
        return self.tables.setdefault(table, [])

    def seed(self, table: str, **row: Any) -> dict:
        pk = PRIMARY_KEYS.get(table)
        if pk and not row.get(pk):
            row[pk] = str(uuid.uuid4())
        row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        self.rows(table).append(row)
        return row


class FakeResponse:
    def __init__(self, data: List[dict]):
        self.data = data


class FakeQuery:
    def __init__(self, backend: FakeBackend, table: str):
        self.backend = backend
        self.table = table
        self.action = "select"
        self.columns = "*"
        self.payload: Any = None
        self.filters: List[Callable[[dict], bool]] = []
        self._order: Optional[tuple] = None
        self._limit: Optional[int] = None

    def select(self, columns: str = "*"):
        self.action = "select"
        self.columns = columns
        return self

    def insert(self, payload: Any):
        self.action = "insert"
        self.payload = payload
        return self

    def update(self, payload: dict):
        self.action = "update"
        self.payload = payload
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, column: str, value: Any):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column: str, values: List[Any]):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column: str, desc: bool = False):
        self._order = (column, desc)
        return self

    def limit(self, size: int):
        self._limit = size
        return self

    def _project(self, row: dict) -> dict:
        if self.columns.strip() == "*":
            return dict(row)
        wanted = [c.strip() for c in self.columns.split(",")]
        return {c: row.get(c) for c in wanted}

    def execute(self) -> FakeResponse:
        rows = self.backend.rows(self.table)

        if self.action == "insert":
            failure = self.backend.insert_failures.pop(self.table, None)
            if failure is not None:
                failure()
                raise RuntimeError(f"duplicate key value violates unique constraint on {self.table}")
            payloads = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for payload in payloads:
                row = dict(payload)
                pk = PRIMARY_KEYS.get(self.table)
                if pk and not row.get(pk):
                    row[pk] = str(uuid.uuid4())
                row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
                rows.append(row)
                inserted.append(dict(row))
            return FakeResponse(inserted)

        matched = [row for row in rows if all(f(row) for f in self.filters)]

        if self.action == "update":
            for row in matched:
                row.update(self.payload)
            return FakeResponse([dict(row) for row in matched])

        if self.action == "delete":
            for row in matched:
                rows.remove(row)
            return FakeResponse([dict(row) for row in matched])

        if self._order is not None:
            column, desc = self._order
            matched.sort(key=lambda r: (r.get(column) is None, r.get(column) or ""), reverse=desc)
        if self._limit is not None:
            matched = matched[: self._limit]
        return FakeResponse([self._project(row) for row in matched])


class FakeAuth:
    def __init__(self, backend: FakeBackend):
        self.backend = backend
        self.session = None

    def _session_for(self, account: dict, access_token: Optional[str] = None, refresh_token: Optional[str] = None):
        user = SimpleNamespace(id=account["id"], email=account["email"])
        return SimpleNamespace(
            access_token=access_token or make_token(account["id"], account["email"]),
            refresh_token=refresh_token or f"refresh-{uuid.uuid4().hex[:12]}",
            user=user,
        )

    def get_session(self):
        return self.session

    def set_session(self, access_token: str, refresh_token: str):
        self.backend.set_session_calls.append((access_token, refresh_token))
        if self.backend.reject_set_session:
            raise FakeAuthError("Invalid Refresh Token: Refresh Token Not Found", "refresh_token_not_found")
        claims = jwt.decode(access_token, options={"verify_signature": False})
        account = {"id": claims["sub"], "email": claims.get("email")}
        refreshed = self.backend.refresh_on_set_session.pop(access_token, None)
        if refreshed is not None:
            self.session = self._session_for(account, refreshed, f"refresh-{uuid.uuid4().hex[:12]}")
        else:
            self.session = self._session_for(account, access_token, refresh_token)
        return SimpleNamespace(user=self.session.user, session=self.session)

    def sign_in_with_password(self, credentials: dict):
        if self.backend.sign_in_error is not None:
            raise self.backend.sign_in_error
        account = self.backend.accounts.get(credentials["email"].lower())
        if account is None or account["password"] != credentials["password"]:
            raise FakeAuthError("Invalid login credentials", "invalid_credentials")
        if not account["confirmed"]:
            raise FakeAuthError("Email not confirmed", "email_not_confirmed")
        self.session = self._session_for(account)
        return SimpleNamespace(user=self.session.user, session=self.session)

    def sign_up(self, credentials: dict):
        email = credentials["email"]
        if email.lower() in self.backend.accounts:
            raise FakeAuthError("User already registered", "user_already_exists")
        confirmed = not self.backend.require_confirmation
        self.backend.register(email, credentials["password"], confirmed=confirmed)
        account = self.backend.accounts[email.lower()]
        account["metadata"] = credentials.get("options", {}).get("data", {})
        user = SimpleNamespace(id=account["id"], email=email)
        if not confirmed:
            return SimpleNamespace(user=user, session=None)
        self.session = self._session_for(account)
        return SimpleNamespace(user=user, session=self.session)

    def sign_out(self):
        if self.session is not None:
            self.backend.signed_out.append(self.session.user.id)
        self.session = None

    def update_user(self, attributes: dict):
        self.backend.user_updates.append(attributes)
        return SimpleNamespace(user=self.session.user if self.session else None)


class FakeSupabase:
    def __init__(self, backend: FakeBackend):
        self.backend = backend
        self.auth = FakeAuth(backend)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self.backend, name)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def app(backend):
    from pantry_app.main import app as fastapi_app

    fastapi_app.dependency_overrides[get_supabase] = lambda: FakeSupabase(backend)
    fastapi_app.dependency_overrides[get_service_supabase] = lambda: FakeSupabase(backend)
    limiter.enabled = False
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()
    limiter.enabled = True


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def csrf_token(client: TestClient) -> str:
    return client.get("/auth/csrf").json()["csrf_token"]


def csrf_headers(client: TestClient) -> dict:
    return {"X-CSRF-Token": csrf_token(client)}


def login(client: TestClient, email: str, password: str, return_url: str = "/"):
    return client.post(
        "/auth/login",
        data={
            "email": email,
            "password": password,
            "return_url": return_url,
            "csrf_token": csrf_token(client),
        },
        follow_redirects=False,
    )


@pytest.fixture
def account(backend):
    email = "anna.maria@example.com"
    password = "secret123"
    user_id = backend.register(email, password)
    return SimpleNamespace(email=email, password=password, user_id=user_id)


@pytest.fixture
def signed_in(client, account):
    response = login(client, account.email, account.password)
    assert response.status_code == 303
    return client

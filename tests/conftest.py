"""Shared fixtures: an in-memory stand-in for the Supabase client and a wired TestClient."""
from __future__ import annotations

import os

# Keep settings deterministic before application modules are imported.
os.environ.setdefault("SUPABASE_URL", "http://supabase.test")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ["S3_BUCKET_NAME"] = ""
os.environ.setdefault("ENVIRONMENT", "test")

import copy  # noqa: E402
import itertools  # noqa: E402
import uuid  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from types import SimpleNamespace  # noqa: E402
from typing import Any, Callable, Dict, Iterator, List, Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from coderplex.core.rate_limit import limiter  # noqa: E402
from coderplex.database.supabase_client import (  # noqa: E402
    get_service_supabase, get_session_supabase, get_supabase
)
from coderplex.main import app  # noqa: E402
from coderplex.modules.auth.service import clear_auth_cache  # noqa: E402

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)
_sequence = itertools.count(1)

UNIQUE_KEYS = {
    "profiles": ("user_id",),
    "follows": ("follower_id", "following_id"),
}

PROFILE_DEFAULTS = {
    "name": None,
    "role": None,
    "bio": None,
    "company": None,
    "skills": None,
    "github": None,
    "linkedin": None,
    "website": None,
    "avatar_url": None,
    "is_student": False,
    "is_employed": False,
    "is_freelance": False,
    "followers_count": 0,
    "following_count": 0,
    "onboarding_completed": False,
    "updated_at": None,
}


def next_timestamp() -> str:
    """Strictly increasing ISO timestamps so ordering by created_at is deterministic."""
    return (_EPOCH + timedelta(seconds=next(_sequence))).isoformat()


class FakeResponse:
    def __init__(self, data: Any) -> None:
        self.data = data


class FakeQuery:
    """Just enough of the postgrest builder chain used by the services."""

    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self.db = db
        self.table_name = table
        self.action = "select"
        self.columns = "*"
        self.payload: Any = None
        self.filters: List[Callable[[Dict[str, Any]], bool]] = []
        self.order_by: Optional[tuple] = None
        self._limit: Optional[int] = None
        self._offset = 0
        self._single: Optional[str] = None

    # builder methods
    def select(self, columns: str = "*") -> "FakeQuery":
        self.action = "select"
        self.columns = columns
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self.action = "insert"
        self.payload = payload
        return self

    def update(self, payload: Dict[str, Any]) -> "FakeQuery":
        self.action = "update"
        self.payload = payload
        return self

    def delete(self) -> "FakeQuery":
        self.action = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column: str, values: List[Any]) -> "FakeQuery":
        allowed = set(values)
        self.filters.append(lambda row: row.get(column) in allowed)
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self.order_by = (column, desc)
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    def offset(self, count: int) -> "FakeQuery":
        self._offset = count
        return self

    def maybe_single(self) -> "FakeQuery":
        self._single = "maybe"
        return self

    def single(self) -> "FakeQuery":
        self._single = "single"
        return self

    # execution
    def _rows(self) -> List[Dict[str, Any]]:
        return self.db.tables.setdefault(self.table_name, [])

    def _matching(self) -> List[Dict[str, Any]]:
        return [row for row in self._rows() if all(f(row) for f in self.filters)]

    def _project(self, row: Dict[str, Any]) -> Dict[str, Any]:
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        columns = [c.strip() for c in self.columns.split(",")]
        return {c: row.get(c) for c in columns}

    def execute(self) -> Optional[FakeResponse]:
        if (self.table_name, self.action) in self.db.failures:
            raise Exception(f"simulated {self.action} failure on {self.table_name}")
        return getattr(self, f"_execute_{self.action}")()

    def _execute_select(self) -> Optional[FakeResponse]:
        rows = self._matching()
        if self.order_by:
            column, desc = self.order_by
            rows = sorted(rows, key=lambda row: row.get(column) or "", reverse=desc)
        rows = rows[self._offset:]
        if self._limit is not None:
            rows = rows[: self._limit]
        data = [self._project(row) for row in rows]
        if self._single is None:
            return FakeResponse(data)
        if not data:
            if self._single == "single":
                raise Exception("JSON object requested, multiple (or no) rows returned")
            # Recent postgrest clients return no response object for an empty maybe_single()
            return None
        return FakeResponse(data[0])

    def _execute_insert(self) -> FakeResponse:
        payload = self.payload if isinstance(self.payload, list) else [self.payload]
        inserted = []
        for item in payload:
            row = dict(item)
            if self.table_name == "profiles":
                row = {**PROFILE_DEFAULTS, **row}
            row.setdefault("id", str(uuid.uuid4()))
            row.setdefault("created_at", next_timestamp())
            keys = UNIQUE_KEYS.get(self.table_name)
            if keys and any(all(r.get(k) == row.get(k) for k in keys) for r in self._rows()):
                raise Exception(
                    f'duplicate key value violates unique constraint "{self.table_name}_key" (23505)'
                )
            self._rows().append(row)
            inserted.append(copy.deepcopy(row))
        return FakeResponse(inserted)

    def _execute_update(self) -> FakeResponse:
        updated = []
        for row in self._matching():
            row.update(copy.deepcopy(self.payload))
            updated.append(copy.deepcopy(row))
        return FakeResponse(updated)

    def _execute_delete(self) -> FakeResponse:
        if self.table_name in self.db.rls_blocked_deletes:
            # RLS filters the rows out of the delete instead of raising
            return FakeResponse([])
        removed = self._matching()
        self.db.tables[self.table_name] = [row for row in self._rows() if row not in removed]
        return FakeResponse([copy.deepcopy(row) for row in removed])


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str) -> None:
        self.storage = storage
        self.name = name

    @property
    def objects(self) -> Dict[str, tuple]:
        return self.storage.objects.setdefault(self.name, {})

    def upload(self, path: str, content: bytes, file_options: Optional[Dict[str, str]] = None):
        options = file_options or {}
        self.objects[path] = (content, options.get("content-type"))
        return SimpleNamespace(path=path)

    def remove(self, paths: List[str]):
        removed = [p for p in paths if self.objects.pop(p, None) is not None]
        return [{"name": p} for p in removed]

    def create_signed_url(self, path: str, expires_in: int):
        if path not in self.objects:
            raise Exception("Object not found")
        url = f"https://storage.test/{self.name}/{path}?token=signed&expires_in={expires_in}"
        return {"signedURL": url, "signedUrl": url}


class FakeStorage:
    def __init__(self) -> None:
        self.objects: Dict[str, Dict[str, tuple]] = {}

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self, bucket)


class FakeAuth:
    def __init__(self) -> None:
        self.users: Dict[str, Dict[str, Any]] = {}
        self.tokens: Dict[str, str] = {}
        self.sign_out_calls = 0
        self.revoked_tokens: List[str] = []
        self.admin = SimpleNamespace(delete_user=self._delete_user, sign_out=self._admin_sign_out)

    def _user(self, record: Dict[str, Any]) -> SimpleNamespace:
        return SimpleNamespace(
            id=record["id"],
            email=record["email"],
            user_metadata=dict(record["user_metadata"]),
            app_metadata={},
            created_at=record["created_at"],
            updated_at=None,
        )

    def create_user(self, email: str, password: str = "correct-horse", name: Optional[str] = None) -> str:
        user_id = str(uuid.uuid4())
        self.users[user_id] = {
            "id": user_id,
            "email": email,
            "password": password,
            "user_metadata": {"name": name} if name else {},
            "created_at": next_timestamp(),
        }
        return user_id

    def issue_token(self, user_id: str) -> str:
        token = f"token-{uuid.uuid4().hex}"
        self.tokens[token] = user_id
        return token

    def sign_up(self, credentials: Dict[str, Any]) -> SimpleNamespace:
        email = credentials["email"]
        if any(u["email"] == email for u in self.users.values()):
            raise Exception("User already registered")
        name = credentials.get("options", {}).get("data", {}).get("name")
        user_id = self.create_user(email, credentials["password"], name)
        return SimpleNamespace(user=self._user(self.users[user_id]), session=None)

    def sign_in_with_password(self, credentials: Dict[str, str]) -> SimpleNamespace:
        for record in self.users.values():
            if record["email"] == credentials["email"] and record["password"] == credentials["password"]:
                token = self.issue_token(record["id"])
                return SimpleNamespace(
                    user=self._user(record),
                    session=SimpleNamespace(access_token=token),
                )
        raise Exception("Invalid login credentials")

    def get_user(self, jwt: Optional[str] = None) -> SimpleNamespace:
        user_id = self.tokens.get(jwt or "")
        if user_id is None or user_id not in self.users:
            raise Exception("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=self._user(self.users[user_id]))

    def _admin_sign_out(self, jwt: str, scope: str = "global") -> None:
        self.sign_out_calls += 1
        self.revoked_tokens.append(jwt)

    def _delete_user(self, user_id: str) -> None:
        self.users.pop(user_id, None)
        self.tokens = {t: uid for t, uid in self.tokens.items() if uid != user_id}


class FakeSupabase:
    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {"profiles": [], "follows": []}
        self.failures: set = set()
        self.rls_blocked_deletes: set = set()
        self.auth = FakeAuth()
        self.storage = FakeStorage()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def service_client(self) -> "FakeSupabase":
        """Client over the same data that RLS restrictions do not apply to."""
        admin = FakeSupabase()
        admin.tables = self.tables
        admin.failures = self.failures
        admin.auth = self.auth
        admin.storage = self.storage
        return admin

    # helpers for arranging test data
    def seed_profile(self, user_id: str, **fields: Any) -> Dict[str, Any]:
        row = {**PROFILE_DEFAULTS, "user_id": user_id, "created_at": next_timestamp(), **fields}
        self.tables["profiles"].append(row)
        return row

    def seed_follow(self, follower_id: str, following_id: str) -> Dict[str, Any]:
        row = {
            "id": str(uuid.uuid4()),
            "follower_id": follower_id,
            "following_id": following_id,
            "created_at": next_timestamp(),
        }
        self.tables["follows"].append(row)
        return row

    def profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        return next((r for r in self.tables["profiles"] if r["user_id"] == user_id), None)

    def edges(self) -> List[tuple]:
        return [(r["follower_id"], r["following_id"]) for r in self.tables["follows"]]


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def client(fake_supabase: FakeSupabase) -> Iterator[TestClient]:
    """TestClient whose Supabase dependencies resolve to the in-memory fake."""

    clear_auth_cache()
    limiter.reset()
    app.dependency_overrides[get_supabase] = lambda: fake_supabase
    app.dependency_overrides[get_service_supabase] = lambda: fake_supabase
    app.dependency_overrides[get_session_supabase] = lambda: fake_supabase
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    clear_auth_cache()


@pytest.fixture
def make_member(fake_supabase: FakeSupabase):
    """Factory for a signed-in user with a profile row (onboarded unless told otherwise)."""

    def _make(name: str = "Ada Lovelace", onboarded: bool = True, **fields: Any) -> SimpleNamespace:
        email = f"{uuid.uuid4().hex[:8]}@example.com"
        user_id = fake_supabase.auth.create_user(email, name=name)
        token = fake_supabase.auth.issue_token(user_id)
        fake_supabase.seed_profile(user_id, name=name, onboarding_completed=onboarded, **fields)
        return SimpleNamespace(
            id=user_id,
            email=email,
            token=token,
            headers={"Authorization": f"Bearer {token}"},
        )

    return _make

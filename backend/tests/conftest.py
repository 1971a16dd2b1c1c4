import itertools
import os
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

# Ensure JWT_SECRET is set before the auth utils are imported
os.environ["JWT_SECRET"] = "test_secret"

from backend.database.repository import UniqueViolationError, ForeignKeyViolationError  # noqa: E402
from backend.gateway.server import create_app  # noqa: E402

NOW = datetime(2026, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


class InMemoryRepository:
    """
    Stand-in for PostgresRepository that keeps rows in dicts and enforces
    the same UNIQUE, FOREIGN KEY and ON DELETE CASCADE rules as the schema.
    """

    def __init__(self):
        self.users = {}
        self.events = {}
        self.registrations = {}
        self._ids = {name: itertools.count(1) for name in ("users", "events", "registrations")}

    # --- USERS ---
    def create_user(self, email, password_hash, name):
        if any(u["email"] == email for u in self.users.values()):
            raise UniqueViolationError("users_email_key")
        user_id = next(self._ids["users"])
        self.users[user_id] = {
            "user_id": user_id,
            "email": email,
            "password_hash": password_hash,
            "name": name,
            "created_at": NOW,
        }
        return self._public(self.users[user_id])

    def find_user_by_id(self, user_id):
        user = self.users.get(user_id)
        return self._public(user) if user else None

    def find_user_by_email(self, email):
        for user in self.users.values():
            if user["email"] == email:
                return dict(user)
        return None

    def list_users(self):
        return [self._public(u) for _, u in sorted(self.users.items())]

    def delete_user(self, user_id):
        self.users.pop(user_id, None)
        for event_id in [e for e, row in self.events.items() if row["user_id"] == user_id]:
            self.delete_event(event_id)
        self._drop_registrations(lambda r: r["user_id"] == user_id)

    @staticmethod
    def _public(user):
        return {k: v for k, v in user.items() if k != "password_hash"}

    # --- EVENTS ---
    def list_events(self):
        return sorted((dict(e) for e in self.events.values()), key=lambda e: e["date"])

    def find_event(self, event_id):
        event = self.events.get(event_id)
        return dict(event) if event else None

    def list_events_by_owner(self, user_id):
        return [e for e in self.list_events() if e["user_id"] == user_id]

    def insert_event(self, fields):
        if fields["user_id"] not in self.users:
            raise ForeignKeyViolationError("events_user_id_fkey")
        event_id = next(self._ids["events"])
        self.events[event_id] = {
            "event_id": event_id,
            "title": fields["title"],
            "description": fields.get("description"),
            "address": fields.get("address"),
            "date": fields["date"],
            "user_id": fields["user_id"],
            "image": fields.get("image"),
            "created_at": NOW,
        }
        return dict(self.events[event_id])

    def update_event(self, event_id, fields):
        event = self.events.get(event_id)
        if not event:
            return None
        for key in ("title", "description", "address", "date", "image"):
            if fields.get(key) is not None:
                event[key] = fields[key]
        return dict(event)

    def delete_event(self, event_id):
        if self.events.pop(event_id, None) is None:
            return False
        self._drop_registrations(lambda r: r["event_id"] == event_id)
        return True

    # --- REGISTRATIONS ---
    def find_registration(self, event_id, user_id):
        for reg in self.registrations.values():
            if reg["event_id"] == event_id and reg["user_id"] == user_id:
                return dict(reg)
        return None

    def insert_registration(self, event_id, user_id, registered_at=None):
        if event_id not in self.events or user_id not in self.users:
            raise ForeignKeyViolationError("event_registrations_fkey")
        if self.find_registration(event_id, user_id):
            raise UniqueViolationError("event_registrations_event_id_user_id_key")
        registration_id = next(self._ids["registrations"])
        self.registrations[registration_id] = {
            "registration_id": registration_id,
            "event_id": event_id,
            "user_id": user_id,
            "registered_at": registered_at or NOW,
        }
        return dict(self.registrations[registration_id])

    def delete_registration(self, event_id, user_id):
        before = len(self.registrations)
        self._drop_registrations(lambda r: r["event_id"] == event_id and r["user_id"] == user_id)
        return len(self.registrations) < before

    def list_event_registrations(self, event_id):
        rows = [r for r in self.registrations.values() if r["event_id"] == event_id]
        rows.sort(key=lambda r: (r["registered_at"], r["registration_id"]))
        return [
            {
                "registration_id": r["registration_id"],
                "registered_at": r["registered_at"],
                "user_id": r["user_id"],
                "email": self.users[r["user_id"]]["email"],
                "name": self.users[r["user_id"]]["name"],
            }
            for r in rows
        ]

    def list_user_registrations(self, user_id):
        rows = []
        for r in self.registrations.values():
            if r["user_id"] != user_id:
                continue
            event = self.events[r["event_id"]]
            owner = self.users[event["user_id"]]
            rows.append({
                "registration_id": r["registration_id"],
                "registered_at": r["registered_at"],
                "event_id": event["event_id"],
                "title": event["title"],
                "description": event["description"],
                "address": event["address"],
                "date": event["date"],
                "image": event["image"],
                "owner_id": owner["user_id"],
                "owner_email": owner["email"],
                "owner_name": owner["name"],
            })
        return sorted(rows, key=lambda row: row["date"])

    def _drop_registrations(self, predicate):
        for key in [k for k, r in self.registrations.items() if predicate(r)]:
            del self.registrations[key]


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def make_user(repo):
    """Insert a user directly; the password hash is irrelevant here."""
    def _make(email="owner@example.com", name="Owner"):
        return repo.create_user(email, "not-a-real-hash", name)
    return _make


@pytest.fixture
def make_event(repo):
    def _make(owner_id, title="Team Offsite", date=NOW + timedelta(days=7), **extra):
        return repo.insert_event({"title": title, "date": date, "user_id": owner_id, **extra})
    return _make


@pytest.fixture
def app(repo):
    app = create_app(repository=repo, clock=lambda: NOW)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers():
    from backend.auth_service.utils import create_token

    def _headers(user):
        token = create_token(user["user_id"], user["email"])
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def mock_db(mocker):
    """
    Mocks the database connection and cursor.
    """
    mock_conn = MagicMock()
    mock_cursor = MagicMock()

    # Setup the context manager for connection
    mock_conn.__enter__.return_value = mock_conn
    mock_conn.__exit__.return_value = None

    # Setup the context manager for cursor
    mock_cursor.__enter__.return_value = mock_cursor
    mock_cursor.__exit__.return_value = None

    # Connect cursor to connection
    mock_conn.cursor.return_value = mock_cursor

    return mock_conn, mock_cursor

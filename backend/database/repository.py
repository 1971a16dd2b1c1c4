"""
Storage access for users, events and event registrations.

`PostgresRepository` is the only code that issues SQL. The services
receive an instance (one per application) and never see psycopg2.

Every public method runs in its own transaction: commit on success,
rollback on error, connection closed afterwards. psycopg2 errors are
translated into the StorageError family below so callers can tell a
constraint violation apart from any other storage failure.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Optional

import psycopg2
import psycopg2.errors

from backend.database.db_connection import get_db


class StorageError(Exception):
    """Unexpected failure while talking to the database."""


class UniqueViolationError(StorageError):
    """A UNIQUE constraint rejected the write."""


class ForeignKeyViolationError(StorageError):
    """A FOREIGN KEY constraint rejected the write."""


USER_COLUMNS = "user_id, email, name, created_at"


class PostgresRepository:
    """
    Parameterized CRUD over `users`, `events` and `event_registrations`.

    Args:
        connect (callable, optional): Zero-argument factory returning a
            psycopg2 connection. Defaults to `get_db`.
    """

    def __init__(self, connect: Optional[Callable[[], Any]] = None):
        self._connect = connect or get_db

    @contextmanager
    def _cursor(self) -> Iterator[Any]:
        try:
            conn = self._connect()
        except psycopg2.Error as e:
            raise StorageError(str(e)) from e

        try:
            with conn:
                with conn.cursor() as cur:
                    yield cur
        except psycopg2.errors.UniqueViolation as e:
            raise UniqueViolationError(str(e)) from e
        except psycopg2.errors.ForeignKeyViolation as e:
            raise ForeignKeyViolationError(str(e)) from e
        except psycopg2.Error as e:
            raise StorageError(str(e)) from e
        finally:
            conn.close()

    def _fetch_one(self, sql: str, params: tuple = ()) -> Optional[Dict[str, Any]]:
        with self._cursor() as cur:
            cur.execute(sql, params)
            row = cur.fetchone()
        return dict(row) if row else None

    def _fetch_all(self, sql: str, params: tuple = ()) -> List[Dict[str, Any]]:
        with self._cursor() as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()
        return [dict(row) for row in rows]

    def _execute(self, sql: str, params: tuple = ()) -> int:
        with self._cursor() as cur:
            cur.execute(sql, params)
            return cur.rowcount

    # --- USERS ---

    def create_user(self, email: str, password_hash: str, name: str) -> Dict[str, Any]:
        sql = f"""
            INSERT INTO users (email, password_hash, name)
            VALUES (%s, %s, %s)
            RETURNING {USER_COLUMNS};
        """
        return self._fetch_one(sql, (email, password_hash, name))

    def find_user_by_id(self, user_id: int) -> Optional[Dict[str, Any]]:
        sql = f"SELECT {USER_COLUMNS} FROM users WHERE user_id = %s;"
        return self._fetch_one(sql, (user_id,))

    def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Includes `password_hash`; only the credential check should use it."""
        sql = f"SELECT {USER_COLUMNS}, password_hash FROM users WHERE email = %s;"
        return self._fetch_one(sql, (email,))

    def list_users(self) -> List[Dict[str, Any]]:
        sql = f"SELECT {USER_COLUMNS} FROM users ORDER BY user_id ASC;"
        return self._fetch_all(sql)

    # --- EVENTS ---

    def list_events(self) -> List[Dict[str, Any]]:
        return self._fetch_all("SELECT * FROM events ORDER BY date ASC;")

    def find_event(self, event_id: int) -> Optional[Dict[str, Any]]:
        return self._fetch_one("SELECT * FROM events WHERE event_id = %s;", (event_id,))

    def list_events_by_owner(self, user_id: int) -> List[Dict[str, Any]]:
        sql = "SELECT * FROM events WHERE user_id = %s ORDER BY date ASC;"
        return self._fetch_all(sql, (user_id,))

    def insert_event(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        sql = """
            INSERT INTO events (title, description, address, date, user_id, image)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING *;
        """
        return self._fetch_one(sql, (
            fields["title"],
            fields.get("description"),
            fields.get("address"),
            fields["date"],
            fields["user_id"],
            fields.get("image"),
        ))

    def update_event(self, event_id: int, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Merge `fields` into the row. Missing or None values keep the
        stored value (COALESCE), so a partial update never clears a column.
        """
        sql = """
            UPDATE events
            SET title = COALESCE(%s, title),
                description = COALESCE(%s, description),
                address = COALESCE(%s, address),
                date = COALESCE(%s, date),
                image = COALESCE(%s, image)
            WHERE event_id = %s
            RETURNING *;
        """
        return self._fetch_one(sql, (
            fields.get("title"),
            fields.get("description"),
            fields.get("address"),
            fields.get("date"),
            fields.get("image"),
            event_id,
        ))

    def delete_event(self, event_id: int) -> bool:
        # event_registrations rows go with it (ON DELETE CASCADE)
        return self._execute("DELETE FROM events WHERE event_id = %s;", (event_id,)) > 0

    # --- REGISTRATIONS ---

    def find_registration(self, event_id: int, user_id: int) -> Optional[Dict[str, Any]]:
        sql = "SELECT * FROM event_registrations WHERE event_id = %s AND user_id = %s;"
        return self._fetch_one(sql, (event_id, user_id))

    def insert_registration(self, event_id: int, user_id: int,
                            registered_at: Optional[datetime] = None) -> Dict[str, Any]:
        sql = """
            INSERT INTO event_registrations (event_id, user_id, registered_at)
            VALUES (%s, %s, COALESCE(%s, CURRENT_TIMESTAMP))
            RETURNING registration_id, event_id, user_id, registered_at;
        """
        return self._fetch_one(sql, (event_id, user_id, registered_at))

    def delete_registration(self, event_id: int, user_id: int) -> bool:
        sql = "DELETE FROM event_registrations WHERE event_id = %s AND user_id = %s;"
        return self._execute(sql, (event_id, user_id)) > 0

    def list_event_registrations(self, event_id: int) -> List[Dict[str, Any]]:
        sql = """
            SELECT r.registration_id, r.registered_at,
                   u.user_id, u.email, u.name
            FROM event_registrations r
            JOIN users u ON r.user_id = u.user_id
            WHERE r.event_id = %s
            ORDER BY r.registered_at ASC, r.registration_id ASC;
        """
        return self._fetch_all(sql, (event_id,))

    def list_user_registrations(self, user_id: int) -> List[Dict[str, Any]]:
        sql = """
            SELECT r.registration_id, r.registered_at,
                   e.event_id, e.title, e.description, e.address, e.date, e.image,
                   o.user_id AS owner_id, o.email AS owner_email, o.name AS owner_name
            FROM event_registrations r
            JOIN events e ON r.event_id = e.event_id
            JOIN users o ON e.user_id = o.user_id
            WHERE r.user_id = %s
            ORDER BY e.date ASC;
        """
        return self._fetch_all(sql, (user_id,))

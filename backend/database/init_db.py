"""
Create the database schema.

Safe to run repeatedly: every statement uses IF NOT EXISTS.

Usage:
    python -m backend.database.init_db
"""

import logging
import sys

from backend.database.db_connection import get_db

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS users (
        user_id SERIAL PRIMARY KEY,
        email VARCHAR(255) UNIQUE NOT NULL,
        password_hash TEXT NOT NULL,
        name VARCHAR(255) NOT NULL DEFAULT '',
        created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS events (
        event_id SERIAL PRIMARY KEY,
        title VARCHAR(100) NOT NULL,
        description VARCHAR(500),
        address VARCHAR(200),
        date TIMESTAMPTZ NOT NULL,
        user_id INTEGER NOT NULL REFERENCES users (user_id) ON DELETE CASCADE,
        image TEXT,
        created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS event_registrations (
        registration_id SERIAL PRIMARY KEY,
        event_id INTEGER NOT NULL REFERENCES events (event_id) ON DELETE CASCADE,
        user_id INTEGER NOT NULL REFERENCES users (user_id) ON DELETE CASCADE,
        registered_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
        UNIQUE (event_id, user_id)
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_events_user_id ON events (user_id);",
    "CREATE INDEX IF NOT EXISTS idx_events_date ON events (date);",
    "CREATE INDEX IF NOT EXISTS idx_event_registrations_user_id ON event_registrations (user_id);",
]


def init_db(conn) -> None:
    """
    Apply the schema on an open connection and commit.

    Args:
        conn: A psycopg2 connection.
    """
    with conn:
        with conn.cursor() as cur:
            for statement in SCHEMA_STATEMENTS:
                cur.execute(statement)


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")

    conn = get_db()
    try:
        init_db(conn)
    except Exception:
        logging.exception("Schema creation failed")
        return 1
    finally:
        conn.close()

    logging.info("Schema is up to date: users, events, event_registrations")
    return 0


if __name__ == "__main__":
    sys.exit(main())

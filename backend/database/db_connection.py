"""
PostgreSQL connection helper.
Provides get_db() for use by the repository.
"""

import os
import logging
from typing import Optional

import psycopg2
from psycopg2.extras import RealDictCursor
from dotenv import load_dotenv

# Load .env variables from the project root
load_dotenv()


def get_database_url() -> str:
    """
    Read DATABASE_URL from the environment.

    Raises:
        RuntimeError: If the variable is not set.
    """
    url = os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set. Please set the environment variable.")
    return url


def get_db(database_url: Optional[str] = None):
    """
    Returns a new psycopg2 connection with dictionary-based row access.

    Usage:
        conn = get_db()
        try:
            with conn:
                with conn.cursor() as cur:
                    cur.execute(...)
        finally:
            conn.close()

    Args:
        database_url (str, optional): Overrides DATABASE_URL.

    Returns:
        psycopg2.extensions.connection: A connection whose cursors return dict rows.

    Raises:
        psycopg2.Error: If connection fails.
    """
    try:
        conn = psycopg2.connect(database_url or get_database_url())

        # Rows come back as plain dicts (e.g. {"user_id": 1, "email": "..."})
        conn.cursor_factory = RealDictCursor
        return conn
    except psycopg2.Error as e:
        logging.error(f"Error connecting to database: {e}")
        raise

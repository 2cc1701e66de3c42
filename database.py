## Modified By: Callam
## Project: Draw Analytics
## Purpose of File: Database Initialization and Management
## Description:
## This file defines functions for initializing and interacting with the SQLite database draws.db.
## It handles the creation of the 'cache_entries' table (one cached draw-history envelope per game)
## and the 'fetch_events' table (an audit trail of every cache/fetch decision, grouped by run).
## SqliteStore exposes the cache table through the same get/put/delete interface as the
## stores in data_io.py.

import json
import sqlite3
import logging
from sqlite3 import Error
from datetime import datetime
from typing import Any, Dict, List, Optional

from config.settings import DB_FILENAME, LOG_LEVEL, LOG_FORMAT
from data_io import KeyValueStore

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)


def get_connection(db_path: str = DB_FILENAME):
    """
    Creates (or opens) the database file and returns a connection.
    Returns:
    - sqlite3.Connection object or None on error.
    """
    try:
        conn = sqlite3.connect(db_path)
        return conn
    except Error as e:
        logging.error(f"Error connecting to SQLite: {e}")
        return None


def initialize_database(db_path: str = DB_FILENAME) -> None:
    """
    Ensures the 'cache_entries' and 'fetch_events' tables exist in the database.
    Creates them if they do not already exist.
    """
    conn = get_connection(db_path)
    if not conn:
        return
    try:
        cursor = conn.cursor()

        # Cache table
        create_cache_table_sql = """
        CREATE TABLE IF NOT EXISTS cache_entries (
            cache_key TEXT PRIMARY KEY,        -- Prefixed game key
            value TEXT NOT NULL,               -- JSON envelope
            updated_at TEXT NOT NULL
        );
        """
        cursor.execute(create_cache_table_sql)

        # Fetch audit table
        create_events_table_sql = """
        CREATE TABLE IF NOT EXISTS fetch_events (
            id INTEGER PRIMARY KEY,
            run_date TEXT NOT NULL,            -- Date/time grouping this run
            game_id TEXT NOT NULL,
            outcome TEXT NOT NULL,             -- cache_hit, probe_match, fetched, stale_served, ...
            row_count INTEGER NOT NULL,
            source TEXT,
            created_at TEXT NOT NULL
        );
        """
        cursor.execute(create_events_table_sql)

        conn.commit()
        cursor.close()
    except Error as e:
        logging.error(f"Error during database initialization: {e}")
    finally:
        conn.close()


class SqliteStore(KeyValueStore):
    """Cache envelopes persisted in the 'cache_entries' table."""

    def __init__(self, db_path: str = DB_FILENAME) -> None:
        self.db_path = db_path
        initialize_database(db_path)

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        conn = get_connection(self.db_path)
        if not conn:
            return None
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT value FROM cache_entries WHERE cache_key = ?", (key,))
            row = cursor.fetchone()
            cursor.close()
            if not row:
                return None
            return json.loads(row[0])
        except (Error, json.JSONDecodeError) as e:
            logging.error(f"Error reading cache entry '{key}': {e}")
            return None
        finally:
            conn.close()

    def put(self, key: str, value: Dict[str, Any]) -> None:
        conn = get_connection(self.db_path)
        if not conn:
            return
        try:
            cursor = conn.cursor()
            sql = """
            INSERT INTO cache_entries (cache_key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(cache_key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """
            cursor.execute(sql, (key, json.dumps(value), datetime.now().isoformat()))
            conn.commit()
            cursor.close()
        except Error as e:
            logging.error(f"Error writing cache entry '{key}': {e}")
        finally:
            conn.close()

    def delete(self, key: str) -> None:
        conn = get_connection(self.db_path)
        if not conn:
            return
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM cache_entries WHERE cache_key = ?", (key,))
            conn.commit()
            cursor.close()
        except Error as e:
            logging.error(f"Error deleting cache entry '{key}': {e}")
        finally:
            conn.close()


def insert_fetch_event(run_date, game_id, outcome, row_count, source=None, db_path: str = DB_FILENAME):
    """
    Inserts a single reconciler outcome into the 'fetch_events' table.
    Returns the new row id, or None on error.
    """
    conn = get_connection(db_path)
    if not conn:
        return None
    try:
        cursor = conn.cursor()
        sql = """
        INSERT INTO fetch_events (run_date, game_id, outcome, row_count, source, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """
        cursor.execute(sql, (run_date, game_id, outcome, int(row_count), source, datetime.now().isoformat()))
        conn.commit()
        row_id = cursor.lastrowid
        cursor.close()
        return row_id
    except Error as e:
        logging.error(f"Error inserting fetch event: {e}")
        return None
    finally:
        conn.close()


def fetch_recent_events(limit=10, game_id=None, db_path: str = DB_FILENAME) -> List[Dict[str, Any]]:
    """
    Fetches the most recent 'limit' fetch events, optionally for one game.
    """
    conn = get_connection(db_path)
    if not conn:
        return []
    try:
        cursor = conn.cursor()
        if game_id is None:
            sql = """
            SELECT run_date, game_id, outcome, row_count, source, created_at
            FROM fetch_events ORDER BY id DESC LIMIT ?
            """
            cursor.execute(sql, (limit,))
        else:
            sql = """
            SELECT run_date, game_id, outcome, row_count, source, created_at
            FROM fetch_events WHERE game_id = ? ORDER BY id DESC LIMIT ?
            """
            cursor.execute(sql, (game_id, limit))
        rows = cursor.fetchall()
        cursor.close()
        return [
            {
                "run_date": run_date,
                "game_id": gid,
                "outcome": outcome,
                "row_count": row_count,
                "source": source,
                "created_at": created_at,
            }
            for (run_date, gid, outcome, row_count, source, created_at) in rows
        ]
    except Error as e:
        logging.error(f"Error fetching recent events: {e}")
        return []
    finally:
        conn.close()

"""
Durable audit log and quiz attempt storage
SQLite-backed; records are JSON documents grouped by collection path
"""
import json
import logging
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from config import settings
from exceptions import AuditLogError

logger = logging.getLogger(__name__)

USAGE_LOG_COLLECTION = "aiUsageLogs"


def quiz_attempts_collection(user_id: str) -> str:
    return f"users/{user_id}/quizAttempts"


class AuditStore(Protocol):
    """Append-only record sink"""

    def append(self, collection_path: str, record: Dict[str, Any]) -> str:
        ...


class SQLiteAuditStore:
    """Audit records, quiz attempts and per-quiz aggregates in one SQLite file"""

    def __init__(self, db_path: Optional[str] = None):
        if db_path is None:
            settings.ensure_directories_exist()
            db_path = str(settings.audit_db_path)
        self.db_path = db_path
        self._init_database()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _init_database(self):
        """Create tables if needed"""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS audit_records (
                    id TEXT PRIMARY KEY,
                    collection_path TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    record TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_audit_collection
                ON audit_records (collection_path, created_at)
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS quiz_stats (
                    user_id TEXT NOT NULL,
                    quiz_id TEXT NOT NULL,
                    highest_score REAL NOT NULL DEFAULT 0,
                    completed_attempts INTEGER NOT NULL DEFAULT 0,
                    last_attempted_at TEXT,
                    PRIMARY KEY (user_id, quiz_id)
                )
            """)

    def append(self, collection_path: str, record: Dict[str, Any]) -> str:
        """Store a record under collection_path and return its id"""
        record_id = uuid.uuid4().hex
        now = datetime.now().isoformat()
        payload = dict(record)
        payload.setdefault("timestamp", now)

        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO audit_records (id, collection_path, created_at, record) VALUES (?, ?, ?, ?)",
                    (record_id, collection_path, now, json.dumps(payload, default=str))
                )
        except sqlite3.Error as e:
            raise AuditLogError(technical_details=f"{collection_path}: {e}") from e
        logger.debug(f"Audit record {record_id} appended to {collection_path}")
        return record_id

    def list_records(self, collection_path: str) -> List[Dict[str, Any]]:
        """All records in a collection, oldest first"""
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT id, record FROM audit_records WHERE collection_path = ? ORDER BY created_at, rowid",
                (collection_path,)
            )
            rows = cursor.fetchall()
        return [dict(json.loads(record), id=record_id) for record_id, record in rows]

    def record_quiz_attempt(self, user_id: str, quiz_id: str, attempt: Dict[str, Any]) -> str:
        """Persist one quiz attempt; returns the attempt id"""
        return self.append(quiz_attempts_collection(user_id), dict(attempt, quizId=quiz_id))

    def update_quiz_stats(self, user_id: str, quiz_id: str, accuracy: float) -> Dict[str, Any]:
        """Fold an attempt's accuracy into the quiz aggregate atomically"""
        now = datetime.now().isoformat()
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT highest_score, completed_attempts FROM quiz_stats WHERE user_id = ? AND quiz_id = ?",
                (user_id, quiz_id)
            ).fetchone()
            prev_highest, prev_attempts = row if row else (0.0, 0)
            highest = max(prev_highest or 0.0, accuracy)
            attempts = (prev_attempts or 0) + 1
            conn.execute("""
                INSERT INTO quiz_stats (user_id, quiz_id, highest_score, completed_attempts, last_attempted_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (user_id, quiz_id) DO UPDATE SET
                    highest_score = excluded.highest_score,
                    completed_attempts = excluded.completed_attempts,
                    last_attempted_at = excluded.last_attempted_at
            """, (user_id, quiz_id, highest, attempts, now))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

        return {"highestScore": highest, "completedAttempts": attempts, "lastAttemptedAt": now}

    def get_quiz_stats(self, user_id: str, quiz_id: str) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT highest_score, completed_attempts, last_attempted_at FROM quiz_stats "
                "WHERE user_id = ? AND quiz_id = ?",
                (user_id, quiz_id)
            ).fetchone()
        if not row:
            return None
        return {"highestScore": row[0], "completedAttempts": row[1], "lastAttemptedAt": row[2]}

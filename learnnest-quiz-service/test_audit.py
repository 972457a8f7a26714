"""Tests for the SQLite audit store."""
import pytest

from audit import USAGE_LOG_COLLECTION, SQLiteAuditStore, quiz_attempts_collection
from exceptions import AuditLogError


def test_append_and_list(audit_store):
    first = audit_store.append(USAGE_LOG_COLLECTION, {"userId": "u1", "kind": "quiz-generation"})
    second = audit_store.append(USAGE_LOG_COLLECTION, {"userId": "u2", "kind": "quiz-generation"})
    records = audit_store.list_records(USAGE_LOG_COLLECTION)
    assert [r["id"] for r in records] == [first, second]
    assert records[0]["userId"] == "u1"
    assert "timestamp" in records[0]


def test_collections_are_separate(audit_store):
    audit_store.append("a", {"n": 1})
    assert audit_store.list_records("b") == []


def test_caller_timestamp_is_kept(audit_store):
    audit_store.append("a", {"timestamp": "2024-01-01T00:00:00"})
    assert audit_store.list_records("a")[0]["timestamp"] == "2024-01-01T00:00:00"


def test_records_survive_reopen(tmp_path):
    path = str(tmp_path / "nested" / "audit.db")
    SQLiteAuditStore(db_path=path).append("a", {"n": 1})
    assert SQLiteAuditStore(db_path=path).list_records("a")[0]["n"] == 1


def test_record_quiz_attempt(audit_store):
    attempt_id = audit_store.record_quiz_attempt("u1", "quiz-1", {"accuracy": 80.0})
    records = audit_store.list_records(quiz_attempts_collection("u1"))
    assert records == [{"accuracy": 80.0, "quizId": "quiz-1", "timestamp": records[0]["timestamp"],
                        "id": attempt_id}]


def test_quiz_stats_accumulate(audit_store):
    assert audit_store.get_quiz_stats("u1", "quiz-1") is None

    audit_store.update_quiz_stats("u1", "quiz-1", 60.0)
    stats = audit_store.update_quiz_stats("u1", "quiz-1", 40.0)
    assert stats["highestScore"] == 60.0
    assert stats["completedAttempts"] == 2

    stored = audit_store.get_quiz_stats("u1", "quiz-1")
    assert stored["highestScore"] == 60.0
    assert stored["completedAttempts"] == 2
    assert stored["lastAttemptedAt"] == stats["lastAttemptedAt"]


def test_quiz_stats_are_per_user_and_quiz(audit_store):
    audit_store.update_quiz_stats("u1", "quiz-1", 90.0)
    audit_store.update_quiz_stats("u2", "quiz-1", 10.0)
    assert audit_store.get_quiz_stats("u1", "quiz-1")["highestScore"] == 90.0
    assert audit_store.get_quiz_stats("u2", "quiz-1")["highestScore"] == 10.0


def test_write_failure_raises_audit_log_error(audit_store):
    with audit_store._connect() as conn:
        conn.execute("DROP TABLE audit_records")
    with pytest.raises(AuditLogError):
        audit_store.append(USAGE_LOG_COLLECTION, {"userId": "u1"})

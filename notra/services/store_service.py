import hashlib
import json
import os
import secrets
import sqlite3
import string
import time
from datetime import datetime, timezone

from notra.core.config import settings
from notra.core.models import Flashcard, NoteSection, NotraSession, QuizItem, SessionType

_ID_ALPHABET = string.digits + string.ascii_lowercase

_COLUMNS = "id, type, title, content_hash, created_at, payload_json"


def _connect() -> sqlite3.Connection:
    return sqlite3.connect(settings.DB_PATH)


def init_db():
    os.makedirs(os.path.dirname(os.path.abspath(settings.DB_PATH)), exist_ok=True)
    conn = _connect()
    cur = conn.cursor()
    cur.execute("""
    CREATE TABLE IF NOT EXISTS sessions(
        id TEXT PRIMARY KEY,
        type TEXT,
        title TEXT,
        content_hash TEXT,
        created_at TEXT,
        payload_json TEXT
    );
    """)
    cur.execute("CREATE INDEX IF NOT EXISTS idx_sessions_hash ON sessions(content_hash);")
    conn.commit()
    conn.close()


def generate_content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def new_session_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"session-{int(time.time() * 1000)}-{suffix}"


def _row_to_session(row) -> NotraSession:
    payload = json.loads(row[5] or "{}")
    return NotraSession(
        id=row[0],
        type=row[1],
        title=row[2],
        content_hash=row[3],
        created_at=row[4],
        notes=payload.get("notes") or [],
        quizzes=payload.get("quizzes") or [],
        flashcards=payload.get("flashcards") or [],
        summary_for_chat=payload.get("summaryForChat") or "",
    )


def create_session(
    *,
    type: SessionType,
    title: str,
    content_hash: str,
    notes: list[NoteSection],
    quizzes: list[QuizItem] | None = None,
    flashcards: list[Flashcard] | None = None,
    summary_for_chat: str = "",
) -> NotraSession:
    session = NotraSession(
        id=new_session_id(),
        type=type,
        title=title,
        content_hash=content_hash,
        created_at=datetime.now(timezone.utc).isoformat(),
        notes=notes,
        quizzes=quizzes or [],
        flashcards=flashcards or [],
        summary_for_chat=summary_for_chat,
    )
    payload = session.model_dump(by_alias=True, include={"notes", "quizzes", "flashcards", "summary_for_chat"})
    conn = _connect()
    cur = conn.cursor()
    cur.execute(
        f"INSERT INTO sessions({_COLUMNS}) VALUES(?,?,?,?,?,?)",
        (session.id, session.type, session.title, session.content_hash, session.created_at,
         json.dumps(payload, ensure_ascii=False)),
    )
    conn.commit()
    conn.close()
    return session


def get_session(session_id: str) -> NotraSession | None:
    conn = _connect()
    cur = conn.cursor()
    cur.execute(f"SELECT {_COLUMNS} FROM sessions WHERE id=?", (session_id,))
    row = cur.fetchone()
    conn.close()
    return _row_to_session(row) if row else None


def find_session_by_hash(content_hash: str) -> NotraSession | None:
    conn = _connect()
    cur = conn.cursor()
    cur.execute(
        f"SELECT {_COLUMNS} FROM sessions WHERE content_hash=? ORDER BY rowid LIMIT 1",
        (content_hash,),
    )
    row = cur.fetchone()
    conn.close()
    return _row_to_session(row) if row else None


def list_recent_sessions(limit: int = 10) -> list[NotraSession]:
    conn = _connect()
    cur = conn.cursor()
    cur.execute(
        f"SELECT {_COLUMNS} FROM sessions ORDER BY created_at DESC, rowid DESC LIMIT ?",
        (max(0, limit),),
    )
    rows = cur.fetchall()
    conn.close()
    return [_row_to_session(r) for r in rows]


def delete_session(session_id: str) -> bool:
    conn = _connect()
    cur = conn.cursor()
    cur.execute("DELETE FROM sessions WHERE id=?", (session_id,))
    deleted = cur.rowcount > 0
    conn.commit()
    conn.close()
    return deleted

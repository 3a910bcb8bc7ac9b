import json
import uuid
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from recallbook.config import settings
from recallbook.models.project import LearningSession, Project
from recallbook.models.question import ReviewQuestion, ReviewQuestionCreate
from recallbook.models.review import ReviewHistory
from recallbook.services.scheduler import NextReview

_db_path: Path | None = None

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA foreign_keys=ON;

CREATE TABLE IF NOT EXISTS projects (
    id              TEXT PRIMARY KEY,
    user_id         TEXT NOT NULL,
    name            TEXT NOT NULL,
    title           TEXT NOT NULL,
    author          TEXT,
    total_chapters  INTEGER,
    current_chapter INTEGER NOT NULL DEFAULT 1,
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL,
    UNIQUE (user_id, name)
);

CREATE TABLE IF NOT EXISTS learning_sessions (
    id                  TEXT PRIMARY KEY,
    user_id             TEXT NOT NULL,
    project_id          TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    date                TEXT NOT NULL,
    chapter             INTEGER,
    chapter_title       TEXT,
    topic               TEXT,
    duration_minutes    INTEGER,
    understanding_level INTEGER,
    key_concepts        TEXT,
    raw_data            TEXT,
    created_at          TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_sessions_project ON learning_sessions(project_id);

CREATE TABLE IF NOT EXISTS review_questions (
    id               TEXT PRIMARY KEY,
    user_id          TEXT NOT NULL,
    project_id       TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    session_id       TEXT REFERENCES learning_sessions(id) ON DELETE CASCADE,
    question         TEXT NOT NULL,
    answer           TEXT NOT NULL,
    explanation      TEXT,
    why_important    TEXT,
    difficulty_level INTEGER,
    related_concepts TEXT,
    created_at       TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_questions_user ON review_questions(user_id);
CREATE INDEX IF NOT EXISTS idx_questions_project ON review_questions(project_id);

CREATE TABLE IF NOT EXISTS review_history (
    id               TEXT PRIMARY KEY,
    user_id          TEXT NOT NULL,
    question_id      TEXT NOT NULL REFERENCES review_questions(id) ON DELETE CASCADE,
    seq              INTEGER NOT NULL,
    reviewed_at      TEXT NOT NULL,
    self_rating      INTEGER,
    next_review_date TEXT NOT NULL,
    interval_days    INTEGER NOT NULL,
    ease_factor      REAL NOT NULL,
    repetitions      INTEGER NOT NULL,
    UNIQUE (question_id, seq)
);
CREATE INDEX IF NOT EXISTS idx_history_seq
    ON review_history(question_id, seq DESC);
CREATE INDEX IF NOT EXISTS idx_history_user ON review_history(user_id);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);
INSERT OR IGNORE INTO schema_version(version) VALUES (1);
"""


async def init_sqlite(data_dir: Path) -> None:
    global _db_path
    data_dir.mkdir(parents=True, exist_ok=True)
    _db_path = data_dir / settings.sqlite_filename
    async with aiosqlite.connect(_db_path) as db:
        await db.executescript(SCHEMA_SQL)
        await db.commit()


async def get_db() -> AsyncIterator[aiosqlite.Connection]:
    if _db_path is None:
        raise RuntimeError("SQLite not initialized; call init_sqlite first")
    async with aiosqlite.connect(_db_path) as db:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys=ON")
        yield db


def to_timestamp(value: datetime) -> str:
    """Normalize to a sortable UTC ISO string. Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _now() -> str:
    return to_timestamp(datetime.now(timezone.utc))


def _dump_json(value: Any) -> str | None:
    return None if value is None else json.dumps(value, ensure_ascii=False)


def _load_json(value: str | None) -> Any:
    return None if value is None else json.loads(value)


# --- Projects ---


def _row_to_project(row: aiosqlite.Row) -> Project:
    return Project(**dict(row))


async def get_project(
    db: aiosqlite.Connection, user_id: str, project_id: str
) -> Project | None:
    cursor = await db.execute(
        "SELECT * FROM projects WHERE id = ? AND user_id = ?", (project_id, user_id)
    )
    row = await cursor.fetchone()
    return _row_to_project(row) if row else None


async def get_project_by_name(
    db: aiosqlite.Connection, user_id: str, name: str
) -> Project | None:
    cursor = await db.execute(
        "SELECT * FROM projects WHERE user_id = ? AND name = ?", (user_id, name)
    )
    row = await cursor.fetchone()
    return _row_to_project(row) if row else None


async def create_project(
    db: aiosqlite.Connection,
    user_id: str,
    name: str,
    title: str | None = None,
    author: str | None = None,
    current_chapter: int | None = None,
    commit: bool = True,
) -> Project:
    project_id = str(uuid.uuid4())
    now = _now()
    await db.execute(
        """INSERT INTO projects
           (id, user_id, name, title, author, current_chapter, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            project_id,
            user_id,
            name,
            title or name,
            author,
            current_chapter or 1,
            now,
            now,
        ),
    )
    if commit:
        await db.commit()
    return await get_project(db, user_id, project_id)  # type: ignore[return-value]


async def list_projects(
    db: aiosqlite.Connection, user_id: str
) -> tuple[list[Project], int]:
    cursor = await db.execute(
        "SELECT * FROM projects WHERE user_id = ? ORDER BY created_at DESC",
        (user_id,),
    )
    rows = await cursor.fetchall()
    return [_row_to_project(r) for r in rows], len(rows)


async def delete_project(
    db: aiosqlite.Connection, user_id: str, project_id: str
) -> bool:
    """Delete a project; sessions, questions and review history cascade."""
    cursor = await db.execute(
        "DELETE FROM projects WHERE id = ? AND user_id = ?", (project_id, user_id)
    )
    await db.commit()
    return (cursor.rowcount or 0) > 0


# --- Learning sessions ---


def _row_to_session(row: aiosqlite.Row) -> LearningSession:
    d = dict(row)
    d["key_concepts"] = _load_json(d["key_concepts"])
    d["raw_data"] = _load_json(d["raw_data"])
    return LearningSession(**d)


async def create_session(
    db: aiosqlite.Connection,
    user_id: str,
    project_id: str,
    fields: dict[str, Any],
    raw_data: dict[str, Any] | None = None,
    commit: bool = True,
) -> LearningSession:
    session_id = str(uuid.uuid4())
    await db.execute(
        """INSERT INTO learning_sessions
           (id, user_id, project_id, date, chapter, chapter_title, topic,
            duration_minutes, understanding_level, key_concepts, raw_data, created_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            session_id,
            user_id,
            project_id,
            fields["date"],
            fields.get("chapter"),
            fields.get("chapter_title"),
            fields.get("topic"),
            fields.get("duration_minutes"),
            fields.get("understanding_level"),
            _dump_json(fields.get("key_concepts")),
            _dump_json(raw_data),
            _now(),
        ),
    )
    if commit:
        await db.commit()
    return await get_session(db, user_id, session_id)  # type: ignore[return-value]


async def get_session(
    db: aiosqlite.Connection, user_id: str, session_id: str
) -> LearningSession | None:
    cursor = await db.execute(
        "SELECT * FROM learning_sessions WHERE id = ? AND user_id = ?",
        (session_id, user_id),
    )
    row = await cursor.fetchone()
    return _row_to_session(row) if row else None


async def list_sessions_for_project(
    db: aiosqlite.Connection, user_id: str, project_id: str
) -> tuple[list[LearningSession], int]:
    cursor = await db.execute(
        """SELECT * FROM learning_sessions
           WHERE user_id = ? AND project_id = ?
           ORDER BY date DESC, created_at DESC""",
        (user_id, project_id),
    )
    rows = await cursor.fetchall()
    return [_row_to_session(r) for r in rows], len(rows)


# --- Review questions (item store) ---


def _row_to_question(row: aiosqlite.Row) -> ReviewQuestion:
    d = dict(row)
    d["related_concepts"] = _load_json(d["related_concepts"])
    return ReviewQuestion(**d)


async def insert_questions(
    db: aiosqlite.Connection,
    user_id: str,
    questions: list[ReviewQuestionCreate],
    commit: bool = True,
) -> list[ReviewQuestion]:
    """Insert questions and return them in input order, all sharing one created_at."""
    now = _now()
    question_ids: list[str] = []
    for q in questions:
        question_id = str(uuid.uuid4())
        question_ids.append(question_id)
        await db.execute(
            """INSERT INTO review_questions
               (id, user_id, project_id, session_id, question, answer, explanation,
                why_important, difficulty_level, related_concepts, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                question_id,
                user_id,
                q.project_id,
                q.session_id,
                q.question,
                q.answer,
                q.explanation,
                q.why_important,
                q.difficulty_level,
                _dump_json(q.related_concepts),
                now,
            ),
        )
    if commit:
        await db.commit()
    created = []
    for question_id in question_ids:
        created.append(await get_question(db, user_id, question_id))
    return created  # type: ignore[return-value]


async def get_question(
    db: aiosqlite.Connection, user_id: str, question_id: str
) -> ReviewQuestion | None:
    cursor = await db.execute(
        "SELECT * FROM review_questions WHERE id = ? AND user_id = ?",
        (question_id, user_id),
    )
    row = await cursor.fetchone()
    return _row_to_question(row) if row else None


async def list_questions(
    db: aiosqlite.Connection,
    user_id: str,
    project_id: str | None = None,
    session_id: str | None = None,
    offset: int = 0,
    limit: int | None = 50,
) -> tuple[list[ReviewQuestion], int]:
    where = ["user_id = ?"]
    params: list[Any] = [user_id]
    if project_id:
        where.append("project_id = ?")
        params.append(project_id)
    if session_id:
        where.append("session_id = ?")
        params.append(session_id)
    where_sql = " AND ".join(where)

    cursor = await db.execute(
        f"SELECT COUNT(*) FROM review_questions WHERE {where_sql}",  # noqa: S608
        params,
    )
    total = (await cursor.fetchone())[0]

    cursor = await db.execute(
        f"""SELECT * FROM review_questions WHERE {where_sql}
            ORDER BY created_at ASC, rowid ASC LIMIT ? OFFSET ?""",  # noqa: S608
        params + [-1 if limit is None else limit, offset],
    )
    rows = await cursor.fetchall()
    return [_row_to_question(r) for r in rows], total


# --- Review history (append-only) ---


def _row_to_history(row: aiosqlite.Row) -> ReviewHistory:
    return ReviewHistory(**dict(row))


async def append_review(
    db: aiosqlite.Connection,
    user_id: str,
    question_id: str,
    review: NextReview,
    reviewed_at: datetime | str | None = None,
    self_rating: int | None = None,
    commit: bool = True,
) -> ReviewHistory:
    """
    Append one history row. seq is MAX(seq)+1 for the question, assigned in the
    same statement so two inserts can never share a position.
    """
    if reviewed_at is None:
        reviewed_at = _now()
    elif isinstance(reviewed_at, datetime):
        reviewed_at = to_timestamp(reviewed_at)
    history_id = str(uuid.uuid4())
    await db.execute(
        """INSERT INTO review_history
           (id, user_id, question_id, seq, reviewed_at, self_rating,
            next_review_date, interval_days, ease_factor, repetitions)
           SELECT ?, ?, ?, COALESCE(MAX(seq), 0) + 1, ?, ?, ?, ?, ?, ?
           FROM review_history WHERE question_id = ?""",
        (
            history_id,
            user_id,
            question_id,
            reviewed_at,
            self_rating,
            review.next_review_date.isoformat(),
            review.interval_days,
            review.ease_factor,
            review.repetitions,
            question_id,
        ),
    )
    if commit:
        await db.commit()
    cursor = await db.execute(
        "SELECT * FROM review_history WHERE id = ?", (history_id,)
    )
    return _row_to_history(await cursor.fetchone())


async def get_latest_review(
    db: aiosqlite.Connection, user_id: str, question_id: str
) -> ReviewHistory | None:
    """
    Current row of a question: the highest seq, i.e. the last insert.
    reviewed_at is stored as the client sent it and plays no part in ordering.
    """
    cursor = await db.execute(
        """SELECT * FROM review_history
           WHERE user_id = ? AND question_id = ?
           ORDER BY seq DESC
           LIMIT 1""",
        (user_id, question_id),
    )
    row = await cursor.fetchone()
    return _row_to_history(row) if row else None


async def get_latest_reviews(
    db: aiosqlite.Connection, user_id: str
) -> dict[str, ReviewHistory]:
    """Return the last-inserted history row of every question the user owns, by question id."""
    cursor = await db.execute(
        """SELECT id, user_id, question_id, seq, reviewed_at, self_rating,
                  next_review_date, interval_days, ease_factor, repetitions
           FROM (
               SELECT *, ROW_NUMBER() OVER (
                   PARTITION BY question_id
                   ORDER BY seq DESC
               ) AS rn
               FROM review_history
               WHERE user_id = ?
           )
           WHERE rn = 1""",
        (user_id,),
    )
    rows = await cursor.fetchall()
    return {row["question_id"]: _row_to_history(row) for row in rows}


async def list_review_history(
    db: aiosqlite.Connection, user_id: str, question_id: str
) -> list[ReviewHistory]:
    """Full history of one question in insert order."""
    cursor = await db.execute(
        """SELECT * FROM review_history
           WHERE user_id = ? AND question_id = ?
           ORDER BY seq ASC""",
        (user_id, question_id),
    )
    rows = await cursor.fetchall()
    return [_row_to_history(r) for r in rows]


async def count_reviews_on(
    db: aiosqlite.Connection, user_id: str, day: date
) -> int:
    """Count rated reviews whose UTC timestamp falls on ``day``. Import rows are excluded."""
    cursor = await db.execute(
        """SELECT COUNT(*) FROM review_history
           WHERE user_id = ? AND self_rating IS NOT NULL
           AND substr(reviewed_at, 1, 10) = ?""",
        (user_id, day.isoformat()),
    )
    row = await cursor.fetchone()
    return row[0] if row else 0

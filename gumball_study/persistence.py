from __future__ import annotations

import json
import os
import sqlite3
import time
from pathlib import Path

from .results import SessionResult

SCHEMA_VERSION = 1
DB_PATH_ENV = "GUMBALL_STUDY_DB_PATH"


def default_db_path() -> Path:
    explicit = os.environ.get(DB_PATH_ENV)
    if explicit:
        return Path(explicit).expanduser()
    return Path.home() / ".gumball_study.sqlite3"


def open_db(path: Path) -> sqlite3.Connection:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.execute("PRAGMA foreign_keys=ON;")
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    _migrate(conn)
    return conn


def _utc_now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(time.time()))


def _migrate(conn: sqlite3.Connection) -> None:
    row = conn.execute("PRAGMA user_version;").fetchone()
    ver = int(row[0]) if row else 0
    if ver >= SCHEMA_VERSION:
        return

    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS session (
                id INTEGER PRIMARY KEY,
                subject_id TEXT NOT NULL,
                prediction_condition INTEGER NOT NULL,
                speaker_condition INTEGER NOT NULL,
                bias TEXT NOT NULL,
                rng_seed INTEGER NOT NULL,
                app_version TEXT NOT NULL,
                created_at_utc TEXT NOT NULL
            );
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS trial_record (
                id INTEGER PRIMARY KEY,
                session_id INTEGER NOT NULL REFERENCES session(id) ON DELETE CASCADE,
                seq INTEGER NOT NULL,
                trial_type TEXT NOT NULL,
                block TEXT NOT NULL,
                trial_index INTEGER NOT NULL,
                presented_at_ms INTEGER NOT NULL,
                finished_at_ms INTEGER NOT NULL,
                rt_ms INTEGER NOT NULL
            );
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS trial_field (
                record_id INTEGER NOT NULL REFERENCES trial_record(id) ON DELETE CASCADE,
                key TEXT NOT NULL,
                value TEXT NOT NULL,
                PRIMARY KEY (record_id, key)
            );
            """
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_trial_record_session_seq ON trial_record(session_id, seq);"
        )
        conn.execute(f"PRAGMA user_version={SCHEMA_VERSION};")


def record_session(*, db_path: Path, result: SessionResult, app_version: str) -> int:
    """Write one finished session: session -> trial_record -> trial_field."""

    conn = open_db(db_path)
    try:
        return _insert_session(conn=conn, result=result, app_version=app_version)
    finally:
        conn.close()


def _insert_session(*, conn: sqlite3.Connection, result: SessionResult, app_version: str) -> int:
    with conn:
        cur = conn.execute(
            """
            INSERT INTO session(
                subject_id, prediction_condition, speaker_condition, bias,
                rng_seed, app_version, created_at_utc
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                str(result.subject_id),
                int(result.prediction_condition),
                int(result.speaker_condition),
                str(result.bias),
                int(result.seed),
                app_version,
                _utc_now_iso(),
            ),
        )
        session_id = int(cur.lastrowid)

        for rec in result.records:
            cur = conn.execute(
                """
                INSERT INTO trial_record(
                    session_id, seq, trial_type, block, trial_index,
                    presented_at_ms, finished_at_ms, rt_ms
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    session_id,
                    int(rec.seq),
                    str(rec.trial_type.value),
                    str(rec.block_label),
                    int(rec.trial_index),
                    int(round(rec.presented_at_s * 1000.0)),
                    int(round(rec.finished_at_s * 1000.0)),
                    int(rec.rt_ms),
                ),
            )
            record_id = int(cur.lastrowid)
            for k, v in rec.fields.items():
                # JSON keeps None/bool/int/float distinguishable on the way back.
                conn.execute(
                    "INSERT INTO trial_field(record_id, key, value) VALUES (?, ?, ?)",
                    (record_id, str(k), json.dumps(v)),
                )

    return session_id


def load_records(conn: sqlite3.Connection, session_id: int) -> list[dict[str, object]]:
    rows = conn.execute(
        """
        SELECT id, seq, trial_type, block, trial_index, rt_ms
        FROM trial_record
        WHERE session_id = ?
        ORDER BY seq
        """,
        (int(session_id),),
    ).fetchall()

    out: list[dict[str, object]] = []
    for record_id, seq, trial_type, block, trial_index, rt_ms in rows:
        row: dict[str, object] = {
            "seq": int(seq),
            "trial_type": str(trial_type),
            "block": str(block),
            "trial_index": int(trial_index),
            "rt_ms": int(rt_ms),
        }
        for key, value in conn.execute(
            "SELECT key, value FROM trial_field WHERE record_id = ?",
            (int(record_id),),
        ):
            row[str(key)] = json.loads(value)
        out.append(row)
    return out

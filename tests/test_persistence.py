from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from gumball_study.experiment import build_study_session
from gumball_study.persistence import DB_PATH_ENV, default_db_path, load_records, open_db, record_session
from gumball_study.responses import Slider
from gumball_study.sampling import SeededRng
from gumball_study.sequence import Block, SessionDraw, Timeline
from gumball_study.trial_generator import make_speaker_configs
from gumball_study.trials import SpeakerGender, TrialKind, page


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


def test_record_session_round_trip(tmp_path: Path) -> None:
    trials = make_speaker_configs("2", SpeakerGender.MALE, 0.31, 2, rng=SeededRng(3))[:2]
    trials[0].catch_probe = True
    trials[0].catch_present = True
    timeline = Timeline(
        draw=SessionDraw("ab12", 3, 1),
        blocks=(
            Block(kind=TrialKind.EXPOSURE, label="intro", trials=(page("Here is a planet in outer space."),)),
            Block(kind=TrialKind.PREDICTION, label="speaker_same", trials=tuple(trials)),
        ),
    )
    clock = FakeClock()
    session = build_study_session(timeline=timeline, clock=clock, seed=99)
    session.start()

    clock.advance(1.0)
    assert session.advance() is True
    for _ in range(2):
        session.set_slider(Slider.STRONG, 60)
        session.set_slider(Slider.WEAK, 40)
        clock.advance(2.5)
        assert session.submit_prediction() is True
        if session.snapshot().kind is TrialKind.CATCH_QUESTION:
            assert session.answer_catch(said_yes=True) is True
    assert session.finished

    db = tmp_path / "nested" / "study.sqlite3"
    session_id = record_session(db_path=db, result=session.result(), app_version="test")

    conn = open_db(db)
    try:
        row = conn.execute(
            "SELECT subject_id, prediction_condition, speaker_condition, bias, rng_seed FROM session WHERE id = ?",
            (session_id,),
        ).fetchone()
        rows = load_records(conn, session_id)
    finally:
        conn.close()

    assert row == ("ab12", 3, 1, "confident", 99)
    assert [r["trial_type"] for r in rows] == ["exposure", "prediction", "catch_question", "prediction"]
    assert rows[0]["rt_ms"] == 1000
    assert rows[1]["pred_weak"] == 40
    assert rows[1]["pred_strong"] == 60
    assert rows[1]["pred_total"] == 100
    assert rows[2]["catch_correct"] is True
    assert rows[0]["audio_path"] is None
    assert rows[3]["catch_present"] is None


def test_default_db_path_honours_env(monkeypatch, tmp_path: Path) -> None:
    target = tmp_path / "data.sqlite3"
    monkeypatch.setenv(DB_PATH_ENV, str(target))
    assert default_db_path() == target

    monkeypatch.delenv(DB_PATH_ENV)
    assert default_db_path().name == ".gumball_study.sqlite3"


def test_open_db_migrates_once(tmp_path: Path) -> None:
    db = tmp_path / "study.sqlite3"
    open_db(db).close()
    conn = open_db(db)
    try:
        assert conn.execute("PRAGMA user_version;").fetchone()[0] == 1
    finally:
        conn.close()

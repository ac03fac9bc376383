from __future__ import annotations

from dataclasses import dataclass

from gumball_study.experiment import build_study_session
from gumball_study.responses import Slider
from gumball_study.sampling import SeededRng
from gumball_study.sequence import SessionDraw, build_session_timeline
from gumball_study.token_field import TokenFieldConfig
from gumball_study.trials import TrialKind


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


def _session(condition: int, speaker: int, seed: int = 2024):
    clock = FakeClock()
    timeline = build_session_timeline(rng=SeededRng(seed), draw=SessionDraw("t001", condition, speaker))
    return clock, build_study_session(timeline=timeline, clock=clock, seed=seed)


def test_headless_scripted_run_emits_valid_records() -> None:
    clock, session = _session(condition=1, speaker=1)
    session.start()

    previous_engine = None
    guard = 0
    while not session.finished:
        guard += 1
        assert guard < 500
        snap = session.snapshot()
        clock.advance(0.4)
        session.update()

        if snap.kind in (TrialKind.EXPOSURE, TrialKind.PREDICTION):
            engine = session.active_engine
            assert engine is not None and engine.running
            if previous_engine is not None and previous_engine is not engine:
                assert previous_engine.running is False
            assert len(snap.tokens) == snap.trial.total
            previous_engine = engine

        if snap.kind is TrialKind.EXPOSURE:
            if snap.audio_path is not None:
                assert snap.next_enabled is False
                assert session.advance() is False
                session.notify_audio_finished()
            assert session.advance() is True
        elif snap.kind is TrialKind.PREDICTION:
            assert session.submit_prediction() is False
            session.set_slider(Slider.WEAK, 50)
            session.set_slider(Slider.STRONG, 30)
            assert session.submit_prediction() is False
            session.set_slider(Slider.OTHER, 20)
            assert session.submit_prediction() is True
        else:
            assert session.active_engine is None
            assert snap.catch_question is not None
            assert session.answer_catch(said_yes=bool(snap.trial.catch_present)) is True

    records = session.records()
    assert [r.seq for r in records] == list(range(len(records)))
    assert len(records) == len(session.timeline.steps())

    predictions = [r for r in records if r.trial_type is TrialKind.PREDICTION]
    assert len(predictions) == 19 * 3
    for r in predictions:
        row = r.as_row()
        assert row["pred_weak"] + row["pred_strong"] + row["pred_other"] == 100
        assert row["pred_total"] == 100
        assert row["rt_ms"] == 400

    exposures = [
        r for r in records if r.trial_type is TrialKind.EXPOSURE and r.block_label == "exposure_speaker_1"
    ]
    assert len(exposures) == 20
    assert all(r.fields["bias"] == "confident" for r in exposures)
    exposure_catches = [
        r for r in records if r.trial_type is TrialKind.CATCH_QUESTION and r.block_label == "exposure_speaker_1"
    ]
    assert len(exposure_catches) == 2

    result = session.result()
    assert result.catch_questions == 4
    assert result.catch_correct == 4
    assert result.catch_accuracy == 1.0
    assert result.bias == "confident"


def test_wrong_actions_for_screen_are_rejected() -> None:
    _, session = _session(condition=3, speaker=0)
    session.start()

    snap = session.snapshot()
    assert snap.kind is TrialKind.EXPOSURE
    assert snap.next_enabled is True
    assert session.submit_prediction() is False
    assert session.answer_catch(said_yes=True) is False
    assert session.set_slider(Slider.WEAK, 40) == 0
    assert session.records() == []


def test_catch_question_follows_probed_trial_and_scores() -> None:
    _, session = _session(condition=2, speaker=0, seed=7)
    session.start()

    while True:
        snap = session.snapshot()
        if snap.kind is TrialKind.CATCH_QUESTION:
            break
        if snap.kind is TrialKind.EXPOSURE:
            session.notify_audio_finished()
            assert session.advance() is True
        else:
            session.set_slider(Slider.OTHER, 100)
            assert session.submit_prediction() is True

    probed = session.records()[-1]
    assert probed.fields["catch_probe"] is True
    present = bool(snap.trial.catch_present)

    assert session.answer_catch(said_yes=not present) is True
    record = session.records()[-1]
    assert record.trial_type is TrialKind.CATCH_QUESTION
    assert record.fields["catch_correct"] is False
    assert record.fields["catch_response"] == ("no" if present else "yes")
    assert record.fields["catch_phase"] == probed.trial_type.value


def test_close_stops_running_field() -> None:
    _, session = _session(condition=1, speaker=0)
    session.start()
    engine = session.active_engine
    assert engine is not None and engine.running
    session.close()
    assert engine.running is False
    session.close()


def test_failed_audio_cue_enables_next(caplog) -> None:
    _, session = _session(condition=1, speaker=1, seed=11)
    session.start()

    while True:
        snap = session.snapshot()
        if snap.kind is TrialKind.EXPOSURE and snap.audio_path is not None:
            break
        if snap.kind is TrialKind.EXPOSURE:
            assert session.advance() is True
        elif snap.kind is TrialKind.PREDICTION:
            session.set_slider(Slider.WEAK, 100)
            assert session.submit_prediction() is True
        else:
            assert session.answer_catch(said_yes=bool(snap.trial.catch_present)) is True

    assert snap.next_enabled is False
    assert session.advance() is False

    with caplog.at_level("WARNING", logger="gumball_study.experiment"):
        session.audio_failed("missing")
    assert "audio cue failed (missing)" in caplog.text

    assert session.snapshot().next_enabled is True
    assert session.advance() is True
    assert session.records()[-1].fields["audio_path"] == snap.audio_path


def test_session_fields_use_configured_geometry() -> None:
    clock = FakeClock()
    cfg = TokenFieldConfig(token_radius=3.0)
    timeline = build_session_timeline(rng=SeededRng(5), draw=SessionDraw("t002", 1, 0))
    session = build_study_session(timeline=timeline, clock=clock, seed=5, field_config=cfg)
    session.start()

    assert session.field_config is cfg
    engine = session.active_engine
    assert engine is not None
    assert engine.config.token_radius == 3.0

from __future__ import annotations

import logging
from dataclasses import dataclass

from .scheduling import Clock, StimulusSlot
from .responses import CatchResponse, PredictionResponse, PredictionSliders, Slider
from .results import SessionResult, TrialRecord, session_result
from .sampling import SeededRng
from .sequence import Step, Timeline
from .token_field import TokenFieldConfig, TokenFieldEngine, TokenView, build_token_field
from .trials import TrialConfig, TrialKind
from .wording import CATCH_QUESTION, PredictionCopy, prediction_copy

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StudySnapshot:
    """View model for the UI (pure data)."""

    kind: TrialKind | None
    block_label: str
    step_index: int
    step_count: int
    trial: TrialConfig | None
    header_text: str
    tokens: tuple[TokenView, ...]
    show_catch_mark: bool
    next_enabled: bool
    audio_path: str | None = None
    copy: PredictionCopy | None = None
    sliders: tuple[int, int, int] = (0, 0, 0)
    slider_total: int = 0
    selected_slider: Slider = Slider.WEAK
    show_sum_warning: bool = False
    catch_question: str | None = None
    finished: bool = False


class StudySession:
    """Walks a timeline one screen at a time.

    - Each exposure/prediction screen owns a fresh token field; the previous
      one is stopped before the next is started.
    - Exposure screens can only advance once their audio cue is done.
    - Prediction screens only finish when the sliders total exactly 100.
    - Time is entirely via injected Clock.
    """

    def __init__(
        self,
        *,
        timeline: Timeline,
        clock: Clock,
        seed: int,
        field_config: TokenFieldConfig | None = None,
    ) -> None:
        self._timeline = timeline
        self._steps: list[Step] = timeline.steps()
        self._clock = clock
        self._seed = int(seed)
        self._rng = SeededRng(seed)
        self._field_config = field_config or TokenFieldConfig()

        self._index = -1
        self._stage = StimulusSlot()
        self._engine: TokenFieldEngine | None = None
        self._presented_at_s = 0.0
        self._audio_done = True
        self._sliders = PredictionSliders()
        self._selected = Slider.WEAK
        self._records: list[TrialRecord] = []

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def timeline(self) -> Timeline:
        return self._timeline

    @property
    def started(self) -> bool:
        return self._index >= 0

    @property
    def finished(self) -> bool:
        return self._index >= len(self._steps)

    @property
    def field_config(self) -> TokenFieldConfig:
        return self._field_config

    @property
    def active_engine(self) -> TokenFieldEngine | None:
        return self._engine

    def current_step(self) -> Step | None:
        if 0 <= self._index < len(self._steps):
            return self._steps[self._index]
        return None

    def start(self) -> None:
        if self.started:
            return
        self._enter(0)

    def update(self) -> None:
        self._stage.update()

    def close(self) -> None:
        """Tear down the running stimulus (e.g. when the window closes)."""

        self._stop_engine()

    # Exposure

    def notify_audio_finished(self) -> None:
        self._audio_done = True

    def audio_failed(self, reason: str) -> None:
        logger.warning("audio cue failed (%s); enabling Next", reason)
        self._audio_done = True

    def advance(self) -> bool:
        step = self.current_step()
        if step is None or step.kind is not TrialKind.EXPOSURE:
            return False
        if not self._audio_done:
            return False
        self._finish(step, {})
        return True

    # Prediction

    def select_slider(self, which: Slider) -> None:
        self._selected = Slider(which)

    def select_next_slider(self, delta: int) -> None:
        order = list(Slider)
        idx = (order.index(self._selected) + int(delta)) % len(order)
        self._selected = order[idx]

    def set_slider(self, which: Slider, value: int) -> int:
        if not self._on(TrialKind.PREDICTION):
            return 0
        return self._sliders.set_value(which, value)

    def nudge_selected(self, delta: int) -> int:
        if not self._on(TrialKind.PREDICTION):
            return 0
        return self._sliders.nudge(self._selected, delta)

    def submit_prediction(self) -> bool:
        step = self.current_step()
        if step is None or step.kind is not TrialKind.PREDICTION:
            return False
        response = PredictionResponse.from_sliders(self._sliders)
        if response is None:
            return False
        self._finish(step, response.as_fields())
        return True

    # Catch question

    def answer_catch(self, *, said_yes: bool) -> bool:
        step = self.current_step()
        if step is None or step.kind is not TrialKind.CATCH_QUESTION:
            return False
        assert step.catch_phase is not None
        response = CatchResponse(
            catch_phase=step.catch_phase,
            catch_present=bool(step.trial.catch_present),
            said_yes=bool(said_yes),
        )
        self._finish(step, response.as_fields())
        return True

    def records(self) -> list[TrialRecord]:
        return list(self._records)

    def result(self) -> SessionResult:
        return session_result(draw=self._timeline.draw, seed=self._seed, records=self._records)

    def snapshot(self) -> StudySnapshot:
        step = self.current_step()
        if step is None:
            return StudySnapshot(
                kind=None,
                block_label="",
                step_index=max(0, self._index),
                step_count=len(self._steps),
                trial=None,
                header_text="Thank you for participating!" if self.finished else "",
                tokens=(),
                show_catch_mark=False,
                next_enabled=False,
                finished=self.finished,
            )

        trial = step.trial
        tokens = () if self._engine is None else self._engine.tokens()
        base = dict(
            kind=step.kind,
            block_label=step.block_label,
            step_index=self._index,
            step_count=len(self._steps),
            trial=trial,
            tokens=tokens,
            show_catch_mark=step.kind is not TrialKind.CATCH_QUESTION and trial.catch_present is True,
        )

        if step.kind is TrialKind.EXPOSURE:
            return StudySnapshot(
                header_text=trial.header_text,
                next_enabled=self._audio_done,
                audio_path=trial.audio_path,
                **base,
            )
        if step.kind is TrialKind.PREDICTION:
            copy = prediction_copy(trial.gender, trial.target_color)
            return StudySnapshot(
                header_text=copy.question,
                next_enabled=self._sliders.is_complete,
                copy=copy,
                sliders=self._sliders.values(),
                slider_total=self._sliders.total,
                selected_slider=self._selected,
                show_sum_warning=not self._sliders.is_complete,
                **base,
            )
        return StudySnapshot(
            header_text=CATCH_QUESTION,
            next_enabled=False,
            catch_question=CATCH_QUESTION,
            **base,
        )

    def _on(self, kind: TrialKind) -> bool:
        step = self.current_step()
        return step is not None and step.kind is kind

    def _finish(self, step: Step, response_fields: dict[str, object]) -> None:
        draw = self._timeline.draw
        fields: dict[str, object] = {
            "subject_id": draw.subject_id,
            "prediction_condition": draw.prediction_condition,
            "speaker_condition": draw.speaker_condition,
            "bias": str(draw.bias.value),
        }
        fields.update(step.trial.as_fields())
        fields.update(response_fields)

        self._records.append(
            TrialRecord(
                seq=len(self._records),
                trial_type=step.kind,
                block_label=step.block_label,
                trial_index=step.trial_index,
                presented_at_s=self._presented_at_s,
                finished_at_s=self._clock.now(),
                fields=fields,
            )
        )
        self._enter(self._index + 1)

    def _enter(self, index: int) -> None:
        self._stop_engine()
        self._index = index
        self._sliders.reset()
        self._selected = Slider.WEAK
        self._presented_at_s = self._clock.now()

        step = self.current_step()
        if step is None:
            self._audio_done = True
            return

        self._audio_done = step.kind is not TrialKind.EXPOSURE or step.trial.audio_path is None
        if step.kind is TrialKind.CATCH_QUESTION:
            return

        self._engine = build_token_field(
            step.trial.num_red,
            step.trial.num_blue,
            clock=self._clock,
            seed=self._rng.randint(1, 2**31 - 1),
            config=self._field_config,
        )
        self._stage.show(self._engine)

    def _stop_engine(self) -> None:
        self._stage.clear()
        self._engine = None


def build_study_session(
    *,
    timeline: Timeline,
    clock: Clock,
    seed: int,
    field_config: TokenFieldConfig | None = None,
) -> StudySession:
    return StudySession(timeline=timeline, clock=clock, seed=seed, field_config=field_config)

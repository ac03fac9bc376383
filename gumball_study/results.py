from __future__ import annotations

from dataclasses import dataclass

from .sequence import SessionDraw
from .trials import TrialKind


@dataclass(frozen=True, slots=True)
class TrialRecord:
    """One finished screen, flattened for the data sink."""

    seq: int
    trial_type: TrialKind
    block_label: str
    trial_index: int
    presented_at_s: float
    finished_at_s: float
    fields: dict[str, object]

    @property
    def rt_ms(self) -> int:
        return int(round(max(0.0, self.finished_at_s - self.presented_at_s) * 1000.0))

    def as_row(self) -> dict[str, object]:
        row: dict[str, object] = {
            "seq": self.seq,
            "trial_type": str(self.trial_type.value),
            "block": self.block_label,
            "trial_index": self.trial_index,
            "rt_ms": self.rt_ms,
        }
        row.update(self.fields)
        return row


@dataclass(frozen=True, slots=True)
class SessionResult:
    """Persistable summary + record log for a completed session."""

    subject_id: str
    prediction_condition: int
    speaker_condition: int
    bias: str
    seed: int

    trials: int
    predictions: int
    catch_questions: int
    catch_correct: int
    catch_accuracy: float | None

    records: list[TrialRecord]


def session_result(*, draw: SessionDraw, seed: int, records: list[TrialRecord]) -> SessionResult:
    catches = [r for r in records if r.trial_type is TrialKind.CATCH_QUESTION]
    correct = sum(1 for r in catches if r.fields.get("catch_correct") is True)
    accuracy = None if not catches else correct / len(catches)

    return SessionResult(
        subject_id=str(draw.subject_id),
        prediction_condition=int(draw.prediction_condition),
        speaker_condition=int(draw.speaker_condition),
        bias=str(draw.bias.value),
        seed=int(seed),
        trials=len(records),
        predictions=sum(1 for r in records if r.trial_type is TrialKind.PREDICTION),
        catch_questions=len(catches),
        catch_correct=int(correct),
        catch_accuracy=accuracy,
        records=list(records),
    )

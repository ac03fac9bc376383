from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from .catch_probes import score_catch_response
from .trials import TrialKind

PREDICTION_TOTAL = 100
SLIDER_MIN = 0
SLIDER_MAX = 100


class Slider(StrEnum):
    WEAK = "weak"
    STRONG = "strong"
    OTHER = "other"


class PredictionSliders:
    """Three 0..100 likelihood sliders that may never total more than 100.

    Moving a slider past a total of 100 lowers that same slider by the excess.
    """

    def __init__(self) -> None:
        self._values: dict[Slider, int] = {s: 0 for s in Slider}

    def value(self, which: Slider) -> int:
        return self._values[Slider(which)]

    def values(self) -> tuple[int, int, int]:
        return (self._values[Slider.WEAK], self._values[Slider.STRONG], self._values[Slider.OTHER])

    @property
    def total(self) -> int:
        return sum(self._values.values())

    @property
    def is_complete(self) -> bool:
        return self.total == PREDICTION_TOTAL

    def set_value(self, which: Slider, value: int) -> int:
        """Set a slider and return the value it actually took."""

        which = Slider(which)
        v = max(SLIDER_MIN, min(SLIDER_MAX, int(value)))
        self._values[which] = v
        excess = self.total - PREDICTION_TOTAL
        if excess > 0:
            self._values[which] = max(0, v - excess)
        return self._values[which]

    def nudge(self, which: Slider, delta: int) -> int:
        return self.set_value(which, self.value(which) + int(delta))

    def reset(self) -> None:
        for s in Slider:
            self._values[s] = 0


@dataclass(frozen=True, slots=True)
class PredictionResponse:
    pred_weak: int
    pred_strong: int
    pred_other: int

    @property
    def pred_total(self) -> int:
        return self.pred_weak + self.pred_strong + self.pred_other

    @classmethod
    def from_sliders(cls, sliders: PredictionSliders) -> "PredictionResponse | None":
        """Return a response, or None while the sliders do not total 100."""

        if not sliders.is_complete:
            return None
        weak, strong, other = sliders.values()
        return cls(pred_weak=weak, pred_strong=strong, pred_other=other)

    def as_fields(self) -> dict[str, object]:
        return {
            "pred_weak": self.pred_weak,
            "pred_strong": self.pred_strong,
            "pred_other": self.pred_other,
            "pred_total": self.pred_total,
        }


@dataclass(frozen=True, slots=True)
class CatchResponse:
    catch_phase: TrialKind
    catch_present: bool
    said_yes: bool

    @property
    def catch_correct(self) -> bool:
        return score_catch_response(present=self.catch_present, said_yes=self.said_yes)

    def as_fields(self) -> dict[str, object]:
        return {
            "catch_phase": str(self.catch_phase.value),
            "catch_present": self.catch_present,
            "catch_response": "yes" if self.said_yes else "no",
            "catch_correct": self.catch_correct,
        }

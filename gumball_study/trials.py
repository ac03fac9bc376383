from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class UtteranceKind(StrEnum):
    NONE = "none"
    BARE = "bare"  # "We will get a blue one."
    WEAK = "weak"  # "We might get a blue one."
    STRONG = "strong"  # "We will probably get a blue one."


class SpeakerGender(StrEnum):
    MALE = "male"
    FEMALE = "female"
    SELF = "self"  # the participant answers for themselves


class TokenColor(StrEnum):
    RED = "red"
    BLUE = "blue"


class BiasMode(StrEnum):
    CONFIDENT = "confident"
    CAUTIOUS = "cautious"


class TrialKind(StrEnum):
    EXPOSURE = "exposure"
    PREDICTION = "prediction"
    CATCH_QUESTION = "catch_question"


DEFAULT_TOTAL_TOKENS = 30


@dataclass(slots=True)
class TrialConfig:
    """Parameters of one trial.

    Built by the trial generator, mutated once by the catch-probe assignor,
    then only read by the presentation layer.
    """

    num_red: int
    num_blue: int
    speaker_slot: int = 0  # 0 = no speaker on stage; not catch-eligible
    utterance: UtteranceKind = UtteranceKind.NONE
    speaker_id: str = ""
    gender: SpeakerGender = SpeakerGender.MALE
    proportion_target: float = 0.0
    target_color: TokenColor = TokenColor.BLUE
    header_text: str = ""
    audio_path: str | None = None
    speaker_threshold: float | None = None
    catch_probe: bool = False
    catch_present: bool | None = None

    @property
    def total(self) -> int:
        return int(self.num_red) + int(self.num_blue)

    @property
    def is_self(self) -> bool:
        return self.gender is SpeakerGender.SELF

    @property
    def speaker_group(self) -> str | None:
        """Which side of the stage the speaker was taken from."""

        if 1 <= self.speaker_slot <= 5:
            return "green"
        if 6 <= self.speaker_slot <= 10:
            return "yellow"
        return None

    @property
    def group_index(self) -> int | None:
        """1-based position of the speaker within its group."""

        group = self.speaker_group
        if group == "green":
            return self.speaker_slot
        if group == "yellow":
            return self.speaker_slot - 5
        return None

    def as_fields(self) -> dict[str, object]:
        return {
            "num_red": int(self.num_red),
            "num_blue": int(self.num_blue),
            "speaker_slot": int(self.speaker_slot),
            "speaker_group": self.speaker_group,
            "utterance": str(self.utterance.value),
            "speaker_id": str(self.speaker_id),
            "gender": str(self.gender.value),
            "is_self_prediction": self.is_self,
            "proportion_target": float(self.proportion_target),
            "target_color": str(self.target_color.value),
            "header_text": self.header_text,
            "audio_path": self.audio_path,
            "speaker_threshold": self.speaker_threshold,
            "catch_probe": bool(self.catch_probe),
            "catch_present": self.catch_present,
        }


def page(header_text: str, *, num_red: int = 0, num_blue: int = 0, speaker_slot: int = 0) -> TrialConfig:
    """Narration-only exposure page (intro and transition screens)."""

    total = num_red + num_blue
    return TrialConfig(
        num_red=num_red,
        num_blue=num_blue,
        speaker_slot=speaker_slot,
        header_text=header_text,
        proportion_target=0.0 if total == 0 else num_blue / total,
    )

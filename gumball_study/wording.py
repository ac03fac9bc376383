from __future__ import annotations

from dataclasses import dataclass

from .trials import SpeakerGender, TokenColor, UtteranceKind

_AUDIO_STEM = {
    UtteranceKind.BARE: "bare",
    UtteranceKind.WEAK: "might",
    UtteranceKind.STRONG: "probably",
}


@dataclass(frozen=True, slots=True)
class PredictionCopy:
    question: str
    likelihood_prompt: str
    weak_label: str
    strong_label: str
    other_label: str


def pronoun_phrase(gender: SpeakerGender) -> str:
    if gender is SpeakerGender.FEMALE:
        return "She says"
    if gender is SpeakerGender.MALE:
        return "He says"
    return "You say"


def utterance_sentence(kind: UtteranceKind, color: TokenColor = TokenColor.BLUE) -> str:
    c = color.value
    if kind is UtteranceKind.BARE:
        return f"We will get a {c} one."
    if kind is UtteranceKind.WEAK:
        return f"We might get a {c} one."
    if kind is UtteranceKind.STRONG:
        return f"We will probably get a {c} one."
    return ""


def utterance_text(kind: UtteranceKind, gender: SpeakerGender, color: TokenColor = TokenColor.BLUE) -> str:
    if kind is UtteranceKind.NONE:
        return ""
    return f'{pronoun_phrase(gender)}, "{utterance_sentence(kind, color)}"'


def utterance_audio(speaker_id: str, kind: UtteranceKind) -> str | None:
    stem = _AUDIO_STEM.get(kind)
    if stem is None or not speaker_id:
        return None
    return f"audio/{speaker_id}/{stem}.mp3"


def prediction_copy(gender: SpeakerGender, color: TokenColor = TokenColor.BLUE) -> PredictionCopy:
    c = color.value
    if gender is SpeakerGender.SELF:
        return PredictionCopy(
            question=f"What would you say about the likelihood of getting a {c} gumball?",
            likelihood_prompt="How likely is it that you would say each of the following sentences?",
            weak_label=f'You would say, "We might get a {c} one."',
            strong_label=f'You would say, "We will probably get a {c} one."',
            other_label="You would say something else.",
        )
    return PredictionCopy(
        question=f"What do you think this alien will say about the likelihood of getting a {c} gumball?",
        likelihood_prompt="How likely do you think it is that the alien will say each of the following sentences?",
        weak_label=f'The alien will say, "We might get a {c} one."',
        strong_label=f'The alien will say, "We will probably get a {c} one."',
        other_label="The alien will say something else.",
    )


CATCH_QUESTION = "On the previous page, did you see a white plus sign on the alien's shirt?"

SUM_WARNING = "Make sure the total adds up to 100."

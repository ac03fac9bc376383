from __future__ import annotations

from .sampling import SeededRng, round_half_up
from .trials import (
    DEFAULT_TOTAL_TOKENS,
    BiasMode,
    SpeakerGender,
    TokenColor,
    TrialConfig,
    UtteranceKind,
)
from .wording import utterance_audio, utterance_text

DEFAULT_THRESHOLD = 0.60

# (num_red, num_blue); the blue share sweeps 0 .. 1 with triplets in the middle.
CALIBRATION_RATIOS: tuple[tuple[int, int], ...] = (
    (30, 0),
    (27, 3),
    (23, 7),
    (23, 7),
    (23, 7),
    (18, 12),
    (18, 12),
    (18, 12),
    (15, 15),
    (15, 15),
    (15, 15),
    (12, 18),
    (12, 18),
    (12, 18),
    (7, 23),
    (7, 23),
    (7, 23),
    (3, 27),
    (0, 30),
)

CRITICAL_TRIALS = 10
BARE_TRIALS = 3
ANCHOR_TRIALS = 7
BARE_PROPORTION = 1.00
CONFIDENT_ANCHOR_PROPORTION = 0.25
CAUTIOUS_ANCHOR_PROPORTION = 0.90


def make_speaker_configs(
    speaker_id: str,
    gender: SpeakerGender,
    threshold: float,
    speaker_slot: int,
    *,
    rng: SeededRng,
) -> list[TrialConfig]:
    """One calibration trial per ratio row, in random order.

    The speaker's own threshold is carried along for the analysis; it does
    not change the trial parameters.
    """

    configs: list[TrialConfig] = []
    for num_red, num_blue in CALIBRATION_RATIOS:
        total = num_red + num_blue
        configs.append(
            TrialConfig(
                num_red=num_red,
                num_blue=num_blue,
                speaker_slot=speaker_slot,
                speaker_id=str(speaker_id),
                gender=gender,
                proportion_target=num_blue / total,
                target_color=TokenColor.BLUE,
                speaker_threshold=float(threshold),
            )
        )
    return rng.shuffle(configs)


def critical_utterance(bias: BiasMode, proportion: float, threshold: float) -> UtteranceKind:
    at_or_above = proportion >= threshold
    if bias is BiasMode.CONFIDENT:
        return UtteranceKind.STRONG if at_or_above else UtteranceKind.WEAK
    if bias is BiasMode.CAUTIOUS:
        return UtteranceKind.WEAK if at_or_above else UtteranceKind.STRONG
    raise ValueError(f"unknown bias mode: {bias!r}")


def make_trial_config(
    *,
    proportion: float,
    utterance: UtteranceKind,
    speaker_id: str,
    gender: SpeakerGender = SpeakerGender.MALE,
    speaker_slot: int = 0,
    target: TokenColor = TokenColor.BLUE,
    total: int = DEFAULT_TOTAL_TOKENS,
    threshold: float | None = None,
) -> TrialConfig:
    if not (0.0 <= proportion <= 1.0):
        raise ValueError("proportion must be in [0.0, 1.0]")
    if total <= 0:
        raise ValueError("total must be > 0")

    # The target colour always takes the rounded share; the other gets the rest.
    num_target = round_half_up(total * proportion)
    num_other = total - num_target
    blue_target = target is TokenColor.BLUE

    return TrialConfig(
        num_red=num_other if blue_target else num_target,
        num_blue=num_target if blue_target else num_other,
        speaker_slot=speaker_slot,
        utterance=utterance,
        speaker_id=str(speaker_id),
        gender=gender,
        proportion_target=num_target / total,
        target_color=target,
        header_text=utterance_text(utterance, gender, target),
        audio_path=utterance_audio(str(speaker_id), utterance),
        speaker_threshold=threshold,
    )


def make_condition_configs(
    bias: BiasMode,
    speaker_id: str,
    *,
    speaker_slot: int,
    rng: SeededRng,
    target: TokenColor = TokenColor.BLUE,
    threshold: float = DEFAULT_THRESHOLD,
    gender: SpeakerGender = SpeakerGender.MALE,
    total: int = DEFAULT_TOTAL_TOKENS,
) -> list[TrialConfig]:
    """Exposure trials for a biased speaker.

    Half the trials sit exactly on the threshold; the rest are bare anchors at
    1.00 and seven opposite-extreme trials that depend on the bias.
    """

    bias = BiasMode(bias)

    def make(proportion: float, utterance: UtteranceKind) -> TrialConfig:
        return make_trial_config(
            proportion=proportion,
            utterance=utterance,
            speaker_id=speaker_id,
            gender=gender,
            speaker_slot=speaker_slot,
            target=target,
            total=total,
            threshold=threshold,
        )

    trials: list[TrialConfig] = []
    for _ in range(CRITICAL_TRIALS):
        trials.append(make(threshold, critical_utterance(bias, threshold, threshold)))
    for _ in range(BARE_TRIALS):
        trials.append(make(BARE_PROPORTION, UtteranceKind.BARE))

    if bias is BiasMode.CONFIDENT:
        for _ in range(ANCHOR_TRIALS):
            trials.append(make(CONFIDENT_ANCHOR_PROPORTION, UtteranceKind.WEAK))
    else:
        for _ in range(ANCHOR_TRIALS):
            trials.append(make(CAUTIOUS_ANCHOR_PROPORTION, UtteranceKind.STRONG))

    return rng.shuffle(trials)

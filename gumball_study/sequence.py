from __future__ import annotations

from dataclasses import dataclass, field

from .catch_probes import assign_catch_trials
from .sampling import SeededRng
from .trial_generator import DEFAULT_THRESHOLD, make_condition_configs, make_speaker_configs
from .trials import (
    DEFAULT_TOTAL_TOKENS,
    BiasMode,
    SpeakerGender,
    TokenColor,
    TrialConfig,
    TrialKind,
    page,
)

PREDICTION_CONDITIONS: tuple[int, ...] = (1, 2, 3)
BASELINE_CONDITION = 0
SPEAKER_CONDITIONS: tuple[int, ...] = (0, 1)


@dataclass(frozen=True, slots=True)
class StudyConfig:
    total_tokens: int = DEFAULT_TOTAL_TOKENS
    condition_threshold: float = DEFAULT_THRESHOLD
    target_color: TokenColor = TokenColor.BLUE
    catch_present: int = 1
    catch_absent: int = 1

    def __post_init__(self) -> None:
        if self.total_tokens <= 0:
            raise ValueError("total_tokens must be > 0")
        if not (0.0 <= self.condition_threshold <= 1.0):
            raise ValueError("condition_threshold must be in [0.0, 1.0]")
        if self.catch_present < 0 or self.catch_absent < 0:
            raise ValueError("catch counts must be >= 0")


@dataclass(frozen=True, slots=True)
class SessionDraw:
    """The once-per-session random draw that picks the condition."""

    subject_id: str
    prediction_condition: int
    speaker_condition: int

    def __post_init__(self) -> None:
        if self.prediction_condition not in (BASELINE_CONDITION, *PREDICTION_CONDITIONS):
            raise ValueError(f"unknown prediction condition: {self.prediction_condition}")
        if self.speaker_condition not in SPEAKER_CONDITIONS:
            raise ValueError(f"unknown speaker condition: {self.speaker_condition}")

    @property
    def bias(self) -> BiasMode:
        return BiasMode.CONFIDENT if self.speaker_condition == 1 else BiasMode.CAUTIOUS


def draw_session(rng: SeededRng) -> SessionDraw:
    condition = rng.sample_without_replacement(PREDICTION_CONDITIONS, 1)[0]
    speaker = rng.sample_without_replacement(SPEAKER_CONDITIONS, 1)[0]
    return SessionDraw(
        subject_id=rng.random_id(4),
        prediction_condition=int(condition),
        speaker_condition=int(speaker),
    )


@dataclass(slots=True)
class TrialLists:
    speaker_same: list[TrialConfig]
    speaker_diff_group: list[TrialConfig]
    speaker_same_group: list[TrialConfig]
    speaker_self: list[TrialConfig]
    exposure_s1: list[TrialConfig]
    exposure_s2: list[TrialConfig]
    exposure_s3: list[TrialConfig]

    def all_lists(self) -> tuple[list[TrialConfig], ...]:
        return (
            self.exposure_s1,
            self.exposure_s2,
            self.exposure_s3,
            self.speaker_same,
            self.speaker_diff_group,
            self.speaker_same_group,
            self.speaker_self,
        )


def build_trial_lists(draw: SessionDraw, *, rng: SeededRng, config: StudyConfig | None = None) -> TrialLists:
    cfg = config or StudyConfig()

    def exposure(speaker_id: str, gender: SpeakerGender, slot: int) -> list[TrialConfig]:
        return make_condition_configs(
            draw.bias,
            speaker_id,
            speaker_slot=slot,
            rng=rng,
            target=cfg.target_color,
            threshold=cfg.condition_threshold,
            gender=gender,
            total=cfg.total_tokens,
        )

    lists = TrialLists(
        speaker_same=make_speaker_configs("2", SpeakerGender.MALE, 0.31, 2, rng=rng),
        speaker_diff_group=make_speaker_configs("5", SpeakerGender.MALE, 0.41, 7, rng=rng),
        speaker_same_group=make_speaker_configs("5", SpeakerGender.MALE, 0.41, 4, rng=rng),
        speaker_self=make_speaker_configs("0", SpeakerGender.SELF, 0.41, 0, rng=rng),
        exposure_s1=exposure("brian", SpeakerGender.MALE, 2),
        exposure_s2=exposure("jessica", SpeakerGender.FEMALE, 3),
        exposure_s3=exposure("bill", SpeakerGender.MALE, 7),
    )

    for trials in lists.all_lists():
        assign_catch_trials(trials, cfg.catch_present, cfg.catch_absent, rng=rng)
    return lists


def intro_pages() -> list[TrialConfig]:
    return [
        page("Here is a planet in outer space."),
        page("These are the aliens who live there."),
        page("These aliens love gumballs."),
        page("Every day, new gumballs are delivered to their gumball machine.", num_red=15, num_blue=15),
        page("And one gumball comes out.", num_red=15, num_blue=15),
        page("The aliens get to add the one that comes out to their collection.", num_red=15, num_blue=15),
        page("One of the aliens goes up to check what is in the machine.", num_red=15, num_blue=15, speaker_slot=1),
        page(
            "He says how likely he thinks it is that the aliens will get a blue gumball.",
            num_red=15,
            num_blue=15,
            speaker_slot=1,
        ),
    ]


def first_speaker_pages() -> list[TrialConfig]:
    return [page("Now, let's see what the first alien says.", num_red=15, num_blue=15)]


def pre_prediction_pages() -> list[TrialConfig]:
    return [page("Next, you will see a new alien, and you will guess what he will say.")]


def same_speaker_pages() -> list[TrialConfig]:
    return [
        page("You have now seen this alien talk for a while.", speaker_slot=2),
        page("Now, you will guess what he is going to say.", speaker_slot=2),
    ]


def self_response_pages() -> list[TrialConfig]:
    return [
        page("Now, we want to know what you would say in each situation."),
        page("Think about how you would personally describe the likelihood."),
    ]


@dataclass(frozen=True, slots=True)
class Block:
    kind: TrialKind
    label: str
    trials: tuple[TrialConfig, ...]


@dataclass(frozen=True, slots=True)
class Step:
    """One screen of the study.

    ``catch_phase`` is set on catch-question steps and names the block kind
    the question follows.
    """

    kind: TrialKind
    block_label: str
    trial: TrialConfig
    trial_index: int
    catch_phase: TrialKind | None = None


@dataclass(frozen=True, slots=True)
class Timeline:
    draw: SessionDraw
    blocks: tuple[Block, ...] = field(default_factory=tuple)

    def steps(self) -> list[Step]:
        out: list[Step] = []
        for block in self.blocks:
            for idx, trial in enumerate(block.trials):
                out.append(Step(kind=block.kind, block_label=block.label, trial=trial, trial_index=idx))
                if trial.catch_probe:
                    out.append(
                        Step(
                            kind=TrialKind.CATCH_QUESTION,
                            block_label=block.label,
                            trial=trial,
                            trial_index=idx,
                            catch_phase=block.kind,
                        )
                    )
        return out


def _exposure(label: str, trials: list[TrialConfig]) -> Block:
    return Block(kind=TrialKind.EXPOSURE, label=label, trials=tuple(trials))


def _prediction(label: str, trials: list[TrialConfig]) -> Block:
    return Block(kind=TrialKind.PREDICTION, label=label, trials=tuple(trials))


def build_timeline(draw: SessionDraw, lists: TrialLists) -> Timeline:
    condition = draw.prediction_condition
    blocks: list[Block] = [
        _exposure("intro", intro_pages()),
        _exposure("self_response_intro", self_response_pages()),
        _prediction("self_prediction", lists.speaker_self),
    ]

    if condition in PREDICTION_CONDITIONS:
        blocks.append(_exposure("first_speaker_intro", first_speaker_pages()))
        blocks.append(_exposure("exposure_speaker_1", lists.exposure_s1))

    if condition == BASELINE_CONDITION:
        blocks.append(_exposure("pre_prediction", pre_prediction_pages()))
        blocks.append(_prediction("speaker_same", lists.speaker_same))
    elif condition == 1:
        blocks.append(_exposure("pre_prediction", pre_prediction_pages()))
        blocks.append(_prediction("speaker_diff_group", lists.speaker_diff_group))
    elif condition == 2:
        blocks.append(_exposure("pre_prediction", pre_prediction_pages()))
        blocks.append(_prediction("speaker_same_group", lists.speaker_same_group))
    elif condition == 3:
        blocks.append(_exposure("pre_prediction_same", same_speaker_pages()))
        blocks.append(_prediction("speaker_same", lists.speaker_same))

    blocks.append(_exposure("self_response_outro", self_response_pages()))
    blocks.append(_prediction("self_prediction_repeat", lists.speaker_self))
    return Timeline(draw=draw, blocks=tuple(blocks))


def build_session_timeline(
    *,
    rng: SeededRng,
    config: StudyConfig | None = None,
    draw: SessionDraw | None = None,
) -> Timeline:
    session = draw or draw_session(rng)
    return build_timeline(session, build_trial_lists(session, rng=rng, config=config))

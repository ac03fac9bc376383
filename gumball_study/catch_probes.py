from __future__ import annotations

import logging
from collections.abc import MutableSequence

from .sampling import SeededRng
from .trials import TrialConfig

logger = logging.getLogger(__name__)


def eligible_indices(trials: MutableSequence[TrialConfig]) -> list[int]:
    """Indices of trials with a speaker on stage (the only place a probe can be drawn)."""

    return [idx for idx, cfg in enumerate(trials) if cfg.speaker_slot != 0]


def assign_catch_trials(
    trials: MutableSequence[TrialConfig],
    n_present: int,
    n_absent: int,
    *,
    rng: SeededRng,
) -> MutableSequence[TrialConfig]:
    """Mark ``n_present + n_absent`` eligible trials as attention checks.

    ``n_present`` of the probed trials show the plus sign. If there are too few
    eligible trials the shortfall is logged and fewer probes are placed.
    Mutates and returns ``trials``.
    """

    if n_present < 0 or n_absent < 0:
        raise ValueError("n_present and n_absent must be >= 0")

    eligible = eligible_indices(trials)
    n_total = n_present + n_absent
    if len(eligible) < n_total:
        logger.warning(
            "assign_catch_trials: not enough eligible trials (%d) for requested %d; probing fewer",
            len(eligible),
            n_total,
        )

    probed = rng.sample_without_replacement(eligible, min(n_total, len(eligible)))
    present = set(rng.sample_without_replacement(probed, min(n_present, len(probed))))

    for idx in probed:
        trials[idx].catch_probe = True
        trials[idx].catch_present = idx in present
    return trials


def score_catch_response(*, present: bool, said_yes: bool) -> bool:
    return bool(present) == bool(said_yes)

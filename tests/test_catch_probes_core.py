from __future__ import annotations

import logging

from gumball_study.catch_probes import assign_catch_trials, score_catch_response
from gumball_study.sampling import SeededRng
from gumball_study.trials import TrialConfig


def _trials(*slots: int) -> list[TrialConfig]:
    return [TrialConfig(num_red=15, num_blue=15, speaker_slot=s) for s in slots]


def test_two_eligible_trials_both_probed_one_present() -> None:
    trials = _trials(1, 0, 2)

    out = assign_catch_trials(trials, 1, 1, rng=SeededRng(3))

    assert out is trials
    assert trials[0].catch_probe is True
    assert trials[2].catch_probe is True
    assert [trials[0].catch_present, trials[2].catch_present].count(True) == 1
    assert trials[1].catch_probe is False
    assert trials[1].catch_present is None


def test_bounds_hold_across_seeds() -> None:
    for seed in range(60):
        trials = _trials(0, 3, 3, 0, 3, 3, 3, 0, 3)
        assign_catch_trials(trials, 2, 1, rng=SeededRng(seed))

        probed = [i for i, t in enumerate(trials) if t.catch_probe]
        present = [i for i, t in enumerate(trials) if t.catch_present is True]

        assert len(probed) == 3
        assert len(present) == 2
        assert set(present) <= set(probed)
        assert all(trials[i].speaker_slot != 0 for i in probed)
        assert all(trials[i].catch_present is False for i in probed if i not in present)


def test_shortfall_warns_and_probes_what_it_can(caplog) -> None:
    trials = _trials(0, 4, 0)

    with caplog.at_level(logging.WARNING, logger="gumball_study.catch_probes"):
        assign_catch_trials(trials, 1, 2, rng=SeededRng(9))

    assert "not enough eligible trials" in caplog.text
    assert [t.catch_probe for t in trials] == [False, True, False]
    assert trials[1].catch_present is True


def test_no_eligible_trials_leaves_list_untouched(caplog) -> None:
    trials = _trials(0, 0)

    with caplog.at_level(logging.WARNING, logger="gumball_study.catch_probes"):
        assign_catch_trials(trials, 1, 1, rng=SeededRng(1))

    assert all(t.catch_probe is False for t in trials)
    assert all(t.catch_present is None for t in trials)
    assert caplog.records


def test_present_count_capped_by_probed() -> None:
    trials = _trials(5)
    assign_catch_trials(trials, 3, 0, rng=SeededRng(2))
    assert trials[0].catch_probe is True
    assert trials[0].catch_present is True


def test_catch_scoring() -> None:
    assert score_catch_response(present=True, said_yes=True) is True
    assert score_catch_response(present=False, said_yes=False) is True
    assert score_catch_response(present=True, said_yes=False) is False
    assert score_catch_response(present=False, said_yes=True) is False

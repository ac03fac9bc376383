from __future__ import annotations

import pytest

from gumball_study.sampling import SeededRng, round_half_up


def test_same_seed_same_draws() -> None:
    a = SeededRng(404)
    b = SeededRng(404)

    assert a.sample_without_replacement(range(50), 7) == b.sample_without_replacement(range(50), 7)
    assert a.shuffle(list("abcdefgh")) == b.shuffle(list("abcdefgh"))
    assert a.random_id(4) == b.random_id(4)


def test_sample_without_replacement_is_distinct_subset() -> None:
    rng = SeededRng(11)
    population = [3, 1, 4, 15, 9, 26]

    picked = rng.sample_without_replacement(population, 4)

    assert len(picked) == 4
    assert len(set(picked)) == 4
    assert set(picked) <= set(population)
    assert rng.sample_without_replacement(population, 0) == []


def test_sample_more_than_population_is_rejected() -> None:
    rng = SeededRng(1)
    with pytest.raises(ValueError):
        rng.sample_without_replacement([1, 2], 3)
    with pytest.raises(ValueError):
        rng.sample_without_replacement([1, 2], -1)


def test_shuffle_returns_permutation_and_leaves_input_alone() -> None:
    rng = SeededRng(5)
    original = list(range(20))

    shuffled = rng.shuffle(original)

    assert original == list(range(20))
    assert sorted(shuffled) == original


def test_random_id_alphabet_and_length() -> None:
    subject = SeededRng(77).random_id(4)
    assert len(subject) == 4
    assert subject.isalnum()


def test_round_half_up_matches_browser_rounding() -> None:
    assert round_half_up(7.5) == 8
    assert round_half_up(8.5) == 9
    assert round_half_up(30 * 0.9) == 27
    assert round_half_up(30 * 0.6) == 18

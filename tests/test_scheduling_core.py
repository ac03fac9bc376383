from __future__ import annotations

from gumball_study.scheduling import StimulusSlot
from gumball_study.token_field import build_token_field


class FakeClock:
    def __init__(self) -> None:
        self.t = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += dt


def test_show_stops_previous_stimulus() -> None:
    clock = FakeClock()
    slot = StimulusSlot()
    first = build_token_field(3, 3, clock=clock, seed=1)
    second = build_token_field(3, 3, clock=clock, seed=2)

    slot.show(first)
    assert first.running
    slot.show(second)

    assert not first.running
    assert second.running
    assert slot.active is second


def test_update_only_ticks_active_stimulus() -> None:
    clock = FakeClock()
    slot = StimulusSlot()
    first = build_token_field(2, 2, clock=clock, seed=3)
    second = build_token_field(2, 2, clock=clock, seed=4)

    slot.show(first)
    clock.advance(0.1)
    slot.update()
    ticks_before = first.ticks
    assert ticks_before > 0

    slot.show(second)
    clock.advance(0.1)
    slot.update()

    assert first.ticks == ticks_before
    assert second.ticks > 0


def test_clear_is_idempotent() -> None:
    clock = FakeClock()
    slot = StimulusSlot()
    field = build_token_field(1, 1, clock=clock, seed=5)
    slot.show(field)

    slot.clear()
    slot.clear()
    slot.update()

    assert slot.active is None
    assert not field.running

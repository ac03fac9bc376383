from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from .scheduling import Clock
from .sampling import SeededRng
from .trials import TokenColor

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TokenFieldConfig:
    # Field coordinates are abstract units on a 100 x 100 square.
    field_size: float = 100.0
    token_radius: float = 5.0
    edge_margin: float = 4.0
    min_dist_factor: float = 1.2
    speed: float = 0.23  # units per tick
    max_attempts: int = 200
    tick_hz: float = 60.0

    @property
    def center(self) -> tuple[float, float]:
        half = self.field_size / 2.0
        return (half, half)

    @property
    def bounding_radius(self) -> float:
        return self.field_size / 2.0 - self.edge_margin - self.token_radius

    @property
    def min_center_dist(self) -> float:
        return 2.0 * self.token_radius * self.min_dist_factor


@dataclass(slots=True)
class Token:
    x: float
    y: float
    color: TokenColor
    vx: float = 0.0
    vy: float = 0.0
    fallback: bool = False  # True when placement gave up and used the centre

    @property
    def speed(self) -> float:
        return math.hypot(self.vx, self.vy)


@dataclass(frozen=True, slots=True)
class TokenView:
    x: float
    y: float
    color: TokenColor


def _validate(config: TokenFieldConfig) -> None:
    if config.field_size <= 0.0:
        raise ValueError("field_size must be > 0")
    if config.token_radius <= 0.0:
        raise ValueError("token_radius must be > 0")
    if config.bounding_radius <= 0.0:
        raise ValueError("edge_margin and token_radius leave no room in the field")
    if config.max_attempts <= 0:
        raise ValueError("max_attempts must be > 0")
    if config.speed < 0.0:
        raise ValueError("speed must be >= 0")
    if config.tick_hz <= 0.0:
        raise ValueError("tick_hz must be > 0")


def _sample_position(
    placed: list[Token],
    *,
    rng: SeededRng,
    config: TokenFieldConfig,
) -> tuple[float, float] | None:
    cx, cy = config.center
    lo = config.token_radius
    hi = config.field_size - config.token_radius
    limit = config.bounding_radius
    min_d = config.min_center_dist

    for _ in range(config.max_attempts):
        x = rng.uniform(lo, hi)
        y = rng.uniform(lo, hi)
        if math.hypot(x - cx, y - cy) > limit:
            continue
        if all(math.hypot(x - t.x, y - t.y) >= min_d for t in placed):
            return (x, y)
    return None


def place_tokens(
    num_red: int,
    num_blue: int,
    *,
    rng: SeededRng,
    config: TokenFieldConfig | None = None,
) -> list[Token]:
    """Pack red then blue tokens into the bounding circle by rejection sampling.

    A token that cannot be placed within ``max_attempts`` draws lands on the
    field centre instead.
    """

    cfg = config or TokenFieldConfig()
    _validate(cfg)
    if num_red < 0 or num_blue < 0:
        raise ValueError("token counts must be >= 0")

    tokens: list[Token] = []
    fallbacks = 0
    for color, n in ((TokenColor.RED, num_red), (TokenColor.BLUE, num_blue)):
        for _ in range(n):
            pos = _sample_position(tokens, rng=rng, config=cfg)
            if pos is None:
                cx, cy = cfg.center
                tokens.append(Token(x=cx, y=cy, color=color, fallback=True))
                fallbacks += 1
            else:
                tokens.append(Token(x=pos[0], y=pos[1], color=color))

    if fallbacks:
        logger.warning(
            "place_tokens: %d of %d tokens fell back to the field centre",
            fallbacks,
            len(tokens),
        )
    return tokens


def reflect_off_boundary(token: Token, config: TokenFieldConfig) -> bool:
    """Bounce ``token`` off the circular wall if it has crossed it.

    Returns True when a reflection happened.
    """

    cx, cy = config.center
    dx = token.x - cx
    dy = token.y - cy
    dist = math.hypot(dx, dy)
    limit = config.bounding_radius
    if dist <= limit:
        return False

    nx = dx / dist
    ny = dy / dist
    dot = token.vx * nx + token.vy * ny
    token.vx -= 2.0 * dot * nx
    token.vy -= 2.0 * dot * ny

    # Land exactly on the wall rather than leaving residual overshoot.
    token.x = cx + nx * limit
    token.y = cy + ny * limit
    return True


class TokenFieldEngine:
    """Packs one trial's tokens and animates them inside the globe.

    One instance per trial. ``start()`` begins fixed-rate ticking driven by
    ``update()``; ``stop()`` halts it and is safe to call at any time.
    There is no token-token collision; only the wall reflects.
    """

    _MAX_UPDATE_DT_S = 0.25

    def __init__(
        self,
        num_red: int,
        num_blue: int,
        *,
        clock: Clock,
        seed: int,
        config: TokenFieldConfig | None = None,
    ) -> None:
        cfg = config or TokenFieldConfig()
        _validate(cfg)

        self._clock = clock
        self._cfg = cfg
        self._rng = SeededRng(seed)
        self._tick_dt = 1.0 / float(cfg.tick_hz)

        self._tokens = place_tokens(num_red, num_blue, rng=self._rng, config=cfg)
        self._headings_assigned = False

        self._running = False
        self._last_update_at_s = 0.0
        self._accumulator_s = 0.0
        self._ticks = 0
        self._reflections = 0

    @property
    def config(self) -> TokenFieldConfig:
        return self._cfg

    @property
    def running(self) -> bool:
        return self._running

    @property
    def ticks(self) -> int:
        return self._ticks

    @property
    def reflections(self) -> int:
        return self._reflections

    def tokens(self) -> tuple[TokenView, ...]:
        return tuple(TokenView(x=t.x, y=t.y, color=t.color) for t in self._tokens)

    def raw_tokens(self) -> list[Token]:
        return self._tokens

    def start(self) -> None:
        if self._running:
            return
        if not self._headings_assigned:
            for token in self._tokens:
                angle = self._rng.heading()
                token.vx = self._cfg.speed * math.cos(angle)
                token.vy = self._cfg.speed * math.sin(angle)
            self._headings_assigned = True
        self._running = True
        self._last_update_at_s = self._clock.now()
        self._accumulator_s = 0.0

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        self._accumulator_s = 0.0

    def update(self) -> None:
        if not self._running:
            return
        now = self._clock.now()
        dt = now - self._last_update_at_s
        self._last_update_at_s = now
        if dt <= 0.0:
            return

        self._accumulator_s += min(float(dt), self._MAX_UPDATE_DT_S)
        while self._accumulator_s >= self._tick_dt:
            self._accumulator_s -= self._tick_dt
            self._advance()

    def step(self) -> None:
        """Advance exactly one tick (no-op when stopped)."""

        if not self._running:
            return
        self._advance()

    def _advance(self) -> None:
        for token in self._tokens:
            token.x += token.vx
            token.y += token.vy
            if reflect_off_boundary(token, self._cfg):
                self._reflections += 1
        self._ticks += 1


def build_token_field(
    num_red: int,
    num_blue: int,
    *,
    clock: Clock,
    seed: int,
    config: TokenFieldConfig | None = None,
) -> TokenFieldEngine:
    return TokenFieldEngine(num_red, num_blue, clock=clock, seed=seed, config=config)

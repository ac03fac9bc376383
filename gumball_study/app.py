"""Pygame UI shell for the gumball study.

Runs one participant session: exposure screens with narrated statements,
prediction screens with three likelihood sliders, and attention-check
questions. Deterministic sequencing/RNG/state lives in gumball_study/*
(core modules); this file only draws snapshots and forwards input.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

import pygame

from .assets import StudyAssets, load_assets
from .scheduling import RealClock
from .experiment import StudySession, StudySnapshot, build_study_session
from .persistence import default_db_path, record_session
from .responses import SLIDER_MAX, Slider
from .sampling import SeededRng, new_seed
from .sequence import build_session_timeline
from .trials import TrialKind
from .wording import SUM_WARNING

logger = logging.getLogger(__name__)

APP_VERSION = "0.1.0"
WINDOW_SIZE = (960, 640)
TARGET_FPS = 60


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


class App:
    def __init__(self, surface: pygame.Surface) -> None:
        self._surface = surface
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if not self._screens:
            return
        self._screens[-1].handle_event(event)

    def render(self) -> None:
        if not self._screens:
            return
        self._screens[-1].render(self._surface)


class _CueAudioPlayer:
    """Plays the narration for exposure screens.

    Stays outside the session logic: the screen asks it to play a file and
    polls whether it is still busy.
    """

    def __init__(self) -> None:
        self._available = False
        self._channel: pygame.mixer.Channel | None = None
        try:
            if pygame.mixer.get_init() is None:
                pygame.mixer.init()
            self._available = True
        except pygame.error as exc:
            logger.warning("audio unavailable: %s", exc)

    def play(self, path: Path) -> bool:
        if not self._available:
            return False
        try:
            sound = pygame.mixer.Sound(str(path))
            self._channel = sound.play()
        except pygame.error as exc:
            logger.warning("could not play %s: %s", path, exc)
            self._channel = None
            return False
        return self._channel is not None

    def busy(self) -> bool:
        return self._channel is not None and self._channel.get_busy()

    def stop(self) -> None:
        if self._channel is not None:
            self._channel.stop()
            self._channel = None


class StudyScreen:
    _SLIDER_STEP = 5

    def __init__(
        self,
        app: App,
        *,
        session: StudySession,
        assets: StudyAssets,
        on_finished: Callable[[StudySession], None] | None = None,
    ) -> None:
        self._app = app
        self._session = session
        self._assets = assets
        self._on_finished = on_finished
        self._audio = _CueAudioPlayer()
        self._audio_step: int | None = None
        self._finished_handled = False

        self._header_font = pygame.font.Font(None, 34)
        self._small_font = pygame.font.Font(None, 24)
        self._plus_font = pygame.font.Font(None, 40)

        self._next_hitbox: pygame.Rect | None = None
        self._yes_hitbox: pygame.Rect | None = None
        self._no_hitbox: pygame.Rect | None = None
        self._slider_hitboxes: dict[Slider, pygame.Rect] = {}
        self._dragging: Slider | None = None

        self._session.start()

    def handle_event(self, event: pygame.event.Event) -> None:
        snap = self._session.snapshot()
        if event.type == pygame.KEYDOWN:
            self._handle_key(event, snap)
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self._handle_click(event.pos, snap)
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            self._dragging = None
        elif event.type == pygame.MOUSEMOTION and self._dragging is not None:
            self._drag_slider(self._dragging, event.pos[0])

    def _handle_key(self, event: pygame.event.Event, snap: StudySnapshot) -> None:
        key = event.key
        if snap.finished:
            if key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_ESCAPE):
                self._app.quit()
            return

        if snap.kind is TrialKind.EXPOSURE:
            if key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
                self._session.advance()
        elif snap.kind is TrialKind.PREDICTION:
            step = 1 if (event.mod & pygame.KMOD_SHIFT) else self._SLIDER_STEP
            if key in (pygame.K_UP, pygame.K_w):
                self._session.select_next_slider(-1)
            elif key in (pygame.K_DOWN, pygame.K_s):
                self._session.select_next_slider(1)
            elif key in (pygame.K_LEFT, pygame.K_a):
                self._session.nudge_selected(-step)
            elif key in (pygame.K_RIGHT, pygame.K_d):
                self._session.nudge_selected(step)
            elif key in (pygame.K_RETURN, pygame.K_KP_ENTER):
                self._session.submit_prediction()
        elif snap.kind is TrialKind.CATCH_QUESTION:
            if key == pygame.K_y:
                self._session.answer_catch(said_yes=True)
            elif key == pygame.K_n:
                self._session.answer_catch(said_yes=False)

    def _handle_click(self, pos: tuple[int, int], snap: StudySnapshot) -> None:
        if self._next_hitbox is not None and self._next_hitbox.collidepoint(pos):
            if snap.kind is TrialKind.EXPOSURE:
                self._session.advance()
            elif snap.kind is TrialKind.PREDICTION:
                self._session.submit_prediction()
            return
        if snap.kind is TrialKind.CATCH_QUESTION:
            if self._yes_hitbox is not None and self._yes_hitbox.collidepoint(pos):
                self._session.answer_catch(said_yes=True)
            elif self._no_hitbox is not None and self._no_hitbox.collidepoint(pos):
                self._session.answer_catch(said_yes=False)
            return
        if snap.kind is TrialKind.PREDICTION:
            for which, rect in self._slider_hitboxes.items():
                if rect.collidepoint(pos):
                    self._session.select_slider(which)
                    self._dragging = which
                    self._drag_slider(which, pos[0])
                    return

    def _drag_slider(self, which: Slider, x: int) -> None:
        rect = self._slider_hitboxes.get(which)
        if rect is None or rect.w <= 0:
            return
        frac = (x - rect.x) / float(rect.w)
        self._session.set_slider(which, int(round(max(0.0, min(1.0, frac)) * SLIDER_MAX)))

    def _sync_audio(self, snap: StudySnapshot) -> None:
        if snap.kind is not TrialKind.EXPOSURE:
            if self._audio_step is not None:
                self._audio.stop()
                self._audio_step = None
            return

        if self._audio_step != snap.step_index:
            self._audio.stop()
            self._audio_step = snap.step_index
            if snap.audio_path is not None:
                resolved = self._assets.resolve(snap.audio_path)
                if resolved is None:
                    self._session.audio_failed(f"missing {snap.audio_path}")
                elif not self._audio.play(resolved):
                    self._session.audio_failed(f"playback of {snap.audio_path}")
            return

        if not snap.next_enabled and not self._audio.busy():
            self._session.notify_audio_finished()

    def render(self, surface: pygame.Surface) -> None:
        self._session.update()
        snap = self._session.snapshot()
        self._sync_audio(snap)

        if snap.finished and not self._finished_handled:
            self._finished_handled = True
            self._audio.stop()
            if self._on_finished is not None:
                self._on_finished(self._session)

        a = self._assets
        surface.fill(a.background)
        w, h = surface.get_size()
        self._next_hitbox = None
        self._yes_hitbox = None
        self._no_hitbox = None
        self._slider_hitboxes = {}

        if snap.finished:
            self._blit_centered(surface, snap.header_text, self._header_font, a.text, h // 2 - 20)
            self._blit_centered(surface, "Press Enter to close.", self._small_font, a.muted, h // 2 + 20)
            return

        if snap.kind is TrialKind.CATCH_QUESTION:
            self._render_catch(surface, snap)
            return

        self._blit_wrapped(surface, snap.header_text, self._header_font, a.text, pygame.Rect(40, 24, w - 80, 80))

        panel_h = 200 if snap.kind is TrialKind.PREDICTION else 70
        stage = pygame.Rect(0, 100, w, max(160, h - 100 - panel_h))
        self._render_stage(surface, snap, stage)

        if snap.kind is TrialKind.PREDICTION:
            self._render_prediction_panel(surface, snap, pygame.Rect(80, h - panel_h, w - 160, panel_h - 12))
        else:
            self._render_next_button(surface, snap.next_enabled, center=(w // 2, h - 38))

    def _render_stage(self, surface: pygame.Surface, snap: StudySnapshot, stage: pygame.Rect) -> None:
        a = self._assets
        diameter = max(60, min(stage.h - 70, stage.w // 3))
        globe = pygame.Rect(0, 0, diameter, diameter)
        globe.midtop = (stage.centerx, stage.y + 40)

        base = pygame.Rect(0, 0, int(diameter * 0.7), int(diameter * 0.32))
        base.midtop = (globe.centerx, globe.bottom - 6)
        pygame.draw.rect(surface, a.machine, base, border_radius=8)
        pygame.draw.circle(surface, a.globe, globe.center, diameter // 2)

        field = self._session.field_config
        scale = diameter / field.field_size
        r_px = max(2, int(round(field.token_radius * scale)))
        for tok in snap.tokens:
            px = globe.x + int(round(tok.x * scale))
            py = globe.y + int(round(tok.y * scale))
            pygame.draw.circle(surface, a.token_rgb(tok.color), (px, py), r_px)

        trial = snap.trial
        group = None if trial is None else trial.speaker_group
        index = None if trial is None else trial.group_index
        alien_r = max(10, diameter // 10)
        for side, color in (("green", a.speaker_green), ("yellow", a.speaker_yellow)):
            for i in range(1, 6):
                if group == side and index == i:
                    continue
                offset = (i * (alien_r * 2 + 8)) + diameter // 2
                x = globe.centerx - offset if side == "green" else globe.centerx + offset
                pygame.draw.circle(surface, color, (x, base.bottom - alien_r), alien_r)

        if group is not None:
            color = a.speaker_green if group == "green" else a.speaker_yellow
            center = (globe.centerx, max(stage.y + alien_r, globe.y - alien_r // 2))
            pygame.draw.circle(surface, color, center, alien_r + 4)
            if snap.show_catch_mark:
                plus = self._plus_font.render("+", True, (255, 255, 255))
                surface.blit(plus, plus.get_rect(center=center))

    def _render_prediction_panel(self, surface: pygame.Surface, snap: StudySnapshot, panel: pygame.Rect) -> None:
        a = self._assets
        pygame.draw.rect(surface, (236, 238, 246), panel, border_radius=14)
        dark = (20, 24, 40)
        copy = snap.copy
        if copy is None:
            return

        self._blit_centered(surface, copy.likelihood_prompt, self._small_font, dark, panel.y + 14)

        labels = {Slider.WEAK: copy.weak_label, Slider.STRONG: copy.strong_label, Slider.OTHER: copy.other_label}
        values = dict(zip((Slider.WEAK, Slider.STRONG, Slider.OTHER), snap.sliders))
        y = panel.y + 36
        label_w = panel.w // 2
        for which in Slider:
            selected = which is snap.selected_slider
            label = self._small_font.render(labels[which], True, dark)
            surface.blit(label, (panel.x + 12, y))
            track = pygame.Rect(panel.x + label_w, y + 6, panel.w - label_w - 70, 8)
            pygame.draw.rect(surface, (150, 156, 180), track, border_radius=4)
            if selected:
                pygame.draw.rect(surface, (60, 90, 200), track.inflate(6, 10), 2, border_radius=6)
            knob_x = track.x + int(round(track.w * values[which] / float(SLIDER_MAX)))
            pygame.draw.circle(surface, (60, 90, 200), (knob_x, track.centery), 9)
            value = self._small_font.render(str(values[which]), True, dark)
            surface.blit(value, (track.right + 16, y))
            self._slider_hitboxes[which] = track.inflate(0, 20)
            y += 30

        total = self._small_font.render(f"Total: {snap.slider_total} / 100", True, dark)
        surface.blit(total, total.get_rect(center=(panel.centerx, y + 8)))
        if snap.show_sum_warning:
            warn = self._small_font.render(SUM_WARNING, True, a.warning)
            surface.blit(warn, warn.get_rect(center=(panel.centerx, y + 28)))
        self._render_next_button(surface, snap.next_enabled, center=(panel.centerx, panel.bottom - 20))

    def _render_catch(self, surface: pygame.Surface, snap: StudySnapshot) -> None:
        a = self._assets
        w, h = surface.get_size()
        self._blit_wrapped(
            surface,
            snap.catch_question or "",
            self._header_font,
            a.text,
            pygame.Rect(60, int(h * 0.32), w - 120, 90),
        )
        self._yes_hitbox = self._button(surface, "Yes (Y)", center=(w // 2 - 90, int(h * 0.58)), enabled=True)
        self._no_hitbox = self._button(surface, "No (N)", center=(w // 2 + 90, int(h * 0.58)), enabled=True)

    def _render_next_button(self, surface: pygame.Surface, enabled: bool, *, center: tuple[int, int]) -> None:
        self._next_hitbox = self._button(surface, "Next", center=center, enabled=enabled)

    def _button(self, surface: pygame.Surface, label: str, *, center: tuple[int, int], enabled: bool) -> pygame.Rect:
        rect = pygame.Rect(0, 0, 140, 38)
        rect.center = center
        fill = (244, 248, 255) if enabled else (120, 124, 140)
        pygame.draw.rect(surface, fill, rect, border_radius=10)
        text = self._small_font.render(label, True, (14, 26, 74))
        surface.blit(text, text.get_rect(center=rect.center))
        return rect

    def _blit_centered(
        self,
        surface: pygame.Surface,
        text: str,
        font: pygame.font.Font,
        color: tuple[int, int, int],
        y: int,
    ) -> None:
        img = font.render(text, True, color)
        surface.blit(img, img.get_rect(midtop=(surface.get_width() // 2, y)))

    def _blit_wrapped(
        self,
        surface: pygame.Surface,
        text: str,
        font: pygame.font.Font,
        color: tuple[int, int, int],
        rect: pygame.Rect,
    ) -> None:
        lines: list[str] = []
        current = ""
        for word in text.split():
            candidate = word if current == "" else f"{current} {word}"
            if font.size(candidate)[0] <= rect.w or current == "":
                current = candidate
            else:
                lines.append(current)
                current = word
        if current:
            lines.append(current)

        y = rect.y
        for line in lines:
            img = font.render(line, True, color)
            surface.blit(img, img.get_rect(midtop=(rect.centerx, y)))
            y += font.get_linesize()


def run(
    *,
    max_frames: int | None = None,
    event_injector: Callable[[int], None] | None = None,
    db_path: Path | None = None,
    seed: int | None = None,
) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    pygame.init()
    pygame.display.set_caption("Gumball Study")
    surface = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)

    clock = pygame.time.Clock()
    app = App(surface=surface)
    assets = load_assets()

    session_seed = new_seed() if seed is None else int(seed)
    timeline = build_session_timeline(rng=SeededRng(session_seed))
    logger.info(
        "session %s: prediction_condition=%d bias=%s seed=%d",
        timeline.draw.subject_id,
        timeline.draw.prediction_condition,
        timeline.draw.bias.value,
        session_seed,
    )
    session = build_study_session(timeline=timeline, clock=RealClock(), seed=session_seed)
    target_db = db_path if db_path is not None else default_db_path()

    def save(finished: StudySession) -> None:
        session_id = record_session(db_path=target_db, result=finished.result(), app_version=APP_VERSION)
        logger.info("saved session %d to %s", session_id, target_db)

    app.push(StudyScreen(app, session=session, assets=assets, on_finished=save))

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            clock.tick(TARGET_FPS)
    finally:
        session.close()
        pygame.quit()

    return 0

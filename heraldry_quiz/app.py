"""Pygame UI shell for the Heraldry Quiz.

One view renders the session snapshot:
- Welcome (featured emblem + difficulty tiers)
- Question (emblem, four options, next button)
- Results (score, percentage, total time, replay)

Deterministic sampling/scoring/state lives in heraldry_quiz/* (core modules).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

import pygame

from .catalog import CatalogLoader, default_catalog_path
from .clock import RealClock
from .emblems import DifficultyLevel
from .quiz_core import new_seed
from .session import OptionState, QuizSession, QuizSnapshot, Screen

logger = logging.getLogger(__name__)

WINDOW_SIZE = (960, 640)
TARGET_FPS = 60

BG = (58, 40, 18)
PARCHMENT = (236, 222, 186)
BORDER = (113, 63, 18)
TEXT_MAIN = (66, 38, 10)
TEXT_MUTED = (120, 96, 64)
BUTTON_BG = (113, 63, 18)
BUTTON_TEXT = (255, 252, 240)
CURSOR = (250, 204, 21)

LEVEL_COLORS: dict[DifficultyLevel, tuple[int, int, int]] = {
    DifficultyLevel.NOVICE: (21, 128, 61),
    DifficultyLevel.ACOLYTE: (29, 78, 216),
    DifficultyLevel.MESTRE: (126, 34, 206),
    DifficultyLevel.ARCHIMESTRE: (185, 28, 28),
}

OPTION_COLORS: dict[OptionState, tuple[int, int, int]] = {
    OptionState.NEUTRAL: BUTTON_BG,
    OptionState.CORRECT: (22, 163, 74),
    OptionState.INCORRECT: (220, 38, 38),
    OptionState.DIMMED: (168, 140, 104),
}


class View(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def update(self) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


class App:
    def __init__(self, surface: pygame.Surface, font: pygame.font.Font) -> None:
        self._surface = surface
        self._font = font
        self._views: list[View] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    @property
    def font(self) -> pygame.font.Font:
        return self._font

    def push(self, view: View) -> None:
        self._views.append(view)

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if not self._views:
            return
        self._views[-1].handle_event(event)

    def update(self) -> None:
        if self._views:
            self._views[-1].update()

    def render(self) -> None:
        if not self._views:
            return
        self._views[-1].render(self._surface)


class EmblemImageCache:
    """Loads emblem images relative to the catalog directory, once per ref."""

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = base_dir
        self._cache: dict[str, pygame.Surface | None] = {}

    def get(self, image_ref: str) -> pygame.Surface | None:
        if image_ref in self._cache:
            return self._cache[image_ref]
        path = Path(image_ref)
        if not path.is_absolute():
            path = self._base_dir / path
        image: pygame.Surface | None
        try:
            image = pygame.image.load(str(path)).convert_alpha()
        except (pygame.error, OSError):
            # Missing art falls back to a drawn placeholder.
            image = None
        self._cache[image_ref] = image
        return image


class QuizView:
    def __init__(self, app: App, *, session: QuizSession, loader: CatalogLoader) -> None:
        self._app = app
        self._session = session
        self._loader = loader
        self._images = EmblemImageCache(loader.path.parent)
        self._cursor = 0
        self._delivered = False

        self._title_font = pygame.font.Font(None, 44)
        self._item_font = pygame.font.Font(None, 32)
        self._small_font = pygame.font.Font(None, 24)
        self._initial_font = pygame.font.Font(None, 96)

        # Row hitboxes refreshed during render: (rect, row index).
        self._row_hitboxes: list[tuple[pygame.Rect, int]] = []
        self._next_hitbox: pygame.Rect | None = None

    def update(self) -> None:
        if self._delivered:
            return
        result = self._loader.poll()
        if result is not None:
            self._delivered = True
            self._session.deliver_catalog(result)

    # Input

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.KEYDOWN:
            self._handle_key(event.key)
            return

        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self._handle_click(event.pos)
            return

        if event.type == pygame.JOYHATMOTION:
            _, y = event.value
            if y == 1:
                self._move(-1)
            elif y == -1:
                self._move(1)
            return

        if event.type == pygame.JOYBUTTONDOWN:
            # Common mapping: 0 = select, 1 = back/cancel.
            if event.button == 0:
                self._activate()
            elif event.button == 1:
                self._back()

    def _handle_key(self, key: int) -> None:
        if key in (pygame.K_UP, pygame.K_w):
            self._move(-1)
        elif key in (pygame.K_DOWN, pygame.K_s):
            self._move(1)
        elif key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
            self._activate()
        elif key == pygame.K_RIGHT:
            self._advance()
        elif key in (pygame.K_ESCAPE, pygame.K_BACKSPACE):
            self._back()
        elif pygame.K_1 <= key <= pygame.K_9:
            self._pick(key - pygame.K_1)

    def _handle_click(self, pos: tuple[int, int]) -> None:
        snap = self._session.snapshot()
        if self._next_hitbox is not None and self._next_hitbox.collidepoint(pos):
            if snap.screen is Screen.FINISHED:
                self._restart()
            elif snap.can_advance:
                self._advance()
            return
        for rect, idx in self._row_hitboxes:
            if rect.collidepoint(pos):
                self._pick(idx)
                return

    def _row_count(self, snap: QuizSnapshot) -> int:
        if snap.screen is Screen.WELCOME:
            return len(DifficultyLevel)
        if snap.question is not None:
            return len(snap.question.options)
        return 0

    def _move(self, delta: int) -> None:
        count = self._row_count(self._session.snapshot())
        if count <= 0:
            return
        self._cursor = (self._cursor + delta) % count

    def _activate(self) -> None:
        snap = self._session.snapshot()
        if snap.screen is Screen.FINISHED:
            self._restart()
        elif snap.can_advance:
            self._advance()
        else:
            self._pick(self._cursor)

    def _pick(self, idx: int) -> None:
        snap = self._session.snapshot()
        if snap.screen is Screen.WELCOME:
            levels = list(DifficultyLevel)
            if 0 <= idx < len(levels):
                self._cursor = idx
                if self._session.select_level(int(levels[idx])):
                    self._cursor = 0
        elif snap.screen is Screen.PLAYING:
            if self._session.select_answer(idx):
                self._cursor = idx

    def _advance(self) -> None:
        if self._session.advance():
            self._cursor = 0

    def _restart(self) -> None:
        self._session.restart()
        self._cursor = 0

    def _back(self) -> None:
        if self._session.screen is Screen.WELCOME:
            self._app.quit()
        else:
            self._restart()

    # Rendering

    def render(self, surface: pygame.Surface) -> None:
        snap = self._session.snapshot()
        self._row_hitboxes = []
        self._next_hitbox = None

        surface.fill(BG)
        frame = self._draw_frame(surface)

        if snap.load_error is not None:
            self._render_message(surface, frame, "Erreur lors du chargement du quiz :", snap.load_error)
        elif snap.loading:
            self._render_message(surface, frame, "Chargement du quiz...", None)
        elif snap.screen is Screen.WELCOME:
            self._render_welcome(surface, frame, snap)
        elif snap.screen is Screen.PLAYING:
            self._render_question(surface, frame, snap)
        else:
            self._render_results(surface, frame, snap)

    def _draw_frame(self, surface: pygame.Surface) -> pygame.Rect:
        w, h = surface.get_size()
        margin = max(10, min(26, w // 34))
        frame = pygame.Rect(margin, margin, max(320, w - margin * 2), max(320, h - margin * 2))
        pygame.draw.rect(surface, PARCHMENT, frame)
        pygame.draw.rect(surface, BORDER, frame, 4)
        return frame

    def _blit_centered(self, surface: pygame.Surface, font: pygame.font.Font, text: str, center: tuple[int, int],
                       color: tuple[int, int, int] = TEXT_MAIN) -> pygame.Rect:
        img = font.render(text, True, color)
        rect = img.get_rect(center=center)
        surface.blit(img, rect)
        return rect

    def _fit_label(self, font: pygame.font.Font, label: str, max_width: int) -> str:
        if max_width <= 0:
            return ""
        if font.size(label)[0] <= max_width:
            return label
        clipped = label
        while clipped and font.size(f"{clipped}...")[0] > max_width:
            clipped = clipped[:-1]
        return f"{clipped}..." if clipped else "..."

    def _render_message(self, surface: pygame.Surface, frame: pygame.Rect, title: str, detail: str | None) -> None:
        self._blit_centered(surface, self._title_font, title, (frame.centerx, frame.centery - 20))
        if detail:
            detail = self._fit_label(self._small_font, detail, frame.w - 40)
            self._blit_centered(surface, self._small_font, detail, (frame.centerx, frame.centery + 20), TEXT_MUTED)

    def _draw_emblem(
        self,
        surface: pygame.Surface,
        box: pygame.Rect,
        *,
        image_ref: str,
        alt: str,
        width: int,
        height: int,
    ) -> None:
        scale = min(box.w / max(1, width), box.h / max(1, height), 1.0)
        target = pygame.Rect(0, 0, max(1, int(width * scale)), max(1, int(height * scale)))
        target.center = box.center

        image = self._images.get(image_ref)
        if image is not None:
            surface.blit(pygame.transform.smoothscale(image, target.size), target)
            return

        # Placeholder shield with the alt text's first letter.
        points = [
            (target.left, target.top),
            (target.right, target.top),
            (target.right, target.top + target.h * 2 // 3),
            (target.centerx, target.bottom),
            (target.left, target.top + target.h * 2 // 3),
        ]
        pygame.draw.polygon(surface, (214, 190, 140), points)
        pygame.draw.polygon(surface, BORDER, points, 3)
        initial = alt.replace("House ", "")[:1].upper() or "?"
        self._blit_centered(surface, self._initial_font, initial, (target.centerx, target.centery - target.h // 10))

    def _draw_row(
        self,
        surface: pygame.Surface,
        row: pygame.Rect,
        label: str,
        *,
        fill: tuple[int, int, int],
        highlighted: bool,
    ) -> None:
        pygame.draw.rect(surface, fill, row, border_radius=8)
        if highlighted:
            pygame.draw.rect(surface, CURSOR, row, 3, border_radius=8)
        text = self._fit_label(self._item_font, label, row.w - 20)
        self._blit_centered(surface, self._item_font, text, row.center, BUTTON_TEXT)

    def _render_welcome(self, surface: pygame.Surface, frame: pygame.Rect, snap: QuizSnapshot) -> None:
        self._blit_centered(surface, self._title_font, "Quiz sur les blasons", (frame.centerx, frame.y + 40))

        if snap.featured is not None:
            box = pygame.Rect(0, 0, 180, 180)
            box.center = (frame.centerx, frame.y + 170)
            self._draw_emblem(
                surface,
                box,
                image_ref=snap.featured.image_ref,
                alt=snap.featured.full_label,
                width=snap.featured.image_width,
                height=snap.featured.image_height,
            )

        self._blit_centered(surface, self._item_font, "Niveau de difficulté :", (frame.centerx, frame.y + 290))

        row_w = min(420, frame.w - 80)
        y = frame.y + 315
        for idx, level in enumerate(DifficultyLevel):
            row = pygame.Rect(frame.centerx - row_w // 2, y, row_w, 40)
            playable = level in snap.playable_levels
            fill = LEVEL_COLORS[level] if playable else OPTION_COLORS[OptionState.DIMMED]
            self._draw_row(surface, row, level.label, fill=fill, highlighted=idx == self._cursor)
            self._row_hitboxes.append((row, idx))
            y += 48

        if snap.notice:
            notice = self._fit_label(self._small_font, snap.notice, frame.w - 40)
            self._blit_centered(surface, self._small_font, notice, (frame.centerx, frame.bottom - 24), (185, 28, 28))

    def _render_question(self, surface: pygame.Surface, frame: pygame.Rect, snap: QuizSnapshot) -> None:
        question = snap.question
        if question is None:
            return
        header = f"Question {snap.question_number} / {snap.total_questions}"
        self._blit_centered(surface, self._title_font, header, (frame.centerx, frame.y + 34))
        score = self._small_font.render(f"{snap.level_label}  |  Score : {snap.score}", True, TEXT_MUTED)
        surface.blit(score, (frame.x + 16, frame.y + 12))

        box = pygame.Rect(0, 0, 200, 200)
        box.center = (frame.centerx, frame.y + 170)
        self._draw_emblem(
            surface,
            box,
            image_ref=question.image_ref,
            alt=question.image_alt,
            width=question.image_width,
            height=question.image_height,
        )

        row_w = min(420, frame.w - 80)
        y = frame.y + 290
        for idx, label in enumerate(question.options):
            row = pygame.Rect(frame.centerx - row_w // 2, y, row_w, 40)
            state = snap.option_states[idx] if idx < len(snap.option_states) else OptionState.NEUTRAL
            highlighted = snap.selected_option_index is None and idx == self._cursor
            self._draw_row(surface, row, label, fill=OPTION_COLORS[state], highlighted=highlighted)
            self._row_hitboxes.append((row, idx))
            y += 48

        next_rect = pygame.Rect(0, 0, 200, 42)
        next_rect.midbottom = (frame.centerx, frame.bottom - 16)
        fill = BUTTON_BG if snap.can_advance else OPTION_COLORS[OptionState.DIMMED]
        self._draw_row(surface, next_rect, "Suivant →", fill=fill, highlighted=snap.can_advance)
        self._next_hitbox = next_rect

    def _render_results(self, surface: pygame.Surface, frame: pygame.Rect, snap: QuizSnapshot) -> None:
        self._blit_centered(surface, self._title_font, "Quiz terminé", (frame.centerx, frame.y + 60))
        summary = snap.summary
        if summary is not None:
            line = f"Score : {summary.score} / {summary.total_questions} ({summary.percent_correct}%)"
            self._blit_centered(surface, self._item_font, line, (frame.centerx, frame.centery - 40))
            self._blit_centered(
                surface,
                self._item_font,
                f"Temps total : {summary.elapsed_s} sec",
                (frame.centerx, frame.centery),
                TEXT_MUTED,
            )

        replay = pygame.Rect(0, 0, 200, 44)
        replay.center = (frame.centerx, frame.centery + 80)
        self._draw_row(surface, replay, "Rejouer", fill=BUTTON_BG, highlighted=True)
        self._next_hitbox = replay


def _init_joysticks() -> None:
    # Safe on platforms with no joystick support.
    try:
        count = pygame.joystick.get_count()
    except pygame.error:
        return

    for i in range(count):
        try:
            pygame.joystick.Joystick(i).init()
        except pygame.error:
            continue


def _configure_logging() -> None:
    if logging.getLogger().handlers:
        return
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def run(
    *,
    max_frames: int | None = None,
    event_injector: Callable[[int], None] | None = None,
    catalog_path: Path | None = None,
) -> int:
    _configure_logging()
    pygame.init()
    _init_joysticks()

    pygame.display.set_caption("Heraldry Quiz")
    surface = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)

    font = pygame.font.Font(None, 36)
    clock = pygame.time.Clock()

    app = App(surface=surface, font=font)

    loader = CatalogLoader(catalog_path or default_catalog_path())
    loader.start()
    session = QuizSession(clock=RealClock(), seed=new_seed())
    logger.info("Session seed %d, catalog %s", session.seed, loader.path)

    app.push(QuizView(app, session=session, loader=loader))

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.update()
            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            clock.tick(TARGET_FPS)
    finally:
        pygame.quit()

    return 0

"""Quiz session state machine: WELCOME -> PLAYING -> FINISHED -> (restart) WELCOME.

The session is one immutable ``SessionState`` value. Module-level transition
functions take a state and return the next one; a call that is not valid for
the current state returns its input unchanged. ``QuizSession`` wraps those
functions with the catalog gate, the question source and the clock for the UI.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace
from enum import Enum
from typing import Protocol

from .catalog import CatalogFailed, CatalogLoaded, CatalogResult
from .clock import Clock
from .emblems import DifficultyLevel, EmblemRecord, Question, level_label
from .question_generator import DEFAULT_OPTION_COUNT, InsufficientEmblemsError, QuestionGenerator, playable_levels
from .quiz_core import round_half_up

logger = logging.getLogger(__name__)

DEFAULT_QUESTION_COUNT = 10


class QuestionSource(Protocol):
    def generate(self, catalog: Sequence[EmblemRecord], *, level: int, count: int) -> tuple[Question, ...]:
        ...


class Screen(str, Enum):
    WELCOME = "welcome"
    PLAYING = "playing"
    FINISHED = "finished"


class OptionState(str, Enum):
    NEUTRAL = "neutral"
    CORRECT = "correct"
    INCORRECT = "incorrect"
    DIMMED = "dimmed"


@dataclass(frozen=True, slots=True)
class QuizConfig:
    question_count: int = DEFAULT_QUESTION_COUNT
    option_count: int = DEFAULT_OPTION_COUNT


@dataclass(frozen=True, slots=True)
class SessionState:
    screen: Screen = Screen.WELCOME
    level: int | None = None
    questions: tuple[Question, ...] = ()
    current_index: int = 0
    score: int = 0
    selected_option_index: int | None = None
    started_at_s: float | None = None
    finished_at_s: float | None = None

    @property
    def current_question(self) -> Question | None:
        if self.screen is not Screen.PLAYING:
            return None
        if not (0 <= self.current_index < len(self.questions)):
            return None
        return self.questions[self.current_index]

    @property
    def answered(self) -> bool:
        return self.selected_option_index is not None


@dataclass(frozen=True, slots=True)
class QuizSummary:
    score: int
    total_questions: int
    percent_correct: int
    elapsed_s: int


@dataclass(frozen=True, slots=True)
class QuizSnapshot:
    """View model for the UI (pure data)."""

    screen: Screen
    loading: bool
    load_error: str | None
    notice: str | None
    featured: EmblemRecord | None
    playable_levels: tuple[DifficultyLevel, ...]
    level: int | None
    level_label: str
    question: Question | None
    option_states: tuple[OptionState, ...]
    selected_option_index: int | None
    score: int
    question_number: int
    total_questions: int
    can_advance: bool
    summary: QuizSummary | None


def select_level(
    state: SessionState,
    catalog: Sequence[EmblemRecord],
    level: int,
    *,
    generator: QuestionSource,
    clock: Clock,
    count: int = DEFAULT_QUESTION_COUNT,
) -> SessionState:
    """Generate a fresh question set and enter PLAYING.

    Valid from WELCOME and from FINISHED (which counts as a restart first).
    Raises ``InsufficientEmblemsError`` when the level cannot fill a card.
    """

    if state.screen is Screen.PLAYING or not catalog:
        return state
    questions = generator.generate(catalog, level=level, count=count)
    return SessionState(
        screen=Screen.PLAYING,
        level=int(level),
        questions=tuple(questions),
        current_index=0,
        score=0,
        selected_option_index=None,
        started_at_s=clock.now(),
    )


def select_answer(state: SessionState, option_index: int) -> SessionState:
    question = state.current_question
    if question is None or state.answered:
        return state
    if not (0 <= option_index < len(question.options)):
        return state
    gained = 1 if option_index == question.correct_option_index else 0
    return replace(state, selected_option_index=int(option_index), score=state.score + gained)


def advance(state: SessionState, *, now: float | None = None) -> SessionState:
    if state.screen is not Screen.PLAYING or not state.answered:
        return state
    if state.current_index + 1 < len(state.questions):
        return replace(state, current_index=state.current_index + 1, selected_option_index=None)
    return replace(state, screen=Screen.FINISHED, finished_at_s=now)


def restart(state: SessionState) -> SessionState:
    _ = state
    return SessionState()


def compute_summary(state: SessionState, *, clock: Clock) -> QuizSummary | None:
    if state.screen is not Screen.FINISHED or not state.questions:
        return None
    total = len(state.questions)
    end = clock.now() if state.finished_at_s is None else state.finished_at_s
    start = end if state.started_at_s is None else state.started_at_s
    return QuizSummary(
        score=state.score,
        total_questions=total,
        percent_correct=round_half_up(100.0 * state.score / total),
        elapsed_s=round_half_up(max(0.0, end - start)),
    )


def option_states(state: SessionState) -> tuple[OptionState, ...]:
    question = state.current_question
    if question is None:
        return ()
    if not state.answered:
        return tuple(OptionState.NEUTRAL for _ in question.options)
    out: list[OptionState] = []
    for idx in range(len(question.options)):
        if idx == question.correct_option_index:
            out.append(OptionState.CORRECT)
        elif idx == state.selected_option_index:
            out.append(OptionState.INCORRECT)
        else:
            out.append(OptionState.DIMMED)
    return tuple(out)


class QuizSession:
    """Stateful facade the presentation layer drives.

    - The catalog arrives once through ``deliver_catalog``; levels cannot be
      selected before a successful delivery.
    - Randomness comes from a ``QuestionGenerator`` seeded at construction.
    - Time is entirely via injected Clock.
    """

    def __init__(
        self,
        *,
        clock: Clock,
        seed: int,
        config: QuizConfig | None = None,
        generator: QuestionGenerator | None = None,
    ) -> None:
        cfg = config or QuizConfig()
        if cfg.question_count < 1:
            raise ValueError("question_count must be >= 1")
        if cfg.option_count < 2:
            raise ValueError("option_count must be >= 2")

        self._clock = clock
        self._config = cfg
        self._generator = generator or QuestionGenerator(seed=seed, option_count=cfg.option_count)
        self._seed = int(seed)

        self._state = SessionState()
        self._catalog_result: CatalogResult | None = None
        self._catalog: tuple[EmblemRecord, ...] = ()
        self._playable: tuple[DifficultyLevel, ...] = ()
        self._featured: EmblemRecord | None = None
        self._notice: str | None = None

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def screen(self) -> Screen:
        return self._state.screen

    @property
    def catalog(self) -> tuple[EmblemRecord, ...]:
        return self._catalog

    @property
    def catalog_ready(self) -> bool:
        return isinstance(self._catalog_result, CatalogLoaded) and bool(self._catalog)

    @property
    def load_error(self) -> str | None:
        if isinstance(self._catalog_result, CatalogFailed):
            return self._catalog_result.reason
        if isinstance(self._catalog_result, CatalogLoaded) and not self._catalog:
            return "The emblem catalog is empty."
        return None

    def deliver_catalog(self, result: CatalogResult) -> bool:
        """Accept the one-shot load result. Returns False if one was already delivered."""

        if self._catalog_result is not None:
            return False
        self._catalog_result = result
        if isinstance(result, CatalogLoaded):
            self._catalog = tuple(result.emblems)
            self._playable = playable_levels(self._catalog, option_count=self._config.option_count)
            self._featured = self._generator.featured(self._catalog)
        else:
            logger.error("Quiz unavailable: %s", result.reason)
        return True

    def playable_levels(self) -> tuple[DifficultyLevel, ...]:
        return self._playable

    def select_level(self, level: int) -> bool:
        if not self.catalog_ready or self._state.screen is Screen.PLAYING:
            return False
        if self._state.screen is Screen.FINISHED:
            self.restart()
        try:
            nxt = select_level(
                self._state,
                self._catalog,
                level,
                generator=self._generator,
                clock=self._clock,
                count=self._config.question_count,
            )
        except InsufficientEmblemsError as exc:
            logger.warning("Level %s rejected: %s", level, exc)
            self._notice = str(exc)
            return False
        self._notice = None
        self._state = nxt
        logger.info("Started level %s with %d questions", level, len(nxt.questions))
        return True

    def select_answer(self, option_index: int) -> bool:
        nxt = select_answer(self._state, option_index)
        changed = nxt is not self._state
        self._state = nxt
        return changed

    def advance(self) -> bool:
        nxt = advance(self._state, now=self._clock.now())
        changed = nxt is not self._state
        self._state = nxt
        return changed

    def restart(self) -> None:
        self._state = restart(self._state)
        self._notice = None
        if self._catalog:
            self._featured = self._generator.featured(self._catalog)

    def summary(self) -> QuizSummary | None:
        return compute_summary(self._state, clock=self._clock)

    def snapshot(self) -> QuizSnapshot:
        st = self._state
        question = st.current_question
        total = len(st.questions)
        number = 0
        if st.screen is Screen.PLAYING:
            number = st.current_index + 1
        elif st.screen is Screen.FINISHED:
            number = total
        return QuizSnapshot(
            screen=st.screen,
            loading=self._catalog_result is None,
            load_error=self.load_error,
            notice=self._notice,
            featured=self._featured,
            playable_levels=self._playable,
            level=st.level,
            level_label=level_label(st.level),
            question=question,
            option_states=option_states(st),
            selected_option_index=st.selected_option_index,
            score=st.score,
            question_number=number,
            total_questions=total,
            can_advance=question is not None and st.answered,
            summary=self.summary(),
        )

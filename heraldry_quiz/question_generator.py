"""Question generation over an emblem catalog.

A level threshold selects every emblem at or below it. Subjects are sampled
without replacement; each subject gets distractors drawn from the other
eligible emblems whose labels differ from every label already on the card, so
the options of one question are pairwise distinct by construction.
"""

from __future__ import annotations

from collections.abc import Sequence

from .emblems import DifficultyLevel, EmblemRecord, Question
from .quiz_core import SeededRng

DEFAULT_OPTION_COUNT = 4


class InsufficientEmblemsError(ValueError):
    """Too few distinct labels at a level to fill every option slot."""

    def __init__(self, *, level: int, available: int, required: int) -> None:
        self.level = int(level)
        self.available = int(available)
        self.required = int(required)
        super().__init__(
            f"Level {self.level} has {self.available} distinct emblem names; "
            f"at least {self.required} are needed."
        )


def eligible_emblems(catalog: Sequence[EmblemRecord], level: int) -> tuple[EmblemRecord, ...]:
    return tuple(e for e in catalog if e.level <= level)


def distinct_label_count(emblems: Sequence[EmblemRecord]) -> int:
    return len({e.short_label for e in emblems})


def playable_levels(
    catalog: Sequence[EmblemRecord],
    *,
    option_count: int = DEFAULT_OPTION_COUNT,
) -> tuple[DifficultyLevel, ...]:
    return tuple(
        lvl
        for lvl in DifficultyLevel
        if distinct_label_count(eligible_emblems(catalog, int(lvl))) >= option_count
    )


def pick_featured_emblem(catalog: Sequence[EmblemRecord], rng: SeededRng) -> EmblemRecord | None:
    if not catalog:
        return None
    return rng.choice(catalog)


def generate_questions(
    catalog: Sequence[EmblemRecord],
    level: int,
    count: int,
    *,
    rng: SeededRng,
    option_count: int = DEFAULT_OPTION_COUNT,
) -> tuple[Question, ...]:
    if not catalog:
        raise ValueError("catalog must not be empty")
    if level < 1:
        raise ValueError("level must be >= 1")
    if count < 1:
        raise ValueError("count must be >= 1")
    if option_count < 2:
        raise ValueError("option_count must be >= 2")

    eligible = eligible_emblems(catalog, level)
    available = distinct_label_count(eligible)
    if available < option_count:
        raise InsufficientEmblemsError(level=level, available=available, required=option_count)

    subjects = rng.sample(eligible, min(count, len(eligible)))
    return tuple(
        _build_question(
            subject,
            eligible,
            sequence_index=i + 1,
            level=level,
            rng=rng,
            option_count=option_count,
        )
        for i, subject in enumerate(subjects)
    )


def _build_question(
    subject: EmblemRecord,
    eligible: Sequence[EmblemRecord],
    *,
    sequence_index: int,
    level: int,
    rng: SeededRng,
    option_count: int,
) -> Question:
    wanted = option_count - 1
    taken = {subject.short_label}
    distractors: list[str] = []
    for other in rng.shuffle([e for e in eligible if e.emblem_id != subject.emblem_id]):
        if other.short_label in taken:
            continue
        taken.add(other.short_label)
        distractors.append(other.short_label)
        if len(distractors) == wanted:
            break
    if len(distractors) < wanted:
        raise InsufficientEmblemsError(level=level, available=len(taken), required=option_count)

    # Track the subject by slot so the answer never depends on a text lookup.
    slots = [(True, subject.short_label)] + [(False, label) for label in distractors]
    shuffled = rng.shuffle(slots)
    correct = next(i for i, (is_subject, _) in enumerate(shuffled) if is_subject)

    return Question(
        sequence_index=sequence_index,
        subject_id=subject.emblem_id,
        image_ref=subject.image_ref,
        image_alt=subject.full_label,
        image_width=subject.image_width,
        image_height=subject.image_height,
        options=tuple(label for _, label in shuffled),
        correct_option_index=correct,
    )


class QuestionGenerator:
    """Deterministic question source owning its RNG stream."""

    def __init__(self, *, seed: int, option_count: int = DEFAULT_OPTION_COUNT) -> None:
        self._seed = int(seed)
        self._rng = SeededRng(seed)
        self._option_count = int(option_count)

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def option_count(self) -> int:
        return self._option_count

    def generate(self, catalog: Sequence[EmblemRecord], *, level: int, count: int) -> tuple[Question, ...]:
        return generate_questions(catalog, level, count, rng=self._rng, option_count=self._option_count)

    def featured(self, catalog: Sequence[EmblemRecord]) -> EmblemRecord | None:
        return pick_featured_emblem(catalog, self._rng)

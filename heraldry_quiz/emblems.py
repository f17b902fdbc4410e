from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class DifficultyLevel(IntEnum):
    """Player-facing tiers; the value is the inclusive level threshold."""

    NOVICE = 1
    ACOLYTE = 2
    MESTRE = 3
    ARCHIMESTRE = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()


def level_label(level: int | None) -> str:
    if level is None:
        return ""
    try:
        return DifficultyLevel(level).label
    except ValueError:
        return f"Level {level}"


@dataclass(frozen=True, slots=True)
class EmblemRecord:
    emblem_id: int
    full_label: str  # alt text
    short_label: str  # answer text shown as an option
    image_ref: str
    image_width: int
    image_height: int
    region: str
    level: int


@dataclass(frozen=True, slots=True)
class Question:
    sequence_index: int  # 1-based
    subject_id: int
    image_ref: str
    image_alt: str
    image_width: int
    image_height: int
    options: tuple[str, ...]
    correct_option_index: int

    @property
    def correct_label(self) -> str:
        return self.options[self.correct_option_index]

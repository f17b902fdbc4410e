from __future__ import annotations

import pytest

from heraldry_quiz.emblems import DifficultyLevel, EmblemRecord
from heraldry_quiz.question_generator import (
    InsufficientEmblemsError,
    QuestionGenerator,
    eligible_emblems,
    generate_questions,
    playable_levels,
)
from heraldry_quiz.quiz_core import SeededRng, round_half_up


def _emblem(i: int, *, level: int = 1, label: str | None = None) -> EmblemRecord:
    return EmblemRecord(
        emblem_id=i,
        full_label=f"House {label or f'E{i}'}",
        short_label=label or f"E{i}",
        image_ref=f"sigils/e{i}.png",
        image_width=100 + i,
        image_height=120 + i,
        region="Region",
        level=level,
    )


def _tiered_catalog() -> list[EmblemRecord]:
    # 6 emblems per tier, levels 1..4
    return [_emblem(i, level=1 + (i - 1) // 6) for i in range(1, 25)]


def test_generator_determinism_same_seed_same_sequence() -> None:
    catalog = _tiered_catalog()
    g1 = QuestionGenerator(seed=2468)
    g2 = QuestionGenerator(seed=2468)

    seq1 = [g1.generate(catalog, level=3, count=10) for _ in range(5)]
    seq2 = [g2.generate(catalog, level=3, count=10) for _ in range(5)]

    assert seq1 == seq2


@pytest.mark.parametrize("level", [1, 2, 3, 4])
def test_questions_only_use_emblems_at_or_below_level(level: int) -> None:
    catalog = _tiered_catalog()
    by_id = {e.emblem_id: e for e in catalog}
    by_label = {e.short_label: e for e in catalog}

    for seed in range(20):
        questions = generate_questions(catalog, level, 10, rng=SeededRng(seed))
        for q in questions:
            assert by_id[q.subject_id].level <= level
            for label in q.options:
                assert by_label[label].level <= level


def test_options_are_four_distinct_labels_with_subject_at_correct_index() -> None:
    catalog = _tiered_catalog()
    by_id = {e.emblem_id: e for e in catalog}

    for seed in range(30):
        for q in generate_questions(catalog, 4, 10, rng=SeededRng(seed)):
            subject = by_id[q.subject_id]
            assert len(q.options) == 4
            assert len(set(q.options)) == 4
            assert 0 <= q.correct_option_index < 4
            assert q.options[q.correct_option_index] == subject.short_label
            assert q.options.count(subject.short_label) == 1
            assert q.correct_label == subject.short_label


def test_question_copies_image_fields_from_subject() -> None:
    catalog = _tiered_catalog()
    by_id = {e.emblem_id: e for e in catalog}

    for q in generate_questions(catalog, 2, 5, rng=SeededRng(7)):
        subject = by_id[q.subject_id]
        assert q.image_ref == subject.image_ref
        assert q.image_alt == subject.full_label
        assert (q.image_width, q.image_height) == (subject.image_width, subject.image_height)


def test_ten_questions_never_reuse_a_subject() -> None:
    catalog = [_emblem(i) for i in range(1, 15)]
    for seed in range(50):
        questions = generate_questions(catalog, 1, 10, rng=SeededRng(seed))
        assert len(questions) == 10
        assert len({q.subject_id for q in questions}) == 10


def test_sequence_indices_are_one_based_in_draw_order() -> None:
    questions = generate_questions(_tiered_catalog(), 4, 10, rng=SeededRng(11))
    assert [q.sequence_index for q in questions] == list(range(1, 11))


def test_small_catalog_yields_fewer_questions_than_requested() -> None:
    catalog = [_emblem(i) for i in range(1, 6)]
    questions = generate_questions(catalog, 1, 10, rng=SeededRng(3))
    assert len(questions) == 5
    assert {q.subject_id for q in questions} == {1, 2, 3, 4, 5}


def test_duplicate_labels_never_share_a_card_with_the_subject() -> None:
    # Two different emblems both called "Stark".
    catalog = [
        _emblem(1, label="Stark"),
        _emblem(2, label="Stark"),
        _emblem(3, label="Tully"),
        _emblem(4, label="Arryn"),
        _emblem(5, label="Frey"),
    ]
    by_id = {e.emblem_id: e for e in catalog}

    for seed in range(40):
        for q in generate_questions(catalog, 1, 10, rng=SeededRng(seed)):
            assert len(set(q.options)) == 4
            assert q.options[q.correct_option_index] == by_id[q.subject_id].short_label


def test_insufficient_distinct_labels_raises() -> None:
    catalog = [_emblem(1), _emblem(2), _emblem(3), _emblem(4, level=2)]

    with pytest.raises(InsufficientEmblemsError) as exc_info:
        generate_questions(catalog, 1, 10, rng=SeededRng(1))
    assert exc_info.value.available == 3
    assert exc_info.value.required == 4

    assert len(generate_questions(catalog, 2, 10, rng=SeededRng(1))) == 4


def test_duplicate_labels_count_once_toward_playability() -> None:
    catalog = [_emblem(1, label="A"), _emblem(2, label="A"), _emblem(3, label="B"), _emblem(4, label="C")]
    with pytest.raises(InsufficientEmblemsError):
        generate_questions(catalog, 1, 10, rng=SeededRng(1))


def test_preconditions_raise_value_error() -> None:
    catalog = _tiered_catalog()
    rng = SeededRng(1)
    with pytest.raises(ValueError):
        generate_questions([], 1, 10, rng=rng)
    with pytest.raises(ValueError):
        generate_questions(catalog, 0, 10, rng=rng)
    with pytest.raises(ValueError):
        generate_questions(catalog, 1, 0, rng=rng)


def test_eligible_set_is_cumulative() -> None:
    catalog = _tiered_catalog()
    sizes = [len(eligible_emblems(catalog, lvl)) for lvl in (1, 2, 3, 4)]
    assert sizes == [6, 12, 18, 24]


def test_playable_levels_lists_tiers_with_enough_labels() -> None:
    catalog = [_emblem(1), _emblem(2), _emblem(3), _emblem(4, level=2), _emblem(5, level=4)]
    assert playable_levels(catalog) == (
        DifficultyLevel.ACOLYTE,
        DifficultyLevel.MESTRE,
        DifficultyLevel.ARCHIMESTRE,
    )
    assert playable_levels(_tiered_catalog()) == tuple(DifficultyLevel)


def test_featured_emblem_comes_from_catalog() -> None:
    catalog = _tiered_catalog()
    gen = QuestionGenerator(seed=5)
    for _ in range(10):
        assert gen.featured(catalog) in catalog
    assert gen.featured([]) is None


def test_seeded_rng_shuffle_and_sample() -> None:
    rng = SeededRng(42)
    items = list(range(20))

    shuffled = rng.shuffle(items)
    assert sorted(shuffled) == items
    assert items == list(range(20))

    picked = rng.sample(items, 7)
    assert len(picked) == 7
    assert len(set(picked)) == 7
    assert set(picked) <= set(items)

    assert rng.sample(items, 0) == []
    with pytest.raises(ValueError):
        rng.sample(items, 21)
    with pytest.raises(ValueError):
        rng.choice([])


def test_seeded_rng_shuffle_reaches_every_permutation() -> None:
    rng = SeededRng(9)
    seen = {tuple(rng.shuffle([0, 1, 2])) for _ in range(400)}
    assert len(seen) == 6


def test_round_half_up() -> None:
    assert round_half_up(12.5) == 13
    assert round_half_up(33.333) == 33
    assert round_half_up(66.667) == 67
    assert round_half_up(0.0) == 0

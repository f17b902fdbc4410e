from __future__ import annotations

import os


def test_ui_smoke_pick_level_answer_and_advance() -> None:
    # Headless SDL for CI.
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

    import pygame

    from heraldry_quiz.app import run

    def key(k: int) -> None:
        pygame.event.post(pygame.event.Event(pygame.KEYDOWN, {"key": k, "unicode": ""}))

    def inject(frame: int) -> None:
        # Welcome -> Novice -> answer option 1 -> next -> answer via cursor -> next
        if frame == 10:
            key(pygame.K_1)
        elif frame == 12:
            key(pygame.K_1)
        elif frame == 14:
            key(pygame.K_RETURN)
        elif frame == 16:
            key(pygame.K_DOWN)
        elif frame == 17:
            key(pygame.K_RETURN)
        elif frame == 18:
            key(pygame.K_RIGHT)
        elif frame == 20:
            pygame.event.post(pygame.event.Event(pygame.MOUSEBUTTONDOWN, {"button": 1, "pos": (480, 320)}))
        elif frame == 22:
            key(pygame.K_ESCAPE)

    assert run(max_frames=30, event_injector=inject) == 0

from __future__ import annotations

import random

QUOTES = [
    "Believe you can and you're halfway there.",
    "Little progress each day adds up to big results.",
    "Your future is created by what you do today.",
    "Start where you are. Use what you have. Do what you can.",
    "Discipline is choosing what you want most over what you want now.",
]


def pick_quote(rng: random.Random | None = None) -> str:
    return (rng or random).choice(QUOTES)

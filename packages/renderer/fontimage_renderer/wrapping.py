"""Greedy word wrapping against a pixel width budget."""

from __future__ import annotations

from typing import Callable

MeasureFn = Callable[[str], int]


def wrap_text(text: str, max_width: int, measure: MeasureFn) -> list[str]:
    """Split ``text`` into lines no wider than ``max_width`` where words allow.

    Existing line breaks are kept. A word that alone exceeds the budget stays
    on its own line unsplit.
    """
    lines: list[str] = []
    for paragraph in text.splitlines() or [""]:
        words = paragraph.split(" ")
        current = words[0]
        for word in words[1:]:
            candidate = f"{current} {word}"
            if measure(candidate) > max_width:
                lines.append(current)
                current = word
            else:
                current = candidate
        lines.append(current)
    return lines


def should_wrap(wrapping: bool, max_width: int | None) -> bool:
    # A height cap alone never triggers wrapping.
    return wrapping and max_width is not None

"""Pre-synthesis text truncation."""

from __future__ import annotations

DEFAULT_MAX_SPEECH_CHARS = 2500
SENTENCE_TERMINATORS = (".", "!", "?")
SENTENCE_CUT_THRESHOLD = 0.7


def truncate_for_speech(
    text: str,
    max_length: int = DEFAULT_MAX_SPEECH_CHARS,
    *,
    ellipsis: str = "...",
) -> str:
    """Shorten ``text`` to fit the synthesis limit without cutting mid-word.

    Prefers the last sentence terminator inside the window when it lies past
    70% of ``max_length`` (kept inclusive). Otherwise cuts at the last
    whitespace and appends ``ellipsis``; text without any whitespace is
    hard-cut at ``max_length`` before the ellipsis is appended.
    """

    if max_length < 1:
        raise ValueError("max_length must be positive")
    if len(text) <= max_length:
        return text

    window = text[:max_length]
    last_terminator = max(window.rfind(mark) for mark in SENTENCE_TERMINATORS)
    if last_terminator > max_length * SENTENCE_CUT_THRESHOLD:
        return window[: last_terminator + 1]

    last_space = _last_whitespace(window)
    if last_space > 0:
        return window[:last_space] + ellipsis
    return window + ellipsis


def _last_whitespace(value: str) -> int:
    for index in range(len(value) - 1, -1, -1):
        if value[index].isspace():
            return index
    return -1


__all__ = ["DEFAULT_MAX_SPEECH_CHARS", "truncate_for_speech"]

"""Playback helpers: highlighted word, seek position and applied-edit overlay."""

from __future__ import annotations

from collections.abc import Iterable

from narration_splice.timestamps.alignment import (
    find_transcript_index_at_time,
    map_transcript_index_to_script,
)
from narration_splice.timestamps.models import TranscriptData, WordAlignment
from narration_splice.timestamps.resolver import word_timing_at

__all__ = ["highlight_index_at_time", "seek_time_for_word", "applied_word_mask"]


def highlight_index_at_time(
    time: float,
    word_count: int,
    duration: float,
    transcript: TranscriptData | None,
    alignment: WordAlignment | None,
) -> int:
    """Return the script word index to highlight at playback position ``time``.

    Uses the transcript and alignment when both are available, falling back
    to uniform progress through the script.

    Returns:
        int: A script index in ``[0, word_count)``, or ``-1`` for an empty script.
    """
    if word_count <= 0:
        return -1
    if transcript is not None and alignment is not None:
        t_idx = find_transcript_index_at_time(transcript, time)
        if t_idx != -1:
            s_idx = map_transcript_index_to_script(t_idx, alignment)
            if s_idx != -1:
                return s_idx
    progress = time / max(1e-6, duration)
    return max(0, min(word_count - 1, int(progress * word_count)))


def seek_time_for_word(
    word_index: int,
    word_count: int,
    duration: float,
    transcript: TranscriptData | None,
) -> float:
    """Return where playback should start for a script word."""
    timing = word_timing_at(word_index, transcript)
    if timing is not None:
        return timing.start_time
    return word_index / max(1, word_count) * duration


def applied_word_mask(word_count: int, ranges: Iterable[tuple[int, int]]) -> list[bool]:
    """Flag script words covered by any applied ``[start, end)`` range."""
    mask = [False] * word_count
    for start, end in ranges:
        for i in range(max(0, start), min(word_count, end)):
            mask[i] = True
    return mask

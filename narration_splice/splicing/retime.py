"""Per-word retiming of a replacement clip onto the words it replaces.

When both the replacement clip and the base narration have word-level
transcripts, and the replacement says *exactly* the same words as the base
does inside the resolved window, each replacement word is stretched to the
original word's duration and the original pauses are reinserted as silence.
Anything short of a one-to-one token match returns ``None`` and the caller
falls back to uniform length fitting.
"""

from __future__ import annotations

import logging

import numpy as np

from narration_splice.splicing.dsp import time_scale
from narration_splice.timestamps.models import LexicalWord, TimingResult, TranscriptData
from narration_splice.timestamps.tokens import lexical_words

__all__ = ["words_in_window", "retime_to_window"]

logger = logging.getLogger(__name__)

# Transcript timestamps are rounded by providers; tolerate that at window edges.
_EDGE_TOLERANCE_SEC = 1e-3


def words_in_window(transcript: TranscriptData | None, window: TimingResult) -> list[LexicalWord]:
    """Return the lexical words lying inside ``window``."""
    return [
        w
        for w in lexical_words(transcript)
        if w.start >= window.start_time - _EDGE_TOLERANCE_SEC
        and w.end <= window.end_time + _EDGE_TOLERANCE_SEC
    ]


def retime_to_window(
    replacement: np.ndarray,
    sr: int,
    replacement_transcript: TranscriptData | None,
    base_transcript: TranscriptData | None,
    window: TimingResult,
) -> np.ndarray | None:
    """Rebuild ``replacement`` word by word on the base window's timing.

    Parameters:
        replacement: Mono replacement clip.
        sr: Sample rate of ``replacement``.
        replacement_transcript: Word-level transcript of the replacement.
        base_transcript: Transcript of the base narration.
        window: Resolved window on the base timeline.

    Returns:
        np.ndarray | None: The retimed clip, or ``None`` when word counts or
            tokens disagree.
    """
    src = lexical_words(replacement_transcript)
    tgt = words_in_window(base_transcript, window)
    if not src or not tgt or len(src) != len(tgt):
        return None
    if any(s.token != t.token for s, t in zip(src, tgt)):
        return None

    pieces: list[np.ndarray] = []
    for i, (src_word, tgt_word) in enumerate(zip(src, tgt)):
        lo = max(0, int(np.floor(src_word.start * sr)))
        hi = max(lo, min(len(replacement), int(np.floor(src_word.end * sr))))
        target = int(np.floor(max(0.0, tgt_word.end - tgt_word.start) * sr))
        pieces.append(time_scale(replacement[lo:hi], target))

        next_start = tgt[i + 1].start if i + 1 < len(tgt) else tgt_word.end
        gap = int(np.floor(max(0.0, next_start - tgt_word.end) * sr))
        if gap:
            pieces.append(np.zeros(gap, dtype=np.float32))

    logger.debug(f"Retimed {len(tgt)} words onto {window.start_time:.3f}-{window.end_time:.3f}s")
    retimed = np.concatenate(pieces) if pieces else np.zeros(0, dtype=np.float32)
    if retimed.size == 0:
        return None
    return retimed.astype(np.float32)

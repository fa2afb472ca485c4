"""Script-to-transcript word alignment used for playback highlighting.

The alignment maps every script word position onto a lexical transcript word
and back. It is deliberately approximate:

* A greedy forward pass walks the script once with a single transcript cursor
  and stops at the first script token that cannot be found further on, which
  keeps the mapped prefix strictly monotonic.
* A rescue pass then places every still-unmapped script word on any matching
  transcript word, preferring candidates near either edge of both sequences.

Timing for regenerate/merge never uses this map; see
:mod:`narration_splice.timestamps.resolver`.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from narration_splice.timestamps.models import LexicalWord, TranscriptData, WordAlignment
from narration_splice.timestamps.tokens import lexical_words, normalize_token

__all__ = [
    "build_alignment",
    "map_transcript_index_to_script",
    "find_transcript_index_at_time",
    "alignment_signature",
    "AlignmentCache",
]


def build_alignment(
    script_words: Sequence[str],
    transcript: TranscriptData | None,
) -> WordAlignment:
    """Align script words to the lexical words of ``transcript``.

    Parameters:
        script_words: Raw script words (display positions).
        transcript: Transcript of the audio being played back.

    Returns:
        WordAlignment: ``script_to_transcript`` sized to ``script_words`` and
            ``transcript_to_script`` sized to the lexical word count.
    """
    lex = lexical_words(transcript)
    return _align_tokens([normalize_token(w) for w in script_words], [w.token for w in lex])


def _align_tokens(script_tokens: list[str], transcript_tokens: list[str]) -> WordAlignment:
    n_script = len(script_tokens)
    n_lex = len(transcript_tokens)
    script_to_transcript = [-1] * n_script
    transcript_to_script = [-1] * n_lex

    def claim(s_idx: int, t_idx: int) -> None:
        script_to_transcript[s_idx] = t_idx
        if transcript_to_script[t_idx] == -1:
            transcript_to_script[t_idx] = s_idx

    cursor = 0
    for s_idx, token in enumerate(script_tokens):
        if not token:
            continue
        while cursor < n_lex and transcript_tokens[cursor] != token:
            cursor += 1
        if cursor >= n_lex:
            # Remaining script words stay unmapped to keep the prefix monotonic.
            break
        claim(s_idx, cursor)
        cursor += 1

    for s_idx, token in enumerate(script_tokens):
        if script_to_transcript[s_idx] != -1 or not token:
            continue
        best_idx = -1
        best_dist = math.inf
        script_edge = min(s_idx, n_script - 1 - s_idx)
        for k, candidate in enumerate(transcript_tokens):
            if candidate != token:
                continue
            dist = script_edge + min(k, n_lex - 1 - k)
            if dist < best_dist:
                best_dist = dist
                best_idx = k
        if best_idx != -1:
            claim(s_idx, best_idx)

    return WordAlignment(
        script_to_transcript=tuple(script_to_transcript),
        transcript_to_script=tuple(transcript_to_script),
    )


def map_transcript_index_to_script(transcript_index: int, alignment: WordAlignment) -> int:
    """Return the script index for a transcript lexical index.

    Falls back to the nearest mapped neighbour, probing left then right at
    each distance.

    Returns:
        int: A script word index, or ``-1`` when nothing is mapped.
    """
    t2s = alignment.transcript_to_script
    if transcript_index < 0 or transcript_index >= len(t2s):
        return -1
    if t2s[transcript_index] != -1:
        return t2s[transcript_index]
    left = transcript_index - 1
    right = transcript_index + 1
    while left >= 0 or right < len(t2s):
        if left >= 0 and t2s[left] != -1:
            return t2s[left]
        if right < len(t2s) and t2s[right] != -1:
            return t2s[right]
        left -= 1
        right += 1
    return -1


def find_transcript_index_at_time(
    transcript: TranscriptData | None | Sequence[LexicalWord],
    time: float,
) -> int:
    """Binary-search the lexical word spoken at ``time``.

    Parameters:
        transcript: A transcript, or an already-filtered lexical word list.
        time: Playback position in seconds.

    Returns:
        int: Index of the word whose ``[start, end]`` contains ``time``; else
            the last word ending before ``time``; ``-1`` when ``time`` precedes
            the first word, is not finite, or there are no words.
    """
    if transcript is None or isinstance(transcript, TranscriptData):
        lex: Sequence[LexicalWord] = lexical_words(transcript)
    else:
        lex = transcript
    if not lex or not math.isfinite(time):
        return -1
    lo, hi = 0, len(lex) - 1
    ans = -1
    while lo <= hi:
        mid = (lo + hi) // 2
        word = lex[mid]
        if time < word.start:
            hi = mid - 1
        elif time > word.end:
            ans = mid
            lo = mid + 1
        else:
            return mid
    return ans


def alignment_signature(
    script_words: Sequence[str], transcript: TranscriptData | None
) -> tuple[int, int, int, float, float]:
    """Cheap change detector for the alignment inputs.

    Returns:
        tuple: ``(script word count, hash of script words, transcript entry
            count, first start, last end)``.
    """
    words = transcript.words if transcript is not None else ()
    first = words[0].start if words else -1.0
    last = words[-1].end if words else -1.0
    return (len(script_words), hash(tuple(script_words)), len(words), first, last)


class AlignmentCache:
    """Memoizes the latest alignment until script or transcript changes."""

    def __init__(self) -> None:
        """Initialize an empty cache."""
        self._signature: tuple[int, int, int, float, float] | None = None
        self._alignment: WordAlignment | None = None

    def get(self, script_words: Sequence[str], transcript: TranscriptData | None) -> WordAlignment:
        """Return the cached alignment, rebuilding it when inputs changed."""
        signature = alignment_signature(script_words, transcript)
        if self._alignment is None or signature != self._signature:
            self._alignment = build_alignment(script_words, transcript)
            self._signature = signature
        return self._alignment

    def invalidate(self) -> None:
        """Drop the cached alignment."""
        self._signature = None
        self._alignment = None

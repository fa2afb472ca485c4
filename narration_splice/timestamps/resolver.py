"""Resolve a script word selection to a time window on a transcript timeline.

Script indices are positions in the edited script, while the transcript is a
timestamped transcription of what was actually spoken. The two can diverge
(TTS normalization, mispronunciations, earlier splices), so resolution tries a
fixed series of strategies and the first one that produces a window wins:

1. ``timing_by_index_range`` – direct positional lookup.
2. ``timing_by_token_match`` – exact consecutive token sequence.
3. ``timing_by_text_match`` – substring of the flattened lexical text.
4. ``timing_by_text_match`` again on a punctuation-relaxed selection.

When several windows match, the earliest wins. Empty tokens are never
wildcards. When no usable transcript exists at all, callers that know the
total word count and duration get a uniform proportional estimate instead.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from narration_splice.timestamps.models import LexicalWord, TimingResult, TranscriptData
from narration_splice.timestamps.tokens import (
    lexical_words,
    normalize_token,
    validate_transcript_data,
)

__all__ = [
    "timing_by_index_range",
    "timing_by_token_match",
    "timing_by_text_match",
    "timing_by_uniform_mapping",
    "relax_punctuation",
    "word_timing_at",
    "resolve_timing",
]

logger = logging.getLogger(__name__)

_NEEDLE_STRIP = re.compile(r"[^a-z0-9']")
_RELAX_STRIP = re.compile(r"[^a-zA-Z0-9'\s]")
_WHITESPACE = re.compile(r"\s+")


def _window(first: LexicalWord, last: LexicalWord) -> TimingResult:
    start = max(0.0, first.start)
    return TimingResult(start_time=start, end_time=max(start, last.end))


def word_timing_at(word_index: int, transcript: TranscriptData | None) -> TimingResult | None:
    """Return the timing of a single lexical word, or ``None`` if out of range."""
    lex = lexical_words(transcript)
    if 0 <= word_index < len(lex):
        return _window(lex[word_index], lex[word_index])
    return None


def timing_by_index_range(
    start_index: int,
    end_index: int,
    lex: Sequence[LexicalWord],
) -> TimingResult | None:
    """Map ``[start_index, end_index)`` positionally onto lexical words.

    Returns:
        TimingResult | None: The window from the start word's ``start`` to the
            (clamped) last word's ``end``; ``None`` when the range is empty or
            starts past the end of the transcript.
    """
    if not lex or start_index < 0 or end_index <= start_index or start_index >= len(lex):
        return None
    last_index = min(end_index - 1, len(lex) - 1)
    return _window(lex[start_index], lex[last_index])


def timing_by_token_match(
    selection_tokens: Sequence[str],
    lex: Sequence[LexicalWord],
) -> TimingResult | None:
    """Find the first window of ``lex`` matching ``selection_tokens`` exactly.

    Parameters:
        selection_tokens: Selected words; normalized here, empties dropped.
        lex: Lexical words of the target transcript.

    Returns:
        TimingResult | None: Window of the earliest exact match.
    """
    target = [tok for tok in (normalize_token(t) for t in selection_tokens) if tok]
    if not target or not lex:
        return None
    tokens = [w.token for w in lex]
    width = len(target)
    for i in range(len(tokens) - width + 1):
        if tokens[i : i + width] == target:
            return _window(lex[i], lex[i + width - 1])
    return None


def timing_by_text_match(sentence: str | None, lex: Sequence[LexicalWord]) -> TimingResult | None:
    """Locate ``sentence`` as a substring of the flattened lexical text.

    The character offset of the match is converted back to a token span by
    counting space-delimited tokens before and inside the match. This is an
    approximation: a match starting mid-token counts that token as preceding.

    Returns:
        TimingResult | None: Window of the first occurrence.
    """
    if not sentence or not lex:
        return None
    needle = _WHITESPACE.sub(" ", _NEEDLE_STRIP.sub(" ", sentence.lower())).strip()
    if not needle:
        return None
    built = " ".join(w.token for w in lex)
    pos = built.find(needle)
    if pos < 0:
        return None
    start_idx = len(built[:pos].split())
    span = max(1, len(needle.split()))
    end_idx = min(len(lex), start_idx + span)
    if start_idx >= len(lex) or end_idx <= start_idx:
        return None
    return _window(lex[start_idx], lex[end_idx - 1])


def relax_punctuation(text: str) -> str:
    """Replace everything but alphanumerics, apostrophes and spaces with spaces."""
    return _WHITESPACE.sub(" ", _RELAX_STRIP.sub(" ", text)).strip()


def timing_by_uniform_mapping(
    start_index: int,
    end_index: int,
    total_words: int,
    duration: float,
) -> TimingResult | None:
    """Estimate a window assuming words are evenly spread over ``duration``."""
    if total_words <= 0 or duration <= 0 or end_index <= start_index or start_index < 0:
        return None
    start = min(start_index, total_words) / total_words * duration
    end = min(end_index, total_words) / total_words * duration
    if end <= start:
        return None
    return TimingResult(start_time=start, end_time=end)


def resolve_timing(
    selected_text: str,
    start_index: int,
    end_index: int,
    script_words: Sequence[str] | None,
    transcript: TranscriptData | None,
    *,
    total_words: int | None = None,
    duration: float | None = None,
) -> TimingResult | None:
    """Resolve a selection to a window on ``transcript``'s timeline.

    Parameters:
        selected_text: Literal text of the selection.
        start_index: First selected script word index.
        end_index: Exclusive end script word index.
        script_words: Full script word list the indices refer to. When
            ``None`` the selection text is tokenized instead.
        transcript: Target transcript (possibly of a different audio asset
            than the one the indices were computed against).
        total_words: Script word count, enables the no-transcript fallback.
        duration: Base audio duration, enables the no-transcript fallback.

    Returns:
        TimingResult | None: The first strategy's window, or ``None`` when no
            strategy locates the selection.
    """
    if not validate_transcript_data(transcript):
        if total_words is not None and duration is not None:
            logger.debug("No usable transcript; using uniform word mapping")
            return timing_by_uniform_mapping(start_index, end_index, total_words, duration)
        return None

    lex = lexical_words(transcript)

    timing = timing_by_index_range(start_index, end_index, lex)
    if timing is not None:
        logger.debug(f"Resolved words {start_index}-{end_index} by index range")
        return timing

    if script_words is not None:
        selection = list(script_words[max(0, start_index) : max(0, end_index)])
    else:
        selection = selected_text.split()
    timing = timing_by_token_match(selection, lex)
    if timing is not None:
        logger.debug(f"Resolved words {start_index}-{end_index} by token sequence")
        return timing

    timing = timing_by_text_match(selected_text, lex)
    if timing is not None:
        logger.debug(f"Resolved words {start_index}-{end_index} by text substring")
        return timing

    if selected_text:
        timing = timing_by_text_match(relax_punctuation(selected_text), lex)
        if timing is not None:
            logger.debug(f"Resolved words {start_index}-{end_index} by relaxed text")
            return timing

    logger.debug(f"Could not resolve words {start_index}-{end_index} ({selected_text!r})")
    return None

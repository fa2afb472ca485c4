"""Token normalization shared by alignment, timing resolution and retiming.

Script text and transcript entries are reduced to comparable lexical tokens:
lower-case, only ``[a-z0-9']`` retained. Transcript entries that are not
spoken words (spacing, audio events) or that normalize to nothing are never
indexed.
"""

from __future__ import annotations

import re

from narration_splice.timestamps.models import LexicalWord, TranscriptData, WordKind

__all__ = [
    "normalize_token",
    "tokenize",
    "split_script_words",
    "lexical_words",
    "validate_transcript_data",
]

_NON_TOKEN_CHARS = re.compile(r"[^a-z0-9']")


def normalize_token(token: str) -> str:
    """Normalize a word for matching.

    Returns:
        str: The lower-cased token stripped of everything outside ``[a-z0-9']``.
    """
    return _NON_TOKEN_CHARS.sub("", token.lower()).strip()


def tokenize(text: str) -> list[str]:
    """Split ``text`` on whitespace and normalize, dropping empty tokens."""
    return [tok for tok in (normalize_token(part) for part in text.split()) if tok]


def split_script_words(script: str) -> list[str]:
    """Return the raw display words of a script.

    Selection indices always refer to positions in this list.
    """
    return script.split()


def lexical_words(transcript: TranscriptData | None) -> list[LexicalWord]:
    """Return the spoken words of ``transcript`` with normalized tokens.

    Parameters:
        transcript: Transcript to filter; ``None`` yields an empty list.

    Returns:
        list[LexicalWord]: Entries of kind ``word`` whose token is non-empty,
            in transcript order.
    """
    if transcript is None:
        return []
    lex: list[LexicalWord] = []
    for entry in transcript.words:
        if entry.kind is not WordKind.WORD:
            continue
        token = normalize_token(entry.text)
        if token:
            lex.append(LexicalWord(token=token, start=entry.start, end=entry.end))
    return lex


def validate_transcript_data(transcript: TranscriptData | None) -> bool:
    """Return ``True`` when every entry has non-empty text and sane timing.

    A transcript without a single spoken word carries no timing to resolve
    against and is rejected as well.
    """
    if transcript is None:
        return False
    if not all(0.0 <= w.start <= w.end and len(w.text) > 0 for w in transcript.words):
        return False
    return bool(lexical_words(transcript))

"""Unit tests for token normalization and lexical word filtering."""

from __future__ import annotations

import pytest

from narration_splice.timestamps.models import TranscriptData, WordKind, WordTiming
from narration_splice.timestamps.tokens import (
    lexical_words,
    normalize_token,
    split_script_words,
    tokenize,
    validate_transcript_data,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Hello,", "hello"),
        ("Don't", "don't"),
        ("“Quoted”", "quoted"),
        ("COVID-19", "covid19"),
        ("—", ""),
        ("", ""),
    ],
)
def test_normalize_token(raw: str, expected: str) -> None:
    """Lower-case and strip everything outside letters, digits and apostrophes."""
    assert normalize_token(raw) == expected


def test_normalize_token_is_idempotent() -> None:
    """Normalizing twice gives the same result as normalizing once."""
    for raw in ["Hello,", "It's", "ÉCOLE!", "a.b.c", "  x  "]:
        once = normalize_token(raw)
        assert normalize_token(once) == once


def test_tokenize_drops_empty_tokens() -> None:
    """Punctuation-only words vanish from the token stream."""
    assert tokenize("Well -- that's it!") == ["well", "that's", "it"]


def test_split_script_words_keeps_raw_words() -> None:
    """Script words keep punctuation; only whitespace separates them."""
    assert split_script_words("  Hello,\tworld!\n -- ") == ["Hello,", "world!", "--"]


def test_lexical_words_filters_non_words(make_transcript) -> None:
    """Spacing, audio events and punctuation-only entries are skipped."""
    base = make_transcript([("Hello,", 0.0, 0.4), ("...", 0.4, 0.5), ("World", 0.5, 0.9)])
    words = base.words + (
        WordTiming(text="(laughs)", start=0.9, end=1.2, kind=WordKind.AUDIO_EVENT),
    )
    transcript = TranscriptData(words=words)

    lex = lexical_words(transcript)

    assert [w.token for w in lex] == ["hello", "world"]
    assert (lex[1].start, lex[1].end) == (0.5, 0.9)


def test_lexical_words_none() -> None:
    """A missing transcript has no lexical words."""
    assert lexical_words(None) == []


def test_transcript_accepts_provider_keys() -> None:
    """Provider JSON key names populate the model fields."""
    transcript = TranscriptData.model_validate(
        {
            "language_code": "en",
            "language_probability": 0.98,
            "text": "hi",
            "words": [{"text": "hi", "start": 0.0, "end": 0.2, "type": "word", "logprob": -0.1}],
        }
    )
    assert transcript.language_confidence == pytest.approx(0.98)
    assert transcript.words[0].kind is WordKind.WORD
    assert transcript.words[0].confidence == pytest.approx(-0.1)


def test_word_timing_rejects_reversed_times() -> None:
    """End before start is a validation error."""
    with pytest.raises(ValueError):
        WordTiming(text="x", start=1.0, end=0.5)


def test_validate_transcript_data(make_transcript) -> None:
    """Only present transcripts whose entries all carry text are usable."""
    assert validate_transcript_data(make_transcript([("a", 0.0, 0.1)]))
    assert not validate_transcript_data(None)
    assert not validate_transcript_data(
        TranscriptData(words=(WordTiming(text="", start=0.0, end=0.1),))
    )


def test_validate_transcript_data_needs_spoken_words() -> None:
    """Transcripts with nothing to resolve against are unusable."""
    assert not validate_transcript_data(TranscriptData(words=()))
    assert not validate_transcript_data(
        TranscriptData(
            words=(
                WordTiming(text=" ", start=0.0, end=0.2, kind=WordKind.SPACING),
                WordTiming(text="...", start=0.2, end=0.4),
            )
        )
    )

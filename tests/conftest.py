"""Shared test fixtures for the narration_splice test suite."""

from __future__ import annotations

from collections.abc import Callable, Sequence

import numpy as np
import pytest

from narration_splice.config import SpliceConfig
from narration_splice.timestamps.models import TranscriptData, WordKind, WordTiming

# Low rate keeps synthetic buffers small while staying well above the tone frequency.
TEST_SAMPLE_RATE = 8000


@pytest.fixture
def sr() -> int:
    """Sample rate used by every synthetic buffer."""
    return TEST_SAMPLE_RATE


@pytest.fixture
def splice_config() -> SpliceConfig:
    """Splice settings matching the synthetic buffers' rate."""
    return SpliceConfig(sample_rate=TEST_SAMPLE_RATE)


@pytest.fixture
def make_transcript() -> Callable[..., TranscriptData]:
    """Build a transcript from ``(text, start, end)`` triples.

    Spacing entries are inserted between consecutive words, mirroring what the
    transcription provider returns.
    """

    def _make(
        words: Sequence[tuple[str, float, float]], *, spacing: bool = True
    ) -> TranscriptData:
        entries: list[WordTiming] = []
        prev_end = 0.0
        for i, (text, start, end) in enumerate(words):
            if spacing and i:
                entries.append(
                    WordTiming(text=" ", start=prev_end, end=start, kind=WordKind.SPACING)
                )
            entries.append(WordTiming(text=text, start=start, end=end))
            prev_end = end
        return TranscriptData(
            language_code="en",
            language_confidence=1.0,
            text=" ".join(w[0] for w in words),
            words=tuple(entries),
        )

    return _make


@pytest.fixture
def make_tone() -> Callable[..., np.ndarray]:
    """Build a float32 sine tone of a given length in seconds."""

    def _tone(seconds: float, freq: float = 220.0, amp: float = 0.5) -> np.ndarray:
        t = np.arange(round(seconds * TEST_SAMPLE_RATE)) / TEST_SAMPLE_RATE
        return (amp * np.sin(2 * np.pi * freq * t)).astype(np.float32)

    return _tone

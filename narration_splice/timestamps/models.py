"""Common data models for timestamped transcripts and timing lookups.

This module defines pydantic models that are shared across alignment, timing
resolution, splicing and the edit history. Transcripts arrive from the
transcription provider as JSON using the provider's key names (``type``,
``logprob``, ``language_probability``); aliases accept those directly.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

__all__ = [
    "WordKind",
    "WordTiming",
    "TranscriptData",
    "LexicalWord",
    "TimingResult",
    "WordAlignment",
]


class WordKind(str, Enum):  # noqa: UP042
    """Classification of a transcript entry."""

    WORD = "word"
    SPACING = "spacing"
    AUDIO_EVENT = "audio_event"


class WordTiming(BaseModel):
    """A single transcript entry with timing information."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str = Field(..., description="Entry text as transcribed.")
    start: float = Field(..., ge=0.0, description="Start time in seconds.")
    end: float = Field(..., ge=0.0, description="End time in seconds.")
    kind: WordKind = Field(WordKind.WORD, alias="type", description="Entry classification.")
    speaker_id: str = Field("", description="Provider speaker label.")
    confidence: float = Field(0.0, alias="logprob", description="Provider log-probability.")

    @model_validator(mode="after")
    def _check_order(self) -> WordTiming:
        if self.end < self.start:
            raise ValueError(f"word end ({self.end}) precedes start ({self.start})")
        return self


class TranscriptData(BaseModel):
    """Full timestamped transcription of one audio asset."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    language_code: str = Field("", description="Detected language code.")
    language_confidence: float = Field(
        0.0, alias="language_probability", description="Language detection confidence."
    )
    text: str = Field("", description="Full transcript text.")
    words: tuple[WordTiming, ...] = Field(
        (), description="Entries ordered by start time (not re-sorted)."
    )


class LexicalWord(BaseModel):
    """Normalized spoken word; the unit of all timing arithmetic."""

    model_config = ConfigDict(frozen=True)

    token: str
    start: float
    end: float


class TimingResult(BaseModel):
    """A resolved ``[start_time, end_time]`` window on a transcript timeline."""

    model_config = ConfigDict(frozen=True)

    start_time: float = Field(..., description="Window start (seconds).")
    end_time: float = Field(..., description="Window end (seconds).")

    @property
    def duration(self) -> float:
        """Window length in seconds."""
        return self.end_time - self.start_time


class WordAlignment(BaseModel):
    """Bidirectional script/transcript index map; ``-1`` marks unmapped."""

    model_config = ConfigDict(frozen=True)

    script_to_transcript: tuple[int, ...] = Field(
        ..., description="Transcript lexical index per script word position."
    )
    transcript_to_script: tuple[int, ...] = Field(
        ..., description="First claiming script index per transcript lexical position."
    )

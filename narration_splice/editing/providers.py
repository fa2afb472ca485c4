"""Interfaces for the external speech synthesis and transcription services.

Only the shapes the editor consumes are defined here; concrete clients live
with the host application. Both calls are asynchronous and may raise
:class:`~narration_splice.errors.ProviderError`.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

from narration_splice.timestamps.models import TranscriptData

__all__ = ["SynthesisResult", "Synthesizer", "Transcriber"]


class SynthesisResult(BaseModel):
    """Audio returned by a synthesis provider."""

    audio_bytes: bytes = Field(..., description="Encoded audio (any decodable container).")
    duration: float | None = Field(None, description="Provider-reported duration, approximate.")
    transcript: TranscriptData | None = Field(
        None, description="Word timings, when the provider returns them alongside the audio."
    )


@runtime_checkable
class Synthesizer(Protocol):
    """Turns text into speech."""

    async def synthesize(self, text: str) -> SynthesisResult:
        """Return synthesized audio for ``text``."""
        ...


@runtime_checkable
class Transcriber(Protocol):
    """Produces word-level timestamps for encoded audio."""

    async def transcribe(self, audio_bytes: bytes) -> TranscriptData | None:
        """Return a transcript of ``audio_bytes``, or ``None`` when unavailable."""
        ...

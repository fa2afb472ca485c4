"""Editable state entities and their deep-copy contracts.

``AudioData`` is the current base narration, ``AudioSegment`` a pending or
applied replacement over a script word range and ``HistoryState`` one undo
snapshot. Encoded audio bytes are treated as immutable once produced, so
clones share them by reference; every list and transcript is copied.
"""

from __future__ import annotations

import uuid

from pydantic import BaseModel, Field

from narration_splice.timestamps.models import TranscriptData, WordTiming

__all__ = [
    "AudioData",
    "AudioSegment",
    "HistoryState",
    "MergePreview",
    "new_audio_handle",
    "clone_transcript",
    "clone_audio_data",
    "clone_segment",
    "clone_history_state",
]


def new_audio_handle() -> str:
    """Return a fresh opaque playable handle for an audio asset."""
    return f"audio:{uuid.uuid4().hex}"


class AudioData(BaseModel):
    """The current base narration."""

    url: str = Field(default_factory=new_audio_handle, description="Playable handle.")
    duration: float = Field(..., ge=0.0, description="Duration in seconds.")
    waveform: list[float] = Field(default_factory=list, description="Coarse display envelope.")
    audio_bytes: bytes = Field(b"", description="Encoded audio (shared, never mutated).")
    transcript: TranscriptData | None = Field(None, description="Transcript of this audio.")


class AudioSegment(BaseModel):
    """A replacement covering script words ``[start_index, end_index)``."""

    start_index: int = Field(..., ge=0, description="First replaced script word.")
    end_index: int = Field(..., description="Exclusive end script word.")
    audio_url: str = Field(default_factory=new_audio_handle, description="Playable handle.")
    audio_bytes: bytes = Field(b"", description="Encoded replacement clip.")
    waveform: list[float] = Field(default_factory=list, description="Coarse display envelope.")
    start_time: float = Field(..., description="Window start on the base it was resolved against.")
    end_time: float = Field(..., description="Window end on the base it was resolved against.")
    duration: float | None = Field(None, description="Decoded clip duration in seconds.")
    transcript: TranscriptData | None = Field(None, description="Transcript of the clip.")
    text: str = Field("", description="Script text the clip was synthesized from.")

    def overlaps(self, start_index: int, end_index: int) -> bool:
        """Return ``True`` when this segment's word range intersects ``[start, end)``."""
        return not (self.end_index <= start_index or self.start_index >= end_index)


class HistoryState(BaseModel):
    """One undo/redo snapshot of the editable state."""

    script: str
    audio_data: AudioData | None = None
    segments: list[AudioSegment] = Field(default_factory=list)
    timestamp: float
    action: str


class MergePreview(BaseModel):
    """A regenerated selection awaiting confirmation."""

    original_segment: AudioSegment | None = Field(
        None, description="Applied segment the new one would evict, if any."
    )
    new_segment: AudioSegment
    merged_audio: AudioData | None = Field(None, description="Spliced preview (no transcript).")


def clone_transcript(transcript: TranscriptData | None) -> TranscriptData | None:
    """Return an independent copy of ``transcript``."""
    if transcript is None:
        return None
    return TranscriptData(
        language_code=transcript.language_code,
        language_confidence=transcript.language_confidence,
        text=transcript.text,
        words=tuple(
            WordTiming(
                text=w.text,
                start=w.start,
                end=w.end,
                kind=w.kind,
                speaker_id=w.speaker_id,
                confidence=w.confidence,
            )
            for w in transcript.words
        ),
    )


def clone_audio_data(audio: AudioData | None) -> AudioData | None:
    """Return an independent copy of ``audio``; encoded bytes are shared."""
    if audio is None:
        return None
    return AudioData(
        url=audio.url,
        duration=audio.duration,
        waveform=list(audio.waveform),
        audio_bytes=audio.audio_bytes,
        transcript=clone_transcript(audio.transcript),
    )


def clone_segment(segment: AudioSegment) -> AudioSegment:
    """Return an independent copy of ``segment``; encoded bytes are shared."""
    return AudioSegment(
        start_index=segment.start_index,
        end_index=segment.end_index,
        audio_url=segment.audio_url,
        audio_bytes=segment.audio_bytes,
        waveform=list(segment.waveform),
        start_time=segment.start_time,
        end_time=segment.end_time,
        duration=segment.duration,
        transcript=clone_transcript(segment.transcript),
        text=segment.text,
    )


def clone_history_state(state: HistoryState) -> HistoryState:
    """Return an independent copy of a history snapshot."""
    return HistoryState(
        script=state.script,
        audio_data=clone_audio_data(state.audio_data),
        segments=[clone_segment(s) for s in state.segments],
        timestamp=state.timestamp,
        action=state.action,
    )

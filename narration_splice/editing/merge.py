"""Merge replacement segments into the base narration.

A segment's ``start_time``/``end_time`` were resolved against whatever base
existed when it was generated. Earlier merges may have changed that base, so
every merge re-resolves the segment's word range against the *current* base
transcript before splicing.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from narration_splice.config import SpliceConfig
from narration_splice.editing.models import AudioData, AudioSegment, clone_transcript
from narration_splice.editing.providers import Transcriber
from narration_splice.errors import ProviderError, TimingResolutionError
from narration_splice.splicing.retime import retime_to_window
from narration_splice.splicing.splicer import SpliceResult, replace_window
from narration_splice.timestamps.models import TimingResult, TranscriptData
from narration_splice.timestamps.resolver import resolve_timing
from narration_splice.timestamps.tokens import validate_transcript_data
from narration_splice.utils.audio_io import (
    compute_waveform,
    decode_audio,
    duration_of,
    encode_wav,
)

__all__ = [
    "SegmentSplice",
    "upsert_segment",
    "find_overlapping_segment",
    "resolve_segment_window",
    "splice_segment",
    "to_audio_data",
    "transcribe_or_none",
    "merge_segment",
    "merge_all_segments",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SegmentSplice:
    """A segment spliced onto a base buffer.

    Attributes:
        result: The spliced buffer and its boundaries.
        window: Window the segment was resolved to on the base.
        retimed: Whether per-word retiming was applied.

    """

    result: SpliceResult
    window: TimingResult
    retimed: bool


def upsert_segment(segments: Sequence[AudioSegment], new: AudioSegment) -> list[AudioSegment]:
    """Insert ``new``, evicting every segment whose word range overlaps it.

    Returns:
        list[AudioSegment]: Pairwise non-overlapping segments sorted by
            ``start_index``.
    """
    kept = [s for s in segments if not s.overlaps(new.start_index, new.end_index)]
    kept.append(new)
    return sorted(kept, key=lambda s: s.start_index)


def find_overlapping_segment(
    segments: Sequence[AudioSegment], start_index: int, end_index: int
) -> AudioSegment | None:
    """Return the first segment overlapping ``[start_index, end_index)``."""
    for segment in segments:
        if segment.overlaps(start_index, end_index):
            return segment
    return None


def resolve_segment_window(
    base: AudioData, segment: AudioSegment, script_words: Sequence[str]
) -> TimingResult:
    """Resolve ``segment``'s word range against ``base``.

    Raises:
        TimingResolutionError: If no strategy locates the segment.
    """
    timing = resolve_timing(
        segment.text,
        segment.start_index,
        segment.end_index,
        script_words,
        base.transcript,
        total_words=len(script_words),
        duration=base.duration,
    )
    if timing is None:
        raise TimingResolutionError(segment.text, segment.start_index, segment.end_index)
    return timing


def splice_segment(
    base: AudioData,
    segment: AudioSegment,
    script_words: Sequence[str],
    config: SpliceConfig | None = None,
) -> SegmentSplice:
    """Splice ``segment`` onto ``base`` without touching either.

    The replacement is retimed word by word when both transcripts agree on the
    replaced words; otherwise it is trimmed and length-fitted to the window.

    Raises:
        TimingResolutionError: If the segment cannot be placed on ``base``.
        AudioDecodeError: If either audio asset cannot be decoded.
    """
    cfg = config or SpliceConfig()
    window = resolve_segment_window(base, segment, script_words)

    base_audio, sr = decode_audio(base.audio_bytes, cfg.sample_rate)
    clip, _ = decode_audio(segment.audio_bytes, cfg.sample_rate)

    retimed = retime_to_window(clip, sr, segment.transcript, base.transcript, window)
    if retimed is not None:
        result = replace_window(
            base_audio, retimed, window.start_time, window.end_time, cfg, trim=False
        )
    else:
        result = replace_window(base_audio, clip, window.start_time, window.end_time, cfg)

    logger.info(
        f"Spliced words {segment.start_index}-{segment.end_index} into "
        f"{window.start_time:.3f}-{window.end_time:.3f}s"
        f"{' (retimed)' if retimed is not None else ''}"
    )
    return SegmentSplice(result=result, window=window, retimed=retimed is not None)


def to_audio_data(result: SpliceResult, transcript: TranscriptData | None = None) -> AudioData:
    """Encode a splice result as a new :class:`AudioData`."""
    return AudioData(
        duration=duration_of(result.audio, result.sample_rate),
        waveform=compute_waveform(result.audio),
        audio_bytes=encode_wav(result.audio, result.sample_rate),
        transcript=transcript,
    )


async def transcribe_or_none(
    transcriber: Transcriber | None, audio_bytes: bytes
) -> TranscriptData | None:
    """Transcribe ``audio_bytes``, treating provider failures as "no transcript"."""
    if transcriber is None:
        return None
    try:
        transcript = await transcriber.transcribe(audio_bytes)
    except ProviderError as exc:
        logger.warning(f"Transcription failed, continuing without timestamps: {exc}")
        return None
    return transcript if validate_transcript_data(transcript) else None


async def merge_segment(
    base: AudioData,
    segment: AudioSegment,
    script_words: Sequence[str],
    transcriber: Transcriber | None = None,
    config: SpliceConfig | None = None,
) -> AudioData:
    """Return a new base with ``segment`` spliced in.

    A fresh transcript of the whole merged audio is requested. When none is
    available the previous base transcript is kept: the splice preserves the
    timeline, so its timings outside the window stay valid.

    Raises:
        TimingResolutionError: If the segment cannot be placed on ``base``.
        AudioDecodeError: If either audio asset cannot be decoded.
    """
    spliced = splice_segment(base, segment, script_words, config)
    merged = to_audio_data(spliced.result)
    fresh = await transcribe_or_none(transcriber, merged.audio_bytes)
    if fresh is None:
        logger.debug("Keeping previous transcript for merged audio")
    merged.transcript = fresh if fresh is not None else clone_transcript(base.transcript)
    return merged


async def merge_all_segments(
    base: AudioData,
    segments: Sequence[AudioSegment],
    script_words: Sequence[str],
    transcriber: Transcriber | None = None,
    config: SpliceConfig | None = None,
) -> tuple[AudioData, list[AudioSegment]]:
    """Merge ``segments`` one by one in ascending ``start_index`` order.

    Segments that cannot be placed are logged and skipped; decode and
    provider errors abort the whole operation.

    Returns:
        tuple[AudioData, list[AudioSegment]]: The merged base and the skipped
            segments.
    """
    current = base
    skipped: list[AudioSegment] = []
    for segment in sorted(segments, key=lambda s: s.start_index):
        try:
            current = await merge_segment(current, segment, script_words, transcriber, config)
        except TimingResolutionError as exc:
            logger.warning(f"Skipping segment: {exc}")
            skipped.append(segment)
    return current, skipped

"""Configuration dataclasses for the splice pipeline.

Groups the tuned splice heuristics so callers pass one object instead of a
long list of numeric keyword arguments. Defaults come from
:mod:`narration_splice.utils.constant` and can be overridden through the
environment or ``.env``.
"""

from __future__ import annotations

from dataclasses import dataclass

from narration_splice.utils.constant import (
    DEFAULT_SAMPLE_RATE,
    JOIN_CROSSFADE_SEC,
    MAX_HISTORY_SIZE,
    MICRO_FADE_SEC,
    ROOM_TONE_CHUNK_SEC,
    ROOM_TONE_GAIN,
    ROOM_TONE_GRAB_SEC,
    ROOM_TONE_LOOP_CROSSFADE_SEC,
    SILENCE_THRESHOLD_DB,
    SILENCE_WINDOW_MS,
)


@dataclass(frozen=True)
class SpliceConfig:
    """Groups audio splice settings.

    Attributes:
        sample_rate: Rate every buffer is decoded to before splicing.
        trim_silence: Trim leading/trailing silence from replacement clips.
        silence_threshold_db: RMS level below which a window counts as silence.
        silence_window_ms: RMS analysis window length.
        fade_sec: Linear micro fade applied at buffer edges.
        crossfade_sec: Crossfade length at the two splice joins.
        room_tone_grab_sec: Audio grabbed each side of the window for room tone.
        room_tone_gain: Attenuation applied to room tone.
        room_tone_chunk_sec: Length of each looped room-tone chunk.
        room_tone_loop_crossfade_sec: Crossfade between looped chunks.

    """

    sample_rate: int = DEFAULT_SAMPLE_RATE
    trim_silence: bool = True
    silence_threshold_db: float = SILENCE_THRESHOLD_DB
    silence_window_ms: float = SILENCE_WINDOW_MS
    fade_sec: float = MICRO_FADE_SEC
    crossfade_sec: float = JOIN_CROSSFADE_SEC
    room_tone_grab_sec: float = ROOM_TONE_GRAB_SEC
    room_tone_gain: float = ROOM_TONE_GAIN
    room_tone_chunk_sec: float = ROOM_TONE_CHUNK_SEC
    room_tone_loop_crossfade_sec: float = ROOM_TONE_LOOP_CROSSFADE_SEC


@dataclass(frozen=True)
class HistoryConfig:
    """Groups undo/redo settings.

    Attributes:
        max_size: Number of snapshots retained; oldest are dropped first.

    """

    max_size: int = MAX_HISTORY_SIZE

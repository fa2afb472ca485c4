"""Replace a time window of a base narration with a replacement clip.

The splice keeps every sample outside ``[start_time, end_time)`` on its
original timeline position. Synthesized replacements almost never match the
slot they replace, so the clip is trimmed, faded and forced to exactly the
window's sample count before being joined:

1. Clamp the window to the base duration.
2. Split the base into ``before`` and ``after``.
3. Trim leading/trailing silence from the replacement.
4. Micro-fade the replacement, ``before`` and ``after``.
5. Crop or room-tone-pad the replacement to the window length.
6. Join with crossfades whose overlap consumes short room-tone lead-in and
   lead-out pads, so the content of ``after`` starts exactly one window
   length after ``before`` ends.

Encoding the result is left to :func:`narration_splice.utils.audio_io.encode_wav`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from narration_splice.config import SpliceConfig
from narration_splice.splicing.dsp import (
    apply_micro_fades,
    build_room_tone,
    crossfade_concat,
    fit_to_length,
    loop_to_length,
    silent,
    trim_silence,
)

__all__ = ["SpliceResult", "replace_window"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpliceResult:
    """Output of :func:`replace_window`.

    Attributes:
        audio: The spliced mono waveform.
        sample_rate: Sample rate of ``audio``.
        before_end_sample: Output index where the untouched ``before`` section ends.
        after_start_sample: Output index where the untouched ``after`` section begins.

    """

    audio: np.ndarray
    sample_rate: int
    before_end_sample: int
    after_start_sample: int

    @property
    def duration(self) -> float:
        """Duration of the spliced audio in seconds."""
        return len(self.audio) / self.sample_rate

    @property
    def replaced_duration(self) -> float:
        """Seconds between the end of ``before`` and the start of ``after``."""
        return (self.after_start_sample - self.before_end_sample) / self.sample_rate


def replace_window(
    base: np.ndarray,
    replacement: np.ndarray,
    start_time: float,
    end_time: float,
    config: SpliceConfig | None = None,
    *,
    trim: bool | None = None,
) -> SpliceResult:
    """Return ``base`` with ``[start_time, end_time)`` replaced by ``replacement``.

    Parameters:
        base: Mono base waveform at ``config.sample_rate``.
        replacement: Mono replacement clip at the same rate.
        start_time: Window start in seconds (clamped to the base).
        end_time: Window end in seconds (clamped, never before ``start_time``).
        config: Splice heuristics; defaults to :class:`SpliceConfig`.
        trim: Override ``config.trim_silence``; retimed clips pass ``False``
            since their edges are already exact.

    Returns:
        SpliceResult: The new buffer and the boundaries of the replaced region.
    """
    cfg = config or SpliceConfig()
    sr = cfg.sample_rate
    duration = len(base) / sr

    start_time = max(0.0, min(start_time, duration))
    end_time = max(start_time, min(end_time, duration))
    start_sample = round(start_time * sr)
    end_sample = max(start_sample, min(len(base), round(end_time * sr)))
    target = end_sample - start_sample

    # Room tone must come from the base before the window is replaced.
    room_tone = build_room_tone(
        base, sr, start_time, end_time, cfg.room_tone_grab_sec, cfg.room_tone_gain
    )

    before = base[:start_sample] if start_sample > 0 else silent(1)
    after = base[end_sample:] if end_sample < len(base) else silent(1)

    clip = replacement
    do_trim = cfg.trim_silence if trim is None else trim
    if do_trim:
        clip = trim_silence(clip, sr, cfg.silence_threshold_db, cfg.silence_window_ms)
    clip = apply_micro_fades(clip, sr, cfg.fade_sec)
    before = apply_micro_fades(before, sr, cfg.fade_sec)
    after = apply_micro_fades(after, sr, cfg.fade_sec)

    fitted = fit_to_length(
        clip,
        target,
        room_tone,
        sr,
        fade_sec=cfg.fade_sec,
        chunk_sec=cfg.room_tone_chunk_sec,
        loop_crossfade_sec=cfg.room_tone_loop_crossfade_sec,
    )
    logger.debug(
        f"Splice window {start_time:.3f}-{end_time:.3f}s: clip {len(clip)} -> {target} samples"
    )

    cross = max(0, math.floor(cfg.crossfade_sec * sr))
    lead = min(cross, len(before))
    tail = min(cross, len(after))
    padded = np.concatenate([
        loop_to_length(room_tone, lead),
        fitted,
        loop_to_length(room_tone, tail, lead),
    ])

    joined = crossfade_concat(before, padded, lead)
    merged = crossfade_concat(joined, after, tail)

    return SpliceResult(
        audio=merged,
        sample_rate=sr,
        before_end_sample=len(before),
        after_start_sample=len(before) + target,
    )

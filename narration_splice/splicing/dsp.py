"""Sample-level buffer primitives used by the splicer and retimer.

Every helper operates on 1-D float32 mono waveforms and returns a **new**
array; inputs are never modified in place, so buffers attached to an
``AudioData`` or a history snapshot stay intact.
"""

from __future__ import annotations

import math

import librosa  # type: ignore
import numpy as np

__all__ = [
    "silent",
    "extract",
    "trim_silence",
    "apply_micro_fades",
    "build_room_tone",
    "fit_to_length",
    "crossfade_concat",
    "loop_to_length",
    "time_scale",
]


def silent(n_samples: int) -> np.ndarray:
    """Return ``n_samples`` of digital silence (at least one sample)."""
    return np.zeros(max(1, n_samples), dtype=np.float32)


def extract(audio: np.ndarray, sr: int, start_sec: float, end_sec: float) -> np.ndarray:
    """Copy the samples in ``[start_sec, end_sec)``.

    Sample boundaries are rounded to the nearest sample so that adjacent
    extractions share an exact boundary.

    Returns:
        np.ndarray: The extracted samples, or a 1-sample silent placeholder
            when the range is empty.
    """
    start = max(0, round(start_sec * sr))
    end = max(start, min(len(audio), round(end_sec * sr)))
    if end - start <= 0:
        return silent(1)
    return audio[start:end].astype(np.float32, copy=True)


def trim_silence(
    audio: np.ndarray,
    sr: int,
    threshold_db: float = -45.0,
    window_ms: float = 8.0,
) -> np.ndarray:
    """Remove leading and trailing silence using windowed RMS energy.

    Windows are scanned in whole-window steps from each end until one exceeds
    ``threshold_db``. Half a window is kept on each side of the detected
    speech so onsets and decays are not clipped.

    Parameters:
        audio: Mono waveform.
        sr: Sample rate in Hz.
        threshold_db: RMS level (dBFS) separating silence from content.
        window_ms: Analysis window length in milliseconds.

    Returns:
        np.ndarray: The trimmed copy (at least one sample).
    """
    length = len(audio)
    window = max(1, math.floor(window_ms / 1000.0 * sr))
    threshold = 10.0 ** (threshold_db / 20.0)

    def rms_at(index: int) -> float:
        chunk = audio[max(0, index) : min(length, index + window)]
        if chunk.size == 0:
            return 0.0
        return float(np.sqrt(np.mean(np.square(chunk, dtype=np.float64))))

    start = 0
    while start < length and rms_at(start) < threshold:
        start += window
    end = length
    while end > start and rms_at(end - window) < threshold:
        end -= window

    margin = window // 2
    start = max(0, start - margin)
    end = min(length, end + margin)
    if end <= start:
        return silent(1)
    return audio[start:end].astype(np.float32, copy=True)


def apply_micro_fades(audio: np.ndarray, sr: int, fade_sec: float = 0.008) -> np.ndarray:
    """Apply a short linear fade-in and fade-out.

    Returns:
        np.ndarray: A faded copy of ``audio``.
    """
    out = audio.astype(np.float32, copy=True)
    n = min(max(1, math.floor(fade_sec * sr)), len(out))
    if n == 0:
        return out
    ramp = np.arange(n, dtype=np.float32) / n
    out[:n] *= ramp
    out[len(out) - n :] *= ramp[::-1]
    return out


def build_room_tone(
    audio: np.ndarray,
    sr: int,
    start_sec: float,
    end_sec: float,
    grab_sec: float = 0.05,
    gain: float = 0.2,
) -> np.ndarray:
    """Sample low-level ambience around a splice window.

    Takes up to ``grab_sec`` immediately before ``start_sec`` and after
    ``end_sec`` and attenuates it by ``gain``. Must be called on the base
    audio *before* the window is replaced.

    Returns:
        np.ndarray: Attenuated room tone (at least one sample).
    """
    duration = len(audio) / sr
    before = extract(audio, sr, max(0.0, start_sec - grab_sec), start_sec)
    after = extract(audio, sr, end_sec, min(duration, end_sec + grab_sec))
    return (np.concatenate([before, after]) * gain).astype(np.float32)


def loop_to_length(tone: np.ndarray, n_samples: int, offset: int = 0) -> np.ndarray:
    """Return ``n_samples`` read cyclically from ``tone`` starting at ``offset``."""
    if n_samples <= 0:
        return np.zeros(0, dtype=np.float32)
    if tone.size == 0:
        return np.zeros(n_samples, dtype=np.float32)
    idx = np.arange(offset, offset + n_samples)
    return np.take(tone, idx, mode="wrap").astype(np.float32)


def fit_to_length(
    audio: np.ndarray,
    target_samples: int,
    room_tone: np.ndarray,
    sr: int,
    *,
    fade_sec: float = 0.008,
    chunk_sec: float = 0.02,
    loop_crossfade_sec: float = 0.005,
) -> np.ndarray:
    """Crop or pad ``audio`` to exactly ``target_samples``.

    Longer input loses its tail and is re-faded. Shorter input is padded with
    ``room_tone`` looped in short chunks, each chunk crossfaded into the
    previous material to avoid periodic clicks.

    Returns:
        np.ndarray: A buffer of exactly ``target_samples`` samples.
    """
    if target_samples <= 0:
        return np.zeros(0, dtype=np.float32)
    if len(audio) == target_samples:
        return audio.astype(np.float32, copy=True)
    if len(audio) > target_samples:
        return apply_micro_fades(audio[:target_samples], sr, fade_sec)

    chunk = max(128, min(len(room_tone), math.floor(chunk_sec * sr)))
    cross = max(8, math.floor(loop_crossfade_sec * sr))

    out = np.zeros(target_samples, dtype=np.float32)
    out[: len(audio)] = audio
    write_pos = len(audio)
    tone_pos = 0
    while write_pos < target_samples:
        take = min(chunk, target_samples - write_pos)
        overlap = min(cross, write_pos)
        piece = loop_to_length(room_tone, overlap + take, tone_pos)
        if overlap:
            t = np.arange(overlap, dtype=np.float32) / overlap
            region = slice(write_pos - overlap, write_pos)
            out[region] = out[region] * (1.0 - t) + piece[:overlap] * t
        out[write_pos : write_pos + take] = piece[overlap:]
        write_pos += take
        tone_pos += overlap + take
    return apply_micro_fades(out, sr, fade_sec)


def crossfade_concat(a: np.ndarray, b: np.ndarray, cross_samples: int) -> np.ndarray:
    """Concatenate ``a`` and ``b`` overlapping ``cross_samples`` samples.

    The overlap is a linear crossfade, so the result is
    ``len(a) + len(b) - cross`` samples long with ``cross`` clamped to both
    lengths.

    Returns:
        np.ndarray: The joined buffer.
    """
    cross = max(0, min(cross_samples, len(a), len(b)))
    out = np.zeros(len(a) + len(b) - cross, dtype=np.float32)
    head = len(a) - cross
    out[:head] = a[:head]
    if cross:
        t = np.arange(cross, dtype=np.float32) / cross
        out[head : len(a)] = a[head:] * (1.0 - t) + b[:cross] * t
    out[len(a) :] = b[cross:]
    return out


def time_scale(audio: np.ndarray, target_samples: int) -> np.ndarray:
    """Stretch or squeeze ``audio`` to ``target_samples`` by playback-rate resampling.

    Pitch follows the rate change, as with changing a player's playback speed.

    Returns:
        np.ndarray: Exactly ``target_samples`` samples.
    """
    if target_samples <= 0:
        return np.zeros(0, dtype=np.float32)
    if len(audio) < 2:
        return np.zeros(target_samples, dtype=np.float32)
    if len(audio) == target_samples:
        return audio.astype(np.float32, copy=True)
    scaled = librosa.resample(
        audio.astype(np.float32),
        orig_sr=float(len(audio)),
        target_sr=float(target_samples),
        res_type="soxr_hq",
    )
    return librosa.util.fix_length(scaled, size=target_samples).astype(np.float32)

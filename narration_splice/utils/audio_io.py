"""Audio I/O helpers.

Decodes arbitrary provider audio bytes (MP3 from the synthesis provider, WAV
from earlier merges) into a mono float32 numpy array at a fixed sample rate,
encodes PCM buffers back to WAV bytes, and derives the coarse display
waveform. Decoding uses *soundfile* first, then FFmpeg, then *pydub*.
"""

from __future__ import annotations

import io
import logging
import shutil
import subprocess

import librosa  # type: ignore
import numpy as np
import soundfile as sf  # type: ignore
from pydub import AudioSegment as PydubSegment  # type: ignore  # fallback only

from narration_splice.errors import AudioDecodeError
from narration_splice.utils.constant import (
    DEFAULT_SAMPLE_RATE,
    EXPORT_WAV_SUBTYPE,
    FORCE_FFMPEG,
    WAVEFORM_BINS,
)

__all__ = [
    "decode_audio",
    "encode_wav",
    "duration_of",
    "compute_waveform",
    "DEFAULT_SAMPLE_RATE",
]

logger = logging.getLogger(__name__)


def _decode_with_ffmpeg(data: bytes, target_sr: int) -> tuple[np.ndarray, int]:
    """
    Decode encoded audio bytes to a mono float32 waveform using an FFmpeg pipe.

    Parameters:
        data (bytes): Encoded audio (any container FFmpeg understands).
        target_sr (int): Desired sample rate in Hz.

    Returns:
        data (np.ndarray): 1-D float32 waveform with values in [-1.0, 1.0].
        sr (int): Sample rate of the returned waveform (equal to `target_sr`).

    Raises:
        RuntimeError: If FFmpeg is not available in PATH or fails to decode.
    """
    if shutil.which("ffmpeg") is None:
        raise RuntimeError("FFmpeg is not installed or not in PATH.")

    cmd = [
        "ffmpeg",
        "-nostdin",
        "-i",
        "pipe:0",
        "-f",
        "s16le",
        "-ac",
        "1",
        "-acodec",
        "pcm_s16le",
        "-ar",
        str(target_sr),
        "-",
    ]
    try:
        pcm = subprocess.run(cmd, input=data, capture_output=True, check=True).stdout
    except subprocess.CalledProcessError as exc:
        raise RuntimeError(f"FFmpeg decoding failed: {exc.stderr.decode(errors='ignore')}") from exc

    samples = np.frombuffer(pcm, np.int16).astype(np.float32) / (1 << 15)
    return samples, target_sr


def _decode_with_pydub(data: bytes) -> tuple[np.ndarray, int]:
    """Fallback decoder using pydub for formats unsupported by soundfile.

    Args:
        data: Encoded audio bytes.

    Returns:
        A tuple containing:
        - data: Mono float32 waveform in range [-1, 1].
        - sr: Native sample rate of the decoded audio.

    """
    seg: PydubSegment = PydubSegment.from_file(io.BytesIO(data))
    sr = seg.frame_rate
    samples = np.array(seg.get_array_of_samples())
    if seg.channels > 1:
        samples = samples.reshape((-1, seg.channels)).mean(axis=1)
    scale = float(1 << (8 * seg.sample_width - 1))
    decoded = (samples.astype(np.float32) / scale).clip(-1.0, 1.0)
    return decoded, sr


def decode_audio(data: bytes, target_sr: int = DEFAULT_SAMPLE_RATE) -> tuple[np.ndarray, int]:
    """Decode encoded audio bytes into a mono float32 waveform.

    Args:
        data: Encoded audio bytes (WAV, MP3, ...).
        target_sr: The sample rate to resample to. Defaults to
            `DEFAULT_SAMPLE_RATE`.

    Returns:
        A tuple ``(audio, sr)`` with a 1-D float32 waveform and ``sr == target_sr``.

    Raises:
        AudioDecodeError: If the bytes are empty or no backend can decode them.

    """
    if not data:
        raise AudioDecodeError("Cannot decode empty audio buffer")

    # Decoding strategy order:
    # 1. If FORCE_FFMPEG, try direct FFmpeg pipe first.
    # 2. Attempt libsndfile via soundfile.
    # 3. Fallback to FFmpeg (if not tried) then pydub.
    samples: np.ndarray | None = None
    sr: int | None = None
    last_error: Exception | None = None

    ffmpeg_tried = False
    if FORCE_FFMPEG:
        ffmpeg_tried = True
        try:
            samples, sr = _decode_with_ffmpeg(data, target_sr)
        except RuntimeError as exc:
            last_error = exc

    if samples is None:
        try:
            samples, sr = sf.read(io.BytesIO(data), dtype="float32", always_2d=False)
        except (RuntimeError, sf.LibsndfileError) as exc:
            last_error = exc

    if samples is None and not ffmpeg_tried:
        try:
            samples, sr = _decode_with_ffmpeg(data, target_sr)
        except RuntimeError as exc:
            last_error = exc

    if samples is None:
        try:
            samples, sr = _decode_with_pydub(data)
        except Exception as exc:
            raise AudioDecodeError(f"Unsupported or malformed audio: {exc}") from (
                last_error or exc
            )

    if samples.ndim > 1:
        samples = np.mean(samples, axis=-1)

    if sr != target_sr:
        logger.debug(f"Resampling decoded audio {sr} Hz -> {target_sr} Hz")
        samples = librosa.resample(samples, orig_sr=sr, target_sr=target_sr, dtype=np.float32)
        sr = target_sr

    if samples.dtype != np.float32:
        samples = samples.astype(np.float32)

    return samples, sr


def encode_wav(audio: np.ndarray, sample_rate: int, subtype: str = EXPORT_WAV_SUBTYPE) -> bytes:
    """Encode a mono float waveform to WAV container bytes.

    Args:
        audio: 1-D float waveform in [-1, 1]; values outside are clipped.
        sample_rate: Sample rate of ``audio`` in Hz.
        subtype: libsndfile subtype, ``PCM_16`` by default.

    Returns:
        The encoded WAV bytes.
    """
    buf = io.BytesIO()
    sf.write(buf, np.clip(audio, -1.0, 1.0), sample_rate, format="WAV", subtype=subtype)
    return buf.getvalue()


def duration_of(audio: np.ndarray, sample_rate: int) -> float:
    """Return the duration of ``audio`` in seconds."""
    return float(len(audio)) / float(sample_rate)


def compute_waveform(audio: np.ndarray, bins: int = WAVEFORM_BINS) -> list[float]:
    """Return a coarse peak envelope of ``audio`` for display.

    Each bin holds the peak absolute amplitude of its slice, normalised so the
    loudest bin is ``1.0``. Silent or empty input yields zeros.

    Args:
        audio: 1-D waveform.
        bins: Number of output values.

    Returns:
        list[float]: ``min(bins, len(audio))`` amplitudes in ``[0, 1]``.
    """
    if audio.size == 0 or bins <= 0:
        return []
    n_bins = min(bins, audio.size)
    peaks = np.array([np.abs(chunk).max() for chunk in np.array_split(audio, n_bins)])
    top = float(peaks.max())
    if top <= 0.0:
        return [0.0] * n_bins
    return [float(p) for p in peaks / top]

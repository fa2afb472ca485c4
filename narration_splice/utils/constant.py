"""Project-wide constants for convenient reuse."""

# pylint: disable=line-too-long

from __future__ import annotations

import os
import pathlib
import sys
from typing import Final

from narration_splice.utils.env_loader import load_project_env

# Ensure .env is loaded exactly once at import time for the whole project
if "pytest" not in sys.modules:
    load_project_env()


# Repository root resolved relative to this file (utils/constant.py → package → repo)
REPO_ROOT: Final[pathlib.Path] = pathlib.Path(__file__).resolve().parents[2]

# Default path of the dotenv file containing runtime overrides
ENV_FILE: Final[pathlib.Path] = REPO_ROOT / ".env"

# Sample rate every buffer is decoded to before splicing.
DEFAULT_SAMPLE_RATE: Final[int] = int(os.getenv("DEFAULT_SAMPLE_RATE", "44100"))

# Prefer FFmpeg for audio decoding (1 = yes, 0 = try soundfile first)
FORCE_FFMPEG: Final[bool] = os.getenv("FORCE_FFMPEG", "0") == "1"

# WAV subtype used for every exported / merged buffer
EXPORT_WAV_SUBTYPE: Final[str] = os.getenv("EXPORT_WAV_SUBTYPE", "PCM_16")

# Silence trimming of regenerated clips (RMS window energy detection)
SILENCE_THRESHOLD_DB: Final[float] = float(os.getenv("SILENCE_THRESHOLD_DB", "-45"))
SILENCE_WINDOW_MS: Final[float] = float(os.getenv("SILENCE_WINDOW_MS", "8"))

# Micro fade applied at every buffer edge to avoid clicks
MICRO_FADE_SEC: Final[float] = float(os.getenv("MICRO_FADE_SEC", "0.008"))

# Crossfade used at the two splice joins
JOIN_CROSSFADE_SEC: Final[float] = float(os.getenv("JOIN_CROSSFADE_SEC", "0.010"))

# Room tone padding: grab length each side of the window, gain, loop chunk and loop crossfade
ROOM_TONE_GRAB_SEC: Final[float] = float(os.getenv("ROOM_TONE_GRAB_SEC", "0.05"))
ROOM_TONE_GAIN: Final[float] = float(os.getenv("ROOM_TONE_GAIN", "0.2"))
ROOM_TONE_CHUNK_SEC: Final[float] = float(os.getenv("ROOM_TONE_CHUNK_SEC", "0.02"))
ROOM_TONE_LOOP_CROSSFADE_SEC: Final[float] = float(
    os.getenv("ROOM_TONE_LOOP_CROSSFADE_SEC", "0.005")
)

# Undo/redo depth
MAX_HISTORY_SIZE: Final[int] = int(os.getenv("MAX_HISTORY_SIZE", "15"))

# Number of bins in the coarse display waveform
WAVEFORM_BINS: Final[int] = int(os.getenv("WAVEFORM_BINS", "200"))

# Characters of the selection shown in a merge history label
HISTORY_LABEL_CHARS: Final[int] = int(os.getenv("HISTORY_LABEL_CHARS", "20"))

# Export filename fallback when the script has no usable leading words
DEFAULT_EXPORT_BASENAME: Final[str] = os.getenv("DEFAULT_EXPORT_BASENAME", "podcast")

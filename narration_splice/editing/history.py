"""Bounded undo/redo history over the composite editable state."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from narration_splice.config import HistoryConfig
from narration_splice.editing.models import (
    AudioData,
    AudioSegment,
    HistoryState,
    clone_audio_data,
    clone_history_state,
    clone_segment,
)

__all__ = ["HistoryManager"]

logger = logging.getLogger(__name__)


class HistoryManager:
    """Stores cloned snapshots and a pointer to the current one.

    Recording after an undo discards the redo branch. Only the most recent
    ``max_size`` snapshots are retained. Snapshots are cloned on the way in
    and on the way out, so callers can mutate whatever they pass or receive.

    Attributes:
        max_size: Maximum number of retained snapshots.

    Examples:
        >>> history = HistoryManager()
        >>> history.record("Generate Audio", "Hello there", None, [])
        >>> history.can_undo
        False
    """

    def __init__(self, config: HistoryConfig | None = None) -> None:
        """Initialize an empty history.

        Args:
            config: History settings; defaults to :class:`HistoryConfig`.
        """
        self.max_size = (config or HistoryConfig()).max_size
        self._entries: list[HistoryState] = []
        self._index = -1

    @property
    def index(self) -> int:
        """Position of the current snapshot, ``-1`` when empty."""
        return self._index

    @property
    def can_undo(self) -> bool:
        """Whether an earlier snapshot exists."""
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        """Whether a later snapshot exists."""
        return self._index < len(self._entries) - 1

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> list[HistoryState]:
        """Return clones of all retained snapshots, oldest first."""
        return [clone_history_state(s) for s in self._entries]

    def record(
        self,
        action: str,
        script: str,
        audio_data: AudioData | None,
        segments: Sequence[AudioSegment],
    ) -> None:
        """Snapshot the given state as the newest entry.

        Args:
            action: Label shown in the history list.
            script: Script text.
            audio_data: Current base audio.
            segments: Applied segments.
        """
        snapshot = HistoryState(
            script=script,
            audio_data=clone_audio_data(audio_data),
            segments=[clone_segment(s) for s in segments],
            timestamp=time.time(),
            action=action,
        )
        entries = self._entries[: self._index + 1]
        entries.append(snapshot)
        if len(entries) > self.max_size:
            entries = entries[len(entries) - self.max_size :]
        self._entries = entries
        self._index = len(entries) - 1
        logger.debug(f"History recorded {action!r} ({self._index + 1}/{len(entries)})")

    def undo(self) -> HistoryState | None:
        """Step back one snapshot.

        Returns:
            HistoryState | None: A clone of the previous snapshot, or ``None``
                when already at the oldest entry.
        """
        if not self.can_undo:
            return None
        self._index -= 1
        return clone_history_state(self._entries[self._index])

    def redo(self) -> HistoryState | None:
        """Step forward one snapshot.

        Returns:
            HistoryState | None: A clone of the next snapshot, or ``None`` when
                already at the newest entry.
        """
        if not self.can_redo:
            return None
        self._index += 1
        return clone_history_state(self._entries[self._index])

    def clear(self) -> None:
        """Remove every snapshot."""
        self._entries = []
        self._index = -1

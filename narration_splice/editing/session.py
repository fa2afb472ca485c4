"""Editor session: the command surface over script, base audio and segments.

The session owns the editable state and the undo history. Long running
commands (generate, regenerate, merge, export) are mutually exclusive; a
second one started while the first is in flight raises
:class:`~narration_splice.errors.EditorBusyError`. Every committed state
change bumps a generation counter, and a command whose captured generation no
longer matches at commit time raises
:class:`~narration_splice.errors.StaleResultError` instead of overwriting the
newer state.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from narration_splice.config import HistoryConfig, SpliceConfig
from narration_splice.editing.history import HistoryManager
from narration_splice.editing.merge import (
    find_overlapping_segment,
    merge_all_segments,
    merge_segment,
    splice_segment,
    to_audio_data,
    transcribe_or_none,
    upsert_segment,
)
from narration_splice.editing.models import (
    AudioData,
    AudioSegment,
    HistoryState,
    MergePreview,
    clone_audio_data,
    clone_segment,
)
from narration_splice.editing.providers import Synthesizer, Transcriber
from narration_splice.errors import (
    EditorBusyError,
    NarrationSpliceError,
    StaleResultError,
    TimingResolutionError,
)
from narration_splice.timestamps.alignment import AlignmentCache
from narration_splice.timestamps.playback import (
    applied_word_mask,
    highlight_index_at_time,
    seek_time_for_word,
)
from narration_splice.timestamps.resolver import resolve_timing
from narration_splice.timestamps.tokens import split_script_words
from narration_splice.utils.audio_io import (
    compute_waveform,
    decode_audio,
    duration_of,
    encode_wav,
)
from narration_splice.utils.constant import DEFAULT_EXPORT_BASENAME, HISTORY_LABEL_CHARS

__all__ = [
    "EditorState",
    "ExportResult",
    "EditorSession",
    "default_export_filename",
    "merge_action_label",
]

logger = logging.getLogger(__name__)

_FILENAME_STRIP = re.compile(r"[^a-zA-Z0-9_]")


def default_export_filename(script: str) -> str:
    """Return the export filename built from the first three script words.

    ``"Hello, big world again"`` gives ``Hello_big_world.wav``; a script with no
    usable leading words falls back to ``podcast.wav``.
    """
    first_words = _FILENAME_STRIP.sub("", "_".join(script.split()[:3]))
    return f"{first_words or DEFAULT_EXPORT_BASENAME}.wav"


def merge_action_label(text: str) -> str:
    """Return the history label recorded for a merge of ``text``."""
    short = text[:HISTORY_LABEL_CHARS]
    suffix = "..." if len(text) > HISTORY_LABEL_CHARS else ""
    return f'Merge "{short}{suffix}"'


@dataclass
class EditorState:
    """The editable state.

    Attributes:
        script: Current script text.
        audio_data: Current base narration, ``None`` before the first generate.
        segments: Applied segments, non-overlapping, sorted by ``start_index``.
        pending: Regenerated segments not merged yet.

    """

    script: str = ""
    audio_data: AudioData | None = None
    segments: list[AudioSegment] = field(default_factory=list)
    pending: list[AudioSegment] = field(default_factory=list)

    @property
    def script_words(self) -> list[str]:
        """Whitespace-split script words that indices refer to."""
        return split_script_words(self.script)


@dataclass(frozen=True)
class ExportResult:
    """Exported narration.

    Attributes:
        filename: Suggested download name.
        audio_bytes: WAV encoded audio.
        skipped: Pending segments that could not be placed.

    """

    filename: str
    audio_bytes: bytes
    skipped: list[AudioSegment]


class EditorSession:
    """Drives the generate, regenerate, merge, export and undo/redo cycle.

    Examples:
        >>> session = EditorSession(synthesizer, transcriber)  # doctest: +SKIP
        >>> session.set_script("The quick brown fox")  # doctest: +SKIP
        >>> await session.generate()  # doctest: +SKIP
        >>> preview = await session.regenerate_selection(1, 3)  # doctest: +SKIP
        >>> await session.confirm_merge(preview)  # doctest: +SKIP
    """

    def __init__(
        self,
        synthesizer: Synthesizer,
        transcriber: Transcriber | None = None,
        *,
        splice_config: SpliceConfig | None = None,
        history_config: HistoryConfig | None = None,
        script: str = "",
    ) -> None:
        """Create a session.

        Args:
            synthesizer: Text-to-speech provider.
            transcriber: Optional timestamp provider; without it synthesis
                transcripts (if any) are used.
            splice_config: Splice heuristics.
            history_config: Undo/redo settings.
            script: Initial script text.
        """
        self.synthesizer = synthesizer
        self.transcriber = transcriber
        self.splice_config = splice_config or SpliceConfig()
        self.history = HistoryManager(history_config)
        self._state = EditorState(script=script)
        self._alignment = AlignmentCache()
        self._busy = False
        self._generation = 0

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------
    @property
    def state(self) -> EditorState:
        """The current state. Treat as read-only; use commands to change it."""
        return self._state

    @property
    def busy(self) -> bool:
        """Whether a long running command is in flight."""
        return self._busy

    @property
    def generation(self) -> int:
        """Counter bumped on every committed state change."""
        return self._generation

    @contextmanager
    def _exclusive(self, command: str) -> Iterator[int]:
        if self._busy:
            raise EditorBusyError(f"Cannot {command}: another operation is in progress")
        self._busy = True
        try:
            yield self._generation
        finally:
            self._busy = False

    def _commit(self, expected_generation: int, state: EditorState) -> None:
        if expected_generation != self._generation:
            raise StaleResultError(
                "The editor state changed while the operation was running; result discarded"
            )
        self._state = state
        self._generation += 1
        self._alignment.invalidate()

    def _record(self, action: str) -> None:
        self.history.record(
            action, self._state.script, self._state.audio_data, self._state.segments
        )

    def _restore(self, snapshot: HistoryState) -> None:
        self._state = EditorState(
            script=snapshot.script,
            audio_data=snapshot.audio_data,
            segments=snapshot.segments,
            pending=self._state.pending,
        )
        self._generation += 1
        self._alignment.invalidate()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def set_script(self, script: str) -> None:
        """Replace the script text. Not recorded in history."""
        self._state = EditorState(
            script=script,
            audio_data=self._state.audio_data,
            segments=self._state.segments,
            pending=self._state.pending,
        )
        self._generation += 1
        self._alignment.invalidate()

    async def generate(self) -> AudioData:
        """Synthesize the whole script as a new base narration.

        Clears every applied and pending segment and records
        ``"Generate Audio"`` in history.

        Raises:
            ValueError: If the script is empty.
            ProviderError: If synthesis fails.
            AudioDecodeError: If the synthesized audio cannot be decoded.
        """
        script = self._state.script
        if not script.strip():
            raise ValueError("Script is empty")
        with self._exclusive("generate") as generation:
            synthesis = await self.synthesizer.synthesize(script)
            audio, sr = decode_audio(synthesis.audio_bytes, self.splice_config.sample_rate)
            transcript = await transcribe_or_none(self.transcriber, synthesis.audio_bytes)
            audio_data = AudioData(
                duration=duration_of(audio, sr),
                waveform=compute_waveform(audio),
                audio_bytes=synthesis.audio_bytes,
                transcript=transcript if transcript is not None else synthesis.transcript,
            )
            self._commit(generation, EditorState(script=script, audio_data=audio_data))
            self._record("Generate Audio")
        logger.info(f"Generated {audio_data.duration:.2f}s of narration")
        return clone_audio_data(audio_data)

    async def regenerate_selection(self, start_index: int, end_index: int) -> MergePreview:
        """Synthesize script words ``[start_index, end_index)`` as a replacement.

        The new segment is resolved against the current base, spliced into a
        preview buffer and queued as pending. Nothing is committed to the base.

        Raises:
            ValueError: If there is no base audio or the range is invalid.
            TimingResolutionError: If the selection cannot be placed.
            ProviderError: If synthesis fails.
            AudioDecodeError: If the synthesized audio cannot be decoded.
        """
        base = self._state.audio_data
        if base is None:
            raise ValueError("Generate audio before regenerating a selection")
        words = self._state.script_words
        if not 0 <= start_index < end_index <= len(words):
            raise ValueError(f"Invalid word range {start_index}-{end_index}")
        text = " ".join(words[start_index:end_index])

        window = resolve_timing(
            text,
            start_index,
            end_index,
            words,
            base.transcript,
            total_words=len(words),
            duration=base.duration,
        )
        if window is None:
            raise TimingResolutionError(text, start_index, end_index)

        with self._exclusive("regenerate") as generation:
            synthesis = await self.synthesizer.synthesize(text)
            clip, sr = decode_audio(synthesis.audio_bytes, self.splice_config.sample_rate)
            transcript = await transcribe_or_none(self.transcriber, synthesis.audio_bytes)
            segment = AudioSegment(
                start_index=start_index,
                end_index=end_index,
                audio_bytes=synthesis.audio_bytes,
                waveform=compute_waveform(clip),
                start_time=window.start_time,
                end_time=window.end_time,
                duration=duration_of(clip, sr),
                transcript=transcript if transcript is not None else synthesis.transcript,
                text=text,
            )
            spliced = splice_segment(base, segment, words, self.splice_config)
            preview = MergePreview(
                original_segment=find_overlapping_segment(
                    self._state.segments, start_index, end_index
                ),
                new_segment=segment,
                merged_audio=to_audio_data(spliced.result),
            )
            pending = [
                s for s in self._state.pending if not s.overlaps(start_index, end_index)
            ]
            pending.append(segment)
            self._commit(
                generation,
                EditorState(
                    script=self._state.script,
                    audio_data=base,
                    segments=self._state.segments,
                    pending=sorted(pending, key=lambda s: s.start_index),
                ),
            )
        return preview

    def discard_preview(self, preview: MergePreview) -> None:
        """Drop a previewed segment from the pending queue."""
        handle = preview.new_segment.audio_url
        self._state.pending = [s for s in self._state.pending if s.audio_url != handle]

    async def confirm_merge(self, preview: MergePreview) -> AudioData:
        """Commit a previewed segment into the base narration.

        The segment is re-resolved against the current base, spliced, and the
        merged audio re-transcribed. Overlapping applied segments are evicted
        and ``'Merge "<text>"'`` is recorded in history.

        Raises:
            ValueError: If there is no base audio, or the previewed segment is
                no longer pending (discarded, replaced or cleared by a new
                generation).
            TimingResolutionError: If the segment can no longer be placed.
            AudioDecodeError: If either audio asset cannot be decoded.
            StaleResultError: If the state changed while merging.
        """
        base = self._state.audio_data
        if base is None:
            raise ValueError("Nothing to merge into")
        segment = clone_segment(preview.new_segment)
        if not any(s.audio_url == segment.audio_url for s in self._state.pending):
            raise ValueError(f'Preview "{segment.text}" is no longer pending')
        with self._exclusive("merge") as generation:
            merged = await merge_segment(
                base, segment, self._state.script_words, self.transcriber, self.splice_config
            )
            applied = upsert_segment(self._state.segments, segment)
            pending = [s for s in self._state.pending if s.audio_url != segment.audio_url]
            self._commit(
                generation,
                EditorState(
                    script=self._state.script,
                    audio_data=merged,
                    segments=applied,
                    pending=pending,
                ),
            )
            self._record(merge_action_label(segment.text))
        return clone_audio_data(merged)

    async def export(self) -> ExportResult:
        """Merge every pending segment and return WAV bytes for download.

        Segments are merged in script order and, with a transcriber, the
        intermediate audio is re-transcribed before the next segment is
        placed. The session state is left untouched. Pending segments that
        cannot be placed are skipped and reported.

        Raises:
            NarrationSpliceError: If there is no audio to export.
            AudioDecodeError: If an audio asset cannot be decoded.
        """
        base = self._state.audio_data
        if base is None:
            raise NarrationSpliceError("Nothing to export: generate audio first")
        with self._exclusive("export"):
            merged, skipped = await merge_all_segments(
                base,
                self._state.pending,
                self._state.script_words,
                self.transcriber,
                self.splice_config,
            )
            audio, sr = decode_audio(merged.audio_bytes, self.splice_config.sample_rate)
            payload = encode_wav(audio, sr)
        logger.info(f"Exported {duration_of(audio, sr):.2f}s ({len(skipped)} segments skipped)")
        return ExportResult(
            filename=default_export_filename(self._state.script),
            audio_bytes=payload,
            skipped=skipped,
        )

    def undo(self) -> bool:
        """Restore the previous snapshot. Returns ``False`` when there is none."""
        snapshot = self.history.undo()
        if snapshot is None:
            return False
        self._restore(snapshot)
        return True

    def redo(self) -> bool:
        """Restore the next snapshot. Returns ``False`` when there is none."""
        snapshot = self.history.redo()
        if snapshot is None:
            return False
        self._restore(snapshot)
        return True

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------
    def highlight_index(self, current_time: float) -> int:
        """Script word index to highlight at ``current_time``."""
        base = self._state.audio_data
        words = self._state.script_words
        if base is None:
            return -1
        alignment = self._alignment.get(words, base.transcript)
        return highlight_index_at_time(
            current_time, len(words), base.duration, base.transcript, alignment
        )

    def seek_time(self, word_index: int) -> float:
        """Playback position for script word ``word_index``."""
        base = self._state.audio_data
        if base is None:
            return 0.0
        return seek_time_for_word(
            word_index, len(self._state.script_words), base.duration, base.transcript
        )

    def applied_mask(self) -> list[bool]:
        """Per script word flag: covered by an applied segment."""
        return applied_word_mask(
            len(self._state.script_words),
            [(s.start_index, s.end_index) for s in self._state.segments],
        )

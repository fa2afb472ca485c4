"""Unit tests for the editor session command surface."""

from __future__ import annotations

import asyncio

import numpy as np
import pytest

from narration_splice.config import SpliceConfig
from narration_splice.editing.providers import SynthesisResult, Synthesizer
from narration_splice.editing.session import (
    EditorSession,
    default_export_filename,
    merge_action_label,
)
from narration_splice.errors import (
    AudioDecodeError,
    EditorBusyError,
    NarrationSpliceError,
    StaleResultError,
    TimingResolutionError,
)
from narration_splice.timestamps.models import TranscriptData, WordTiming
from narration_splice.utils.audio_io import decode_audio, encode_wav

SECONDS_PER_WORD = 0.25
SCRIPT = "The quick brown fox jumps over the lazy dog"


class FakeSynthesizer:
    """Synthesizes a tone per word with evenly spaced word timings.

    Setting ``gate`` to an unset :class:`asyncio.Event` holds synthesis until
    the event is set.
    """

    def __init__(self, sr: int) -> None:
        self.sr = sr
        self.requests: list[str] = []
        self.gate: asyncio.Event | None = None

    async def synthesize(self, text: str) -> SynthesisResult:
        self.requests.append(text)
        if self.gate is not None:
            await self.gate.wait()
        words = text.split()
        duration = SECONDS_PER_WORD * len(words)
        t = np.arange(round(duration * self.sr)) / self.sr
        audio = (0.3 * np.sin(2 * np.pi * (200 + 10 * len(self.requests)) * t)).astype(
            np.float32
        )
        timings = tuple(
            WordTiming(
                text=w, start=i * SECONDS_PER_WORD, end=(i + 1) * SECONDS_PER_WORD - 0.01
            )
            for i, w in enumerate(words)
        )
        return SynthesisResult(
            audio_bytes=encode_wav(audio, self.sr),
            duration=duration,
            transcript=TranscriptData(language_code="en", text=text, words=timings),
        )


class CountingTranscriber:
    """Returns a fixed transcript and counts how often it is asked."""

    def __init__(self, transcript: TranscriptData | None = None) -> None:
        self.transcript = transcript
        self.calls = 0

    async def transcribe(self, audio_bytes: bytes) -> TranscriptData | None:
        self.calls += 1
        return self.transcript


@pytest.fixture
def synthesizer(sr: int) -> FakeSynthesizer:
    """A fake synthesis provider at the test sample rate."""
    return FakeSynthesizer(sr)


@pytest.fixture
def session(synthesizer: FakeSynthesizer, splice_config: SpliceConfig) -> EditorSession:
    """A session over the fake provider with the standard script."""
    return EditorSession(synthesizer, splice_config=splice_config, script=SCRIPT)


def test_fake_synthesizer_satisfies_protocol(synthesizer: FakeSynthesizer) -> None:
    """The fake provider matches the synthesis protocol."""
    assert isinstance(synthesizer, Synthesizer)


def test_generate_sets_base_and_history(session: EditorSession) -> None:
    """Generating creates the base audio and the first history entry."""
    audio = asyncio.run(session.generate())

    assert audio.duration == pytest.approx(9 * SECONDS_PER_WORD)
    assert audio.transcript is not None
    assert session.state.audio_data is not None
    assert session.state.segments == []
    assert [e.action for e in session.history.entries()] == ["Generate Audio"]
    assert session.generation == 1
    assert not session.busy


def test_generate_requires_script(synthesizer: FakeSynthesizer) -> None:
    """An empty script cannot be synthesized."""
    with pytest.raises(ValueError):
        asyncio.run(EditorSession(synthesizer, script="   ").generate())


def test_regenerate_selection_previews_without_committing(
    session: EditorSession, synthesizer: FakeSynthesizer
) -> None:
    """Regenerating queues a pending segment and a spliced preview."""
    asyncio.run(session.generate())
    base = session.state.audio_data

    preview = asyncio.run(session.regenerate_selection(1, 3))

    assert synthesizer.requests[-1] == "quick brown"
    segment = preview.new_segment
    assert (segment.start_time, segment.end_time) == pytest.approx((0.25, 0.74))
    assert segment.text == "quick brown"
    assert preview.original_segment is None
    assert preview.merged_audio is not None
    assert preview.merged_audio.duration == pytest.approx(base.duration)
    assert session.state.audio_data is base
    assert [(s.start_index, s.end_index) for s in session.state.pending] == [(1, 3)]
    assert len(session.history) == 1


def test_regenerate_selection_validates_range(session: EditorSession) -> None:
    """Regeneration needs a base and an in-bounds, non-empty range."""
    with pytest.raises(ValueError):
        asyncio.run(session.regenerate_selection(0, 1))
    asyncio.run(session.generate())
    with pytest.raises(ValueError):
        asyncio.run(session.regenerate_selection(3, 3))
    with pytest.raises(ValueError):
        asyncio.run(session.regenerate_selection(5, 20))


def test_confirm_merge_commits_and_records(session: EditorSession) -> None:
    """Confirming replaces the base, applies the segment and records history."""
    asyncio.run(session.generate())
    before = session.state.audio_data
    preview = asyncio.run(session.regenerate_selection(1, 3))

    merged = asyncio.run(session.confirm_merge(preview))

    state = session.state
    assert state.audio_data is not None
    assert state.audio_data.audio_bytes != before.audio_bytes
    assert merged.duration == pytest.approx(before.duration, abs=1e-3)
    assert state.audio_data.transcript == before.transcript
    assert [(s.start_index, s.end_index) for s in state.segments] == [(1, 3)]
    assert state.pending == []
    assert [e.action for e in session.history.entries()] == [
        "Generate Audio",
        'Merge "quick brown"',
    ]
    assert session.applied_mask() == [False, True, True] + [False] * 6


def test_confirm_merge_evicts_overlapping_segments(session: EditorSession) -> None:
    """A new merge over an applied range replaces the earlier segment."""
    asyncio.run(session.generate())
    asyncio.run(session.confirm_merge(asyncio.run(session.regenerate_selection(1, 3))))
    asyncio.run(session.confirm_merge(asyncio.run(session.regenerate_selection(5, 7))))

    preview = asyncio.run(session.regenerate_selection(2, 6))
    assert preview.original_segment is not None
    assert preview.original_segment.start_index == 1
    asyncio.run(session.confirm_merge(preview))

    assert [(s.start_index, s.end_index) for s in session.state.segments] == [(2, 6)]


def test_undo_redo_restore_state(session: EditorSession) -> None:
    """Undo and redo swap the whole state atomically."""
    asyncio.run(session.generate())
    generated = session.state.audio_data
    asyncio.run(session.confirm_merge(asyncio.run(session.regenerate_selection(1, 3))))
    merged = session.state.audio_data

    assert session.undo()
    assert session.state.audio_data == generated
    assert session.state.segments == []

    assert session.redo()
    assert session.state.audio_data == merged
    assert [(s.start_index, s.end_index) for s in session.state.segments] == [(1, 3)]
    assert not session.redo()


def test_busy_guard_rejects_concurrent_commands(
    session: EditorSession, synthesizer: FakeSynthesizer
) -> None:
    """A second long running command fails while the first is in flight."""

    async def scenario() -> None:
        synthesizer.gate = asyncio.Event()
        task = asyncio.create_task(session.generate())
        await asyncio.sleep(0)
        assert session.busy
        with pytest.raises(EditorBusyError):
            await session.generate()
        synthesizer.gate.set()
        await task

    asyncio.run(scenario())
    assert not session.busy
    assert session.state.audio_data is not None


def test_stale_result_is_discarded(session: EditorSession, synthesizer: FakeSynthesizer) -> None:
    """A result computed against an outdated state is not committed."""
    asyncio.run(session.generate())
    first = session.state.audio_data

    async def scenario() -> None:
        synthesizer.gate = asyncio.Event()
        task = asyncio.create_task(session.generate())
        await asyncio.sleep(0)
        session.set_script("A completely different script")
        synthesizer.gate.set()
        with pytest.raises(StaleResultError):
            await task

    asyncio.run(scenario())
    assert session.state.audio_data is first
    assert session.state.script == "A completely different script"
    assert len(session.history) == 1
    assert not session.busy


def test_export_merges_pending(session: EditorSession, sr: int) -> None:
    """Export splices pending segments without touching the session state."""
    asyncio.run(session.generate())
    asyncio.run(session.regenerate_selection(4, 6))
    state_before = session.state.audio_data

    result = asyncio.run(session.export())

    assert result.filename == "The_quick_brown.wav"
    assert result.skipped == []
    audio, _ = decode_audio(result.audio_bytes, sr)
    assert len(audio) == pytest.approx(9 * SECONDS_PER_WORD * sr, abs=2)
    assert session.state.audio_data is state_before
    assert len(session.state.pending) == 1


def test_export_without_audio(session: EditorSession) -> None:
    """There is nothing to export before generating."""
    with pytest.raises(NarrationSpliceError):
        asyncio.run(session.export())


def test_discard_preview(session: EditorSession) -> None:
    """Discarding removes the previewed segment from the pending queue."""
    asyncio.run(session.generate())
    preview = asyncio.run(session.regenerate_selection(0, 2))
    session.discard_preview(preview)
    assert session.state.pending == []


def test_playback_helpers(session: EditorSession) -> None:
    """Highlighting and seeking follow the base transcript."""
    assert session.highlight_index(0.0) == -1
    asyncio.run(session.generate())
    assert session.highlight_index(0.3) == 1
    assert session.highlight_index(2.1) == 8
    assert session.seek_time(2) == pytest.approx(0.5)


def test_default_export_filename() -> None:
    """The export name comes from the first three words of the script."""
    assert default_export_filename("Hello, big world again") == "Hello_big_world.wav"
    assert default_export_filename("It's   fine") == "Its_fine.wav"
    assert default_export_filename("  ") == "podcast.wav"
    assert default_export_filename("!!! ???") == "_.wav"


def test_merge_action_label_truncates() -> None:
    """Long merge labels are shortened with an ellipsis."""
    assert merge_action_label("short text") == 'Merge "short text"'
    assert merge_action_label("a" * 25) == f'Merge "{"a" * 20}..."'


def test_export_retranscribes_between_segments(
    synthesizer: FakeSynthesizer, splice_config: SpliceConfig
) -> None:
    """Each pending segment merged during export is followed by a transcription."""
    transcriber = CountingTranscriber()
    session = EditorSession(
        synthesizer, transcriber, splice_config=splice_config, script=SCRIPT
    )
    asyncio.run(session.generate())
    asyncio.run(session.regenerate_selection(1, 3))
    asyncio.run(session.regenerate_selection(5, 7))
    calls_before = transcriber.calls

    result = asyncio.run(session.export())

    assert transcriber.calls - calls_before == 2
    assert result.skipped == []


def test_empty_transcription_falls_back_to_synthesis_timings(
    synthesizer: FakeSynthesizer, splice_config: SpliceConfig
) -> None:
    """A transcript without spoken words never replaces usable timings."""
    transcriber = CountingTranscriber(TranscriptData(words=()))
    session = EditorSession(
        synthesizer, transcriber, splice_config=splice_config, script=SCRIPT
    )

    audio = asyncio.run(session.generate())
    assert audio.transcript is not None
    assert len(audio.transcript.words) == 9

    preview = asyncio.run(session.regenerate_selection(1, 3))
    segment = preview.new_segment
    assert (segment.start_time, segment.end_time) == pytest.approx((0.25, 0.74))


@pytest.mark.parametrize(
    ("update", "error"),
    [
        ({"start_index": 20, "end_index": 22, "text": "zebra yak"}, TimingResolutionError),
        ({"audio_bytes": b""}, AudioDecodeError),
    ],
)
def test_failed_merge_leaves_state_untouched(
    session: EditorSession, update: dict, error: type[Exception]
) -> None:
    """A merge that fails part way commits nothing.

    Args:
        session (EditorSession): Session over the fake provider.
        update (dict): Fields that make the previewed segment unmergeable.
        error (type[Exception]): Expected failure.
    """
    asyncio.run(session.generate())
    preview = asyncio.run(session.regenerate_selection(1, 3))
    broken = preview.model_copy(
        update={"new_segment": preview.new_segment.model_copy(update=update)}
    )
    state = session.state
    generation = session.generation

    with pytest.raises(error):
        asyncio.run(session.confirm_merge(broken))

    assert session.state is state
    assert session.state.segments == []
    assert [s.audio_url for s in session.state.pending] == [preview.new_segment.audio_url]
    assert len(session.history) == 1
    assert session.generation == generation
    assert not session.busy


def test_confirm_merge_rejects_discarded_preview(session: EditorSession) -> None:
    """A discarded preview cannot be merged afterwards."""
    asyncio.run(session.generate())
    preview = asyncio.run(session.regenerate_selection(1, 3))
    session.discard_preview(preview)

    with pytest.raises(ValueError):
        asyncio.run(session.confirm_merge(preview))
    assert session.state.segments == []
    assert len(session.history) == 1


def test_confirm_merge_rejects_preview_from_previous_generation(
    session: EditorSession,
) -> None:
    """Regenerating the base clears the queue; older previews are rejected."""
    asyncio.run(session.generate())
    preview = asyncio.run(session.regenerate_selection(1, 3))
    asyncio.run(session.generate())

    with pytest.raises(ValueError):
        asyncio.run(session.confirm_merge(preview))
    assert session.state.pending == []
    assert [e.action for e in session.history.entries()] == [
        "Generate Audio",
        "Generate Audio",
    ]

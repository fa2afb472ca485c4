"""Editing workflow: state entities, undo history, merging and the session."""

from .history import HistoryManager
from .merge import merge_all_segments, merge_segment, upsert_segment
from .models import AudioData, AudioSegment, HistoryState, MergePreview
from .providers import SynthesisResult, Synthesizer, Transcriber
from .session import EditorSession, EditorState, ExportResult, default_export_filename

__all__ = [
    "AudioData",
    "AudioSegment",
    "HistoryState",
    "MergePreview",
    "HistoryManager",
    "upsert_segment",
    "merge_segment",
    "merge_all_segments",
    "SynthesisResult",
    "Synthesizer",
    "Transcriber",
    "EditorSession",
    "EditorState",
    "ExportResult",
    "default_export_filename",
]

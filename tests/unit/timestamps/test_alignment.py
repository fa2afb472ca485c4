"""Unit tests for script-to-transcript alignment."""

from __future__ import annotations

import math

from narration_splice.timestamps.alignment import (
    AlignmentCache,
    alignment_signature,
    build_alignment,
    find_transcript_index_at_time,
    map_transcript_index_to_script,
)
from narration_splice.timestamps.models import WordAlignment


def _timed(words: list[str], step: float = 0.2) -> list[tuple[str, float, float]]:
    return [(w, i * step, (i + 1) * step) for i, w in enumerate(words)]


def test_identical_sequences_align_one_to_one(make_transcript) -> None:
    """Matching script and transcript map position to position."""
    words = "The quick brown fox".split()
    alignment = build_alignment(words, make_transcript(_timed(words)))
    assert alignment.script_to_transcript == (0, 1, 2, 3)
    assert alignment.transcript_to_script == (0, 1, 2, 3)


def test_punctuation_is_ignored(make_transcript) -> None:
    """Script punctuation does not prevent a match."""
    transcript = make_transcript(_timed(["hello", "world"]))
    alignment = build_alignment(["Hello,", "world!"], transcript)
    assert alignment.script_to_transcript == (0, 1)


def test_greedy_pass_stops_at_first_miss_then_rescues(make_transcript) -> None:
    """A missing word ends the greedy pass; later words are rescued individually."""
    transcript = make_transcript(_timed(["a", "c", "d"]))
    alignment = build_alignment(["a", "b", "c", "d"], transcript)
    assert alignment.script_to_transcript == (0, -1, 1, 2)
    assert alignment.transcript_to_script == (0, 2, 3)


def test_greedy_prefix_is_monotonic(make_transcript) -> None:
    """Greedy mappings never move backwards through the transcript."""
    script = "one two three four five".split()
    transcript = make_transcript(_timed(["one", "uh", "two", "three", "um", "four", "five"]))
    mapped = [i for i in build_alignment(script, transcript).script_to_transcript if i != -1]
    assert mapped == sorted(mapped)
    assert mapped == [0, 2, 3, 5, 6]


def test_rescue_prefers_candidates_near_edges(make_transcript) -> None:
    """Out-of-order words are placed on the candidate closest to an edge."""
    transcript = make_transcript(_timed(["cat", "x", "y", "the"]))
    alignment = build_alignment(["the", "cat"], transcript)
    assert alignment.script_to_transcript == (3, 0)


def test_reverse_map_keeps_first_claim(make_transcript) -> None:
    """When two script words land on one transcript word, the first claim wins."""
    transcript = make_transcript(_timed(["go"]))
    alignment = build_alignment(["go", "go"], transcript)
    assert alignment.script_to_transcript == (0, 0)
    assert alignment.transcript_to_script == (0,)


def test_empty_inputs(make_transcript) -> None:
    """Nothing to align yields empty or all-unmapped maps."""
    assert build_alignment([], None).script_to_transcript == ()
    assert build_alignment(["a"], None).script_to_transcript == (-1,)


def test_map_transcript_index_probes_neighbours() -> None:
    """Unmapped transcript positions borrow the nearest mapped neighbour."""
    alignment = WordAlignment(script_to_transcript=(1,), transcript_to_script=(-1, 5, -1, -1, 7))
    assert map_transcript_index_to_script(1, alignment) == 5
    assert map_transcript_index_to_script(0, alignment) == 5
    assert map_transcript_index_to_script(2, alignment) == 5
    assert map_transcript_index_to_script(3, alignment) == 7
    assert map_transcript_index_to_script(9, alignment) == -1
    assert map_transcript_index_to_script(-1, alignment) == -1


def test_map_transcript_index_all_unmapped() -> None:
    """Without any mapped position there is nothing to borrow."""
    alignment = WordAlignment(script_to_transcript=(), transcript_to_script=(-1, -1))
    assert map_transcript_index_to_script(0, alignment) == -1


def test_find_transcript_index_at_time(make_transcript) -> None:
    """Binary search returns the containing word or the last word before."""
    transcript = make_transcript([("a", 0.0, 0.2), ("b", 0.3, 0.5), ("c", 0.6, 0.8)])
    assert find_transcript_index_at_time(transcript, 0.1) == 0
    assert find_transcript_index_at_time(transcript, 0.25) == 0
    assert find_transcript_index_at_time(transcript, 0.4) == 1
    assert find_transcript_index_at_time(transcript, 0.9) == 2
    assert find_transcript_index_at_time(transcript, -0.1) == -1
    assert find_transcript_index_at_time(transcript, math.nan) == -1
    assert find_transcript_index_at_time(None, 0.1) == -1


def test_alignment_cache_rebuilds_on_change(make_transcript) -> None:
    """The cache returns the same object until its inputs change."""
    transcript = make_transcript(_timed(["a", "b"]))
    cache = AlignmentCache()

    first = cache.get(["a", "b"], transcript)
    assert cache.get(["a", "b"], transcript) is first

    changed = cache.get(["a", "c"], transcript)
    assert changed is not first
    assert changed.script_to_transcript == (0, -1)

    cache.invalidate()
    assert cache.get(["a", "c"], transcript) is not changed


def test_alignment_signature_tracks_transcript_extent(make_transcript) -> None:
    """The signature changes when transcript timing changes."""
    a = make_transcript([("a", 0.0, 0.2)])
    b = make_transcript([("a", 0.0, 0.3)])
    assert alignment_signature(["a"], a) != alignment_signature(["a"], b)
    assert alignment_signature(["a"], None)[2:] == (0, -1.0, -1.0)

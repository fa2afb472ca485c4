"""Audio splicing utilities.

This package replaces a time window of a base narration with a replacement
clip without clicks, gaps or timeline drift, optionally retiming the clip
word by word first.
"""

from .retime import retime_to_window, words_in_window
from .splicer import SpliceResult, replace_window

__all__ = [
    "replace_window",
    "SpliceResult",
    "retime_to_window",
    "words_in_window",
]

"""Exception taxonomy for the splice and edit pipeline."""

from __future__ import annotations


class NarrationSpliceError(Exception):
    """Base class for all errors raised by narration splice."""


class TimingResolutionError(NarrationSpliceError):
    """No strategy could place a word selection on the base timeline.

    Recoverable: the user should adjust the selection and retry.
    """

    def __init__(self, text: str, start_index: int, end_index: int) -> None:
        """Store the failed selection for display.

        Args:
            text: Selected text that could not be located.
            start_index: First script word index of the selection.
            end_index: Exclusive end script word index.
        """
        self.text = text
        self.start_index = start_index
        self.end_index = end_index
        super().__init__(
            f"Could not locate words {start_index}-{end_index} ({text!r}) in the "
            "base transcript. Adjust the selection and try again."
        )


class AudioDecodeError(NarrationSpliceError, ValueError):
    """Audio bytes are malformed or in an unsupported format."""


class ProviderError(NarrationSpliceError):
    """A synthesis or transcription provider rejected a request.

    The provider-supplied ``detail`` is surfaced verbatim.
    """

    def __init__(self, message: str, *, status: int | None = None, detail: str | None = None):
        """Create a provider error.

        Args:
            message: Human-readable summary.
            status: Optional provider status code.
            detail: Optional raw provider detail text.
        """
        self.status = status
        self.detail = detail
        super().__init__(message if detail is None else f"{message}: {detail}")


class EditorBusyError(NarrationSpliceError):
    """A generate/regenerate/merge/export cycle is already in flight."""


class StaleResultError(NarrationSpliceError):
    """A result was computed against a base that has since been replaced."""

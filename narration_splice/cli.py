"""Command-line interface for narration splice using Typer.

Exposes the offline parts of the editor for scripting and debugging:

- ``splice``: replace a time window of a narration with another clip.
- ``resolve``: locate a script word range on a transcript timeline.
- ``align``: show how script words map onto transcript words.
"""

import pathlib
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from narration_splice import __version__
from narration_splice.config import SpliceConfig
from narration_splice.errors import NarrationSpliceError, TimingResolutionError
from narration_splice.splicing.retime import retime_to_window
from narration_splice.splicing.splicer import replace_window
from narration_splice.timestamps.alignment import build_alignment
from narration_splice.timestamps.models import TimingResult, TranscriptData
from narration_splice.timestamps.resolver import resolve_timing
from narration_splice.timestamps.tokens import lexical_words, split_script_words
from narration_splice.utils.audio_io import decode_audio, encode_wav
from narration_splice.utils.constant import DEFAULT_SAMPLE_RATE
from narration_splice.utils.logging_config import configure_logging


def version_callback(value: bool) -> None:
    """Show the application's version and exit.

    Args:
        value: When True, print the version and exit.

    Raises:
        typer.Exit: Always raised after printing when value is True.

    """
    if value:
        print(f"narration-splice version: {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="narration-splice",
    help="Splice regenerated speech into narration audio without timeline drift.",
    add_completion=False,
)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show the application's version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Print help when no subcommand is given.

    Args:
        ctx: Typer context.
        version: Whether to print version and exit.

    Raises:
        typer.Exit: Raised to terminate after displaying help or version.

    """
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _load_transcript(path: pathlib.Path | None) -> TranscriptData | None:
    if path is None:
        return None
    return TranscriptData.model_validate_json(path.read_text(encoding="utf-8"))


@app.command()
def splice(
    base: Annotated[
        pathlib.Path,
        typer.Argument(help="Base narration audio.", exists=True, dir_okay=False),
    ],
    replacement: Annotated[
        pathlib.Path,
        typer.Argument(help="Replacement clip.", exists=True, dir_okay=False),
    ],
    start: Annotated[float, typer.Option("--start", help="Window start in seconds.")],
    end: Annotated[float, typer.Option("--end", help="Window end in seconds.")],
    output: Annotated[
        pathlib.Path,
        typer.Option("--output", "-o", help="Where to write the spliced WAV.", dir_okay=False),
    ] = pathlib.Path("spliced.wav"),
    base_transcript: Annotated[
        pathlib.Path | None,
        typer.Option(
            "--base-transcript",
            help="Transcript JSON of the base; with --replacement-transcript enables retiming.",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    replacement_transcript: Annotated[
        pathlib.Path | None,
        typer.Option(
            "--replacement-transcript",
            help="Transcript JSON of the replacement clip.",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    sample_rate: Annotated[
        int, typer.Option("--sample-rate", help="Working sample rate in Hz.")
    ] = DEFAULT_SAMPLE_RATE,
    no_trim: Annotated[
        bool,
        typer.Option("--no-trim", help="Keep leading/trailing silence of the clip."),
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", help="Enable verbose output.")] = False,
    quiet: Annotated[bool, typer.Option("--quiet", help="Suppress log output.")] = False,
) -> pathlib.Path:
    """Replace ``[start, end)`` of BASE with REPLACEMENT and write a WAV file.

    Returns:
        pathlib.Path: The written output path.

    """
    configure_logging(verbose=verbose, quiet=quiet)
    config = SpliceConfig(sample_rate=sample_rate, trim_silence=not no_trim)
    try:
        base_audio, sr = decode_audio(base.read_bytes(), config.sample_rate)
        clip, _ = decode_audio(replacement.read_bytes(), config.sample_rate)
    except NarrationSpliceError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    window = TimingResult(start_time=start, end_time=end)
    retimed = retime_to_window(
        clip,
        sr,
        _load_transcript(replacement_transcript),
        _load_transcript(base_transcript),
        window,
    )
    if retimed is not None:
        result = replace_window(base_audio, retimed, start, end, config, trim=False)
    else:
        result = replace_window(base_audio, clip, start, end, config)

    output.write_bytes(encode_wav(result.audio, result.sample_rate))
    if not quiet:
        Console().print(
            f"[green]Wrote[/green] {output} ({result.duration:.3f}s, "
            f"window {result.replaced_duration:.3f}s"
            f"{', retimed' if retimed is not None else ''})"
        )
    return output


@app.command()
def resolve(
    transcript: Annotated[
        pathlib.Path,
        typer.Argument(help="Transcript JSON of the base audio.", exists=True, dir_okay=False),
    ],
    script: Annotated[
        pathlib.Path,
        typer.Argument(help="Script text file.", exists=True, dir_okay=False),
    ],
    start_index: Annotated[int, typer.Argument(help="First selected script word.")],
    end_index: Annotated[int, typer.Argument(help="Exclusive end script word.")],
    verbose: Annotated[bool, typer.Option("--verbose", help="Enable verbose output.")] = False,
) -> TimingResult:
    """Resolve script words ``[START_INDEX, END_INDEX)`` to a time window.

    Returns:
        TimingResult: The resolved window.

    Raises:
        typer.Exit: With code 1 when the selection cannot be located.

    """
    configure_logging(verbose=verbose)
    words = split_script_words(script.read_text(encoding="utf-8"))
    data = _load_transcript(transcript)
    text = " ".join(words[max(0, start_index) : max(0, end_index)])
    timing = resolve_timing(text, start_index, end_index, words, data)
    if timing is None:
        typer.echo(f"Error: {TimingResolutionError(text, start_index, end_index)}", err=True)
        raise typer.Exit(code=1)

    table = Table(title="Resolved Window", show_header=True, header_style="bold magenta")
    table.add_column("Selection", style="cyan")
    table.add_column("Start (s)", style="green")
    table.add_column("End (s)", style="green")
    table.add_column("Duration (s)", style="yellow")
    table.add_row(
        text,
        f"{timing.start_time:.3f}",
        f"{timing.end_time:.3f}",
        f"{timing.duration:.3f}",
    )
    Console().print(table)
    return timing


@app.command()
def align(
    transcript: Annotated[
        pathlib.Path,
        typer.Argument(help="Transcript JSON of the base audio.", exists=True, dir_okay=False),
    ],
    script: Annotated[
        pathlib.Path,
        typer.Argument(help="Script text file.", exists=True, dir_okay=False),
    ],
) -> None:
    """Print the script-to-transcript word alignment."""
    configure_logging()
    words = split_script_words(script.read_text(encoding="utf-8"))
    data = _load_transcript(transcript)
    alignment = build_alignment(words, data)
    lex = lexical_words(data)

    table = Table(title="Word Alignment", show_header=True, header_style="bold magenta")
    table.add_column("#", style="cyan", no_wrap=True)
    table.add_column("Script", style="green")
    table.add_column("Transcript", style="yellow")
    table.add_column("Start (s)")
    table.add_column("End (s)")
    for i, word in enumerate(words):
        t_idx = alignment.script_to_transcript[i]
        if t_idx == -1:
            table.add_row(str(i), word, "[red]-[/red]", "", "")
        else:
            hit = lex[t_idx]
            table.add_row(str(i), word, hit.token, f"{hit.start:.3f}", f"{hit.end:.3f}")
    Console().print(table)


if __name__ == "__main__":
    app()

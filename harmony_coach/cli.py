"""Command-line interface for Harmony Coach.

Provides commands for:
- analyze: Full pipeline on an audio file (key, tempo, chords, melody, harmony)
- pitch: Frame-by-frame pitch detection
- harmonize: Symbolic pipeline on a MIDI file
- info: Show audio file information
"""

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .core.constants import DEFAULT_CLARITY_THRESHOLD, DEFAULT_MIN_CHORD_CONFIDENCE
from .theory import get_key_signature

app = typer.Typer(
    name="harmony-coach",
    help="Melody, chord, key and harmony analysis for singers",
    rich_markup_mode="markdown",
)
console = Console()


@dataclass
class StageTimings:
    """Track timing of processing stages."""

    stages: Dict[str, float] = field(default_factory=dict)
    _current_stage: Optional[str] = field(default=None, repr=False)
    _start_time: float = field(default=0.0, repr=False)

    def start(self, stage: str) -> None:
        """Start timing a stage."""
        self._current_stage = stage
        self._start_time = time.perf_counter()

    def stop(self) -> float:
        """Stop timing the current stage, return duration."""
        if self._current_stage is None:
            return 0.0
        duration = time.perf_counter() - self._start_time
        self.stages[self._current_stage] = duration
        self._current_stage = None
        return duration

    @property
    def total_time(self) -> float:
        return sum(self.stages.values())

    def print_summary(self) -> None:
        """Print timing summary to console."""
        console.print("\n[bold]Timing Summary:[/bold]")
        for stage, duration in self.stages.items():
            console.print(f"  {stage}: {duration:.2f}s")
        console.print(f"  [bold]Total: {self.total_time:.2f}s[/bold]")


def _setup_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
            force=True,
        )


def _fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(1)


def _write_json(data: Dict[str, Any], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    console.print(f"   JSON saved to: {path}")


@app.command()
def analyze(
    input_file: Path = typer.Argument(..., help="Input audio file (WAV, MP3, FLAC, ...)"),
    title: Optional[str] = typer.Option(None, "--title", help="Song title (default: file name)"),
    clarity: float = typer.Option(
        DEFAULT_CLARITY_THRESHOLD, "--clarity", help="Minimum pitch clarity (0-1)"
    ),
    min_chord_confidence: float = typer.Option(
        DEFAULT_MIN_CHORD_CONFIDENCE, "--min-chord-confidence", help="Minimum chord similarity (0-1)"
    ),
    json_path: Optional[Path] = typer.Option(None, "--json", help="Write the result as JSON"),
    midi_path: Optional[Path] = typer.Option(None, "--midi", help="Write melody + harmony as MIDI"),
    musicxml_path: Optional[Path] = typer.Option(
        None, "--musicxml", help="Write melody + harmony as MusicXML (needs music21)"
    ),
    no_harmony: bool = typer.Option(False, "--no-harmony", help="Skip harmony generation"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
):
    """Full analysis of an audio file: key, tempo, chords, melody and harmony.

    Examples:
        harmony-coach analyze song.wav
        harmony-coach analyze song.wav --midi out/song.mid --json out/song.json
    """
    from .analyzer import AnalysisConfig, SongAnalyzer
    from .input import AudioLoader
    from .output import MIDIExporter, MusicXMLExporter

    _setup_logging(verbose)
    timings = StageTimings()

    try:
        config = AnalysisConfig(
            title=title or input_file.stem,
            clarity_threshold=clarity,
            min_chord_confidence=min_chord_confidence,
            generate_harmony=not no_harmony,
        )

        console.print(f"\n[bold blue]Analyzing: {input_file.name}[/bold blue]\n")

        timings.start("Load")
        audio, sr = AudioLoader(target_sr=None).load(str(input_file))
        timings.stop()
        console.print(f"   Duration: {AudioLoader.get_duration(audio, sr):.2f}s at {sr} Hz")

        timings.start("Analysis")
        result = SongAnalyzer(config).analyze_audio(audio, sr)
        timings.stop()
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))

    _show_summary(result)
    _show_chords_table(result.chords)
    _show_melody_table(result.melody[:20])
    if len(result.melody) > 20:
        console.print(f"   [dim]... and {len(result.melody) - 20} more notes[/dim]")
    _show_harmony_table(result.harmony_lines)

    if json_path:
        _write_json(result.to_dict(), json_path)
    if midi_path:
        MIDIExporter().export(result, str(midi_path))
        console.print(f"   MIDI saved to: {midi_path}")
    if musicxml_path:
        try:
            MusicXMLExporter().export(result, str(musicxml_path))
        except ImportError as e:
            _fail(str(e))
        console.print(f"   MusicXML saved to: {musicxml_path}")

    if verbose:
        timings.print_summary()
    console.print("\n[green][OK] Analysis complete![/green]")


@app.command()
def pitch(
    input_file: Path = typer.Argument(..., help="Input audio file"),
    clarity: float = typer.Option(
        DEFAULT_CLARITY_THRESHOLD, "--clarity", help="Minimum pitch clarity (0-1)"
    ),
    limit: int = typer.Option(40, "--limit", "-n", help="Maximum rows to show (0 = all)"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
):
    """Detect pitch frame by frame (10 ms hop) and list the voiced frames."""
    from .analysis import PitchDetector
    from .input import AudioLoader

    _setup_logging(verbose)

    try:
        audio, sr = AudioLoader(target_sr=None).load(str(input_file))
        frames = PitchDetector(clarity_threshold=clarity).detect(audio, sr)
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))

    voiced = [f for f in frames if f.is_voiced]
    console.print(f"\n[bold]{len(voiced)}[/bold] voiced of {len(frames)} frames")

    table = Table(title="Pitch Frames")
    table.add_column("Time (ms)", style="yellow")
    table.add_column("Note", style="cyan")
    table.add_column("Frequency (Hz)", style="green")
    table.add_column("Cents", style="magenta")
    table.add_column("Clarity")

    shown = voiced if limit <= 0 else voiced[:limit]
    for frame in shown:
        table.add_row(
            f"{frame.timestamp:.0f}",
            f"{frame.note}{frame.octave}",
            f"{frame.frequency:.1f}",
            f"{frame.cents_off:+d}",
            f"{frame.clarity:.2f}",
        )
    console.print(table)


@app.command()
def harmonize(
    input_file: Path = typer.Argument(..., help="Input MIDI file"),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Output MIDI file with melody + harmony parts"
    ),
    json_path: Optional[Path] = typer.Option(None, "--json", help="Write the result as JSON"),
    mode: str = typer.Option("choir", "--mode", help="Harmony mode: choir or classical"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
):
    """Harmonize the top line of a MIDI file over chords inferred from it."""
    from .analyzer import AnalysisConfig, SongAnalyzer
    from .input import MidiScoreReader
    from .output import MIDIExporter

    _setup_logging(verbose)

    try:
        score = MidiScoreReader().read(str(input_file))
        analyzer = SongAnalyzer(AnalysisConfig(title=input_file.stem, harmony_mode=mode))
        result = analyzer.analyze_score(score)
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))

    console.print(f"\n[bold blue]Harmonizing: {input_file.name}[/bold blue]")
    console.print(f"   {len(score.notes)} notes, {score.total_beats:.1f} beats")
    _show_summary(result)
    _show_chords_table(result.chords)
    _show_harmony_table(result.harmony_lines)

    if output:
        MIDIExporter().export(result, str(output))
        console.print(f"\n[green][OK] MIDI saved to: {output}[/green]")
    if json_path:
        _write_json(result.to_dict(), json_path)


@app.command()
def info(
    input_file: Path = typer.Argument(..., help="Input audio file"),
):
    """Show audio file information."""
    from .input import AudioLoader

    try:
        audio, sr = AudioLoader(target_sr=None, normalize=False).load(str(input_file))
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))

    console.print(f"\n[bold]File: {input_file.name}[/bold]")
    console.print(f"  Duration: {AudioLoader.get_duration(audio, sr):.2f}s")
    console.print(f"  Sample rate: {sr} Hz")
    console.print(f"  Samples: {len(audio):,}")


def _show_summary(result):
    signature = get_key_signature(result.key)
    console.print(
        f"\n   [green]Key: {result.key.label}[/green] "
        f"({signature.display}, confidence {result.key_confidence:.2f})"
    )
    console.print(f"   Tempo: {result.tempo:.0f} BPM")
    console.print("   Time signature: %d/%d" % tuple(result.time_signature))
    if result.chords:
        console.print(
            f"   [green]Progression: {' - '.join(c.roman_numeral for c in result.chords)}[/green]"
        )


def _show_chords_table(chords):
    """Display chords in a table."""
    table = Table(title="Detected Chords")
    table.add_column("Chord", style="cyan")
    table.add_column("Roman", style="green")
    table.add_column("Beats", style="yellow")
    table.add_column("Notes", style="magenta")

    for chord in chords:
        table.add_row(
            chord.symbol,
            chord.roman_numeral,
            f"{chord.start_beat:.2f}-{chord.end_beat:.2f}",
            " ".join(chord.notes),
        )

    console.print(table)


def _show_melody_table(notes):
    """Display melody notes in a table."""
    table = Table(title="Melody")
    table.add_column("Pitch", style="cyan")
    table.add_column("Start (beat)", style="green")
    table.add_column("Duration", style="yellow")
    table.add_column("Chord tone", style="magenta")
    table.add_column("Confidence")

    for note in notes:
        table.add_row(
            note.pitch_name,
            f"{note.start_beat:.2f}",
            f"{note.duration:.2f}",
            note.chord_tone or "-",
            f"{note.confidence:.2f}",
        )

    console.print(table)


def _show_harmony_table(lines):
    """Display generated harmony parts."""
    if not lines:
        return
    table = Table(title="Harmony Lines")
    table.add_column("Part", style="cyan")
    table.add_column("Voice", style="green")
    table.add_column("First notes", style="yellow")

    for line in lines:
        table.add_row(
            line.part_name,
            line.voice_type,
            " ".join(n.pitch_name for n in line.notes[:8]),
        )

    console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()

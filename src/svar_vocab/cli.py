"""Command-line interface for svar-vocab.

Uses Typer for a modern, type-hinted CLI experience.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console

# Load environment variables from .env files
# Priority: local .env > ~/.svar/.env
_user_env = Path.home() / ".svar" / ".env"
if _user_env.exists():
    load_dotenv(_user_env)
load_dotenv()
from rich.markup import escape
from rich.table import Table

from svar_vocab import __version__
from svar_vocab.config import EngineSettings, load_settings
from svar_vocab.engine import CorrectionEngine
from svar_vocab.errors import SvarVocabError, format_error_for_display
from svar_vocab.logging import LogLevel, set_verbosity
from svar_vocab.vocabulary.entry import VocabularyEntry
from svar_vocab.vocabulary.fuzzy import FuzzyMatcher
from svar_vocab.vocabulary.phonetic import PhoneticEncoder

app = typer.Typer(
    name="svar-vocab",
    help="Correct speech transcripts with a personal vocabulary.",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)

# Set by the main callback for the command that follows
_options: dict[str, Path | None] = {"vocab": None, "settings": None}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"svar-vocab version {__version__}")
        raise typer.Exit()


def _fail(error: Exception) -> None:
    console.print(f"[red]Error:[/red] {escape(format_error_for_display(error))}")
    raise typer.Exit(1)


def _load_settings() -> EngineSettings:
    settings = load_settings(_options["settings"])
    if _options["vocab"] is not None:
        settings = settings.model_copy(update={"vocabulary_path": _options["vocab"]})
    return settings


def _load_engine() -> CorrectionEngine:
    """Build an engine from the selected vocabulary file, saving on every edit."""
    try:
        settings = _load_settings()
        return CorrectionEngine.from_file(settings.resolve_vocabulary_path(), settings=settings)
    except SvarVocabError as e:
        _fail(e)


def _resolve_entry(engine: CorrectionEngine, id_or_word: str) -> VocabularyEntry:
    entry = engine.store.get(id_or_word) or engine.store.find(id_or_word)
    if entry is None:
        console.print(f"[red]Error:[/red] No vocabulary entry '{escape(id_or_word)}'.")
        raise typer.Exit(1)
    return entry


def _entry_table(entries, title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim", max_width=12)
    table.add_column("Word", style="cyan")
    table.add_column("Misspellings", style="white")
    table.add_column("Phonetic", style="green")

    for entry in entries:
        if entry.use_phonetic_matching:
            phonetic = " / ".join(entry.codes) or "-"
        else:
            phonetic = "[dim]off[/dim]"
        misspellings = ", ".join(entry.misspellings) or "[dim]none[/dim]"
        table.add_row(entry.id[:8], entry.word, misspellings, phonetic)

    return table


@app.callback()
def main(
    vocab: Annotated[
        Optional[Path],
        typer.Option("--vocab", help="Vocabulary JSON file (default: $SVAR_VOCAB_FILE or ~/.svar/vocabulary.json)"),
    ] = None,
    settings: Annotated[
        Optional[Path],
        typer.Option("--settings", help="Settings JSON file (default: ~/.svar/settings.json)"),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", help="Show info and debug logging")
    ] = False,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Only log errors")] = False,
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Svar Vocab - personal vocabulary correction for dictation.

    Add the words your speech recognizer keeps getting wrong, then pipe
    transcripts through [bold]correct[/bold].
    """
    _options["vocab"] = vocab
    _options["settings"] = settings

    if verbose:
        set_verbosity(LogLevel.DEBUG)
    elif quiet:
        set_verbosity(LogLevel.QUIET)


# =============================================================================
# Vocabulary Commands
# =============================================================================


@app.command()
def add(
    word: Annotated[str, typer.Argument(help="Correct spelling of the word")],
    misspelling: Annotated[
        Optional[list[str]],
        typer.Option("--misspelling", "-m", help="Known mis-transcription (repeatable)"),
    ] = None,
    no_phonetic: Annotated[
        bool, typer.Option("--no-phonetic", help="Disable phonetic matching for this word")
    ] = False,
) -> None:
    """Add a word to the vocabulary."""
    engine = _load_engine()

    if engine.store.find(word) is not None:
        console.print(f"[yellow]Warning:[/yellow] '{word.strip()}' is already in the vocabulary.")
        console.print("Use 'svar-vocab edit' to change it.")
        raise typer.Exit(1)

    try:
        entry = engine.add_word(word, misspelling or (), use_phonetic_matching=not no_phonetic)
    except SvarVocabError as e:
        _fail(e)

    console.print(f"[green]Added[/green] [cyan]{entry.word}[/cyan] ({entry.id[:8]})")
    if entry.codes:
        console.print(f"  Phonetic codes: {' / '.join(entry.codes)}")


@app.command()
def edit(
    id_or_word: Annotated[str, typer.Argument(help="Entry ID or word")],
    word: Annotated[Optional[str], typer.Option("--word", "-w", help="New spelling")] = None,
    misspelling: Annotated[
        Optional[list[str]],
        typer.Option("--misspelling", "-m", help="Misspelling to add (repeatable)"),
    ] = None,
    drop: Annotated[
        Optional[list[str]],
        typer.Option("--drop", "-d", help="Misspelling to remove (repeatable)"),
    ] = None,
    phonetic: Annotated[
        Optional[bool],
        typer.Option("--phonetic/--no-phonetic", help="Enable or disable phonetic matching"),
    ] = None,
) -> None:
    """Edit a vocabulary entry."""
    engine = _load_engine()
    entry = _resolve_entry(engine, id_or_word)

    dropped = {d.strip().lower() for d in drop or ()}
    misspellings = [m for m in entry.misspellings if m.lower() not in dropped]
    misspellings.extend(misspelling or ())

    changes: dict = {"misspellings": tuple(misspellings)}
    if word is not None:
        changes["word"] = word
    if phonetic is not None:
        changes["use_phonetic_matching"] = phonetic

    try:
        updated = engine.store.update(entry.model_copy(update=changes))
    except SvarVocabError as e:
        _fail(e)

    console.print(_entry_table([updated], title="Updated Entry"))


@app.command()
def remove(
    id_or_word: Annotated[str, typer.Argument(help="Entry ID or word")],
) -> None:
    """Remove a word from the vocabulary."""
    engine = _load_engine()
    entry = _resolve_entry(engine, id_or_word)
    engine.store.delete(entry.id)
    console.print(f"[green]Removed[/green] [cyan]{entry.word}[/cyan]")


@app.command("list")
def list_entries() -> None:
    """List all vocabulary entries, newest first."""
    engine = _load_engine()
    entries = engine.store.entries()

    if not entries:
        console.print("[yellow]Vocabulary is empty.[/yellow]")
        console.print("Add a word with: svar-vocab add <word>")
        return

    console.print(_entry_table(entries, title=f"Vocabulary ({len(entries)} words)"))


@app.command()
def clear(
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Remove every entry from the vocabulary."""
    engine = _load_engine()

    if not yes and not typer.confirm(f"Remove all {len(engine.store)} vocabulary entries?"):
        raise typer.Abort()

    engine.store.clear()
    console.print("[green]Vocabulary cleared.[/green]")


# =============================================================================
# Correction Commands
# =============================================================================


@app.command()
def correct(
    text: Annotated[
        Optional[str],
        typer.Argument(help="Transcript text (read from stdin if omitted)"),
    ] = None,
    show_log: Annotated[
        bool, typer.Option("--log", "-l", help="Show the corrections that were applied")
    ] = False,
) -> None:
    """Correct a transcript against the vocabulary."""
    engine = _load_engine()

    if text is None:
        text = sys.stdin.read()

    corrected, log = engine.process_with_log(text)
    # Plain write so the transcript is not reinterpreted as rich markup
    typer.echo(corrected, nl=not corrected.endswith("\n"))

    if show_log:
        if not log.corrections:
            err_console.print("[dim]No corrections.[/dim]")
            return

        table = Table(title=f"Corrections ({len(log)})")
        table.add_column("Tier", style="cyan")
        table.add_column("Original", style="yellow")
        table.add_column("Corrected", style="green")
        table.add_column("Offset", style="dim", justify="right")
        for c in log.corrections:
            table.add_row(c.tier, c.original, c.corrected, str(c.position))
        err_console.print(table)


@app.command()
def encode(
    word: Annotated[str, typer.Argument(help="Word to encode")],
) -> None:
    """Show the phonetic codes of a word."""
    primary, secondary = PhoneticEncoder().encode(word)

    if primary is None and secondary is None:
        console.print(f"[yellow]'{word}' is too short to encode.[/yellow]")
        return

    console.print(f"[cyan]Primary:[/cyan]   {primary or '-'}")
    console.print(f"[cyan]Secondary:[/cyan] {secondary or '-'}")


@app.command()
def distance(
    token: Annotated[str, typer.Argument(help="Observed word")],
    word: Annotated[str, typer.Argument(help="Vocabulary word")],
) -> None:
    """Show the edit distance between two words and whether it is accepted."""
    settings = _load_settings()
    matcher = FuzzyMatcher(
        min_threshold=settings.min_threshold,
        threshold_divisor=settings.threshold_divisor,
    )

    value = matcher.distance(token, word)
    limit = matcher.threshold(word)
    verdict = "[green]accepted[/green]" if value <= limit else "[red]rejected[/red]"

    console.print(f"Distance: {value}")
    console.print(f"Threshold for '{word}': {limit}")
    console.print(f"Phonetic candidate would be {verdict}")


if __name__ == "__main__":
    app()

"""Click-based CLI entry point."""
import logging
import os
import sys
from dataclasses import replace
from typing import Optional

# Force UTF-8 output on Windows to avoid cp1252 encoding errors
if sys.platform == "win32":
    os.environ.setdefault("PYTHONIOENCODING", "utf-8")
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8")
    if hasattr(sys.stderr, "reconfigure"):
        sys.stderr.reconfigure(encoding="utf-8")

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.prompt import Prompt
from rich.table import Table

from .anki_connect import AnkiConnectClient
from .cache import CacheStore
from .config import DEFAULT_WORDS_PER_POS, Config
from .errors import ConfigurationError, ConnectivityError, DeckBuilderError
from .freq_list import FrequencyLoader
from .freq_sources import EmbeddedFrequencySource, RemoteFrequencySource
from .frequency import PartOfSpeech
from .languages import Language, get_language, is_supported, prioritized_languages
from .pipeline import DeckBuilder, DeckRequest, RunReport
from .translator import RateLimiter, Translator, build_backend, get_stored_api_key

console = Console()


def _setup_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def load_config() -> Config:
    """Environment first, then the OS credential store for the DeepL key."""
    config = Config.from_env()
    if config.deepl_api_key is None:
        stored = get_stored_api_key()
        if stored:
            config = replace(config, deepl_api_key=stored)
    return config


def _resolve_language(value: str, role: str) -> Language:
    if not is_supported(value):
        raise ConfigurationError(
            f"Unsupported {role} language: {value}. "
            "Use a code like 'hr' or a name like 'Croatian' "
            "(see the 'languages' command)."
        )
    return get_language(value)


@click.group()
@click.version_option(package_name="anki-deck-builder")
@click.option("--verbose", "-v", count=True, help="Log more detail (-v info, -vv debug)")
def cli(verbose: int):
    """Anki Deck Builder - build language learning decks automatically."""
    _setup_logging(verbose)


# ======================================================================
# Connectivity and configuration
# ======================================================================


@cli.command()
def test():
    """Test the connection to AnkiConnect."""
    config = load_config()
    console.print("Testing AnkiConnect connection...\n")
    console.print(f"  AnkiConnect URL: [cyan]{config.ankiconnect_url}[/cyan]")

    with AnkiConnectClient(config.ankiconnect_url, timeout=config.request_timeout) as client:
        try:
            version = client.verify_connection()
        except ConnectivityError as e:
            console.print("\n[red]Failed to connect to AnkiConnect[/red]")
            console.print(f"\nError: {e}\n")
            console.print("[bold]Troubleshooting:[/bold]")
            console.print("  1. Make sure Anki is running")
            console.print("  2. Verify the AnkiConnect add-on is installed (code: 2055492159)")
            console.print(f"  3. Check that AnkiConnect is accessible at {config.ankiconnect_url}")
            console.print("  4. Try restarting Anki if the add-on was just installed")
            sys.exit(1)

        console.print(f"\n[green]Connected to AnkiConnect (version {version})[/green]\n")

        try:
            decks = client.list_decks()
        except DeckBuilderError as e:
            console.print(f"[yellow]Could not retrieve decks: {e}[/yellow]")
            return

    console.print(f"[bold]Available decks ({len(decks)}):[/bold]")
    for deck in decks[:10]:
        console.print(f"  - {deck}")
    if len(decks) > 10:
        console.print(f"  [dim]... and {len(decks) - 10} more[/dim]")


@cli.command("config")
def show_config():
    """Show the effective configuration."""
    config = load_config()
    if config.deepl_api_key:
        key_display = config.deepl_api_key[:4] + "…" + config.deepl_api_key[-4:]
    else:
        key_display = "[dim]not set[/dim]"

    console.print("[bold]Current configuration:[/bold]")
    console.print(f"  AnkiConnect URL:    {config.ankiconnect_url}")
    backend = build_backend(config)
    backend.close()
    console.print(f"  Translation:        {backend.name}")
    console.print(f"  LibreTranslate URL: {config.libretranslate_url or '[dim]not set[/dim]'}")
    console.print(f"  DeepL API key:      {key_display}")
    console.print(f"  Cache directory:    {config.cache_dir}")


@cli.command()
def languages():
    """List supported languages."""
    table = Table(show_header=True)
    table.add_column("Code", style="cyan")
    table.add_column("Language")
    table.add_column("Frequency data", justify="center")
    embedded = EmbeddedFrequencySource().tables
    for lang in prioritized_languages():
        has_data = "[green]✓[/green]" if lang.code in embedded else ""
        table.add_row(lang.code, lang.name, has_data)
    console.print(table)


# ======================================================================
# API key management (stored in Windows Credential Manager / macOS Keychain)
# ======================================================================


@cli.command("set-key")
def set_key():
    """Store a DeepL API key in the OS credential store."""
    from .translator import store_api_key

    if get_stored_api_key():
        console.print("[dim]An API key is already stored.[/dim]")
        if not click.confirm("Overwrite?"):
            return

    key = Prompt.ask("DeepL API key", password=True)
    if not key.strip():
        console.print("[red]Empty key, aborting.[/red]")
        return

    store_api_key(key.strip())
    console.print("[green]API key saved to OS credential store.[/green]")


@cli.command("clear-key")
def clear_key():
    """Remove the stored DeepL API key from the OS credential store."""
    from .translator import delete_api_key

    delete_api_key()
    console.print("[green]API key removed.[/green]")


@cli.command("cache-status")
def cache_status():
    """Show cache entry counts per namespace."""
    config = load_config()
    stats = CacheStore(config.cache_dir).stats()

    console.print(f"\n[bold]Cache:[/bold] {config.cache_dir}")
    if not stats:
        console.print("  [dim]empty[/dim]")
        return
    paths = {
        "frequency": config.frequency_cache_dir,
        "translations": config.translation_cache_dir,
    }
    for namespace, count in stats.items():
        where = paths.get(namespace, config.cache_dir / namespace)
        console.print(f"  {namespace}: {count:,} [dim]({where})[/dim]")


# ======================================================================
# Deck creation
# ======================================================================


def build_pipeline(
    config: Config,
    source: str = "embedded",
    workers: int = 1,
    delay: Optional[float] = None,
    progress=None,
) -> DeckBuilder:
    """Wire the pipeline components from configuration."""
    if delay is None:
        delay = config.translation_delay
    cache = CacheStore(config.cache_dir)
    freq_source = RemoteFrequencySource() if source == "remote" else EmbeddedFrequencySource()
    loader = FrequencyLoader(cache, freq_source, ttl=config.frequency_ttl)
    translator = Translator(
        build_backend(config),
        cache,
        max_workers=workers,
        limiter=RateLimiter(delay),
    )
    anki = AnkiConnectClient(config.ankiconnect_url, timeout=config.request_timeout)
    return DeckBuilder(anki, loader, translator, progress=progress)


def _print_summary(request: DeckRequest) -> None:
    cards_per_word = 2 if request.bidirectional else 1
    estimated = request.words_per_pos * len(PartOfSpeech) * cards_per_word
    console.print("\n[bold]Configuration Summary:[/bold]")
    console.print(f"  Target language:          {request.target}")
    console.print(f"  Base language:            {request.base}")
    console.print(f"  Words per part of speech: {request.words_per_pos}")
    console.print(
        f"  Total cards:              up to ~{estimated} "
        f"({len(PartOfSpeech)} parts of speech{', bidirectional' if request.bidirectional else ''})"
    )
    console.print(f"  Deck name:                {request.deck_name or '[dim](default)[/dim]'}")
    console.print(f"  Bidirectional:            {'yes' if request.bidirectional else 'no'}")
    console.print(f"  Dry run:                  {request.dry_run}")


def _print_report(report: RunReport) -> None:
    console.print("\n[bold]Word selection:[/bold]")
    for pos, count in report.words_by_pos.items():
        console.print(f"  {pos.label.capitalize()}: {count} words")
    console.print(f"  Total: {report.words_selected} words selected")

    if report.pairs:
        console.print("\n[bold]Sample translations:[/bold]")
        for pair in report.pairs[:10]:
            console.print(f"  {pair.source_word} → {pair.translated} [dim]({pair.pos.label})[/dim]")
        if len(report.pairs) > 10:
            console.print(f"  [dim]... and {len(report.pairs) - 10} more[/dim]")

    table = Table(show_header=False, box=None)
    table.add_column("", style="bold")
    table.add_column("", justify="right")
    table.add_row("Translated", f"{report.translated}/{report.words_selected}")
    if report.translation_failures:
        table.add_row("[yellow]Not translated[/yellow]", str(len(report.translation_failures)))
    if not report.dry_run:
        table.add_row("[green]Cards added[/green]", str(report.succeeded))
        table.add_row("[yellow]Skipped (duplicate)[/yellow]", str(report.duplicates))
        table.add_row("[red]Failed[/red]", str(report.failed))
    console.print(Panel(table, title=report.deck_name, border_style="green" if report.ok else "red"))

    failures = [("translation", w, r) for w, r in report.translation_failures]
    failures += [("card", w, r) for w, r in report.failures]
    if failures:
        ftable = Table(show_header=True, title="Failures")
        ftable.add_column("Step")
        ftable.add_column("Word", style="cyan")
        ftable.add_column("Reason")
        for step, word, reason in failures:
            ftable.add_row(step, word, reason)
        console.print(ftable)


@cli.command()
@click.option("--target-language", "-t", required=True,
              help="Language to learn (code or name, e.g. 'hr' or 'Croatian')")
@click.option("--base-language", "-b", required=True,
              help="Language for translations (e.g. 'es' or 'Spanish')")
@click.option("--words-per-pos", "-w", type=click.IntRange(min=1),
              default=DEFAULT_WORDS_PER_POS, show_default=True,
              help="Number of words per part of speech")
@click.option("--deck-name", "-d", default=None, help="Custom deck name")
@click.option("--dry-run", is_flag=True,
              help="Load and translate words, but don't touch Anki")
@click.option("--bidirectional/--one-way", default=True, show_default=True,
              help="Also create base → target cards")
@click.option("--source", type=click.Choice(["embedded", "remote"]), default="embedded",
              show_default=True, help="Frequency data source")
@click.option("--workers", type=click.IntRange(min=1, max=8), default=1, show_default=True,
              help="Concurrent translation requests")
@click.option("--delay", type=click.FloatRange(min=0), default=None,
              help="Minimum delay between translation requests in seconds (default 0.1)")
def create(
    target_language, base_language, words_per_pos, deck_name, dry_run,
    bidirectional, source, workers, delay,
):
    """Create a language learning deck from the most frequent words.

    \b
    Examples:
      python -m anki_deck_builder create -t hr -b es
      python -m anki_deck_builder create -t Croatian -b English -w 20 --one-way
      python -m anki_deck_builder create -t hr -b es --dry-run
    """
    try:
        target = _resolve_language(target_language, "target")
        base = _resolve_language(base_language, "base")
        if target.code == base.code:
            raise ConfigurationError("Target and base languages must be different!")
    except ConfigurationError as e:
        raise click.UsageError(str(e))

    request = DeckRequest(
        target=target,
        base=base,
        words_per_pos=words_per_pos,
        deck_name=deck_name,
        dry_run=dry_run,
        bidirectional=bidirectional,
    )
    _print_summary(request)
    if dry_run:
        console.print("\n[dim]Dry run mode - no deck will be created[/dim]")

    config = load_config()
    with Progress(
        TextColumn("{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
    ) as progress:
        tasks = {}

        def on_progress(phase: str, done: int, total: int):
            if phase not in tasks:
                label = "Translating" if phase == "translate" else "Adding cards"
                tasks[phase] = progress.add_task(label, total=total)
            progress.update(tasks[phase], completed=done)

        builder = build_pipeline(config, source, workers, delay, progress=on_progress)
        try:
            report = builder.run(request)
        except ConnectivityError as e:
            console.print(f"\n[red]Could not connect to AnkiConnect: {e}[/red]")
            console.print("\n[bold]Make sure:[/bold]")
            console.print("  1. Anki is running")
            console.print("  2. The AnkiConnect add-on is installed")
            console.print("  3. Try running: python -m anki_deck_builder test")
            sys.exit(1)
        except DeckBuilderError as e:
            console.print(f"\n[red]Error: {e}[/red]")
            sys.exit(1)
        except KeyboardInterrupt:
            partial = builder.report
            added = partial.succeeded if partial else 0
            console.print(
                f"\n[yellow]Interrupted. {added} card(s) already added remain in the deck.[/yellow]"
            )
            sys.exit(130)
        finally:
            builder.translator.close()
            builder.anki.close()
            builder.loader.source.close()

    _print_report(report)

    if report.dry_run:
        console.print("\n[green]Dry run complete.[/green]")
    elif report.ok:
        console.print(
            f"\n[bold green]Deck creation complete![/bold green] "
            f"Open Anki to start studying '{report.deck_name}'."
        )
    else:
        sys.exit(1)

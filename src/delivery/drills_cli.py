"""
Number Drills: terminal front-end.

A Rich terminal interface for adaptive arithmetic fact drills.

Commands:
- drills start    - Start a drill session
- drills focus    - Drill specific facts
- drills trouble  - List the facts you miss most
- drills stats    - Show session statistics
- drills export   - Export progress to a JSON file
- drills import   - Replace progress with a JSON file
- drills clear    - Reset progress (and optionally statistics)
"""
from __future__ import annotations

import sys
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from loguru import logger

from config import Settings, get_settings
from src.engine import (
    DrillMode,
    DrillRunner,
    Outcome,
    Phase,
    ProgressImportError,
    SessionConfig,
    SessionOptions,
    Transition,
    fact_label,
    parse_fact_key,
)
from src.engine.facts import format_number
from src.storage import FactMasteryStore, JsonStore, SettingsStore, StatisticsRecorder


# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="drills",
    help="Number Drills: adaptive arithmetic fact practice",
    no_args_is_help=True,
)
console = Console()

SKIP_COMMAND = "n"
QUIT_COMMAND = "q"


# =============================================================================
# Styling
# =============================================================================

STYLES = {
    "ok": "bold green",
    "no": "bold red",
    "neutral": "dim",
    "info": "bold cyan",
    "warning": "bold yellow",
}


@dataclass
class Components:
    settings: Settings
    mastery: FactMasteryStore
    recorder: StatisticsRecorder
    settings_store: SettingsStore

    def runner(self) -> DrillRunner:
        return DrillRunner(
            self.mastery,
            self.recorder,
            timing=self.settings.get_session_config(),
            queue_config=self.settings.get_queue_config(),
        )


def _components() -> Components:
    settings = get_settings()
    store = JsonStore(settings.data_dir)
    return Components(
        settings=settings,
        mastery=FactMasteryStore(store),
        recorder=StatisticsRecorder(store, settings.get_statistics_config()),
        settings_store=SettingsStore(store),
    )


# =============================================================================
# Display Helpers
# =============================================================================


def _progress_line(transition: Transition) -> str:
    p = transition.progress
    line = (
        f"Done {p.done}  •  Correct {p.correct}  •  {p.accuracy}%  •  "
        f"Streak {p.streak}  •  {p.percent}% through"
    )
    if p.seconds_left is not None:
        line += f"  •  {p.seconds_left}s left"
    return f"[dim]{line}[/dim]"


def display_transition(transition: Transition) -> None:
    """Render one session transition."""
    style = STYLES[transition.feedback.value]

    if transition.notice:
        console.print(Panel(transition.notice, border_style="yellow"))

    if transition.outcome is Outcome.PRESENTED:
        console.print()
        console.print(_progress_line(transition))
        return

    if transition.outcome in (Outcome.INCORRECT, Outcome.TIMED_OUT):
        content = f"[{style}]{transition.message}.[/{style}] Answer: [bold]{format_number(transition.answer)}[/bold]"
        if transition.explanation:
            content += f"\n[dim]{transition.explanation}[/dim]"
        console.print(Panel(content, border_style="red", padding=(0, 2)))
        return

    if transition.outcome is Outcome.COMPLETE:
        body = f"[bold]{transition.message}[/bold]"
        if transition.summary is not None:
            body += f"\n\n{transition.summary.text}"
        console.print()
        console.print(Panel(body, title="Summary", border_style="green"))
        return

    console.print(f"[{style}]{transition.message}[/{style}]")


def _wait_for_advance(runner: DrillRunner, poll_interval_ms: int) -> None:
    """Sleep through a deferred advance, rendering whatever it produces."""
    while runner.is_active and runner.session.phase is Phase.ADVANCE_PENDING:
        due = runner.next_due
        if due is None:
            logger.warning("Advance pending with nothing scheduled, ending session")
            display_transition(runner.quit())
            return
        wait_ms = min(max(0.0, due - runner.clock.monotonic_ms()), poll_interval_ms)
        time.sleep(wait_ms / 1000)
        for transition in runner.poll():
            display_transition(transition)


def run_interactive(runner: DrillRunner, first: Transition, settings: Settings) -> None:
    """Drive a session from the keyboard until it completes."""
    display_transition(first)
    console.print(f"[dim]Type an answer, '{SKIP_COMMAND}' to skip, '{QUIT_COMMAND}' to quit.[/dim]")

    try:
        while runner.is_active:
            session = runner.session

            if session.phase is Phase.PRESENTING:
                # The read blocks, so an expired timer only shows after Enter; the late answer is discarded.
                seconds_left = runner.machine.progress().seconds_left
                countdown = f"[dim]({seconds_left}s)[/dim] " if seconds_left is not None else ""
                raw = Prompt.ask(
                    f"{countdown}[bold cyan]{session.current.prompt}[/bold cyan] =", default="", show_default=False
                )
                command = raw.strip().lower()
                if command == QUIT_COMMAND:
                    display_transition(runner.quit())
                    break
                transition = runner.skip() if command == SKIP_COMMAND else runner.submit(raw)

            elif session.phase is Phase.AWAITING_CONTINUE:
                Prompt.ask("[dim]Press Enter to continue[/dim]", default="", show_default=False)
                transition = runner.acknowledge()

            elif session.phase is Phase.ADVANCE_PENDING:
                _wait_for_advance(runner, settings.timer_poll_interval_ms)
                continue

            else:
                transition = None

            if transition is not None:
                display_transition(transition)
                if transition.outcome in (Outcome.INCORRECT, Outcome.TIMED_OUT):
                    time.sleep(transition.delay_ms / 1000)

            for polled in runner.poll():
                display_transition(polled)

    except (KeyboardInterrupt, EOFError):
        console.print("\n[yellow]Session interrupted.[/yellow]")
        ended = runner.quit()
        if ended is not None:
            display_transition(ended)


def _resolve(value, fallback):
    return fallback if value is None else value


# =============================================================================
# Commands
# =============================================================================


@app.command()
def start(
    mode: Optional[DrillMode] = typer.Option(None, "--mode", "-m", help="Drill mode"),
    min_n: Optional[int] = typer.Option(None, "--min", help="Smallest operand"),
    max_n: Optional[int] = typer.Option(None, "--max", help="Largest operand"),
    size: Optional[int] = typer.Option(None, "--size", "-s", help="Questions in the session"),
    shuffle: Optional[bool] = typer.Option(None, "--shuffle/--no-shuffle", help="Shuffle the queue"),
    strict: Optional[bool] = typer.Option(None, "--strict/--no-strict", help="Per-question time limit"),
    trouble_only: Optional[bool] = typer.Option(
        None,
        "--trouble-only/--all-facts",
        help="Only drill facts you have missed before",
    ),
    timed: Optional[bool] = typer.Option(None, "--timed/--untimed", help="Whole-session countdown"),
    seconds: Optional[int] = typer.Option(None, "--seconds", help="Length of a timed test"),
    focus_table: Optional[int] = typer.Option(None, "--focus-table", help="Pin the first factor (multiplication)"),
    focus_div: Optional[int] = typer.Option(None, "--focus-div", help="Pin the divisor (division)"),
) -> None:
    """
    Start an interactive drill session.

    Options left out fall back to the settings of the previous session; the
    chosen settings are remembered for next time.
    """
    c = _components()
    saved_config, saved_options = c.settings_store.load()

    config = SessionConfig(
        mode=_resolve(mode, saved_config.mode),
        min_n=_resolve(min_n, saved_config.min_n),
        max_n=_resolve(max_n, saved_config.max_n),
        focus_multiplier=_resolve(focus_table, saved_config.focus_multiplier),
        focus_divisor=_resolve(focus_div, saved_config.focus_divisor),
    )
    options = SessionOptions(
        size=_resolve(size, saved_options.size),
        shuffle=_resolve(shuffle, saved_options.shuffle),
        strict=_resolve(strict, saved_options.strict),
        trouble_only=_resolve(trouble_only, saved_options.trouble_only),
        timed_test=_resolve(timed, saved_options.timed_test),
        test_seconds=_resolve(seconds, saved_options.test_seconds),
    ).clamped(c.settings.get_bounds())
    c.settings_store.save(config, options)

    console.print(f"\n[bold cyan]Number Drills[/bold cyan] - {config.mode.display_name}")
    console.print(f"[dim]{config.identifier}  |  {options.size} questions[/dim]")
    console.print("=" * 40)

    runner = c.runner()
    run_interactive(runner, runner.start(config, options), c.settings)


@app.command()
def focus(
    keys: List[str] = typer.Argument(..., help="Fact keys to drill, e.g. 7x8 56d8 sq12"),
    size: Optional[int] = typer.Option(None, "--size", "-s", help="Questions in the session"),
    strict: bool = typer.Option(False, "--strict", help="Per-question time limit"),
) -> None:
    """Drill a handful of specific facts."""
    unknown = [key for key in keys if parse_fact_key(key) is None]
    if unknown:
        console.print(f"[red]Unrecognized fact key(s): {', '.join(unknown)}[/red]")
        raise typer.Exit(1)

    c = _components()
    saved_config, _ = c.settings_store.load()
    size = size or c.settings.focused_session_size

    console.print(f"\n[bold cyan]Focused drill[/bold cyan] - {', '.join(fact_label(k) for k in keys)}")
    console.print("=" * 40)

    runner = c.runner()
    run_interactive(runner, runner.start_focused(keys, saved_config, size=size, strict=strict), c.settings)


@app.command()
def trouble(
    mode: Optional[DrillMode] = typer.Option(None, "--mode", "-m", help="Drill mode"),
    min_n: Optional[int] = typer.Option(None, "--min", help="Smallest operand"),
    max_n: Optional[int] = typer.Option(None, "--max", help="Largest operand"),
    focus_table: Optional[int] = typer.Option(None, "--focus-table", help="Pinned first factor"),
    focus_div: Optional[int] = typer.Option(None, "--focus-div", help="Pinned divisor"),
) -> None:
    """List the facts you miss most for a configuration."""
    c = _components()
    saved_config, _ = c.settings_store.load()
    config = SessionConfig(
        mode=_resolve(mode, saved_config.mode),
        min_n=_resolve(min_n, saved_config.min_n),
        max_n=_resolve(max_n, saved_config.max_n),
        focus_multiplier=_resolve(focus_table, saved_config.focus_multiplier),
        focus_divisor=_resolve(focus_div, saved_config.focus_divisor),
    )

    troubled = c.mastery.troubled_facts(config.identifier)
    console.print(f"\n[bold]Trouble facts[/bold] [dim]{config.identifier}[/dim]\n")

    if not troubled:
        console.print("[green]No mistakes yet in this range.[/green]")
        return

    table = Table()
    table.add_column("Fact")
    table.add_column("Key", style="dim")
    table.add_column("Misses", justify="right")
    table.add_column("Last seen", style="dim")

    for key, record in troubled:
        seen = datetime.fromtimestamp(record.last_seen / 1000).strftime("%Y-%m-%d %H:%M") if record.last_seen else "?"
        table.add_row(fact_label(key), key, f"[red]{record.wrong_count}[/red]", seen)

    console.print(table)
    console.print(f"\n[dim]Drill one with: drills focus {troubled[0][0]}[/dim]")


@app.command()
def stats() -> None:
    """Show session statistics and personal bests."""
    c = _components()
    recorder = c.recorder
    summary = recorder.summary()

    console.print("\n[bold cyan]Drill Statistics[/bold cyan]")
    console.print("=" * 40)

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold")

    table.add_row("Total sessions", str(summary.total_sessions))
    table.add_row("Questions answered", str(summary.total_questions))
    table.add_row("Overall accuracy", f"{summary.overall_accuracy}%")
    table.add_row("Recent accuracy (last 10)", f"{summary.recent_accuracy}%")
    table.add_row("Best ever streak", str(summary.best_streak))
    console.print(table)

    if recorder.personal_bests:
        console.print("\n[bold]Personal Bests[/bold]")
        pb_table = Table()
        pb_table.add_column("Mode")
        pb_table.add_column("Accuracy", justify="right")
        pb_table.add_column("Fastest avg", justify="right")
        pb_table.add_column("Streak", justify="right")
        for mode, pb in recorder.personal_bests.items():
            fastest = f"{pb.fastest_avg}ms" if pb.fastest_avg is not None else "—"
            pb_table.add_row(mode.capitalize(), f"{pb.best_accuracy}%", fastest, str(pb.longest_streak))
        console.print(pb_table)

    breakdown = recorder.breakdown_by_mode()
    if breakdown:
        console.print("\n[bold]By Mode[/bold]")
        mode_table = Table()
        mode_table.add_column("Mode")
        mode_table.add_column("Sessions", justify="right")
        mode_table.add_column("Questions", justify="right")
        mode_table.add_column("Accuracy", justify="right")
        for row in breakdown:
            mode_table.add_row(row.mode.capitalize(), str(row.sessions), str(row.questions), f"{row.accuracy}%")
        console.print(mode_table)

    recent = recorder.recent()
    if recent:
        console.print("\n[bold]Recent Sessions[/bold]")
        session_table = Table()
        session_table.add_column("Date")
        session_table.add_column("Mode")
        session_table.add_column("Score", justify="right")
        session_table.add_column("Accuracy", justify="right")
        session_table.add_column("Avg", justify="right")
        session_table.add_column("Streak", justify="right")
        for r in recent:
            date_str = datetime.fromtimestamp(r.timestamp / 1000).strftime("%Y-%m-%d %H:%M")
            session_table.add_row(
                date_str,
                r.mode.capitalize(),
                f"{r.correct}/{r.done}",
                f"{r.accuracy}%",
                f"{r.avg_time}ms",
                str(r.best_streak),
            )
        console.print(session_table)
    else:
        console.print("\n[dim]No sessions yet. Complete a session to see your progress![/dim]")


@app.command()
def export(
    path: Path = typer.Argument(..., help="File to write the progress document to"),
) -> None:
    """Export fact progress as JSON."""
    c = _components()
    try:
        path.write_text(c.mastery.export_document(), encoding="utf-8")
    except OSError as e:
        console.print(f"[red]Failed to export progress: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Progress exported to {path}[/green]")


@app.command(name="import")
def import_progress(
    path: Path = typer.Argument(..., help="Progress document to load"),
) -> None:
    """Replace fact progress with an exported JSON document."""
    c = _components()
    try:
        text = path.read_text(encoding="utf-8")
        c.mastery.import_document(text)
    except OSError as e:
        console.print(f"[red]Failed to read {path}: {e}[/red]")
        raise typer.Exit(1)
    except ProgressImportError as e:
        console.print(f"[red]Failed to import progress: {e}[/red]")
        raise typer.Exit(1)

    console.print("[green]Progress imported successfully![/green]")


@app.command()
def clear(
    include_stats: bool = typer.Option(False, "--stats", help="Also clear session statistics"),
    confirm: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset fact progress for a fresh start."""
    msg = "Clear ALL progress and statistics?" if include_stats else "Clear ALL fact progress?"
    if not confirm and not Confirm.ask(f"{msg} This cannot be undone!", default=False):
        raise typer.Exit(0)

    c = _components()
    c.mastery.clear()
    if include_stats:
        c.recorder.clear()
        console.print("[green]Progress and statistics cleared.[/green]")
    else:
        console.print("[green]Progress cleared.[/green]")


# =============================================================================
# Entry Point
# =============================================================================


def configure_logging(settings: Settings) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<level>{message}</level>",
    )
    if settings.log_file:
        logger.add(
            settings.log_file,
            level="DEBUG",
            rotation="1 MB",
            retention=3,
        )


def main() -> None:
    """CLI entry point."""
    configure_logging(get_settings())
    app()


if __name__ == "__main__":
    main()

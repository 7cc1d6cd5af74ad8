"""
Typer CLI for progress-core.

Commands:
    progress db init                      - Create database tables
    progress levels                       - Show the level table
    progress stats USER                   - Show XP, level, streak and counters
    progress grant USER AMOUNT REASON     - Grant XP manually
    progress goals USER                   - Show today's progress against goals
    progress achievements USER            - List achievements and unlock state
    progress notebook list USER           - List notebook entries
    progress notebook review USER QID     - Mark an entry as reviewed
    progress notebook pending USER QID    - Put an entry back to pending
    progress notebook remove USER QID     - Delete an entry
    progress estimate OUTCOMES...         - Score answers without storing them

Usage:
    progress --help
    progress grant ana 120 "Lista de exercícios"
    progress estimate --mode diagnostic easy:1 medium:1 hard:0
"""

from __future__ import annotations

from typing import Optional

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from config import get_settings

from progress_core import __version__
from progress_core.assessment.outcomes import parse_outcome_token
from progress_core.assessment.proficiency import ScoringMode, ScoringProfile, estimate as estimate_score
from progress_core.core.clock import Clock
from progress_core.core.errors import ProgressCoreError
from progress_core.core.levels import DEFAULT_TABLE
from progress_core.db import database
from progress_core.gamification.achievements import AchievementEngine
from progress_core.gamification.daily_goals import DailyGoals
from progress_core.gamification.stats import StatsSnapshot, find_stats
from progress_core.gamification.xp_ledger import XPLedger
from progress_core.logging_setup import configure_logging
from progress_core.review.error_notebook import ErrorNotebook, NotebookFilter


app = typer.Typer(help="progress-core CLI: XP, levels, streaks, achievements and proficiency")
console = Console()


def _fail(error: ProgressCoreError) -> None:
    rprint(f"[red]✗[/red] {error}")
    raise typer.Exit(code=1)


# ========================================
# DATABASE COMMANDS
# ========================================

db_app = typer.Typer(help="Database management")
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """
    Create all tables defined by the models.

    Safe to run multiple times (idempotent).
    """
    logger.info("Initializing database tables...")
    database.init_db()
    rprint("[green]✓[/green] Database initialized!")


# ========================================
# PROGRESS COMMANDS
# ========================================


@app.command("levels")
def levels() -> None:
    """Show the level table."""
    table = Table(title="Levels", show_header=True)
    table.add_column("Level", justify="right", style="cyan")
    table.add_column("Title")
    table.add_column("XP required", justify="right", style="green")
    for definition in DEFAULT_TABLE.levels:
        table.add_row(str(definition.level), definition.title, str(definition.xp_required))
    console.print(table)


@app.command("stats")
def stats(user: str = typer.Argument(..., help="User identifier")) -> None:
    """Show XP, level, streak and answer counters."""
    with database.session_scope() as session:
        row = find_stats(session, user)
        if row is None:
            rprint(f"[yellow]No activity recorded for {user}[/yellow]")
            return
        snapshot = StatsSnapshot.from_row(row)
        info = snapshot.level_info()

    rprint(f"\n[bold cyan]{user}[/bold cyan]  Level {info.level} ({info.title})")
    rprint(f"  XP: {info.xp_total}")
    if info.is_max_level:
        rprint("  Progress: max level reached")
    else:
        rprint(f"  Progress: {info.progress_pct}% ({info.xp_to_next} XP to {info.next_title})")
    rprint(f"  Streak: {snapshot.streak_current} days (best {snapshot.streak_max})")
    rprint(
        f"  Questions: {snapshot.questions_answered} answered, "
        f"{snapshot.questions_correct} correct ({snapshot.accuracy_pct}%)"
    )
    rprint(f"  Battles: {snapshot.battles_played} played, {snapshot.battles_perfect} perfect")


@app.command("grant")
def grant(
    user: str = typer.Argument(..., help="User identifier"),
    amount: int = typer.Argument(..., help="XP to grant"),
    reason: str = typer.Argument(..., help="Reason stored in the history"),
    event_key: Optional[str] = typer.Option(None, "--event-key", "-k", help="Unique key of the rewarded event"),
) -> None:
    """Grant XP to a user."""
    try:
        with database.session_scope() as session:
            ledger = XPLedger(session, Clock())
            result = ledger.grant_xp(user, amount, reason, event_key=event_key)
            if result.accepted:
                AchievementEngine(session, ledger).evaluate(user, ledger.get_stats(user))
    except ProgressCoreError as e:
        _fail(e)

    if not result.accepted:
        rprint(f"[yellow]⚠[/yellow] {result.rejected_reason}")
        raise typer.Exit(code=1)

    rprint(f"[green]✓[/green] +{result.xp_gained} XP for {user} (total {result.xp_total})")
    if result.leveled_up:
        rprint(f"  [bold]Level up![/bold] {result.level_info.level} ({result.level_info.title})")


@app.command("goals")
def goals(user: str = typer.Argument(..., help="User identifier")) -> None:
    """Show today's progress against the daily goals."""
    with database.session_scope() as session:
        status = DailyGoals(session, Clock()).progress_for(user)

    rprint(f"\n[bold cyan]{user}[/bold cyan]  {status.day.isoformat()}")
    rprint(f"  XP: {status.xp_gained}/{status.daily_xp_target} ({status.xp_pct}%)")
    rprint(
        f"  Questions: {status.questions_answered}/{status.daily_questions_target} "
        f"({status.questions_pct}%)"
    )


@app.command("achievements")
def achievements(user: str = typer.Argument(..., help="User identifier")) -> None:
    """List the achievement catalogue with the user's unlock state."""
    with database.session_scope() as session:
        engine = AchievementEngine(session, XPLedger(session, Clock()))
        statuses = engine.list_for_user(user)

    table = Table(title=f"Achievements of {user}", show_header=True)
    table.add_column("", width=2)
    table.add_column("Code", style="cyan")
    table.add_column("Title")
    table.add_column("Bonus", justify="right", style="green")
    table.add_column("Unlocked", style="dim")
    for status in statuses:
        a = status.achievement
        mark = "[green]✓[/green]" if status.unlocked else " "
        when = status.unlocked_at.strftime("%Y-%m-%d") if status.unlocked_at else "-"
        table.add_row(mark, a.code, a.title, str(a.xp_bonus), when)
    console.print(table)


# ========================================
# NOTEBOOK COMMANDS
# ========================================

notebook_app = typer.Typer(help="Error notebook (missed questions)")
app.add_typer(notebook_app, name="notebook")


@notebook_app.command("list")
def notebook_list(
    user: str = typer.Argument(..., help="User identifier"),
    status: str = typer.Option("all", "--status", "-s", help="all, pending or reviewed"),
) -> None:
    """List notebook entries, newest first."""
    try:
        with database.session_scope() as session:
            notebook = ErrorNotebook(session, Clock())
            entries = [
                (e.question_id, e.user_answer, e.reviewed, e.origin)
                for e in notebook.list_entries(user, NotebookFilter.parse(status))
            ]
            summary = notebook.summary(user)
    except ProgressCoreError as e:
        _fail(e)

    table = Table(title=f"Error notebook of {user}", show_header=True)
    table.add_column("Question", style="cyan")
    table.add_column("Answer")
    table.add_column("Status")
    table.add_column("Origin", style="dim")
    for question_id, answer, reviewed, origin in entries:
        label = "[green]reviewed[/green]" if reviewed else "[yellow]pending[/yellow]"
        table.add_row(question_id, answer or "-", label, origin or "-")
    console.print(table)
    rprint(f"  {summary.pending} pending, {summary.reviewed} reviewed")


def _notebook_action(user: str, question_id: str, action: str) -> None:
    try:
        with database.session_scope() as session:
            notebook = ErrorNotebook(session, Clock())
            getattr(notebook, action)(user, question_id)
    except ProgressCoreError as e:
        _fail(e)


@notebook_app.command("review")
def notebook_review(user: str, question_id: str) -> None:
    """Mark an entry as reviewed."""
    _notebook_action(user, question_id, "mark_reviewed")
    rprint(f"[green]✓[/green] {question_id} marked as reviewed")


@notebook_app.command("pending")
def notebook_pending(user: str, question_id: str) -> None:
    """Put an entry back to pending."""
    _notebook_action(user, question_id, "mark_pending")
    rprint(f"[green]✓[/green] {question_id} marked as pending")


@notebook_app.command("remove")
def notebook_remove(user: str, question_id: str) -> None:
    """Delete an entry."""
    _notebook_action(user, question_id, "remove")
    rprint(f"[green]✓[/green] {question_id} removed")


# ========================================
# ESTIMATOR
# ========================================


@app.command("estimate")
def estimate(
    outcomes: list[str] = typer.Argument(..., help="Answers as tier:result tokens, e.g. easy:1 hard:0"),
    mode: str = typer.Option("exam", "--mode", "-m", help="diagnostic or exam"),
) -> None:
    """Score a set of answers without storing anything."""
    try:
        profile = ScoringProfile.from_config(ScoringMode.parse(mode), get_settings().get_scoring_config())
        items = [parse_outcome_token(token, f"q{i}") for i, token in enumerate(outcomes, start=1)]
        result = estimate_score(items, profile=profile)
    except ProgressCoreError as e:
        _fail(e)

    rprint(f"\n[bold]{result.mode.value.title()} score:[/bold] {result.score} ({result.classification})")
    rprint(f"  Accuracy: {result.accuracy_pct}% ({result.correct}/{result.answered})")
    if result.penalty_applied:
        rprint("  [yellow]Consistency penalty applied[/yellow]")

    table = Table(show_header=True)
    table.add_column("Tier", style="cyan")
    table.add_column("Correct", justify="right")
    table.add_column("Accuracy", justify="right")
    for tier, tier_stats in result.per_tier_breakdown.items():
        table.add_row(tier.value, f"{tier_stats.correct}/{tier_stats.total}", f"{tier_stats.accuracy_pct}%")
    console.print(table)


@app.command("version")
def version() -> None:
    """Show version information."""
    rprint(f"[bold]progress-core[/bold] v{__version__}")


def run() -> None:
    """Entry point for the CLI."""
    configure_logging()
    app()


if __name__ == "__main__":
    run()

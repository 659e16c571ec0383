import logging
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from .config import ConfigError, Settings
from .db import create_schema, open_database

app = typer.Typer(help="Contributor leaderboard CLI")

log = logging.getLogger("leaderhud")


@app.callback()
def main(
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Optional .env file to load"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")


def _settings() -> Settings:
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        typer.echo(f"FEHLER: {e}", err=True)
        raise typer.Exit(code=1)
    if not log.isEnabledFor(logging.DEBUG):
        logging.getLogger().setLevel(settings.log_level)
    return settings


@contextmanager
def _database(settings: Settings):
    with ExitStack() as stack:
        try:
            db = stack.enter_context(open_database(settings.resolved_db_path()))
        except (SQLAlchemyError, OSError) as e:
            typer.echo(f"FEHLER: Datenbank nicht erreichbar ({settings.db_path}): {e}", err=True)
            raise typer.Exit(code=1)
        yield db


@app.command()
def init_db():
    """Create tables and seed the built-in activity definitions."""
    from .definitions import ALL_ACTIVITY_DEFINITIONS
    from .operations import upsert_activity_definitions

    settings = _settings()
    with _database(settings) as db:
        create_schema(db)
        with db.session() as s:
            n = upsert_activity_definitions(s, ALL_ACTIVITY_DEFINITIONS)
            s.commit()
    typer.echo(f"DB initialisiert: tables created, {n} activity definitions.")


@app.command()
def import_data(data_path: Optional[Path] = typer.Option(None, help="Data directory (default: LEADERBOARD_DATA_PATH)")):
    """Import contributor markdown and activity JSON files."""
    from .importer import import_data as run_import

    settings = _settings()
    with _database(settings) as db:
        with db.session() as s:
            res = run_import(s, data_path or settings.data_path)
    typer.echo(
        f"Import fertig: contributors={res['contributors']}, activities={res['activities']}, "
        f"eod_messages={res['eod_messages']}"
    )


@app.command()
def export_static(output_dir: Optional[Path] = typer.Option(None, help="Output root (default: LEADERBOARD_DATA_PATH)")):
    """Write the static JSON tree for the page layer."""
    from .exporter import ExportError, run_export

    settings = _settings()
    try:
        summary = run_export(settings, output_dir)
    except ConfigError as e:
        typer.echo(f"FEHLER: {e}", err=True)
        raise typer.Exit(code=1)
    except ExportError as e:
        log.error("Failed to export static data at step '%s' (%s): %s", e.step, e.path, e.cause)
        typer.echo(f"FEHLER: Export abgebrochen bei Schritt '{e.step}': {e.cause}", err=True)
        raise typer.Exit(code=1)
    periods = ", ".join(f"{p}={n}" for p, n in summary.leaderboard_entries.items())
    typer.echo(f"Export fertig: {len(summary.files)} files ({periods}; profiles={summary.profiles})")


@app.command()
def leaderboard(
    period: str = typer.Option("week", help="week | month | year"),
    limit: int = typer.Option(10, help="Number of rows"),
):
    """Print the ranked leaderboard for a period."""
    from .queries import get_leaderboard, rank_entries
    from .utils import PERIODS, get_date_range

    if period not in PERIODS:
        typer.echo(f"Unbekannte Periode '{period}' (week | month | year).", err=True)
        raise typer.Exit(code=1)
    settings = _settings()
    start, end = get_date_range(period)
    with _database(settings) as db:
        with db.session() as s:
            ranked = rank_entries(get_leaderboard(s, start, end))
    typer.echo(f"Leaderboard {period}: {start.date()} – {end.date()}")
    if not ranked:
        typer.echo("- (keine)")
    for rank, e in ranked[:limit]:
        typer.echo(f"{rank:>3} | {e.total_points:>5} | {e.name or e.username}")


@app.command()
def profile(username: str = typer.Argument(...)):
    """Print points and activity summary for one contributor."""
    from .queries import get_contributor_profile
    from .utils import generate_activity_graph_data

    settings = _settings()
    with _database(settings) as db:
        with db.session() as s:
            p = get_contributor_profile(s, username)
    if p.contributor is None:
        typer.echo(f"Unbekannter Contributor '{username}'.")
        raise typer.Exit(code=1)
    graph = generate_activity_graph_data(p.activity_by_date)
    active_days = sum(1 for d in graph if d["count"])
    typer.echo(f"{p.contributor.name or username} ({p.contributor.role or '-'})")
    typer.echo(f"  points={p.total_points} activities={len(p.activities)} active_days_365={active_days}")
    for a in p.activities[:5]:
        typer.echo(f"  - {a.occured_at:%Y-%m-%d} {a.activity_name}: {a.title or ''} ({a.points or 0} pts)")


@app.command()
def recent(days: Optional[int] = typer.Option(None, help="Window in days (default: LEADERBOARD_LOOKBACK_DAYS)")):
    """Print recent activities grouped by type."""
    from .queries import get_recent_activities_grouped_by_type

    settings = _settings()
    days = days or settings.lookback_days
    with _database(settings) as db:
        with db.session() as s:
            groups = get_recent_activities_grouped_by_type(s, days)
    typer.echo(f"Letzte {days} Tage:")
    if not groups:
        typer.echo("- (keine)")
    for g in groups:
        typer.echo(f"{g.activity_name} ({len(g.activities)})")
        for a in g.activities:
            typer.echo(f"  - {a.occured_at:%Y-%m-%d %H:%M} {a.contributor_name or a.contributor}: {a.title or ''}")


@app.command()
def count_contributors():
    """Count contributors and activities in the database."""
    from .models import Activity, Contributor

    settings = _settings()
    with _database(settings) as db:
        with db.session() as s:
            contributors = s.execute(select(func.count()).select_from(Contributor)).scalar_one()
            activities = s.execute(select(func.count()).select_from(Activity)).scalar_one()
    typer.echo(f"{contributors} contributors, {activities} activities in the DB.")

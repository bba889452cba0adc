"""CLI interface for Nyuchi.

This module provides a command-line interface for running the pipeline
API, inspecting submissions and retrying source synchronisation.
"""
import asyncio
import sys
from pathlib import Path

import click
import uvicorn

from .core.config.settings import NyuchiConfig, init_config
from .core.storage.database import init_db


def _load_config(config_path: str | None) -> NyuchiConfig:
    app_config = init_config(config_path) if config_path else init_config()
    app_config.configure_logging()
    return app_config


@click.group()
@click.version_option(version="0.1.0")
def cli():
    """Nyuchi - unified community submission pipeline.

    Review submissions from every community pipeline in one place and
    award Ubuntu points for approved work.
    """
    pass


@cli.command()
@click.option(
    "--config-path",
    "-c",
    type=click.Path(dir_okay=False),
    default="nyuchi.yaml",
    help="Path to configuration file",
)
@click.option("--force", "-f", is_flag=True, help="Force overwrite existing config")
def init(config_path: str, force: bool):
    """Initialize Nyuchi configuration.

    Creates a default configuration file with the standard access policy
    and points table.
    """
    config_file = Path(config_path)

    if config_file.exists() and not force:
        click.echo(f"Configuration file already exists: {config_path}")
        click.echo("Use --force to overwrite")
        return

    try:
        config = NyuchiConfig.create_default_config(config_file)

        click.echo(f"✓ Created configuration file: {config_path}")
        click.echo("\nDefault configuration:")
        click.echo(f"  API Server: {config.api_host}:{config.api_port}")
        click.echo(f"  Database: {config.get_database_url()}")
        click.echo(f"  Pipelines: {', '.join(t.value for t in config.pipeline_access)}")
        click.echo(f"\nEdit {config_path} to customize settings.")

    except Exception as e:
        click.echo(f"Error creating configuration: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
@click.option("--host", help="Override API host")
@click.option("--port", type=int, help="Override API port")
def start(config: str, host: str, port: int):
    """Start the Nyuchi API server."""
    try:
        app_config = _load_config(config)

        # Override with CLI options
        if host:
            app_config.api_host = host
        if port:
            app_config.api_port = port

        click.echo("🚀 Starting Nyuchi...")
        click.echo(f"   API: http://{app_config.api_host}:{app_config.api_port}")
        click.echo("\nPress Ctrl+C to stop\n")

        uvicorn.run(
            "nyuchi.api.app:create_app",
            factory=True,
            host=app_config.api_host,
            port=app_config.api_port,
            log_level=app_config.log_level.lower(),
        )

    except KeyboardInterrupt:
        click.echo("\n\nStopping Nyuchi...")
    except Exception as e:
        click.echo(f"Error starting server: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
def status(config: str):
    """Check Nyuchi system status.

    Displays configuration, submission counts per pipeline and the state
    of the sync outbox.
    """
    try:
        app_config = _load_config(config)

        click.echo("Nyuchi Status")
        click.echo("=" * 50)
        click.echo(f"Configuration: {config or 'default'}")
        click.echo(f"Database URL: {app_config.get_database_url()}")
        click.echo(f"API Server: {app_config.api_host}:{app_config.api_port}")
        click.echo(f"Log Level: {app_config.log_level}")

        db = init_db(app_config.get_database_url())

        async def get_counts():
            from .core.storage.repositories import SubmissionRepository, SyncEventRepository

            await db.create_tables()
            async with db.session() as session:
                counts = await SubmissionRepository(session).status_counts(
                    list(app_config.pipeline_access)
                )
                events = await SyncEventRepository(session).count_by_status()
            await db.close()
            return counts, events

        counts, events = asyncio.run(get_counts())
        click.echo("\n✓ Database connection successful")

        click.echo("\nSubmissions:")
        for kind, by_status in counts.items():
            summary = ", ".join(f"{s} {n}" for s, n in by_status.items() if n)
            click.echo(f"  {kind}: {summary or 'none'}")

        click.echo(
            f"\nSync events: {events.get('pending', 0)} pending, "
            f"{events.get('done', 0)} done, {events.get('failed', 0)} failed"
        )

    except Exception as e:
        click.echo(f"Error checking status: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
@click.option("--limit", "-n", type=int, default=20, help="Number of submissions to show")
@click.option("--status-filter", type=str, help="Filter by status")
@click.option("--type", "submission_type", type=str, help="Filter by submission type")
def logs(config: str, limit: int, status_filter: str, submission_type: str):
    """View recently updated submissions."""
    try:
        app_config = _load_config(config)
        db = init_db(app_config.get_database_url())

        async def get_recent_submissions():
            from sqlalchemy import select

            from .core.models import Submission

            query = select(Submission).order_by(Submission.updated_at.desc()).limit(limit)
            if status_filter:
                query = query.where(Submission.status == status_filter)
            if submission_type:
                query = query.where(Submission.submission_type == submission_type)

            await db.create_tables()
            async with db.session() as session:
                result = await session.execute(query)
                submissions = list(result.scalars().all())
            await db.close()
            return submissions

        submissions = asyncio.run(get_recent_submissions())

        if not submissions:
            click.echo("No submissions found")
            return

        click.echo(f"\nRecent Submissions (showing {len(submissions)}):")
        click.echo("=" * 80)

        for submission in submissions:
            status_icon = {
                "submitted": "📥",
                "in_review": "⏳",
                "needs_changes": "✏️",
                "approved": "✅",
                "rejected": "❌",
                "published": "📢",
            }.get(submission.status, "❓")

            click.echo(
                f"\n{status_icon} {submission.id} - {submission.submission_type} "
                f"[{submission.status.upper()}]"
            )
            click.echo(f"   Title: {submission.title[:100]}")
            click.echo(f"   Updated: {submission.updated_at.strftime('%Y-%m-%d %H:%M:%S')}")
            if submission.assigned_to:
                click.echo(f"   Assigned to: {submission.assigned_to}")

    except Exception as e:
        click.echo(f"Error retrieving logs: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
@click.option("--limit", "-n", type=int, default=100, help="Maximum events to process")
def sync(config: str, limit: int):
    """Retry pending source-record synchronisation."""
    try:
        app_config = _load_config(config)
        db = init_db(app_config.get_database_url())

        async def run_pending():
            from .core.pipeline.sync import SourceSynchronizer

            await db.create_tables()
            synchronizer = SourceSynchronizer(db.session, max_attempts=app_config.sync_max_attempts)
            report = await synchronizer.process_pending(limit=limit)
            await db.close()
            return report

        report = asyncio.run(run_pending())

        if not report.processed:
            click.echo("No pending sync events")
            return

        click.echo(
            f"Processed {report.processed} sync events: "
            f"{report.succeeded} succeeded, {report.failed} failed"
        )

    except Exception as e:
        click.echo(f"Error processing sync events: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
@click.option("--limit", "-n", type=int, default=10, help="Number of users to show")
def leaderboard(config: str, limit: int):
    """Show the Ubuntu points leaderboard."""
    try:
        app_config = _load_config(config)
        db = init_db(app_config.get_database_url())

        async def get_leaderboard():
            from .core.scoring.aggregator import compute_leaderboard
            from .core.storage.repositories import ContributionRepository

            await db.create_tables()
            async with db.session() as session:
                totals = await ContributionRepository(session).top_contributors(limit)
            await db.close()
            return compute_leaderboard(totals, limit, app_config.level_thresholds)

        entries = asyncio.run(get_leaderboard())

        if not entries:
            click.echo("No contributions recorded yet")
            return

        click.echo("\nUbuntu Leaderboard")
        click.echo("=" * 60)
        for entry in entries:
            click.echo(
                f"{entry.rank:>3}. {entry.user_id:<30} {entry.total_points:>6} pts  "
                f"{entry.level.value}"
            )

    except Exception as e:
        click.echo(f"Error building leaderboard: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()

"""
Catalog Service - Main entry point.
Imports pasted recruitment text into the MongoDB job catalog.
"""

import asyncio
from pathlib import Path

import click
from loguru import logger

from shared.config import get_settings
from shared.database import Database
from shared.errors import MatchingError
from shared.log import setup_logging

from .importer import CatalogImporter
from .store import JobCatalog


async def import_jobs(text: str, replace: bool = False) -> int:
    """
    Extract jobs from raw text and store them.

    Args:
        text: Pasted recruitment text, one posting row per line
        replace: Clear the existing catalog before inserting

    Returns:
        Number of jobs inserted
    """
    settings = get_settings()
    importer = CatalogImporter(settings)
    try:
        postings = await importer.import_text(
            text,
            on_progress=lambda current, total: logger.info(
                f"Parsing chunk {current}/{total}"
            ),
        )
    finally:
        await importer.close()

    if not postings:
        raise click.ClickException(
            "No jobs recognised; rows should look like: 行业 | 公司 | 岗位A, 岗位B | 地点 | 链接"
        )

    db = Database(settings)
    await db.connect()
    try:
        await db.ensure_indexes()
        catalog = JobCatalog(db)
        if replace:
            await catalog.clear_all()
        return await catalog.bulk_insert(postings)
    finally:
        await db.disconnect()


async def _with_catalog(action):
    db = Database()
    await db.connect()
    try:
        return await action(JobCatalog(db))
    finally:
        await db.disconnect()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """Job Catalog - Import and inspect job postings."""
    setup_logging(verbose=verbose)


@main.command("import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--replace", is_flag=True, help="Clear the catalog before importing")
def import_command(source: Path, replace: bool):
    """Extract jobs from a raw text file and add them to the catalog."""
    try:
        count = asyncio.run(import_jobs(source.read_text(encoding="utf-8"), replace))
    except MatchingError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Imported {count} jobs")


@main.command("list")
@click.option("--limit", "-l", type=int, default=50, help="Maximum jobs to print")
def list_command(limit: int):
    """Print the current catalog, newest first."""
    jobs = asyncio.run(_with_catalog(lambda catalog: catalog.fetch_all()))
    for job in jobs[:limit]:
        click.echo(f"{job.id}  {job.company} - {job.title} ({job.location}) {job.update_time}")
    click.echo(f"Total: {len(jobs)} jobs")


@main.command("clear")
@click.confirmation_option(prompt="Delete every job in the catalog?")
def clear_command():
    """Remove every job from the catalog."""
    deleted = asyncio.run(_with_catalog(lambda catalog: catalog.clear_all()))
    click.echo(f"Removed {deleted} jobs")


if __name__ == "__main__":
    main()

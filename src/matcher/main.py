"""
Matcher Service - Main entry point.
Matches a candidate resume against the job catalog using LLM batches.
"""

import asyncio
from pathlib import Path
from typing import Optional

import click
from loguru import logger

from catalog.store import JobCatalog, load_jobs_file
from resume.extractor import ProfileExtractor, load_profile
from shared.config import get_settings
from shared.database import Database
from shared.errors import MatchingError
from shared.log import setup_logging
from shared.models import CandidateProfile, MatchOutcome, MatchSession

from .aggregator import cities, filter_by_city
from .history import SessionHistory
from .orchestrator import MatchingOrchestrator, MatchReport


async def match_candidate(
    resume_path: Optional[Path],
    profile_path: Optional[Path],
    jobs_path: Optional[Path],
    batch_size: Optional[int] = None,
    concurrency: Optional[int] = None,
    save_session: bool = False,
) -> tuple[CandidateProfile, MatchReport]:
    """
    Build the candidate profile, load the catalog and run the matcher.

    Args:
        resume_path: Plain-text resume to extract a profile from
        profile_path: Previously extracted profile (YAML/JSON)
        jobs_path: Catalog file; the MongoDB catalog is used when omitted
        batch_size: Jobs per LLM call (settings default when None)
        concurrency: Batches in flight (settings default when None)
        save_session: Store the finished run in session history

    Returns:
        Tuple of (candidate_profile, match_report)
    """
    settings = get_settings()
    db: Optional[Database] = None

    try:
        resume_text = ""
        if profile_path:
            candidate = load_profile(profile_path)
        else:
            resume_text = resume_path.read_text(encoding="utf-8")
            extractor = ProfileExtractor(settings)
            try:
                candidate = await extractor.extract(resume_text)
            finally:
                await extractor.close()

        if jobs_path is None or save_session:
            db = Database(settings)
            await db.connect()

        if jobs_path is not None:
            jobs = load_jobs_file(jobs_path)
        else:
            jobs = await JobCatalog(db).fetch_all()

        orchestrator = MatchingOrchestrator(
            settings=settings, batch_size=batch_size, concurrency=concurrency
        )

        def on_progress(partial: list[MatchOutcome]) -> None:
            logger.info(f"Progress: {len(partial)} matches so far")

        try:
            report = await orchestrator.run(candidate, jobs, on_progress=on_progress)
        finally:
            await orchestrator.client.close()

        if save_session:
            session = MatchSession.from_run(candidate, report.outcomes, resume_text)
            await SessionHistory(db, settings).save(session)

        return candidate, report

    finally:
        if db is not None:
            await db.disconnect()


def format_outcome(rank: int, outcome: MatchOutcome) -> str:
    job = outcome.job
    lines = [
        f"{rank:>3}. [{outcome.score:>3}] {outcome.recommendation.value:<8} "
        f"{job.company} - {job.title} ({job.location})"
    ]
    if outcome.match_reasons:
        lines.append(f"       + {'; '.join(outcome.match_reasons)}")
    if outcome.mismatch_reasons:
        lines.append(f"       - {'; '.join(outcome.mismatch_reasons)}")
    if outcome.tips:
        lines.append(f"       > {outcome.tips}")
    if job.link:
        lines.append(f"       {job.link}")
    return "\n".join(lines)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """Career Matcher - Ranks catalog jobs for a candidate using LLM scoring."""
    setup_logging(verbose=verbose)


@main.command("run")
@click.option(
    "--resume",
    "-r",
    "resume_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Plain-text resume to match",
)
@click.option(
    "--profile",
    "-p",
    "profile_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Extracted candidate profile (YAML/JSON) instead of a resume",
)
@click.option(
    "--jobs",
    "-j",
    "jobs_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Jobs file (YAML/JSON); defaults to the MongoDB catalog",
)
@click.option("--batch-size", "-b", type=click.IntRange(min=1), default=None, help="Jobs per LLM call")
@click.option("--concurrency", "-c", type=click.IntRange(min=1), default=None, help="Batches in flight")
@click.option("--top", "-n", type=int, default=20, help="Number of results to print")
@click.option("--city", type=str, default=None, help="Only show jobs in this city")
@click.option("--save-session", "-s", is_flag=True, help="Store the run in session history")
def run(
    resume_path: Optional[Path],
    profile_path: Optional[Path],
    jobs_path: Optional[Path],
    batch_size: Optional[int],
    concurrency: Optional[int],
    top: int,
    city: Optional[str],
    save_session: bool,
):
    """Match one candidate against the job catalog."""
    if not resume_path and not profile_path:
        raise click.UsageError("Provide --resume or --profile")

    try:
        candidate, report = asyncio.run(
            match_candidate(
                resume_path=resume_path,
                profile_path=profile_path,
                jobs_path=jobs_path,
                batch_size=batch_size,
                concurrency=concurrency,
                save_session=save_session,
            )
        )
    except MatchingError as e:
        raise click.ClickException(str(e)) from e

    outcomes = filter_by_city(report.outcomes, city) if city else report.outcomes
    click.echo(f"Candidate: {candidate.name or 'unknown'} ({candidate.graduation_year})")
    if city and not outcomes and report.outcomes:
        click.echo(
            f"No matches in {city}. Available cities: {', '.join(cities(report.outcomes))}",
            err=True,
        )
    for rank, outcome in enumerate(outcomes[:top], 1):
        click.echo(format_outcome(rank, outcome))

    click.echo(f"Matches: {len(report.outcomes)}, Batches: {report.batch_count}")
    if not report.complete:
        click.echo(
            f"Warning: batches {report.failed_batches} failed; results may be incomplete",
            err=True,
        )


@main.command("history")
@click.option("--clear", is_flag=True, help="Delete all stored sessions")
def history(clear: bool):
    """List (or clear) stored matching sessions."""

    async def _history() -> list[MatchSession]:
        db = Database()
        await db.connect()
        try:
            sessions = SessionHistory(db)
            if clear:
                await sessions.clear()
                return []
            return await sessions.recent()
        finally:
            await db.disconnect()

    for session in asyncio.run(_history()):
        top = session.results[0].score if session.results else "-"
        click.echo(
            f"{session.timestamp:%Y-%m-%d %H:%M}  {session.candidate_name:<12} "
            f"{len(session.results):>4} results  top {top}"
        )
    if clear:
        click.echo("Session history cleared")


if __name__ == "__main__":
    main()

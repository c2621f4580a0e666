"""CLI commands for autotube using Typer and Rich.

Commands:
- generate: Produce a private video from a topic
- list: List recorded jobs in a table (SQL job store)
- status: Show one job in detail
- serve: Run the HTTP API
"""

import asyncio
import logging
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from autotube import validate_dependencies
from autotube.config import settings
from autotube.orchestrator.factory import build_executor, create_job_store
from autotube.orchestrator.store import JobNotFoundError, summarize
from autotube.schemas.job import (
    DEFAULT_DURATION_SEC,
    MAX_DURATION_SEC,
    MIN_DURATION_SEC,
    TONES,
    Job,
    PipelineInput,
)

DEFAULT_TOPIC = "AI breakthroughs you missed this week"

app = typer.Typer(name="autotube", help="Topic-to-video production pipeline")
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def parse_tone(value: str) -> str:
    """Return value if it is a known tone, else the default tone."""
    return value if value in TONES else "informative"


def parse_duration(value: str) -> int:
    """Parse a duration argument; non-numeric input falls back to the default,
    out-of-range input is clamped."""
    try:
        seconds = round(float(value))
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_DURATION_SEC
    return max(MIN_DURATION_SEC, min(MAX_DURATION_SEC, seconds))


def _get_status_color(status: str) -> str:
    return {
        "queued": "yellow",
        "running": "cyan",
        "success": "green",
        "failed": "red",
    }.get(status, "white")


@app.command()
def generate(
    topic: str = typer.Argument(DEFAULT_TOPIC, help="Video topic"),
    tone: str = typer.Argument("informative", help="informative, playful or dramatic"),
    duration: str = typer.Argument(str(DEFAULT_DURATION_SEC), help="Target duration in seconds"),
):
    """Generate a private video from a topic.

    Runs script, narration, render and publish. Publishing is skipped when
    YouTube credentials are not configured.
    """
    # Fail-fast dependency validation
    try:
        validate_dependencies()
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {str(e)}")
        raise typer.Exit(code=1)

    target = parse_duration(duration)
    if str(target) != duration.strip():
        console.print(f"[yellow]Using target duration:[/yellow] {target}s")

    try:
        pipeline_input = PipelineInput(
            topic=topic,
            tone=parse_tone(tone),
            target_duration_sec=target,
            visibility="private",
        )
    except ValidationError as e:
        console.print(f"[red]Error:[/red] Invalid input: {e.errors()[0]['msg']}")
        raise typer.Exit(code=1)

    try:
        job = asyncio.run(_generate_async(pipeline_input))
    except KeyboardInterrupt:
        console.print()
        console.print("[yellow]Pipeline interrupted.[/yellow]")
        raise typer.Exit(code=130)
    except Exception as e:
        console.print(f"[red]✗ Pipeline failed:[/red] {type(e).__name__}: {str(e)}")
        raise typer.Exit(code=1)

    if job.status != "success" or job.result is None:
        stage = job.error.stage if job.error and job.error.stage else "pipeline"
        message = job.error.message if job.error else "unknown error"
        console.print(f"[red]✗ {stage} failed:[/red] {message}")
        raise typer.Exit(code=1)

    console.print(f"[green]✓[/green] Rendered video path: {job.result.video_path}")
    if job.result.published_url:
        console.print(f"[green]Uploaded to YouTube:[/green] {job.result.published_url}")
    elif job.result.publish_error:
        console.print(f"[red]Publish failed ({job.result.publish_error}); video stored locally[/red]")
    else:
        reason = job.result.publish_skipped_reason or "not published"
        console.print(f"[yellow]Not published ({reason}); video stored locally[/yellow]")


async def _generate_async(pipeline_input: PipelineInput) -> Job:
    """Async implementation of generate command."""
    store = await create_job_store()
    try:
        executor = build_executor(store)
        with console.status("[bold green]Starting pipeline...") as status:
            def callback_wrapper(msg: str):
                status.update(f"[bold green]{msg}")

            return await executor.run(pipeline_input, progress_callback=callback_wrapper)
    finally:
        await store.close()


@app.command(name="list")
def list_jobs():
    """List recorded jobs, newest first."""
    asyncio.run(_list_async())


async def _list_async():
    store = await create_job_store()
    try:
        jobs = await store.list()
    finally:
        await store.close()

    if not jobs:
        console.print("[yellow]No jobs found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("ID", style="dim")
    table.add_column("Topic")
    table.add_column("Tone")
    table.add_column("Status")
    table.add_column("Created")

    for job in reversed(jobs):
        summary = summarize(job)
        topic_display = summary.topic if len(summary.topic) <= 50 else summary.topic[:47] + "..."
        color = _get_status_color(summary.status)
        table.add_row(
            summary.id[:8] + "...",
            topic_display,
            summary.tone,
            f"[{color}]{summary.status}[/{color}]",
            summary.created_ago,
        )

    console.print(table)


@app.command()
def status(
    job_id: str = typer.Argument(..., help="Job id"),
):
    """Show detailed job status."""
    asyncio.run(_status_async(job_id))


async def _status_async(job_id: str):
    store = await create_job_store()
    try:
        job = await store.get(job_id)
    except JobNotFoundError:
        console.print(f"[red]Error:[/red] Job not found: {job_id}")
        raise typer.Exit(code=1)
    finally:
        await store.close()

    summary = summarize(job)
    color = _get_status_color(summary.status)
    info_lines = [
        f"[bold]ID:[/bold] {summary.id}",
        f"[bold]Topic:[/bold] {summary.topic}",
        f"[bold]Status:[/bold] [{color}]{summary.status}[/{color}]",
        f"[bold]Tone:[/bold] {summary.tone}",
        f"[bold]Visibility:[/bold] {summary.visibility}",
        f"[bold]Target Duration:[/bold] {job.input.target_duration_sec}s",
        f"[bold]Created:[/bold] {summary.created_ago}",
    ]
    if summary.current_stage:
        info_lines.append(f"[bold]Stage:[/bold] {summary.current_stage}")
    if summary.video_path:
        info_lines.append(f"[bold]Output:[/bold] [green]{summary.video_path}[/green]")
    if summary.duration_sec is not None:
        info_lines.append(f"[bold]Duration:[/bold] {summary.duration_sec:.1f}s")
    if summary.published_url:
        info_lines.append(f"[bold]YouTube:[/bold] {summary.published_url}")
    if summary.publish_error:
        info_lines.append(f"[bold]Publish Error:[/bold] [red]{summary.publish_error}[/red]")
    if summary.error:
        info_lines.append(f"[bold]Error:[/bold] [red]{summary.failed_stage}: {summary.error}[/red]")

    console.print(
        Panel(
            "\n".join(info_lines),
            title="[bold]Job Status[/bold]",
            border_style="blue",
        )
    )


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
):
    """Run the HTTP API server."""
    import uvicorn

    uvicorn.run(
        "autotube.api.app:app",
        host=host or settings.server.host,
        port=port or settings.server.port,
        log_level=settings.server.log_level,
        reload=False,
    )

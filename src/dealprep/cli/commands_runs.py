"""Run CLI commands.

- run-id: Print the run id a payload maps to
- run: Execute the pipeline for a payload
- status: Show a run record
- delete: Delete a run or one of its artifacts (operator action)
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from typer import Context

from dealprep.cli.app import app, get_lifecycle, get_store, load_json_file
from dealprep.config import LLMConfig, config
from dealprep.models.run import ArtifactType, RunStatus
from dealprep.normalizer import normalize
from dealprep.result import Failure
from dealprep.runs.ids import compute_run_id


def _echo_failure(failure: Failure) -> None:
    typer.echo(f"❌ {failure}", err=True)
    if isinstance(failure.details, list):
        for detail in failure.details:
            typer.echo(f"   - {detail}", err=True)


@app.command(name="run-id")
def run_id(
    payload: Path = typer.Argument(..., help="Raw trigger payload (JSON file)"),
    full: bool = typer.Option(False, "--full", help="Print the 64-hex-digit variant"),
):
    """Print the run id for a raw payload without touching the store."""
    normalized = normalize(load_json_file(payload))
    if isinstance(normalized, Failure):
        _echo_failure(normalized)
        raise typer.Exit(1)

    result = compute_run_id(normalized.data, full=full)
    if isinstance(result, Failure):
        _echo_failure(result)
        raise typer.Exit(1)
    typer.echo(result.data)


@app.command()
def run(
    ctx: Context,
    payload: Path = typer.Argument(..., help="Raw trigger payload (JSON file)"),
    llm_provider: Optional[str] = typer.Option(
        None, "--llm", help="LLM provider override (anthropic, fake)"
    ),
    skip_source_validation: bool = typer.Option(
        config.skip_source_validation,
        "--skip-source-validation",
        help="Do not require meta.source_urls in the brief",
    ),
):
    """Run the deal prep pipeline for a payload.

    Re-running the same payload inside its time bucket returns the existing
    run instead of starting a new one.
    """
    from dealprep.delivery import create_adapters
    from dealprep.enrichment import LLMEnrichmentProvider
    from dealprep.pipeline import DealPrepPipeline
    from dealprep.tools.llm import create_llm_adapter
    from dealprep.validate import ValidatorConfig

    raw = load_json_file(payload)

    llm_config = LLMConfig()
    if llm_provider:
        llm_config.provider = llm_provider
    try:
        llm = create_llm_adapter(llm_config)
    except ValueError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)

    pipeline = DealPrepPipeline(
        get_store(ctx),
        llm,
        adapters=create_adapters(config.delivery),
        enrichment_provider=LLMEnrichmentProvider(llm),
        scraper_config=config.scraper,
        validator_config=ValidatorConfig(
            skip_source_validation=skip_source_validation,
            not_found_marker=config.not_found_marker,
        ),
    )

    typer.echo(f"🚀 Running pipeline for {payload}")
    result = asyncio.run(pipeline.run(raw))
    if isinstance(result, Failure):
        _echo_failure(result)
        raise typer.Exit(1)

    record = result.data
    typer.echo(f"📋 Run: {record.run_id}")
    typer.echo(f"   Status: {record.status.value}")
    typer.echo(f"   Artifacts: {', '.join(record.completed_artifacts())}")
    for channel in ("customer_relationship_management", "email", "motion"):
        outcome = getattr(record.deliveries, channel)
        line = f"   {channel}: {outcome.status.value}"
        if outcome.error:
            line += f" ({outcome.error})"
        typer.echo(line)

    if record.status is RunStatus.FAILED:
        for error in record.errors:
            typer.echo(f"   ❌ {error}", err=True)
        raise typer.Exit(1)


@app.command()
def status(
    ctx: Context,
    run_id: str = typer.Argument(..., help="Run id"),
):
    """Print a run record as JSON."""
    result = asyncio.run(get_lifecycle(ctx).get_run(run_id))
    if isinstance(result, Failure):
        _echo_failure(result)
        raise typer.Exit(1)
    typer.echo(result.data.to_json())


@app.command()
def delete(
    ctx: Context,
    run_id: str = typer.Argument(..., help="Run id"),
    artifact: Optional[ArtifactType] = typer.Option(
        None, "--artifact", "-a", help="Delete only this artifact"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
):
    """Delete a run, or a single artifact of a run."""
    target = f"{run_id}/{artifact.value}" if artifact else run_id
    if not yes:
        typer.confirm(f"Delete {target}?", abort=True)

    result = asyncio.run(get_lifecycle(ctx).delete_run(run_id, artifact))
    if isinstance(result, Failure):
        _echo_failure(result)
        raise typer.Exit(1)
    typer.echo(f"🗑️  Deleted {target}")

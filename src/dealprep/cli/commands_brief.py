"""Brief CLI commands."""

import json
from pathlib import Path

import typer

from dealprep.cli.app import app, load_json_file
from dealprep.config import config
from dealprep.validate import ValidatorConfig, validate_brief


@app.command()
def validate(
    brief: Path = typer.Argument(..., help="Brief JSON file"),
    skip_source_validation: bool = typer.Option(
        config.skip_source_validation,
        "--skip-source-validation",
        help="Do not require meta.source_urls",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
):
    """Validate a brief against its hard constraints. Exits 1 when invalid."""
    result = validate_brief(
        load_json_file(brief),
        ValidatorConfig(
            skip_source_validation=skip_source_validation,
            not_found_marker=config.not_found_marker,
        ),
    )

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        typer.echo(f"🔍 Validating brief: {brief}")
        typer.echo(str(result))

    if not result.valid:
        raise typer.Exit(1)

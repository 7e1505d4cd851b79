"""CLI app setup and common utilities.

This module creates the main Typer app and the shared state every command
reads: the artifact store and the run lifecycle built on it.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from typer import Context, Typer

from dealprep.config import config
from dealprep.runs.lifecycle import RunLifecycle
from dealprep.storage import ArtifactStore, create_store

app = Typer(
    name="dealprep",
    help="Deal preparation: research an organization and deliver a validated brief.",
)


class CLIState:
    """Shared state object for CLI commands."""

    def __init__(self):
        self.runs_dir: Optional[Path] = None
        self.store: Optional[ArtifactStore] = None


def get_store(ctx: Context) -> ArtifactStore:
    """Artifact store resolved by the app callback."""
    if ctx.obj is not None and ctx.obj.store is not None:
        return ctx.obj.store
    raise RuntimeError("Artifact store not initialized")


def get_lifecycle(ctx: Context) -> RunLifecycle:
    return RunLifecycle(get_store(ctx))


def load_json_file(path: Path) -> Any:
    """Read a JSON file, exiting with a message when it cannot be read."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        typer.echo(f"❌ Cannot read {path}: {e}", err=True)
        raise typer.Exit(1)
    except json.JSONDecodeError as e:
        typer.echo(f"❌ {path} is not valid JSON: {e}", err=True)
        raise typer.Exit(1)


@app.callback()
def init_app(
    ctx: Context,
    runs_dir: Optional[Path] = typer.Option(
        None,
        "--runs-dir",
        help="Artifact store directory (default: DEALPREP_RUNS_DIR)",
        envvar="DEALPREP_RUNS_DIR",
    ),
    log_level: str = typer.Option(
        config.log_level, "--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)"
    ),
):
    """Initialize logging and the artifact store."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    ctx.ensure_object(CLIState)
    ctx.obj.runs_dir = runs_dir or config.runs_dir
    ctx.obj.store = create_store(config.storage, ctx.obj.runs_dir)

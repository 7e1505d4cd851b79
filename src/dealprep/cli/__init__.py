"""CLI package for the deal prep pipeline.

The Typer app is created in app.py; importing the command modules registers
their commands with it.
"""

import dealprep.cli.commands_brief  # noqa: F401, E402
import dealprep.cli.commands_runs  # noqa: F401, E402
from dealprep.cli.app import app

__all__ = ["app"]

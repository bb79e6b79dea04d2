import logging
from typing import Annotated

import typer

from resource_model.cli.db import ping
from resource_model.cli.schema import fields, types

app = typer.Typer(
    name="resource-model",
    help="resource-model CLI: inspect column types and model columns.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def _configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log SQL statements and model operations.")] = False,
) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


app.command("types")(types)
app.command("fields")(fields)
app.command("ping")(ping)


def main() -> None:
    app()

"""CLI entry point; registers all subcommands."""

import typer

app = typer.Typer(
    name="codetrace",
    help="CodeTrace - record coding sessions from file saves and git commits",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .main import main as _main_callback  # noqa: F401, E402
from .record import record as _record  # noqa: F401, E402
from .sessions import (  # noqa: F401, E402
    delete as _delete,
    list_sessions as _list_sessions,
    show as _show,
    stats as _stats,
)
from .export import export as _export  # noqa: F401, E402
from .summarize import summarize as _summarize  # noqa: F401, E402

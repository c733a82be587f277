"""CLI entry point: registers all subcommands."""

import typer

app = typer.Typer(
    name="hookrunner",
    help="hookrunner - run git hooks declared in .pre-commit-config.yaml",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


@app.callback()
def _callback(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
        is_eager=True,
    ),
):
    """Run git hooks declared in .pre-commit-config.yaml."""
    if version:
        from .. import __version__

        typer.echo(f"hookrunner {__version__}")
        raise typer.Exit(0)


# Import subcommands to register them
from .run import run as _run  # noqa: F401, E402
from .validate import validate_config as _validate_config, validate_manifest as _validate_manifest  # noqa: F401, E402
from .install import install as _install, uninstall as _uninstall  # noqa: F401, E402
from .cache import cache_info as _cache_info, clean as _clean  # noqa: F401, E402
from .sample import sample_config as _sample_config  # noqa: F401, E402


def main() -> None:
    app()

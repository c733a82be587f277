"""The ``sample-config`` command."""

import typer

from . import app

SAMPLE_CONFIG = """\
# Hooks run by `hookrunner run`; install them with `hookrunner install`.
repos:
  - repo: https://github.com/pre-commit/pre-commit-hooks
    rev: v5.0.0
    hooks:
      - id: trailing-whitespace
      - id: end-of-file-fixer
      - id: check-yaml
      - id: check-added-large-files
"""


@app.command("sample-config")
def sample_config():
    """Print a starter .pre-commit-config.yaml."""
    typer.echo(SAMPLE_CONFIG, nl=False)

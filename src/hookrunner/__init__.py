"""
hookrunner - git hook orchestration

Reads a declarative ``.pre-commit-config.yaml``, prepares an isolated
environment for every hook, runs hooks over the files each one cares about
and reports one status line per hook. Unstaged changes are stashed for the
duration of a run so hooks only ever see what is about to be committed.
"""

__version__ = "0.1.0"

from .exceptions import HookRunnerError
from .orchestrator import Orchestrator, RunOptions, run_project
from .project import ProjectConfig, load_config, load_manifest
from .runner import HookResult, HookStatus

__all__ = [
    "HookRunnerError",
    "HookResult",
    "HookStatus",
    "Orchestrator",
    "ProjectConfig",
    "RunOptions",
    "load_config",
    "load_manifest",
    "run_project",
]

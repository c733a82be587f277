"""Environment resolution and caching.

Each hook needs an environment for its language. Environments are keyed by
a fingerprint of (language, language_version, dependency set) and live in
the shared Store, so every hook (and every later run) with the same
fingerprint reuses one install.
"""

from __future__ import annotations

import json
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Iterable, Optional

from .languages import Environment, get_backend
from .logging_config import get_logger
from .project import Hook
from .store import Store, digest

logger = get_logger(__name__)

MARKER = ".install_info.json"


def dependency_set(hook: Hook) -> tuple[str, ...]:
    """Sorted dependencies that define the environment's contents.

    Backends that install the hook repository itself count the repository
    identity as a dependency, so two revisions never share an environment.
    """
    deps = set(hook.spec.additional_dependencies)
    if get_backend(hook.spec.language).installs_repo and hook.repo.is_remote:
        deps.add(f"repo:{hook.repo.key}")
    return tuple(sorted(deps))


def fingerprint(hook: Hook) -> str:
    spec = hook.spec
    return digest(spec.language.value, spec.language_version, *dependency_set(hook))


def is_installed(env_dir: Path) -> bool:
    return (env_dir / MARKER).is_file()


def _write_marker(env_dir: Path, info: dict) -> None:
    tmp = env_dir / f"{MARKER}.tmp"
    tmp.write_text(json.dumps(info, indent=2) + "\n")
    os.replace(tmp, env_dir / MARKER)


class EnvironmentManager:
    """Hand out ready environments, installing missing ones on demand."""

    def __init__(
        self,
        store: Store,
        notify: Optional[Callable[[str], None]] = None,
        workers: int = 4,
    ):
        self.store = store
        self.notify = notify or (lambda message: None)
        self.workers = workers
        self._resolved: dict[str, Environment] = {}
        self._prepared_repos: set[str] = set()
        self._lock = threading.Lock()

    def resolve(self, hook: Hook) -> Environment:
        """Return the environment for ``hook``, installing it if needed.

        Raises:
            InstallError: if the backend fails; no cache entry is left behind
        """
        spec = hook.spec
        backend = get_backend(spec.language)
        fp = fingerprint(hook)

        if not backend.needs_install:
            return Environment(spec.language, fp)

        with self._lock:
            cached = self._resolved.get(fp)
        if cached is not None:
            return cached

        env_dir = self.store.env_dir(spec.language.value, fp)
        if not is_installed(env_dir):
            with self.store.lock(env_dir.name):
                if not is_installed(env_dir):
                    self._install(hook, env_dir, fp)
        else:
            logger.debug("Reusing %s environment %s", spec.language.value, env_dir)

        self.store.record(
            "env",
            fp,
            env_dir,
            language=spec.language.value,
            repo=hook.repo.key,
        )
        environment = Environment(spec.language, fp, env_dir)
        with self._lock:
            self._resolved[fp] = environment
        return environment

    def _install(self, hook: Hook, env_dir: Path, fp: str) -> None:
        spec = hook.spec
        backend = get_backend(spec.language)
        if not hook.repo.is_remote:
            with self._lock:
                first = hook.repo.key not in self._prepared_repos
                self._prepared_repos.add(hook.repo.key)
            if first:
                self.notify(f"Preparing local repo {hook.repo}")
        self.notify(f"Installing environment for {hook.repo}")
        started = time.monotonic()
        with self.store.building(env_dir) as target:
            backend.install(
                target,
                hook.repo.path if hook.repo.is_remote else None,
                spec.additional_dependencies,
                spec.language_version,
            )
            _write_marker(
                target,
                {
                    "language": spec.language.value,
                    "language_version": spec.language_version,
                    "dependencies": list(dependency_set(hook)),
                    "repo": hook.repo.key,
                    "fingerprint": fp,
                    "installed_at": time.time(),
                },
            )
        logger.debug(
            "Installed %s environment %s in %.2fs",
            spec.language.value,
            env_dir,
            time.monotonic() - started,
        )

    def prepare(self, hooks: Iterable[Hook]) -> None:
        """Install every distinct missing environment before execution.

        Independent installs run in parallel. All installs are allowed to
        finish; the first failure is then re-raised.
        """
        pending: dict[str, Hook] = {}
        for hook in hooks:
            if not get_backend(hook.spec.language).needs_install:
                continue
            fp = fingerprint(hook)
            if fp in pending or is_installed(self.store.env_dir(hook.spec.language.value, fp)):
                continue
            pending[fp] = hook

        if not pending:
            return
        if len(pending) == 1 or self.workers == 1:
            for hook in pending.values():
                self.resolve(hook)
            return

        executor = ThreadPoolExecutor(max_workers=min(self.workers, len(pending)))
        errors: list[BaseException] = []
        try:
            futures = [executor.submit(self.resolve, hook) for hook in pending.values()]
            for future in as_completed(futures):
                exc = future.exception()
                if exc is not None:
                    errors.append(exc)
        finally:
            executor.shutdown(wait=True, cancel_futures=True)
        if errors:
            raise errors[0]

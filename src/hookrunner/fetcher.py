"""Fetch remote hook repositories into the shared cache."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from .config import MANIFEST_FILE
from .exceptions import ConfigError, FetchError, GitCommandError
from .git import no_git_env, run_git
from .logging_config import get_logger
from .project import ProjectConfig, RepoSpec, load_manifest, resolve_remote_hooks
from .store import Store

logger = get_logger(__name__)


class RepoFetcher:
    """Clone ``(url, rev)`` pairs once and hand out their cached paths."""

    def __init__(self, store: Store, notify: Optional[Callable[[str], None]] = None):
        self.store = store
        self.notify = notify or (lambda message: None)

    def clone(self, url: str, rev: str) -> Path:
        """Return the local checkout of ``url`` at ``rev``, fetching it if needed.

        Raises:
            FetchError: if the repository or revision cannot be retrieved
        """
        final = self.store.repo_dir(url, rev)
        if not final.exists():
            with self.store.lock(final.name):
                if not final.exists():
                    self.notify(f"Cloning {url}@{rev}")
                    try:
                        with self.store.staging(final) as tmp:
                            self._fetch(url, rev, tmp)
                    except GitCommandError as e:
                        raise FetchError(url, rev, e.stderr.strip() or str(e))
        self.store.record("repo", f"{url}@{rev}", final, url=url, rev=rev)
        return final

    def _fetch(self, url: str, rev: str, dest: Path) -> None:
        env = no_git_env()
        run_git(["init", "--quiet", str(dest)], env=env)
        run_git(["remote", "add", "origin", url], cwd=dest, env=env)

        shallow = run_git(
            ["-c", "protocol.version=2", "fetch", "origin", rev, "--depth=1", "--quiet"],
            cwd=dest,
            check=False,
            env=env,
        )
        if shallow.returncode == 0:
            ref = "FETCH_HEAD"
        else:
            logger.debug("Shallow fetch of %s@%s failed, fetching full history", url, rev)
            run_git(["fetch", "origin", "--tags", "--quiet"], cwd=dest, env=env)
            ref = rev

        run_git(
            ["-c", "advice.detachedHead=false", "checkout", "--quiet", ref], cwd=dest, env=env
        )
        run_git(
            ["submodule", "update", "--init", "--recursive", "--depth=1", "--quiet"],
            cwd=dest,
            env=env,
        )

    def resolve(self, config: ProjectConfig) -> ProjectConfig:
        """Fetch every remote repository and bind its manifest hooks.

        Raises:
            FetchError: if a repository cannot be retrieved
            ConfigError: if a manifest is invalid or lacks a configured hook id
        """
        repos: list[RepoSpec] = []
        for repo in config.repos:
            if not repo.is_remote:
                repos.append(repo)
                continue
            path = self.clone(repo.source, repo.rev or "")
            manifest_path = path / MANIFEST_FILE
            if not manifest_path.exists():
                raise ConfigError(
                    f"{MANIFEST_FILE} is not a file in {repo.key}", path=config.path
                )
            manifest = load_manifest(manifest_path, display_path=Path(f"{repo.key}:{MANIFEST_FILE}"))
            repos.append(resolve_remote_hooks(config, repo, manifest, path))
        return config.with_repos(tuple(repos))

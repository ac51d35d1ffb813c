"""Git collaborator.

Thin wrapper over the ``git`` executable exposing the queries and mutations
the workflow needs. Every mutation raises ``GitCommandError`` on failure;
the callers decide which failures are fatal.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from gitgenie.exceptions import GitCommandError
from gitgenie.models import RepositorySnapshot
from gitgenie.utils import SubprocessHandler

logger = logging.getLogger(__name__)


class GitRepository:
    """Runs git commands against one working directory."""

    def __init__(self, path: Optional[Union[str, Path]] = None,
                 handler: Optional[SubprocessHandler] = None) -> None:
        self.path = Path(path) if path is not None else Path.cwd()
        self.handler = handler or SubprocessHandler(cwd=self.path)

    def run(self, *args: str) -> str:
        """Run ``git <args>`` and return stdout.

        Raises:
            GitCommandError: If git exits with a non-zero status.
        """
        command = ["git", *args]
        stdout, stderr, code = self.handler.run_command(command)
        if code != 0:
            raise GitCommandError(command, code, stderr)
        return stdout

    def _succeeds(self, *args: str) -> bool:
        _, _, code = self.handler.run_command(["git", *args])
        return code == 0

    # Queries

    def is_repository(self) -> bool:
        return self._succeeds("rev-parse", "--is-inside-work-tree")

    def has_commits(self) -> bool:
        return self._succeeds("rev-parse", "--verify", "HEAD")

    def current_branch(self) -> str:
        """Name of the checked-out branch, empty when HEAD is detached."""
        try:
            return self.run("branch", "--show-current").strip()
        except GitCommandError:
            return ""

    def snapshot(self) -> RepositorySnapshot:
        is_repository = self.is_repository()
        return RepositorySnapshot(
            is_repository=is_repository,
            has_commits=is_repository and self.has_commits(),
            current_branch=self.current_branch() if is_repository else "",
        )

    def remotes(self) -> List[str]:
        return [line.strip() for line in self.run("remote").splitlines() if line.strip()]

    def has_remote(self, name: str) -> bool:
        return name in self.remotes()

    def diff(self, cached: bool = False) -> str:
        args = ["diff", "--cached"] if cached else ["diff"]
        return self.run(*args)

    # Mutations

    def init(self) -> None:
        self.run("init")

    def add_remote(self, name: str, url: str) -> None:
        self.run("remote", "add", name, url)

    def stage_all(self) -> None:
        self.run("add", "-A")

    def commit(self, message: str) -> None:
        self.run("commit", "-m", message)

    def checkout(self, branch: str) -> None:
        self.run("checkout", branch)

    def checkout_reset(self, branch: str) -> None:
        """Create ``branch`` or reset it to HEAD, then switch to it."""
        self.run("checkout", "-B", branch)

    def create_branch(self, branch: str) -> None:
        self.run("checkout", "-b", branch)

    def push(self, remote: str, branch: str, set_upstream: bool = True) -> None:
        args = ["push", "-u", remote, branch] if set_upstream else ["push", remote, branch]
        self.run(*args)

    def pull(self, remote: str, branch: str) -> None:
        self.run("pull", remote, branch)

    def merge(self, branch: str) -> None:
        self.run("merge", branch)

    def delete_local_branch(self, branch: str) -> None:
        self.run("branch", "-d", branch)

    def delete_remote_branch(self, remote: str, branch: str) -> None:
        self.run("push", remote, f":{branch}")

    def clone(self, url: str, directory: Optional[str] = None) -> None:
        args = ["clone", url] + ([directory] if directory else [])
        self.run(*args)

    def add_worktree(self, location: str, branch: str) -> None:
        self.run("worktree", "add", location, branch)

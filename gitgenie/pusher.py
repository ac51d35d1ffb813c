"""Push a branch to the remote with a bounded number of retries."""

import logging
from dataclasses import dataclass
from typing import Optional

from rich.console import Console

from gitgenie.config import Config, default_config
from gitgenie.exceptions import GitCommandError
from gitgenie.repository import GitRepository
from gitgenie.utils import console as default_console

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PushResult:
    branch: str
    attempts: int
    last_error: Optional[GitCommandError] = None

    @property
    def succeeded(self) -> bool:
        return self.last_error is None


class RetryingPusher:
    """Pushes to the configured remote, retrying immediately on failure."""

    def __init__(self, repository: GitRepository, config: Config = default_config,
                 console: Optional[Console] = None) -> None:
        self.repository = repository
        self.config = config
        self.console = console or default_console

    def push(self, branch: str) -> PushResult:
        max_retries = self.config.max_push_retries
        remote = self.config.remote_name
        attempt = 0

        while True:
            attempt += 1
            try:
                with self.console.status(f"[bold blue]🚀 Pushing branch \"{branch}\"...[/bold blue]"):
                    self.repository.push(remote, branch, set_upstream=True)
            except GitCommandError as e:
                logger.debug("Push attempt %d of %s failed: %s", attempt, branch, e)
                if attempt > max_retries:
                    self._report_failure(branch, attempt)
                    return PushResult(branch, attempt, e)
                self.console.print(f"[yellow]⚠ Push failed. Retrying... ({attempt}/{max_retries})[/yellow]")
                continue

            self.console.print(f"[green]✔ Successfully pushed branch \"{branch}\"[/green]")
            return PushResult(branch, attempt)

    def _report_failure(self, branch: str, attempts: int) -> None:
        self.console.print(f"[red]✖ Failed to push branch \"{branch}\" after {attempts} attempts.[/red]")
        self.console.print("[red]Tip: Check your remote URL and network connection.[/red]")
        self.console.print(f"[cyan]To set remote: git remote add {self.config.remote_name} <url>[/cyan]")
        self.console.print(
            f"[dim]Example: git remote add {self.config.remote_name} https://github.com/username/repo.git[/dim]"
        )

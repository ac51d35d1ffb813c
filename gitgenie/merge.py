"""Merge a feature branch into main, push main, and tidy up.

Steps: checkout main, pull main (tolerated), merge (fatal on conflict),
make sure ``origin`` exists (declining skips only the push), push main, offer
to delete the feature branch locally and on the remote.
"""

import logging
from enum import Enum
from typing import Optional

from rich.console import Console

from gitgenie.config import Config, default_config
from gitgenie.exceptions import GitCommandError, MergeAborted
from gitgenie.prompts import Operator
from gitgenie.repository import GitRepository
from gitgenie.utils import console as default_console

logger = logging.getLogger(__name__)

MERGE_REMEDY = "git status && git merge --abort"


class MergeOutcome(Enum):
    MERGED_PUSHED_CLEANED_UP = "merged, pushed and cleaned up"
    MERGED_PUSHED = "merged and pushed"
    MERGED_PUSH_SKIPPED = "merged, push skipped"


def _validate_remote_url(url: str) -> Optional[str]:
    if url and (url.startswith("http") or url.startswith("git@")):
        return None
    return "Please enter a valid Git remote URL"


def ensure_remote_origin(repository: GitRepository, operator: Operator,
                         config: Config = default_config,
                         console: Optional[Console] = None) -> bool:
    """Return True when the remote exists, offering to add it when missing."""
    console = console or default_console
    remote = config.remote_name
    try:
        if repository.has_remote(remote):
            return True
    except GitCommandError as e:
        logger.debug("Could not list remotes: %s", e)
        return False

    console.print(f"[yellow]ℹ No remote \"{remote}\" configured.[/yellow]")
    if not operator.confirm(f"Would you like to add a remote {remote} now?", default=True):
        return False

    url = operator.ask(
        f"Enter remote {remote} URL (e.g. https://github.com/user/repo.git):",
        validate=_validate_remote_url,
    )
    try:
        repository.add_remote(remote, url)
    except GitCommandError as e:
        logger.debug("Adding remote failed: %s", e)
        console.print(f"[red]✖ Failed to add remote {remote}.[/red]")
        return False

    console.print(f"[green]✔ Remote {remote} set to {url}[/green]")
    return True


class MergeAutomation:
    """Runs the merge-to-main sequence for one feature branch."""

    def __init__(self, repository: GitRepository, operator: Operator,
                 config: Config = default_config, console: Optional[Console] = None) -> None:
        self.repository = repository
        self.operator = operator
        self.config = config
        self.console = console or default_console

    def merge_to_main_and_push(self, feature_branch: str) -> MergeOutcome:
        """Merge ``feature_branch`` into main and push.

        Raises:
            MergeAborted: Checkout, merge or push of main failed.
        """
        main, remote = self.config.main_branch, self.config.remote_name
        self.console.print(f"[blue]ℹ Starting merge process from \"{feature_branch}\" to {main}...[/blue]")

        try:
            self._step(f"🔄 Switching to {main} branch...", self.repository.checkout, main)
            self.console.print(f"[green]✔ Switched to {main} branch[/green]")

            try:
                self._step(f"📥 Pulling latest changes from {main}...", self.repository.pull, remote, main)
                self.console.print(f"[green]✔ {main.capitalize()} branch updated[/green]")
            except GitCommandError as e:
                logger.debug("Pull of %s failed: %s", main, e)
                self.console.print(
                    f"[yellow]⚠ Could not pull latest changes. {main.capitalize()} might not exist on remote yet.[/yellow]"
                )
                self.console.print(f"[cyan]To set remote: git remote add {remote} <url>[/cyan]")

            self._step(f"🔀 Merging \"{feature_branch}\" into {main}...", self.repository.merge, feature_branch)
            self.console.print(f"[green]✔ Successfully merged \"{feature_branch}\" into {main}[/green]")

            pushed = ensure_remote_origin(self.repository, self.operator, self.config, self.console)
            if pushed:
                self._step(f"🚀 Pushing {main} branch to remote...", self.repository.push, remote, main)
                self.console.print(f"[green]✔ Successfully pushed {main} branch[/green]")
            else:
                self.console.print(f"[yellow]⚠ No remote configured. Skipping push of {main}.[/yellow]")
        except GitCommandError as e:
            self.console.print(f"[red]Merge process failed: {e}[/red]")
            self.console.print("[yellow]Tip: Resolve any merge conflicts and try again.[/yellow]")
            raise MergeAborted(str(e), remedy=MERGE_REMEDY) from e

        cleaned_up = self._offer_cleanup(feature_branch)
        if not pushed:
            return MergeOutcome.MERGED_PUSH_SKIPPED
        self.console.print(f"[green]🎉 Successfully merged to {main} and pushed![/green]")
        return MergeOutcome.MERGED_PUSHED_CLEANED_UP if cleaned_up else MergeOutcome.MERGED_PUSHED

    def _step(self, message: str, action, *args) -> None:
        with self.console.status(f"[bold blue]{message}[/bold blue]"):
            action(*args)

    def _offer_cleanup(self, feature_branch: str) -> bool:
        if feature_branch == self.config.main_branch:
            return False
        if not self.operator.confirm(f"Do you want to delete the feature branch \"{feature_branch}\"?",
                                     default=True):
            return False

        try:
            self.repository.delete_local_branch(feature_branch)
        except GitCommandError as e:
            logger.debug("Deleting %s failed: %s", feature_branch, e)
            self.console.print(f"[red]✖ Failed to delete branch \"{feature_branch}\".[/red]")
            self.console.print("[red]Tip: Make sure the branch exists and is not checked out.[/red]")
            self.console.print("[cyan]To delete branch: git branch -d <branch>[/cyan]")
            return False
        self.console.print(f"[green]✔ Deleted local branch \"{feature_branch}\"[/green]")

        try:
            self.repository.delete_remote_branch(self.config.remote_name, feature_branch)
            self.console.print(f"[green]✔ Deleted remote branch \"{feature_branch}\"[/green]")
        except GitCommandError as e:
            logger.debug("Deleting remote %s failed: %s", feature_branch, e)
            self.console.print(f"[yellow]Remote branch \"{feature_branch}\" may not exist.[/yellow]")
            self.console.print("[cyan]To check remote branches: git branch -r[/cyan]")
        return True

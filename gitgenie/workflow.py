"""Commit workflow orchestration.

``WorkflowOrchestrator.run`` takes a ``ChangeRequest`` through repository
setup, branch choice, staging, message generation, commit and push. Steps
run strictly one after another; a failed step is either downgraded to a
warning or aborts the run, and nothing done before an abort is rolled back.
"""

import logging
from enum import Enum
from typing import Optional

from rich.console import Console
from rich.markup import escape

from gitgenie.classifier import DEFAULT_TYPE, classify
from gitgenie.config import Config, default_config
from gitgenie.exceptions import GitCommandError, NothingToCommitError, PushFailed, RepositoryInitError
from gitgenie.merge import MergeAutomation, ensure_remote_origin
from gitgenie.models import BranchDecision, ChangeRequest, CommitPlan, PushChoice
from gitgenie.prompts import Operator
from gitgenie.pusher import RetryingPusher
from gitgenie.repository import GitRepository
from gitgenie.suggestions import SuggestionGenerator
from gitgenie.utils import console as default_console
from gitgenie.vault import CredentialVault

logger = logging.getLogger(__name__)

_UNRESOLVED = object()


class WorkflowState(Enum):
    START = "start"
    REPO_ENSURED = "repo ensured"
    REMOTE_ENSURED = "remote ensured"
    COMMIT_HISTORY_CHECKED = "commit history checked"
    BRANCH_DECIDED = "branch decided"
    STAGED = "staged"
    MESSAGE_GENERATED = "message generated"
    COMMITTED = "committed"
    PUSH_DECIDED = "push decided"
    DONE = "done"


class WorkflowContext:
    """Everything one run needs, passed in explicitly.

    Holds the git and operator collaborators plus a credential cache scoped
    to the run, so the vault is consulted at most once.
    """

    def __init__(self, repository: GitRepository, operator: Operator,
                 vault: Optional[CredentialVault] = None, config: Config = default_config,
                 console: Optional[Console] = None) -> None:
        self.repository = repository
        self.operator = operator
        self.config = config
        self.console = console or default_console
        self.vault = vault or CredentialVault(config, console=self.console)
        self._credential = _UNRESOLVED

    def credential(self) -> Optional[str]:
        if self._credential is _UNRESOLVED:
            self._credential = self.vault.resolve_key()
        return self._credential


class WorkflowOrchestrator:
    """State machine for a single commit run."""

    def __init__(self, context: WorkflowContext,
                 suggestions: Optional[SuggestionGenerator] = None) -> None:
        self.context = context
        self.repository = context.repository
        self.operator = context.operator
        self.config = context.config
        self.console = context.console
        self.suggestions = suggestions
        self.pusher = RetryingPusher(self.repository, self.config, self.console)
        self.merger = MergeAutomation(self.repository, self.operator, self.config, self.console)
        self.state = WorkflowState.START

    def run(self, request: ChangeRequest) -> CommitPlan:
        """Execute the whole workflow and return the applied plan.

        Raises:
            WorkflowAborted: On any terminal failure.
            GitCommandError: When a git step with no fallback fails.
        """
        if self.suggestions is None:
            self.suggestions = SuggestionGenerator(
                self.context.credential, request.use_ai, self.config, self.console
            )
        plan = CommitPlan()

        self._ensure_repository()
        self._ensure_remote(request)
        has_commits = self.repository.has_commits()
        self._advance(WorkflowState.COMMIT_HISTORY_CHECKED)

        plan.branch_decision = self._decide_branch(request, has_commits)
        self._advance(WorkflowState.BRANCH_DECIDED)

        diff = self._stage()
        self._advance(WorkflowState.STAGED)

        commit_type = self._resolve_type(request, diff)
        plan.commit_message = self.suggestions.commit_message(
            diff, commit_type, request.scope, request.description
        )
        self._advance(WorkflowState.MESSAGE_GENERATED)

        self.repository.commit(plan.commit_message)
        self.console.print(f"[green]✔ Committed changes with message: \"{escape(plan.commit_message)}\"[/green]")
        self._advance(WorkflowState.COMMITTED)

        plan.push_choice = self._push(request, plan.branch_name, diff, commit_type)
        self._advance(WorkflowState.PUSH_DECIDED)

        self._advance(WorkflowState.DONE)
        return plan

    def _advance(self, state: WorkflowState) -> None:
        logger.debug("Workflow %s -> %s", self.state.value, state.value)
        self.state = state

    def _ensure_repository(self) -> None:
        if not self.repository.is_repository():
            self.console.print("[blue]No git repository found. Initializing...[/blue]")
            try:
                self.repository.init()
            except GitCommandError as e:
                raise RepositoryInitError(f"Could not initialize a git repository: {e}",
                                          remedy="git init") from e
            self.console.print("[green]✔ Git repository initialized.[/green]")
            self.console.print(f"[cyan]Tip: To add a remote, run: git remote add {self.config.remote_name} <url>[/cyan]")
        self._advance(WorkflowState.REPO_ENSURED)

    def _ensure_remote(self, request: ChangeRequest) -> None:
        if request.remote_url:
            remote = self.config.remote_name
            try:
                self.repository.add_remote(remote, request.remote_url)
                self.console.print(f"[green]✔ Remote {remote} set to {request.remote_url}[/green]")
            except GitCommandError as e:
                logger.debug("Adding remote failed: %s", e)
                self.console.print(f"[yellow]⚠ Remote {remote} may already exist.[/yellow]")
                self.console.print(f"[cyan]Tip: To change remote, run: git remote set-url {remote} <url>[/cyan]")
        self._advance(WorkflowState.REMOTE_ENSURED)

    def _decide_branch(self, request: ChangeRequest, has_commits: bool) -> BranchDecision:
        main = self.config.main_branch
        if request.skip_branch_prompt or not has_commits:
            self.repository.checkout_reset(main)
            self.console.print(f"[green]Committing directly to branch: {main}[/green]")
            return BranchDecision.to_main(main)

        current = self.repository.current_branch() or main
        choice = self.operator.select(
            f"Current branch is \"{current}\". Where do you want to commit?",
            [(f"Commit to current branch ({current})", "current"), ("Create a new branch", "new")],
        )
        if choice != "new":
            self.repository.checkout(current)
            self.console.print(f"[blue]Committing to current branch: {current}[/blue]")
            return BranchDecision.to_current(current)

        suggested = self._suggest_branch_name(request)
        name = ""
        while not name:
            name = self.operator.ask("Enter new branch name:", default=suggested).strip()
            if not name:
                self.console.print("[red]Branch name cannot be empty[/red]")

        self.repository.create_branch(name)
        self.console.print(f"[blue]Created and switched to new branch: {name}[/blue]")
        self.console.print("[cyan]Tip: To list branches, run: git branch[/cyan]")
        return BranchDecision.to_new(name)

    def _suggest_branch_name(self, request: ChangeRequest) -> str:
        working_diff = self.repository.diff()
        commit_type = request.commit_type or classify(working_diff)

        if not request.open_source:
            return self.suggestions.branch_name(working_diff, commit_type, request.description)

        issue = self.operator.ask(
            "Enter issue number (e.g. 123):",
            validate=lambda value: None if value.strip().isdigit() else "Issue number must be numeric",
        ).strip()
        short_title = self.suggestions.issue_short_title(working_diff, commit_type, request.description)
        return f"{commit_type}/#{issue}-{short_title}"

    def _stage(self) -> str:
        diff = self.repository.diff(cached=True)
        if diff.strip():
            return diff

        self.console.print("[yellow]No staged changes found. Staging all files...[/yellow]")
        with self.console.status("[bold blue]📂 Staging all files...[/bold blue]"):
            self.repository.stage_all()
        diff = self.repository.diff(cached=True)
        if not diff.strip():
            self.console.print("[red]No changes detected to commit even after staging.[/red]")
            raise NothingToCommitError("No changes detected to commit even after staging.",
                                       remedy="git status")
        self.console.print("[green]✔ All files staged[/green]")
        return diff

    def _resolve_type(self, request: ChangeRequest, diff: str) -> str:
        if request.commit_type:
            return request.commit_type
        if request.use_ai:
            # Manual fallback type when the AI path cannot be used
            return DEFAULT_TYPE
        commit_type = classify(diff)
        self.console.print(f"🧠 Auto-detected commit type: [bold]{commit_type}[/bold]")
        return commit_type

    def _push(self, request: ChangeRequest, branch: str, diff: str, commit_type: str) -> PushChoice:
        main = self.config.main_branch

        if request.auto_push_to_main:
            if branch != main:
                self.merger.merge_to_main_and_push(branch)
                return PushChoice.PUSH_AND_MERGE
            if not ensure_remote_origin(self.repository, self.operator, self.config, self.console):
                self.console.print("[yellow]⚠ No remote configured. Skipping push.[/yellow]")
                return PushChoice.NO
            self._push_with_retry(main)
            return PushChoice.PUSH_ONLY

        if not self.operator.confirm(f"Do you want to push branch \"{branch}\" to remote?", default=True):
            self.console.print("[yellow]Push skipped.[/yellow]")
            self.console.print(f"[cyan]To push manually: git push {self.config.remote_name} {branch}[/cyan]")
            return PushChoice.NO

        pushed = ensure_remote_origin(self.repository, self.operator, self.config, self.console)
        if pushed:
            self._push_with_retry(branch)
        else:
            self.console.print("[yellow]⚠ Skipping push because no remote is configured.[/yellow]")

        if branch == main:
            return PushChoice.PUSH_ONLY if pushed else PushChoice.NO

        if pushed:
            title = self.suggestions.pr_title(diff, commit_type, request.scope, request.description)
            self.console.print(f"[magenta]Suggested PR title:[/magenta] {escape(title)}")

        if self.operator.confirm(f"Do you want to merge \"{branch}\" to {main} branch and push?", default=False):
            self.merger.merge_to_main_and_push(branch)
            return PushChoice.PUSH_AND_MERGE
        return PushChoice.PUSH_ONLY if pushed else PushChoice.NO

    def _push_with_retry(self, branch: str) -> None:
        result = self.pusher.push(branch)
        if not result.succeeded:
            raise PushFailed(f"Failed to push branch \"{branch}\" after {result.attempts} attempts: "
                             f"{result.last_error}",
                             remedy=f"git push -u {self.config.remote_name} {branch}")

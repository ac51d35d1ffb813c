"""Interactive command palette.

Opened when ``gg`` runs without arguments. The operator picks an action,
answers a few questions, and the equivalent command line is printed and
dispatched as if it had been typed.
"""

from enum import Enum
from typing import Callable, Dict, List, Optional

from rich.console import Console
from rich.markup import escape

from gitgenie.prompts import Operator
from gitgenie.utils import console as default_console


class PaletteSelection(Enum):
    COMMIT = "commit"
    CONFIG = "config"
    BRANCH = "b"
    SWITCH = "s"
    WORKTREE = "wt"
    CLONE = "cl"


DESCRIPTIONS = {
    PaletteSelection.COMMIT: "Commit changes with optional AI support",
    PaletteSelection.CONFIG: "Save your Gemini API key for unlocking genie powers ✨",
    PaletteSelection.BRANCH: "Create & switch to new branch",
    PaletteSelection.SWITCH: "Switch to a branch",
    PaletteSelection.WORKTREE: "Create Git worktree",
    PaletteSelection.CLONE: "Clone repository",
}


def _required(label: str) -> Callable[[str], Optional[str]]:
    return lambda value: None if value.strip() else f"{label} is required"


def _repo_url(value: str) -> Optional[str]:
    if value.startswith(("http://", "https://", "git@")):
        return None
    return "Enter a valid repo URL"


def commit_args(operator: Operator) -> List[str]:
    description = operator.ask("Enter commit message:", validate=_required("Commit message"))
    use_ai = operator.confirm("Use AI commit message?", default=False)
    commit_type = operator.ask("Commit type (feat, fix, docs...)", default="feat")
    scope = operator.ask("Commit scope (optional)", default="")
    open_source = operator.confirm("Open-source issue mode?", default=False)
    skip_branch = operator.confirm("Commit on the current branch without asking?", default=False)
    push_to_main = operator.confirm("Merge & push to main after commit?", default=False)
    remote = operator.ask("Remote origin URL (blank to skip)", default="")

    args = [description]
    if commit_type:
        args += ["--type", commit_type]
    if scope:
        args += ["--scope", scope]
    if use_ai:
        args.append("--genie")
    if open_source:
        args.append("--osc")
    if skip_branch:
        args.append("--no-branch")
    if push_to_main:
        args.append("--push-to-main")
    if remote:
        args += ["--remote", remote]
    return args


def config_args(operator: Operator) -> List[str]:
    return ["config", operator.ask("Gemini API key:", validate=_required("API key"))]


def branch_args(operator: Operator) -> List[str]:
    return ["b", operator.ask("New branch name:", validate=_required("Branch name"))]


def switch_args(operator: Operator) -> List[str]:
    return ["s", operator.ask("Switch to branch:", validate=_required("Branch name"))]


def worktree_args(operator: Operator) -> List[str]:
    branch = operator.ask("Branch for worktree:", validate=_required("Branch name"))
    location = operator.ask("Worktree path (blank for default)", default="")
    return ["wt", branch] + ([location] if location else [])


def clone_args(operator: Operator) -> List[str]:
    url = operator.ask("Repository URL to clone:", validate=_repo_url)
    directory = operator.ask("Optional directory name (blank for default)", default="")
    return ["cl", url] + ([directory] if directory else [])


DISPATCH: Dict[PaletteSelection, Callable[[Operator], List[str]]] = {
    PaletteSelection.COMMIT: commit_args,
    PaletteSelection.CONFIG: config_args,
    PaletteSelection.BRANCH: branch_args,
    PaletteSelection.SWITCH: switch_args,
    PaletteSelection.WORKTREE: worktree_args,
    PaletteSelection.CLONE: clone_args,
}


def printable_command(args: List[str]) -> str:
    def quote(arg: str) -> str:
        return '"' + arg.replace('"', '\\"') + '"' if " " in arg else arg
    return " ".join(quote(arg) for arg in ["gg", *args])


def open_palette(operator: Operator, run: Callable[[List[str]], int],
                 console: Optional[Console] = None) -> int:
    """Ask what to do, then hand the equivalent argv to ``run``."""
    console = console or default_console
    choices = [(f"{selection.value}  {DESCRIPTIONS[selection]}", selection.value)
               for selection in PaletteSelection]
    selection = PaletteSelection(operator.select("✨ What would you like to do?", choices))

    args = DISPATCH[selection](operator)
    shown = args
    if selection is PaletteSelection.COMMIT:
        args = shown = ["commit", *args]
    elif selection is PaletteSelection.CONFIG:
        shown = ["config", "********"]
    console.print(f"[dim]→ Running: {escape(printable_command(shown))}[/dim]", highlight=False)
    return run(args)

#!/usr/bin/env python3
"""
GitGenie CLI Interface

This module provides the command-line interface of GitGenie: the commit
workflow, API key configuration and a few git shortcuts.

Usage:
    gg "<description>" [options]      Commit (same as `gg commit`)
    gg commit "<description>" [options]
    gg config <apikey>                Save the Gemini API key
    gg b <branch>                     Create & switch to a new branch
    gg s <branch>                     Switch to a branch
    gg wt <branch> [dir]              Create a git worktree
    gg cl <url> [dir]                 Clone a repository
    gg                                Open the interactive command palette

Commit options:
    --type TYPE          Commit type (detected from the diff when omitted)
    --scope SCOPE        Commit scope
    --genie              Use AI for the commit message and branch name
    --osc                Open-source branch mode (type/#issue-title)
    --no-branch          Commit on main without the branch prompt
    --push-to-main       Merge & push to main after commit
    --remote URL         Set remote origin
    -v, --verbose        Enable verbose output
"""

import argparse
import logging
import re
import sys
from typing import List, Optional

from dotenv import load_dotenv
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from gitgenie import __version__
from gitgenie.config import COMMIT_TYPES, default_config
from gitgenie.exceptions import GitCommandError, GitGenieError, ValidationError, VaultError, WorkflowAborted
from gitgenie.models import ChangeRequest
from gitgenie.palette import open_palette
from gitgenie.prompts import ConsoleOperator
from gitgenie.repository import GitRepository
from gitgenie.utils import SubprocessHandler, console
from gitgenie.vault import CredentialVault, StorageLocation
from gitgenie.workflow import WorkflowContext, WorkflowOrchestrator

logger = logging.getLogger(__name__)

SUBCOMMANDS = ("commit", "config", "b", "s", "wt", "cl")
ROOT_FLAGS = ("-h", "--help", "--version")

BANNER_ASCII = r"""
   ____ _ _      ____            _
  / ___(_) |_   / ___| ___ _ __ (_) ___
 | |  _| | __| | |  _ / _ \ '_ \| |/ _ \
 | |_| | | |_  | |_| |  __/ | | | |  __/
  \____|_|\__|  \____|\___|_| |_|_|\___|

GitGenie - AI-Powered Git, Smart Commit Magic
"""

ONBOARDING = (
    "[bold green]Welcome to GitGenie![/bold green]\n"
    "[green]Try your first AI-powered commit:[/green]\n"
    "[magenta]   gg \"your changes\" --genie[/magenta]\n"
    "[yellow]⚡ Unlock Genie powers:[/yellow]\n"
    "   gg config <your_api_key>\n"
    "[cyan]Or just get started with a manual commit:[/cyan]\n"
    "[magenta]   gg \"your commit message\"[/magenta]\n"
    "[blue]📖 Docs & guide: https://gitgenie.vercel.app/[/blue]\n"
)


def create_banner_text() -> Text:
    banner = Text(BANNER_ASCII)
    for line in BANNER_ASCII.splitlines():
        if line.startswith("GitGenie"):
            banner.highlight_words([line], style="bold green")
        elif line.strip():
            banner.highlight_words([line], style="bold magenta")
    return banner


def determine_box_style() -> box.Box:
    return box.ASCII if sys.platform == "win32" else box.ROUNDED


def get_rich_banner() -> Panel:
    return Panel(create_banner_text(), box=determine_box_style(), border_style="cyan", title="GG")


def display_banner() -> None:
    console.print(get_rich_banner())
    console.print(ONBOARDING)


class BannerHelpAction(argparse.Action):
    """``-h/--help`` that shows the banner and onboarding before the usage."""

    def __init__(self, option_strings, dest=argparse.SUPPRESS, default=argparse.SUPPRESS, help=None):
        super().__init__(option_strings=option_strings, dest=dest, default=default, nargs=0, help=help)

    def __call__(self, parser, namespace, values, option_string=None):
        display_banner()
        parser.print_help()
        parser.exit()


def add_commit_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("description", help="What changed, used for the commit message")
    parser.add_argument("--type", dest="commit_type", metavar="TYPE",
                        help=f"Commit type ({', '.join(COMMIT_TYPES)})")
    parser.add_argument("--scope", default="", help="Commit scope")
    parser.add_argument("--genie", action="store_true", help="AI commit message")
    parser.add_argument("--osc", action="store_true", help="Open-source branch mode")
    parser.add_argument("--no-branch", dest="skip_branch", action="store_true",
                        help="Commit on main, skip the branch prompt")
    parser.add_argument("--push-to-main", dest="push_to_main", action="store_true",
                        help="Merge & push to main")
    parser.add_argument("--remote", metavar="URL", help="Set remote origin")


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")

    parser = argparse.ArgumentParser(
        prog="gg",
        description="GitGenie: AI-Powered Git Commit Workflow",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument("-h", "--help", action=BannerHelpAction, help="Show this help message and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    commit = subparsers.add_parser("commit", parents=[common], help="Commit changes with AI & smart options")
    add_commit_arguments(commit)
    commit.set_defaults(handler=run_commit)

    config = subparsers.add_parser("config", parents=[common],
                                   help="Save your Gemini API key for unlocking genie powers ✨")
    config.add_argument("apikey")
    config.set_defaults(handler=run_config)

    branch = subparsers.add_parser("b", parents=[common], help="Create & switch to new branch")
    branch.add_argument("branch")
    branch.set_defaults(handler=run_branch)

    switch = subparsers.add_parser("s", parents=[common], help="Switch to a branch")
    switch.add_argument("branch")
    switch.set_defaults(handler=run_switch)

    worktree = subparsers.add_parser("wt", parents=[common], help="Create Git worktree")
    worktree.add_argument("branch")
    worktree.add_argument("dir", nargs="?")
    worktree.set_defaults(handler=run_worktree)

    clone = subparsers.add_parser("cl", parents=[common], help="Clone repository")
    clone.add_argument("url")
    clone.add_argument("dir", nargs="?")
    clone.set_defaults(handler=run_clone)

    return parser


def normalize_argv(argv: List[str]) -> List[str]:
    """Treat ``gg "desc" [flags]`` as ``gg commit "desc" [flags]``."""
    if argv and argv[0] not in SUBCOMMANDS and argv[0] not in ROOT_FLAGS:
        return ["commit", *argv]
    return argv


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def request_from_args(args: argparse.Namespace) -> ChangeRequest:
    return ChangeRequest(
        description=args.description,
        commit_type=args.commit_type or None,
        scope=args.scope or "",
        use_ai=args.genie,
        open_source=args.osc,
        skip_branch_prompt=args.skip_branch,
        auto_push_to_main=args.push_to_main,
        remote_url=args.remote,
    )


def run_commit(args: argparse.Namespace) -> int:
    request = request_from_args(args)
    context = WorkflowContext(GitRepository(), ConsoleOperator(console), config=default_config, console=console)
    WorkflowOrchestrator(context).run(request)
    return 0


def run_config(args: argparse.Namespace) -> int:
    vault = CredentialVault(default_config, console=console)
    try:
        location = vault.persist_key(args.apikey)
    except (ValidationError, VaultError) as e:
        console.print("[red]Failed to save API key.[/red]")
        console.print(f"[yellow]{escape(str(e))}[/yellow]")
        return 1

    if location is StorageLocation.FILE:
        console.print(f"[dim]Stored encrypted in {default_config.config_file}[/dim]")
    console.print("[green]✨ Gemini API key saved successfully![/green]")
    return 0


def run_branch(args: argparse.Namespace) -> int:
    GitRepository().create_branch(args.branch)
    console.print(f"[green]Created & switched to \"{args.branch}\"[/green]")
    return 0


def run_switch(args: argparse.Namespace) -> int:
    GitRepository().checkout(args.branch)
    console.print(f"[green]Switched to \"{args.branch}\"[/green]")
    return 0


def run_worktree(args: argparse.Namespace) -> int:
    location = args.dir or args.branch
    GitRepository().add_worktree(location, args.branch)
    console.print(f"[green]Worktree created at \"{location}\"[/green]")
    return 0


def clone_target(url: str, directory: Optional[str] = None) -> str:
    """Directory a clone of ``url`` lands in."""
    if directory:
        return directory
    parts = [part for part in url.rstrip("/").split("/") if part]
    name = re.sub(r"\.git$", "", parts[-1], flags=re.IGNORECASE) if parts else ""
    return name or "repo"


def run_clone(args: argparse.Namespace) -> int:
    repository = GitRepository()
    try:
        with console.status("[bold blue]📥 Cloning repository...[/bold blue]"):
            repository.clone(args.url, args.dir)
    except GitCommandError as e:
        console.print("[red]✖ Failed to clone repository.[/red]")
        console.print(f"[red]{escape(str(e))}[/red]")
        console.print("[cyan]Tip: Ensure the URL is correct and you have access (SSH/HTTPS).[/cyan]")
        return 1

    target = clone_target(args.url, args.dir)
    console.print(f"[green]✔ Repository cloned to \"{target}\"[/green]")
    console.print("[cyan]Next steps:[/cyan]")
    console.print(f"[dim]  cd {target}[/dim]")
    console.print("[dim]  code .[/dim]")

    try:
        _, _, code = SubprocessHandler(cwd=repository.path / target).run_command(["code", "."])
    except OSError as e:
        logger.debug("Could not launch VS Code: %s", e)
        code = 1
    if code == 0:
        console.print(f"[green]✔ Opened \"{target}\" in VS Code[/green]")
    else:
        console.print("[yellow]⚠ Could not open VS Code automatically.[/yellow]")
        console.print("[cyan]Tip: Ensure the \"code\" command is on your PATH.[/cyan]")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    argv = list(sys.argv[1:] if argv is None else argv)
    load_dotenv()

    if not argv:
        try:
            return open_palette(ConsoleOperator(console), main, console)
        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user[/yellow]")
            return 130

    parser = create_argument_parser()
    try:
        args = parser.parse_args(normalize_argv(argv))
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 0

    verbose = getattr(args, "verbose", False)
    configure_logging(verbose)

    try:
        return args.handler(args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 130
    except WorkflowAborted as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if e.remedy:
            console.print(f"[cyan]Try: {escape(e.remedy)}[/cyan]")
        return 1
    except (GitGenieError, OSError) as e:
        if verbose:
            raise
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        console.print("[yellow]Tip: Review the error above and try the suggested command.[/yellow]")
        console.print("[cyan]To get help: gg --help[/cyan]")
        return 1


def main_cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    main_cli()

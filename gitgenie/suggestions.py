"""AI suggestions for commit messages, branch names and PR titles.

Every suggestion has a deterministic manual formula. The AI is asked once;
anything other than a usable answer (AI off, no key, provider error, empty
or malformed text) yields the manual value instead.
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Optional, Tuple

import g4f  # type: ignore
from g4f.client import Client  # type: ignore
from rich.console import Console

from gitgenie.config import Config, default_config
from gitgenie.utils import console as default_console
from gitgenie.utils import slugify, strict_slugify, utc_today

logger = logging.getLogger(__name__)


class SuggestionKind(Enum):
    COMMIT_MESSAGE = "commit message"
    BRANCH_NAME = "branch name"
    PR_TITLE = "PR title"


@dataclass(frozen=True)
class SuggestionConstraints:
    max_length: int
    case: str
    charset: str
    rules: Tuple[str, ...] = ()

    def as_requirements(self) -> str:
        lines = [
            f"- Keep under {self.max_length} characters",
            f"- Use {self.case}",
            f"- Allowed characters: {self.charset}",
            *(f"- {rule}" for rule in self.rules),
        ]
        return "\n".join(lines)


COMMIT_MESSAGE_CONSTRAINTS = SuggestionConstraints(
    max_length=72,
    case="lowercase for the first letter of the description",
    charset="any printable characters, no trailing period",
    rules=(
        "Follow Conventional Commits specification exactly",
        "Format: type(scope): description",
        "Description must be under 50 characters",
        "Use imperative mood (add, fix, update, not adds, fixes, updates)",
        "Choose appropriate type: feat, fix, docs, style, refactor, test, chore, ci, build, perf",
        "Include scope when relevant (component/module/area affected)",
    ),
)

BRANCH_NAME_CONSTRAINTS = SuggestionConstraints(
    max_length=40,
    case="kebab-case (dashes between words)",
    charset="lowercase letters, digits, dashes and a single forward slash",
    rules=(
        "Follow git branch naming conventions",
        "Format: type/short-descriptive-name",
        "Use appropriate type: feature, fix, hotfix, chore, docs, style, refactor, test",
        "Focus on what the change accomplishes",
    ),
)

PR_TITLE_CONSTRAINTS = SuggestionConstraints(
    max_length=72,
    case="sentence case",
    charset="any printable characters, no trailing period",
    rules=(
        "Clear, descriptive title that summarizes the changes",
        "Start with action verb (Add, Fix, Update, Implement, etc.)",
        "Be specific about the feature/fix being introduced",
    ),
)

_PREAMBLES = {
    SuggestionKind.COMMIT_MESSAGE: (
        "You are a senior software engineer at a Fortune 500 company. "
        "Generate a professional git commit message following strict industry standards."
    ),
    SuggestionKind.BRANCH_NAME: (
        "You are a senior software engineer. "
        "Generate a professional git branch name following industry best practices."
    ),
    SuggestionKind.PR_TITLE: (
        "You are a senior software engineer at a Fortune 500 company. "
        "Generate a professional Pull Request title following industry best practices."
    ),
}

_EXAMPLES = {
    SuggestionKind.BRANCH_NAME: "Example format: feature/user-authentication or fix/login-validation",
}


@dataclass(frozen=True)
class SuggestionRequest:
    diff_text: str
    kind: SuggestionKind
    constraints: SuggestionConstraints
    description: str = ""

    def build_prompt(self) -> str:
        parts = [
            "REQUIREMENTS:",
            self.constraints.as_requirements(),
            "",
            "Code diff to analyze:",
            self.diff_text,
        ]
        if self.description:
            parts += ["", f"Description provided: {self.description}"]
        parts += ["", f"Return ONLY the {self.kind.value}, no explanations or quotes."]
        if self.kind in _EXAMPLES:
            parts.append(_EXAMPLES[self.kind])
        return "\n".join(parts)


def manual_commit_message(commit_type: str, scope: str, description: str) -> str:
    """``type(scope): description``, without the scope segment when empty."""
    scope_part = f"({scope})" if scope else ""
    return f"{commit_type}{scope_part}: {description}"


def manual_branch_name(commit_type: str, description: str, day: date) -> str:
    return f"{commit_type}/{slugify(description)}-{day.isoformat()}"


class SuggestionGenerator:
    """Produces suggestions for one run; never raises to the caller."""

    def __init__(self, credential: Callable[[], Optional[str]], use_ai: bool,
                 config: Config = default_config, console: Optional[Console] = None,
                 client_factory: Callable[..., Client] = Client,
                 today: Callable[[], date] = utc_today) -> None:
        """Initialize the generator.

        Args:
            credential: Returns the API key, or None when none is configured.
            use_ai: Whether the operator asked for AI suggestions at all.
            config: Provider, model and branch length settings.
            console: Console for spinners and warnings.
            client_factory: Builds the g4f client from an ``api_key``.
            today: Date used by the manual branch name formula.
        """
        self.credential = credential
        self.use_ai = use_ai
        self.config = config
        self.console = console or default_console
        self.client_factory = client_factory
        self.today = today

    def suggest(self, request: SuggestionRequest, fallback: str) -> str:
        """Return the AI suggestion for ``request``, or ``fallback``."""
        if not self.use_ai:
            return fallback

        api_key = self.credential()
        if not api_key:
            self._warn_missing_key(request.kind)
            return fallback

        suggestion = self._attempt_ai(request, api_key)
        if suggestion is None or not self._is_acceptable(request.kind, suggestion):
            return fallback
        return suggestion

    def commit_message(self, diff_text: str, commit_type: str, scope: str, description: str) -> str:
        request = SuggestionRequest(diff_text, SuggestionKind.COMMIT_MESSAGE, COMMIT_MESSAGE_CONSTRAINTS)
        return self.suggest(request, manual_commit_message(commit_type, scope, description))

    def pr_title(self, diff_text: str, commit_type: str, scope: str, description: str) -> str:
        request = SuggestionRequest(diff_text, SuggestionKind.PR_TITLE, PR_TITLE_CONSTRAINTS)
        return self.suggest(request, manual_commit_message(commit_type, scope, description))

    def branch_name(self, diff_text: str, commit_type: str, description: str) -> str:
        request = SuggestionRequest(
            diff_text or description, SuggestionKind.BRANCH_NAME, BRANCH_NAME_CONSTRAINTS, description
        )
        return self.suggest(request, manual_branch_name(commit_type, description, self.today()))

    def issue_short_title(self, diff_text: str, commit_type: str, description: str) -> str:
        """Short title for an open-source ``type/#issue-title`` branch."""
        if not self.use_ai:
            return strict_slugify(description)
        name = self.branch_name(diff_text, commit_type, description)
        return name.split("/", 1)[1] if "/" in name else name

    def _attempt_ai(self, request: SuggestionRequest, api_key: str) -> Optional[str]:
        label = request.kind.value
        try:
            with self.console.status(f"[bold blue]🧞 Generating {label} with genie...[/bold blue]"):
                client = self.client_factory(api_key=api_key, provider=self._provider())
                response = client.chat.completions.create(
                    model=self.config.model,
                    messages=[
                        {"role": "system", "content": _PREAMBLES[request.kind]},
                        {"role": "user", "content": request.build_prompt()},
                    ],
                )
                text = response.choices[0].message.content if response and response.choices else None
        except Exception as e:
            logger.debug("AI %s generation failed", label, exc_info=True)
            self.console.print(f"[red]AI {label} generation failed. Using manual {label} instead.[/red]")
            self.console.print(f"[red]Error from AI provider:[/red] {e}")
            self.console.print("[yellow]Tip: Check your API key and network connection.[/yellow]")
            self.console.print("[cyan]To set your API key: gg config <your_api_key>[/cyan]")
            return None

        text = (text or "").strip()
        if not text:
            logger.debug("AI returned an empty %s", label)
            return None
        self.console.print(f"[green]✔ {label.capitalize()} generated by genie[/green]")
        return text

    def _is_acceptable(self, kind: SuggestionKind, text: str) -> bool:
        if kind is SuggestionKind.BRANCH_NAME:
            valid = "/" in text and len(text) <= self.config.branch_name_max_length
            if not valid:
                logger.debug("Discarding AI branch name %r", text)
            return valid
        return True

    def _provider(self):
        return getattr(g4f.Provider, self.config.provider, None)

    def _warn_missing_key(self, kind: SuggestionKind) -> None:
        self.console.print(
            f"[yellow]⚠ {self.config.env_var} not found. Falling back to manual {kind.value}.[/yellow]"
        )
        self.console.print("[cyan]To enable AI suggestions, set your API key:[/cyan]")
        self.console.print("[dim]Example: gg config <your_api_key>[/dim]")

"""Operator prompts.

The workflow only needs three kinds of questions: pick one of several
options, type some text, and answer yes or no. ``ConsoleOperator`` asks them
on the terminal with ``rich.prompt``; tests substitute a scripted operator.
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.prompt import Confirm, IntPrompt, Prompt

from gitgenie.utils import console as default_console

# A validator returns an error message, or None when the answer is fine.
Validator = Callable[[str], Optional[str]]


class Operator(ABC):
    """Asks the person at the keyboard a question and returns the answer."""

    @abstractmethod
    def select(self, message: str, choices: Sequence[Tuple[str, str]]) -> str:
        """Return the value of the chosen ``(label, value)`` pair."""

    @abstractmethod
    def ask(self, message: str, default: Optional[str] = None,
            validate: Optional[Validator] = None) -> str:
        """Return free text typed by the operator."""

    @abstractmethod
    def confirm(self, message: str, default: bool = True) -> bool:
        """Return the operator's yes/no answer."""


class ConsoleOperator(Operator):
    """Terminal implementation backed by ``rich.prompt``."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or default_console

    def select(self, message: str, choices: Sequence[Tuple[str, str]]) -> str:
        self.console.print(f"[bold magenta]?[/bold magenta] {message}")
        for index, (label, _) in enumerate(choices, start=1):
            self.console.print(f"  [cyan]{index}[/cyan]) {label}")
        numbers: List[str] = [str(i) for i in range(1, len(choices) + 1)]
        picked = IntPrompt.ask("Choose", choices=numbers, default=1, console=self.console)
        return choices[picked - 1][1]

    def ask(self, message: str, default: Optional[str] = None,
            validate: Optional[Validator] = None) -> str:
        while True:
            if default is None:
                answer = Prompt.ask(message, console=self.console)
            else:
                answer = Prompt.ask(message, default=default, console=self.console)
            error = validate(answer) if validate else None
            if error is None:
                return answer
            self.console.print(f"[red]{error}[/red]")

    def confirm(self, message: str, default: bool = True) -> bool:
        return Confirm.ask(message, default=default, console=self.console)

import io
from pathlib import Path
from typing import Generator, List, Optional
from unittest.mock import MagicMock

import git
import pytest
from keyring.errors import KeyringError
from rich.console import Console

from gitgenie.config import Config
from gitgenie.prompts import Operator
from gitgenie.repository import GitRepository


class ScriptedOperator(Operator):
    """Answers prompts from pre-recorded lists, in order.

    An answer of ``None`` accepts the prompt's default. Running out of
    answers raises IndexError, which flags an unexpected prompt.
    """

    def __init__(self, selects: Optional[List[str]] = None, answers: Optional[List[Optional[str]]] = None,
                 confirms: Optional[List[bool]] = None) -> None:
        self.selects = list(selects or [])
        self.answers = list(answers or [])
        self.confirms = list(confirms or [])
        self.questions: List[str] = []

    def select(self, message, choices):
        self.questions.append(message)
        return self.selects.pop(0)

    def ask(self, message, default=None, validate=None):
        self.questions.append(message)
        while True:
            answer = self.answers.pop(0)
            if answer is None:
                answer = default or ""
            if validate is None or validate(answer) is None:
                return answer

    def confirm(self, message, default=True):
        self.questions.append(message)
        return self.confirms.pop(0)


class FakeKeyring:
    """In-memory stand-in for the keyring module."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.store = {}

    def get_password(self, service, account):
        if self.fail:
            raise KeyringError("No recommended backend was available")
        return self.store.get((service, account))

    def set_password(self, service, account, value):
        if self.fail:
            raise KeyringError("No recommended backend was available")
        self.store[(service, account)] = value


@pytest.fixture(autouse=True)
def clean_api_key_env(monkeypatch):
    """Keep a developer's real API key out of the tests."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(config_dir=tmp_path / ".gitgenie")


@pytest.fixture
def record_console() -> Console:
    """Console writing plain text to a buffer; read it with ``.file.getvalue()``."""
    return Console(file=io.StringIO(), force_terminal=False, width=200, color_system=None)


@pytest.fixture
def make_operator():
    return ScriptedOperator


@pytest.fixture
def fake_keyring() -> FakeKeyring:
    return FakeKeyring()


@pytest.fixture
def broken_keyring() -> FakeKeyring:
    return FakeKeyring(fail=True)


@pytest.fixture
def mock_repository():
    """GitRepository double: an existing repo with history, on main, with origin."""
    repository = MagicMock(spec=GitRepository)
    repository.is_repository.return_value = True
    repository.has_commits.return_value = True
    repository.current_branch.return_value = "main"
    repository.has_remote.return_value = True
    repository.diff.return_value = ""
    return repository


@pytest.fixture
def stage_diffs():
    """Make ``diff(cached=True)`` return ``staged`` in turn and ``diff()`` return ``working``."""
    def _stage(repository: MagicMock, staged: List[str], working: str = "") -> None:
        remaining = iter(staged)
        repository.diff.side_effect = lambda cached=False: next(remaining) if cached else working
    return _stage


@pytest.fixture
def temp_git_repo(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a temporary Git repository with a committer identity."""
    repo_dir = tmp_path / "repo"
    repo_dir.mkdir()
    repo = git.Repo.init(repo_dir)

    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")

    yield repo_dir
    repo.close()


@pytest.fixture
def repo_with_commit(temp_git_repo: Path) -> git.Repo:
    """Repository with one commit on ``main``."""
    repo = git.Repo(temp_git_repo)
    readme = temp_git_repo / "README.md"
    readme.write_text("# Sample\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")
    repo.git.checkout("-B", "main")
    return repo

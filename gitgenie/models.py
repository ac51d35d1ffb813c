"""Data carried through a commit run.

A ``ChangeRequest`` enters the workflow and is progressively turned into a
``CommitPlan``: where to commit, with which message, and what to push.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from gitgenie.exceptions import ValidationError


@dataclass(frozen=True)
class ChangeRequest:
    """What the operator asked for, straight from the CLI or the palette."""
    description: str
    commit_type: Optional[str] = None
    scope: str = ""
    use_ai: bool = False
    open_source: bool = False
    skip_branch_prompt: bool = False
    auto_push_to_main: bool = False
    remote_url: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.description, str) or not self.description.strip():
            raise ValidationError("Commit description must be a non-empty string")


@dataclass(frozen=True)
class RepositorySnapshot:
    is_repository: bool
    has_commits: bool
    current_branch: str


class BranchTarget(Enum):
    MAIN = "main"
    CURRENT = "current"
    NEW = "new"


@dataclass(frozen=True)
class BranchDecision:
    """Where the commit lands. Build it with the ``to_*`` constructors."""
    target: BranchTarget
    name: str

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValidationError("Branch name cannot be empty")

    @classmethod
    def to_main(cls, name: str = "main") -> "BranchDecision":
        return cls(BranchTarget.MAIN, name)

    @classmethod
    def to_current(cls, name: str) -> "BranchDecision":
        return cls(BranchTarget.CURRENT, name)

    @classmethod
    def to_new(cls, name: str) -> "BranchDecision":
        return cls(BranchTarget.NEW, name)


class PushChoice(Enum):
    NO = "no"
    PUSH_ONLY = "push"
    PUSH_AND_MERGE = "push_and_merge"


@dataclass
class CommitPlan:
    """Filled in step by step by the orchestrator."""
    branch_decision: Optional[BranchDecision] = None
    commit_message: Optional[str] = None
    push_choice: PushChoice = PushChoice.NO

    @property
    def branch_name(self) -> Optional[str]:
        return self.branch_decision.name if self.branch_decision else None

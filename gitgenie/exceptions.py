"""Exception hierarchy for GitGenie.

Validation errors are raised before any side effect. Collaborator errors
(git, keyring, AI) either have a fallback or surface as warnings. Errors
deriving from ``WorkflowAborted`` end the run with a non-zero exit code.
"""

from typing import List, Optional


class GitGenieError(Exception):
    """Base class for all GitGenie errors."""


class ValidationError(GitGenieError, ValueError):
    """Rejected input: empty text, malformed arguments."""


class GitCommandError(GitGenieError):
    """A git invocation exited with a non-zero status."""

    def __init__(self, command: List[str], returncode: int, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = self.stderr or f"exit status {returncode}"
        super().__init__(f"`{' '.join(command)}` failed: {detail}")


class VaultError(GitGenieError):
    """Credential storage failure."""


class CorruptedDataError(VaultError):
    """The encrypted blob does not have the ``ivHex:cipherHex`` shape."""


class DecryptionError(VaultError):
    """The blob is well formed but could not be decrypted with the key."""


class WorkflowAborted(GitGenieError):
    """Terminal failure of a run.

    Attributes:
        remedy: Suggested command for the operator, if any.
    """

    def __init__(self, message: str, remedy: Optional[str] = None) -> None:
        super().__init__(message)
        self.remedy = remedy


class RepositoryInitError(WorkflowAborted):
    """No repository exists and one could not be initialized."""


class NothingToCommitError(WorkflowAborted):
    """The staged diff is still empty after staging everything."""


class MergeAborted(WorkflowAborted):
    """A fatal step of the merge-to-main sequence failed."""


class PushFailed(WorkflowAborted):
    """Every push attempt failed."""

"""
GitGenie: AI-Powered Git Commit Workflow

Key Features:
    - Initializes a repository and wires up the "origin" remote when needed
    - Interactive branch selection, including open-source issue branches
    - Automatic commit type detection from the staged diff
    - Optional AI-generated commit messages, branch names and PR titles
    - Push with retry, merge to main and branch cleanup
    - API key stored in the system keyring or in an encrypted config file

Usage:
    $ gg "add login form" --genie
    $ gg config <your_api_key>
    $ gg

    Running without arguments opens the interactive command palette.
"""

__version__ = "1.0.0"
__author__ = ""

from .models import ChangeRequest, CommitPlan
from .workflow import WorkflowContext, WorkflowOrchestrator

__all__ = [
    "ChangeRequest",
    "CommitPlan",
    "WorkflowContext",
    "WorkflowOrchestrator",
    "__version__",
    "__author__",
]

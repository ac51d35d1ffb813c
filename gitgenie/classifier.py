"""Heuristic commit type detection from a staged diff.

A plain priority list, first match wins: file path patterns first, then
keywords in the diff body, then the ``feat`` default.
"""

import re
from typing import List, Tuple

DEFAULT_TYPE = "feat"

FIX_KEYWORDS = ("fix", "bug", "error", "issue", "resolve", "patch")
FEAT_KEYWORDS = ("add", "implement", "feature", "new", "create")

# (pattern over the changed paths, commit type), in priority order
PATH_RULES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"\.md", re.IGNORECASE), "docs"),
    (re.compile(r"package\.json|pnpm-lock|yarn\.lock|config|\.env", re.IGNORECASE), "chore"),
    (re.compile(r"\.test\.|\.spec\.", re.IGNORECASE), "test"),
    (re.compile(r"\.css|\.scss|\.tailwind\.", re.IGNORECASE), "style"),
]

_FILE_HEADER = "diff --git"


def changed_paths(diff_text: str) -> List[str]:
    """Return the ``a/... b/...`` part of every per-file diff header."""
    return [
        line[len(_FILE_HEADER):].strip()
        for line in diff_text.splitlines()
        if line.startswith(_FILE_HEADER)
    ]


def classify(diff_text: str) -> str:
    """Map a staged diff to a conventional commit type."""
    if not diff_text:
        return DEFAULT_TYPE

    files = "\n".join(changed_paths(diff_text))
    for pattern, commit_type in PATH_RULES:
        if pattern.search(files):
            return commit_type

    lowered = diff_text.lower()
    if any(word in lowered for word in FIX_KEYWORDS):
        return "fix"
    if any(word in lowered for word in FEAT_KEYWORDS):
        return "feat"
    return DEFAULT_TYPE

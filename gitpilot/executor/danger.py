"""Advisory detection of destructive git and shell commands.

A match only triggers an extra confirmation; it never blocks execution.
"""

import re

# Ordered (pattern, description) rules. The first match wins.
DANGEROUS_PATTERNS: list[tuple[str, str]] = [
    (r"\bgit\s+reset\s+(?:.*\s)?--hard\b", "hard reset discards uncommitted work"),
    (r"\bgit\s+clean\s+(?:.*\s)?(?:-[a-zA-Z]*f|--force\b)", "forced clean deletes untracked files"),
    (r"\bgit\s+push\s+(?:.*\s)?(?:--force\b|--force-with-lease\b|-f\b)", "forced push rewrites remote history"),
    (r"\bgit\s+rebase\s+(?:.*\s)?(?:--interactive\b|-i\b)", "interactive rebase rewrites history"),
    (r"\bgit\s+branch\s+(?:.*\s)?-D\b", "forced branch deletion"),
    (r"\bgit\s+tag\s+(?:.*\s)?-d\b", "tag deletion"),
    # Recursive and force flags in any order, combined (-rfv, -Rf) or separate (-r -f)
    (
        r"\brm(?=(?:\s+\S+)*?\s+(?:-[a-zA-Z]*[rR]|--recursive\b))(?=(?:\s+\S+)*?\s+(?:-[a-zA-Z]*f|--force\b))",
        "recursive forced delete",
    ),
    (r"\bgit\s+filter-(?:branch|repo)\b", "history filtering rewrites every commit"),
]

_COMPILED = [(re.compile(pattern), description) for pattern, description in DANGEROUS_PATTERNS]


def find_danger(command: str) -> str | None:
    """Return the description of the first rule the command matches."""
    for pattern, description in _COMPILED:
        if pattern.search(command):
            return description
    return None


def is_dangerous(command: str) -> bool:
    return find_danger(command) is not None

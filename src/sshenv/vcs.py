"""Normalization of revision markers into short version ids."""

import re


GIT_COMMIT = re.compile(r"^\s*commit\s+([0-9a-fA-F]+)", re.MULTILINE)
SVN_REVISION = re.compile(r"^\s*Revision:\s*(\d+)", re.MULTILINE)


def parse_version_id(raw: str) -> str:
    """
    Extract a version id from a revision marker.

    Args:
        raw: Marker text, e.g. the output of ``git log -1`` or ``svn info``

    Returns:
        Commit hash for git markers, ``r<n>`` for svn markers, otherwise the
        first non-blank line

    Examples:
        "commit 3f2a9c1\\nAuthor: ..." -> "3f2a9c1"
        "Revision: 1234" -> "r1234"
    """
    raw = raw or ""

    match = GIT_COMMIT.search(raw)
    if match:
        return match.group(1)

    match = SVN_REVISION.search(raw)
    if match:
        return f"r{match.group(1)}"

    for line in raw.splitlines():
        if line.strip():
            return line.strip()
    return ""

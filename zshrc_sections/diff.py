"""Line diffs and previews of document changes."""

from __future__ import annotations

import difflib
from dataclasses import dataclass

from .lines import split_lines

DEFAULT_CONTEXT_LINES = 3
DEFAULT_PREVIEW_LINES = 20


@dataclass(frozen=True)
class DiffResult:
    """Line-level comparison of two versions of a document.

    Attributes:
        additions: Lines present only in the new version.
        deletions: Lines present only in the old version.
        text: Unified diff, empty when nothing changed.
    """

    additions: int
    deletions: int
    text: str

    @property
    def has_changes(self) -> bool:
        return bool(self.additions or self.deletions)

    @property
    def summary(self) -> str:
        added = "addition" if self.additions == 1 else "additions"
        removed = "deletion" if self.deletions == 1 else "deletions"
        return f"{self.additions} {added}, {self.deletions} {removed}"


def compute_diff(
    original: str,
    modified: str,
    context_lines: int = DEFAULT_CONTEXT_LINES,
    fromfile: str = "before",
    tofile: str = "after",
) -> DiffResult:
    """Compare two documents line by line.

    Line terminators are ignored, so a CRLF document compares equal to the
    same text with LF endings.

    Examples:
        compute_diff("a\\nb\\n", "a\\nc\\n").summary  # "1 addition, 1 deletion"
    """
    old_lines = split_lines(original)
    new_lines = split_lines(modified)

    additions = deletions = 0
    matcher = difflib.SequenceMatcher(a=old_lines, b=new_lines, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag in ("replace", "delete"):
            deletions += i2 - i1
        if tag in ("replace", "insert"):
            additions += j2 - j1

    text = "\n".join(
        difflib.unified_diff(
            old_lines, new_lines, fromfile=fromfile, tofile=tofile, n=context_lines, lineterm=""
        )
    )
    return DiffResult(additions=additions, deletions=deletions, text=text)


def generate_preview(original: str, modified: str, max_lines: int = DEFAULT_PREVIEW_LINES) -> str:
    """Show the first `max_lines` lines of `modified`, if it differs from `original`."""
    if not compute_diff(original, modified).has_changes:
        return "No changes to preview."

    lines = split_lines(modified)
    shown = lines[:max_lines]
    if len(lines) > max_lines:
        shown.append(f"... ({len(lines) - max_lines} more lines)")
    return "\n".join(shown)

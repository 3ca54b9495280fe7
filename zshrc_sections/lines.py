"""Line splitting helpers shared by the parser and the writer."""

from __future__ import annotations


def split_lines(text: str) -> list[str]:
    """Split document text into lines without their terminators.

    Only ``\\n`` separates lines; a trailing ``\\r`` is removed from each line.
    A final newline does not open an extra empty line, so
    ``split_lines("a\\nb\\n")`` and ``split_lines("a\\nb")`` both return
    ``["a", "b"]``.

    Examples:
        split_lines("")  # []
        split_lines("\\n")  # [""]
    """
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def detect_newline(text: str) -> str:
    """Return the line terminator used by `text`, defaulting to ``\\n``."""
    return "\r\n" if "\r\n" in text else "\n"


def join_lines(lines: list[str], trailing_newline: bool = True, newline: str = "\n") -> str:
    """Join lines produced by `split_lines` back into document text."""
    if not lines:
        return ""
    text = newline.join(lines)
    return f"{text}{newline}" if trailing_newline else text


def is_blank(line: str) -> bool:
    return not line.strip()


def is_comment(line: str) -> bool:
    return line.lstrip().startswith("#")

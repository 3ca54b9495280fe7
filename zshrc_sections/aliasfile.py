"""Reading alias definitions out of plugin and dotfile snippets."""

from __future__ import annotations

import logging
import re

from .models import AliasDefinition
from .patterns import decode_shell_word

logger = logging.getLogger(__name__)

ALIAS_DEFINITION_PATTERN = re.compile(r"^alias\s+(?:-[gsS]\s+)?(?P<name>[A-Za-z0-9_.:-]+)=(?P<value>.+)$")
DESCRIPTION_PATTERN = re.compile(r"^#\s*(?:Description|Desc):\s*(?P<text>.+)$", re.IGNORECASE)
METADATA_PATTERN = re.compile(r"^#\s*(?:Author|Maintainer|Version|License|Copyright)", re.IGNORECASE)
COMMENT_LEAD = re.compile(r"^#+\s*")

HEADER_SCAN_LINES = 20
MIN_DESCRIPTION_LENGTH = 11
MAX_DESCRIPTION_LENGTH = 199


def parse_alias_file(text: str) -> list[AliasDefinition]:
    """Extract alias definitions from a shell snippet.

    A comment directly above an alias (blank lines in between are allowed)
    becomes its description. Any other statement clears the pending comment.
    Shebang lines are ignored, and so are aliases whose value cannot be
    decoded to a single shell word.

    Examples:
        parse_alias_file("# status\\nalias gst='git status'\\n")
        # [AliasDefinition(name="gst", value="git status", description="status")]
    """
    aliases: list[AliasDefinition] = []
    last_comment = ""

    for raw_line in text.split("\n"):
        line = raw_line.strip()

        if line.startswith("#") and not line.startswith("#!"):
            last_comment = COMMENT_LEAD.sub("", line, count=1).strip()
            continue
        if not line:
            continue

        match = ALIAS_DEFINITION_PATTERN.match(line)
        if match:
            value = decode_shell_word(match.group("value"))
            if value is None:
                logger.debug("Skipping alias with undecodable value: %s", line)
            else:
                aliases.append(
                    AliasDefinition(
                        name=match.group("name"),
                        value=value,
                        description=last_comment or None,
                    )
                )
        last_comment = ""

    return aliases


def extract_description(text: str) -> str | None:
    """Find a one-line description in the header of a plugin file.

    An explicit ``# Description: ...`` line wins. Otherwise the first
    ordinary comment of reasonable length is used; shebangs, ``# -`` rulers
    and author/version/license lines are skipped.
    """
    header = text.split("\n")[:HEADER_SCAN_LINES]

    for line in header:
        match = DESCRIPTION_PATTERN.match(line)
        if match:
            return match.group("text").strip()

    for line in header:
        stripped = line.strip()
        if (
            not stripped.startswith("#")
            or stripped.startswith("#!")
            or stripped.startswith("# -")
            or METADATA_PATTERN.match(stripped)
        ):
            continue
        comment = COMMENT_LEAD.sub("", stripped, count=1).strip()
        if MIN_DESCRIPTION_LENGTH <= len(comment) <= MAX_DESCRIPTION_LENGTH:
            return comment

    return None

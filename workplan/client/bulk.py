"""Clipboard bulk-paste parsing: one task title per non-blank line."""

import re
from typing import List

# "- ", "* ", "+ ", "• ", "1. ", "1) ", "(1) ", then an optional "[ ]" / "[x]"
LIST_MARKER = re.compile(
    r"""^(?:
        [-*+•](?:\s+|$)
      | \(?\d+[.)](?:\s+|$)
    )?
    (?:\[[ xX]?\](?:\s+|$))?""",
    re.VERBOSE,
)


def strip_marker(line: str) -> str:
    line = line.strip()
    return LIST_MARKER.sub("", line, count=1).strip()


def parse_bulk_text(text: str) -> List[str]:
    """Titles found in pasted text, in order.

    >>> parse_bulk_text("- one\\n2) two\\nthree")
    ['one', 'two', 'three']
    """
    titles = []
    for line in (text or "").splitlines():
        title = strip_marker(line)
        if title:
            titles.append(title)
    return titles

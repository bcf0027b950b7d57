"""
Escape decoding for scanner match-context strings.

The scanner serializes the text surrounding a match with C-style and
regex-style escapes. Replacements run in a fixed order: a literal
backslash must be resolved before metacharacter unescaping runs.
"""

import re


_ORDERED_REPLACEMENTS: tuple[tuple[str, str], ...] = (
    ("\\r\\n", "\n"),
    ("\\n", "\n"),
    ("\\r", "\n"),
    ("\\t", "\t"),
    ("\\ ", " "),
    ('\\"', '"'),
    ("\\\\", "\\"),
)

_REGEX_META_ESCAPE: re.Pattern[str] = re.compile(r"\\([\[\](){}.*+?^$|#<>])")

_BLANK_LINES: re.Pattern[str] = re.compile(r"\n\s*\n")


def decode_match_context(raw: str) -> str:
    """
    Decode an escaped match-context string.

    Args:
        raw: Text as written by the scanner

    Returns:
        Decoded text with blank lines collapsed and outer whitespace trimmed
    """
    if not raw:
        return ""

    decoded: str = raw
    for escaped, literal in _ORDERED_REPLACEMENTS:
        decoded = decoded.replace(escaped, literal)

    decoded = _REGEX_META_ESCAPE.sub(r"\1", decoded)

    # A run like "\n \n \n" needs repeated passes since matches can't overlap
    previous: str = ""
    while previous != decoded:
        previous = decoded
        decoded = _BLANK_LINES.sub("\n", decoded)

    return decoded.strip()

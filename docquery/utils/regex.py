"""
Regex flag letters, as written after ``/pattern/`` in query documents.
"""

import re


REGEX_FLAGS = (
    (re.IGNORECASE, "i"),
    (re.MULTILINE, "m"),
    (re.DOTALL, "s"),
    (re.VERBOSE, "x"),
)


def flag_letters(pattern: "re.Pattern") -> str:
    """Letters for the flags set on a compiled pattern, e.g. ``"im"``."""
    return "".join(letter for flag, letter in REGEX_FLAGS if pattern.flags & flag)


def compile_with_letters(pattern: str, letters: str = "") -> "re.Pattern":
    """
    Compile ``pattern`` with the flags named by ``letters``.

    Raises:
        ValueError: On a letter outside ``imsx``
        re.error: If the pattern does not compile
    """
    known = {letter: flag for flag, letter in REGEX_FLAGS}
    flags = 0
    for letter in letters:
        if letter not in known:
            raise ValueError(f"Unknown regex flag: {letter!r}")
        flags |= known[letter]
    return re.compile(pattern, flags)

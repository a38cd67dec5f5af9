# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Escaping for path keys embedded in dump files.

Keys are written on a single line, so newlines, carriage returns and the
escape character itself are written as two-character sequences:

    newline          -> \\n
    carriage return  -> \\r
    backslash        -> \\\\
"""

import re

_ESCAPE_SEQUENCE = re.compile(r"\\([\\nr])")
_UNESCAPED = {"\\": "\\", "n": "\n", "r": "\r"}


def unescape_key(raw: str) -> str:
    """
    Turn a key as read from a "+" line back into its original text.

    Escape sequences are consumed left to right, so a doubled backslash is
    collapsed before the character after it is looked at. A literal "\\n"
    that was escaped to "\\\\n" therefore comes back as backslash + "n",
    never as a newline. Unknown sequences are left as they are.

    Examples:
        >>> unescape_key(r"SELECT 1\\nFROM dual")
        'SELECT 1\\nFROM dual'
        >>> unescape_key(r"C:\\\\new")
        'C:\\\\new'
    """
    if "\\" not in raw:
        return raw
    return _ESCAPE_SEQUENCE.sub(lambda m: _UNESCAPED[m.group(1)], raw)


def escape_key(text: str) -> str:
    """Escape a key for writing on a "+" line. Inverse of unescape_key."""
    return text.replace("\\", "\\\\").replace("\n", "\\n").replace("\r", "\\r")

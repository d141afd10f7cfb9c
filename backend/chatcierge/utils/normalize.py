"""
Text normalization utilities.

Prompts and embedding inputs are written as indented multi-line strings and
collapsed before they are sent to the provider. Generated fragments are
cleaned before they are appended to a slot buffer.
"""

import re
import textwrap

_LINE_BREAKS = re.compile(r"(?:\n\s*)+")
# Literal backslash-n sequences (two characters), not real newlines
_ESCAPED_NEWLINE = re.compile(r"\\n")


def strip_indent(text: str) -> str:
    """Remove the common leading indentation and surrounding blank space."""
    return textwrap.dedent(text).strip()


def one_line(text: str) -> str:
    """Collapse every line break (and the indentation after it) into one space.

    Examples:
        >>> one_line("Context\\n   -------\\n   Hotel")
        'Context ------- Hotel'
    """
    return _LINE_BREAKS.sub(" ", text).strip()


def embedding_input(text: str) -> str:
    """Prepare free text for the embedding endpoint: no newlines, single line."""
    return one_line(strip_indent(text.replace("\n", "")))


def strip_escaped_newlines(text: str) -> str:
    return _ESCAPED_NEWLINE.sub("", text)


def is_newline_only(text: str) -> bool:
    """True for fragments made of nothing but newline characters (or empty)."""
    return text.strip("\r\n") == ""

"""
Name normalization for partner identity.

The directory lists people either as "Last, First" or as "First Last".
Both forms must map to the same identity key, otherwise a partner whose
entry flips format between two runs would show up as both "left" and
"joined".
"""
import re

NAME_SEPARATOR = ', '

_WHITESPACE_RE = re.compile(r'\s+')


def normalize_name(raw_name):
    """
    Return the canonical "First Last" form of a scraped name.

    An empty string means the name could not be parsed and the entry
    must be discarded by the caller.

    >>> normalize_name("Smith, John")
    'John Smith'
    >>> normalize_name("A, B, C")
    ''
    """
    if not raw_name:
        return ''

    name = raw_name.strip()
    parts = name.split(NAME_SEPARATOR)

    if len(parts) == 2:
        name = f"{parts[1].strip()} {parts[0].strip()}"
    elif len(parts) > 2:
        # "Smith, John, Jr" style names are ambiguous
        return ''

    return name.strip()


def name_without_spaces(display_name):
    """Filesystem/URL-safe token derived from a display name."""
    return _WHITESPACE_RE.sub('', display_name or '')

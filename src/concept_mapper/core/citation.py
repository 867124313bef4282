"""
Citation - Best-effort parsing of textbook reference strings

Part of the Concept Mapper implementation.

License: MIT
"""

import re

from .models import Citation, NOT_AVAILABLE

_PATTERNS = {
    "grade": re.compile(r"Class (\d+)"),
    "subject": re.compile(r"(\w+), Chapter"),
    "chapter": re.compile(r"Chapter (\d+)"),
    "section": re.compile(r"Section ([\w.]+)"),
    "page": re.compile(r"Page (\d+)"),
}


def parse_reference(reference) -> Citation:
    """
    Split a reference such as "NCERT Class 11 Physics, Chapter 6, Page 10"
    into its parts. Never raises; any part that cannot be found is "N/A".
    """
    if not isinstance(reference, str):
        return Citation(original_reference="" if reference is None else str(reference))

    fields = {}
    for name, pattern in _PATTERNS.items():
        match = pattern.search(reference)
        fields[name] = (match.group(1).rstrip(".") if match else "") or NOT_AVAILABLE

    return Citation(original_reference=reference, **fields)

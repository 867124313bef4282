"""
Utility Functions - Common helper functions

License: MIT
"""

from .helpers import truncate_text, format_duration

__all__ = [
    "truncate_text",
    "format_duration",
]

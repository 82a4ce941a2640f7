"""
Form key utilities shared by the path cache and the decoders.

Form keys are dotted paths: ``author.name``, ``readers.0.email``. A segment
made only of decimal digits is a list index; anything else is a field name.
"""

SEPARATOR = "."


def split_key(key: str) -> list[str]:
    """
    Split a form key into its segments.

    Examples:
        "readers.0.name" -> ["readers", "0", "name"]
        "title" -> ["title"]
        "" -> []
    """
    if not key:
        return []
    return key.split(SEPARATOR)


def join_key(*parts: str | int) -> str:
    """Join segments back into a form key, skipping empty parts."""
    return SEPARATOR.join(str(part) for part in parts if part != "")


def is_index(segment: str) -> bool:
    """Check if a key segment is a list index (non-negative decimal integer)."""
    return segment.isascii() and segment.isdigit()

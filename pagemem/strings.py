"""Small string helpers used across the memory service."""

from __future__ import annotations

from collections.abc import Sequence


def array_to_string(items: Sequence[str]) -> str:
    """Join the items with single spaces, without trailing whitespace."""
    return " ".join(items).rstrip()


def remove_first_element(items: Sequence[str]) -> list[str]:
    """Return a new list holding every item but the first."""
    return list(items[1:])


def remove_new_line(text: str) -> str:
    """Return the text with every newline removed."""
    return text.replace("\n", "")


def string_full_length(text: str) -> int:
    """Encoded length of the text including its NUL terminator."""
    return len(text.encode("utf-8")) + 1


def string_is_equal(first: str, second: str) -> bool:
    """Whether both strings are equal."""
    return first == second
"""The single line-counting rule shared by every ccguard component."""

from __future__ import annotations


def count_lines(text: str, ignore_empty_lines: bool = True) -> int:
    """Count lines of ``text``.

    Only ``\\n`` separates lines; form feeds and other Unicode line
    boundaries stay inside the line that holds them.

    Args:
        text: Decoded file or fragment contents.
        ignore_empty_lines: When True only lines holding at least one
            non-whitespace character are counted.

    Returns:
        int: Number of counted lines. A trailing line terminator never adds a line.
    """
    if not text:
        return 0
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    if ignore_empty_lines:
        return sum(1 for line in lines if line.strip())
    return len(lines)


__all__ = ["count_lines"]

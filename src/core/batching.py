"""Split new-entry notifications into transport-sized messages."""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional

from core.identity import shorten_link
from core.models import Entry

PART_RESERVE = 40
ELLIPSIS = "…"


def format_entry_line(entry: Entry) -> str:
    return f"• {shorten_link(entry.link)}"


def chunk_lines(
    lines: Iterable[str],
    header: str,
    max_chars: int,
    reserve: int = PART_RESERVE,
) -> List[List[str]]:
    """Greedily pack ``lines`` into chunks that fit under ``max_chars``.

    ``reserve`` characters are kept free for the " (part i/N)" tag. A line that
    does not fit even on its own is cut and marked with an ellipsis; it is
    never dropped. Input order is preserved.
    """

    budget = max_chars - reserve
    empty_len = len(header) + 2  # header + blank line
    max_line = max(1, budget - empty_len - 1)

    chunks: List[List[str]] = []
    current: List[str] = []
    current_len = empty_len

    for line in lines:
        line_len = len(line) + 1
        if current and current_len + line_len > budget:
            chunks.append(current)
            current = []
            current_len = empty_len
        if not current and current_len + line_len > budget:
            line = line[: max_line - len(ELLIPSIS)] + ELLIPSIS
            line_len = len(line) + 1
        current.append(line)
        current_len += line_len

    if current:
        chunks.append(current)
    return chunks


def render_chunks(chunks: List[List[str]], header: str) -> List[str]:
    total = len(chunks)
    messages = []
    for index, chunk in enumerate(chunks, start=1):
        part_tag = f" (part {index}/{total})" if total > 1 else ""
        messages.append(f"{header}{part_tag}\n\n" + "\n".join(chunk))
    return messages


def batch_messages(
    entries: Iterable[Entry],
    header: str,
    max_chars: int,
    reserve: int = PART_RESERVE,
    format_line: Optional[Callable[[Entry], str]] = None,
) -> List[str]:
    """Render ``entries`` as one or more messages of at most ``max_chars``."""

    format_line = format_line or format_entry_line
    lines = [format_line(entry) for entry in entries]
    if not lines:
        return []
    return render_chunks(chunk_lines(lines, header, max_chars, reserve), header)

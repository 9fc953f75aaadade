from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from repo_snapshot.config import CHARS_PER_TOKEN

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

PART_SEPARATOR = "\n\n---\n\n"


class Chunk(BaseModel):
    """A part of a snapshot that fits a token budget."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=1, description="1-based position of the part")
    content: str


def chunk_content(text: str, chunk_chars: int) -> Iterator[str]:
    """Chunk a text into pieces of at most `chunk_chars` characters, splitting on line boundaries.

    A line longer than `chunk_chars` is never cut: it makes up an oversized
    chunk on its own.

    Args:
        text (str): the text to chunk
        chunk_chars (int): the maximum number of characters in each chunk

    Yields:
        Iterator[str]: the chunks, whose concatenation is `text`
    """
    buf: list[str] = []
    cur = 0
    for ln in text.splitlines(keepends=True):
        if cur + len(ln) > chunk_chars and buf:
            yield "".join(buf)
            buf = []
            cur = 0
        buf.append(ln)
        cur += len(ln)
    if buf:
        yield "".join(buf)


def split_snapshot(text: str, max_tokens: int) -> list[Chunk]:
    """Split a snapshot into parts of at most `max_tokens` (estimated) tokens each.

    A trailing part made only of whitespace is dropped.

    Args:
        text (str): the snapshot
        max_tokens (int): the token budget of a part

    Returns:
        list[Chunk]: the parts, numbered from 1
    """
    pieces = list(chunk_content(text, max_tokens * CHARS_PER_TOKEN))
    if pieces and not pieces[-1].strip():
        pieces.pop()
    return [Chunk(index=i, content=piece) for i, piece in enumerate(pieces, start=1)]


def format_parts(chunks: Sequence[Chunk]) -> str:
    """Join parts into a single text, each one under a "# Part N" heading."""
    return PART_SEPARATOR.join(f"# Part {c.index}\n\n{c.content}" for c in chunks)

"""Policies for breaking long single-line posts into chunks."""

from enum import Enum


class SplitStrategy(str, Enum):
    """How a post longer than the maximum length is broken up."""

    NONE = "none"
    WORD = "word"

    def split(self, text: str, max_length: int) -> list[str]:
        """Split text into an ordered, non-empty list of chunks."""
        if self is SplitStrategy.NONE or len(text) <= max_length:
            return [text]
        return _split_words(text, max_length)


def _split_words(text: str, max_length: int) -> list[str]:
    chunks: list[str] = []
    remaining = text
    while len(remaining) > max_length:
        cut = remaining.rfind(" ", 0, max_length + 1)
        if cut <= 0:
            # a single word longer than the limit
            chunks.append(remaining[:max_length])
            remaining = remaining[max_length:]
        else:
            chunks.append(remaining[:cut])
            remaining = remaining[cut + 1 :]
    if remaining or not chunks:
        chunks.append(remaining)
    return chunks

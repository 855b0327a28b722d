"""Fixed-window text chunking."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from knowledge_core_lib.errors import InvalidInputError


class TextWindow(BaseModel):
    """One window of the source text; ``text == source[start:end]``."""

    model_config = ConfigDict(frozen=True)

    position: int
    start: int
    end: int
    text: str


def validate_chunking(chunk_size: int, overlap: int) -> None:
    """Reject chunking parameters that would not advance through the text."""
    if chunk_size <= 0:
        raise InvalidInputError(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0:
        raise InvalidInputError(f"overlap must not be negative, got {overlap}")
    if overlap >= chunk_size:
        raise InvalidInputError(f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})")


def decode_text(content: bytes) -> str:
    """Decode uploaded bytes as UTF-8 and drop NUL characters, which text columns reject."""
    return content.decode("utf-8", errors="replace").replace("\x00", "")


def chunk_text(text: str, chunk_size: int, overlap: int) -> list[TextWindow]:
    """
    Split ``text`` into windows of ``chunk_size`` characters advancing by ``chunk_size - overlap``.

    The last window is kept as-is even when shorter. Positions are assigned in
    order starting at 0.

    Raises
    ------
    InvalidInputError
        If ``chunk_size <= 0`` or ``overlap`` is outside ``[0, chunk_size)``.
    """
    validate_chunking(chunk_size, overlap)

    step = chunk_size - overlap
    length = len(text)
    windows: list[TextWindow] = []
    start = 0
    while start < length:
        end = min(start + chunk_size, length)
        windows.append(TextWindow(position=len(windows), start=start, end=end, text=text[start:end]))
        if end == length:
            break
        start += step
    return windows

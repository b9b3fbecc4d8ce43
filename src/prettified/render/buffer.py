"""Append-only content buffer."""

from __future__ import annotations


class ContentBuffer:
    """The full text history received so far.

    Chunks are only ever appended, whole and in arrival order. The buffer
    is owned by the render loop, which both appends and reads it inside a
    single message step, so it carries no lock.
    """

    def __init__(self) -> None:
        self._chunks: list[str] = []
        self._length: int = 0
        self._appends: int = 0
        self._joined: str | None = ""

    def append(self, text: str) -> None:
        if not text:
            return
        self._chunks.append(text)
        self._length += len(text)
        self._appends += 1
        self._joined = None

    def read_all(self) -> str:
        """Read the whole buffer as a single string."""
        if self._joined is None:
            self._joined = "".join(self._chunks)
            self._chunks = [self._joined]
        return self._joined

    @property
    def chunk_count(self) -> int:
        """Number of non-empty appends since creation."""
        return self._appends

    def __len__(self) -> int:
        return self._length

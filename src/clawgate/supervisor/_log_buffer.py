"""Bounded in-memory diagnostic log."""

from typing import final

DEFAULT_LOG_LIMIT = 20000


@final
class DiagnosticLog:
    """Character-capped text buffer; the oldest content is dropped first."""

    __slots__ = ("_limit", "_text")

    def __init__(self, limit: int = DEFAULT_LOG_LIMIT) -> None:
        if limit < 1:
            msg = "limit must be positive"
            raise ValueError(msg)
        self._limit: int = limit
        self._text: str = ""

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def text(self) -> str:
        return self._text

    def append(self, chunk: str) -> None:
        self._text += chunk
        if len(self._text) > self._limit:
            self._text = self._text[-self._limit :]

    def line(self, message: str) -> None:
        """Append ``[gateway] <message>`` as one line."""
        self.append(f"[gateway] {message}\n")

    def replace(self, text: str) -> None:
        """Replace the contents with the tail of ``text``."""
        self._text = text[-self._limit :] if len(text) > self._limit else text

    def clear(self) -> None:
        self._text = ""

    def __len__(self) -> int:
        return len(self._text)

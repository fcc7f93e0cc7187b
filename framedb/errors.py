from __future__ import annotations

"""
Exception types raised by the frame index.

Every failure surfaces as one of these so callers can tell a transport
problem apart from an invalid selection path or a population whose
statistics cannot be computed.
"""

from typing import Sequence


class FrameIndexError(Exception):
    """Base class for all frame index errors."""


class LoadError(FrameIndexError):
    """Fetching, decoding or validating the raw records failed.

    The underlying exception, when there is one, is chained as ``__cause__``.
    """


class DuplicateRecordError(LoadError):
    """Two records share the same (brand, model, size, year) tuple."""

    def __init__(self, key: Sequence[str], kept_id: str, duplicate_id: str) -> None:
        self.key = tuple(key)
        self.kept_id = kept_id
        self.duplicate_id = duplicate_id
        super().__init__(
            f"duplicate record for {'/'.join(self.key)}: "
            f"{duplicate_id!r} collides with {kept_id!r}"
        )


class NotFoundError(FrameIndexError, KeyError):
    """A segment of a hierarchical selection path does not exist."""

    def __init__(self, path: Sequence[str], message: str | None = None) -> None:
        self.path = tuple(path)
        self.message = message or f"no entry for path {'/'.join(self.path)!r}"
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class NotLoadedError(NotFoundError):
    """The index was queried before any successful load."""

    def __init__(self) -> None:
        super().__init__((), "frame index has not been loaded yet")


class DegenerateStatisticsError(FrameIndexError):
    """Population statistics are undefined (empty population or max == min)."""

    def __init__(self, ratio: str, message: str) -> None:
        self.ratio = ratio
        super().__init__(f"{ratio}: {message}")


class GeometryError(FrameIndexError):
    """A record's geometry cannot produce a finite ratio."""


class InvalidFilterError(FrameIndexError, ValueError):
    """A ranking filter or preference value is not recognised."""

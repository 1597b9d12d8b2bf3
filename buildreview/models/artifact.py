"""Artifact store: distributable outputs of one build run."""

import os
from collections.abc import Iterable, Iterator
from pathlib import Path

PathInput = str | os.PathLike[str]


def _flatten(items: Iterable[PathInput | Iterable[PathInput]]) -> Iterator[PathInput]:
    for item in items:
        if isinstance(item, (str, os.PathLike)):
            yield item
        else:
            yield from _flatten(item)


class ArtifactStore:
    """Order preserving, de-duplicated collection of artifact paths."""

    def __init__(self) -> None:
        self._artifacts: list[Path] = []

    def add(self, *paths: PathInput | Iterable[PathInput]) -> None:
        """Add artifact paths, ignoring ones already stored.

        Args:
            *paths: Paths, or iterables of paths.
        """
        for path in _flatten(paths):
            normalized = Path(os.path.normpath(os.fspath(path)))
            if normalized not in self._artifacts:
                self._artifacts.append(normalized)

    def all(self) -> tuple[Path, ...]:
        """Immutable snapshot of the artifacts, in first insertion order."""
        return tuple(self._artifacts)

    def __len__(self) -> int:
        return len(self._artifacts)

    def __iter__(self) -> Iterator[Path]:
        return iter(self.all())

"""Artifact cache: normalized F# source path -> last good compiled JavaScript."""

from collections.abc import Iterator, Mapping

from fable_vite.paths import normalize_path
from fable_vite.project.models import CompiledArtifact


class ArtifactCache:
    """Plain mapping with normalized keys. Owned by ProjectState."""

    def __init__(self) -> None:
        self._entries: dict[str, CompiledArtifact] = {}

    def get(self, path: str) -> CompiledArtifact | None:
        return self._entries.get(normalize_path(path))

    def set(self, path: str, code: str) -> None:
        key = normalize_path(path)
        self._entries[key] = CompiledArtifact(path=key, code=code)

    def update(self, compiled: Mapping[str, str]) -> None:
        for path, code in compiled.items():
            self.set(path, code)

    def replace(self, compiled: Mapping[str, str]) -> None:
        """Clear and repopulate in one synchronous step."""
        self._entries = {normalize_path(p): CompiledArtifact(path=normalize_path(p), code=c) for p, c in compiled.items()}

    def clear(self) -> None:
        self._entries.clear()

    def snapshot(self) -> dict[str, str]:
        return {path: artifact.code for path, artifact in self._entries.items()}

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and normalize_path(path) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

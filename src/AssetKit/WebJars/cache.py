"""Per-consumer cache directories for extracted web assets."""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from .errors import ExtractionError
from .models import ArtifactIdentity

__all__ = ["CachePreparation", "CacheDirectoryManager"]

LOGGER = logging.getLogger("AssetKit.WebJars")


@dataclass(frozen=True)
class CachePreparation:
    path: Path
    invalidated: bool
    reusable: bool


class CacheDirectoryManager:
    """Compute, create, invalidate, and inspect extraction cache directories.

    Layout::

        <temp_root>/<namespace>/<consumer.group>/<consumer.name>/
            <resource.group>/<resource.name>/<resource.version>

    Stable versions extracted in development mode are trusted and reused.
    Outside development mode, or for snapshot versions, the directory is
    emptied before every extraction.
    """

    def __init__(
        self,
        temp_root: Path,
        namespace: str = "webjars",
        *,
        snapshot_marker: str = "-SNAPSHOT",
    ) -> None:
        self.temp_root = Path(temp_root)
        self.namespace = namespace
        self.snapshot_marker = snapshot_marker

    def path_for(self, consumer: ArtifactIdentity, resource: ArtifactIdentity) -> Path:
        return self.temp_root.joinpath(
            self.namespace,
            consumer.group,
            consumer.name,
            resource.group,
            resource.name,
            resource.version,
        )

    def resolve(self, consumer: ArtifactIdentity, resource: ArtifactIdentity) -> Path:
        """Return the cache directory for the pair, creating it when absent."""

        path = self.path_for(consumer, resource)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ExtractionError(
                f"Unable to create cache directory {path}: {exc}",
                artifact=resource.coordinates,
            ) from exc
        return path

    def should_invalidate(self, dev_mode: bool, version: str) -> bool:
        return not dev_mode or self.snapshot_marker in version

    @staticmethod
    def is_empty(directory: Path) -> bool:
        """Return ``True`` when ``directory`` is missing or has no entries."""

        try:
            with os.scandir(directory) as entries:
                return next(entries, None) is None
        except FileNotFoundError:
            return True

    @staticmethod
    def empty(directory: Path) -> Path:
        """Remove every entry below ``directory`` and make sure it exists."""

        directory = Path(directory)
        if directory.is_dir() and not directory.is_symlink():
            for entry in directory.iterdir():
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
        elif directory.exists() or directory.is_symlink():
            directory.unlink()
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def prepare(
        self, consumer: ArtifactIdentity, resource: ArtifactIdentity, dev_mode: bool
    ) -> CachePreparation:
        """Resolve the cache directory and apply the invalidation policy."""

        path = self.resolve(consumer, resource)
        invalidated = self.should_invalidate(dev_mode, resource.version)
        if invalidated:
            try:
                self.empty(path)
            except OSError as exc:
                raise ExtractionError(
                    f"Unable to empty cache directory {path}: {exc}",
                    artifact=resource.coordinates,
                ) from exc
            LOGGER.debug(
                "emptied cache directory",
                extra={"stage": "cache", "artifact": resource.coordinates, "path": str(path)},
            )
        return CachePreparation(
            path=path,
            invalidated=invalidated,
            reusable=not self.is_empty(path),
        )

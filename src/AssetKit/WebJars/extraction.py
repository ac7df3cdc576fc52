# === NAVMAP v1 ===
# {
#   "module": "AssetKit.WebJars.extraction",
#   "purpose": "Reproduce resource artifact subtrees on disk or in memory with branding overrides",
#   "sections": [
#     {
#       "id": "archiveentry",
#       "name": "ArchiveEntry",
#       "anchor": "class-archiveentry",
#       "kind": "class"
#     },
#     {
#       "id": "iter-archive-entries",
#       "name": "iter_archive_entries",
#       "anchor": "function-iter-archive-entries",
#       "kind": "function"
#     },
#     {
#       "id": "relative-entry-path",
#       "name": "relative_entry_path",
#       "anchor": "function-relative-entry-path",
#       "kind": "function"
#     },
#     {
#       "id": "extractionreport",
#       "name": "ExtractionReport",
#       "anchor": "class-extractionreport",
#       "kind": "class"
#     },
#     {
#       "id": "artifactresourceextractor",
#       "name": "ArtifactResourceExtractor",
#       "anchor": "class-artifactresourceextractor",
#       "kind": "class"
#     },
#     {
#       "id": "productionresourcecollector",
#       "name": "ProductionResourceCollector",
#       "anchor": "class-productionresourcecollector",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Extraction of web assets from resource artifacts.

Content roots come in two shapes: packed archives (jar/zip, or tar) and
directories that were already expanded by the build.  Both are normalised to
the same per-entry algorithm: strip the root folder prefix, mirror
directories, and write files either verbatim or, for protected files with an
available override, with the override content.

Extraction for development and test runs writes into a cache directory and is
skipped entirely when that directory is already populated.  Production
collection never touches the disk and returns a ``relative path -> bytes``
mapping instead.
"""

from __future__ import annotations

import logging
import os
import shutil
import tarfile
import zipfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Collection, Dict, Iterator, NamedTuple, Optional, Tuple

from .cache import CacheDirectoryManager
from .errors import ExtractionError
from .models import ArtifactIdentity, ResourceArtifact, normalize_root_folder
from .overrides import Override, OverrideResolver, is_protected
from .sources import ByteSource, TarMemberSource, ZipMemberSource, read_source
from .writer import SafeFileWriter, WriteOutcome

__all__ = [
    "ArchiveEntry",
    "ExtractionReport",
    "ArtifactResourceExtractor",
    "ProductionResourceCollector",
    "iter_archive_entries",
    "relative_entry_path",
]

LOGGER = logging.getLogger("AssetKit.WebJars")

_ARCHIVE_ERRORS = (OSError, zipfile.BadZipFile, tarfile.TarError)


class ArchiveEntry(NamedTuple):
    name: str
    is_dir: bool
    source: Optional[ByteSource]


def _iter_zip(path: Path) -> Iterator[ArchiveEntry]:
    with zipfile.ZipFile(path) as archive:
        for info in archive.infolist():
            if info.is_dir():
                yield ArchiveEntry(info.filename, True, None)
            else:
                yield ArchiveEntry(info.filename, False, ZipMemberSource(archive, info))


def _iter_tar(path: Path) -> Iterator[ArchiveEntry]:
    with tarfile.open(path, mode="r:*") as archive:
        for member in archive:
            if member.isdir():
                yield ArchiveEntry(member.name, True, None)
            elif member.isfile():
                yield ArchiveEntry(member.name, False, TarMemberSource(archive, member))
            else:
                LOGGER.warning(
                    "skipping unsupported tar member",
                    extra={"stage": "extract", "archive": str(path), "member": member.name},
                )


def iter_archive_entries(path: Path) -> Iterator[ArchiveEntry]:
    """Yield the entries of ``path`` in archive order.

    Entry sources are only valid while the iteration is in progress.
    """

    if zipfile.is_zipfile(path):
        yield from _iter_zip(path)
    elif tarfile.is_tarfile(path):
        yield from _iter_tar(path)
    else:
        raise ExtractionError(f"Unsupported archive format: {path}")


def relative_entry_path(entry_name: str, prefix: str) -> Optional[str]:
    """Return ``entry_name`` relative to ``prefix`` or ``None`` when outside it.

    The prefix entry itself maps to ``None`` as well.  Relative paths that are
    absolute or climb out of the prefix raise :class:`ExtractionError`.
    """

    normalized = entry_name.replace("\\", "/")
    if not normalized.startswith(prefix):
        return None
    remainder = normalized[len(prefix):].rstrip("/")
    if not remainder:
        return None
    relative = PurePosixPath(remainder)
    if relative.is_absolute() or any(part in {"", ".", ".."} for part in remainder.split("/")):
        raise ExtractionError(f"Unsafe path detected in archive: {entry_name}")
    return relative.as_posix()


@dataclass
class ExtractionReport:
    files: int = 0
    directories: int = 0
    overrides: int = 0
    skipped: int = 0
    reused: bool = False

    def record(self, outcome: WriteOutcome) -> None:
        if outcome is WriteOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.files += 1


class _OverrideSupport:
    """Shared protected-file check for the extractor and the collector."""

    def __init__(self, resolver: OverrideResolver, protected_files: Collection[str]) -> None:
        self.resolver = resolver
        self.protected_files = frozenset(protected_files)

    def _override_for(self, resource: ResourceArtifact, relative: str) -> Optional[Override]:
        if not is_protected(relative, self.protected_files):
            return None
        module_key = resource.module_override_key(relative)
        if not self.resolver.has_override(relative, module_key):
            return None
        override = self.resolver.resolve(relative, module_key)
        if override is None:
            LOGGER.warning(
                "override reported but unreadable; keeping original",
                extra={"stage": "override", "artifact": resource.identity.coordinates, "path": relative},
            )
        return override

    @staticmethod
    def _failure(
        resource: ResourceArtifact, prefix: str, root: Path, exc: BaseException
    ) -> ExtractionError:
        return ExtractionError(
            f"Failed to extract {prefix} from {resource.identity.coordinates} ({root}): {exc}",
            artifact=resource.identity.coordinates,
            root_folder=prefix,
        )


class ArtifactResourceExtractor(_OverrideSupport):
    """Materialise a resource artifact subtree into its cache directory."""

    def __init__(
        self,
        cache: CacheDirectoryManager,
        resolver: OverrideResolver,
        protected_files: Collection[str],
        writer: Optional[SafeFileWriter] = None,
    ) -> None:
        super().__init__(resolver, protected_files)
        self.cache = cache
        self.writer = writer or SafeFileWriter()

    def extract(
        self,
        consumer: ArtifactIdentity,
        resource: ResourceArtifact,
        root_folder: str,
        dev_mode: bool,
    ) -> Path:
        """Return the cache directory holding ``root_folder`` of ``resource``."""

        path, _ = self.extract_with_report(consumer, resource, root_folder, dev_mode)
        return path

    def extract_with_report(
        self,
        consumer: ArtifactIdentity,
        resource: ResourceArtifact,
        root_folder: str,
        dev_mode: bool,
    ) -> Tuple[Path, ExtractionReport]:
        prefix = normalize_root_folder(root_folder)
        preparation = self.cache.prepare(consumer, resource.identity, dev_mode)
        report = ExtractionReport()
        if preparation.reusable:
            report.reused = True
            LOGGER.info(
                "reusing extracted resources",
                extra={
                    "stage": "cache",
                    "artifact": resource.identity.coordinates,
                    "path": str(preparation.path),
                },
            )
            return preparation.path, report

        for root in resource.content_roots:
            try:
                if root.is_file():
                    self._extract_archive(resource, root, prefix, preparation.path, report)
                elif root.is_dir():
                    self._extract_directory(resource, root, prefix, preparation.path, report)
                else:
                    raise ExtractionError(
                        f"Content root {root} of {resource.identity.coordinates} does not exist",
                        artifact=resource.identity.coordinates,
                        root_folder=prefix,
                    )
            except ExtractionError as exc:
                if exc.artifact is None:
                    raise self._failure(resource, prefix, root, exc) from exc
                raise
            except _ARCHIVE_ERRORS as exc:
                raise self._failure(resource, prefix, root, exc) from exc

        LOGGER.info(
            "extracted resources",
            extra={
                "stage": "extract",
                "artifact": resource.identity.coordinates,
                "root_folder": prefix,
                "path": str(preparation.path),
                "files": report.files,
                "directories": report.directories,
                "overrides": report.overrides,
                "skipped": report.skipped,
            },
        )
        return preparation.path, report

    def _extract_archive(
        self,
        resource: ResourceArtifact,
        archive: Path,
        prefix: str,
        destination: Path,
        report: ExtractionReport,
    ) -> None:
        for entry in iter_archive_entries(archive):
            relative = relative_entry_path(entry.name, prefix)
            if relative is None:
                continue
            target = destination / relative
            if entry.is_dir:
                target.mkdir(parents=True, exist_ok=True)
                report.directories += 1
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            override = self._override_for(resource, relative)
            if override is not None:
                report.overrides += 1
                report.record(self.writer.write(override.as_source(), target))
            else:
                assert entry.source is not None
                report.record(self.writer.write(entry.source, target))

    def _extract_directory(
        self,
        resource: ResourceArtifact,
        root: Path,
        prefix: str,
        destination: Path,
        report: ExtractionReport,
    ) -> None:
        base = root / prefix
        if not base.is_dir():
            LOGGER.debug(
                "content root has no resource folder; skipping",
                extra={"stage": "extract", "root": str(root), "root_folder": prefix},
            )
            return

        for dirpath, dirnames, filenames in os.walk(base):
            dirnames.sort()
            relative_dir = Path(dirpath).relative_to(base)
            (destination / relative_dir).mkdir(parents=True, exist_ok=True)
            report.directories += 1
            for filename in sorted(filenames):
                relative = (relative_dir / filename).as_posix()
                target = destination / relative
                override = self._override_for(resource, relative)
                if override is not None:
                    report.overrides += 1
                    report.record(self.writer.write(override.as_source(), target))
                else:
                    shutil.copyfile(Path(dirpath) / filename, target)
                    report.files += 1


class ProductionResourceCollector(_OverrideSupport):
    """Gather resource bytes in memory for inclusion in a distributable bundle."""

    def collect(self, resource: ResourceArtifact, root_folder: str) -> Dict[str, bytes]:
        """Return ``relative path -> bytes`` for every file under ``root_folder``.

        Later content roots overwrite earlier ones for the same relative path.
        """

        prefix = normalize_root_folder(root_folder)
        collected: Dict[str, bytes] = {}
        overrides = 0
        for root in resource.content_roots:
            try:
                if not root.is_file():
                    raise ExtractionError(
                        f"Production collection requires archive content roots; {root} is not a file",
                        artifact=resource.identity.coordinates,
                        root_folder=prefix,
                    )
                for entry in iter_archive_entries(root):
                    if entry.is_dir:
                        continue
                    relative = relative_entry_path(entry.name, prefix)
                    if relative is None:
                        continue
                    override = self._override_for(resource, relative)
                    if override is not None:
                        overrides += 1
                        collected[relative] = override.content
                    else:
                        assert entry.source is not None
                        collected[relative] = read_source(entry.source)
            except ExtractionError as exc:
                if exc.artifact is None:
                    raise self._failure(resource, prefix, root, exc) from exc
                raise
            except _ARCHIVE_ERRORS as exc:
                raise self._failure(resource, prefix, root, exc) from exc

        LOGGER.info(
            "collected resources",
            extra={
                "stage": "collect",
                "artifact": resource.identity.coordinates,
                "root_folder": prefix,
                "files": len(collected),
                "overrides": overrides,
            },
        )
        return collected

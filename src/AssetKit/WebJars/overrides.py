# === NAVMAP v1 ===
# {
#   "module": "AssetKit.WebJars.overrides",
#   "purpose": "Branding override lookup and resolution for protected web assets",
#   "sections": [
#     {
#       "id": "brandinglookup",
#       "name": "BrandingLookup",
#       "anchor": "class-brandinglookup",
#       "kind": "class"
#     },
#     {
#       "id": "packagebrandinglookup",
#       "name": "PackageBrandingLookup",
#       "anchor": "class-packagebrandinglookup",
#       "kind": "class"
#     },
#     {
#       "id": "directorybrandinglookup",
#       "name": "DirectoryBrandingLookup",
#       "anchor": "class-directorybrandinglookup",
#       "kind": "class"
#     },
#     {
#       "id": "override",
#       "name": "Override",
#       "anchor": "class-override",
#       "kind": "class"
#     },
#     {
#       "id": "overrideresolver",
#       "name": "OverrideResolver",
#       "anchor": "class-overrideresolver",
#       "kind": "class"
#     },
#     {
#       "id": "is-protected",
#       "name": "is_protected",
#       "anchor": "function-is-protected",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Branding override resolution.

Protected files (logo, favicon, style sheet) may be replaced by a user
override found under the branding folder of one of the application's own
content roots, or by a bundled override shipped in a Python package.  Each
tier is searched with the module key (``<artifact-name><ext>``) before the
plain file name.

The existence check and the retrieval order deliberately differ:
:meth:`OverrideResolver.has_override` consults the bundled namespace first,
while :meth:`OverrideResolver.resolve` returns user overrides before bundled
ones.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Collection, Iterable, Iterator, Optional, Protocol, Tuple

from .placeholders import PlaceholderSubstitutor
from .sources import BytesSource, ByteSource, FileSource, ResourceSource, read_source

__all__ = [
    "BrandingLookup",
    "PackageBrandingLookup",
    "DirectoryBrandingLookup",
    "EmptyBrandingLookup",
    "Override",
    "OverrideResolver",
    "is_protected",
]

LOGGER = logging.getLogger("AssetKit.WebJars")


class BrandingLookup(Protocol):
    """Read-only view over the bundled branding namespace."""

    def exists(self, key: str) -> bool:
        """Return ``True`` when a bundled override named ``key`` is available."""

    def source(self, key: str) -> Optional[ByteSource]:
        """Return a source for ``key`` or ``None`` when absent."""


class EmptyBrandingLookup:
    """Bundled namespace without any overrides."""

    def exists(self, key: str) -> bool:
        return False

    def source(self, key: str) -> Optional[ByteSource]:
        return None


class PackageBrandingLookup:
    """Bundled overrides stored as package data, e.g. ``AssetKit/WebJars/branding/``."""

    def __init__(self, package: str, folder: str = "branding") -> None:
        self.package = package
        self.folder = folder.strip("/")
        self._root: Optional[Traversable] = None
        self._resolved = False

    def _base(self) -> Optional[Traversable]:
        if not self._resolved:
            self._resolved = True
            try:
                root = resources.files(self.package)
            except ModuleNotFoundError:
                LOGGER.debug(
                    "bundled branding package not importable",
                    extra={"stage": "override", "package": self.package},
                )
                root = None
            if root is not None and self.folder:
                for part in self.folder.split("/"):
                    root = root.joinpath(part)
            self._root = root
        return self._root

    def _candidate(self, key: str) -> Optional[Traversable]:
        base = self._base()
        if base is None:
            return None
        candidate = base
        for part in key.split("/"):
            candidate = candidate.joinpath(part)
        return candidate

    def exists(self, key: str) -> bool:
        candidate = self._candidate(key)
        return candidate is not None and candidate.is_file()

    def source(self, key: str) -> Optional[ByteSource]:
        candidate = self._candidate(key)
        if candidate is None or not candidate.is_file():
            return None
        return ResourceSource(candidate, label=f"{self.package}:{self.folder}/{key}")


class DirectoryBrandingLookup:
    """Bundled overrides backed by a plain directory on disk."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def exists(self, key: str) -> bool:
        return (self.root / key).is_file()

    def source(self, key: str) -> Optional[ByteSource]:
        path = self.root / key
        if not path.is_file():
            return None
        return FileSource(path)


@dataclass(frozen=True)
class Override:
    """Resolved override payload and the place it was read from."""

    content: bytes
    origin: str

    def as_source(self) -> BytesSource:
        return BytesSource(self.content, label=self.origin)


def is_protected(relative_path: str, protected_files: Collection[str]) -> bool:
    """Return ``True`` when ``relative_path`` exactly matches a protected file name."""

    return relative_path in protected_files


class OverrideResolver:
    """Decide whether a protected file is overridden and return the override bytes."""

    def __init__(
        self,
        user_paths: Iterable[Path],
        bundled: Optional[BrandingLookup] = None,
        *,
        substitutor: PlaceholderSubstitutor,
        branding_folder: str = "META-INF/branding/",
        stylesheet_suffix: str = ".css",
    ) -> None:
        self.user_paths: Tuple[Path, ...] = tuple(Path(path) for path in user_paths)
        self.bundled: BrandingLookup = bundled if bundled is not None else EmptyBrandingLookup()
        self.substitutor = substitutor
        self.branding_folder = branding_folder
        self.stylesheet_suffix = stylesheet_suffix

    def _user_candidate(self, root: Path, key: str) -> Path:
        return root / f"{self.branding_folder}{key}"

    def _user_exists(self, key: str) -> bool:
        return any(self._user_candidate(root, key).exists() for root in self.user_paths)

    def has_override(self, relative_path: str, module_key: str) -> bool:
        """Return ``True`` when any tier offers an override for this file."""

        return (
            self.bundled.exists(module_key)
            or self.bundled.exists(relative_path)
            or self._user_exists(module_key)
            or self._user_exists(relative_path)
        )

    def _candidates(self, relative_path: str, module_key: str) -> Iterator[ByteSource]:
        for root in self.user_paths:
            for key in (module_key, relative_path):
                path = self._user_candidate(root, key)
                if path.exists():
                    yield FileSource(path)
        for key in (module_key, relative_path):
            source = self.bundled.source(key)
            if source is not None:
                yield source

    def resolve(self, relative_path: str, module_key: str) -> Optional[Override]:
        """Return the winning override for ``relative_path`` or ``None``.

        Candidates that exist but cannot be read are logged and skipped; when no
        candidate can be read the caller falls back to the artifact's own copy.
        """

        for source in self._candidates(relative_path, module_key):
            try:
                content = read_source(source)
            except OSError as exc:
                LOGGER.warning(
                    "Could not read override file [%s] - %s",
                    source.describe(),
                    exc,
                    extra={"stage": "override", "path": relative_path},
                )
                continue
            if relative_path.endswith(self.stylesheet_suffix):
                text = content.decode("utf-8", errors="replace")
                content = self.substitutor.substitute(text).encode("utf-8")
            LOGGER.debug(
                "resolved branding override",
                extra={"stage": "override", "path": relative_path, "origin": source.describe()},
            )
            return Override(content=content, origin=source.describe())
        return None


"""Artifact identities, resolved resource artifacts, and the consuming application."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Tuple

from .errors import ConfigError, DependencyNotFoundError

__all__ = [
    "ArtifactIdentity",
    "ResourceArtifact",
    "ApplicationModel",
    "normalize_root_folder",
]

_FORBIDDEN_SEGMENTS = {".", ".."}


def _check_segment(kind: str, value: str) -> str:
    text = str(value).strip()
    if not text:
        raise ConfigError(f"Artifact {kind} must not be empty")
    if "/" in text or "\\" in text or text in _FORBIDDEN_SEGMENTS:
        raise ConfigError(f"Artifact {kind} '{value}' is not a valid path segment")
    return text


def normalize_root_folder(root_folder: str) -> str:
    """Return ``root_folder`` with forward slashes and exactly one trailing separator."""

    normalized = root_folder.replace("\\", "/")
    if normalized.endswith("/"):
        return normalized
    return normalized + "/"


@dataclass(frozen=True)
class ArtifactIdentity:
    """Immutable ``group:name:version`` coordinates.

    The version is part of identity: two identities only compare equal when
    all three fields match exactly. Every field doubles as a cache directory
    segment, so separators and relative segments are rejected up front.
    """

    group: str
    name: str
    version: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "group", _check_segment("group", self.group))
        object.__setattr__(self, "name", _check_segment("name", self.name))
        object.__setattr__(self, "version", _check_segment("version", self.version))

    @classmethod
    def parse(cls, coordinates: str) -> "ArtifactIdentity":
        """Build an identity from a ``group:name:version`` string."""

        parts = coordinates.strip().split(":")
        if len(parts) != 3:
            raise ConfigError(
                f"Invalid artifact coordinates '{coordinates}'; expected group:name:version"
            )
        return cls(*parts)

    @property
    def coordinates(self) -> str:
        return f"{self.group}:{self.name}:{self.version}"

    def is_snapshot(self, marker: str = "-SNAPSHOT") -> bool:
        return marker in self.version

    def __str__(self) -> str:
        return self.coordinates


@dataclass(frozen=True)
class ResourceArtifact:
    """A resolved artifact plus its content roots, processed in the order supplied."""

    identity: ArtifactIdentity
    content_roots: Tuple[Path, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "content_roots", tuple(Path(root) for root in self.content_roots)
        )

    @property
    def group(self) -> str:
        return self.identity.group

    @property
    def name(self) -> str:
        return self.identity.name

    @property
    def version(self) -> str:
        return self.identity.version

    def module_override_key(self, relative_path: str) -> str:
        """Return ``<artifact-name><ext>`` used for module-wide branding overrides.

        The extension is taken from the last path segment and includes the
        leading dot; files without an extension map to the bare artifact name.
        """

        return self.identity.name + PurePosixPath(relative_path).suffix


@dataclass(frozen=True)
class ApplicationModel:
    """The consuming application.

    ``paths`` are the application's own content roots; they double as the
    search path for user-supplied branding overrides.
    """

    artifact: ArtifactIdentity
    paths: Tuple[Path, ...] = ()
    dependencies: Tuple[ResourceArtifact, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "paths", tuple(Path(path) for path in self.paths))
        object.__setattr__(self, "dependencies", tuple(self.dependencies))

    def find_dependency(self, group: str, name: str) -> ResourceArtifact:
        """Return the dependency matching ``group``/``name`` or raise."""

        for dependency in self.dependencies:
            if dependency.name == name and dependency.group == group:
                return dependency
        raise DependencyNotFoundError(group, name)


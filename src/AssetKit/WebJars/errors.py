"""Exception hierarchy shared across web asset extraction and collection.

Extraction spans configuration parsing, dependency lookup, archive and
directory traversal, and branding override resolution.  Lookup and extraction
failures are fatal for the calling build step, so they surface as dedicated
subclasses that callers can catch as a group via :class:`WebJarError`.
Override read failures never reach this hierarchy; they are logged and
absorbed by the resolver.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "WebJarError",
    "ConfigError",
    "DependencyNotFoundError",
    "ExtractionError",
]


class WebJarError(RuntimeError):
    """Base exception for web asset extraction failures."""


class ConfigError(WebJarError):
    """Raised when settings, YAML files, or artifact coordinates are invalid."""


class DependencyNotFoundError(WebJarError):
    """Raised when a ``group:name`` pair is absent from the application dependencies."""

    def __init__(self, group: str, name: str) -> None:
        super().__init__(
            f"Could not find artifact {group}:{name} among the application dependencies"
        )
        self.group = group
        self.name = name


class ExtractionError(WebJarError):
    """Raised when resources cannot be read from, or written for, an artifact."""

    def __init__(
        self,
        message: str,
        *,
        artifact: Optional[str] = None,
        root_folder: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.artifact = artifact
        self.root_folder = root_folder

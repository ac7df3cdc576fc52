# === NAVMAP v1 ===
# {
#   "module": "AssetKit.WebJars.api",
#   "purpose": "Public operations for extracting, collecting, and patching web assets",
#   "sections": [
#     {
#       "id": "build-resolver",
#       "name": "build_resolver",
#       "anchor": "function-build-resolver",
#       "kind": "function"
#     },
#     {
#       "id": "copy-resources-for-dev-or-test",
#       "name": "copy_resources_for_dev_or_test",
#       "anchor": "function-copy-resources-for-dev-or-test",
#       "kind": "function"
#     },
#     {
#       "id": "copy-resources-for-production",
#       "name": "copy_resources_for_production",
#       "anchor": "function-copy-resources-for-production",
#       "kind": "function"
#     },
#     {
#       "id": "update-url",
#       "name": "update_url",
#       "anchor": "function-update-url",
#       "kind": "function"
#     },
#     {
#       "id": "update-url-in-file",
#       "name": "update_url_in_file",
#       "anchor": "function-update-url-in-file",
#       "kind": "function"
#     },
#     {
#       "id": "find-dependency",
#       "name": "find_dependency",
#       "anchor": "function-find-dependency",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Operations exposed to build tooling.

Each entry point wires :class:`~AssetKit.WebJars.config.WebJarSettings` into
the cache manager, override resolver, and extractor, so callers only deal with
artifacts and folders.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from .cache import CacheDirectoryManager
from .config import WebJarSettings, get_default_settings
from .extraction import ArtifactResourceExtractor, ProductionResourceCollector
from .models import ApplicationModel, ResourceArtifact
from .overrides import BrandingLookup, OverrideResolver, PackageBrandingLookup
from .placeholders import PlaceholderSubstitutor
from .writer import SafeFileWriter, update_file

__all__ = [
    "build_resolver",
    "build_extractor",
    "build_collector",
    "copy_resources_for_dev_or_test",
    "copy_resources_for_production",
    "update_file",
    "update_url",
    "update_url_in_file",
    "find_dependency",
]


def build_resolver(
    application: ApplicationModel,
    settings: WebJarSettings,
    bundled: Optional[BrandingLookup] = None,
) -> OverrideResolver:
    """Return a resolver searching ``application.paths`` and the bundled namespace."""

    if bundled is None:
        bundled = PackageBrandingLookup(settings.bundled_package, settings.bundled_folder)
    return OverrideResolver(
        application.paths,
        bundled,
        substitutor=PlaceholderSubstitutor(settings.branding()),
        branding_folder=settings.branding_folder,
        stylesheet_suffix=settings.stylesheet_suffix,
    )


def build_extractor(
    application: ApplicationModel,
    settings: WebJarSettings,
    bundled: Optional[BrandingLookup] = None,
    writer: Optional[SafeFileWriter] = None,
) -> ArtifactResourceExtractor:
    cache = CacheDirectoryManager(
        settings.temp_root,
        settings.cache_namespace,
        snapshot_marker=settings.snapshot_marker,
    )
    return ArtifactResourceExtractor(
        cache,
        build_resolver(application, settings, bundled),
        settings.protected_files,
        writer=writer,
    )


def build_collector(
    application: ApplicationModel,
    settings: WebJarSettings,
    bundled: Optional[BrandingLookup] = None,
) -> ProductionResourceCollector:
    return ProductionResourceCollector(
        build_resolver(application, settings, bundled),
        settings.protected_files,
    )


def copy_resources_for_dev_or_test(
    application: ApplicationModel,
    dev_mode: bool,
    resource: ResourceArtifact,
    root_folder: str,
    *,
    settings: Optional[WebJarSettings] = None,
    bundled: Optional[BrandingLookup] = None,
) -> Path:
    """Extract ``root_folder`` of ``resource`` into the consumer's cache directory.

    Args:
        application: Consuming application; its identity namespaces the cache
            and its paths are searched for user branding overrides.
        dev_mode: ``True`` for interactive development runs, which may reuse a
            populated cache directory for non-snapshot versions.
        resource: Resource artifact holding the web assets.
        root_folder: Folder inside the artifact whose content is reproduced.
        settings: Optional settings; defaults to :func:`get_default_settings`.
        bundled: Optional bundled branding namespace override.

    Returns:
        Path to the populated cache directory.

    Raises:
        ExtractionError: When any content root cannot be read or written.
    """

    settings = settings or get_default_settings()
    extractor = build_extractor(application, settings, bundled)
    return extractor.extract(application.artifact, resource, root_folder, dev_mode)


def copy_resources_for_production(
    application: ApplicationModel,
    resource: ResourceArtifact,
    root_folder: str,
    *,
    settings: Optional[WebJarSettings] = None,
    bundled: Optional[BrandingLookup] = None,
) -> Dict[str, bytes]:
    """Return ``relative path -> bytes`` for ``root_folder`` of an archived ``resource``."""

    settings = settings or get_default_settings()
    return build_collector(application, settings, bundled).collect(resource, root_folder)


def update_url(content: str, new_path: str, line_starts_with: str, line_format: str) -> str:
    """Rewrite the first line whose stripped text starts with ``line_starts_with``.

    The stripped portion of that line becomes ``line_format % new_path``;
    indentation and the line terminator are kept.  Text without a matching
    line is returned unchanged.

    Examples:
        >>> update_url("a\\n  url: /old\\n", "/new", "url:", "url: %s")
        'a\\n  url: /new\\n'
    """

    lines = content.splitlines(keepends=True)
    for index, line in enumerate(lines):
        body = line.rstrip("\r\n")
        stripped = body.strip()
        if stripped.startswith(line_starts_with):
            start = body.index(stripped)
            replacement = line_format % new_path
            lines[index] = (
                body[:start] + replacement + body[start + len(stripped):] + line[len(body):]
            )
            return "".join(lines)
    return content


def update_url_in_file(
    path: Path, new_path: str, line_starts_with: str, line_format: str
) -> bool:
    """Apply :func:`update_url` to ``path`` and write it back only when it changed."""

    path = Path(path)
    content = path.read_bytes().decode("utf-8")
    result = update_url(content, new_path, line_starts_with, line_format)
    if result == content:
        return False
    path.write_bytes(result.encode("utf-8"))
    return True


def find_dependency(application: ApplicationModel, group: str, name: str) -> ResourceArtifact:
    """Return the dependency ``group:name`` of ``application``."""

    return application.find_dependency(group, name)

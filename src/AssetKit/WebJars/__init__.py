# === NAVMAP v1 ===
# {
#   "module": "AssetKit.WebJars",
#   "purpose": "Package initialization for AssetKit.WebJars",
#   "sections": [
#     {
#       "id": "getattr",
#       "name": "__getattr__",
#       "anchor": "function-getattr",
#       "kind": "function"
#     },
#     {
#       "id": "dir",
#       "name": "__dir__",
#       "anchor": "function-dir",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Public API for extracting branded web assets out of resource artifacts.

Resource artifacts (packed archives or expanded directories) are reproduced
into a per-consumer cache directory for development and test runs, or gathered
into an in-memory mapping for production packaging.  A small set of protected
files can be replaced by user-supplied or bundled branding overrides.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any, Dict, Tuple

__version__ = "0.1.0"

_EXPORT_MAP: Dict[str, Tuple[str, str]] = {
    "ApplicationModel": ("AssetKit.WebJars.models", "ApplicationModel"),
    "ArtifactIdentity": ("AssetKit.WebJars.models", "ArtifactIdentity"),
    "ResourceArtifact": ("AssetKit.WebJars.models", "ResourceArtifact"),
    "BrandingValues": ("AssetKit.WebJars.config", "BrandingValues"),
    "WebJarSettings": ("AssetKit.WebJars.config", "WebJarSettings"),
    "load_settings": ("AssetKit.WebJars.config", "load_settings"),
    "WebJarError": ("AssetKit.WebJars.errors", "WebJarError"),
    "ConfigError": ("AssetKit.WebJars.errors", "ConfigError"),
    "DependencyNotFoundError": ("AssetKit.WebJars.errors", "DependencyNotFoundError"),
    "ExtractionError": ("AssetKit.WebJars.errors", "ExtractionError"),
    "copy_resources_for_dev_or_test": ("AssetKit.WebJars.api", "copy_resources_for_dev_or_test"),
    "copy_resources_for_production": ("AssetKit.WebJars.api", "copy_resources_for_production"),
    "find_dependency": ("AssetKit.WebJars.api", "find_dependency"),
    "update_file": ("AssetKit.WebJars.api", "update_file"),
    "update_url": ("AssetKit.WebJars.api", "update_url"),
    "update_url_in_file": ("AssetKit.WebJars.api", "update_url_in_file"),
}

__all__ = ["__version__", *_EXPORT_MAP]

if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .api import (
        copy_resources_for_dev_or_test,
        copy_resources_for_production,
        find_dependency,
        update_file,
        update_url,
        update_url_in_file,
    )
    from .config import BrandingValues, WebJarSettings, load_settings
    from .errors import ConfigError, DependencyNotFoundError, ExtractionError, WebJarError
    from .models import ApplicationModel, ArtifactIdentity, ResourceArtifact


def __getattr__(name: str) -> Any:
    """Lazily import exports so ``import AssetKit.WebJars`` stays cheap."""

    target = _EXPORT_MAP.get(name)
    if target is None:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
    module_name, attribute = target
    value = getattr(import_module(module_name), attribute)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    """Expose lazily-populated attributes in ``dir()`` results."""

    return sorted(set(globals()) | set(__all__))

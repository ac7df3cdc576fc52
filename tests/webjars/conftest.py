"""Shared fixtures for the web asset extraction suite."""

from __future__ import annotations

import io
import os
import tarfile
import zipfile
from pathlib import Path
from typing import Callable, Dict, Optional

import pytest

from AssetKit.WebJars.config import WebJarSettings, invalidate_default_settings, load_settings
from AssetKit.WebJars.models import ApplicationModel, ArtifactIdentity, ResourceArtifact
from AssetKit.WebJars.overrides import EmptyBrandingLookup

Entries = Dict[str, Optional[bytes]]


def write_jar(path: Path, entries: Entries) -> Path:
    """Write a zip archive; ``None`` values become directory entries."""

    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as archive:
        for name, data in entries.items():
            if data is None:
                archive.writestr(zipfile.ZipInfo(name.rstrip("/") + "/"), b"")
            else:
                archive.writestr(name, data)
    return path


def write_tar(path: Path, entries: Entries) -> Path:
    """Write a gzipped tar archive; ``None`` values become directory entries."""

    path.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(path, "w:gz") as archive:
        for name, data in entries.items():
            info = tarfile.TarInfo(name.rstrip("/"))
            if data is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                archive.addfile(info)
            else:
                info.size = len(data)
                archive.addfile(info, io.BytesIO(data))
    return path


def write_tree(root: Path, files: Dict[str, bytes]) -> Path:
    for relative, data in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    return root


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Keep ``WEBJARS_*`` variables from the outer environment out of the tests."""

    for key in list(os.environ):
        if key.upper().startswith("WEBJARS_"):
            monkeypatch.delenv(key, raising=False)
    invalidate_default_settings()
    yield
    invalidate_default_settings()


@pytest.fixture
def settings(tmp_path: Path) -> WebJarSettings:
    return load_settings(
        temp_root=tmp_path / "tmp",
        application_name="Shop",
        application_version="3.2",
        tool_version="9.9",
    )


@pytest.fixture
def consumer() -> ArtifactIdentity:
    return ArtifactIdentity("com.acme", "shop", "1.0")


@pytest.fixture
def application(consumer: ArtifactIdentity, tmp_path: Path) -> ApplicationModel:
    app_root = tmp_path / "app"
    app_root.mkdir()
    return ApplicationModel(consumer, paths=(app_root,))


@pytest.fixture
def no_bundled() -> EmptyBrandingLookup:
    return EmptyBrandingLookup()


@pytest.fixture
def make_resource(tmp_path: Path) -> Callable[..., ResourceArtifact]:
    """Build a resource artifact backed by a single jar under ``tmp_path``."""

    def _make(entries: Entries, version: str = "2.1", name: str = "ui") -> ResourceArtifact:
        jar = write_jar(tmp_path / "repo" / f"{name}-{version}.jar", entries)
        return ResourceArtifact(ArtifactIdentity("org.webjars", name, version), (jar,))

    return _make


@pytest.fixture
def jar_factory() -> Callable[[Path, Entries], Path]:
    return write_jar


@pytest.fixture
def tar_factory() -> Callable[[Path, Entries], Path]:
    return write_tar


@pytest.fixture
def tree_factory() -> Callable[[Path, Dict[str, bytes]], Path]:
    return write_tree

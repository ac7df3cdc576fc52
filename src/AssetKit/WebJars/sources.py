"""Readable byte sources shared by extraction, overrides, and the safe writer.

Archive members, filesystem files, packaged resources, and in-memory payloads
all expose the same ``open()`` capability so the override resolver and writer
never branch on where bytes come from.
"""

from __future__ import annotations

import io
import tarfile
import zipfile
from dataclasses import dataclass
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import BinaryIO, Protocol, runtime_checkable

__all__ = [
    "ByteSource",
    "FileSource",
    "ZipMemberSource",
    "TarMemberSource",
    "ResourceSource",
    "BytesSource",
    "read_source",
]


@runtime_checkable
class ByteSource(Protocol):
    """Anything that can be opened for binary reading and closed afterwards."""

    def open(self) -> BinaryIO:
        """Return a readable binary handle; callers close it."""

    def describe(self) -> str:
        """Return a human readable origin used in log records."""


@dataclass(frozen=True)
class FileSource:
    path: Path

    def open(self) -> BinaryIO:
        return Path(self.path).open("rb")

    def describe(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class ZipMemberSource:
    archive: zipfile.ZipFile
    info: zipfile.ZipInfo

    def open(self) -> BinaryIO:
        return self.archive.open(self.info, "r")  # type: ignore[return-value]

    def describe(self) -> str:
        return f"{self.archive.filename}!{self.info.filename}"


@dataclass(frozen=True)
class TarMemberSource:
    archive: tarfile.TarFile
    member: tarfile.TarInfo

    def open(self) -> BinaryIO:
        handle = self.archive.extractfile(self.member)
        if handle is None:
            raise OSError(f"Tar member is not a regular file: {self.member.name}")
        return handle  # type: ignore[return-value]

    def describe(self) -> str:
        return f"{self.archive.name}!{self.member.name}"


@dataclass(frozen=True)
class ResourceSource:
    """A file inside an installed package, located via :mod:`importlib.resources`."""

    resource: Traversable
    label: str = ""

    def open(self) -> BinaryIO:
        return self.resource.open("rb")  # type: ignore[return-value]

    def describe(self) -> str:
        return self.label or str(self.resource)


@dataclass(frozen=True)
class BytesSource:
    data: bytes
    label: str = "<memory>"

    def open(self) -> BinaryIO:
        return io.BytesIO(self.data)

    def describe(self) -> str:
        return self.label


def read_source(source: ByteSource) -> bytes:
    """Read every byte from ``source``."""

    with source.open() as handle:
        return handle.read()

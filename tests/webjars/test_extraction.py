"""Tests for extracting resource artifacts into cache directories."""

from __future__ import annotations

from pathlib import Path

import pytest

pytest.importorskip("pydantic")

from AssetKit.WebJars.api import build_extractor, copy_resources_for_dev_or_test
from AssetKit.WebJars.errors import ExtractionError
from AssetKit.WebJars.extraction import relative_entry_path
from AssetKit.WebJars.models import ArtifactIdentity, ResourceArtifact
from AssetKit.WebJars.overrides import DirectoryBrandingLookup
from AssetKit.WebJars.writer import SafeFileWriter, WriteOutcome

ROOT = "META-INF/resources/"

BASIC_JAR = {
    "META-INF/": None,
    "META-INF/resources/": None,
    "META-INF/resources/app.js": b"console.log('ui');",
    "META-INF/resources/css/": None,
    "META-INF/resources/css/site.css": b"body {}",
    "META-INF/resources/logo.png": b"original-logo",
    "META-INF/resources/style.css": b"/* original */",
    "META-INF/MANIFEST.MF": b"Manifest-Version: 1.0\n",
    "org/webjars/Ui.class": b"\xca\xfe\xba\xbe",
}


class SkippingWriter(SafeFileWriter):
    """Writer that behaves as if another process held every lock."""

    def __init__(self) -> None:
        self.targets = []

    def write(self, payload, target):
        self.targets.append(Path(target))
        return WriteOutcome.SKIPPED


def _user_override(application, key: str, data: bytes) -> None:
    target = application.paths[0] / "META-INF" / "branding" / key
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)


def _extract(application, settings, resource, no_bundled, dev_mode=True, root=ROOT):
    return copy_resources_for_dev_or_test(
        application, dev_mode, resource, root, settings=settings, bundled=no_bundled
    )


def _files(path: Path):
    return sorted(p.relative_to(path).as_posix() for p in path.rglob("*") if p.is_file())


def test_archive_subtree_is_reproduced(application, settings, make_resource, no_bundled):
    resource = make_resource(BASIC_JAR)

    path = _extract(application, settings, resource, no_bundled)

    assert path == settings.temp_root.joinpath(
        "webjars", "com.acme", "shop", "org.webjars", "ui", "2.1"
    )
    assert _files(path) == ["app.js", "css/site.css", "logo.png", "style.css"]
    assert (path / "app.js").read_bytes() == b"console.log('ui');"
    assert (path / "logo.png").read_bytes() == b"original-logo"


def test_root_folder_without_trailing_slash(application, settings, make_resource, no_bundled):
    resource = make_resource(BASIC_JAR)

    path = _extract(application, settings, resource, no_bundled, root="META-INF/resources")

    assert (path / "css" / "site.css").read_bytes() == b"body {}"
    assert not (path / "MANIFEST.MF").exists()


def test_protected_file_replaced_by_user_override(
    application, settings, make_resource, no_bundled
):
    _user_override(application, "logo.png", b"user-logo")
    resource = make_resource(BASIC_JAR)

    path = _extract(application, settings, resource, no_bundled)

    assert (path / "logo.png").read_bytes() == b"user-logo"
    assert (path / "app.js").read_bytes() == b"console.log('ui');"


def test_module_override_wins_over_file_name(application, settings, make_resource, no_bundled):
    _user_override(application, "logo.png", b"generic")
    _user_override(application, "ui.png", b"module")
    resource = make_resource(BASIC_JAR)

    path = _extract(application, settings, resource, no_bundled)

    assert (path / "logo.png").read_bytes() == b"module"


def test_nested_protected_name_is_not_overridden(
    application, settings, make_resource, no_bundled
):
    _user_override(application, "logo.png", b"user-logo")
    resource = make_resource({"META-INF/resources/img/logo.png": b"nested"})

    path = _extract(application, settings, resource, no_bundled)

    assert (path / "img" / "logo.png").read_bytes() == b"nested"


def test_stylesheet_override_substitutes_placeholders(
    application, settings, make_resource, no_bundled
):
    _user_override(
        application,
        "style.css",
        b"/* {applicationName} {applicationVersion} / {toolVersion} */",
    )
    resource = make_resource(BASIC_JAR)

    path = _extract(application, settings, resource, no_bundled)

    assert (path / "style.css").read_bytes() == b"/* Shop 3.2 / 9.9 */"


def test_bundled_override_applies(application, settings, make_resource, tmp_path):
    bundled = tmp_path / "bundled"
    bundled.mkdir()
    (bundled / "favicon.ico").write_bytes(b"bundled-icon")
    resource = make_resource({"META-INF/resources/favicon.ico": b"original-icon"})

    path = copy_resources_for_dev_or_test(
        application,
        True,
        resource,
        ROOT,
        settings=settings,
        bundled=DirectoryBrandingLookup(bundled),
    )

    assert (path / "favicon.ico").read_bytes() == b"bundled-icon"


def test_unreadable_override_keeps_original(application, settings, make_resource, no_bundled):
    (application.paths[0] / "META-INF" / "branding" / "logo.png").mkdir(parents=True)
    resource = make_resource(BASIC_JAR)

    path = _extract(application, settings, resource, no_bundled)

    assert (path / "logo.png").read_bytes() == b"original-logo"


def test_stable_dev_extraction_is_reused(application, settings, make_resource, no_bundled):
    resource = make_resource(BASIC_JAR)
    path = _extract(application, settings, resource, no_bundled)
    (path / "app.js").write_bytes(b"edited locally")

    extractor = build_extractor(application, settings, no_bundled)
    again, report = extractor.extract_with_report(application.artifact, resource, ROOT, True)

    assert again == path
    assert report.reused
    assert report.files == 0
    assert (path / "app.js").read_bytes() == b"edited locally"


def test_snapshot_is_extracted_again(application, settings, make_resource, no_bundled):
    resource = make_resource(BASIC_JAR, version="2.2-SNAPSHOT")
    path = _extract(application, settings, resource, no_bundled)
    (path / "app.js").write_bytes(b"stale")
    (path / "leftover.txt").write_bytes(b"stale")

    _extract(application, settings, resource, no_bundled)

    assert (path / "app.js").read_bytes() == b"console.log('ui');"
    assert not (path / "leftover.txt").exists()


def test_non_dev_mode_is_extracted_again(application, settings, make_resource, no_bundled):
    resource = make_resource(BASIC_JAR)
    path = _extract(application, settings, resource, no_bundled, dev_mode=False)
    (path / "leftover.txt").write_bytes(b"stale")

    _extract(application, settings, resource, no_bundled, dev_mode=False)

    assert _files(path) == ["app.js", "css/site.css", "logo.png", "style.css"]


def test_directory_root(application, settings, no_bundled, tmp_path, tree_factory):
    _user_override(application, "style.css", b"/* {applicationName} */")
    root = tree_factory(
        tmp_path / "expanded",
        {
            "META-INF/resources/index.html": b"<html></html>",
            "META-INF/resources/js/app.js": b"app",
            "META-INF/resources/style.css": b"original",
            "META-INF/MANIFEST.MF": b"ignored",
        },
    )
    resource = ResourceArtifact(ArtifactIdentity("org.webjars", "ui", "2.1"), (root,))

    extractor = build_extractor(application, settings, no_bundled)
    path, report = extractor.extract_with_report(application.artifact, resource, ROOT, True)

    assert _files(path) == ["index.html", "js/app.js", "style.css"]
    assert (path / "style.css").read_bytes() == b"/* Shop */"
    assert report.overrides == 1
    assert report.files == 3


def test_directory_root_without_root_folder_is_skipped(
    application, settings, no_bundled, tmp_path, tree_factory
):
    root = tree_factory(tmp_path / "classes", {"com/acme/Main.class": b"\xca\xfe"})
    resource = ResourceArtifact(ArtifactIdentity("org.webjars", "ui", "2.1"), (root,))

    path = _extract(application, settings, resource, no_bundled)

    assert path.is_dir()
    assert _files(path) == []


def test_multiple_roots_in_order(
    application, settings, no_bundled, tmp_path, jar_factory, tree_factory
):
    jar = jar_factory(tmp_path / "ui.jar", {"META-INF/resources/app.js": b"from-jar"})
    expanded = tree_factory(tmp_path / "expanded", {"META-INF/resources/app.js": b"from-dir"})
    resource = ResourceArtifact(ArtifactIdentity("org.webjars", "ui", "2.1"), (jar, expanded))

    path = _extract(application, settings, resource, no_bundled)

    assert (path / "app.js").read_bytes() == b"from-dir"


def test_tar_archive_root(application, settings, no_bundled, tmp_path, tar_factory):
    archive = tar_factory(
        tmp_path / "ui.tar.gz",
        {
            "META-INF/resources/": None,
            "META-INF/resources/app.js": b"tarred",
            "META-INF/resources/logo.png": b"original",
        },
    )
    _user_override(application, "ui.png", b"module-logo")
    resource = ResourceArtifact(ArtifactIdentity("org.webjars", "ui", "2.1"), (archive,))

    path = _extract(application, settings, resource, no_bundled)

    assert (path / "app.js").read_bytes() == b"tarred"
    assert (path / "logo.png").read_bytes() == b"module-logo"


def test_missing_content_root_fails(application, settings, no_bundled, tmp_path):
    resource = ResourceArtifact(
        ArtifactIdentity("org.webjars", "ui", "2.1"), (tmp_path / "missing.jar",)
    )

    with pytest.raises(ExtractionError) as excinfo:
        _extract(application, settings, resource, no_bundled)

    assert excinfo.value.artifact == "org.webjars:ui:2.1"


def test_unsupported_archive_fails(application, settings, no_bundled, tmp_path):
    bogus = tmp_path / "ui.jar"
    bogus.write_bytes(b"definitely not an archive")
    resource = ResourceArtifact(ArtifactIdentity("org.webjars", "ui", "2.1"), (bogus,))

    with pytest.raises(ExtractionError, match="Failed to extract META-INF/resources/ from"):
        _extract(application, settings, resource, no_bundled)


def test_traversal_entry_rejected(application, settings, make_resource, no_bundled):
    resource = make_resource({"META-INF/resources/../../evil.txt": b"boom"})

    with pytest.raises(ExtractionError, match="Unsafe path"):
        _extract(application, settings, resource, no_bundled)

    assert not (settings.temp_root / "webjars" / "com.acme" / "shop" / "evil.txt").exists()


def test_locked_targets_are_skipped(application, settings, make_resource, no_bundled):
    writer = SkippingWriter()
    resource = make_resource(BASIC_JAR)
    extractor = build_extractor(application, settings, no_bundled, writer=writer)

    path, report = extractor.extract_with_report(application.artifact, resource, ROOT, True)

    assert report.skipped == 4
    assert report.files == 0
    assert sorted(t.relative_to(path).as_posix() for t in writer.targets) == [
        "app.js",
        "css/site.css",
        "logo.png",
        "style.css",
    ]


@pytest.mark.parametrize(
    ("entry", "expected"),
    [
        ("META-INF/resources/", None),
        ("META-INF/resources/app.js", "app.js"),
        ("META-INF/resources/css/", "css"),
        ("META-INF\\resources\\img\\a.png", "img/a.png"),
        ("META-INF/other/app.js", None),
        ("org/Main.class", None),
    ],
)
def test_relative_entry_path(entry, expected):
    assert relative_entry_path(entry, ROOT) == expected


@pytest.mark.parametrize(
    "entry", ["META-INF/resources/../x", "META-INF/resources/a/./b", "META-INF/resources/a//b"]
)
def test_relative_entry_path_rejects_unsafe(entry):
    with pytest.raises(ExtractionError):
        relative_entry_path(entry, ROOT)

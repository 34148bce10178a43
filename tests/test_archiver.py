# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Tests for package archive creation and extraction
"""

import io
import os
import stat
import zipfile

import pytest

from stof_dist.archiver import PackageArchiver
from stof_dist.core.errors import ArchiveError, EmptyResponse, ManifestNotFound

from conftest import archive_names, make_package, write_files, write_manifest


@pytest.fixture
def archiver(config):
    return PackageArchiver(config)


@pytest.fixture
def package_dir(tmp_path):
    pkg = tmp_path / "base"
    write_manifest(pkg, {"name": "@acme/base"})
    write_files(pkg, {
        "lib.json": "{}",
        "src/main.json": "{\"main\": true}",
        "src/notes.txt": "notes",
        "secret.json": "{\"key\": 1}",
        "build/out.bin": "xx",
        "__stof__/acme/util/pkg.yaml": "name: '@acme/util'\n",
    })
    return pkg


class TestBuild:
    """Filtered archive creation"""

    def test_reserved_directory_never_archived(self, archiver, package_dir):
        names = archive_names(archiver.build(package_dir))

        assert "lib.json" in names
        assert "src/main.json" in names
        assert not any("__stof__" in n for n in names)

    def test_nested_reserved_directory_skipped(self, archiver, package_dir):
        write_files(package_dir, {"src/__stof__/x.json": "{}"})

        names = archive_names(archiver.build(package_dir))

        assert not any("__stof__" in n for n in names)

    def test_include_is_allowlist(self, archiver, package_dir):
        names = archive_names(archiver.build(package_dir, include=["\\.json$"]))

        assert "lib.json" in names
        assert "src/main.json" in names
        assert "src/notes.txt" not in names
        assert "pkg.yaml" not in names

    def test_exclude_wins_over_include(self, archiver, package_dir):
        names = archive_names(archiver.build(
            package_dir,
            include=["\\.json$"],
            exclude=["secret"]
        ))

        assert "lib.json" in names
        assert "secret.json" not in names

    def test_excluded_directory_is_pruned(self, archiver, package_dir):
        names = archive_names(archiver.build(package_dir, exclude=["^build"]))

        assert not any(n.startswith("build") for n in names)
        assert "src/notes.txt" in names

    def test_invalid_pattern(self, archiver, package_dir, staging_dir):
        with pytest.raises(ArchiveError):
            archiver.build(package_dir, include=["("])

        assert list(staging_dir.iterdir()) == []

    def test_temp_archive_removed_after_build(self, archiver, package_dir, staging_dir):
        archiver.build(package_dir)

        assert list(staging_dir.iterdir()) == []

    def test_temp_archive_owned_by_caller(self, archiver, package_dir, staging_dir):
        path = archiver.create_temp_archive(package_dir)

        assert path.parent == staging_dir
        assert path.suffix == ".pkg"
        assert zipfile.is_zipfile(path)
        path.unlink()

    def test_not_a_directory(self, archiver, tmp_path, staging_dir):
        with pytest.raises(ArchiveError):
            archiver.build(tmp_path / "missing")

        assert list(staging_dir.iterdir()) == []


class TestPackageFile:
    """Writing .pkg files"""

    def test_default_output_path(self, archiver, package_dir):
        out = archiver.create_package_file(package_dir)

        assert out == package_dir.parent / "base.pkg"
        assert "lib.json" in archive_names(out.read_bytes())

    def test_manifest_patterns_applied(self, archiver, package_dir):
        write_manifest(package_dir, {"name": "@acme/base", "exclude": ["secret", "^build"]})

        names = archive_names(archiver.create_package_file(package_dir).read_bytes())

        assert "secret.json" not in names
        assert not any(n.startswith("build") for n in names)

    def test_extension_appended(self, archiver, package_dir, tmp_path):
        out = archiver.create_package_file(package_dir, tmp_path / "dist" / "release")

        assert out == tmp_path / "dist" / "release.pkg"
        assert out.exists()

    def test_overwrite(self, archiver, package_dir, tmp_path):
        target = tmp_path / "base.pkg"
        target.write_text("stale")

        archiver.create_package_file(package_dir)

        assert zipfile.is_zipfile(target)

    def test_no_overwrite(self, archiver, package_dir, tmp_path):
        (tmp_path / "base.pkg").write_text("stale")

        with pytest.raises(ArchiveError):
            archiver.create_package_file(package_dir, overwrite=False)

    def test_requires_manifest(self, archiver, tmp_path):
        (tmp_path / "loose").mkdir()

        with pytest.raises(ManifestNotFound):
            archiver.create_package_file(tmp_path / "loose")

    def test_output_path_is_directory(self, archiver, package_dir, tmp_path):
        (tmp_path / "base.pkg").mkdir()

        with pytest.raises(ArchiveError):
            archiver.create_package_file(package_dir)

        assert (tmp_path / "base.pkg").is_dir()


class TestExtract:
    """Unpacking downloaded archives"""

    def test_round_trip(self, archiver, package_dir, tmp_path):
        dest = tmp_path / "out"

        written = archiver.extract(archiver.build(package_dir), dest, "@acme/base")

        assert "lib.json" in written
        assert (dest / "src" / "main.json").read_text() == "{\"main\": true}"
        assert not (dest / "__stof__").exists()

    def test_permissions_restored(self, archiver, package_dir, tmp_path):
        script = package_dir / "run.sh"
        script.write_text("#!/bin/sh\n")
        script.chmod(0o755)
        dest = tmp_path / "out"

        archiver.extract(archiver.build(package_dir), dest)

        assert stat.S_IMODE(os.stat(dest / "run.sh").st_mode) == 0o755

    def test_replaces_existing(self, archiver, tmp_path):
        dest = tmp_path / "out"
        write_files(dest, {"stale.txt": "old"})

        archiver.extract(make_package({"fresh.txt": "new"}), dest)

        assert not (dest / "stale.txt").exists()
        assert (dest / "fresh.txt").read_text() == "new"

    def test_empty_data(self, archiver, tmp_path):
        with pytest.raises(EmptyResponse):
            archiver.extract(b"", tmp_path / "out", "@acme/base")

    def test_not_a_zip_keeps_existing(self, archiver, tmp_path):
        dest = tmp_path / "out"
        write_files(dest, {"keep.txt": "kept"})

        with pytest.raises(EmptyResponse):
            archiver.extract(b"<html>not found</html>", dest, "@acme/base")

        assert (dest / "keep.txt").read_text() == "kept"

    def test_entry_outside_destination_skipped(self, archiver, tmp_path):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr("../evil.txt", "evil")
            zf.writestr("good.txt", "good")
        dest = tmp_path / "out"

        written = archiver.extract(buffer.getvalue(), dest)

        assert written == ["good.txt"]
        assert not (tmp_path / "evil.txt").exists()

    def test_corrupt_entry_skipped(self, archiver, tmp_path):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_STORED) as zf:
            zf.writestr("bad.txt", "corrupted payload")
            zf.writestr("good.txt", "fine")
        # Flip stored bytes so the CRC check fails for bad.txt only
        data = buffer.getvalue().replace(b"corrupted payload", b"CORRUPTED payload")
        dest = tmp_path / "out"

        written = archiver.extract(data, dest)

        assert written == ["good.txt"]
        assert (dest / "good.txt").read_text() == "fine"
        assert not (dest / "bad.txt").exists()

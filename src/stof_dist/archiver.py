# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Package Archiver

Single responsibility: Build filtered zip archives of package directories
and unpack downloaded ones into the workspace.
"""

import io
import logging
import os
import re
import shutil
import tempfile
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Pattern

from .core.config import Config
from .core.errors import ArchiveError, EmptyResponse
from .manifest import ManifestReader

logger = logging.getLogger(__name__)


def _compile(patterns: Iterable[str], kind: str) -> List[Pattern]:
    compiled = []
    for pattern in sorted(patterns):
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise ArchiveError(f"Invalid {kind} pattern '{pattern}': {e}", details={"pattern": pattern})
    return compiled


class PackageArchiver:
    """Creates and extracts package archives"""

    def __init__(self, config: Optional[Config] = None, manifest_reader: Optional[ManifestReader] = None):
        """
        Initialize archiver.

        Args:
            config: Client configuration (reserved dir name, staging dir, extension)
            manifest_reader: Reader used by create_package_file
        """
        self.config = config or Config()
        self.manifest_reader = manifest_reader or ManifestReader(self.config)

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def create_temp_archive(
        self,
        directory: Path,
        include: Iterable[str] = (),
        exclude: Iterable[str] = ()
    ) -> Path:
        """
        Zip a package directory into a staging file.

        The caller owns the returned file and must remove it.

        Raises:
            ArchiveError: On any read error or unencodable path
        """
        try:
            fd, tmp_name = tempfile.mkstemp(
                suffix=self.config.archive_extension,
                prefix="stof-",
                dir=self.config.staging_dir
            )
        except OSError as e:
            raise ArchiveError(f"Cannot stage archive in {self.config.staging_dir or tempfile.gettempdir()}: {e}")
        os.close(fd)
        tmp_path = Path(tmp_name)

        try:
            self._write_archive(Path(directory), tmp_path, include, exclude)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

        return tmp_path

    def build(
        self,
        directory: Path,
        include: Iterable[str] = (),
        exclude: Iterable[str] = ()
    ) -> bytes:
        """
        Zip a package directory and return the archive bytes.

        Raises:
            ArchiveError: On any read error or unencodable path
        """
        tmp_path = self.create_temp_archive(directory, include, exclude)
        try:
            return tmp_path.read_bytes()
        except OSError as e:
            raise ArchiveError(f"Failed to read staged archive {tmp_path}: {e}")
        finally:
            tmp_path.unlink(missing_ok=True)

    def create_package_file(
        self,
        directory: Path,
        out_path: Optional[Path] = None,
        overwrite: bool = True
    ) -> Path:
        """
        Write a .pkg file for a package directory, honoring its manifest's
        include/exclude patterns.

        Args:
            directory: Package directory (must contain a manifest)
            out_path: Output path, default <directory>.pkg
            overwrite: Replace an existing output file

        Returns:
            Path of the written package file

        Raises:
            ManifestNotFound: If the directory has no manifest
            ArchiveError: If the file exists and overwrite is False, or the build fails
        """
        directory = Path(directory)
        manifest = self.manifest_reader.load(directory)

        out = str(out_path) if out_path else str(directory).rstrip("/\\")
        if not out.endswith(self.config.archive_extension):
            out = f"{out}{self.config.archive_extension}"
        out_file = Path(out)

        if out_file.exists():
            if not overwrite:
                raise ArchiveError(f"Package file already exists: {out_file}")
            try:
                out_file.unlink()
            except OSError as e:
                raise ArchiveError(f"Cannot replace {out_file}: {e}")

        tmp_path = self.create_temp_archive(directory, manifest.include, manifest.exclude)
        try:
            out_file.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(tmp_path), str(out_file))
        except OSError as e:
            raise ArchiveError(f"Failed to write package file {out_file}: {e}")
        finally:
            tmp_path.unlink(missing_ok=True)

        logger.info(f"Created package file {out_file}")
        return out_file

    def _write_archive(
        self,
        root: Path,
        out_file: Path,
        include: Iterable[str],
        exclude: Iterable[str]
    ):
        if not root.is_dir():
            raise ArchiveError(f"Not a directory: {root}")

        includes = _compile(include, "include")
        excludes = _compile(exclude, "exclude")
        reserved = self.config.install_dir_name

        def matches(patterns: List[Pattern], rel: str) -> bool:
            return any(p.search(rel) for p in patterns)

        def walk_error(error: OSError):
            raise error

        count = 0
        try:
            with zipfile.ZipFile(out_file, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                for current, dirs, files in os.walk(root, onerror=walk_error):
                    current_path = Path(current)
                    dirs.sort()

                    kept_dirs = []
                    for name in dirs:
                        rel = self._relative(current_path / name, root)
                        if reserved in PurePosixPath(rel).parts:
                            continue
                        if matches(excludes, rel):
                            logger.debug(f"Excluded directory {rel}")
                            continue
                        kept_dirs.append(name)
                        if not includes or matches(includes, rel):
                            zf.write(current_path / name, arcname=rel)
                    # Prune in place so os.walk does not descend
                    dirs[:] = kept_dirs

                    for name in sorted(files):
                        rel = self._relative(current_path / name, root)
                        if reserved in PurePosixPath(rel).parts:
                            continue
                        if matches(excludes, rel):
                            logger.debug(f"Excluded {rel}")
                            continue
                        if includes and not matches(includes, rel):
                            continue
                        zf.write(current_path / name, arcname=rel)
                        count += 1
        except OSError as e:
            raise ArchiveError(f"Failed to archive {root}: {e}", details={"directory": str(root)})

        logger.debug(f"Archived {count} files from {root}")

    def _relative(self, path: Path, root: Path) -> str:
        rel = path.relative_to(root).as_posix()
        try:
            rel.encode("utf-8")
        except UnicodeEncodeError:
            raise ArchiveError(f"Path is not representable as text: {path!r}")
        return rel

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def extract(self, data: bytes, dest: Path, package: str = "") -> List[str]:
        """
        Unpack archive bytes into dest, replacing whatever was there.

        Entries that cannot be read, or that would land outside dest, are
        skipped with a warning rather than failing the whole extraction.

        Args:
            data: Zip archive bytes
            dest: Target directory (deleted first if present)
            package: Package name for messages

        Returns:
            Names of the entries written

        Raises:
            EmptyResponse: If data is empty or not a zip archive
        """
        if not data:
            raise EmptyResponse(package or str(dest))

        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except zipfile.BadZipFile as e:
            raise EmptyResponse(package or str(dest), reason=f"not a package archive ({e})")

        dest = Path(dest)
        if dest.exists():
            shutil.rmtree(dest)
        dest.mkdir(parents=True, exist_ok=True)
        dest_root = dest.resolve()

        written = []
        with archive:
            for info in archive.infolist():
                target = (dest / info.filename).resolve()
                if target != dest_root and dest_root not in target.parents:
                    logger.warning(f"Skipping entry outside package directory: {info.filename}")
                    continue

                try:
                    if info.is_dir():
                        target.mkdir(parents=True, exist_ok=True)
                    else:
                        content = archive.read(info)
                        target.parent.mkdir(parents=True, exist_ok=True)
                        target.write_bytes(content)
                        mode = (info.external_attr >> 16) & 0o777
                        if mode:
                            os.chmod(target, mode)
                except (OSError, RuntimeError, zipfile.BadZipFile, zlib.error, NotImplementedError) as e:
                    logger.warning(f"Skipping unreadable entry {info.filename} in {package or dest}: {e}")
                    continue

                written.append(info.filename)

        return written

# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Dependency Installer

Single responsibility: Download packages from registries into the workspace
install directory, following their dependencies.
"""

import asyncio
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Set

import httpx

from .archiver import PackageArchiver
from .client import auth_for, build_client, registry_package_url
from .core.config import Config
from .core.errors import (
    ArchiveError,
    DownloadFailed,
    EmptyResponse,
    InvalidManifest,
    ManifestNotFound,
    RegistryUrlMissing,
    StofDistError,
)
from .manifest import ManifestReader
from .models import (
    Credentials,
    DependencyRef,
    InstallFailure,
    InstallRecord,
    InstallReport,
    OperationStatus,
    strip_package_name,
)
from .resolver import RegistryResolver

logger = logging.getLogger(__name__)


@dataclass
class _Pending:
    package: str
    registry: Optional[str] = None
    dependency: bool = False


class DependencyInstaller:
    """Installs packages and their dependency trees, one at a time"""

    def __init__(
        self,
        config: Optional[Config] = None,
        manifest_reader: Optional[ManifestReader] = None,
        resolver: Optional[RegistryResolver] = None,
        archiver: Optional[PackageArchiver] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize dependency installer.

        Args:
            config: Client configuration
            manifest_reader: Manifest reader
            resolver: Registry resolver
            archiver: Archiver used for extraction
            transport: Optional HTTP transport override
        """
        self.config = config or Config()
        self.manifest_reader = manifest_reader or ManifestReader(self.config)
        self.resolver = resolver or RegistryResolver()
        self.archiver = archiver or PackageArchiver(self.config, self.manifest_reader)
        self.transport = transport

    async def install(
        self,
        workspace_dir: Path,
        package: str,
        registry_name: Optional[str] = None,
        credentials: Optional[Credentials] = None
    ) -> InstallReport:
        """
        Install a package and, transitively, its dependencies.

        Packages are processed depth-first in declaration order; each
        dependency (with its own dependencies) finishes before the next
        sibling starts. A package already handled in this call is skipped.

        Args:
            workspace_dir: Workspace whose manifest declares the registries
            package: Package name, '@' prefix optional
            registry_name: Registry to use for the requested package
            credentials: Optional Basic-Auth credentials, inherited by dependencies

        Returns:
            Install report. FAILED when the requested package could not be
            installed, PARTIAL when only some dependencies failed.
        """
        workspace = Path(workspace_dir)
        report = InstallReport(package=package)
        visited: Set[str] = set()
        stack: List[_Pending] = [_Pending(package=package, registry=registry_name)]

        async with build_client(self.config, self.transport) as client:
            while stack:
                item = stack.pop()
                stripped = strip_package_name(item.package)
                if stripped in visited:
                    logger.debug(f"Already handled {item.package}, skipping")
                    report.skipped.append(item.package)
                    continue
                visited.add(stripped)

                try:
                    record = await self._install_one(client, workspace, item, credentials)
                except StofDistError as e:
                    logger.error(f"Failed to add {item.package}: {e.message}")
                    report.failures.append(InstallFailure(
                        package=item.package,
                        error=type(e).__name__,
                        message=e.message
                    ))
                    if not item.dependency:
                        report.status = OperationStatus.FAILED
                        return report
                    continue

                report.installed.append(record)
                if item.dependency:
                    logger.info(f"... added dependency {item.package}")
                else:
                    logger.info(f"added {item.package}")

                for dep in reversed(self._dependencies_of(record.path)):
                    stack.append(_Pending(package=dep.name, registry=dep.registry, dependency=True))

        if report.failures:
            report.status = OperationStatus.PARTIAL
        return report

    async def _install_one(
        self,
        client: httpx.AsyncClient,
        workspace: Path,
        item: _Pending,
        credentials: Optional[Credentials]
    ) -> InstallRecord:
        """
        Download and unpack a single package.

        Raises:
            ManifestNotFound, RegistryNotFound, RegistryUrlMissing,
            InvalidManifest, DownloadFailed, EmptyResponse, ArchiveError
        """
        manifest = self.manifest_reader.load(workspace)
        registry = self.resolver.resolve(manifest, item.registry)
        if not registry.url:
            raise RegistryUrlMissing(registry.name)

        stripped = strip_package_name(item.package)
        dest = self._install_path(workspace, item.package)
        url = registry_package_url(registry.url, stripped)

        try:
            response = await client.get(url, auth=auth_for(credentials))
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise DownloadFailed(item.package, str(e) or type(e).__name__, details={"url": url})

        if not response.is_success:
            raise DownloadFailed(
                item.package,
                f"does not exist or not authenticated (HTTP {response.status_code})",
                status_code=response.status_code,
                details={"url": url}
            )

        data = response.content
        if not data:
            raise EmptyResponse(item.package)

        try:
            await asyncio.to_thread(self.archiver.extract, data, dest, item.package)
        except OSError as e:
            raise ArchiveError(f"Failed to unpack {item.package} into {dest}: {e}")

        return InstallRecord(
            package=item.package,
            stripped_name=stripped,
            registry=registry.label(),
            url=url,
            path=dest,
            dependency=item.dependency
        )

    def _install_path(self, workspace: Path, package: str) -> Path:
        """
        Directory a package unpacks into, always inside the install root.

        Raises:
            InvalidManifest: If the name is empty or escapes the install root
        """
        install_root = self.config.install_root(workspace)
        stripped = strip_package_name(package)
        dest = install_root / stripped
        if not stripped or install_root.resolve() not in dest.resolve().parents:
            raise InvalidManifest(
                f"Package name {package!r} does not map to a directory under {install_root}",
                details={"package": package}
            )
        return dest

    def _dependencies_of(self, package_dir: Path) -> List[DependencyRef]:
        if not self.manifest_reader.exists(package_dir):
            return []
        try:
            return self.manifest_reader.load(package_dir).dependencies
        except ManifestNotFound as e:
            logger.warning(f"Skipping dependencies of {package_dir}: {e.message}")
            return []

    async def remove(self, workspace_dir: Path, name: str) -> bool:
        """
        Remove an installed package from the workspace.

        Args:
            workspace_dir: Workspace directory
            name: Package name, '@' prefix optional

        Returns:
            True if the package directory was deleted, False if it did not
            exist or could not be deleted
        """
        try:
            target = self._install_path(Path(workspace_dir), name)
        except InvalidManifest:
            logger.error(f"Refusing to remove {name!r}: not a package path")
            return False

        try:
            await asyncio.to_thread(shutil.rmtree, target)
        except OSError as e:
            logger.error(f"Failed to remove {name}: {e}")
            return False

        logger.info(f"removed {name}")
        return True

# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Package Publisher

Single responsibility: Upload (or delete) the current package on every
registry in its manifest's publish list.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import aiofiles
import httpx

from .archiver import PackageArchiver
from .client import auth_for, build_client, registry_package_url
from .core.config import Config
from .core.errors import InvalidManifest, StofDistError
from .manifest import ManifestReader
from .models import (
    Credentials,
    Manifest,
    OperationStatus,
    PublishReport,
    Registry,
    RegistryResult,
)

logger = logging.getLogger(__name__)


class Publisher:
    """Publishes and unpublishes packages across registries"""

    def __init__(
        self,
        config: Optional[Config] = None,
        manifest_reader: Optional[ManifestReader] = None,
        archiver: Optional[PackageArchiver] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize publisher.

        Args:
            config: Client configuration
            manifest_reader: Manifest reader
            archiver: Archiver used to build the upload
            transport: Optional HTTP transport override
        """
        self.config = config or Config()
        self.manifest_reader = manifest_reader or ManifestReader(self.config)
        self.archiver = archiver or PackageArchiver(self.config, self.manifest_reader)
        self.transport = transport

    def _load_targets(self, package_dir: Path, registry_name: Optional[str]):
        """
        Load the manifest and the registries to publish to.

        Raises:
            ManifestNotFound: If the manifest is missing
            InvalidManifest: If name or publish list is empty
        """
        manifest = self.manifest_reader.load(package_dir)
        targets = manifest.publish
        if registry_name:
            targets = [t for t in targets if t.name == registry_name]

        if not manifest.stripped_name or not targets:
            raise InvalidManifest(
                "Not a valid name or didn't find any registries to publish to",
                path=str(manifest.path),
                details={"name": manifest.name, "registry": registry_name}
            )
        return manifest, targets

    async def publish(
        self,
        package_dir: Path,
        credentials: Optional[Credentials] = None,
        registry_name: Optional[str] = None
    ) -> PublishReport:
        """
        Publish a package to every registry in its publish list, concurrently.

        All uploads run to completion; one registry failing does not stop or
        hide the others.

        Args:
            package_dir: Package directory containing the manifest
            credentials: Optional Basic-Auth credentials
            registry_name: Only publish to the target declared under this name

        Returns:
            Publish report with one result per registry
        """
        report = PublishReport(operation="publish")
        tmp_path = None
        try:
            manifest, targets = self._load_targets(Path(package_dir), registry_name)
            report.package = manifest.name

            tmp_path = await asyncio.to_thread(
                self.archiver.create_temp_archive,
                Path(package_dir),
                manifest.include,
                manifest.exclude
            )
            async with aiofiles.open(tmp_path, "rb") as f:
                data = await f.read()

            async with build_client(self.config, self.transport) as client:
                tasks = [
                    self._put(client, target, manifest, data, credentials)
                    for target in targets
                ]
                results = await asyncio.gather(*tasks, return_exceptions=True)

            for target, result in zip(targets, results):
                if isinstance(result, Exception):
                    logger.error(f"Publish to {target.label()} failed: {result}")
                    result = RegistryResult(registry=target.label(), url=target.url, error=str(result))
                report.results.append(result)

        except StofDistError as e:
            logger.error(f"publish error: {e.message}")
            report.status = OperationStatus.FAILED
            report.error = type(e).__name__
            report.message = e.message
            return report
        except OSError as e:
            logger.error(f"publish error: {e}")
            report.status = OperationStatus.FAILED
            report.error = type(e).__name__
            report.message = str(e)
            return report
        finally:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)

        report.status = self._status(report.results)
        logger.info(f"Published {report.package}: {report.status.value}")
        return report

    async def _put(
        self,
        client: httpx.AsyncClient,
        target: Registry,
        manifest: Manifest,
        data: bytes,
        credentials: Optional[Credentials]
    ) -> RegistryResult:
        if not target.url or not data:
            logger.error(f"publish error: registry URL not found for {target.label()}, or package has a size of 0 bytes")
            return RegistryResult(
                registry=target.label(),
                url=target.url,
                error="registry URL not found, or package has a size of 0 bytes"
            )

        url = registry_package_url(target.url, manifest.stripped_name)
        try:
            response = await client.put(url, content=data, auth=auth_for(credentials))
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"publish send error: {url}: {e}")
            return RegistryResult(registry=target.label(), url=url, error=str(e) or type(e).__name__)

        logger.info(f"{url} ... {response.text}")
        return RegistryResult(
            registry=target.label(),
            url=url,
            status_code=response.status_code,
            text=response.text
        )

    async def unpublish(
        self,
        package_dir: Path,
        credentials: Optional[Credentials] = None,
        registry_name: Optional[str] = None
    ) -> PublishReport:
        """
        Delete a package from every registry in its publish list, one at a time.

        Args:
            package_dir: Package directory containing the manifest
            credentials: Optional Basic-Auth credentials
            registry_name: Only unpublish from the target declared under this name

        Returns:
            Unpublish report with one result per registry
        """
        report = PublishReport(operation="unpublish")
        try:
            manifest, targets = self._load_targets(Path(package_dir), registry_name)
        except StofDistError as e:
            logger.error(f"unpublish error: {e.message}")
            report.status = OperationStatus.FAILED
            report.error = type(e).__name__
            report.message = e.message
            return report

        report.package = manifest.name
        async with build_client(self.config, self.transport) as client:
            for target in targets:
                if not target.url:
                    report.results.append(RegistryResult(
                        registry=target.label(),
                        error="registry URL not found"
                    ))
                    continue

                url = registry_package_url(target.url, manifest.stripped_name)
                try:
                    response = await client.delete(url, auth=auth_for(credentials))
                except (httpx.HTTPError, httpx.InvalidURL) as e:
                    logger.error(f"unpublish send error: {url}: {e}")
                    report.results.append(RegistryResult(
                        registry=target.label(),
                        url=url,
                        error=str(e) or type(e).__name__
                    ))
                    continue

                logger.info(f"{url} ... {response.text}")
                report.results.append(RegistryResult(
                    registry=target.label(),
                    url=url,
                    status_code=response.status_code,
                    text=response.text
                ))

        report.status = self._status(report.results)
        logger.info(f"Unpublished {report.package}: {report.status.value}")
        return report

    def _status(self, results: List[RegistryResult]) -> OperationStatus:
        succeeded = sum(1 for r in results if r.ok)
        if succeeded == len(results):
            return OperationStatus.COMPLETED
        if succeeded:
            return OperationStatus.PARTIAL
        return OperationStatus.FAILED

# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Custom exceptions for stof-dist.

All exceptions inherit from StofDistError for consistent error handling.
Public operations catch StofDistError and turn it into a failed report.
"""

from typing import Optional


class StofDistError(Exception):
    """Base exception for all stof-dist errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize stof-dist error.

        Args:
            message: Human-readable error message
            details: Additional error details
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert error to dictionary for reports."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class ManifestNotFound(StofDistError):
    """Package manifest missing or unparsable."""

    def __init__(self, path: str, reason: str = "not found", details: Optional[dict] = None):
        """
        Initialize manifest error.

        Args:
            path: Manifest file path
            reason: Why the manifest could not be loaded
            details: Additional error details
        """
        super().__init__(f"Manifest {reason}: {path}", details=details)
        self.path = path


class RegistryNotFound(StofDistError):
    """No matching registry in the manifest."""

    def __init__(self, registry_name: Optional[str] = None, details: Optional[dict] = None):
        if registry_name:
            message = f"Registry not found: {registry_name}"
        else:
            message = "No registry defined - declare one under 'registries' in the manifest"
        super().__init__(message, details=details)
        self.registry_name = registry_name


class RegistryUrlMissing(StofDistError):
    """Registry definition has no url."""

    def __init__(self, registry_name: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(f"Registry URL not found: {registry_name or '<inline>'}", details=details)
        self.registry_name = registry_name


class DownloadFailed(StofDistError):
    """Package download failed (non-2xx or transport error)."""

    def __init__(
        self,
        package: str,
        reason: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None
    ):
        super().__init__(f"Failed to download {package}: {reason}", details=details)
        self.package = package
        self.status_code = status_code


class EmptyResponse(StofDistError):
    """Response body was empty or not a package archive."""

    def __init__(self, package: str, reason: str = "empty response body", details: Optional[dict] = None):
        super().__init__(f"Could not read package {package}: {reason}", details=details)
        self.package = package


class ArchiveError(StofDistError):
    """Archive could not be built or written."""
    pass


class InvalidManifest(StofDistError):
    """Manifest is missing a name or a publish list."""

    def __init__(self, message: str, path: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, details=details)
        self.path = path


class AdminRequestFailed(StofDistError):
    """Admin user request could not be sent."""

    def __init__(self, address: str, reason: str, details: Optional[dict] = None):
        super().__init__(f"Admin request to {address} failed: {reason}", details=details)
        self.address = address


class RemoteExecutionError(StofDistError):
    """Remote run request could not be sent or prepared."""

    def __init__(self, address: str, reason: str, details: Optional[dict] = None):
        super().__init__(f"Remote execution on {address} failed: {reason}", details=details)
        self.address = address


class DocumentError(StofDistError):
    """Document could not be decoded, encoded or called."""
    pass

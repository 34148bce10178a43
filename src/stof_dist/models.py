# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Data Models

Manifest, registry and credential structures plus the reports returned by
every public operation (install, publish, run, admin).
"""

from enum import Enum, IntFlag
from pathlib import Path
from typing import FrozenSet, List, Optional, Set

import httpx
from pydantic import BaseModel, Field


def strip_package_name(name: str) -> str:
    """Canonical transfer/on-disk form of a package name (leading '@' removed)"""
    return name.lstrip("@")


class OperationStatus(str, Enum):
    """Outcome of a public operation"""
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


class Permission(IntFlag):
    """Remote user permission bits"""
    READ = 1
    WRITE = 2
    DELETE = 4
    EXEC = 8

    @classmethod
    def decompose(cls, value: int) -> Set["Permission"]:
        """
        Split a permission bitmask into its single flags.

        Args:
            value: Bitmask in the range 0..15

        Returns:
            Set of single Permission flags

        Raises:
            ValueError: If value has bits outside the 4-bit range
        """
        if value < 0 or value > 0b1111:
            raise ValueError(f"Permission mask out of range: {value}")
        return {flag for flag in cls if value & flag}


DEFAULT_PERMISSIONS = Permission.READ | Permission.EXEC


class Credentials(BaseModel):
    """Basic-Auth credentials, threaded through a single request chain"""
    username: str
    password: str

    @classmethod
    def from_optional(
        cls,
        username: Optional[str],
        password: Optional[str]
    ) -> Optional["Credentials"]:
        """Only build credentials when both parts were supplied"""
        if username is None or password is None:
            return None
        return cls(username=username, password=password)

    def auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(self.username, self.password)


class Registry(BaseModel):
    """Registry endpoint declared in a manifest"""
    name: Optional[str] = None  # None for inline publish targets
    url: Optional[str] = None
    default: bool = False

    def label(self) -> str:
        return self.name or self.url or "<unnamed>"


class DependencyRef(BaseModel):
    """Dependency entry: bare package name or {name, registry}"""
    name: str
    registry: Optional[str] = None

    @property
    def stripped_name(self) -> str:
        return strip_package_name(self.name)


class Manifest(BaseModel):
    """Package manifest (pkg.yaml)"""
    path: Path
    name: str = ""
    dependencies: List[DependencyRef] = Field(default_factory=list)
    registries: List[Registry] = Field(default_factory=list)
    publish: List[Registry] = Field(default_factory=list)
    include: FrozenSet[str] = Field(default_factory=frozenset)
    exclude: FrozenSet[str] = Field(default_factory=frozenset)

    @property
    def stripped_name(self) -> str:
        return strip_package_name(self.name)

    @property
    def package_dir(self) -> Path:
        return self.path.parent

    def registry(self, name: str) -> Optional[Registry]:
        """Look up a declared registry by exact name"""
        for registry in self.registries:
            if registry.name == name:
                return registry
        return None


# =============================================================================
# REPORTS
# =============================================================================

class InstallRecord(BaseModel):
    """One package unpacked into the workspace"""
    package: str
    stripped_name: str
    registry: str
    url: str
    path: Path
    dependency: bool = False


class InstallFailure(BaseModel):
    """A package that could not be installed"""
    package: str
    error: str
    message: str


class InstallReport(BaseModel):
    """Result of installing a package and its dependency tree"""
    package: str
    status: OperationStatus = OperationStatus.COMPLETED
    installed: List[InstallRecord] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    failures: List[InstallFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.COMPLETED


class RegistryResult(BaseModel):
    """Response of one registry to a PUT or DELETE"""
    registry: str
    url: Optional[str] = None
    status_code: Optional[int] = None
    text: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.status_code is not None and 200 <= self.status_code < 300


class PublishReport(BaseModel):
    """Result of a publish or unpublish across all registries"""
    operation: str
    package: str = ""
    status: OperationStatus = OperationStatus.COMPLETED
    results: List[RegistryResult] = Field(default_factory=list)
    error: Optional[str] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.COMPLETED


class RunResult(BaseModel):
    """Result of a remote run"""
    address: str
    status: OperationStatus = OperationStatus.COMPLETED
    status_code: Optional[int] = None
    content_type: Optional[str] = None
    text: Optional[str] = None
    called: List[str] = Field(default_factory=list)
    failed_calls: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.COMPLETED


class AdminResult(BaseModel):
    """Result of an admin user request"""
    address: str
    status: OperationStatus = OperationStatus.COMPLETED
    status_code: Optional[int] = None
    text: str = ""
    error: Optional[str] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.COMPLETED

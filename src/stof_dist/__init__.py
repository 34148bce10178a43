# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
stof-dist: package distribution client.

Installs packages (and their dependencies) from registries into a
workspace, publishes packages to every registry in their manifest, runs
files and packages on remote runners and manages remote runner users.
"""

from .admin import AdminClient
from .archiver import PackageArchiver
from .core import Config, StofDistError, load_config
from .engine import Document, DocumentEngine, FunctionRef, StructuredDocumentEngine
from .installer import DependencyInstaller
from .manifest import ManifestReader
from .models import (
    Credentials,
    DEFAULT_PERMISSIONS,
    Manifest,
    OperationStatus,
    Permission,
    Registry,
    strip_package_name,
)
from .publisher import Publisher
from .remote import RemoteRunner
from .resolver import RegistryResolver

__version__ = "1.0.0"

__all__ = [
    "AdminClient",
    "Config",
    "Credentials",
    "DEFAULT_PERMISSIONS",
    "DependencyInstaller",
    "Document",
    "DocumentEngine",
    "FunctionRef",
    "Manifest",
    "ManifestReader",
    "OperationStatus",
    "PackageArchiver",
    "Permission",
    "Publisher",
    "Registry",
    "RegistryResolver",
    "RemoteRunner",
    "StofDistError",
    "StructuredDocumentEngine",
    "load_config",
    "strip_package_name",
]

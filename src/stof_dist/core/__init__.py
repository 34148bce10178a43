# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""Core infrastructure: configuration, errors, logging."""

from .config import Config, load_config
from .errors import (
    StofDistError,
    ManifestNotFound,
    RegistryNotFound,
    RegistryUrlMissing,
    DownloadFailed,
    EmptyResponse,
    ArchiveError,
    InvalidManifest,
    AdminRequestFailed,
    RemoteExecutionError,
    DocumentError,
)
from .logging import configure_logging, get_logger, log_event

__all__ = [
    "Config",
    "load_config",
    "StofDistError",
    "ManifestNotFound",
    "RegistryNotFound",
    "RegistryUrlMissing",
    "DownloadFailed",
    "EmptyResponse",
    "ArchiveError",
    "InvalidManifest",
    "AdminRequestFailed",
    "RemoteExecutionError",
    "DocumentError",
    "configure_logging",
    "get_logger",
    "log_event",
]

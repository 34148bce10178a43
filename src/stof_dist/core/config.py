# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
stof-dist configuration.

All values come from an optional YAML file; a handful of runtime knobs can be
overridden from the environment. Missing file means defaults.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "~/.stof/config.yaml"


# =============================================================================
# CONFIGURATION DATACLASS
# =============================================================================

@dataclass(frozen=True)
class Config:
    """
    Immutable client configuration.
    """

    # -- Package layout --
    manifest_filename: str = "pkg.yaml"
    install_dir_name: str = "__stof__"
    archive_extension: str = ".pkg"

    # -- Wire formats --
    package_content_type: str = "pkg"
    document_format: str = "bstof"
    admin_content_type: str = "stof"

    # -- HTTP --
    http_timeout: float = 30.0

    # -- Paths --
    staging_dir: Optional[str] = None

    # -- Logging --
    log_level: str = "INFO"
    log_format: str = "text"

    @property
    def binary_content_type(self) -> str:
        """Content type used when posting an already-built document"""
        return f"application/{self.document_format}"

    def install_root(self, workspace_dir: Path) -> Path:
        return Path(workspace_dir) / self.install_dir_name


# =============================================================================
# LOADER
# =============================================================================

def load_config(path: Optional[str] = None) -> Config:
    """
    Load configuration from YAML.

    Priority (highest to lowest):
    1. Environment variables (STOF_DIST_LOG_LEVEL, STOF_DIST_LOG_FORMAT,
       STOF_DIST_HTTP_TIMEOUT)
    2. YAML config file
    3. Default values

    Args:
        path: Path to YAML config file. If None, uses STOF_DIST_CONFIG env var
              or defaults to ~/.stof/config.yaml

    Returns:
        Config instance
    """
    path = path or os.getenv("STOF_DIST_CONFIG", DEFAULT_CONFIG_PATH)
    config_file = Path(path).expanduser()

    y = {}
    if config_file.exists():
        with open(config_file) as f:
            y = yaml.safe_load(f) or {}
        if not isinstance(y, dict):
            logger.warning(f"Ignoring config at {config_file}: top level is not a mapping")
            y = {}
    else:
        logger.debug(f"Config not found at {config_file}, using defaults")

    # Helper to safely navigate nested dicts
    def get(d: dict, *keys, default=None):
        for k in keys:
            if not isinstance(d, dict):
                return default
            d = d.get(k, {})
        return d if d != {} else default

    defaults = Config()
    return Config(
        # Package layout
        manifest_filename=get(y, "package", "manifest") or defaults.manifest_filename,
        install_dir_name=get(y, "package", "install_dir") or defaults.install_dir_name,
        archive_extension=get(y, "package", "archive_extension") or defaults.archive_extension,

        # Wire formats
        package_content_type=get(y, "formats", "package") or defaults.package_content_type,
        document_format=get(y, "formats", "document") or defaults.document_format,
        admin_content_type=get(y, "formats", "admin") or defaults.admin_content_type,

        # HTTP
        http_timeout=float(
            os.getenv("STOF_DIST_HTTP_TIMEOUT")
            or get(y, "http", "timeout")
            or defaults.http_timeout
        ),

        # Paths
        staging_dir=get(y, "paths", "staging"),

        # Logging
        log_level=os.getenv("STOF_DIST_LOG_LEVEL") or get(y, "logging", "level") or defaults.log_level,
        log_format=os.getenv("STOF_DIST_LOG_FORMAT") or get(y, "logging", "format") or defaults.log_format,
    )

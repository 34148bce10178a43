# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Manifest Reader

Single responsibility: Load a package's pkg.yaml into a typed Manifest
"""

import logging
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional

import yaml

from .core.config import Config
from .core.errors import ManifestNotFound
from .models import DependencyRef, Manifest, Registry

logger = logging.getLogger(__name__)


class ManifestReader:
    """Reads package manifests; every call goes back to disk"""

    def __init__(self, config: Optional[Config] = None):
        """
        Initialize manifest reader.

        Args:
            config: Client configuration (manifest file name)
        """
        self.config = config or Config()

    def manifest_path(self, package_dir: Path) -> Path:
        return Path(package_dir) / self.config.manifest_filename

    def exists(self, package_dir: Path) -> bool:
        return self.manifest_path(package_dir).is_file()

    def load(self, package_dir: Path) -> Manifest:
        """
        Load the manifest of a package directory.

        Args:
            package_dir: Directory containing the manifest file

        Returns:
            Parsed manifest

        Raises:
            ManifestNotFound: If the file is absent, not YAML, or not a mapping
        """
        path = self.manifest_path(package_dir)
        if not path.is_file():
            raise ManifestNotFound(str(path))

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise ManifestNotFound(str(path), reason="unparsable", details={"error": str(e)})

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ManifestNotFound(str(path), reason="is not a mapping")

        return self.parse(data, path)

    def parse(self, data: Dict[str, Any], path: Path) -> Manifest:
        """
        Build a Manifest from already-loaded YAML data.

        Args:
            data: Top-level manifest mapping
            path: Where the data came from

        Returns:
            Manifest
        """
        registries, identities = self._registries(data.get("registries"))

        return Manifest(
            path=path,
            name=self._name(data.get("name")),
            dependencies=self._dependencies(data.get("dependencies")),
            registries=registries,
            publish=self._publish(data.get("publish"), registries, identities),
            include=self._patterns(data.get("include")),
            exclude=self._patterns(data.get("exclude")),
        )

    def _name(self, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    def _dependencies(self, value: Any) -> List[DependencyRef]:
        if not isinstance(value, list):
            return []

        deps = []
        for entry in value:
            if isinstance(entry, str):
                deps.append(DependencyRef(name=entry))
            elif isinstance(entry, dict) and entry.get("name"):
                registry = entry.get("registry")
                deps.append(DependencyRef(
                    name=str(entry["name"]),
                    registry=str(registry) if registry else None
                ))
            else:
                logger.debug(f"Ignoring dependency entry: {entry!r}")
        return deps

    def _registries(self, value: Any):
        """
        Ordered registry list plus an id() -> Registry map so publish entries
        can be matched by object identity (YAML aliases).
        """
        registries: List[Registry] = []
        identities: Dict[int, Registry] = {}
        if not isinstance(value, dict):
            return registries, identities

        for name, entry in value.items():
            if not isinstance(entry, dict):
                continue
            registry = self._registry(entry, name=str(name))
            registries.append(registry)
            identities[id(entry)] = registry
        return registries, identities

    def _registry(self, entry: Dict[str, Any], name: Optional[str] = None) -> Registry:
        url = entry.get("url")
        return Registry(
            name=name,
            url=str(url) if url else None,
            default=bool(entry.get("default", False)),
        )

    def _publish(
        self,
        value: Any,
        registries: List[Registry],
        identities: Dict[int, Registry]
    ) -> List[Registry]:
        if not isinstance(value, list):
            return []

        targets = []
        for entry in value:
            if isinstance(entry, dict):
                # Same object as a declared registry (YAML alias) keeps its name
                targets.append(identities.get(id(entry)) or self._registry(entry))
            elif isinstance(entry, str):
                match = next((r for r in registries if r.name == entry), None)
                if match is None:
                    logger.warning(f"Publish target '{entry}' is not a declared registry")
                    continue
                targets.append(match)
        return targets

    def _patterns(self, value: Any) -> FrozenSet[str]:
        if isinstance(value, (list, tuple, set, frozenset)):
            return frozenset(v for v in value if isinstance(v, str))
        # {pattern: null} mapping form, same as an untagged set
        if isinstance(value, dict):
            return frozenset(k for k in value if isinstance(k, str))
        return frozenset()

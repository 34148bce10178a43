# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Registry Resolver

Single responsibility: Pick the registry a package is fetched from
"""

import logging
from typing import Optional

from .core.errors import RegistryNotFound
from .models import Manifest, Registry

logger = logging.getLogger(__name__)


class RegistryResolver:
    """Resolves a registry by name, or by the default-selection rule"""

    def resolve(self, manifest: Manifest, registry_name: Optional[str] = None) -> Registry:
        """
        Resolve a registry from a manifest.

        With a name, the registry must be declared under that exact name.
        Without one, registries are scanned in declaration order: the first
        one is kept unless a later one is tagged default (last default wins).

        Args:
            manifest: Manifest declaring the registries
            registry_name: Optional registry name

        Returns:
            Resolved registry

        Raises:
            RegistryNotFound: If nothing matches
        """
        if registry_name:
            registry = manifest.registry(registry_name)
            if registry is None:
                raise RegistryNotFound(registry_name)
            return registry

        selected = None
        for registry in manifest.registries:
            if selected is None:
                selected = registry
            elif registry.default:
                selected = registry

        if selected is None:
            raise RegistryNotFound()

        logger.debug(f"Selected registry '{selected.label()}' for {manifest.name or manifest.path}")
        return selected

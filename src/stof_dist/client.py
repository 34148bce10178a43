# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""HTTP plumbing shared by the installer, publisher, remote runner and admin client."""

from typing import Optional

import httpx

from .core.config import Config
from .models import Credentials


def build_client(config: Config, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """
    Create an async HTTP client for one operation.

    Args:
        config: Client configuration (timeout)
        transport: Optional transport override (tests inject httpx.MockTransport)

    Returns:
        httpx.AsyncClient, to be used as an async context manager
    """
    return httpx.AsyncClient(timeout=config.http_timeout, transport=transport)


def auth_for(credentials: Optional[Credentials]) -> Optional[httpx.BasicAuth]:
    return credentials.auth() if credentials else None


def registry_package_url(base_url: str, stripped_name: str) -> str:
    """<registry url>/registry/<stripped name>"""
    return f"{base_url.rstrip('/')}/registry/{stripped_name}"


def endpoint_url(address: str, path: str) -> str:
    return f"{address.rstrip('/')}/{path.lstrip('/')}"

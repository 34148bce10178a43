# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Admin Client

Create, update and delete users on a remote runner.
"""

import json
import logging
from typing import Dict, Optional, Union

import httpx

from .client import build_client, endpoint_url
from .core.config import Config
from .core.errors import AdminRequestFailed
from .models import AdminResult, Credentials, DEFAULT_PERMISSIONS, OperationStatus, Permission

logger = logging.getLogger(__name__)

USERS_ENDPOINT = "admin/users"


def encode_payload(fields: Dict[str, Union[str, int]]) -> str:
    """
    Render a key: value payload, one field per line. Strings are quoted.

    >>> encode_payload({"username": "ann", "perms": 9})
    'username: "ann"\\nperms: 9\\n'
    """
    lines = []
    for key, value in fields.items():
        if isinstance(value, str):
            value = json.dumps(value)
        lines.append(f"{key}: {value}")
    return "\n".join(lines) + "\n"


class AdminClient:
    """Remote runner user management"""

    def __init__(self, config: Optional[Config] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config or Config()
        self.transport = transport

    async def set_user(
        self,
        address: str,
        admin_credentials: Credentials,
        username: str,
        password: str,
        permissions: Union[Permission, int] = DEFAULT_PERMISSIONS,
        scope: str = ""
    ) -> AdminResult:
        """
        Create or update a user on a remote runner.

        Args:
            address: Runner base address
            admin_credentials: Admin Basic-Auth credentials
            username: User to create or update
            password: User password
            permissions: Bitmask of read=1, write=2, delete=4, exec=8 (default read|exec)
            scope: Registry path prefix the user may modify

        Returns:
            Admin result carrying the raw response text
        """
        payload = encode_payload({
            "username": username,
            "password": password,
            "perms": int(permissions),
            "scope": scope,
        })
        return await self._request("POST", address, admin_credentials, payload)

    async def delete_user(
        self,
        address: str,
        admin_credentials: Credentials,
        username: str
    ) -> AdminResult:
        """
        Delete a user on a remote runner.

        Args:
            address: Runner base address
            admin_credentials: Admin Basic-Auth credentials
            username: User to remove

        Returns:
            Admin result carrying the raw response text
        """
        payload = encode_payload({"username": username})
        return await self._request("DELETE", address, admin_credentials, payload)

    async def _request(
        self,
        method: str,
        address: str,
        admin_credentials: Credentials,
        payload: str
    ) -> AdminResult:
        result = AdminResult(address=address)
        url = endpoint_url(address, USERS_ENDPOINT)

        try:
            try:
                async with build_client(self.config, self.transport) as client:
                    response = await client.request(
                        method,
                        url,
                        content=payload.encode("utf-8"),
                        headers={"Content-Type": self.config.admin_content_type},
                        auth=admin_credentials.auth()
                    )
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                raise AdminRequestFailed(address, str(e) or type(e).__name__)
        except AdminRequestFailed as e:
            logger.error(e.message)
            result.status = OperationStatus.FAILED
            result.error = type(e).__name__
            result.message = e.message
            return result

        result.status_code = response.status_code
        result.text = response.text
        print(response.text)

        if not response.is_success:
            logger.warning(f"Admin request {method} {url} answered HTTP {response.status_code}")
            result.status = OperationStatus.FAILED
            result.error = "HTTPStatusError"
            result.message = f"HTTP {response.status_code}"
        return result

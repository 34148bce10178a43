# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Remote Runner

Single responsibility: Ship a file, package or document to a remote runner,
decode the result and call back any functions tagged "local".
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, Optional

import aiofiles
import httpx

from .archiver import PackageArchiver
from .client import auth_for, build_client, endpoint_url
from .core.config import Config
from .core.errors import DocumentError, RemoteExecutionError, StofDistError
from .engine import Document, DocumentEngine, StructuredDocumentEngine
from .models import Credentials, OperationStatus, RunResult

logger = logging.getLogger(__name__)

LOCAL_ATTRIBUTE = "local"


class RemoteRunner:
    """
    Client side of the remote /run handshake.

    Responses without a Content-Type, and every run_document call, use the
    binary document form (config.document_format, "bstof" by default).
    StructuredDocumentEngine has no codec for it; pass an engine that does,
    or set document_format to a format the engine understands.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        engine: Optional[DocumentEngine] = None,
        archiver: Optional[PackageArchiver] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize remote runner.

        Args:
            config: Client configuration
            engine: Document engine used to decode responses and call functions
            archiver: Archiver used for directory payloads
            transport: Optional HTTP transport override
        """
        self.config = config or Config()
        self.engine = engine or StructuredDocumentEngine()
        self.archiver = archiver or PackageArchiver(self.config)
        self.transport = transport

    async def run(
        self,
        address: str,
        path: Optional[Path] = None,
        credentials: Optional[Credentials] = None
    ) -> RunResult:
        """
        Run a file or package directory on a remote runner.

        Args:
            address: Runner base address
            path: File or package directory (default: current directory)
            credentials: Optional Basic-Auth credentials

        Returns:
            Run result
        """
        result = RunResult(address=address)
        target = Path(path) if path else Path.cwd()

        try:
            body, headers = await self._payload(address, target)
        except StofDistError as e:
            return self._fail(result, e, f"remote package creation error {target}")

        return await self._send(result, address, body, headers, credentials)

    async def run_document(
        self,
        address: str,
        document: Document,
        credentials: Optional[Credentials] = None
    ) -> RunResult:
        """
        Run an already-built document remotely, sent in the binary document form.

        Args:
            address: Runner base address
            document: Document to run
            credentials: Optional Basic-Auth credentials

        Returns:
            Run result
        """
        result = RunResult(address=address)
        try:
            body = self.engine.encode(document, self.config.document_format)
        except StofDistError as e:
            return self._fail(result, e, "remote exec error")

        headers = {"Content-Type": self.config.binary_content_type}
        return await self._send(result, address, body, headers, credentials)

    async def _payload(self, address: str, target: Path):
        """
        Request body and headers for a path.

        Raises:
            ArchiveError: If a directory cannot be archived
            RemoteExecutionError: If the path does not exist or cannot be read
        """
        headers: Dict[str, str] = {}

        if target.is_dir():
            headers["Content-Type"] = self.config.package_content_type
            body = await asyncio.to_thread(self.archiver.build, target)
            return body, headers

        if not target.is_file():
            raise RemoteExecutionError(address, f"package/file contents not found: {target}")

        if target.suffix:
            # The file extension is the format tag
            headers["Content-Type"] = target.suffix[1:]
        try:
            async with aiofiles.open(target, "rb") as f:
                body = await f.read()
        except OSError as e:
            raise RemoteExecutionError(address, f"could not read {target}: {e}")
        return body, headers

    async def _send(
        self,
        result: RunResult,
        address: str,
        body: bytes,
        headers: Dict[str, str],
        credentials: Optional[Credentials]
    ) -> RunResult:
        url = endpoint_url(address, "run")
        try:
            async with build_client(self.config, self.transport) as client:
                response = await client.post(
                    url,
                    content=body,
                    headers=headers,
                    auth=auth_for(credentials)
                )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return self._fail(result, RemoteExecutionError(address, str(e) or type(e).__name__), "remote exec error")

        result.status_code = response.status_code
        if not response.is_success:
            logger.warning(f"Remote runner {address} answered HTTP {response.status_code}")

        content_type = response.headers.get("content-type") or self.config.document_format
        result.content_type = content_type

        try:
            document = self.engine.decode(response.content, content_type)
        except DocumentError as e:
            return self._fail(result, e, "remote exec error bad response")

        # Textual responses, including errors
        if "text" in content_type:
            text = self.engine.field_value(document, "text")
            if text is not None:
                result.text = str(text)
                print(result.text)

        self._call_local_functions(document, result)

        if not response.is_success:
            result.status = OperationStatus.FAILED
            result.error = "HTTPStatusError"
            result.message = f"Remote runner answered HTTP {response.status_code}"
        return result

    def _call_local_functions(self, document: Document, result: RunResult):
        """Call every top-level function tagged local; failures are only logged"""
        try:
            refs = self.engine.list_functions(document)
        except StofDistError as e:
            logger.warning(f"Could not list functions of remote result: {e.message}")
            return

        for ref in refs:
            if not ref.has_attribute(LOCAL_ATTRIBUTE):
                continue
            try:
                self.engine.call_function(document, ref)
            except Exception as e:
                logger.warning(f"Local callback {ref.name} failed: {e}")
                result.failed_calls.append(ref.name)
                continue
            result.called.append(ref.name)

    def _fail(self, result: RunResult, error: StofDistError, context: str) -> RunResult:
        logger.error(f"{context}: {error.message}")
        result.status = OperationStatus.FAILED
        result.error = type(error).__name__
        result.message = error.message
        return result

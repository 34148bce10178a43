# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Test Fixtures and Utilities

Provides workspace/manifest builders, in-memory package archives and a
stub HTTP server (httpx.MockTransport) that records every request.
"""

import io
import zipfile
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import httpx
import pytest
import yaml

from stof_dist.core.config import Config


# ============================================================================
# Filesystem helpers
# ============================================================================

def write_manifest(directory: Path, data: dict) -> Path:
    """Write pkg.yaml into directory (created if missing)"""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "pkg.yaml"
    path.write_text(yaml.safe_dump(data, sort_keys=False))
    return path


def write_files(directory: Path, files: Dict[str, str]):
    for rel, content in files.items():
        path = directory / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


def make_package(files: Dict[str, str], manifest: Optional[dict] = None) -> bytes:
    """Zip archive bytes holding the given files (and a pkg.yaml)"""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        if manifest is not None:
            zf.writestr("pkg.yaml", yaml.safe_dump(manifest, sort_keys=False))
        for name, content in files.items():
            zf.writestr(name, content)
    return buffer.getvalue()


def archive_names(data: bytes) -> List[str]:
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return zf.namelist()


# ============================================================================
# Stub HTTP server
# ============================================================================

class StubServer:
    """
    Fake registry/runner behind httpx.MockTransport.

    Routes are keyed by (METHOD, url). Unrouted GETs answer 404, anything
    else unrouted answers 200 "ok".
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, url: str, response: httpx.Response):
        self.routes[(method, url)] = lambda request: response

    def add_handler(self, method: str, url: str, handler: Callable[[httpx.Request], httpx.Response]):
        self.routes[(method, url)] = handler

    def package(self, base_url: str, stripped_name: str, data: bytes):
        self.add("GET", f"{base_url}/registry/{stripped_name}", httpx.Response(200, content=data))

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, str(request.url)))
        if handler is not None:
            return handler(request)
        if request.method == "GET":
            return httpx.Response(404, text="not found")
        return httpx.Response(200, text="ok")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def urls(self, method: Optional[str] = None) -> List[str]:
        return [str(r.url) for r in self.requests if method is None or r.method == method]


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def server():
    """Fresh stub server per test"""
    return StubServer()


@pytest.fixture
def staging_dir(tmp_path):
    path = tmp_path / "staging"
    path.mkdir()
    return path


@pytest.fixture
def config(staging_dir):
    """Default configuration with temp archives staged under tmp_path"""
    return Config(staging_dir=str(staging_dir))


@pytest.fixture
def workspace(tmp_path):
    """Workspace whose manifest declares a single default registry"""
    ws = tmp_path / "workspace"
    write_manifest(ws, {
        "name": "@acme/app",
        "registries": {
            "main": {"url": "https://reg.example.com", "default": True},
        },
    })
    return ws

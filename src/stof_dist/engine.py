# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Document Engine Interface

The remote runner only needs to decode a result document, read a field,
list its top-level functions and call them. Everything else about documents
belongs to the engine. StructuredDocumentEngine is a small reference engine
for JSON/YAML/text payloads whose callbacks are plain Python callables.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import yaml

from .core.errors import DocumentError

logger = logging.getLogger(__name__)


def normalize_format(content_type: str) -> str:
    """
    Map a Content-Type header to a short format tag.

    "application/json; charset=utf-8" -> "json", "text/plain" -> "plain",
    "bstof" -> "bstof".
    """
    tag = content_type.split(";", 1)[0].strip().lower()
    if "/" in tag:
        tag = tag.rsplit("/", 1)[1]
    return tag


@dataclass
class Document:
    """Decoded document: its root data and the format it came in"""
    data: Dict[str, Any]
    format: str = "json"


@dataclass
class FunctionRef:
    """Reference to a top-level function of a document"""
    name: str
    attributes: Dict[str, Any] = field(default_factory=dict)

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes


class DocumentEngine(ABC):
    """Narrow interface onto the document engine"""

    @abstractmethod
    def decode(self, data: bytes, format: str) -> Document:
        """Decode bytes of the given format; raises DocumentError"""

    @abstractmethod
    def encode(self, document: Document, format: str) -> bytes:
        """Encode a document; raises DocumentError"""

    @abstractmethod
    def field_value(self, document: Document, path: str) -> Optional[Any]:
        """Value at a dot-separated path, None when absent"""

    @abstractmethod
    def list_functions(self, document: Document) -> List[FunctionRef]:
        """Top-level functions of the document's main scope"""

    @abstractmethod
    def call_function(self, document: Document, ref: FunctionRef) -> Any:
        """Call a function with no arguments"""


class StructuredDocumentEngine(DocumentEngine):
    """
    Reference engine for structured payloads.

    Formats:
    - json
    - yaml / yml / x-yaml
    - text / plain: body becomes {"text": body}

    Functions are declared under a top-level "functions" list as
    {"name": ..., "attributes": {...}} (a list of attribute names is also
    accepted). Calling one dispatches to the handler registered under that
    name.
    """

    TEXT_FORMATS = {"text", "plain", "txt"}
    YAML_FORMATS = {"yaml", "yml", "x-yaml"}

    def __init__(self, handlers: Optional[Dict[str, Callable[[], Any]]] = None):
        """
        Initialize engine.

        Args:
            handlers: Local callables keyed by function name
        """
        self.handlers: Dict[str, Callable[[], Any]] = dict(handlers or {})

    def register(self, name: str, handler: Callable[[], Any]):
        self.handlers[name] = handler

    def decode(self, data: bytes, format: str) -> Document:
        tag = normalize_format(format)
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DocumentError(f"Cannot decode {tag} document: {e}")

        try:
            if tag == "json":
                value = json.loads(text) if text.strip() else {}
            elif tag in self.YAML_FORMATS:
                value = yaml.safe_load(text) or {}
            elif tag in self.TEXT_FORMATS:
                value = {"text": text}
            else:
                raise DocumentError(f"No codec for document format '{tag}'", details={"format": tag})
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise DocumentError(f"Malformed {tag} document: {e}", details={"format": tag})

        if not isinstance(value, dict):
            value = {"value": value}
        return Document(data=value, format=tag)

    def encode(self, document: Document, format: str) -> bytes:
        tag = normalize_format(format)
        if tag == "json":
            return json.dumps(document.data).encode("utf-8")
        if tag in self.YAML_FORMATS:
            return yaml.safe_dump(document.data).encode("utf-8")
        if tag in self.TEXT_FORMATS:
            return str(document.data.get("text", "")).encode("utf-8")
        raise DocumentError(f"No codec for document format '{tag}'", details={"format": tag})

    def field_value(self, document: Document, path: str) -> Optional[Any]:
        value: Any = document.data
        for key in path.split("."):
            if not isinstance(value, dict) or key not in value:
                return None
            value = value[key]
        return value

    def list_functions(self, document: Document) -> List[FunctionRef]:
        functions = document.data.get("functions")
        if not isinstance(functions, list):
            return []

        refs = []
        for entry in functions:
            if not isinstance(entry, dict) or not entry.get("name"):
                continue
            attributes = entry.get("attributes") or {}
            if isinstance(attributes, list):
                attributes = {str(a): True for a in attributes}
            elif not isinstance(attributes, dict):
                attributes = {}
            refs.append(FunctionRef(name=str(entry["name"]), attributes=attributes))
        return refs

    def call_function(self, document: Document, ref: FunctionRef) -> Any:
        handler = self.handlers.get(ref.name)
        if handler is None:
            raise DocumentError(f"No local handler for function '{ref.name}'")
        return handler()

#!/usr/bin/env python3
"""
KUBESYNC ERRORS
---------------
Exception taxonomy raised by the external collaborators (Gateway, Codec).
The controller catches all of these at its boundary and converts them
into a SaveError; nothing here escapes a controller operation.

Author: KubeSync Team
Date: 2026-10-18
"""

from typing import Any, Dict, Optional


class KubeSyncError(Exception):
    """Base class for every error raised by KubeSync collaborators."""


class ParseError(KubeSyncError):
    """The text surface holds YAML that does not parse into a single object."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.line = line
        self.column = column
        location = f" (line {line + 1}, column {column + 1})" if line is not None and column is not None else ""
        super().__init__(f"{message}{location}")


class TransportError(KubeSyncError):
    """Fetch/submit/delete failed for reasons unrelated to the content."""


class NotFound(TransportError):
    """The object does not exist on the remote system."""

    def __init__(self, identity_key: str):
        self.identity_key = identity_key
        super().__init__(f"{identity_key} not found")


class GatewayRejection(KubeSyncError):
    """
    The remote system refused a submit with a structured payload.
    `payload` follows the K8s Status shape (kind/status/message/reason/code/details.causes).
    """

    def __init__(self, payload: Dict[str, Any]):
        self.payload = payload
        super().__init__(str(payload.get("message") or "Request rejected"))

#!/usr/bin/env python3
"""
KUBESYNC GATEWAY - Remote Object Interface
------------------------------------------
The contract the sync core consumes. Implementations own transport,
authentication and timeouts; the core only awaits these four calls.

Author: KubeSync Team
Date: 2026-10-18
"""

import abc
from typing import AsyncIterator

from kubesync.core.models import ObjectIdentity, Snapshot, WatchEvent


class ResourceGateway(abc.ABC):
    """
    Failure contract:
        fetch   -> NotFound | TransportError
        submit  -> GatewayRejection (K8s Status payload) | TransportError
        delete  -> NotFound | TransportError
    """

    @abc.abstractmethod
    async def fetch(self, identity: ObjectIdentity) -> Snapshot:
        raise NotImplementedError

    @abc.abstractmethod
    async def submit(self, identity: ObjectIdentity, text: str) -> str:
        """Applies the serialized object and returns the new Version Token."""
        raise NotImplementedError

    @abc.abstractmethod
    async def delete(self, identity: ObjectIdentity) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def subscribe(self, identity: ObjectIdentity) -> AsyncIterator[WatchEvent]:
        """Infinite stream of events for one object, in receipt order."""
        raise NotImplementedError

#!/usr/bin/env python3
"""
KUBESYNC IN-MEMORY GATEWAY
--------------------------
A single-process stand-in for an API server: an object store with a
global revision counter, schema admission on submit, and watch fan-out
to every subscriber. Used by the test-suite and for local development
without a cluster.

Author: KubeSync Team
Date: 2026-10-18
"""

import asyncio
import copy
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from kubesync.core.errors import GatewayRejection, NotFound, ParseError
from kubesync.core.models import ObjectIdentity, Snapshot, WatchEvent, WatchEventType
from kubesync.gateway.base import ResourceGateway
from kubesync.sync.codec import YamlCodec
from kubesync.validator.schema import SchemaValidator

logger = logging.getLogger("kubesync.gateway")


def invalid_status(kind: str, name: str, causes: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Builds the 422 Status body the API server returns for field errors."""
    summary = ", ".join(f"{c['field']}: {c['message']}" for c in causes)
    return {
        "kind": "Status",
        "apiVersion": "v1",
        "metadata": {},
        "status": "Failure",
        "message": f"{kind} \"{name}\" is invalid: [{summary}]",
        "reason": "Invalid",
        "details": {"name": name, "kind": kind.lower(), "causes": causes},
        "code": 422,
    }


class InMemoryGateway(ResourceGateway):
    """
    Test hooks:
        submissions  -- every (identity, text) passed to submit(), in order
        submit_gate  -- when set to an asyncio.Event, submit() waits on it
        fail_next()  -- make the next submit raise the given exception
    """

    def __init__(self, validator: Optional[SchemaValidator] = None, codec: Optional[YamlCodec] = None):
        self.validator = validator
        self.codec = codec or YamlCodec()
        self.revision = 0
        self.objects: Dict[ObjectIdentity, Dict[str, Any]] = {}
        self.submissions: List[Tuple[ObjectIdentity, str]] = []
        self.fetch_count = 0
        self.submit_gate: Optional[asyncio.Event] = None
        self._queued_failures: List[BaseException] = []
        self._subscribers: Dict[Optional[ObjectIdentity], List[asyncio.Queue]] = {}

    def _next_version(self) -> str:
        self.revision += 1
        return str(self.revision)

    def _store(self, tree: Dict[str, Any]) -> Tuple[ObjectIdentity, Snapshot]:
        tree = copy.deepcopy(tree)
        identity = ObjectIdentity.from_manifest(tree)
        version = self._next_version()
        tree.setdefault("metadata", {})["resourceVersion"] = version
        self.objects[identity] = tree
        return identity, Snapshot.of(tree, version)

    def _broadcast(self, event: WatchEvent):
        for key in (event.identity, None):
            for queue in self._subscribers.get(key, []):
                queue.put_nowait(event)

    def seed(self, tree: Dict[str, Any]) -> Snapshot:
        """Stores an object without notifying watchers (initial cluster state)."""
        _, snapshot = self._store(tree)
        return snapshot

    def publish(self, tree: Dict[str, Any]) -> Snapshot:
        """Simulates another writer (kubectl, a controller) changing the object."""
        identity, snapshot = self._store(tree)
        logger.info(f"External update to {identity.key} at version {snapshot.version}")
        self._broadcast(WatchEvent(identity, snapshot.tree_copy(), snapshot.version))
        return snapshot

    def fail_next(self, error: BaseException):
        self._queued_failures.append(error)

    async def fetch(self, identity: ObjectIdentity) -> Snapshot:
        self.fetch_count += 1
        if identity not in self.objects:
            raise NotFound(identity.key)
        tree = self.objects[identity]
        return Snapshot.of(tree, tree["metadata"]["resourceVersion"])

    async def submit(self, identity: ObjectIdentity, text: str) -> str:
        self.submissions.append((identity, text))
        if self.submit_gate is not None:
            await self.submit_gate.wait()
        if self._queued_failures:
            raise self._queued_failures.pop(0)

        try:
            tree = self.codec.parse(text)
        except ParseError as e:
            raise GatewayRejection({
                "kind": "Status", "status": "Failure", "reason": "BadRequest",
                "message": f"error parsing request body: {e}", "code": 400,
            })

        if ObjectIdentity.from_manifest(tree) != identity:
            raise GatewayRejection({
                "kind": "Status", "status": "Failure", "reason": "BadRequest", "code": 400,
                "message": f"the name of the object ({tree.get('metadata', {}).get('name')}) "
                           f"does not match the name on the URL ({identity.name})",
            })

        if self.validator:
            causes = self.validator.validate(tree)
            if causes:
                payload = invalid_status(identity.kind, identity.name, [
                    {"field": c.field, "message": c.message, "reason": c.reason} for c in causes
                ])
                logger.warning(payload["message"])
                raise GatewayRejection(payload)

        _, snapshot = self._store(tree)
        self._broadcast(WatchEvent(identity, snapshot.tree_copy(), snapshot.version))
        return snapshot.version

    async def delete(self, identity: ObjectIdentity) -> None:
        tree = self.objects.pop(identity, None)
        if tree is None:
            raise NotFound(identity.key)
        self._broadcast(WatchEvent(identity, copy.deepcopy(tree), self._next_version(),
                                   WatchEventType.DELETED))

    async def _drain(self, key: Optional[ObjectIdentity], queue: asyncio.Queue) -> AsyncIterator[WatchEvent]:
        try:
            while True:
                yield await queue.get()
        finally:
            self._subscribers[key].remove(queue)

    def _open(self, key: Optional[ObjectIdentity]) -> AsyncIterator[WatchEvent]:
        # Register before the first __anext__ so nothing published in between is lost
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.setdefault(key, []).append(queue)
        return self._drain(key, queue)

    def subscribe(self, identity: ObjectIdentity) -> AsyncIterator[WatchEvent]:
        return self._open(identity)

    def subscribe_all(self) -> AsyncIterator[WatchEvent]:
        """One multiplexed stream carrying events for every object."""
        return self._open(None)

    @property
    def watcher_count(self) -> int:
        return sum(len(queues) for queues in self._subscribers.values())

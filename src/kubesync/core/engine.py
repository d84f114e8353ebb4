#!/usr/bin/env python3
"""
KUBESYNC ENGINE - The Session Registry
--------------------------------------
SyncEngine owns every open editing session. It guarantees one
ResourceSyncController per ObjectIdentity, routes a shared
(multiplexed) watch stream to the controller that owns each object, and
reports SRE-style summaries over all sessions.

Author: KubeSync Team
Date: 2026-10-18
"""

import logging
import time
from typing import Any, AsyncIterator, Dict, List, Optional

from kubesync.core.models import ObjectIdentity, SessionState, WatchEvent
from kubesync.gateway.base import ResourceGateway
from kubesync.rules.sanitize import SanitizeEngine
from kubesync.sync.codec import YamlCodec
from kubesync.sync.controller import ResourceSyncController

# Setup standardized logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("kubesync.engine")


class SyncEngine:
    """
    Principal orchestrator for editing sessions. Controllers share the
    engine's gateway, codec and sanitizer.
    """

    def __init__(self, gateway: ResourceGateway, codec: Optional[YamlCodec] = None,
                 sanitizer: Optional[SanitizeEngine] = None):
        self.gateway = gateway
        self.codec = codec or YamlCodec()
        self.sanitizer = sanitizer or SanitizeEngine()
        self.sessions: Dict[ObjectIdentity, ResourceSyncController] = {}

    def open_session(self, identity: ObjectIdentity, read_only: bool = False) -> ResourceSyncController:
        """Returns the controller for `identity`, creating it on first use."""
        existing = self.sessions.get(identity)
        if existing is not None:
            return existing

        controller = ResourceSyncController(
            identity, self.gateway,
            codec=self.codec, sanitizer=self.sanitizer, read_only=read_only,
        )
        self.sessions[identity] = controller
        logger.info(f"Opened session for {identity.key}")
        return controller

    async def open(self, identity: ObjectIdentity, inline: Optional[Dict[str, Any]] = None,
                   read_only: bool = False, watch: bool = False) -> ResourceSyncController:
        """
        Opens and initializes a session. With watch=True the controller
        subscribes to its own push stream; otherwise feed it through pump().
        """
        controller = self.open_session(identity, read_only=read_only)
        await controller.initialize(inline)
        if watch:
            controller.start_watch()
        return controller

    def get(self, identity: ObjectIdentity) -> Optional[ResourceSyncController]:
        return self.sessions.get(identity)

    def close_session(self, identity: ObjectIdentity) -> bool:
        controller = self.sessions.pop(identity, None)
        if controller is None:
            return False
        controller.close()
        logger.info(f"Closed session for {identity.key}")
        return True

    def close_all(self) -> int:
        count = 0
        for identity in list(self.sessions):
            if self.close_session(identity):
                count += 1
        return count

    def dispatch(self, event: WatchEvent) -> bool:
        """Hands one event to its owner. Events for objects nobody edits are dropped."""
        controller = self.sessions.get(event.identity)
        if controller is None:
            return False
        controller.apply_event(event)
        return True

    async def pump(self, stream: AsyncIterator[WatchEvent], limit: Optional[int] = None) -> int:
        """
        Drains a multiplexed stream into the open sessions, in delivery order.
        Stops after `limit` events when given; returns the number routed.
        """
        routed = 0
        seen = 0
        async for event in stream:
            seen += 1
            if self.dispatch(event):
                routed += 1
            if limit is not None and seen >= limit:
                break
        return routed

    def generate_summary(self) -> Dict[str, Any]:
        """Provides SRE-style metrics across all open sessions."""
        controllers = list(self.sessions.values())
        states: List[Optional[SessionState]] = [c.state for c in controllers]

        return {
            "total_sessions": len(controllers),
            "loading": sum(1 for s in states if s is None),
            "clean": states.count(SessionState.CLEAN),
            "dirty": states.count(SessionState.DIRTY),
            "saving": states.count(SessionState.SAVING),
            "conflicts": states.count(SessionState.CONFLICT_PENDING),
            "with_errors": sum(1 for c in controllers if c.save_error is not None),
            "remote_deleted": sum(1 for c in controllers if c.remote_deleted),
            "summary_timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
        }

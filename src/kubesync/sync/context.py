#!/usr/bin/env python3
"""
KUBESYNC SESSION CONTEXT
------------------------
The record of one editing session: what the server last told us, what
the user is editing, and any conflict or error waiting for a decision.
Owned and mutated exclusively by ResourceSyncController.

Author: KubeSync Team
Date: 2026-10-18
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from kubesync.core.models import ObjectIdentity, SaveError, Snapshot


@dataclass
class SessionContext:
    identity: ObjectIdentity
    canonical: Optional[Snapshot] = None          # Last known-authoritative value + token
    working: Optional[Dict[str, Any]] = None      # The user's editable copy
    last_seen_version: Optional[str] = None       # Push filter; advanced on adopt/save/dismiss/reload
    pending: Optional[Snapshot] = None            # Newer server value withheld from working
    has_server_update: bool = False               # Conflict notification still undecided
    saving: bool = False
    save_error: Optional[SaveError] = None
    load_error: Optional[SaveError] = None
    remote_deleted: bool = False
    closed: bool = False
    sanitize_log: List[str] = field(default_factory=list)

    @property
    def initialized(self) -> bool:
        return self.canonical is not None

    def clear_conflict(self):
        self.pending = None
        self.has_server_update = False

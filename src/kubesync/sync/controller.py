#!/usr/bin/env python3
"""
KUBESYNC RESOURCE SYNC CONTROLLER - The Core
--------------------------------------------
Owns one remote object's editing session: the canonical snapshot, the
working model, the version token, and the Clean/Dirty/Saving/
ConflictPending state machine.

Two writers race for the same object. The user edits the working model
through update()/replace()/set_text(); the watch stream delivers newer
server values at any time. A push is a compare-then-branch on the version
token: a clean session adopts it silently, a session with local edits
quarantines it as a pending conflict until the user reloads or dismisses.
There is no field-level merge.

Dirtiness is never a flag. It is recomputed by deep comparison of the
working model against the canonical tree every time it is asked for.

Every collaborator failure is caught here and normalized into a
SaveError; no controller operation raises.

Author: KubeSync Team
Date: 2026-10-18
"""

import asyncio
import copy
import logging
from typing import Any, Callable, Dict, Optional

from kubesync.core.errors import ParseError
from kubesync.core.models import (
    ObjectIdentity, SaveError, SessionState, Snapshot, WatchEvent, WatchEventType, same_tree,
)
from kubesync.gateway.base import ResourceGateway
from kubesync.rules.sanitize import SanitizeEngine
from kubesync.sync.codec import YamlCodec
from kubesync.sync.context import SessionContext
from kubesync.sync.projection import TextProjection
from kubesync.validator.field_paths import FieldErrorIndex
from kubesync.validator.status import parse_status_error

logger = logging.getLogger("kubesync.controller")

Transform = Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]


class ResourceSyncController:
    """
    One controller per ObjectIdentity. Use SyncEngine to get one; it makes
    sure two controllers never own the same object.
    """

    def __init__(self, identity: ObjectIdentity, gateway: ResourceGateway,
                 codec: Optional[YamlCodec] = None, sanitizer: Optional[SanitizeEngine] = None,
                 read_only: bool = False):
        self.identity = identity
        self.gateway = gateway
        self.codec = codec or YamlCodec()
        self.sanitizer = sanitizer or SanitizeEngine()
        self.read_only = read_only
        self.ctx = SessionContext(identity=identity)
        self.projection = TextProjection(self.codec)
        self._loading: Optional[asyncio.Future] = None
        self._watch_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Presentation surface
    # ------------------------------------------------------------------

    @property
    def is_loading(self) -> bool:
        return not self.ctx.initialized

    @property
    def model(self) -> Optional[Dict[str, Any]]:
        """A copy of the working model. Change it through update() or replace()."""
        return copy.deepcopy(self.ctx.working)

    @property
    def canonical(self) -> Optional[Snapshot]:
        return self.ctx.canonical

    @property
    def version_token(self) -> Optional[str]:
        return self.ctx.canonical.version if self.ctx.canonical else None

    @property
    def has_changes(self) -> bool:
        if self.read_only or not self.ctx.initialized:
            return False
        return not same_tree(self.ctx.working, self.ctx.canonical.tree)

    @property
    def is_saving(self) -> bool:
        return self.ctx.saving

    @property
    def state(self) -> Optional[SessionState]:
        """None while the first snapshot is still loading."""
        if not self.ctx.initialized:
            return None
        if self.ctx.has_server_update:
            return SessionState.CONFLICT_PENDING
        if self.ctx.saving:
            return SessionState.SAVING
        if self.has_changes:
            return SessionState.DIRTY
        return SessionState.CLEAN

    @property
    def has_server_update(self) -> bool:
        return self.ctx.has_server_update

    @property
    def pending_version_token(self) -> Optional[str]:
        """Token of the withheld server value; survives a dismiss for display."""
        return self.ctx.pending.version if self.ctx.pending else None

    @property
    def save_error(self) -> Optional[SaveError]:
        return self.ctx.save_error

    @property
    def load_error(self) -> Optional[SaveError]:
        return self.ctx.load_error

    @property
    def remote_deleted(self) -> bool:
        return self.ctx.remote_deleted

    @property
    def error_index(self) -> FieldErrorIndex:
        return FieldErrorIndex.from_save_error(self.ctx.save_error)

    @property
    def text(self) -> str:
        return self.projection.text

    @property
    def text_error(self) -> Optional[ParseError]:
        return self.projection.parse_error

    @property
    def resource_key(self) -> str:
        """Changes whenever a new server version is accepted; use to force a re-render."""
        return f"{self.identity.key}-{self.ctx.last_seen_version or 'initial'}"

    def clear_save_error(self):
        self.ctx.save_error = None

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    async def initialize(self, inline: Optional[Dict[str, Any]] = None) -> bool:
        """
        Seeds canonical and working from `inline` when given, otherwise from
        exactly one Gateway fetch. Safe to call repeatedly; concurrent callers
        share the same fetch.

        Returns:
            True once the session holds a snapshot.
        """
        if self.ctx.initialized:
            return True
        if inline is not None:
            self._seed(Snapshot.of(inline))
            return True
        if self._loading is None:
            self._loading = asyncio.ensure_future(self._fetch())
        return await asyncio.shield(self._loading)

    async def _fetch(self) -> bool:
        try:
            snapshot = await self.gateway.fetch(self.identity)
        except Exception as e:
            self.ctx.load_error = parse_status_error(e)
            logger.error(f"Failed to load {self.identity.key}: {self.ctx.load_error.message}")
            return False

        if self.ctx.closed:
            return False
        # An inline seed may have landed while we were waiting
        if not self.ctx.initialized:
            self._seed(snapshot)
        return True

    def _clean(self, snapshot: Snapshot) -> Snapshot:
        tree, changes = self.sanitizer.clean(snapshot.tree)
        self.ctx.sanitize_log.extend(changes)
        return Snapshot(tree=tree, version=snapshot.version)

    def _seed(self, snapshot: Snapshot):
        self._adopt(self._clean(snapshot))
        self.ctx.load_error = None
        logger.info(f"Session opened for {self.identity.key} at version {snapshot.version}")

    def _adopt(self, snapshot: Snapshot):
        """Replaces canonical, working and text with a server value."""
        self.ctx.canonical = snapshot
        self.ctx.working = snapshot.tree_copy()
        self.ctx.last_seen_version = snapshot.version
        self.ctx.clear_conflict()
        self.projection.render(self.ctx.working)

    # ------------------------------------------------------------------
    # Local edits
    # ------------------------------------------------------------------

    def _set_working(self, tree: Dict[str, Any], render: bool = True):
        self.ctx.working = tree
        # Edits invalidate the context of a previous failure
        self.ctx.save_error = None
        if render:
            self.projection.render(tree)
        logger.debug(f"{self.identity.key} edited; state={self.state}")

    def update(self, transform: Transform) -> bool:
        """
        Applies `transform` to a copy of the working model. The transform
        may return a new tree or mutate its argument in place and return None.
        """
        if not self.ctx.initialized:
            logger.debug(f"Ignoring edit to {self.identity.key}: still loading")
            return False
        draft = copy.deepcopy(self.ctx.working)
        updated = transform(draft)
        self._set_working(draft if updated is None else updated)
        return True

    def replace(self, new_model: Dict[str, Any]) -> bool:
        if not self.ctx.initialized:
            logger.debug(f"Ignoring replace of {self.identity.key}: still loading")
            return False
        self._set_working(copy.deepcopy(new_model))
        return True

    def set_text(self, text: str) -> bool:
        """
        Text-surface edit. The buffer is kept verbatim; the working model
        only follows when the buffer parses. Returns whether it parsed.
        """
        if not self.ctx.initialized:
            return False
        self.ctx.save_error = None
        parsed = self.projection.edit(text)
        if parsed is None:
            return False
        self._set_working(parsed, render=False)
        return True

    def discard(self):
        """Back to Clean: working reset to canonical, error and conflict cleared."""
        if not self.ctx.initialized:
            return
        if self.ctx.pending is not None:
            self.ctx.last_seen_version = self.ctx.pending.version
        self.ctx.clear_conflict()
        self.ctx.working = self.ctx.canonical.tree_copy()
        self.ctx.save_error = None
        self.projection.render(self.ctx.working)
        logger.info(f"Discarded local changes to {self.identity.key}")

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------

    async def save(self) -> bool:
        """
        Submits the working model as it is right now. Edits made while the
        submit is in flight are kept and are not part of this save.

        Returns:
            True if the Gateway accepted the write. On False, `save_error`
            explains why (unless there was simply nothing to save).
        """
        if not self.ctx.initialized or self.ctx.closed:
            return False
        if self.read_only:
            logger.debug(f"Refusing to save read-only session {self.identity.key}")
            return False
        if self.ctx.saving:
            logger.debug(f"Save already in flight for {self.identity.key}")
            return False
        if not self.has_changes:
            logger.debug(f"Nothing to save for {self.identity.key}")
            return False

        captured = copy.deepcopy(self.ctx.working)
        self.ctx.saving = True
        self.ctx.save_error = None

        try:
            text = self.codec.serialize(captured)
            version = await self.gateway.submit(self.identity, text)
        except Exception as e:
            if self.ctx.closed:
                return False
            self.ctx.save_error = parse_status_error(e)
            logger.warning(f"Save of {self.identity.key} rejected: {self.ctx.save_error.message}")
            return False
        finally:
            self.ctx.saving = False

        if self.ctx.closed:
            # Torn down mid-save: the write stands, nobody is listening
            return True

        self.ctx.canonical = Snapshot(tree=captured, version=version)
        self.ctx.last_seen_version = version
        self.ctx.clear_conflict()
        logger.info(f"Saved {self.identity.key} at version {version}")
        return True

    async def save_text(self) -> bool:
        """
        Save from the text surface: the buffer must parse before anything
        is sent. A parse failure is a local error and the Gateway is not called.
        """
        if not self.ctx.initialized or self.ctx.closed or self.read_only:
            return False
        try:
            parsed = self.projection.commit()
        except ParseError as e:
            self.ctx.save_error = parse_status_error(e)
            logger.warning(f"Text for {self.identity.key} does not parse: {e}")
            return False

        if not same_tree(parsed, self.ctx.working):
            self._set_working(parsed, render=False)
        return await self.save()

    async def delete(self) -> bool:
        try:
            await self.gateway.delete(self.identity)
        except Exception as e:
            self.ctx.save_error = parse_status_error(e)
            logger.error(f"Delete of {self.identity.key} failed: {self.ctx.save_error.message}")
            return False
        self.ctx.remote_deleted = True
        logger.info(f"Deleted {self.identity.key}")
        return True

    # ------------------------------------------------------------------
    # Server pushes
    # ------------------------------------------------------------------

    def _has_local_edits(self) -> bool:
        # An unparsed text buffer is an edit too, even though working hasn't moved
        return (self.ctx.saving or self.ctx.has_server_update or self.has_changes
                or not self.projection.is_valid)

    def apply_push(self, tree: Dict[str, Any], version: Optional[str]) -> Optional[SessionState]:
        """
        Evaluates one pushed server value against the current state.
        Returns the resulting state, or None if the push was ignored.
        """
        if self.ctx.closed or not self.ctx.initialized:
            return None
        snapshot = Snapshot.of(tree, version)
        version = snapshot.version
        if version == self.ctx.last_seen_version:
            return None
        if self.ctx.pending is not None and version == self.ctx.pending.version:
            return None

        snapshot = self._clean(snapshot)

        if not self._has_local_edits() or same_tree(snapshot.tree, self.ctx.working):
            self._adopt(snapshot)
            logger.info(f"Adopted server version {version} of {self.identity.key}")
            return self.state

        # Quarantine: working stays, but discard() now lands on the newer baseline
        self.ctx.canonical = snapshot
        self.ctx.pending = snapshot
        self.ctx.has_server_update = True
        logger.info(f"Server version {version} of {self.identity.key} conflicts with local edits")
        return self.state

    def apply_event(self, event: WatchEvent) -> Optional[SessionState]:
        if event.identity != self.identity:
            return None
        if event.event_type is WatchEventType.DELETED:
            self.ctx.remote_deleted = True
            logger.warning(f"{self.identity.key} was deleted on the server")
            return None
        self.ctx.remote_deleted = False
        return self.apply_push(event.tree, event.version)

    def reload_from_server(self) -> bool:
        """Adopts the pending server value, dropping local edits."""
        if not self.ctx.has_server_update or self.ctx.pending is None:
            return False
        self._adopt(self.ctx.pending)
        self.ctx.save_error = None
        logger.info(f"Reloaded {self.identity.key} from server")
        return True

    def dismiss_server_update(self) -> bool:
        """Keeps local edits; the pending token stays visible as metadata."""
        if not self.ctx.has_server_update or self.ctx.pending is None:
            return False
        self.ctx.has_server_update = False
        self.ctx.last_seen_version = self.ctx.pending.version
        logger.info(f"Dismissed server version {self.ctx.pending.version} of {self.identity.key}")
        return True

    async def watch(self):
        """Consumes the Gateway's push stream for this object until closed."""
        stream = self.gateway.subscribe(self.identity)
        try:
            async for event in stream:
                if self.ctx.closed:
                    break
                self.apply_event(event)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Watch for {self.identity.key} stopped: {e}")
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

    def start_watch(self) -> asyncio.Task:
        if self._watch_task is None or self._watch_task.done():
            self._watch_task = asyncio.ensure_future(self.watch())
        return self._watch_task

    def close(self):
        """Ends the session. An in-flight save's result is ignored from here on."""
        self.ctx.closed = True
        if self._watch_task is not None and not self._watch_task.done():
            self._watch_task.cancel()
        logger.debug(f"Session for {self.identity.key} closed")

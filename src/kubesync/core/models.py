#!/usr/bin/env python3
"""
KUBESYNC CORE MODELS
--------------------
Defines the fundamental data structures shared across the KubeSync core.
These models describe a remote object, the versions of it we know about,
and the failures the remote system reports against it.

Author: KubeSync Team
Date: 2026-10-18
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ObjectIdentity:
    """
    The address of one remote object.

    Fixed for the lifetime of an editing session. The Gateway is addressed
    by it and the push stream is filtered by it.
    """
    namespace: str          # Empty string for cluster-scoped kinds (Node, StorageClass...)
    kind: str               # The K8s Kind (e.g., 'Deployment')
    name: str               # metadata.name

    @property
    def key(self) -> str:
        return f"{self.kind}/{self.namespace}/{self.name}"

    @classmethod
    def from_manifest(cls, doc: Dict[str, Any]) -> "ObjectIdentity":
        """Builds an identity from a manifest's kind and metadata block."""
        metadata = doc.get("metadata") or {}
        return cls(
            namespace=metadata.get("namespace", "") or "",
            kind=doc.get("kind", ""),
            name=metadata.get("name", ""),
        )


@dataclass(frozen=True)
class Snapshot:
    """
    A structured tree paired with the Version Token it existed at.

    Snapshots are replaced wholesale, never edited. Use `tree_copy()` to
    hand a mutable copy to anyone who wants to change it.
    """
    tree: Dict[str, Any]
    version: Optional[str] = None   # Opaque resourceVersion; equality only

    def tree_copy(self) -> Dict[str, Any]:
        return copy.deepcopy(self.tree)

    @classmethod
    def of(cls, tree: Dict[str, Any], version: Optional[str] = None) -> "Snapshot":
        """Captures `tree` by value, reading the token from metadata when omitted."""
        captured = copy.deepcopy(tree)
        if version is None:
            version = (captured.get("metadata") or {}).get("resourceVersion")
        return cls(tree=captured, version=version)


def same_tree(left: Any, right: Any) -> bool:
    """
    Structural equality that also compares scalar types, so `1`, `1.0`
    and `true` are three different values the way they are in YAML.
    """
    if isinstance(left, dict) or isinstance(right, dict):
        if not (isinstance(left, dict) and isinstance(right, dict)):
            return False
        if left.keys() != right.keys():
            return False
        return all(same_tree(left[key], right[key]) for key in left)

    if isinstance(left, list) or isinstance(right, list):
        if not (isinstance(left, list) and isinstance(right, list)):
            return False
        if len(left) != len(right):
            return False
        return all(same_tree(a, b) for a, b in zip(left, right))

    return type(left) is type(right) and left == right


class SessionState(str, Enum):
    CLEAN = "Clean"
    DIRTY = "Dirty"
    SAVING = "Saving"
    CONFLICT_PENDING = "ConflictPending"


class Authority(str, Enum):
    """Which representation of the working model is currently authoritative."""
    STRUCTURED = "structured"
    TEXT = "text"


class ErrorKind(str, Enum):
    VALIDATION = "ValidationError"   # Remote rejected one or more fields
    PARSE = "ParseError"             # Local text surface could not be parsed
    TRANSPORT = "TransportError"     # Anything unrelated to content


class WatchEventType(str, Enum):
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


@dataclass(frozen=True)
class ValidationError:
    """A single field-level cause from a rejected save."""
    field: str                      # Dot/bracket path, e.g. 'spec.template.spec.containers[0].image'
    message: str
    reason: Optional[str] = None    # K8s cause type, e.g. 'FieldValueInvalid'


@dataclass
class SaveError:
    """
    The normalized form of every failure that reaches the presentation layer.
    Only VALIDATION errors carry field causes.
    """
    message: str
    reason: Optional[str] = None
    code: Optional[int] = None
    causes: List[ValidationError] = field(default_factory=list)
    kind: ErrorKind = ErrorKind.TRANSPORT

    @property
    def has_causes(self) -> bool:
        return bool(self.causes)


@dataclass(frozen=True)
class WatchEvent:
    """One item delivered by the Gateway's push stream."""
    identity: ObjectIdentity
    tree: Dict[str, Any]
    version: Optional[str]
    event_type: WatchEventType = WatchEventType.MODIFIED

    @property
    def snapshot(self) -> Snapshot:
        return Snapshot.of(self.tree, self.version)

#!/usr/bin/env python3
"""
KUBESYNC FIELD PATHS - Error Locator
------------------------------------
Answers "does this widget have an error?" for any dot/bracket field path
(e.g. 'spec.template.spec.containers[0].image') against the flat list of
causes attached to a failed save.

Matching is string-prefix only. We never walk the resource tree, so the
index works for any kind, including CRDs whose shape we know nothing about.

Author: KubeSync Team
Date: 2026-10-18
"""

from typing import Iterable, List, Optional, Union

from kubesync.core.models import SaveError, ValidationError

# A path segment starts after one of these
BOUNDARIES = (".", "[")


def is_descendant(path: str, ancestor: str) -> bool:
    """True if `path` is strictly below `ancestor` at a '.' or '[' boundary."""
    return any(path.startswith(ancestor + sep) for sep in BOUNDARIES)


def field_path(base: str, *parts: Union[str, int]) -> str:
    """
    Builds a field path the way the API server reports it.

    >>> field_path("spec.template.spec.containers", 0, "env", 2, "name")
    'spec.template.spec.containers[0].env[2].name'
    """
    path = base
    for part in parts:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else part
    return path


class FieldErrorIndex:
    """
    Query surface over the causes of the current save error.

    hasError is three-way (exact, descendant, ancestor) so a container
    widget lights up when anything inside it fails, and a leaf lights up
    when it or one of its parents is named directly.
    """

    def __init__(self, errors: Iterable[ValidationError] = (), message: Optional[str] = None,
                 reason: Optional[str] = None):
        self.errors: List[ValidationError] = list(errors)
        self.error_message = message
        self.error_reason = reason

    @classmethod
    def from_save_error(cls, error: Optional[SaveError]) -> "FieldErrorIndex":
        if error is None:
            return cls()
        return cls(error.causes, message=error.message, reason=error.reason)

    def __len__(self) -> int:
        return len(self.errors)

    def __bool__(self) -> bool:
        return bool(self.errors)

    def has_error(self, path: str) -> bool:
        for e in self.errors:
            if e.field == path:
                return True
            # Parent containers of the failing field
            if is_descendant(e.field, path):
                return True
            # Children of a field that was named directly
            if is_descendant(path, e.field):
                return True
        return False

    def get_error(self, path: str) -> Optional[ValidationError]:
        return next((e for e in self.errors if e.field == path), None)

    def get_errors(self, prefix: str) -> List[ValidationError]:
        """All causes at `prefix` or anywhere below it, in reported order."""
        return [e for e in self.errors if e.field == prefix or is_descendant(e.field, prefix)]

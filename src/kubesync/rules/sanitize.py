#!/usr/bin/env python3
"""
KUBESYNC SANITIZER - Snapshot Hygiene
-------------------------------------
Every snapshot that enters a session (initial fetch, inline data, watch
pushes) passes through here first. Rules strip server-owned bookkeeping
that nobody edits by hand and that would otherwise bloat deep
comparisons and the text surface.

Author: KubeSync Team
Date: 2026-10-18
"""

import copy
from typing import Any, Dict, List, Tuple


class SanitizeEngine:
    """
    Rule registry applied to incoming trees. Always works on a deep copy,
    so the caller's tree (often a Gateway-owned object) is never mutated.
    """

    def __init__(self, strip_managed_fields: bool = True):
        self.active_rules = []
        if strip_managed_fields:
            self.active_rules.append(self._rule_strip_managed_fields)

    def clean(self, doc: Dict[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
        """
        Runs the document through every active rule.
        Returns the cleaned copy and a list of human-readable changes.
        """
        changes = []
        doc = copy.deepcopy(doc)

        if not isinstance(doc, dict):
            return doc, []

        for rule in self.active_rules:
            doc, msg = rule(doc)
            if msg:
                changes.append(msg)

        return doc, changes

    def _rule_strip_managed_fields(self, doc: Dict[str, Any]) -> Tuple[Dict[str, Any], str]:
        """Server-side apply bookkeeping; large, noisy and never user-edited."""
        metadata = doc.get("metadata")
        if isinstance(metadata, dict) and "managedFields" in metadata:
            del metadata["managedFields"]
            return doc, "Removed 'metadata.managedFields'."
        return doc, ""

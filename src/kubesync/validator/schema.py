#!/usr/bin/env python3
"""
KUBESYNC SCHEMA VALIDATOR - Admission
-------------------------------------
Checks a submitted object against a distilled K8s schema catalog and
reports every violation as a field cause, in the same shape the API
server uses for a 422 Invalid response. The in-memory gateway uses it to
reject submits the way a real cluster would.

Catalog shape (per Kind):
    {"Deployment": {"required": ["spec"],
                    "fields": {"spec": {"type": "object",
                                        "fields": {"replicas": {"type": "integer", "minimum": 0}}}}}}

Author: KubeSync Team
Date: 2026-10-18
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from kubesync.core.models import ValidationError
from kubesync.validator.field_paths import field_path

logger = logging.getLogger("kubesync.validator")

_TYPE_CHECKS = {
    "object": lambda v: isinstance(v, dict),
    "array": lambda v: isinstance(v, list),
    "string": lambda v: isinstance(v, str),
    "integer": lambda v: isinstance(v, int) and not isinstance(v, bool),
    "number": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    "boolean": lambda v: isinstance(v, bool),
}


class SchemaValidator:
    """
    Enforces schema integrity on submitted manifests.
    Unlike a first-failure gate, it collects all causes so a form can flag
    every broken field at once.
    """

    def __init__(self, catalog: Dict[str, Any], strict: bool = False):
        """
        Args:
            catalog: Kind -> schema map.
            strict: Reject fields the catalog does not know (typo detection).
        """
        self.catalog = catalog
        self.strict = strict
        # Core fields that must exist in every single K8s resource
        self.required_fields = ["apiVersion", "kind", "metadata"]

    @classmethod
    def from_file(cls, catalog_path: str, strict: bool = False) -> "SchemaValidator":
        path = Path(catalog_path).resolve()
        try:
            with open(path, 'r') as f:
                catalog = json.load(f)
        except (FileNotFoundError, json.JSONDecodeError) as e:
            logger.error(f"Unable to load catalog from {path}")
            raise RuntimeError(f"Failed to load catalog: {str(e)}")
        return cls(catalog, strict=strict)

    def validate(self, doc: Any) -> List[ValidationError]:
        """Returns all causes; an empty list means the object is admitted."""
        if not isinstance(doc, dict):
            return [ValidationError(field="", message="object must be a map", reason="FieldValueInvalid")]

        causes = [
            ValidationError(field=f, message="Required value", reason="FieldValueRequired")
            for f in self.required_fields if f not in doc
        ]
        if not (doc.get("metadata") or {}).get("name"):
            causes.append(ValidationError(field="metadata.name", message="Required value",
                                          reason="FieldValueRequired"))

        schema = self.catalog.get(doc.get("kind"))
        if not schema:
            # Outside the local catalog: basic validation only
            return causes

        self._walk(doc, schema, "", causes)
        return causes

    def _walk(self, doc: Dict[str, Any], schema: Dict[str, Any], path: str,
              causes: List[ValidationError]):
        for req in schema.get("required", []):
            if req not in doc:
                causes.append(ValidationError(field=field_path(path, req), message="Required value",
                                              reason="FieldValueRequired"))

        schema_fields = schema.get("fields", {})
        for key, value in doc.items():
            here = field_path(path, key)
            field_info = schema_fields.get(key)

            if not field_info:
                if self.strict and path:
                    causes.append(ValidationError(field=here, message=f"unknown field \"{key}\"",
                                                  reason="FieldValueNotSupported"))
                continue

            self._check_value(value, field_info, here, causes)

    def _check_value(self, value: Any, field_info: Dict[str, Any], here: str,
                     causes: List[ValidationError]):
        expected_type = field_info.get("type")
        if value is None:
            return

        check = _TYPE_CHECKS.get(expected_type)
        if check and not check(value):
            causes.append(ValidationError(field=here, message=f"must be of type {expected_type}",
                                          reason="FieldValueTypeInvalid"))
            return

        problem = self._check_bounds(value, field_info)
        if problem:
            causes.append(ValidationError(field=here, message=problem, reason="FieldValueInvalid"))

        if expected_type == "object" and ("fields" in field_info or "required" in field_info):
            self._walk(value, field_info, here, causes)
        elif expected_type == "array" and field_info.get("items"):
            for i, item in enumerate(value):
                self._check_value(item, field_info["items"], field_path(here, i), causes)

    def _check_bounds(self, value: Any, field_info: Dict[str, Any]) -> Optional[str]:
        minimum = field_info.get("minimum")
        if minimum is not None and isinstance(value, (int, float)) and value < minimum:
            return f"must be greater than or equal to {minimum}"
        if field_info.get("enum") and value not in field_info["enum"]:
            allowed = ", ".join(f'"{v}"' for v in field_info["enum"])
            return f"Unsupported value: \"{value}\": supported values: {allowed}"
        if field_info.get("minLength") and isinstance(value, str) and len(value) < field_info["minLength"]:
            return "Required value"
        return None

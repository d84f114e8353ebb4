#!/usr/bin/env python3
"""
KUBESYNC STATUS PARSER
----------------------
Normalizes whatever a Gateway throws into a SaveError. A K8s `Status`
object with status=Failure, or a flattened body with top-level causes,
becomes a VALIDATION error carrying its field causes; everything else
collapses into a single-message error with no causes.

Author: KubeSync Team
Date: 2026-10-18
"""

import logging
from typing import Any, Dict, List, Optional

from kubesync.core.errors import GatewayRejection, ParseError
from kubesync.core.models import ErrorKind, SaveError, ValidationError

logger = logging.getLogger("kubesync.validator")


def _parse_causes(details: Any) -> List[ValidationError]:
    causes: List[ValidationError] = []
    if not isinstance(details, dict):
        return causes
    raw_causes = details.get("causes")
    if not isinstance(raw_causes, list):
        return causes

    for cause in raw_causes:
        if not isinstance(cause, dict):
            continue
        # Causes without a field cannot be located in the tree
        if not cause.get("field"):
            continue
        causes.append(ValidationError(
            field=str(cause["field"]),
            message=str(cause.get("message") or "Validation error"),
            reason=cause.get("reason"),
        ))
    return causes


def parse_status_payload(data: Dict[str, Any]) -> Optional[SaveError]:
    """Parses a decoded response body. Returns None when it carries no message at all."""
    if data.get("kind") == "Status" and data.get("status") == "Failure":
        causes = _parse_causes(data.get("details"))
        return SaveError(
            message=str(data.get("message") or "Unknown error"),
            reason=data.get("reason"),
            code=data.get("code"),
            causes=causes,
            kind=ErrorKind.VALIDATION if causes else ErrorKind.TRANSPORT,
        )

    if data.get("message"):
        # Flattened rejection bodies carry their causes at the top level
        causes = _parse_causes(data)
        return SaveError(
            message=str(data["message"]),
            reason=data.get("reason"),
            code=data.get("code"),
            causes=causes,
            kind=ErrorKind.VALIDATION if causes else ErrorKind.TRANSPORT,
        )
    return None


def parse_status_error(error: Any) -> SaveError:
    """
    Converts any failure into a SaveError. Never raises.

    Accepts GatewayRejection, ParseError, raw Status dicts, strings and
    arbitrary exceptions.
    """
    if isinstance(error, ParseError):
        return SaveError(message=str(error), reason="Invalid", kind=ErrorKind.PARSE)

    if isinstance(error, GatewayRejection):
        parsed = parse_status_payload(error.payload)
        if parsed:
            return parsed
        return SaveError(message=str(error))

    if isinstance(error, dict):
        parsed = parse_status_payload(error)
        if parsed:
            return parsed

    if isinstance(error, str):
        return SaveError(message=error)

    if isinstance(error, BaseException):
        return SaveError(message=str(error) or type(error).__name__)

    logger.warning(f"Unrecognized error shape: {error!r}")
    return SaveError(message="Unknown error occurred")

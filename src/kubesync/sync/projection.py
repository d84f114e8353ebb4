#!/usr/bin/env python3
"""
KUBESYNC TEXT PROJECTION - Dual Representation Sync
---------------------------------------------------
Keeps the YAML text surface consistent with the structured working model.

Structured edits re-render the text. Text edits are stored verbatim (so
keystrokes are never reformatted mid-typing) and parsed opportunistically;
a failed parse is remembered silently until somebody tries to save.

Author: KubeSync Team
Date: 2026-10-18
"""

import logging
from typing import Any, Dict, Optional

from kubesync.core.errors import ParseError
from kubesync.core.models import Authority
from kubesync.sync.codec import YamlCodec

logger = logging.getLogger("kubesync.projection")


class TextProjection:
    """The text side of the working model and whichever side currently owns it."""

    def __init__(self, codec: YamlCodec):
        self.codec = codec
        self.text: str = ""
        self.authority: Authority = Authority.STRUCTURED
        self.parse_error: Optional[ParseError] = None

    @property
    def is_valid(self) -> bool:
        return self.parse_error is None

    def render(self, model: Dict[str, Any]) -> str:
        """Structured origin: the model is authoritative, the text follows it."""
        self.text = self.codec.serialize(model)
        self.authority = Authority.STRUCTURED
        self.parse_error = None
        return self.text

    def edit(self, text: str) -> Optional[Dict[str, Any]]:
        """
        Text origin: accept the buffer as typed, then try to parse it.

        Returns the parsed tree when the buffer is valid, otherwise None.
        The caller adopts the parsed tree without calling render() so the
        user's formatting survives.
        """
        self.text = text
        self.authority = Authority.TEXT
        try:
            parsed = self.codec.parse(text)
        except ParseError as e:
            self.parse_error = e
            logger.debug(f"Text buffer not parseable yet: {e}")
            return None
        self.parse_error = None
        return parsed

    def commit(self) -> Dict[str, Any]:
        """
        Parse-then-return for a save from the text surface.

        Raises:
            ParseError: the current buffer is not a valid object.
        """
        if self.authority is Authority.STRUCTURED:
            return self.codec.parse(self.text)
        parsed = self.edit(self.text)
        if parsed is None:
            raise self.parse_error
        return parsed

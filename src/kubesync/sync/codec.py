#!/usr/bin/env python3
"""
KUBESYNC CODEC - Structured Tree <-> YAML Text
----------------------------------------------
The Serialization Codec: turns a working model into the YAML shown on the
text surface and turns an edited buffer back into a working model.

serialize() is total for any tree of dict/list/scalars. parse() raises
ParseError for anything that is not exactly one YAML mapping.

Author: KubeSync Team
Date: 2026-10-18
"""

import io
from typing import Any, Dict, Sequence

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq
from ruamel.yaml.error import MarkedYAMLError, YAMLError

from kubesync.core.errors import ParseError

DEFAULT_ORDER = ("apiVersion", "kind", "metadata", "spec", "data", "status")


class YamlCodec:
    """
    Emits K8s-canonical YAML (identity keys first) and parses it back into
    plain Python containers so working models compare with `==`.
    """

    def __init__(self, indent_mapping: int = 2, indent_sequence: int = 4, offset: int = 2,
                 width: int = 4096, preferred_order: Sequence[str] = DEFAULT_ORDER):
        self.emitter = YAML(typ='rt')
        # Standard K8s: 2 spaces, but sequences are indented 4 (offset 2)
        self.emitter.indent(mapping=indent_mapping, sequence=indent_sequence, offset=offset)
        self.emitter.width = width
        self.loader = YAML(typ='safe', pure=True)
        self.preferred_order = list(preferred_order)

    def _to_ordered(self, data: Any, top_level: bool = False) -> Any:
        """
        Recursively rebuilds dicts as CommentedMaps so the round-trip emitter
        keeps our key order. Only the top level is reordered; nested keys
        keep their insertion order.
        """
        if isinstance(data, dict):
            keys = list(data.keys())
            if top_level:
                def sort_logic(key):
                    if key in self.preferred_order:
                        return self.preferred_order.index(key)
                    # Unknown keys keep their relative original position
                    return len(self.preferred_order) + keys.index(key)
                keys = sorted(keys, key=sort_logic)

            ordered = CommentedMap()
            for key in keys:
                ordered[key] = self._to_ordered(data[key])
            return ordered

        if isinstance(data, (list, tuple)):
            return CommentedSeq(self._to_ordered(item) for item in data)

        return data

    def serialize(self, tree: Dict[str, Any]) -> str:
        stream = io.StringIO()
        self.emitter.dump(self._to_ordered(tree, top_level=True), stream)
        return stream.getvalue()

    def parse(self, text: str) -> Dict[str, Any]:
        """
        Parses one YAML document into a plain dict.

        Raises:
            ParseError: syntax errors, empty buffers, multi-document input,
                or a top level that is not a mapping.
        """
        try:
            docs = [doc for doc in self.loader.load_all(text) if doc is not None]
        except MarkedYAMLError as e:
            mark = e.problem_mark or e.context_mark
            raise ParseError(
                e.problem or str(e),
                line=mark.line if mark else None,
                column=mark.column if mark else None,
            ) from e
        except YAMLError as e:
            raise ParseError(str(e)) from e

        if not docs:
            raise ParseError("Document is empty")
        if len(docs) > 1:
            raise ParseError(f"Expected a single document, found {len(docs)}")
        if not isinstance(docs[0], dict):
            raise ParseError(f"Expected a mapping at the top level, found {type(docs[0]).__name__}")
        return docs[0]

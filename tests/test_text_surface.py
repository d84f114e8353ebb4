#!/usr/bin/env python3
"""
KUBESYNC TEXT SURFACE SUITE
---------------------------
Dual representation: raw YAML edits and structured edits must keep the
working model and its text projection consistent.

Author: KubeSync Team
Date: 2026-10-18
"""

import pytest

from kubesync.core.errors import ParseError
from kubesync.core.models import Authority, ErrorKind, SessionState
from kubesync.sync.codec import YamlCodec
from kubesync.sync.projection import TextProjection


@pytest.mark.asyncio
async def test_valid_text_becomes_working_model_verbatim(controller):
    """TYPING TEST: a parseable buffer drives the model but is never reformatted."""
    await controller.initialize()
    edited = controller.text.replace("replicas: 2", "replicas:    6   # scaled by hand")

    assert controller.set_text(edited) is True
    assert controller.model["spec"]["replicas"] == 6
    assert controller.text == edited
    assert controller.projection.authority is Authority.TEXT
    assert controller.state is SessionState.DIRTY


@pytest.mark.asyncio
async def test_invalid_text_keeps_last_good_model(controller):
    await controller.initialize()
    controller.set_text(controller.text.replace("replicas: 2", "replicas: 4"))

    assert controller.set_text("spec: [unclosed") is False
    assert controller.text == "spec: [unclosed"
    assert controller.model["spec"]["replicas"] == 4
    # Nothing is surfaced while typing
    assert controller.save_error is None
    assert isinstance(controller.text_error, ParseError)


@pytest.mark.asyncio
async def test_unparseable_text_blocks_save_locally(controller, gateway):
    """PARSE-GUARDED SAVE: no submit reaches the Gateway."""
    await controller.initialize()
    controller.update(lambda m: m["spec"].update(replicas=3))
    controller.set_text("spec: [unclosed")

    assert await controller.save_text() is False
    assert controller.save_error.kind is ErrorKind.PARSE
    assert controller.save_error.causes == []
    assert gateway.submissions == []


@pytest.mark.asyncio
async def test_text_save_submits_parsed_value(controller, gateway, identity):
    await controller.initialize()
    controller.set_text(controller.text.replace("replicas: 2", "replicas: 7"))

    assert await controller.save_text() is True
    assert len(gateway.submissions) == 1
    assert gateway.objects[identity]["spec"]["replicas"] == 7
    assert not controller.has_changes


@pytest.mark.asyncio
async def test_structured_edit_takes_authority_back(controller):
    await controller.initialize()
    controller.set_text("spec: [unclosed")

    controller.update(lambda m: m["spec"].update(replicas=5))

    assert controller.projection.authority is Authority.STRUCTURED
    assert controller.text_error is None
    assert controller.text.startswith("apiVersion: apps/v1\nkind: Deployment\n")
    assert "replicas: 5" in controller.text


@pytest.mark.asyncio
async def test_push_does_not_clobber_broken_buffer(controller, gateway, server_copy):
    await controller.initialize()
    controller.set_text("spec: [unclosed")

    pushed = server_copy()
    pushed["spec"]["replicas"] = 9
    snapshot = gateway.publish(pushed)

    assert controller.apply_push(snapshot.tree, snapshot.version) is SessionState.CONFLICT_PENDING
    assert controller.text == "spec: [unclosed"


@pytest.mark.asyncio
async def test_discard_rerenders_text(controller):
    await controller.initialize()
    original = controller.text
    controller.set_text("kind: [")

    controller.discard()
    assert controller.text == original
    assert controller.text_error is None


def test_projection_commit_raises_on_invalid_buffer():
    projection = TextProjection(YamlCodec())
    projection.render({"kind": "ConfigMap", "data": {"a": "1"}})
    assert projection.commit() == {"kind": "ConfigMap", "data": {"a": "1"}}

    projection.edit("- just\n- a list\n")
    with pytest.raises(ParseError):
        projection.commit()

import pytest

from kubesync.core.errors import ParseError
from kubesync.sync.codec import YamlCodec

# Standardized K8s samples
VALID_K8S_OBJECTS = [
    {"apiVersion": "v1", "kind": "Service", "metadata": {"name": "svc"},
     "spec": {"ports": [{"port": 80, "targetPort": 8080}], "selector": {"app": "web"}}},
    {"apiVersion": "v1", "kind": "ConfigMap", "metadata": {"name": "cfg"},
     "data": {"conf": "line1\nline2\n", "version": "1.0", "enabled": "true", "empty": ""}},
    {"apiVersion": "v1", "kind": "Pod",
     "metadata": {"name": "p", "creationTimestamp": "2026-01-16T10:00:00Z", "labels": None},
     "spec": {"containers": [{"name": "c", "image": "busybox", "command": ["sh", "-c", "echo '#hi'"]}]}},
]


@pytest.mark.parametrize("obj", VALID_K8S_OBJECTS)
def test_round_trip(obj):
    """ROUND TRIP: parse(serialize(v)) == v, including strings that look like other types."""
    codec = YamlCodec()
    assert codec.parse(codec.serialize(obj)) == obj


def test_identity_keys_come_first():
    codec = YamlCodec()
    text = codec.serialize({"spec": {"b": 1, "a": 2}, "metadata": {"name": "x"},
                            "kind": "Thing", "apiVersion": "v1", "zeta": True})
    lines = text.splitlines()
    assert lines[0] == "apiVersion: v1"
    assert lines[1] == "kind: Thing"
    assert lines[2] == "metadata:"
    assert lines[-1] == "zeta: true"
    # Nested maps keep insertion order
    assert text.index("b: 1") < text.index("a: 2")


def test_serialize_does_not_mutate_input():
    obj = {"kind": "A", "apiVersion": "v1", "spec": {"items": [1, 2]}}
    YamlCodec().serialize(obj)
    assert list(obj) == ["kind", "apiVersion", "spec"]


def test_parse_reports_location():
    with pytest.raises(ParseError) as excinfo:
        YamlCodec().parse("metadata:\n  name: web\nspec: [unclosed\n")
    assert excinfo.value.line is not None


@pytest.mark.parametrize("text", ["", "# only a comment\n", "a: 1\n---\nb: 2\n", "- a\n- b\n", "just a string"])
def test_parse_rejects_non_single_mapping(text):
    with pytest.raises(ParseError):
        YamlCodec().parse(text)

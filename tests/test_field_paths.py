from kubesync.core.models import ErrorKind, SaveError, ValidationError
from kubesync.validator.field_paths import FieldErrorIndex, field_path, is_descendant

IMAGE = "spec.template.spec.containers[0].image"


def test_containment_three_ways():
    """CONTAINMENT: containers light up for descendants, leaves for themselves and named ancestors."""
    index = FieldErrorIndex([ValidationError(field=IMAGE, message="Required value")])

    assert index.has_error("spec")
    assert index.has_error("spec.template.spec.containers")
    assert index.has_error("spec.template.spec.containers[0]")
    assert index.has_error(IMAGE)
    assert not index.has_error("spec.template.spec.containers[1]")
    assert not index.has_error("metadata")


def test_descendant_of_named_field():
    index = FieldErrorIndex([ValidationError(field="spec.template.spec.containers[0]", message="bad")])
    assert index.has_error(IMAGE)
    assert index.has_error("spec.template.spec.containers[0].env[3].name")
    assert not index.has_error("spec.template.spec.containers[01]")


def test_prefix_needs_a_boundary():
    index = FieldErrorIndex([ValidationError(field="spec.replicas", message="must be >= 0")])
    assert not index.has_error("spec.rep")
    assert not index.has_error("spec.replicasMax")
    assert not is_descendant("spec.replicasMax", "spec.replicas")
    assert is_descendant("spec.replicas", "spec")


def test_get_error_is_exact_and_first():
    first = ValidationError(field="spec.replicas", message="must be >= 0")
    second = ValidationError(field="spec.replicas", message="must be an integer")
    index = FieldErrorIndex([first, second])

    assert index.get_error("spec.replicas") is first
    assert index.get_error("spec") is None


def test_get_errors_bundles_a_subtree():
    errors = [
        ValidationError(field="spec.template.spec.containers[0].image", message="Required value"),
        ValidationError(field="spec.template.spec.containers[0].ports[0].containerPort", message="must be 1-65535"),
        ValidationError(field="spec.template.spec.containers[1].name", message="Duplicate value"),
        ValidationError(field="metadata.name", message="Required value"),
    ]
    index = FieldErrorIndex(errors)

    assert index.get_errors("spec.template.spec.containers[0]") == errors[:2]
    assert index.get_errors("spec.template.spec.containers") == errors[:3]
    assert index.get_errors("metadata.name") == [errors[3]]
    assert index.get_errors("status") == []


def test_from_save_error():
    error = SaveError(message="Deployment \"web\" is invalid", reason="Invalid", code=422,
                      causes=[ValidationError(field="spec.replicas", message="must be >= 0")],
                      kind=ErrorKind.VALIDATION)
    index = FieldErrorIndex.from_save_error(error)
    assert len(index) == 1
    assert index.error_message == "Deployment \"web\" is invalid"
    assert index.error_reason == "Invalid"

    empty = FieldErrorIndex.from_save_error(None)
    assert not empty
    assert not empty.has_error("spec")


def test_field_path_builder():
    assert field_path("spec.template.spec.containers", 0, "env", 2, "name") == \
        "spec.template.spec.containers[0].env[2].name"
    assert field_path("", "metadata", "labels") == "metadata.labels"
    assert field_path("spec") == "spec"

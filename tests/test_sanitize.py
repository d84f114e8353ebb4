from kubesync.rules.sanitize import SanitizeEngine


def test_managed_fields_are_stripped_from_a_copy(deployment):
    cleaned, changes = SanitizeEngine().clean(deployment)

    assert "managedFields" not in cleaned["metadata"]
    assert "managedFields" in deployment["metadata"]
    assert changes == ["Removed 'metadata.managedFields'."]


def test_clean_object_reports_nothing():
    cleaned, changes = SanitizeEngine().clean({"kind": "ConfigMap", "metadata": {"name": "cfg"}})
    assert cleaned == {"kind": "ConfigMap", "metadata": {"name": "cfg"}}
    assert changes == []


def test_rules_can_be_disabled(deployment):
    cleaned, changes = SanitizeEngine(strip_managed_fields=False).clean(deployment)
    assert cleaned == deployment
    assert changes == []

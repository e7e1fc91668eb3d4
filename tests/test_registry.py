import pytest

from jbossctl.core.models import TargetDescriptor
from jbossctl.core.registry import TargetCatalog, TargetRegistry


def _target(name: str, port: int = 1099) -> TargetDescriptor:
    return TargetDescriptor.remote(name=name, start_command="start", stop_command="stop", management_port=port)


def test_registry_registration():
    reg = TargetRegistry()
    target = _target("a")
    reg.register(target)

    assert reg.get("a") == target
    assert "a" in reg


def test_registry_get_missing():
    reg = TargetRegistry()
    with pytest.raises(KeyError):
        reg.get("missing")


def test_registry_duplicate_error():
    reg = TargetRegistry([_target("dup")])

    with pytest.raises(ValueError, match="already registered"):
        reg.register(_target("dup", port=2000))


def test_replace_all_rejects_duplicates_and_keeps_previous_state():
    reg = TargetRegistry([_target("a")])

    with pytest.raises(ValueError, match="already registered"):
        reg.replace_all([_target("b"), _target("b")])

    assert [t.name for t in reg] == ["a"]


def test_registry_preserves_order():
    reg = TargetRegistry([_target("c"), _target("a"), _target("b")])

    assert [t.name for t in reg.snapshot().list_targets()] == ["c", "a", "b"]
    assert len(reg) == 3


def test_snapshot_is_isolated_from_later_changes():
    reg = TargetRegistry([_target("a")])
    snapshot = reg.snapshot()

    reg.register(_target("b"))
    reg.remove("a")

    assert isinstance(snapshot, TargetCatalog)
    assert snapshot.find_target("a") is not None
    assert snapshot.find_target("b") is None
    assert reg.snapshot().find_target("b") is not None


def test_remove_missing_raises():
    reg = TargetRegistry()
    with pytest.raises(KeyError):
        reg.remove("ghost")


def test_catalog_find_target_returns_none_for_unknown():
    catalog = TargetCatalog([_target("a")])

    assert catalog.find_target("zzz") is None
    assert "a" in catalog
    assert len(catalog) == 1

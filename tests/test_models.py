import pytest
from pydantic import ValidationError

from jbossctl.core.models import (
    CheckDeployOperation,
    ModuleKind,
    ModuleSpec,
    OperationType,
    ProbeResult,
    ShutdownOperation,
    StartAndWaitOperation,
    StartOperation,
    TargetDescriptor,
    TargetKind,
    infer_module_kind,
    parse_operation,
)


def test_local_descriptor_carries_install_directory(tmp_path):
    target = TargetDescriptor.local(name="default", install_directory=tmp_path, management_port=1099)

    assert target.kind == TargetKind.LOCAL
    assert target.is_local is True
    assert target.install_directory == tmp_path
    assert target.start_command is None
    assert target.endpoint == "127.0.0.1:1099"


def test_remote_descriptor_carries_commands():
    target = TargetDescriptor.remote(
        name="remote",
        start_command="start.sh",
        stop_command="stop.sh",
        management_port=8080,
        address="10.1.1.1",
    )

    assert target.kind == TargetKind.REMOTE
    assert target.is_local is False
    assert target.install_directory is None


def test_local_descriptor_rejects_commands(tmp_path):
    with pytest.raises(ValidationError, match="Local targets cannot define"):
        TargetDescriptor(
            kind="local",
            name="x",
            management_port=1099,
            install_directory=tmp_path,
            start_command="run.sh",
        )


def test_remote_descriptor_requires_both_commands():
    with pytest.raises(ValidationError, match="stop_command"):
        TargetDescriptor(kind="remote", name="x", management_port=1099, start_command="run.sh")


def test_remote_descriptor_rejects_install_directory(tmp_path):
    with pytest.raises(ValidationError, match="cannot define 'install_directory'"):
        TargetDescriptor(
            kind="remote",
            name="x",
            management_port=1099,
            start_command="a",
            stop_command="b",
            install_directory=tmp_path,
        )


@pytest.mark.parametrize("port", [80, 1024, 70000])
def test_management_port_must_be_above_1024(tmp_path, port):
    with pytest.raises(ValidationError):
        TargetDescriptor.local(name="x", install_directory=tmp_path, management_port=port)


def test_blank_name_is_rejected(tmp_path):
    with pytest.raises(ValidationError):
        TargetDescriptor.local(name="   ", install_directory=tmp_path, management_port=1099)


def test_descriptor_is_immutable(local_target):
    with pytest.raises(ValidationError):
        local_target.name = "other"


@pytest.mark.parametrize(
    "name,kind",
    [
        ("shop.ear", ModuleKind.EAR),
        ("orders-ejb.jar", ModuleKind.EJB),
        ("web.war", ModuleKind.WAR),
        ("WEB.WAR", ModuleKind.WAR),
        ("library.jar", ModuleKind.UNKNOWN),
        ("c.xyz", ModuleKind.UNKNOWN),
        (".war", ModuleKind.UNKNOWN),
    ],
)
def test_module_kind_is_inferred_from_suffix(name, kind):
    assert infer_module_kind(name) == kind
    assert ModuleSpec.from_name(name).kind == kind


def test_module_list_parsing_accepts_commas_and_whitespace():
    specs = ModuleSpec.parse_list("a.war, b-ejb.jar\n c.xyz")

    assert [spec.name for spec in specs] == ["a.war", "b-ejb.jar", "c.xyz"]
    assert [spec.kind for spec in specs] == [ModuleKind.WAR, ModuleKind.EJB, ModuleKind.UNKNOWN]
    assert ModuleSpec.parse_list("  ") == []


def test_parse_operation_dispatches_on_type():
    assert isinstance(parse_operation({"type": "start"}), StartOperation)
    assert isinstance(parse_operation({"type": "start_and_wait"}), StartAndWaitOperation)
    assert isinstance(parse_operation({"type": "shutdown"}), ShutdownOperation)

    check = parse_operation({"type": "check_deploy", "modules": "a.war b.ear", "stop_on_check_failure": True})
    assert isinstance(check, CheckDeployOperation)
    assert check.modules == ["a.war", "b.ear"]
    assert check.stop_on_check_failure is True
    assert OperationType(check.type) == OperationType.CHECK_DEPLOY


def test_parse_operation_rejects_unknown_type():
    with pytest.raises(ValidationError):
        parse_operation({"type": "restart"})


def test_shutdown_operation_has_no_properties():
    with pytest.raises(ValidationError):
        ShutdownOperation(extra_properties="a=b")


def test_blank_extra_properties_normalize_to_none():
    assert StartOperation(extra_properties="   ").extra_properties is None
    assert StartAndWaitOperation(extra_properties=" a=b ").extra_properties == "a=b"


def test_probe_result_truthiness_follows_reached():
    assert bool(ProbeResult(desired_running=True, reached=True, connected=True)) is True
    assert bool(ProbeResult(desired_running=True, reached=False, connected=False)) is False

import pytest

from authz_matrix.catalog import Role
from authz_matrix.config import HarnessSettings
from authz_matrix.errors import HarnessEnvironmentError
from authz_matrix.provisioner import UserProvisioner
from tests.fakes import FakeDeployment

READ = Role("read", "read", "roles_commands_1")
ROOT = Role("root", "root", "admin")


def test_reset_binds_probe_to_scoped_role(deployment, provisioner):
    provisioner.reset(deployment, READ)

    assert deployment.users["monitor"]["roles"] == [{"role": "read", "db": "roles_commands_1"}]
    assert provisioner.bound_role == "read"
    assert deployment.log == [
        ("auth", "admin"),
        ("dropUser", "monitor"),
        ("createUser", "monitor", []),
        ("grantRolesToUser", "monitor", [{"role": "read", "db": "roles_commands_1"}]),
        ("logout", "admin"),
    ]
    assert deployment.open_sessions == 0


def test_reset_binds_admin_role_directly(deployment, provisioner):
    provisioner.reset(deployment, ROOT)
    assert deployment.users["monitor"]["roles"] == ["root"]


def test_reset_replaces_previous_binding(deployment, provisioner):
    provisioner.reset(deployment, READ)
    provisioner.reset(deployment, ROOT)
    assert deployment.users["monitor"]["roles"] == ["root"]


def test_revoke_drops_probe(deployment, provisioner):
    provisioner.reset(deployment, READ)
    provisioner.revoke(deployment)

    assert "monitor" not in deployment.users
    assert provisioner.bound_role is None
    assert not provisioner.probe_authenticates(deployment)


def test_acquire_revokes_on_exception(deployment, provisioner):
    with pytest.raises(RuntimeError):
        with provisioner.acquire(deployment, READ):
            assert provisioner.probe_authenticates(deployment)
            raise RuntimeError("boom")

    assert "monitor" not in deployment.users
    assert provisioner.bound_role is None
    assert deployment.open_sessions == 0


def test_acquire_refuses_second_binding(deployment, provisioner):
    with provisioner.acquire(deployment, READ):
        with pytest.raises(HarnessEnvironmentError, match="still bound to read"):
            with provisioner.acquire(deployment, ROOT):
                pass
    assert "monitor" not in deployment.users


def test_sessions_always_log_out(deployment, provisioner):
    with pytest.raises(ValueError):
        with provisioner.operator_session(deployment) as admin:
            assert admin.user == "admin"
            raise ValueError
    assert deployment.open_sessions == 0
    assert deployment.log[-1] == ("logout", "admin")


def test_operator_that_cannot_authenticate_is_environment_error():
    provisioner = UserProvisioner(HarnessSettings(operator_password="wrong"))
    with pytest.raises(HarnessEnvironmentError, match="Operator admin cannot authenticate"):
        provisioner.reset(FakeDeployment(), READ)


def test_probe_session_without_probe_is_environment_error(deployment, provisioner):
    with pytest.raises(HarnessEnvironmentError):
        with provisioner.probe_session(deployment):
            pass


def test_ensure_operator_creates_missing_operator(settings):
    deployment = FakeDeployment(with_operator=False)
    UserProvisioner(settings).ensure_operator(deployment)

    assert deployment.users["admin"]["roles"] == ["__system"]
    assert deployment.open_sessions == 0


def test_ensure_operator_leaves_existing_operator(deployment, provisioner):
    provisioner.ensure_operator(deployment)
    assert not [e for e in deployment.log if e[0] == "createUser"]
    assert deployment.open_sessions == 0

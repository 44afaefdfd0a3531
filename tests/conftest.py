import pytest

from authz_matrix.catalog import Role, RoleCatalog
from authz_matrix.config import HarnessSettings
from authz_matrix.provisioner import UserProvisioner
from authz_matrix.runner import MatrixRunner
from tests.fakes import FakeDeployment

TEST_DB = "roles_commands_1"

POLICY = {
    "find": {"read", "readWrite", "root"},
    "insert": {"readWrite", "root"},
    "dropDatabase": {"root"},
    "collMod": {"readWrite", "root"},
}


@pytest.fixture
def settings() -> HarnessSettings:
    return HarnessSettings()


@pytest.fixture
def catalog() -> RoleCatalog:
    return RoleCatalog(
        [
            Role("read", "read", TEST_DB),
            Role("readWrite", "readWrite", TEST_DB),
            Role("root", "root", "admin"),
        ]
    )


@pytest.fixture
def deployment() -> FakeDeployment:
    return FakeDeployment("standalone", allowed=POLICY)


@pytest.fixture
def provisioner(settings) -> UserProvisioner:
    return UserProvisioner(settings)


@pytest.fixture
def runner(settings, provisioner) -> MatrixRunner:
    return MatrixRunner(settings, provisioner)

from unittest.mock import MagicMock, patch

import pytest
from pymongo.errors import AutoReconnect, OperationFailure

from authz_matrix.errors import AuthenticationFailed, HarnessEnvironmentError
from authz_matrix.system import MongoDeployment, MongoSession


@pytest.fixture
def client():
    return MagicMock()


def command_mock(client):
    return client.__getitem__.return_value.command


def test_run_command_returns_reply(client):
    command_mock(client).return_value = {"ok": 1.0, "n": 0}

    reply = MongoSession(client, "monitor").run_command("d", {"find": "foo"})

    assert reply == {"ok": 1.0, "n": 0}
    client.__getitem__.assert_called_with("d")
    command_mock(client).assert_called_once_with({"find": "foo"})


def test_server_failure_becomes_reply(client):
    command_mock(client).side_effect = OperationFailure(
        "not authorized on d to execute command",
        code=13,
        details={"ok": 0.0, "errmsg": "not authorized", "code": 13, "codeName": "Unauthorized"},
    )

    reply = MongoSession(client, "monitor").run_command("d", {"dropDatabase": 1})

    assert reply["ok"] == 0.0
    assert reply["code"] == 13
    assert reply["codeName"] == "Unauthorized"


def test_server_failure_without_details(client):
    command_mock(client).side_effect = OperationFailure("boom", code=115)

    reply = MongoSession(client, "monitor").run_command("d", {"touch": "foo"})

    assert reply["ok"] == 0
    assert reply["code"] == 115


def test_transport_failure_is_environment_error(client):
    command_mock(client).side_effect = AutoReconnect("connection reset")

    with pytest.raises(HarnessEnvironmentError, match="Transport failure running find on d"):
        MongoSession(client, "monitor").run_command("d", {"find": "foo"})


def test_drop_user_tolerates_missing_user(client):
    command_mock(client).side_effect = OperationFailure("UserNotFound", code=11)
    MongoSession(client, "admin").drop_user("admin", "monitor")


def test_drop_user_other_failure_raises(client):
    command_mock(client).side_effect = OperationFailure("not authorized", code=13)
    with pytest.raises(HarnessEnvironmentError):
        MongoSession(client, "admin").drop_user("admin", "monitor")


def test_create_and_grant_send_user_commands(client):
    command_mock(client).return_value = {"ok": 1.0}
    session = MongoSession(client, "admin")

    session.create_user("admin", "monitor", "pw", [])
    session.grant_roles_to_user("admin", "monitor", [{"role": "read", "db": "d"}])

    assert [c.args[0] for c in command_mock(client).call_args_list] == [
        {"createUser": "monitor", "pwd": "pw", "roles": []},
        {"grantRolesToUser": "monitor", "roles": [{"role": "read", "db": "d"}]},
    ]


def test_failed_create_user_raises(client):
    command_mock(client).return_value = {"ok": 0, "code": 51003}
    with pytest.raises(HarnessEnvironmentError, match="createUser on admin failed"):
        MongoSession(client, "admin").create_user("admin", "monitor", "pw", [])


def test_logout_closes_client(client):
    MongoSession(client, "monitor").logout()
    client.close.assert_called_once_with()


@patch("authz_matrix.system.MongoClient")
def test_auth_opens_client_with_credentials(mongo_client):
    session = MongoDeployment("standalone", "mongodb://h:1", timeout_ms=500).auth("monitor", "pw")

    assert session.user == "monitor"
    kwargs = mongo_client.call_args.kwargs
    assert mongo_client.call_args.args == ("mongodb://h:1",)
    assert (kwargs["username"], kwargs["password"], kwargs["authSource"]) == ("monitor", "pw", "admin")
    assert kwargs["serverSelectionTimeoutMS"] == 500


@patch("authz_matrix.system.MongoClient")
def test_rejected_credentials_raise_authentication_failed(mongo_client):
    instance = mongo_client.return_value
    command_mock(instance).side_effect = OperationFailure("Authentication failed.", code=18)

    with pytest.raises(AuthenticationFailed):
        MongoDeployment("standalone", "mongodb://h:1").auth("monitor", "pw")
    instance.close.assert_called_once_with()


@patch("authz_matrix.system.MongoClient")
def test_unreachable_deployment_is_environment_error(mongo_client):
    instance = mongo_client.return_value
    command_mock(instance).side_effect = AutoReconnect("no servers")

    with pytest.raises(HarnessEnvironmentError, match="standalone unreachable"):
        MongoDeployment("standalone", "mongodb://h:1").auth("admin", "pw")
    instance.close.assert_called_once_with()


@patch("authz_matrix.system.MongoClient")
def test_connect_is_unauthenticated(mongo_client):
    session = MongoDeployment("standalone", "mongodb://h:1").connect()

    assert session.user is None
    assert "username" not in mongo_client.call_args.kwargs

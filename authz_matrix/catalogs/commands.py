"""
Command catalog.

Each declaration names a command, the databases it is run on and, per role
key, whether the built-in role must be allowed to run it. Roles that are not
listed are not exercised unless the driver runs with ``--exhaustive``, in
which case they must be denied.
"""
from __future__ import annotations

from typing import Any

from authz_matrix.catalogs.builtin_roles import FIRST_DB, SECOND_DB
from authz_matrix.system import Session


def _roles(*keys: str) -> dict[str, bool]:
    return {key: True for key in keys}


roles_read = _roles(
    "read", "readAnyDatabase", "readWrite", "readWriteAnyDatabase", "dbOwner",
    "backup", "root", "__system",
)
roles_readAny = _roles("readAnyDatabase", "readWriteAnyDatabase", "backup", "root", "__system")
roles_write = _roles(
    "readWrite", "readWriteAnyDatabase", "dbOwner", "restore", "root", "__system"
)
roles_writeAny = _roles("readWriteAnyDatabase", "restore", "root", "__system")
roles_dbAdmin = _roles("dbAdmin", "dbAdminAnyDatabase", "dbOwner", "root", "__system")
roles_dbAdminAny = _roles("dbAdminAnyDatabase", "root", "__system")
roles_userAdmin = _roles("userAdmin", "dbOwner", "userAdminAnyDatabase", "root", "__system")
roles_userAdminAny = _roles("userAdminAnyDatabase", "root", "__system")
roles_monitoring = _roles("clusterMonitor", "clusterAdmin", "root", "__system")


def _deny(*keys: str) -> dict[str, bool]:
    return {key: False for key in keys}


def _seed_foo(session: Session, db: str) -> dict[str, Any]:
    session.run_command(db, {"drop": "foo"})
    session.run_command(db, {"insert": "foo", "documents": [{"a": 22}]})
    return {"collection": "foo"}


def _drop_db(session: Session, db: str) -> None:
    session.run_command(db, {"dropDatabase": 1})


def _drop_created_user(session: Session, db: str) -> None:
    session.drop_user(db, "x")


def _check_db_stats(reply: dict[str, Any]) -> None:
    assert reply.get("db") == FIRST_DB, f"dbStats reported db {reply.get('db')!r}"


TESTS: list[dict[str, Any]] = [
    {
        "testname": "find",
        "command": {"find": "foo"},
        "setup": _seed_foo,
        "teardown": _drop_db,
        "testcases": [
            {"runOnDb": FIRST_DB, "roles": {**roles_read, **_deny("userAdmin", "clusterMonitor")}},
            {"runOnDb": SECOND_DB, "roles": roles_readAny},
        ],
    },
    {
        "testname": "insert",
        "command": {"insert": "foo", "documents": [{"data": 5}]},
        "teardown": _drop_db,
        "testcases": [
            {"runOnDb": FIRST_DB, "roles": {**roles_write, **_deny("read", "readAnyDatabase")}},
            {"runOnDb": SECOND_DB, "roles": roles_writeAny},
        ],
    },
    {
        "testname": "dropDatabase",
        "command": {"dropDatabase": 1},
        "setup": _seed_foo,
        "teardown": _drop_db,
        "testcases": [
            {
                "runOnDb": FIRST_DB,
                "roles": {
                    **roles_dbAdmin,
                    **_roles("clusterManager", "clusterAdmin"),
                    **_deny("read", "readWrite", "backup"),
                },
            },
            {"runOnDb": SECOND_DB, "roles": {**roles_dbAdminAny, **_roles("clusterManager", "clusterAdmin")}},
        ],
    },
    {
        "testname": "collMod",
        "command": lambda state: {"collMod": state["collection"]},
        "setup": _seed_foo,
        "teardown": _drop_db,
        "testcases": [
            {"runOnDb": FIRST_DB, "roles": {**roles_dbAdmin, **_deny("read", "readWrite")}},
            {"runOnDb": SECOND_DB, "roles": roles_dbAdminAny},
        ],
    },
    {
        "testname": "createUser",
        "command": {"createUser": "x", "pwd": "Password@a1b", "roles": []},
        "teardown": _drop_created_user,
        "testcases": [
            {"runOnDb": FIRST_DB, "roles": {**roles_userAdmin, **_deny("dbAdmin", "readWrite")}},
            {"runOnDb": SECOND_DB, "roles": roles_userAdminAny},
            # No expectations declared: never exercised.
            {"runOnDb": "config"},
        ],
    },
    {
        "testname": "dbStats",
        "command": {"dbStats": 1, "scale": 1024},
        "setup": _seed_foo,
        "teardown": _drop_db,
        "testcases": [
            {
                "runOnDb": FIRST_DB,
                "roles": {
                    **_roles(
                        "read", "readAnyDatabase", "readWrite", "readWriteAnyDatabase",
                        "dbAdmin", "dbAdminAnyDatabase", "dbOwner", "clusterMonitor",
                        "clusterAdmin", "backup", "root", "__system",
                    ),
                    **_deny("userAdmin", "hostManager"),
                },
                "onSuccess": _check_db_stats,
            },
        ],
    },
    {
        "testname": "listDatabases",
        "command": {"listDatabases": 1},
        "testcases": [
            {
                "runOnDb": "admin",
                "roles": {
                    **_roles(
                        "readAnyDatabase", "readWriteAnyDatabase", "dbAdminAnyDatabase",
                        "userAdminAnyDatabase", "clusterMonitor", "clusterAdmin", "backup",
                        "root", "__system",
                    ),
                },
            },
        ],
    },
    {
        "testname": "serverStatus",
        "command": {"serverStatus": 1},
        "testcases": [
            {"runOnDb": "admin", "roles": {**roles_monitoring, **_deny("read", "dbOwner")}},
            {"runOnDb": FIRST_DB, "roles": roles_monitoring},
        ],
    },
    {
        "testname": "getCmdLineOpts",
        "command": {"getCmdLineOpts": 1},
        "testcases": [
            {"runOnDb": "admin", "roles": {**roles_monitoring, **_deny("hostManager", "backup")}},
        ],
    },
    {
        "testname": "balancerStatus",
        "command": {"balancerStatus": 1},
        "testcases": [
            # Standalone servers reject the command outright.
            {"runOnDb": "admin", "roles": roles_monitoring, "expectFail": True},
        ],
    },
]

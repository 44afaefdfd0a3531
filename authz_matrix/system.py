"""
Deployment contract and its pymongo implementation.

Every authenticated session owns its own MongoClient, so logging out is
closing that client; no connection is shared between identities.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

import structlog
from pymongo import MongoClient
from pymongo.errors import OperationFailure, PyMongoError

from authz_matrix.config import ADMIN_DB, AUTHENTICATION_FAILED_CODE, USER_NOT_FOUND_CODE
from authz_matrix.errors import AuthenticationFailed, HarnessEnvironmentError

logger = structlog.get_logger(__name__)

RoleRef = str | Mapping[str, str]


class Session(Protocol):
    """A connection authenticated as (at most) one identity."""

    user: str | None

    def run_command(self, db: str, command: Mapping[str, Any]) -> dict[str, Any]: ...

    def create_user(self, db: str, user: str, password: str, roles: list[RoleRef]) -> None: ...

    def drop_user(self, db: str, user: str) -> None: ...

    def grant_roles_to_user(self, db: str, user: str, roles: list[RoleRef]) -> None: ...

    def logout(self) -> None: ...


class Deployment(Protocol):
    """A system under test reachable under a topology name."""

    name: str

    def auth(self, user: str, password: str, db: str = ADMIN_DB) -> Session: ...

    def connect(self) -> Session: ...

    def close(self) -> None: ...


class MongoSession:
    def __init__(self, client: MongoClient, user: str | None) -> None:
        self._client = client
        self.user = user

    def run_command(self, db: str, command: Mapping[str, Any]) -> dict[str, Any]:
        """Dispatch ``command``; a server-side failure is returned as its reply document."""
        try:
            return dict(self._client[db].command(dict(command)))
        except OperationFailure as exc:
            reply = dict(exc.details or {})
            reply.setdefault("ok", 0)
            reply.setdefault("code", exc.code)
            reply.setdefault("errmsg", str(exc))
            return reply
        except PyMongoError as exc:
            raise HarnessEnvironmentError(
                f"Transport failure running {next(iter(command), '?')} on {db}: {exc}"
            ) from exc

    def create_user(self, db: str, user: str, password: str, roles: list[RoleRef]) -> None:
        self._admin_command(db, {"createUser": user, "pwd": password, "roles": list(roles)})

    def drop_user(self, db: str, user: str) -> None:
        reply = self.run_command(db, {"dropUser": user})
        if not reply.get("ok") and reply.get("code") != USER_NOT_FOUND_CODE:
            raise HarnessEnvironmentError(f"dropUser {user} on {db} failed: {reply}")

    def grant_roles_to_user(self, db: str, user: str, roles: list[RoleRef]) -> None:
        self._admin_command(db, {"grantRolesToUser": user, "roles": list(roles)})

    def logout(self) -> None:
        self._client.close()

    def _admin_command(self, db: str, command: dict[str, Any]) -> None:
        reply = self.run_command(db, command)
        if not reply.get("ok"):
            raise HarnessEnvironmentError(f"{next(iter(command))} on {db} failed: {reply}")


class MongoDeployment:
    """A mongod or mongos reachable at ``uri``."""

    def __init__(self, name: str, uri: str, timeout_ms: int = 10_000) -> None:
        self.name = name
        self.uri = uri
        self.timeout_ms = timeout_ms

    def _client(self, **credentials: Any) -> MongoClient:
        return MongoClient(
            self.uri,
            serverSelectionTimeoutMS=self.timeout_ms,
            connect=False,
            **credentials,
        )

    def auth(self, user: str, password: str, db: str = ADMIN_DB) -> MongoSession:
        client = self._client(username=user, password=password, authSource=db)
        try:
            # Credentials are only checked on the first round trip.
            client[db].command("connectionStatus")
        except OperationFailure as exc:
            client.close()
            if exc.code == AUTHENTICATION_FAILED_CODE:
                raise AuthenticationFailed(user, db) from exc
            raise HarnessEnvironmentError(f"Could not authenticate {user}@{db}: {exc}") from exc
        except PyMongoError as exc:
            client.close()
            raise HarnessEnvironmentError(f"{self.name} unreachable at {self.uri}: {exc}") from exc
        logger.debug("session_authenticated", topology=self.name, user=user, db=db)
        return MongoSession(client, user)

    def connect(self) -> MongoSession:
        return MongoSession(self._client(), None)

    def close(self) -> None:
        logger.debug("deployment_closed", topology=self.name)

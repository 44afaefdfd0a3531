"""
Probe identity provisioning.

Provides:
- operator_session() / probe_session() - authenticated sessions that always log out
- reset()    - recreate the probe user bound to exactly one role
- revoke()   - drop the probe user
- acquire()  - reset/revoke pair scoped to a ``with`` block
- ensure_operator() - bootstrap the operator on a fresh deployment
"""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import structlog

from authz_matrix.catalog import Role
from authz_matrix.config import HarnessSettings
from authz_matrix.errors import AuthenticationFailed, HarnessEnvironmentError
from authz_matrix.system import Deployment, Session

logger = structlog.get_logger(__name__)


class UserProvisioner:
    """Owns the single reusable probe identity slot."""

    def __init__(self, settings: HarnessSettings) -> None:
        self.settings = settings
        self.bound_role: str | None = None

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    @contextmanager
    def operator_session(self, deployment: Deployment) -> Iterator[Session]:
        s = self.settings
        try:
            session = deployment.auth(s.operator_user, s.operator_password, s.admin_db)
        except AuthenticationFailed as exc:
            raise HarnessEnvironmentError(
                f"Operator {s.operator_user} cannot authenticate on {deployment.name}"
            ) from exc
        try:
            yield session
        finally:
            session.logout()

    @contextmanager
    def probe_session(self, deployment: Deployment) -> Iterator[Session]:
        s = self.settings
        try:
            session = deployment.auth(s.probe_user, s.probe_password, s.admin_db)
        except AuthenticationFailed as exc:
            raise HarnessEnvironmentError(
                f"Probe {s.probe_user} bound to {self.bound_role} cannot authenticate"
            ) from exc
        try:
            yield session
        finally:
            session.logout()

    # ------------------------------------------------------------------
    # Probe lifecycle
    # ------------------------------------------------------------------

    def reset(self, deployment: Deployment, role: Role) -> None:
        """Drop any existing probe user and recreate it bound to ``role`` only."""
        s = self.settings
        with self.operator_session(deployment) as admin:
            admin.drop_user(s.admin_db, s.probe_user)
            admin.create_user(s.admin_db, s.probe_user, s.probe_password, roles=[])
            admin.grant_roles_to_user(s.admin_db, s.probe_user, [role.grant_spec(s.admin_db)])
        self.bound_role = role.key
        logger.debug("probe_provisioned", topology=deployment.name, role=role.key)

    def revoke(self, deployment: Deployment) -> None:
        s = self.settings
        with self.operator_session(deployment) as admin:
            admin.drop_user(s.admin_db, s.probe_user)
        logger.debug("probe_revoked", topology=deployment.name, role=self.bound_role)
        self.bound_role = None

    @contextmanager
    def acquire(self, deployment: Deployment, role: Role) -> Iterator[None]:
        if self.bound_role is not None:
            raise HarnessEnvironmentError(
                f"Probe identity is still bound to {self.bound_role}; cannot bind {role.key}"
            )
        try:
            self.reset(deployment, role)
            yield
        finally:
            self.revoke(deployment)

    def probe_authenticates(self, deployment: Deployment) -> bool:
        s = self.settings
        try:
            session = deployment.auth(s.probe_user, s.probe_password, s.admin_db)
        except AuthenticationFailed:
            return False
        session.logout()
        return True

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    def ensure_operator(self, deployment: Deployment) -> None:
        """Create the operator through an unauthenticated connection if it is missing."""
        s = self.settings
        try:
            deployment.auth(s.operator_user, s.operator_password, s.admin_db).logout()
            return
        except AuthenticationFailed:
            logger.info("operator_missing", topology=deployment.name, user=s.operator_user)

        session = deployment.connect()
        try:
            session.create_user(
                s.admin_db, s.operator_user, s.operator_password, list(s.operator_roles)
            )
        finally:
            session.logout()
        logger.info("operator_created", topology=deployment.name, user=s.operator_user)

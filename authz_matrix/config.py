"""
Harness configuration.

Connection strings and credentials come from the environment; everything is
bundled into a frozen HarnessSettings value that is passed explicitly to the
provisioner, runner and driver.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

ADMIN_DB = "admin"

# Server error codes the classifier keys on.
UNAUTHORIZED_CODE = 13
COMMAND_NOT_SUPPORTED_CODE = 115
AUTHENTICATION_FAILED_CODE = 18
USER_NOT_FOUND_CODE = 11

TOPOLOGIES: dict[str, str] = {
    "standalone": os.getenv("AUTHZ_MATRIX_STANDALONE_URI", "mongodb://localhost:27017"),
    "sharded": os.getenv("AUTHZ_MATRIX_SHARDED_URI", "mongodb://localhost:27018"),
}

RESULTS_DIR = Path(os.getenv("AUTHZ_MATRIX_RESULTS_DIR", "results"))


@dataclass(frozen=True)
class ErrorCodes:
    """Reply codes that separate policy denials from unsupported features."""

    authorization: int = UNAUTHORIZED_CODE
    unsupported_operation: int = COMMAND_NOT_SUPPORTED_CODE


@dataclass(frozen=True)
class HarnessSettings:
    operator_user: str = "admin"
    operator_password: str = "Password@a1b"
    operator_roles: tuple[str, ...] = ("__system",)
    probe_user: str = "monitor"
    probe_password: str = "Password@a1b"
    admin_db: str = ADMIN_DB
    server_selection_timeout_ms: int = 10_000
    codes: ErrorCodes = field(default_factory=ErrorCodes)

    @classmethod
    def from_env(cls) -> HarnessSettings:
        defaults = cls()
        return cls(
            operator_user=os.getenv("AUTHZ_MATRIX_OPERATOR_USER", defaults.operator_user),
            operator_password=os.getenv(
                "AUTHZ_MATRIX_OPERATOR_PASSWORD", defaults.operator_password
            ),
            probe_user=os.getenv("AUTHZ_MATRIX_PROBE_USER", defaults.probe_user),
            probe_password=os.getenv("AUTHZ_MATRIX_PROBE_PASSWORD", defaults.probe_password),
            server_selection_timeout_ms=int(
                os.getenv(
                    "AUTHZ_MATRIX_TIMEOUT_MS", str(defaults.server_selection_timeout_ms)
                )
            ),
        )

"""Exception hierarchy for the authorization matrix harness."""
from __future__ import annotations

from typing import Sequence


class HarnessError(Exception):
    """Base class for every error raised by the harness."""


class ConfigurationError(HarnessError):
    """Role or test declarations are inconsistent; nothing has been run."""


class UnknownRoleError(ConfigurationError):
    def __init__(self, test_name: str, role_key: str) -> None:
        self.test_name = test_name
        self.role_key = role_key
        super().__init__(
            f"Role {role_key} found in test: {test_name}, but doesn't exist in the role catalog"
        )


class DuplicateRoleError(ConfigurationError):
    def __init__(self, role_key: str) -> None:
        self.role_key = role_key
        super().__init__(f"Role {role_key} is declared more than once")


class DeclarationError(ConfigurationError):
    """A test declaration does not match the declaration schema."""


class RoleNotFoundError(HarnessError, LookupError):
    def __init__(self, role_key: str) -> None:
        self.role_key = role_key
        super().__init__(f"No role registered under key {role_key!r}")


class AuthenticationFailed(HarnessError):
    def __init__(self, user: str, db: str) -> None:
        self.user = user
        self.db = db
        super().__init__(f"Authentication failed for {user}@{db}")


class HarnessEnvironmentError(HarnessError):
    """
    The environment around a trial broke: a hook raised, the transport failed,
    or the operator could not authenticate. Aborts the remaining run.
    """


class AuthorizationMismatchError(HarnessError, AssertionError):
    """Raised at the end of a run when at least one trial was misclassified."""

    def __init__(self, records: Sequence[object]) -> None:
        self.records = list(records)
        lines = "\n".join(str(r) for r in self.records)
        super().__init__(f"{len(self.records)} authorization mismatch(es):\n{lines}")

"""
Role and test-case catalogs.

Both catalogs are immutable values built once from static declarations and
passed explicitly to the validator and the runner.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Union

from pydantic import ValidationError

from authz_matrix.errors import (
    DeclarationError,
    DuplicateRoleError,
    HarnessEnvironmentError,
    RoleNotFoundError,
)
from authz_matrix.schemas import RoleDeclaration, TestDeclaration


@dataclass(frozen=True)
class Role:
    key: str
    role_spec: str | Mapping[str, str]
    target_db: str

    def grant_spec(self, admin_db: str) -> str | dict[str, str]:
        """Role reference handed to grantRolesToUser for the probe identity."""
        if isinstance(self.role_spec, Mapping):
            return dict(self.role_spec)
        if self.target_db == admin_db:
            return self.role_spec
        return {"role": self.role_spec, "db": self.target_db}


class RoleCatalog:
    """Ordered registry of roles keyed by their unique key."""

    def __init__(self, roles: Iterable[Role]) -> None:
        by_key: dict[str, Role] = {}
        for role in roles:
            if role.key in by_key:
                raise DuplicateRoleError(role.key)
            by_key[role.key] = role
        self._roles = MappingProxyType(by_key)

    @classmethod
    def from_declarations(cls, declarations: Iterable[Mapping[str, Any] | Role]) -> RoleCatalog:
        roles = []
        for raw in declarations:
            if isinstance(raw, Role):
                roles.append(raw)
                continue
            try:
                decl = RoleDeclaration.model_validate(raw)
            except ValidationError as exc:
                raise DeclarationError(f"Invalid role declaration {raw!r}: {exc}") from exc
            roles.append(Role(key=decl.key, role_spec=decl.role, target_db=decl.dbname))
        return cls(roles)

    def lookup(self, key: str) -> Role:
        try:
            return self._roles[key]
        except KeyError:
            raise RoleNotFoundError(key) from None

    def all(self) -> tuple[Role, ...]:
        return tuple(self._roles.values())

    def __contains__(self, key: object) -> bool:
        return key in self._roles

    def __iter__(self) -> Iterator[Role]:
        return iter(self._roles.values())

    def __len__(self) -> int:
        return len(self._roles)


# ---------------------------------------------------------------------------
# Command specs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LiteralCommand:
    document: Mapping[str, Any]

    def resolve(self, state: Any) -> dict[str, Any]:
        return dict(self.document)


@dataclass(frozen=True)
class GeneratedCommand:
    generate: Callable[[Any], Mapping[str, Any]]

    def resolve(self, state: Any) -> dict[str, Any]:
        document = self.generate(state)
        if not isinstance(document, Mapping):
            raise HarnessEnvironmentError(
                f"Command generator returned {type(document).__name__}, expected a document"
            )
        return dict(document)


CommandSpec = Union[LiteralCommand, GeneratedCommand]


def command_spec(command: Mapping[str, Any] | Callable[[Any], Mapping[str, Any]]) -> CommandSpec:
    if isinstance(command, Mapping):
        return LiteralCommand(MappingProxyType(dict(command)))
    return GeneratedCommand(command)


# ---------------------------------------------------------------------------
# Test cases
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TestCase:
    """One command on one database with its expected outcome per role key."""

    __test__ = False

    name: str
    command: CommandSpec
    run_on_db: str
    expected_outcomes: Mapping[str, bool] = field(default_factory=lambda: MappingProxyType({}))
    expect_fail: bool = False
    on_success: Callable[[dict[str, Any]], Any] | None = None
    setup: Callable[..., Any] | None = None
    teardown: Callable[..., Any] | None = None
    authenticated_setup: Callable[..., Any] | None = None

    def expectation(self, role_key: str) -> bool | None:
        """Declared outcome for ``role_key``; None when the case does not list it."""
        return self.expected_outcomes.get(role_key)


def load_test_cases(declarations: Iterable[Mapping[str, Any] | TestDeclaration]) -> tuple[TestCase, ...]:
    """
    Flatten test declarations into TestCases, one per declared testcase.

    Testcases that declare no roles are skipped: they carry no expectation
    to check.
    """
    cases: list[TestCase] = []
    for raw in declarations:
        try:
            decl = (
                raw if isinstance(raw, TestDeclaration) else TestDeclaration.model_validate(raw)
            )
        except ValidationError as exc:
            name = raw.get("testname", "<unnamed>") if isinstance(raw, Mapping) else raw
            raise DeclarationError(f"Invalid test declaration {name}: {exc}") from exc

        spec = command_spec(decl.command)
        for testcase in decl.testcases:
            if not testcase.roles:
                continue
            cases.append(
                TestCase(
                    name=decl.testname,
                    command=spec,
                    run_on_db=testcase.run_on_db,
                    expected_outcomes=MappingProxyType(dict(testcase.roles)),
                    expect_fail=testcase.expect_fail,
                    on_success=testcase.on_success,
                    setup=decl.setup,
                    teardown=decl.teardown,
                    authenticated_setup=decl.authenticated_setup,
                )
            )
    return tuple(cases)

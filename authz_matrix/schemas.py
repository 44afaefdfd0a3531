"""Pydantic v2 schemas for role and command test declarations."""
from __future__ import annotations

from typing import Any, Callable, ClassVar

from pydantic import BaseModel, ConfigDict, Field

Document = dict[str, Any]
Hook = Callable[..., Any]


class RoleDeclaration(BaseModel):
    """One entry of a role catalog module."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str = Field(..., min_length=1)
    role: str | dict[str, str] = Field(..., description="Role name or {role, db} reference")
    dbname: str = Field(..., min_length=1)


class TestcaseDeclaration(BaseModel):
    """Expected per-role outcomes of one command on one database."""

    __test__: ClassVar[bool] = False

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    run_on_db: str = Field(..., alias="runOnDb", min_length=1)
    roles: dict[str, bool] | None = None
    expect_fail: bool = Field(default=False, alias="expectFail")
    on_success: Callable[[Document], Any] | None = Field(default=None, alias="onSuccess")


class TestDeclaration(BaseModel):
    """A command plus the testcases that exercise it."""

    __test__: ClassVar[bool] = False

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    testname: str = Field(..., min_length=1)
    command: Document | Callable[[Any], Document]
    testcases: list[TestcaseDeclaration] = Field(default_factory=list)
    setup: Hook | None = None
    teardown: Hook | None = None
    authenticated_setup: Hook | None = Field(default=None, alias="authenticatedSetup")

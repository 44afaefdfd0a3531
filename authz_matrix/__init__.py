"""
Authorization matrix harness.

Provides the TrialResult and FailureRecord dataclasses shared by the runner,
classifier and report modules.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from bson import json_util


@dataclass(frozen=True)
class TrialResult:
    """Reply of a single command dispatched by a probe identity."""

    ok: bool
    error_code: int | None = None
    reply: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_reply(cls, reply: dict[str, Any]) -> TrialResult:
        code = reply.get("code")
        return cls(
            ok=bool(reply.get("ok")),
            error_code=int(code) if code is not None else None,
            reply=dict(reply),
        )

    def __str__(self) -> str:
        return json_util.dumps(self.reply or {"ok": int(self.ok)})


@dataclass(frozen=True)
class FailureRecord:
    """A trial whose observed outcome disagrees with its declared expectation."""

    test_name: str
    role_key: str
    run_on_db: str
    message: str

    def __str__(self) -> str:
        return f"{self.test_name}: {self.message}"

"""
Matrix runner.

Executes every (test case, role) trial against one deployment, strictly one
after another: test cases in declaration order, roles in catalog order. Each
trial gets a freshly provisioned probe identity that is revoked on every exit
path, and every mismatch is forwarded to a FailureAggregator.
"""
from __future__ import annotations

import time
from collections.abc import Iterator, Sequence
from typing import Any, Callable

import structlog

from authz_matrix import FailureRecord, TrialResult
from authz_matrix.aggregator import FailureAggregator
from authz_matrix.catalog import Role, RoleCatalog, TestCase
from authz_matrix.classifier import classify
from authz_matrix.config import HarnessSettings
from authz_matrix.errors import HarnessEnvironmentError
from authz_matrix.provisioner import UserProvisioner
from authz_matrix.system import Deployment
from authz_matrix.validator import validate

logger = structlog.get_logger(__name__)


class MatrixRunner:
    def __init__(
        self,
        settings: HarnessSettings,
        provisioner: UserProvisioner | None = None,
        deny_unlisted: bool = False,
        verify_revocation: bool = False,
    ) -> None:
        self.settings = settings
        self.provisioner = provisioner or UserProvisioner(settings)
        self.deny_unlisted = deny_unlisted
        self.verify_revocation = verify_revocation

    def trials(self, case: TestCase, catalog: RoleCatalog) -> Iterator[tuple[Role, bool]]:
        """Yield (role, expected) pairs for ``case`` in catalog order."""
        for role in catalog:
            expected = case.expectation(role.key)
            if expected is None:
                if not self.deny_unlisted:
                    continue
                expected = False
            yield role, expected

    def run(
        self,
        deployment: Deployment,
        test_cases: Sequence[TestCase],
        catalog: RoleCatalog,
        aggregator: FailureAggregator | None = None,
    ) -> list[FailureRecord]:
        """Run the whole matrix and return the mismatches in trial order."""
        validate(test_cases, catalog)
        aggregator = aggregator if aggregator is not None else FailureAggregator()
        started = time.monotonic()

        for case in test_cases:
            if not case.expected_outcomes:
                continue
            for role, expected in self.trials(case, catalog):
                record = self.run_trial(deployment, case, role, expected)
                aggregator.note_trial()
                if record is not None:
                    aggregator.collect([record])

        logger.info(
            "matrix_run_complete",
            topology=deployment.name,
            trials=aggregator.trials,
            failures=len(aggregator),
            elapsed_s=round(time.monotonic() - started, 3),
        )
        return aggregator.records

    def run_trial(
        self, deployment: Deployment, case: TestCase, role: Role, expected: bool
    ) -> FailureRecord | None:
        db = case.run_on_db
        log = logger.bind(topology=deployment.name, test=case.name, role=role.key, db=db)
        log.debug("trial_started", expected=expected)

        with self.provisioner.acquire(deployment, role):
            try:
                state = None
                if case.setup is not None:
                    with self.provisioner.operator_session(deployment) as admin:
                        state = _invoke_hook("setup", case, role, case.setup, admin, db)

                with self.provisioner.probe_session(deployment) as probe:
                    if case.authenticated_setup is not None:
                        _invoke_hook(
                            "authenticatedSetup", case, role, case.authenticated_setup, probe, db
                        )
                    command = _invoke_hook("command", case, role, case.command.resolve, state)
                    reply = _invoke_hook("dispatch", case, role, probe.run_command, db, command)
                    result = TrialResult.from_reply(reply)

                record = _invoke_hook(
                    "onSuccess", case, role, classify, case, role.key, expected, result,
                    self.settings.codes,
                )
            except BaseException:
                # Teardown still runs, but the first failure is the one reported.
                try:
                    self._teardown(deployment, case, role)
                except HarnessEnvironmentError as exc:
                    log.error("teardown_failed", error=str(exc))
                raise
            self._teardown(deployment, case, role)

        if self.verify_revocation and self.provisioner.probe_authenticates(deployment):
            raise HarnessEnvironmentError(
                f"Probe identity still authenticates after {case.name} with role {role.key}"
            )
        log.debug("trial_finished", ok=result.ok, code=result.error_code, mismatch=bool(record))
        return record

    def _teardown(self, deployment: Deployment, case: TestCase, role: Role) -> None:
        if case.teardown is None:
            return
        with self.provisioner.operator_session(deployment) as admin:
            _invoke_hook("teardown", case, role, case.teardown, admin, case.run_on_db)


def _invoke_hook(
    hook_name: str, case: TestCase, role: Role, hook: Callable[..., Any], *args: Any
) -> Any:
    try:
        return hook(*args)
    except HarnessEnvironmentError as exc:
        raise HarnessEnvironmentError(
            f"{hook_name} of {case.name} failed with role {role.key}: {exc}"
        ) from exc
    except Exception as exc:
        raise HarnessEnvironmentError(
            f"{hook_name} hook of {case.name} raised {exc!r} with role {role.key}"
        ) from exc

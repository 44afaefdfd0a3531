"""
Outcome classification.

Maps the declared expectation for one (test case, role) pair and the reply
the deployment produced onto either nothing (correct) or a FailureRecord.

Decision table:
- must succeed, denied with the authorization code    -> mismatch
- must succeed, failed for any other reason            -> mismatch, unless the
  case expects failure or the code marks the operation unsupported here
- must succeed, succeeded                              -> run onSuccess check
- must be denied, anything but an authorization denial -> mismatch

The unsupported-operation tolerance only applies to the must-succeed branch.
"""
from __future__ import annotations

import structlog

from authz_matrix import FailureRecord, TrialResult
from authz_matrix.catalog import TestCase
from authz_matrix.config import ErrorCodes
from authz_matrix.errors import HarnessEnvironmentError

logger = structlog.get_logger(__name__)


def classify(
    case: TestCase,
    role_key: str,
    expected: bool,
    result: TrialResult,
    codes: ErrorCodes | None = None,
) -> FailureRecord | None:
    codes = codes or ErrorCodes()
    where = f"on db {case.run_on_db} with role {role_key}"
    denied = not result.ok and result.error_code == codes.authorization

    if expected:
        if denied:
            return _record(
                case, role_key, f"expected authorization success but received {result} {where}"
            )
        if (
            not result.ok
            and not case.expect_fail
            and result.error_code != codes.unsupported_operation
        ):
            return _record(case, role_key, f"command failed with {result} {where}")
        if result.ok and case.on_success is not None:
            return _check_on_success(case, role_key, result, where)
        return None

    if not denied:
        return _record(
            case, role_key, f"expected authorization failure but received result {result} {where}"
        )
    return None


def _check_on_success(
    case: TestCase, role_key: str, result: TrialResult, where: str
) -> FailureRecord | None:
    try:
        case.on_success(result.reply)
    except HarnessEnvironmentError:
        raise
    except Exception as exc:
        return _record(
            case, role_key, f"onSuccess check failed with {exc!r} for result {result} {where}"
        )
    return None


def _record(case: TestCase, role_key: str, message: str) -> FailureRecord:
    logger.warning("trial_mismatch", test=case.name, role=role_key, db=case.run_on_db)
    return FailureRecord(
        test_name=case.name, role_key=role_key, run_on_db=case.run_on_db, message=message
    )

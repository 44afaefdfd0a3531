"""Pre-flight check that test declarations only reference known roles."""
from __future__ import annotations

from collections.abc import Iterable

import structlog

from authz_matrix.catalog import RoleCatalog, TestCase
from authz_matrix.errors import RoleNotFoundError, UnknownRoleError

logger = structlog.get_logger(__name__)


def validate(test_cases: Iterable[TestCase], catalog: RoleCatalog) -> None:
    """Raise UnknownRoleError for the first expectation naming a role not in ``catalog``."""
    checked = 0
    for case in test_cases:
        for role_key in case.expected_outcomes:
            try:
                catalog.lookup(role_key)
            except RoleNotFoundError:
                logger.error("unknown_role", test=case.name, role=role_key)
                raise UnknownRoleError(case.name, role_key) from None
        checked += 1
    logger.debug("catalog_consistent", test_cases=checked, roles=len(catalog))

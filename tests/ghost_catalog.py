"""Command catalog that expects an outcome for a role nobody declared."""
from tests.catalog_fixtures import ROLES  # noqa: F401

TESTS = [
    {
        "testname": "find",
        "command": {"find": "foo"},
        "testcases": [{"runOnDb": "roles_commands_1", "roles": {"ghost": True}}],
    },
]

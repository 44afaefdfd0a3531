"""Small role and command catalogs used by the driver tests."""
TEST_DB = "roles_commands_1"

ROLES = [
    {"key": "read", "role": "read", "dbname": TEST_DB},
    {"key": "readWrite", "role": "readWrite", "dbname": TEST_DB},
    {"key": "root", "role": "root", "dbname": "admin"},
]

TESTS = [
    {
        "testname": "find",
        "command": {"find": "foo"},
        "testcases": [{"runOnDb": TEST_DB, "roles": {"read": True, "readWrite": True, "root": True}}],
    },
    {
        "testname": "dropDatabase",
        "command": {"dropDatabase": 1},
        "testcases": [{"runOnDb": TEST_DB, "roles": {"read": False, "root": True}}],
    },
]

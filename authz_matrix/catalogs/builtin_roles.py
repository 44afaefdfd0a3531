"""
Built-in role catalog.

Each role is granted to the probe identity on ``dbname``; roles living on the
admin database are granted directly.
"""
from __future__ import annotations

from authz_matrix.config import ADMIN_DB

FIRST_DB = "roles_commands_1"
SECOND_DB = "roles_commands_2"

ROLES = [
    {"key": "read", "role": "read", "dbname": FIRST_DB},
    {"key": "readLocal", "role": {"role": "read", "db": "local"}, "dbname": ADMIN_DB},
    {"key": "readAnyDatabase", "role": "readAnyDatabase", "dbname": ADMIN_DB},
    {"key": "readWrite", "role": "readWrite", "dbname": FIRST_DB},
    {"key": "readWriteLocal", "role": {"role": "readWrite", "db": "local"}, "dbname": ADMIN_DB},
    {"key": "readWriteAnyDatabase", "role": "readWriteAnyDatabase", "dbname": ADMIN_DB},
    {"key": "userAdmin", "role": "userAdmin", "dbname": FIRST_DB},
    {"key": "userAdminAnyDatabase", "role": "userAdminAnyDatabase", "dbname": ADMIN_DB},
    {"key": "dbAdmin", "role": "dbAdmin", "dbname": FIRST_DB},
    {"key": "dbAdminAnyDatabase", "role": "dbAdminAnyDatabase", "dbname": ADMIN_DB},
    {"key": "clusterAdmin", "role": "clusterAdmin", "dbname": ADMIN_DB},
    {"key": "dbOwner", "role": "dbOwner", "dbname": FIRST_DB},
    {"key": "enableSharding", "role": "enableSharding", "dbname": FIRST_DB},
    {"key": "clusterMonitor", "role": "clusterMonitor", "dbname": ADMIN_DB},
    {"key": "hostManager", "role": "hostManager", "dbname": ADMIN_DB},
    {"key": "clusterManager", "role": "clusterManager", "dbname": ADMIN_DB},
    {"key": "backup", "role": "backup", "dbname": ADMIN_DB},
    {"key": "restore", "role": "restore", "dbname": ADMIN_DB},
    {"key": "root", "role": "root", "dbname": ADMIN_DB},
    {"key": "__system", "role": "__system", "dbname": ADMIN_DB},
]

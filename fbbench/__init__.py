"""
Firebird benchmark harness.

Drives the `isql` client through a fixed set of workload phases (schema,
bulk insert, selects, update, index creation), times each one and emits a
single JSON report with host, storage and engine facts.
"""

__all__ = [
    "config",
    "errors",
    "models",
    "isql_client",
    "listparse",
    "workload",
    "lifecycle",
    "engine",
    "sysinfo",
    "reporting",
    "runner",
    "cli",
]

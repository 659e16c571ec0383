"""
leaderhud: contributor leaderboard aggregation and static JSON export.
The __all__ list names the public submodules.
"""
__all__ = ["config", "db", "models", "schemas", "definitions", "queries", "exporter", "operations", "importer", "static_data", "utils", "cli"]

# NOTE: submodules are not imported here; `python -m leaderhud.cli` would
# otherwise import cli twice. Import what you need explicitly.

"""Storage layer for segblock."""

from segblock.storage.backends import DuckDBBackend, KeyValueBackend, MemoryBackend
from segblock.storage.rule_store import RULES_KEY, RuleStore

__all__ = [
    "DuckDBBackend",
    "KeyValueBackend",
    "MemoryBackend",
    "RULES_KEY",
    "RuleStore",
]

"""Persisted collection of block rules.

The whole rule list lives under one key and every mutation is a
read-modify-write of that list, so a failed write leaves the previous list
intact.
"""

from __future__ import annotations

import logging
from typing import Optional

from segblock.errors import NotFound, PersistenceError
from segblock.models import BlockRule
from segblock.storage.backends import KeyValueBackend

logger = logging.getLogger(__name__)

RULES_KEY = "blockedSites"


class RuleStore:
    """Block rules keyed by normalized host, in insertion order."""

    def __init__(self, backend: KeyValueBackend, key: str = RULES_KEY) -> None:
        self.backend = backend
        self.key = key

    def _load(self) -> list[BlockRule]:
        try:
            records = self.backend.get(self.key)
        except OSError as e:
            raise PersistenceError(f"Failed to load rules: {e}") from e

        if records is None:
            return []
        if not isinstance(records, list):
            raise PersistenceError(f"Stored {self.key!r} is not a list")
        return [BlockRule.from_record(record) for record in records]

    def _save(self, rules: list[BlockRule]) -> None:
        try:
            self.backend.set(self.key, [rule.to_record() for rule in rules])
        except OSError as e:
            raise PersistenceError(f"Failed to save rules: {e}") from e

    def list(self) -> list[BlockRule]:
        """Return all rules in stored order."""
        return self._load()

    def get(self, url: str) -> Optional[BlockRule]:
        """Look up a rule by normalized host."""
        for rule in self._load():
            if rule.url == url:
                return rule
        return None

    def upsert(self, rule: BlockRule) -> list[BlockRule]:
        """Insert a rule, or replace the existing rule for the same host in place.

        Returns:
            The full rule list after the write
        """
        rules = self._load()
        for i, existing in enumerate(rules):
            if existing.url == rule.url:
                rules[i] = rule
                logger.debug(f"Replacing rule for {rule.url} at position {i}")
                break
        else:
            rules.append(rule)
            logger.debug(f"Adding rule for {rule.url}")

        self._save(rules)
        return rules

    def delete(self, index: int) -> list[BlockRule]:
        """Remove the rule at a list position.

        Raises:
            NotFound: If index is outside the current list
        """
        rules = self._load()
        if not 0 <= index < len(rules):
            raise NotFound(f"No block rule at position {index} ({len(rules)} rules stored)")

        removed = rules.pop(index)
        self._save(rules)
        logger.debug(f"Deleted rule for {removed.url} at position {index}")
        return rules

    def delete_host(self, url: str) -> list[BlockRule]:
        """Remove the rule for a normalized host.

        Raises:
            NotFound: If no rule exists for the host
        """
        rules = self._load()
        remaining = [rule for rule in rules if rule.url != url]
        if len(remaining) == len(rules):
            raise NotFound(f"No block rule for {url}")

        self._save(remaining)
        logger.debug(f"Deleted rule for {url}")
        return remaining

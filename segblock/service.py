"""Save/delete flow shared by every UI adapter.

Validates input, writes the rule store and then broadcasts the new rule
list. Errors from the segblock.errors hierarchy propagate to the adapter,
which turns them into a user-visible message.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from segblock.errors import NotFound
from segblock.models import BlockRule, build_rule
from segblock.normalizer import require_url
from segblock.segments import SegmentSelection
from segblock.storage import RuleStore
from segblock.sync import RuleSync, SyncResult

logger = logging.getLogger(__name__)


@dataclass
class SaveResult:
    """Outcome of a save."""
    rule: BlockRule
    rules: list[BlockRule]
    replaced: bool
    sync: SyncResult


@dataclass
class DeleteResult:
    """Outcome of a delete."""
    removed: BlockRule
    rules: list[BlockRule]
    sync: SyncResult


class BlockRuleService:
    """Ties normalization, the segment policy, the store and sync together."""

    def __init__(self, store: RuleStore, sync: RuleSync) -> None:
        self.store = store
        self.sync = sync

    def list(self) -> list[BlockRule]:
        return self.store.list()

    async def save(
        self,
        raw_url: str,
        selection: SegmentSelection,
        now_ms: Optional[int] = None,
    ) -> SaveResult:
        """Create or replace the rule for a website.

        Args:
            raw_url: Website as typed by the user
            selection: Segment count and (already clamped) unblock hours
            now_ms: Timestamp override in epoch ms

        Raises:
            InvalidUrl: Empty or unparsable website input
            PersistenceError: The store could not be written
        """
        url = require_url(raw_url)
        rule = build_rule(url, selection.segments, selection.unblock_hours, now_ms)

        replaced = self.store.get(url) is not None
        rules = self.store.upsert(rule)
        logger.info(
            f"Saved rule for {url}: {rule.segments} segments, "
            f"{rule.unblock_hours}h unblock per segment"
        )

        sync = await self.sync.notify(rules)
        return SaveResult(rule=rule, rules=rules, replaced=replaced, sync=sync)

    async def delete(self, index: int) -> DeleteResult:
        """Delete the rule at a list position.

        Raises:
            NotFound: Index is outside the current list; nothing is sent
            PersistenceError: The store could not be written
        """
        current = self.store.list()
        rules = self.store.delete(index)
        removed = current[index]
        logger.info(f"Deleted rule for {removed.url}")

        sync = await self.sync.notify(rules)
        return DeleteResult(removed=removed, rules=rules, sync=sync)

    async def delete_host(self, raw_url: str) -> DeleteResult:
        """Delete the rule for a website, matched by normalized host.

        Raises:
            InvalidUrl: Empty or unparsable website input
            NotFound: No rule exists for the host; nothing is sent
            PersistenceError: The store could not be written
        """
        url = require_url(raw_url)
        removed = self.store.get(url)
        if removed is None:
            raise NotFound(f"No block rule for {url}")
        rules = self.store.delete_host(url)
        logger.info(f"Deleted rule for {url}")

        sync = await self.sync.notify(rules)
        return DeleteResult(removed=removed, rules=rules, sync=sync)

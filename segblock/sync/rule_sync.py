"""Broadcast of the current rule list to the enforcement component.

Every successful store mutation is followed by one `updateBlockRules`
message carrying the full list. Delivery problems are reported as
warnings and never undo the store change.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from segblock.models import BlockRule

logger = logging.getLogger(__name__)

UPDATE_ACTION = "updateBlockRules"


class Listener(Protocol):
    name: str

    async def deliver(self, message: dict[str, Any]) -> None:
        ...


def build_message(rules: Sequence[BlockRule]) -> dict[str, Any]:
    """Build the outbound rule-update message."""
    return {
        "action": UPDATE_ACTION,
        "sites": [rule.to_record() for rule in rules],
    }


@dataclass
class SyncResult:
    """Outcome of one notify call."""
    delivered: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.warnings


class RuleSync:
    """Fans rule updates out to the configured listeners."""

    def __init__(self, listeners: Sequence[Listener] = (), attempts: int = 1) -> None:
        self.listeners = list(listeners)
        self.attempts = max(1, attempts)

    async def notify(self, rules: Sequence[BlockRule]) -> SyncResult:
        """Send the full rule list to every listener.

        Returns:
            SyncResult with the delivery count and any warnings
        """
        result = SyncResult()
        message = build_message(rules)

        if not self.listeners:
            warning = "No enforcement listener configured; rule update not delivered"
            logger.warning(warning)
            result.warnings.append(warning)
            return result

        for listener in self.listeners:
            error = await self._deliver(listener, message)
            if error is None:
                result.delivered += 1
            else:
                warning = f"Rule update to {listener.name} failed: {error}"
                logger.warning(warning)
                result.warnings.append(warning)

        return result

    async def _deliver(self, listener: Listener, message: dict[str, Any]) -> Exception | None:
        """Try a listener up to `attempts` times. Returns the last error, if any."""
        last_error: Exception | None = None
        for attempt in range(1, self.attempts + 1):
            try:
                await listener.deliver(message)
                return None
            except Exception as e:
                last_error = e
                logger.debug(f"Delivery attempt {attempt}/{self.attempts} to {listener.name} failed: {e}")
        return last_error

    async def close(self) -> None:
        for listener in self.listeners:
            close = getattr(listener, "close", None)
            if close is not None:
                await close()

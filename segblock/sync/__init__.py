"""Rule-update notification for the enforcement component."""

from segblock.sync.listeners import (
    CallbackListener,
    DeliveryError,
    HttpListener,
    SyncEndpointConfig,
)
from segblock.sync.rule_sync import RuleSync, SyncResult, UPDATE_ACTION, build_message

__all__ = [
    "CallbackListener",
    "DeliveryError",
    "HttpListener",
    "SyncEndpointConfig",
    "RuleSync",
    "SyncResult",
    "UPDATE_ACTION",
    "build_message",
]

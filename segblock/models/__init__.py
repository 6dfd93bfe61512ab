"""Data models for segblock."""

from segblock.models.rules import BlockRule, build_rule, now_ms

__all__ = [
    "BlockRule",
    "build_rule",
    "now_ms",
]

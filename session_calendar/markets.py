"""
Market identity: asset classes and regions, keyed by their wire strings.
"""

from __future__ import annotations

from enum import Enum


class AssetClass(str, Enum):
    EQUITY = "equity"
    CRYPTO = "crypto"
    FOREX = "forex"

    @classmethod
    def parse(cls, value: str) -> AssetClass:
        """Accept either the wire string or the member name (case-insensitive)."""
        return _parse(cls, value)


class Region(str, Enum):
    AMERICAN = "us"
    TURKISH = "tr"
    TEST = "test"

    @classmethod
    def parse(cls, value: str) -> Region:
        """Accept either the wire string ("us") or the member name ("american")."""
        return _parse(cls, value)


def _parse(enum_cls, value: str):
    key = value.strip().lower()
    for member in enum_cls:
        if key in (member.value, member.name.lower()):
            return member
    raise ValueError(f"Unknown {enum_cls.__name__} {value!r}")

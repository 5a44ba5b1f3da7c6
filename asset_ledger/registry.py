"""
registry.py - Registered asset descriptors keyed by token
"""

from __future__ import annotations
from typing import Dict, List
import logging

from .core import (
    Asset, AssetAlreadyRegistered, AssetNotRegistered, BytesLike,
    to_bytes, validate_description,
)

logger = logging.getLogger(__name__)


class AssetRegistry:
    """
    Assets known to the ledger.

    Assets are added once and never removed. The registry hands out the
    stored Asset objects; change descriptions through set_desc() so the new
    text is validated.
    """

    def __init__(self):
        self._assets: Dict[bytes, Asset] = {}

    def register(self, asset: Asset) -> None:
        """
        Add an asset.

        Raises:
            AssetAlreadyRegistered: If the token is already taken.
        """
        if asset.token in self._assets:
            raise AssetAlreadyRegistered(f"Asset {asset.token!r} already registered")
        asset.is_valid()
        self._assets[asset.token] = asset
        logger.info("Registered asset %r (%s, precision %d)", asset.token, asset.chain.value, asset.precision)

    def is_registered(self, token: BytesLike) -> bool:
        return to_bytes(token) in self._assets

    def get(self, token: BytesLike) -> Asset:
        """Return the asset for a token. Raises AssetNotRegistered if unknown."""
        token = to_bytes(token)
        if token not in self._assets:
            raise AssetNotRegistered(f"Asset {token!r} not registered")
        return self._assets[token]

    def list_tokens(self) -> List[bytes]:
        return sorted(self._assets)

    def set_desc(self, token: BytesLike, desc: BytesLike) -> None:
        """
        Validate and store a new description.

        Raises:
            AssetNotRegistered: If the token is unknown.
            InvalidFormat: If the description is too long or not printable.
        """
        asset = self.get(token)
        validate_description(desc)
        asset.set_desc(desc)

    def __len__(self) -> int:
        return len(self._assets)

    def __contains__(self, token: object) -> bool:
        return isinstance(token, (bytes, bytearray, str)) and self.is_registered(token)

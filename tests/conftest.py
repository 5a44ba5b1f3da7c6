"""
conftest.py - Shared pytest fixtures for asset ledger tests

Provides common fixtures used across unit, functional and conformance tests:
- Stores (empty, pre-funded, registry-backed)
- Registered assets
- A funding helper that issues and finalizes in one step
"""

import pytest

from asset_ledger import (
    Asset, AssetRegistry, AssetType, AssetsConfig, Chain,
    PositiveImbalance, TotalAssetBalance,
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def fund(store: TotalAssetBalance, token: bytes, amount: int,
         asset_type: AssetType = AssetType.FREE) -> None:
    """Raise a bucket total by issuing and immediately finalizing."""
    PositiveImbalance(store, amount, token, asset_type).finalize()


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def store():
    """Empty store with default configuration."""
    return TotalAssetBalance()


@pytest.fixture
def small_store():
    """Store with a tiny balance ceiling, for saturation tests."""
    return TotalAssetBalance(AssetsConfig(max_balance=100))


@pytest.fixture
def btc():
    return Asset.new(b"BTC", b"Bitcoin", Chain.BITCOIN, 8, b"")


@pytest.fixture
def eth():
    return Asset.new(b"ETH", b"Ether", Chain.ETHEREUM, 18, b"Ethereum native asset")


@pytest.fixture
def registry(btc, eth):
    """Registry holding BTC and ETH."""
    reg = AssetRegistry()
    reg.register(btc)
    reg.register(eth)
    return reg


@pytest.fixture
def registry_store(registry):
    """Store that rejects tokens missing from the registry."""
    return TotalAssetBalance(registry=registry)


@pytest.fixture
def funded_store(store):
    """Store with 1000 free BTC and 50 BTC reserved for staking."""
    fund(store, b"BTC", 1000)
    fund(store, b"BTC", 50, AssetType.RESERVED_STAKING)
    return store

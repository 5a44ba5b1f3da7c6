"""
asset_ledger - Conservation-safe total issuance for multi-asset ledgers

Tracks the aggregate balance of every asset per accounting bucket. Totals
change only when an imbalance token is finalized, so every unit of value
entering or leaving circulation passes through exactly one auditable event.

Usage:
    from asset_ledger import (
        Asset, AssetRegistry, AssetType, Chain,
        PositiveImbalance, NegativeImbalance, TotalAssetBalance,
    )

    registry = AssetRegistry()
    registry.register(Asset.new(b"BTC", b"Bitcoin", Chain.BITCOIN, 8, b""))

    store = TotalAssetBalance(registry=registry)
    with store.execution():
        minted = store.issue(b"BTC", 1000)
        first, rest = minted.split(400)
        first.finalize()                  # 400 -> Free bucket
        rest.merge(PositiveImbalance(store, 100, b"BTC"))
    # rest (700) finalized on exit

    store.move(b"BTC", 300, AssetType.FREE, AssetType.RESERVED_STAKING)
"""

# Core types
from .core import (
    Asset,
    AssetErr,
    AssetType,
    BalanceStore,
    BucketMap,
    Chain,
    # Exceptions
    AssetLedgerError,
    AssetError,
    AssetAlreadyRegistered,
    AssetNotRegistered,
    ImbalanceMismatch,
    ImbalanceResolved,
    InvalidFormat,
    MemoTooLong,
    # Validation
    validate_token,
    validate_display_name,
    validate_description,
    validate_memo,
    # Constants
    DEFAULT_MEMO_LEN,
    DEFAULT_TOKEN,
    MAX_BALANCE,
    MAX_DESC_LEN,
    MAX_TOKEN_LEN,
)

# Configuration
from .config import AssetsConfig, ConfigLoadError, load_config

# Imbalances
from .imbalances import (
    Imbalance,
    NegativeImbalance,
    PositiveImbalance,
    SignedImbalance,
)

# Storage
from .registry import AssetRegistry
from .store import TotalAssetBalance

__all__ = [
    'Asset', 'AssetErr', 'AssetType', 'BalanceStore', 'BucketMap', 'Chain',
    'AssetLedgerError', 'AssetError', 'AssetAlreadyRegistered', 'AssetNotRegistered',
    'ImbalanceMismatch', 'ImbalanceResolved', 'InvalidFormat', 'MemoTooLong',
    'validate_token', 'validate_display_name', 'validate_description', 'validate_memo',
    'DEFAULT_MEMO_LEN', 'DEFAULT_TOKEN', 'MAX_BALANCE', 'MAX_DESC_LEN', 'MAX_TOKEN_LEN',
    'AssetsConfig', 'ConfigLoadError', 'load_config',
    'Imbalance', 'NegativeImbalance', 'PositiveImbalance', 'SignedImbalance',
    'AssetRegistry', 'TotalAssetBalance',
]

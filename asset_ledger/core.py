"""
Core types and pure functions for the asset total-issuance ledger.

This module provides the foundational data structures for the ledger:
1. Protocols: BalanceStore, the storage contract imbalances finalize into
2. Enumerations: Chain (origin network), AssetType (accounting bucket), AssetErr
3. Exceptions: AssetLedgerError and domain-specific error types
4. Validation: Pure predicates over token, name, description and memo bytes
5. Asset: The validated descriptor of a registered asset

All functions in this module are pure. Nothing here touches balances; the
only code that mutates totals lives in imbalances.py.
"""

from __future__ import annotations
from enum import Enum
from typing import (
    Any, Callable, Dict, List, Optional, Protocol, Union, runtime_checkable,
    TYPE_CHECKING,
)

if TYPE_CHECKING:
    from .imbalances import Imbalance


# ============================================================================
# CONSTANTS
# ============================================================================

MAX_TOKEN_LEN = 32
MAX_DESC_LEN = 128

# Upper bound of a u16 precision field.
MAX_PRECISION = 0xFFFF

# Token of the native chain, used when no asset context is available.
DEFAULT_TOKEN = b"PCX"

# Largest representable balance (u64).
MAX_BALANCE = 2**64 - 1

# Default maximum memo length.
DEFAULT_MEMO_LEN = 128

# Byte-like input accepted by the validators. str is encoded as UTF-8.
BytesLike = Union[bytes, bytearray, str]


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Mapping from accounting bucket to the total held in that bucket for one asset.
BucketMap = Dict["AssetType", int]


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class BalanceStore(Protocol):
    """
    Storage contract that imbalances finalize into.

    The store is an explicit handle passed to every imbalance. Finalize is
    the only caller of mutate(); nothing else is expected to write totals.
    Implementations are not required to be thread-safe: one execution unit
    owns the handle at a time.
    """

    @property
    def default_token(self) -> bytes:
        """Token used by zero() when no asset is given."""
        ...

    @property
    def max_balance(self) -> int:
        """Ceiling for saturating additions."""
        ...

    def mutate(self, token: bytes, fn: Callable[[BucketMap], None]) -> None:
        """Read-modify-write the bucket map of one asset."""
        ...

    def track(self, imbalance: 'Imbalance') -> int:
        """Register a newly created imbalance and return its sequence number."""
        ...


# ============================================================================
# ENUMS
# ============================================================================

class Chain(Enum):
    """
    Origin network of an asset.

    CHAINX is the native chain. Values equal the variant names so that
    serialized forms round-trip unchanged.
    """
    CHAINX = "ChainX"
    BITCOIN = "Bitcoin"
    ETHEREUM = "Ethereum"

    @classmethod
    def default(cls) -> Chain:
        return cls.CHAINX

    @classmethod
    def variants(cls) -> List[Chain]:
        """All chains in declaration order."""
        return list(cls)


class AssetType(Enum):
    """
    Accounting bucket of an asset balance.

    A balance of one asset is split over these mutually exclusive purposes.
    Variants are ordered by declaration, so sorting a collection of buckets
    is deterministic.
    """
    FREE = "Free"
    RESERVED_STAKING = "ReservedStaking"
    RESERVED_STAKING_REVOCATION = "ReservedStakingRevocation"
    RESERVED_WITHDRAWAL = "ReservedWithdrawal"
    RESERVED_DEX_SPOT = "ReservedDexSpot"
    RESERVED_DEX_FUTURE = "ReservedDexFuture"
    RESERVED_CURRENCY = "ReservedCurrency"

    @classmethod
    def default(cls) -> AssetType:
        return cls.FREE

    @classmethod
    def variants(cls) -> List[AssetType]:
        """All buckets in their fixed order."""
        return list(cls)

    @property
    def index(self) -> int:
        return _ASSET_TYPE_ORDER[self]

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, AssetType):
            return NotImplemented
        return self.index < other.index

    def __le__(self, other: Any) -> bool:
        if not isinstance(other, AssetType):
            return NotImplemented
        return self.index <= other.index

    def __gt__(self, other: Any) -> bool:
        if not isinstance(other, AssetType):
            return NotImplemented
        return self.index > other.index

    def __ge__(self, other: Any) -> bool:
        if not isinstance(other, AssetType):
            return NotImplemented
        return self.index >= other.index


_ASSET_TYPE_ORDER: Dict[AssetType, int] = {t: i for i, t in enumerate(AssetType)}


class AssetErr(Enum):
    """
    Shared vocabulary for balance-adjustment failures.

    NOT_ENOUGH / OVER_FLOW: a single holder's balance would leave its range.
    TOTAL_ASSET_NOT_ENOUGH / TOTAL_ASSET_OVER_FLOW: the same for the
    aggregate total of an asset bucket.
    INVALID_TOKEN / INVALID_ACCOUNT: the asset or account cannot be used.
    """
    NOT_ENOUGH = "NotEnough"
    OVER_FLOW = "OverFlow"
    TOTAL_ASSET_NOT_ENOUGH = "TotalAssetNotEnough"
    TOTAL_ASSET_OVER_FLOW = "TotalAssetOverFlow"
    INVALID_TOKEN = "InvalidToken"
    INVALID_ACCOUNT = "InvalidAccount"

    def describe(self) -> str:
        """Fixed human-readable description of this error."""
        return _ASSET_ERR_DESCRIPTIONS[self]

    # Name kept for callers that use the ledger's original accessor.
    info = describe


_ASSET_ERR_DESCRIPTIONS: Dict[AssetErr, str] = {
    AssetErr.NOT_ENOUGH: "balance too low for this account",
    AssetErr.OVER_FLOW: "balance too high for this account",
    AssetErr.TOTAL_ASSET_NOT_ENOUGH: "total balance too low for this asset",
    AssetErr.TOTAL_ASSET_OVER_FLOW: "total balance too high for this asset",
    AssetErr.INVALID_TOKEN: "not a valid token for this account",
    AssetErr.INVALID_ACCOUNT: "account Locked",
}


# ============================================================================
# EXCEPTIONS
# ============================================================================

class AssetLedgerError(Exception):
    """Base exception for all asset ledger errors."""
    pass


class InvalidFormat(AssetLedgerError):
    """Raised when a token, name or description fails its charset or length rule."""
    pass


class MemoTooLong(AssetLedgerError):
    """Raised when a memo exceeds the configured maximum length."""
    pass


class AssetError(AssetLedgerError):
    """
    Raised by balance-adjustment call sites with one of the AssetErr kinds.

    Attributes:
        kind: The AssetErr variant describing the failure.
    """

    def __init__(self, kind: AssetErr, detail: Optional[str] = None):
        self.kind = kind
        message = kind.describe()
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ImbalanceResolved(AssetLedgerError):
    """Raised when an imbalance that was already consumed or finalized is used again."""
    pass


class ImbalanceMismatch(AssetLedgerError):
    """Raised when two imbalances with different asset, bucket or store are combined."""
    pass


class AssetNotRegistered(AssetLedgerError):
    """Raised when looking up a token that has not been registered."""
    pass


class AssetAlreadyRegistered(AssetLedgerError):
    """Raised when registering a token symbol twice."""
    pass


# ============================================================================
# VALIDATION
# ============================================================================

def to_bytes(value: BytesLike) -> bytes:
    """Normalize str/bytearray input to bytes. str is encoded as UTF-8."""
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    raise TypeError(f"Expected bytes or str, got {type(value).__name__}")


def _is_token_char(c: int) -> bool:
    return (
        0x30 <= c <= 0x39      # number
        or 0x41 <= c <= 0x5A   # capital
        or 0x61 <= c <= 0x7A   # small
        or c in (0x2D, 0x2E, 0x7C, 0x7E)  # - . | ~
    )


def _is_visible_ascii(c: int) -> bool:
    return 0x20 <= c <= 0x7E


def validate_token(value: BytesLike) -> None:
    """
    Check a token symbol.

    Tokens may only use numbers (0x30-0x39), capital letters (0x41-0x5A),
    lowercase letters (0x61-0x7A), '-', '.', '|' and '~', and must be
    1 to 32 bytes long.

    Raises:
        InvalidFormat: With a length message or a charset message.
    """
    v = to_bytes(value)
    if len(v) > MAX_TOKEN_LEN or not v:
        raise InvalidFormat("Token length is zero or too long.")
    for c in v:
        if not _is_token_char(c):
            raise InvalidFormat(
                "Token can only use numbers, capital/lowercase letters or '-', '.', '|', '~'."
            )


def validate_display_name(value: BytesLike) -> None:
    """
    Check a token display name: 1 to 32 bytes of visible ASCII (0x20-0x7E).

    Raises:
        InvalidFormat: If the name is empty, too long or not printable.
    """
    v = to_bytes(value)
    if len(v) > MAX_TOKEN_LEN or not v:
        raise InvalidFormat("Token name is zero or too long.")
    for c in v:
        if not _is_visible_ascii(c):
            raise InvalidFormat("Token name can not use an invisible ASCII char.")


def validate_description(value: BytesLike) -> None:
    """
    Check a description: at most 128 bytes of visible ASCII. Empty is allowed.

    Raises:
        InvalidFormat: If the description is too long or not printable.
    """
    v = to_bytes(value)
    if len(v) > MAX_DESC_LEN:
        raise InvalidFormat("Token desc too long.")
    for c in v:
        if not _is_visible_ascii(c):
            raise InvalidFormat("Desc can not use an invisible ASCII char.")


def validate_memo(value: BytesLike, max_len: int) -> None:
    """
    Check a transfer memo against the configured maximum length.

    Raises:
        MemoTooLong: If the memo is longer than max_len bytes.
    """
    if len(to_bytes(value)) > max_len:
        raise MemoTooLong("memo is too long")


# ============================================================================
# ASSET
# ============================================================================

class Asset:
    """
    Descriptor of a registered asset.

    Instances are built through Asset.new(), which validates every field and
    never yields a partially valid asset. Only the description can change
    after construction.

    Attributes (read-only):
        token: Symbol, e.g. b"BTC".
        token_name: Display name, e.g. b"Bitcoin".
        chain: Origin network.
        precision: Number of decimal places (u16).
        desc: Free-text description.
    """

    __slots__ = ("_token", "_token_name", "_chain", "_precision", "_desc")

    def __init__(
        self,
        token: bytes,
        token_name: bytes,
        chain: Chain,
        precision: int,
        desc: bytes,
    ):
        self._token = token
        self._token_name = token_name
        self._chain = chain
        self._precision = precision
        self._desc = desc

    @classmethod
    def new(
        cls,
        token: BytesLike,
        token_name: BytesLike,
        chain: Chain = Chain.CHAINX,
        precision: int = 0,
        desc: BytesLike = b"",
    ) -> Asset:
        """
        Create a validated asset.

        Validation order is token, token_name, desc; the first failure is
        raised and no asset is created.

        Raises:
            InvalidFormat: If any string field is invalid.
            ValueError: If chain or precision is out of range.
        """
        token = to_bytes(token)
        validate_token(token)
        token_name = to_bytes(token_name)
        validate_display_name(token_name)
        desc = to_bytes(desc)
        validate_description(desc)
        asset = cls(token, token_name, chain, precision, desc)
        asset.is_valid()
        return asset

    def is_valid(self) -> None:
        """Re-run all field checks, raising the first failure."""
        validate_token(self._token)
        validate_display_name(self._token_name)
        validate_description(self._desc)
        if not isinstance(self._chain, Chain):
            raise ValueError(f"Asset chain must be a Chain, got {self._chain!r}")
        if (
            isinstance(self._precision, bool)
            or not isinstance(self._precision, int)
            or not 0 <= self._precision <= MAX_PRECISION
        ):
            raise ValueError(f"Asset precision must be a u16, got {self._precision!r}")

    @property
    def token(self) -> bytes:
        return self._token

    @property
    def token_name(self) -> bytes:
        return self._token_name

    @property
    def chain(self) -> Chain:
        return self._chain

    @property
    def precision(self) -> int:
        return self._precision

    @property
    def desc(self) -> bytes:
        return self._desc

    def set_desc(self, desc: BytesLike) -> None:
        """
        Replace the description.

        The new value is not validated here; AssetRegistry.set_desc checks it
        before calling this.
        """
        self._desc = to_bytes(desc)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with camelCase keys. Byte fields become ASCII strings."""
        return {
            "token": self._token.decode("ascii"),
            "tokenName": self._token_name.decode("ascii"),
            "chain": self._chain.value,
            "precision": self._precision,
            "desc": self._desc.decode("ascii"),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Asset:
        return Asset.new(
            token=data["token"],
            token_name=data["tokenName"],
            chain=Chain(data.get("chain", Chain.CHAINX.value)),
            precision=data.get("precision", 0),
            desc=data.get("desc", ""),
        )

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Asset):
            return NotImplemented
        return (
            self._token == other._token
            and self._token_name == other._token_name
            and self._chain == other._chain
            and self._precision == other._precision
            and self._desc == other._desc
        )

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"Asset({self._token!r}, {self._token_name!r}, {self._chain.value}, "
            f"precision={self._precision}, desc={self._desc!r})"
        )

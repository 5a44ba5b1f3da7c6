"""
imbalances.py - Move-only tokens for unaccounted issuance and destruction

A PositiveImbalance says "this much value just appeared"; a NegativeImbalance
says "this much value just disappeared". Each is tagged with the asset token
and the accounting bucket it applies to, and with the store it will settle
into.

Every token is resolved exactly once, either structurally or by finalize:

    split / merge / subsume / offset / drop_zero
        Consume their inputs without touching the store. Value is preserved:
        the outputs carry exactly what the inputs carried.

    finalize
        Applies the amount to the store. Positive adds (saturating at the
        store's max_balance), Negative subtracts (saturating at zero). This is
        the only place bucket totals change.

A token is finalized automatically when it is released while still live:
leaving a ``with`` block, leaving the store's ``execution()`` scope (also on
error), or being garbage collected. Using a token after it was resolved
raises ImbalanceResolved. Tokens cannot be copied or pickled.

Example:
    store = TotalAssetBalance()
    with store.execution():
        minted = PositiveImbalance(store, 8, b"BTC")
        fee, rest = minted.split(1)
        burnt = NegativeImbalance(store, 1, b"BTC")
        fee.offset(burnt).drop_zero()
    # rest (7) has been applied to store[b"BTC"][Free]
"""

from __future__ import annotations
import logging
from typing import Any, Optional, Tuple, Type, Union

from .core import (
    AssetType, BalanceStore, BucketMap, BytesLike,
    ImbalanceMismatch, ImbalanceResolved,
    to_bytes,
)

logger = logging.getLogger(__name__)


def _check_amount(amount: Any, ceiling: int) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"Imbalance amount must be int, got {type(amount).__name__}")
    if amount < 0:
        raise ValueError(f"Imbalance amount must be non-negative, got {amount}")
    if amount > ceiling:
        raise ValueError(f"Imbalance amount {amount} exceeds max balance {ceiling}")
    return amount


class Imbalance:
    """
    Shared implementation of PositiveImbalance and NegativeImbalance.

    Not instantiated directly. Subclasses define the sign through _apply()
    and name their counterpart in _opposite.
    """

    __slots__ = ("_amount", "_token", "_asset_type", "_store", "_live", "_seq", "__weakref__")

    _opposite: Type[Imbalance]

    def __init__(
        self,
        store: BalanceStore,
        amount: int,
        token: BytesLike,
        asset_type: AssetType = AssetType.FREE,
    ):
        if type(self) is Imbalance:
            raise TypeError("Use PositiveImbalance or NegativeImbalance")
        if not isinstance(asset_type, AssetType):
            raise ValueError(f"asset_type must be an AssetType, got {asset_type!r}")
        self._amount = _check_amount(amount, store.max_balance)
        self._token = to_bytes(token)
        self._asset_type = asset_type
        self._store = store
        self._seq = store.track(self)
        self._live = True

    @classmethod
    def zero(
        cls,
        store: BalanceStore,
        token: Optional[BytesLike] = None,
        asset_type: AssetType = AssetType.FREE,
    ) -> Imbalance:
        """Zero-amount token, tagged with the store's default token unless one is given."""
        return cls(store, 0, store.default_token if token is None else token, asset_type)

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def token(self) -> bytes:
        return self._token

    @property
    def asset_type(self) -> AssetType:
        return self._asset_type

    @property
    def store(self) -> BalanceStore:
        return self._store

    @property
    def is_live(self) -> bool:
        """True until the token is consumed or finalized."""
        return self._live

    def peek(self) -> int:
        """Return the amount without consuming the token."""
        self._check_live()
        return self._amount

    # ------------------------------------------------------------------
    # Structural operations (value-preserving, never touch the store)
    # ------------------------------------------------------------------

    def drop_zero(self) -> Optional[Imbalance]:
        """
        Discard the token if its amount is zero.

        Returns:
            None when the token was discarded, otherwise the token itself,
            still live. The caller remains responsible for it.
        """
        self._check_live()
        if self._amount == 0:
            self._live = False
            return None
        return self

    def split(self, amount: int) -> Tuple[Imbalance, Imbalance]:
        """
        Partition into (min(self, amount), remainder), both with the same sign and tag.

        Any non-negative amount is accepted; amounts above the token's value
        put everything in the first part.
        """
        self._check_live()
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise ValueError(f"Split amount must be a non-negative int, got {amount!r}")
        first = min(self._amount, amount)
        second = self._amount - first
        self._consume()
        cls = type(self)
        return (
            cls(self._store, first, self._token, self._asset_type),
            cls(self._store, second, self._token, self._asset_type),
        )

    def merge(self, other: Imbalance) -> Imbalance:
        """Absorb another token of the same sign and tag, returning self."""
        self.subsume(other)
        return self

    def subsume(self, other: Imbalance) -> None:
        """
        In-place merge: add other's amount to self (saturating) and consume other.

        Raises:
            TypeError: If other has the opposite sign.
            ImbalanceMismatch: If token, bucket or store differ.
        """
        self._check_peer(other, type(self))
        total = self._amount + other._amount
        if total > self._store.max_balance:
            logger.warning(
                "Merge of %s %s saturated at %d (lost %d)",
                self._token, self._asset_type.value, self._store.max_balance,
                total - self._store.max_balance,
            )
            total = self._store.max_balance
        other._consume()
        self._amount = total

    def offset(self, other: Imbalance) -> Imbalance:
        """
        Net this token against one of the opposite sign.

        With a = self and b = other: a >= b gives a token of self's sign worth
        a - b (a zero token when equal); a < b gives a token of other's sign
        worth b - a. Both inputs are consumed; only the result remains live.

        Raises:
            TypeError: If other has the same sign.
            ImbalanceMismatch: If token, bucket or store differ.
        """
        self._check_peer(other, self._opposite)
        a, b = self._amount, other._amount
        self._consume()
        other._consume()
        if a >= b:
            return type(self)(self._store, a - b, self._token, self._asset_type)
        return self._opposite(self._store, b - a, self._token, self._asset_type)

    # ------------------------------------------------------------------
    # Finalize
    # ------------------------------------------------------------------

    def finalize(self) -> None:
        """
        Apply the amount to the store and resolve the token.

        The token stays live if the store raises, so a failed write is never
        counted as applied.
        """
        self._check_live()
        logger.debug("Finalizing %s", self)
        self._store.mutate(self._token, lambda buckets: self._apply(buckets, self._amount))
        self._live = False

    def _apply(self, buckets: BucketMap, amount: int) -> None:
        raise NotImplementedError

    def __enter__(self) -> Imbalance:
        self._check_live()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self._live:
            self.finalize()
        return False

    def __del__(self):
        if getattr(self, "_live", False):
            self.finalize()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_live(self) -> None:
        if not self._live:
            raise ImbalanceResolved(f"{self} was already resolved")

    def _consume(self) -> int:
        self._check_live()
        self._live = False
        return self._amount

    def _check_peer(self, other: Imbalance, expected: Type[Imbalance]) -> None:
        if not isinstance(other, expected):
            raise TypeError(f"Expected {expected.__name__}, got {type(other).__name__}")
        if other is self:
            raise ImbalanceMismatch(f"Cannot combine {self} with itself")
        self._check_live()
        other._check_live()
        if other._store is not self._store:
            raise ImbalanceMismatch(f"{self} and {other} belong to different stores")
        if other._token != self._token or other._asset_type != self._asset_type:
            raise ImbalanceMismatch(f"Cannot combine {self} with {other}")

    def __copy__(self):
        raise TypeError(f"{type(self).__name__} cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError(f"{type(self).__name__} cannot be copied")

    def __reduce_ex__(self, protocol):
        raise TypeError(f"{type(self).__name__} cannot be pickled")

    def __repr__(self) -> str:
        state = "" if getattr(self, "_live", False) else ", resolved"
        return (
            f"{type(self).__name__}({getattr(self, '_amount', None)}, "
            f"{getattr(self, '_token', None)!r}, "
            f"{getattr(self, '_asset_type', AssetType.FREE).value}{state})"
        )

    __str__ = __repr__


class PositiveImbalance(Imbalance):
    """
    Opaque, move-only token denoting that funds have been created without
    any equal and opposite accounting.
    """

    __slots__ = ()

    def _apply(self, buckets: BucketMap, amount: int) -> None:
        ceiling = self._store.max_balance
        current = buckets.get(self._asset_type, 0)
        total = current + amount
        if total > ceiling:
            logger.warning(
                "Total of %s %s saturated at %d (lost %d)",
                self._token, self._asset_type.value, ceiling, total - ceiling,
            )
            total = ceiling
        buckets[self._asset_type] = total


class NegativeImbalance(Imbalance):
    """
    Opaque, move-only token denoting that funds have been destroyed without
    any equal and opposite accounting.
    """

    __slots__ = ()

    def _apply(self, buckets: BucketMap, amount: int) -> None:
        current = buckets.get(self._asset_type, 0)
        if amount > current:
            logger.warning(
                "Total of %s %s saturated at 0 (short by %d)",
                self._token, self._asset_type.value, amount - current,
            )
        buckets[self._asset_type] = max(current - amount, 0)


PositiveImbalance._opposite = NegativeImbalance
NegativeImbalance._opposite = PositiveImbalance


class SignedImbalance:
    """
    Either a positive or a negative imbalance.

    Useful when the sign of a net adjustment is only known at runtime, e.g.
    after offsetting a credit against a debit of unknown size.
    """

    __slots__ = ("_imbalance",)

    def __init__(self, imbalance: Union[PositiveImbalance, NegativeImbalance]):
        if not isinstance(imbalance, (PositiveImbalance, NegativeImbalance)):
            raise TypeError(f"Expected an imbalance, got {type(imbalance).__name__}")
        self._imbalance = imbalance

    @property
    def imbalance(self) -> Imbalance:
        return self._imbalance

    @property
    def is_positive(self) -> bool:
        return isinstance(self._imbalance, PositiveImbalance)

    def peek(self) -> int:
        """Signed amount: positive for issuance, negative for destruction."""
        amount = self._imbalance.peek()
        return amount if self.is_positive else -amount

    def merge(self, other: SignedImbalance) -> SignedImbalance:
        """Net two signed imbalances into one, consuming both."""
        mine, theirs = self._imbalance, other._imbalance
        if type(mine) is type(theirs):
            return SignedImbalance(mine.merge(theirs))
        return SignedImbalance(mine.offset(theirs))

    def finalize(self) -> None:
        self._imbalance.finalize()

    def __repr__(self) -> str:
        return f"SignedImbalance({self._imbalance})"

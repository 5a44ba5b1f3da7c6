"""
store.py - Total issuance per asset and accounting bucket

TotalAssetBalance is the in-memory implementation of the BalanceStore
contract. It holds, for each asset token, the aggregate balance of every
accounting bucket.

Key responsibilities:
    - Exposes mutate() as the single write path, used only by imbalance finalize
    - Tracks live imbalances so an execution unit can settle them on exit
    - Offers checked issue/burn/move helpers that raise AssetError before any
      imbalance is created
"""

from __future__ import annotations
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional, Tuple, TYPE_CHECKING
import itertools
import logging
import weakref

from .config import AssetsConfig
from .core import (
    AssetErr, AssetError, AssetType, BucketMap, BytesLike,
    to_bytes,
)
from .imbalances import Imbalance, NegativeImbalance, PositiveImbalance

if TYPE_CHECKING:
    from .registry import AssetRegistry

logger = logging.getLogger(__name__)


class TotalAssetBalance:
    """
    Aggregate balance of every asset bucket.

    The store is an explicit handle: imbalances receive it at construction
    and write to it only when they finalize.

    Thread Safety:
        Not thread-safe. Each execution unit should own the handle while it runs.

    Example:
        store = TotalAssetBalance()
        with store.execution():
            store.issue(b"BTC", 21)
        store.get(b"BTC")  # 21
    """

    def __init__(
        self,
        config: Optional[AssetsConfig] = None,
        registry: Optional[AssetRegistry] = None,
    ):
        """
        Create an empty store.

        Args:
            config: Ledger settings (default: AssetsConfig())
            registry: When given, issue/burn/move reject unregistered tokens
        """
        self.config = config or AssetsConfig()
        self.registry = registry
        self._totals: Dict[bytes, BucketMap] = {}
        self._live: "weakref.WeakValueDictionary[int, Imbalance]" = weakref.WeakValueDictionary()
        self._sequence = itertools.count()

    # ========================================================================
    # BalanceStore PROTOCOL IMPLEMENTATION
    # ========================================================================

    @property
    def default_token(self) -> bytes:
        return self.config.default_token

    @property
    def max_balance(self) -> int:
        return self.config.max_balance

    def mutate(self, token: bytes, fn: Callable[[BucketMap], None]) -> None:
        """
        Read-modify-write the bucket map of one asset.

        fn edits a working copy of the mapping in place; the copy is written
        back only if fn returns normally. Buckets left at zero are dropped so
        that untouched and emptied assets look the same.
        """
        buckets = dict(self._totals.get(token, {}))
        fn(buckets)
        buckets = {t: v for t, v in buckets.items() if v != 0}
        if buckets:
            self._totals[token] = buckets
        else:
            self._totals.pop(token, None)

    def track(self, imbalance: Imbalance) -> int:
        seq = next(self._sequence)
        self._live[seq] = imbalance
        return seq

    # ========================================================================
    # READ ACCESS
    # ========================================================================

    def get(self, token: BytesLike, asset_type: AssetType = AssetType.FREE) -> int:
        """Total held in one bucket of an asset (0 if never touched)."""
        return self._totals.get(to_bytes(token), {}).get(asset_type, 0)

    def get_all(self, token: BytesLike) -> BucketMap:
        """Copy of every bucket total for an asset, in AssetType order."""
        buckets = self._totals.get(to_bytes(token), {})
        return {t: buckets.get(t, 0) for t in AssetType.variants()}

    def total(self, token: BytesLike) -> int:
        """Sum of an asset across all buckets."""
        return sum(self.get_all(token).values())

    def list_tokens(self) -> List[bytes]:
        """Tokens with a non-zero total, sorted."""
        return sorted(self._totals)

    def pending(self) -> int:
        """Number of imbalances created against this store that are still live."""
        return sum(1 for imbalance in list(self._live.values()) if imbalance.is_live)

    def committed(self, token: BytesLike, asset_type: AssetType = AssetType.FREE) -> Tuple[int, int]:
        """
        Value held by live imbalances on one bucket of an asset.

        Returns:
            (incoming, outgoing): summed amounts of live positive and live
            negative imbalances for (token, asset_type).
        """
        token = to_bytes(token)
        incoming = outgoing = 0
        for imbalance in list(self._live.values()):
            if not imbalance.is_live or imbalance.token != token or imbalance.asset_type != asset_type:
                continue
            if isinstance(imbalance, PositiveImbalance):
                incoming += imbalance.peek()
            else:
                outgoing += imbalance.peek()
        return incoming, outgoing

    def _headroom(self, token: bytes, asset_type: AssetType) -> int:
        # pending credits count as already landed
        incoming, _ = self.committed(token, asset_type)
        return self.max_balance - self.get(token, asset_type) - incoming

    def _available(self, token: bytes, asset_type: AssetType) -> int:
        # pending debits count as already taken; pending credits do not
        _, outgoing = self.committed(token, asset_type)
        return self.get(token, asset_type) - outgoing

    # ========================================================================
    # EXECUTION UNIT
    # ========================================================================

    @contextmanager
    def execution(self) -> Iterator[TotalAssetBalance]:
        """
        Scope one unit of work.

        Every imbalance created inside the block that is still live when the
        block exits is finalized, in creation order, whether the block
        returns normally or raises.
        """
        start = next(self._sequence)
        try:
            yield self
        finally:
            settled = self._settle_from(start)
            if settled:
                logger.debug("Execution unit settled %d imbalance(s)", settled)

    def _settle_from(self, start: int) -> int:
        leftovers = sorted(
            (seq, imbalance) for seq, imbalance in list(self._live.items()) if seq > start
        )
        count = 0
        first_error: Optional[Exception] = None
        for _, imbalance in leftovers:
            if not imbalance.is_live:
                continue
            try:
                imbalance.finalize()
            except Exception as exc:
                logger.error("Failed to settle %r: %s", imbalance, exc)
                if first_error is None:
                    first_error = exc
                continue
            count += 1
        if first_error is not None:
            raise first_error
        return count

    # ========================================================================
    # CHECKED ADJUSTMENTS
    # ========================================================================

    def issue(
        self,
        token: BytesLike,
        amount: int,
        asset_type: AssetType = AssetType.FREE,
    ) -> PositiveImbalance:
        """
        Create a PositiveImbalance after checking the bucket can absorb it.

        Args:
            token: Asset token
            amount: Value to create
            asset_type: Bucket receiving the value

        Returns:
            A live PositiveImbalance; the total changes when it finalizes.

        Raises:
            AssetError: INVALID_TOKEN if a registry is set and the token is
                unknown; TOTAL_ASSET_OVER_FLOW if the bucket, together with
                live issues on it, would exceed max_balance.
        """
        token = self._check_token(token)
        self._check_credit(token, amount, asset_type)
        return PositiveImbalance(self, amount, token, asset_type)

    def burn(
        self,
        token: BytesLike,
        amount: int,
        asset_type: AssetType = AssetType.FREE,
    ) -> NegativeImbalance:
        """
        Create a NegativeImbalance after checking the bucket holds enough.

        Raises:
            AssetError: INVALID_TOKEN if a registry is set and the token is
                unknown; TOTAL_ASSET_NOT_ENOUGH if the bucket total, less
                what live burns on it already take, is below amount.
        """
        token = self._check_token(token)
        self._check_debit(token, amount, asset_type)
        return NegativeImbalance(self, amount, token, asset_type)

    def move(
        self,
        token: BytesLike,
        amount: int,
        from_type: AssetType,
        to_type: AssetType,
    ) -> None:
        """
        Move value between two buckets of the same asset.

        The asset's total across buckets is unchanged. Both checks run before
        either imbalance exists, so a failure leaves the store untouched.

        Raises:
            AssetError: As for burn() and issue().
        """
        token = self._check_token(token)
        if from_type == to_type:
            return
        self._check_debit(token, amount, from_type)
        self._check_credit(token, amount, to_type)
        with self.burn(token, amount, from_type) as debit, self.issue(token, amount, to_type) as credit:
            logger.debug("Moving %d %r: %s -> %s", amount, token, debit.asset_type.value, credit.asset_type.value)

    def _check_credit(self, token: bytes, amount: int, asset_type: AssetType) -> None:
        headroom = self._headroom(token, asset_type)
        if amount > headroom:
            raise AssetError(
                AssetErr.TOTAL_ASSET_OVER_FLOW,
                f"{token!r} {asset_type.value} has room for {headroom}, need {amount}",
            )

    def _check_debit(self, token: bytes, amount: int, asset_type: AssetType) -> None:
        available = self._available(token, asset_type)
        if available < amount:
            raise AssetError(
                AssetErr.TOTAL_ASSET_NOT_ENOUGH,
                f"{token!r} {asset_type.value} has {available}, need {amount}",
            )

    def _check_token(self, token: BytesLike) -> bytes:
        token = to_bytes(token)
        if self.registry is not None and not self.registry.is_registered(token):
            raise AssetError(AssetErr.INVALID_TOKEN, repr(token))
        return token

    def __repr__(self) -> str:
        return f"TotalAssetBalance({len(self._totals)} assets, {self.pending()} pending)"

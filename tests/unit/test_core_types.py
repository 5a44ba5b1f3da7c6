"""
test_core_types.py - Unit tests for core data structures

Tests:
- Chain / AssetType: defaults, fixed variant order, ordering
- AssetErr: descriptions
- AssetError: kind and message
- Asset: construction, validation order, accessors, set_desc, serialization
"""

import json

import pytest
from asset_ledger import (
    Asset, AssetErr, AssetError, AssetType, Chain,
    InvalidFormat,
)


class TestChain:
    """Tests for the Chain enumeration."""

    def test_default_is_native_chain(self):
        assert Chain.default() is Chain.CHAINX

    def test_variants_fixed_order(self):
        assert Chain.variants() == [Chain.CHAINX, Chain.BITCOIN, Chain.ETHEREUM]

    def test_values_round_trip(self):
        for chain in Chain.variants():
            assert Chain(chain.value) is chain


class TestAssetType:
    """Tests for the accounting bucket enumeration."""

    def test_default_is_free(self):
        assert AssetType.default() is AssetType.FREE

    def test_seven_variants_in_order(self):
        assert [t.value for t in AssetType.variants()] == [
            "Free",
            "ReservedStaking",
            "ReservedStakingRevocation",
            "ReservedWithdrawal",
            "ReservedDexSpot",
            "ReservedDexFuture",
            "ReservedCurrency",
        ]

    def test_variants_returns_fresh_list(self):
        variants = AssetType.variants()
        variants.clear()
        assert len(AssetType.variants()) == 7

    def test_ordering_follows_declaration(self):
        assert AssetType.FREE < AssetType.RESERVED_STAKING
        assert AssetType.RESERVED_CURRENCY > AssetType.RESERVED_DEX_FUTURE
        assert AssetType.RESERVED_WITHDRAWAL <= AssetType.RESERVED_WITHDRAWAL
        shuffled = [AssetType.RESERVED_CURRENCY, AssetType.FREE, AssetType.RESERVED_DEX_SPOT]
        assert sorted(shuffled) == [
            AssetType.FREE, AssetType.RESERVED_DEX_SPOT, AssetType.RESERVED_CURRENCY,
        ]

    def test_ordering_against_other_types_fails(self):
        with pytest.raises(TypeError):
            AssetType.FREE < 1

    def test_usable_as_dict_key(self):
        buckets = {t: i for i, t in enumerate(AssetType.variants())}
        assert buckets[AssetType.RESERVED_DEX_FUTURE] == 5


class TestAssetErr:
    """Tests for the error vocabulary."""

    @pytest.mark.parametrize("kind, text", [
        (AssetErr.NOT_ENOUGH, "balance too low for this account"),
        (AssetErr.OVER_FLOW, "balance too high for this account"),
        (AssetErr.TOTAL_ASSET_NOT_ENOUGH, "total balance too low for this asset"),
        (AssetErr.TOTAL_ASSET_OVER_FLOW, "total balance too high for this asset"),
        (AssetErr.INVALID_TOKEN, "not a valid token for this account"),
        (AssetErr.INVALID_ACCOUNT, "account Locked"),
    ])
    def test_describe(self, kind, text):
        assert kind.describe() == text
        assert kind.info() == text

    def test_closed_set(self):
        assert len(list(AssetErr)) == 6

    def test_asset_error_carries_kind(self):
        err = AssetError(AssetErr.NOT_ENOUGH)
        assert err.kind is AssetErr.NOT_ENOUGH
        assert str(err) == "balance too low for this account"

    def test_asset_error_detail_appended(self):
        err = AssetError(AssetErr.INVALID_TOKEN, "b'XYZ'")
        assert str(err) == "not a valid token for this account: b'XYZ'"


class TestAssetCreation:
    """Tests for Asset.new and accessors."""

    def test_bitcoin_asset(self):
        asset = Asset.new(b"BTC", b"Bitcoin", Chain.BITCOIN, 8, b"")
        assert asset.token == b"BTC"
        assert asset.token_name == b"Bitcoin"
        assert asset.chain is Chain.BITCOIN
        assert asset.precision == 8
        assert asset.desc == b""

    def test_defaults(self):
        asset = Asset.new(b"PCX", b"Polkadot ChainX")
        assert asset.chain is Chain.CHAINX
        assert asset.precision == 0
        assert asset.desc == b""

    def test_str_fields_encoded(self):
        asset = Asset.new("X-BTC", "ChainX BTC", Chain.CHAINX, 8, "cross-chain BTC")
        assert asset.token == b"X-BTC"
        assert asset.desc == b"cross-chain BTC"

    def test_accessors_are_read_only(self):
        asset = Asset.new(b"BTC", b"Bitcoin", Chain.BITCOIN, 8, b"")
        with pytest.raises(AttributeError):
            asset.token = b"ETH"
        with pytest.raises(AttributeError):
            asset.precision = 18

    def test_equality(self):
        a = Asset.new(b"BTC", b"Bitcoin", Chain.BITCOIN, 8, b"")
        b = Asset.new(b"BTC", b"Bitcoin", Chain.BITCOIN, 8, b"")
        assert a == b
        b.set_desc(b"changed")
        assert a != b


class TestAssetValidation:
    """Tests for validation inside Asset.new."""

    def test_empty_token_fails_first(self):
        # token_name and desc are also invalid; the token message must win
        with pytest.raises(InvalidFormat, match="Token length"):
            Asset.new(b"", b"", Chain.CHAINX, 0, b"\x00")

    def test_empty_token_fails_before_name_type_check(self):
        with pytest.raises(InvalidFormat, match="Token length"):
            Asset.new(b"", 123, Chain.CHAINX, 0, b"")

    def test_non_bytes_name_rejected_after_token(self):
        with pytest.raises(TypeError, match="Expected bytes or str"):
            Asset.new(b"BTC", 123, Chain.CHAINX, 0, b"")

    def test_token_name_checked_before_desc(self):
        with pytest.raises(InvalidFormat, match="Token name"):
            Asset.new(b"BTC", b"Bit\x01coin", Chain.BITCOIN, 8, b"\x00")

    def test_desc_checked_last(self):
        with pytest.raises(InvalidFormat, match="[Dd]esc"):
            Asset.new(b"BTC", b"Bitcoin", Chain.BITCOIN, 8, b"x" * 129)

    def test_invalid_token_charset(self):
        with pytest.raises(InvalidFormat, match="can only use"):
            Asset.new(b"BT C", b"Bitcoin", Chain.BITCOIN, 8, b"")

    @pytest.mark.parametrize("precision", [-1, 65536, 8.0, True])
    def test_precision_must_be_u16(self, precision):
        with pytest.raises(ValueError, match="precision"):
            Asset.new(b"BTC", b"Bitcoin", Chain.BITCOIN, precision, b"")

    def test_precision_bounds_accepted(self):
        assert Asset.new(b"A", b"A", Chain.CHAINX, 0).precision == 0
        assert Asset.new(b"A", b"A", Chain.CHAINX, 65535).precision == 65535

    def test_chain_must_be_enum(self):
        with pytest.raises(ValueError, match="chain"):
            Asset.new(b"BTC", b"Bitcoin", "Bitcoin", 8, b"")

    def test_is_valid_after_unchecked_set_desc(self):
        asset = Asset.new(b"BTC", b"Bitcoin", Chain.BITCOIN, 8, b"")
        asset.set_desc(b"\x07bell")
        assert asset.desc == b"\x07bell"
        with pytest.raises(InvalidFormat):
            asset.is_valid()


class TestAssetSerialization:
    """Tests for to_dict / from_dict."""

    def test_camel_case_keys(self):
        asset = Asset.new(b"BTC", b"Bitcoin", Chain.BITCOIN, 8, b"digital gold")
        assert asset.to_dict() == {
            "token": "BTC",
            "tokenName": "Bitcoin",
            "chain": "Bitcoin",
            "precision": 8,
            "desc": "digital gold",
        }

    def test_round_trip_through_json(self):
        asset = Asset.new(b"ETH", b"Ether", Chain.ETHEREUM, 18, b"gas")
        restored = Asset.from_dict(json.loads(json.dumps(asset.to_dict())))
        assert restored == asset

    def test_from_dict_validates(self):
        with pytest.raises(InvalidFormat):
            Asset.from_dict({"token": "B C", "tokenName": "Bitcoin"})

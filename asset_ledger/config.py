"""
Configuration loader

Loads the ledger settings that are supplied by the surrounding runtime:
the memo length limit, the native token used by zero() constructors and
the balance ceiling used by saturating arithmetic.

Example assets.yaml:

    default_token: PCX
    memo_len: 128
    max_balance: 18446744073709551615
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .core import (
    DEFAULT_MEMO_LEN, DEFAULT_TOKEN, MAX_BALANCE,
    AssetLedgerError, InvalidFormat,
    to_bytes, validate_token,
)


class ConfigLoadError(AssetLedgerError):
    """Raised when the configuration file is missing or malformed."""
    pass


@dataclass(frozen=True, slots=True)
class AssetsConfig:
    """
    Immutable ledger settings.

    Attributes:
        default_token: Token tagged on zero() imbalances when no asset is given.
        memo_len: Maximum memo length in bytes, consulted by validate_memo.
        max_balance: Ceiling for saturating additions to a bucket total.
    """
    default_token: bytes = DEFAULT_TOKEN
    memo_len: int = DEFAULT_MEMO_LEN
    max_balance: int = MAX_BALANCE

    def __post_init__(self):
        object.__setattr__(self, "default_token", to_bytes(self.default_token))
        validate_token(self.default_token)
        if isinstance(self.memo_len, bool) or not isinstance(self.memo_len, int) or self.memo_len < 0:
            raise ValueError(f"memo_len must be a non-negative int, got {self.memo_len!r}")
        if (
            isinstance(self.max_balance, bool)
            or not isinstance(self.max_balance, int)
            or self.max_balance <= 0
        ):
            raise ValueError(f"max_balance must be a positive int, got {self.max_balance!r}")

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> AssetsConfig:
        unknown = set(data) - {"default_token", "memo_len", "max_balance"}
        if unknown:
            raise ValueError(f"Unknown config keys: {sorted(unknown)}")
        return AssetsConfig(
            default_token=data.get("default_token", DEFAULT_TOKEN),
            memo_len=data.get("memo_len", DEFAULT_MEMO_LEN),
            max_balance=data.get("max_balance", MAX_BALANCE),
        )


def load_config(path: Optional[Union[str, Path]] = None) -> AssetsConfig:
    """
    Load settings from a YAML file.

    Args:
        path: File to read. None returns the defaults.

    Returns:
        AssetsConfig instance

    Raises:
        ConfigLoadError: If the file is missing, unparsable or has invalid values.
    """
    if path is None:
        return AssetsConfig()

    path = Path(path)
    if not path.exists():
        raise ConfigLoadError(f"Config file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Failed to parse {path}: {e}") from e

    if data is None:
        return AssetsConfig()
    if not isinstance(data, dict):
        raise ConfigLoadError(f"{path} must contain a mapping, got {type(data).__name__}")

    try:
        return AssetsConfig.from_dict(data)
    except (ValueError, TypeError, InvalidFormat) as e:
        raise ConfigLoadError(f"Invalid config in {path}: {e}") from e

"""
storage.py - Key-value substrate, write buffering, and indexed maps

The ledger persists into any object satisfying the Storage protocol
(get/set/remove/contains over bytes). This module provides:

    - MemoryStorage: dict-backed storage for tests, demos and the host
    - OverlayStorage: buffers a call's writes so the host can commit or discard them
    - UnorderedMap: an iterable map laid out under a single key prefix
    - Codecs for Amounts and account ids, and the stable key layout

Key layout (stable across re-opens):

    m:init                        presence flag
    m:name / m:symbol             UTF-8
    m:decimals                    1 byte
    m:supply                      16-byte big-endian u128
    b<map>                        balances: account -> amount
    a<len(owner)><owner><map>     one allowance sub-table per owner: spender -> amount

Within a map under prefix P:

    P#                 entry count (8 bytes)
    Pk<index>          key stored at that index
    Pv<key>            value for key
    Pi<key>            index of key
"""

from __future__ import annotations
from typing import Any, Callable, Dict, Iterator, NamedTuple, Optional, Tuple

from .core import (
    AccountId, Amount, Storage,
    AMOUNT_BYTES,
    InvalidAmount,
    require_amount,
)


# ============================================================================
# KEY LAYOUT
# ============================================================================

KEY_INIT = b"m:init"
KEY_NAME = b"m:name"
KEY_SYMBOL = b"m:symbol"
KEY_DECIMALS = b"m:decimals"
KEY_TOTAL_SUPPLY = b"m:supply"

PREFIX_BALANCES = b"b"
PREFIX_ALLOWANCES = b"a"

_INDEX_BYTES = 8


def length_prefixed(raw: bytes) -> bytes:
    """
    Prefix raw with its 4-byte big-endian length.

    Namespaces derived this way cannot be prefixes of one another, so two
    different owners never share any part of their allowance sub-table.
    """
    return len(raw).to_bytes(4, "big") + raw


def allowance_prefix(owner: AccountId) -> bytes:
    """Storage prefix of owner's allowance sub-table (derived from the owner, not the spender)."""
    return PREFIX_ALLOWANCES + length_prefixed(encode_account(owner))


# ============================================================================
# CODECS
# ============================================================================

class Codec(NamedTuple):
    encode: Callable[[Any], bytes]
    decode: Callable[[bytes], Any]


def encode_amount(value: Amount) -> bytes:
    """Encode an Amount as 16-byte big-endian."""
    require_amount(value)
    return value.to_bytes(AMOUNT_BYTES, "big")


def decode_amount(raw: bytes) -> Amount:
    if len(raw) != AMOUNT_BYTES:
        raise InvalidAmount(f"stored amount must be {AMOUNT_BYTES} bytes, got {len(raw)}")
    return int.from_bytes(raw, "big")


def encode_account(account: AccountId) -> bytes:
    # surrogatepass: any str is a valid id, lone surrogates included
    return account.encode("utf-8", "surrogatepass")


def decode_account(raw: bytes) -> AccountId:
    return raw.decode("utf-8", "surrogatepass")


AMOUNT_CODEC = Codec(encode_amount, decode_amount)
ACCOUNT_CODEC = Codec(encode_account, decode_account)


# ============================================================================
# STORAGE IMPLEMENTATIONS
# ============================================================================

class MemoryStorage:
    """
    Dict-backed Storage.

    Example:
        storage = MemoryStorage()
        storage.set(b"k", b"v")
        storage.get(b"k")        # b"v"
        storage.get(b"missing")  # None
    """

    def __init__(self, data: Optional[Dict[bytes, bytes]] = None):
        self._data: Dict[bytes, bytes] = dict(data) if data else {}

    def get(self, key: bytes) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        self._data[key] = bytes(value)

    def remove(self, key: bytes) -> None:
        self._data.pop(key, None)

    def contains(self, key: bytes) -> bool:
        return key in self._data

    def snapshot(self) -> Dict[bytes, bytes]:
        """Return a copy of the raw contents, for state comparison."""
        return dict(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"MemoryStorage({len(self._data)} keys)"


class OverlayStorage:
    """
    Buffers writes on top of a base Storage.

    Reads see buffered writes first, then fall through to the base. Nothing
    reaches the base until commit(). discard() drops the buffer, leaving the
    base exactly as it was.

    The host wraps every call in an overlay: commit on success, discard on
    a LedgerError.
    """

    # Marker for a buffered removal.
    _REMOVED = None

    def __init__(self, base: Storage):
        self.base = base
        self._writes: Dict[bytes, Optional[bytes]] = {}

    def get(self, key: bytes) -> Optional[bytes]:
        if key in self._writes:
            return self._writes[key]
        return self.base.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        self._writes[key] = bytes(value)

    def remove(self, key: bytes) -> None:
        self._writes[key] = self._REMOVED

    def contains(self, key: bytes) -> bool:
        if key in self._writes:
            return self._writes[key] is not self._REMOVED
        return self.base.contains(key)

    def pending_writes(self) -> int:
        """Number of keys with a buffered write or removal."""
        return len(self._writes)

    def commit(self) -> None:
        """Flush buffered writes to the base in the order they were made."""
        for key, value in self._writes.items():
            if value is self._REMOVED:
                self.base.remove(key)
            else:
                self.base.set(key, value)
        self._writes.clear()

    def discard(self) -> None:
        self._writes.clear()


# ============================================================================
# INDEXED MAP
# ============================================================================

class UnorderedMap:
    """
    Iterable map stored under a single key prefix.

    Keeps an index -> key list alongside the entries so the map can be
    enumerated over a storage that only offers point lookups. Removal moves
    the last index entry into the freed slot, so iteration order is not
    insertion order once entries have been removed.

    Defaults to account -> amount, which is what both ledger tables hold.
    """

    def __init__(
        self,
        storage: Storage,
        prefix: bytes,
        key_codec: Codec = ACCOUNT_CODEC,
        value_codec: Codec = AMOUNT_CODEC,
    ):
        self.storage = storage
        self.prefix = prefix
        self.key_codec = key_codec
        self.value_codec = value_codec

    # Key derivation

    def _count_key(self) -> bytes:
        return self.prefix + b"#"

    def _slot_key(self, index: int) -> bytes:
        return self.prefix + b"k" + index.to_bytes(_INDEX_BYTES, "big")

    def _value_key(self, raw_key: bytes) -> bytes:
        return self.prefix + b"v" + raw_key

    def _position_key(self, raw_key: bytes) -> bytes:
        return self.prefix + b"i" + raw_key

    # Reads

    def __len__(self) -> int:
        raw = self.storage.get(self._count_key())
        return int.from_bytes(raw, "big") if raw else 0

    def contains(self, key: Any) -> bool:
        return self.storage.contains(self._value_key(self.key_codec.encode(key)))

    def get(self, key: Any, default: Any = None) -> Any:
        raw = self.storage.get(self._value_key(self.key_codec.encode(key)))
        if raw is None:
            return default
        return self.value_codec.decode(raw)

    def keys(self) -> Iterator[Any]:
        for index in range(len(self)):
            raw_key = self.storage.get(self._slot_key(index))
            yield self.key_codec.decode(raw_key)

    def items(self) -> Iterator[Tuple[Any, Any]]:
        for key in self.keys():
            yield key, self.get(key)

    # Writes

    def insert(self, key: Any, value: Any) -> None:
        """Insert or overwrite the value for key."""
        raw_key = self.key_codec.encode(key)
        raw_value = self.value_codec.encode(value)
        if not self.storage.contains(self._value_key(raw_key)):
            index = len(self)
            self.storage.set(self._slot_key(index), raw_key)
            self.storage.set(self._position_key(raw_key), index.to_bytes(_INDEX_BYTES, "big"))
            self.storage.set(self._count_key(), (index + 1).to_bytes(_INDEX_BYTES, "big"))
        self.storage.set(self._value_key(raw_key), raw_value)

    def remove(self, key: Any) -> bool:
        """Delete key. Returns False if it was absent."""
        raw_key = self.key_codec.encode(key)
        position_raw = self.storage.get(self._position_key(raw_key))
        if position_raw is None:
            return False

        index = int.from_bytes(position_raw, "big")
        last = len(self) - 1
        if index != last:
            # Move the last key into the freed slot
            moved_raw_key = self.storage.get(self._slot_key(last))
            self.storage.set(self._slot_key(index), moved_raw_key)
            self.storage.set(self._position_key(moved_raw_key), index.to_bytes(_INDEX_BYTES, "big"))
        self.storage.remove(self._slot_key(last))
        self.storage.remove(self._position_key(raw_key))
        self.storage.remove(self._value_key(raw_key))
        if last == 0:
            self.storage.remove(self._count_key())
        else:
            self.storage.set(self._count_key(), last.to_bytes(_INDEX_BYTES, "big"))
        return True

    def to_dict(self) -> Dict[Any, Any]:
        return dict(self.items())

    def __repr__(self) -> str:
        return f"UnorderedMap(prefix={self.prefix!r}, {len(self)} entries)"

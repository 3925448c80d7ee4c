"""
Core types and pure functions for the token ledger.

This module provides the foundational data structures and protocols:
1. Protocols: Storage for the key-value substrate, LedgerView for read-only access
2. Immutable data structures: TokenMetadata
3. Exceptions: LedgerError and the precondition errors raised by operations
4. Checked arithmetic on Amounts (no wrapping, ever)

Nothing in this module touches storage. Mutation lives in ledger.py.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Protocol, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

# Width of the unsigned Amount type.
AMOUNT_BITS = 128
AMOUNT_BYTES = AMOUNT_BITS // 8
MAX_AMOUNT = (1 << AMOUNT_BITS) - 1

# decimals is stored in a single byte.
MAX_DECIMALS = 255
DEFAULT_DECIMALS = 18


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Opaque account identifier. Compared exactly, never normalized.
AccountId = str

# Unsigned integer in [0, MAX_AMOUNT].
Amount = int

# Mapping from account to the amount it holds (or may spend).
Holdings = Dict[AccountId, Amount]


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class Storage(Protocol):
    """
    Byte-keyed key-value substrate the ledger persists into.

    The host owns the storage and decides whether the writes of a call are
    committed or discarded. The ledger only relies on these four methods.
    """

    def get(self, key: bytes) -> Optional[bytes]:
        """Return the stored value, or None if the key is absent."""
        ...

    def set(self, key: bytes, value: bytes) -> None:
        ...

    def remove(self, key: bytes) -> None:
        """Delete the key. Removing an absent key is a no-op."""
        ...

    def contains(self, key: bytes) -> bool:
        ...


@runtime_checkable
class LedgerView(Protocol):
    """
    Read-only interface to ledger state.

    Authorization policies and reporting code accept a LedgerView to declare
    that they never mutate. TokenLedger implements this protocol but also
    provides the mutating operations.
    """

    def name(self) -> str:
        ...

    def symbol(self) -> str:
        ...

    def decimals(self) -> int:
        ...

    def total_supply(self) -> Amount:
        ...

    def balance_of(self, account: AccountId) -> Amount:
        """Return the balance of account, 0 if it holds nothing."""
        ...

    def allowance(self, owner: AccountId, spender: AccountId) -> Amount:
        """Return what spender may still move out of owner, 0 if nothing."""
        ...


# ============================================================================
# ENUMS
# ============================================================================

class ExecuteResult(Enum):
    """
    Outcome of a call submitted through the host.

    APPLIED: All preconditions held and the call's writes were committed.
    REJECTED: A precondition failed; nothing was written.
    """
    APPLIED = "applied"
    REJECTED = "rejected"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class InsufficientBalance(LedgerError):
    """Raised when an account holds less than the amount it is asked to give up."""
    pass


class InsufficientAllowance(LedgerError):
    """Raised when a spender's remaining allowance is below the requested amount."""
    pass


class ArithmeticRangeError(LedgerError):
    """Raised when an Amount computation leaves [0, MAX_AMOUNT]."""
    pass


class Overflow(ArithmeticRangeError):
    pass


class Underflow(ArithmeticRangeError):
    pass


class ZeroAmount(LedgerError):
    """Raised when burning zero tokens is requested."""
    pass


class InvalidAmount(LedgerError, ValueError):
    """Raised when a value is not an integer in [0, MAX_AMOUNT]."""
    pass


class AlreadyInitialized(LedgerError):
    """Raised when creating a ledger over storage that already holds one."""
    pass


class NotInitialized(LedgerError):
    """Raised when opening storage that holds no ledger."""
    pass


class Unauthorized(LedgerError):
    """Raised by authorization policies when a caller may not invoke a method."""
    pass


# ============================================================================
# METADATA
# ============================================================================

@dataclass(frozen=True, slots=True)
class TokenMetadata:
    """
    Display metadata, fixed when the ledger is created.

    Attributes:
        name: Human-readable token name (e.g., "FUN COIN").
        symbol: Short ticker (e.g., "FUNC").
        decimals: Display precision hint. Purely cosmetic: balances are
                  integers in the smallest unit and never rescaled.

    This class is immutable (frozen=True). All fields are validated in __post_init__.
    """
    name: str
    symbol: str
    decimals: int = DEFAULT_DECIMALS

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Token name cannot be empty")
        if not isinstance(self.symbol, str) or not self.symbol.strip():
            raise ValueError("Token symbol cannot be empty")
        for field_name in ("name", "symbol"):
            try:
                getattr(self, field_name).encode("utf-8")
            except UnicodeEncodeError:
                raise ValueError(f"Token {field_name} must be valid UTF-8") from None
        if isinstance(self.decimals, bool) or not isinstance(self.decimals, int):
            raise ValueError(f"decimals must be int, got {type(self.decimals)}")
        if not 0 <= self.decimals <= MAX_DECIMALS:
            raise ValueError(f"decimals must be in [0, {MAX_DECIMALS}], got {self.decimals}")

    def __repr__(self) -> str:
        return f"TokenMetadata({self.symbol} '{self.name}', decimals={self.decimals})"


# ============================================================================
# CHECKED ARITHMETIC
# ============================================================================

def require_amount(value: Amount, what: str = "value") -> Amount:
    """
    Validate that value is a well-formed Amount and return it.

    bool is rejected even though it subclasses int: True is not a token amount.

    Raises:
        InvalidAmount: If value is not an int in [0, MAX_AMOUNT].
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"{what} must be int, got {type(value).__name__}")
    if value < 0 or value > MAX_AMOUNT:
        raise InvalidAmount(f"{what} out of range [0, 2**{AMOUNT_BITS}-1]: {value}")
    return value


def require_account(account: AccountId, what: str = "account") -> AccountId:
    """Reject empty or non-string account ids. No normalization is applied."""
    if not isinstance(account, str) or not account:
        raise ValueError(f"{what} must be a non-empty str, got {account!r}")
    return account


def checked_add(a: Amount, b: Amount) -> Amount:
    """Return a + b, raising Overflow instead of exceeding MAX_AMOUNT."""
    result = a + b
    if result > MAX_AMOUNT:
        raise Overflow(f"{a} + {b} exceeds 2**{AMOUNT_BITS}-1")
    return result


def checked_sub(a: Amount, b: Amount) -> Amount:
    """Return a - b, raising Underflow instead of going below zero."""
    if b > a:
        raise Underflow(f"{a} - {b} is negative")
    return a - b

"""
tokenledger - Fungible Token Ledger

Balances, allowances and total supply of a fungible token, persisted in a
key-value storage and mutated only through checked, all-or-nothing operations.

Usage:
    from tokenledger import TokenLedger, TokenMetadata, MemoryStorage

    storage = MemoryStorage()
    token = TokenLedger.create(storage, TokenMetadata("FUN COIN", "FUNC", 18))

    token.mint("alice", 100)
    token.transfer("alice", "bob", 30)

    # Delegated spending
    token.approve("alice", "carol", 50)
    token.transfer_from("carol", "alice", "dave", 40)
    token.allowance("alice", "carol")   # 10

    # Through a host: per-call commit/discard and an audit log
    host = Host(MemoryStorage(), verbose=False)
    host.deploy("FUN COIN", "FUNC", 18, initial_supply=100, initial_holder="alice")
    outcome = host.call("alice", "transfer", "bob", 500)   # REJECTED, nothing written
"""

# Core types
from .core import (
    AccountId,
    Amount,
    Holdings,
    Storage,
    LedgerView,
    TokenMetadata,
    ExecuteResult,
    LedgerError,
    InsufficientBalance,
    InsufficientAllowance,
    ArithmeticRangeError,
    Overflow,
    Underflow,
    ZeroAmount,
    InvalidAmount,
    AlreadyInitialized,
    NotInitialized,
    Unauthorized,
    require_amount,
    checked_add,
    checked_sub,
    AMOUNT_BITS,
    MAX_AMOUNT,
    MAX_DECIMALS,
    DEFAULT_DECIMALS,
)

# Storage
from .storage import (
    MemoryStorage,
    OverlayStorage,
    UnorderedMap,
    encode_amount,
    decode_amount,
)

# Ledger
from .ledger import TokenLedger

# Host
from .host import (
    Host,
    CallRecord,
    CallOutcome,
    AuthorizationPolicy,
    allow_all,
    allow_accounts,
)

__all__ = [
    # Core
    'AccountId', 'Amount', 'Holdings', 'Storage', 'LedgerView', 'TokenMetadata',
    'ExecuteResult', 'LedgerError', 'InsufficientBalance', 'InsufficientAllowance',
    'ArithmeticRangeError', 'Overflow', 'Underflow', 'ZeroAmount', 'InvalidAmount',
    'AlreadyInitialized', 'NotInitialized', 'Unauthorized',
    'require_amount', 'checked_add', 'checked_sub',
    'AMOUNT_BITS', 'MAX_AMOUNT', 'MAX_DECIMALS', 'DEFAULT_DECIMALS',
    # Storage
    'MemoryStorage', 'OverlayStorage', 'UnorderedMap', 'encode_amount', 'decode_amount',
    # Ledger
    'TokenLedger',
    # Host
    'Host', 'CallRecord', 'CallOutcome', 'AuthorizationPolicy', 'allow_all', 'allow_accounts',
]

__version__ = '1.0.0'

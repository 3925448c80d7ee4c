"""
host.py - In-process host for the token ledger

The ledger core never decides whether a call's writes survive; its host
does. Host plays that role for tests, demos and embedding applications:

    - Runs one call at a time against an OverlayStorage
    - Commits the overlay when the call completes, discards it on a LedgerError
    - Passes the calling account explicitly (no ambient "current caller")
    - Applies an authorization policy before every mutating call
    - Records every call, applied or rejected, in an append-only call log

Usage:
    host = Host(MemoryStorage(), verbose=False)
    host.deploy("FUN COIN", "FUNC", 18)
    host.call("minter", "mint", "alice", 100)
    outcome = host.call("alice", "transfer", "bob", 30)
    assert outcome.result == ExecuteResult.APPLIED
    host.view("balance_of", "bob")   # 30
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, Iterable, List, Optional, Tuple

from .core import (
    AccountId, Amount, LedgerView, Storage, TokenMetadata,
    ExecuteResult,
    DEFAULT_DECIMALS,
    LedgerError, Unauthorized,
)
from .ledger import TokenLedger
from .storage import MemoryStorage, OverlayStorage


# ============================================================================
# METHOD TABLES
# ============================================================================

MUTATING_METHODS: FrozenSet[str] = frozenset({
    "transfer", "transfer_from", "approve", "mint", "burn",
})

# Methods whose first ledger argument is the calling account.
CALLER_SCOPED_METHODS: FrozenSet[str] = frozenset({
    "transfer", "transfer_from", "approve",
})

VIEW_METHODS: FrozenSet[str] = frozenset({
    "name", "symbol", "decimals", "total_supply",
    "balance_of", "allowance", "holders", "allowances_of",
    "verify_conservation",
})


# ============================================================================
# AUTHORIZATION POLICIES
# ============================================================================

# Policies inspect the committed state and raise Unauthorized to refuse a call.
AuthorizationPolicy = Callable[[LedgerView, AccountId, str], None]


def allow_all(view: LedgerView, caller: AccountId, method: str) -> None:
    """Default policy: every caller may invoke every method."""
    return None


def allow_accounts(
    accounts: Iterable[AccountId],
    methods: Iterable[str] = ("mint", "burn"),
) -> AuthorizationPolicy:
    """
    Restrict methods to the given callers; other methods stay open.

    Args:
        accounts: Callers permitted to invoke the gated methods
        methods: Methods to gate (default: mint and burn)

    Returns:
        A policy raising Unauthorized for any other caller of a gated method
    """
    permitted = frozenset(accounts)
    gated = frozenset(methods)
    unknown = gated - MUTATING_METHODS
    if unknown:
        raise ValueError(f"Cannot gate unknown methods: {sorted(unknown)}")

    def policy(view: LedgerView, caller: AccountId, method: str) -> None:
        if method in gated and caller not in permitted:
            raise Unauthorized(f"{caller} may not call {method}")

    policy.__name__ = f"allow_accounts({', '.join(sorted(permitted))})"
    return policy


# ============================================================================
# CALL RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class CallRecord:
    """
    Immutable audit entry for one call submitted to the host.

    Attributes:
        sequence_number: Monotonic position within the host's call log
        exec_id: Unique execution identifier (host name + sequence)
        caller: Account that submitted the call
        method: Ledger operation name
        args: Arguments after the caller
        result: APPLIED or REJECTED
        reason: Error type and message for a rejected call, empty otherwise
    """
    sequence_number: int
    exec_id: str
    caller: AccountId
    method: str
    args: Tuple[Any, ...]
    result: ExecuteResult
    reason: str = ""

    def __repr__(self) -> str:
        args_str = ", ".join(repr(a) for a in self.args)
        suffix = f" ({self.reason})" if self.reason else ""
        return (f"[{self.sequence_number}] {self.caller}.{self.method}({args_str}) "
                f"-> {self.result.value}{suffix}")


@dataclass(frozen=True, slots=True)
class CallOutcome:
    """
    What the host reports back for one call.

    Attributes:
        result: APPLIED or REJECTED
        value: Return value of the operation (True for transfers, None otherwise)
        error: The LedgerError that rejected the call, if any
        record: The entry appended to the call log
    """
    result: ExecuteResult
    value: Any = None
    error: Optional[LedgerError] = None
    record: Optional[CallRecord] = None

    @property
    def applied(self) -> bool:
        return self.result == ExecuteResult.APPLIED


# ============================================================================
# HOST
# ============================================================================

class Host:
    """
    Serializes calls against one token ledger and owns its commit decisions.

    Every call is all-or-nothing: the ledger writes into an overlay, and the
    overlay reaches the host's storage only if the call completes.

    Thread Safety:
        Not thread-safe. One Host, one caller at a time.
    """

    def __init__(
        self,
        storage: Optional[Storage] = None,
        name: str = "host",
        verbose: bool = True,
        authorize: AuthorizationPolicy = allow_all,
    ):
        """
        Create a host.

        Args:
            storage: Committed storage (default: a fresh MemoryStorage)
            name: Host identifier used in exec ids
            verbose: Enable debug output (default: True)
            authorize: Policy run before every mutating call (default: allow_all)
        """
        self.storage = storage if storage is not None else MemoryStorage()
        self.name = name
        self.verbose = verbose
        self.authorize = authorize
        self.call_log: List[CallRecord] = []
        self._next_sequence: int = 0

    @property
    def ledger(self) -> TokenLedger:
        """The ledger over committed state. Use call() to mutate it."""
        return TokenLedger.open(self.storage, verbose=False)

    def deploy(
        self,
        name: str,
        symbol: str,
        decimals: int = DEFAULT_DECIMALS,
        initial_supply: Amount = 0,
        initial_holder: Optional[AccountId] = None,
    ) -> TokenLedger:
        """Create the ledger in this host's storage (once)."""
        return TokenLedger.create(
            self.storage,
            TokenMetadata(name, symbol, decimals),
            initial_supply=initial_supply,
            initial_holder=initial_holder,
            verbose=self.verbose,
        )

    def view(self, method: str, *args: Any) -> Any:
        """
        Run a read-only operation against committed state.

        Raises:
            ValueError: If method is not a read-only operation
        """
        if method not in VIEW_METHODS:
            raise ValueError(f"Unknown view method: {method}")
        return getattr(self.ledger, method)(*args)

    def call(self, caller: AccountId, method: str, *args: Any) -> CallOutcome:
        """
        Run one mutating operation on behalf of caller.

        The authorization policy runs first. A LedgerError from the policy or
        the operation rejects the call and discards everything it wrote.

        Args:
            caller: Account submitting the call
            method: One of MUTATING_METHODS
            *args: Operation arguments after the caller

        Returns:
            CallOutcome with APPLIED or REJECTED

        Raises:
            ValueError: If method is not a mutating operation
            NotInitialized: If deploy() has not run
        """
        if method not in MUTATING_METHODS:
            raise ValueError(f"Unknown mutating method: {method}")

        overlay = OverlayStorage(self.storage)
        ledger = TokenLedger.open(overlay, verbose=False)
        try:
            self.authorize(ledger, caller, method)
            operation = getattr(ledger, method)
            if method in CALLER_SCOPED_METHODS:
                value = operation(caller, *args)
            else:
                value = operation(*args)
        except LedgerError as e:
            overlay.discard()
            record = self._record(caller, method, args, ExecuteResult.REJECTED,
                                  f"{type(e).__name__}: {e}")
            if self.verbose:
                print(f"✗ REJECTED: {record!r}")
            return CallOutcome(ExecuteResult.REJECTED, error=e, record=record)

        overlay.commit()
        record = self._record(caller, method, args, ExecuteResult.APPLIED)
        if self.verbose:
            print(f"✓ APPLIED: {record!r}")
        return CallOutcome(ExecuteResult.APPLIED, value=value, record=record)

    def _record(
        self,
        caller: AccountId,
        method: str,
        args: Tuple[Any, ...],
        result: ExecuteResult,
        reason: str = "",
    ) -> CallRecord:
        sequence = self._next_sequence
        self._next_sequence += 1
        record = CallRecord(
            sequence_number=sequence,
            exec_id=f"call:{self.name}:{sequence:012d}",
            caller=caller,
            method=method,
            args=tuple(args),
            result=result,
            reason=reason,
        )
        self.call_log.append(record)
        return record

"""
ledger.py - Fungible Token Ledger

The TokenLedger class is the only code that mutates token state: balances,
allowances and total supply, all persisted in a host-provided Storage.

Key responsibilities:
    - Implements LedgerView for safe read-only access
    - Validates every precondition before the first write (read, validate, write)
    - Uses checked arithmetic on every Amount, so nothing wraps
    - Preserves sum(balances) == total_supply outside of mint and burn
"""

from __future__ import annotations
from typing import Any, Dict, Optional

from .core import (
    # Types
    AccountId, Amount, Holdings, Storage, TokenMetadata,
    # Exceptions
    InsufficientBalance, InsufficientAllowance, ZeroAmount,
    AlreadyInitialized, NotInitialized,
    # Helper functions
    require_amount, require_account, checked_add, checked_sub,
)
from .storage import (
    UnorderedMap,
    encode_amount, decode_amount,
    allowance_prefix,
    KEY_INIT, KEY_NAME, KEY_SYMBOL, KEY_DECIMALS, KEY_TOTAL_SUPPLY,
    PREFIX_BALANCES,
)


class TokenLedger:
    """
    Balances, allowances and total supply of one fungible token.

    Implements the LedgerView protocol. Every mutating operation takes the
    acting account as an explicit parameter and either completes or raises a
    LedgerError before writing anything.

    Thread Safety:
        Not thread-safe. The host serializes calls against one ledger.

    Example:
        storage = MemoryStorage()
        token = TokenLedger.create(storage, TokenMetadata("FUN COIN", "FUNC", 18))
        token.mint("alice", 100)
        token.transfer("alice", "bob", 30)
        token.approve("alice", "carol", 50)
        token.transfer_from("carol", "alice", "dave", 40)
    """

    def __init__(self, storage: Storage, metadata: TokenMetadata, verbose: bool = True):
        """
        Bind a ledger to storage that already holds it.

        Use create() for a new ledger and open() to re-open an existing one.
        """
        self.storage = storage
        self._metadata = metadata
        self.verbose = verbose
        self._balances = UnorderedMap(storage, PREFIX_BALANCES)

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    @classmethod
    def create(
        cls,
        storage: Storage,
        metadata: TokenMetadata,
        initial_supply: Amount = 0,
        initial_holder: Optional[AccountId] = None,
        verbose: bool = True,
    ) -> TokenLedger:
        """
        Create a new ledger in storage.

        The initial supply is minted to initial_holder, so the recorded supply
        equals the sum of balances from the start.

        Args:
            storage: Empty storage to create the ledger in
            metadata: Name, symbol and decimals (immutable afterwards)
            initial_supply: Amount minted at creation (default: 0)
            initial_holder: Account receiving the initial supply
            verbose: Enable debug output (default: True)

        Returns:
            The new TokenLedger

        Raises:
            AlreadyInitialized: If storage already holds a ledger
            InvalidAmount: If initial_supply is not an Amount
            ValueError: If a non-zero supply has no initial_holder
        """
        require_amount(initial_supply, "initial_supply")
        if initial_holder is not None:
            require_account(initial_holder, "initial_holder")
        elif initial_supply:
            raise ValueError("initial_supply requires an initial_holder to receive it")
        if storage.contains(KEY_INIT):
            raise AlreadyInitialized("storage already holds a token ledger")

        raw_name = metadata.name.encode("utf-8")
        raw_symbol = metadata.symbol.encode("utf-8")

        storage.set(KEY_NAME, raw_name)
        storage.set(KEY_SYMBOL, raw_symbol)
        storage.set(KEY_DECIMALS, bytes([metadata.decimals]))
        storage.set(KEY_TOTAL_SUPPLY, encode_amount(0))

        ledger = cls(storage, metadata, verbose=verbose)
        if initial_supply:
            ledger.mint(initial_holder, initial_supply)
        storage.set(KEY_INIT, b"1")

        if verbose:
            holder_str = f" -> {initial_holder}" if initial_supply else ""
            print(f"📝 Created: {metadata.symbol} ({metadata.name}) "
                  f"decimals={metadata.decimals} supply={initial_supply}{holder_str}")
        return ledger

    @classmethod
    def open(cls, storage: Storage, verbose: bool = True) -> TokenLedger:
        """
        Re-open a ledger previously created in storage.

        Raises:
            NotInitialized: If storage holds no ledger
        """
        if not storage.contains(KEY_INIT):
            raise NotInitialized("storage holds no token ledger")
        metadata = TokenMetadata(
            name=storage.get(KEY_NAME).decode("utf-8"),
            symbol=storage.get(KEY_SYMBOL).decode("utf-8"),
            decimals=storage.get(KEY_DECIMALS)[0],
        )
        return cls(storage, metadata, verbose=verbose)

    # ========================================================================
    # LedgerView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    @property
    def metadata(self) -> TokenMetadata:
        return self._metadata

    def name(self) -> str:
        return self._metadata.name

    def symbol(self) -> str:
        return self._metadata.symbol

    def decimals(self) -> int:
        return self._metadata.decimals

    def total_supply(self) -> Amount:
        return decode_amount(self.storage.get(KEY_TOTAL_SUPPLY))

    def balance_of(self, account: AccountId) -> Amount:
        """Balance of account (0 if it has never held tokens)."""
        return self._balances.get(account, 0)

    def allowance(self, owner: AccountId, spender: AccountId) -> Amount:
        """Amount spender may still move out of owner (0 if never approved)."""
        return self._allowances(owner).get(spender, 0)

    def holders(self) -> Holdings:
        """All accounts with a non-zero balance, mapped to their balances."""
        return self._balances.to_dict()

    def allowances_of(self, owner: AccountId) -> Holdings:
        """All spenders with a non-zero allowance from owner."""
        return self._allowances(owner).to_dict()

    def verify_conservation(self) -> Dict[str, Any]:
        """
        Verify that the balances add up to the recorded total supply.

        Returns:
            Dict with keys:
            - 'valid': bool - True if sum of balances equals total supply
            - 'total_supply': Amount - Recorded total supply
            - 'sum_of_balances': int - Sum over all holders
            - 'difference': int - sum_of_balances - total_supply

        Example:
            result = token.verify_conservation()
            assert result['valid'], f"Conservation violated: {result}"
        """
        supply = self.total_supply()
        total = sum(amount for _, amount in self._balances.items())
        return {
            'valid': total == supply,
            'total_supply': supply,
            'sum_of_balances': total,
            'difference': total - supply,
        }

    # ========================================================================
    # BALANCE OPERATIONS (Mutating)
    # ========================================================================

    def transfer(self, caller: AccountId, to: AccountId, value: Amount) -> bool:
        """
        Move value from caller's balance to to's balance.

        A self-transfer validates the balance and leaves it unchanged.

        Returns:
            True (the call either completes or raises)

        Raises:
            InsufficientBalance: If caller holds less than value
        """
        require_account(caller, "caller")
        require_account(to, "to")
        require_amount(value)

        sender_balance = self.balance_of(caller)
        if sender_balance < value:
            raise InsufficientBalance(
                f"{caller}: balance {sender_balance} < {value}"
            )
        if caller == to:
            return True

        new_sender = checked_sub(sender_balance, value)
        new_receiver = checked_add(self.balance_of(to), value)

        self._write_balance(caller, new_sender)
        self._write_balance(to, new_receiver)
        return True

    def transfer_from(
        self,
        caller: AccountId,
        owner: AccountId,
        to: AccountId,
        value: Amount,
    ) -> bool:
        """
        Move value from owner's balance to to's balance on owner's behalf.

        caller spends from the allowance owner granted it; the allowance goes
        down by value. When owner == to the balances are unchanged but the
        allowance is still consumed.

        Returns:
            True (the call either completes or raises)

        Raises:
            InsufficientBalance: If owner holds less than value
            InsufficientAllowance: If caller may move less than value from owner
        """
        require_account(caller, "caller")
        require_account(owner, "owner")
        require_account(to, "to")
        require_amount(value)

        owner_balance = self.balance_of(owner)
        if owner_balance < value:
            raise InsufficientBalance(
                f"{owner}: balance {owner_balance} < {value}"
            )
        allowed = self.allowance(owner, caller)
        if allowed < value:
            raise InsufficientAllowance(
                f"{caller} may move {allowed} from {owner}, requested {value}"
            )

        new_allowance = checked_sub(allowed, value)
        if owner != to:
            new_owner = checked_sub(owner_balance, value)
            new_receiver = checked_add(self.balance_of(to), value)

        self._write_allowance(owner, caller, new_allowance)
        if owner != to:
            self._write_balance(owner, new_owner)
            self._write_balance(to, new_receiver)
        return True

    # ========================================================================
    # ALLOWANCE OPERATIONS (Mutating)
    # ========================================================================

    def approve(self, caller: AccountId, spender: AccountId, value: Amount) -> None:
        """
        Set the amount spender may move out of caller's balance.

        Overwrites any previous allowance; approvals never accumulate.
        """
        require_account(caller, "caller")
        require_account(spender, "spender")
        require_amount(value)
        self._write_allowance(caller, spender, value)

    # ========================================================================
    # SUPPLY OPERATIONS (Mutating)
    # ========================================================================

    def mint(self, to: AccountId, value: Amount) -> None:
        """
        Create value new tokens in to's balance.

        No authorization happens here; gate calls with a host policy.

        Raises:
            Overflow: If the total supply or to's balance would exceed MAX_AMOUNT
        """
        require_account(to, "to")
        require_amount(value)

        new_supply = checked_add(self.total_supply(), value)
        new_balance = checked_add(self.balance_of(to), value)

        self.storage.set(KEY_TOTAL_SUPPLY, encode_amount(new_supply))
        self._write_balance(to, new_balance)

    def burn(self, account: AccountId, value: Amount) -> None:
        """
        Destroy value tokens from account's balance.

        Raises:
            ZeroAmount: If value is 0
            InsufficientBalance: If account holds less than value
        """
        require_account(account, "account")
        require_amount(value)
        if value == 0:
            raise ZeroAmount("burn amount must be non-zero")

        balance = self.balance_of(account)
        if balance < value:
            raise InsufficientBalance(f"{account}: balance {balance} < {value}")

        new_balance = checked_sub(balance, value)
        new_supply = checked_sub(self.total_supply(), value)

        self._write_balance(account, new_balance)
        self.storage.set(KEY_TOTAL_SUPPLY, encode_amount(new_supply))

    # ========================================================================
    # STORAGE HELPERS
    # ========================================================================

    def _allowances(self, owner: AccountId) -> UnorderedMap:
        """Allowance sub-table of owner, namespaced by the owner's identity."""
        return UnorderedMap(self.storage, allowance_prefix(owner))

    def _write_balance(self, account: AccountId, amount: Amount) -> None:
        # Zero balances are dropped rather than stored
        if amount:
            self._balances.insert(account, amount)
        else:
            self._balances.remove(account)

    def _write_allowance(self, owner: AccountId, spender: AccountId, amount: Amount) -> None:
        table = self._allowances(owner)
        if amount:
            table.insert(spender, amount)
        else:
            table.remove(spender)

    def __repr__(self) -> str:
        return (f"TokenLedger({self._metadata.symbol}, supply={self.total_supply()}, "
                f"holders={len(self._balances)})")

#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Token Ledger Step by Step

This is a pedagogical demonstration that teaches how the token ledger works.
Each step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:  Foundation      - Storage, creating a token, minting
  4-6:  Core Mechanics  - Transfers, rejections, self-transfers
  7-8:  Delegation      - Approvals and transfer_from
  9-10: Supply          - Burning, overflow protection
  11-12: The Host       - Per-call commit/discard, authorization, the call log

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import sys

from tokenledger import (
    # Core classes
    TokenLedger, TokenMetadata, MemoryStorage, Host,
    # Errors
    LedgerError,
    # Policies and constants
    allow_accounts, ExecuteResult, MAX_AMOUNT,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    # Token
    name: str = "FUN COIN"
    symbol: str = "FUNC"
    decimals: int = 18

    # Scenario amounts
    mint_amount: int = 100
    transfer_amount: int = 30
    approved_amount: int = 50
    delegated_amount: int = 40
    burn_amount: int = 30


CONFIG = DemoConfig()

# Global state for interactive mode
QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


def show_balances(token: TokenLedger, accounts=("alice", "bob", "carol", "dave")):
    for acct in accounts:
        print(f"  {acct:<6} {token.balance_of(acct):>6}")
    print(f"  {'supply':<6} {token.total_supply():>6}")


def attempt(description: str, fn, *args):
    """Run an operation that is expected to fail and show the error."""
    print(f">>> {description}")
    try:
        fn(*args)
    except LedgerError as e:
        print(f"    raised {type(e).__name__}: {e}")
        return e
    print("    completed")
    return None


# ============================================================================
# PHASE 1: FOUNDATION (Steps 1-3)
# ============================================================================

def step_01_storage():
    """Create the storage the ledger lives in."""
    step_header(1, "Storage",
        "Understand that all token state lives in a key-value store.")

    print("""
    The ledger keeps nothing in Python objects that matters between calls.
    Balances, allowances, supply and metadata all live in a Storage:

        get(key) -> bytes | None
        set(key, value)
        remove(key)
        contains(key) -> bool

    MemoryStorage is a dict-backed implementation.
    """)

    wait_for_enter()

    print(">>> storage = MemoryStorage()")
    storage = MemoryStorage()
    print(f"    {storage!r}")
    return storage


def step_02_create_token(storage: MemoryStorage):
    """Create the token with its metadata."""
    step_header(2, "Creating a Token",
        "Metadata is fixed at creation; the supply starts at zero.")

    metadata = TokenMetadata(CONFIG.name, CONFIG.symbol, CONFIG.decimals)
    print(f">>> metadata = {metadata!r}")
    print(">>> token = TokenLedger.create(storage, metadata)")
    token = TokenLedger.create(storage, metadata)

    section_header("Initial State")
    print(f"Name:         {token.name()}")
    print(f"Symbol:       {token.symbol()}")
    print(f"Decimals:     {token.decimals()}")
    print(f"Total supply: {token.total_supply()}")
    print(f"Storage keys: {len(storage)}")
    return token


def step_03_mint(token: TokenLedger):
    """Mint the first tokens."""
    step_header(3, "Minting",
        "mint() is the only way value enters the ledger.")

    print(f">>> token.mint('alice', {CONFIG.mint_amount})")
    token.mint("alice", CONFIG.mint_amount)
    show_balances(token)

    section_header("Key Insight")
    print("""
    mint raises supply and one balance by exactly the same amount, so the
    sum of all balances always equals total_supply.
    """)
    print(f"verify_conservation(): {token.verify_conservation()}")


# ============================================================================
# PHASE 2: CORE MECHANICS (Steps 4-6)
# ============================================================================

def step_04_transfer(token: TokenLedger):
    """Move tokens between accounts."""
    step_header(4, "Transfers",
        "The caller is always passed explicitly.")

    print(f">>> token.transfer('alice', 'bob', {CONFIG.transfer_amount})")
    token.transfer("alice", "bob", CONFIG.transfer_amount)
    show_balances(token)


def step_05_rejection(token: TokenLedger):
    """A transfer that cannot be covered."""
    step_header(5, "Rejected Operations",
        "Every check runs before the first write.")

    before = token.holders()
    attempt("token.transfer('bob', 'carol', 31)", token.transfer, "bob", "carol", 31)
    print(f"Holders before: {before}")
    print(f"Holders after:  {token.holders()}")
    assert token.holders() == before


def step_06_self_transfer(token: TokenLedger):
    """Sending to yourself."""
    step_header(6, "Self-Transfers",
        "A self-transfer must neither create nor destroy tokens.")

    print(">>> token.transfer('alice', 'alice', 70)")
    token.transfer("alice", "alice", 70)
    print(f"alice: {token.balance_of('alice')}")


# ============================================================================
# PHASE 3: DELEGATION (Steps 7-8)
# ============================================================================

def step_07_approve(token: TokenLedger):
    """Grant an allowance."""
    step_header(7, "Approvals",
        "approve() sets, never adds to, what a spender may move.")

    print(">>> token.approve('alice', 'carol', 10)")
    token.approve("alice", "carol", 10)
    print(f">>> token.approve('alice', 'carol', {CONFIG.approved_amount})")
    token.approve("alice", "carol", CONFIG.approved_amount)
    print(f"allowance(alice, carol): {token.allowance('alice', 'carol')}")


def step_08_transfer_from(token: TokenLedger):
    """Spend an allowance."""
    step_header(8, "Delegated Transfers",
        "transfer_from moves the owner's tokens and consumes the allowance.")

    print(f">>> token.transfer_from('carol', 'alice', 'dave', {CONFIG.delegated_amount})")
    token.transfer_from("carol", "alice", "dave", CONFIG.delegated_amount)
    show_balances(token)
    print(f"allowance(alice, carol): {token.allowance('alice', 'carol')}")

    section_header("Exceeding the Allowance")
    attempt("token.transfer_from('carol', 'alice', 'dave', 11)",
            token.transfer_from, "carol", "alice", "dave", 11)


# ============================================================================
# PHASE 4: SUPPLY (Steps 9-10)
# ============================================================================

def step_09_burn(token: TokenLedger):
    """Destroy tokens."""
    step_header(9, "Burning",
        "burn() lowers one balance and the supply together.")

    print(f">>> token.burn('bob', {CONFIG.burn_amount})")
    token.burn("bob", CONFIG.burn_amount)
    show_balances(token)

    section_header("Burns That Fail")
    attempt("token.burn('bob', 1)", token.burn, "bob", 1)
    attempt("token.burn('alice', 0)", token.burn, "alice", 0)
    print(f"\nverify_conservation(): {token.verify_conservation()}")


def step_10_overflow():
    """Amounts never wrap."""
    step_header(10, "Overflow Protection",
        "All arithmetic is checked against the 128-bit amount range.")

    token = TokenLedger.create(MemoryStorage(), TokenMetadata("Big", "BIG", 0), verbose=False)
    print(f">>> token.mint('alice', MAX_AMOUNT)   # {MAX_AMOUNT}")
    token.mint("alice", MAX_AMOUNT)
    attempt("token.mint('bob', 1)", token.mint, "bob", 1)
    print(f"total_supply: {token.total_supply()}")


# ============================================================================
# PHASE 5: THE HOST (Steps 11-12)
# ============================================================================

def step_11_host():
    """Calls through a host."""
    step_header(11, "The Host",
        "A host runs each call on an overlay and commits only on success.")

    host = Host(MemoryStorage(), name="tutorial", verbose=True,
                authorize=allow_accounts(["issuer"]))
    host.deploy(CONFIG.name, CONFIG.symbol, CONFIG.decimals)

    host.call("issuer", "mint", "alice", CONFIG.mint_amount)
    host.call("alice", "mint", "alice", 1_000_000)
    host.call("alice", "transfer", "bob", CONFIG.transfer_amount)
    host.call("bob", "transfer", "carol", 1_000)

    section_header("Committed State")
    print(f"holders: {host.view('holders')}")
    print(f"supply:  {host.view('total_supply')}")
    return host


def step_12_call_log(host: Host):
    """Review the audit trail."""
    step_header(12, "The Call Log",
        "Every call, applied or rejected, is recorded.")

    for record in host.call_log:
        print(f"  {record.exec_id}  {record!r}")

    rejected = [r for r in host.call_log if r.result == ExecuteResult.REJECTED]
    print(f"\n{len(host.call_log)} calls, {len(rejected)} rejected")


# ============================================================================
# MAIN
# ============================================================================

def main():
    print("=" * 70)
    print("       TOKEN LEDGER TUTORIAL")
    print("=" * 70)

    storage = step_01_storage()
    wait_for_enter()

    token = step_02_create_token(storage)
    wait_for_enter()

    step_03_mint(token)
    wait_for_enter()

    step_04_transfer(token)
    wait_for_enter()

    step_05_rejection(token)
    wait_for_enter()

    step_06_self_transfer(token)
    wait_for_enter()

    step_07_approve(token)
    wait_for_enter()

    step_08_transfer_from(token)
    wait_for_enter()

    step_09_burn(token)
    wait_for_enter()

    step_10_overflow()
    wait_for_enter()

    host = step_11_host()
    wait_for_enter()

    step_12_call_log(host)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    You've learned:

      - All token state lives in Storage; the ledger can be re-opened
      - Supply changes only through mint and burn
      - Operations check everything before writing anything
      - Allowances are overwritten by approve and consumed by transfer_from
      - Arithmetic never wraps
      - A host decides what is committed and who may call what

    Next steps:
      - See tokenledger/ledger.py for the operations
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()

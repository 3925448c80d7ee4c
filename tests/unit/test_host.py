"""
test_host.py - Unit tests for the in-process host

Tests:
- Deployment and views
- Call dispatch (caller-scoped vs supply methods)
- Commit on success, discard on rejection
- Call log records
- Authorization policies
"""

import pytest

from tokenledger import (
    Host, MemoryStorage, ExecuteResult, CallRecord,
    InsufficientBalance, InsufficientAllowance, ZeroAmount, InvalidAmount,
    Unauthorized, NotInitialized, AlreadyInitialized,
    allow_all, allow_accounts,
)


class TestHostCreation:

    def test_default_storage(self):
        h = Host(verbose=False)
        assert isinstance(h.storage, MemoryStorage)
        assert h.call_log == []

    def test_deploy(self):
        h = Host(verbose=False)
        token = h.deploy("FUN COIN", "FUNC", 18, initial_supply=10, initial_holder="alice")
        assert token.total_supply() == 10
        assert h.view("balance_of", "alice") == 10

    def test_deploy_twice_raises(self, host):
        with pytest.raises(AlreadyInitialized):
            host.deploy("Other", "OTH")

    def test_call_before_deploy_raises(self):
        h = Host(verbose=False)
        with pytest.raises(NotInitialized):
            h.call("alice", "mint", "alice", 1)


class TestViews:

    def test_metadata_views(self, host):
        assert host.view("name") == "FUN COIN"
        assert host.view("symbol") == "FUNC"
        assert host.view("decimals") == 18
        assert host.view("total_supply") == 1000

    def test_allowance_view(self, host):
        host.call("alice", "approve", "bob", 12)
        assert host.view("allowance", "alice", "bob") == 12
        assert host.view("allowances_of", "alice") == {"bob": 12}

    def test_conservation_view(self, host):
        assert host.view("verify_conservation")['valid']

    def test_unknown_view_raises(self, host):
        with pytest.raises(ValueError, match="Unknown view method"):
            host.view("transfer", "bob", 1)

    def test_views_do_not_log(self, host):
        host.view("balance_of", "alice")
        assert host.call_log == []


class TestCallDispatch:

    def test_transfer_uses_caller_as_sender(self, host):
        outcome = host.call("alice", "transfer", "bob", 30)
        assert outcome.applied
        assert outcome.value is True
        assert host.view("balance_of", "alice") == 970
        assert host.view("balance_of", "bob") == 30

    def test_approve_uses_caller_as_owner(self, host):
        outcome = host.call("alice", "approve", "carol", 50)
        assert outcome.applied
        assert outcome.value is None
        assert host.view("allowance", "alice", "carol") == 50

    def test_transfer_from_uses_caller_as_spender(self, host):
        host.call("alice", "approve", "carol", 50)
        outcome = host.call("carol", "transfer_from", "alice", "dave", 40)
        assert outcome.applied
        assert host.view("allowance", "alice", "carol") == 10
        assert host.view("balance_of", "dave") == 40

    def test_mint_and_burn_take_explicit_account(self, host):
        host.call("anyone", "mint", "bob", 5)
        assert host.view("balance_of", "bob") == 5
        host.call("anyone", "burn", "bob", 5)
        assert host.view("balance_of", "bob") == 0
        assert host.view("total_supply") == 1000

    def test_unknown_method_raises(self, host):
        with pytest.raises(ValueError, match="Unknown mutating method"):
            host.call("alice", "balance_of", "alice")
        assert host.call_log == []


class TestCommitAndDiscard:

    def test_rejected_call_reports_error(self, host):
        outcome = host.call("bob", "transfer", "alice", 1)
        assert outcome.result == ExecuteResult.REJECTED
        assert not outcome.applied
        assert isinstance(outcome.error, InsufficientBalance)
        assert outcome.value is None

    def test_rejected_call_leaves_storage_identical(self, host):
        host.call("alice", "approve", "carol", 5)
        before = host.storage.snapshot()
        host.call("carol", "transfer_from", "alice", "dave", 6)
        host.call("alice", "transfer", "bob", 5000)
        host.call("alice", "burn", "alice", 0)
        assert host.storage.snapshot() == before

    def test_distinct_rejection_kinds(self, host):
        host.call("alice", "approve", "carol", 5)
        balance = host.call("carol", "transfer_from", "alice", "dave", 5000)
        allowance = host.call("carol", "transfer_from", "alice", "dave", 6)
        zero = host.call("alice", "burn", "alice", 0)
        invalid = host.call("alice", "transfer", "bob", -1)
        assert isinstance(balance.error, InsufficientBalance)
        assert isinstance(allowance.error, InsufficientAllowance)
        assert isinstance(zero.error, ZeroAmount)
        assert isinstance(invalid.error, InvalidAmount)

    def test_applied_call_is_committed(self, host):
        host.call("alice", "transfer", "bob", 1)
        # A fresh ledger over the same storage sees the write
        assert host.ledger.balance_of("bob") == 1


class TestCallLog:

    def test_every_call_is_logged(self, host):
        host.call("alice", "transfer", "bob", 10)
        host.call("bob", "transfer", "carol", 100)
        assert len(host.call_log) == 2
        applied, rejected = host.call_log
        assert applied.result == ExecuteResult.APPLIED
        assert applied.reason == ""
        assert rejected.result == ExecuteResult.REJECTED
        assert rejected.reason.startswith("InsufficientBalance")

    def test_record_fields(self, host):
        outcome = host.call("alice", "transfer", "bob", 10)
        record = outcome.record
        assert isinstance(record, CallRecord)
        assert record is host.call_log[0]
        assert record.sequence_number == 0
        assert record.exec_id == "call:host:000000000000"
        assert record.caller == "alice"
        assert record.method == "transfer"
        assert record.args == ("bob", 10)

    def test_sequence_is_monotonic(self, host):
        for i in range(5):
            host.call("alice", "transfer", "bob", 1)
        assert [r.sequence_number for r in host.call_log] == [0, 1, 2, 3, 4]

    def test_record_repr(self, host):
        outcome = host.call("bob", "transfer", "alice", 1)
        text = repr(outcome.record)
        assert "bob.transfer('alice', 1)" in text
        assert "rejected" in text

    def test_verbose_output(self, capsys):
        h = Host(verbose=True)
        h.deploy("FUN COIN", "FUNC", 18, initial_supply=10, initial_holder="alice")
        h.call("alice", "transfer", "bob", 1)
        h.call("alice", "transfer", "bob", 100)
        out = capsys.readouterr().out
        assert "APPLIED" in out
        assert "REJECTED" in out


class TestAuthorization:

    def test_allow_all_permits_everything(self, host):
        assert host.authorize is allow_all
        assert host.call("stranger", "mint", "stranger", 1).applied

    def test_gated_mint_by_permitted_caller(self, gated_host):
        outcome = gated_host.call("minter", "mint", "alice", 100)
        assert outcome.applied
        assert gated_host.view("balance_of", "alice") == 100

    def test_gated_mint_by_stranger_rejected(self, gated_host):
        outcome = gated_host.call("alice", "mint", "alice", 100)
        assert outcome.result == ExecuteResult.REJECTED
        assert isinstance(outcome.error, Unauthorized)
        assert gated_host.view("total_supply") == 0

    def test_gated_burn_by_stranger_rejected(self, gated_host):
        gated_host.call("minter", "mint", "alice", 100)
        outcome = gated_host.call("alice", "burn", "alice", 10)
        assert isinstance(outcome.error, Unauthorized)
        assert gated_host.view("balance_of", "alice") == 100

    def test_ungated_methods_stay_open(self, gated_host):
        gated_host.call("minter", "mint", "alice", 100)
        assert gated_host.call("alice", "transfer", "bob", 10).applied

    def test_gating_transfers(self):
        h = Host(verbose=False, authorize=allow_accounts(["alice"], methods=["transfer"]))
        h.deploy("FUN COIN", "FUNC", 18, initial_supply=10, initial_holder="alice")
        h.call("alice", "transfer", "bob", 5)
        outcome = h.call("bob", "transfer", "alice", 1)
        assert isinstance(outcome.error, Unauthorized)

    def test_gating_unknown_method_raises(self):
        with pytest.raises(ValueError, match="unknown methods"):
            allow_accounts(["alice"], methods=["steal"])

    def test_custom_policy_sees_committed_state(self):
        def holders_only(view, caller, method):
            if method == "approve" and view.balance_of(caller) == 0:
                raise Unauthorized(f"{caller} holds nothing")

        h = Host(verbose=False, authorize=holders_only)
        h.deploy("FUN COIN", "FUNC", 18, initial_supply=10, initial_holder="alice")
        assert h.call("alice", "approve", "bob", 5).applied
        assert not h.call("carol", "approve", "bob", 5).applied

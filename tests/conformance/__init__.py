"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the token ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Sum of balances equals total supply; mint/burn move it exactly
2. atomicity.py - A rejected operation changes nothing
3. allowances.py - Approve overwrites, transfer_from consumes, owners are isolated
4. persistence.py - Re-opening storage reconstructs identical state

These tests use hypothesis for property-based testing.
"""

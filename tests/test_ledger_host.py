"""
Ledger, Token and Contract Host Test Suite

Coverage:
  InMemoryLedger : clock, caller, transfers, snapshot / revert
  GovernanceToken: deployment validation, balances, freeze
  ContractHost   : CallResult mapping, caller scoping, rollback
"""

import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from treasury_dao.exceptions import CollaboratorError
from treasury_dao.governance import (
    GovernorError,
    TransferFailedError,
    VoteType,
)
from treasury_dao.ledger import InMemoryLedger, LedgerTransferError, TokenCallError
from treasury_dao.ledger.host import CallResult, ContractHost, DEFAULT_CONTRACT_ADDRESS
from treasury_dao.tokens import GovernanceToken, TokenError, TokenFrozenError


ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
CAROL = "0x" + "c3" * 20
DAVE = "0x" + "d4" * 20
TREASURY = "0x" + "7e" * 20


def make_token(**allocations):
    allocations = allocations or {ALICE: 600, BOB: 300, CAROL: 100}
    return GovernanceToken(
        sum(allocations.values()),
        name="Governance",
        symbol="GOV",
        allocations=allocations,
    )


def make_host(treasury=1000, quorum=50, token=None):
    return ContractHost.deploy(token or make_token(), quorum, treasury_balance=treasury)


# ══════════════════════════════════════════════════════════════════════
#  LEDGER
# ══════════════════════════════════════════════════════════════════════


class TestInMemoryLedger:
    """Deterministic ledger."""

    def test_requires_contract_address(self):
        with pytest.raises(ValueError):
            InMemoryLedger("")

    def test_clock(self):
        ledger = InMemoryLedger(TREASURY, start_time=100)
        assert ledger.current_time() == 100
        assert ledger.advance(seconds=5, minutes=2) == 225
        ledger.set_time(300)
        assert ledger.current_time() == 300
        with pytest.raises(ValueError, match="backwards"):
            ledger.set_time(299)
        with pytest.raises(ValueError):
            ledger.advance(seconds=-1)

    def test_caller_required(self):
        ledger = InMemoryLedger(TREASURY)
        with pytest.raises(CollaboratorError):
            ledger.caller_identity()
        ledger.set_caller(ALICE)
        assert ledger.caller_identity() == ALICE

    def test_transfer(self):
        ledger = InMemoryLedger(TREASURY, start_time=7, balances={TREASURY: 100})
        ledger.transfer(DAVE, 40)
        assert ledger.own_balance() == 60
        assert ledger.balance_of(DAVE) == 40
        record = ledger.transfers[0]
        assert record.to_dict() == {"from": TREASURY, "to": DAVE, "amount": 40, "timestamp": 7}

    def test_transfer_insufficient(self):
        ledger = InMemoryLedger(TREASURY, balances={TREASURY: 10})
        with pytest.raises(LedgerTransferError):
            ledger.transfer(DAVE, 11)
        assert ledger.own_balance() == 10
        assert ledger.transfers == []

    def test_failure_injection(self):
        ledger = InMemoryLedger(TREASURY, balances={TREASURY: 10})
        ledger.fail_transfers_to(DAVE)
        with pytest.raises(LedgerTransferError, match="rejected"):
            ledger.transfer(DAVE, 1)
        ledger.fail_transfers_to(DAVE, fail=False)
        ledger.transfer(DAVE, 1)
        assert ledger.balance_of(DAVE) == 1

    def test_snapshot_revert(self):
        ledger = InMemoryLedger(TREASURY, balances={TREASURY: 100})
        snap = ledger.snapshot()
        ledger.transfer(DAVE, 30)
        ledger.revert(snap)
        assert ledger.own_balance() == 100
        assert ledger.balance_of(DAVE) == 0
        assert ledger.transfers == []
        with pytest.raises(ValueError, match="Invalid snapshot"):
            ledger.revert(snap)

    def test_snapshot_release(self):
        ledger = InMemoryLedger(TREASURY, balances={TREASURY: 100})
        snap = ledger.snapshot()
        ledger.transfer(DAVE, 30)
        ledger.release(snap)
        assert ledger.own_balance() == 70
        with pytest.raises(ValueError):
            ledger.release(snap)


# ══════════════════════════════════════════════════════════════════════
#  TOKEN
# ══════════════════════════════════════════════════════════════════════


class TestGovernanceToken:
    """Read-only governance token."""

    def test_deployer_receives_supply(self):
        token = GovernanceToken(1000, name="Gov", symbol="GOV", deployer=ALICE)
        assert token.total_supply() == 1000
        assert token.balance_of(ALICE) == 1000
        assert token.balance_of(BOB) == 0
        assert (token.name, token.symbol, token.decimals) == ("Gov", "GOV", 18)

    def test_metadata_optional(self):
        token = GovernanceToken(10, deployer=ALICE, decimals=0)
        assert token.name is None
        assert token.symbol is None
        assert token.decimals == 0

    def test_allocations(self):
        token = make_token()
        assert token.balance_of(BOB) == 300
        assert token.holders() == {ALICE: 600, BOB: 300, CAROL: 100}
        assert token.to_dict()["holders"] == 3

    def test_allocations_must_sum_to_supply(self):
        with pytest.raises(TokenError, match="sum"):
            GovernanceToken(1000, allocations={ALICE: 10})

    def test_invalid_parameters(self):
        with pytest.raises(TokenError):
            GovernanceToken(-1, deployer=ALICE)
        with pytest.raises(TokenError):
            GovernanceToken(10, deployer=ALICE, decimals=256)
        with pytest.raises(TokenError, match="Deployer"):
            GovernanceToken(10)
        with pytest.raises(TokenError):
            GovernanceToken(10, allocations={ALICE: 11, BOB: -1})

    def test_freeze(self):
        token = make_token()
        token.freeze()
        assert token.is_frozen
        with pytest.raises(TokenFrozenError):
            token.balance_of(ALICE)
        with pytest.raises(TokenCallError):
            token.total_supply()
        token.unfreeze()
        assert token.total_supply() == 1000


# ══════════════════════════════════════════════════════════════════════
#  CONTRACT HOST
# ══════════════════════════════════════════════════════════════════════


class TestCallResult:
    def test_truthiness(self):
        assert CallResult(success=True)
        assert not CallResult(success=False, error=GovernorError.DURATION_ERROR)

    def test_equality_ignores_message(self):
        a = CallResult(success=False, error=GovernorError.DURATION_ERROR, message="x")
        b = CallResult(success=False, error=GovernorError.DURATION_ERROR, message="y")
        assert a == b
        assert a != CallResult(success=True)

    def test_to_dict(self):
        result = CallResult(success=False, error=GovernorError.ALREADY_VOTED, message="dup")
        assert result.to_dict() == {"success": False, "error": "ALREADY_VOTED", "message": "dup"}


class TestContractHost:
    """Hosted calls."""

    def test_deploy(self):
        host = make_host(treasury=500)
        assert host.treasury_balance == 500
        assert host.ledger.contract_address == DEFAULT_CONTRACT_ADDRESS
        assert host.governor.quorum_percent == 50

    def test_successful_call(self):
        host = make_host()
        assert host.propose(ALICE, DAVE, 100, 1) == CallResult(success=True, value=None)
        assert host.call(ALICE, "next_proposal_id").value == 1

    def test_failed_call_returns_kind(self):
        host = make_host()
        result = host.propose(ALICE, DAVE, 0, 1)
        assert not result
        assert result.error == GovernorError.AMOUNT_SHOULD_NOT_BE_ZERO
        assert host.call(ALICE, "next_proposal_id").value == 0

    def test_calls_run_as_caller(self):
        host = make_host()
        host.propose(CAROL, DAVE, 100, 1)
        assert host.vote(BOB, 0, "against")
        assert host.call(ALICE, "has_voted", 0, BOB).value is True
        assert host.call(ALICE, "has_voted", 0, ALICE).value is False
        assert host.vote(BOB, 0, VoteType.FOR).error == GovernorError.ALREADY_VOTED

    def test_caller_cleared_after_call(self):
        host = make_host()
        host.propose(ALICE, DAVE, 100, 1)
        with pytest.raises(CollaboratorError):
            host.ledger.caller_identity()

    def test_unknown_method(self):
        host = make_host()
        with pytest.raises(ValueError, match="Unknown governor method"):
            host.call(ALICE, "_storage")

    def test_caller_required(self):
        host = make_host()
        with pytest.raises(ValueError):
            host.call("", "propose", DAVE, 100, 1)

    def test_full_flow(self):
        host = make_host()
        host.propose(ALICE, DAVE, 100, 1)
        assert host.execute(ALICE, 0).error == GovernorError.QUORUM_NOT_REACHED
        assert host.vote(ALICE, 0, "for")
        assert host.execute(BOB, 0)
        assert host.treasury_balance == 900
        assert host.ledger.balance_of(DAVE) == 100
        assert host.execute(BOB, 0).error == GovernorError.PROPOSAL_ALREADY_EXECUTED

    def test_transfer_failure_rolls_back(self):
        host = make_host()
        host.propose(ALICE, DAVE, 100, 1)
        host.vote(ALICE, 0, "for")
        host.ledger.fail_transfers_to(DAVE)
        result = host.execute(ALICE, 0)
        assert result.error == GovernorError.TRANSFER_FAILED
        assert host.treasury_balance == 1000
        assert host.call(ALICE, "get_proposal", 0).value.executed is False

    def test_frozen_token_rolls_back(self):
        token = make_token()
        host = make_host(token=token)
        host.propose(ALICE, DAVE, 100, 1)
        token.freeze()
        assert host.vote(ALICE, 0, "for").error == GovernorError.CALL_TO_TOKEN_FAILED
        assert host.call(ALICE, "has_voted", 0, ALICE).value is False

    def test_zero_supply_token(self):
        host = make_host(token=GovernanceToken(0))
        host.propose(ALICE, DAVE, 100, 1)
        assert host.vote(ALICE, 0, "for").error == GovernorError.CALL_TO_TOKEN_FAILED

    def test_ledger_reverted_on_governance_failure(self, monkeypatch):
        host = make_host()

        def pay_then_fail(proposal_id):
            host.ledger.transfer(DAVE, 100)
            raise TransferFailedError("late failure")

        monkeypatch.setattr(host.governor, "execute", pay_then_fail)
        result = host.execute(ALICE, 0)
        assert result.error == GovernorError.TRANSFER_FAILED
        assert result.message == "late failure"
        assert host.treasury_balance == 1000
        assert host.ledger.transfers == []

    def test_ledger_reverted_on_unexpected_error(self, monkeypatch):
        host = make_host()

        def pay_then_crash(proposal_id):
            host.ledger.transfer(DAVE, 100)
            raise RuntimeError("crash")

        monkeypatch.setattr(host.governor, "execute", pay_then_crash)
        with pytest.raises(RuntimeError, match="crash"):
            host.execute(ALICE, 0)
        assert host.treasury_balance == 1000

    def test_fund_and_advance(self):
        host = make_host(treasury=0)
        assert host.fund(250) == 250
        with pytest.raises(ValueError):
            host.fund(-1)
        assert host.advance(minutes=2) == 120
        assert host.call(ALICE, "now").value == 120

    def test_window_closes_through_host(self):
        host = make_host()
        host.propose(ALICE, DAVE, 100, 1)
        host.advance(seconds=61)
        assert host.vote(ALICE, 0, "for").error == GovernorError.VOTE_PERIOD_ENDED

    def test_to_dict(self):
        host = make_host()
        host.propose(ALICE, DAVE, 100, 1)
        d = host.to_dict()
        assert d["ledger"]["balances"][DEFAULT_CONTRACT_ADDRESS] == 1000
        assert d["governor"]["nextProposalId"] == 1

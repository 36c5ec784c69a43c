"""
Treasury Execution Checks

Implements the gate a proposal must pass before its transfer is released:
  - Quorum: quorum_percent <= (for + against) // VOTE_WEIGHT_SCALE
  - Majority: against must not exceed for (ties pass)
  - Solvency: amount must not exceed the treasury balance

There is no vote_end gate: a proposal can execute while voting is still open
as soon as the tally satisfies quorum and majority.
"""

from typing import Callable

from ..logger import get_logger
from .proposals import (
    GovernanceError,
    GovernorError,
    Proposal,
    ProposalId,
)
from .voting import VoteTally

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class ExecutionError(GovernanceError):
    """Base execution error."""


class QuorumNotReachedError(ExecutionError):
    kind = GovernorError.QUORUM_NOT_REACHED


class ProposalNotAcceptedError(ExecutionError):
    """Against weight exceeds For weight."""
    kind = GovernorError.PROPOSAL_NOT_ACCEPTED


class AmountExceedContractBalanceError(ExecutionError):
    kind = GovernorError.AMOUNT_EXCEED_CONTRACT_BALANCE


class TransferFailedError(ExecutionError):
    """Ledger refused the value transfer; the proposal stays unexecuted."""
    kind = GovernorError.TRANSFER_FAILED


# ══════════════════════════════════════════════════════════════════════
#  CHECKS
# ══════════════════════════════════════════════════════════════════════

def check_quorum(proposal_id: ProposalId, tally: VoteTally, quorum_percent: int):
    if not tally.quorum_reached(quorum_percent):
        raise QuorumNotReachedError(
            f"Proposal #{proposal_id}: participation {tally.participation}% "
            f"< quorum {quorum_percent}%"
        )


def check_majority(proposal_id: ProposalId, tally: VoteTally):
    if not tally.is_accepted:
        raise ProposalNotAcceptedError(
            f"Proposal #{proposal_id}: against={tally.against_weight} "
            f"> for={tally.for_weight}"
        )


def check_solvency(proposal_id: ProposalId, proposal: Proposal, treasury_balance: int):
    if proposal.amount > treasury_balance:
        raise AmountExceedContractBalanceError(
            f"Proposal #{proposal_id}: amount={proposal.amount} "
            f"> treasury balance {treasury_balance}"
        )


def check_executable(
    proposal_id: ProposalId,
    proposal: Proposal,
    tally: VoteTally,
    quorum_percent: int,
    treasury_balance: Callable[[], int],
):
    """
    Run quorum, majority and solvency checks in that order.

    *treasury_balance* is only called once the vote checks pass, so a
    rejected proposal never touches the ledger.
    """
    check_quorum(proposal_id, tally, quorum_percent)
    check_majority(proposal_id, tally)
    check_solvency(proposal_id, proposal, treasury_balance())
    logger.debug(
        f"Proposal #{proposal_id} executable: participation={tally.participation}% "
        f"for={tally.for_weight} against={tally.against_weight}"
    )

"""
Treasury Governance

Provides:
  - GovernorError / Proposal / ProposalState         (proposals.py)
  - VoteType / VoteTally / compute_vote_weight        (voting.py)
  - quorum, majority and solvency checks              (execution.py)
  - GovernorStorage                                   (storage.py)
  - Governor + ProposalCreated / VoteCast / ProposalExecuted (governor.py)
"""

from .proposals import (
    AmountShouldNotBeZeroError,
    ArithmeticOverflowError,
    DurationError,
    GovernanceError,
    GovernorError,
    Proposal,
    ProposalAlreadyExecutedError,
    ProposalId,
    ProposalNotFoundError,
    ProposalState,
)
from .voting import (
    AlreadyVotedError,
    CallToTokenFailedError,
    VotePeriodEndedError,
    VoteTally,
    VoteType,
    VotingError,
    compute_vote_weight,
)
from .execution import (
    AmountExceedContractBalanceError,
    ExecutionError,
    ProposalNotAcceptedError,
    QuorumNotReachedError,
    TransferFailedError,
)
from .storage import GovernorStorage
from .governor import (
    Governor,
    ProposalCreated,
    ProposalExecuted,
    VoteCast,
)

__all__ = [
    # Proposals
    "AmountShouldNotBeZeroError",
    "ArithmeticOverflowError",
    "DurationError",
    "GovernanceError",
    "GovernorError",
    "Proposal",
    "ProposalAlreadyExecutedError",
    "ProposalId",
    "ProposalNotFoundError",
    "ProposalState",
    # Voting
    "AlreadyVotedError",
    "CallToTokenFailedError",
    "VotePeriodEndedError",
    "VoteTally",
    "VoteType",
    "VotingError",
    "compute_vote_weight",
    # Execution
    "AmountExceedContractBalanceError",
    "ExecutionError",
    "ProposalNotAcceptedError",
    "QuorumNotReachedError",
    "TransferFailedError",
    # Governor
    "Governor",
    "GovernorStorage",
    "ProposalCreated",
    "ProposalExecuted",
    "VoteCast",
]

"""
Treasury Governor

Token holders propose treasury transfers, vote with weight proportional to
their share of the governance token supply, and execute a proposal once the
tally meets quorum and majority.

Every write operation stages its storage changes and commits them only when
the whole operation (including collaborator calls) succeeds, so a failed
call leaves no trace in the governor's tables.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..constants import MAX_QUORUM_PERCENT
from ..exceptions import CollaboratorError
from ..ledger.interfaces import Ledger, LedgerTransferError, TokenOracle
from ..logger import get_logger
from .execution import TransferFailedError, check_executable
from .proposals import (
    GovernanceError,
    Proposal,
    ProposalAlreadyExecutedError,
    ProposalId,
    ProposalNotFoundError,
)
from .storage import GovernorStorage
from .voting import (
    AlreadyVotedError,
    CallToTokenFailedError,
    VotePeriodEndedError,
    VoteTally,
    VoteType,
    compute_vote_weight,
)

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EVENTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ProposalCreated:
    proposal_id: ProposalId
    recipient: str
    amount: int
    vote_start: int
    vote_end: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "ProposalCreated",
            "proposalId": self.proposal_id,
            "recipient": self.recipient,
            "amount": self.amount,
            "voteStart": self.vote_start,
            "voteEnd": self.vote_end,
        }


@dataclass(frozen=True)
class VoteCast:
    proposal_id: ProposalId
    voter: str
    choice: VoteType
    weight: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "VoteCast",
            "proposalId": self.proposal_id,
            "voter": self.voter,
            "choice": self.choice.name,
            "weight": self.weight,
        }


@dataclass(frozen=True)
class ProposalExecuted:
    proposal_id: ProposalId
    recipient: str
    amount: int
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "ProposalExecuted",
            "proposalId": self.proposal_id,
            "recipient": self.recipient,
            "amount": self.amount,
            "timestamp": self.timestamp,
        }


# ══════════════════════════════════════════════════════════════════════
#  GOVERNOR
# ══════════════════════════════════════════════════════════════════════

class Governor:
    """
    Proposal / vote / execute state machine over a pooled treasury.

    Responsibilities:
        - Assign monotonic proposal ids
        - Accept at most one vote per (proposal, account)
        - Weigh votes by the caller's current share of token supply
        - Release each proposal's funds at most once
    """

    def __init__(
        self,
        ledger: Ledger,
        governance_token: TokenOracle,
        quorum_percent: int,
    ):
        """
        Args:
            ledger:           Clock, caller identity, treasury balance, transfers
            governance_token: Source of voter balances and total supply
            quorum_percent:   Minimum participation percent, 0-100
        """
        if isinstance(quorum_percent, bool) or not isinstance(quorum_percent, int):
            raise TypeError("quorum_percent must be an int")
        if not 0 <= quorum_percent <= MAX_QUORUM_PERCENT:
            raise ValueError(
                f"quorum_percent must be 0-{MAX_QUORUM_PERCENT}, got {quorum_percent}"
            )
        self._ledger = ledger
        self._token = governance_token
        self._quorum_percent = quorum_percent
        self._storage = GovernorStorage()
        logger.info(f"Governor deployed: quorum={quorum_percent}%")

    # ── Configuration ─────────────────────────────────────────────────

    @property
    def quorum_percent(self) -> int:
        return self._quorum_percent

    @property
    def governance_token(self) -> TokenOracle:
        return self._token

    # ── Propose ───────────────────────────────────────────────────────

    def propose(self, recipient: str, amount: int, duration_minutes: int) -> None:
        """
        Create a proposal to send *amount* to *recipient*, open for voting
        for *duration_minutes* from now.

        Raises:
            AmountShouldNotBeZeroError, DurationError, ArithmeticOverflowError
        """
        now = self._ledger.current_time()
        proposal = Proposal.create(recipient, amount, duration_minutes, now)

        with self._storage.staged() as storage:
            proposal_id = storage.insert_proposal(proposal)
            storage.emit(ProposalCreated(
                proposal_id=proposal_id,
                recipient=recipient,
                amount=amount,
                vote_start=proposal.vote_start,
                vote_end=proposal.vote_end,
            ))

        logger.info(
            f"Proposal #{proposal_id} created: to={recipient} amount={amount} "
            f"vote_end={proposal.vote_end}"
        )

    # ── Vote ──────────────────────────────────────────────────────────

    def vote(self, proposal_id: ProposalId, choice: VoteType) -> None:
        """
        Cast the caller's vote on *proposal_id*.

        Checks (first failure wins): proposal exists, not executed, voting
        window still open, caller has not voted. The token is queried only
        after every check passes.
        """
        choice = VoteType.parse(choice)
        proposal = self._require_proposal(proposal_id)
        if proposal.executed:
            raise ProposalAlreadyExecutedError(f"Proposal #{proposal_id} already executed")

        now = self._ledger.current_time()
        if not proposal.is_open(now):
            raise VotePeriodEndedError(
                f"Voting on proposal #{proposal_id} ended at {proposal.vote_end} (now={now})"
            )

        caller = self._ledger.caller_identity()
        if self._storage.has_voted(proposal_id, caller):
            raise AlreadyVotedError(f"{caller} has already voted on proposal #{proposal_id}")

        weight = self._vote_weight(caller)

        with self._storage.staged() as storage:
            tally = storage.record_vote(proposal_id, caller, choice, weight)
            storage.emit(VoteCast(
                proposal_id=proposal_id,
                voter=caller,
                choice=choice,
                weight=weight,
            ))

        logger.info(
            f"Vote: {caller} → {choice.name} on Proposal #{proposal_id} "
            f"(weight={weight}, for={tally.for_weight}, against={tally.against_weight})"
        )

    def _vote_weight(self, account: str) -> int:
        """Query the token and turn *account*'s holdings into vote weight."""
        try:
            balance = self._token.balance_of(account)
            total_supply = self._token.total_supply()
        except (CollaboratorError, OSError) as e:
            logger.warning(f"Token query for {account} failed: {e}")
            raise CallToTokenFailedError(f"Token query failed: {e}") from e

        try:
            return compute_vote_weight(balance, total_supply)
        except (TypeError, ValueError) as e:
            logger.warning(f"Token returned unusable data for {account}: {e}")
            raise CallToTokenFailedError(f"Token returned unusable data: {e}") from e

    # ── Execute ───────────────────────────────────────────────────────

    def execute(self, proposal_id: ProposalId) -> None:
        """
        Release the proposal's funds to its recipient.

        Checks (first failure wins): proposal exists, not executed, quorum,
        majority, treasury balance. The executed flag and the transfer are
        committed together; a refused transfer leaves the proposal
        unexecuted and retryable.
        """
        proposal = self._require_proposal(proposal_id)
        if proposal.executed:
            raise ProposalAlreadyExecutedError(f"Proposal #{proposal_id} already executed")

        tally = self._storage.get_tally(proposal_id)
        try:
            check_executable(
                proposal_id,
                proposal,
                tally,
                self._quorum_percent,
                self._ledger.own_balance,
            )
        except GovernanceError as e:
            logger.warning(f"Execution of Proposal #{proposal_id} rejected: {e}")
            raise

        with self._storage.staged() as storage:
            storage.update_proposal(proposal_id, proposal.mark_executed())
            storage.emit(ProposalExecuted(
                proposal_id=proposal_id,
                recipient=proposal.recipient,
                amount=proposal.amount,
                timestamp=self._ledger.current_time(),
            ))
            try:
                self._ledger.transfer(proposal.recipient, proposal.amount)
            except LedgerTransferError as e:
                logger.warning(f"Proposal #{proposal_id} transfer failed: {e}")
                raise TransferFailedError(f"Transfer to {proposal.recipient} failed: {e}") from e

        logger.info(
            f"Proposal #{proposal_id} EXECUTED: {proposal.recipient} received "
            f"amount={proposal.amount}"
        )

    # ── Queries ───────────────────────────────────────────────────────

    def _require_proposal(self, proposal_id: ProposalId) -> Proposal:
        if isinstance(proposal_id, bool) or not isinstance(proposal_id, int):
            raise TypeError(f"proposal_id must be an int, got {type(proposal_id).__name__}")
        if proposal_id < 0 or proposal_id >= self._storage.next_proposal_id:
            raise ProposalNotFoundError(f"Proposal #{proposal_id} does not exist")
        proposal = self._storage.get_proposal(proposal_id)
        if proposal is None:
            raise ProposalNotFoundError(f"Proposal #{proposal_id} missing from storage")
        return proposal

    def get_proposal(self, proposal_id: ProposalId) -> Optional[Proposal]:
        if isinstance(proposal_id, bool) or not isinstance(proposal_id, int) or proposal_id < 0:
            return None
        return self._storage.get_proposal(proposal_id)

    def next_proposal_id(self) -> ProposalId:
        return self._storage.next_proposal_id

    def now(self) -> int:
        return self._ledger.current_time()

    def get_tally(self, proposal_id: ProposalId) -> VoteTally:
        return self._storage.get_tally(proposal_id)

    def has_voted(self, proposal_id: ProposalId, account: str) -> bool:
        return self._storage.has_voted(proposal_id, account)

    @property
    def events(self) -> List[Any]:
        return list(self._storage.events)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quorumPercent": self._quorum_percent,
            "now": self.now(),
            **self._storage.to_dict(),
        }

    def __repr__(self) -> str:
        return (
            f"<Governor quorum={self._quorum_percent}% "
            f"proposals={self._storage.next_proposal_id}>"
        )

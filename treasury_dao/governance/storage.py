"""
Governor Storage

The tables a governor owns, plus staged writes: each write operation works
on a scratch copy that replaces the live tables only when the operation
finishes without raising.

Tables:
  - proposals:        ProposalId → Proposal
  - vote_for:         ProposalId → for weight
  - vote_against:     ProposalId → against weight
  - votes:            {(ProposalId, voter)}
  - next_proposal_id: scalar counter
  - events:           append-only event log
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from ..constants import U64_MAX
from ..logger import get_logger
from .proposals import Proposal, ProposalId, checked_add
from .voting import VoteTally, VoteType

logger = get_logger(__name__)


class StorageError(RuntimeError):
    """Misuse of the staging protocol."""


class GovernorStorage:
    """Append / increment-only governor tables."""

    def __init__(self) -> None:
        self.proposals: Dict[ProposalId, Proposal] = {}
        self.vote_for: Dict[ProposalId, int] = {}
        self.vote_against: Dict[ProposalId, int] = {}
        self.votes: Set[Tuple[ProposalId, str]] = set()
        self.next_proposal_id: ProposalId = 0
        self.events: List[Any] = []
        self._staging = False

    # ── Reads ─────────────────────────────────────────────────────────

    def get_proposal(self, proposal_id: ProposalId) -> Optional[Proposal]:
        if proposal_id >= self.next_proposal_id:
            return None
        return self.proposals.get(proposal_id)

    def get_tally(self, proposal_id: ProposalId) -> VoteTally:
        # Absent entries read as zero
        return VoteTally(
            for_weight=self.vote_for.get(proposal_id, 0),
            against_weight=self.vote_against.get(proposal_id, 0),
        )

    def has_voted(self, proposal_id: ProposalId, voter: str) -> bool:
        return (proposal_id, voter) in self.votes

    # ── Writes ────────────────────────────────────────────────────────

    def insert_proposal(self, proposal: Proposal) -> ProposalId:
        """Store *proposal* under the current counter and advance it by one."""
        proposal_id = self.next_proposal_id
        self.next_proposal_id = checked_add(proposal_id, 1, "next_proposal_id", U64_MAX)
        self.proposals[proposal_id] = proposal
        return proposal_id

    def update_proposal(self, proposal_id: ProposalId, proposal: Proposal) -> None:
        if proposal_id not in self.proposals:
            raise StorageError(f"Proposal #{proposal_id} was never stored")
        self.proposals[proposal_id] = proposal

    def record_vote(
        self,
        proposal_id: ProposalId,
        voter: str,
        choice: VoteType,
        weight: int,
    ) -> VoteTally:
        """Mark (proposal, voter) as voted and add *weight* to *choice*."""
        key = (proposal_id, voter)
        if key in self.votes:
            raise StorageError(f"{voter} already recorded on proposal #{proposal_id}")
        tally = self.get_tally(proposal_id).add(choice, weight)
        self.votes.add(key)
        if choice == VoteType.FOR:
            self.vote_for[proposal_id] = tally.for_weight
        else:
            self.vote_against[proposal_id] = tally.against_weight
        return tally

    def emit(self, event: Any) -> None:
        self.events.append(event)

    # ── Staging ───────────────────────────────────────────────────────

    def copy(self) -> "GovernorStorage":
        # Proposals are frozen, so shallow table copies are independent
        clone = GovernorStorage()
        clone.proposals = dict(self.proposals)
        clone.vote_for = dict(self.vote_for)
        clone.vote_against = dict(self.vote_against)
        clone.votes = set(self.votes)
        clone.next_proposal_id = self.next_proposal_id
        clone.events = list(self.events)
        return clone

    def _commit(self, scratch: "GovernorStorage") -> None:
        self.proposals = scratch.proposals
        self.vote_for = scratch.vote_for
        self.vote_against = scratch.vote_against
        self.votes = scratch.votes
        self.next_proposal_id = scratch.next_proposal_id
        self.events = scratch.events

    @contextmanager
    def staged(self) -> Iterator["GovernorStorage"]:
        """
        Yield a scratch copy of the tables.

        The copy replaces the live tables when the block exits normally; if
        the block raises, the copy is dropped and the exception propagates.
        """
        if self._staging:
            raise StorageError("Nested staged writes are not supported")
        self._staging = True
        try:
            scratch = self.copy()
            try:
                yield scratch
            except BaseException:
                logger.debug("Staged governor write discarded")
                raise
            self._commit(scratch)
        finally:
            self._staging = False

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nextProposalId": self.next_proposal_id,
            "proposals": {
                pid: p.to_dict() for pid, p in sorted(self.proposals.items())
            },
            "tallies": {
                pid: self.get_tally(pid).to_dict() for pid in sorted(self.proposals)
            },
            "voteCount": len(self.votes),
        }

    def __repr__(self) -> str:
        return (
            f"<GovernorStorage proposals={len(self.proposals)} "
            f"votes={len(self.votes)} next_id={self.next_proposal_id}>"
        )

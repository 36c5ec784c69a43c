"""
Treasury Proposals

Defines the closed governor error taxonomy, the bounded-integer helpers
every storage write goes through, and the Proposal record that tracks a
single funding request from creation to execution.
"""

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Any, Dict, Optional

from ..constants import BALANCE_MAX, SECONDS_PER_MINUTE, U64_MAX


ProposalId = int


# ══════════════════════════════════════════════════════════════════════
#  ERROR TAXONOMY
# ══════════════════════════════════════════════════════════════════════

class GovernorError(IntEnum):
    """Every failure a governor operation can report."""
    AMOUNT_SHOULD_NOT_BE_ZERO = 1
    DURATION_ERROR = 2
    PROPOSAL_NOT_FOUND = 3
    PROPOSAL_ALREADY_EXECUTED = 4
    VOTE_PERIOD_ENDED = 5
    ALREADY_VOTED = 6
    QUORUM_NOT_REACHED = 7
    PROPOSAL_NOT_ACCEPTED = 8
    TRANSFER_FAILED = 9
    AMOUNT_EXCEED_CONTRACT_BALANCE = 10
    CALL_TO_TOKEN_FAILED = 11
    ARITHMETIC_OVERFLOW = 12


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class GovernanceError(Exception):
    """Base governance exception. ``kind`` names the taxonomy entry."""

    kind: Optional[GovernorError] = None

    def __init__(self, message: str = ""):
        if not message and self.kind is not None:
            message = self.kind.name
        super().__init__(message)


class AmountShouldNotBeZeroError(GovernanceError):
    """Raised when a proposal requests a zero transfer."""
    kind = GovernorError.AMOUNT_SHOULD_NOT_BE_ZERO


class DurationError(GovernanceError):
    """Raised when a proposal has a zero-length voting window."""
    kind = GovernorError.DURATION_ERROR


class ProposalNotFoundError(GovernanceError):
    kind = GovernorError.PROPOSAL_NOT_FOUND


class ProposalAlreadyExecutedError(GovernanceError):
    kind = GovernorError.PROPOSAL_ALREADY_EXECUTED


class ArithmeticOverflowError(GovernanceError):
    """Raised when a counter, timestamp or tally would leave its integer width."""
    kind = GovernorError.ARITHMETIC_OVERFLOW


# ══════════════════════════════════════════════════════════════════════
#  BOUNDED INTEGERS
# ══════════════════════════════════════════════════════════════════════

def require_uint(value: int, name: str, maximum: int = BALANCE_MAX) -> int:
    """
    Validate that *value* is an unsigned integer no wider than *maximum*.

    Non-integers and negatives are caller bugs (TypeError / ValueError);
    values above *maximum* are reported as ArithmeticOverflowError.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be unsigned, got {value}")
    if value > maximum:
        raise ArithmeticOverflowError(f"{name}={value} exceeds {maximum}")
    return value


def checked_add(a: int, b: int, name: str, maximum: int = BALANCE_MAX) -> int:
    """``a + b``, refusing to wrap past *maximum*."""
    total = a + b
    if total > maximum:
        raise ArithmeticOverflowError(f"{name}: {a} + {b} exceeds {maximum}")
    return total


# ══════════════════════════════════════════════════════════════════════
#  PROPOSAL
# ══════════════════════════════════════════════════════════════════════

class ProposalState(IntEnum):
    """Lifecycle stage, derived from the record and the current time."""
    OPEN = 0            # now <= vote_end, not executed
    VOTING_CLOSED = 1   # now > vote_end, not executed
    EXECUTED = 2        # terminal


@dataclass(frozen=True)
class Proposal:
    """
    Request for a one-time treasury transfer.

    Fields:
        recipient:   Identity receiving the funds
        vote_start:  Creation timestamp (seconds)
        vote_end:    vote_start + duration_minutes * 60
        executed:    Flips False → True exactly once
        amount:      Transfer amount, always > 0
    """
    recipient: str
    vote_start: int
    vote_end: int
    executed: bool
    amount: int

    @classmethod
    def create(
        cls,
        recipient: str,
        amount: int,
        duration_minutes: int,
        now: int,
    ) -> "Proposal":
        """Validate creation input and build an unexecuted proposal."""
        require_uint(amount, "amount")
        require_uint(duration_minutes, "duration_minutes", U64_MAX)
        require_uint(now, "now", U64_MAX)
        if amount == 0:
            raise AmountShouldNotBeZeroError("Proposal amount cannot be zero")
        if duration_minutes == 0:
            raise DurationError("Voting duration must be at least one minute")
        window = duration_minutes * SECONDS_PER_MINUTE
        if window > U64_MAX:
            raise ArithmeticOverflowError(
                f"duration_minutes={duration_minutes} overflows the timestamp width"
            )
        vote_end = checked_add(now, window, "vote_end", U64_MAX)
        return cls(
            recipient=recipient,
            vote_start=now,
            vote_end=vote_end,
            executed=False,
            amount=amount,
        )

    # ── Properties ────────────────────────────────────────────────────

    @property
    def duration_seconds(self) -> int:
        return self.vote_end - self.vote_start

    def is_open(self, now: int) -> bool:
        return not self.executed and now <= self.vote_end

    def state(self, now: int) -> ProposalState:
        if self.executed:
            return ProposalState.EXECUTED
        if self.is_open(now):
            return ProposalState.OPEN
        return ProposalState.VOTING_CLOSED

    # ── State transitions ─────────────────────────────────────────────

    def mark_executed(self) -> "Proposal":
        """Return the executed copy of this record; every other field is kept."""
        if self.executed:
            raise ProposalAlreadyExecutedError("Proposal already executed")
        return replace(self, executed=True)

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recipient": self.recipient,
            "voteStart": self.vote_start,
            "voteEnd": self.vote_end,
            "executed": self.executed,
            "amount": self.amount,
        }

    def __repr__(self) -> str:
        return (
            f"<Proposal to={self.recipient} amount={self.amount} "
            f"window=[{self.vote_start}, {self.vote_end}] executed={self.executed}>"
        )

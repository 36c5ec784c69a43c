"""
Token-Weighted Voting

Implements:
  - Vote choices: For / Against
  - Weight = caller's share of token supply as a percentage, scaled by
    VOTE_WEIGHT_SCALE to keep fractional precision under integer division
  - Per-proposal For / Against tallies that only ever increase
  - Participation figure used by the quorum check

Weight is read from the token at vote time; nothing is snapshotted when a
proposal is created.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict

from ..constants import BALANCE_MAX, PERCENT, VOTE_WEIGHT_SCALE
from .proposals import (
    GovernanceError,
    GovernorError,
    checked_add,
    require_uint,
)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class VotingError(GovernanceError):
    """Base voting error."""


class VotePeriodEndedError(VotingError):
    """Vote arrived after the proposal's vote_end."""
    kind = GovernorError.VOTE_PERIOD_ENDED


class AlreadyVotedError(VotingError):
    """Voter already cast a vote on this proposal."""
    kind = GovernorError.ALREADY_VOTED


class CallToTokenFailedError(VotingError):
    """Token balance / supply query failed or returned unusable data."""
    kind = GovernorError.CALL_TO_TOKEN_FAILED


# ══════════════════════════════════════════════════════════════════════
#  VOTE DATA
# ══════════════════════════════════════════════════════════════════════

class VoteType(IntEnum):
    FOR = 0
    AGAINST = 1

    @classmethod
    def parse(cls, value: Any) -> "VoteType":
        """Accept a VoteType, its int value, or a case-insensitive name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Invalid vote type: {value!r}") from None
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Invalid vote type: {value!r}") from None


def compute_vote_weight(balance: int, total_supply: int) -> int:
    """
    ``balance * VOTE_WEIGHT_SCALE * PERCENT // total_supply``.

    Python integers do not wrap, so the product is exact at any width; the
    result is then held to the tally width. A zero supply means the token
    reported nothing usable and is treated as a failed token call.
    """
    require_uint(balance, "balance")
    require_uint(total_supply, "total_supply")
    if total_supply == 0:
        raise CallToTokenFailedError("Token reported a total supply of zero")
    weight = balance * VOTE_WEIGHT_SCALE * PERCENT // total_supply
    return require_uint(weight, "vote weight")


@dataclass(frozen=True)
class VoteTally:
    """For / Against weight accumulated on one proposal."""
    for_weight: int = 0
    against_weight: int = 0

    @property
    def total_weight(self) -> int:
        return self.for_weight + self.against_weight

    @property
    def participation(self) -> int:
        """
        Summed ownership percent of everyone who voted, truncated.

        Each weight is a percentage scaled by VOTE_WEIGHT_SCALE, so dividing
        the sum back down yields an integer percent comparable to the quorum.
        """
        return self.total_weight // VOTE_WEIGHT_SCALE

    def quorum_reached(self, quorum_percent: int) -> bool:
        return quorum_percent <= self.participation

    @property
    def is_accepted(self) -> bool:
        """Ties pass."""
        return self.against_weight <= self.for_weight

    def add(self, choice: VoteType, weight: int) -> "VoteTally":
        """Return the tally with *weight* added to *choice*."""
        if choice == VoteType.FOR:
            return VoteTally(
                for_weight=checked_add(self.for_weight, weight, "for_weight", BALANCE_MAX),
                against_weight=self.against_weight,
            )
        return VoteTally(
            for_weight=self.for_weight,
            against_weight=checked_add(self.against_weight, weight, "against_weight", BALANCE_MAX),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "forWeight": self.for_weight,
            "againstWeight": self.against_weight,
            "participation": self.participation,
        }

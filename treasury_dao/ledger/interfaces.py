"""
Collaborator Interfaces

The governor never owns balances or time. It consumes two collaborators:

  - TokenOracle: balance_of(account), total_supply()
  - Ledger:      current_time(), caller_identity(), own_balance(),
                 transfer(to, amount)

Both may fail. Implementations signal failure by raising the exceptions
below; the governor maps them onto its own error taxonomy.
"""

from abc import ABC, abstractmethod

from ..exceptions import CollaboratorError


class TokenCallError(CollaboratorError):
    """Token contract unreachable or reverted."""


class LedgerTransferError(CollaboratorError):
    """Ledger refused a value transfer."""


class TokenOracle(ABC):
    """Read-only view of the governance token."""

    @abstractmethod
    def balance_of(self, account: str) -> int:
        """Token balance of *account*. Raises TokenCallError on failure."""

    @abstractmethod
    def total_supply(self) -> int:
        """Total token supply. Raises TokenCallError on failure."""


class Ledger(ABC):
    """Execution environment of the governor contract."""

    @abstractmethod
    def current_time(self) -> int:
        """Block timestamp in seconds."""

    @abstractmethod
    def caller_identity(self) -> str:
        """Account that submitted the current call."""

    @abstractmethod
    def own_balance(self) -> int:
        """Value held by the governor contract (the treasury)."""

    @abstractmethod
    def transfer(self, to: str, amount: int) -> None:
        """Move *amount* from the treasury to *to*. Raises LedgerTransferError."""

"""
In-Memory Ledger

A deterministic stand-in for the chain runtime the governor is deployed on:
a settable block clock, the current caller, native account balances and a
value-transfer primitive with failure injection. Snapshots let a host roll
back every balance change made during a failed call.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set

from ..constants import SECONDS_PER_MINUTE
from ..exceptions import CollaboratorError
from ..logger import get_logger
from .interfaces import Ledger, LedgerTransferError

logger = get_logger(__name__)


@dataclass(frozen=True)
class TransferRecord:
    """A completed ledger transfer."""
    sender: str
    recipient: str
    amount: int
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.sender,
            "to": self.recipient,
            "amount": self.amount,
            "timestamp": self.timestamp,
        }


class InMemoryLedger(Ledger):
    """
    Ledger bound to one contract account.

    ``own_balance`` and ``transfer`` act on *contract_address*; every other
    account is only a balance entry.
    """

    def __init__(
        self,
        contract_address: str,
        *,
        start_time: int = 0,
        balances: Optional[Dict[str, int]] = None,
    ):
        if not contract_address:
            raise ValueError("Contract address is required")
        if start_time < 0:
            raise ValueError("Start time cannot be negative")
        self.contract_address = contract_address
        self._now = start_time
        self._caller: Optional[str] = None
        self._balances: Dict[str, int] = {}
        for address, amount in (balances or {}).items():
            self.set_balance(address, amount)
        self._failing_recipients: Set[str] = set()
        self._transfers: List[TransferRecord] = []
        self._snapshots: List[Dict[str, Any]] = []

    # ── Clock ─────────────────────────────────────────────────────────

    def current_time(self) -> int:
        return self._now

    def set_time(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValueError(f"Clock cannot move backwards ({timestamp} < {self._now})")
        self._now = timestamp

    def advance(self, seconds: int = 0, minutes: int = 0) -> int:
        """Move the clock forward and return the new time."""
        delta = seconds + minutes * SECONDS_PER_MINUTE
        if delta < 0:
            raise ValueError("Clock cannot move backwards")
        self._now += delta
        return self._now

    # ── Caller ────────────────────────────────────────────────────────

    def caller_identity(self) -> str:
        if self._caller is None:
            raise CollaboratorError("No caller set for the current call")
        return self._caller

    def set_caller(self, caller: Optional[str]) -> None:
        self._caller = caller

    # ── Balances ──────────────────────────────────────────────────────

    def balance_of(self, address: str) -> int:
        return self._balances.get(address, 0)

    def set_balance(self, address: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Balance of {address} cannot be negative")
        self._balances[address] = amount

    def own_balance(self) -> int:
        return self.balance_of(self.contract_address)

    # ── Transfers ─────────────────────────────────────────────────────

    def fail_transfers_to(self, recipient: str, fail: bool = True) -> None:
        """Make transfers to *recipient* fail (or succeed again)."""
        if fail:
            self._failing_recipients.add(recipient)
        else:
            self._failing_recipients.discard(recipient)

    def transfer(self, to: str, amount: int) -> None:
        if amount < 0:
            raise LedgerTransferError("Transfer amount cannot be negative")
        if to in self._failing_recipients:
            raise LedgerTransferError(f"Recipient {to} rejected the transfer")
        available = self.own_balance()
        if amount > available:
            raise LedgerTransferError(
                f"Contract balance {available} < transfer amount {amount}"
            )
        self._balances[self.contract_address] = available - amount
        self._balances[to] = self._balances.get(to, 0) + amount
        self._transfers.append(
            TransferRecord(
                sender=self.contract_address,
                recipient=to,
                amount=amount,
                timestamp=self._now,
            )
        )
        logger.debug(f"Ledger transfer: {self.contract_address} → {to} amount={amount}")

    @property
    def transfers(self) -> List[TransferRecord]:
        return list(self._transfers)

    # ── Snapshots ─────────────────────────────────────────────────────

    def snapshot(self) -> int:
        """Create a balance snapshot and return its id."""
        self._snapshots.append({
            "balances": dict(self._balances),
            "transfers": list(self._transfers),
        })
        return len(self._snapshots) - 1

    def revert(self, snapshot_id: int) -> None:
        """Restore balances to *snapshot_id* and drop it with every newer snapshot."""
        if snapshot_id < 0 or snapshot_id >= len(self._snapshots):
            raise ValueError(f"Invalid snapshot ID: {snapshot_id}")
        snapshot = self._snapshots[snapshot_id]
        self._balances = snapshot["balances"]
        self._transfers = snapshot["transfers"]
        self._snapshots = self._snapshots[:snapshot_id]

    def release(self, snapshot_id: int) -> None:
        """Keep current state and forget *snapshot_id* and newer snapshots."""
        if snapshot_id < 0 or snapshot_id >= len(self._snapshots):
            raise ValueError(f"Invalid snapshot ID: {snapshot_id}")
        self._snapshots = self._snapshots[:snapshot_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contract": self.contract_address,
            "time": self._now,
            "balances": dict(self._balances),
            "transfers": [t.to_dict() for t in self._transfers],
        }

    def __repr__(self) -> str:
        return (
            f"<InMemoryLedger contract={self.contract_address} "
            f"time={self._now} treasury={self.own_balance()}>"
        )

"""
Contract Host

Runs governor calls the way a chain runtime does:

    host = ContractHost.deploy(token, quorum_percent=50, treasury_balance=1000)
    result = host.call(ALICE, "propose", BOB, 100, 1)
    if not result:
        print(result.error.name)

Every call is serialized behind a lock, executes as the given caller, and is
all-or-nothing: governor storage is staged by the governor itself, and the
host snapshots ledger balances and reverts them if the call fails. Failures
come back as a CallResult carrying the GovernorError kind instead of an
exception.
"""

import threading
from typing import Any, Dict, Optional

from ..governance.governor import Governor
from ..governance.proposals import GovernanceError, GovernorError
from ..logger import get_logger
from .interfaces import TokenOracle
from .memory import InMemoryLedger

logger = get_logger(__name__)

DEFAULT_CONTRACT_ADDRESS = "0x" + "7e" * 20

_WRITE_METHODS = frozenset({"propose", "vote", "execute"})
_READ_METHODS = frozenset({"get_proposal", "next_proposal_id", "now", "get_tally", "has_voted"})


class CallResult:
    """Outcome of a single hosted call."""

    __slots__ = ("success", "error", "message", "value")

    def __init__(
        self,
        success: bool = True,
        error: Optional[GovernorError] = None,
        message: str = "",
        value: Any = None,
    ):
        self.success = success
        self.error = error
        self.message = message
        self.value = value

    def __bool__(self) -> bool:
        return self.success

    def __eq__(self, other) -> bool:
        if not isinstance(other, CallResult):
            return NotImplemented
        return (self.success, self.error, self.value) == (other.success, other.error, other.value)

    __hash__ = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "error": self.error.name if self.error is not None else None,
            "message": self.message,
        }

    def __repr__(self) -> str:
        if self.success:
            return f"<CallResult ok value={self.value!r}>"
        return f"<CallResult err={self.error.name if self.error else None}>"


class ContractHost:
    """Serialized, transactional entry point to one governor."""

    def __init__(self, ledger: InMemoryLedger, governor: Governor):
        self.ledger = ledger
        self.governor = governor
        self._lock = threading.RLock()

    @classmethod
    def deploy(
        cls,
        governance_token: TokenOracle,
        quorum_percent: int,
        *,
        treasury_balance: int = 0,
        contract_address: str = DEFAULT_CONTRACT_ADDRESS,
        start_time: int = 0,
    ) -> "ContractHost":
        """Create a ledger holding *treasury_balance* and deploy a governor on it."""
        ledger = InMemoryLedger(
            contract_address,
            start_time=start_time,
            balances={contract_address: treasury_balance},
        )
        governor = Governor(ledger, governance_token, quorum_percent)
        logger.info(
            f"Governor hosted at {contract_address} with treasury amount={treasury_balance}"
        )
        return cls(ledger, governor)

    # ── Dispatch ──────────────────────────────────────────────────────

    def call(self, caller: str, method: str, *args: Any) -> CallResult:
        """
        Invoke governor *method* as *caller*.

        Governor failures are returned as a failed CallResult; any other
        exception is a host or programming error and propagates after the
        ledger has been rolled back.
        """
        if method not in _WRITE_METHODS and method not in _READ_METHODS:
            raise ValueError(f"Unknown governor method: {method}")
        if not caller:
            raise ValueError("Caller is required")

        with self._lock:
            snapshot_id = self.ledger.snapshot()
            self.ledger.set_caller(caller)
            try:
                value = getattr(self.governor, method)(*args)
            except GovernanceError as e:
                self.ledger.revert(snapshot_id)
                logger.debug(f"{caller} {method}{args} → {e.kind.name if e.kind else e}")
                return CallResult(success=False, error=e.kind, message=str(e))
            except BaseException:
                self.ledger.revert(snapshot_id)
                raise
            else:
                self.ledger.release(snapshot_id)
            finally:
                self.ledger.set_caller(None)
        return CallResult(success=True, value=value)

    def propose(self, caller: str, recipient: str, amount: int, duration_minutes: int) -> CallResult:
        return self.call(caller, "propose", recipient, amount, duration_minutes)

    def vote(self, caller: str, proposal_id: int, choice: Any) -> CallResult:
        return self.call(caller, "vote", proposal_id, choice)

    def execute(self, caller: str, proposal_id: int) -> CallResult:
        return self.call(caller, "execute", proposal_id)

    # ── Environment ───────────────────────────────────────────────────

    def advance(self, seconds: int = 0, minutes: int = 0) -> int:
        with self._lock:
            return self.ledger.advance(seconds=seconds, minutes=minutes)

    def fund(self, amount: int) -> int:
        """Add *amount* to the treasury and return the new balance."""
        if amount < 0:
            raise ValueError("Funding amount cannot be negative")
        with self._lock:
            balance = self.ledger.own_balance() + amount
            self.ledger.set_balance(self.ledger.contract_address, balance)
            return balance

    @property
    def treasury_balance(self) -> int:
        return self.ledger.own_balance()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ledger": self.ledger.to_dict(),
            "governor": self.governor.to_dict(),
        }

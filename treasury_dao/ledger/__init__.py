"""
Ledger collaborators

Provides:
  - TokenOracle / Ledger              (interfaces.py)
  - InMemoryLedger / TransferRecord   (memory.py)

ContractHost lives in ``treasury_dao.ledger.host`` and is imported from
there, since it depends on the governance package.
"""

from .interfaces import (
    Ledger,
    LedgerTransferError,
    TokenCallError,
    TokenOracle,
)
from .memory import (
    InMemoryLedger,
    TransferRecord,
)

__all__ = [
    # Interfaces
    "Ledger",
    "LedgerTransferError",
    "TokenCallError",
    "TokenOracle",
    # In-memory runtime
    "InMemoryLedger",
    "TransferRecord",
]

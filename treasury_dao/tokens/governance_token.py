"""
Governance Token

Fungible token whose balances decide vote weight. Mirrors the read side of
a PSP22 / ERC-20 contract:
  - balance_of(owner)
  - total_supply()
  - name / symbol / decimals metadata

The full initial supply is minted at deployment, to the deployer by default
or split across a genesis allocation. Transfers and later mints are not
part of this token; the governor only ever reads it.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..constants import BALANCE_MAX, U8_MAX
from ..ledger.interfaces import TokenCallError, TokenOracle
from ..logger import get_logger

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class TokenError(Exception):
    """Invalid token deployment parameters."""


class TokenFrozenError(TokenCallError):
    """Raised when the token is frozen and refuses every call."""


# ══════════════════════════════════════════════════════════════════════
#  TOKEN
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TokenMetadata:
    name: Optional[str]
    symbol: Optional[str]
    decimals: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
        }


class GovernanceToken(TokenOracle):
    """
    Read-only governance token.

    A frozen token fails every query with TokenFrozenError, standing in for
    an unreachable or reverting token contract.
    """

    def __init__(
        self,
        initial_supply: int,
        name: Optional[str] = None,
        symbol: Optional[str] = None,
        decimals: int = 18,
        deployer: str = "",
        *,
        allocations: Optional[Dict[str, int]] = None,
    ):
        """
        Args:
            initial_supply: Total minted at deployment
            name: Optional human-readable name
            symbol: Optional ticker
            decimals: Fractional digits (0-255)
            deployer: Receives the whole supply when no allocation is given
            allocations: Genesis split; must sum to initial_supply
        """
        if initial_supply < 0:
            raise TokenError("Initial supply cannot be negative")
        if initial_supply > BALANCE_MAX:
            raise TokenError(f"Initial supply {initial_supply} exceeds max {BALANCE_MAX}")
        if not 0 <= decimals <= U8_MAX:
            raise TokenError(f"Decimals must be 0-{U8_MAX}, got {decimals}")

        balances: Dict[str, int] = {}
        if allocations:
            for owner, amount in allocations.items():
                if not owner:
                    raise TokenError("Allocation owner cannot be empty")
                if amount < 0:
                    raise TokenError(f"Allocation for {owner} cannot be negative")
                balances[owner] = balances.get(owner, 0) + amount
            allocated = sum(balances.values())
            if allocated != initial_supply:
                raise TokenError(
                    f"Allocations sum to {allocated}, expected {initial_supply}"
                )
        elif initial_supply > 0:
            if not deployer:
                raise TokenError("Deployer is required to receive the initial supply")
            balances[deployer] = initial_supply

        self.metadata = TokenMetadata(name=name, symbol=symbol, decimals=decimals)
        self.deployer = deployer
        self._total_supply = initial_supply
        self._balances = balances
        self._frozen = False
        logger.info(
            f"Governance token deployed: {symbol or '?'} ({name or 'unnamed'}), "
            f"supply={initial_supply}, holders={len(balances)}"
        )

    # ── Metadata ──────────────────────────────────────────────────────

    @property
    def name(self) -> Optional[str]:
        return self.metadata.name

    @property
    def symbol(self) -> Optional[str]:
        return self.metadata.symbol

    @property
    def decimals(self) -> int:
        return self.metadata.decimals

    # ── Freeze ────────────────────────────────────────────────────────

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True
        logger.warning(f"Token {self.symbol} frozen")

    def unfreeze(self) -> None:
        self._frozen = False
        logger.info(f"Token {self.symbol} unfrozen")

    def _require_not_frozen(self):
        if self._frozen:
            raise TokenFrozenError(f"Token {self.symbol} is frozen")

    # ── Read-only views ───────────────────────────────────────────────

    def balance_of(self, account: str) -> int:
        self._require_not_frozen()
        return self._balances.get(account, 0)

    def total_supply(self) -> int:
        self._require_not_frozen()
        return self._total_supply

    def holders(self) -> Dict[str, int]:
        return dict(self._balances)

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.metadata.to_dict(),
            "totalSupply": self._total_supply,
            "holders": len(self._balances),
            "frozen": self._frozen,
        }

    def __repr__(self) -> str:
        return f"<GovernanceToken {self.symbol} supply={self._total_supply}>"

"""
Governance token

Provides:
  - GovernanceToken : read-only PSP22-style balance / supply oracle
"""

from .governance_token import (
    GovernanceToken,
    TokenError,
    TokenFrozenError,
    TokenMetadata,
)

__all__ = [
    "GovernanceToken",
    "TokenError",
    "TokenFrozenError",
    "TokenMetadata",
]

"""
Treasury DAO TOML Configuration Loader

Loads a deployment description (governor, token, treasury, logging) and an
optional scripted scenario from a TOML file, with environment variable
overrides.

Environment variable mapping:
    [governor] quorum_percent → TREASURY_DAO_QUORUM_PERCENT
    [treasury] balance        → TREASURY_DAO_TREASURY_BALANCE
    [logging] level           → TREASURY_DAO_LOG_LEVEL

Example:

    [governor]
    quorum_percent = 50

    [token]
    symbol = "GOV"
    initial_supply = 1000
    allocations = { alice = 600, bob = 400 }

    [treasury]
    balance = 1000

    [[scenario]]
    action = "propose"
    caller = "alice"
    recipient = "carol"
    amount = 100
    duration_minutes = 1
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from ..constants import (
    GOVERNOR_TOKEN_NAME,
    GOVERNOR_TOKEN_SYMBOL,
    LOG_LEVEL,
    MAX_QUORUM_PERCENT,
    default_quorum_percent,
)
from ..exceptions import ConfigurationError
from ..logger import get_logger

logger = get_logger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
SCENARIO_ACTIONS = ("propose", "vote", "execute", "advance", "fund")


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------


@dataclass
class GovernorSectionConfig:
    """[governor] section."""
    quorum_percent: int = field(default_factory=default_quorum_percent)
    contract_address: str = "treasury"
    start_time: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GovernorSectionConfig":
        return cls(
            quorum_percent=_as_int(
                data.get("quorum_percent", default_quorum_percent()), "governor.quorum_percent"
            ),
            contract_address=str(data.get("contract_address", "treasury")),
            start_time=_as_int(data.get("start_time", 0), "governor.start_time"),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("TREASURY_DAO_QUORUM_PERCENT"):
            self.quorum_percent = _as_int(v, "TREASURY_DAO_QUORUM_PERCENT")


@dataclass
class TokenSectionConfig:
    """[token] section."""
    name: str = field(default_factory=lambda: str(GOVERNOR_TOKEN_NAME))
    symbol: str = field(default_factory=lambda: str(GOVERNOR_TOKEN_SYMBOL))
    decimals: int = 18
    initial_supply: int = 0
    deployer: str = ""
    allocations: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenSectionConfig":
        allocations = data.get("allocations", {})
        if not isinstance(allocations, dict):
            raise ConfigurationError("token.allocations must be a table")
        return cls(
            name=str(data.get("name", GOVERNOR_TOKEN_NAME)),
            symbol=str(data.get("symbol", GOVERNOR_TOKEN_SYMBOL)),
            decimals=_as_int(data.get("decimals", 18), "token.decimals"),
            initial_supply=_as_int(data.get("initial_supply", 0), "token.initial_supply"),
            deployer=str(data.get("deployer", "")),
            allocations={
                str(owner): _as_int(amount, f"token.allocations.{owner}")
                for owner, amount in allocations.items()
            },
        )


@dataclass
class TreasurySectionConfig:
    """[treasury] section."""
    balance: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TreasurySectionConfig":
        return cls(balance=_as_int(data.get("balance", 0), "treasury.balance"))

    def apply_env(self) -> None:
        if v := os.environ.get("TREASURY_DAO_TREASURY_BALANCE"):
            self.balance = _as_int(v, "TREASURY_DAO_TREASURY_BALANCE")


@dataclass
class LoggingSectionConfig:
    """[logging] section."""
    level: str = field(default_factory=lambda: str(LOG_LEVEL))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingSectionConfig":
        return cls(level=str(data.get("level", LOG_LEVEL)).upper())

    def apply_env(self) -> None:
        if v := os.environ.get("TREASURY_DAO_LOG_LEVEL"):
            self.level = v.upper()


@dataclass
class ScenarioStep:
    """One [[scenario]] entry."""
    action: str
    caller: str = ""
    recipient: str = ""
    amount: int = 0
    duration_minutes: int = 0
    proposal_id: int = 0
    choice: str = "for"
    seconds: int = 0
    minutes: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any], index: int = 0) -> "ScenarioStep":
        if "action" not in data:
            raise ConfigurationError(f"scenario[{index}] is missing 'action'")
        prefix = f"scenario[{index}]"
        return cls(
            action=str(data["action"]).lower(),
            caller=str(data.get("caller", "")),
            recipient=str(data.get("recipient", "")),
            amount=_as_int(data.get("amount", 0), f"{prefix}.amount"),
            duration_minutes=_as_int(data.get("duration_minutes", 0), f"{prefix}.duration_minutes"),
            proposal_id=_as_int(data.get("proposal_id", 0), f"{prefix}.proposal_id"),
            choice=str(data.get("choice", "for")).lower(),
            seconds=_as_int(data.get("seconds", 0), f"{prefix}.seconds"),
            minutes=_as_int(data.get("minutes", 0), f"{prefix}.minutes"),
        )

    def validate(self, index: int = 0) -> None:
        if self.action not in SCENARIO_ACTIONS:
            raise ConfigurationError(
                f"scenario[{index}]: unknown action {self.action!r} "
                f"(expected one of {', '.join(SCENARIO_ACTIONS)})"
            )
        if self.action in ("propose", "vote", "execute") and not self.caller:
            raise ConfigurationError(f"scenario[{index}]: {self.action} requires a caller")
        if self.action == "vote" and self.choice not in ("for", "against"):
            raise ConfigurationError(f"scenario[{index}]: invalid choice {self.choice!r}")
        for name in ("amount", "duration_minutes", "proposal_id", "seconds", "minutes"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"scenario[{index}].{name} cannot be negative")

    def to_dict(self) -> Dict[str, Any]:
        base: Dict[str, Any] = {"action": self.action}
        if self.action == "propose":
            base.update(caller=self.caller, recipient=self.recipient,
                        amount=self.amount, duration_minutes=self.duration_minutes)
        elif self.action == "vote":
            base.update(caller=self.caller, proposal_id=self.proposal_id, choice=self.choice)
        elif self.action == "execute":
            base.update(caller=self.caller, proposal_id=self.proposal_id)
        elif self.action == "advance":
            base.update(seconds=self.seconds, minutes=self.minutes)
        elif self.action == "fund":
            base.update(amount=self.amount)
        return base


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


@dataclass
class DAOConfig:
    """Complete deployment + scenario description."""
    governor: GovernorSectionConfig = field(default_factory=GovernorSectionConfig)
    token: TokenSectionConfig = field(default_factory=TokenSectionConfig)
    treasury: TreasurySectionConfig = field(default_factory=TreasurySectionConfig)
    logging: LoggingSectionConfig = field(default_factory=LoggingSectionConfig)
    scenario: List[ScenarioStep] = field(default_factory=list)

    # --- factories --------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DAOConfig":
        """Create DAOConfig from a parsed TOML dict."""
        steps = data.get("scenario", [])
        if not isinstance(steps, list):
            raise ConfigurationError("scenario must be an array of tables")
        return cls(
            governor=GovernorSectionConfig.from_dict(data.get("governor", {})),
            token=TokenSectionConfig.from_dict(data.get("token", {})),
            treasury=TreasurySectionConfig.from_dict(data.get("treasury", {})),
            logging=LoggingSectionConfig.from_dict(data.get("logging", {})),
            scenario=[ScenarioStep.from_dict(s, i) for i, s in enumerate(steps)],
        )

    @classmethod
    def from_file(cls, config_path: str) -> "DAOConfig":
        """
        Load configuration from a TOML file.

        A missing file yields the defaults (with env overrides); a malformed
        one raises ConfigurationError.
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    # --- env overrides ----------------------------------------------------

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.governor.apply_env()
        self.treasury.apply_env()
        self.logging.apply_env()

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Returns:
            True if all valid

        Raises:
            ConfigurationError: on invalid config
        """
        if not 0 <= self.governor.quorum_percent <= MAX_QUORUM_PERCENT:
            raise ConfigurationError(
                f"quorum_percent must be 0-{MAX_QUORUM_PERCENT}, "
                f"got {self.governor.quorum_percent}"
            )
        if not self.governor.contract_address:
            raise ConfigurationError("governor.contract_address cannot be empty")
        if self.governor.start_time < 0:
            raise ConfigurationError("governor.start_time cannot be negative")
        if self.treasury.balance < 0:
            raise ConfigurationError("treasury.balance cannot be negative")
        if self.token.initial_supply < 0:
            raise ConfigurationError("token.initial_supply cannot be negative")
        if self.token.allocations:
            allocated = sum(self.token.allocations.values())
            if allocated != self.token.initial_supply:
                raise ConfigurationError(
                    f"token allocations sum to {allocated}, "
                    f"expected initial_supply {self.token.initial_supply}"
                )
        elif self.token.initial_supply > 0 and not self.token.deployer:
            raise ConfigurationError("token.deployer is required without allocations")
        if self.logging.level not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid logging.level: {self.logging.level}")
        for index, step in enumerate(self.scenario):
            step.validate(index)
        return True

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics, NOT for re-creating TOML)."""
        return {
            "governor": {
                "quorum_percent": self.governor.quorum_percent,
                "contract_address": self.governor.contract_address,
                "start_time": self.governor.start_time,
            },
            "token": {
                "name": self.token.name,
                "symbol": self.token.symbol,
                "decimals": self.token.decimals,
                "initial_supply": self.token.initial_supply,
                "deployer": self.token.deployer,
                "allocations": dict(self.token.allocations),
            },
            "treasury": {
                "balance": self.treasury.balance,
            },
            "logging": {
                "level": self.logging.level,
            },
            "scenario": [step.to_dict() for step in self.scenario],
        }


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> DAOConfig:
    """
    Load DAO configuration.

    Resolution order:
        1. Explicit *path* argument
        2. TREASURY_DAO_CONFIG env var
        3. ./dao.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("TREASURY_DAO_CONFIG", "dao.toml")

    return DAOConfig.from_file(path)

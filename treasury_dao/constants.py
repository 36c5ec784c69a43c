"""
Treasury DAO Constants

This module consolidates all global constants and environment configuration
used throughout the codebase. Constants are organized by category for easy
reference and maintenance.
"""
import ast
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

GOVERNOR_DEFAULTS = {
    'GOVERNOR_DEFAULT_QUORUM_PERCENT': '50',
    'GOVERNOR_TOKEN_NAME':             'Governance Token',
    'GOVERNOR_TOKEN_SYMBOL':           'GOV',
}

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_ENABLED':                'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# ==================================================================================
# GOVERNOR PROTOCOL CONSTANTS
# ==================================================================================
# Changing any of these alters the vote arithmetic of every deployed governor.
VOTE_WEIGHT_SCALE = 100_000      # Fixed-point factor applied to ownership percent
PERCENT = 100
SECONDS_PER_MINUTE = 60

U8_MAX = 2**8 - 1
U64_MAX = 2**64 - 1              # ProposalId / timestamp width
BALANCE_MAX = 2**128 - 1         # Balance / tally width

MAX_QUORUM_PERCENT = 100


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
DEFAULTS = GOVERNOR_DEFAULTS | LOGGER_DEFAULTS
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Avoids exceptions by only calling ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
        # ast.literal_eval expects "True"/"False"
        return ast.literal_eval(s.title())
    return v

for key, default_raw in DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    # Parses only boolean-literals. Leaves other values untouched.
    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)


def default_quorum_percent() -> int:
    """Quorum used when a deployment does not name one explicitly."""
    try:
        return int(str(GOVERNOR_DEFAULT_QUORUM_PERCENT).strip())
    except ValueError:
        return int(GOVERNOR_DEFAULT_QUORUM_PERCENT.default())

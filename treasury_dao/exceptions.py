"""
Treasury DAO Exceptions

Package-wide exception classes. Governance failures live in
``treasury_dao.governance`` and carry a ``GovernorError`` kind.
"""


class TreasuryDAOException(Exception):
    """Base exception for the treasury DAO."""
    pass


class ConfigurationError(TreasuryDAOException):
    """Configuration error."""
    pass


class CollaboratorError(TreasuryDAOException):
    """A call into the token or ledger collaborator failed."""
    pass

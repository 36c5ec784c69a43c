"""
Treasury DAO Package

Core imports are lazily loaded so that importing the package does not
configure logging or pull in the CLI. For direct module access, import from
submodules:

    from treasury_dao.governance import Governor, VoteType
    from treasury_dao.ledger.host import ContractHost
    from treasury_dao.tokens import GovernanceToken
"""

__version__ = "1.0.0"


# Lazy imports to avoid loading everything at package import
def __getattr__(name):
    """Lazy module loading."""
    if name == 'Governor':
        from .governance import Governor
        return Governor
    elif name == 'ContractHost':
        from .ledger.host import ContractHost
        return ContractHost
    elif name == 'GovernanceToken':
        from .tokens import GovernanceToken
        return GovernanceToken
    raise AttributeError(f"module 'treasury_dao' has no attribute {name!r}")

__all__ = ['Governor', 'ContractHost', 'GovernanceToken']

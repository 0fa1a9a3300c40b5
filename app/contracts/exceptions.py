"""
Contract exceptions.

Exception Hierarchy:
    NotFoundError
    └── ContractNotFoundError (404)

    ConflictError
    └── ContractLockedError - Both parties agreed; the contract is final (409)
"""

from core.exceptions import ConflictError, NotFoundError


class ContractNotFoundError(NotFoundError):
    default_error_code: str = "CONTRACT_NOT_FOUND"


class ContractLockedError(ConflictError):
    """Raised when changing a contract both parties have agreed to."""

    default_error_code: str = "CONTRACT_LOCKED"

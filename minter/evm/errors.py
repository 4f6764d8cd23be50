"""
Error types and classification for chain calls.
"""
from web3.exceptions import ContractLogicError

from minter.evm.models import ErrorKind


class MinterError(Exception):
    """Base exception for minter errors."""
    pass


class ConfigReadError(MinterError):
    """Raised when no sale configuration probe succeeds."""
    pass


class InvalidContractAddressError(MinterError):
    """Raised when a contract address cannot be parsed."""
    pass


_REVERT_MARKERS = ("execution reverted", "call_exception", "revert")
_INSUFFICIENT_FUNDS_MARKERS = ("insufficient funds", "insufficient_funds")


def classify_error(error: BaseException) -> ErrorKind:
    """
    Classify an exception raised while submitting a mint.

    Args:
        error: The exception raised by the chain client

    Returns:
        ErrorKind for the failure
    """
    message = str(error).lower()

    # Checked first: some nodes report an underfunded call as a revert
    if any(marker in message for marker in _INSUFFICIENT_FUNDS_MARKERS):
        return ErrorKind.INSUFFICIENT_FUNDS

    if isinstance(error, ContractLogicError):
        return ErrorKind.CALL_REVERTED

    if any(marker in message for marker in _REVERT_MARKERS):
        return ErrorKind.CALL_REVERTED

    return ErrorKind.OTHER


def describe_error(kind: ErrorKind, error: BaseException) -> str:
    """Human-readable reason for a classified error."""
    if kind == ErrorKind.CALL_REVERTED:
        return "Call reverted (sale inactive, supply exhausted or wallet limit reached)"
    if kind == ErrorKind.INSUFFICIENT_FUNDS:
        return "Insufficient funds"
    return f"Error: {str(error)[:50]}"

"""
Exceptions for the MultiSend SDK.
"""
from typing import Optional


class MultiSendError(Exception):
    """Base exception for all SDK errors."""
    pass


class EncodingError(MultiSendError, ValueError):
    """
    Raised when a transaction cannot be encoded.

    Attributes:
        message: Description of the problem, without the field prefix
        field: Name of the offending field or ABI parameter, if known
    """

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        if field:
            message = f"{field}: {message}"
        super().__init__(message)


class InvalidAddressError(EncodingError):
    """Raised when an address is not a valid 20-byte hex address."""
    pass


class ValueOutOfRangeError(EncodingError):
    """Raised when an integer does not fit in the target ABI type."""
    pass


class AbiResolutionError(EncodingError):
    """Raised when a function or parameter type cannot be resolved from the ABI."""
    pass

"""
Exceptions for the Gasless Transfer SDK.

Every failure the transfer workflow can report maps to one ``ErrorKind``;
the kind is what callers should branch on, the message is for humans.
"""
from typing import Optional

from .models import ErrorKind


class GaslessError(Exception):
    """Base exception for all SDK errors."""
    kind: Optional[ErrorKind] = None


class ConfigurationError(GaslessError, ValueError):
    """Raised when required configuration is missing or invalid."""
    kind = ErrorKind.INITIALIZATION


class PreconditionError(GaslessError):
    """Raised when a submission is rejected before any network call."""
    kind = ErrorKind.PRECONDITION


class InitializationError(GaslessError):
    """Raised when the smart account cannot be initialized."""
    kind = ErrorKind.INITIALIZATION


class InstructionBuildError(GaslessError):
    """Raised when a chain instruction cannot be encoded."""
    kind = ErrorKind.INSTRUCTION_BUILD


class RelayError(GaslessError):
    """Base exception for relayer errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class QuoteError(RelayError):
    """Raised when the relayer does not return a usable quote."""
    kind = ErrorKind.QUOTE


class ExecutionError(RelayError):
    """Raised when a quote cannot be signed or submitted."""
    kind = ErrorKind.EXECUTION


class SettlementError(RelayError):
    """Raised when an operation settles unsuccessfully or cannot be tracked."""
    kind = ErrorKind.SETTLEMENT


class SettlementTimeoutError(SettlementError):
    """Raised when an operation does not reach a terminal status in time."""
    kind = ErrorKind.SETTLEMENT_TIMEOUT


class PersistenceError(GaslessError):
    """Raised when the backend refuses a transaction record. Never fatal."""
    kind = ErrorKind.PERSISTENCE

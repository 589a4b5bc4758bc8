# stakedapp/errors.py
"""
StakeDApp: Error Taxonomy and Classification

Every failure the core can observe is reduced to one ErrorKind before it
reaches the presentation layer. Provider and vendor specific signal shapes
(EIP-1193 numeric codes, ethers-style string codes, JSON-RPC server errors,
web3 exceptions) are only inspected here, in classify().

Usage:
    try:
        await gateway.submit_stake(amount)
    except StakeError as e:
        session.record_error(e.kind, "stake")

    kind = classify(exc)

Updated: 2026-10-16
Version: 0.1.0
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Optional

from web3.exceptions import Web3Exception


# =============================================================================
# Error Kinds
# =============================================================================

class ErrorKind(Enum):
    """Closed set of error kinds surfaced to the presentation layer."""
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    USER_REJECTED = "user_rejected"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INVALID_AMOUNT = "invalid_amount"
    CALL_FAILED = "call_failed"
    UNKNOWN = "unknown"

    # Session level
    NOT_CONNECTED = "not_connected"
    ACTION_PENDING = "action_pending"
    RECONNECT_REQUIRED = "reconnect_required"

    @property
    def is_informational(self) -> bool:
        """True for notices that do not represent a failure."""
        return self is ErrorKind.RECONNECT_REQUIRED


# EIP-1193 provider error codes
USER_REJECTED_REQUEST = 4001
UNAUTHORIZED = 4100
UNSUPPORTED_METHOD = 4200
PROVIDER_DISCONNECTED = 4900
CHAIN_DISCONNECTED = 4901

# JSON-RPC error codes
EXECUTION_REVERTED = 3
METHOD_NOT_FOUND = -32601
INTERNAL_ERROR = -32603
SERVER_ERROR_MIN = -32099
SERVER_ERROR_MAX = -32000

# ethers-style string codes some providers still emit
_STRING_CODES = {
    "ACTION_REJECTED": ErrorKind.USER_REJECTED,
    "INSUFFICIENT_FUNDS": ErrorKind.INSUFFICIENT_FUNDS,
    "CALL_EXCEPTION": ErrorKind.CALL_FAILED,
    "NETWORK_ERROR": ErrorKind.CALL_FAILED,
    "SERVER_ERROR": ErrorKind.CALL_FAILED,
    "TIMEOUT": ErrorKind.CALL_FAILED,
}


# =============================================================================
# Exceptions
# =============================================================================

class StakeError(Exception):
    """Base exception for the staking core. Carries its ErrorKind."""
    kind: ErrorKind = ErrorKind.UNKNOWN


class ProviderUnavailableError(StakeError):
    """No wallet transport present."""
    kind = ErrorKind.PROVIDER_UNAVAILABLE


class UserRejectedError(StakeError):
    """User declined the wallet prompt."""
    kind = ErrorKind.USER_REJECTED


class TransactionRejectedError(UserRejectedError):
    """User declined a transaction in the wallet UI."""
    pass


class InsufficientFundsError(StakeError):
    """Account balance too low to cover amount plus fee."""
    kind = ErrorKind.INSUFFICIENT_FUNDS


class InvalidAmountError(StakeError):
    """Amount is not a positive, representable quantity."""
    kind = ErrorKind.INVALID_AMOUNT


class CallFailedError(StakeError):
    """Contract revert or network fault."""
    kind = ErrorKind.CALL_FAILED


class NotConnectedError(StakeError):
    """No account or contract binding available."""
    kind = ErrorKind.NOT_CONNECTED


class ActionPendingError(StakeError):
    """An action of the same kind is already in flight."""
    kind = ErrorKind.ACTION_PENDING


class ProviderRPCError(StakeError):
    """
    Raw error reported by the wallet transport.

    Mirrors EIP-1193's ProviderRpcError: a message, a numeric (or vendor
    string) code and optional data.
    """

    def __init__(self, message: str, code: Any = INTERNAL_ERROR, data: Any = None):
        super().__init__(message)
        self.code = code
        self.data = data

    @property
    def kind(self) -> ErrorKind:  # type: ignore[override]
        return _classify_rpc(self.code, str(self))

    def __repr__(self) -> str:
        return f"ProviderRPCError(code={self.code!r}, message={str(self)!r})"


# Errors a transport or node can legitimately produce
TRANSPORT_ERRORS = (ProviderRPCError, Web3Exception, OSError, asyncio.TimeoutError)


# =============================================================================
# Classification
# =============================================================================

def _classify_rpc(code: Any, message: str) -> ErrorKind:
    text = message.lower()

    if isinstance(code, str):
        if code in _STRING_CODES:
            return _STRING_CODES[code]
        if code.lstrip("-").isdigit():
            code = int(code)

    if code == USER_REJECTED_REQUEST:
        return ErrorKind.USER_REJECTED
    if "insufficient funds" in text:
        return ErrorKind.INSUFFICIENT_FUNDS
    if code in (PROVIDER_DISCONNECTED, CHAIN_DISCONNECTED, EXECUTION_REVERTED, INTERNAL_ERROR):
        return ErrorKind.CALL_FAILED
    if isinstance(code, int) and SERVER_ERROR_MIN <= code <= SERVER_ERROR_MAX:
        return ErrorKind.CALL_FAILED
    if "revert" in text:
        return ErrorKind.CALL_FAILED
    return ErrorKind.UNKNOWN


def classify(exc: BaseException) -> ErrorKind:
    """
    Map any failure signal to an ErrorKind.

    Args:
        exc: Exception raised by a provider, gateway or the core itself

    Returns:
        The matching ErrorKind; UNKNOWN when nothing matches
    """
    if isinstance(exc, StakeError):
        return exc.kind

    code = getattr(exc, "code", None)
    if code is not None:
        kind = _classify_rpc(code, str(exc))
        if kind is not ErrorKind.UNKNOWN:
            return kind

    if "insufficient funds" in str(exc).lower():
        return ErrorKind.INSUFFICIENT_FUNDS
    if isinstance(exc, Web3Exception):
        return ErrorKind.CALL_FAILED
    if isinstance(exc, (OSError, asyncio.TimeoutError)):
        return ErrorKind.CALL_FAILED
    return ErrorKind.UNKNOWN


def to_stake_error(exc: BaseException, action: Optional[str] = None) -> StakeError:
    """
    Convert a transport failure on a write path into the gateway taxonomy.

    Rejections and insufficient funds keep their meaning; every other
    transport failure becomes CallFailedError.
    """
    kind = classify(exc)
    text = f"{action} failed: {exc}" if action else str(exc)
    if kind is ErrorKind.USER_REJECTED:
        return TransactionRejectedError(text)
    if kind is ErrorKind.INSUFFICIENT_FUNDS:
        return InsufficientFundsError(text)
    return CallFailedError(text)


# =============================================================================
# User-facing Messages
# =============================================================================

_MESSAGES = {
    ErrorKind.PROVIDER_UNAVAILABLE:
        "No wallet provider found. Please install a wallet to use the dApp.",
    ErrorKind.INSUFFICIENT_FUNDS: "Insufficient funds to complete the transaction.",
    ErrorKind.INVALID_AMOUNT: "Please enter a valid amount greater than zero.",
    ErrorKind.NOT_CONNECTED: "Please connect your wallet first.",
    ErrorKind.ACTION_PENDING: "A transaction of this kind is already pending.",
    ErrorKind.RECONNECT_REQUIRED: "Please connect your wallet to continue.",
}


def describe(kind: ErrorKind, action: Optional[str] = None) -> str:
    """
    User-facing message for an error kind in the context of an action.

    Args:
        kind: Error kind
        action: "connect", "stake", "unstake", "resync" or None
    """
    if kind is ErrorKind.USER_REJECTED:
        if action == "connect":
            return "Please connect your wallet to use the dApp."
        return "Transaction was cancelled."

    if kind in _MESSAGES:
        return _MESSAGES[kind]

    if action == "connect":
        return "Failed to connect wallet. Please try again."
    if action == "resync":
        return "Failed to fetch balances. Please try again."
    if action in ("stake", "unstake"):
        return f"Failed to {action}. Please try again."
    return "Something went wrong. Please try again."

# tests/test_errors.py
"""
StakeDApp error classification tests

Vendor signals (EIP-1193 codes, ethers string codes, JSON-RPC server
errors, web3 exceptions) -> ErrorKind, and ErrorKind -> user message.
"""

import asyncio

from web3.exceptions import Web3Exception

from stakedapp.errors import (
    CallFailedError,
    ErrorKind,
    InsufficientFundsError,
    InvalidAmountError,
    NotConnectedError,
    ProviderRPCError,
    TransactionRejectedError,
    UserRejectedError,
    classify,
    describe,
    to_stake_error,
)


class VendorError(Exception):
    def __init__(self, message, code):
        super().__init__(message)
        self.code = code


def test_user_rejection_code():
    assert classify(ProviderRPCError("User rejected the request.", code=4001)) is ErrorKind.USER_REJECTED
    assert classify(VendorError("user rejected action", "ACTION_REJECTED")) is ErrorKind.USER_REJECTED
    assert classify(VendorError("rejected", "4001")) is ErrorKind.USER_REJECTED


def test_insufficient_funds_by_message_and_code():
    err = ProviderRPCError("insufficient funds for gas * price + value", code=-32000)
    assert classify(err) is ErrorKind.INSUFFICIENT_FUNDS
    assert classify(VendorError("not enough", "INSUFFICIENT_FUNDS")) is ErrorKind.INSUFFICIENT_FUNDS
    assert classify(ValueError("Insufficient funds for transfer")) is ErrorKind.INSUFFICIENT_FUNDS


def test_call_failures():
    assert classify(ProviderRPCError("disconnected", code=4900)) is ErrorKind.CALL_FAILED
    assert classify(ProviderRPCError("chain disconnected", code=4901)) is ErrorKind.CALL_FAILED
    assert classify(ProviderRPCError("execution reverted", code=3)) is ErrorKind.CALL_FAILED
    assert classify(ProviderRPCError("header not found", code=-32050)) is ErrorKind.CALL_FAILED
    assert classify(ProviderRPCError("internal")) is ErrorKind.CALL_FAILED
    assert classify(Web3Exception("bad response")) is ErrorKind.CALL_FAILED
    assert classify(ConnectionRefusedError()) is ErrorKind.CALL_FAILED
    assert classify(asyncio.TimeoutError()) is ErrorKind.CALL_FAILED


def test_unknown_fallback():
    assert classify(RuntimeError("boom")) is ErrorKind.UNKNOWN
    assert classify(ProviderRPCError("unsupported", code=4200)) is ErrorKind.UNKNOWN


def test_stake_errors_carry_kind():
    assert classify(InvalidAmountError("bad")) is ErrorKind.INVALID_AMOUNT
    assert classify(NotConnectedError("no")) is ErrorKind.NOT_CONNECTED
    assert TransactionRejectedError("no").kind is ErrorKind.USER_REJECTED
    assert isinstance(TransactionRejectedError("no"), UserRejectedError)


def test_to_stake_error():
    rejected = to_stake_error(ProviderRPCError("denied", code=4001), "stake")
    assert isinstance(rejected, TransactionRejectedError)
    assert "stake failed" in str(rejected)

    funds = to_stake_error(ProviderRPCError("insufficient funds", code=-32000))
    assert isinstance(funds, InsufficientFundsError)

    for exc in (ProviderRPCError("gone", code=4900), OSError("reset"), RuntimeError("?")):
        assert isinstance(to_stake_error(exc, "unstake"), CallFailedError)


def test_messages():
    assert describe(ErrorKind.USER_REJECTED, "connect") == "Please connect your wallet to use the dApp."
    assert describe(ErrorKind.USER_REJECTED, "stake") == "Transaction was cancelled."
    assert describe(ErrorKind.INSUFFICIENT_FUNDS, "unstake") == "Insufficient funds to complete the transaction."
    assert describe(ErrorKind.CALL_FAILED, "stake") == "Failed to stake. Please try again."
    assert describe(ErrorKind.CALL_FAILED, "unstake") == "Failed to unstake. Please try again."
    assert describe(ErrorKind.CALL_FAILED, "resync") == "Failed to fetch balances. Please try again."
    assert describe(ErrorKind.UNKNOWN, "connect") == "Failed to connect wallet. Please try again."
    assert describe(ErrorKind.UNKNOWN) == "Something went wrong. Please try again."
    assert describe(ErrorKind.RECONNECT_REQUIRED) == "Please connect your wallet to continue."


def test_informational_kinds():
    assert ErrorKind.RECONNECT_REQUIRED.is_informational
    assert not ErrorKind.CALL_FAILED.is_informational

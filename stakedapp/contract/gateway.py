# stakedapp/contract/gateway.py
"""
StakeDApp Contract: Staking Gateway

Binds the StakingContract address and call schema to one Signer.

    read_total_staked()          -> int
    read_user_staked(account)    -> int
    submit_stake(amount)         -> PendingTransaction
    submit_unstake(amount)       -> PendingTransaction
    await_confirmation(pending)  -> receipt dict

Reads are pure eth_call queries. Writes go through the wallet's
eth_sendTransaction; stake attaches value equal to the amount, unstake
attaches none. Nothing is retried here.

A gateway belongs to one (account, network) pair. When either changes the
session invalidates it and builds a new one.

Usage:
    gateway = ContractGateway(signer, contract_address)
    pending = await gateway.submit_stake(Web3.to_wei(5, "ether"))
    receipt = await gateway.await_confirmation(pending)

Updated: 2026-10-16
Version: 0.1.0
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from eth_abi.exceptions import DecodingError
from web3 import Web3

from ..errors import (
    TRANSPORT_ERRORS,
    CallFailedError,
    InvalidAmountError,
    NotConnectedError,
    to_stake_error,
)
from ..models import PendingTransaction, TxKind
from ..units import MAX_UINT256
from .schema import CallSchema

if TYPE_CHECKING:
    from ..adapters.wallet import Signer

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

FN_TOTAL_STAKED = "totalStaked"
FN_STAKED_BALANCES = "stakedBalances"
FN_STAKE = "stake"
FN_UNSTAKE = "unstake"

DEFAULT_POLL_INTERVAL = 1.0


# =============================================================================
# Gateway
# =============================================================================

class ContractGateway:
    """StakingContract call interface bound to one signer."""

    def __init__(
        self,
        signer: Signer,
        contract_address: str,
        schema: Optional[CallSchema] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        """
        Args:
            signer: Account-bound signer from the provider adapter
            contract_address: Deployed StakingContract address
            schema: Call schema (defaults to the bundled ABI)
            poll_interval: Seconds between receipt polls
        """
        self.signer = signer
        self.contract_address = Web3.to_checksum_address(contract_address)
        self.schema = schema or CallSchema.load()
        self.schema.require(FN_TOTAL_STAKED, FN_STAKED_BALANCES, FN_STAKE, FN_UNSTAKE)
        self.poll_interval = poll_interval
        self._valid = True

    @property
    def account(self) -> str:
        return self.signer.address

    @property
    def is_valid(self) -> bool:
        return self._valid

    def invalidate(self) -> None:
        """Mark this binding dead. Reads and submits fail afterwards."""
        self._valid = False

    def _require_valid(self) -> None:
        if not self._valid:
            raise NotConnectedError("Contract binding was invalidated")

    # =========================================================================
    # Read Operations
    # =========================================================================

    async def _read_uint(self, name: str, *args: Any) -> int:
        self._require_valid()
        data = self.schema.encode_call(name, *args)
        try:
            result = await self.signer.call({"to": self.contract_address, "data": data})
            (value,) = self.schema.decode_output(name, result)
        except TRANSPORT_ERRORS as e:
            raise CallFailedError(f"{name} failed: {e}") from e
        except (DecodingError, ValueError, TypeError) as e:
            raise CallFailedError(f"{name} returned malformed data: {e}") from e
        return int(value)

    async def read_total_staked(self) -> int:
        """Total amount staked in the contract, in base units."""
        return await self._read_uint(FN_TOTAL_STAKED)

    async def read_user_staked(self, account: str) -> int:
        """Amount staked by an account, in base units."""
        return await self._read_uint(FN_STAKED_BALANCES, Web3.to_checksum_address(account))

    # =========================================================================
    # Write Operations
    # =========================================================================

    async def _submit(self, kind: TxKind, amount: int) -> PendingTransaction:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidAmountError(f"Amount must be an integer in base units, got {amount!r}")
        if amount <= 0 or amount > MAX_UINT256:
            raise InvalidAmountError(f"Amount out of range: {amount}")
        self._require_valid()

        tx: Dict[str, Any] = {
            "to": self.contract_address,
            "data": self.schema.encode_call(kind.value, amount),
        }
        if self.schema.function(kind.value).payable:
            tx["value"] = hex(amount)

        try:
            tx_hash = await self.signer.send_transaction(tx)
        except TRANSPORT_ERRORS as e:
            raise to_stake_error(e, kind.value) from e

        logger.info(f"{kind.value} submitted: amount={amount} tx={tx_hash}")
        return PendingTransaction(
            tx_hash=tx_hash,
            kind=kind,
            submitted_amount=amount,
            account=self.account,
        )

    async def submit_stake(self, amount: int) -> PendingTransaction:
        """
        Send stake(amount) with value = amount.

        Raises:
            InvalidAmountError: amount <= 0
            TransactionRejectedError: user declined in the wallet
            InsufficientFundsError: balance below amount + fee
            CallFailedError: revert or network fault
        """
        return await self._submit(TxKind.STAKE, amount)

    async def submit_unstake(self, amount: int) -> PendingTransaction:
        """Send unstake(amount). Same failure taxonomy as submit_stake."""
        return await self._submit(TxKind.UNSTAKE, amount)

    async def await_confirmation(self, pending: PendingTransaction) -> Dict[str, Any]:
        """
        Wait until the transaction is mined.

        Polls eth_getTransactionReceipt every poll_interval seconds. No
        timeout is applied here; cancel the awaiting task to stop.

        Returns:
            The receipt

        Raises:
            CallFailedError: reverted (status 0) or the provider failed
        """
        while True:
            try:
                receipt = await self.signer.get_transaction_receipt(pending.tx_hash)
            except TRANSPORT_ERRORS as e:
                raise CallFailedError(f"Receipt lookup failed for {pending.tx_hash}: {e}") from e

            if receipt is not None:
                break
            await asyncio.sleep(self.poll_interval)

        status = receipt.get("status")
        if isinstance(status, str):
            status = int(status, 16)
        if status == 0:
            logger.warning(f"{pending.kind.value} reverted: tx={pending.tx_hash}")
            raise CallFailedError(f"Transaction reverted: {pending.tx_hash}")

        logger.info(
            f"{pending.kind.value} confirmed: tx={pending.tx_hash} "
            f"block={receipt.get('blockNumber')}"
        )
        return receipt

# stakedapp/adapters/mock.py
"""
StakeDApp Adapters: Mock Provider

In-memory EthereumProvider that simulates a wallet plus the staking
contract. Used by the test-suite and by demos that have no node.

Behaviour knobs:
    reject_connect           eth_requestAccounts fails with code 4001
    reject_next_transaction  next eth_sendTransaction fails with code 4001
    fail_next[method]        raise the given error once for that method
    auto_mine                mine each transaction as soon as it is sent
    call_gate                asyncio.Event that eth_call waits on after
                             computing its result (simulates slow reads)

Usage:
    provider = MockEthereumProvider(
        accounts=["0x" + "ab" * 20],
        total_staked=Web3.to_wei(100, "ether"),
        staked={"0x" + "ab" * 20: Web3.to_wei(10, "ether")},
    )
    await provider.switch_accounts([])     # emits accountsChanged([])
"""

from __future__ import annotations

import asyncio
import hashlib
from typing import Any, Dict, List, Optional, Tuple

from eth_abi import encode
from web3 import Web3

from ..config import DEFAULT_CONTRACT_ADDRESS
from ..contract.schema import CallSchema
from ..errors import (
    EXECUTION_REVERTED,
    UNSUPPORTED_METHOD,
    USER_REJECTED_REQUEST,
    ProviderRPCError,
)
from .provider import (
    ETH_ACCOUNTS,
    ETH_CALL,
    ETH_CHAIN_ID,
    ETH_GET_TRANSACTION_RECEIPT,
    ETH_REQUEST_ACCOUNTS,
    ETH_SEND_TRANSACTION,
    EVENT_ACCOUNTS_CHANGED,
    EVENT_CHAIN_CHANGED,
    EthereumProvider,
)


DEFAULT_BALANCE = 100 * 10**18
DEFAULT_GAS_FEE = 10**15


class MockEthereumProvider(EthereumProvider):
    """
    Mock Ethereum provider for testing.

    Simulates wallet JSON-RPC responses and a StakingContract deployed at
    contract_address.
    """

    def __init__(
        self,
        accounts: Optional[List[str]] = None,
        chain_id: int = 1,
        contract_address: str = DEFAULT_CONTRACT_ADDRESS,
        balances: Optional[Dict[str, int]] = None,
        staked: Optional[Dict[str, int]] = None,
        total_staked: Optional[int] = None,
        gas_fee: int = DEFAULT_GAS_FEE,
        auto_mine: bool = True,
    ):
        super().__init__()
        accounts = ["0x" + "1" * 40] if accounts is None else accounts
        self.accounts = [Web3.to_checksum_address(a) for a in accounts]
        self.chain_id = chain_id
        self.contract_address = Web3.to_checksum_address(contract_address)
        self.gas_fee = gas_fee
        self.auto_mine = auto_mine

        self.balances: Dict[str, int] = {a: DEFAULT_BALANCE for a in self.accounts}
        for address, amount in (balances or {}).items():
            self.balances[Web3.to_checksum_address(address)] = amount

        self.staked: Dict[str, int] = {
            Web3.to_checksum_address(a): v for a, v in (staked or {}).items()
        }
        self.total_staked = sum(self.staked.values()) if total_staked is None else total_staked

        self.reject_connect = False
        self.reject_next_transaction = False
        self.fail_next: Dict[str, ProviderRPCError] = {}
        self.call_gate: Optional[asyncio.Event] = None

        self.requests: List[Tuple[str, Any]] = []
        self.block_number = 1
        self._nonce = 0
        self._pending: Dict[str, Dict[str, Any]] = {}
        self._receipts: Dict[str, Dict[str, Any]] = {}
        self._schema = CallSchema.load()

    # =========================================================================
    # Introspection
    # =========================================================================

    def calls(self, method: str) -> int:
        """Number of requests made for a method."""
        return sum(1 for m, _ in self.requests if m == method)

    @property
    def pending_hashes(self) -> List[str]:
        return list(self._pending)

    # =========================================================================
    # JSON-RPC
    # =========================================================================

    async def request(self, method: str, params: Any = None) -> Any:
        """Handle JSON-RPC request."""
        self.requests.append((method, params))

        if method in self.fail_next:
            raise self.fail_next.pop(method)

        if method == ETH_REQUEST_ACCOUNTS:
            if self.reject_connect:
                raise ProviderRPCError("User rejected the request.", code=USER_REJECTED_REQUEST)
            return list(self.accounts)

        elif method == ETH_ACCOUNTS:
            return list(self.accounts)

        elif method == ETH_CHAIN_ID:
            return hex(self.chain_id)

        elif method == ETH_CALL:
            result = self._handle_call(params[0])
            if self.call_gate is not None:
                await self.call_gate.wait()
            return result

        elif method == ETH_SEND_TRANSACTION:
            return self._handle_send(params[0])

        elif method == ETH_GET_TRANSACTION_RECEIPT:
            return self._receipts.get(params[0])

        else:
            raise ProviderRPCError(f"Unsupported method: {method}", code=UNSUPPORTED_METHOD)

    def _handle_call(self, tx: Dict[str, Any]) -> str:
        if Web3.to_checksum_address(tx["to"]) != self.contract_address:
            return "0x"

        fn, args = self._schema.decode_call(tx["data"])
        if fn.name == "totalStaked":
            value = self.total_staked
        elif fn.name == "stakedBalances":
            value = self.staked.get(Web3.to_checksum_address(args[0]), 0)
        else:
            raise ProviderRPCError("execution reverted", code=EXECUTION_REVERTED)
        return "0x" + encode(["uint256"], [value]).hex()

    def _handle_send(self, tx: Dict[str, Any]) -> str:
        if self.reject_next_transaction:
            self.reject_next_transaction = False
            raise ProviderRPCError(
                "MetaMask Tx Signature: User denied transaction signature.",
                code=USER_REJECTED_REQUEST,
            )

        sender = Web3.to_checksum_address(tx["from"])
        value = int(tx.get("value", "0x0"), 16)
        if self.balances.get(sender, 0) < value + self.gas_fee:
            raise ProviderRPCError("insufficient funds for gas * price + value", code=-32000)

        fn, args = self._schema.decode_call(tx["data"])

        self._nonce += 1
        tx_hash = "0x" + hashlib.sha256(
            f"{self._nonce}:{sender}:{tx['data']}".encode()
        ).hexdigest()
        self._pending[tx_hash] = {
            "from": sender,
            "function": fn.name,
            "amount": args[0] if args else 0,
            "value": value,
        }

        if self.auto_mine:
            self.mine()
        return tx_hash

    # =========================================================================
    # Chain Simulation
    # =========================================================================

    def mine(self) -> int:
        """Execute all pending transactions in one block. Returns count."""
        mined = 0
        for tx_hash, tx in list(self._pending.items()):
            ok = self._execute(tx)
            self._receipts[tx_hash] = {
                "transactionHash": tx_hash,
                "from": tx["from"],
                "to": self.contract_address,
                "blockNumber": hex(self.block_number),
                "status": "0x1" if ok else "0x0",
            }
            del self._pending[tx_hash]
            mined += 1
        self.block_number += 1
        return mined

    def _execute(self, tx: Dict[str, Any]) -> bool:
        sender, amount = tx["from"], tx["amount"]
        self.balances[sender] = self.balances.get(sender, 0) - self.gas_fee

        if tx["function"] == "stake":
            if amount == 0 or tx["value"] != amount:
                return False
            self.balances[sender] -= tx["value"]
            self.staked[sender] = self.staked.get(sender, 0) + amount
            self.total_staked += amount
            return True

        if tx["function"] == "unstake":
            if amount == 0 or self.staked.get(sender, 0) < amount:
                return False
            self.staked[sender] -= amount
            self.total_staked -= amount
            self.balances[sender] += amount
            return True

        return False

    # =========================================================================
    # Wallet Events
    # =========================================================================

    async def switch_accounts(self, accounts: List[str]) -> None:
        """Simulate the user switching or revoking accounts in the wallet."""
        self.accounts = [Web3.to_checksum_address(a) for a in accounts]
        for a in self.accounts:
            self.balances.setdefault(a, DEFAULT_BALANCE)
        await self.emit(EVENT_ACCOUNTS_CHANGED, list(self.accounts))

    async def switch_chain(self, chain_id: int) -> None:
        """Simulate a network switch."""
        self.chain_id = chain_id
        await self.emit(EVENT_CHAIN_CHANGED, hex(chain_id))

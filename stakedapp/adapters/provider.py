# stakedapp/adapters/provider.py
"""
StakeDApp Adapters: Wallet Transports

EthereumProvider is the injected wallet transport: the Python counterpart
of an EIP-1193 provider (window.ethereum in a browser). It exposes a single
JSON-RPC style request() plus an event registry for accountsChanged and
chainChanged.

JSONRPCEthereumProvider talks to a node over HTTP through web3's
AsyncHTTPProvider. Nodes do not push wallet events, so it polls
eth_accounts / eth_chainId and emits accountsChanged / chainChanged when
they move.

Usage:
    provider = JSONRPCEthereumProvider("http://127.0.0.1:8545")
    accounts = await provider.request("eth_requestAccounts")
    provider.on("accountsChanged", handler)

    watcher = asyncio.create_task(provider.watch(interval=2.0))

Updated: 2026-10-16
Version: 0.1.0
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

import aiohttp
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import Web3Exception

from ..errors import (
    METHOD_NOT_FOUND,
    PROVIDER_DISCONNECTED,
    UNSUPPORTED_METHOD,
    ProviderRPCError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

ETH_REQUEST_ACCOUNTS = "eth_requestAccounts"
ETH_ACCOUNTS = "eth_accounts"
ETH_CHAIN_ID = "eth_chainId"
ETH_CALL = "eth_call"
ETH_SEND_TRANSACTION = "eth_sendTransaction"
ETH_GET_TRANSACTION_RECEIPT = "eth_getTransactionReceipt"

EVENT_ACCOUNTS_CHANGED = "accountsChanged"
EVENT_CHAIN_CHANGED = "chainChanged"


# =============================================================================
# Provider Interface
# =============================================================================

class EthereumProvider(ABC):
    """
    Abstract Ethereum provider interface.

    Implementations keep a per-event listener list; emit() delivers to
    listeners in registration order and awaits coroutine results.
    """

    def __init__(self):
        self._event_handlers: Dict[str, List[Callable]] = {}

    @abstractmethod
    async def request(self, method: str, params: Any = None) -> Any:
        """Send JSON-RPC request."""
        pass

    def on(self, event: str, callback: Callable) -> None:
        """Subscribe to events."""
        self._event_handlers.setdefault(event, []).append(callback)

    def remove_listener(self, event: str, callback: Callable) -> None:
        """Unsubscribe from events."""
        handlers = self._event_handlers.get(event, [])
        if callback in handlers:
            handlers.remove(callback)

    def listener_count(self, event: str) -> int:
        return len(self._event_handlers.get(event, []))

    async def emit(self, event: str, data: Any = None) -> None:
        """Deliver an event to every registered listener."""
        for handler in list(self._event_handlers.get(event, [])):
            result = handler(data)
            if inspect.isawaitable(result):
                await result


# =============================================================================
# HTTP JSON-RPC Provider
# =============================================================================

class JSONRPCEthereumProvider(EthereumProvider):
    """
    Provider backed by a node's JSON-RPC endpoint.

    Suits development nodes with unlocked accounts (anvil, hardhat, geth
    --dev): the node signs eth_sendTransaction for its own accounts.
    eth_requestAccounts falls back to eth_accounts when the node does not
    implement it.
    """

    def __init__(self, endpoint: str, request_kwargs: Optional[Dict[str, Any]] = None):
        """
        Args:
            endpoint: HTTP(S) RPC URL
            request_kwargs: Passed to aiohttp (e.g. {"timeout": 30})
        """
        super().__init__()
        self.endpoint = endpoint
        self._w3 = AsyncWeb3(AsyncHTTPProvider(endpoint, request_kwargs=request_kwargs))
        self._accounts: Optional[List[str]] = None
        self._chain_id: Optional[str] = None

    async def request(self, method: str, params: Any = None) -> Any:
        if method == ETH_REQUEST_ACCOUNTS:
            try:
                return await self._raw_request(method, params)
            except ProviderRPCError as e:
                if e.code not in (METHOD_NOT_FOUND, UNSUPPORTED_METHOD):
                    raise
                logger.debug(f"{method} not supported by node, using {ETH_ACCOUNTS}")
                return await self._raw_request(ETH_ACCOUNTS, [])
        return await self._raw_request(method, params)

    async def _raw_request(self, method: str, params: Any) -> Any:
        try:
            response = await self._w3.provider.make_request(method, params or [])
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError, Web3Exception) as e:
            raise ProviderRPCError(
                f"Transport error on {method}: {e}", code=PROVIDER_DISCONNECTED
            ) from e

        error = response.get("error")
        if error:
            if isinstance(error, str):
                raise ProviderRPCError(error)
            raise ProviderRPCError(
                error.get("message", "Unknown error"),
                code=error.get("code", -32000),
                data=error.get("data"),
            )
        return response.get("result")

    async def poll_changes(self) -> None:
        """Compare accounts and chain with the last poll and emit on change."""
        accounts = await self._raw_request(ETH_ACCOUNTS, [])
        chain_id = await self._raw_request(ETH_CHAIN_ID, [])

        if self._chain_id is not None and chain_id != self._chain_id:
            logger.info(f"Chain changed: {self._chain_id} -> {chain_id}")
            self._chain_id = chain_id
            await self.emit(EVENT_CHAIN_CHANGED, chain_id)
        self._chain_id = chain_id

        if self._accounts is not None and accounts != self._accounts:
            logger.info(f"Accounts changed: {len(self._accounts)} -> {len(accounts)}")
            self._accounts = accounts
            await self.emit(EVENT_ACCOUNTS_CHANGED, accounts)
        self._accounts = accounts

    async def watch(self, interval: float = 2.0) -> None:
        """Poll for wallet changes until cancelled."""
        while True:
            try:
                await self.poll_changes()
            except ProviderRPCError as e:
                logger.warning(f"Change poll failed: {e}")
            await asyncio.sleep(interval)

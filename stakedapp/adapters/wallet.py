# stakedapp/adapters/wallet.py
"""
StakeDApp Adapters: Provider Adapter

Wraps an injected EthereumProvider and exposes what the session needs:
connect() for account access, get_signer() for a per-account call handle,
and a single exclusive subscription to accountsChanged / chainChanged.

Usage:
    adapter = ProviderAdapter(provider)
    accounts = await adapter.connect()
    signer = adapter.get_signer()

    adapter.subscribe(session.on_accounts_changed, session.on_chain_changed)
    ...
    adapter.unsubscribe()

Updated: 2026-10-16
Version: 0.1.0
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from web3 import Web3

from ..errors import (
    TRANSPORT_ERRORS,
    CallFailedError,
    ErrorKind,
    NotConnectedError,
    ProviderRPCError,
    ProviderUnavailableError,
    UserRejectedError,
    classify,
)
from .provider import (
    ETH_CALL,
    ETH_GET_TRANSACTION_RECEIPT,
    ETH_REQUEST_ACCOUNTS,
    ETH_SEND_TRANSACTION,
    EVENT_ACCOUNTS_CHANGED,
    EVENT_CHAIN_CHANGED,
    EthereumProvider,
)

logger = logging.getLogger(__name__)


AccountsCallback = Callable[[List[str]], Union[Awaitable[None], None]]
ChainCallback = Callable[[Any], Union[Awaitable[None], None]]


def _checksum(addresses: List[str]) -> List[str]:
    return [Web3.to_checksum_address(a) for a in addresses]


# =============================================================================
# Signer
# =============================================================================

class Signer:
    """
    Provider-bound capability to submit calls for one account.

    Signing happens inside the wallet; this only routes requests with the
    right "from" address.
    """

    def __init__(self, provider: EthereumProvider, address: str):
        self._provider = provider
        self.address = Web3.to_checksum_address(address)

    async def call(self, tx: Dict[str, Any], block: str = "latest") -> str:
        """eth_call; returns the raw hex result."""
        return await self._provider.request(ETH_CALL, [dict(tx, **{"from": self.address}), block])

    async def send_transaction(self, tx: Dict[str, Any]) -> str:
        """eth_sendTransaction; returns the transaction hash."""
        return await self._provider.request(
            ETH_SEND_TRANSACTION, [dict(tx, **{"from": self.address})]
        )

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self._provider.request(ETH_GET_TRANSACTION_RECEIPT, [tx_hash])

    def __repr__(self) -> str:
        return f"Signer({self.address})"


# =============================================================================
# Subscription
# =============================================================================

class Subscription:
    """Registration of one accountsChanged / chainChanged listener pair."""

    def __init__(
        self,
        provider: EthereumProvider,
        accounts_listener: Callable,
        chain_listener: Callable,
    ):
        self._provider = provider
        self._accounts_listener = accounts_listener
        self._chain_listener = chain_listener
        self.active = True
        provider.on(EVENT_ACCOUNTS_CHANGED, accounts_listener)
        provider.on(EVENT_CHAIN_CHANGED, chain_listener)

    def cancel(self) -> None:
        if not self.active:
            return
        self._provider.remove_listener(EVENT_ACCOUNTS_CHANGED, self._accounts_listener)
        self._provider.remove_listener(EVENT_CHAIN_CHANGED, self._chain_listener)
        self.active = False


# =============================================================================
# Provider Adapter
# =============================================================================

class ProviderAdapter:
    """
    Adapter over the injected wallet transport.

    Holds at most one active Subscription; subscribing again cancels the
    previous one first so no event is delivered twice.
    """

    def __init__(self, provider: Optional[EthereumProvider] = None):
        """
        Args:
            provider: Injected wallet transport, or None if absent
        """
        self._provider = provider
        self._accounts: List[str] = []
        self._subscription: Optional[Subscription] = None

    @property
    def provider(self) -> Optional[EthereumProvider]:
        return self._provider

    @property
    def available(self) -> bool:
        return self._provider is not None

    @property
    def accounts(self) -> List[str]:
        return list(self._accounts)

    @property
    def subscription(self) -> Optional[Subscription]:
        return self._subscription

    def _require_provider(self) -> EthereumProvider:
        """Get provider, raising if not available."""
        if self._provider is None:
            raise ProviderUnavailableError("No Ethereum provider available")
        return self._provider

    # =========================================================================
    # Connection
    # =========================================================================

    async def connect(self) -> List[str]:
        """
        Request account access from the wallet.

        Returns:
            Checksummed account addresses, active account first

        Raises:
            ProviderUnavailableError: No transport injected
            UserRejectedError: User declined, or no account was exposed
            ProviderRPCError: Provider reported another error
            CallFailedError: Transport failure
        """
        provider = self._require_provider()

        try:
            accounts = await provider.request(ETH_REQUEST_ACCOUNTS)
        except TRANSPORT_ERRORS as e:
            if classify(e) is ErrorKind.USER_REJECTED:
                raise UserRejectedError(str(e)) from e
            if isinstance(e, ProviderRPCError):
                raise
            raise CallFailedError(f"Account request failed: {e}") from e

        if not accounts:
            raise UserRejectedError("No accounts available")

        self._accounts = _checksum(accounts)
        logger.info(f"Wallet connected: {len(self._accounts)} account(s)")
        return self.accounts

    def get_signer(self, account: Optional[str] = None) -> Signer:
        """
        Build a signer for an exposed account.

        Args:
            account: Address to bind; defaults to the active account

        Raises:
            NotConnectedError: connect() has not succeeded, or account is
                not among the exposed accounts
        """
        provider = self._require_provider()
        if not self._accounts:
            raise NotConnectedError("Wallet not connected")

        if account is None:
            return Signer(provider, self._accounts[0])

        account = Web3.to_checksum_address(account)
        if account not in self._accounts:
            raise NotConnectedError(f"Account {account} not available")
        return Signer(provider, account)

    def reset(self) -> None:
        """Forget exposed accounts (local disconnect)."""
        self._accounts = []

    # =========================================================================
    # Events
    # =========================================================================

    def subscribe(
        self,
        on_accounts_changed: AccountsCallback,
        on_chain_changed: ChainCallback,
    ) -> Subscription:
        """
        Register for account and network change notifications.

        Any previous subscription is cancelled first.
        """
        provider = self._require_provider()
        self.unsubscribe()

        def accounts_listener(accounts: List[str]):
            self._accounts = _checksum(accounts or [])
            return on_accounts_changed(self.accounts)

        def chain_listener(chain_id: Any):
            return on_chain_changed(chain_id)

        self._subscription = Subscription(provider, accounts_listener, chain_listener)
        return self._subscription

    def unsubscribe(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

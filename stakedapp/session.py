# stakedapp/session.py
"""
StakeDApp: Session State Machine

Owns the connection status, the active account, the contract binding and
the StakePosition snapshot, and moves them together:

    DISCONNECTED --request_connect--> CONNECTING --ok--> CONNECTED
         ^                                 |                |
         +------------- failure -----------+                |
         +---- disconnect / accountsChanged([]) ------------+
         +---- chainChanged (from any state, with reload) --+

Balance resyncs are tagged with a generation number. Anything that
invalidates the binding (disconnect, account switch, network switch) or a
newer resync bumps the generation, and results from older generations are
dropped instead of applied.

Usage:
    session = WalletSession(adapter, gateway_factory)
    result = await session.request_connect()
    await session.resync()
    session.disconnect()

Updated: 2026-10-16
Version: 0.1.0
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import replace
from typing import Any, Callable, List, Optional

from .adapters.wallet import ProviderAdapter, Signer
from .contract.gateway import ContractGateway
from .errors import ErrorKind, StakeError, classify, describe
from .models import (
    ZERO_POSITION,
    ActionResult,
    ConnectionStatus,
    Session,
    StakePosition,
)

logger = logging.getLogger(__name__)


GatewayFactory = Callable[[Signer], ContractGateway]


class WalletSession:
    """
    Session state machine.

    The only writer of Session and StakePosition. Owns the adapter
    subscription exclusively.
    """

    def __init__(
        self,
        adapter: ProviderAdapter,
        gateway_factory: GatewayFactory,
        on_reload: Optional[Callable[[], Any]] = None,
    ):
        """
        Args:
            adapter: Provider adapter over the injected transport
            gateway_factory: Builds a ContractGateway for a signer
            on_reload: Called after a network switch has reset the session
        """
        self._adapter = adapter
        self._gateway_factory = gateway_factory
        self._on_reload = on_reload

        self._state = Session()
        self._position: StakePosition = ZERO_POSITION
        self._gateway: Optional[ContractGateway] = None
        self._generation = 0
        self.reload_count = 0

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def state(self) -> Session:
        """Copy of the current session record."""
        return replace(self._state)

    @property
    def status(self) -> ConnectionStatus:
        return self._state.status

    @property
    def account(self) -> Optional[str]:
        return self._state.account

    @property
    def position(self) -> StakePosition:
        return self._position

    @property
    def gateway(self) -> Optional[ContractGateway]:
        return self._gateway

    @property
    def last_error(self) -> Optional[ErrorKind]:
        return self._state.last_error

    @property
    def generation(self) -> int:
        return self._generation

    # =========================================================================
    # Error Recording
    # =========================================================================

    def record_error(self, kind: ErrorKind, action: Optional[str] = None) -> None:
        """Overwrite the last error. Only the most recent one is kept."""
        self._state.last_error = kind
        self._state.error_message = describe(kind, action)
        if kind.is_informational:
            logger.info(f"{self._state.error_message}")
        else:
            logger.warning(f"{action or 'session'}: {kind.value}")

    def clear_error(self) -> None:
        self._state.last_error = None
        self._state.error_message = ""

    # =========================================================================
    # Internal Transitions
    # =========================================================================

    def _drop_binding(self) -> None:
        if self._gateway is not None:
            self._gateway.invalidate()
            self._gateway = None
        self._generation += 1

    def _reset(self) -> None:
        """Back to DISCONNECTED with no account, binding or position."""
        self._drop_binding()
        self._state.status = ConnectionStatus.DISCONNECTED
        self._state.account = None
        self._state.position_stale = False
        self._position = ZERO_POSITION

    def _bind(self, account: str) -> None:
        """Build a fresh signer + gateway for account and enter CONNECTED."""
        signer = self._adapter.get_signer(account)
        gateway = self._gateway_factory(signer)
        self._drop_binding()
        self._gateway = gateway
        self._state.account = signer.address
        self._state.status = ConnectionStatus.CONNECTED

    # =========================================================================
    # Transitions
    # =========================================================================

    async def request_connect(self) -> ActionResult:
        """
        DISCONNECTED -> CONNECTING -> CONNECTED, then resync.

        On failure the session returns to DISCONNECTED with the classified
        error recorded.
        """
        if self._state.status is ConnectionStatus.CONNECTING:
            self.record_error(ErrorKind.ACTION_PENDING, "connect")
            return ActionResult.failure(ErrorKind.ACTION_PENDING, "connect")
        if self._state.status is ConnectionStatus.CONNECTED:
            return ActionResult.success()

        self._state.status = ConnectionStatus.CONNECTING
        self.clear_error()
        generation = self._generation

        try:
            accounts = await self._adapter.connect()
            if generation != self._generation:
                # session was reset while the wallet prompt was open
                logger.info("Connect superseded by a session reset")
                return ActionResult.failure(ErrorKind.RECONNECT_REQUIRED, "connect")
            self._bind(accounts[0])
        except Exception as e:
            kind = classify(e)
            if not isinstance(e, StakeError):
                logger.warning(f"Unexpected connect failure: {e!r}")
            if generation == self._generation:
                self._reset()
            self.record_error(kind, "connect")
            return ActionResult.failure(kind, "connect")

        self._adapter.subscribe(self.on_accounts_changed, self.on_chain_changed)
        logger.info(f"Session connected: {self._state.account}")

        await self.resync()
        return ActionResult.success()

    async def on_accounts_changed(self, accounts: List[str]) -> None:
        """
        Wallet reported a new account list.

        Empty list: external disconnect. Otherwise rebind to the first
        account and resync.
        """
        if not accounts:
            was_active = self._state.status is not ConnectionStatus.DISCONNECTED
            logger.info("Wallet exposed no accounts, disconnecting")
            self._adapter.unsubscribe()
            self._reset()
            if was_active:
                self.record_error(ErrorKind.RECONNECT_REQUIRED)
            return

        if self._state.status is not ConnectionStatus.CONNECTED:
            logger.debug("accountsChanged ignored: session not connected")
            return

        try:
            self._bind(accounts[0])
        except StakeError as e:
            self._adapter.unsubscribe()
            self._reset()
            self.record_error(e.kind, "connect")
            return

        logger.info(f"Active account changed: {self._state.account}")
        await self.resync()

    async def on_chain_changed(self, chain_id: Any = None) -> None:
        """
        Network switched: nothing cached survives.

        Drops the subscription and binding, resets to a fresh session and
        hands control to the reload hook.
        """
        logger.info(f"Network changed ({chain_id}), reloading session")
        self._adapter.unsubscribe()
        self._adapter.reset()
        self._reset()
        self.clear_error()
        self.reload_count += 1

        if self._on_reload is not None:
            result = self._on_reload()
            if inspect.isawaitable(result):
                await result

    def disconnect(self) -> ActionResult:
        """User-initiated disconnect."""
        self._adapter.unsubscribe()
        self._adapter.reset()
        self._reset()
        self.record_error(ErrorKind.RECONNECT_REQUIRED)
        return ActionResult.success()

    def close(self) -> None:
        """Teardown: drop the subscription and binding, keep no listeners."""
        self._adapter.unsubscribe()
        self._drop_binding()

    # =========================================================================
    # Resync
    # =========================================================================

    async def resync(self) -> bool:
        """
        Re-read total and user stake and apply both together.

        Returns:
            True if a fresh position was applied; False if disconnected,
            superseded by a newer event, or the read failed
        """
        gateway, account = self._gateway, self._state.account
        if gateway is None or account is None:
            return False

        self._generation += 1
        generation = self._generation

        total, user = await asyncio.gather(
            gateway.read_total_staked(),
            gateway.read_user_staked(account),
            return_exceptions=True,
        )

        if generation != self._generation:
            logger.debug(f"Dropping stale resync from generation {generation}")
            return False

        for result in (total, user):
            if isinstance(result, Exception):
                self._state.position_stale = True
                self.record_error(classify(result), "resync")
                return False
            if isinstance(result, BaseException):
                raise result

        self._position = StakePosition(total_staked=total, user_staked=user)
        self._state.position_stale = False
        self.clear_error()
        logger.debug(f"Position resynced: total={total} user={user}")
        return True

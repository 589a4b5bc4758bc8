# stakedapp/app.py
"""
StakeDApp: Application Facade

StakingDApp wires the provider adapter, session state machine, contract
gateway and transaction orchestrator for one running instance, and is the
only surface a presentation layer talks to.

Every mutating entry point returns an ActionResult and never raises;
unexpected exceptions are logged and recorded as UNKNOWN. State is read
through view(), an immutable snapshot with amounts already formatted.

Usage:
    from stakedapp import StakingDApp, MockEthereumProvider

    dapp = StakingDApp(MockEthereumProvider())
    await dapp.start()

    result = await dapp.submit_stake("5")
    view = dapp.view()
    print(view.user_staked, view.error_message)

    await dapp.close()

Updated: 2026-10-16
Version: 0.1.0
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple

from .adapters.provider import EthereumProvider
from .adapters.wallet import ProviderAdapter, Signer
from .config import StakingConfig
from .contract.gateway import ContractGateway
from .contract.schema import CallSchema
from .errors import ErrorKind
from .models import ActionResult, ConnectionStatus, TxKind
from .orchestrator import TransactionOrchestrator
from .session import WalletSession
from .units import format_amount, short_address

logger = logging.getLogger(__name__)


# =============================================================================
# View
# =============================================================================

@dataclass(frozen=True)
class DAppView:
    """Read-only snapshot of everything the presentation layer renders."""
    status: ConnectionStatus
    account: Optional[str]
    short_account: str
    total_staked: str
    user_staked: str
    position_stale: bool
    last_error: Optional[ErrorKind]
    error_message: str
    stake_input: str
    unstake_input: str
    pending: Tuple[TxKind, ...]
    unit: str

    @property
    def connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED

    @property
    def connecting(self) -> bool:
        return self.status is ConnectionStatus.CONNECTING


# =============================================================================
# Facade
# =============================================================================

class StakingDApp:
    """
    One staking dApp instance.

    Exactly one session exists per instance. A network switch resets it
    and calls on_reload so the host can rebuild whatever it renders.
    """

    def __init__(
        self,
        provider: Optional[EthereumProvider] = None,
        config: Optional[StakingConfig] = None,
        on_reload: Optional[Callable[[], Any]] = None,
    ):
        """
        Args:
            provider: Injected wallet transport (None if no wallet present)
            config: Contract address, unit and polling settings
            on_reload: Hook run after a network switch reset the session
        """
        self.config = config or StakingConfig()
        self.adapter = ProviderAdapter(provider)
        self._schema = CallSchema.load()
        self.session = WalletSession(self.adapter, self._build_gateway, on_reload=on_reload)
        self.orchestrator = TransactionOrchestrator(
            self.session,
            unit=self.config.unit,
            confirmation_timeout=self.config.confirmation_timeout,
        )

    def _build_gateway(self, signer: Signer) -> ContractGateway:
        return ContractGateway(
            signer,
            self.config.contract_address,
            schema=self._schema,
            poll_interval=self.config.poll_interval,
        )

    # =========================================================================
    # View
    # =========================================================================

    def view(self) -> DAppView:
        state = self.session.state
        position = self.session.position
        unit = self.config.unit
        return DAppView(
            status=state.status,
            account=state.account,
            short_account=short_address(state.account) if state.account else "",
            total_staked=format_amount(position.total_staked, unit),
            user_staked=format_amount(position.user_staked, unit),
            position_stale=state.position_stale,
            last_error=state.last_error,
            error_message=state.error_message,
            stake_input=self.orchestrator.input_for(TxKind.STAKE),
            unstake_input=self.orchestrator.input_for(TxKind.UNSTAKE),
            pending=tuple(k for k in TxKind if self.orchestrator.is_pending(k)),
            unit=unit,
        )

    # =========================================================================
    # Entry Points
    # =========================================================================

    async def _guard(self, action: str, call: Callable[[], Awaitable[ActionResult]]) -> ActionResult:
        try:
            return await call()
        except Exception:
            logger.exception(f"Unexpected failure during {action}")
            self.session.record_error(ErrorKind.UNKNOWN, action)
            return ActionResult.failure(ErrorKind.UNKNOWN, action)

    async def start(self) -> ActionResult:
        """Initial load: connect if a wallet is present."""
        if not self.adapter.available:
            self.session.record_error(ErrorKind.PROVIDER_UNAVAILABLE)
            return ActionResult.failure(ErrorKind.PROVIDER_UNAVAILABLE)
        return await self.connect()

    async def connect(self) -> ActionResult:
        return await self._guard("connect", self.session.request_connect)

    async def disconnect(self) -> ActionResult:
        async def run() -> ActionResult:
            return self.session.disconnect()
        return await self._guard("disconnect", run)

    async def refresh(self) -> ActionResult:
        """Re-read balances on demand."""
        async def run() -> ActionResult:
            if self.session.gateway is None:
                self.session.record_error(ErrorKind.NOT_CONNECTED)
                return ActionResult.failure(ErrorKind.NOT_CONNECTED)
            if await self.session.resync():
                return ActionResult.success()
            kind = self.session.last_error or ErrorKind.CALL_FAILED
            return ActionResult.failure(kind, "resync")
        return await self._guard("resync", run)

    async def submit_stake(self, amount: Optional[str] = None) -> ActionResult:
        return await self._guard("stake", lambda: self.orchestrator.submit_stake(amount))

    async def submit_unstake(self, amount: Optional[str] = None) -> ActionResult:
        return await self._guard("unstake", lambda: self.orchestrator.submit_unstake(amount))

    def set_stake_input(self, text: str) -> None:
        self.orchestrator.set_input(TxKind.STAKE, text)

    def set_unstake_input(self, text: str) -> None:
        self.orchestrator.set_input(TxKind.UNSTAKE, text)

    async def close(self) -> None:
        """Teardown: unsubscribe and drop the contract binding."""
        try:
            self.session.close()
        except Exception:
            logger.exception("Unexpected failure during close")

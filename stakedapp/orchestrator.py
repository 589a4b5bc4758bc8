# stakedapp/orchestrator.py
"""
StakeDApp: Transaction Orchestrator

Drives each write action through

    validate -> convert -> submit -> await confirmation -> resync -> clear input

One action per kind may be in flight. A second request of the same kind is
refused on the spot (ActionPending); it is never queued. Stake and unstake
are independent of each other.

Failures stop the sequence and are recorded on the session; the input text
is left as typed so the user can retry with the same value. Nothing is
retried automatically.

Usage:
    orchestrator = TransactionOrchestrator(session)
    orchestrator.set_input(TxKind.STAKE, "5")
    result = await orchestrator.submit_stake()

Updated: 2026-10-16
Version: 0.1.0
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Set

from .errors import CallFailedError, ErrorKind, StakeError
from .models import ActionResult, PendingTransaction, TxKind
from .session import WalletSession
from .units import DEFAULT_UNIT, parse_amount

logger = logging.getLogger(__name__)


DEFAULT_INPUT = "0"


class TransactionOrchestrator:
    """Sequences stake / unstake writes against the session's gateway."""

    def __init__(
        self,
        session: WalletSession,
        unit: str = DEFAULT_UNIT,
        confirmation_timeout: Optional[float] = None,
    ):
        """
        Args:
            session: Session state machine providing the gateway binding
            unit: Display unit the inputs are written in
            confirmation_timeout: Seconds to wait for a receipt before
                giving up with CALL_FAILED (None waits indefinitely)
        """
        self._session = session
        self._unit = unit
        self._confirmation_timeout = confirmation_timeout
        self._inputs: Dict[TxKind, str] = {kind: DEFAULT_INPUT for kind in TxKind}
        self._in_flight: Set[TxKind] = set()
        self._pending: Dict[TxKind, PendingTransaction] = {}

    # =========================================================================
    # Inputs
    # =========================================================================

    def input_for(self, kind: TxKind) -> str:
        return self._inputs[kind]

    def set_input(self, kind: TxKind, text: str) -> None:
        self._inputs[kind] = text

    def is_pending(self, kind: TxKind) -> bool:
        return kind in self._in_flight

    def pending_transaction(self, kind: TxKind) -> Optional[PendingTransaction]:
        """Accepted transaction of this kind still awaiting confirmation."""
        return self._pending.get(kind)

    # =========================================================================
    # Actions
    # =========================================================================

    async def submit_stake(self, amount: Optional[str] = None) -> ActionResult:
        return await self.submit(TxKind.STAKE, amount)

    async def submit_unstake(self, amount: Optional[str] = None) -> ActionResult:
        return await self.submit(TxKind.UNSTAKE, amount)

    async def submit(self, kind: TxKind, amount: Optional[str] = None) -> ActionResult:
        """
        Run one write action.

        Args:
            kind: STAKE or UNSTAKE
            amount: Decimal text; replaces the stored input when given

        Returns:
            ActionResult; ok once the transaction is confirmed, even if the
            follow-up resync failed
        """
        action = kind.value

        if kind in self._in_flight:
            logger.debug(f"{action} refused: previous {action} still in flight")
            return self._fail(ErrorKind.ACTION_PENDING, action)

        if amount is not None:
            self._inputs[kind] = amount

        try:
            wei = parse_amount(self._inputs[kind], self._unit)
        except StakeError as e:
            return self._fail(e.kind, action)

        gateway = self._session.gateway
        if gateway is None:
            return self._fail(ErrorKind.NOT_CONNECTED, action)

        self._in_flight.add(kind)
        try:
            self._session.clear_error()

            try:
                if kind is TxKind.STAKE:
                    pending = await gateway.submit_stake(wei)
                else:
                    pending = await gateway.submit_unstake(wei)
            except StakeError as e:
                return self._fail(e.kind, action)

            self._pending[kind] = pending
            try:
                receipt = await self._confirm(gateway, pending)
            except StakeError as e:
                return self._fail(e.kind, action, pending)
            finally:
                self._pending.pop(kind, None)

            # a resync failure is recorded on the session, not rolled back
            await self._session.resync()
            self._inputs[kind] = DEFAULT_INPUT
            return ActionResult.success(pending, receipt)
        finally:
            self._in_flight.discard(kind)

    async def _confirm(self, gateway, pending: PendingTransaction) -> dict:
        if self._confirmation_timeout is None:
            return await gateway.await_confirmation(pending)
        try:
            return await asyncio.wait_for(
                gateway.await_confirmation(pending), self._confirmation_timeout
            )
        except asyncio.TimeoutError as e:
            raise CallFailedError(
                f"No confirmation for {pending.tx_hash} after {self._confirmation_timeout}s"
            ) from e

    def _fail(
        self,
        kind: ErrorKind,
        action: str,
        pending: Optional[PendingTransaction] = None,
    ) -> ActionResult:
        self._session.record_error(kind, action)
        return ActionResult.failure(kind, action, pending)

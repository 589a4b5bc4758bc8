# stakedapp/models.py
"""
StakeDApp: Core State Types

Connection status, the single Session record, the StakePosition snapshot,
pending transaction handles and the ActionResult value returned from every
mutating entry point.

Updated: 2026-10-16
Version: 0.1.0
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, auto
from typing import Optional

from .errors import ErrorKind, describe
from .units import DEFAULT_UNIT, to_display


# =============================================================================
# Enums
# =============================================================================

class ConnectionStatus(Enum):
    """Wallet session connection state."""
    DISCONNECTED = auto()
    CONNECTING = auto()
    CONNECTED = auto()


class TxKind(Enum):
    """Write action kinds."""
    STAKE = "stake"
    UNSTAKE = "unstake"


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class StakePosition:
    """
    Balance snapshot in base units.

    Always replaced as a whole; both figures come from the same resync.
    """
    total_staked: int = 0
    user_staked: int = 0

    def __post_init__(self):
        if self.total_staked < 0 or self.user_staked < 0:
            raise ValueError("Staked amounts cannot be negative")

    def total_display(self, unit: str = DEFAULT_UNIT) -> Decimal:
        return to_display(self.total_staked, unit)

    def user_display(self, unit: str = DEFAULT_UNIT) -> Decimal:
        return to_display(self.user_staked, unit)


ZERO_POSITION = StakePosition()


@dataclass
class Session:
    """
    Connection record owned by the session state machine.

    account is set if and only if status is CONNECTED.
    """
    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    account: Optional[str] = None
    last_error: Optional[ErrorKind] = None
    error_message: str = ""
    position_stale: bool = False

    @property
    def is_connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED

    @property
    def is_connecting(self) -> bool:
        return self.status is ConnectionStatus.CONNECTING


@dataclass(frozen=True)
class PendingTransaction:
    """Write call accepted by the provider and not yet confirmed."""
    tx_hash: str
    kind: TxKind
    submitted_amount: int
    account: Optional[str] = None


@dataclass(frozen=True)
class ActionResult:
    """Pass/fail outcome of a mutating entry point."""
    ok: bool
    error: Optional[ErrorKind] = None
    message: str = ""
    pending: Optional[PendingTransaction] = None
    receipt: Optional[dict] = field(default=None, compare=False)

    @classmethod
    def success(
        cls,
        pending: Optional[PendingTransaction] = None,
        receipt: Optional[dict] = None,
    ) -> ActionResult:
        return cls(ok=True, pending=pending, receipt=receipt)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        action: Optional[str] = None,
        pending: Optional[PendingTransaction] = None,
    ) -> ActionResult:
        return cls(ok=False, error=kind, message=describe(kind, action), pending=pending)

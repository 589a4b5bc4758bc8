# stakedapp/__init__.py
"""
StakeDApp: Wallet Session and Transaction Lifecycle Manager

Connects a wallet, keeps a cached staking position in step with the chain,
and drives stake / unstake writes through submit -> confirm -> resync.

Submodules:
    adapters/       - Wallet transports and the provider adapter
    contract/       - StakingContract schema and gateway
    session.py      - Session state machine (connection, account, position)
    orchestrator.py - Write sequencing, one in-flight action per kind
    errors.py       - Error taxonomy and classification
    units.py        - Decimal <-> base-unit amounts
    config.py       - StakingConfig
    app.py          - StakingDApp facade and DAppView

Quick Start:
    from stakedapp import StakingDApp, MockEthereumProvider

    dapp = StakingDApp(MockEthereumProvider())
    await dapp.start()
    await dapp.submit_stake("1.5")
    print(dapp.view().user_staked)

Command line:
    python -m stakedapp --rpc-url http://127.0.0.1:8545 status

Updated: 2026-10-16
Version: 0.1.0
"""

# Errors
from .errors import (
    ErrorKind,
    StakeError,
    ProviderUnavailableError,
    UserRejectedError,
    TransactionRejectedError,
    InsufficientFundsError,
    InvalidAmountError,
    CallFailedError,
    NotConnectedError,
    ActionPendingError,
    ProviderRPCError,
    classify,
    describe,
)

# State
from .models import (
    ConnectionStatus,
    TxKind,
    Session,
    StakePosition,
    PendingTransaction,
    ActionResult,
)

from .config import StakingConfig
from .units import parse_amount, format_amount

# Components
from .adapters import (
    EthereumProvider,
    JSONRPCEthereumProvider,
    MockEthereumProvider,
    ProviderAdapter,
    Signer,
)
from .contract import CallSchema, ContractGateway
from .session import WalletSession
from .orchestrator import TransactionOrchestrator
from .app import StakingDApp, DAppView

__all__ = [
    # === Errors ===
    "ErrorKind",
    "StakeError",
    "ProviderUnavailableError",
    "UserRejectedError",
    "TransactionRejectedError",
    "InsufficientFundsError",
    "InvalidAmountError",
    "CallFailedError",
    "NotConnectedError",
    "ActionPendingError",
    "ProviderRPCError",
    "classify",
    "describe",

    # === State ===
    "ConnectionStatus",
    "TxKind",
    "Session",
    "StakePosition",
    "PendingTransaction",
    "ActionResult",
    "StakingConfig",
    "parse_amount",
    "format_amount",

    # === Components ===
    "EthereumProvider",
    "JSONRPCEthereumProvider",
    "MockEthereumProvider",
    "ProviderAdapter",
    "Signer",
    "CallSchema",
    "ContractGateway",
    "WalletSession",
    "TransactionOrchestrator",
    "StakingDApp",
    "DAppView",
]

__version__ = "0.1.0"

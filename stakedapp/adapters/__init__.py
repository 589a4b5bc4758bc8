# stakedapp/adapters/__init__.py
"""
StakeDApp Adapters: Wallet Integration Layer

Transports:
    EthereumProvider        - Abstract EIP-1193 style wallet transport
    JSONRPCEthereumProvider - Node JSON-RPC over HTTP, polls for changes
    MockEthereumProvider    - In-memory wallet + staking contract

Adapter:
    ProviderAdapter - connect / get_signer / subscribe over a transport
    Signer          - Account-bound call handle
    Subscription    - One accountsChanged / chainChanged registration

Quick Start:
    from stakedapp.adapters import ProviderAdapter, MockEthereumProvider

    adapter = ProviderAdapter(MockEthereumProvider())
    accounts = await adapter.connect()
    signer = adapter.get_signer()

Updated: 2026-10-16
Version: 0.1.0
"""

# Transports
from .provider import (
    EthereumProvider,
    JSONRPCEthereumProvider,
    EVENT_ACCOUNTS_CHANGED,
    EVENT_CHAIN_CHANGED,
)

# Adapter
from .wallet import (
    ProviderAdapter,
    Signer,
    Subscription,
)

# Test double
from .mock import MockEthereumProvider

__all__ = [
    # === Transports ===
    "EthereumProvider",
    "JSONRPCEthereumProvider",
    "EVENT_ACCOUNTS_CHANGED",
    "EVENT_CHAIN_CHANGED",

    # === Adapter ===
    "ProviderAdapter",
    "Signer",
    "Subscription",

    # === Mock ===
    "MockEthereumProvider",
]

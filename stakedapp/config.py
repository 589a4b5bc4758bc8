# stakedapp/config.py
"""
StakeDApp: Configuration

Usage:
    config = StakingConfig(contract_address="0x...")
    config = StakingConfig.from_env()
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from web3 import Web3

from .units import DEFAULT_UNIT, unit_decimals


# =============================================================================
# Constants
# =============================================================================

# Deployed StakingContract (override per network)
DEFAULT_CONTRACT_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"

DEFAULT_POLL_INTERVAL = 1.0

ENV_PREFIX = "STAKEDAPP_"


# =============================================================================
# Config
# =============================================================================

@dataclass
class StakingConfig:
    """
    Settings for one StakingDApp instance.

    Attributes:
        contract_address: Staking contract address (checksummed on init)
        rpc_url: JSON-RPC endpoint for JSONRPCEthereumProvider
        unit: Display unit for amounts ("ether", "gwei", ...)
        poll_interval: Seconds between receipt polls
        confirmation_timeout: Optional bound on waiting for a receipt
    """
    contract_address: str = DEFAULT_CONTRACT_ADDRESS
    rpc_url: Optional[str] = None
    unit: str = DEFAULT_UNIT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    confirmation_timeout: Optional[float] = None

    def __post_init__(self):
        if not Web3.is_address(self.contract_address):
            raise ValueError(f"Invalid contract address: {self.contract_address!r}")
        self.contract_address = Web3.to_checksum_address(self.contract_address)

        try:
            unit_decimals(self.unit)
        except ValueError:
            raise ValueError(f"Unknown unit: {self.unit!r}")

        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if self.confirmation_timeout is not None and self.confirmation_timeout <= 0:
            raise ValueError("confirmation_timeout must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> StakingConfig:
        """
        Build config from STAKEDAPP_* environment variables.

        Unset variables fall back to the dataclass defaults.
        """
        env = os.environ if environ is None else environ
        kwargs = {}

        address = env.get(ENV_PREFIX + "CONTRACT_ADDRESS")
        if address:
            kwargs["contract_address"] = address
        rpc_url = env.get(ENV_PREFIX + "RPC_URL")
        if rpc_url:
            kwargs["rpc_url"] = rpc_url
        unit = env.get(ENV_PREFIX + "UNIT")
        if unit:
            kwargs["unit"] = unit

        interval = env.get(ENV_PREFIX + "POLL_INTERVAL")
        if interval:
            kwargs["poll_interval"] = float(interval)
        timeout = env.get(ENV_PREFIX + "CONFIRMATION_TIMEOUT")
        if timeout:
            kwargs["confirmation_timeout"] = float(timeout)

        return cls(**kwargs)

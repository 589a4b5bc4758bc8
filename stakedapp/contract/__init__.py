# stakedapp/contract/__init__.py
"""
StakeDApp Contract: StakingContract Binding

    schema.py   - ABI loading, calldata encode / decode (eth-abi)
    gateway.py  - ContractGateway: typed reads and writes for one signer

Contract interface:
    totalStaked() view returns (uint256)
    stakedBalances(address) view returns (uint256)
    stake(uint256) payable
    unstake(uint256)

Updated: 2026-10-16
Version: 0.1.0
"""

from .schema import (
    ABI_PATH,
    STAKING_CONTRACT_ABI,
    CallSchema,
    FunctionSchema,
)
from .gateway import ContractGateway

__all__ = [
    "ABI_PATH",
    "STAKING_CONTRACT_ABI",
    "CallSchema",
    "FunctionSchema",
    "ContractGateway",
]

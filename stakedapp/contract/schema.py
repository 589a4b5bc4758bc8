# stakedapp/contract/schema.py
"""
StakeDApp Contract: Call Schema

Loads the StakingContract ABI into a web3 contract object and uses it to
encode and decode eth_call / eth_sendTransaction payloads.

Usage:
    schema = CallSchema.load()
    data = schema.encode_call("stakedBalances", account)
    (balance,) = schema.decode_output("stakedBalances", result_hex)
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from eth_utils import decode_hex
from web3 import Web3


# =============================================================================
# Constants
# =============================================================================

ABI_PATH = Path(__file__).parent / "abi" / "StakingContract.json"


def _load_abi(path: Path = ABI_PATH) -> List[Dict]:
    """Load contract ABI from JSON file."""
    if path.exists():
        with open(path) as f:
            data = json.load(f)
            return data.get("abi", data) if isinstance(data, dict) else data
    return []


STAKING_CONTRACT_ABI = _load_abi()


# =============================================================================
# Types
# =============================================================================

@dataclass(frozen=True)
class FunctionSchema:
    """Call metadata for one contract function, read from its ABI entry."""
    name: str
    input_types: Tuple[str, ...]
    output_types: Tuple[str, ...]
    payable: bool = False
    view: bool = False

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.input_types)})"

    @classmethod
    def from_abi(cls, entry: Dict[str, Any]) -> FunctionSchema:
        mutability = entry.get("stateMutability", "nonpayable")
        return cls(
            name=entry["name"],
            input_types=tuple(i["type"] for i in entry.get("inputs", [])),
            output_types=tuple(o["type"] for o in entry.get("outputs", [])),
            payable=mutability == "payable" or bool(entry.get("payable")),
            view=mutability in ("view", "pure") or bool(entry.get("constant")),
        )


class CallSchema:
    """
    Calldata encoder / decoder over a web3 contract object.

    The contract is not bound to an address or provider; gateways attach
    the address and route the encoded payload through the wallet.
    """

    def __init__(self, abi: List[Dict[str, Any]]):
        self.abi = abi
        self._w3 = Web3()
        self._contract = self._w3.eth.contract(abi=abi)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> CallSchema:
        return cls(_load_abi(path) if path else STAKING_CONTRACT_ABI)

    def __contains__(self, name: str) -> bool:
        return any(
            entry.get("type", "function") == "function" and entry.get("name") == name
            for entry in self.abi
        )

    def function(self, name: str) -> FunctionSchema:
        try:
            fn = self._contract.get_function_by_name(name)
        except ValueError:
            raise ValueError(f"Function {name!r} not in contract ABI") from None
        return FunctionSchema.from_abi(fn.abi)

    def require(self, *names: str) -> None:
        """Raise ValueError unless every named function is present."""
        missing = [n for n in names if n not in self]
        if missing:
            raise ValueError(f"Contract ABI is missing: {', '.join(missing)}")

    def encode_call(self, name: str, *args: Any) -> str:
        """Selector + ABI-encoded arguments as 0x-prefixed hex."""
        return self._contract.encode_abi(name, args=list(args))

    def decode_output(self, name: str, data: str) -> Tuple[Any, ...]:
        fn = self.function(name)
        return tuple(self._w3.codec.decode(list(fn.output_types), decode_hex(data)))

    def decode_call(self, data: str) -> Tuple[FunctionSchema, Tuple[Any, ...]]:
        """Inverse of encode_call: identify the function and decode its arguments."""
        fn, params = self._contract.decode_function_input(data)
        args = tuple(params[i["name"]] for i in fn.abi.get("inputs", []))
        return FunctionSchema.from_abi(fn.abi), args

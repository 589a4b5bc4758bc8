# tests/test_adapter.py
"""
StakeDApp provider adapter tests

connect / get_signer / subscribe over MockEthereumProvider, plus the
JSON-RPC transport's fallback and change polling with the HTTP layer
replaced.
"""

import asyncio

import pytest
from web3 import Web3

from stakedapp.adapters import (
    EVENT_ACCOUNTS_CHANGED,
    EVENT_CHAIN_CHANGED,
    JSONRPCEthereumProvider,
    MockEthereumProvider,
    ProviderAdapter,
)
from stakedapp.contract import CallSchema
from stakedapp.errors import (
    NotConnectedError,
    ProviderRPCError,
    ProviderUnavailableError,
    UserRejectedError,
)

ACCOUNT = Web3.to_checksum_address("0x" + "ab" * 20)
OTHER = Web3.to_checksum_address("0x" + "cd" * 20)


def test_connect_returns_checksummed_accounts():
    provider = MockEthereumProvider(accounts=["0x" + "ab" * 20, "0x" + "cd" * 20])
    adapter = ProviderAdapter(provider)

    accounts = asyncio.run(adapter.connect())

    assert accounts == [ACCOUNT, OTHER]
    assert adapter.accounts == [ACCOUNT, OTHER]
    assert provider.calls("eth_requestAccounts") == 1


def test_connect_without_provider():
    adapter = ProviderAdapter()
    assert not adapter.available
    with pytest.raises(ProviderUnavailableError):
        asyncio.run(adapter.connect())


def test_connect_rejected():
    provider = MockEthereumProvider(accounts=[ACCOUNT])
    provider.reject_connect = True
    with pytest.raises(UserRejectedError):
        asyncio.run(ProviderAdapter(provider).connect())


def test_connect_empty_account_list_is_rejection():
    with pytest.raises(UserRejectedError):
        asyncio.run(ProviderAdapter(MockEthereumProvider(accounts=[])).connect())


def test_connect_provider_error_propagates():
    provider = MockEthereumProvider(accounts=[ACCOUNT])
    provider.fail_next["eth_requestAccounts"] = ProviderRPCError("gone", code=4900)
    with pytest.raises(ProviderRPCError):
        asyncio.run(ProviderAdapter(provider).connect())


def test_get_signer_requires_connect():
    adapter = ProviderAdapter(MockEthereumProvider(accounts=[ACCOUNT]))
    with pytest.raises(NotConnectedError):
        adapter.get_signer()

    asyncio.run(adapter.connect())
    assert adapter.get_signer().address == ACCOUNT
    assert adapter.get_signer("0x" + "ab" * 20).address == ACCOUNT
    with pytest.raises(NotConnectedError):
        adapter.get_signer(OTHER)

    adapter.reset()
    with pytest.raises(NotConnectedError):
        adapter.get_signer()


def test_signer_sets_from_address():
    provider = MockEthereumProvider(accounts=[ACCOUNT])
    adapter = ProviderAdapter(provider)

    async def run():
        await adapter.connect()
        data = CallSchema.load().encode_call("totalStaked")
        return await adapter.get_signer().call({"to": provider.contract_address, "data": data})

    assert int(asyncio.run(run()), 16) == 0
    method, params = provider.requests[-1]
    assert method == "eth_call"
    assert params[0]["from"] == ACCOUNT


def test_subscribe_replaces_previous_registration():
    provider = MockEthereumProvider(accounts=[ACCOUNT])
    adapter = ProviderAdapter(provider)
    seen = []

    first = adapter.subscribe(lambda a: seen.append(("first", a)), lambda c: None)
    adapter.subscribe(lambda a: seen.append(("second", a)), lambda c: None)

    assert not first.active
    assert provider.listener_count(EVENT_ACCOUNTS_CHANGED) == 1
    assert provider.listener_count(EVENT_CHAIN_CHANGED) == 1

    asyncio.run(provider.switch_accounts([OTHER]))
    assert seen == [("second", [OTHER])]
    assert adapter.accounts == [OTHER]

    adapter.unsubscribe()
    adapter.unsubscribe()
    assert provider.listener_count(EVENT_ACCOUNTS_CHANGED) == 0
    assert provider.listener_count(EVENT_CHAIN_CHANGED) == 0
    assert adapter.subscription is None


def test_async_listeners_are_awaited():
    provider = MockEthereumProvider(accounts=[ACCOUNT])
    adapter = ProviderAdapter(provider)
    chains = []

    async def on_chain(chain_id):
        await asyncio.sleep(0)
        chains.append(chain_id)

    adapter.subscribe(lambda a: None, on_chain)
    asyncio.run(provider.switch_chain(5))
    assert chains == ["0x5"]


# =============================================================================
# JSON-RPC transport
# =============================================================================

class ScriptedRPCProvider(JSONRPCEthereumProvider):
    """JSONRPCEthereumProvider with the HTTP round-trip replaced by a script."""

    def __init__(self, responses):
        super().__init__("http://127.0.0.1:8545")
        self.responses = responses
        self.sent = []

    async def _raw_request(self, method, params):
        self.sent.append(method)
        result = self.responses[method]
        if isinstance(result, Exception):
            raise result
        return result() if callable(result) else result


def test_request_accounts_falls_back_to_eth_accounts():
    provider = ScriptedRPCProvider({
        "eth_requestAccounts": ProviderRPCError("Method not found", code=-32601),
        "eth_accounts": [ACCOUNT],
    })
    accounts = asyncio.run(provider.request("eth_requestAccounts"))
    assert accounts == [ACCOUNT]
    assert provider.sent == ["eth_requestAccounts", "eth_accounts"]


def test_request_accounts_rejection_not_masked():
    provider = ScriptedRPCProvider({
        "eth_requestAccounts": ProviderRPCError("User rejected", code=4001),
        "eth_accounts": [ACCOUNT],
    })
    with pytest.raises(ProviderRPCError):
        asyncio.run(provider.request("eth_requestAccounts"))
    assert provider.sent == ["eth_requestAccounts"]


def test_poll_changes_emits_on_difference():
    state = {"accounts": [ACCOUNT], "chain": "0x1"}
    provider = ScriptedRPCProvider({
        "eth_accounts": lambda: list(state["accounts"]),
        "eth_chainId": lambda: state["chain"],
    })
    events = []
    provider.on(EVENT_ACCOUNTS_CHANGED, lambda a: events.append(("accounts", a)))
    provider.on(EVENT_CHAIN_CHANGED, lambda c: events.append(("chain", c)))

    async def run():
        await provider.poll_changes()
        await provider.poll_changes()
        state["accounts"] = []
        await provider.poll_changes()
        state["chain"] = "0x5"
        await provider.poll_changes()

    asyncio.run(run())
    assert events == [("accounts", []), ("chain", "0x5")]

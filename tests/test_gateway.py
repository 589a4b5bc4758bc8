# tests/test_gateway.py
"""
StakeDApp contract gateway tests

Reads, writes and confirmation against the simulated StakingContract.
"""

import asyncio

import pytest
from web3 import Web3

from stakedapp.adapters import MockEthereumProvider, ProviderAdapter
from stakedapp.config import DEFAULT_CONTRACT_ADDRESS
from stakedapp.contract import CallSchema, ContractGateway
from stakedapp.errors import (
    CallFailedError,
    InsufficientFundsError,
    InvalidAmountError,
    NotConnectedError,
    ProviderRPCError,
    TransactionRejectedError,
)
from stakedapp.models import TxKind

ACCOUNT = Web3.to_checksum_address("0x" + "ab" * 20)
ETHER = 10**18


def make_gateway(provider, address=DEFAULT_CONTRACT_ADDRESS):
    adapter = ProviderAdapter(provider)
    asyncio.run(adapter.connect())
    return ContractGateway(adapter.get_signer(), address, poll_interval=0.01)


def staked_provider(**kwargs):
    return MockEthereumProvider(
        accounts=[ACCOUNT],
        total_staked=100 * ETHER,
        staked={ACCOUNT: 10 * ETHER},
        **kwargs,
    )


def test_reads():
    gateway = make_gateway(staked_provider())
    assert asyncio.run(gateway.read_total_staked()) == 100 * ETHER
    assert asyncio.run(gateway.read_user_staked(ACCOUNT)) == 10 * ETHER
    assert asyncio.run(gateway.read_user_staked("0x" + "cd" * 20)) == 0


def test_read_failure_is_call_failed():
    provider = staked_provider()
    gateway = make_gateway(provider)
    provider.fail_next["eth_call"] = ProviderRPCError("execution reverted", code=3)
    with pytest.raises(CallFailedError):
        asyncio.run(gateway.read_total_staked())


def test_read_from_wrong_address_is_call_failed():
    gateway = make_gateway(staked_provider(), address="0x" + "ef" * 20)
    with pytest.raises(CallFailedError):
        asyncio.run(gateway.read_total_staked())


def test_stake_attaches_value_and_confirms():
    provider = staked_provider()
    gateway = make_gateway(provider)

    async def run():
        pending = await gateway.submit_stake(5 * ETHER)
        receipt = await gateway.await_confirmation(pending)
        return pending, receipt

    pending, receipt = asyncio.run(run())

    assert pending.kind is TxKind.STAKE
    assert pending.submitted_amount == 5 * ETHER
    assert pending.account == ACCOUNT
    assert receipt["status"] == "0x1"
    assert provider.staked[ACCOUNT] == 15 * ETHER
    assert provider.total_staked == 105 * ETHER

    _, params = [r for r in provider.requests if r[0] == "eth_sendTransaction"][0]
    tx = params[0]
    assert int(tx["value"], 16) == 5 * ETHER
    fn, args = CallSchema.load().decode_call(tx["data"])
    assert (fn.name, args) == ("stake", (5 * ETHER,))


def test_unstake_attaches_no_value():
    provider = staked_provider()
    gateway = make_gateway(provider)

    async def run():
        return await gateway.await_confirmation(await gateway.submit_unstake(4 * ETHER))

    asyncio.run(run())

    _, params = [r for r in provider.requests if r[0] == "eth_sendTransaction"][0]
    assert "value" not in params[0]
    assert provider.staked[ACCOUNT] == 6 * ETHER


def test_confirmation_polls_until_mined():
    provider = staked_provider(auto_mine=False)
    gateway = make_gateway(provider)

    async def run():
        pending = await gateway.submit_stake(ETHER)
        waiter = asyncio.ensure_future(gateway.await_confirmation(pending))
        await asyncio.sleep(0.05)
        assert not waiter.done()
        provider.mine()
        return await waiter

    receipt = asyncio.run(run())
    assert receipt["status"] == "0x1"
    assert provider.calls("eth_getTransactionReceipt") >= 2


def test_reverted_transaction():
    gateway = make_gateway(staked_provider())

    async def run():
        pending = await gateway.submit_unstake(50 * ETHER)
        await gateway.await_confirmation(pending)

    with pytest.raises(CallFailedError):
        asyncio.run(run())


@pytest.mark.parametrize("amount", [0, -1, 2**256, 1.5, True])
def test_invalid_amount_never_sent(amount):
    provider = staked_provider()
    gateway = make_gateway(provider)
    with pytest.raises(InvalidAmountError):
        asyncio.run(gateway.submit_stake(amount))
    assert provider.calls("eth_sendTransaction") == 0


def test_user_rejects_transaction():
    provider = staked_provider()
    provider.reject_next_transaction = True
    gateway = make_gateway(provider)
    with pytest.raises(TransactionRejectedError):
        asyncio.run(gateway.submit_stake(ETHER))


def test_insufficient_funds():
    provider = staked_provider(balances={ACCOUNT: ETHER})
    gateway = make_gateway(provider)
    with pytest.raises(InsufficientFundsError):
        asyncio.run(gateway.submit_stake(5 * ETHER))


def test_transport_failure_on_submit():
    provider = staked_provider()
    provider.fail_next["eth_sendTransaction"] = ProviderRPCError("disconnected", code=4900)
    gateway = make_gateway(provider)
    with pytest.raises(CallFailedError):
        asyncio.run(gateway.submit_unstake(ETHER))


def test_invalidated_gateway_refuses_calls():
    provider = staked_provider()
    gateway = make_gateway(provider)
    gateway.invalidate()
    assert not gateway.is_valid

    with pytest.raises(NotConnectedError):
        asyncio.run(gateway.read_total_staked())
    with pytest.raises(NotConnectedError):
        asyncio.run(gateway.submit_stake(ETHER))
    assert provider.calls("eth_call") == 0


def test_schema_lookup():
    schema = CallSchema.load()
    assert "stake" in schema
    assert schema.function("stake").payable
    assert not schema.function("unstake").payable
    assert schema.function("totalStaked").view
    with pytest.raises(ValueError):
        schema.function("withdrawAll")
    with pytest.raises(ValueError):
        schema.require("stake", "withdrawAll")


def test_schema_encodes_through_contract_abi():
    schema = CallSchema.load()
    data = schema.encode_call("stakedBalances", ACCOUNT)
    expected = Web3().eth.contract(abi=schema.abi).encode_abi("stakedBalances", args=[ACCOUNT])

    assert data == expected
    assert data.endswith(ACCOUNT[2:].lower())
    fn, args = schema.decode_call(data)
    assert fn.signature == "stakedBalances(address)"
    assert args == (ACCOUNT,)

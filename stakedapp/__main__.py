# stakedapp/__main__.py
"""
StakeDApp: Command Line

Runs the staking dApp core against a node's JSON-RPC endpoint. The node
must expose unlocked accounts (anvil, hardhat, geth --dev), since it signs
eth_sendTransaction on the account's behalf.

Usage:
    python -m stakedapp --rpc-url http://127.0.0.1:8545 status
    python -m stakedapp stake 1.5
    python -m stakedapp unstake 0.5
    python -m stakedapp watch --interval 2

Settings not given on the command line come from STAKEDAPP_* environment
variables (see StakingConfig.from_env).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from .adapters.provider import JSONRPCEthereumProvider
from .app import DAppView, StakingDApp
from .config import StakingConfig
from .errors import ProviderRPCError
from .models import ActionResult

DEFAULT_RPC_URL = "http://127.0.0.1:8545"

logger = logging.getLogger("stakedapp")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="stakedapp")
    parser.add_argument("--rpc-url", help=f"JSON-RPC endpoint (default {DEFAULT_RPC_URL})")
    parser.add_argument("--contract", help="StakingContract address")
    parser.add_argument("--unit", help="Display unit (default ether)")
    parser.add_argument("--timeout", type=float, help="Seconds to wait for confirmation")
    parser.add_argument("-v", "--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=True)

    status_parser = subparsers.add_parser("status")
    status_parser.set_defaults(func=_status)

    stake_parser = subparsers.add_parser("stake")
    stake_parser.add_argument("amount")
    stake_parser.set_defaults(func=_stake)

    unstake_parser = subparsers.add_parser("unstake")
    unstake_parser.add_argument("amount")
    unstake_parser.set_defaults(func=_unstake)

    watch_parser = subparsers.add_parser("watch")
    watch_parser.add_argument("--interval", type=float, default=2.0)
    watch_parser.set_defaults(func=_watch)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _build_config(args)
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    dapp = StakingDApp(JSONRPCEthereumProvider(config.rpc_url), config)
    try:
        return asyncio.run(args.func(dapp, args))
    except KeyboardInterrupt:
        return 130


def _build_config(args: argparse.Namespace) -> StakingConfig:
    config = StakingConfig.from_env()
    overrides = {}
    if args.rpc_url:
        overrides["rpc_url"] = args.rpc_url
    if args.contract:
        overrides["contract_address"] = args.contract
    if args.unit:
        overrides["unit"] = args.unit
    if args.timeout:
        overrides["confirmation_timeout"] = args.timeout
    if not (overrides.get("rpc_url") or config.rpc_url):
        overrides["rpc_url"] = DEFAULT_RPC_URL
    return replace(config, **overrides)


def _print_view(view: DAppView) -> None:
    print(f"status:  {view.status.name.lower()}")
    print(f"account: {view.account or '-'}")
    print(f"total staked: {view.total_staked} {view.unit}")
    print(f"your stake:   {view.user_staked} {view.unit}")
    if view.position_stale:
        print("(balances may be out of date)")


def _report(dapp: StakingDApp, result: ActionResult) -> int:
    if not result.ok:
        print(f"ERROR: {result.message}", file=sys.stderr)
        return 1
    _print_view(dapp.view())
    return 0


async def _status(dapp: StakingDApp, args: argparse.Namespace) -> int:
    result = await dapp.start()
    try:
        return _report(dapp, result)
    finally:
        await dapp.close()


async def _submit(dapp: StakingDApp, kind: str, amount: str) -> int:
    result = await dapp.start()
    try:
        if result.ok:
            if kind == "stake":
                result = await dapp.submit_stake(amount)
            else:
                result = await dapp.submit_unstake(amount)
            if result.ok and result.pending is not None:
                print(f"tx: {result.pending.tx_hash}")
        return _report(dapp, result)
    finally:
        await dapp.close()


async def _stake(dapp: StakingDApp, args: argparse.Namespace) -> int:
    return await _submit(dapp, "stake", args.amount)


async def _unstake(dapp: StakingDApp, args: argparse.Namespace) -> int:
    return await _submit(dapp, "unstake", args.amount)


async def _watch(dapp: StakingDApp, args: argparse.Namespace) -> int:
    """Follow account and network changes until interrupted."""
    provider = dapp.adapter.provider
    result = await dapp.start()
    if not result.ok:
        return _report(dapp, result)
    _print_view(dapp.view())

    last = dapp.view()
    try:
        while True:
            await asyncio.sleep(args.interval)
            try:
                await provider.poll_changes()
            except ProviderRPCError as exc:
                logger.warning(f"Change poll failed: {exc}")
                continue
            if not dapp.view().connected:
                await dapp.connect()
            await dapp.refresh()
            current = dapp.view()
            if current != last:
                _print_view(current)
                last = current
    finally:
        await dapp.close()


if __name__ == "__main__":
    sys.exit(main())

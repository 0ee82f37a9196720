"""
Chain configuration.

Built-in chain descriptions plus a JSON loader that attaches RPC settings.

Example chains.json:

    {
      "chains": [
        {"chain": "bitcoin-regtest", "rpc_port": 18443,
         "rpc_user": "bitcoin", "rpc_password_env": "BTC_RPC_PASSWORD"},
        {"chain": "litecoin-regtest", "rpc_port": 19443,
         "rpc_user": "litecoin", "rpc_password": "litecoin",
         "wallet_name": "swap"}
      ]
    }
"""

import json
import logging
import os
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Union

from .chains.btc import RPCConfig
from .chains.registry import ChainBinding, ChainInformation, ChainRegistry
from .errors import ChainUnknown, ConfigurationError

log = logging.getLogger(__name__)


BTC_BLOCK = timedelta(minutes=10)
LTC_BLOCK = timedelta(minutes=2, seconds=30)

KNOWN_CHAINS = [
    ChainInformation(("bitcoin", "btc", "bitcoin-mainnet"), "mainnet", BTC_BLOCK, "bc"),
    ChainInformation(("bitcoin-testnet", "tbtc", "btc-testnet"), "testnet", BTC_BLOCK, "tb", is_test=True),
    ChainInformation(("bitcoin-signet", "sbtc", "btc-signet"), "signet", BTC_BLOCK, "tb", is_test=True),
    ChainInformation(("bitcoin-regtest", "rbtc", "btc-regtest"), "regtest", BTC_BLOCK, "bcrt", is_test=True),
    ChainInformation(("litecoin", "ltc", "litecoin-mainnet"), "mainnet", LTC_BLOCK, "ltc"),
    ChainInformation(("litecoin-testnet", "tltc", "ltc-testnet"), "testnet", LTC_BLOCK, "tltc", is_test=True),
    ChainInformation(("litecoin-regtest", "rltc", "ltc-regtest"), "regtest", LTC_BLOCK, "rltc", is_test=True),
]

# Default RPC ports per (coin, network)
DEFAULT_RPC_PORTS = {
    ("bitcoin", "mainnet"): 8332,
    ("bitcoin", "testnet"): 18332,
    ("bitcoin", "signet"): 38332,
    ("bitcoin", "regtest"): 18443,
    ("litecoin", "mainnet"): 9332,
    ("litecoin", "testnet"): 19332,
    ("litecoin", "regtest"): 19443,
}

COOKIE_SUBDIRS = {
    "mainnet": "",
    "testnet": "testnet3",
    "signet": "signet",
    "regtest": "regtest",
}


def find_chain_information(name: str) -> ChainInformation:
    for info in KNOWN_CHAINS:
        if info.matches(name):
            return info
    raise ChainUnknown(f"Chain {name} is unknown")


def _chain_information(entry: Dict[str, Any]) -> ChainInformation:
    """Known chain, optionally overridden, or a fully custom one."""
    name = entry["chain"]
    aliases = tuple(entry.get("aliases", ()))
    try:
        known = find_chain_information(name)
    except ChainUnknown:
        known = None

    if known is None:
        missing = [k for k in ("network", "block_interval_seconds", "bech32_hrp") if k not in entry]
        if missing:
            raise ConfigurationError(f"Custom chain {name} needs {', '.join(missing)}")
        return ChainInformation(
            names=(name,) + aliases,
            network=entry["network"],
            block_interval=timedelta(seconds=entry["block_interval_seconds"]),
            bech32_hrp=entry["bech32_hrp"],
            is_test=bool(entry.get("is_test", entry["network"] != "mainnet")),
        )

    return ChainInformation(
        names=known.names + aliases,
        network=known.network,
        block_interval=(
            timedelta(seconds=entry["block_interval_seconds"])
            if "block_interval_seconds" in entry else known.block_interval
        ),
        bech32_hrp=entry.get("bech32_hrp", known.bech32_hrp),
        is_test=bool(entry.get("is_test", known.is_test)),
    )


def _rpc_config(entry: Dict[str, Any], info: ChainInformation) -> RPCConfig:
    password = entry.get("rpc_password", "")
    if entry.get("rpc_password_env"):
        password = os.environ.get(entry["rpc_password_env"], password)

    coin = "litecoin" if info.bech32_hrp in ("ltc", "tltc", "rltc") else "bitcoin"
    port = entry.get("rpc_port", DEFAULT_RPC_PORTS.get((coin, info.network), 8332))

    return RPCConfig(
        rpc_host=entry.get("rpc_host", "127.0.0.1"),
        rpc_port=int(port),
        rpc_user=entry.get("rpc_user", ""),
        rpc_password=password,
        wallet_name=entry.get("wallet_name", ""),
        datadir=entry.get("datadir", ""),
        cookie_subdir=entry.get("cookie_subdir", COOKIE_SUBDIRS.get(info.network, "")),
        timeout=float(entry.get("timeout", 30.0)),
    )


def parse_chains(data: Dict[str, Any]) -> List[ChainBinding]:
    bindings = []
    for entry in data.get("chains", []):
        info = _chain_information(entry)
        bindings.append(ChainBinding(information=info, rpc=_rpc_config(entry, info)))
    if not bindings:
        raise ConfigurationError("No chains configured")
    return bindings


def load_chains(path: Union[str, Path]) -> ChainRegistry:
    """Load a chain registry from a JSON config file."""
    path = Path(path).expanduser()
    with open(path, "r") as f:
        data = json.load(f)
    bindings = parse_chains(data)
    log.info(f"Loaded {len(bindings)} chains from {path}: "
             f"{', '.join(b.information.name for b in bindings)}")
    return ChainRegistry(bindings)

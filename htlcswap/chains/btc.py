"""
Bitcoin Core JSON-RPC ledger for htlcswap.

Works against any Bitcoin Core compatible node (Bitcoin, Litecoin, ...)
on mainnet, testnet, signet or regtest.
"""

import itertools
import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from ..core import FeeRate, btc_to_sats
from .base import Destination, Ledger, LedgerError, Utxo

log = logging.getLogger(__name__)

# Bitcoin Core caps listunspent maxconf at 9999999
MAX_CONFIRMATIONS = 9999999


class RPCError(LedgerError):
    """Error returned by the node, or transport failure (code None)."""

    def __init__(self, message: str, code: Optional[int] = None, method: str = ""):
        super().__init__(message)
        self.code = code
        self.method = method


@dataclass
class RPCConfig:
    """Node connection settings."""
    rpc_host: str = "127.0.0.1"
    rpc_port: int = 8332
    rpc_user: str = ""
    rpc_password: str = ""
    wallet_name: str = ""           # Empty = use default loaded wallet
    datadir: str = ""               # Used for cookie auth when no user/password
    cookie_subdir: str = ""         # e.g. "regtest", "signet", "testnet3"
    timeout: float = 30.0

    @property
    def url(self) -> str:
        url = f"http://{self.rpc_host}:{self.rpc_port}"
        if self.wallet_name:
            url += f"/wallet/{self.wallet_name}"
        return url

    def credentials(self) -> Optional[tuple]:
        if self.rpc_user:
            return (self.rpc_user, self.rpc_password)
        if self.datadir:
            cookie = Path(self.datadir).expanduser() / self.cookie_subdir / ".cookie"
            if cookie.exists():
                user, _, password = cookie.read_text().strip().partition(":")
                return (user, password)
        return None


class BitcoinRPC(Ledger):
    """
    Async JSON-RPC client.

    Numbers in responses are parsed as Decimal so coin amounts convert
    to satoshis exactly.
    """

    def __init__(self, config: RPCConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._client = client
        self._ids = itertools.count(1)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                auth=self.config.credentials(),
                timeout=self.config.timeout,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def _call(self, method: str, *params) -> Any:
        """Execute one RPC call."""
        payload = {
            "jsonrpc": "1.0",
            "id": next(self._ids),
            "method": method,
            "params": list(params),
        }
        try:
            response = await self._get_client().post(self.config.url, json=payload)
        except httpx.HTTPError as e:
            raise RPCError(f"BTC RPC transport error: {method} -> {e}", method=method) from e

        # Core answers RPC errors with HTTP 500 and a JSON body
        try:
            body = json.loads(response.text, parse_float=Decimal)
        except ValueError:
            raise RPCError(
                f"BTC RPC HTTP {response.status_code}: {method} -> {response.text[:200]}",
                method=method,
            )

        error = body.get("error")
        if error:
            log.debug(f"BTC RPC error: {method} -> {error}")
            raise RPCError(
                f"BTC RPC failed: {method} -> {error.get('message')}",
                code=error.get("code"),
                method=method,
            )
        return body.get("result")

    # =========================================================================
    # Blockchain Info
    # =========================================================================

    async def get_block_count(self) -> int:
        return int(await self._call("getblockcount"))

    async def estimate_fee_rate(self, conf_target: int) -> FeeRate:
        """Estimate fee rate; raises RPCError when the node has no estimate."""
        result = await self._call("estimatesmartfee", conf_target)
        feerate = result.get("feerate") if result else None
        if feerate is None or feerate <= 0:
            errors = (result or {}).get("errors", [])
            raise RPCError(f"Fee estimation unavailable: {errors}", method="estimatesmartfee")
        return FeeRate.from_btc_per_kvb(feerate)

    # =========================================================================
    # Wallet Operations
    # =========================================================================

    async def import_script(self, script_pubkey: bytes, rescan: bool = False) -> None:
        await self._call("importaddress", script_pubkey.hex(), "", rescan, False)

    async def list_unspent(self, min_conf: int, address: str) -> List[Utxo]:
        result = await self._call("listunspent", min_conf, MAX_CONFIRMATIONS, [address])
        return [
            Utxo(
                txid=u["txid"],
                vout=int(u["vout"]),
                amount=btc_to_sats(u["amount"]),
                confirmations=int(u.get("confirmations", 0)),
                address=u.get("address"),
            )
            for u in result or []
        ]

    async def list_transactions(self, count: int, skip: int,
                                include_watchonly: bool = True) -> List[Dict[str, Any]]:
        result = await self._call("listtransactions", "*", count, skip, include_watchonly)
        # Core returns oldest first within the page window
        return list(reversed(result or []))

    async def get_transaction(self, txid: str) -> Dict[str, Any]:
        return await self._call("gettransaction", txid, True)

    async def decode_raw_transaction(self, hex_tx: str) -> Dict[str, Any]:
        return await self._call("decoderawtransaction", hex_tx)

    async def send_raw_transaction(self, hex_tx: str) -> str:
        return await self._call("sendrawtransaction", hex_tx)

    async def get_new_address(self) -> Destination:
        address = await self._call("getnewaddress")
        info = await self._call("getaddressinfo", address)
        return Destination(address=address, script_pubkey=bytes.fromhex(info["scriptPubKey"]))

    async def fund_and_sign(self, hex_tx: str) -> str:
        change = await self._call("getrawchangeaddress")
        funded = await self._call("fundrawtransaction", hex_tx, {
            "changeAddress": change,
            "lockUnspents": True,
            "includeWatching": False,
        })
        signed = await self._call("signrawtransactionwithwallet", funded["hex"])
        if not signed.get("complete"):
            raise RPCError(
                f"Wallet could not sign funding TX: {signed.get('errors')}",
                method="signrawtransactionwithwallet",
            )
        return signed["hex"]

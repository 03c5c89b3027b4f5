"""Solana RPC access for launchpad accounts.

Single-shot JSON-RPC calls, no retries or caching: a failed request is
logged and yields an empty result, the caller decides whether to try again.
"""

import base64
import binascii
from typing import Any

import httpx
from loguru import logger

from src.parsers.launchpad.constants import (
    LAUNCHPAD_PROGRAM_ID,
    MAX_FIELD_LENGTH,
    SchemaVersion,
)
from src.parsers.launchpad.decoder import LaunchBatch, decode_launch_accounts
from src.parsers.launchpad.identity import (
    TokenIdentity,
    resolve_token_identity,
    resolve_token_identity_online,
)
from src.parsers.launchpad.models import LaunchRecord


class LaunchpadClient:
    """Async JSON-RPC client scoped to one launchpad program."""

    def __init__(
        self,
        rpc_url: str,
        program_id: str = LAUNCHPAD_PROGRAM_ID,
        timeout: float = 15.0,
    ) -> None:
        self._rpc_url = rpc_url
        self._program_id = program_id
        self._client = httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def _call(self, method: str, params: list[Any]) -> Any | None:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        try:
            resp = await self._client.post(self._rpc_url, json=payload)
        except httpx.HTTPError as e:
            logger.warning(f"[RPC] {method} failed: {type(e).__name__}: {e}")
            return None

        if resp.status_code != 200:
            logger.debug(f"[RPC] HTTP {resp.status_code} for {method}")
            return None

        try:
            data = resp.json()
        except ValueError as e:
            logger.warning(f"[RPC] {method} returned non-JSON body: {e}")
            return None
        if not isinstance(data, dict):
            logger.warning(f"[RPC] {method} returned {type(data).__name__}, expected object")
            return None
        if "error" in data:
            logger.warning(f"[RPC] {method} error: {data['error']}")
            return None
        return data.get("result")

    async def get_program_accounts(self) -> list[tuple[str, bytes]]:
        """All accounts owned by the launchpad program as (address, raw bytes)."""
        result = await self._call(
            "getProgramAccounts",
            [self._program_id, {"encoding": "base64", "commitment": "confirmed"}],
        )
        if not result:
            return []

        accounts: list[tuple[str, bytes]] = []
        for item in result:
            address = item.get("pubkey", "")
            raw = (item.get("account") or {}).get("data") or []
            if not raw:
                continue
            try:
                accounts.append((address, base64.b64decode(raw[0], validate=True)))
            except (binascii.Error, ValueError):
                logger.debug(f"[RPC] Bad base64 payload for {address[:12]}")
        return accounts

    async def get_account_owner(self, address: str) -> str | None:
        """Owning program of `address`, or None if missing / lookup failed."""
        result = await self._call(
            "getAccountInfo",
            [address, {"encoding": "base64", "commitment": "confirmed"}],
        )
        if not result or not result.get("value"):
            return None
        return result["value"].get("owner")

    async def fetch_launches(
        self,
        *,
        schema: SchemaVersion | None = None,
        max_field_length: int = MAX_FIELD_LENGTH,
    ) -> LaunchBatch:
        """Fetch and decode every launch account; undecodable ones are skipped."""
        accounts = await self.get_program_accounts()
        logger.info(f"[RPC] {len(accounts)} accounts owned by {self._program_id[:12]}")
        return decode_launch_accounts(
            accounts, schema=schema, max_field_length=max_field_length
        )

    async def resolve_identity(
        self, record: LaunchRecord, *, verify_owner: bool = False
    ) -> TokenIdentity:
        if verify_owner:
            return await resolve_token_identity_online(
                record.keys, record.listing, self.get_account_owner
            )
        return resolve_token_identity(record.keys, record.listing)

"""
c3_core.signer
--------------
The asynchronous signing boundary.

This package never holds a private key. A ``MessageSigner`` names the
account (address + chain) and wraps whatever actually produces signatures:
a wallet bridge, a hardware key or a custodial service. The wrapped
callback receives the exact bytes to sign and applies its chain's domain
prefix itself, the way a wallet does.

Concurrent ``sign_message`` calls are independent; no ordering, retry or
timeout is imposed here except the HTTP timeout of ``RemoteMessageSigner``.
"""

from __future__ import annotations
import asyncio
import os
from typing import Awaitable, Callable, Optional, Union

import requests

from .errors import RemoteSignerError
from .logger import get_logger
from .utils import b64d, b64e

log = get_logger("C3.Signer")

SignCallback = Callable[[bytes], Awaitable[Union[bytes, str]]]

DEFAULT_SIGNER_TIMEOUT = 10.0


class MessageSigner:
    """
    Signing contract for one account.

    Either pass ``callback`` or subclass and override ``sign_message``;
    a plain instance without either is rejected at construction.
    """

    def __init__(self, address: str, chain_id: int, callback: Optional[SignCallback] = None):
        if callback is None and type(self).sign_message is MessageSigner.sign_message:
            raise TypeError(f"{type(self).__name__} needs a sign callback or a sign_message override")
        self.address = address
        self.chain_id = chain_id
        self._callback = callback

    async def sign_message(self, message: bytes) -> bytes:
        """Signature over ``message``; base64 replies are decoded."""
        if self._callback is None:
            raise NotImplementedError
        signature = await self._callback(bytes(message))
        if isinstance(signature, str):
            signature = b64d(signature)
        return bytes(signature)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.address!r}, chain_id={self.chain_id})"


class RemoteMessageSigner(MessageSigner):
    """
    Delegates signing to an HTTP signing service.

    POST {base_url}/sign  {"address", "chainId", "message": <base64>}
    -> 200 {"signature": <base64>}

    The blocking request runs in a worker thread so concurrent signs overlap.
    """

    def __init__(self, address: str, chain_id: int, base_url: str,
                 timeout: float = DEFAULT_SIGNER_TIMEOUT, token: Optional[str] = None):
        super().__init__(address, chain_id)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._token = token

    def _post(self, message: bytes) -> bytes:
        url = f"{self.base_url}/sign"
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        body = {"address": self.address, "chainId": self.chain_id, "message": b64e(message)}

        log.info(f"[SIGNER] → {url} | address={self.address} bytes={len(message)}")
        try:
            res = requests.post(url, json=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as ex:
            log.error(f"[SIGNER] request failed: {ex}")
            raise RemoteSignerError(f"signing service unreachable: {ex}") from ex

        if not res.ok:
            log.error(f"[SIGNER] {res.status_code}: {res.text}")
            raise RemoteSignerError(
                f"signing service returned {res.status_code}",
                {"status": res.status_code, "body": res.text},
            )

        try:
            return b64d(res.json()["signature"])
        except (ValueError, KeyError, TypeError, AttributeError) as ex:
            raise RemoteSignerError(f"malformed signing service reply: {ex}") from ex

    async def sign_message(self, message: bytes) -> bytes:
        return await asyncio.to_thread(self._post, bytes(message))


def signer_from_env(address: str, chain_id: int) -> RemoteMessageSigner:
    """
    Remote signer configured from the environment:
      - C3_SIGNER_URL      signing service base url (required)
      - C3_SIGNER_TIMEOUT  seconds, default 10
      - C3_SIGNER_TOKEN    optional bearer token
    """
    url = os.getenv("C3_SIGNER_URL")
    if not url:
        raise ValueError("C3_SIGNER_URL is not set")
    timeout = float(os.getenv("C3_SIGNER_TIMEOUT", str(DEFAULT_SIGNER_TIMEOUT)))
    return RemoteMessageSigner(address, chain_id, url, timeout=timeout, token=os.getenv("C3_SIGNER_TOKEN"))
